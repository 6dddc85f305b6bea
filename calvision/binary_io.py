"""Little-endian binary readers and writers for raw run files."""

from __future__ import annotations

import io
import os
import struct
import time
from typing import BinaryIO, Callable, Iterable, TypeVar

from .constants import UINT_FORMAT

T = TypeVar("T")

_FOLLOW_POLL_SECONDS = 0.01


class BinaryReader:
    """Reads 32-bit words and typed arrays from a binary stream."""

    def __init__(self, stream: BinaryIO):
        self._stream = stream
        self._eof = False
        self._owns_stream = False

    @classmethod
    def from_file(cls, path: str | os.PathLike) -> "BinaryReader":
        reader = cls(open(path, "rb"))
        reader._owns_stream = True
        return reader

    @classmethod
    def from_bytes(cls, data: bytes) -> "BinaryReader":
        return cls(io.BytesIO(bytes(data)))

    def _read_exact(self, n: int) -> bytes:
        start = self._stream.tell() if self._stream.seekable() else None
        chunk = self._stream.read(n) or b""
        if len(chunk) < n:
            self._eof = True
            if start is not None:
                self._stream.seek(start)
            raise EOFError(f"needed {n} bytes, only {len(chunk)} available")
        return chunk

    def read_int(self) -> int:
        """Read one unsigned 32-bit word."""
        return struct.unpack(UINT_FORMAT, self._read_exact(4))[0]

    def read_array(self, count: int, typecode: str = "I") -> list:
        """Read ``count`` little-endian values of the given struct type code."""
        if count < 0:
            raise ValueError(f"count must be non-negative, got {count}")
        layout = struct.Struct(f"<{count}{typecode}")
        return list(layout.unpack(self._read_exact(layout.size)))

    def good(self) -> bool:
        return not self._eof and not self._stream.closed

    def eof(self) -> bool:
        return self._eof

    def __bool__(self) -> bool:
        return self.good()

    def follow(self, callback: Callable[["BinaryReader"], T]) -> T:
        """Call ``callback`` until it completes without running out of data.

        Partial reads are rewound, so a file that is still being written can
        be tailed.
        """
        while True:
            try:
                return callback(self)
            except EOFError:
                self._eof = False
                time.sleep(_FOLLOW_POLL_SECONDS)

    def close(self) -> None:
        if self._owns_stream:
            self._stream.close()

    def __enter__(self) -> "BinaryReader":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


class BinaryWriter:
    """Writes 32-bit words and typed arrays to a binary file."""

    def __init__(self, path: str | os.PathLike):
        self._file = open(path, "wb")

    def write_int(self, value: int) -> None:
        self._file.write(struct.pack(UINT_FORMAT, value))

    def write_array(self, values: Iterable, typecode: str = "I") -> None:
        values = list(values)
        self._file.write(struct.pack(f"<{len(values)}{typecode}", *values))

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        self._file.close()

    def is_open(self) -> bool:
        return not self._file.closed

    def __enter__(self) -> "BinaryWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()