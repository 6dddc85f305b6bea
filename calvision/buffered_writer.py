"""Triple-buffered file writer that saves on a background thread."""

from __future__ import annotations

import os
import threading
from typing import Iterable, Sequence

from .binary_io import BinaryWriter
from .constants import N_SAMPLES

N_EVENTS_BUFFER = 1000
WORD_BYTES = 4
EVENT_SIZE = (4 + 2 + 3 * N_SAMPLES) * WORD_BYTES
BUFFER_SIZE = N_EVENTS_BUFFER * EVENT_SIZE // WORD_BYTES


class DataBuffer:
    """Fixed-capacity buffer of 32-bit words."""

    def __init__(self, capacity: int = BUFFER_SIZE):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._data: list[int] = []

    def write(self, values: Sequence[int]) -> int:
        """Append as many values as fit; return how many were taken."""
        chunk = values[: self.capacity - len(self._data)]
        self._data.extend(chunk)
        return len(chunk)

    def clear(self) -> None:
        self._data.clear()

    def full(self) -> bool:
        return len(self._data) == self.capacity

    def contents(self) -> list[int]:
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)


class BufferedFileWriter:
    """Writes words to a file through input, intermediate and output buffers.

    The caller fills the input buffer; when full it is handed to the saving
    thread via the intermediate buffer, which the thread swaps into output
    and writes to disk.
    """

    def __init__(self, path: str | os.PathLike, capacity: int = BUFFER_SIZE):
        self._input = DataBuffer(capacity)
        self._intermediate = DataBuffer(capacity)
        self._output = DataBuffer(capacity)
        self._outfile = BinaryWriter(path)
        self._finished = False
        self._cond = threading.Condition()
        self._thread = threading.Thread(target=self._save_loop, daemon=True)
        self._thread.start()

    def write(self, values: Iterable[int]) -> None:
        if self._finished:
            raise ValueError("write to a closed writer")
        values = list(values)
        written = 0
        while written < len(values):
            written += self._input.write(values[written:])
            if self._input.full():
                self._swap_write_buffers()

    def _swap_write_buffers(self) -> None:
        with self._cond:
            self._cond.wait_for(lambda: not self._intermediate.full())
            self._input, self._intermediate = self._intermediate, self._input
            self._cond.notify_all()

    def _swap_output_buffers(self) -> bool:
        self._output.clear()
        with self._cond:
            self._cond.wait_for(lambda: self._intermediate.full() or self._finished)
            if self._finished:
                return False
            self._output, self._intermediate = self._intermediate, self._output
            self._cond.notify_all()
        return True

    def _save(self, buffer: DataBuffer) -> None:
        if len(buffer):
            self._outfile.write_array(buffer.contents(), "I")
            self._outfile.flush()

    def _save_loop(self) -> None:
        while True:
            with self._cond:
                if self._finished:
                    return
            self._save(self._output)
            if not self._swap_output_buffers():
                return

    def close(self) -> None:
        """Stop the saving thread and write everything still buffered."""
        with self._cond:
            self._finished = True
            self._cond.notify_all()
        self._thread.join()

        if not self._outfile.is_open():
            return
        for buffer in (self._output, self._intermediate, self._input):
            self._save(buffer)
            buffer.clear()
        self._outfile.close()

    def __enter__(self) -> "BufferedFileWriter":
        return self

    def __exit__(self, *exc) -> None:
        self.close()