"""Lap stopwatch and a background key listener."""

from __future__ import annotations

import sys
import threading
import time
from typing import Optional, TextIO


class Stopwatch:
    """Each call returns the seconds elapsed since the previous call or creation."""

    def __init__(self):
        self._last = time.perf_counter()

    def __call__(self) -> float:
        now = time.perf_counter()
        elapsed = now - self._last
        self._last = now
        return elapsed


class KeyListener:
    """Watches a text stream on a background thread for one key."""

    def __init__(self, key: str, stream: Optional[TextIO] = None):
        if len(key) != 1:
            raise ValueError(f"key must be a single character, got {key!r}")
        self._key = key
        self._stream = stream if stream is not None else sys.stdin
        self._hit = threading.Event()
        self._thread = threading.Thread(target=self._listen, daemon=True)
        self._thread.start()

    def _listen(self) -> None:
        while True:
            char = self._stream.read(1)
            if not char:
                return
            if char == self._key:
                self._hit.set()
                return

    def hit(self) -> bool:
        return self._hit.is_set()

    def join(self, timeout: Optional[float] = None) -> bool:
        """Wait for the listener to stop; return whether it has stopped."""
        self._thread.join(timeout)
        return not self._thread.is_alive()

    def __enter__(self) -> "KeyListener":
        return self

    def __exit__(self, *exc) -> None:
        self.join()