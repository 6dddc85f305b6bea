"""Thread-safe block pool and bounded single-producer single-consumer queue."""

from __future__ import annotations

import threading
from collections import deque
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class MemoryPool:
    """Pool of fixed-size byte blocks reused in last-in, first-out order."""

    def __init__(self, block_size: int, initial_size: int = 0):
        if block_size < 0:
            raise ValueError(f"block size must be non-negative, got {block_size}")
        self.block_size = block_size
        self._free: list[bytearray] = []
        self._lock = threading.Lock()
        self._count = 0
        for _ in range(initial_size):
            self.deallocate(bytearray(block_size))
            self._count += 1

    def _take(self) -> bytearray:
        if self._free:
            return self._free.pop()
        self._count += 1
        return bytearray(self.block_size)

    def allocate(self) -> bytearray:
        """Return a free block, creating one if the pool is empty."""
        with self._lock:
            return self._take()

    def allocate_many(self, n: int) -> list[bytearray]:
        if n <= 0:
            return []
        with self._lock:
            return [self._take() for _ in range(n)]

    def deallocate(self, block: bytearray) -> None:
        with self._lock:
            self._free.append(block)

    def total_count(self) -> int:
        """Number of blocks ever created by this pool."""
        return self._count


class SPSCQueue(Generic[T]):
    """Bounded queue with ``capacity`` slots, holding at most ``capacity - 1`` items.

    ``pop`` returns ``None`` once the queue is closed and drained.
    """

    def __init__(self, capacity: int = 1024):
        if capacity < 2:
            raise ValueError(f"capacity must be at least 2, got {capacity}")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._cond = threading.Condition()
        self._closed = False
        self.write_waits = 0
        self.read_waits = 0

    def add(self, item: T) -> None:
        """Append an item, blocking while the queue is full."""
        with self._cond:
            while len(self._items) >= self.capacity - 1:
                self.write_waits += 1
                self._cond.wait()
            self._items.append(item)
            self._cond.notify_all()

    def pop(self) -> Optional[T]:
        """Remove the oldest item, blocking until one arrives or the queue closes."""
        with self._cond:
            while not self._closed and not self._items:
                self.read_waits += 1
                self._cond.wait()
            if not self._items:
                return None
            item = self._items.popleft()
            self._cond.notify_all()
            return item

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    def closed(self) -> bool:
        return self._closed