"""Pool of reusable text buffers for template execution."""

from __future__ import annotations

import io
import threading
from contextlib import contextmanager
from typing import Iterator

DEFAULT_POOL_SIZE = 64


class BufferPool:
    """Thread-safe pool of :class:`io.StringIO` buffers.

    ``acquire`` never blocks: an empty pool hands out a new buffer.
    ``release`` resets the buffer and keeps it while the pool has room,
    otherwise the buffer is dropped.
    """

    def __init__(self, size: int = DEFAULT_POOL_SIZE):
        self.size = size
        self._free: list[io.StringIO] = []
        self._lock = threading.Lock()

    def acquire(self) -> io.StringIO:
        with self._lock:
            if self._free:
                return self._free.pop()
        return io.StringIO()

    def release(self, buf: io.StringIO) -> None:
        buf.seek(0)
        buf.truncate(0)
        with self._lock:
            if len(self._free) < self.size:
                self._free.append(buf)

    @contextmanager
    def borrowed(self) -> Iterator[io.StringIO]:
        """Acquire a buffer for the duration of a ``with`` block."""
        buf = self.acquire()
        try:
            yield buf
        finally:
            self.release(buf)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)


bufpool = BufferPool()
