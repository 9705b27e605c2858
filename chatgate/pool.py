"""A blocking, thread-safe pool of reusable connections."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

T = TypeVar("T")


class PoolClosedError(RuntimeError):
    """Raised when a connection is requested from a closed pool."""


class ConnectionPool(Generic[T]):
    """Holds ``size`` connections made by ``factory``; hands them out FIFO."""

    def __init__(self, factory: Callable[[], T], size: int) -> None:
        self._idle: deque[T] = deque(factory() for _ in range(size))
        self._cond = threading.Condition()
        self._closed = False

    def acquire(self) -> T:
        """Take a connection, waiting until one is free or the pool closes."""
        with self._cond:
            self._cond.wait_for(lambda: self._closed or bool(self._idle))
            if self._closed:
                raise PoolClosedError("connection pool is closed")
            return self._idle.popleft()

    def release(self, conn: T) -> None:
        """Give a connection back; it is dropped if the pool is closed."""
        with self._cond:
            if self._closed:
                return
            self._idle.append(conn)
            self._cond.notify()

    def close(self) -> None:
        """Close the pool and wake every waiter."""
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def closed(self) -> bool:
        return self._closed

    @contextmanager
    def connection(self) -> Iterator[T]:
        """Borrow a connection for the duration of a ``with`` block."""
        conn = self.acquire()
        try:
            yield conn
        finally:
            self.release(conn)

    def __len__(self) -> int:
        with self._cond:
            return len(self._idle)