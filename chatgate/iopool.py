"""A round-robin pool of asyncio event loops, each on its own thread."""

from __future__ import annotations

import asyncio
import logging
import threading
from itertools import cycle

logger = logging.getLogger(__name__)


def _run_loop(loop: asyncio.AbstractEventLoop) -> None:
    asyncio.set_event_loop(loop)
    loop.run_forever()


class IOServicePool:
    """Runs ``size`` event loops in background threads until stopped."""

    def __init__(self, size: int = 2) -> None:
        if size < 1:
            raise ValueError("pool size must be at least 1")
        self._loops = [asyncio.new_event_loop() for _ in range(size)]
        self._threads = [
            threading.Thread(target=_run_loop, args=(loop,), daemon=True)
            for loop in self._loops
        ]
        self._next = cycle(self._loops)
        self._lock = threading.Lock()
        self._stopped = False
        for thread in self._threads:
            thread.start()

    def next_loop(self) -> asyncio.AbstractEventLoop:
        """Return the next loop in round-robin order."""
        with self._lock:
            return next(self._next)

    def stop(self) -> None:
        """Stop every loop, wait for its thread and close it."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
        for loop in self._loops:
            loop.call_soon_threadsafe(loop.stop)
        for thread in self._threads:
            thread.join()
        for loop in self._loops:
            loop.close()
        logger.debug("IOServicePool stopped")

    def __len__(self) -> int:
        return len(self._loops)

    def __enter__(self) -> "IOServicePool":
        return self

    def __exit__(self, *args) -> None:
        self.stop()