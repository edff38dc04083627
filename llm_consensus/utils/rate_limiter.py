"""Async per-provider rate limiting and linear-backoff retry helpers."""

from __future__ import annotations

import asyncio
from collections import deque
import time
from typing import Awaitable, Callable, TypeVar


T = TypeVar("T")

WINDOW_SECONDS = 60.0


class AsyncRateLimiter:
    """Rolling 60-second window limiter keyed by ``provider:model``.

    An optional global cap applies across all keys; ``global_rpm=0`` disables it.
    """

    GLOBAL_KEY = "__global__"

    def __init__(self, global_rpm: int = 0, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._windows: dict[str, deque[float]] = {}
        self._locks: dict[str, tuple[asyncio.AbstractEventLoop, asyncio.Lock]] = {}
        self._global_rpm = global_rpm
        self._clock = clock

    def _lock_for(self, key: str) -> asyncio.Lock:
        """Per-key lock owned by the running loop; replaced when the loop changes."""
        loop = asyncio.get_running_loop()
        owner, lock = self._locks.get(key, (None, None))
        if lock is None or owner is not loop:
            lock = asyncio.Lock()
            self._locks[key] = (loop, lock)
        return lock

    async def _wait_for_slot(self, key: str, rpm: int) -> None:
        if rpm <= 0:
            return

        window = self._windows.setdefault(key, deque())
        lock = self._lock_for(key)

        async with lock:
            while True:
                now = self._clock()
                while window and now - window[0] > WINDOW_SECONDS:
                    window.popleft()

                if len(window) < rpm:
                    window.append(now)
                    return

                await asyncio.sleep(max(0.01, WINDOW_SECONDS - (now - window[0])))

    async def acquire(self, key: str, rpm: int) -> None:
        """Wait until both the global and the per-key budgets allow a call."""
        await self._wait_for_slot(self.GLOBAL_KEY, self._global_rpm)
        await self._wait_for_slot(key, rpm)


async def retry_with_backoff(
    fn: Callable[[int], Awaitable[T]],
    *,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
    on_failure: Callable[[int, BaseException], None] | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Call ``fn(attempt)`` until it succeeds, sleeping ``base_delay * attempt`` in between.

    The last exception is re-raised once ``max_attempts`` calls have failed.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await fn(attempt)
        except retryable_exceptions as exc:
            if on_failure is not None:
                on_failure(attempt, exc)
            if attempt >= max_attempts:
                raise
            delay = base_delay * attempt
            if delay > 0:
                await sleep(delay)
