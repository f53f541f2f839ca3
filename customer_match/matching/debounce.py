"""Debounce scheduler coalescing bursts of input into one matching cycle."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

import structlog

logger = structlog.get_logger()

CycleCallback = Callable[[str, str], Awaitable[None]]


class DebounceScheduler:
    """
    Runs ``callback(name, phone)`` once input has been quiet for ``delay``.

    Each ``schedule`` call cancels the pending timer handle and arms a new
    one; the callback runs as its own task so a cycle already in flight is
    never interrupted by later input. After ``dispose`` nothing fires.
    """

    def __init__(self, delay_seconds: float, callback: CycleCallback):
        self.delay_seconds = delay_seconds
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self._tasks: set[asyncio.Task[None]] = set()
        self._disposed = False

    @property
    def pending(self) -> bool:
        """True while a timer is armed and has not fired."""
        return self._handle is not None

    @property
    def in_flight(self) -> int:
        """Number of callbacks started and not yet finished."""
        return len(self._tasks)

    def schedule(self, name_fragment: str, phone_fragment: str) -> None:
        """Reset the quiet period with the latest fragments."""
        if self._disposed:
            return
        self.cancel()
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(
            self.delay_seconds, self._fire, name_fragment, phone_fragment
        )

    def cancel(self) -> bool:
        """Release the pending timer, if any. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def dispose(self) -> None:
        """Cancel the timer and refuse further scheduling."""
        self.cancel()
        self._disposed = True

    def _fire(self, name_fragment: str, phone_fragment: str) -> None:
        self._handle = None
        if self._disposed:
            return
        task = asyncio.get_running_loop().create_task(
            self._callback(name_fragment, phone_fragment)
        )
        self._tasks.add(task)
        task.add_done_callback(self._on_done)

    def _on_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "debounce.callback_failed",
                error=str(exc),
                error_type=type(exc).__name__,
            )

    async def wait_idle(self) -> None:
        """Wait until no timer is armed and every started callback finished."""
        loop = asyncio.get_running_loop()
        while self._handle is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            elif self._handle is not None:
                remaining = self._handle.when() - loop.time()
                await asyncio.sleep(max(remaining, 0))
