"""
Timers — scheduled callbacks, debouncing and frame boundaries.

All timers go through a ``Scheduler`` so per-layer lifecycles stay
independent and tests can drive them with a virtual clock.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, Optional, Protocol, TypeVar

from config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio loop (the running one by default)."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def call_later(self, delay: float, callback: Callable[[], Any]) -> TimerHandle:
        loop = self._loop or asyncio.get_running_loop()
        return loop.call_later(delay, callback)


class Debouncer(Generic[T]):
    """
    Collapses a burst of calls into one ``action`` call with the last input.

    The action fires ``delay_ms`` after the most recent call. Once
    cancelled, the debouncer drops its pending input and ignores any
    further calls.
    """

    def __init__(
        self,
        delay_ms: float,
        action: Callable[[T], Any],
        scheduler: Optional[Scheduler] = None,
    ):
        self.delay_ms = delay_ms
        self.action = action
        self.scheduler = scheduler or AsyncioScheduler()
        self._handle: Optional[TimerHandle] = None
        self._pending: Optional[T] = None
        self._cancelled = False

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __call__(self, value: T) -> None:
        if self._cancelled:
            return
        if self._handle is not None:
            self._handle.cancel()
        self._pending = value
        self._handle = self.scheduler.call_later(self.delay_ms / 1000, self._fire)

    def _fire(self) -> None:
        self._handle = None
        value, self._pending = self._pending, None
        if self._cancelled:
            return
        logger.debug("Debounced action fired after %sms quiet period", self.delay_ms)
        self.action(value)

    def cancel(self) -> None:
        self._cancelled = True
        self._pending = None
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


def make_debouncer(
    delay_ms: Optional[float],
    action: Callable[[T], Any],
    scheduler: Optional[Scheduler] = None,
) -> Debouncer[T]:
    """Debounce ``action`` (defaults to settings.RESIZE_DEBOUNCE_MS)."""
    if delay_ms is None:
        delay_ms = settings.RESIZE_DEBOUNCE_MS
    return Debouncer(delay_ms, action, scheduler)


async def next_frame(interval: Optional[float] = None) -> None:
    """Yield until the next rendering frame boundary."""
    await asyncio.sleep(settings.FRAME_INTERVAL_S if interval is None else interval)
