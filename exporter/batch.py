"""
Batch sequencer — capture the scene at several output sizes in a row.

State machine: ``Idle -> Running(step) -> Idle``. Each step sends one
``setCustomSize`` signal and waits a fixed pause so rendering can settle.
A ``(0, 0)`` sentinel step is appended to every run. While running, the
external settled-frame trigger (``capture``) exports an image at the
current step's size.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from channel import MessageChannel
from config import settings
from errors import BatchBusyError
from exporter.image import CaptureRequest

logger = logging.getLogger(__name__)

TERMINAL_SIZE = (0, 0)


class BatchStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"


@dataclass(frozen=True)
class BatchState:
    status: BatchStatus = BatchStatus.IDLE
    step: Optional[int] = None
    size: Optional[tuple[int, int]] = None

    @property
    def terminal(self) -> bool:
        return self.size == TERMINAL_SIZE


IDLE = BatchState()


class BatchSequencer:
    """
    Drives one batch run at a time over the shared capture surface.

    Args:
        channel: Channel to send ``setCustomSize`` on.
        capture: Coroutine exporting an image for a ``CaptureRequest``.
        pause: Seconds to wait after each step (settings.BATCH_PAUSE_S).
        sleep: Awaitable sleep, replaceable in tests.
        on_state: Called with every new ``BatchState``.
    """

    def __init__(
        self,
        channel: MessageChannel,
        capture: Callable[[CaptureRequest], Awaitable[Any]],
        pause: Optional[float] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_state: Optional[Callable[[BatchState], None]] = None,
    ):
        self.channel = channel
        self._capture = capture
        self.pause = settings.BATCH_PAUSE_S if pause is None else pause
        self._sleep = sleep
        self._on_state = on_state
        self._state = IDLE
        self._task: Optional[asyncio.Task] = None

    @property
    def state(self) -> BatchState:
        return self._state

    @property
    def running(self) -> bool:
        return self._state.status is BatchStatus.RUNNING

    def _set_state(self, state: BatchState) -> None:
        if state == self._state:
            return
        self._state = state
        logger.debug("Batch state: %s", state)
        if self._on_state is not None:
            self._on_state(state)

    def start(self, sizes: list[Union[tuple[int, int], list[int]]]) -> asyncio.Task:
        """
        Begin a run over ``sizes``. Returns the task driving it.

        Raises:
            BatchBusyError: a run is already active.
        """
        if self.running:
            raise BatchBusyError()
        steps = [(int(w), int(h)) for w, h in sizes] + [TERMINAL_SIZE]
        self._set_state(BatchState(BatchStatus.RUNNING, 0, steps[0]))
        self._task = asyncio.ensure_future(self._run(steps))
        return self._task

    async def _run(self, steps: list[tuple[int, int]]) -> None:
        try:
            for index, size in enumerate(steps):
                self._set_state(BatchState(BatchStatus.RUNNING, index, size))
                self.channel.send("setCustomSize", list(size))
                await self._sleep(self.pause)
            logger.info("Batch of %d sizes done", len(steps) - 1)
        finally:
            # a stale run unwinding after a restart leaves the new run alone
            if self._task is asyncio.current_task():
                self._task = None
                self._set_state(IDLE)

    def cancel(self) -> None:
        """Stop the run now; remaining steps are not fired."""
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._set_state(IDLE)

    async def capture(self, update: Union[CaptureRequest, dict[str, Any]]) -> Any:
        """Settled-frame trigger: export the current step's size, if any."""
        state = self._state
        if not self.running or state.terminal:
            return None
        if isinstance(update, CaptureRequest):
            request = replace(update, size=state.size)
        else:
            request = CaptureRequest.from_dict({**update, "size": state.size})
        return await self._capture(request)
