"""
Message channel between the application core and the scene pipeline.

Named ports in both directions:

* inbound — the core ``emit``s, the pipeline ``subscribe``s;
* outbound — the pipeline ``send``s, the core ``listen``s.

Registration is idempotent (the same handler on the same port is kept
once) and every registration returns a ``Subscription`` that can be
undone. Inbound events are dispatched in arrival order; handlers that
return awaitables are scheduled as tasks in that same order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import defaultdict
from typing import Any, Callable

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Any]


class Subscription:
    """Handle to one registration on a port."""

    def __init__(self, registry: dict[str, list[Handler]], name: str, handler: Handler):
        self._registry = registry
        self.name = name
        self.handler = handler

    @property
    def active(self) -> bool:
        return self.handler in self._registry.get(self.name, [])

    def unsubscribe(self) -> None:
        handlers = self._registry.get(self.name, [])
        if self.handler in handlers:
            handlers.remove(self.handler)


def _register(registry: dict[str, list[Handler]], name: str, handler: Handler) -> Subscription:
    handlers = registry[name]
    if handler not in handlers:
        handlers.append(handler)
    return Subscription(registry, name, handler)


class MessageChannel:
    """Typed publish/subscribe by port name."""

    def __init__(self) -> None:
        self._inbound: dict[str, list[Handler]] = defaultdict(list)
        self._outbound: dict[str, list[Handler]] = defaultdict(list)
        self._tasks: set[asyncio.Task] = set()

    # ── Core → pipeline ──────────────────────────────────────────────

    def subscribe(self, name: str, handler: Handler) -> Subscription:
        return _register(self._inbound, name, handler)

    def emit(self, name: str, payload: Any = None) -> None:
        """Deliver an inbound event to every handler of ``name``."""
        handlers = list(self._inbound.get(name, ()))
        if not handlers:
            logger.debug("No handler for inbound port '%s'", name)
        for handler in handlers:
            result = handler(payload)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._task_done)

    def handler_count(self, name: str) -> int:
        return len(self._inbound.get(name, ()))

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Inbound handler failed", exc_info=exc)

    async def drain(self) -> None:
        """Wait until every handler task scheduled so far has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Pipeline → core ──────────────────────────────────────────────

    def listen(self, name: str, listener: Handler) -> Subscription:
        return _register(self._outbound, name, listener)

    def send(self, name: str, payload: Any = None) -> None:
        """Notify the core on port ``name``."""
        logger.debug("-> %s", name)
        for listener in list(self._outbound.get(name, ())):
            listener(payload)
