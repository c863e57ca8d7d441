"""
Session — process-wide pipeline state with an explicit lifecycle.

Holds the scene cache, the per-layer resize debouncers and the channel
subscriptions that belong to the current GUI session. Created empty at
session start; layers are released individually on removal and
everything is released on teardown.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional

from channel import Subscription
from layers.model import Model
from scenes.cache import SceneCache
from timing import Debouncer

logger = logging.getLogger(__name__)


@dataclass
class Session:
    """State owned by one editing (or playback) session."""
    session_id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    started_at: float = field(default_factory=time.time)
    cache: SceneCache = field(default_factory=SceneCache)
    debouncers: dict[int, Debouncer] = field(default_factory=dict)
    subscriptions: list[Subscription] = field(default_factory=list)
    model: Optional[Model] = None

    def track(self, subscription: Subscription) -> Subscription:
        """Remember a subscription so it is undone with the session."""
        if subscription not in self.subscriptions:
            self.subscriptions.append(subscription)
        return subscription

    def release_subscriptions(self) -> None:
        for subscription in self.subscriptions:
            subscription.unsubscribe()
        self.subscriptions.clear()

    def set_debouncer(self, index: int, debouncer: Debouncer) -> None:
        previous = self.debouncers.get(index)
        if previous is not None and previous is not debouncer:
            previous.cancel()
        self.debouncers[index] = debouncer

    def drop_debouncer(self, index: int) -> None:
        debouncer = self.debouncers.pop(index, None)
        if debouncer is not None:
            debouncer.cancel()

    def remove_layer(self, index: int) -> None:
        """Release everything held for ``index``; pending resizes never fire."""
        self.drop_debouncer(index)
        self.cache.invalidate(index)
        logger.debug("Session %s released layer %d", self.session_id, index)

    def teardown(self) -> None:
        self.release_subscriptions()
        for index in list(self.debouncers):
            self.drop_debouncer(index)
        self.cache.clear()
        self.model = None
        logger.info("Session %s torn down", self.session_id)
