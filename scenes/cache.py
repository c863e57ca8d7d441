"""
Scene cache — last built ``SceneState`` per layer index.

Every index has a generation counter. A build captures the generation it
started under (``begin``) and may only ``commit`` while that generation is
still current, so a slow, stale build can never overwrite the result of
a newer one.
"""

from __future__ import annotations

import logging
from typing import Iterator, Optional

from scenes.state import SceneState

logger = logging.getLogger(__name__)


class SceneCache:
    """Mapping of layer index to scene state with last-write-wins commits."""

    def __init__(self) -> None:
        self._scenes: dict[int, SceneState] = {}
        self._generations: dict[int, int] = {}

    def get(self, index: int) -> Optional[SceneState]:
        return self._scenes.get(index)

    def generation(self, index: int) -> int:
        return self._generations.get(index, 0)

    def begin(self, index: int) -> int:
        """Start a build for ``index``; any build started earlier becomes stale."""
        generation = self.generation(index) + 1
        self._generations[index] = generation
        return generation

    def commit(self, index: int, generation: int, state: SceneState) -> bool:
        """Store ``state`` if ``generation`` is still current. Returns whether it was stored."""
        if generation != self.generation(index):
            logger.debug(
                "Dropping stale scene for layer %d (generation %d, current %d)",
                index, generation, self.generation(index),
            )
            return False
        self._scenes[index] = state
        return True

    def set(self, index: int, state: SceneState) -> None:
        """Store ``state`` unconditionally, superseding in-flight builds."""
        self.commit(index, self.begin(index), state)

    def refresh(self, index: int, state: SceneState) -> None:
        """Store ``state`` under the current generation; an in-flight build still commits over it."""
        self._scenes[index] = state

    def invalidate(self, index: int) -> None:
        """Forget the scene for ``index`` and supersede in-flight builds."""
        self.begin(index)
        self._scenes.pop(index, None)

    def clear(self) -> None:
        for index in list(self._generations):
            self.invalidate(index)

    def items(self) -> Iterator[tuple[int, SceneState]]:
        return iter(sorted(self._scenes.items()))

    def __contains__(self, index: object) -> bool:
        return index in self._scenes

    def __len__(self) -> int:
        return len(self._scenes)
