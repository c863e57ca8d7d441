"""
Inline export — a point-in-time JSON snapshot of the exportable state.

Every mesh layer gets its ``sceneFuzz`` re-derived from the cached scene
(or from a fresh build when the cache is cold), so importing the snapshot
reproduces the same visuals.
"""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Union

from layers.kinds import LayerKind, classify
from layers.model import GlobalConfig, Layer, Model
from layers.transcoder import from_wire, to_structured
from scenes.builders import build_scene
from scenes.cache import SceneCache
from scenes.state import MeshScene

logger = logging.getLogger(__name__)


@dataclass
class ExportSnapshot:
    """Serialized snapshot plus the dict it was dumped from."""
    json: str
    source: dict[str, Any]


def scene_fuzz_for(
    index: int,
    layer: Layer,
    config: GlobalConfig,
    cache: SceneCache,
    seed: Optional[int] = None,
) -> Optional[list[dict[str, Any]]]:
    """Fuzz records for a mesh layer; ``None`` for every other kind."""
    if classify(layer) is not LayerKind.MESH_FIELD:
        return None
    cached = cache.get(index)
    if isinstance(cached, MeshScene):
        return cached.export_fuzz()
    logger.info("No cached mesh for layer %d, building one for export", index)
    return build_scene(config, layer, seed=seed).export_fuzz()


def export_snapshot(
    state: Union[Model, str, Mapping[str, Any]],
    cache: SceneCache,
    seed: Optional[int] = None,
) -> ExportSnapshot:
    """
    Build the export snapshot for ``state``.

    Args:
        state: Exported state from the core (JSON text, dict or ``Model``).
        cache: Scene cache to take mesh fuzz from.
        seed: Seed for fresh builds when the cache is cold.

    Raises:
        TranscodeError: ``state`` cannot be decoded.
        BuildError: a cold mesh layer cannot be built.
    """
    model = copy.deepcopy(state) if isinstance(state, Model) else from_wire(state)
    for index, layer in enumerate(model.layers):
        layer.scene_fuzz = scene_fuzz_for(index, layer, model.config, cache, seed)

    source = to_structured(model)
    for layer_dict, layer in zip(source["layers"], model.layers):
        layer_dict["sceneFuzz"] = layer.scene_fuzz

    return ExportSnapshot(json=json.dumps(source, indent=2), source=source)
