"""
Scene builder dispatch.

Maps each ``LayerKind`` to the builder that turns its model into a
``SceneState``. Builders are pure: identical inputs and seed give
structurally identical scenes.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

from errors import BuildError
from layers.kinds import LayerKind, classify
from layers.model import GlobalConfig, Layer
from scenes import gradients, mesh_field, metaballs
from scenes.state import SceneState

Builder = Callable[..., SceneState]

BUILDERS: dict[LayerKind, Builder] = {
    LayerKind.MESH_FIELD: mesh_field.build,
    LayerKind.METABALL_FIELD: metaballs.build,
    LayerKind.FLUID_GRADIENT: gradients.build,
}

UPDATERS: dict[LayerKind, Callable[..., SceneState]] = {
    LayerKind.METABALL_FIELD: metaballs.update,
}


def is_resizable(kind: LayerKind) -> bool:
    return kind in UPDATERS


def build_scene(
    config: GlobalConfig,
    layer: Union[Layer, dict[str, Any]],
    prior_fuzz: Optional[list[dict[str, Any]]] = None,
    seed: Optional[int] = None,
) -> SceneState:
    """
    Build the scene for a layer (or a bare layer model).

    Raises:
        BuildError: the layer has no builder or its model is degenerate.
    """
    kind = classify(layer)
    builder = BUILDERS.get(kind)
    if builder is None:
        raise BuildError(f"No scene builder for {kind.value} layers")

    model = layer.model if isinstance(layer, Layer) else layer
    try:
        return builder(config, model, prior_fuzz, seed)
    except BuildError:
        raise
    except (KeyError, TypeError, ValueError, ZeroDivisionError) as exc:
        raise BuildError(f"Failed to build {kind.value} scene: {exc}") from exc


def update_scene(new_size: tuple[int, int], prior: SceneState, **kwargs: Any) -> SceneState:
    """Cheap resize of an existing scene; only resizable kinds support it."""
    updater = UPDATERS.get(prior.kind)
    if updater is None:
        raise BuildError(f"{prior.kind.value} scenes cannot be resized in place")
    return updater(new_size, prior, **kwargs)
