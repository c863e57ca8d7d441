"""Fluid gradient textures: one RGBA colour ramp per fluid group."""

from __future__ import annotations

from typing import Any, Optional

import numpy as np

from config import settings
from errors import BuildError
from layers.model import GlobalConfig
from scenes.colors import hex_to_rgba
from scenes.state import GradientScene


def build_ramp(stops: list[dict[str, Any]], width: int) -> np.ndarray:
    """Linearly interpolate colour stops into a (width, 4) uint8 ramp."""
    try:
        positions = np.array([float(s["position"]) for s in stops], dtype=np.float64)
        colors = np.array([hex_to_rgba(s["color"]) for s in stops], dtype=np.float64)
    except (KeyError, TypeError, ValueError) as exc:
        raise BuildError(f"Invalid gradient stop: {exc}") from exc

    order = np.argsort(positions, kind="stable")
    positions = np.clip(positions[order], 0.0, 1.0)
    colors = colors[order]

    xs = np.linspace(0.0, 1.0, width)
    ramp = np.stack(
        [np.interp(xs, positions, colors[:, channel]) for channel in range(4)],
        axis=1,
    )
    return np.clip(np.round(ramp), 0, 255).astype(np.uint8)


def build(
    config: GlobalConfig,
    layer_model: dict[str, Any],
    prior_fuzz: Optional[list[dict[str, Any]]] = None,
    seed: Optional[int] = None,
) -> GradientScene:
    width = settings.GRADIENT_TEXTURE_WIDTH
    groups = layer_model.get("groups")
    if not isinstance(groups, list):
        raise BuildError("Fluid layer has no groups")

    scene = GradientScene()
    for i, group in enumerate(groups):
        gradient = (group or {}).get("gradient") or {}
        stops = gradient.get("stops") or []
        if not stops:
            raise BuildError(f"Fluid group {i} has no gradient stops")
        scene.textures.append(build_ramp(stops, width))
        scene.orientations.append(str(gradient.get("orientation", "horizontal")))
    return scene
