"""
Randomizer — new kind-specific parameters for every layer of a model.

Layers without a builder are left untouched, so their wire models still
round-trip byte for byte.
"""

from __future__ import annotations

import copy
import logging
import random
from typing import Any, Optional

from layers.kinds import LayerKind, classify
from layers.model import Model
from scenes.colors import shift_color

logger = logging.getLogger(__name__)


def _shift_all(colors: list[str], hue: float) -> list[str]:
    shifted = []
    for color in colors:
        try:
            shifted.append(shift_color(color, hue))
        except ValueError:
            shifted.append(color)
    return shifted


def randomize_mesh(layer_model: dict[str, Any], rng: random.Random) -> dict[str, Any]:
    model = dict(layer_model)
    model["faces"] = [rng.randint(2, 40), rng.randint(2, 30)]
    model["amplitude"] = [round(rng.uniform(0.0, 1.0), 2) for _ in range(3)]
    model["lightSpeed"] = rng.randint(200, 1000)
    model["colors"] = _shift_all(list(model.get("colors") or []), rng.random())
    return model


def randomize_metaballs(layer_model: dict[str, Any], rng: random.Random) -> dict[str, Any]:
    model = dict(layer_model)
    model["colors"] = _shift_all(list(model.get("colors") or []), rng.random())
    return model


def randomize_fluid(layer_model: dict[str, Any], rng: random.Random) -> dict[str, Any]:
    model = copy.deepcopy(layer_model)
    model["variety"] = round(rng.random(), 2)
    model["orbit"] = round(rng.random(), 2)
    hue = rng.random()
    for group in model.get("groups") or []:
        for stop in ((group or {}).get("gradient") or {}).get("stops") or []:
            if "color" in stop:
                stop["color"] = _shift_all([stop["color"]], hue)[0]
    return model


_RANDOMIZERS = {
    LayerKind.MESH_FIELD: randomize_mesh,
    LayerKind.METABALL_FIELD: randomize_metaballs,
    LayerKind.FLUID_GRADIENT: randomize_fluid,
}


def randomize_model(
    model: Model,
    rng: Optional[random.Random] = None,
    seed: Optional[int] = None,
) -> Model:
    """Return a copy of ``model`` with randomized layer parameters."""
    rng = rng or random.Random(seed)
    result = copy.deepcopy(model)
    for index, layer in enumerate(result.layers):
        randomizer = _RANDOMIZERS.get(classify(layer))
        if randomizer is None:
            continue
        layer.model = randomizer(layer.model, rng)
        logger.debug("Randomized layer %d", index)
    return result
