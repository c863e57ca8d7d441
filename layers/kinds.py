"""
Layer classifier.

Decides which procedural builder a layer belongs to by looking at the
shape of its model. The kind is never stored on the layer, so it cannot
drift from the model it describes.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Mapping

from layers.model import Layer


class LayerKind(str, Enum):
    MESH_FIELD = "mesh_field"
    METABALL_FIELD = "metaball_field"
    FLUID_GRADIENT = "fluid_gradient"
    OTHER = "other"


def _model_of(layer: Any) -> Any:
    if isinstance(layer, Layer):
        return layer.model
    if isinstance(layer, Mapping) and "model" in layer:
        return layer["model"]
    return layer


def classify(layer: Any) -> LayerKind:
    """
    Classify a layer (or a bare layer model) by the shape of its model.

    Accepts ``Layer`` objects, wire-style dicts with a ``model`` key and
    bare model dicts. Models still in wire form are parsed first. Never
    raises: anything unrecognised is ``LayerKind.OTHER``.
    """
    model = _model_of(layer)
    if isinstance(model, (str, bytes)):
        try:
            model = json.loads(model)
        except ValueError:
            return LayerKind.OTHER
    if not isinstance(model, Mapping):
        return LayerKind.OTHER

    if "faces" in model and "amplitude" in model:
        return LayerKind.MESH_FIELD
    if "colors" in model and "ranges" in model:
        return LayerKind.METABALL_FIELD
    if isinstance(model.get("groups"), list) and "variety" in model:
        return LayerKind.FLUID_GRADIENT
    return LayerKind.OTHER


def is_mesh_field(layer: Any) -> bool:
    return classify(layer) is LayerKind.MESH_FIELD


def is_metaball_field(layer: Any) -> bool:
    return classify(layer) is LayerKind.METABALL_FIELD


def is_fluid_gradient(layer: Any) -> bool:
    return classify(layer) is LayerKind.FLUID_GRADIENT
