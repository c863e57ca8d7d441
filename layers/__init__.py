"""Layer model, classification and wire transcoding."""

from layers.model import GlobalConfig, Layer, Model
from layers.kinds import LayerKind, classify, is_mesh_field, is_metaball_field, is_fluid_gradient
from layers.transcoder import from_wire, to_wire, to_wire_json, to_structured, parse_layer_model

__all__ = [
    "GlobalConfig",
    "Layer",
    "Model",
    "LayerKind",
    "classify",
    "is_mesh_field",
    "is_metaball_field",
    "is_fluid_gradient",
    "from_wire",
    "to_wire",
    "to_wire_json",
    "to_structured",
    "parse_layer_model",
]
