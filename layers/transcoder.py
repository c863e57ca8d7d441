"""
Model transcoder — wire representation <-> structured model.

On the wire every layer's model is a JSON string nested inside the JSON
document exchanged with the application core. In memory it is a dict.
Layers whose model was not touched since decoding are re-emitted with
their original string, byte for byte.
"""

from __future__ import annotations

import copy
import json
import logging
from typing import Any, Mapping, Union

from errors import TranscodeError
from layers.model import GlobalConfig, Layer, Model

logger = logging.getLogger(__name__)

WireModel = dict[str, Any]

_LAYER_KEYS = ("model", "visible", "sceneFuzz")


def parse_layer_model(value: Any) -> dict[str, Any]:
    """Decode a layer model that may still be a JSON string."""
    if value is None:
        return {}
    if isinstance(value, (str, bytes)):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise TranscodeError(f"Invalid layer model: {exc}") from exc
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TranscodeError(f"Layer model must be an object, got {type(value).__name__}")
    return dict(value)


def _decode_layer(d: Mapping[str, Any]) -> Layer:
    raw = d.get("model")
    layer = Layer(
        model=parse_layer_model(raw),
        visible=bool(d.get("visible", True)),
        scene_fuzz=copy.deepcopy(d.get("sceneFuzz")),
        extra={k: copy.deepcopy(v) for k, v in d.items() if k not in _LAYER_KEYS},
    )
    if isinstance(raw, str):
        layer.raw = raw
    return layer


def _encode_model(layer: Layer) -> str:
    if layer.raw is not None:
        try:
            if json.loads(layer.raw) == layer.model:
                return layer.raw
        except ValueError:
            pass
    return json.dumps(layer.model)


def _encode_layer(layer: Layer, *, structured: bool) -> dict[str, Any]:
    d = copy.deepcopy(layer.extra)
    d["model"] = copy.deepcopy(layer.model) if structured else _encode_model(layer)
    d["visible"] = layer.visible
    if layer.scene_fuzz is not None:
        d["sceneFuzz"] = copy.deepcopy(layer.scene_fuzz)
    return d


def from_wire(wire: Union[str, bytes, Mapping[str, Any]]) -> Model:
    """
    Decode the wire document into a structured ``Model``.

    Accepts the JSON text or an already-parsed dict. Layer models may be
    JSON strings (import/randomize traffic) or objects (export traffic).
    """
    if isinstance(wire, (str, bytes)):
        try:
            wire = json.loads(wire)
        except ValueError as exc:
            raise TranscodeError(f"Invalid scene document: {exc}") from exc
    if not isinstance(wire, Mapping):
        raise TranscodeError("Scene document must be an object")

    layers = wire.get("layers") or []
    if not isinstance(layers, list):
        raise TranscodeError("'layers' must be a list")

    return Model(
        config=GlobalConfig.from_dict(dict(wire)),
        layers=[_decode_layer(layer) for layer in layers],
    )


def to_wire(model: Model) -> WireModel:
    """Encode a ``Model`` with each layer's model as a JSON string."""
    d = model.config.to_dict()
    d["layers"] = [_encode_layer(layer, structured=False) for layer in model.layers]
    return d


def to_wire_json(model: Model) -> str:
    """The JSON text sent on the ``import_`` port."""
    return json.dumps(to_wire(model))


def to_structured(model: Model) -> dict[str, Any]:
    """Encode a ``Model`` keeping layer models as objects (snapshot form)."""
    d = model.config.to_dict()
    d["layers"] = [_encode_layer(layer, structured=True) for layer in model.layers]
    return d
