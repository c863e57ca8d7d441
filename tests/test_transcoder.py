"""Tests for the wire <-> structured model transcoder."""

import json

import pytest

from errors import TranscodeError
from helpers import MESH_MODEL, TEXT_MODEL, wire_document
from layers.transcoder import from_wire, parse_layer_model, to_structured, to_wire, to_wire_json


class TestFromWire:
    """Tests for from_wire()."""

    def test_decodes_config_and_layers(self):
        model = from_wire(wire_document(MESH_MODEL, TEXT_MODEL, product="goland"))
        assert model.config.product == "goland"
        assert model.config.size == (800, 600)
        assert len(model.layers) == 2
        assert model.layers[0].model == MESH_MODEL

    def test_accepts_json_text(self):
        model = from_wire(json.dumps(wire_document(MESH_MODEL)))
        assert model.layers[0].model["faces"] == [4, 3]

    def test_accepts_structured_layer_models(self):
        doc = wire_document()
        doc["layers"] = [{"model": dict(MESH_MODEL), "visible": False}]
        model = from_wire(doc)
        assert model.layers[0].model == MESH_MODEL
        assert model.layers[0].visible is False

    def test_null_model_is_empty(self):
        doc = wire_document()
        doc["layers"] = [{"model": "null"}, {"model": None}]
        model = from_wire(doc)
        assert [layer.model for layer in model.layers] == [{}, {}]

    def test_invalid_document(self):
        with pytest.raises(TranscodeError):
            from_wire("{broken")
        with pytest.raises(TranscodeError):
            from_wire("[1, 2]")

    def test_invalid_layer_model(self):
        doc = wire_document()
        doc["layers"] = [{"model": "{oops"}]
        with pytest.raises(TranscodeError):
            from_wire(doc)

    def test_non_object_layer_model(self):
        with pytest.raises(TranscodeError):
            parse_layer_model("[1, 2, 3]")


class TestToWire:
    """Tests for to_wire() / to_structured()."""

    def test_untouched_model_round_trips_byte_for_byte(self):
        raw = '{"faces":[4,3],   "amplitude": [0.5,0.5,0.5], "z": 1.50}'
        doc = wire_document()
        doc["layers"] = [{"model": raw, "visible": True}]
        assert to_wire(from_wire(doc))["layers"][0]["model"] == raw

    def test_modified_model_is_reencoded(self):
        model = from_wire(wire_document(MESH_MODEL))
        model.layers[0].model["faces"] = [9, 9]
        out = to_wire(model)["layers"][0]["model"]
        assert json.loads(out)["faces"] == [9, 9]

    def test_unknown_keys_survive(self):
        doc = wire_document(TEXT_MODEL)
        doc["customFlag"] = True
        doc["layers"][0]["name"] = "caption"
        out = to_wire(from_wire(doc))
        assert out["customFlag"] is True
        assert out["layers"][0]["name"] == "caption"

    def test_scene_fuzz_only_when_present(self):
        model = from_wire(wire_document(MESH_MODEL, TEXT_MODEL))
        model.layers[0].scene_fuzz = [{"v0": [0, 0, 0]}]
        layers = to_structured(model)["layers"]
        assert layers[0]["sceneFuzz"] == [{"v0": [0, 0, 0]}]
        assert "sceneFuzz" not in layers[1]

    def test_structured_keeps_objects(self):
        layers = to_structured(from_wire(wire_document(MESH_MODEL)))["layers"]
        assert layers[0]["model"] == MESH_MODEL

    def test_wire_json_is_decodable(self):
        model = from_wire(wire_document(MESH_MODEL))
        assert from_wire(to_wire_json(model)).layers[0].model == MESH_MODEL
