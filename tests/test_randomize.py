"""Tests for the layer randomizer."""

import random
import re

from helpers import FLUID_MODEL, MESH_MODEL, METABALL_MODEL, TEXT_MODEL, wire_document
from layers.transcoder import from_wire, to_wire
from randomize import randomize_mesh, randomize_model

HEX = re.compile(r"^#[0-9a-f]{6}$")


class TestRandomizeModel:
    """Tests for randomize_model()."""

    def setup_method(self):
        self.wire = wire_document(MESH_MODEL, METABALL_MODEL, FLUID_MODEL, TEXT_MODEL)
        self.model = from_wire(self.wire)

    def test_same_seed_same_result(self):
        assert randomize_model(self.model, seed=5) == randomize_model(self.model, seed=5)

    def test_input_is_not_mutated(self):
        randomize_model(self.model, seed=1)
        assert self.model.layers[0].model == MESH_MODEL
        assert self.model.layers[2].model == FLUID_MODEL

    def test_other_layers_round_trip_unchanged(self):
        out = to_wire(randomize_model(self.model, seed=2))
        assert out["layers"][3]["model"] == self.wire["layers"][3]["model"]

    def test_mesh_parameters(self):
        mesh = randomize_mesh(dict(MESH_MODEL), random.Random(3))
        fx, fy = mesh["faces"]
        assert 2 <= fx <= 40
        assert 2 <= fy <= 30
        assert len(mesh["amplitude"]) == 3
        assert all(HEX.match(c) for c in mesh["colors"])

    def test_fluid_stop_colors_are_valid(self):
        fluid = randomize_model(self.model, seed=4).layers[2].model
        stops = fluid["groups"][0]["gradient"]["stops"]
        assert all(HEX.match(s["color"]) for s in stops)
        assert 0.0 <= fluid["variety"] <= 1.0
