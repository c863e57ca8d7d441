"""Tests for the procedural scene builders."""

import numpy as np
import pytest

from errors import BuildError
from helpers import FLUID_MODEL, MESH_MODEL, METABALL_MODEL, TEXT_MODEL
from layers.kinds import LayerKind
from layers.model import GlobalConfig, Layer
from scenes import gradients, metaballs
from scenes.builders import build_scene, is_resizable, update_scene
from scenes.mesh_field import triangulate


class TestMeshField:
    """Tests for the mesh field builder."""

    def test_deterministic_same_seed(self, config):
        scene_a = build_scene(config, Layer(model=dict(MESH_MODEL)), seed=7)
        scene_b = build_scene(config, Layer(model=dict(MESH_MODEL)), seed=7)
        assert scene_a.export_fuzz() == scene_b.export_fuzz()
        assert np.array_equal(scene_a.triangles, scene_b.triangles)

    def test_different_seeds_differ(self, config):
        scene_a = build_scene(config, dict(MESH_MODEL), seed=0)
        scene_b = build_scene(config, dict(MESH_MODEL), seed=1)
        assert scene_a.export_fuzz() != scene_b.export_fuzz()

    def test_vertex_and_triangle_counts(self, config):
        scene = build_scene(config, dict(MESH_MODEL), seed=0)
        assert scene.kind is LayerKind.MESH_FIELD
        assert len(scene.vertices) == 5 * 4
        assert scene.triangles.shape == (2 * 4 * 3, 3)
        assert scene.triangles.max() == len(scene.vertices) - 1

    def test_border_vertices_cover_canvas(self, config):
        scene = build_scene(config, dict(MESH_MODEL), seed=3)
        assert scene.vertices[0].v0 == (-400.0, -300.0, 0.0)
        assert scene.vertices[-1].v0 == (400.0, 300.0, 0.0)

    def test_prior_fuzz_is_reused(self, config):
        original = build_scene(config, dict(MESH_MODEL), seed=1)
        rebuilt = build_scene(config, dict(MESH_MODEL), prior_fuzz=original.export_fuzz(), seed=2)
        assert rebuilt.export_fuzz() == original.export_fuzz()

    def test_mismatched_fuzz_is_ignored(self, config):
        small = build_scene(config, {**MESH_MODEL, "faces": [1, 1]}, seed=1)
        rebuilt = build_scene(config, dict(MESH_MODEL), prior_fuzz=small.export_fuzz(), seed=5)
        assert rebuilt.export_fuzz() == build_scene(config, dict(MESH_MODEL), seed=5).export_fuzz()

    def test_faces_as_object(self, config):
        scene = build_scene(config, {**MESH_MODEL, "faces": {"x": 2, "y": 2}}, seed=0)
        assert scene.faces == (2, 2)

    def test_degenerate_models(self, config):
        with pytest.raises(BuildError):
            build_scene(config, {**MESH_MODEL, "faces": [0, 3]})
        with pytest.raises(BuildError):
            build_scene(config, {**MESH_MODEL, "amplitude": [1.0]})
        with pytest.raises(BuildError):
            build_scene(GlobalConfig(size=(0, 600)), dict(MESH_MODEL))

    def test_triangulate_single_cell(self):
        assert triangulate((1, 1)).tolist() == [[0, 1, 2], [1, 3, 2]]


class TestMetaballs:
    """Tests for the metaball builder and its resize update."""

    def test_group_and_ball_counts(self, config):
        scene = build_scene(config, dict(METABALL_MODEL), seed=4)
        assert scene.group_count == 2
        assert len(scene.metaballs) == 6
        assert [b.ident for b in scene.metaballs] == list(range(6))

    def test_deterministic_same_seed(self, config):
        scene_a = build_scene(config, dict(METABALL_MODEL), seed=9)
        scene_b = build_scene(config, dict(METABALL_MODEL), seed=9)
        assert scene_a == scene_b

    def test_balls_stay_on_canvas(self, config):
        scene = build_scene(config, dict(METABALL_MODEL), seed=11)
        for ball in scene.metaballs:
            assert 0.0 <= ball.x <= 800.0
            assert 0.0 <= ball.y <= 600.0

    def test_update_keeps_identity(self, config):
        prior = build_scene(config, dict(METABALL_MODEL), seed=2)
        resized = update_scene((1600, 1200), prior)
        assert resized.size == (1600, 1200)
        for before, after in zip(prior.metaballs, resized.metaballs):
            assert after.ident == before.ident
            assert after.speed == before.speed
            assert after.phase == before.phase
            assert after.x == pytest.approx(before.x * 2)
            assert after.radius == pytest.approx(before.radius * 2)

    def test_update_recolours(self, config):
        prior = build_scene(config, dict(METABALL_MODEL), seed=2)
        recoloured = update_scene(prior.size, prior, colors=["#123456"])
        assert recoloured.colors == ["#123456"]
        assert recoloured.metaballs == prior.metaballs

    def test_convert_ranges_floors_integers(self):
        ranges = metaballs.convert_ranges({"minRadius": 10.7, "maxRadius": 20.2})
        assert ranges.radius.min == 10
        assert ranges.radius.max == 20

    def test_invalid_ranges(self):
        with pytest.raises(BuildError):
            metaballs.convert_ranges({"minBalls": 5, "maxBalls": 2})
        with pytest.raises(BuildError):
            metaballs.convert_ranges({"minGroups": 0})
        with pytest.raises(BuildError):
            metaballs.convert_ranges({"minRadius": 0})


class TestGradients:
    """Tests for the fluid gradient texture builder."""

    def test_ramp_endpoints(self, config):
        scene = build_scene(config, dict(FLUID_MODEL))
        texture = scene.textures[0]
        assert texture.shape == (256, 4)
        assert texture.dtype == np.uint8
        assert texture[0].tolist() == [0, 0, 0, 255]
        assert texture[-1].tolist() == [255, 255, 255, 255]
        assert scene.orientations == ["vertical"]

    def test_unsorted_stops(self):
        ramp = gradients.build_ramp(
            [{"position": 1, "color": "#ffffff"}, {"position": 0, "color": "#000000"}], 3
        )
        assert ramp[:, 0].tolist() == [0, 128, 255]

    def test_group_without_stops(self, config):
        with pytest.raises(BuildError):
            gradients.build(config, {"groups": [{"gradient": {"stops": []}}], "variety": 0})


class TestDispatch:
    """Tests for build_scene()/update_scene() dispatch."""

    def test_other_layers_have_no_builder(self, config):
        with pytest.raises(BuildError):
            build_scene(config, dict(TEXT_MODEL))

    def test_only_metaballs_resize(self, config):
        assert is_resizable(LayerKind.METABALL_FIELD)
        assert not is_resizable(LayerKind.MESH_FIELD)
        mesh = build_scene(config, dict(MESH_MODEL), seed=0)
        with pytest.raises(BuildError):
            update_scene((100, 100), mesh)


def test_mesh_render_parameters(config):
    scene = build_scene(config, {**MESH_MODEL, "vignette": 0.4, "iris": 0.1, "mirror": True}, seed=0)
    assert (scene.vignette, scene.iris, scene.mirror) == (0.4, 0.1, 1.0)
    assert scene.light_speed == 500.0
