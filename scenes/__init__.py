"""Procedural scenes — builders, cache and the default painting surface."""

from scenes.state import SceneState, MeshScene, MeshVertex, MetaballScene, Metaball, GradientScene
from scenes.builders import build_scene, update_scene, is_resizable
from scenes.cache import SceneCache
from scenes.renderer import PlaywrightSurface, Surface

__all__ = [
    "SceneState",
    "MeshScene",
    "MeshVertex",
    "MetaballScene",
    "Metaball",
    "GradientScene",
    "build_scene",
    "update_scene",
    "is_resizable",
    "SceneCache",
    "PlaywrightSurface",
    "Surface",
]
