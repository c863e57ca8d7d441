"""
Scene state — the built, renderable representation of a layer.

Builders compute everything about a scene's procedural variation here,
before any painting occurs, so a scene can be exported and re-imported
to reproduce the same visuals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Union

import numpy as np

from layers.kinds import LayerKind


@dataclass
class MeshVertex:
    """One vertex of a mesh field with its procedural variation (fuzz)."""
    v0: tuple[float, float, float]
    anchor: tuple[float, float, float]
    time: float
    gradient: float

    def to_fuzz(self) -> dict[str, Any]:
        return {
            "v0": list(self.v0),
            "time": self.time,
            "anchor": list(self.anchor),
            "gradient": self.gradient,
        }

    @classmethod
    def from_fuzz(cls, d: dict[str, Any]) -> MeshVertex:
        return cls(
            v0=tuple(float(c) for c in d["v0"]),
            anchor=tuple(float(c) for c in d["anchor"]),
            time=float(d["time"]),
            gradient=float(d["gradient"]),
        )


@dataclass(eq=False)
class MeshScene:
    """Triangulated plane covering the canvas."""
    kind: ClassVar[LayerKind] = LayerKind.MESH_FIELD

    size: tuple[int, int]
    faces: tuple[int, int]
    amplitude: tuple[float, float, float]
    vertices: list[MeshVertex] = field(default_factory=list)
    triangles: np.ndarray = field(default_factory=lambda: np.zeros((0, 3), dtype=np.int32))
    colors: list[str] = field(default_factory=list)
    light_speed: float = 0.0
    render_mode: str = "triangles"
    vignette: float = 0.0
    iris: float = 0.0
    mirror: float = 0.0
    seed: Optional[int] = None

    def export_fuzz(self) -> list[dict[str, Any]]:
        """Per-vertex variation records, as stored in ``sceneFuzz``."""
        return [v.to_fuzz() for v in self.vertices]

    def positions(self) -> np.ndarray:
        return np.array([v.v0 for v in self.vertices], dtype=np.float32).reshape(-1, 3)


@dataclass
class Metaball:
    """A single ball. ``ident`` survives resizes and recolouring."""
    ident: int
    group: int
    x: float
    y: float
    radius: float
    speed: float
    phase: float
    amplitude_x: float
    amplitude_y: float


@dataclass
class MetaballScene:
    kind: ClassVar[LayerKind] = LayerKind.METABALL_FIELD

    size: tuple[int, int]
    colors: list[str]
    metaballs: list[Metaball] = field(default_factory=list)
    seed: Optional[int] = None

    @property
    def group_count(self) -> int:
        return len({b.group for b in self.metaballs})

    def color_of(self, ball: Metaball) -> str:
        if not self.colors:
            return "#ffffff"
        return self.colors[ball.group % len(self.colors)]


@dataclass(eq=False)
class GradientScene:
    """One RGBA ramp (width x 4, uint8) per fluid group."""
    kind: ClassVar[LayerKind] = LayerKind.FLUID_GRADIENT

    textures: list[np.ndarray] = field(default_factory=list)
    orientations: list[str] = field(default_factory=list)


SceneState = Union[MeshScene, MetaballScene, GradientScene]
