"""
Mesh field builder.

Builds a triangulated plane covering the canvas. Each vertex gets a rest
position (``v0``), an ``anchor`` it oscillates toward, a phase (``time``)
and a ``gradient`` coordinate. Together these are the layer's scene fuzz.
"""

from __future__ import annotations

import logging
import math
import random
from typing import Any, Optional

import numpy as np

from errors import BuildError
from layers.model import GlobalConfig
from scenes.state import MeshScene, MeshVertex

logger = logging.getLogger(__name__)

# Interior vertices are jittered by up to this fraction of a cell
_JITTER = 0.35


def _faces(layer_model: dict[str, Any]) -> tuple[int, int]:
    faces = layer_model.get("faces")
    if isinstance(faces, dict):
        faces = (faces.get("x"), faces.get("y"))
    try:
        cols, rows = (int(f) for f in faces)
    except (TypeError, ValueError) as exc:
        raise BuildError(f"Invalid faces: {faces!r}") from exc
    if cols < 1 or rows < 1:
        raise BuildError(f"Mesh needs at least one face per axis, got {cols}x{rows}")
    return cols, rows


def _amplitude(layer_model: dict[str, Any]) -> tuple[float, float, float]:
    amplitude = layer_model.get("amplitude")
    if isinstance(amplitude, dict):
        amplitude = (amplitude.get("x"), amplitude.get("y"), amplitude.get("z"))
    try:
        ax, ay, az = (float(a) for a in amplitude)
    except (TypeError, ValueError) as exc:
        raise BuildError(f"Invalid amplitude: {amplitude!r}") from exc
    return ax, ay, az


def _grid_vertices(
    size: tuple[int, int],
    faces: tuple[int, int],
    amplitude: tuple[float, float, float],
    rng: random.Random,
) -> list[MeshVertex]:
    """Jittered grid, row by row, centred on the origin."""
    width, height = size
    cols, rows = faces
    cell_w = width / cols
    cell_h = height / rows
    ax, ay, az = amplitude

    vertices = []
    for row in range(rows + 1):
        for col in range(cols + 1):
            x = -width / 2 + col * cell_w
            y = -height / 2 + row * cell_h
            # Border vertices stay put so the plane always covers the canvas
            if 0 < col < cols:
                x += rng.uniform(-_JITTER, _JITTER) * cell_w
            if 0 < row < rows:
                y += rng.uniform(-_JITTER, _JITTER) * cell_h
            anchor = (
                x + rng.uniform(-1.0, 1.0) * ax,
                y + rng.uniform(-1.0, 1.0) * ay,
                rng.uniform(-1.0, 1.0) * az,
            )
            vertices.append(MeshVertex(
                v0=(x, y, 0.0),
                anchor=anchor,
                time=rng.uniform(0.0, 2 * math.pi),
                gradient=rng.random(),
            ))
    return vertices


def triangulate(faces: tuple[int, int]) -> np.ndarray:
    """Two triangles per grid cell, as an (N, 3) int32 index buffer."""
    cols, rows = faces
    idx = np.arange((cols + 1) * (rows + 1)).reshape(rows + 1, cols + 1)
    a = idx[:-1, :-1].ravel()
    b = idx[:-1, 1:].ravel()
    c = idx[1:, :-1].ravel()
    d = idx[1:, 1:].ravel()
    upper = np.stack([a, b, c], axis=1)
    lower = np.stack([b, d, c], axis=1)
    return np.stack([upper, lower], axis=1).reshape(-1, 3).astype(np.int32)


def _vertices_from_fuzz(fuzz: list[dict[str, Any]]) -> Optional[list[MeshVertex]]:
    try:
        return [MeshVertex.from_fuzz(d) for d in fuzz]
    except (KeyError, TypeError, ValueError) as exc:
        logger.warning("Ignoring malformed scene fuzz: %s", exc)
        return None


def build(
    config: GlobalConfig,
    layer_model: dict[str, Any],
    prior_fuzz: Optional[list[dict[str, Any]]] = None,
    seed: Optional[int] = None,
) -> MeshScene:
    """
    Build a mesh field scene for the canvas described by ``config``.

    ``prior_fuzz`` is reused verbatim when it has one record per vertex,
    which keeps an imported scene identical to the exported one.
    """
    width, height = config.size
    if width <= 0 or height <= 0:
        raise BuildError(f"Cannot build a mesh for a {width}x{height} canvas")
    faces = _faces(layer_model)
    amplitude = _amplitude(layer_model)
    vertex_count = (faces[0] + 1) * (faces[1] + 1)

    vertices = None
    if prior_fuzz is not None:
        if len(prior_fuzz) == vertex_count:
            vertices = _vertices_from_fuzz(prior_fuzz)
        else:
            logger.warning(
                "Scene fuzz has %d records but the mesh has %d vertices; rebuilding",
                len(prior_fuzz), vertex_count,
            )
    if vertices is None:
        rng = random.Random(seed)
        vertices = _grid_vertices((width, height), faces, amplitude, rng)

    return MeshScene(
        size=(width, height),
        faces=faces,
        amplitude=amplitude,
        vertices=vertices,
        triangles=triangulate(faces),
        colors=[str(c) for c in layer_model.get("colors") or []],
        light_speed=float(layer_model.get("lightSpeed", 0.0)),
        render_mode=str(layer_model.get("renderMode", "triangles")),
        vignette=float(layer_model.get("vignette") or 0.0),
        iris=float(layer_model.get("iris") or 0.0),
        mirror=float(layer_model.get("mirror") or 0.0),
        seed=seed,
    )
