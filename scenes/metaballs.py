"""
Metaball field builder.

Balls are placed in groups around random centres. A resize only rescales
positions and radii, so every ball keeps its identity, speed and phase.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, replace
from typing import Any, Optional

from errors import BuildError
from layers.model import GlobalConfig
from scenes.state import Metaball, MetaballScene


DEFAULT_RANGES: dict[str, float] = {
    "minGroups": 2, "maxGroups": 4,
    "minBalls": 3, "maxBalls": 6,
    "minRadius": 40, "maxRadius": 120,
    "minSpeed": 0.5, "maxSpeed": 2.0,
    "minPhase": 0.0, "maxPhase": 6.28,
    "minAmplitudeX": 20, "maxAmplitudeX": 80,
    "minAmplitudeY": 20, "maxAmplitudeY": 80,
}


@dataclass
class Span:
    min: float
    max: float

    def sample(self, rng: random.Random) -> float:
        return rng.uniform(self.min, self.max)


@dataclass
class Ranges:
    groups: Span
    balls: Span
    radius: Span
    speed: Span
    phase: Span
    amplitude_x: Span
    amplitude_y: Span


def convert_ranges(r: dict[str, Any]) -> Ranges:
    """Turn the flat min/max fields of a layer model into spans."""
    merged = {**DEFAULT_RANGES, **(r or {})}
    try:
        ranges = Ranges(
            groups=Span(int(merged["minGroups"]), int(merged["maxGroups"])),
            balls=Span(int(merged["minBalls"]), int(merged["maxBalls"])),
            radius=Span(int(merged["minRadius"]), int(merged["maxRadius"])),
            speed=Span(float(merged["minSpeed"]), float(merged["maxSpeed"])),
            phase=Span(float(merged["minPhase"]), float(merged["maxPhase"])),
            amplitude_x=Span(float(merged["minAmplitudeX"]), float(merged["maxAmplitudeX"])),
            amplitude_y=Span(float(merged["minAmplitudeY"]), float(merged["maxAmplitudeY"])),
        )
    except (TypeError, ValueError) as exc:
        raise BuildError(f"Invalid metaball ranges: {exc}") from exc

    for name in ("groups", "balls", "radius", "speed", "phase", "amplitude_x", "amplitude_y"):
        span = getattr(ranges, name)
        if span.min > span.max:
            raise BuildError(f"Metaball range '{name}' is inverted: {span.min} > {span.max}")
    if ranges.groups.min < 1 or ranges.balls.min < 1:
        raise BuildError("Metaball field needs at least one group and one ball")
    if ranges.radius.min <= 0:
        raise BuildError("Metaball radius must be positive")
    return ranges


def _check_size(size: tuple[int, int]) -> tuple[int, int]:
    width, height = (int(s) for s in size)
    if width <= 0 or height <= 0:
        raise BuildError(f"Cannot place metaballs on a {width}x{height} canvas")
    return width, height


def build(
    config: GlobalConfig,
    layer_model: dict[str, Any],
    prior_fuzz: Optional[list[dict[str, Any]]] = None,
    seed: Optional[int] = None,
) -> MetaballScene:
    """Place a fresh set of metaball groups on the canvas."""
    width, height = _check_size(config.size)
    ranges = convert_ranges(layer_model.get("ranges") or {})
    colors = [str(c) for c in layer_model.get("colors") or []]
    rng = random.Random(seed)

    balls: list[Metaball] = []
    for group in range(rng.randint(int(ranges.groups.min), int(ranges.groups.max))):
        cx = rng.uniform(0, width)
        cy = rng.uniform(0, height)
        for _ in range(rng.randint(int(ranges.balls.min), int(ranges.balls.max))):
            radius = ranges.radius.sample(rng)
            balls.append(Metaball(
                ident=len(balls),
                group=group,
                x=min(max(cx + rng.uniform(-1.0, 1.0) * radius, 0.0), float(width)),
                y=min(max(cy + rng.uniform(-1.0, 1.0) * radius, 0.0), float(height)),
                radius=radius,
                speed=ranges.speed.sample(rng),
                phase=ranges.phase.sample(rng),
                amplitude_x=ranges.amplitude_x.sample(rng),
                amplitude_y=ranges.amplitude_y.sample(rng),
            ))

    return MetaballScene(size=(width, height), colors=colors, metaballs=balls, seed=seed)


def update(
    new_size: tuple[int, int],
    prior: MetaballScene,
    colors: Optional[list[str]] = None,
) -> MetaballScene:
    """Rescale an existing field to ``new_size`` (and optionally recolour it)."""
    width, height = _check_size(new_size)
    old_w, old_h = prior.size
    sx = width / old_w
    sy = height / old_h
    rs = min(sx, sy)
    balls = [
        replace(
            ball,
            x=ball.x * sx,
            y=ball.y * sy,
            radius=ball.radius * rs,
            amplitude_x=ball.amplitude_x * sx,
            amplitude_y=ball.amplitude_y * sy,
        )
        for ball in prior.metaballs
    ]
    return MetaballScene(
        size=(width, height),
        colors=list(colors) if colors is not None else list(prior.colors),
        metaballs=balls,
        seed=prior.seed,
    )
