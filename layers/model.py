"""
In-memory model of the state exchanged with the application core.

The core owns this data; the pipeline reads it transiently per operation.
Layer models are structured dicts here and JSON strings on the wire.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from config import settings


_CONFIG_KEYS = ("product", "size", "background", "exportSizes", "mode")


def _as_size(value: Any) -> tuple[int, int]:
    width, height = value
    return (int(width), int(height))


@dataclass
class GlobalConfig:
    """Product identity, canvas and export settings of the whole scene."""
    product: str = "jetbrains"
    size: tuple[int, int] = (settings.CANVAS_WIDTH, settings.CANVAS_HEIGHT)
    background: str = settings.BACKGROUND
    export_sizes: list[tuple[int, int]] = field(
        default_factory=lambda: list(settings.EXPORT_SIZES)
    )
    mode: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def to_dict(self) -> dict[str, Any]:
        d = dict(self.extra)
        d.update({
            "product": self.product,
            "size": list(self.size),
            "background": self.background,
            "exportSizes": [list(s) for s in self.export_sizes],
            "mode": self.mode,
        })
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GlobalConfig:
        config = cls(extra={k: v for k, v in d.items() if k not in _CONFIG_KEYS and k != "layers"})
        if d.get("product") is not None:
            config.product = str(d["product"])
        if d.get("size") is not None:
            config.size = _as_size(d["size"])
        if d.get("background") is not None:
            config.background = str(d["background"])
        if d.get("exportSizes") is not None:
            config.export_sizes = [_as_size(s) for s in d["exportSizes"]]
        config.mode = d.get("mode")
        return config


@dataclass
class Layer:
    """One rendering layer. Position in ``Model.layers`` is its z-order."""
    model: dict[str, Any] = field(default_factory=dict)
    visible: bool = True
    scene_fuzz: Optional[list[dict[str, Any]]] = None
    extra: dict[str, Any] = field(default_factory=dict)
    # wire string the model was decoded from, re-emitted while untouched
    raw: Optional[str] = field(default=None, compare=False, repr=False)


@dataclass
class Model:
    """Global config plus the ordered layers."""
    config: GlobalConfig = field(default_factory=GlobalConfig)
    layers: list[Layer] = field(default_factory=list)

    def layer(self, index: int) -> Optional[Layer]:
        if 0 <= index < len(self.layers):
            return self.layers[index]
        return None
