"""Colour helpers shared by the builders, renderer and randomizer."""

from __future__ import annotations

import colorsys


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Convert '#RRGGBB' (or '#RGB') to (R, G, B) tuple."""
    r, g, b, _ = hex_to_rgba(hex_color)
    return (r, g, b)


def hex_to_rgba(hex_color: str) -> tuple[int, int, int, int]:
    """Convert '#RGB', '#RRGGBB' or '#RRGGBBAA' to (R, G, B, A)."""
    h = hex_color.strip().lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    if len(h) == 6:
        h += "ff"
    if len(h) != 8:
        raise ValueError(f"Not a hex colour: {hex_color!r}")
    return (int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16), int(h[6:8], 16))


def rgb_to_hex(rgb: tuple[int, int, int]) -> str:
    return f"#{rgb[0]:02x}{rgb[1]:02x}{rgb[2]:02x}"


def shift_color(hex_color: str, hue: float, saturation: float = 0.0, brightness: float = 0.0) -> str:
    """Rotate hue (turns) and offset saturation/brightness, clamped to [0, 1]."""
    r, g, b = (c / 255 for c in hex_to_rgb(hex_color))
    h, s, v = colorsys.rgb_to_hsv(r, g, b)
    h = (h + hue) % 1.0
    s = min(max(s + saturation, 0.0), 1.0)
    v = min(max(v + brightness, 0.0), 1.0)
    r, g, b = colorsys.hsv_to_rgb(h, s, v)
    return rgb_to_hex((round(r * 255), round(g * 255), round(b * 255)))
