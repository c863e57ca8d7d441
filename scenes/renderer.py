"""
Playwright headless surface — cached scenes → HTML → PIL image.

Renders a Jinja2 template with the cached scene states, then captures a
screenshot using Playwright's headless Chromium. This is the default
"paint layers to buffer" primitive used by image export; anything with
the same two coroutines can stand in for it.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, Optional, Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape
from PIL import Image

from layers.model import GlobalConfig
from scenes.cache import SceneCache
from scenes.state import GradientScene, MeshScene, MetaballScene, SceneState

# Jinja2 environment pointing at our templates directory
_TEMPLATE_DIR = Path(__file__).parent / "templates"
_jinja_env = Environment(
    loader=FileSystemLoader(str(_TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)


class Surface(Protocol):
    """Anything that can paint the current layers and overlays to images."""

    async def paint_layers(self, size: tuple[int, int]) -> Image.Image: ...

    async def paint_overlays(self, size: tuple[int, int]) -> list[Image.Image]: ...


def _mesh_polygons(scene: MeshScene) -> list[dict]:
    width, height = scene.size
    colors = scene.colors or ["#ffffff"]
    polygons = []
    for tri in scene.triangles:
        verts = [scene.vertices[i] for i in tri]
        points = " ".join(f"{v.v0[0] + width / 2:.1f},{v.v0[1] + height / 2:.1f}" for v in verts)
        gradient = sum(v.gradient for v in verts) / 3
        color = colors[min(int(gradient * len(colors)), len(colors) - 1)]
        polygons.append({"points": points, "color": color})
    return polygons


def _metaball_circles(scene: MetaballScene) -> list[dict]:
    return [
        {"x": b.x, "y": b.y, "r": b.radius, "color": scene.color_of(b)}
        for b in scene.metaballs
    ]


def _gradient_stripes(scene: GradientScene) -> list[dict]:
    stripes = []
    for texture, orientation in zip(scene.textures, scene.orientations):
        step = max(len(texture) // 8, 1)
        stops = [f"rgba({r},{g},{b},{a / 255:.3f})" for r, g, b, a in texture[::step]]
        direction = "to bottom" if orientation == "vertical" else "to right"
        stripes.append({"css": f"linear-gradient({direction}, {', '.join(stops)})"})
    return stripes


def build_layers_html(config: GlobalConfig, scenes: list[SceneState], size: tuple[int, int]) -> str:
    """Render the layer template with every cached scene, bottom to top."""
    layers = []
    for scene in scenes:
        if isinstance(scene, MeshScene):
            layers.append({"type": "mesh", "size": scene.size, "polygons": _mesh_polygons(scene)})
        elif isinstance(scene, MetaballScene):
            layers.append({"type": "metaballs", "size": scene.size, "circles": _metaball_circles(scene)})
        elif isinstance(scene, GradientScene):
            layers.append({"type": "gradient", "stripes": _gradient_stripes(scene)})
    template = _jinja_env.get_template("scene_preview.html")
    return template.render(
        mode="layers",
        width=size[0],
        height=size[1],
        background=config.background,
        layers=layers,
    )


def build_overlay_html(config: GlobalConfig, size: tuple[int, int]) -> str:
    """Product name overlay on a transparent page."""
    template = _jinja_env.get_template("scene_preview.html")
    return template.render(
        mode="overlay",
        width=size[0],
        height=size[1],
        background="transparent",
        product=config.product,
    )


async def _render_async(html: str, width: int, height: int, transparent: bool = False) -> Image.Image:
    """Use Playwright to screenshot rendered HTML."""
    from playwright.async_api import async_playwright

    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        page = await browser.new_page(viewport={"width": width, "height": height})
        await page.set_content(html, wait_until="load")
        screenshot_bytes = await page.screenshot(type="png", omit_background=transparent)
        await browser.close()

    return Image.open(io.BytesIO(screenshot_bytes)).convert("RGBA")


class PlaywrightSurface:
    """
    Paints the cached scenes through headless Chromium.

    Args:
        cache: Scene cache to paint from (index order is z-order).
        config: Callable returning the current global config.
        logo_path: Optional logo image composited as the last overlay.
    """

    def __init__(
        self,
        cache: SceneCache,
        config: Callable[[], GlobalConfig],
        logo_path: Optional[Path] = None,
    ):
        self.cache = cache
        self.config = config
        self.logo_path = logo_path

    async def paint_layers(self, size: tuple[int, int]) -> Image.Image:
        scenes = [scene for _, scene in self.cache.items()]
        html = build_layers_html(self.config(), scenes, size)
        return await _render_async(html, size[0], size[1])

    async def paint_overlays(self, size: tuple[int, int]) -> list[Image.Image]:
        html = build_overlay_html(self.config(), size)
        overlays = [await _render_async(html, size[0], size[1], transparent=True)]
        if self.logo_path is not None and self.logo_path.exists():
            overlays.append(self._logo_overlay(size))
        return overlays

    def _logo_overlay(self, size: tuple[int, int]) -> Image.Image:
        """Logo scaled to a tenth of the height, bottom-right, on a transparent layer."""
        layer = Image.new("RGBA", size, (0, 0, 0, 0))
        with Image.open(self.logo_path) as logo:
            logo = logo.convert("RGBA")
            side = max(size[1] // 10, 1)
            logo.thumbnail((side, side))
            margin = side // 2
            dest = (max(size[0] - logo.width - margin, 0), max(size[1] - logo.height - margin, 0))
            layer.alpha_composite(logo, dest)
        return layer
