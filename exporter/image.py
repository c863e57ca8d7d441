"""
Image export — composite the rendered layers and overlays, then encode.

Pipeline: Surface.paint_layers → off-screen RGBA buffer (background
filled) → overlays alpha-composited → one frame boundary → Pillow encode.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional

from PIL import Image

from config import settings
from errors import EncodeError, SceneSyncError
from scenes.renderer import Surface
from timing import next_frame

logger = logging.getLogger(__name__)

# Pillow format names for the extensions we write
_FORMATS = {"png": "PNG", "jpg": "JPEG", "jpeg": "JPEG", "webp": "WEBP"}


@dataclass
class CaptureRequest:
    """What the core asks for when it triggers a capture."""
    size: tuple[int, int]
    product: str
    background: str = "#000000"
    cover_size: Optional[tuple[int, int]] = None

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> CaptureRequest:
        width, height = d["size"]
        cover = d.get("coverSize")
        return cls(
            size=(int(width), int(height)),
            product=str(d["product"]),
            background=str(d.get("background") or "#000000"),
            cover_size=(int(cover[0]), int(cover[1])) if cover else None,
        )


@dataclass
class ImageArtifact:
    filename: str
    content: bytes
    size: tuple[int, int]


def image_filename(size: tuple[int, int], product: str, ext: Optional[str] = None) -> str:
    """``<width>x<height>-<product>.<ext>``"""
    ext = ext or settings.IMAGE_FORMAT
    return f"{size[0]}x{size[1]}-{product}.{ext}"


def _fit(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    if image.size != size:
        image = image.resize(size)
    return image.convert("RGBA")


async def compose(request: CaptureRequest, surface: Surface) -> Image.Image:
    """Paint layers and overlays onto a buffer sized to the request."""
    try:
        buffer = Image.new("RGBA", request.size, request.background)
    except ValueError as exc:
        raise EncodeError(f"Cannot create a {request.size} buffer: {exc}") from exc

    try:
        buffer.alpha_composite(_fit(await surface.paint_layers(request.size), request.size))
        for overlay in await surface.paint_overlays(request.size):
            buffer.alpha_composite(_fit(overlay, request.size))
    except SceneSyncError:
        raise
    except Exception as exc:
        raise EncodeError(f"Failed to paint the scene: {exc}") from exc
    return buffer


async def export_image(
    request: CaptureRequest,
    surface: Surface,
    frame: Callable[[], Awaitable[None]] = next_frame,
    ext: Optional[str] = None,
) -> ImageArtifact:
    """
    Composite and encode the current visual state.

    Waits one frame boundary after compositing so the buffer is painted
    before pixel data is read.

    Raises:
        EncodeError: the surface fails to paint, or the buffer cannot be created or encoded.
    """
    ext = (ext or settings.IMAGE_FORMAT).lower()
    fmt = _FORMATS.get(ext)
    if fmt is None:
        raise EncodeError(f"Unsupported image format: {ext}")

    buffer = await compose(request, surface)
    await frame()

    image = buffer if fmt in ("PNG", "WEBP") else buffer.convert("RGB")
    out = io.BytesIO()
    try:
        image.save(out, format=fmt)
    except (OSError, ValueError) as exc:
        raise EncodeError(f"Failed to encode {ext}: {exc}") from exc

    filename = image_filename(request.size, request.product, ext)
    logger.info("Encoded %s (%d bytes)", filename, out.tell())
    return ImageArtifact(filename=filename, content=out.getvalue(), size=request.size)


def save_artifact(artifact: Any, directory: Optional[Path] = None) -> Path:
    """Write an image or bundle artifact to disk. Returns the output path."""
    directory = Path(directory or settings.OUTPUTS_DIR)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / artifact.filename
    path.write_bytes(artifact.content)
    return path
