"""
Bundle export — a self-contained ZIP that plays the scene standalone.

Entries:
    player.bundle.js      runtime (fetched)
    index.html            host page (fetched)
    index.css             stylesheet (fetched)
    scene.js              ``window.jsGenScene = <snapshot json>;`` (generated)
    assets/<product>-text.<ext>, assets/<secondary>.<ext>   (fetched)

Every fetch must succeed before assembly begins. Any failure aborts the
export with a single ``FetchError``; no partial archive is produced.
"""

from __future__ import annotations

import asyncio
import io
import logging
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol, Union

import httpx
from jinja2 import Environment, FileSystemLoader

from config import settings
from errors import EncodeError, FetchError
from exporter.snapshot import ExportSnapshot, export_snapshot
from layers.model import Model
from layers.transcoder import from_wire
from scenes.cache import SceneCache

logger = logging.getLogger(__name__)

RUNTIME_NAME = "player.bundle.js"
PAGE_NAME = "index.html"
STYLE_NAME = "index.css"
SCENE_NAME = "scene.js"
ASSETS_DIR = "assets"

_TEMPLATE_DIR = Path(__file__).parent / "templates"
_jinja_env = Environment(loader=FileSystemLoader(str(_TEMPLATE_DIR)), autoescape=False)


class Fetcher(Protocol):
    async def fetch(self, path: str) -> bytes: ...


class AssetFetcher:
    """
    Fetches bundle files from a local directory or an HTTP(S) root.

    Args:
        root: Directory or base URL (defaults to settings.ASSET_ROOT).
        timeout: Per-request timeout in seconds for HTTP roots.
    """

    def __init__(self, root: Optional[str] = None, timeout: Optional[float] = None):
        self.root = str(root or settings.ASSET_ROOT)
        self.timeout = timeout or settings.FETCH_TIMEOUT_S

    @property
    def is_remote(self) -> bool:
        return self.root.startswith(("http://", "https://"))

    async def fetch(self, path: str) -> bytes:
        if self.is_remote:
            try:
                async with httpx.AsyncClient(base_url=self.root, timeout=self.timeout) as client:
                    response = await client.get(path)
                    response.raise_for_status()
                    return response.content
            except httpx.HTTPError as exc:
                raise FetchError(f"Failed to fetch {path}: {exc}", path=path) from exc

        file = Path(self.root) / path
        try:
            return file.read_bytes()
        except OSError as exc:
            raise FetchError(f"Failed to read {file}: {exc}", path=path) from exc


@dataclass
class BundleFile:
    path: str
    name: str
    content: bytes = b""


@dataclass
class BundleArtifact:
    filename: str
    content: bytes
    entries: list[str] = field(default_factory=list)
    snapshot: Optional[ExportSnapshot] = None


def primary_files() -> list[BundleFile]:
    return [
        BundleFile(settings.BUNDLE_RUNTIME_PATH, RUNTIME_NAME),
        BundleFile(settings.BUNDLE_PAGE_PATH, PAGE_NAME),
        BundleFile(settings.BUNDLE_STYLE_PATH, STYLE_NAME),
    ]


def auxiliary_files(product: str) -> list[BundleFile]:
    ext = settings.BUNDLE_ASSET_EXT
    names = [f"{product}-text.{ext}", f"{settings.BUNDLE_SECONDARY_ASSET}.{ext}"]
    return [BundleFile(f"{ASSETS_DIR}/{name}", f"{ASSETS_DIR}/{name}") for name in names]


def bundle_filename(product: str) -> str:
    return f"{product}_html5.zip"


async def _fetch_one(fetcher: Fetcher, file: BundleFile) -> BundleFile:
    content = await fetcher.fetch(file.path)
    return BundleFile(file.path, file.name, content)


async def fetch_all(fetcher: Fetcher, files: list[BundleFile]) -> list[BundleFile]:
    """Fetch every file concurrently; raise one ``FetchError`` if any fails."""
    results = await asyncio.gather(
        *(_fetch_one(fetcher, f) for f in files), return_exceptions=True
    )
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        first = failures[0]
        logger.error("%d of %d bundle files failed to fetch", len(failures), len(files))
        if isinstance(first, FetchError):
            raise first
        raise FetchError(f"Failed to fetch bundle file: {first}") from first
    return list(results)


def render_scene_script(snapshot: ExportSnapshot) -> str:
    return _jinja_env.get_template("scene.js.j2").render(scene_json=snapshot.json)


def assemble(files: list[BundleFile], snapshot: ExportSnapshot) -> tuple[bytes, list[str]]:
    """Write the fetched files and the scene script into an in-memory ZIP."""
    out = io.BytesIO()
    entries = []
    try:
        with zipfile.ZipFile(out, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for f in files:
                zf.writestr(f.name, f.content)
                entries.append(f.name)
            zf.writestr(SCENE_NAME, render_scene_script(snapshot))
            entries.append(SCENE_NAME)
    except (OSError, ValueError, zipfile.BadZipFile) as exc:
        raise EncodeError(f"Failed to create .zip: {exc}") from exc
    return out.getvalue(), entries


async def export_bundle(
    state: Union[Model, str, Mapping[str, Any]],
    cache: SceneCache,
    fetcher: Optional[Fetcher] = None,
    seed: Optional[int] = None,
) -> BundleArtifact:
    """
    Assemble the standalone bundle for ``state``.

    Raises:
        FetchError: any runtime, page, stylesheet or asset fetch failed.
        EncodeError: the archive could not be written.
        BuildError / TranscodeError: the snapshot could not be produced.
    """
    model = state if isinstance(state, Model) else from_wire(state)
    product = model.config.product
    fetcher = fetcher or AssetFetcher()

    files = await fetch_all(fetcher, primary_files() + auxiliary_files(product))
    snapshot = export_snapshot(model, cache, seed)
    content, entries = assemble(files, snapshot)

    filename = bundle_filename(product)
    logger.info("Assembled %s with %d entries", filename, len(entries))
    return BundleArtifact(filename=filename, content=content, entries=entries, snapshot=snapshot)
