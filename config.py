"""
Central configuration for the layer synchronization & export pipeline.
All core constants and environment-driven settings live here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment / .env file."""

    # ── Canvas ──────────────────────────────────────────────────────
    CANVAS_WIDTH: int = 1920
    CANVAS_HEIGHT: int = 1080
    BACKGROUND: str = "#171717"
    EXPORT_SIZES: list[tuple[int, int]] = Field(
        default_factory=lambda: [(1920, 1080), (1280, 800), (800, 600)]
    )

    # ── Timing ──────────────────────────────────────────────────────
    BATCH_PAUSE_S: float = 1.0
    RESIZE_DEBOUNCE_MS: int = 300
    FRAME_INTERVAL_S: float = 1 / 60

    # ── Scene builders ──────────────────────────────────────────────
    GRADIENT_TEXTURE_WIDTH: int = 256
    FUZZ_POLICY: str = "fresh"  # "fresh" | "prefer_cached"

    # ── Bundle export ───────────────────────────────────────────────
    ASSET_ROOT: str = "./dist"
    BUNDLE_RUNTIME_PATH: str = "player.bundle.js"
    BUNDLE_PAGE_PATH: str = "index.player.html"
    BUNDLE_STYLE_PATH: str = "index.css"
    BUNDLE_SECONDARY_ASSET: str = "jetbrains"
    BUNDLE_ASSET_EXT: str = "svg"
    FETCH_TIMEOUT_S: float = 10.0

    # ── Image export ────────────────────────────────────────────────
    IMAGE_FORMAT: str = "png"

    # ── Logging ─────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    # ── Paths ───────────────────────────────────────────────────────
    PROJECT_ROOT: Path = Path(__file__).parent
    OUTPUTS_DIR: Optional[Path] = None

    @model_validator(mode="after")
    def _set_default_paths(self) -> Settings:
        if self.OUTPUTS_DIR is None:
            self.OUTPUTS_DIR = self.PROJECT_ROOT / "outputs"
        self.OUTPUTS_DIR.mkdir(exist_ok=True)
        return self

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


# Singleton instance
settings = Settings()
