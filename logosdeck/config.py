from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    # --- Rendering / styling ---
    theme_id: str = os.getenv("THEME", "premium").strip().lower()

    # Logical 16:9 canvas shared by every renderer, in inches.
    canvas_width_in: float = float(os.getenv("CANVAS_WIDTH_IN", "13.333"))
    canvas_height_in: float = float(os.getenv("CANVAS_HEIGHT_IN", "7.5"))

    # An agenda page is added when a deck has more content slides than this.
    agenda_threshold: int = int(os.getenv("AGENDA_THRESHOLD", "2"))
    confidential_label: str = os.getenv("CONFIDENTIAL_LABEL", "CONFIDENTIAL")

    # Grid geometry, in units of the 10in-wide reference layout.
    grid_spacing: float = float(os.getenv("GRID_SPACING", "0.3"))
    grid_cell_height: float = float(os.getenv("GRID_CELL_HEIGHT", "3.5"))

    # Crop cleanup: pixels with mean channel value above this become transparent.
    crop_brightness_threshold: int = int(
        os.getenv("CROP_BRIGHTNESS_THRESHOLD", "230"))

    # --- Illustration provider ---
    illustration_base_url: str = os.getenv(
        "ILLUSTRATION_BASE_URL", "https://image.pollinations.ai").rstrip("/")
    illustration_style_suffix: str = os.getenv(
        "ILLUSTRATION_STYLE_SUFFIX",
        ", minimalistic vector art, corporate memphis style, trending on dribbble, white background",
    )
    illustration_width: int = int(os.getenv("ILLUSTRATION_WIDTH", "800"))
    illustration_height: int = int(os.getenv("ILLUSTRATION_HEIGHT", "600"))
    fetch_images: bool = _flag("FETCH_IMAGES", "1")
    image_concurrency: int = int(os.getenv("IMAGE_CONCURRENCY", "4"))
    request_timeout: float = float(os.getenv("REQUEST_TIMEOUT", "30"))

    assets_dir: str = os.getenv("ASSETS_DIR", "assets")
    output_dir: str = os.getenv("OUTPUT_DIR", "output")
    cache_dir: str = os.getenv("CACHE_DIR", "cache")

    log_level: str = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    debug_images: bool = _flag("DEBUG_IMAGES")


settings = Settings()


def configure_logging(cfg: Settings | None = None) -> None:
    cfg = cfg or settings
    logging.basicConfig(
        level=getattr(logging, cfg.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    if cfg.debug_images:
        logging.getLogger("logosdeck.images").setLevel(logging.DEBUG)
