"""
Pytest configuration and shared fixtures for the deck renderer tests.
"""

from __future__ import annotations

import base64
import struct
import zlib
from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Callable

import pytest
from PIL import Image

from logosdeck.config import Settings
from logosdeck.errors import ImageUnavailable
from logosdeck.images.illustration import IllustrationProvider
from logosdeck.models import Deck


def _png(size: tuple[int, int] = (40, 30), color: tuple[int, ...] = (30, 60, 90)) -> bytes:
    img = Image.new("RGB", size, color)
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _png_chunk(kind: bytes, data: bytes) -> bytes:
    return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data))


def _oversized_png(width: int = 20000, height: int = 20000) -> bytes:
    """PNG whose header declares a huge canvas; Pillow refuses it on open."""
    ihdr = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (b"\x89PNG\r\n\x1a\n" + _png_chunk(b"IHDR", ihdr)
            + _png_chunk(b"IDAT", zlib.compress(b"")) + _png_chunk(b"IEND", b""))


@dataclass(frozen=True)
class FakeProvider(IllustrationProvider):
    """Provider that serves a small PNG (or fails) without touching the network."""

    fail: bool = False
    oversized: bool = False

    def download(self, url: str) -> bytes:
        if self.fail:
            raise ImageUnavailable("provider down")
        if self.oversized:
            return _oversized_png()
        return _png()


@pytest.fixture
def cfg(tmp_path: Path) -> Settings:
    return Settings(
        fetch_images=False,
        assets_dir=str(tmp_path / "assets"),
        output_dir=str(tmp_path / "out"),
        cache_dir=str(tmp_path / "cache"),
        image_concurrency=2,
    )


@pytest.fixture
def online_cfg(cfg: Settings) -> Settings:
    from dataclasses import replace
    return replace(cfg, fetch_images=True)


@pytest.fixture
def make_png() -> Callable[..., bytes]:
    return _png


@pytest.fixture
def png_data_url() -> Callable[[bytes], str]:
    def _to_url(data: bytes) -> str:
        return "data:image/png;base64," + base64.b64encode(data).decode("ascii")
    return _to_url


@pytest.fixture
def provider() -> FakeProvider:
    return FakeProvider(base_url="https://img.example.test", style_suffix=", flat")


@pytest.fixture
def failing_provider() -> FakeProvider:
    return FakeProvider(base_url="https://img.example.test", fail=True)


@pytest.fixture
def q1_deck() -> Deck:
    return Deck.model_validate({
        "title": "Q1 Review",
        "slides": [
            {"layout": "bullets", "content": ["A", "B"], "speakerNotes": "Open with the headline."},
            {"layout": "grid_4", "gridItems": [{"content": "x"}]},
        ],
    })


@pytest.fixture
def rich_deck() -> Deck:
    return Deck.model_validate({
        "title": "Product Strategy",
        "mainGoal": "Align on the next two quarters",
        "themeId": "pop",
        "slides": [
            {"id": "s1", "title": "Why now", "layout": "bullets",
             "content": ["Market shift", "New buyers", "Cheaper compute"]},
            {"id": "s2", "title": "Pillars", "layout": "grid_3",
             "gridItems": [{"title": "Speed", "content": "Ship weekly"},
                           {"title": "Quality", "content": "Fewer regressions"},
                           {"content": "Hiring"}]},
            {"id": "s3", "title": "Before / after", "layout": "comparison",
             "content": ["Manual", "Slow", "Automated", "Fast"]},
            {"id": "s4", "title": "Rollout", "layout": "flow",
             "content": ["Pilot", "Beta", "GA", "Scale", "Sunset legacy"]},
            {"id": "s5", "title": "North star", "layout": "center", "content": ["10x faster decks"]},
            {"id": "s6", "title": "Sketch", "layout": "vision_layout",
             "elements": [
                 {"type": "shape", "x": 5, "y": 20, "w": 40, "h": 50, "zIndex": 1, "content": "Box"},
                 {"type": "text", "x": 10, "y": 25, "w": 30, "h": 10, "zIndex": 5, "content": "Label"},
                 {"type": "image", "x": 55, "y": 20, "w": 40, "h": 50, "source": "generated",
                  "content": "team at whiteboard"},
             ]},
        ],
    })


@pytest.fixture
def oversized_png() -> bytes:
    return _oversized_png()
