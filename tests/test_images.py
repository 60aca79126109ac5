from __future__ import annotations

import base64
import threading
from dataclasses import replace
from io import BytesIO
from pathlib import Path

import pytest
import requests
from PIL import Image

from logosdeck.errors import ExportCancelled, ImageUnavailable, MissingSourceImage
from logosdeck.images import illustration as illustration_mod
from logosdeck.images.cache import ImageCache
from logosdeck.images.crop import PixelBuffer, crop_region, decode_data_url
from logosdeck.images.illustration import (IllustrationProvider,
                                           IllustrationRequest,
                                           build_illustration_url)
from logosdeck.images.payload import payload_from_bytes
from logosdeck.images.resolver import (illustrate_slide, load_background,
                                       resolve_assets)
from logosdeck.models import Deck
from logosdeck.planner import plan_deck
from logosdeck.theme import get_theme


def _half_white_png() -> bytes:
    """100x50 image: left half white, right half dark blue."""
    img = Image.new("RGB", (100, 50), (255, 255, 255))
    img.paste((20, 40, 120), (50, 0, 100, 50))
    buf = BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def _alpha(data: bytes) -> list[int]:
    return [px[3] for px in Image.open(BytesIO(data)).convert("RGBA").getdata()]


def _plan(deck: Deck):
    return plan_deck(deck, get_theme("premium"), canvas_width=13.333, canvas_height=7.5)


def _crop_deck(original_image: str | None) -> Deck:
    return Deck.model_validate({
        "title": "Sketch",
        "originalImage": original_image,
        "slides": [{"id": "v", "layout": "vision_layout", "elements": [
            {"type": "image", "x": 0, "y": 0, "w": 100, "h": 100, "source": "crop"},
        ]}],
    })


def test_decode_data_url_forms():
    raw = b"\x89PNG fake"
    encoded = base64.b64encode(raw).decode("ascii")
    assert decode_data_url(f"data:image/png;base64,{encoded}") == raw
    assert decode_data_url(encoded) == raw
    with pytest.raises(ImageUnavailable):
        decode_data_url("data:image/png;base64,@@not base64@@")


def test_crop_percent_uses_source_pixels():
    buf = PixelBuffer.decode(_half_white_png()).crop_percent(50, 0, 50, 100)
    assert buf.size == (50, 50)


def test_crop_percent_is_clamped_to_the_image():
    buf = PixelBuffer.decode(_half_white_png()).crop_percent(80, 50, 40, 80)
    assert buf.size == (20, 25)


def test_empty_crop_region_is_unavailable():
    with pytest.raises(ImageUnavailable):
        PixelBuffer.decode(_half_white_png()).crop_percent(120, 0, 10, 10)


def test_bright_pixels_become_transparent(png_data_url):
    payload = crop_region(png_data_url(_half_white_png()), (0, 0, 100, 100))
    alpha = _alpha(payload.data)
    assert payload.mime == "image/png"
    assert (payload.width, payload.height) == (100, 50)
    assert alpha.count(0) == 50 * 50
    assert alpha.count(255) == 50 * 50


@pytest.mark.parametrize("value,cleared", [(230, False), (231, True)])
def test_brightness_threshold_is_strict(value, cleared):
    img = Image.new("RGBA", (2, 2), (value, value, value, 255))
    assert PixelBuffer(img).clear_bright_pixels(230) == (4 if cleared else 0)


def test_brightness_uses_the_channel_mean():
    img = Image.new("RGBA", (3, 1))
    img.putdata([(255, 255, 181, 255), (255, 255, 180, 128), (0, 0, 0, 200)])
    buf = PixelBuffer(img)
    assert buf.clear_bright_pixels(230) == 1
    assert [px[3] for px in buf.image.getdata()] == [0, 128, 200]


def test_crop_without_original_image():
    with pytest.raises(MissingSourceImage):
        crop_region(None, (0, 0, 50, 50))


def test_undecodable_source_image(png_data_url):
    with pytest.raises(ImageUnavailable):
        crop_region(png_data_url(b"not an image"), (0, 0, 50, 50))


def test_payload_passes_png_through_and_converts_others(make_png):
    png = make_png()
    assert payload_from_bytes(png, source="t").data == png

    gif = BytesIO()
    Image.new("P", (4, 4)).save(gif, format="GIF")
    converted = payload_from_bytes(gif.getvalue(), source="t")
    assert converted.mime == "image/png"
    assert (converted.width, converted.height) == (4, 4)

    with pytest.raises(ImageUnavailable):
        payload_from_bytes(b"garbage", source="t")


def test_oversized_images_are_unavailable(oversized_png):
    with pytest.raises(ImageUnavailable):
        payload_from_bytes(oversized_png, source="t")
    with pytest.raises(ImageUnavailable):
        PixelBuffer.decode(oversized_png)


def test_oversized_original_image_is_an_outcome(cfg, oversized_png, png_data_url):
    deck = _crop_deck(png_data_url(oversized_png))
    bundle = resolve_assets(_plan(deck), deck, None, cfg)
    (outcome,) = bundle.outcomes
    assert outcome.condition == "ImageUnavailable"
    assert bundle.get("slide/v/element/0") is None


def test_oversized_download_is_an_outcome(online_cfg, provider):
    deck = _generated_deck()
    bomb = replace(provider, oversized=True)
    (outcome,) = resolve_assets(_plan(deck), deck, bomb, online_cfg).outcomes
    assert outcome.condition == "ImageUnavailable"


def test_missing_original_image_is_an_outcome_not_an_error(cfg):
    deck = _crop_deck(None)
    bundle = resolve_assets(_plan(deck), deck, None, cfg)
    (outcome,) = bundle.outcomes
    assert outcome.ref == "slide/v/element/0"
    assert outcome.condition == "MissingSourceImage"
    assert bundle.get(outcome.ref) is None


def test_crop_is_resolved_from_the_original_image(cfg, png_data_url):
    deck = _crop_deck(png_data_url(_half_white_png()))
    bundle = resolve_assets(_plan(deck), deck, None, cfg)
    payload = bundle.get("slide/v/element/0")
    assert payload is not None and payload.source == "crop"


def test_crop_threshold_comes_from_settings(cfg, png_data_url):
    deck = _crop_deck(png_data_url(_half_white_png()))
    bundle = resolve_assets(_plan(deck), deck, None, replace(cfg, crop_brightness_threshold=255))
    assert 0 not in _alpha(bundle.get("slide/v/element/0").data)


def _generated_deck() -> Deck:
    return Deck.model_validate({"slides": [{"id": "g", "layout": "vision_layout", "elements": [
        {"type": "image", "x": 0, "y": 0, "w": 50, "h": 50, "content": "rocket"}]}]})


def test_generated_image_uses_the_provider(online_cfg, provider):
    deck = _generated_deck()
    bundle = resolve_assets(_plan(deck), deck, provider, online_cfg)
    payload = bundle.get("slide/g/element/0")
    assert payload is not None and payload.source == "generated"
    assert payload.reference.startswith("https://img.example.test/prompt/rocket")


def test_provider_failure_is_image_unavailable(online_cfg, failing_provider):
    deck = _generated_deck()
    (outcome,) = resolve_assets(_plan(deck), deck, failing_provider, online_cfg).outcomes
    assert outcome.condition == "ImageUnavailable"


def test_fetch_disabled_skips_generation(cfg, provider):
    deck = _generated_deck()
    (outcome,) = resolve_assets(_plan(deck), deck, provider, cfg).outcomes
    assert outcome.condition == "ImageUnavailable"


def test_reference_data_url_needs_no_network(cfg, make_png, png_data_url):
    deck = Deck.model_validate({"slides": [{"id": "r", "content": ["x"], "image": png_data_url(make_png())}]})
    bundle = resolve_assets(_plan(deck), deck, None, cfg)
    assert bundle.get("slide/r").source == "reference"


def test_resolution_is_cancellable(online_cfg, provider):
    deck = _generated_deck()
    cancel = threading.Event()
    cancel.set()
    with pytest.raises(ExportCancelled):
        resolve_assets(_plan(deck), deck, provider, online_cfg, cancel=cancel)


def test_illustration_url_is_deterministic():
    req = IllustrationRequest(prompt="a red fox", style_suffix=", flat", width=800, height=600)
    url = build_illustration_url(req, "https://img.test/")
    assert url == build_illustration_url(req, "https://img.test")
    assert url.startswith("https://img.test/prompt/a%20red%20fox%2C%20flat?")
    assert "width=800&height=600&nologo=true" in url
    assert f"seed={req.seed}" in url
    assert 0 <= req.seed < 10000


def test_blank_prompt_gets_a_placeholder():
    provider = IllustrationProvider(base_url="https://img.test")
    assert "/prompt/illustration?" in provider.url_for("   ")


def test_download_retries_then_fails(monkeypatch):
    calls = []

    def fake_get(url, **kw):
        calls.append(url)
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(illustration_mod.requests, "get", fake_get)
    monkeypatch.setattr(illustration_mod.time, "sleep", lambda s: None)

    provider = IllustrationProvider(base_url="https://img.test", retries=3)
    with pytest.raises(ImageUnavailable):
        provider.download("https://img.test/prompt/x")
    assert len(calls) == 3


def test_download_uses_the_cache(monkeypatch, tmp_path: Path):
    cache = ImageCache(base_dir=str(tmp_path))
    cache.set("https://img.test/prompt/x", b"cached bytes")

    def fail_get(url, **kw):
        raise AssertionError("network should not be used")

    monkeypatch.setattr(illustration_mod.requests, "get", fail_get)
    provider = IllustrationProvider(base_url="https://img.test", cache=cache)
    assert provider.download("https://img.test/prompt/x") == b"cached bytes"


def test_cache_miss(tmp_path: Path):
    assert ImageCache(base_dir=str(tmp_path)).get("nope") is None


def test_cache_writes_leave_no_temp_files(tmp_path: Path):
    cache = ImageCache(base_dir=str(tmp_path))
    threads = [threading.Thread(target=cache.set, args=("https://x/a.png", bytes([i]) * 64))
               for i in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    (stored,) = [p for p in tmp_path.rglob("*") if p.is_file()]
    assert stored.parent.parent.name == "illustrations"
    assert stored.suffix == ".bin"
    assert cache.get("https://x/a.png") in {bytes([i]) * 64 for i in range(8)}


def test_illustrate_slide_returns_a_new_deck(online_cfg, provider):
    deck = Deck.model_validate({"slides": [{"id": "a", "content": ["x"]}, {"id": "b"}]})
    updated, outcome = illustrate_slide(deck, "a", "a lighthouse", provider, online_cfg)

    assert outcome.ok
    assert updated.slide("a").image == provider.url_for("a lighthouse", width=1024, height=1024)
    assert updated.slide("b").image is None
    assert deck.slide("a").image is None


def test_illustrate_slide_failure_leaves_the_deck_alone(online_cfg, failing_provider):
    deck = Deck.model_validate({"slides": [{"id": "a"}]})
    updated, outcome = illustrate_slide(deck, "a", "a lighthouse", failing_provider, online_cfg)
    assert updated is deck
    assert outcome.condition == "ImageUnavailable"


def test_illustrate_slide_without_fetching_still_attaches(cfg, provider):
    deck = Deck.model_validate({"slides": [{"id": "a"}]})
    updated, outcome = illustrate_slide(deck, "a", "tree", provider, cfg)
    assert updated.slide("a").image
    assert outcome.payload is None and outcome.detail


def test_illustrate_unknown_slide(cfg, provider):
    with pytest.raises(KeyError):
        illustrate_slide(Deck(), "nope", "x", provider, cfg)


def test_background_prefers_stock_then_theme_file(cfg, make_png):
    theme = get_theme("premium")
    assert load_background(theme, "Deck", cfg) is None

    themes_dir = Path(cfg.assets_dir) / "themes"
    themes_dir.mkdir(parents=True)
    (themes_dir / "premium.jpg").write_bytes(make_png(color=(1, 2, 3)))
    assert load_background(theme, "Deck", cfg).reference.endswith("premium.jpg")

    stock_dir = Path(cfg.assets_dir) / "stock"
    stock_dir.mkdir()
    for i in range(1, 6):
        (stock_dir / f"premium_{i}.jpg").write_bytes(make_png())
    first = load_background(theme, "Deck", cfg)
    assert "stock" in first.reference
    assert load_background(theme, "Deck", cfg).reference == first.reference
