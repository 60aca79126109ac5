from __future__ import annotations

import hashlib
import logging
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from pathlib import Path

from logosdeck.config import Settings, settings
from logosdeck.errors import AssetError, ExportCancelled, ImageUnavailable
from logosdeck.images.crop import crop_region, decode_data_url
from logosdeck.images.illustration import IllustrationProvider
from logosdeck.images.payload import (AssetBundle, AssetOutcome, ImagePayload,
                                      payload_from_bytes)
from logosdeck.layout.geometry import DeckPlan, ImageRequest
from logosdeck.models import Deck
from logosdeck.theme import Theme

logger = logging.getLogger(__name__)

SLIDE_ILLUSTRATION_SIZE = (1024, 1024)
STOCK_VARIANTS = 5


def resolve_image(
    request: ImageRequest,
    original_image: str | None,
    provider: IllustrationProvider | None,
    cfg: Settings = settings,
) -> ImagePayload:
    """Materialise one image. Raises an ``AssetError`` subclass on failure."""
    if request.kind == "crop":
        if request.crop is None:
            raise ImageUnavailable("Crop request without a region.")
        return crop_region(original_image, request.crop, threshold=cfg.crop_brightness_threshold)

    if request.kind == "reference":
        url = (request.url or "").strip()
        if url.startswith("data:"):
            return payload_from_bytes(decode_data_url(url), source="reference")
        if not url.startswith(("http://", "https://")):
            raise ImageUnavailable(f"Unsupported image reference: {url[:60]!r}")
        if provider is None or not cfg.fetch_images:
            raise ImageUnavailable("Image fetching is disabled.")
        return provider.fetch_url(url)

    if provider is None or not cfg.fetch_images:
        raise ImageUnavailable("Illustration provider is not available.")
    return provider.fetch(request.prompt, width=cfg.illustration_width, height=cfg.illustration_height)


def _resolve_one(
    request: ImageRequest,
    original_image: str | None,
    provider: IllustrationProvider | None,
    cfg: Settings,
) -> AssetOutcome:
    try:
        payload = resolve_image(request, original_image, provider, cfg)
    except AssetError as e:
        logger.info("image %s unavailable: %s (%s)", request.ref, e.condition, e)
        return AssetOutcome(ref=request.ref, condition=e.condition, detail=str(e))
    logger.debug("image %s ok bytes=%d", request.ref, len(payload.data))
    return AssetOutcome(ref=request.ref, payload=payload)


def resolve_assets(
    plan: DeckPlan,
    deck: Deck,
    provider: IllustrationProvider | None = None,
    cfg: Settings = settings,
    *,
    cancel: threading.Event | None = None,
) -> AssetBundle:
    """Resolve every image the plan references, in parallel.

    Asset problems become outcomes with a condition; they never raise. The
    only exception is ``ExportCancelled`` when ``cancel`` is set.
    """
    requests_ = plan.image_requests()
    if not requests_:
        return AssetBundle()

    results: dict[str, AssetOutcome] = {}
    with ThreadPoolExecutor(max_workers=max(1, cfg.image_concurrency)) as pool:
        futures = {
            pool.submit(_resolve_one, req, deck.original_image, provider, cfg): req
            for req in requests_
        }
        pending = set(futures)
        while pending:
            done, pending = wait(pending, timeout=0.5, return_when=FIRST_COMPLETED)
            for fut in done:
                outcome = fut.result()
                results[outcome.ref] = outcome
            if cancel is not None and cancel.is_set():
                for fut in pending:
                    fut.cancel()
                raise ExportCancelled("Export cancelled while resolving images.")

    return AssetBundle.from_outcomes([results[req.ref] for req in requests_])


def load_background(theme: Theme, deck_title: str, cfg: Settings = settings) -> ImagePayload | None:
    """Pick the title-page background: a stock variant, else the theme's file."""
    digest = hashlib.sha1((deck_title or "").encode("utf-8")).hexdigest()  # nosec
    variant = int(digest[:8], 16) % STOCK_VARIANTS + 1

    base = Path(cfg.assets_dir)
    candidates = [base / "stock" / f"{theme.id}_{variant}.jpg"]
    if theme.background_file:
        candidates.append(base / "themes" / theme.background_file)

    for path in candidates:
        if not path.is_file():
            continue
        try:
            return payload_from_bytes(path.read_bytes(), source="background", reference=str(path))
        except ImageUnavailable as e:
            logger.warning("background %s unusable: %s", path, e)
    return None


def illustrate_slide(
    deck: Deck,
    slide_id: str,
    prompt: str,
    provider: IllustrationProvider,
    cfg: Settings = settings,
) -> tuple[Deck, AssetOutcome]:
    """Return a copy of ``deck`` with an illustration attached to one slide.

    When the provider fails the deck comes back unchanged and the outcome
    carries ``ImageUnavailable``. Raises ``KeyError`` for an unknown slide.
    """
    deck.slide(slide_id)
    ref = f"slide/{slide_id}"
    width, height = SLIDE_ILLUSTRATION_SIZE
    url = provider.url_for(prompt, width=width, height=height)

    payload: ImagePayload | None = None
    if cfg.fetch_images:
        try:
            payload = provider.fetch_url(url)
        except AssetError as e:
            logger.info("illustration for slide %s unavailable: %s", slide_id, e)
            return deck, AssetOutcome(ref=ref, condition=e.condition, detail=str(e))

    slides = [s.model_copy(update={"image": url}) if s.id == slide_id else s for s in deck.slides]
    detail = "" if payload is not None else "attached without fetching"
    return deck.model_copy(update={"slides": slides}), AssetOutcome(ref=ref, payload=payload, detail=detail)
