from __future__ import annotations

import logging
import os
import re
import tempfile
import threading
import uuid
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from io import BytesIO
from typing import BinaryIO

from logosdeck.config import Settings, settings
from logosdeck.images.illustration import IllustrationProvider
from logosdeck.images.payload import AssetBundle, AssetOutcome
from logosdeck.images.resolver import load_background, resolve_assets
from logosdeck.layout.geometry import DeckPlan, SlideStatus
from logosdeck.layout.resolver import LayoutOptions
from logosdeck.models import CustomTheme, Deck
from logosdeck.planner import plan_deck
from logosdeck.render.pdf_renderer import render_pdf
from logosdeck.render.pptx_renderer import render_pptx
from logosdeck.render.report import RenderReport
from logosdeck.theme import Theme, resolve_theme

logger = logging.getLogger(__name__)

Renderer = Callable[..., RenderReport]

RENDERERS: dict[str, Renderer] = {
    "pptx": render_pptx,
    "pdf": render_pdf,
}


@dataclass
class ExportResult:
    paths: dict[str, str] = field(default_factory=dict)
    reports: dict[str, RenderReport] = field(default_factory=dict)
    statuses: tuple[SlideStatus, ...] = ()
    assets: tuple[AssetOutcome, ...] = ()

    @property
    def degraded_slides(self) -> list[SlideStatus]:
        return [s for s in self.statuses if not s.ok]

    @property
    def missing_assets(self) -> list[AssetOutcome]:
        return [a for a in self.assets if not a.ok]


def _safe_filename(name: str) -> str:
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("_")
    return cleaned or "deck"


def _atomic_write(path: str, data: bytes) -> None:
    directory = os.path.dirname(path) or "."
    fd, tmp = tempfile.mkstemp(dir=directory, prefix=".export-", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise


def prepare_export(
    deck: Deck,
    *,
    theme: str | Theme | CustomTheme | None = None,
    cfg: Settings = settings,
    provider: IllustrationProvider | None = None,
    cancel: threading.Event | None = None,
    today: date | None = None,
) -> tuple[DeckPlan, Theme, AssetBundle]:
    """Everything up to rendering: snapshot, theme, layout and images."""
    snapshot = deck.model_copy(deep=True)
    resolved_theme = resolve_theme(theme if theme is not None else (snapshot.theme_id or cfg.theme_id))

    background = load_background(resolved_theme, snapshot.title, cfg)
    plan = plan_deck(
        snapshot,
        resolved_theme,
        canvas_width=cfg.canvas_width_in,
        canvas_height=cfg.canvas_height_in,
        today=today,
        has_background=background is not None,
        options=LayoutOptions.from_settings(cfg),
        agenda_threshold=cfg.agenda_threshold,
        confidential_label=cfg.confidential_label,
    )

    assets = resolve_assets(plan, snapshot, provider, cfg, cancel=cancel)
    if background is not None:
        assets = assets.with_outcome(AssetOutcome(ref="background", payload=background))
    return plan, resolved_theme, assets


def render_to_stream(
    fmt: str,
    plan: DeckPlan,
    theme: Theme,
    assets: AssetBundle,
    stream: BinaryIO,
    *,
    cancel: threading.Event | None = None,
) -> RenderReport:
    try:
        renderer = RENDERERS[fmt]
    except KeyError:
        raise ValueError(f"Unknown export format: {fmt!r}") from None
    return renderer(plan, theme, assets, stream, cancel=cancel)


def export_deck(
    deck: Deck,
    *,
    formats: Sequence[str] = ("pptx", "pdf"),
    theme: str | Theme | CustomTheme | None = None,
    output_dir: str | None = None,
    cfg: Settings = settings,
    provider: IllustrationProvider | None = None,
    cancel: threading.Event | None = None,
    today: date | None = None,
) -> ExportResult:
    """Export ``deck`` to every requested format.

    Files only appear once all formats have rendered; a cancelled export
    leaves nothing on disk.
    """
    unknown = [f for f in formats if f not in RENDERERS]
    if unknown:
        raise ValueError(f"Unknown export format(s): {', '.join(unknown)}")

    if provider is None and cfg.fetch_images:
        provider = IllustrationProvider.from_settings(cfg)

    plan, resolved_theme, assets = prepare_export(
        deck, theme=theme, cfg=cfg, provider=provider, cancel=cancel, today=today)

    rendered: dict[str, bytes] = {}
    result = ExportResult(statuses=plan.statuses, assets=assets.outcomes)
    for fmt in formats:
        buf = BytesIO()
        result.reports[fmt] = render_to_stream(fmt, plan, resolved_theme, assets, buf, cancel=cancel)
        rendered[fmt] = buf.getvalue()

    out_dir = output_dir or cfg.output_dir
    os.makedirs(out_dir, exist_ok=True)
    ts = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    # Unique per export, shared by its formats.
    token = uuid.uuid4().hex[:8]
    stem = _safe_filename(deck.title or "Presentation")
    for fmt, data in rendered.items():
        path = os.path.join(out_dir, f"{stem}_{ts}_{token}.{fmt}")
        _atomic_write(path, data)
        result.paths[fmt] = os.path.abspath(path)
        logger.info("wrote %s (%d bytes)", path, len(data))

    for status in result.degraded_slides:
        logger.warning("slide %s degraded: %s", status.slide_id, status.error)
    for outcome in result.missing_assets:
        logger.info("image %s left out: %s", outcome.ref, outcome.condition)
    return result
