from __future__ import annotations

import threading
from collections.abc import Iterator
from dataclasses import dataclass, field

from logosdeck.errors import ExportCancelled
from logosdeck.images.payload import AssetBundle, ImagePayload
from logosdeck.layout.geometry import PagePlan, Primitive


@dataclass
class PageReport:
    number: int
    kind: str
    slide_id: str | None = None
    progress: float | None = None
    roles: list[str] = field(default_factory=list)
    # (image ref, condition) for every image left out of the page.
    skipped: list[tuple[str, str]] = field(default_factory=list)


@dataclass
class RenderReport:
    format: str
    pages: list[PageReport] = field(default_factory=list)

    def content_pages(self) -> list[PageReport]:
        return [p for p in self.pages if p.kind == "content"]

    def progress_values(self) -> list[float]:
        return [p.progress for p in self.content_pages() if p.progress is not None]

    def count(self, kind: str) -> int:
        return sum(1 for p in self.pages if p.kind == kind)


def check_cancel(cancel: threading.Event | None) -> None:
    if cancel is not None and cancel.is_set():
        raise ExportCancelled("Export cancelled.")


def drawable(
    page: PagePlan,
    assets: AssetBundle,
    report: PageReport,
) -> Iterator[tuple[Primitive, ImagePayload | None]]:
    """Yield the page's primitives back to front, with the payload for images.

    Images whose asset is missing are skipped and recorded on ``report``;
    nothing is drawn in their place.
    """
    for prim in page.geometry.primitives:
        payload = None
        if prim.kind == "image":
            payload = assets.get(prim.image_ref)
            if payload is None:
                ref = prim.image_ref or ""
                report.skipped.append((ref, assets.condition(ref) or "ImageUnavailable"))
                continue
        report.roles.append(prim.role)
        yield prim, payload


def new_page_report(number: int, page: PagePlan) -> PageReport:
    return PageReport(
        number=number,
        kind=page.kind,
        slide_id=page.geometry.slide_id,
        progress=page.progress,
    )
