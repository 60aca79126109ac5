from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from logosdeck.models import Element

PrimitiveKind = Literal["rect", "ellipse", "triangle", "line", "text", "image"]
Region = Literal["background", "furniture", "header", "body"]
PageKind = Literal["title", "agenda", "content", "closing"]
ImageKind = Literal["crop", "generated", "reference"]


@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.w / 2, self.y + self.h / 2)


@dataclass(frozen=True)
class Primitive:
    """One positioned drawing instruction.

    Colours are tokens resolved through ``Theme.rgb``. A ``line`` runs from
    ``(rect.x, rect.y)`` to ``(rect.right, rect.bottom)``; its width and
    height may be negative.
    """

    kind: PrimitiveKind
    rect: Rect
    role: str
    region: Region = "body"
    text: str = ""
    lines: tuple[str, ...] = ()
    bullet: bool = False
    fill: str | None = None
    stroke: str | None = None
    stroke_width: float = 0.0
    transparency: int = 0
    rotation: float = 0.0
    font_size: float = 18.0
    bold: bool = False
    color: str | None = None
    font_role: str = "main"
    align: Literal["left", "center", "right"] = "left"
    valign: Literal["top", "middle"] = "top"
    image_ref: str | None = None

    @property
    def paragraphs(self) -> tuple[str, ...]:
        if self.lines:
            return self.lines
        return (self.text,) if self.text else ()


@dataclass(frozen=True)
class GridCell:
    index: int
    rect: Rect
    title: str | None = None
    content: str = ""
    filled: bool = False


@dataclass(frozen=True)
class ResolvedElement:
    index: int
    element: Element
    rect: Rect


@dataclass(frozen=True)
class ImageRequest:
    ref: str
    kind: ImageKind
    prompt: str = ""
    url: str | None = None
    # Percent rectangle (x, y, w, h) relative to the source image, for crops.
    crop: tuple[float, float, float, float] | None = None


@dataclass(frozen=True)
class ResolvedGeometry:
    slide_id: str | None
    layout: str
    canvas_width: float
    canvas_height: float
    primitives: tuple[Primitive, ...] = ()
    cells: tuple[GridCell, ...] = ()
    elements: tuple[ResolvedElement, ...] = ()
    images: tuple[ImageRequest, ...] = ()
    notes: str = ""
    error: str | None = None

    def by_role(self, role: str) -> list[Primitive]:
        return [p for p in self.primitives if p.role == role]

    def in_region(self, region: str) -> list[Primitive]:
        return [p for p in self.primitives if p.region == region]


@dataclass(frozen=True)
class PagePlan:
    kind: PageKind
    geometry: ResolvedGeometry
    background: str = "background"
    index: int | None = None
    total: int | None = None
    progress: float | None = None


@dataclass(frozen=True)
class SlideStatus:
    slide_id: str
    ok: bool = True
    error: str | None = None


@dataclass(frozen=True)
class DeckPlan:
    title: str
    canvas_width: float
    canvas_height: float
    pages: tuple[PagePlan, ...] = ()
    statuses: tuple[SlideStatus, ...] = field(default_factory=tuple)

    def pages_of(self, kind: str) -> list[PagePlan]:
        return [p for p in self.pages if p.kind == kind]

    def image_requests(self) -> list[ImageRequest]:
        seen: set[str] = set()
        out: list[ImageRequest] = []
        for page in self.pages:
            for req in page.geometry.images:
                if req.ref in seen:
                    continue
                seen.add(req.ref)
                out.append(req)
        return out
