"""Slide geometry.

Every position below is expressed on a 10 x 5.625 reference slide and scaled
to the requested canvas, so any 16:9 canvas gets the same proportions. The
functions here are pure: they read a slide and return ``ResolvedGeometry``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace

from logosdeck.config import Settings
from logosdeck.errors import UnsupportedGridArity, UnsupportedLayout
from logosdeck.layout.geometry import (GridCell, ImageRequest, Primitive, Rect,
                                       ResolvedElement, ResolvedGeometry)
from logosdeck.models import Deck, Slide

REF_WIDTH = 10.0
REF_HEIGHT = 5.625

# Body region shared by every content layout.
BODY_X = 0.5
BODY_TOP = 1.6
BODY_WIDTH = 9.0
BODY_HEIGHT = 3.5

RULE_COLOR = "#E2E8F0"
WHITE = "#FFFFFF"


@dataclass(frozen=True)
class LayoutOptions:
    grid_spacing: float = 0.3
    grid_cell_height: float = 3.5
    supported_grid_columns: tuple[int, ...] = (2, 3, 4)
    max_flow_per_row: int = 4

    @classmethod
    def from_settings(cls, cfg: Settings) -> "LayoutOptions":
        return cls(grid_spacing=cfg.grid_spacing, grid_cell_height=cfg.grid_cell_height)


class _Frame:
    def __init__(self, width: float, height: float) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid canvas size: {width}x{height}")
        self.width = width
        self.height = height
        self.sx = width / REF_WIDTH
        self.sy = height / REF_HEIGHT

    def box(self, x: float, y: float, w: float, h: float) -> Rect:
        return Rect(x * self.sx, y * self.sy, w * self.sx, h * self.sy)

    def pt(self, size: float) -> float:
        return size * min(self.sx, self.sy)

    def full(self) -> Rect:
        return Rect(0.0, 0.0, self.width, self.height)


@dataclass
class _Builder:
    frame: _Frame
    primitives: list[Primitive] = field(default_factory=list)
    cells: list[GridCell] = field(default_factory=list)
    elements: list[ResolvedElement] = field(default_factory=list)
    images: list[ImageRequest] = field(default_factory=list)

    def add(self, kind: str, rect: Rect, role: str, **kw) -> Primitive:
        prim = Primitive(kind, rect, role, **kw)  # type: ignore[arg-type]
        self.primitives.append(prim)
        return prim

    def text(self, rect: Rect, role: str, text: str, size: float, **kw) -> Primitive:
        return self.add("text", rect, role, text=text, font_size=self.frame.pt(size), **kw)

    def build(self, slide_id: str | None, layout: str, *, notes: str = "", error: str | None = None) -> ResolvedGeometry:
        return ResolvedGeometry(
            slide_id=slide_id,
            layout=layout,
            canvas_width=self.frame.width,
            canvas_height=self.frame.height,
            primitives=tuple(self.primitives),
            cells=tuple(self.cells),
            elements=tuple(self.elements),
            images=tuple(self.images),
            notes=notes,
            error=error,
        )


def grid_columns(layout: str, options: LayoutOptions | None = None) -> int:
    options = options or LayoutOptions()
    if not layout.startswith("grid_"):
        raise UnsupportedLayout(f"Not a grid layout: {layout!r}")
    suffix = layout[len("grid_"):]
    if not suffix.isdigit() or int(suffix) not in options.supported_grid_columns:
        raise UnsupportedGridArity(f"Unsupported grid arity: {layout!r}")
    return int(suffix)


def _header(b: _Builder, title: str, *, color: str = "primary") -> None:
    f = b.frame
    b.text(f.box(0.5, 0.4, 8.5, 0.6), "title", title, 32, region="header",
           bold=True, color=color, font_role="heading")
    b.add("ellipse", f.box(0.5, 1.1, 0.1, 0.1), "title_marker", region="header", fill="accent")


def _bullet_block(b: _Builder, rect: Rect, role: str, items: list[str], *, size: float = 22) -> None:
    b.add("text", rect, role, lines=tuple(items), bullet=True,
          font_size=b.frame.pt(size), color="text_main")


def _resolve_bullets(b: _Builder, slide: Slide) -> None:
    f = b.frame
    _header(b, slide.title)
    if not slide.content:
        return
    has_image = bool(slide.image)
    b.add("rect", f.box(BODY_X, BODY_TOP, 0.05, BODY_HEIGHT), "rule", fill=RULE_COLOR)
    _bullet_block(b, f.box(0.8, BODY_TOP, 5.9 if has_image else 8.5, BODY_HEIGHT), "bullets", slide.content)
    if has_image:
        ref = f"slide/{slide.id}"
        b.add("image", f.box(7.0, BODY_TOP, 2.5, 2.5), "illustration", image_ref=ref)
        b.images.append(ImageRequest(ref=ref, kind="reference", url=slide.image))


def _resolve_grid(b: _Builder, slide: Slide, options: LayoutOptions) -> None:
    f = b.frame
    cols = grid_columns(slide.layout, options)
    _header(b, slide.title)

    items = list(slide.grid_items or [])[:cols]
    spacing = options.grid_spacing
    item_w = (BODY_WIDTH - spacing * (cols - 1)) / cols
    cell_h = options.grid_cell_height

    for idx in range(cols):
        item = items[idx] if idx < len(items) else None
        x = BODY_X + (item_w + spacing) * idx
        rect = f.box(x, BODY_TOP, item_w, cell_h)
        b.cells.append(GridCell(
            index=idx,
            rect=rect,
            title=item.title if item else None,
            content=item.content if item else "",
            filled=item is not None,
        ))
        b.add("rect", rect, "grid_cell", fill="background", stroke=RULE_COLOR, stroke_width=0.5)
        b.add("rect", f.box(x, BODY_TOP, item_w, 0.1), "grid_cell_strip", fill="secondary")
        if item is None:
            continue
        if item.title:
            b.text(f.box(x + 0.2, BODY_TOP + 0.3, item_w - 0.4, 0.5), "grid_cell_title", item.title, 18,
                   bold=True, color="primary", font_role="heading")
        b.text(f.box(x + 0.2, BODY_TOP + 0.9, item_w - 0.4, 2.2), "grid_cell_text", item.content, 15,
               color="text_main")


def _resolve_center(b: _Builder, slide: Slide) -> None:
    f = b.frame
    b.add("rect", f.full(), "backdrop", region="background", fill="primary")
    b.add("ellipse", f.box(2, -2, 6, 6), "backdrop_decor", region="background",
          fill="secondary", transparency=60)
    _header(b, slide.title, color=WHITE)
    if slide.content:
        b.text(f.box(1, 2, 8, 2), "statement", slide.content[0], 40, bold=True,
               color=WHITE, align="center", valign="middle", font_role="heading")


def _resolve_vision(b: _Builder, slide: Slide) -> None:
    f = b.frame
    _header(b, slide.title)

    # sorted() is stable, so equal or missing zIndex keeps array order.
    ordered = sorted(enumerate(slide.elements or []), key=lambda pair: pair[1].z_index or 0)
    for idx, el in ordered:
        rect = Rect(
            el.x / 100 * f.width,
            el.y / 100 * f.height,
            el.w / 100 * f.width,
            el.h / 100 * f.height,
        )
        b.elements.append(ResolvedElement(index=idx, element=el, rect=rect))

        if el.type == "text":
            b.text(rect, "element", el.content or "", el.font_size or 18, color=el.color or "text_main")
        elif el.type == "shape":
            b.add("rect", rect, "element", fill=el.color or "shape_fill", stroke="secondary", stroke_width=1)
            if el.content:
                b.text(rect, "element_label", el.content, 14, color="primary",
                       align="center", valign="middle")
        else:
            ref = f"slide/{slide.id}/element/{idx}"
            b.add("image", rect, "element", image_ref=ref)
            if el.source == "crop":
                b.images.append(ImageRequest(ref=ref, kind="crop", crop=(el.x, el.y, el.w, el.h)))
            else:
                b.images.append(ImageRequest(ref=ref, kind="generated", prompt=el.content or "illustration"))


def _resolve_comparison(b: _Builder, slide: Slide) -> None:
    f = b.frame
    _header(b, slide.title)
    if not slide.content:
        return

    # Even split; the left column takes the extra item.
    split = math.ceil(len(slide.content) / 2)
    halves = (("left", 0.5, slide.content[:split]), ("right", 5.15, slide.content[split:]))
    b.add("rect", f.box(4.975, BODY_TOP, 0.05, BODY_HEIGHT), "divider", fill=RULE_COLOR)
    for side, x, items in halves:
        b.add("rect", f.box(x, BODY_TOP, 4.35, BODY_HEIGHT), f"comparison_{side}_panel", fill="shape_fill")
        b.add("rect", f.box(x, BODY_TOP, 4.35, 0.1), f"comparison_{side}_strip", fill="secondary")
        _bullet_block(b, f.box(x + 0.2, BODY_TOP + 0.25, 3.95, BODY_HEIGHT - 0.4),
                      f"comparison_{side}", items, size=18)


def _arrow(b: _Builder, start: tuple[float, float], end: tuple[float, float]) -> None:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    b.add("line", Rect(start[0], start[1], dx, dy), "flow_connector", stroke="secondary", stroke_width=2)
    length = math.hypot(dx, dy)
    if length < 1e-9:
        return
    size = 0.16 * b.frame.sx
    cx = end[0] - dx / length * size / 2
    cy = end[1] - dy / length * size / 2
    b.add("triangle", Rect(cx - size / 2, cy - size / 2, size, size), "flow_arrowhead",
          fill="secondary", rotation=math.degrees(math.atan2(dy, dx)) + 90.0)


def _resolve_flow(b: _Builder, slide: Slide, options: LayoutOptions) -> None:
    f = b.frame
    _header(b, slide.title)
    steps = slide.content
    if not steps:
        return

    per_row = max(1, options.max_flow_per_row)
    cols = min(len(steps), per_row)
    rows = math.ceil(len(steps) / per_row)
    hgap = 0.5
    vgap = 0.5
    box_w = (BODY_WIDTH - hgap * (cols - 1)) / cols
    box_h = min(1.4, (BODY_HEIGHT - vgap * (rows - 1)) / rows)

    rects: list[Rect] = []
    for i, step in enumerate(steps):
        r, c = divmod(i, per_row)
        x = BODY_X + c * (box_w + hgap)
        y = BODY_TOP + r * (box_h + vgap)
        rect = f.box(x, y, box_w, box_h)
        rects.append(rect)
        b.add("rect", rect, "flow_step", fill="shape_fill", stroke="secondary", stroke_width=1.5)
        b.text(f.box(x + 0.1, y + 0.05, 0.5, 0.3), "flow_step_number", str(i + 1), 12,
               bold=True, color="accent")
        b.text(rect, "flow_step_text", step, 16, color="primary", align="center", valign="middle")

    for i in range(len(rects) - 1):
        a, nxt = rects[i], rects[i + 1]
        if (i + 1) % per_row:
            _arrow(b, (a.right, a.center[1]), (nxt.x, nxt.center[1]))
        else:
            _arrow(b, (a.center[0], a.bottom), (nxt.center[0], nxt.y))


def resolve_slide(
    slide: Slide,
    canvas_width: float,
    canvas_height: float,
    options: LayoutOptions | None = None,
) -> ResolvedGeometry:
    options = options or LayoutOptions()
    b = _Builder(_Frame(canvas_width, canvas_height))
    layout = slide.layout

    if layout in ("title", "bullets"):
        _resolve_bullets(b, slide)
    elif layout.startswith("grid_"):
        _resolve_grid(b, slide, options)
    elif layout == "center":
        _resolve_center(b, slide)
    elif layout == "vision_layout":
        if slide.elements:
            _resolve_vision(b, slide)
        else:
            _resolve_bullets(b, slide)
    elif layout == "comparison":
        _resolve_comparison(b, slide)
    elif layout == "flow":
        _resolve_flow(b, slide, options)
    else:
        raise UnsupportedLayout(f"Unsupported layout: {layout!r}")

    return b.build(slide.id, layout, notes=slide.speaker_notes)


def resolve_fallback(slide: Slide, error: str, canvas_width: float, canvas_height: float) -> ResolvedGeometry:
    b = _Builder(_Frame(canvas_width, canvas_height))
    f = b.frame
    _header(b, slide.title)
    b.text(f.box(0.8, 1.25, 8.5, 0.3), "layout_error", f"Layout unavailable: {error}", 12,
           color="#B91C1C")
    if slide.content:
        _bullet_block(b, f.box(0.8, BODY_TOP, 8.5, BODY_HEIGHT), "bullets", slide.content)
    return b.build(slide.id, slide.layout, notes=slide.speaker_notes, error=error)


def content_furniture(
    index: int,
    total: int,
    canvas_width: float,
    canvas_height: float,
    *,
    date_text: str,
    label: str = "CONFIDENTIAL",
) -> tuple[Primitive, ...]:
    b = _Builder(_Frame(canvas_width, canvas_height))
    f = b.frame
    progress = (index + 1) / total

    b.text(f.box(0.5, 5.35, 2, 0.25), "footer_date", date_text, 10, region="furniture", color="text_light")
    b.text(f.box(4, 5.35, 2, 0.25), "footer_label", label, 10, region="furniture",
           color="text_light", align="center", bold=True)
    b.text(f.box(9, 5.35, 1, 0.25), "footer_page", f"{index + 1} / {total}", 10, region="furniture",
           color="text_light", align="right")
    track = f.box(0, 5.55, REF_WIDTH, 0.08)
    b.add("rect", track, "progress_track", region="furniture", fill=RULE_COLOR)
    b.add("rect", Rect(0.0, track.y, f.width * progress, track.h), "progress_fill",
          region="furniture", fill="accent")
    return tuple(b.primitives)


def attach_furniture(geometry: ResolvedGeometry, furniture: tuple[Primitive, ...]) -> ResolvedGeometry:
    """Insert furniture above background primitives and below everything else."""
    back = [p for p in geometry.primitives if p.region == "background"]
    rest = [p for p in geometry.primitives if p.region != "background"]
    return replace(geometry, primitives=tuple(back) + furniture + tuple(rest))


def resolve_title_page(
    deck: Deck,
    decor: str,
    canvas_width: float,
    canvas_height: float,
    *,
    has_background: bool = False,
) -> ResolvedGeometry:
    b = _Builder(_Frame(canvas_width, canvas_height))
    f = b.frame

    b.add("rect", f.full(), "background", region="background", fill="background_alt")
    if has_background:
        b.add("image", f.full(), "background_image", region="background", image_ref="background")
        b.add("rect", f.full(), "background_veil", region="background", fill=WHITE, transparency=20)

    if decor == "modern":
        b.add("ellipse", f.box(7.5, 3.5, 4, 4), "decor", region="background", fill="accent", transparency=90)
        b.add("ellipse", f.box(-1, -1, 3, 3), "decor", region="background", fill="secondary", transparency=85)
    elif decor == "organic":
        b.add("ellipse", f.box(8, 0, 5, 5), "decor", region="background", fill="shape_fill")
        b.add("rect", f.box(0, 5, REF_WIDTH, 1), "decor", region="background", fill="secondary")
    elif decor == "bold":
        b.add("triangle", f.box(8, -1, 3, 3), "decor", region="background", fill="accent", rotation=45)
        b.add("rect", f.box(0.5, 0.5, 9, 4.5), "decor", region="background", stroke="secondary", stroke_width=4)

    b.text(f.box(1, 2, 8, 2), "deck_title", deck.title, 54, region="header",
           bold=True, color="primary", font_role="heading")
    if deck.main_goal:
        b.add("line", f.box(1, 4.1, 1, 0), "goal_rule", stroke="accent", stroke_width=3)
        b.text(f.box(1, 4.2, 7, 1), "deck_goal", deck.main_goal, 24, color="secondary")
    return b.build(None, "title_page")


def resolve_agenda_page(deck: Deck, canvas_width: float, canvas_height: float) -> ResolvedGeometry:
    b = _Builder(_Frame(canvas_width, canvas_height))
    f = b.frame

    b.add("rect", f.full(), "background", region="background", fill="background_alt")
    b.text(f.box(0.5, 0.4, 9, 1), "agenda_title", "Agenda", 40, region="header",
           bold=True, color="primary", font_role="heading")

    items = [f"{i + 1}. {s.title}" for i, s in enumerate(deck.slides)]
    size = f.pt(18)
    if len(items) > 6:
        mid = math.ceil(len(items) / 2)
        b.add("text", f.box(1, 1.5, 4, 4), "agenda_items", lines=tuple(items[:mid]),
              font_size=size, color="text_main")
        b.add("text", f.box(5.5, 1.5, 4, 4), "agenda_items", lines=tuple(items[mid:]),
              font_size=size, color="text_main")
    else:
        b.add("text", f.box(1, 1.5, 8, 4), "agenda_items", lines=tuple(items),
              font_size=size, color="text_main")
    return b.build(None, "agenda_page")


def resolve_closing_page(canvas_width: float, canvas_height: float) -> ResolvedGeometry:
    b = _Builder(_Frame(canvas_width, canvas_height))
    f = b.frame
    b.add("rect", f.full(), "background", region="background", fill="primary")
    b.text(f.box(0, 2, REF_WIDTH, 1), "closing_title", "Thank You", 50, region="header",
           bold=True, color=WHITE, align="center", font_role="heading")
    b.text(f.box(0, 3.2, REF_WIDTH, 1), "closing_subtitle", "Q & A", 32, color="accent", align="center")
    return b.build(None, "closing_page")
