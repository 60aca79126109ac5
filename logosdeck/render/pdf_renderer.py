"""Paged-document backend.

Capability gaps versus the slide package, and how they are handled:

* no speaker-notes channel: notes are left out of the PDF;
* theme fonts are not embedded: each theme font maps to the closest
  standard family (Helvetica, Times, Courier), and text that cannot be
  encoded in cp1252 switches to the HeiseiKakuGo-W5 CID font;
* images whose asset did not resolve are skipped, as in the slide package.
"""

from __future__ import annotations

import threading
from io import BytesIO
from typing import BinaryIO

from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.pdfgen import canvas

from logosdeck.images.payload import AssetBundle, ImagePayload
from logosdeck.layout.geometry import DeckPlan, Primitive
from logosdeck.render.report import (RenderReport, check_cancel, drawable,
                                     new_page_report)
from logosdeck.theme import RGB, Theme

PT_PER_INCH = 72.0
TEXT_PAD_PT = 3.6
CJK_FONT = "HeiseiKakuGo-W5"

_SERIF_HINTS = ("times", "georgia", "mincho", "serif", "garamond", "playfair")
_MONO_HINTS = ("courier", "mono")

_cjk_lock = threading.Lock()
_cjk_registered = False


def _ensure_cjk_font() -> None:
    global _cjk_registered
    with _cjk_lock:
        if not _cjk_registered:
            pdfmetrics.registerFont(UnicodeCIDFont(CJK_FONT))
            _cjk_registered = True


def _needs_cjk(text: str) -> bool:
    try:
        text.encode("cp1252")
    except UnicodeEncodeError:
        return True
    return False


def pdf_font(text: str, theme_font: str, bold: bool) -> str:
    if _needs_cjk(text):
        _ensure_cjk_font()
        return CJK_FONT
    name = theme_font.lower()
    if any(h in name for h in _SERIF_HINTS):
        return "Times-Bold" if bold else "Times-Roman"
    if any(h in name for h in _MONO_HINTS):
        return "Courier-Bold" if bold else "Courier"
    return "Helvetica-Bold" if bold else "Helvetica"


def _rgb01(rgb: RGB) -> tuple[float, float, float]:
    return (rgb[0] / 255, rgb[1] / 255, rgb[2] / 255)


class _Page:
    """Maps top-left inch coordinates onto a bottom-left point canvas."""

    def __init__(self, c: canvas.Canvas, theme: Theme, height_in: float) -> None:
        self.c = c
        self.theme = theme
        self.height_pt = height_in * PT_PER_INCH

    def _paint(self, prim: Primitive) -> tuple[int, int]:
        c = self.c
        fill = stroke = 0
        if prim.fill:
            c.setFillColorRGB(*_rgb01(self.theme.rgb(prim.fill)))
            c.setFillAlpha(1 - prim.transparency / 100)
            fill = 1
        if prim.stroke:
            c.setStrokeColorRGB(*_rgb01(self.theme.rgb(prim.stroke)))
            c.setLineWidth(prim.stroke_width or 1)
            stroke = 1
        return fill, stroke

    def fill_page(self, rgb: RGB, width_in: float) -> None:
        c = self.c
        c.saveState()
        c.setFillColorRGB(*_rgb01(rgb))
        c.rect(0, 0, width_in * PT_PER_INCH, self.height_pt, stroke=0, fill=1)
        c.restoreState()

    def shape(self, prim: Primitive) -> None:
        c = self.c
        r = prim.rect
        w = r.w * PT_PER_INCH
        h = r.h * PT_PER_INCH
        cx = (r.x + r.w / 2) * PT_PER_INCH
        cy = self.height_pt - (r.y + r.h / 2) * PT_PER_INCH

        c.saveState()
        fill, stroke = self._paint(prim)
        if fill or stroke:
            c.translate(cx, cy)
            if prim.rotation:
                # Clockwise on a y-down slide is counter-clockwise negative here.
                c.rotate(-prim.rotation)
            if prim.kind == "ellipse":
                c.ellipse(-w / 2, -h / 2, w / 2, h / 2, stroke=stroke, fill=fill)
            elif prim.kind == "triangle":
                path = c.beginPath()
                path.moveTo(-w / 2, -h / 2)
                path.lineTo(w / 2, -h / 2)
                path.lineTo(0, h / 2)
                path.close()
                c.drawPath(path, stroke=stroke, fill=fill)
            else:
                c.rect(-w / 2, -h / 2, w, h, stroke=stroke, fill=fill)
        c.restoreState()

    def line(self, prim: Primitive) -> None:
        c = self.c
        r = prim.rect
        c.saveState()
        c.setStrokeColorRGB(*_rgb01(self.theme.rgb(prim.stroke, default="secondary")))
        c.setLineWidth(prim.stroke_width or 1)
        c.line(
            r.x * PT_PER_INCH,
            self.height_pt - r.y * PT_PER_INCH,
            r.right * PT_PER_INCH,
            self.height_pt - r.bottom * PT_PER_INCH,
        )
        c.restoreState()

    def text(self, prim: Primitive) -> None:
        c = self.c
        r = prim.rect
        size = prim.font_size
        left = r.x * PT_PER_INCH
        width = r.w * PT_PER_INCH
        top = self.height_pt - r.y * PT_PER_INCH
        max_w = max(width - 2 * TEXT_PAD_PT, 1.0)
        leading = size * 1.2
        para_gap = size * 0.5 if (prim.bullet or len(prim.paragraphs) > 1) else 0.0
        theme_font = self.theme.font(prim.font_role)

        blocks: list[list[tuple[str, str]]] = []
        for para in prim.paragraphs:
            text = f"• {para}" if prim.bullet else para
            font = pdf_font(text, theme_font, prim.bold)
            blocks.append([(ln, font) for ln in (simpleSplit(text, font, size, max_w) or [""])])
        if not blocks:
            return

        n_lines = sum(len(b) for b in blocks)
        block_h = n_lines * leading + para_gap * (len(blocks) - 1)
        if prim.valign == "middle":
            y = top - max(0.0, (r.h * PT_PER_INCH - block_h) / 2) - size
        else:
            y = top - TEXT_PAD_PT - size

        c.saveState()
        c.setFillColorRGB(*_rgb01(self.theme.rgb(prim.color)))
        for i, block in enumerate(blocks):
            if i:
                y -= para_gap
            for ln, font in block:
                c.setFont(font, size)
                if prim.align == "center":
                    c.drawCentredString(left + width / 2, y, ln)
                elif prim.align == "right":
                    c.drawRightString(left + width - TEXT_PAD_PT, y, ln)
                else:
                    c.drawString(left + TEXT_PAD_PT, y, ln)
                y -= leading
        c.restoreState()

    def image(self, prim: Primitive, payload: ImagePayload) -> None:
        r = prim.rect
        self.c.drawImage(
            ImageReader(BytesIO(payload.data)),
            r.x * PT_PER_INCH,
            self.height_pt - r.bottom * PT_PER_INCH,
            width=r.w * PT_PER_INCH,
            height=r.h * PT_PER_INCH,
            mask="auto",
        )


def render_pdf(
    plan: DeckPlan,
    theme: Theme,
    assets: AssetBundle,
    stream: BinaryIO,
    *,
    cancel: threading.Event | None = None,
    author: str = "Logos AI",
) -> RenderReport:
    """Write the deck as a landscape PDF, one page per planned page, into ``stream``."""
    page_size = (plan.canvas_width * PT_PER_INCH, plan.canvas_height * PT_PER_INCH)
    c = canvas.Canvas(stream, pagesize=page_size)
    c.setTitle(plan.title or "Presentation")
    c.setAuthor(author)

    report = RenderReport(format="pdf")
    for number, page in enumerate(plan.pages):
        check_cancel(cancel)
        drawer = _Page(c, theme, plan.canvas_height)
        drawer.fill_page(theme.rgb(page.background, default="background"), plan.canvas_width)
        page_report = new_page_report(number, page)

        for prim, payload in drawable(page, assets, page_report):
            if prim.kind == "text":
                drawer.text(prim)
            elif prim.kind == "line":
                drawer.line(prim)
            elif prim.kind == "image" and payload is not None:
                drawer.image(prim, payload)
            else:
                drawer.shape(prim)

        c.showPage()
        report.pages.append(page_report)

    check_cancel(cancel)
    c.save()
    return report
