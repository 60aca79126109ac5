from __future__ import annotations

import threading
from io import BytesIO
from typing import BinaryIO

from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_AUTO_SHAPE_TYPE, MSO_CONNECTOR
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.oxml.ns import qn
from pptx.util import Inches, Pt

from logosdeck.images.payload import AssetBundle, ImagePayload
from logosdeck.layout.geometry import DeckPlan, Primitive
from logosdeck.render.report import (RenderReport, check_cancel, drawable,
                                     new_page_report)
from logosdeck.theme import RGB, Theme

_SHAPES = {
    "rect": MSO_AUTO_SHAPE_TYPE.RECTANGLE,
    "ellipse": MSO_AUTO_SHAPE_TYPE.OVAL,
    "triangle": MSO_AUTO_SHAPE_TYPE.ISOSCELES_TRIANGLE,
}

_ALIGN = {"left": PP_ALIGN.LEFT, "center": PP_ALIGN.CENTER, "right": PP_ALIGN.RIGHT}


def _set_rgb(color_format, rgb: RGB) -> None:
    color_format.rgb = RGBColor(rgb[0], rgb[1], rgb[2])


def _set_bg(slide, rgb: RGB) -> None:
    fill = slide.background.fill
    fill.solid()
    fill.fore_color.rgb = RGBColor(rgb[0], rgb[1], rgb[2])


def _set_fill_transparency(shape, transparency: int) -> None:
    # python-pptx has no transparency API; write <a:alpha> on the solid fill colour.
    solid = shape.fill._xPr.find(qn("a:solidFill"))
    if solid is None:
        return
    clr = solid.find(qn("a:srgbClr"))
    if clr is None:
        return
    alpha = clr.makeelement(qn("a:alpha"), {"val": str(int(round((100 - transparency) * 1000)))})
    clr.append(alpha)


def _add_shape(slide, prim: Primitive, theme: Theme) -> None:
    r = prim.rect
    shape = slide.shapes.add_shape(_SHAPES[prim.kind], Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    if prim.fill:
        shape.fill.solid()
        _set_rgb(shape.fill.fore_color, theme.rgb(prim.fill))
        if prim.transparency:
            _set_fill_transparency(shape, prim.transparency)
    else:
        shape.fill.background()

    if prim.stroke:
        shape.line.width = Pt(prim.stroke_width or 1)
        _set_rgb(shape.line.color, theme.rgb(prim.stroke))
    else:
        shape.line.fill.background()

    if prim.rotation:
        shape.rotation = prim.rotation
    shape.shadow.inherit = False


def _add_line(slide, prim: Primitive, theme: Theme) -> None:
    r = prim.rect
    conn = slide.shapes.add_connector(
        MSO_CONNECTOR.STRAIGHT, Inches(r.x), Inches(r.y), Inches(r.right), Inches(r.bottom))
    conn.line.width = Pt(prim.stroke_width or 1)
    _set_rgb(conn.line.color, theme.rgb(prim.stroke, default="secondary"))


def _add_text(slide, prim: Primitive, theme: Theme) -> None:
    r = prim.rect
    tb = slide.shapes.add_textbox(Inches(r.x), Inches(r.y), Inches(r.w), Inches(r.h))
    tf = tb.text_frame
    tf.clear()
    tf.word_wrap = True
    tf.vertical_anchor = MSO_ANCHOR.MIDDLE if prim.valign == "middle" else MSO_ANCHOR.TOP
    tf.margin_left = Inches(0.05)
    tf.margin_right = Inches(0.05)
    tf.margin_top = Inches(0.03)
    tf.margin_bottom = Inches(0.03)

    paragraphs = prim.paragraphs or ("",)
    spaced = prim.bullet or len(paragraphs) > 1
    for i, text in enumerate(paragraphs):
        p = tf.paragraphs[0] if i == 0 else tf.add_paragraph()
        p.alignment = _ALIGN[prim.align]
        if spaced and i > 0:
            p.space_before = Pt(prim.font_size * 0.5)
        run = p.add_run()
        run.text = f"• {text}" if prim.bullet else text
        font = run.font
        font.name = theme.font(prim.font_role)
        font.size = Pt(prim.font_size)
        font.bold = prim.bold
        _set_rgb(font.color, theme.rgb(prim.color))


def _add_picture(slide, prim: Primitive, payload: ImagePayload) -> None:
    r = prim.rect
    buf = BytesIO(payload.data)
    buf.seek(0)
    slide.shapes.add_picture(buf, Inches(r.x), Inches(r.y), width=Inches(r.w), height=Inches(r.h))


def render_pptx(
    plan: DeckPlan,
    theme: Theme,
    assets: AssetBundle,
    stream: BinaryIO,
    *,
    cancel: threading.Event | None = None,
    author: str = "Logos AI",
) -> RenderReport:
    """Write the deck as a .pptx package into ``stream``."""
    prs = Presentation()
    prs.slide_width = Inches(plan.canvas_width)
    prs.slide_height = Inches(plan.canvas_height)
    prs.core_properties.title = plan.title or "Presentation"
    prs.core_properties.author = author

    blank_layout = prs.slide_layouts[6]
    report = RenderReport(format="pptx")

    for number, page in enumerate(plan.pages):
        check_cancel(cancel)
        slide = prs.slides.add_slide(blank_layout)
        _set_bg(slide, theme.rgb(page.background, default="background"))
        page_report = new_page_report(number, page)

        for prim, payload in drawable(page, assets, page_report):
            if prim.kind == "text":
                _add_text(slide, prim, theme)
            elif prim.kind == "line":
                _add_line(slide, prim, theme)
            elif prim.kind == "image" and payload is not None:
                _add_picture(slide, prim, payload)
            else:
                _add_shape(slide, prim, theme)

        if page.geometry.notes:
            slide.notes_slide.notes_text_frame.text = page.geometry.notes
        report.pages.append(page_report)

    check_cancel(cancel)
    prs.save(stream)
    return report
