from __future__ import annotations

from datetime import date

import pytest

from logosdeck.models import Deck, Slide
from logosdeck.planner import plan_deck
from logosdeck.theme import get_theme

W, H = 13.333, 7.5


def _plan(deck: Deck, theme_id: str = "premium", **kw):
    return plan_deck(deck, get_theme(theme_id), canvas_width=W, canvas_height=H,
                     today=date(2026, 3, 31), **kw)


def _deck(n: int, **kw) -> Deck:
    return Deck.model_validate({
        "title": "Deck",
        "slides": [{"title": f"Slide {i}", "content": ["x"]} for i in range(n)],
        **kw,
    })


@pytest.mark.parametrize("n", range(0, 8))
def test_agenda_only_for_more_than_two_slides(n):
    plan = _plan(_deck(n))
    assert len(plan.pages_of("agenda")) == (1 if n > 2 else 0)
    assert len(plan.pages_of("content")) == n
    assert len(plan.pages_of("title")) == 1
    assert len(plan.pages_of("closing")) == 1


def test_agenda_threshold_is_configurable():
    assert _plan(_deck(2), agenda_threshold=1).pages_of("agenda")


def test_page_order():
    kinds = [p.kind for p in _plan(_deck(3)).pages]
    assert kinds == ["title", "agenda", "content", "content", "content", "closing"]


def test_progress_and_furniture():
    plan = _plan(_deck(4))
    content = plan.pages_of("content")
    assert [p.progress for p in content] == [0.25, 0.5, 0.75, 1.0]
    for i, page in enumerate(content):
        assert (page.index, page.total) == (i, 4)
        assert page.geometry.by_role("footer_date")[0].text == "2026-03-31"
        assert page.geometry.by_role("footer_label")[0].text == "CONFIDENTIAL"
        fill = page.geometry.by_role("progress_fill")[0]
        assert fill.rect.w / W == pytest.approx(page.progress)


def test_title_page_background_and_goal():
    plain = _plan(_deck(1))
    title = plain.pages_of("title")[0]
    assert title.background == "background_alt"
    assert title.geometry.by_role("deck_goal") == []
    assert title.geometry.by_role("background_image") == []

    with_goal = _plan(_deck(1, mainGoal="Win"), has_background=True).pages_of("title")[0]
    assert with_goal.geometry.by_role("deck_goal")[0].text == "Win"
    assert with_goal.geometry.by_role("background_image")[0].image_ref == "background"


@pytest.mark.parametrize("theme_id,kind", [("premium", "ellipse"), ("pop", "triangle"), ("nature", "ellipse")])
def test_title_decor_follows_theme(theme_id, kind):
    decor = _plan(_deck(1), theme_id).pages_of("title")[0].geometry.by_role("decor")
    assert decor and decor[0].kind == kind


def test_minimal_theme_has_no_decor():
    assert _plan(_deck(1), "minimal").pages_of("title")[0].geometry.by_role("decor") == []


def test_long_agenda_uses_two_columns():
    agenda = _plan(_deck(8)).pages_of("agenda")[0].geometry
    left, right = agenda.by_role("agenda_items")
    assert len(left.lines) == 4 and len(right.lines) == 4
    assert left.lines[0] == "1. Slide 0"


def test_closing_page_uses_primary_background():
    closing = _plan(_deck(1)).pages_of("closing")[0]
    assert closing.background == "primary"
    assert closing.geometry.by_role("closing_title")[0].text == "Thank You"


def test_bad_layout_falls_back_without_stopping_the_deck():
    bad = Slide.model_construct(id="bad", title="Broken", layout="grid_7", content=["kept"],
                                grid_items=None, elements=None, speaker_notes="", image=None)
    deck = Deck.model_construct(title="Deck", main_goal="", theme_id=None, original_image=None,
                                slides=[Slide(id="ok", content=["a"]), bad])
    plan = _plan(deck)

    assert [s.ok for s in plan.statuses] == [True, False]
    assert "grid_7" in plan.statuses[1].error
    fallback = plan.pages_of("content")[1].geometry
    assert fallback.error is not None
    assert fallback.by_role("layout_error")
    assert fallback.by_role("bullets")[0].lines == ("kept",)
    assert len(plan.pages_of("content")) == 2


def test_notes_travel_with_the_page():
    deck = Deck.model_validate({"slides": [{"speakerNotes": "remember"}]})
    assert _plan(deck).pages_of("content")[0].geometry.notes == "remember"


def test_image_requests_are_collected_once():
    deck = Deck.model_validate({"slides": [
        {"id": "a", "content": ["x"], "image": "https://img.test/a.png"},
        {"id": "b", "layout": "vision_layout",
         "elements": [{"type": "image", "x": 0, "y": 0, "w": 10, "h": 10, "source": "crop"}]},
    ]})
    refs = [r.ref for r in _plan(deck).image_requests()]
    assert refs == ["slide/a", "slide/b/element/0"]
