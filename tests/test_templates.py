from __future__ import annotations

import pytest

from logosdeck.planner import plan_deck
from logosdeck.templates import TEMPLATES, available_templates, template_deck
from logosdeck.theme import get_theme


@pytest.mark.parametrize("template_id", sorted(TEMPLATES))
def test_templates_plan_without_degradation(template_id):
    deck = template_deck(template_id)
    plan = plan_deck(deck, get_theme(deck.theme_id), canvas_width=13.333, canvas_height=7.5)
    assert all(s.ok for s in plan.statuses)
    assert len(plan.pages_of("content")) == len(deck.slides)


def test_template_slide_ids_are_stable():
    ids = [s.id for s in template_deck("pitch_deck").slides]
    assert ids == ["pitch_deck-1", "pitch_deck-2", "pitch_deck-3", "pitch_deck-4"]
    assert ids == [s.id for s in template_deck("pitch_deck").slides]


def test_grid_lines_become_grid_items():
    metrics = template_deck("quarterly_review").slide("quarterly_review-2")
    assert metrics.layout == "grid_4"
    assert [(g.title, g.content) for g in metrics.grid_items] == [
        ("Revenue", "+20%"), ("Users", "+15%"), ("Churn", "-5%"), ("NPS", "72")]

    case = template_deck("education").slide("education-3")
    assert [(g.title, g.content) for g in case.grid_items] == [(None, "Scenario A"), (None, "Outcome A")]


def test_theme_id_is_passed_through():
    assert template_deck("education", theme_id="japanese").theme_id == "japanese"
    assert template_deck("education").theme_id is None


def test_unknown_template():
    with pytest.raises(KeyError):
        template_deck("wedding")


def test_available_templates():
    listing = available_templates()
    assert [t[0] for t in listing] == list(TEMPLATES)
    assert all(name and desc for _, name, desc in listing)
