from __future__ import annotations

import logging
from datetime import date

from logosdeck.errors import LayoutError
from logosdeck.layout.geometry import DeckPlan, PagePlan, SlideStatus
from logosdeck.layout.resolver import (LayoutOptions, attach_furniture,
                                       content_furniture, resolve_agenda_page,
                                       resolve_closing_page, resolve_fallback,
                                       resolve_slide, resolve_title_page)
from logosdeck.models import Deck
from logosdeck.theme import Theme

logger = logging.getLogger(__name__)


def plan_deck(
    deck: Deck,
    theme: Theme,
    *,
    canvas_width: float,
    canvas_height: float,
    today: date | None = None,
    has_background: bool = False,
    options: LayoutOptions | None = None,
    agenda_threshold: int = 2,
    confidential_label: str = "CONFIDENTIAL",
) -> DeckPlan:
    """Lay out every page of the deck.

    Page order is title, agenda (only when the deck has more than
    ``agenda_threshold`` slides), one page per slide, closing. A slide whose
    layout cannot be resolved is replaced by a fallback block and reported in
    ``DeckPlan.statuses``; the rest of the deck is unaffected.
    """
    options = options or LayoutOptions()
    date_text = (today or date.today()).isoformat()
    w, h = canvas_width, canvas_height

    pages: list[PagePlan] = [
        PagePlan(
            kind="title",
            geometry=resolve_title_page(deck, theme.decor, w, h, has_background=has_background),
            background="background_alt",
        )
    ]

    total = len(deck.slides)
    if total > agenda_threshold:
        pages.append(PagePlan(kind="agenda", geometry=resolve_agenda_page(deck, w, h),
                              background="background_alt"))

    statuses: list[SlideStatus] = []
    for i, slide in enumerate(deck.slides):
        try:
            geometry = resolve_slide(slide, w, h, options)
            statuses.append(SlideStatus(slide_id=slide.id))
        except LayoutError as e:
            logger.warning("Slide %s (%s) fell back to a plain layout: %s", slide.id, slide.layout, e)
            geometry = resolve_fallback(slide, str(e), w, h)
            statuses.append(SlideStatus(slide_id=slide.id, ok=False, error=str(e)))

        furniture = content_furniture(i, total, w, h, date_text=date_text, label=confidential_label)
        pages.append(
            PagePlan(
                kind="content",
                geometry=attach_furniture(geometry, furniture),
                index=i,
                total=total,
                progress=(i + 1) / total,
            )
        )

    pages.append(PagePlan(kind="closing", geometry=resolve_closing_page(w, h), background="primary"))

    return DeckPlan(
        title=deck.title,
        canvas_width=w,
        canvas_height=h,
        pages=tuple(pages),
        statuses=tuple(statuses),
    )
