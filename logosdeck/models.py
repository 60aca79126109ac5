from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

LayoutKind = Literal[
    "title",
    "bullets",
    "grid_2",
    "grid_3",
    "grid_4",
    "comparison",
    "flow",
    "center",
    "vision_layout",
]

ElementType = Literal["text", "shape", "image"]
ImageSource = Literal["generated", "crop"]


def _slide_id() -> str:
    return uuid.uuid4().hex[:8]


class _WireModel(BaseModel):
    # Accept the camelCase names emitted by the generator as well as field names.
    model_config = ConfigDict(populate_by_name=True)


class GridItem(_WireModel):
    title: str | None = None
    content: str


class Element(_WireModel):
    type: ElementType
    # Percent of the canvas, top-left origin. Not clamped.
    x: float
    y: float
    w: float
    h: float
    z_index: float | None = Field(default=None, alias="zIndex")
    content: str | None = None
    source: ImageSource | None = None
    color: str | None = None
    font_size: float | None = Field(default=None, alias="fontSize")


class Slide(_WireModel):
    id: str = Field(default_factory=_slide_id)
    title: str = ""
    layout: LayoutKind = "bullets"
    content: list[str] = Field(default_factory=list)
    grid_items: list[GridItem] | None = Field(default=None, alias="gridItems")
    elements: list[Element] | None = None
    speaker_notes: str = Field(default="", alias="speakerNotes")
    # Illustration reference (http(s) URL or data URL), attached after generation.
    image: str | None = None


class Deck(_WireModel):
    title: str = ""
    main_goal: str = Field(default="", alias="mainGoal")
    theme_id: str | None = Field(default=None, alias="themeId")
    # Source picture for image-derived decks; data URL or bare base64.
    original_image: str | None = Field(default=None, alias="originalImage")
    slides: list[Slide] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_slide_ids(self) -> "Deck":
        seen: set[str] = set()
        for s in self.slides:
            if s.id in seen:
                raise ValueError(f"Duplicate slide id: {s.id}")
            seen.add(s.id)
        return self

    def slide(self, slide_id: str) -> Slide:
        for s in self.slides:
            if s.id == slide_id:
                return s
        raise KeyError(slide_id)


class ThemeColors(_WireModel):
    primary: str = "#1E1B4B"
    secondary: str = "#4338CA"
    accent: str = "#6366F1"
    bg: str = "#FFFFFF"
    text_main: str = Field(default="#334155", alias="textMain")


class CustomTheme(_WireModel):
    """User-defined theme supplied inline instead of a catalogue id."""

    id: str = "custom"
    name: str = "Custom Theme"
    colors: ThemeColors = Field(default_factory=ThemeColors)
    font: str = "Inter"


class ExportRequest(_WireModel):
    deck: Deck
    theme: str | CustomTheme | None = Field(
        default=None, description="Theme id or an inline custom theme")


class IllustrateRequest(_WireModel):
    prompt: str = ""
    # With both set, the illustration is attached to that slide of the deck.
    deck: Deck | None = None
    slide_id: str | None = Field(default=None, alias="slideId")


class IllustrateResponse(_WireModel):
    image_url: str = Field(alias="imageUrl")
    deck: Deck | None = None
    condition: str | None = None
