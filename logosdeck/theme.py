from __future__ import annotations

import re
from dataclasses import dataclass, replace

from logosdeck.models import CustomTheme

RGB = tuple[int, int, int]

_HEX_RE = re.compile(r"^#?([0-9A-Fa-f]{6})$")

COLOR_ROLES = (
    "primary",
    "secondary",
    "accent",
    "background",
    "background_alt",
    "text_main",
    "text_light",
    "shape_fill",
)

DECOR_MOTIFS = ("modern", "organic", "bold", "none")


def _hex_to_rgb(value: str) -> RGB:
    m = _HEX_RE.match(value.strip())
    if not m:
        raise ValueError(f"Invalid hex color: {value}")
    v = m.group(1)
    return (int(v[0:2], 16), int(v[2:4], 16), int(v[4:6], 16))


@dataclass(frozen=True)
class Theme:
    id: str = "premium"
    name: str = "Premium"
    primary: RGB = (30, 27, 75)
    secondary: RGB = (67, 56, 202)
    accent: RGB = (99, 102, 241)
    background: RGB = (255, 255, 255)
    background_alt: RGB = (243, 244, 246)
    text_main: RGB = (51, 65, 85)
    text_light: RGB = (148, 163, 184)
    shape_fill: RGB = (238, 242, 255)
    font_main: str = "Helvetica Neue"
    font_heading: str = "Helvetica Neue"
    decor: str = "modern"
    background_file: str = "premium.jpg"

    def rgb(self, token: str | None, default: str = "text_main") -> RGB:
        """Resolve a colour token: a role name or a literal hex colour."""
        if token:
            t = token.strip()
            if t in COLOR_ROLES:
                return getattr(self, t)
            if t.lower() == "white":
                return (255, 255, 255)
            try:
                return _hex_to_rgb(t)
            except ValueError:
                pass
        if default in COLOR_ROLES:
            return getattr(self, default)
        return _hex_to_rgb(default)

    def font(self, role: str) -> str:
        return self.font_heading if role == "heading" else self.font_main


def _preset(theme_id: str, name: str, colors: dict[str, str], font: str, decor: str) -> Theme:
    return Theme(
        id=theme_id,
        name=name,
        primary=_hex_to_rgb(colors["primary"]),
        secondary=_hex_to_rgb(colors["secondary"]),
        accent=_hex_to_rgb(colors["accent"]),
        background=_hex_to_rgb(colors["bg"]),
        background_alt=_hex_to_rgb(colors["bgAlt"]),
        text_main=_hex_to_rgb(colors["textMain"]),
        text_light=_hex_to_rgb(colors["textLight"]),
        shape_fill=_hex_to_rgb(colors["shapeFill"]),
        font_main=font,
        font_heading=font,
        decor=decor,
        background_file=f"{theme_id}.jpg",
    )


THEME_PRESETS: dict[str, Theme] = {
    "premium": _preset(
        "premium", "Premium",
        {"primary": "1E1B4B", "secondary": "4338CA", "accent": "6366F1", "bg": "FFFFFF",
         "bgAlt": "F3F4F6", "textMain": "334155", "textLight": "94A3B8", "shapeFill": "EEF2FF"},
        "Helvetica Neue", "modern",
    ),
    "minimal": _preset(
        "minimal", "Minimal",
        {"primary": "000000", "secondary": "333333", "accent": "000000", "bg": "FFFFFF",
         "bgAlt": "FAFAFA", "textMain": "171717", "textLight": "737373", "shapeFill": "F5F5F5"},
        "Arial", "none",
    ),
    "nature": _preset(
        "nature", "Nature",
        {"primary": "14532D", "secondary": "166534", "accent": "22C55E", "bg": "FEFCE8",
         "bgAlt": "F0FDF4", "textMain": "3F3F46", "textLight": "71717A", "shapeFill": "DCFCE7"},
        "Georgia", "organic",
    ),
    "pop": _preset(
        "pop", "Pop",
        {"primary": "111827", "secondary": "DB2777", "accent": "F59E0B", "bg": "FFFBEB",
         "bgAlt": "FFF1F2", "textMain": "1F2937", "textLight": "6B7280", "shapeFill": "FCE7F3"},
        "Verdana", "bold",
    ),
    "cyber": _preset(
        "cyber", "Cyber",
        {"primary": "0F172A", "secondary": "3B82F6", "accent": "06B6D4", "bg": "020617",
         "bgAlt": "1E293B", "textMain": "E2E8F0", "textLight": "94A3B8", "shapeFill": "1E293B"},
        "Courier New", "modern",
    ),
    "luxury": _preset(
        "luxury", "Luxury",
        {"primary": "1C1917", "secondary": "78716C", "accent": "DCA54C", "bg": "0C0A09",
         "bgAlt": "1C1917", "textMain": "F5F5F4", "textLight": "A8A29E", "shapeFill": "292524"},
        "Times New Roman", "modern",
    ),
    "japanese": _preset(
        "japanese", "Japanese",
        {"primary": "451A03", "secondary": "92400E", "accent": "B91C1C", "bg": "FFFAF0",
         "bgAlt": "FEF2F2", "textMain": "451A03", "textLight": "78350F", "shapeFill": "FFEDD5"},
        "Yu Mincho", "organic",
    ),
    "sky": _preset(
        "sky", "Sky",
        {"primary": "0369A1", "secondary": "0EA5E9", "accent": "38BDF8", "bg": "F0F9FF",
         "bgAlt": "E0F2FE", "textMain": "0C4A6E", "textLight": "38BDF8", "shapeFill": "E0F2FE"},
        "Helvetica", "organic",
    ),
}

DEFAULT_THEME_ID = "premium"


def get_theme(theme_id: str | None) -> Theme:
    if not theme_id:
        return THEME_PRESETS[DEFAULT_THEME_ID]
    key = theme_id.strip().lower()
    return THEME_PRESETS.get(key, THEME_PRESETS[DEFAULT_THEME_ID])


def theme_from_custom(custom: CustomTheme) -> Theme:
    """Build a Theme from the customiser's reduced palette.

    Roles the customiser does not expose (alt background, light text, shape
    fill) are inherited from the default theme; invalid colours keep the
    default for that role.
    """
    base = THEME_PRESETS[DEFAULT_THEME_ID]

    def pick(value: str, fallback: RGB) -> RGB:
        try:
            return _hex_to_rgb(value)
        except ValueError:
            return fallback

    c = custom.colors
    return replace(
        base,
        id=custom.id,
        name=custom.name,
        primary=pick(c.primary, base.primary),
        secondary=pick(c.secondary, base.secondary),
        accent=pick(c.accent, base.accent),
        background=pick(c.bg, base.background),
        text_main=pick(c.text_main, base.text_main),
        font_main=custom.font,
        font_heading=custom.font,
        background_file="",
    )


def resolve_theme(token: str | Theme | CustomTheme | None) -> Theme:
    if isinstance(token, Theme):
        return token
    if isinstance(token, CustomTheme):
        return theme_from_custom(token)
    return get_theme(token)


def available_themes() -> list[str]:
    return sorted(THEME_PRESETS.keys())
