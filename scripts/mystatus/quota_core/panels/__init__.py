"""Panel rendering helpers."""

from __future__ import annotations

from functools import lru_cache

from rich.color import ColorSystem
from rich.style import Style

TIER_STYLE = {
    "healthy": "green",
    "moderate": "yellow",
    "critical": "red",
    "unknown": "bright_black",
}

MUTED = "bright_black"
WARNING_GLYPH = "⚠️"

_color_system: ColorSystem | None = ColorSystem.STANDARD


def set_color_enabled(enabled: bool) -> None:
    global _color_system
    _color_system = ColorSystem.STANDARD if enabled else None


@lru_cache(maxsize=64)
def _style(spec: str) -> Style:
    return Style.parse(spec)


def paint(text: object, style: str) -> str:
    """Render ``text`` as an ANSI string in a rich style such as "bold cyan"."""
    return _style(style).render(str(text), color_system=_color_system)


def style_for_tier(tier: str) -> str:
    return TIER_STYLE.get(tier, MUTED)
