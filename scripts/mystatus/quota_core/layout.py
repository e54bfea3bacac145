"""Render width selection and line centering by terminal width."""

from __future__ import annotations

from rich.console import Console

from quota_core.ansi import fit_line_to_width, visible_width

MIN_WIDTH = 20
RULE_CHAR = "─"


def terminal_width(console: Console | None = None) -> int:
    console = console or Console()
    return max(1, console.size.width)


def render_width(max_width: int | None = None, terminal: int | None = None) -> int:
    columns = terminal if terminal is not None else terminal_width()
    if not max_width:
        return columns

    floor = min(MIN_WIDTH, columns)
    return max(floor, min(max_width, columns))


def center_text(text: str, width: int) -> str:
    if width <= 0:
        return ""

    display = fit_line_to_width(text, width)
    padding = max(0, width - visible_width(display))
    left = padding // 2
    right = padding - left
    return " " * left + display + " " * right


def rule(width: int) -> str:
    return RULE_CHAR * max(0, width)
