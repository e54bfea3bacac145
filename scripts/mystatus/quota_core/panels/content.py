"""Semantic coloring of normalized report lines."""

from __future__ import annotations

import re
from collections.abc import Callable

from quota_core.ansi import fit_line_to_width
from quota_core.formatting import EMPTY_CELL, FILLED_CELL
from quota_core.panels import MUTED, WARNING_GLYPH, paint, style_for_tier
from quota_core.panels.summary import tier_for

INDENT = "  "

QUOTA_CATEGORY_RE = re.compile(r"^(Premium|Chat|Completions)$", re.IGNORECASE)
FIRST_PERCENT_RE = re.compile(r"(\d+)%")
REMAINING_RE = re.compile(r"(\d+)% remaining")
USED_LABEL_RE = re.compile(r"Used:|已用[:：]")
RESET_LABEL_RE = re.compile(r"(Resets in:|Quota resets:|重置[:：])")


def format_progress_bar(text: str) -> str:
    """Color bar cells and the remaining percentage by health tier."""
    match = FIRST_PERCENT_RE.search(text)
    percent = int(match.group(1)) if match else 0
    tier = tier_for(percent)
    color = style_for_tier(tier)

    colored = re.sub(f"{FILLED_CELL}+", lambda m: paint(m.group(0), color), text)
    colored = re.sub(f"{EMPTY_CELL}+", lambda m: paint(m.group(0), MUTED), colored)

    def percent_fragment(m: re.Match) -> str:
        fragment = paint(f"{m.group(1)}%", f"bold {color}") + paint(" remaining", "white")
        if tier == "critical":
            fragment += " " + WARNING_GLYPH
        return fragment

    return REMAINING_RE.sub(percent_fragment, colored, count=1)


def _highlight_reset(text: str) -> str:
    return RESET_LABEL_RE.sub(lambda m: paint(m.group(1), "bold blue"), text, count=1)


def _account(line: str, trimmed: str) -> str:
    _, _, rest = line.partition(":")
    return INDENT + paint("Account:", "bold cyan") + paint(rest, "white")


def _quota_header(line: str, trimmed: str) -> str:
    return INDENT + paint(trimmed, "bold magenta")


def _bar(line: str, trimmed: str) -> str:
    return INDENT + format_progress_bar(trimmed)


def _used(line: str, trimmed: str) -> str:
    styled = USED_LABEL_RE.sub(lambda m: paint(m.group(0), "yellow"), trimmed, count=1)
    return INDENT + _highlight_reset(styled)


def _reset(line: str, trimmed: str) -> str:
    return INDENT + _highlight_reset(trimmed)


def _warning(line: str, trimmed: str) -> str:
    return INDENT + paint(trimmed, "yellow")


def _generic(line: str, trimmed: str) -> str:
    return INDENT + paint(trimmed, MUTED)


Rule = tuple[str, Callable[[str, str], bool], Callable[[str, str], str]]

# Evaluated in order; the first matching rule colors the line.
LINE_RULES: list[Rule] = [
    ("account", lambda line, t: line.startswith("Account:"), _account),
    (
        "quota_header",
        lambda line, t: "limit" in t or "quota" in t or bool(QUOTA_CATEGORY_RE.match(t)),
        _quota_header,
    ),
    ("bar", lambda line, t: FILLED_CELL in line or EMPTY_CELL in line, _bar),
    ("used", lambda line, t: "Used:" in t or "已用" in t, _used),
    ("reset", lambda line, t: "Resets in:" in t or "Quota resets:" in t or "重置" in t, _reset),
    ("warning", lambda line, t: WARNING_GLYPH in t, _warning),
    ("generic", lambda line, t: True, _generic),
]


RULE_TRANSFORMS = {name: transform for name, _, transform in LINE_RULES}


def classify(line: str) -> str:
    trimmed = line.strip()
    if not trimmed:
        return "blank"
    for name, matches, _ in LINE_RULES:
        if matches(line, trimmed):
            return name
    return "generic"


def colorize(line: str) -> str:
    kind = classify(line)
    if kind == "blank":
        return ""
    return RULE_TRANSFORMS[kind](line, line.strip())


def format_content(content: str, width: int) -> list[str]:
    lines = []
    for line in content.split("\n"):
        colored = colorize(line)
        lines.append(fit_line_to_width(colored, width) if colored else "")
    return lines
