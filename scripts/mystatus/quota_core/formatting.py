"""Shared text and time formatting helpers for human-facing panels."""

from __future__ import annotations

import math
from datetime import datetime

FILLED_CELL = "█"
EMPTY_CELL = "░"
DEFAULT_BAR_WIDTH = 30


def progress_bar(percent: float, width: int = DEFAULT_BAR_WIDTH) -> str:
    safe_percent = max(0.0, min(100.0, float(percent)))
    # Half cells round up.
    filled = math.floor(safe_percent * width / 100 + 0.5)
    return FILLED_CELL * filled + EMPTY_CELL * (width - filled)


def format_countdown(seconds: float | int | None) -> str:
    if seconds is None:
        return ""

    remaining = max(0, int(seconds))
    minutes, secs = divmod(remaining, 60)
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"


def format_header_date(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return now.strftime("%a, %b %d, %Y, %I:%M %p")


def format_clock(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return now.strftime("%I:%M:%S %p")


def plural(count: int, word: str) -> str:
    return word if count == 1 else f"{word}s"
