"""Report health classification and the summary block."""

from __future__ import annotations

import re

from quota_core.models import Health, ProviderReport
from quota_core.panels import MUTED, WARNING_GLYPH, paint, style_for_tier

PERCENT_RE = re.compile(r"(\d+)%")
STATUS_DOT = "●"

HEALTHY_MIN = 70
MODERATE_MIN = 40


def tier_for(percent: int | None) -> str:
    if percent is None:
        return "unknown"
    if percent >= HEALTHY_MIN:
        return "healthy"
    if percent >= MODERATE_MIN:
        return "moderate"
    return "critical"


def summarize(content: str) -> Health:
    """Classify a report by the lowest percentage mentioned anywhere in it."""
    percents = [int(match) for match in PERCENT_RE.findall(content)]
    lowest = min(percents) if percents else None
    return Health(percent=lowest, tier=tier_for(lowest))


def status_line(report: ProviderReport) -> str:
    health = summarize(report.content)
    style = style_for_tier(health.tier)

    line = "  " + paint(STATUS_DOT, style) + " " + paint(f"{report.icon} {report.short_title}", "white")
    if health.percent is None:
        return line
    if health.tier == "critical":
        return line + " " + paint(f"({health.percent}% {WARNING_GLYPH})", "bold red")
    return line + " " + paint(f"({health.percent}%)", style)


def summary_lines(reports: list[ProviderReport]) -> list[str]:
    lines = [
        paint("📊 Summary", "bold white"),
        "",
        paint("  Active platforms: ", MUTED) + paint(len(reports), "bold green"),
    ]
    lines.extend(status_line(report) for report in reports)
    lines.append("")
    return lines
