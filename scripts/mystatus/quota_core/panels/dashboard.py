"""Frame assembly: header, summary, provider sections, errors and footer."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from quota_core.ansi import fit_line_to_width
from quota_core.formatting import format_clock, format_header_date, plural
from quota_core.layout import center_text, rule
from quota_core.models import Frame, ProviderReport, RenderConfig
from quota_core.panels import MUTED, paint
from quota_core.panels.content import format_content
from quota_core.panels.summary import summary_lines

TITLE = "AI ACCOUNT QUOTA DASHBOARD"
FOOTER_SEPARATOR = " • "

SUPPORTED_PLATFORMS = (
    "OpenAI (Plus/Team/Pro subscriptions)",
    "Zhipu AI (Coding Plan)",
    "Z.ai (Coding Plan)",
    "Google Cloud (Antigravity)",
    "GitHub Copilot",
)


def header_lines(width: int, watch: bool = False, interval: int | None = None, now: datetime | None = None) -> list[str]:
    inner = max(4, width) - 2
    border = "bold cyan"
    side = paint("│", border)

    lines = [
        paint("┌" + "─" * inner + "┐", border),
        side + paint(center_text(TITLE, inner), "bold white") + side,
        side + paint(center_text(format_header_date(now), inner), MUTED) + side,
    ]
    if watch and interval:
        banner = f"🔄 Watch Mode • Updating every {interval} {plural(interval, 'minute')}"
        lines.append(side + paint(center_text(banner, inner), "yellow") + side)
    lines.append(paint("└" + "─" * inner + "┘", border))
    lines.append("")
    return lines


def section_lines(report: ProviderReport, width: int) -> list[str]:
    lines = [
        "",
        paint(f"{report.icon}  {report.title}", "bold white"),
        paint(rule(width), MUTED),
    ]
    lines.extend(format_content(report.content, width))
    return lines


def error_lines(errors: list[str], width: int) -> list[str]:
    lines = [
        "",
        paint("❌ Errors occurred:", "bold red"),
        paint(rule(width), MUTED),
    ]
    lines.extend(paint(f"  • {error}", "red") for error in errors)
    return lines


def footer_line(updated_at: datetime, countdown: str = "", watch: bool = False) -> str:
    parts = [paint("  Last updated: ", MUTED) + paint(format_clock(updated_at), "white")]
    if watch and countdown:
        parts.append(paint("  Next update in: ", MUTED) + paint(countdown, "cyan"))
    if watch:
        parts.append(paint("  Press Ctrl+C to exit", MUTED))
    return paint(FOOTER_SEPARATOR, MUTED).join(parts)


def footer_lines(width: int, updated_at: datetime, countdown: str = "", watch: bool = False) -> list[str]:
    return ["", paint(rule(width), MUTED), footer_line(updated_at, countdown, watch), ""]


def empty_lines() -> list[str]:
    lines = [
        "",
        paint("⚠️  No configured accounts found", "bold yellow"),
        "",
        paint("Supported platforms:", MUTED),
    ]
    lines.extend(paint(f"  • {name}", MUTED) for name in SUPPORTED_PLATFORMS)
    return lines


def credential_error_lines(path: Path | str, message: str) -> list[str]:
    return [
        "",
        paint("❌ Error reading auth file", "bold red"),
        paint(str(path), MUTED),
        paint(message, "yellow"),
    ]


def querying_line(width: int) -> str:
    return fit_line_to_width(paint("⟳ Querying all platforms...", MUTED), width)


def _fit_all(lines: list[str], width: int) -> list[str]:
    return [fit_line_to_width(line, width) for line in lines]


def assemble(
    reports: list[ProviderReport],
    errors: list[str],
    config: RenderConfig,
    width: int,
    watch: bool = False,
    interval: int | None = None,
    countdown: str = "",
    now: datetime | None = None,
) -> Frame:
    """Build one dashboard frame; every line is fitted to ``width``."""
    now = now or datetime.now()
    lines: list[str] = []

    if config.show_header:
        lines.extend(header_lines(width, watch, interval, now))

    if not reports and not errors:
        lines.extend(empty_lines())
        has_footer = watch and config.show_footer
        if has_footer:
            lines.extend(footer_lines(width, now, countdown, watch))
        return Frame(_fit_all(lines, width), has_footer=has_footer, updated_at=now)

    if config.show_summary:
        lines.extend(summary_lines(reports))

    if config.show_account_quota:
        for report in reports:
            lines.extend(section_lines(report, width))

    if errors:
        lines.extend(error_lines(errors, width))

    if config.show_footer:
        lines.extend(footer_lines(width, now, countdown, watch))

    return Frame(_fit_all(lines, width), has_footer=config.show_footer, updated_at=now)


def assemble_credential_error(
    config: RenderConfig,
    width: int,
    path: Path | str,
    message: str,
    watch: bool = False,
    interval: int | None = None,
    now: datetime | None = None,
) -> Frame:
    now = now or datetime.now()
    lines: list[str] = []
    if config.show_header:
        lines.extend(header_lines(width, watch, interval, now))
    lines.extend(credential_error_lines(path, message))
    return Frame(_fit_all(lines, width), has_footer=False, updated_at=now)
