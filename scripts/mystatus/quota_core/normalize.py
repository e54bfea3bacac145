"""Rewrite loosely structured provider reports into one canonical layout.

Every transform takes the report text and returns text. Input that does not
have the expected shape comes back unchanged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable

from quota_core.formatting import progress_bar
from quota_core.models import DerivedUsage, QueryResult

logger = logging.getLogger(__name__)

Normalizer = Callable[[str], str]

TOKEN_LIMIT_HEADER_RE = re.compile(r"(token limit|Token 限额)", re.IGNORECASE)
MONTHLY_QUOTA_HEADER_RE = re.compile(r"(MCP monthly quota|MCP 月度配额)", re.IGNORECASE)
USED_LINE_RE = re.compile(r"^\s*(Used:|已用[:：])")
RESET_LINE_RE = re.compile(r"^\s*(Resets in:|Quota resets:|重置[:：])")
INLINE_RESET_RE = re.compile(r"(Resets in:|Quota resets:|重置[:：])")
PLACEHOLDER_RE = re.compile(r"NaN|N/A", re.IGNORECASE)

QUOTA_LINE_RE = re.compile(
    r"^(.+?)\s+([█░]+)\s+(\d+)%\s+\(\s*([^/)]+?)\s*/\s*([^)]+?)\s*\)\s*$"
)
UNLIMITED_LINE_RE = re.compile(r"^(.+?)\s+Unlimited\s*$", re.IGNORECASE)
QUOTA_RESET_LINE_RE = re.compile(r"^(Quota resets|配额重置)\s*[:：]\s*(.+)$", re.IGNORECASE)

INLINE_SEPARATOR = " • "


def _find_used_line(lines: list[str], header_index: int) -> int:
    for index in range(header_index + 1, len(lines)):
        trimmed = lines[index].strip()
        if not trimmed:
            if index > header_index + 1:
                break
            continue
        if MONTHLY_QUOTA_HEADER_RE.search(trimmed):
            break
        if USED_LINE_RE.search(trimmed):
            return index
    return -1


def inject_derived_usage(content: str, usage: DerivedUsage | None) -> str:
    """Merge a derived used/total fact into the token limit section.

    An existing usable value is kept. A ``NaN``/``N/A`` placeholder is
    overwritten, and when the section has no used line at all one is inserted
    two lines below the section header.
    """
    if usage is None:
        return content

    lines = content.split("\n")
    header_index = next(
        (i for i, line in enumerate(lines) if TOKEN_LIMIT_HEADER_RE.search(line)),
        -1,
    )
    if header_index == -1:
        return content

    used_index = _find_used_line(lines, header_index)
    if used_index != -1 and not PLACEHOLDER_RE.search(lines[used_index]):
        return content

    if used_index != -1:
        indent_source = lines[used_index]
    else:
        indent_source = lines[min(header_index + 1, len(lines) - 1)]
    indent = re.match(r"\s*", indent_source).group(0)
    label = "已用:" if "已用" in content else "Used:"
    derived_line = f"{indent}{label} {usage.used} / {usage.total}"

    if used_index != -1:
        lines[used_index] = derived_line
    else:
        lines.insert(min(header_index + 2, len(lines)), derived_line)

    logger.debug("Merged derived usage %s/%s into token limit section", usage.used, usage.total)
    return "\n".join(lines)


def inline_reset_into_used_line(content: str) -> str:
    """Attach a standalone reset line to the used line above it."""
    lines = content.split("\n")

    index = 0
    while index < len(lines):
        current = lines[index].strip()
        if not USED_LINE_RE.search(current) or INLINE_RESET_RE.search(current):
            index += 1
            continue

        next_index = index + 1
        while next_index < len(lines) and not lines[next_index].strip():
            next_index += 1

        if next_index < len(lines):
            reset_text = lines[next_index].strip()
            if RESET_LINE_RE.search(reset_text):
                lines[index] = f"{current}{INLINE_SEPARATOR}{reset_text}"
                del lines[next_index]
        index += 1

    return "\n".join(lines)


def _extract_reset_countdown(lines: list[str]) -> tuple[int, str | None]:
    for index, line in enumerate(lines):
        match = QUOTA_RESET_LINE_RE.match(line.strip())
        if match:
            # "12 days (2026-11-01)" -> "12 days"
            return index, match.group(2).strip().split(" (")[0].strip()
    return -1, None


def compact_blank_lines(lines: Iterable[str]) -> list[str]:
    compacted: list[str] = []
    for line in lines:
        blank = not line.strip()
        if blank and (not compacted or not compacted[-1].strip()):
            continue
        compacted.append(line)

    while compacted and not compacted[-1].strip():
        compacted.pop()
    return compacted


def normalize_quota_lines(content: str, bar_width: int = 30) -> str:
    """Re-render one-line quota entries as label / bar / usage blocks.

    ``Premium ███░░ 42% (126/300)`` becomes three lines with a freshly drawn
    bar, and the first block's usage line carries the report's reset
    countdown.
    """
    lines = content.split("\n")
    reset_index, reset_countdown = _extract_reset_countdown(lines)

    normalized: list[str] = []
    reset_inlined = False
    previous_was_block = False

    def open_block() -> None:
        if previous_was_block and normalized and normalized[-1] != "":
            normalized.append("")

    for index, line in enumerate(lines):
        if index == reset_index:
            continue

        trimmed = line.strip()
        quota_match = QUOTA_LINE_RE.match(trimmed)
        if quota_match:
            label, _, percent_text, used, total = (part.strip() for part in quota_match.groups())
            percent = int(percent_text)
            open_block()

            used_line = f"Used: {used} / {total}"
            if reset_countdown and not reset_inlined:
                used_line += f"{INLINE_SEPARATOR}Resets in: {reset_countdown}"
                reset_inlined = True

            normalized.extend([label, f"{progress_bar(percent, bar_width)} {percent}% remaining", used_line])
            previous_was_block = True
            continue

        unlimited_match = UNLIMITED_LINE_RE.match(trimmed)
        if unlimited_match:
            open_block()
            normalized.extend([unlimited_match.group(1).strip(), "Unlimited"])
            previous_was_block = True
            continue

        normalized.append(line)
        previous_was_block = False

    return "\n".join(compact_blank_lines(normalized))


def apply_normalizers(result: QueryResult | None, normalizers: Iterable[Normalizer]) -> QueryResult | None:
    if result is None or not result.success or not result.output:
        return result

    output = result.output
    for normalizer in normalizers:
        output = normalizer(output)
    return result.with_output(output)
