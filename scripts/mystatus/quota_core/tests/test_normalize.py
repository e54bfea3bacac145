from __future__ import annotations

import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from quota_core.formatting import progress_bar  # noqa: E402
from quota_core.models import DerivedUsage, QueryResult  # noqa: E402
from quota_core.normalize import (  # noqa: E402
    apply_normalizers,
    inject_derived_usage,
    inline_reset_into_used_line,
    normalize_quota_lines,
)

ZAI_REPORT = "\n".join(
    [
        "Account: 9c1f****abcd (Z.ai)",
        "",
        "5-hour token limit",
        "  ██████████████░░░░░░░░░░░░░░░░ 45% remaining",
        "  Used: NaN / N/A",
        "  Resets in: 2h 14m",
        "",
        "MCP monthly quota",
        "  Used: 12 / 100",
        "",
        "  Resets in: 18 days",
    ]
)

COPILOT_REPORT = "\n".join(
    [
        "Account: octocat (GitHub Copilot)",
        "",
        "Premium ████████░░░░░░░░░░░░ 42% (126/300)",
        "Chat Unlimited",
        "Completions Unlimited",
        "",
        "",
        "Quota resets: 12 days (2026-11-01)",
        "",
    ]
)


class DerivedUsageInjectionTests(unittest.TestCase):
    def test_overwrites_placeholder(self):
        merged = inject_derived_usage(ZAI_REPORT, DerivedUsage(used=42, total=100))
        original_lines = ZAI_REPORT.split("\n")
        merged_lines = merged.split("\n")
        self.assertEqual(merged_lines[4], "  Used: 42 / 100")
        self.assertEqual(len(merged_lines), len(original_lines))
        for index, line in enumerate(original_lines):
            if index != 4:
                self.assertEqual(merged_lines[index], line)

    def test_keeps_existing_numeric_value(self):
        content = "Token limit\n  Used: 120 / 500\n  Resets in: 1h"
        self.assertEqual(inject_derived_usage(content, DerivedUsage(used=42, total=100)), content)

    def test_no_usage_is_identity(self):
        self.assertEqual(inject_derived_usage(ZAI_REPORT, None), ZAI_REPORT)

    def test_missing_header_is_identity(self):
        content = "Account: x\nUsed: NaN / N/A"
        self.assertEqual(inject_derived_usage(content, DerivedUsage(used=1, total=2)), content)

    def test_inserts_two_lines_below_header_when_missing(self):
        content = "Token limit\n  ███░░ 60% remaining\n\nMCP monthly quota\n  Used: 3 / 100"
        merged = inject_derived_usage(content, DerivedUsage(used=7, total=50))
        self.assertEqual(
            merged.split("\n"),
            ["Token limit", "  ███░░ 60% remaining", "  Used: 7 / 50", "", "MCP monthly quota", "  Used: 3 / 100"],
        )

    def test_stops_at_competing_header(self):
        content = "Token limit\nMCP monthly quota\n  Used: NaN / N/A"
        merged = inject_derived_usage(content, DerivedUsage(used=5, total=10))
        self.assertEqual(merged.split("\n")[2], "Used: 5 / 10")
        self.assertEqual(merged.split("\n")[3], "  Used: NaN / N/A")

    def test_localized_label(self):
        content = "Token 限额\n  已用: NaN / N/A"
        merged = inject_derived_usage(content, DerivedUsage(used=8, total=80))
        self.assertEqual(merged, "Token 限额\n  已用: 8 / 80")


class ResetInliningTests(unittest.TestCase):
    def test_reset_line_is_appended_and_removed(self):
        content = "Token limit\n  Used: 42 / 100\n  Resets in: 2h 14m\nfooter"
        self.assertEqual(
            inline_reset_into_used_line(content),
            "Token limit\nUsed: 42 / 100 • Resets in: 2h 14m\nfooter",
        )

    def test_looks_past_blank_lines(self):
        content = "Used: 12 / 100\n\n  Resets in: 18 days"
        self.assertEqual(inline_reset_into_used_line(content), "Used: 12 / 100 • Resets in: 18 days\n")

    def test_localized_markers(self):
        content = "已用: 1 / 2\n重置: 3 小时"
        self.assertEqual(inline_reset_into_used_line(content), "已用: 1 / 2 • 重置: 3 小时")

    def test_used_line_without_reset_untouched(self):
        content = "  Used: 1 / 2\nsomething else"
        self.assertEqual(inline_reset_into_used_line(content), content)

    def test_idempotent(self):
        samples = [
            ZAI_REPORT,
            "Used: 1 / 2\nResets in: a\nResets in: b",
            "Used: 1 / 2\n\n\nQuota resets: soon\nUsed: 3 / 4",
            "",
        ]
        for content in samples:
            once = inline_reset_into_used_line(content)
            self.assertEqual(inline_reset_into_used_line(once), once)


class QuotaLineRenderingTests(unittest.TestCase):
    def test_rewrites_quota_and_unlimited_lines(self):
        normalized = normalize_quota_lines(COPILOT_REPORT)
        self.assertEqual(
            normalized.split("\n"),
            [
                "Account: octocat (GitHub Copilot)",
                "",
                "Premium",
                progress_bar(42, 30) + " 42% remaining",
                "Used: 126 / 300 • Resets in: 12 days",
                "",
                "Chat",
                "Unlimited",
                "",
                "Completions",
                "Unlimited",
            ],
        )

    def test_reset_countdown_only_on_first_block(self):
        content = "A ██░░ 50% (1/2)\nB ░░░░ 0% (0/5)\nQuota resets: 3 days"
        lines = normalize_quota_lines(content).split("\n")
        self.assertEqual(lines[2], "Used: 1 / 2 • Resets in: 3 days")
        self.assertEqual(lines[6], "Used: 0 / 5")

    def test_passthrough_without_quota_lines(self):
        self.assertEqual(normalize_quota_lines("Account: x\nsome note"), "Account: x\nsome note")

    def test_no_consecutive_or_trailing_blank_lines(self):
        samples = [COPILOT_REPORT, "\n\n\n", "a\n\n\nb\n\n", "X Unlimited\n\n\nY Unlimited\n \n"]
        for content in samples:
            lines = normalize_quota_lines(content).split("\n")
            for previous, current in zip(lines, lines[1:]):
                self.assertFalse(not previous.strip() and not current.strip(), content)
            if lines != [""]:
                self.assertTrue(lines[-1].strip(), content)


class ProgressBarTests(unittest.TestCase):
    def test_bounds(self):
        self.assertEqual(progress_bar(0, 30), "░" * 30)
        self.assertEqual(progress_bar(100, 30), "█" * 30)
        self.assertEqual(progress_bar(250, 30), "█" * 30)
        self.assertEqual(progress_bar(-5, 30), "░" * 30)

    def test_half(self):
        self.assertEqual(progress_bar(50, 30).count("█"), 15)
        self.assertEqual(len(progress_bar(50, 30)), 30)

    def test_half_cells_round_up(self):
        self.assertEqual(progress_bar(15, 30).count("█"), 5)


class ApplyNormalizersTests(unittest.TestCase):
    def test_failed_results_pass_through(self):
        failed = QueryResult(success=False, error="boom")
        self.assertIs(apply_normalizers(failed, [str.upper]), failed)
        self.assertIsNone(apply_normalizers(None, [str.upper]))

    def test_success_output_rewritten(self):
        result = apply_normalizers(QueryResult(success=True, output="abc"), [str.upper, lambda s: s + "!"])
        self.assertEqual(result, QueryResult(success=True, output="ABC!"))


if __name__ == "__main__":
    unittest.main()
