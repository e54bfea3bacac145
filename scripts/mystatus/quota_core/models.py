"""Shared model contracts for the quota dashboard data flow."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class QueryResult:
    success: bool
    output: str | None = None
    error: str | None = None

    def with_output(self, output: str) -> "QueryResult":
        return replace(self, output=output)


@dataclass(frozen=True)
class DerivedUsage:
    """Numeric used/total fact fetched outside a provider's text report."""

    used: int
    total: int

    def __post_init__(self) -> None:
        if self.total <= 0:
            raise ValueError(f"total must be positive: {self.total}")
        if not 0 <= self.used <= self.total:
            raise ValueError(f"used must be within [0, {self.total}]: {self.used}")


@dataclass(frozen=True)
class RenderConfig:
    show_header: bool = True
    show_summary: bool = True
    show_account_quota: bool = True
    show_footer: bool = True
    max_width: int | None = None


@dataclass
class ProviderReport:
    key: str
    title: str
    icon: str
    content: str

    @property
    def short_title(self) -> str:
        return self.title.replace(" Account Quota", "")

    def to_dict(self) -> dict[str, Any]:
        return {
            "key": self.key,
            "title": self.title,
            "icon": self.icon,
            "content": self.content,
        }


@dataclass(frozen=True)
class Health:
    percent: int | None
    tier: str


@dataclass
class Frame:
    lines: list[str] = field(default_factory=list)
    has_footer: bool = False
    updated_at: datetime = field(default_factory=datetime.now)

    def render(self) -> str:
        return "\n".join(self.lines) + "\n"
