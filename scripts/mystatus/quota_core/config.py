"""Dashboard configuration: CLI values, user config merging and validation."""

from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

from quota_core.layout import MIN_WIDTH
from quota_core.models import RenderConfig

DEFAULT_INTERVAL_MINUTES = 5
SECTIONS = ["header", "summary", "dashboard", "footer"]

SECTION_ALIASES = {
    "header": "show_header",
    "summary": "show_summary",
    "dashboard": "show_account_quota",
    "account-quota": "show_account_quota",
    "accountquota": "show_account_quota",
    "footer": "show_footer",
}


class ConfigError(ValueError):
    """Invalid command line or config file value."""


def env_config_path() -> str | None:
    return os.environ.get("MYSTATUS_CONFIG") or None


def load_user_config(path: str | None) -> dict:
    if not path:
        return {}

    config_path = Path(path).expanduser()
    if not config_path.exists():
        raise ConfigError(f"config path not found: {config_path}")

    try:
        data = json.loads(config_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigError(f"invalid JSON config: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"cannot read config {config_path}: {exc.strerror or exc}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"config must be a JSON object: {config_path}")
    return data


def parse_interval(value: Any) -> int:
    try:
        interval = int(str(value).strip())
    except ValueError:
        interval = 0
    if interval < 1:
        raise ConfigError("Interval must be a positive number")
    return interval


def parse_width(value: Any) -> int:
    try:
        width = int(str(value).strip())
    except ValueError:
        width = 0
    if width < MIN_WIDTH:
        raise ConfigError(f"Width must be a number >= {MIN_WIDTH}")
    return width


def parse_sections(value: str | list[str]) -> RenderConfig:
    """Build a config showing only the named dashboard regions."""
    raw = value.split(",") if isinstance(value, str) else [str(v) for v in value]
    sections = [s.strip().lower() for s in raw if s.strip()]
    if not sections:
        raise ConfigError("--show must include at least one section")

    unknown = [s for s in sections if s not in SECTION_ALIASES]
    if unknown:
        raise ConfigError(
            f"Unknown section(s): {', '.join(unknown)}. Valid values: {','.join(SECTIONS)}"
        )

    flags = {field: False for field in set(SECTION_ALIASES.values())}
    for section in sections:
        flags[SECTION_ALIASES[section]] = True
    return RenderConfig(**flags)


def _sections_from_user_config(show: Any) -> RenderConfig | None:
    if isinstance(show, dict):
        # disable map: {"footer": false}
        unknown = [s for s in show if s not in SECTION_ALIASES]
        if unknown:
            raise ConfigError(f"Unknown section(s) in config: {', '.join(unknown)}")
        flags = {SECTION_ALIASES[s]: bool(keep) for s, keep in show.items()}
        return RenderConfig(**flags)
    if isinstance(show, (list, str)):
        return parse_sections(show)
    return None


def resolve_config(
    show: str | None = None,
    width: str | int | None = None,
    interval: str | int | None = None,
    config_path: str | None = None,
) -> tuple[RenderConfig, int, dict]:
    """Merge CLI values over the optional JSON config file.

    Returns the render config, the polling interval in minutes and the raw
    user config (for provider query paths).
    """
    user_config = load_user_config(config_path)

    render = RenderConfig()
    if show is not None:
        render = parse_sections(show)
    elif "show" in user_config:
        render = _sections_from_user_config(user_config["show"]) or render

    width_value = width if width is not None else user_config.get("width")
    if width_value is not None:
        render = replace(render, max_width=parse_width(width_value))

    interval_value = interval if interval is not None else user_config.get("interval", DEFAULT_INTERVAL_MINUTES)
    return render, parse_interval(interval_value), user_config
