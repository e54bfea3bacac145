"""Z.ai token usage fetched from the quota limit API (fail-soft)."""

from __future__ import annotations

import logging
import math
import re
from typing import Any

import requests

from quota_core.models import DerivedUsage

logger = logging.getLogger(__name__)

QUOTA_LIMIT_URL = "https://api.z.ai/api/monitor/usage/quota/limit"
REQUEST_TIMEOUT = 10  # seconds
USER_AGENT = "OpenCode-Status-Plugin/1.0"

USED_FIELDS = ("currentValue", "current_value", "used", "usedValue", "used_value")
TOTAL_FIELDS = (
    "usage",
    "total",
    "limit",
    "quota",
    "max",
    "entitlement",
    "totalValue",
    "total_value",
)

LEADING_NUMBER_RE = re.compile(r"^-?\d+(?:\.\d+)?")


def parse_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else None
    if not isinstance(value, str):
        return None

    text = value.strip().replace(",", "")
    if not text:
        return None
    try:
        number = float(text)
    except ValueError:
        match = LEADING_NUMBER_RE.match(text)
        if not match:
            return None
        number = float(match.group(0))
    return number if math.isfinite(number) else None


def first_number(record: dict, keys: tuple[str, ...]) -> float | None:
    for key in keys:
        if key not in record:
            continue
        number = parse_number(record[key])
        if number is not None:
            return number
    return None


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def parse_token_usage(payload: Any) -> DerivedUsage | None:
    """Extract the TOKENS_LIMIT used/total pair from a quota limit response."""
    if not isinstance(payload, dict):
        return None
    if payload.get("success") is not True or parse_number(payload.get("code")) != 200:
        return None

    data = payload.get("data")
    if not isinstance(data, dict) or not isinstance(data.get("limits"), list):
        return None

    tokens_limit = next(
        (item for item in data["limits"] if isinstance(item, dict) and item.get("type") == "TOKENS_LIMIT"),
        None,
    )
    if tokens_limit is None:
        return None

    used = first_number(tokens_limit, USED_FIELDS)
    total = first_number(tokens_limit, TOTAL_FIELDS)
    if used is not None and total is not None and _round(total) > 0:
        rounded_total = _round(total)
        return DerivedUsage(used=max(0, min(_round(used), rounded_total)), total=rounded_total)

    percent = parse_number(tokens_limit.get("percentage"))
    if percent is None:
        return None
    return DerivedUsage(used=_round(max(0.0, min(100.0, percent))), total=100)


def fetch_derived_token_usage(credential: Any, timeout: float = REQUEST_TIMEOUT) -> DerivedUsage | None:
    if not isinstance(credential, dict) or credential.get("type") != "api" or not credential.get("key"):
        return None

    headers = {
        "Authorization": credential["key"],
        "Content-Type": "application/json",
        "User-Agent": USER_AGENT,
    }

    try:
        response = requests.get(QUOTA_LIMIT_URL, headers=headers, timeout=timeout)
    except requests.RequestException as exc:
        logger.debug("Z.ai quota limit request failed: %s", exc)
        return None

    if not response.ok:
        logger.debug("Z.ai quota limit request returned HTTP %s", response.status_code)
        return None

    try:
        payload = response.json()
    except ValueError as exc:
        logger.debug("Z.ai quota limit response is not JSON: %s", exc)
        return None

    usage = parse_token_usage(payload)
    if usage is None:
        logger.debug("Z.ai quota limit response has no usable TOKENS_LIMIT entry")
    return usage
