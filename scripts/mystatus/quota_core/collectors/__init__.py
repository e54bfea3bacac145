"""Credential store access, query fan-out and result partitioning."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Any

from quota_core.models import DerivedUsage, ProviderReport, QueryResult
from quota_core.normalize import apply_normalizers

logger = logging.getLogger(__name__)

DEFAULT_AUTH_PATH = Path.home() / ".local" / "share" / "opencode" / "auth.json"
MISSING_CONFIG_MARKERS = ("ENOENT", "no such file")


class CredentialReadError(OSError):
    def __init__(self, path: Path, message: str):
        super().__init__(message)
        self.path = path
        self.message = message


def env_auth_path() -> Path:
    override = os.environ.get("OPENCODE_AUTH_FILE")
    return Path(override).expanduser() if override else DEFAULT_AUTH_PATH


def read_credentials(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise CredentialReadError(path, str(exc)) from exc
    except json.JSONDecodeError as exc:
        raise CredentialReadError(path, f"invalid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise CredentialReadError(path, "credential store must be a JSON object")
    return data


def is_missing_config_error(error: str) -> bool:
    return any(marker in error for marker in MISSING_CONFIG_MARKERS)


def partition_results(
    results: Sequence[tuple[Any, QueryResult | None]],
) -> tuple[list[ProviderReport], list[str]]:
    """Split query results into renderable reports and surfaced errors.

    ``results`` pairs each provider (anything with key/title/icon) with its
    result. Unconfigured providers and providers whose local config file is
    missing are dropped silently.
    """
    reports: list[ProviderReport] = []
    errors: list[str] = []
    for provider, result in results:
        if result is None:
            continue
        if result.success and result.output:
            reports.append(ProviderReport(provider.key, provider.title, provider.icon, result.output))
        elif not result.success and result.error:
            if is_missing_config_error(result.error):
                logger.debug("%s not configured: %s", provider.key, result.error)
                continue
            errors.append(result.error)
    return reports, errors


def _settle(provider_key: str, future: Future) -> QueryResult | None:
    try:
        return future.result()
    except Exception as exc:  # noqa: BLE001
        logger.warning("%s query raised: %s", provider_key, exc)
        return QueryResult(success=False, error=f"{provider_key}: {exc}")


def collect_all(
    credentials: dict[str, Any],
    providers: Sequence[Any],
    derived_fetch: Callable[[Any], DerivedUsage | None] | None = None,
    derived_key: str = "zai",
) -> tuple[list[ProviderReport], list[str]]:
    """Query every configured provider concurrently and normalize the results.

    All queries (and the derived usage fetch) settle before anything is
    returned.
    """
    active = [p for p in providers if p.query is not None]
    derived_provider = next((p for p in active if p.key == derived_key), None)

    with ThreadPoolExecutor(max_workers=max(1, len(active) + 1)) as pool:
        futures = {p.key: pool.submit(p.run, credentials) for p in active}
        derived_future = None
        if derived_fetch is not None and derived_provider is not None:
            derived_future = pool.submit(derived_fetch, derived_provider.credential(credentials))

    derived: DerivedUsage | None = None
    if derived_future is not None:
        try:
            derived = derived_future.result()
        except Exception as exc:  # noqa: BLE001
            logger.warning("derived usage fetch raised: %s", exc)

    settled = []
    for provider in providers:
        if provider.query is None:
            settled.append((provider, None))
            continue
        result = _settle(provider.key, futures[provider.key])
        settled.append((provider, apply_normalizers(result, provider.normalizers_for(derived))))
    return partition_results(settled)
