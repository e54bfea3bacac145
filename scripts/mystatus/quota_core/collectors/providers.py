"""Provider registry and query function resolution."""

from __future__ import annotations

import importlib
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from functools import partial
from typing import Any

from quota_core.config import ConfigError
from quota_core.models import DerivedUsage, QueryResult
from quota_core.normalize import (
    Normalizer,
    inject_derived_usage,
    inline_reset_into_used_line,
    normalize_quota_lines,
)

logger = logging.getLogger(__name__)

QueryFn = Callable[[Any], QueryResult | None]


@dataclass(frozen=True)
class Provider:
    key: str
    title: str
    icon: str
    auth_key: str | None = None
    query: QueryFn | None = None
    normalizers: tuple[Normalizer, ...] = ()
    uses_derived_usage: bool = False

    def credential(self, credentials: dict[str, Any]) -> Any:
        if self.auth_key is None:
            return None
        return credentials.get(self.auth_key)

    def run(self, credentials: dict[str, Any]) -> QueryResult | None:
        if self.query is None:
            return None
        return self.query(self.credential(credentials))

    def normalizers_for(self, derived: DerivedUsage | None) -> list[Normalizer]:
        steps = list(self.normalizers)
        if self.uses_derived_usage:
            steps.insert(0, partial(inject_derived_usage, usage=derived))
        return steps


DEFAULT_PROVIDERS: tuple[Provider, ...] = (
    Provider("openai", "OpenAI Account Quota", "🤖", auth_key="openai"),
    Provider("zhipu", "Zhipu AI Account Quota", "🧠", auth_key="zhipuai-coding-plan"),
    Provider("zai", "Z.ai Account Quota", "⚡", auth_key="zai-coding-plan",
             normalizers=(inline_reset_into_used_line,), uses_derived_usage=True),
    Provider("google", "Google Cloud Account Quota", "☁️"),
    Provider("copilot", "GitHub Copilot Account Quota", "🚀", auth_key="github-copilot",
             normalizers=(normalize_quota_lines,)),
)


def load_query(path: str) -> QueryFn:
    """Resolve ``"package.module:function"`` to a callable."""
    module_name, sep, attr = str(path).partition(":")
    if not sep or not module_name or not attr:
        raise ConfigError(f"query path must look like 'module:function': {path}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigError(f"cannot import query module {module_name}: {exc}") from exc

    target: Any = module
    for name in attr.split("."):
        target = getattr(target, name, None)
        if target is None:
            raise ConfigError(f"query function not found: {path}")
    if not callable(target):
        raise ConfigError(f"query target is not callable: {path}")
    return target


def build_providers(user_config: dict, registry: tuple[Provider, ...] = DEFAULT_PROVIDERS) -> list[Provider]:
    query_paths = user_config.get("providers") or {}
    if not isinstance(query_paths, dict):
        raise ConfigError("'providers' must map provider keys to 'module:function' paths")

    known = {p.key for p in registry}
    unknown = sorted(set(query_paths) - known)
    if unknown:
        raise ConfigError(f"unknown provider(s) in config: {', '.join(unknown)}")

    providers = []
    for provider in registry:
        path = query_paths.get(provider.key)
        if path:
            provider = replace(provider, query=load_query(path))
        else:
            logger.debug("No query configured for %s", provider.key)
        providers.append(provider)
    return providers
