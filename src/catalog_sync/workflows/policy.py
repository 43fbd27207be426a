"""Run policy: scoring weights, identity table and network knobs.

The pipeline only ever sees a SyncPolicy value. Environment lookups live in
``load_policy_from_env`` so the outer CLI decides where configuration comes
from.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
from urllib.parse import urlparse

from . import sync_config as cfg
from .models import Identity


@dataclass(frozen=True)
class ScoringWeights:
    direct_file: int = cfg.SCORE_DIRECT_FILE
    identity_match: int = cfg.SCORE_IDENTITY_MATCH
    download_keyword: int = cfg.SCORE_DOWNLOAD_KEYWORD
    raw_host: int = cfg.SCORE_RAW_HOST
    off_category_penalty: int = cfg.SCORE_OFF_CATEGORY_PENALTY


@dataclass(frozen=True)
class FetchConfig:
    """Configuration for the single source-page request."""

    timeout: float = cfg.FETCH_TIMEOUT
    user_agent: str = cfg.USER_AGENT
    accept_language: str = "en-US,en;q=0.9"


@dataclass(frozen=True)
class VerifyConfig:
    """Configuration for the bounded reachability worker pool."""

    concurrency: int = cfg.VERIFY_CONCURRENCY
    timeout: float = cfg.VERIFY_TIMEOUT
    probe_delay: float = cfg.PROBE_DELAY
    user_agent: str = cfg.USER_AGENT


def build_identities(raw: Iterable[Mapping[str, Any]]) -> Tuple[Identity, ...]:
    """Turn ``{key, name, keywords}`` mappings into Identity values."""

    identities = []
    for item in raw:
        key = str(item.get("key") or "").strip()
        keywords = tuple(str(k).strip().lower() for k in item.get("keywords") or () if str(k).strip())
        if not key or not keywords:
            raise ValueError(f"identity needs a key and at least one keyword: {dict(item)!r}")
        name = str(item.get("name") or key).strip()
        identities.append(Identity(key=key, name=name, keywords=keywords))
    return tuple(identities)


DEFAULT_IDENTITIES = build_identities(cfg.IDENTITIES)


@dataclass(frozen=True)
class SyncPolicy:
    base_url: str = cfg.BASE_URL
    output_path: Path = cfg.OUTPUT_PATH
    identities: Tuple[Identity, ...] = DEFAULT_IDENTITIES
    weights: ScoringWeights = field(default_factory=ScoringWeights)
    fetch: FetchConfig = field(default_factory=FetchConfig)
    verify: VerifyConfig = field(default_factory=VerifyConfig)
    app_extensions: Tuple[str, ...] = cfg.APP_EXTENSIONS
    profile_extensions: Tuple[str, ...] = cfg.PROFILE_EXTENSIONS
    cert_extensions: Tuple[str, ...] = cfg.CERT_EXTENSIONS + cfg.ARCHIVE_EXTENSIONS
    profile_keywords: Tuple[str, ...] = cfg.PROFILE_KEYWORDS
    cert_keywords: Tuple[str, ...] = cfg.CERT_KEYWORDS
    app_text_tokens: Tuple[str, ...] = cfg.APP_TEXT_TOKENS
    download_keywords: Tuple[str, ...] = cfg.DOWNLOAD_KEYWORDS
    raw_hosts: frozenset[str] = frozenset(cfg.RAW_HOSTS)
    raw_path_markers: Tuple[str, ...] = cfg.RAW_PATH_MARKERS
    off_category_markers: Tuple[str, ...] = cfg.OFF_CATEGORY_PATH_MARKERS
    tool_description: str = cfg.TOOL_DESCRIPTION
    certificate_description: str = cfg.CERTIFICATE_DESCRIPTION

    @property
    def source_host(self) -> str:
        return (urlparse(self.base_url).hostname or "").lower()


DEFAULT_POLICY = SyncPolicy()


def _env_int(name: str, default: int) -> int:
    try:
        raw = os.getenv(name, "")
        return int(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_float(name: str, default: float) -> float:
    try:
        raw = os.getenv(name, "")
        return float(raw) if raw.strip() else default
    except (TypeError, ValueError):
        return default


def _env_json(name: str) -> Optional[Any]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"{name} is not valid JSON: {exc}") from exc


def _weights_from_env(base: ScoringWeights) -> ScoringWeights:
    data = _env_json("CATALOG_SYNC_SCORING_WEIGHTS_JSON")
    if data is None:
        return base
    if not isinstance(data, dict):
        raise ValueError("CATALOG_SYNC_SCORING_WEIGHTS_JSON must be a JSON object")
    known = set(ScoringWeights.__dataclass_fields__)
    unknown = sorted(k for k in data if k not in known)
    if unknown:
        raise ValueError(f"Unknown scoring weight(s): {', '.join(unknown)}")
    return replace(base, **{k: int(v) for k, v in data.items()})


def load_policy_from_env(base: SyncPolicy = DEFAULT_POLICY) -> SyncPolicy:
    """Overlay ``CATALOG_SYNC_*`` environment variables on ``base``."""

    policy = base
    base_url = os.getenv("CATALOG_SYNC_BASE_URL", "").strip()
    if base_url:
        policy = replace(policy, base_url=base_url)
    output = os.getenv("CATALOG_SYNC_OUTPUT", "").strip()
    if output:
        policy = replace(policy, output_path=Path(output))

    user_agent = os.getenv("CATALOG_SYNC_USER_AGENT", "").strip() or policy.fetch.user_agent
    timeout = _env_float("CATALOG_SYNC_TIMEOUT", 0.0)
    concurrency = _env_int("CATALOG_SYNC_CONCURRENCY", policy.verify.concurrency)
    probe_delay = _env_float("CATALOG_SYNC_PROBE_DELAY", policy.verify.probe_delay)
    policy = replace(
        policy,
        fetch=replace(policy.fetch, user_agent=user_agent, timeout=timeout if timeout > 0 else policy.fetch.timeout),
        verify=replace(
            policy.verify,
            timeout=timeout if timeout > 0 else policy.verify.timeout,
            concurrency=concurrency if concurrency > 0 else policy.verify.concurrency,
            probe_delay=max(0.0, probe_delay),
            user_agent=user_agent,
        ),
    )

    policy = replace(policy, weights=_weights_from_env(policy.weights))
    identities = _env_json("CATALOG_SYNC_IDENTITIES_JSON")
    if identities is not None:
        if not isinstance(identities, list):
            raise ValueError("CATALOG_SYNC_IDENTITIES_JSON must be a JSON list")
        policy = replace(policy, identities=build_identities(identities))
    return policy


def override_policy(
    policy: SyncPolicy,
    *,
    base_url: Optional[str] = None,
    output_path: Optional[Path] = None,
    concurrency: Optional[int] = None,
    timeout: Optional[float] = None,
) -> SyncPolicy:
    """Apply explicit (CLI) overrides on top of an existing policy."""

    updates: Dict[str, Any] = {}
    if base_url:
        updates["base_url"] = base_url
    if output_path is not None:
        updates["output_path"] = output_path
    verify = policy.verify
    fetch = policy.fetch
    if concurrency is not None:
        if concurrency <= 0:
            raise ValueError("concurrency must be positive")
        verify = replace(verify, concurrency=concurrency)
    if timeout is not None:
        if timeout <= 0:
            raise ValueError("timeout must be positive")
        verify = replace(verify, timeout=timeout)
        fetch = replace(fetch, timeout=timeout)
    return replace(policy, verify=verify, fetch=fetch, **updates)


__all__ = [
    "ScoringWeights",
    "FetchConfig",
    "VerifyConfig",
    "SyncPolicy",
    "DEFAULT_POLICY",
    "build_identities",
    "load_policy_from_env",
    "override_policy",
]
