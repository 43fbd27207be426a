from __future__ import annotations

import importlib
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .policy import SyncPolicy, load_policy_from_env

_REQUIRED_MODULES = (
    ("aiohttp", "aiohttp"),
    ("bs4", "beautifulsoup4"),
    ("lxml", "lxml"),
    ("ftfy", "ftfy"),
    ("charset_normalizer", "charset-normalizer"),
)


def _module_available(name: str) -> bool:
    try:
        importlib.import_module(name)
    except ImportError:
        return False
    return True


def _check_writable(path: Path) -> bool:
    try:
        if path.exists():
            return os.access(path, os.W_OK)
        parent = path.parent
        while not parent.exists():
            if parent == parent.parent:
                return False
            parent = parent.parent
        return os.access(parent, os.W_OK)
    except OSError:
        return False


def _check(
    name: str,
    passed: bool,
    detail: Optional[str] = None,
    *,
    remedy: Optional[str] = None,
    level: str = "warn",
) -> Dict[str, Any]:
    entry: Dict[str, Any] = {"name": name, "status": "ok" if passed else "missing", "level": level, "detail": detail}
    if remedy and not passed:
        entry["remedy"] = remedy
    return entry


def _policy_checks(policy: SyncPolicy) -> List[Dict[str, Any]]:
    parsed = urlparse(policy.base_url)
    output = Path(policy.output_path)
    names = [identity.key for identity in policy.identities]
    return [
        _check(
            "CATALOG_SYNC_BASE_URL",
            parsed.scheme in {"http", "https"} and bool(parsed.hostname),
            policy.base_url,
            remedy="Set CATALOG_SYNC_BASE_URL to an absolute http(s) URL.",
        ),
        _check(
            "CATALOG_SYNC_OUTPUT",
            _check_writable(output),
            str(output),
            remedy="Create the output directory or set CATALOG_SYNC_OUTPUT to a writable location.",
        ),
        _check(
            "CATALOG_SYNC_CONCURRENCY",
            policy.verify.concurrency >= 1,
            f"{policy.verify.concurrency} worker(s), {policy.verify.timeout:g}s verify / "
            f"{policy.fetch.timeout:g}s fetch timeout, {policy.verify.probe_delay:g}s probe delay",
            level="info",
        ),
        _check(
            "CATALOG_SYNC_IDENTITIES_JSON",
            bool(names),
            ", ".join(names) if names else "no identities; every tool will be unassigned",
            level="info",
        ),
    ]


def build_doctor_report(*, policy: Optional[SyncPolicy] = None) -> Dict[str, Any]:
    """Collect dependency and configuration checks without touching the network.

    ``ok`` is false when any ``warn``-level check fails; ``info`` checks are
    reported but never fail the run.
    """

    checks = [
        _check(dist, _module_available(module), f"import {module}", remedy=f"pip install {dist}")
        for module, dist in _REQUIRED_MODULES
    ]
    if policy is None:
        try:
            policy = load_policy_from_env()
        except ValueError as exc:
            checks.append(_check("CATALOG_SYNC_*", False, str(exc), remedy="Fix or unset the malformed variable."))
    if policy is not None:
        checks.extend(_policy_checks(policy))

    return {
        "generated_at": datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z"),
        "ok": all(c["status"] == "ok" for c in checks if c["level"] == "warn"),
        "checks": checks,
    }


def format_doctor_report(report: Dict[str, Any]) -> str:
    checks = report.get("checks", [])
    failing = [c for c in checks if c["status"] != "ok" and c["level"] == "warn"]
    lines = [
        f"catalog-sync doctor ({report.get('generated_at')})",
        f"{len(checks)} check(s), {len(failing)} need attention",
        "",
    ]
    for check in checks:
        line = f"- [{check['level']}] {check['name']}: {check['status']}"
        if check.get("detail"):
            line += f" ({check['detail']})"
        lines.append(line)
        if check.get("remedy"):
            lines.append(f"  remedy: {check['remedy']}")
    return "\n".join(lines) + "\n"


__all__ = ["build_doctor_report", "format_doctor_report"]
