"""Value types passed between pipeline stages.

Every type here is frozen: each stage takes the previous stage's output and
returns new values instead of mutating a shared catalog.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from ..core.keys import K_CERTIFICATES, K_DESCRIPTION, K_ID, K_NAME, K_STATUS, K_TOOLS, K_URL


class Category(str, Enum):
    APPLICATION = "application"
    CERTIFICATE = "certificate"
    DNS_PROFILE = "dns-profile"


@dataclass(frozen=True)
class RawLink:
    href: str
    anchor_text: str


@dataclass(frozen=True)
class ResolvedLink:
    url: str
    text: str


@dataclass(frozen=True)
class ClassifiedLink:
    url: str
    text: str
    category: Category
    position: int


@dataclass(frozen=True)
class Identity:
    """A known application; matches when every keyword is in the text."""

    key: str
    name: str
    keywords: Tuple[str, ...]

    def matches(self, value: str) -> bool:
        lowered = (value or "").lower()
        return bool(self.keywords) and all(kw in lowered for kw in self.keywords)


@dataclass(frozen=True)
class ToolGroup:
    key: str
    identity: Optional[Identity]
    candidates: Tuple[ClassifiedLink, ...]


@dataclass(frozen=True)
class ScoredCandidate:
    link: ClassifiedLink
    score: int


@dataclass(frozen=True)
class ToolSelection:
    group_key: str
    identity: Optional[Identity]
    link: ClassifiedLink
    status: bool = False


@dataclass(frozen=True)
class CatalogEntry:
    id: str
    name: str
    url: str
    description: str
    status: Optional[bool] = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {K_ID: self.id, K_NAME: self.name}
        if self.status is not None:
            payload[K_STATUS] = self.status
        payload[K_DESCRIPTION] = self.description
        payload[K_URL] = self.url
        return payload


@dataclass(frozen=True)
class CatalogDocument:
    tools: Tuple[CatalogEntry, ...] = field(default_factory=tuple)
    certificates: Tuple[CatalogEntry, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        return {
            K_TOOLS: [entry.to_dict() for entry in self.tools],
            K_CERTIFICATES: [entry.to_dict() for entry in self.certificates],
        }

    def to_json(self, indent: Optional[int] = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)


__all__ = [
    "Category",
    "RawLink",
    "ResolvedLink",
    "ClassifiedLink",
    "Identity",
    "ToolGroup",
    "ScoredCandidate",
    "ToolSelection",
    "CatalogEntry",
    "CatalogDocument",
]
