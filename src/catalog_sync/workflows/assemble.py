"""Deduplicate selections and certificate links into the final document."""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, List, Sequence, Set, Union

from ..core.errors import InvariantViolation
from .models import CatalogDocument, CatalogEntry, Category, ClassifiedLink, ToolSelection
from .policy import DEFAULT_POLICY, SyncPolicy
from .sync_config import (
    CERTIFICATE_NAME,
    DNS_PROFILE_NAME,
    PREFIX_APPLICATION,
    PREFIX_CERTIFICATE,
    PREFIX_DNS_PROFILE,
)

logger = logging.getLogger(__name__)

_PREFIXES = {
    Category.APPLICATION: PREFIX_APPLICATION,
    Category.CERTIFICATE: PREFIX_CERTIFICATE,
    Category.DNS_PROFILE: PREFIX_DNS_PROFILE,
}
_SECTION_NAMES = {
    Category.CERTIFICATE: CERTIFICATE_NAME,
    Category.DNS_PROFILE: DNS_PROFILE_NAME,
}

Item = Union[ToolSelection, ClassifiedLink]


def _position(item: Item) -> int:
    return item.link.position if isinstance(item, ToolSelection) else item.position


def _url(item: Item) -> str:
    return item.link.url if isinstance(item, ToolSelection) else item.url


def _discovery_order(selections: Sequence[ToolSelection], links: Sequence[ClassifiedLink]) -> List[Item]:
    merged: List[Item] = [*selections, *links]
    return sorted(merged, key=_position)


def _check_unique(section: str, entries: Sequence[CatalogEntry]) -> None:
    seen: Set[str] = set()
    for entry in entries:
        if entry.id in seen:
            raise InvariantViolation(f"duplicate id {entry.id!r} in {section}")
        seen.add(entry.id)


def assemble_catalog(
    selections: Sequence[ToolSelection],
    certificate_links: Sequence[ClassifiedLink],
    policy: SyncPolicy = DEFAULT_POLICY,
) -> CatalogDocument:
    """Walk both inputs in discovery order; the first occurrence of a URL wins."""

    host = policy.source_host
    tool_description = policy.tool_description.format(host=host)
    cert_description = policy.certificate_description.format(host=host)

    counters: Dict[str, int] = defaultdict(int)
    emitted: Set[str] = set()
    tools: List[CatalogEntry] = []
    certificates: List[CatalogEntry] = []
    dropped = 0

    for item in _discovery_order(selections, [c for c in certificate_links if c.category is not Category.APPLICATION]):
        url = _url(item)
        if url in emitted:
            dropped += 1
            logger.debug("dropping duplicate url %s", url)
            continue
        emitted.add(url)

        if isinstance(item, ToolSelection):
            if item.identity is not None:
                entry_id, name = item.identity.key, item.identity.name
            else:
                counters[PREFIX_APPLICATION] += 1
                entry_id = f"{PREFIX_APPLICATION}-{counters[PREFIX_APPLICATION]}"
                name = item.link.text or url
            tools.append(
                CatalogEntry(id=entry_id, name=name, url=url, description=tool_description, status=bool(item.status))
            )
        else:
            prefix = _PREFIXES[item.category]
            counters[prefix] += 1
            certificates.append(
                CatalogEntry(
                    id=f"{prefix}-{counters[prefix]}",
                    name=_SECTION_NAMES[item.category],
                    url=url,
                    description=cert_description,
                )
            )

    _check_unique("tools", tools)
    _check_unique("certificates", certificates)
    if dropped:
        logger.info("dropped %d duplicate url(s)", dropped)
    return CatalogDocument(tools=tuple(tools), certificates=tuple(certificates))



__all__ = ["assemble_catalog"]
