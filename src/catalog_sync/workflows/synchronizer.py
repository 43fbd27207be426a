"""End-to-end catalog synchronization.

fetch -> extract -> classify -> group/select -> verify -> assemble -> write.
Each stage receives the previous stage's value; a FetchError aborts before
anything is verified or written.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Tuple

from .assemble import assemble_catalog
from .classify import build_rules, classify_links
from .link_extract import iter_links
from .models import CatalogDocument, Category, ClassifiedLink, ToolSelection
from .page_fetch import fetch_page
from .policy import DEFAULT_POLICY, SyncPolicy
from .select import group_applications, select_tools
from .verify import ReachabilityVerifier
from .writer import write_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncResult:
    document: CatalogDocument
    output_path: Optional[Path] = None

    @property
    def tool_count(self) -> int:
        return len(self.document.tools)

    @property
    def certificate_count(self) -> int:
        return len(self.document.certificates)


def plan_catalog(
    html: str, policy: SyncPolicy = DEFAULT_POLICY
) -> Tuple[List[ToolSelection], List[ClassifiedLink]]:
    """Run the synchronous stages on already-fetched markup.

    Returns ``(selections, certificate_links)`` ready for verification and
    assembly.
    """

    classified = list(classify_links(iter_links(html, policy.base_url), build_rules(policy)))
    applications = [link for link in classified if link.category is Category.APPLICATION]
    certificate_links = [link for link in classified if link.category is not Category.APPLICATION]
    groups = group_applications(applications, policy.identities)
    selections = select_tools(groups, policy)
    logger.info(
        "classified %d link(s): %d application candidate(s) in %d group(s), %d certificate/profile link(s)",
        len(classified),
        len(applications),
        len(groups),
        len(certificate_links),
    )
    return selections, certificate_links


async def synchronize(policy: SyncPolicy = DEFAULT_POLICY) -> CatalogDocument:
    html = await fetch_page(policy.base_url, policy.fetch)
    selections, certificate_links = plan_catalog(html, policy)
    statuses = await ReachabilityVerifier(policy.verify).verify_many([s.link.url for s in selections])
    verified = [replace(selection, status=ok) for selection, ok in zip(selections, statuses)]
    return assemble_catalog(verified, certificate_links, policy)


def run_sync(policy: SyncPolicy = DEFAULT_POLICY, *, write: bool = True) -> SyncResult:
    """Synchronize and (by default) replace the output document."""

    document = asyncio.run(synchronize(policy))
    output_path = write_document(document, policy.output_path) if write else None
    result = SyncResult(document=document, output_path=output_path)
    logger.info("tools: %d, certificates: %d", result.tool_count, result.certificate_count)
    return result


__all__ = ["SyncResult", "plan_catalog", "synchronize", "run_sync"]
