"""Group application links by identity and pick one link per tool.

A page often lists the same tool twice (direct ``.ipa`` file plus a guide that
mentions it). Scoring prefers the actionable link; equal scores keep the
earliest discovered candidate.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional, Sequence
from urllib.parse import urlparse

from .classify import has_extension, url_path
from .models import Category, ClassifiedLink, Identity, ScoredCandidate, ToolGroup, ToolSelection
from .policy import DEFAULT_POLICY, SyncPolicy
from .sync_config import UNASSIGNED_GROUP_PREFIX

logger = logging.getLogger(__name__)


def match_identity(text: str, identities: Sequence[Identity]) -> Optional[Identity]:
    """First identity whose keywords all appear in ``text``.

    The table is ordered most specific first so "KSign BMW" is not absorbed by
    "KSign".
    """

    for identity in identities:
        if identity.matches(text):
            return identity
    return None


def group_applications(
    links: Iterable[ClassifiedLink],
    identities: Sequence[Identity],
) -> List[ToolGroup]:
    """Partition application links into groups ordered by first appearance."""

    order: List[str] = []
    members: Dict[str, List[ClassifiedLink]] = {}
    owners: Dict[str, Optional[Identity]] = {}
    unassigned = 0
    for link in links:
        if link.category is not Category.APPLICATION:
            continue
        identity = match_identity(link.text, identities)
        if identity is None:
            unassigned += 1
            key = f"{UNASSIGNED_GROUP_PREFIX}-{unassigned}"
        else:
            key = identity.key
        if key not in members:
            order.append(key)
            members[key] = []
            owners[key] = identity
        members[key].append(link)
    return [ToolGroup(key=key, identity=owners[key], candidates=tuple(members[key])) for key in order]


def _is_raw_location(url: str, policy: SyncPolicy) -> bool:
    host = (urlparse(url).hostname or "").lower()
    if host in policy.raw_hosts:
        return True
    path = url_path(url)
    return any(marker in path for marker in policy.raw_path_markers)


def score_candidate(
    link: ClassifiedLink,
    identity: Optional[Identity],
    policy: SyncPolicy = DEFAULT_POLICY,
) -> int:
    weights = policy.weights
    lowered_url = link.url.lower()
    path = url_path(link.url)
    score = 0
    if has_extension(link.url, policy.app_extensions):
        score += weights.direct_file
    if identity is not None and (identity.matches(lowered_url) or identity.matches(link.text)):
        score += weights.identity_match
    if any(kw in lowered_url for kw in policy.download_keywords):
        score += weights.download_keyword
    if _is_raw_location(link.url, policy):
        score += weights.raw_host
    if any(marker in path for marker in policy.off_category_markers):
        score += weights.off_category_penalty
    return score


def rank_candidates(group: ToolGroup, policy: SyncPolicy = DEFAULT_POLICY) -> List[ScoredCandidate]:
    """Candidates best first; ``sorted`` is stable so ties keep discovery order."""

    scored = [ScoredCandidate(link=c, score=score_candidate(c, group.identity, policy)) for c in group.candidates]
    return sorted(scored, key=lambda item: item.score, reverse=True)


def select_best(group: ToolGroup, policy: SyncPolicy = DEFAULT_POLICY) -> ClassifiedLink:
    if not group.candidates:
        raise ValueError(f"group {group.key!r} has no candidates")
    ranked = rank_candidates(group, policy)
    best = ranked[0]
    if len(ranked) > 1:
        logger.debug(
            "group %s: picked %s (score %d) over %d other candidate(s)",
            group.key,
            best.link.url,
            best.score,
            len(ranked) - 1,
        )
    return best.link


def select_tools(groups: Iterable[ToolGroup], policy: SyncPolicy = DEFAULT_POLICY) -> List[ToolSelection]:
    return [
        ToolSelection(group_key=group.key, identity=group.identity, link=select_best(group, policy))
        for group in groups
        if group.candidates
    ]


__all__ = [
    "match_identity",
    "group_applications",
    "score_candidate",
    "rank_candidates",
    "select_best",
    "select_tools",
]
