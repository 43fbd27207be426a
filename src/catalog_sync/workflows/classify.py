"""Link classification as an ordered rule table.

A link can satisfy several categories at once (a certificate whose anchor text
names a product), so the first matching rule wins. File-type driven rules come
before the product-keyword rule.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, Optional, Sequence, Tuple
from urllib.parse import unquote, urlparse

from .models import Category, ClassifiedLink, Identity, ResolvedLink
from .policy import DEFAULT_POLICY, SyncPolicy

Predicate = Callable[[str, str], bool]


@dataclass(frozen=True)
class ClassificationRule:
    name: str
    predicate: Predicate
    category: Category


def url_path(url: str) -> str:
    """Lowercased, unquoted path component of ``url`` (query and fragment dropped)."""

    try:
        return unquote(urlparse(url).path or "").lower()
    except ValueError:
        return ""


def has_extension(url: str, extensions: Sequence[str]) -> bool:
    path = url_path(url)
    return any(path.endswith(ext.lower()) for ext in extensions)


def mentions(url: str, text: str, keywords: Sequence[str]) -> bool:
    """True when any keyword appears in the anchor text or the URL path."""

    haystacks = ((text or "").lower(), url_path(url))
    return any(kw.lower() in hay for kw in keywords for hay in haystacks)


def _word_pattern(tokens: Sequence[str]) -> Optional[re.Pattern]:
    if not tokens:
        return None
    alternatives = "|".join(re.escape(t.lower()) for t in tokens)
    return re.compile(rf"\b(?:{alternatives})\b")


def _extension_or_keyword(extensions: Sequence[str], keywords: Sequence[str]) -> Predicate:
    def predicate(url: str, text: str) -> bool:
        return has_extension(url, extensions) or mentions(url, text, keywords)

    return predicate


def _application(extensions: Sequence[str], tokens: Sequence[str], identities: Sequence[Identity]) -> Predicate:
    token_re = _word_pattern(tokens)

    def predicate(url: str, text: str) -> bool:
        if has_extension(url, extensions):
            return True
        lowered = (text or "").lower()
        if token_re is not None and token_re.search(lowered):
            return True
        path = url_path(url)
        return any(identity.matches(lowered) or identity.matches(path) for identity in identities)

    return predicate


def build_rules(policy: SyncPolicy = DEFAULT_POLICY) -> Tuple[ClassificationRule, ...]:
    return (
        ClassificationRule(
            "dns-profile",
            _extension_or_keyword(policy.profile_extensions, policy.profile_keywords),
            Category.DNS_PROFILE,
        ),
        ClassificationRule(
            "certificate",
            _extension_or_keyword(policy.cert_extensions, policy.cert_keywords),
            Category.CERTIFICATE,
        ),
        ClassificationRule(
            "application",
            _application(policy.app_extensions, policy.app_text_tokens, policy.identities),
            Category.APPLICATION,
        ),
    )


DEFAULT_RULES = build_rules(DEFAULT_POLICY)


def classify(url: str, text: str, rules: Sequence[ClassificationRule] = DEFAULT_RULES) -> Optional[Category]:
    """Return the category of the first matching rule, or None when unrecognized."""

    for rule in rules:
        if rule.predicate(url, text):
            return rule.category
    return None


def classify_links(
    links: Iterable[ResolvedLink],
    rules: Sequence[ClassificationRule] = DEFAULT_RULES,
) -> Iterator[ClassifiedLink]:
    """Classify links, dropping unrecognized ones; ``position`` keeps discovery order."""

    for position, link in enumerate(links):
        category = classify(link.url, link.text, rules)
        if category is None:
            continue
        yield ClassifiedLink(url=link.url, text=link.text, category=category, position=position)


__all__ = [
    "ClassificationRule",
    "DEFAULT_RULES",
    "build_rules",
    "classify",
    "classify_links",
    "has_extension",
    "mentions",
    "url_path",
]
