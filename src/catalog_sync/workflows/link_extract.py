"""Anchor discovery on the source page.

Both generators are lazy and single-pass. BeautifulSoup with lxml already
repairs unclosed tags; anything it still cannot make sense of is skipped per
anchor so one broken element never costs the rest of the page.
"""

from __future__ import annotations

import logging
from typing import Iterable, Iterator
from urllib.parse import urldefrag, urljoin, urlparse

from bs4 import BeautifulSoup

from ..core.errors import ExtractionNoise, ResolutionError
from .html_normalize import normalize_anchor_text
from .models import RawLink, ResolvedLink

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = {"http", "https"}


def _read_anchor(anchor) -> RawLink:
    href = anchor.get("href")
    if isinstance(href, list):  # repeated attribute on broken markup
        href = href[0] if href else None
    if not isinstance(href, str) or not href.strip():
        raise ExtractionNoise("anchor without usable href")
    try:
        text = anchor.get_text(" ")
    except (AttributeError, TypeError, ValueError) as exc:
        raise ExtractionNoise(f"unreadable anchor text: {exc}") from exc
    return RawLink(href=href.strip(), anchor_text=normalize_anchor_text(text))


def iter_raw_links(html: str) -> Iterator[RawLink]:
    """Yield every readable ``<a href>`` in document order."""

    soup = BeautifulSoup(html or "", "lxml")
    for anchor in soup.find_all("a"):
        try:
            yield _read_anchor(anchor)
        except ExtractionNoise as exc:
            logger.debug("skipping anchor: %s", exc)


def resolve_href(href: str, base_url: str) -> str:
    """Return ``href`` as an absolute http(s) URL or raise ResolutionError."""

    try:
        absolute = urljoin(base_url, href)
        parsed = urlparse(absolute)
        _ = parsed.port  # raises on a malformed port
    except ValueError as exc:
        raise ResolutionError(f"cannot resolve {href!r}: {exc}") from exc
    if parsed.scheme.lower() not in _ALLOWED_SCHEMES:
        raise ResolutionError(f"unsupported scheme in {href!r}")
    if not parsed.hostname:
        raise ResolutionError(f"no host in {href!r}")
    if href.startswith("#") or (parsed.fragment and urldefrag(absolute)[0] == urldefrag(base_url)[0]):
        raise ResolutionError(f"in-page anchor {href!r}")
    return absolute


def resolve_links(raw_links: Iterable[RawLink], base_url: str) -> Iterator[ResolvedLink]:
    for raw in raw_links:
        try:
            url = resolve_href(raw.href, base_url)
        except ResolutionError as exc:
            logger.debug("dropping link: %s", exc)
            continue
        yield ResolvedLink(url=url, text=raw.anchor_text or url)


def iter_links(html: str, base_url: str) -> Iterator[ResolvedLink]:
    """Lazily yield resolved links found in ``html``."""

    return resolve_links(iter_raw_links(html), base_url)


__all__ = [
    "iter_raw_links",
    "iter_links",
    "resolve_href",
    "resolve_links",
]
