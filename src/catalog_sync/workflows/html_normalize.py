"""Text normalization helpers for page bodies and anchor text.

Deterministic and source-agnostic: decode whatever bytes the page served and
turn anchor contents into a single clean line.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Mapping, Optional

import ftfy
from charset_normalizer import from_bytes

__all__ = [
    "decode_bytes_auto",
    "minimal_text_fix",
    "collapse_whitespace",
    "normalize_anchor_text",
]

_ZERO_WIDTH = {0x200B, 0x200C, 0x200D, 0x2060, 0xFEFF}
_REMOVE = {0x00, 0x0B, 0x0C}
_C1_TO_SPACE = {cp: " " for cp in range(0x80, 0xA0)}
_TRANSLATE = {**{cp: None for cp in _ZERO_WIDTH | _REMOVE}, **_C1_TO_SPACE}
_WS_RE = re.compile(r"\s+")


def decode_bytes_auto(body: bytes, headers: Optional[Mapping[str, str]] = None) -> str:
    """Decode HTTP bytes using charset header hints with charset-normalizer fallback."""

    enc = None
    if headers:
        ct = headers.get("content-type") or headers.get("Content-Type") or ""
        match = re.search(r"charset=([^\s;]+)", ct, re.I)
        if match:
            enc = match.group(1).strip(' "\'').lower()
    if enc:
        try:
            return body.decode(enc, errors="replace")
        except LookupError:
            pass
    if not body:
        return ""
    result = from_bytes(body).best()
    if result is None:
        return body.decode("utf-8", errors="replace")
    return str(result)


def minimal_text_fix(text: str) -> str:
    """Fix mojibake and strip zero-width/control noise without collapsing structure."""

    if not text:
        return ""
    normalized = unicodedata.normalize("NFC", text)
    fixed = ftfy.fix_text(normalized, normalization="NFC")
    return fixed.translate(_TRANSLATE)


def collapse_whitespace(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def normalize_anchor_text(text: str) -> str:
    """Single-line, trimmed anchor text with mojibake repaired."""

    return collapse_whitespace(minimal_text_fix(text))
