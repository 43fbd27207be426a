"""Exception taxonomy for a synchronization run.

``FetchError`` and ``InvariantViolation`` are fatal and propagate to the CLI.
The remaining errors are raised and caught inside their own stage; they only
ever show up in DEBUG logs.
"""

from __future__ import annotations

from typing import Optional


class CatalogSyncError(Exception):
    """Base class for catalog synchronization errors."""


class FetchError(CatalogSyncError):
    """The source page could not be retrieved."""

    def __init__(self, url: str, reason: str, status: Optional[int] = None) -> None:
        self.url = url
        self.reason = reason
        self.status = status
        label = f"HTTP {status}" if status is not None else reason
        super().__init__(f"{label} for {url}")


class ResolutionError(CatalogSyncError):
    """A link href could not be resolved to an absolute http(s) URL."""


class ExtractionNoise(CatalogSyncError):
    """An anchor element was too malformed to read."""


class VerificationError(CatalogSyncError):
    """A single reachability request failed."""


class InvariantViolation(CatalogSyncError):
    """The assembled document would break an identifier/URL uniqueness rule."""


__all__ = [
    "CatalogSyncError",
    "FetchError",
    "ResolutionError",
    "ExtractionNoise",
    "VerificationError",
    "InvariantViolation",
]
