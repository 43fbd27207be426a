"""Core schema helpers and errors for catalog-sync."""

from .keys import *  # noqa: F401,F403 re-export stable keys
from .errors import (  # noqa: F401
    CatalogSyncError,
    ExtractionNoise,
    FetchError,
    InvariantViolation,
    ResolutionError,
    VerificationError,
)

__all__ = [name for name in globals() if name.startswith("K_")] + [
    "CatalogSyncError",
    "ExtractionNoise",
    "FetchError",
    "InvariantViolation",
    "ResolutionError",
    "VerificationError",
]
