"""High-level exports for the catalog synchronization workflow."""

from .classify import DEFAULT_RULES, ClassificationRule, classify, classify_links
from .models import CatalogDocument, CatalogEntry, Category
from .policy import DEFAULT_POLICY, ScoringWeights, SyncPolicy, load_policy_from_env
from .synchronizer import SyncResult, run_sync, synchronize
from .verify import ReachabilityVerifier
from .writer import write_document

__all__ = [
    "DEFAULT_POLICY",
    "DEFAULT_RULES",
    "CatalogDocument",
    "CatalogEntry",
    "Category",
    "ClassificationRule",
    "ReachabilityVerifier",
    "ScoringWeights",
    "SyncPolicy",
    "SyncResult",
    "classify",
    "classify_links",
    "load_policy_from_env",
    "run_sync",
    "synchronize",
    "write_document",
]
