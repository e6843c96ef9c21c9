"""Status resolution and classification."""

from .classifier import classify, classify_group, is_resolved, rank
from .fetcher import BatchStatusFetcher

__all__ = [
    "BatchStatusFetcher",
    "classify",
    "classify_group",
    "is_resolved",
    "rank",
]
