"""Session-scoped storage for fetched statuses."""

from .cache import CacheEntry, StatusCache

__all__ = ["CacheEntry", "StatusCache"]
