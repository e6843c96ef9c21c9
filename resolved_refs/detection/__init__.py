"""Reference detection: URL extraction, comment spans and positions."""

from .comments import (
    CommentSpanProvider,
    LeaderCommentProvider,
    LineSpanProvider,
    language_for_path,
)
from .patterns import UrlMatch, extract_urls, has_stale_keywords, is_valid_repo_component
from .positions import remap_position
from .scanner import dedupe_by_url, scan_span, scan_spans, unique_urls

__all__ = [
    "CommentSpanProvider",
    "LeaderCommentProvider",
    "LineSpanProvider",
    "UrlMatch",
    "dedupe_by_url",
    "extract_urls",
    "has_stale_keywords",
    "is_valid_repo_component",
    "language_for_path",
    "remap_position",
    "scan_span",
    "scan_spans",
    "unique_urls",
]
