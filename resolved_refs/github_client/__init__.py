"""GitHub client package for API interaction."""

from .client import GitHubClient, TrackerClient
from .errors import IssueNotFoundError, TrackerAuthError, TrackerError
from .models import (
    Annotation,
    CommentSpan,
    FetchErrorKind,
    FetchResult,
    FileReference,
    IssueGroup,
    IssueRef,
    IssueState,
    IssueStateValue,
    Reference,
    ReferenceKind,
    Tier,
    format_url,
)

__all__ = [
    "Annotation",
    "CommentSpan",
    "FetchErrorKind",
    "FetchResult",
    "FileReference",
    "GitHubClient",
    "IssueGroup",
    "IssueNotFoundError",
    "IssueRef",
    "IssueState",
    "IssueStateValue",
    "Reference",
    "ReferenceKind",
    "Tier",
    "TrackerAuthError",
    "TrackerClient",
    "TrackerError",
    "format_url",
]
