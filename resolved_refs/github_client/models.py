"""Pydantic models for issue references and tracker state.

Issue and pull request states map to GitHub's REST API v3 response structures.
API Reference: https://docs.github.com/en/rest/issues
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ReferenceKind(str, Enum):
    """Kind of tracker item a URL points at."""

    ISSUE = "issue"
    PULL_REQUEST = "pull_request"


class IssueStateValue(str, Enum):
    """Resolved state of an issue or pull request."""

    OPEN = "open"
    CLOSED = "closed"
    MERGED = "merged"
    UNKNOWN = "unknown"


class Tier(str, Enum):
    """Urgency classification of a reference."""

    STALE = "stale"
    CLOSED = "closed"
    OPEN = "open"

    @property
    def priority(self) -> int:
        """Sort rank: stale first, then closed, then open."""
        return _TIER_PRIORITY[self]


_TIER_PRIORITY = {Tier.STALE: 1, Tier.CLOSED: 2, Tier.OPEN: 3}


class FetchErrorKind(str, Enum):
    """Category of a failed status fetch."""

    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    TIMEOUT = "timeout"
    OTHER = "other"


def format_url(
    host: str, owner: str, repo: str, kind: ReferenceKind, number: int
) -> str:
    """Build the canonical URL for an issue or pull request."""
    segment = "pull" if kind == ReferenceKind.PULL_REQUEST else "issues"
    return f"https://{host}/{owner}/{repo}/{segment}/{number}"


class CommentSpan(BaseModel):
    """A comment's text and where it starts in the source."""

    model_config = ConfigDict(frozen=True)

    text: str = Field(..., description="Raw comment text, line breaks preserved")
    start_line: int = Field(..., ge=1, description="1-indexed line of first char")
    start_column: int = Field(..., ge=0, description="0-indexed column of first char")


class IssueRef(BaseModel):
    """The identifying tuple needed to fetch a status."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Canonical URL, unique key")
    owner: str = Field(..., description="Repository owner")
    repo: str = Field(..., description="Repository name")
    kind: ReferenceKind = Field(..., description="Issue or pull request")
    number: int = Field(..., gt=0, description="Issue/PR number")


class Reference(IssueRef):
    """One URL occurrence in source text."""

    host: str = Field("github.com", description="Tracker host the URL points at")
    line: int = Field(..., ge=1, description="1-indexed line number")
    start_column: int = Field(..., ge=0, description="0-indexed start column")
    end_column: int = Field(..., description="0-indexed end column, exclusive")
    comment_text: str = Field("", description="Enclosing comment, trimmed")
    has_stale_keyword: bool = Field(
        False, description="Whether the enclosing comment has a stale keyword"
    )

    @model_validator(mode="after")
    def validate_reference(self) -> "Reference":
        """Reject empty spans and URLs that do not match the parsed fields."""
        if self.start_column >= self.end_column:
            raise ValueError(
                f"start_column ({self.start_column}) must be less than "
                f"end_column ({self.end_column})"
            )
        expected = format_url(self.host, self.owner, self.repo, self.kind, self.number)
        if self.url != expected:
            raise ValueError(f"url {self.url!r} does not match {expected!r}")
        return self

    def issue_ref(self) -> IssueRef:
        """Return the fetch tuple for this reference."""
        return IssueRef(
            url=self.url,
            owner=self.owner,
            repo=self.repo,
            kind=self.kind,
            number=self.number,
        )


class FileReference(Reference):
    """A reference found while scanning a file on disk."""

    file_path: str = Field(..., description="Absolute path to the file")


class IssueState(BaseModel):
    """Resolved tracker status for one URL."""

    model_config = ConfigDict(frozen=True)

    state: IssueStateValue = Field(..., description="open, closed, merged, unknown")
    state_reason: str | None = Field(
        None, description="Reason for closing: completed, not_planned, reopened"
    )
    title: str = Field("", description="Issue/PR title")
    labels: frozenset[str] = Field(
        default_factory=frozenset, description="Label names"
    )
    closed_at: datetime | None = Field(None, description="When it was closed")
    merged_at: datetime | None = Field(None, description="When it was merged")
    kind: ReferenceKind | None = Field(
        None, description="Kind the state was fetched for, when known"
    )

    @model_validator(mode="after")
    def validate_merged(self) -> "IssueState":
        """Only pull requests can be merged."""
        if self.state == IssueStateValue.MERGED and self.kind == ReferenceKind.ISSUE:
            raise ValueError("merged state is only valid for pull requests")
        return self

    @classmethod
    def unknown(cls) -> "IssueState":
        """Placeholder for a status that could not be fetched."""
        return cls(state=IssueStateValue.UNKNOWN, title="Unknown")


class FetchResult(BaseModel):
    """Outcome of resolving one URL: a state or an error, never both."""

    model_config = ConfigDict(frozen=True)

    url: str
    state: IssueState | None = None
    error: str | None = None
    error_kind: FetchErrorKind | None = None

    @model_validator(mode="after")
    def validate_outcome(self) -> "FetchResult":
        """Exactly one of state and error must be set."""
        if (self.state is None) == (self.error is None):
            raise ValueError("FetchResult needs exactly one of state or error")
        return self

    @property
    def ok(self) -> bool:
        return self.state is not None


class Annotation(BaseModel):
    """One inline annotation handed to the renderer."""

    line: int
    start_column: int
    end_column: int
    url: str
    tier: Tier
    state: IssueStateValue
    state_reason: str | None = None
    title: str = ""
    labels: list[str] = Field(default_factory=list)
    has_stale_keyword: bool = False


class IssueGroup(BaseModel):
    """All workspace locations referencing one URL, with its status."""

    url: str
    owner: str
    repo: str
    kind: ReferenceKind
    number: int
    title: str
    state: IssueStateValue
    state_reason: str | None = None
    tier: Tier
    locations: list[FileReference] = Field(default_factory=list)
    error: str | None = Field(None, description="Why the status is unknown")

    @field_validator("locations")
    @classmethod
    def validate_locations(cls, v: list[FileReference]) -> list[FileReference]:
        """A group always has at least one location."""
        if not v:
            raise ValueError("an issue group needs at least one location")
        return v

    @property
    def display_id(self) -> str:
        return f"{self.owner}/{self.repo}#{self.number}"
