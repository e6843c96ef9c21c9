"""URL extraction and stale keyword detection."""

import re
from functools import lru_cache

from pydantic import BaseModel, ConfigDict

from ..github_client.models import ReferenceKind, format_url

# Owner/repo can contain alphanumeric, hyphen, underscore, dot
_COMPONENT = r"([A-Za-z0-9._-]+)"
_VALID_COMPONENT = re.compile(r"^[A-Za-z0-9._-]+$")


class UrlMatch(BaseModel):
    """A validated tracker URL found in a piece of text."""

    model_config = ConfigDict(frozen=True)

    url: str
    matched_text: str
    owner: str
    repo: str
    kind: ReferenceKind
    number: int
    start: int
    end: int


@lru_cache(maxsize=16)
def _compile_patterns(host: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    """Build the issue and pull request patterns for a tracker host."""
    prefix = rf"https?://{re.escape(host)}/{_COMPONENT}/{_COMPONENT}"
    issue_pattern = re.compile(prefix + r"/(issues?)/([0-9]+)")
    pull_pattern = re.compile(prefix + r"/(pulls?)/([0-9]+)")
    return issue_pattern, pull_pattern


def is_valid_repo_component(value: str | None) -> bool:
    """Validate an owner or repository name.

    GitHub allows alphanumerics, hyphens, underscores and dots, but not a
    leading dot, a trailing dot, or consecutive dots.
    """
    if not value:
        return False

    if value.startswith(".") or value.endswith(".") or ".." in value:
        return False

    return bool(_VALID_COMPONENT.match(value))


def _find_matches(
    pattern: re.Pattern[str], text: str, kind: ReferenceKind, host: str
) -> list[UrlMatch]:
    matches = []
    for m in pattern.finditer(text):
        owner, repo, _, number_str = m.groups()
        if not (is_valid_repo_component(owner) and is_valid_repo_component(repo)):
            continue

        number = int(number_str)
        if number <= 0:
            continue

        matches.append(
            UrlMatch(
                url=format_url(host, owner, repo, kind, number),
                matched_text=m.group(0),
                owner=owner,
                repo=repo,
                kind=kind,
                number=number,
                start=m.start(),
                end=m.end(),
            )
        )
    return matches


def extract_urls(text: str, host: str = "github.com") -> list[UrlMatch]:
    """Extract all issue and pull request URLs from text.

    Invalid owner/repo values drop only that match. Repeats of the same item
    keep the first occurrence. Results are ordered by start offset.
    """
    issue_pattern, pull_pattern = _compile_patterns(host)

    matches = _find_matches(issue_pattern, text, ReferenceKind.ISSUE, host)
    matches.extend(_find_matches(pull_pattern, text, ReferenceKind.PULL_REQUEST, host))
    matches.sort(key=lambda m: m.start)

    seen: set[tuple[str, str, ReferenceKind, int]] = set()
    result = []
    for match in matches:
        key = (match.owner, match.repo, match.kind, match.number)
        if key in seen:
            continue
        seen.add(key)
        result.append(match)

    return result


def has_stale_keywords(text: str, keywords: list[str]) -> bool:
    """Check if text contains any stale keywords (case-insensitive)."""
    lower_text = text.lower()
    return any(keyword.lower() in lower_text for keyword in keywords if keyword)
