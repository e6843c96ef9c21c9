"""Staleness classification of references."""

from collections.abc import Iterable

from ..github_client.models import (
    IssueGroup,
    IssueState,
    IssueStateValue,
    Reference,
    Tier,
)

# Closed as "won't fix": the workaround is still needed
NOT_PLANNED = "not_planned"


def is_resolved(state: IssueState) -> bool:
    """Closed or merged, unless the tracker owner declined to fix it."""
    return (
        state.state in (IssueStateValue.CLOSED, IssueStateValue.MERGED)
        and state.state_reason != NOT_PLANNED
    )


def classify(state: IssueState, has_stale_keyword: bool) -> Tier:
    """Determine the tier for a reference."""
    resolved = is_resolved(state)
    if resolved and has_stale_keyword:
        return Tier.STALE
    if resolved:
        return Tier.CLOSED
    return Tier.OPEN


def classify_group(state: IssueState, references: Iterable[Reference]) -> Tier:
    """Tier for a URL referenced from several places.

    A group is stale when any of its locations carries a stale keyword.
    """
    return classify(state, any(ref.has_stale_keyword for ref in references))


def rank(groups: Iterable[IssueGroup]) -> list[IssueGroup]:
    """Order groups stale, closed, open; ties keep discovery order."""
    return sorted(groups, key=lambda group: Tier(group.tier).priority)
