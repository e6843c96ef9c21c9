"""Errors raised by tracker clients."""

from .models import FetchErrorKind


class TrackerError(Exception):
    """A status fetch failed for a reason other than the ones below."""

    kind = FetchErrorKind.OTHER


class IssueNotFoundError(TrackerError):
    """The issue or pull request does not exist (or is not visible)."""

    kind = FetchErrorKind.NOT_FOUND


class TrackerAuthError(TrackerError):
    """Authentication failed or the rate limit was exhausted."""

    kind = FetchErrorKind.UNAUTHORIZED
