"""GitHub API client using PyGitHub."""

import asyncio
import logging
import os
from typing import Protocol

from github import Github
from github.GithubException import (
    BadCredentialsException,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)
from github.Issue import Issue
from github.Label import Label
from github.PullRequest import PullRequest

from .errors import IssueNotFoundError, TrackerAuthError, TrackerError
from .models import IssueState, IssueStateValue, ReferenceKind

logger = logging.getLogger(__name__)


class TrackerClient(Protocol):
    """Contract the engine needs from an issue tracker."""

    async def fetch(
        self, owner: str, repo: str, number: int, kind: ReferenceKind
    ) -> IssueState:
        """Return the current state or raise a TrackerError."""
        ...


class GitHubClient:
    """GitHub API client resolving issue and pull request states."""

    def __init__(self, token: str | None = None, host: str = "github.com"):
        """Initialize GitHub client with authentication.

        Args:
            token: GitHub personal access token. If None, reads from
                GITHUB_TOKEN env var.
            host: Tracker host; anything but github.com is treated as a
                GitHub Enterprise server
        """
        self.token = token or os.getenv("GITHUB_TOKEN")
        if not self.token:
            raise ValueError(
                "GitHub token is required. Set GITHUB_TOKEN environment variable."
            )

        self.host = host
        if host == "github.com":
            self.github = Github(self.token)
        else:
            self.github = Github(self.token, base_url=f"https://{host}/api/v3")
        self._auth_checked: bool | None = None
        self._auth_error: str | None = None

    def check_auth(self) -> tuple[bool, str | None]:
        """Check the token works. The result is cached after the first call.

        Returns:
            Tuple of (ok, error message)
        """
        if self._auth_checked is not None:
            return self._auth_checked, self._auth_error

        try:
            login = self.github.get_user().login
            logger.debug("Authenticated to GitHub as %s", login)
            self._auth_checked, self._auth_error = True, None
        except BadCredentialsException:
            self._auth_checked = False
            self._auth_error = "GitHub token rejected. Check GITHUB_TOKEN."
        except Exception as e:
            self._auth_checked = False
            self._auth_error = f"Could not reach GitHub: {e}"

        return self._auth_checked, self._auth_error

    def reset_auth_check(self) -> None:
        """Forget the cached auth check result."""
        self._auth_checked = None
        self._auth_error = None

    def _convert_labels(self, labels: list[Label]) -> frozenset[str]:
        """Convert PyGitHub labels to a set of names."""
        return frozenset(label.name for label in labels)

    def _convert_issue(self, github_issue: Issue) -> IssueState:
        """Convert PyGitHub issue to our model."""
        return IssueState(
            state=IssueStateValue(github_issue.state),
            state_reason=github_issue.state_reason,
            title=github_issue.title or "",
            labels=self._convert_labels(github_issue.labels),
            closed_at=github_issue.closed_at,
            kind=ReferenceKind.ISSUE,
        )

    def _convert_pull(self, github_pull: PullRequest) -> IssueState:
        """Convert PyGitHub pull request to our model."""
        state = IssueStateValue(github_pull.state)
        if github_pull.merged:
            state = IssueStateValue.MERGED

        return IssueState(
            state=state,
            title=github_pull.title or "",
            labels=self._convert_labels(github_pull.labels),
            closed_at=github_pull.closed_at,
            merged_at=github_pull.merged_at,
            kind=ReferenceKind.PULL_REQUEST,
        )

    def get_issue_state(
        self, owner: str, repo: str, number: int, kind: ReferenceKind
    ) -> IssueState:
        """Fetch the state of an issue or pull request (blocking).

        Args:
            owner: Repository owner
            repo: Repository name
            number: Issue or pull request number
            kind: Whether to query the issues or the pulls endpoint

        Returns:
            IssueState for the item

        Raises:
            IssueNotFoundError: The item or repository does not exist
            TrackerAuthError: Bad credentials, forbidden, or rate limited
            TrackerError: Any other API failure
        """
        try:
            repository = self.github.get_repo(f"{owner}/{repo}")
            if kind == ReferenceKind.PULL_REQUEST:
                return self._convert_pull(repository.get_pull(number))
            return self._convert_issue(repository.get_issue(number))
        except UnknownObjectException:
            raise IssueNotFoundError(f"Issue/PR not found: {owner}/{repo}#{number}")
        except (BadCredentialsException, RateLimitExceededException) as e:
            raise TrackerAuthError(f"GitHub API authentication error: {e}") from e
        except GithubException as e:
            if e.status in (401, 403):
                raise TrackerAuthError(
                    f"GitHub API authentication error: {e}"
                ) from e
            raise TrackerError(f"GitHub API error: {e}") from e

    async def fetch(
        self, owner: str, repo: str, number: int, kind: ReferenceKind
    ) -> IssueState:
        """Fetch a state without blocking the event loop."""
        return await asyncio.to_thread(self.get_issue_state, owner, repo, number, kind)
