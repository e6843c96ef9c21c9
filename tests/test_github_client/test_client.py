"""Tests for GitHub client."""

import os
from datetime import datetime
from unittest.mock import Mock, patch

import pytest
from github.GithubException import (
    BadCredentialsException,
    GithubException,
    RateLimitExceededException,
    UnknownObjectException,
)

from resolved_refs.github_client.client import GitHubClient
from resolved_refs.github_client.errors import (
    IssueNotFoundError,
    TrackerAuthError,
    TrackerError,
)
from resolved_refs.github_client.models import (
    FetchErrorKind,
    IssueStateValue,
    ReferenceKind,
)


def _label(name: str) -> Mock:
    label = Mock()
    label.name = name
    return label


def _mock_repo(mock_github_class: Mock) -> Mock:
    mock_repo = Mock()
    mock_github = Mock()
    mock_github.get_repo.return_value = mock_repo
    mock_github_class.return_value = mock_github
    return mock_repo


class TestGitHubClient:
    """Test GitHubClient class."""

    @patch.dict(os.environ, {"GITHUB_TOKEN": "test_token"})
    def test_init_with_env_token(self) -> None:
        """Test initialization with environment token."""
        with patch("resolved_refs.github_client.client.Github") as mock_github:
            GitHubClient()
            mock_github.assert_called_once_with("test_token")

    def test_init_with_explicit_token(self) -> None:
        """Test initialization with explicit token."""
        with patch("resolved_refs.github_client.client.Github") as mock_github:
            GitHubClient(token="explicit_token")
            mock_github.assert_called_once_with("explicit_token")

    def test_init_with_enterprise_host(self) -> None:
        """Test a custom host points PyGithub at the enterprise API."""
        with patch("resolved_refs.github_client.client.Github") as mock_github:
            GitHubClient(token="t", host="git.example.com")
            mock_github.assert_called_once_with(
                "t", base_url="https://git.example.com/api/v3"
            )

    @patch.dict(os.environ, {}, clear=True)
    def test_init_without_token(self) -> None:
        """Test initialization without token raises error."""
        with pytest.raises(ValueError, match="GitHub token is required"):
            GitHubClient()

    @patch("resolved_refs.github_client.client.Github")
    def test_get_issue_state(self, mock_github_class: Mock) -> None:
        """Test converting an issue."""
        mock_repo = _mock_repo(mock_github_class)
        mock_issue = Mock()
        mock_issue.state = "closed"
        mock_issue.state_reason = "completed"
        mock_issue.title = "Crash on start"
        mock_issue.labels = [_label("bug"), _label("upstream")]
        mock_issue.closed_at = datetime(2024, 1, 2, 3, 4, 5)
        mock_repo.get_issue.return_value = mock_issue

        client = GitHubClient(token="test_token")
        state = client.get_issue_state("acme", "widgets", 42, ReferenceKind.ISSUE)

        client.github.get_repo.assert_called_once_with("acme/widgets")
        mock_repo.get_issue.assert_called_once_with(42)
        assert state.state == IssueStateValue.CLOSED
        assert state.state_reason == "completed"
        assert state.title == "Crash on start"
        assert state.labels == frozenset({"bug", "upstream"})
        assert state.closed_at == datetime(2024, 1, 2, 3, 4, 5)
        assert state.kind == ReferenceKind.ISSUE

    @patch("resolved_refs.github_client.client.Github")
    def test_get_merged_pull(self, mock_github_class: Mock) -> None:
        """Test a merged pull request reports merged."""
        mock_repo = _mock_repo(mock_github_class)
        mock_pull = Mock()
        mock_pull.state = "closed"
        mock_pull.merged = True
        mock_pull.title = "Fix crash"
        mock_pull.labels = []
        mock_pull.closed_at = datetime(2024, 1, 2)
        mock_pull.merged_at = datetime(2024, 1, 2)
        mock_repo.get_pull.return_value = mock_pull

        client = GitHubClient(token="test_token")
        state = client.get_issue_state(
            "acme", "widgets", 7, ReferenceKind.PULL_REQUEST
        )

        mock_repo.get_pull.assert_called_once_with(7)
        assert state.state == IssueStateValue.MERGED
        assert state.merged_at == datetime(2024, 1, 2)
        assert state.kind == ReferenceKind.PULL_REQUEST

    @patch("resolved_refs.github_client.client.Github")
    def test_get_open_pull(self, mock_github_class: Mock) -> None:
        mock_repo = _mock_repo(mock_github_class)
        mock_pull = Mock()
        mock_pull.state = "open"
        mock_pull.merged = False
        mock_pull.title = "WIP"
        mock_pull.labels = []
        mock_pull.closed_at = None
        mock_pull.merged_at = None
        mock_repo.get_pull.return_value = mock_pull

        client = GitHubClient(token="test_token")
        state = client.get_issue_state("acme", "widgets", 8, ReferenceKind.PULL_REQUEST)

        assert state.state == IssueStateValue.OPEN

    @patch("resolved_refs.github_client.client.Github")
    def test_not_found(self, mock_github_class: Mock) -> None:
        """Test missing issue raises IssueNotFoundError."""
        mock_repo = _mock_repo(mock_github_class)
        mock_repo.get_issue.side_effect = UnknownObjectException(
            404, "Not Found", None
        )

        client = GitHubClient(token="test_token")

        with pytest.raises(IssueNotFoundError, match="acme/widgets#42") as exc_info:
            client.get_issue_state("acme", "widgets", 42, ReferenceKind.ISSUE)
        assert exc_info.value.kind == FetchErrorKind.NOT_FOUND

    @pytest.mark.parametrize(
        "error",
        [
            BadCredentialsException(401, "Bad credentials", None),
            RateLimitExceededException(403, "rate limit", None),
            GithubException(403, "Forbidden", None),
        ],
    )
    @patch("resolved_refs.github_client.client.Github")
    def test_auth_errors(self, mock_github_class: Mock, error: Exception) -> None:
        """Test credential, permission and rate limit failures."""
        mock_github = Mock()
        mock_github.get_repo.side_effect = error
        mock_github_class.return_value = mock_github

        client = GitHubClient(token="test_token")

        with pytest.raises(TrackerAuthError):
            client.get_issue_state("acme", "widgets", 1, ReferenceKind.ISSUE)

    @patch("resolved_refs.github_client.client.Github")
    def test_other_api_error(self, mock_github_class: Mock) -> None:
        mock_github = Mock()
        mock_github.get_repo.side_effect = GithubException(500, "Server Error", None)
        mock_github_class.return_value = mock_github

        client = GitHubClient(token="test_token")

        with pytest.raises(TrackerError, match="GitHub API error") as exc_info:
            client.get_issue_state("acme", "widgets", 1, ReferenceKind.ISSUE)
        assert exc_info.value.kind == FetchErrorKind.OTHER

    @pytest.mark.asyncio
    @patch("resolved_refs.github_client.client.Github")
    async def test_fetch_runs_in_thread(self, mock_github_class: Mock) -> None:
        """Test the async fetch wraps the blocking call."""
        mock_repo = _mock_repo(mock_github_class)
        mock_issue = Mock()
        mock_issue.state = "open"
        mock_issue.state_reason = None
        mock_issue.title = "Open issue"
        mock_issue.labels = []
        mock_issue.closed_at = None
        mock_repo.get_issue.return_value = mock_issue

        client = GitHubClient(token="test_token")
        state = await client.fetch("acme", "widgets", 3, ReferenceKind.ISSUE)

        assert state.state == IssueStateValue.OPEN
        assert state.title == "Open issue"


class TestCheckAuth:
    """Test token checks."""

    @patch("resolved_refs.github_client.client.Github")
    def test_success_is_cached(self, mock_github_class: Mock) -> None:
        mock_github = Mock()
        mock_github.get_user.return_value.login = "octocat"
        mock_github_class.return_value = mock_github

        client = GitHubClient(token="test_token")

        assert client.check_auth() == (True, None)
        assert client.check_auth() == (True, None)
        mock_github.get_user.assert_called_once()

    @patch("resolved_refs.github_client.client.Github")
    def test_bad_credentials(self, mock_github_class: Mock) -> None:
        mock_github = Mock()
        mock_github.get_user.side_effect = BadCredentialsException(
            401, "Bad credentials", None
        )
        mock_github_class.return_value = mock_github

        client = GitHubClient(token="test_token")
        ok, error = client.check_auth()

        assert not ok
        assert error is not None and "token rejected" in error

    @patch("resolved_refs.github_client.client.Github")
    def test_reset_auth_check(self, mock_github_class: Mock) -> None:
        mock_github = Mock()
        mock_github.get_user.return_value.login = "octocat"
        mock_github_class.return_value = mock_github

        client = GitHubClient(token="test_token")
        client.check_auth()
        client.reset_auth_check()
        client.check_auth()

        assert mock_github.get_user.call_count == 2
