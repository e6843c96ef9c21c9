"""Test main CLI functionality."""

import os
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest
from fakes import FakeTracker, make_state
from typer.testing import CliRunner

from resolved_refs.cli.common import console
from resolved_refs.cli.main import app
from resolved_refs.github_client.models import IssueStateValue

runner = CliRunner()

URL = "https://github.com/acme/widgets/issues/1"


@pytest.fixture(autouse=True)
def wide_console() -> None:
    """Keep table cells on one line so output can be matched."""
    console.width = 200


def _tracker() -> FakeTracker:
    return FakeTracker(
        states={
            ("acme", "widgets", 1): make_state(
                IssueStateValue.CLOSED, "completed", "Crash on start"
            ),
            ("acme", "widgets", 2): make_state(title="Still open"),
        }
    )


def test_version_command() -> None:
    """Test version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "Resolved v" in result.stdout


def test_help_shorthand() -> None:
    """Test -h works like --help."""
    result = runner.invoke(app, ["scan", "-h"])
    assert result.exit_code == 0
    assert "--no-prs" in result.stdout


class TestScanCommand:
    """Test the scan command."""

    def test_scan_file(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text(f"x = 1  # TODO remove after {URL}\n")

        with patch("resolved_refs.cli.scan.create_client", return_value=_tracker()):
            result = runner.invoke(app, ["scan", str(path)])

        assert result.exit_code == 0
        assert "stale" in result.stdout
        assert "1 stale reference" in result.stdout

    def test_fail_on_stale(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text(f"# TODO {URL}\n")

        with patch("resolved_refs.cli.scan.create_client", return_value=_tracker()):
            result = runner.invoke(app, ["scan", "--fail-on-stale", str(path)])

        assert result.exit_code == 1

    def test_no_references(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text("print('hello')\n")

        with patch("resolved_refs.cli.scan.create_client", return_value=_tracker()):
            result = runner.invoke(app, ["scan", str(path)])

        assert result.exit_code == 0
        assert "no resolved issue references" in result.stdout

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scan", str(tmp_path / "nope.py")])
        assert result.exit_code == 1
        assert "File not found" in result.stdout

    @patch.dict(os.environ, {}, clear=True)
    def test_missing_token(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text(f"# {URL}\n")

        result = runner.invoke(app, ["scan", str(path)])

        assert result.exit_code == 1
        assert "GitHub token is required" in result.stdout

    def test_invalid_option(self, tmp_path: Path) -> None:
        path = tmp_path / "main.py"
        path.write_text(f"# {URL}\n")

        result = runner.invoke(app, ["scan", "--ttl", "0", str(path)])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.stdout


class TestIssuesCommand:
    """Test the issues command."""

    def test_ranked_table(self, tmp_path: Path) -> None:
        first = tmp_path / "a.py"
        second = tmp_path / "b.md"
        first.write_text(f"# TODO {URL}\n")
        second.write_text("See https://github.com/acme/widgets/issues/2\n")

        with (
            patch("resolved_refs.cli.issues.create_client", return_value=_tracker()),
            patch(
                "resolved_refs.scanner.session.list_tracked_files",
                AsyncMock(return_value=[first, second]),
            ),
        ):
            result = runner.invoke(
                app, ["issues", "--path", str(tmp_path), "--locations"]
            )

        assert result.exit_code == 0
        assert "acme/widgets#1" in result.stdout
        assert "acme/widgets#2" in result.stdout
        assert "a.py:1" in result.stdout
        assert "2 issues, 2 references in 2 files" in result.stdout
        assert result.stdout.index("acme/widgets#1") < result.stdout.index(
            "acme/widgets#2"
        )

    def test_stale_only(self, tmp_path: Path) -> None:
        path = tmp_path / "b.md"
        path.write_text("See https://github.com/acme/widgets/issues/2\n")

        with (
            patch("resolved_refs.cli.issues.create_client", return_value=_tracker()),
            patch(
                "resolved_refs.scanner.session.list_tracked_files",
                AsyncMock(return_value=[path]),
            ),
        ):
            result = runner.invoke(
                app, ["issues", "--path", str(tmp_path), "--stale-only"]
            )

        assert result.exit_code == 0
        assert "No stale references" in result.stdout

    def test_no_files(self, tmp_path: Path) -> None:
        with (
            patch("resolved_refs.cli.issues.create_client", return_value=_tracker()),
            patch(
                "resolved_refs.scanner.session.list_tracked_files",
                AsyncMock(return_value=[]),
            ),
        ):
            result = runner.invoke(app, ["issues", "--path", str(tmp_path)])

        assert result.exit_code == 0
        assert "No tracked files found" in result.stdout

    def test_not_a_repository(self, tmp_path: Path) -> None:
        """Test git failures are reported with a non-zero exit."""
        from resolved_refs.scanner.workspace import FileListingError

        with (
            patch("resolved_refs.cli.issues.create_client", return_value=_tracker()),
            patch(
                "resolved_refs.scanner.session.list_tracked_files",
                AsyncMock(side_effect=FileListingError("Not a git repository: x")),
            ),
        ):
            result = runner.invoke(app, ["issues", "--path", str(tmp_path)])

        assert result.exit_code == 1
        assert "Not a git repository" in result.stdout


class TestCheckCommand:
    """Test the check command."""

    def test_healthy(self) -> None:
        client = Mock()
        client.check_auth.return_value = (True, None)

        with (
            patch("resolved_refs.cli.check.create_client", return_value=client),
            patch("resolved_refs.cli.check.shutil.which", return_value="/usr/bin/git"),
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 0
        assert "authenticated" in result.stdout

    def test_bad_token(self) -> None:
        client = Mock()
        client.check_auth.return_value = (False, "GitHub token rejected.")

        with (
            patch("resolved_refs.cli.check.create_client", return_value=client),
            patch("resolved_refs.cli.check.shutil.which", return_value="/usr/bin/git"),
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "token rejected" in result.stdout
