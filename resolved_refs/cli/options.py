"""Standardized CLI option definitions shared by all commands."""

import typer

TOKEN_OPTION = typer.Option(
    None, "--token", "-t", help="GitHub token (defaults to GITHUB_TOKEN env var)"
)

HOST_OPTION = typer.Option(
    None, "--host", help="Tracker host matched in URLs [default: github.com]"
)

INCLUDE_PRS_OPTION = typer.Option(
    None, "--prs/--no-prs", help="Include pull request URLs [default: include]"
)

TTL_OPTION = typer.Option(None, "--ttl", help="Status cache TTL in seconds")

KEYWORDS_OPTION = typer.Option(
    None,
    "--keyword",
    "-k",
    help="Stale keyword (can be used multiple times, replaces the defaults)",
)

LANGUAGE_OPTION = typer.Option(
    None, "--language", "-L", help="Language of the files (guessed from extension)"
)

CONCURRENCY_OPTION = typer.Option(
    None, "--concurrency", "-c", help="Maximum concurrent status fetches"
)

PATH_OPTION = typer.Option(
    ".", "--path", "-p", help="Repository to scan (must be a git work tree)"
)

STALE_ONLY_OPTION = typer.Option(
    False, "--stale-only", help="Only show references flagged as stale"
)

SHOW_LOCATIONS_OPTION = typer.Option(
    False, "--locations", "-l", help="List every location referencing each issue"
)

FAIL_ON_STALE_OPTION = typer.Option(
    False, "--fail-on-stale", help="Exit with status 1 if any stale reference exists"
)

ALL_LINES_OPTION = typer.Option(
    False, "--all-lines", help="Scan every line, not only comments"
)

VERBOSE_OPTION = typer.Option(False, "--verbose", "-v", help="Enable debug logging")
