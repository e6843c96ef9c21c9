"""Helpers shared by CLI commands."""

import logging

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..config import ResolvedConfig
from ..github_client.client import GitHubClient
from ..github_client.models import IssueStateValue, Tier

console = Console()

TIER_STYLES = {
    Tier.STALE: "bold red",
    Tier.CLOSED: "yellow",
    Tier.OPEN: "green",
}

TIER_ICONS = {
    Tier.STALE: "⚠️",
    Tier.CLOSED: "✅",
    Tier.OPEN: "🔵",
}


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_config(
    host: str | None = None,
    include_prs: bool | None = None,
    ttl: int | None = None,
    keywords: list[str] | None = None,
    concurrency: int | None = None,
) -> ResolvedConfig:
    """Build the config from the environment and command line overrides."""
    try:
        return ResolvedConfig.from_env(
            tracker_host=host,
            include_prs=include_prs,
            cache_ttl=ttl,
            stale_keywords=keywords or None,
            max_concurrency=concurrency,
        )
    except ValidationError as e:
        console.print(f"❌ Invalid configuration: {escape(str(e))}")
        raise typer.Exit(1)


def create_client(token: str | None, host: str) -> GitHubClient:
    try:
        return GitHubClient(token=token, host=host)
    except ValueError as e:
        console.print(f"❌ {e}")
        raise typer.Exit(1)


def tier_text(tier: Tier) -> Text:
    return Text(f"{TIER_ICONS[tier]} {tier.value}", style=TIER_STYLES[tier])


def state_label(state: IssueStateValue, state_reason: str | None) -> str:
    """Human readable state, e.g. "closed (not_planned)"."""
    if state == IssueStateValue.CLOSED and state_reason:
        return f"{state.value} ({state_reason})"
    return state.value
