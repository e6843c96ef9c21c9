"""CLI command verifying the environment."""

import shutil

import typer
from rich.table import Table

from .common import console, create_client, load_config
from .options import HOST_OPTION, TOKEN_OPTION


def check(
    host: str | None = HOST_OPTION,
    token: str | None = TOKEN_OPTION,
) -> None:
    """Check that git is installed and the GitHub token works."""
    config = load_config(host)

    table = Table(title="Health Check")
    table.add_column("Check", style="cyan")
    table.add_column("Result")

    healthy = True

    git = shutil.which("git")
    if git:
        table.add_row("git", f"✅ {git}")
    else:
        table.add_row("git", "❌ not found (workspace scans unavailable)")
        healthy = False

    client = create_client(token, config.tracker_host)
    ok, error = client.check_auth()
    if ok:
        table.add_row(f"{config.tracker_host} token", "✅ authenticated")
    else:
        table.add_row(f"{config.tracker_host} token", f"❌ {error}")
        healthy = False

    console.print(table)

    if not healthy:
        raise typer.Exit(1)
