"""CLI command for listing issue references across a repository."""

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from ..github_client.models import IssueGroup, Tier
from ..scanner.session import ScanSession
from ..scanner.workspace import FileListingError, WorkspaceReport
from .common import (
    console,
    create_client,
    load_config,
    setup_logging,
    state_label,
    tier_text,
)
from .options import (
    CONCURRENCY_OPTION,
    FAIL_ON_STALE_OPTION,
    HOST_OPTION,
    INCLUDE_PRS_OPTION,
    KEYWORDS_OPTION,
    PATH_OPTION,
    SHOW_LOCATIONS_OPTION,
    STALE_ONLY_OPTION,
    TOKEN_OPTION,
    TTL_OPTION,
    VERBOSE_OPTION,
)


def _relative(path: str, root: Path) -> str:
    try:
        return str(Path(path).relative_to(root))
    except ValueError:
        return path


def build_groups_table(
    groups: list[IssueGroup], root: Path, show_locations: bool
) -> Table:
    """Render ranked issue groups as a table."""
    table = Table(title="Issue References")
    table.add_column("Tier")
    table.add_column("Issue", style="cyan")
    table.add_column("State", style="white")
    table.add_column("Title", style="white")
    table.add_column("Refs", justify="right", style="yellow")
    if show_locations:
        table.add_column("Locations", style="magenta")

    for group in groups:
        state = group.error or state_label(group.state, group.state_reason)
        row = [
            tier_text(group.tier),
            group.display_id,
            state,
            group.title,
            str(len(group.locations)),
        ]
        if show_locations:
            row.append(
                "\n".join(
                    f"{_relative(ref.file_path, root)}:{ref.line}"
                    for ref in group.locations
                )
            )
        table.add_row(*row)

    return table


def issues(
    path: Path = PATH_OPTION,
    show_locations: bool = SHOW_LOCATIONS_OPTION,
    stale_only: bool = STALE_ONLY_OPTION,
    host: str | None = HOST_OPTION,
    include_prs: bool | None = INCLUDE_PRS_OPTION,
    ttl: int | None = TTL_OPTION,
    keywords: list[str] | None = KEYWORDS_OPTION,
    concurrency: int | None = CONCURRENCY_OPTION,
    token: str | None = TOKEN_OPTION,
    fail_on_stale: bool = FAIL_ON_STALE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Scan every git-tracked file and rank the referenced issues.

    Stale references (closed issues next to a TODO or workaround comment) are
    listed first, then closed, then open ones.

    Examples:
        resolved issues
        resolved issues --path ../project --locations --stale-only
    """
    setup_logging(verbose)

    config = load_config(host, include_prs, ttl, keywords, concurrency)
    client = create_client(token, config.tracker_host)
    session = ScanSession(client, config)
    root = path.resolve()

    with console.status("[bold green]Scanning files...") as status:

        def on_progress(completed: int, total: int, found: int) -> None:
            status.update(
                f"[bold green]Scanning files... {completed}/{total} "
                f"({found} references)"
            )

        try:
            report: WorkspaceReport | None = asyncio.run(
                session.scan_workspace(on_progress=on_progress, cwd=root)
            )
        except FileListingError as e:
            console.print(f"❌ {e}")
            raise typer.Exit(1)

    if report is None:
        console.print("❌ Scan was cancelled")
        raise typer.Exit(1)

    if report.files_scanned == 0:
        console.print("❌ No tracked files found")
        return

    if not report.groups:
        console.print(f"✅ No issue references in {report.files_scanned} files")
        return

    groups = report.groups
    if stale_only:
        groups = [group for group in groups if group.tier == Tier.STALE]

    if groups:
        console.print(build_groups_table(groups, root, show_locations))
    else:
        console.print("✅ No stale references")

    console.print(
        f"📊 {len(report.groups)} issues, {report.reference_count} references "
        f"in {report.files_scanned} files"
    )
    console.print(
        f"⚠️  Stale: {report.count(Tier.STALE)}  "
        f"Closed: {report.count(Tier.CLOSED)}  "
        f"Open: {report.count(Tier.OPEN)}"
    )
    if report.errors:
        console.print(f"❌ {len(report.errors)} status lookups failed")

    if fail_on_stale and report.count(Tier.STALE):
        raise typer.Exit(1)
