"""CLI command for annotating individual files."""

import asyncio
from pathlib import Path

import typer
from rich.table import Table

from ..detection.comments import LeaderCommentProvider, LineSpanProvider
from ..github_client.models import Annotation, Tier
from ..scanner.session import RecordingRenderer, ScanSession, ScanTarget
from .common import (
    console,
    create_client,
    load_config,
    setup_logging,
    state_label,
    tier_text,
)
from .options import (
    ALL_LINES_OPTION,
    CONCURRENCY_OPTION,
    FAIL_ON_STALE_OPTION,
    HOST_OPTION,
    INCLUDE_PRS_OPTION,
    KEYWORDS_OPTION,
    LANGUAGE_OPTION,
    TOKEN_OPTION,
    TTL_OPTION,
    VERBOSE_OPTION,
)


async def annotate_files(
    session: ScanSession, files: list[Path], language: str | None
) -> dict[str, list[Annotation]]:
    """Scan files one after another, sharing the session cache."""
    results: dict[str, list[Annotation]] = {}
    for path in files:
        target = ScanTarget.for_path(path, language)
        annotations = await session.scan_target(target)
        results[target.key] = annotations or []
    return results


def scan(
    files: list[Path] = typer.Argument(..., help="Files to scan"),
    language: str | None = LANGUAGE_OPTION,
    all_lines: bool = ALL_LINES_OPTION,
    host: str | None = HOST_OPTION,
    include_prs: bool | None = INCLUDE_PRS_OPTION,
    ttl: int | None = TTL_OPTION,
    keywords: list[str] | None = KEYWORDS_OPTION,
    concurrency: int | None = CONCURRENCY_OPTION,
    token: str | None = TOKEN_OPTION,
    fail_on_stale: bool = FAIL_ON_STALE_OPTION,
    verbose: bool = VERBOSE_OPTION,
) -> None:
    """Show the status of issue references in the comments of FILES.

    Examples:
        resolved scan src/main.py
        resolved scan --language lua init.lua --no-prs
    """
    setup_logging(verbose)

    missing = [str(path) for path in files if not path.is_file()]
    if missing:
        console.print(f"❌ File not found: {', '.join(missing)}")
        raise typer.Exit(1)

    config = load_config(host, include_prs, ttl, keywords, concurrency)
    client = create_client(token, config.tracker_host)

    renderer = RecordingRenderer()
    provider = LineSpanProvider() if all_lines else LeaderCommentProvider(config)
    session = ScanSession(client, config, renderer, comment_provider=provider)

    results = asyncio.run(annotate_files(session, files, language))

    stale_total = 0
    for key, annotations in results.items():
        if not annotations:
            console.print(f"[dim]{key}: no resolved issue references[/dim]")
            continue

        table = Table(title=key)
        table.add_column("Line", justify="right", style="cyan")
        table.add_column("Reference", style="magenta")
        table.add_column("Tier")
        table.add_column("State", style="white")
        table.add_column("Title", style="white")

        for annotation in annotations:
            table.add_row(
                f"{annotation.line}:{annotation.start_column + 1}",
                annotation.url,
                tier_text(annotation.tier),
                state_label(annotation.state, annotation.state_reason),
                annotation.title,
            )
            if annotation.tier == Tier.STALE:
                stale_total += 1

        console.print(table)

    if stale_total:
        console.print(f"⚠️  {stale_total} stale reference(s) found")
    if fail_on_stale and stale_total:
        raise typer.Exit(1)
