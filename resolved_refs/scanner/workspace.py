"""Workspace-wide scanning of tracked files."""

import asyncio
import logging
import shutil
import time
from collections.abc import Callable, Iterable
from pathlib import Path

from pydantic import BaseModel, Field

from ..config import ResolvedConfig
from ..detection.comments import (
    CommentSpanProvider,
    LineSpanProvider,
    language_for_path,
)
from ..detection.scanner import scan_spans
from ..github_client.models import (
    FetchResult,
    FileReference,
    IssueGroup,
    IssueState,
    Tier,
)
from ..status.classifier import classify_group, rank

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, int], None]


class FileListingError(Exception):
    """Tracked files could not be listed."""


class WorkspaceReport(BaseModel):
    """Ranked result of a workspace scan."""

    files_scanned: int = Field(..., description="Number of files visited")
    reference_count: int = Field(..., description="Total references found")
    groups: list[IssueGroup] = Field(
        default_factory=list, description="One group per URL, stale first"
    )

    @property
    def errors(self) -> dict[str, str]:
        """URLs whose status could not be fetched, with the reason."""
        return {group.url: group.error for group in self.groups if group.error}

    def count(self, tier: Tier) -> int:
        return sum(1 for group in self.groups if group.tier == tier)


async def list_tracked_files(cwd: str | Path, timeout: float = 30.0) -> list[Path]:
    """List git-tracked files as absolute paths.

    Raises:
        FileListingError: git is missing, cwd is not a repository, or the
            command timed out
    """
    root = Path(cwd).resolve()
    if not root.is_dir():
        raise FileListingError(f"Invalid working directory: {root}")

    if shutil.which("git") is None:
        raise FileListingError("git not found")

    proc = await asyncio.create_subprocess_exec(
        "git",
        "ls-files",
        "-z",
        cwd=root,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        proc.kill()
        await proc.wait()
        raise FileListingError("Git command timed out")

    if proc.returncode != 0:
        message = stderr.decode("utf-8", errors="replace").strip()
        raise FileListingError(f"Not a git repository: {message}")

    names = stdout.decode("utf-8", errors="replace").split("\0")
    return [root / name for name in names if name]


def read_source(path: Path, max_size: int) -> str | None:
    """Read a text file, or None if it should be skipped.

    Unreadable, empty, oversized, and binary (NUL byte) files are skipped.
    """
    try:
        size = path.stat().st_size
        if size == 0 or size > max_size:
            return None
        data = path.read_bytes()
    except OSError as e:
        logger.debug("Could not read %s: %s", path, e)
        return None

    if b"\0" in data:
        return None

    return data.decode("utf-8", errors="replace")


async def scan_file(
    path: Path,
    config: ResolvedConfig,
    provider: CommentSpanProvider | None = None,
) -> list[FileReference]:
    """Scan a file for references without blocking the event loop."""
    text = await asyncio.to_thread(read_source, path, config.max_file_size)
    if text is None:
        logger.debug("Skipping %s", path)
        return []

    provider = provider or LineSpanProvider()
    language = language_for_path(path)
    references = scan_spans(provider.spans(text, language), config)
    return [
        FileReference(**ref.model_dump(), file_path=str(path)) for ref in references
    ]


class ProgressThrottle:
    """Forwards progress at most once per interval; final reports always fire."""

    def __init__(
        self,
        callback: ProgressCallback,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._callback = callback
        self._interval = interval
        self._clock = clock
        self._last: float | None = None

    def report(self, completed: int, total: int, found: int, final: bool = False) -> bool:
        """Forward a report if allowed.

        Returns:
            True if the callback was invoked
        """
        now = self._clock()
        if not final and self._last is not None and now - self._last < self._interval:
            return False

        self._last = now
        self._callback(completed, total, found)
        return True


class WorkspaceScanner:
    """Scans files in fixed-size concurrent batches."""

    def __init__(
        self,
        config: ResolvedConfig,
        provider: CommentSpanProvider | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.provider = provider or LineSpanProvider()
        self._clock = clock

    async def _scan_into(
        self,
        index: int,
        path: Path,
        queue: "asyncio.Queue[tuple[int, list[FileReference]]]",
    ) -> None:
        refs: list[FileReference] = []
        try:
            refs = await scan_file(path, self.config, self.provider)
        except Exception as e:
            logger.warning("Failed to scan %s: %s", path, e)
        queue.put_nowait((index, refs))

    async def scan_files(
        self,
        paths: Iterable[str | Path],
        on_progress: ProgressCallback | None = None,
        is_current: Callable[[], bool] | None = None,
    ) -> list[FileReference] | None:
        """Scan files batch by batch.

        Files inside a batch run concurrently and report through a queue
        drained by this coroutine, so each batch advances exactly once after
        every member reported. References keep file order.

        Returns:
            All references, or None if is_current turned False between batches
        """
        files = [Path(p) for p in paths]
        total = len(files)
        batch_size = self.config.batch_size
        throttle = (
            ProgressThrottle(
                on_progress, self.config.progress_throttle_ms / 1000, self._clock
            )
            if on_progress
            else None
        )

        all_refs: list[FileReference] = []
        completed = 0

        for start in range(0, total, batch_size):
            batch = files[start : start + batch_size]
            queue: asyncio.Queue[tuple[int, list[FileReference]]] = asyncio.Queue()
            slots: list[list[FileReference]] = [[] for _ in batch]

            tasks = [
                asyncio.create_task(self._scan_into(i, path, queue))
                for i, path in enumerate(batch)
            ]
            try:
                for _ in batch:
                    index, refs = await queue.get()
                    slots[index] = refs
                    completed += 1
            finally:
                for task in tasks:
                    if not task.done():
                        task.cancel()

            for refs in slots:
                all_refs.extend(refs)

            if is_current is not None and not is_current():
                logger.debug("Workspace scan superseded after %d files", completed)
                return None

            if throttle and completed < total:
                throttle.report(completed, total, len(all_refs))

        if throttle:
            throttle.report(completed, total, len(all_refs), final=True)

        return all_refs


def group_by_url(refs: Iterable[FileReference]) -> dict[str, list[FileReference]]:
    """Group references by URL in discovery order."""
    by_url: dict[str, list[FileReference]] = {}
    for ref in refs:
        by_url.setdefault(ref.url, []).append(ref)
    return by_url


def build_issue_groups(
    by_url: dict[str, list[FileReference]], results: dict[str, FetchResult]
) -> list[IssueGroup]:
    """Attach statuses and tiers to grouped references, ranked stale first."""
    groups = []
    for url, refs in by_url.items():
        first = refs[0]
        result = results.get(url)

        error = None
        if result is None:
            error = "No status returned"
        elif result.error is not None:
            error = result.error

        state = result.state if result and result.state else IssueState.unknown()

        groups.append(
            IssueGroup(
                url=url,
                owner=first.owner,
                repo=first.repo,
                kind=first.kind,
                number=first.number,
                title=state.title,
                state=state.state,
                state_reason=state.state_reason,
                tier=classify_group(state, refs),
                locations=refs,
                error=error,
            )
        )

    return rank(groups)
