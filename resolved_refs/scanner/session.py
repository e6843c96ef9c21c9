"""Scan orchestration for buffers and whole workspaces.

A ScanSession owns the status cache, the fetcher, the generation counter and
the per-target debounce tasks. Every coroutine captures the generation when it
starts and re-checks it before producing output, so disable() and reset()
invalidate in-flight work without having to cancel it.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Protocol

from ..config import ResolvedConfig
from ..detection.comments import (
    CommentSpanProvider,
    LeaderCommentProvider,
    language_for_path,
)
from ..detection.scanner import scan_spans
from ..github_client.client import TrackerClient
from ..github_client.models import Annotation, FetchResult, IssueState, Reference
from ..status.classifier import classify
from ..status.fetcher import BatchStatusFetcher
from ..storage.cache import StatusCache
from .workspace import (
    ProgressCallback,
    WorkspaceReport,
    WorkspaceScanner,
    build_issue_groups,
    group_by_url,
    list_tracked_files,
)

logger = logging.getLogger(__name__)


class TargetState(str, Enum):
    """Where a scan target is in its scan cycle."""

    IDLE = "idle"
    PENDING = "pending"
    SCANNING = "scanning"
    RESOLVING = "resolving"


@dataclass
class ScanTarget:
    """Something with text that can be scanned: an editor buffer or a file.

    File-backed targets set read_in_thread so the read stays off the event
    loop.
    """

    key: str
    get_text: Callable[[], str]
    language: str | None = None
    is_valid: Callable[[], bool] = field(default=lambda: True)
    read_in_thread: bool = False

    @classmethod
    def for_path(cls, path: str | Path, language: str | None = None) -> "ScanTarget":
        """Target backed by a file; invalid once the file disappears."""
        file_path = Path(path)
        return cls(
            key=str(file_path),
            get_text=lambda: file_path.read_text(encoding="utf-8", errors="replace"),
            language=language or language_for_path(file_path),
            is_valid=file_path.is_file,
            read_in_thread=True,
        )


class Renderer(Protocol):
    """Presents annotations for a target."""

    def render(self, key: str, annotations: list[Annotation]) -> None: ...

    def clear(self, key: str) -> None: ...

    def clear_all(self) -> None: ...


class NullRenderer:
    """Discards everything."""

    def render(self, key: str, annotations: list[Annotation]) -> None:
        pass

    def clear(self, key: str) -> None:
        pass

    def clear_all(self) -> None:
        pass


class RecordingRenderer:
    """Keeps the latest annotations per target in memory."""

    def __init__(self) -> None:
        self.annotations: dict[str, list[Annotation]] = {}

    def render(self, key: str, annotations: list[Annotation]) -> None:
        self.annotations[key] = list(annotations)

    def clear(self, key: str) -> None:
        self.annotations.pop(key, None)

    def clear_all(self) -> None:
        self.annotations.clear()


def build_annotations(
    refs: list[Reference], results: dict[str, FetchResult]
) -> list[Annotation]:
    """Pair references with their tiers, skipping ones without a status."""
    annotations = []
    for ref in refs:
        result = results.get(ref.url)
        if result is None or result.state is None:
            continue

        state: IssueState = result.state
        annotations.append(
            Annotation(
                line=ref.line,
                start_column=ref.start_column,
                end_column=ref.end_column,
                url=ref.url,
                tier=classify(state, ref.has_stale_keyword),
                state=state.state,
                state_reason=state.state_reason,
                title=state.title,
                labels=sorted(state.labels),
                has_stale_keyword=ref.has_stale_keyword,
            )
        )
    return annotations


class ScanSession:
    """Coordinates debounced buffer scans and batched workspace scans."""

    def __init__(
        self,
        client: TrackerClient,
        config: ResolvedConfig | None = None,
        renderer: Renderer | None = None,
        comment_provider: CommentSpanProvider | None = None,
        workspace_provider: CommentSpanProvider | None = None,
        list_files: Callable[[], Awaitable[list[Path]]] | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize a session.

        Args:
            client: Tracker client used for cache misses
            config: Engine settings, defaults if None
            renderer: Receives annotations; NullRenderer if None
            comment_provider: Finds comments in buffers
            workspace_provider: Finds spans in workspace files (every line
                by default)
            list_files: Coroutine function listing workspace files; git
                ls-files in the current directory if None
            clock: Monotonic time source for the cache and progress throttle
        """
        self.config = config or ResolvedConfig()
        self.client = client
        self.renderer: Renderer = renderer or NullRenderer()
        self.comment_provider = comment_provider or LeaderCommentProvider(self.config)
        self.workspace_provider = workspace_provider
        self._list_files = list_files
        self._clock = clock

        self.cache: StatusCache[IssueState] = StatusCache(self.config.cache_ttl, clock)
        self.fetcher = self._new_fetcher()

        self._enabled = self.config.enabled
        self._generation = 0
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._states: dict[str, TargetState] = {}
        self._scan_seq: dict[str, int] = {}

    def _new_fetcher(self) -> BatchStatusFetcher:
        return BatchStatusFetcher(
            self.client,
            self.cache,
            max_concurrency=self.config.max_concurrency,
            timeout=self.config.fetch_timeout,
        )

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    def target_state(self, key: str) -> TargetState:
        return self._states.get(key, TargetState.IDLE)

    def _set_state(self, key: str, state: TargetState) -> None:
        if state == TargetState.IDLE:
            self._states.pop(key, None)
        else:
            self._states[key] = state

    def _is_current(self, generation: int) -> bool:
        return self._enabled and generation == self._generation

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        """Stop scanning, cancel pending timers and clear annotations.

        Bumps the generation so in-flight scans produce no output.
        """
        self._enabled = False
        self._generation += 1
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()
        self._states.clear()
        self.renderer.clear_all()

    def toggle(self) -> None:
        if self._enabled:
            self.disable()
        else:
            self.enable()

    def reset(self) -> None:
        """Disable and start over with an empty cache."""
        self.disable()
        self.cache = StatusCache(self.config.cache_ttl, self._clock)
        self.fetcher = self._new_fetcher()
        reset_auth = getattr(self.client, "reset_auth_check", None)
        if callable(reset_auth):
            reset_auth()

    def clear_cache(self) -> None:
        self.cache.clear()

    def schedule_scan(self, target: ScanTarget) -> None:
        """(Re)start the debounce timer for a target.

        Only the target's own pending timer is replaced.
        """
        if not self._enabled:
            return

        self.cancel_target(target.key)
        self._set_state(target.key, TargetState.PENDING)
        self._timers[target.key] = asyncio.create_task(
            self._debounced_scan(target, self._generation)
        )

    def cancel_target(self, key: str) -> None:
        """Drop a target's pending timer, e.g. when its buffer is deleted."""
        task = self._timers.pop(key, None)
        if task is not None and not task.done():
            task.cancel()
        if self.target_state(key) == TargetState.PENDING:
            self._set_state(key, TargetState.IDLE)

    async def _debounced_scan(self, target: ScanTarget, generation: int) -> None:
        await asyncio.sleep(self.config.debounce_ms / 1000)

        if self._timers.get(target.key) is asyncio.current_task():
            del self._timers[target.key]

        if not self._is_current(generation):
            return
        if not target.is_valid():
            self._set_state(target.key, TargetState.IDLE)
            return

        await self.scan_target(target)

    async def scan_target(self, target: ScanTarget) -> list[Annotation] | None:
        """Scan a target now and hand the annotations to the renderer.

        Returns:
            The emitted annotations, or None if the result was discarded
            because the session moved on or the target vanished
        """
        if not self._enabled or not target.is_valid():
            return None

        generation = self._generation
        seq = self._scan_seq.get(target.key, 0) + 1
        self._scan_seq[target.key] = seq

        def still_wanted() -> bool:
            return (
                self._is_current(generation)
                and self._scan_seq.get(target.key) == seq
                and target.is_valid()
            )

        try:
            self._set_state(target.key, TargetState.SCANNING)
            try:
                if target.read_in_thread:
                    text = await asyncio.to_thread(target.get_text)
                else:
                    text = target.get_text()
            except OSError as e:
                logger.debug("Skipping %s: %s", target.key, e)
                self.renderer.clear(target.key)
                return None

            spans = self.comment_provider.spans(text, target.language)
            refs = scan_spans(spans, self.config)

            if not refs:
                self.renderer.clear(target.key)
                return []

            self._set_state(target.key, TargetState.RESOLVING)
            results = await self.fetcher.fetch_many(refs, is_current=still_wanted)

            if not still_wanted():
                logger.debug("Discarding stale scan of %s", target.key)
                return None

            annotations = build_annotations(refs, results)
            self.renderer.render(target.key, annotations)
            return annotations
        finally:
            if self._scan_seq.get(target.key) == seq:
                self._set_state(target.key, TargetState.IDLE)

    async def scan_workspace(
        self,
        on_progress: ProgressCallback | None = None,
        cwd: str | Path = ".",
    ) -> WorkspaceReport | None:
        """Scan every tracked file and rank the referenced issues.

        Raises:
            FileListingError: The file list could not be obtained

        Returns:
            The ranked report, or None if the session moved on meanwhile
        """
        generation = self._generation

        def is_current() -> bool:
            return generation == self._generation

        if self._list_files is not None:
            files = await self._list_files()
        else:
            files = await list_tracked_files(cwd, self.config.git_timeout)

        if not is_current():
            return None
        if not files:
            return WorkspaceReport(files_scanned=0, reference_count=0)

        scanner = WorkspaceScanner(self.config, self.workspace_provider, self._clock)
        refs = await scanner.scan_files(files, on_progress, is_current)
        if refs is None:
            return None

        by_url = group_by_url(refs)
        first_refs = [locations[0] for locations in by_url.values()]
        results = await self.fetcher.fetch_many(first_refs, is_current=is_current)
        if not is_current():
            return None

        return WorkspaceReport(
            files_scanned=len(files),
            reference_count=len(refs),
            groups=build_issue_groups(by_url, results),
        )
