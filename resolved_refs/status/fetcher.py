"""Cache-first, concurrency-bounded status fetching."""

import asyncio
import logging
from collections.abc import Callable, Iterable

from ..github_client.client import TrackerClient
from ..github_client.errors import TrackerError
from ..github_client.models import (
    FetchErrorKind,
    FetchResult,
    IssueRef,
    IssueState,
    Reference,
)
from ..storage.cache import StatusCache

logger = logging.getLogger(__name__)


class BatchStatusFetcher:
    """Resolves references to states with isolated per-item failures.

    Overlapping calls share a single in-flight fetch per URL.
    """

    def __init__(
        self,
        client: TrackerClient,
        cache: StatusCache[IssueState],
        max_concurrency: int = 8,
        timeout: float = 30.0,
    ):
        """Initialize the fetcher.

        Args:
            client: Tracker client used for cache misses
            cache: Cache consulted first and filled with successes
            max_concurrency: Maximum number of fetches running at once
            timeout: Seconds allowed for a single fetch
        """
        if max_concurrency <= 0:
            raise ValueError("max_concurrency must be positive")
        if timeout <= 0:
            raise ValueError("timeout must be positive")

        self.client = client
        self.cache = cache
        self.timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._in_flight: dict[str, asyncio.Task[FetchResult]] = {}

    @property
    def in_flight(self) -> int:
        """Number of URLs currently being fetched."""
        return len(self._in_flight)

    async def fetch_many(
        self,
        refs: Iterable[IssueRef],
        is_current: Callable[[], bool] | None = None,
    ) -> dict[str, FetchResult]:
        """Resolve every distinct URL in refs.

        Args:
            refs: References or fetch tuples; repeated URLs are fetched once
            is_current: Checked after fetches settle; when it returns False
                nothing is written to the cache

        Returns:
            Mapping of every requested URL to a state or an error
        """
        unique: dict[str, IssueRef] = {}
        for ref in refs:
            issue_ref = ref.issue_ref() if isinstance(ref, Reference) else ref
            unique.setdefault(issue_ref.url, issue_ref)

        results: dict[str, FetchResult] = {}
        misses: list[IssueRef] = []
        for url, ref in unique.items():
            cached = self.cache.get(url)
            if cached is not None:
                results[url] = FetchResult(url=url, state=cached)
            else:
                misses.append(ref)

        if not misses:
            return results

        logger.debug(
            "Fetching %d of %d statuses (%d cached)",
            len(misses),
            len(unique),
            len(results),
        )

        # Shielded so a cancelled caller does not cancel a fetch another
        # caller is also waiting on
        tasks = [asyncio.shield(self._shared_fetch(ref)) for ref in misses]
        fetched = await asyncio.gather(*tasks)

        commit = is_current is None or is_current()
        for result in fetched:
            if result.state is not None and commit:
                self.cache.set(result.url, result.state)
            results[result.url] = result

        return {url: results[url] for url in unique}

    def _shared_fetch(self, ref: IssueRef) -> "asyncio.Task[FetchResult]":
        task = self._in_flight.get(ref.url)
        if task is None:
            task = asyncio.create_task(self._fetch_one(ref))
            self._in_flight[ref.url] = task
            task.add_done_callback(lambda _: self._in_flight.pop(ref.url, None))
        return task

    async def _fetch_one(self, ref: IssueRef) -> FetchResult:
        await self._semaphore.acquire()
        call = asyncio.create_task(
            self.client.fetch(ref.owner, ref.repo, ref.number, ref.kind)
        )
        # The slot is freed when the call ends, not when we stop waiting: a
        # timed out request keeps its worker thread busy until it returns
        call.add_done_callback(self._release_slot)

        done, _ = await asyncio.wait({call}, timeout=self.timeout)
        if not done:
            return self._failure(
                ref,
                f"Timed out after {self.timeout:g}s fetching {ref.url}",
                FetchErrorKind.TIMEOUT,
            )

        try:
            state = call.result()
        except TrackerError as e:
            return self._failure(ref, str(e), e.kind)
        except Exception as e:
            return self._failure(
                ref,
                f"Unexpected error fetching {ref.url}: {e}",
                FetchErrorKind.OTHER,
            )

        return FetchResult(url=ref.url, state=state)

    def _release_slot(self, call: "asyncio.Task[IssueState]") -> None:
        self._semaphore.release()
        if not call.cancelled() and call.exception() is not None:
            logger.debug("Tracker call ended with %r", call.exception())

    def _failure(
        self, ref: IssueRef, message: str, kind: FetchErrorKind
    ) -> FetchResult:
        logger.debug("Status fetch failed (%s): %s", kind.value, message)
        return FetchResult(url=ref.url, error=message, error_kind=kind)
