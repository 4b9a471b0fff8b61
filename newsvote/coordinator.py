"""
Recalculation coordinator.

Re-derives an article's tally from the authoritative vote ledger and serializes
every mutation of that article behind one asyncio.Lock, so a wholesale ledger
replacement never interleaves with incremental vote deltas. Articles are
independent of each other.

The ledger is any async callable `ledger(article_id) -> Mapping` returning
{fakeVotes, nonFakeVotes, invalidVotes}; see newsvote.ledger.HttpLedger.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable, Mapping

from newsvote.errors import RecalculationError, ValidationError
from newsvote.models import Snapshot, VoteIngestEvent, VoteInvalidationEvent
from newsvote.registry import ArticleRegistry
from newsvote.tally import Tally

logger = logging.getLogger(__name__)

Ledger = Callable[[str], Awaitable[Mapping[str, Any]]]


class RecalculationCoordinator:
    def __init__(self, registry: ArticleRegistry, ledger: Ledger) -> None:
        self.registry = registry
        self._ledger = ledger
        self._locks: dict[str, asyncio.Lock] = {}
        self._in_flight: dict[str, int] = {}
        self._tasks: set[asyncio.Task] = set()
        self.background_errors: list[BaseException] = []

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def recalculate(self, article_id: str) -> Snapshot:
        """
        Replace the article's tally with a fresh ledger read and reclassify it.

        Raises:
            RecalculationError: the ledger failed or returned a malformed payload.
                The previous tally and snapshot are left untouched.
        """
        return await self._submit(article_id, lambda: self._recount(article_id))

    async def ingest(self, event: VoteIngestEvent) -> Snapshot:
        return await self._submit(event.article_id, lambda: self._apply(self.registry.apply_vote, event))

    async def invalidate(self, event: VoteInvalidationEvent) -> Snapshot:
        return await self._submit(event.article_id, lambda: self._apply(self.registry.apply_invalidation, event))

    async def recalculate_many(self, article_ids: Iterable[str]) -> dict[str, Snapshot | RecalculationError]:
        """Recount several articles concurrently; failures are returned per article."""
        article_ids = list(dict.fromkeys(article_ids))

        async def one(article_id: str):
            try:
                return await self.recalculate(article_id)
            except RecalculationError as exc:
                return exc

        results = await asyncio.gather(*(one(a) for a in article_ids))
        return dict(zip(article_ids, results))

    def in_flight(self, article_id: str) -> bool:
        return self._in_flight.get(article_id, 0) > 0

    async def drain(self) -> None:
        """Wait until every submitted operation has committed or failed."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def _lock_for(self, article_id: str) -> asyncio.Lock:
        lock = self._locks.get(article_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[article_id] = lock
        return lock

    async def _submit(self, article_id: str, operation: Callable[[], Awaitable[Snapshot]]) -> Snapshot:
        self._in_flight[article_id] = self._in_flight.get(article_id, 0) + 1
        task = asyncio.ensure_future(self._run_locked(article_id, operation))
        self._tasks.add(task)

        def finished(done: asyncio.Task) -> None:
            self._tasks.discard(done)
            remaining = self._in_flight.get(article_id, 1) - 1
            if remaining > 0:
                self._in_flight[article_id] = remaining
            else:
                self._in_flight.pop(article_id, None)
                lock = self._locks.get(article_id)
                if lock is not None and not lock.locked():
                    del self._locks[article_id]

        task.add_done_callback(finished)
        try:
            # shield: a caller that stops waiting does not cancel the commit.
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(self._record_abandoned)
            raise

    async def _run_locked(self, article_id: str, operation: Callable[[], Awaitable[Snapshot]]) -> Snapshot:
        async with self._lock_for(article_id):
            return await operation()

    def _record_abandoned(self, task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.background_errors.append(exc)
            logger.warning("abandoned vote operation failed: %s", exc)

    # ------------------------------------------------------------------
    # Operations run under the article lock
    # ------------------------------------------------------------------

    async def _apply(self, mutation, event) -> Snapshot:
        return mutation(event)

    async def _recount(self, article_id: str) -> Snapshot:
        try:
            payload = await self._ledger(article_id)
        except RecalculationError:
            raise
        except Exception as exc:
            raise RecalculationError(article_id, f"vote ledger unavailable: {exc}") from exc

        try:
            tally = Tally.from_ledger(payload)
        except ValidationError as exc:
            raise RecalculationError(article_id, f"malformed ledger payload: {exc}") from exc

        return self.registry.replace_tally(article_id, tally)
