"""
Per-article registry of Tally / Snapshot pairs.

One ArticleRegistry instance owns every article's state. Each commit replaces
the article's Snapshot and passes the old and new status to the notifier.
Reads hand out the frozen Tally and Snapshot objects, which callers cannot mutate.
"""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterator, Optional

from newsvote.errors import ValidationError
from newsvote.models import Snapshot, VoteIngestEvent, VoteInvalidationEvent
from newsvote.notifier import ChangeNotifier
from newsvote.policy import Policy
from newsvote.scoring import evaluate
from newsvote.status import Status
from newsvote.tally import Tally


@dataclass
class _Entry:
    tally: Tally
    snapshot: Snapshot
    has_history: bool = False
    policy_override: Optional[Policy] = None


class ArticleRegistry:
    def __init__(self, policy: Optional[Policy] = None, notifier: Optional[ChangeNotifier] = None) -> None:
        policy = Policy() if policy is None else policy
        _require_policy(policy)
        self._policy = policy
        self.notifier = notifier if notifier is not None else ChangeNotifier()
        self._entries: dict[str, _Entry] = {}

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __contains__(self, article_id: str) -> bool:
        return article_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def article_ids(self) -> list[str]:
        return list(self._entries)

    def snapshot(self, article_id: str) -> Snapshot:
        return self._entries[article_id].snapshot

    def tally(self, article_id: str) -> Tally:
        return self._entries[article_id].tally

    def snapshots(self) -> Iterator[Snapshot]:
        for entry in list(self._entries.values()):
            yield entry.snapshot

    @property
    def policy(self) -> Policy:
        return self._policy

    def policy_for(self, article_id: str) -> Policy:
        override = self._entries[article_id].policy_override
        return override if override is not None else self._policy

    # ------------------------------------------------------------------
    # Tally mutations
    # ------------------------------------------------------------------

    def observe(self, article_id: str) -> Snapshot:
        """Start tracking `article_id` with an empty tally (status PENDING)."""
        entry = self._entries.get(article_id)
        if entry is None:
            tally = Tally()
            snapshot = replace(evaluate(article_id, tally, self._policy), status=Status.PENDING)
            entry = _Entry(tally=tally, snapshot=snapshot)
            self._entries[article_id] = entry
        return entry.snapshot

    def apply_vote(self, event: VoteIngestEvent) -> Snapshot:
        self.observe(event.article_id)
        entry = self._entries[event.article_id]
        return self._commit(event.article_id, entry, entry.tally.with_vote(event.vote_result))

    def apply_invalidation(self, event: VoteInvalidationEvent) -> Snapshot:
        if event.article_id not in self._entries:
            raise ValidationError(f"Cannot invalidate a vote on unknown article {event.article_id!r}")
        entry = self._entries[event.article_id]
        return self._commit(event.article_id, entry, entry.tally.with_invalidation(event.previous_vote_result))

    def replace_tally(self, article_id: str, tally: Tally) -> Snapshot:
        """Swap in an authoritative tally wholesale (ledger recount or seeding from known counts)."""
        if not isinstance(tally, Tally):
            raise ValidationError(f"Expected a Tally, got {type(tally).__name__}")
        self.observe(article_id)
        return self._commit(article_id, self._entries[article_id], tally)

    def recompute(self, article_id: str) -> Snapshot:
        entry = self._entries[article_id]
        return self._commit(article_id, entry, entry.tally, history=entry.has_history)

    def remove_article(self, article_id: str) -> None:
        """Forget an article that no longer exists."""
        self._entries.pop(article_id, None)

    # ------------------------------------------------------------------
    # Policy
    # ------------------------------------------------------------------

    def set_policy(self, policy: Policy) -> None:
        """Replace the shared policy and reclassify every article that uses it."""
        _require_policy(policy)
        self._policy = policy
        for article_id, entry in list(self._entries.items()):
            if entry.policy_override is None:
                self.recompute(article_id)

    def update_policy(self, threshold: Optional[float] = None, min_valid_votes: Optional[int] = None) -> Policy:
        policy = self._policy
        if threshold is not None:
            policy = policy.with_threshold(threshold)
        if min_valid_votes is not None:
            policy = policy.with_min_valid_votes(min_valid_votes)
        self.set_policy(policy)
        return policy

    def set_article_policy(self, article_id: str, policy: Policy) -> Snapshot:
        _require_policy(policy)
        self.observe(article_id)
        self._entries[article_id].policy_override = policy
        return self.recompute(article_id)

    def clear_article_policy(self, article_id: str) -> Snapshot:
        self._entries[article_id].policy_override = None
        return self.recompute(article_id)

    # ------------------------------------------------------------------

    def _commit(self, article_id: str, entry: _Entry, tally: Tally, history: bool = True) -> Snapshot:
        policy = entry.policy_override if entry.policy_override is not None else self._policy
        snapshot = evaluate(article_id, tally, policy)
        if not history:
            snapshot = replace(snapshot, status=Status.PENDING)

        previous_status = entry.snapshot.status
        entry.tally = tally
        entry.snapshot = snapshot
        entry.has_history = history
        self.notifier.notify_update(snapshot)
        self.notifier.notify_if_changed(article_id, previous_status, snapshot.status)
        return snapshot


def _require_policy(policy) -> None:
    if not isinstance(policy, Policy):
        raise ValidationError(f"Expected a Policy, got {type(policy).__name__}")
