"""Langfuse audit logging for status changes and recalculations."""
from __future__ import annotations

from typing import Optional

from langfuse import Langfuse

from newsvote.errors import RecalculationError
from newsvote.models import Snapshot, StatusChangeEvent


def maybe_create_langfuse(
    public_key: Optional[str],
    secret_key: Optional[str],
    host: Optional[str] = None,
) -> Optional[Langfuse]:
    """Langfuse client if both keys are set, else None (audit logging disabled)."""
    if not public_key or not secret_key:
        return None
    return Langfuse(
        public_key=public_key,
        secret_key=secret_key,
        host=host or "https://cloud.langfuse.com",
    )


def log_status_change(
    client: Optional[Langfuse],
    event: StatusChangeEvent,
    snapshot: Optional[Snapshot] = None,
) -> Optional[str]:
    """Log one reclassification as a trace. Returns trace_id or None."""
    if client is None:
        return None

    trace = client.trace(
        name=f"status-change-{event.article_id}",
        input={"articleId": event.article_id, "oldStatus": event.old_status.value},
        output={"newStatus": event.new_status.value},
        metadata={"timestamp": event.timestamp.isoformat()},
        tags=["news-vote", "status-change"],
    )
    trace.event(
        name="status_change",
        input={"oldStatus": event.old_status.value},
        output={"newStatus": event.new_status.value},
        metadata=snapshot.to_dict() if snapshot is not None else None,
    )
    if snapshot is not None:
        trace.score(name="confidence", value=snapshot.confidence)
        trace.score(name="fake_score", value=snapshot.fake_score)
    return trace.id


def log_recalculation(
    client: Optional[Langfuse],
    article_id: str,
    snapshot: Optional[Snapshot] = None,
    error: Optional[RecalculationError] = None,
) -> Optional[str]:
    """Log the outcome of a ledger recount. Returns trace_id or None."""
    if client is None:
        return None

    trace = client.trace(
        name=f"recalculate-{article_id}",
        input={"articleId": article_id},
        output=snapshot.to_dict() if snapshot is not None else {"error": str(error)},
        tags=["news-vote", "recalculation"],
    )
    if error is not None:
        trace.event(name="recalculation_failed", level="ERROR", status_message=str(error))
    return trace.id


class LangfuseAuditSink:
    """ChangeNotifier subscriber that forwards every StatusChangeEvent to Langfuse."""

    def __init__(self, client: Optional[Langfuse], registry=None) -> None:
        self.client = client
        self.registry = registry
        self.trace_ids: list[str] = []

    def __call__(self, event: StatusChangeEvent) -> None:
        snapshot = None
        if self.registry is not None and event.article_id in self.registry:
            snapshot = self.registry.snapshot(event.article_id)
        trace_id = log_status_change(self.client, event, snapshot)
        if trace_id:
            self.trace_ids.append(trace_id)

    def attach(self, notifier):
        """Subscribe to `notifier`; returns the unsubscribe function."""
        return notifier.subscribe(self)


def flush(client: Optional[Langfuse]) -> None:
    if client is not None:
        client.flush()
