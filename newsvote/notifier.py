"""
Status-change and snapshot-update notification.

Events are delivered synchronously, in subscription order, at the moment the
Snapshot that caused them is committed. Status subscribers get one event per
distinct transition; update subscribers get every committed Snapshot.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from newsvote.models import Snapshot, StatusChangeEvent
from newsvote.status import Status

logger = logging.getLogger(__name__)

Subscriber = Callable[[StatusChangeEvent], None]
UpdateSubscriber = Callable[[Snapshot], None]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ChangeNotifier:
    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._clock = clock
        self._subscribers: list[Subscriber] = []
        self._update_subscribers: list[UpdateSubscriber] = []
        self.delivery_errors: list[tuple[Callable[..., None], Exception]] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register `callback`; returns a function that removes it again."""
        return _add(self._subscribers, callback)

    def subscribe_updates(self, callback: UpdateSubscriber) -> Callable[[], None]:
        """Register `callback` for every committed Snapshot, whether or not the status moved."""
        return _add(self._update_subscribers, callback)

    def notify_update(self, snapshot: Snapshot) -> None:
        self._deliver(self._update_subscribers, snapshot, "snapshot-update")

    def notify_if_changed(
        self,
        article_id: str,
        previous_status: Status,
        new_status: Status,
    ) -> Optional[StatusChangeEvent]:
        if previous_status == new_status:
            return None

        event = StatusChangeEvent(
            article_id=article_id,
            old_status=previous_status,
            new_status=new_status,
            timestamp=self._clock(),
        )
        self._deliver(self._subscribers, event, "status-change")
        return event

    def _deliver(self, subscribers: list, payload: Any, kind: str) -> None:
        for callback in list(subscribers):
            try:
                callback(payload)
            except Exception as exc:
                # A broken subscriber must not undo or block the commit.
                self.delivery_errors.append((callback, exc))
                logger.warning("%s subscriber %r failed: %s", kind, callback, exc)


def _add(subscribers: list, callback) -> Callable[[], None]:
    subscribers.append(callback)

    def unsubscribe() -> None:
        if callback in subscribers:
            subscribers.remove(callback)

    return unsubscribe
