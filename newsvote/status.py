"""
Status classification for a single article.
Re-evaluated from scratch on every tally or policy change:
insufficient votes first, then fake at/above threshold (inclusive), else non-fake.
"""
from __future__ import annotations

from enum import Enum

from newsvote.policy import Policy
from newsvote.tally import Tally


class Status(Enum):
    PENDING = "pending"
    INSUFFICIENT = "insufficient"
    FAKE = "fake"
    NON_FAKE = "non-fake"


STATUS_TEXT = {
    Status.PENDING: "Pending",
    Status.INSUFFICIENT: "Insufficient votes",
    Status.FAKE: "Fake news",
    Status.NON_FAKE: "Not fake news",
}


def classify(tally: Tally, fake_score: float, policy: Policy) -> Status:
    """Return INSUFFICIENT, FAKE or NON_FAKE. PENDING is never produced here."""
    if tally.valid_votes < policy.min_valid_votes:
        return Status.INSUFFICIENT
    if fake_score >= policy.threshold:
        return Status.FAKE
    return Status.NON_FAKE


def status_text(status) -> str:
    """Display label for a Status or its string value."""
    try:
        status = Status(status)
    except ValueError:
        return "Unknown status"
    return STATUS_TEXT[status]
