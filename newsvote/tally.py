"""
Per-article raw vote counters.
Valid and total counts are derived from the three stored counters on every read.
"""
from __future__ import annotations

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping

from newsvote.errors import ValidationError

_LABEL_ALIASES = {
    "fake": "Fake",
    "not fake": "Not Fake",
    "not_fake": "Not Fake",
    "not-fake": "Not Fake",
    "non-fake": "Not Fake",
    "non_fake": "Not Fake",
    "real": "Not Fake",
}

_COUNT_PATTERN = re.compile(r"-?[0-9]+")

_LEDGER_KEYS = {
    "fake_votes": ("fakeVotes", "fake_votes"),
    "non_fake_votes": ("nonFakeVotes", "non_fake_votes"),
    "invalid_votes": ("invalidVotes", "invalid_votes"),
}


class VoteResult(Enum):
    """A single user's verdict on an article."""
    FAKE = "Fake"
    NOT_FAKE = "Not Fake"

    @classmethod
    def parse(cls, value: Any) -> "VoteResult":
        """Accept an enum member or a wire label such as 'Fake' / 'Not Fake'."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key in _LABEL_ALIASES:
            return cls(_LABEL_ALIASES[key])
        raise ValidationError(f"Unknown vote result: {value!r}")


def _as_count(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if isinstance(value, int):
        count = value
    elif isinstance(value, float) and math.isfinite(value) and value.is_integer():
        count = int(value)
    elif isinstance(value, str) and _COUNT_PATTERN.fullmatch(value.strip()):
        count = int(value.strip())
    else:
        raise ValidationError(f"{name} must be an integer, got {value!r}")
    if count < 0:
        raise ValidationError(f"{name} must be non-negative, got {count}")
    return count


@dataclass(frozen=True)
class Tally:
    fake_votes: int = 0
    non_fake_votes: int = 0
    invalid_votes: int = 0

    def __post_init__(self):
        for name in ("fake_votes", "non_fake_votes", "invalid_votes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValidationError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValidationError(f"{name} must be non-negative, got {value}")

    @property
    def valid_votes(self) -> int:
        return self.fake_votes + self.non_fake_votes

    @property
    def total_votes(self) -> int:
        return self.valid_votes + self.invalid_votes

    def with_vote(self, result: VoteResult | str) -> "Tally":
        """Return a copy with one more vote for `result`."""
        result = VoteResult.parse(result)
        if result is VoteResult.FAKE:
            return Tally(self.fake_votes + 1, self.non_fake_votes, self.invalid_votes)
        return Tally(self.fake_votes, self.non_fake_votes + 1, self.invalid_votes)

    def with_invalidation(self, previous_result: VoteResult | str) -> "Tally":
        """Return a copy with one `previous_result` vote moved to the invalid counter."""
        previous_result = VoteResult.parse(previous_result)
        if previous_result is VoteResult.FAKE:
            if self.fake_votes == 0:
                raise ValidationError("Cannot invalidate a fake vote: no fake votes recorded")
            return Tally(self.fake_votes - 1, self.non_fake_votes, self.invalid_votes + 1)
        if self.non_fake_votes == 0:
            raise ValidationError("Cannot invalidate a not-fake vote: no not-fake votes recorded")
        return Tally(self.fake_votes, self.non_fake_votes - 1, self.invalid_votes + 1)

    @classmethod
    def from_ledger(cls, payload: Any) -> "Tally":
        """
        Validate a ledger response and build a Tally from it.

        Accepts camelCase or snake_case counter keys, optionally wrapped in a
        {"success": ..., "data": {...}} envelope.

        Raises:
            ValidationError: payload is not a mapping, reports failure,
                or has a missing, non-integer or negative counter.
        """
        if not isinstance(payload, Mapping):
            raise ValidationError(f"Ledger payload must be an object, got {type(payload).__name__}")
        if "data" in payload and isinstance(payload["data"], Mapping):
            if payload.get("success") is False:
                raise ValidationError(f"Ledger reported failure: {payload.get('message', 'no message')}")
            payload = payload["data"]

        counts = {}
        for field_name, keys in _LEDGER_KEYS.items():
            present = [k for k in keys if k in payload]
            if not present:
                raise ValidationError(f"Ledger payload is missing {keys[0]}")
            counts[field_name] = _as_count(keys[0], payload[present[0]])
        return cls(**counts)

    def to_dict(self) -> dict:
        return {
            "fakeVotes": self.fake_votes,
            "nonFakeVotes": self.non_fake_votes,
            "invalidVotes": self.invalid_votes,
            "validVotes": self.valid_votes,
            "totalVotes": self.total_votes,
        }


def mock_tally(total_votes: int = 50, fake_ratio: float = 0.6) -> Tally:
    """Synthetic tally for demos: ~10% of `total_votes` extra invalid votes."""
    if total_votes < 0:
        raise ValidationError(f"total_votes must be non-negative, got {total_votes}")
    if not 0 <= fake_ratio <= 1:
        raise ValidationError(f"fake_ratio must be within [0, 1], got {fake_ratio}")
    fake = math.floor(total_votes * fake_ratio)
    return Tally(
        fake_votes=fake,
        non_fake_votes=total_votes - fake,
        invalid_votes=math.floor(total_votes * 0.1),
    )
