from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from newsvote.status import Status
from newsvote.tally import VoteResult


@dataclass(frozen=True)
class Snapshot:
    article_id: str
    fake_score: float
    confidence: float
    status: Status
    valid_votes: int
    invalid_votes: int
    fake_votes: int = 0
    non_fake_votes: int = 0

    @property
    def non_fake_score(self) -> float:
        if self.valid_votes == 0:
            return 0.0
        return 1 - self.fake_score

    def to_dict(self) -> dict:
        return {
            "articleId": self.article_id,
            "fakeScore": self.fake_score,
            "confidence": self.confidence,
            "status": self.status.value,
            "validVotes": self.valid_votes,
            "invalidVotes": self.invalid_votes,
            "fakeVotes": self.fake_votes,
            "nonFakeVotes": self.non_fake_votes,
        }


@dataclass(frozen=True)
class StatusChangeEvent:
    article_id: str
    old_status: Status
    new_status: Status
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "articleId": self.article_id,
            "oldStatus": self.old_status.value,
            "newStatus": self.new_status.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class VoteIngestEvent:
    article_id: str
    vote_result: VoteResult

    def __post_init__(self):
        object.__setattr__(self, "vote_result", VoteResult.parse(self.vote_result))


@dataclass(frozen=True)
class VoteInvalidationEvent:
    article_id: str
    previous_vote_result: VoteResult

    def __post_init__(self):
        object.__setattr__(self, "previous_vote_result", VoteResult.parse(self.previous_vote_result))
