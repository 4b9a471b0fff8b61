"""Exception types raised by the vote classification engine."""
from __future__ import annotations


class NewsVoteError(Exception):
    """Base class for engine errors."""


class ValidationError(NewsVoteError, ValueError):
    """A tally mutation, policy or ledger payload is out of range."""


class RecalculationError(NewsVoteError, RuntimeError):
    """The vote ledger could not produce a usable recount for an article."""

    def __init__(self, article_id: str, message: str) -> None:
        super().__init__(f"Recalculation failed for article {article_id!r}: {message}")
        self.article_id = article_id
