"""
Decision policy: fake threshold and minimum valid-vote count.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace

from newsvote.errors import ValidationError

DEFAULT_THRESHOLD = 0.6
DEFAULT_MIN_VALID_VOTES = 5

# Confidence reaches full weight at min_valid_votes * SATURATION_MULTIPLIER valid votes.
SATURATION_MULTIPLIER = 5


@dataclass(frozen=True)
class Policy:
    threshold: float = DEFAULT_THRESHOLD
    min_valid_votes: int = DEFAULT_MIN_VALID_VOTES
    saturation_multiplier: float = SATURATION_MULTIPLIER

    def __post_init__(self):
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, (int, float)):
            raise ValidationError(f"threshold must be a number, got {self.threshold!r}")
        if not math.isfinite(self.threshold) or not 0 <= self.threshold <= 1:
            raise ValidationError(f"threshold must be within [0, 1], got {self.threshold}")
        if isinstance(self.min_valid_votes, bool) or not isinstance(self.min_valid_votes, int):
            raise ValidationError(f"min_valid_votes must be an integer, got {self.min_valid_votes!r}")
        if self.min_valid_votes < 0:
            raise ValidationError(f"min_valid_votes must be non-negative, got {self.min_valid_votes}")
        if isinstance(self.saturation_multiplier, bool) or not isinstance(self.saturation_multiplier, (int, float)):
            raise ValidationError(f"saturation_multiplier must be a number, got {self.saturation_multiplier!r}")
        if not math.isfinite(self.saturation_multiplier) or self.saturation_multiplier <= 0:
            raise ValidationError(f"saturation_multiplier must be positive, got {self.saturation_multiplier}")

    def with_threshold(self, threshold: float) -> "Policy":
        return replace(self, threshold=threshold)

    def with_min_valid_votes(self, min_valid_votes: int) -> "Policy":
        return replace(self, min_valid_votes=min_valid_votes)

    def to_dict(self) -> dict:
        return {
            "threshold": self.threshold,
            "minValidVotes": self.min_valid_votes,
            "saturationMultiplier": self.saturation_multiplier,
        }


def policy_from_settings(settings) -> Policy:
    """Build the default Policy from loaded Settings."""
    return Policy(
        threshold=settings.vote_threshold,
        min_valid_votes=settings.min_valid_votes,
        saturation_multiplier=settings.saturation_multiplier,
    )
