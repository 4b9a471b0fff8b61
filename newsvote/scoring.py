"""
Fake-score and confidence computation. Pure functions of a Tally and a Policy.
"""
from __future__ import annotations

import math
from fractions import Fraction

from newsvote.models import Snapshot
from newsvote.policy import Policy
from newsvote.status import classify
from newsvote.tally import Tally


def _round_half_up(value: Fraction, places: int = 2) -> float:
    scale = 10 ** places
    return math.floor(value * scale + Fraction(1, 2)) / scale


def compute_fake_score(tally: Tally) -> float:
    """Fraction of valid votes marked fake; 0.0 when there are no valid votes."""
    if tally.valid_votes == 0:
        return 0.0
    return tally.fake_votes / tally.valid_votes


def compute_confidence(tally: Tally, policy: Policy) -> float:
    """
    Confidence in [0, 1], rounded half-up to two decimals.

    confidence = |fake - non_fake| / valid * min(valid / (min_valid_votes * saturation), 1)

    With min_valid_votes == 0 the vote-count factor is 1 as soon as any valid vote exists.
    """
    valid = tally.valid_votes
    if valid == 0:
        return 0.0

    ratio_difference = Fraction(abs(tally.fake_votes - tally.non_fake_votes), valid)
    if policy.min_valid_votes == 0:
        vote_count_factor = Fraction(1)
    else:
        saturation_point = policy.min_valid_votes * Fraction(policy.saturation_multiplier)
        vote_count_factor = min(Fraction(valid) / saturation_point, Fraction(1))

    return _round_half_up(ratio_difference * vote_count_factor)


def format_percentage(value: float) -> str:
    """0.6 -> '60%' (half-up)."""
    return f"{math.floor(Fraction(value) * 100 + Fraction(1, 2))}%"


def share_breakdown(snapshot) -> dict:
    """Fake / not-fake shares of the valid votes, with percentage labels."""
    if snapshot.valid_votes > 0:
        fake_share = snapshot.fake_score
        non_fake_share = 1 - fake_share
    else:
        fake_share = 0.0
        non_fake_share = 0.0
    return {
        "fake": {"share": fake_share, "label": format_percentage(fake_share)},
        "nonFake": {"share": non_fake_share, "label": format_percentage(non_fake_share)},
    }


def evaluate(article_id: str, tally: Tally, policy: Policy) -> Snapshot:
    """Run score, confidence and classification for one article."""
    fake_score = compute_fake_score(tally)
    return Snapshot(
        article_id=article_id,
        fake_score=fake_score,
        confidence=compute_confidence(tally, policy),
        status=classify(tally, fake_score, policy),
        valid_votes=tally.valid_votes,
        invalid_votes=tally.invalid_votes,
        fake_votes=tally.fake_votes,
        non_fake_votes=tally.non_fake_votes,
    )
