"""
Controversy and ranking metrics.

A perfectly split take (50/50) scores 1.0; a unanimous one scores 0.0.
"""

import math
from datetime import datetime, timezone
from typing import Optional

CONTROVERSIAL_SCORE_THRESHOLD = 0.7
DEFAULT_MIN_VOTES = 50

# Decay time constant, in hours
TRENDING_DECAY_HOURS = 24

CONTROVERSY_LEVELS = (
    (0.9, "Extremely Controversial"),
    (0.8, "Very Controversial"),
    (0.7, "Controversial"),
    (0.5, "Somewhat Divisive"),
)
CONSENSUS_LEVEL = "Clear Consensus"


def calculate_controversy_score(agree_count: int, disagree_count: int) -> float:
    """1 - |agree - disagree| / total, rounded to 4 decimal places. 0 for no votes."""
    total = agree_count + disagree_count
    if total == 0:
        return 0.0

    score = 1 - abs(agree_count - disagree_count) / total
    return round(score, 4)


def is_controversial(
    agree_count: int,
    disagree_count: int,
    minimum_votes: int = DEFAULT_MIN_VOTES,
) -> bool:
    """Enough votes and a close enough split."""
    total = agree_count + disagree_count
    if total < minimum_votes:
        return False
    return calculate_controversy_score(agree_count, disagree_count) >= CONTROVERSIAL_SCORE_THRESHOLD


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def calculate_vote_percentages(agree_count: int, disagree_count: int) -> tuple[int, int]:
    """
    Agree/disagree percentages as whole numbers.

    Each side is rounded independently, so the pair does not always sum to
    100 (1 agree / 7 disagree -> (13, 88)).
    """
    total = agree_count + disagree_count
    if total == 0:
        return 50, 50

    return (
        _round_half_up(agree_count / total * 100),
        _round_half_up(disagree_count / total * 100),
    )


def get_controversy_level(score: Optional[float]) -> str:
    """Human-readable label for a controversy score."""
    value = score or 0.0
    for threshold, label in CONTROVERSY_LEVELS:
        if value >= threshold:
            return label
    return CONSENSUS_LEVEL


def calculate_trending_score(
    total_votes: int,
    created_at: datetime,
    now: Optional[datetime] = None,
) -> float:
    """Vote count decayed exponentially with age: votes * exp(-age_hours / 24)."""
    current = now or datetime.now(timezone.utc)
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    age_hours = max(0.0, (current - created_at).total_seconds() / 3600)
    return total_votes * math.exp(-age_hours / TRENDING_DECAY_HOURS)
