"""Final score blend and readiness tiers."""
from __future__ import annotations

from typing import Dict, Tuple

from .metrics import round_half_up
from .models import Performance, Readiness

WEIGHTS: Dict[str, float] = {
    "average_score": 0.4,
    "time_management": 0.2,
    "technical_score": 0.2,
    "behavioral_score": 0.1,
    "conceptual_score": 0.1,
}

STRONG_CUTOFF = 75
AVERAGE_CUTOFF = 50


def final_score(performance: Performance) -> int:
    blended = sum(getattr(performance, field) * weight for field, weight in WEIGHTS.items())
    return max(0, min(100, round_half_up(blended)))


def readiness_for(score: int) -> Readiness:
    if score >= STRONG_CUTOFF:
        return "Strong"
    if score >= AVERAGE_CUTOFF:
        return "Average"
    return "Needs Improvement"


def score_and_tier(performance: Performance) -> Tuple[int, Readiness]:
    score = final_score(performance)
    return score, readiness_for(score)


__all__ = ["WEIGHTS", "final_score", "readiness_for", "score_and_tier"]
