"""Performance aggregation over a session's attempts."""
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .models import CATEGORIES, Attempt, Performance


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def aggregate(attempts: Sequence[Attempt], previous: Optional[Performance] = None) -> Performance:
    """Recompute the performance snapshot from the full attempt list.

    Only answered attempts contribute to averages. A category without any
    answered attempt keeps the value from ``previous`` (0 when absent). The
    result depends on the set of answered attempts, never on the order in
    which they were scored.
    """

    base = previous or Performance()
    answered = [attempt for attempt in attempts if attempt.score is not None]
    category_scores: Dict[str, float] = {}
    for category in CATEGORIES:
        overall = [a.score.overall for a in answered if a.category == category]  # type: ignore[union-attr]
        if overall:
            category_scores[f"{category}_score"] = _mean(overall)
        else:
            category_scores[f"{category}_score"] = base.category_score(category)

    return Performance(
        total_questions=len(attempts),
        questions_answered=len(answered),
        average_score=_mean([a.score.overall for a in answered]) if answered else base.average_score,  # type: ignore[union-attr]
        time_management=_mean([a.score.time_efficiency for a in answered]) if answered else base.time_management,  # type: ignore[union-attr]
        **category_scores,
    )


def rounded(performance: Performance) -> Dict[str, int]:
    """Integer view used by status and report payloads."""

    return {key: int(round_half_up(value)) for key, value in performance.model_dump().items()}


def round_half_up(value: float) -> int:
    # Math.round semantics: .5 always rounds toward +inf
    return int((value + 0.5) // 1)


__all__ = ["aggregate", "rounded", "round_half_up"]
