"""Decide whether a session continues after an answer."""
from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel

from config.settings import InterviewPolicy

from .models import Performance

LOW_PERFORMANCE_REASON = "performance below threshold"


class TerminationDecision(BaseModel):
    outcome: Literal["continue", "terminate", "complete"]
    reason: Optional[str] = None

    @property
    def is_final(self) -> bool:
        return self.outcome != "continue"


def evaluate(performance: Performance, policy: InterviewPolicy) -> TerminationDecision:
    """Apply the floor, threshold and ceiling rules, in that order."""

    if performance.questions_answered < policy.min_questions:
        return TerminationDecision(outcome="continue")
    if performance.average_score < policy.termination_threshold:
        return TerminationDecision(outcome="terminate", reason=LOW_PERFORMANCE_REASON)
    if performance.total_questions >= policy.max_questions:
        return TerminationDecision(outcome="complete")
    return TerminationDecision(outcome="continue")


__all__ = ["LOW_PERFORMANCE_REASON", "TerminationDecision", "evaluate"]
