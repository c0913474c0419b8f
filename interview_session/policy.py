"""Difficulty stepping and category scheduling for the next question."""
from __future__ import annotations

from typing import Literal

from .models import DIFFICULTIES, Category, Difficulty

Adjustment = Literal["increase", "maintain", "decrease"]

FIRST_DIFFICULTY: Difficulty = "easy"
FIRST_CATEGORY: Category = "technical"


def next_difficulty(current: Difficulty, signal: Adjustment) -> Difficulty:
    """Move one step along easy < medium < hard, saturating at both ends."""

    index = DIFFICULTIES.index(current)
    if signal == "increase":
        index = min(index + 1, len(DIFFICULTIES) - 1)
    elif signal == "decrease":
        index = max(index - 1, 0)
    return DIFFICULTIES[index]


def category_for(question_number: int, max_questions: int = 10) -> Category:
    """Category for the 1-based position of the upcoming question.

    Bands are fixed by position and do not stretch with ``max_questions``.
    """

    if question_number < 1:
        raise ValueError("question_number is 1-based")
    even = question_number % 2 == 0
    if question_number <= 3:
        return "technical" if even else "conceptual"
    if question_number <= 7:
        return "technical" if even else "scenario"
    return "behavioral" if even else "technical"


__all__ = ["Adjustment", "FIRST_CATEGORY", "FIRST_DIFFICULTY", "category_for", "next_difficulty"]
