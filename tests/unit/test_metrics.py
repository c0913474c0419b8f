import datetime as dt
import itertools

import pytest

from interview_session.metrics import aggregate, round_half_up, rounded
from interview_session.models import Attempt, Performance, Score

NOW = dt.datetime(2024, 1, 1, tzinfo=dt.timezone.utc)


def _attempt(number, category, overall=None, time_efficiency=None):
    score = None
    if overall is not None:
        te = overall if time_efficiency is None else time_efficiency
        score = Score(accuracy=overall, clarity=overall, depth=overall, relevance=overall, time_efficiency=te, overall=overall)
    return Attempt(
        question_number=number,
        question=f"q{number}",
        difficulty="easy",
        category=category,
        time_allowed=90,
        asked_at=NOW,
        answer=None if score is None else "a",
        score=score,
    )


def test_average_and_time_management_over_answered_only():
    attempts = [
        _attempt(1, "technical", 60, time_efficiency=40),
        _attempt(2, "technical", 80, time_efficiency=100),
        _attempt(3, "conceptual"),
    ]
    perf = aggregate(attempts)
    assert perf.total_questions == 3
    assert perf.questions_answered == 2
    assert perf.average_score == pytest.approx(70)
    assert perf.time_management == pytest.approx(70)
    assert perf.technical_score == pytest.approx(70)
    assert perf.conceptual_score == 0


def test_aggregate_is_order_independent():
    attempts = [
        _attempt(1, "technical", 12),
        _attempt(2, "scenario", 95),
        _attempt(3, "conceptual", 41),
        _attempt(4, "technical", 77),
    ]
    expected = aggregate(attempts)
    for perm in itertools.permutations(attempts):
        assert aggregate(list(perm)) == expected
    assert expected.average_score == pytest.approx((12 + 95 + 41 + 77) / 4)


def test_absent_categories_keep_previous_value():
    previous = Performance(behavioral_score=55.0, scenario_score=33.0)
    perf = aggregate([_attempt(1, "technical", 90)], previous)
    assert perf.technical_score == 90
    assert perf.behavioral_score == 55.0
    assert perf.scenario_score == 33.0


def test_rounding_matches_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(79.49) == 79
    view = rounded(Performance(average_score=66.5, time_management=10.2))
    assert view["average_score"] == 67
    assert view["time_management"] == 10
