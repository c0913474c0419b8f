import pytest

from interview_session.models import Performance
from interview_session.verdict import final_score, readiness_for, score_and_tier


def test_uniform_eighty_is_strong():
    perf = Performance(
        average_score=80,
        time_management=80,
        technical_score=80,
        behavioral_score=80,
        conceptual_score=80,
        scenario_score=80,
    )
    assert score_and_tier(perf) == (80, "Strong")


def test_weights_ignore_scenario():
    perf = Performance(average_score=50, time_management=50, technical_score=50, scenario_score=100)
    # 0.4*50 + 0.2*50 + 0.2*50 = 40
    assert final_score(perf) == 40


@pytest.mark.parametrize(
    "score,tier",
    [(100, "Strong"), (75, "Strong"), (74, "Average"), (50, "Average"), (49, "Needs Improvement"), (0, "Needs Improvement")],
)
def test_readiness_tiers(score, tier):
    assert readiness_for(score) == tier
