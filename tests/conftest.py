import os
import sys
import tempfile
from collections import deque
from pathlib import Path

import pytest

os.environ.setdefault("ENABLE_FILE_LOGS", "0")

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.registry import EVAL_KEY, QUESTION_KEY, REPORT_KEY, bind_model, unbind_model
from config.settings import InterviewPolicy, settings
from services.sessions import reset_controller
from storage.migrate import migrate
from storage.resumes import insert_resume

_POLICY = InterviewPolicy()


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    reset_controller()
    try:
        yield
    finally:
        reset_controller()
        td.cleanup()


class ScriptedModels:
    """Registry callables that echo the requested question and score from a script."""

    def __init__(self) -> None:
        self._scores = deque()
        self.question_calls = []
        self.eval_calls = []
        self.report_calls = []
        self.fail_next = {}

    def script(self, overall_scores, signal="maintain"):
        for overall in overall_scores:
            self._scores.append((overall, signal))

    def _maybe_fail(self, name):
        exc = self.fail_next.pop(name, None)
        if exc is not None:
            raise exc

    def question(self, **kwargs):
        self._maybe_fail("question")
        self.question_calls.append(kwargs)
        inputs = kwargs["inputs"]
        number = len(inputs["previous_questions"]) + 1
        return {
            "question": f"Q{number}: {inputs['category']} question at {inputs['difficulty']} level",
            "expected_key_points": ["point a", "point b"],
            "time_allowed": _POLICY.time_limit(inputs["difficulty"]),
            "category": inputs["category"],
            "difficulty": inputs["difficulty"],
        }

    def evaluate(self, **kwargs):
        self._maybe_fail("evaluate")
        self.eval_calls.append(kwargs)
        overall, signal = self._scores.popleft() if self._scores else (70, "maintain")
        return {
            "scores": {
                "accuracy": overall,
                "clarity": overall,
                "depth": overall,
                "relevance": overall,
                "time_efficiency": overall,
                "overall": overall,
            },
            "feedback": f"Scored {overall}.",
            "next_difficulty": signal,
        }

    def report(self, **kwargs):
        self._maybe_fail("report")
        self.report_calls.append(kwargs)
        return {
            "strengths": ["clear communication"],
            "weaknesses": ["system design depth"],
            "actionable_feedback": ["practice capacity estimates"],
            "hiring_readiness": "conditional",
            "hiring_readiness_explanation": "Solid basics, needs more depth.",
        }


@pytest.fixture
def fake_models():
    models = ScriptedModels()
    bind_model(QUESTION_KEY, models.question)
    bind_model(EVAL_KEY, models.evaluate)
    bind_model(REPORT_KEY, models.report)
    try:
        yield models
    finally:
        for key in (QUESTION_KEY, EVAL_KEY, REPORT_KEY):
            unbind_model(key)


@pytest.fixture
def resume():
    return insert_resume(
        candidate_id="cand-1",
        skills=["python", "sql"],
        experience="4 years building backend services",
        education="BSc Computer Science",
        projects="payments platform",
    )
