import threading

import pytest

from config.registry import QUESTION_KEY, bind_model
from config.settings import InterviewPolicy
from interview_session.errors import (
    InputValidationError,
    InvalidStateError,
    NotFoundError,
    OracleError,
    StaleSessionError,
)
from interview_session.controller import _SESSION_LOCKS
from services.sessions import build_controller
from storage.sessions import SqliteSessionStore

POLICY = InterviewPolicy(min_questions=3, max_questions=10, termination_threshold=30)


@pytest.fixture
def controller(fake_models):
    return build_controller(POLICY)


def _start(controller, resume):
    return controller.start("cand-1", resume.resume_id, "Build and run payment APIs", "Backend Engineer")


def _answer_all(controller, outcome, count):
    session_id = outcome.session.session_id
    number = outcome.question.question_number
    result = None
    for _ in range(count):
        result = controller.submit_answer(session_id, number, "my answer", 45)
        if result.next_question is None:
            break
        number = result.next_question.question_number
    return result


def test_start_asks_first_question(controller, fake_models, resume):
    outcome = _start(controller, resume)
    session = outcome.session
    assert session.status == "in-progress"
    assert session.current_difficulty == "easy"
    assert session.performance.total_questions == 1
    assert outcome.question.question_number == 1
    assert (outcome.question.difficulty, outcome.question.category) == ("easy", "technical")
    inputs = fake_models.question_calls[0]["inputs"]
    assert inputs["previous_questions"] == []
    assert inputs["previous_performance"] is None
    assert inputs["resume"]["skills"] == ["python", "sql"]
    assert "payments platform" in fake_models.question_calls[0]["task"]


def test_start_validates_inputs(controller, resume):
    with pytest.raises(InputValidationError):
        controller.start("cand-1", resume.resume_id, "", "Backend Engineer")
    with pytest.raises(NotFoundError):
        controller.start("cand-1", "missing", "JD", "Backend Engineer")


def test_low_scores_terminate_after_floor(controller, fake_models, resume):
    fake_models.script([10, 10, 10])
    outcome = _start(controller, resume)
    result = _answer_all(controller, outcome, 10)

    session = result.session
    assert result.is_final
    assert session.status == "terminated"
    assert session.performance.questions_answered == 3
    assert session.verdict.termination_reason == "performance below threshold"
    assert session.verdict.readiness == "Needs Improvement"
    assert session.open_attempt() is None
    assert len(fake_models.report_calls) == 1


def test_floor_keeps_session_alive_despite_zero_scores(controller, fake_models, resume):
    fake_models.script([0, 0, 100])
    outcome = _start(controller, resume)
    result = _answer_all(controller, outcome, 3)
    assert result.session.status == "in-progress"
    assert result.next_question.question_number == 4
    assert result.session.performance.average_score == pytest.approx(100 / 3)


def test_ten_strong_answers_complete_with_strong_verdict(controller, fake_models, resume):
    fake_models.script([80] * 10)
    outcome = _start(controller, resume)
    result = _answer_all(controller, outcome, 10)

    session = result.session
    assert session.status == "completed"
    assert [a.question_number for a in session.attempts] == list(range(1, 11))
    assert session.verdict.final_score == 80
    assert session.verdict.readiness == "Strong"
    assert session.verdict.termination_reason is None
    assert session.verdict.hiring_readiness == "conditional"
    assert [a.category for a in session.attempts] == [
        "technical",
        "technical",
        "conceptual",
        "technical",
        "scenario",
        "technical",
        "scenario",
        "behavioral",
        "technical",
        "behavioral",
    ]


def test_exactly_one_open_attempt_while_in_progress(controller, fake_models, resume):
    fake_models.script([70, 65, 90, 40])
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    number = 1
    for _ in range(4):
        result = controller.submit_answer(session_id, number, "answer", 20)
        open_attempts = [a for a in result.session.attempts if a.is_open]
        assert len(open_attempts) == 1
        number = result.next_question.question_number


def test_difficulty_follows_signal_and_feeds_next_prompt(controller, fake_models, resume):
    fake_models.script([90, 90, 90], signal="increase")
    outcome = _start(controller, resume)
    result = _answer_all(controller, outcome, 3)
    assert result.session.current_difficulty == "hard"
    last_inputs = fake_models.question_calls[-1]["inputs"]
    assert last_inputs["difficulty"] == "hard"
    assert last_inputs["time_limit"] == 180
    assert last_inputs["previous_performance"] == {"average_score": 90.0, "last_score": 90.0}
    assert len(last_inputs["previous_questions"]) == 3


def test_returned_question_fields_are_authoritative(fake_models, resume):
    def always_hard(**kwargs):
        return {"question": "Design a ledger", "category": "scenario", "difficulty": "hard"}

    bind_model(QUESTION_KEY, always_hard)
    controller = build_controller(POLICY)
    outcome = _start(controller, resume)
    assert outcome.question.difficulty == "hard"
    assert outcome.question.category == "scenario"
    assert outcome.question.time_allowed == 180
    assert outcome.session.current_difficulty == "easy"


def test_scoring_failure_leaves_session_untouched(controller, fake_models, resume):
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    store = SqliteSessionStore()
    before = store.load(session_id).model_dump()

    fake_models.fail_next["evaluate"] = TimeoutError("oracle timed out")
    with pytest.raises(OracleError) as excinfo:
        controller.submit_answer(session_id, 1, "answer", 30)
    assert excinfo.value.session_id == session_id
    assert excinfo.value.question_number == 1
    assert excinfo.value.retryable
    assert store.load(session_id).model_dump() == before

    retried = controller.submit_answer(session_id, 1, "answer", 30)
    assert retried.next_question.question_number == 2


def test_proposal_failure_after_scoring_rolls_back(controller, fake_models, resume):
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    before = SqliteSessionStore().load(session_id).model_dump()

    fake_models.fail_next["question"] = RuntimeError("bad gateway")
    with pytest.raises(OracleError):
        controller.submit_answer(session_id, 1, "answer", 30)
    after = SqliteSessionStore().load(session_id)
    assert after.model_dump() == before
    assert after.open_attempt().question_number == 1


def test_malformed_evaluation_is_rejected(controller, fake_models, resume):
    outcome = _start(controller, resume)
    fake_models.script([150])
    with pytest.raises(OracleError):
        controller.submit_answer(outcome.session.session_id, 1, "answer", 30)


def test_submit_rejects_wrong_question_and_bad_input(controller, fake_models, resume):
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    with pytest.raises(NotFoundError):
        controller.submit_answer(session_id, 5, "answer", 10)
    with pytest.raises(InputValidationError):
        controller.submit_answer(session_id, 1, "   ", 10)
    with pytest.raises(InputValidationError):
        controller.submit_answer(session_id, 1, "answer", -1)
    with pytest.raises(NotFoundError):
        controller.submit_answer("missing", 1, "answer", 10)

    controller.submit_answer(session_id, 1, "answer", 10)
    with pytest.raises(InvalidStateError):
        controller.submit_answer(session_id, 1, "again", 10)
    assert fake_models.eval_calls and len(fake_models.eval_calls) == 1


def test_terminal_session_rejects_answers_and_serves_report(controller, fake_models, resume):
    fake_models.script([5, 5, 5])
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    with pytest.raises(InvalidStateError):
        controller.get_report(session_id)

    _answer_all(controller, outcome, 3)
    with pytest.raises(InvalidStateError):
        controller.submit_answer(session_id, 3, "late", 10)
    report = controller.get_report(session_id)
    assert report.verdict.weaknesses == ["system design depth"]
    assert controller.get_status(session_id).status == "terminated"


def test_stale_write_is_detected(controller, resume):
    outcome = _start(controller, resume)
    store = SqliteSessionStore()
    loaded = store.load(outcome.session.session_id)
    store.save(loaded)
    with pytest.raises(StaleSessionError):
        store.save(loaded)


def test_report_failure_on_closing_answer_rolls_back(controller, fake_models, resume):
    fake_models.script([10, 10, 10])
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    controller.submit_answer(session_id, 1, "answer", 30)
    controller.submit_answer(session_id, 2, "answer", 30)
    store = SqliteSessionStore()
    before = store.load(session_id).model_dump()

    fake_models.fail_next["report"] = RuntimeError("report writer down")
    with pytest.raises(OracleError) as excinfo:
        controller.submit_answer(session_id, 3, "answer", 30)
    assert excinfo.value.session_id == session_id
    after = store.load(session_id)
    assert after.model_dump() == before
    assert after.status == "in-progress"
    assert after.open_attempt().question_number == 3

    fake_models.script([10])
    retried = controller.submit_answer(session_id, 3, "answer", 30)
    assert retried.session.status == "terminated"
    assert retried.session.verdict.termination_reason == "performance below threshold"


def test_concurrent_answers_to_one_question_are_serialized(controller, fake_models, resume):
    outcome = _start(controller, resume)
    session_id = outcome.session.session_id
    barrier = threading.Barrier(8)
    results = []
    results_guard = threading.Lock()

    def submit():
        barrier.wait()
        try:
            controller.submit_answer(session_id, 1, "same answer", 20)
            result = "ok"
        except InvalidStateError:
            result = "rejected"
        with results_guard:
            results.append(result)

    threads = [threading.Thread(target=submit) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)

    assert sorted(results) == ["ok"] + ["rejected"] * 7
    assert len(fake_models.eval_calls) == 1
    stored = SqliteSessionStore().load(session_id)
    assert [a.question_number for a in stored.attempts if a.is_open] == [2]
    assert stored.performance.questions_answered == 1


def test_session_locks_are_released(controller, resume):
    for index in range(50):
        with pytest.raises(NotFoundError):
            controller.submit_answer(f"unknown-{index}", 1, "answer", 1)
    outcome = _start(controller, resume)
    controller.submit_answer(outcome.session.session_id, 1, "answer", 10)
    assert _SESSION_LOCKS == {}
