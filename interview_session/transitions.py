"""Pure state transitions for the interview session.

``apply_event(session, event, policy)`` never mutates its inputs. It returns
the next session value together with the effects the controller has to carry
out (oracle calls) before feeding the result back in as the next event.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field

from agents.types import Evaluation, FinalReport, ProposedQuestion
from config.settings import InterviewPolicy

from . import termination
from .errors import InputValidationError, InvalidStateError, NotFoundError
from .metrics import aggregate
from .models import Attempt, Category, Difficulty, Readiness, Score, Session, Verdict
from .policy import FIRST_CATEGORY, FIRST_DIFFICULTY, category_for, next_difficulty
from .verdict import score_and_tier


class SessionOpened(BaseModel):
    kind: Literal["opened"] = "opened"
    session_id: str
    candidate_id: str
    resume_id: str
    job_description: str
    job_role: str
    at: datetime


class QuestionAsked(BaseModel):
    kind: Literal["asked"] = "asked"
    question: ProposedQuestion
    at: datetime


class AnswerScored(BaseModel):
    kind: Literal["scored"] = "scored"
    question_number: int
    answer: str
    time_taken: float
    evaluation: Evaluation
    at: datetime


class SessionClosed(BaseModel):
    kind: Literal["closed"] = "closed"
    outcome: Literal["terminate", "complete"]
    reason: Optional[str] = None
    final_score: int
    readiness: Readiness
    report: FinalReport
    at: datetime


Event = Union[SessionOpened, QuestionAsked, AnswerScored, SessionClosed]


class AskQuestion(BaseModel):
    question_number: int
    difficulty: Difficulty
    category: Category


class WriteReport(BaseModel):
    outcome: Literal["terminate", "complete"]
    reason: Optional[str] = None
    final_score: int
    readiness: Readiness


Effect = Union[AskQuestion, WriteReport]


class Transition(BaseModel):
    session: Session
    effects: List[Effect] = Field(default_factory=list)


def apply_event(session: Optional[Session], event: Event, policy: InterviewPolicy) -> Transition:
    if isinstance(event, SessionOpened):
        return _opened(session, event)
    if session is None:
        raise InvalidStateError(f"event '{event.kind}' requires an existing session")
    if isinstance(event, QuestionAsked):
        return _asked(session, event, policy)
    if isinstance(event, AnswerScored):
        return _scored(session, event, policy)
    if isinstance(event, SessionClosed):
        return _closed(session, event)
    raise TypeError(f"unsupported event: {event!r}")


def check_answerable(session: Session, question_number: int) -> Attempt:
    """Return the open attempt ``question_number`` refers to or raise."""

    if not session.is_active:
        raise InvalidStateError(
            f"session is {session.status}",
            session_id=session.session_id,
            question_number=question_number,
        )
    attempt = session.find_attempt(question_number)
    if attempt is None:
        raise NotFoundError(
            "question not found",
            session_id=session.session_id,
            question_number=question_number,
        )
    open_attempt = session.open_attempt()
    if open_attempt is None or open_attempt.question_number != question_number:
        raise InvalidStateError(
            "question is not the open question",
            session_id=session.session_id,
            question_number=question_number,
        )
    return attempt


def _opened(session: Optional[Session], event: SessionOpened) -> Transition:
    if session is not None:
        raise InvalidStateError("session already exists", session_id=session.session_id)
    for field in ("candidate_id", "resume_id", "job_description", "job_role"):
        if not getattr(event, field).strip():
            raise InputValidationError(f"{field} is required")
    opened = Session(
        session_id=event.session_id,
        candidate_id=event.candidate_id,
        resume_id=event.resume_id,
        job_description=event.job_description,
        job_role=event.job_role,
        current_difficulty=FIRST_DIFFICULTY,
        created_at=event.at,
    )
    ask = AskQuestion(question_number=1, difficulty=FIRST_DIFFICULTY, category=FIRST_CATEGORY)
    return Transition(session=opened, effects=[ask])


def _asked(session: Session, event: QuestionAsked, policy: InterviewPolicy) -> Transition:
    if not session.is_active:
        raise InvalidStateError(f"session is {session.status}", session_id=session.session_id)
    if session.open_attempt() is not None:
        raise InvalidStateError("a question is already open", session_id=session.session_id)
    proposed = event.question
    attempt = Attempt(
        question_number=len(session.attempts) + 1,
        question=proposed.question,
        difficulty=proposed.difficulty,
        category=proposed.category,
        time_allowed=proposed.time_allowed or policy.time_limit(proposed.difficulty),
        asked_at=event.at,
        expected_key_points=list(proposed.expected_key_points),
    )
    attempts = [*session.attempts, attempt]
    performance = session.performance.model_copy(update={"total_questions": len(attempts)})
    return Transition(session=session.model_copy(update={"attempts": attempts, "performance": performance}))


def _scored(session: Session, event: AnswerScored, policy: InterviewPolicy) -> Transition:
    attempt = check_answerable(session, event.question_number)
    evaluation = event.evaluation
    answered = attempt.model_copy(
        update={
            "answer": event.answer,
            "answered_at": event.at,
            "time_taken": event.time_taken,
            "score": Score.model_validate(evaluation.scores.model_dump()),
            "feedback": evaluation.feedback,
        }
    )
    attempts = list(session.attempts)
    attempts[event.question_number - 1] = answered
    performance = aggregate(attempts, session.performance)
    updated = session.model_copy(update={"attempts": attempts, "performance": performance})

    decision = termination.evaluate(performance, policy)
    if decision.is_final:
        final_score, readiness = score_and_tier(performance)
        report = WriteReport(
            outcome=decision.outcome,  # type: ignore[arg-type]
            reason=decision.reason,
            final_score=final_score,
            readiness=readiness,
        )
        return Transition(session=updated, effects=[report])

    difficulty = next_difficulty(session.current_difficulty, evaluation.next_difficulty)
    number = len(attempts) + 1
    ask = AskQuestion(
        question_number=number,
        difficulty=difficulty,
        category=category_for(number, policy.max_questions),
    )
    return Transition(session=updated.model_copy(update={"current_difficulty": difficulty}), effects=[ask])


def _closed(session: Session, event: SessionClosed) -> Transition:
    if not session.is_active:
        raise InvalidStateError(f"session is {session.status}", session_id=session.session_id)
    if session.open_attempt() is not None:
        raise InvalidStateError("cannot close with an open question", session_id=session.session_id)
    report = event.report
    verdict = Verdict(
        final_score=event.final_score,
        readiness=event.readiness,
        strengths=list(report.strengths),
        weaknesses=list(report.weaknesses),
        actionable_feedback=list(report.actionable_feedback),
        hiring_readiness=report.hiring_readiness,
        hiring_readiness_explanation=report.hiring_readiness_explanation,
        termination_reason=event.reason,
        completed_at=event.at,
    )
    status = "terminated" if event.outcome == "terminate" else "completed"
    return Transition(session=session.model_copy(update={"status": status, "verdict": verdict}))


__all__ = [
    "AnswerScored",
    "AskQuestion",
    "Effect",
    "Event",
    "QuestionAsked",
    "SessionClosed",
    "SessionOpened",
    "Transition",
    "WriteReport",
    "apply_event",
    "check_answerable",
]
