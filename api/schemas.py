"""Pydantic schemas for the interview session API."""
from __future__ import annotations

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from interview_session.models import (
    Attempt,
    Category,
    Difficulty,
    HiringReadiness,
    Performance,
    Readiness,
    Score,
    Session,
    Status,
)
from interview_session.errors import InvalidStateError
from interview_session.metrics import round_half_up, rounded


class StartReq(BaseModel):
    candidate_id: str
    resume_id: str
    job_description: str
    job_role: str


class SubmitAnswerReq(BaseModel):
    session_id: str
    question_number: int
    answer: str
    time_taken: float


class ResumeReq(BaseModel):
    candidate_id: str
    skills: List[str] = Field(default_factory=list)
    experience: str = ""
    education: str = ""
    projects: str = ""


class QuestionPayload(BaseModel):
    question_number: int
    question: str
    difficulty: Difficulty
    category: Category
    time_allowed: int

    @classmethod
    def from_attempt(cls, attempt: Attempt) -> "QuestionPayload":
        return cls(
            question_number=attempt.question_number,
            question=attempt.question,
            difficulty=attempt.difficulty,
            category=attempt.category,
            time_allowed=attempt.time_allowed,
        )


class StartResp(BaseModel):
    session_id: str
    question: QuestionPayload


class FeedbackPayload(BaseModel):
    question_number: int
    score: float
    feedback: str


class PerformanceEcho(BaseModel):
    questions_answered: int
    total_questions: int
    average_score: int
    current_difficulty: Difficulty


class VerdictSummary(BaseModel):
    final_score: int
    readiness: Readiness
    reason: Optional[str] = None


class SubmitAnswerResp(BaseModel):
    session_id: str
    status: Status
    feedback: FeedbackPayload
    next_question: Optional[QuestionPayload] = None
    verdict: Optional[VerdictSummary] = None
    performance: PerformanceEcho


class StatusResp(BaseModel):
    session_id: str
    status: Status
    current_difficulty: Difficulty
    performance: Performance
    questions_answered: int
    total_questions: int
    final_score: Optional[int] = None
    readiness: Optional[Readiness] = None
    termination_reason: Optional[str] = None


class AttemptPayload(BaseModel):
    question_number: int
    question: str
    difficulty: Difficulty
    category: Category
    answer: Optional[str] = None
    time_taken: Optional[float] = None
    time_allowed: int
    score: Optional[Score] = None
    feedback: Optional[str] = None


class ReportResp(BaseModel):
    session_id: str
    candidate_id: str
    job_role: str
    status: Status
    final_score: int
    readiness: Readiness
    performance: Dict[str, int]
    strengths: List[str]
    weaknesses: List[str]
    actionable_feedback: List[str]
    hiring_readiness: Optional[HiringReadiness] = None
    hiring_readiness_explanation: str = ""
    questions: List[AttemptPayload]
    termination_reason: Optional[str] = None
    completed_at: datetime


def performance_echo(session: Session) -> PerformanceEcho:
    perf = session.performance
    return PerformanceEcho(
        questions_answered=perf.questions_answered,
        total_questions=perf.total_questions,
        average_score=round_half_up(perf.average_score),
        current_difficulty=session.current_difficulty,
    )


def status_from_session(session: Session) -> StatusResp:
    verdict = session.verdict
    return StatusResp(
        session_id=session.session_id,
        status=session.status,
        current_difficulty=session.current_difficulty,
        performance=session.performance,
        questions_answered=session.performance.questions_answered,
        total_questions=session.performance.total_questions,
        final_score=verdict.final_score if verdict else None,
        readiness=verdict.readiness if verdict else None,
        termination_reason=verdict.termination_reason if verdict else None,
    )


def report_from_session(session: Session) -> ReportResp:
    verdict = session.verdict
    if verdict is None:
        raise InvalidStateError("interview is still in progress", session_id=session.session_id)
    return ReportResp(
        session_id=session.session_id,
        candidate_id=session.candidate_id,
        job_role=session.job_role,
        status=session.status,
        final_score=verdict.final_score,
        readiness=verdict.readiness,
        performance=rounded(session.performance),
        strengths=verdict.strengths,
        weaknesses=verdict.weaknesses,
        actionable_feedback=verdict.actionable_feedback,
        hiring_readiness=verdict.hiring_readiness,
        hiring_readiness_explanation=verdict.hiring_readiness_explanation,
        questions=[AttemptPayload.model_validate(attempt.model_dump()) for attempt in session.attempts],
        termination_reason=verdict.termination_reason,
        completed_at=verdict.completed_at,
    )
