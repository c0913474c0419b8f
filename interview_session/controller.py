"""Session controller: the only component that calls the oracle and the store."""
from __future__ import annotations

import datetime as dt
import logging
import threading
import uuid
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional, Tuple

from pydantic import BaseModel

from agents.oracle import Oracle
from agents.types import EvaluationContext, PerformanceHint, QuestionContext, ReportContext
from config.settings import InterviewPolicy
from observability import log_event, span
from storage.sessions import SessionRepository

from .errors import InputValidationError, InvalidStateError, NotFoundError, OracleError
from .models import Attempt, ResumeProfile, Session
from .transitions import (
    AnswerScored,
    AskQuestion,
    Effect,
    QuestionAsked,
    SessionClosed,
    SessionOpened,
    WriteReport,
    apply_event,
    check_answerable,
)

logger = logging.getLogger(__name__)

ResumeLookup = Callable[[str], Optional[ResumeProfile]]

_SESSION_LOCKS: Dict[str, Tuple[threading.Lock, int]] = {}
_SESSION_LOCKS_GUARD = threading.Lock()


@contextmanager
def _session_lock(session_id: str) -> Iterator[None]:
    """Hold the lock for ``session_id``; the entry lives only while someone uses it."""

    with _SESSION_LOCKS_GUARD:
        lock, users = _SESSION_LOCKS.get(session_id, (threading.Lock(), 0))
        _SESSION_LOCKS[session_id] = (lock, users + 1)
    try:
        with lock:
            yield
    finally:
        with _SESSION_LOCKS_GUARD:
            lock, users = _SESSION_LOCKS[session_id]
            if users <= 1:
                del _SESSION_LOCKS[session_id]
            else:
                _SESSION_LOCKS[session_id] = (lock, users - 1)


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class AnswerFeedback(BaseModel):
    question_number: int
    score: float
    feedback: str


class StartOutcome(BaseModel):
    session: Session
    question: Attempt


class AnswerOutcome(BaseModel):
    session: Session
    feedback: AnswerFeedback
    next_question: Optional[Attempt] = None

    @property
    def is_final(self) -> bool:
        return not self.session.is_active


class SessionController:
    """Drives one interview at a time per session id.

    Every event is computed on an in-memory copy: oracle calls run first and
    the store is written once at the end, so a failed oracle call leaves the
    persisted session exactly as it was.
    """

    def __init__(
        self,
        *,
        oracle: Oracle,
        store: SessionRepository,
        resumes: ResumeLookup,
        policy: InterviewPolicy,
        clock: Callable[[], dt.datetime] = _utcnow,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
    ) -> None:
        self._oracle = oracle
        self._store = store
        self._resumes = resumes
        self._policy = policy
        self._clock = clock
        self._new_id = id_factory

    @property
    def policy(self) -> InterviewPolicy:
        return self._policy

    def start(self, candidate_id: str, resume_id: str, job_description: str, job_role: str) -> StartOutcome:
        _require(candidate_id=candidate_id, resume_id=resume_id, job_description=job_description, job_role=job_role)
        resume = self._resumes(resume_id)
        if resume is None:
            raise NotFoundError(f"resume '{resume_id}' not found")

        session_id = self._new_id()
        transition = apply_event(
            None,
            SessionOpened(
                session_id=session_id,
                candidate_id=candidate_id,
                resume_id=resume_id,
                job_description=job_description,
                job_role=job_role,
                at=self._clock(),
            ),
            self._policy,
        )
        session = self._run_effects(transition.session, transition.effects, resume)
        session = self._store.create(session)
        question = session.open_attempt()
        if question is None:
            raise InvalidStateError("no question was asked", session_id=session_id)
        log_event(
            "session_started",
            session_id,
            question_number=question.question_number,
            difficulty=question.difficulty,
            category=question.category,
            candidate_id=candidate_id,
        )
        return StartOutcome(session=session, question=question)

    def submit_answer(
        self, session_id: str, question_number: int, answer: str, time_taken: float
    ) -> AnswerOutcome:
        _require(session_id=session_id, answer=answer)
        if question_number is None or question_number < 1:
            raise InputValidationError("question_number must be a positive integer", session_id=session_id)
        if time_taken is None or time_taken < 0:
            raise InputValidationError(
                "time_taken must be a non-negative number",
                session_id=session_id,
                question_number=question_number,
            )

        self._load(session_id)
        with _session_lock(session_id):
            session = self._load(session_id)
            attempt = check_answerable(session, question_number)

            evaluation = self._ask(
                session_id,
                question_number,
                "score_answer",
                lambda: self._oracle.score_answer(
                    EvaluationContext(
                        question=attempt.question,
                        expected_key_points=attempt.expected_key_points,
                        answer=answer,
                        difficulty=attempt.difficulty,
                        category=attempt.category,
                        time_taken=time_taken,
                        time_allowed=attempt.time_allowed,
                    )
                ),
            )
            transition = apply_event(
                session,
                AnswerScored(
                    question_number=question_number,
                    answer=answer,
                    time_taken=time_taken,
                    evaluation=evaluation,
                    at=self._clock(),
                ),
                self._policy,
            )
            log_event(
                "answer_scored",
                session_id,
                question_number=question_number,
                overall=evaluation.scores.overall,
                signal=evaluation.next_difficulty,
                average=round(transition.session.performance.average_score, 1),
            )
            updated = self._run_effects(transition.session, transition.effects)
            saved = self._store.save(updated)

        feedback = AnswerFeedback(
            question_number=question_number,
            score=evaluation.scores.overall,
            feedback=evaluation.feedback,
        )
        return AnswerOutcome(session=saved, feedback=feedback, next_question=saved.open_attempt())

    def get_status(self, session_id: str) -> Session:
        return self._load(session_id)

    def get_report(self, session_id: str) -> Session:
        session = self._load(session_id)
        if session.is_active:
            raise InvalidStateError("interview is still in progress", session_id=session_id)
        return session

    def _load(self, session_id: str) -> Session:
        session = self._store.load(session_id)
        if session is None:
            raise NotFoundError("session not found", session_id=session_id)
        return session

    def _resume_for(self, session: Session) -> ResumeProfile:
        resume = self._resumes(session.resume_id)
        if resume is None:
            raise NotFoundError(f"resume '{session.resume_id}' not found", session_id=session.session_id)
        return resume

    def _run_effects(
        self, session: Session, effects: List[Effect], resume: Optional[ResumeProfile] = None
    ) -> Session:
        pending = list(effects)
        while pending:
            effect = pending.pop(0)
            if isinstance(effect, AskQuestion):
                if resume is None:
                    resume = self._resume_for(session)
                proposed = self._ask(
                    session.session_id,
                    effect.question_number,
                    "propose_question",
                    lambda: self._oracle.propose_question(self._question_context(session, effect, resume)),
                )
                transition = apply_event(session, QuestionAsked(question=proposed, at=self._clock()), self._policy)
                if (proposed.difficulty, proposed.category) != (effect.difficulty, effect.category):
                    logger.info(
                        "Oracle deviated session=%s requested=%s/%s got=%s/%s",
                        session.session_id,
                        effect.difficulty,
                        effect.category,
                        proposed.difficulty,
                        proposed.category,
                    )
                log_event(
                    "question_asked",
                    session.session_id,
                    question_number=effect.question_number,
                    difficulty=proposed.difficulty,
                    category=proposed.category,
                )
            elif isinstance(effect, WriteReport):
                report = self._ask(
                    session.session_id,
                    None,
                    "write_report",
                    lambda: self._oracle.write_report(
                        ReportContext(
                            job_role=session.job_role,
                            attempts=session.attempts,
                            performance=session.performance,
                            final_score=effect.final_score,
                            readiness=effect.readiness,
                        )
                    ),
                )
                transition = apply_event(
                    session,
                    SessionClosed(
                        outcome=effect.outcome,
                        reason=effect.reason,
                        final_score=effect.final_score,
                        readiness=effect.readiness,
                        report=report,
                        at=self._clock(),
                    ),
                    self._policy,
                )
                log_event(
                    "session_closed",
                    session.session_id,
                    outcome=effect.outcome,
                    reason=effect.reason,
                    final_score=effect.final_score,
                    readiness=effect.readiness,
                )
            else:  # pragma: no cover
                raise TypeError(f"unsupported effect: {effect!r}")
            session = transition.session
            pending.extend(transition.effects)
        return session

    def _question_context(self, session: Session, effect: AskQuestion, resume: ResumeProfile) -> QuestionContext:
        answered = session.answered_attempts()
        hint = None
        if answered:
            hint = PerformanceHint(
                average_score=session.performance.average_score,
                last_score=answered[-1].score.overall,  # type: ignore[union-attr]
            )
        return QuestionContext(
            resume=resume,
            job_role=session.job_role,
            job_description=session.job_description,
            difficulty=effect.difficulty,
            category=effect.category,
            time_limit=self._policy.time_limit(effect.difficulty),
            previous_questions=[attempt.question for attempt in session.attempts],
            previous_performance=hint,
        )

    def _ask(self, session_id: str, question_number: Optional[int], name: str, fn):
        try:
            with span(session_id, name, question_number=question_number):
                return fn()
        except OracleError as exc:
            exc.session_id = exc.session_id or session_id
            if exc.question_number is None:
                exc.question_number = question_number
            log_event(
                "oracle_failed",
                session_id,
                level=logging.WARNING,
                node=name,
                question_number=question_number,
                reason=exc.message,
            )
            raise


def _require(**fields: object) -> None:
    missing = [name for name, value in fields.items() if value is None or (isinstance(value, str) and not value.strip())]
    if missing:
        raise InputValidationError(f"Missing required fields: {', '.join(missing)}")


__all__ = ["AnswerFeedback", "AnswerOutcome", "SessionController", "StartOutcome"]
