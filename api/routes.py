"""FastAPI routes for interview session control."""
from __future__ import annotations

import logging
from typing import Dict, Type

from fastapi import APIRouter, Depends, HTTPException

from api.schemas import (
    FeedbackPayload,
    QuestionPayload,
    ReportResp,
    ResumeReq,
    StartReq,
    StartResp,
    StatusResp,
    SubmitAnswerReq,
    SubmitAnswerResp,
    VerdictSummary,
    performance_echo,
    report_from_session,
    status_from_session,
)
from interview_session.controller import SessionController
from interview_session.errors import (
    InputValidationError,
    InterviewError,
    InvalidStateError,
    NotFoundError,
    OracleError,
    PersistenceError,
    StaleSessionError,
)
from interview_session.models import ResumeProfile
from services.sessions import get_controller
from storage.resumes import get_resume, insert_resume

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/interview")
resume_router = APIRouter(prefix="/api/resumes")

# Most specific first: StaleSessionError must win over PersistenceError.
STATUS_CODES: Dict[Type[InterviewError], int] = {
    InputValidationError: 400,
    NotFoundError: 404,
    InvalidStateError: 409,
    StaleSessionError: 409,
    OracleError: 502,
    PersistenceError: 500,
}


def to_http_error(exc: InterviewError) -> HTTPException:
    status_code = 500
    for kind in type(exc).__mro__:
        if kind in STATUS_CODES:
            status_code = STATUS_CODES[kind]  # type: ignore[index]
            break
    return HTTPException(status_code=status_code, detail=exc.context())


@router.post("/start", response_model=StartResp, status_code=201)
def start(req: StartReq, controller: SessionController = Depends(get_controller)) -> StartResp:
    try:
        outcome = controller.start(req.candidate_id, req.resume_id, req.job_description, req.job_role)
    except InterviewError as exc:
        logger.warning("Start failed candidate=%s: %s", req.candidate_id, exc.message)
        raise to_http_error(exc) from exc
    return StartResp(
        session_id=outcome.session.session_id,
        question=QuestionPayload.from_attempt(outcome.question),
    )


@router.post("/submit-answer", response_model=SubmitAnswerResp)
def submit_answer(
    req: SubmitAnswerReq, controller: SessionController = Depends(get_controller)
) -> SubmitAnswerResp:
    try:
        outcome = controller.submit_answer(req.session_id, req.question_number, req.answer, req.time_taken)
    except InterviewError as exc:
        logger.warning(
            "Submit failed session=%s question=%s: %s", req.session_id, req.question_number, exc.message
        )
        raise to_http_error(exc) from exc

    session = outcome.session
    verdict = None
    if session.verdict is not None:
        verdict = VerdictSummary(
            final_score=session.verdict.final_score,
            readiness=session.verdict.readiness,
            reason=session.verdict.termination_reason,
        )
    next_question = None
    if outcome.next_question is not None:
        next_question = QuestionPayload.from_attempt(outcome.next_question)
    return SubmitAnswerResp(
        session_id=session.session_id,
        status=session.status,
        feedback=FeedbackPayload(**outcome.feedback.model_dump()),
        next_question=next_question,
        verdict=verdict,
        performance=performance_echo(session),
    )


@router.get("/status/{session_id}", response_model=StatusResp)
def status(session_id: str, controller: SessionController = Depends(get_controller)) -> StatusResp:
    try:
        session = controller.get_status(session_id)
    except InterviewError as exc:
        raise to_http_error(exc) from exc
    return status_from_session(session)


@router.get("/report/{session_id}", response_model=ReportResp)
def report(session_id: str, controller: SessionController = Depends(get_controller)) -> ReportResp:
    try:
        session = controller.get_report(session_id)
    except InterviewError as exc:
        raise to_http_error(exc) from exc
    return report_from_session(session)


@resume_router.post("", response_model=ResumeProfile, status_code=201)
def create_resume(req: ResumeReq) -> ResumeProfile:
    if not req.candidate_id.strip():
        raise HTTPException(status_code=400, detail={"message": "candidate_id is required"})
    try:
        return insert_resume(**req.model_dump())
    except InterviewError as exc:
        logger.exception("Unable to store resume candidate=%s", req.candidate_id)
        raise to_http_error(exc) from exc


@resume_router.get("/{resume_id}", response_model=ResumeProfile)
def fetch_resume(resume_id: str) -> ResumeProfile:
    try:
        resume = get_resume(resume_id)
    except InterviewError as exc:
        raise to_http_error(exc) from exc
    if resume is None:
        raise HTTPException(status_code=404, detail={"message": "Resume not found"})
    return resume
