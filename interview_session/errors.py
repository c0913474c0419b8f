"""Error kinds raised by the interview session controller."""
from __future__ import annotations

from typing import Any, Dict, Optional


class InterviewError(Exception):
    """Base error carrying the session/question the failure relates to."""

    retryable = False

    def __init__(
        self,
        message: str,
        *,
        session_id: Optional[str] = None,
        question_number: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id
        self.question_number = question_number

    def context(self) -> Dict[str, Any]:
        detail: Dict[str, Any] = {"message": self.message, "retryable": self.retryable}
        if self.session_id is not None:
            detail["session_id"] = self.session_id
        if self.question_number is not None:
            detail["question_number"] = self.question_number
        return detail


class InputValidationError(InterviewError):
    """Missing or malformed request fields; state is never touched."""


class NotFoundError(InterviewError):
    """Unknown session, question number or resume reference."""


class InvalidStateError(InterviewError):
    """Event not legal for the session's current status or open attempt."""


class OracleError(InterviewError):
    """Question proposal, scoring or report call failed or returned bad content."""

    retryable = True


class PersistenceError(InterviewError):
    """The session store could not load or save a record."""


class StaleSessionError(PersistenceError):
    """Session changed underneath the writer; retry the whole operation."""

    retryable = True


__all__ = [
    "InterviewError",
    "InputValidationError",
    "NotFoundError",
    "InvalidStateError",
    "OracleError",
    "PersistenceError",
    "StaleSessionError",
]
