"""Default wiring for the session controller."""
from __future__ import annotations

from typing import Optional

from agents.oracle import ModelOracle
from config.settings import InterviewPolicy, settings
from interview_session.controller import SessionController
from storage.resumes import get_resume
from storage.sessions import SqliteSessionStore

_controller: Optional[SessionController] = None


def build_controller(policy: Optional[InterviewPolicy] = None) -> SessionController:
    """Controller backed by the registry oracle and the SQLite stores."""

    return SessionController(
        oracle=ModelOracle(),
        store=SqliteSessionStore(),
        resumes=get_resume,
        policy=policy or settings.interview_policy(),
    )


def get_controller() -> SessionController:
    global _controller
    if _controller is None:
        _controller = build_controller()
    return _controller


def reset_controller() -> None:
    global _controller
    _controller = None


__all__ = ["build_controller", "get_controller", "reset_controller"]
