"""Session record persistence with optimistic version checks."""
from __future__ import annotations

import datetime as dt
import sqlite3
from typing import List, Optional, Protocol

from interview_session.errors import PersistenceError, StaleSessionError
from interview_session.models import Session

from .sqlite import get_conn


class SessionRepository(Protocol):
    def create(self, session: Session) -> Session: ...

    def load(self, session_id: str) -> Optional[Session]: ...

    def save(self, session: Session) -> Session: ...


class SqliteSessionStore:
    """Stores each session as one JSON payload row keyed by ``session_id``.

    ``save`` only succeeds when the row still carries the version the caller
    loaded; the stored and returned copies carry ``version + 1``.
    """

    def create(self, session: Session) -> Session:
        stored = session.model_copy(update={"version": 1})
        now = _now()
        try:
            with get_conn() as conn:
                conn.execute(
                    """INSERT INTO interview_sessions
                       (session_id, candidate_id, resume_id, status, version, payload_json, created_at, updated_at)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        stored.session_id,
                        stored.candidate_id,
                        stored.resume_id,
                        stored.status,
                        stored.version,
                        stored.model_dump_json(),
                        now,
                        now,
                    ),
                )
        except sqlite3.Error as exc:
            raise PersistenceError("unable to create session", session_id=session.session_id) from exc
        return stored

    def load(self, session_id: str) -> Optional[Session]:
        try:
            with get_conn() as conn:
                row = conn.execute(
                    "SELECT payload_json, version FROM interview_sessions WHERE session_id = ?",
                    (session_id,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError("unable to load session", session_id=session_id) from exc
        if row is None:
            return None
        session = Session.model_validate_json(row["payload_json"])
        return session.model_copy(update={"version": int(row["version"])})

    def save(self, session: Session) -> Session:
        stored = session.model_copy(update={"version": session.version + 1})
        try:
            with get_conn() as conn:
                cur = conn.execute(
                    """UPDATE interview_sessions
                       SET status = ?, version = ?, payload_json = ?, updated_at = ?
                       WHERE session_id = ? AND version = ?""",
                    (
                        stored.status,
                        stored.version,
                        stored.model_dump_json(),
                        _now(),
                        session.session_id,
                        session.version,
                    ),
                )
                updated = cur.rowcount
        except sqlite3.Error as exc:
            raise PersistenceError("unable to save session", session_id=session.session_id) from exc
        if updated != 1:
            raise StaleSessionError(
                f"session changed since version {session.version}",
                session_id=session.session_id,
            )
        return stored

    def recent(self, limit: int = 20) -> List[sqlite3.Row]:
        try:
            with get_conn() as conn:
                return conn.execute(
                    """SELECT session_id, candidate_id, status, version, created_at, updated_at
                       FROM interview_sessions
                       ORDER BY updated_at DESC
                       LIMIT ?""",
                    (limit,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError("unable to list sessions") from exc


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


__all__ = ["SessionRepository", "SqliteSessionStore"]
