"""Resume lookup backing session start."""
from __future__ import annotations

import datetime as dt
import json
import sqlite3
from typing import Any, List, Optional
from uuid import uuid4

from pydantic import BaseModel, Field

from interview_session.errors import PersistenceError
from interview_session.models import ResumeProfile

from .sqlite import get_conn


class ResumePayload(BaseModel):
    candidate_id: str = Field(min_length=1)
    skills: List[str] = Field(default_factory=list)
    experience: str = ""
    education: str = ""
    projects: str = ""


def insert_resume(**data: Any) -> ResumeProfile:
    """Insert a resume row and return it with its generated id."""

    payload = ResumePayload(**data)
    resume = ResumeProfile(resume_id=uuid4().hex, **payload.model_dump())
    try:
        with get_conn() as conn:
            conn.execute(
                """INSERT INTO resumes
                   (resume_id, candidate_id, skills_json, experience, education, projects, created_at)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    resume.resume_id,
                    resume.candidate_id,
                    json.dumps(resume.skills),
                    resume.experience,
                    resume.education,
                    resume.projects,
                    dt.datetime.now(dt.timezone.utc).isoformat(),
                ),
            )
    except sqlite3.Error as exc:
        raise PersistenceError(f"unable to store resume for candidate '{resume.candidate_id}'") from exc
    return resume


def get_resume(resume_id: str) -> Optional[ResumeProfile]:
    try:
        with get_conn() as conn:
            row = conn.execute(
                """SELECT resume_id, candidate_id, skills_json, experience, education, projects
                   FROM resumes WHERE resume_id = ?""",
                (resume_id,),
            ).fetchone()
    except sqlite3.Error as exc:
        raise PersistenceError(f"unable to load resume '{resume_id}'") from exc
    if row is None:
        return None
    return ResumeProfile(
        resume_id=row["resume_id"],
        candidate_id=row["candidate_id"],
        skills=json.loads(row["skills_json"]),
        experience=row["experience"],
        education=row["education"],
        projects=row["projects"],
    )


__all__ = ["ResumePayload", "get_resume", "insert_resume"]
