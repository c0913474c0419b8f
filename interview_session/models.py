from __future__ import annotations  # Interview session record models

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

Status = Literal["in-progress", "completed", "terminated"]
Difficulty = Literal["easy", "medium", "hard"]
Category = Literal["technical", "behavioral", "conceptual", "scenario"]
Readiness = Literal["Strong", "Average", "Needs Improvement"]
HiringReadiness = Literal["ready", "conditional", "not-ready"]

DIFFICULTIES: tuple[Difficulty, ...] = ("easy", "medium", "hard")
CATEGORIES: tuple[Category, ...] = ("technical", "behavioral", "conceptual", "scenario")


class ResumeProfile(BaseModel):  # Candidate resume fields used to tailor questions
    resume_id: str
    candidate_id: str
    skills: List[str] = Field(default_factory=list)
    experience: str = ""
    education: str = ""
    projects: str = ""


class Score(BaseModel):  # Sub-scores assigned to one answer, each 0-100
    accuracy: float = Field(ge=0, le=100)
    clarity: float = Field(ge=0, le=100)
    depth: float = Field(ge=0, le=100)
    relevance: float = Field(ge=0, le=100)
    time_efficiency: float = Field(ge=0, le=100)
    overall: float = Field(ge=0, le=100)


class Attempt(BaseModel):
    """One asked question; answer fields stay empty while the attempt is open."""

    question_number: int = Field(ge=1)
    question: str
    difficulty: Difficulty
    category: Category
    time_allowed: int = Field(gt=0)
    asked_at: datetime
    expected_key_points: List[str] = Field(default_factory=list)

    answer: Optional[str] = None
    answered_at: Optional[datetime] = None
    time_taken: Optional[float] = None
    score: Optional[Score] = None
    feedback: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.score is None


class Performance(BaseModel):  # Derived metrics, recomputed on every answer
    total_questions: int = 0
    questions_answered: int = 0
    average_score: float = 0.0
    time_management: float = 0.0
    technical_score: float = 0.0
    behavioral_score: float = 0.0
    conceptual_score: float = 0.0
    scenario_score: float = 0.0

    def category_score(self, category: Category) -> float:
        return getattr(self, f"{category}_score")


class Verdict(BaseModel):  # Final outcome, written once at session end
    final_score: int = Field(ge=0, le=100)
    readiness: Readiness
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    actionable_feedback: List[str] = Field(default_factory=list)
    hiring_readiness: Optional[HiringReadiness] = None
    hiring_readiness_explanation: str = ""
    termination_reason: Optional[str] = None
    completed_at: datetime


class Session(BaseModel):
    """Persisted state of one interview."""

    session_id: str
    candidate_id: str
    resume_id: str
    job_description: str
    job_role: str
    status: Status = "in-progress"
    current_difficulty: Difficulty = "easy"
    attempts: List[Attempt] = Field(default_factory=list)
    performance: Performance = Field(default_factory=Performance)
    verdict: Optional[Verdict] = None
    created_at: datetime
    version: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == "in-progress"

    def open_attempt(self) -> Optional[Attempt]:
        """Return the single asked-but-unanswered attempt, if any."""

        for attempt in self.attempts:
            if attempt.is_open:
                return attempt
        return None

    def answered_attempts(self) -> List[Attempt]:
        return [attempt for attempt in self.attempts if not attempt.is_open]

    def find_attempt(self, question_number: int) -> Optional[Attempt]:
        if 1 <= question_number <= len(self.attempts):
            return self.attempts[question_number - 1]
        return None


__all__ = [
    "Attempt",
    "Category",
    "CATEGORIES",
    "Difficulty",
    "DIFFICULTIES",
    "HiringReadiness",
    "Performance",
    "Readiness",
    "ResumeProfile",
    "Score",
    "Session",
    "Status",
    "Verdict",
]
