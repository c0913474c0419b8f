"""Oracle request contexts and validated result types."""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from interview_session.models import (
    Attempt,
    Category,
    Difficulty,
    HiringReadiness,
    Performance,
    Readiness,
    ResumeProfile,
    Score,
)


class PerformanceHint(BaseModel):
    average_score: float
    last_score: float


class QuestionContext(BaseModel):
    resume: ResumeProfile
    job_role: str
    job_description: str
    difficulty: Difficulty
    category: Category
    time_limit: int
    previous_questions: List[str] = Field(default_factory=list)
    previous_performance: Optional[PerformanceHint] = None


class ProposedQuestion(BaseModel):
    question: str = Field(min_length=1)
    expected_key_points: List[str] = Field(default_factory=list)
    time_allowed: Optional[int] = Field(default=None, gt=0)
    category: Category
    difficulty: Difficulty


class EvaluationContext(BaseModel):
    question: str
    expected_key_points: List[str] = Field(default_factory=list)
    answer: str
    difficulty: Difficulty
    category: Category
    time_taken: float
    time_allowed: int


class Evaluation(BaseModel):
    scores: Score
    feedback: str
    next_difficulty: Literal["increase", "maintain", "decrease"]


class ReportContext(BaseModel):
    job_role: str
    attempts: List[Attempt]
    performance: Performance
    final_score: int
    readiness: Readiness


class FinalReport(BaseModel):
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    actionable_feedback: List[str] = Field(default_factory=list)
    hiring_readiness: HiringReadiness
    hiring_readiness_explanation: str = ""
