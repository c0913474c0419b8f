"""Application settings and configuration management."""
from __future__ import annotations

from typing import Dict, Literal

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Difficulty = Literal["easy", "medium", "hard"]


class InterviewPolicy(BaseModel):
    """Limits that drive termination and question timing for one session."""

    min_questions: int = Field(default=3, ge=1)
    max_questions: int = Field(default=10, ge=1)
    termination_threshold: float = Field(default=30.0, ge=0.0, le=100.0)
    time_limits: Dict[Difficulty, int] = Field(
        default_factory=lambda: {"easy": 90, "medium": 120, "hard": 180}
    )

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_bounds(self) -> "InterviewPolicy":
        if self.max_questions < self.min_questions:
            raise ValueError("max_questions must be >= min_questions")
        missing = {"easy", "medium", "hard"} - set(self.time_limits)
        if missing:
            raise ValueError(f"time_limits missing difficulties: {sorted(missing)}")
        return self

    def time_limit(self, difficulty: str) -> int:
        return self.time_limits.get(difficulty, 120)  # type: ignore[arg-type]


class Settings(BaseSettings):
    """Settings loaded from environment variables or defaults."""

    DB_PATH: str = Field(default="data/interview.db")
    APP_CONFIG_PATH: str = Field(default="app_config.json")

    MIN_QUESTIONS: int = 3
    MAX_QUESTIONS: int = 10
    TERMINATION_THRESHOLD: float = 30.0

    TIME_LIMIT_EASY: int = 90
    TIME_LIMIT_MEDIUM: int = 120
    TIME_LIMIT_HARD: int = 180

    model_config = SettingsConfigDict(env_file=".env", validate_assignment=True, extra="ignore")

    def interview_policy(self) -> InterviewPolicy:
        """Build the explicit policy value handed to the session controller."""

        return InterviewPolicy(
            min_questions=self.MIN_QUESTIONS,
            max_questions=self.MAX_QUESTIONS,
            termination_threshold=self.TERMINATION_THRESHOLD,
            time_limits={
                "easy": self.TIME_LIMIT_EASY,
                "medium": self.TIME_LIMIT_MEDIUM,
                "hard": self.TIME_LIMIT_HARD,
            },
        )


settings = Settings()
