from __future__ import annotations  # Prompt builders for the interview oracle

from textwrap import dedent
from typing import List

from .types import EvaluationContext, QuestionContext, ReportContext

QUESTION_SYSTEM = (
    "You are an expert technical interviewer. Ask one clear, specific question that fits the "
    "requested difficulty, aligns with the job requirements, builds on earlier questions without "
    "repeating them, and stays professional and unbiased."
)

EVALUATION_SYSTEM = (
    "You are an expert interviewer providing objective, constructive evaluation of candidate "
    "responses. Be fair but honest in your assessment."
)

REPORT_SYSTEM = (
    "You are a senior hiring manager summarising an interview for the hiring panel. "
    "Be specific and ground every point in the transcript."
)


def _or_na(value: object) -> str:
    text = str(value).strip() if value is not None else ""
    return text or "N/A"


def build_question_task(ctx: QuestionContext) -> str:
    resume = ctx.resume
    lines: List[str] = [
        "Generate an interview question for the following:",
        "",
        f"JOB ROLE: {ctx.job_role}",
        f"JOB DESCRIPTION: {ctx.job_description}",
        "",
        "CANDIDATE RESUME:",
        f"Skills: {', '.join(resume.skills) if resume.skills else 'N/A'}",
        f"Experience: {_or_na(resume.experience)}",
        f"Education: {_or_na(resume.education)}",
        f"Projects: {_or_na(resume.projects)}",
        "",
        "QUESTION REQUIREMENTS:",
        f"- Difficulty Level: {ctx.difficulty}",
        f"- Category: {ctx.category}",
        f"- Time Limit: {ctx.time_limit} seconds",
    ]
    if ctx.previous_questions:
        lines += ["", "PREVIOUS QUESTIONS (avoid repetition):"]
        lines += [f"{index}. {text}" for index, text in enumerate(ctx.previous_questions, start=1)]
    if ctx.previous_performance is not None:
        lines += [
            "",
            "CANDIDATE'S PREVIOUS PERFORMANCE:",
            f"Average Score: {ctx.previous_performance.average_score:.1f}",
            f"Last Question Score: {ctx.previous_performance.last_score:.1f}",
        ]
    lines += [
        "",
        "Respond with a JSON object containing: question, expected_key_points (three to five short "
        "phrases), time_allowed (seconds), category and difficulty echoing the requirements above.",
    ]
    return "\n".join(lines)


def build_evaluation_task(ctx: EvaluationContext) -> str:
    key_points = ", ".join(ctx.expected_key_points) or "N/A"
    return dedent(
        f"""
        Evaluate the candidate's response.

        QUESTION: {ctx.question}
        EXPECTED KEY POINTS: {key_points}
        DIFFICULTY LEVEL: {ctx.difficulty}
        CATEGORY: {ctx.category}

        CANDIDATE'S ANSWER: {ctx.answer}

        TIME TAKEN: {ctx.time_taken:g} seconds (Allowed: {ctx.time_allowed} seconds)

        Score each dimension from 0 to 100:
        - accuracy: how correct and factual the answer is.
        - clarity: how clear and well-structured the response is.
        - depth: how thorough and comprehensive the answer is.
        - relevance: how well it addresses the question.
        - time_efficiency: whether the answer fit the time constraint.
        Also give an overall score (0-100), two to three sentences of feedback, and
        next_difficulty as one of increase, maintain or decrease.
        Return only JSON without markdown fences, text, or commentary.
        """
    ).strip()


def build_report_task(ctx: ReportContext) -> str:
    perf = ctx.performance
    history: List[str] = []
    for attempt in ctx.attempts:
        overall = f"{attempt.score.overall:g}" if attempt.score is not None else "N/A"
        history.append(
            f"Question {attempt.question_number} ({attempt.difficulty} - {attempt.category}):\n"
            f"Q: {attempt.question}\n"
            f"A: {_or_na(attempt.answer)}\n"
            f"Score: {overall}"
        )
    metrics = "\n".join(
        [
            f"- Total Questions: {perf.total_questions}",
            f"- Questions Answered: {perf.questions_answered}",
            f"- Average Score: {perf.average_score:.1f}",
            f"- Time Management: {perf.time_management:.1f}",
            f"- Technical Score: {perf.technical_score:.1f}",
            f"- Behavioral Score: {perf.behavioral_score:.1f}",
            f"- Conceptual Score: {perf.conceptual_score:.1f}",
            f"- Scenario Score: {perf.scenario_score:.1f}",
        ]
    )
    return (
        "Generate a comprehensive interview performance report.\n\n"
        f"JOB ROLE: {ctx.job_role}\n"
        f"FINAL SCORE: {ctx.final_score}/100\n"
        f"READINESS LEVEL: {ctx.readiness}\n\n"
        f"PERFORMANCE METRICS:\n{metrics}\n\n"
        "QUESTION HISTORY:\n" + "\n\n".join(history) + "\n\n"
        "Respond with a JSON object containing: strengths (3-5 items), weaknesses (3-5 items), "
        "actionable_feedback (5-7 recommendations), hiring_readiness (ready, conditional or "
        "not-ready) and hiring_readiness_explanation (one or two sentences)."
    )


__all__ = [
    "EVALUATION_SYSTEM",
    "QUESTION_SYSTEM",
    "REPORT_SYSTEM",
    "build_evaluation_task",
    "build_question_task",
    "build_report_task",
]
