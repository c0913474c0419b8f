"""Lightweight CLI helpers for inspecting stored interview sessions."""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

from storage.sessions import SqliteSessionStore


def tail_sessions(limit: int = 20) -> None:
    for row in SqliteSessionStore().recent(limit):
        print(
            f"[{row['updated_at']}] {row['session_id']} candidate={row['candidate_id']} "
            f"status={row['status']} v{row['version']}"
        )


def show_session(session_id: str) -> int:
    session = SqliteSessionStore().load(session_id)
    if session is None:
        print(f"session {session_id} not found")
        return 1
    perf = session.performance
    print(
        f"{session.session_id} {session.job_role} status={session.status} difficulty={session.current_difficulty} "
        f"answered={perf.questions_answered}/{perf.total_questions} avg={perf.average_score:.1f}"
    )
    for attempt in session.attempts:
        overall = "open" if attempt.score is None else f"{attempt.score.overall:g}"
        print(f"  #{attempt.question_number} {attempt.difficulty}/{attempt.category} score={overall} :: {attempt.question}")
    if session.verdict is not None:
        verdict = session.verdict
        reason = f" reason={verdict.termination_reason}" if verdict.termination_reason else ""
        print(f"  verdict final={verdict.final_score} readiness={verdict.readiness}{reason}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Inspect interview sessions")
    parser.add_argument("--recent", type=int, help="Show the most recently updated sessions")
    parser.add_argument("--show", metavar="SESSION_ID", help="Print one session's attempts and verdict")
    args = parser.parse_args(argv)

    if args.recent:
        tail_sessions(args.recent)
    if args.show:
        return show_session(args.show)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
