"""Derived statistics for student and teacher dashboards.

Retakes are kept in the store. A quiz counts as completed once any
submission exists, and per-quiz averages use each student's latest attempt.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from classroom_app.constants.classroom_constants import RECENT_ITEMS_LIMIT
from classroom_app.core.models import Quiz, Submission, User


@dataclass(slots=True, frozen=True)
class StudentSummary:
    available_quizzes: tuple[Quiz, ...]
    completed_quizzes: tuple[Quiz, ...]
    completed_count: int
    overall_percentage: float
    next_quiz: Quiz | None


@dataclass(slots=True, frozen=True)
class QuizStats:
    quiz_id: str
    topic: str
    submission_count: int
    average_score: float
    submissions: tuple[Submission, ...]


@dataclass(slots=True, frozen=True)
class HistoryRow:
    quiz_id: str
    topic: str
    score: int
    total_questions: int
    percentage: float
    submitted_at: str


@dataclass(slots=True, frozen=True)
class TeacherSummary:
    quiz_count: int
    enrolled_students: tuple[User, ...]
    shared_content_count: int
    attendance_active: bool
    recent_quizzes: tuple[Quiz, ...]


def overall_percentage(submissions: Sequence[Submission]) -> float:
    total_possible = sum(s.total_questions for s in submissions)
    if total_possible == 0:
        return 0.0
    return sum(s.score for s in submissions) / total_possible * 100


def latest_per_student(submissions: Sequence[Submission]) -> list[Submission]:
    """Keep the most recent submission of each (student, quiz) pair."""
    latest: dict[tuple[str, str], Submission] = {}
    for submission in submissions:
        key = (submission.student_name, submission.quiz_id)
        current = latest.get(key)
        if current is None or submission.submitted_at >= current.submitted_at:
            latest[key] = submission
    return list(latest.values())


def student_summary(student_name: str, quizzes: Sequence[Quiz], submissions: Sequence[Submission]) -> StudentSummary:
    own = [s for s in submissions if s.student_name == student_name]
    completed_ids = {s.quiz_id for s in own}
    available = tuple(q for q in quizzes if q.id not in completed_ids)
    completed = tuple(q for q in quizzes if q.id in completed_ids)
    return StudentSummary(
        available_quizzes=available,
        completed_quizzes=completed,
        completed_count=len(own),
        overall_percentage=overall_percentage(own),
        next_quiz=available[0] if available else None,
    )


def quiz_stats(quiz: Quiz, submissions: Sequence[Submission]) -> QuizStats:
    attempts = tuple(s for s in submissions if s.quiz_id == quiz.id)
    latest = latest_per_student(attempts)
    average = sum(s.score for s in latest) / len(latest) if latest else 0.0
    return QuizStats(
        quiz_id=quiz.id,
        topic=quiz.topic,
        submission_count=len(attempts),
        average_score=average,
        submissions=attempts,
    )


def student_history(student_name: str, quizzes: Sequence[Quiz], submissions: Sequence[Submission]) -> list[HistoryRow]:
    topics = {q.id: q.topic for q in quizzes}
    rows = []
    for s in submissions:
        if s.student_name != student_name:
            continue
        percentage = (s.score / s.total_questions * 100) if s.total_questions else 0.0
        rows.append(
            HistoryRow(
                quiz_id=s.quiz_id,
                topic=topics.get(s.quiz_id, "Unknown Quiz"),
                score=s.score,
                total_questions=s.total_questions,
                percentage=percentage,
                submitted_at=s.submitted_at,
            )
        )
    return rows


def teacher_summary(
    quizzes: Sequence[Quiz],
    enrolled_students: Sequence[User],
    shared_content_count: int,
    attendance_active: bool,
) -> TeacherSummary:
    return TeacherSummary(
        quiz_count=len(quizzes),
        enrolled_students=tuple(enrolled_students),
        shared_content_count=shared_content_count,
        attendance_active=attendance_active,
        recent_quizzes=tuple(reversed(quizzes))[:RECENT_ITEMS_LIMIT],
    )
