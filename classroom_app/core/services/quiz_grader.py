"""Scoring of submitted quiz answers."""

from __future__ import annotations

from typing import Sequence

from classroom_app.core.models import GradeResult, Quiz, Submission


def grade(quiz: Quiz, answers: Sequence[int | None]) -> GradeResult:
    """Count the positions where the selected option is the correct one.

    ``answers[i]`` is the option picked for question ``i`` or ``None`` when it
    was skipped. Missing trailing answers count as skipped.
    """
    score = 0
    for index, question in enumerate(quiz.questions):
        selected = answers[index] if index < len(answers) else None
        if selected is not None and selected == question.correct_answer_index:
            score += 1
    return GradeResult(score=score, total=len(quiz.questions))


def build_submission(quiz: Quiz, student_name: str, result: GradeResult, submitted_at: str) -> Submission:
    return Submission(
        quiz_id=quiz.id,
        student_name=student_name,
        score=result.score,
        total_questions=result.total,
        submitted_at=submitted_at,
        class_code=quiz.class_code,
    )
