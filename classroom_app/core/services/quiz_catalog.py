"""Service for authoring, editing and deleting a classroom's quizzes."""

from __future__ import annotations

from typing import Sequence
from uuid import uuid4

from classroom_app.constants.classroom_constants import OPTIONS_PER_QUESTION
from classroom_app.core.errors import ClassroomValidationError
from classroom_app.core.models import Question, Quiz, QuizDraft
from classroom_app.core.services.entity_store import EntityStore


class QuizCatalog:
    """Validates quizzes before they reach the entity store."""

    def __init__(self, store: EntityStore) -> None:
        self._store = store

    def create_quiz(self, class_code: str, topic: str, questions: Sequence[Question]) -> Quiz:
        quiz = Quiz(
            id=uuid4().hex,
            topic=self._clean_topic(topic),
            class_code=class_code,
            questions=tuple(self.prepare_question(q) for q in questions),
        )
        if not quiz.questions:
            raise ClassroomValidationError("Quiz must contain at least one question.")
        return self._store.quizzes.create(quiz)

    def save_draft(self, class_code: str, draft: QuizDraft) -> Quiz:
        return self.create_quiz(class_code, draft.topic, draft.questions)

    def rename_quiz(self, quiz_id: str, topic: str) -> Quiz:
        """Only the topic of a saved quiz can be edited."""
        return self._store.quizzes.update(quiz_id, topic=self._clean_topic(topic))

    def delete_quiz(self, quiz_id: str) -> Quiz:
        return self._store.quizzes.delete(quiz_id)

    def quizzes_for_class(self, class_code: str) -> tuple[Quiz, ...]:
        return self._store.quizzes.filter(lambda q: q.class_code == class_code)

    @staticmethod
    def prepare_question(question: Question) -> Question:
        """Validate and normalize a question before storage."""
        cleaned_text = question.question_text.strip()
        if not cleaned_text:
            raise ClassroomValidationError("Question text must not be empty.")
        if len(question.options) != OPTIONS_PER_QUESTION:
            raise ClassroomValidationError("Each question must have exactly four options.")
        options = tuple(option.strip() for option in question.options)
        if any(not option for option in options):
            raise ClassroomValidationError("Option text cannot be empty.")
        if not 0 <= question.correct_answer_index < OPTIONS_PER_QUESTION:
            raise ClassroomValidationError("Correct option index must be between 0 and 3.")
        return Question(
            question_text=cleaned_text,
            options=options,
            correct_answer_index=question.correct_answer_index,
        )

    @staticmethod
    def _clean_topic(topic: str) -> str:
        cleaned = topic.strip()
        if not cleaned:
            raise ClassroomValidationError("Quiz topic must not be empty.")
        return cleaned
