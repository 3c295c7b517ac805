"""Domain models for the classroom application."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Literal, Union


class Role(str, Enum):
    """Account role chosen at signup; never changes afterwards."""

    TEACHER = "teacher"
    STUDENT = "student"


@dataclass(slots=True, frozen=True)
class User:
    name: str
    email: str
    role: Role
    class_code: str | None = None


@dataclass(slots=True, frozen=True)
class Classroom:
    code: str
    teacher_email: str


@dataclass(slots=True, frozen=True)
class Question:
    """Multiple-choice question with exactly four options."""

    question_text: str
    options: tuple[str, ...]
    correct_answer_index: int


@dataclass(slots=True, frozen=True)
class Quiz:
    id: str
    topic: str
    class_code: str
    questions: tuple[Question, ...]


@dataclass(slots=True, frozen=True)
class QuizDraft:
    """Generated quiz that has not been saved into a classroom yet."""

    topic: str
    questions: tuple[Question, ...]


@dataclass(slots=True, frozen=True)
class Submission:
    """One graded quiz attempt. Submissions are never edited."""

    quiz_id: str
    student_name: str
    score: int
    total_questions: int
    submitted_at: str
    class_code: str


@dataclass(slots=True, frozen=True)
class TextContent:
    id: str
    title: str
    description: str
    class_code: str
    content: str
    type: Literal["text"] = field(default="text", init=False)


@dataclass(slots=True, frozen=True)
class FileContent:
    id: str
    title: str
    description: str
    class_code: str
    file_data: str
    file_name: str
    mime_type: str
    type: Literal["file"] = field(default="file", init=False)


@dataclass(slots=True, frozen=True)
class ImageContent:
    id: str
    title: str
    description: str
    class_code: str
    file_data: str
    file_name: str
    mime_type: str
    type: Literal["image"] = field(default="image", init=False)


SharedContent = Union[TextContent, FileContent, ImageContent]


@dataclass(slots=True, frozen=True)
class LectureSlide:
    title: str
    points: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class GeneratedLecture:
    id: str
    topic: str
    class_code: str
    slides: tuple[LectureSlide, ...]


@dataclass(slots=True, frozen=True)
class CaseStudy:
    id: str
    title: str
    introduction: str
    problem: str
    solution: str
    conclusion: str
    class_code: str


@dataclass(slots=True, frozen=True)
class FAQ:
    question: str
    answer: str


@dataclass(slots=True, frozen=True)
class AttendanceRecord:
    student_name: str
    timestamp: str


@dataclass(slots=True, frozen=True)
class AttendanceSession:
    """Attendance for one class on one calendar day.

    ``date`` is fixed when the session is first started and never re-derived.
    ``records`` holds at most one entry per student name.
    """

    id: str
    date: str
    is_active: bool
    class_code: str
    records: tuple[AttendanceRecord, ...] = ()

    def has_record_for(self, student_name: str) -> bool:
        return any(record.student_name == student_name for record in self.records)


@dataclass(slots=True, frozen=True)
class GradeResult:
    score: int
    total: int

    @property
    def percentage(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.score / self.total) * 100
