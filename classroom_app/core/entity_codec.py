"""Conversion between domain entities and their stored JSON representation.

Stored documents keep the camelCase field names used by the browser version
of the application (``classCode``, ``correctAnswerIndex``...), so blobs written
by either side stay readable.
"""

from __future__ import annotations

from dataclasses import dataclass
import json
from typing import Any, Callable, Generic, TypeVar

from classroom_app.core.errors import EntityDecodeError
from classroom_app.core.models import (
    AttendanceRecord,
    AttendanceSession,
    CaseStudy,
    Classroom,
    FileContent,
    GeneratedLecture,
    ImageContent,
    LectureSlide,
    Question,
    Quiz,
    Role,
    SharedContent,
    Submission,
    TextContent,
    User,
)

T = TypeVar("T")


@dataclass(frozen=True)
class EntityCodec(Generic[T]):
    """Pair of functions converting one entity type to and from plain dicts."""

    encode: Callable[[T], dict[str, Any]]
    decode: Callable[[dict[str, Any]], T]

    def dumps_many(self, entities: tuple[T, ...]) -> str:
        return json.dumps([self.encode(entity) for entity in entities], ensure_ascii=False)

    def loads_many(self, blob: str) -> tuple[T, ...]:
        try:
            payload = json.loads(blob)
        except json.JSONDecodeError as exc:
            raise EntityDecodeError(f"Stored blob is not valid JSON: {exc}") from exc
        if not isinstance(payload, list):
            raise EntityDecodeError("Stored blob must contain a JSON array.")
        return tuple(self._decode_item(item) for item in payload)

    def dumps_one(self, entity: T) -> str:
        return json.dumps(self.encode(entity), ensure_ascii=False)

    def loads_one(self, blob: str) -> T:
        try:
            payload = json.loads(blob)
        except json.JSONDecodeError as exc:
            raise EntityDecodeError(f"Stored blob is not valid JSON: {exc}") from exc
        return self._decode_item(payload)

    def _decode_item(self, item: Any) -> T:
        if not isinstance(item, dict):
            raise EntityDecodeError(f"Expected a JSON object, got {type(item).__name__}.")
        try:
            return self.decode(item)
        except (KeyError, TypeError, ValueError) as exc:
            raise EntityDecodeError(f"Malformed entity {item!r}: {exc}") from exc


def _require_str(payload: dict[str, Any], key: str) -> str:
    value = payload[key]
    if not isinstance(value, str):
        raise TypeError(f"'{key}' must be a string")
    return value


def _require_int(payload: dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"'{key}' must be an integer")
    return value


# --- Users & classrooms ---

def _encode_user(user: User) -> dict[str, Any]:
    data: dict[str, Any] = {"name": user.name, "email": user.email, "role": user.role.value}
    if user.class_code is not None:
        data["classCode"] = user.class_code
    return data


def _decode_user(payload: dict[str, Any]) -> User:
    class_code = payload.get("classCode")
    if class_code is not None and not isinstance(class_code, str):
        raise TypeError("'classCode' must be a string")
    return User(
        name=_require_str(payload, "name"),
        email=_require_str(payload, "email"),
        role=Role(payload["role"]),
        class_code=class_code or None,
    )


def _encode_classroom(classroom: Classroom) -> dict[str, Any]:
    return {"code": classroom.code, "teacherEmail": classroom.teacher_email}


def _decode_classroom(payload: dict[str, Any]) -> Classroom:
    return Classroom(code=_require_str(payload, "code"), teacher_email=_require_str(payload, "teacherEmail"))


# --- Quizzes & submissions ---

def encode_question(question: Question) -> dict[str, Any]:
    return {
        "questionText": question.question_text,
        "options": list(question.options),
        "correctAnswerIndex": question.correct_answer_index,
    }


def decode_question(payload: dict[str, Any]) -> Question:
    options = payload["options"]
    if not isinstance(options, list) or not all(isinstance(option, str) for option in options):
        raise TypeError("'options' must be a list of strings")
    return Question(
        question_text=_require_str(payload, "questionText"),
        options=tuple(options),
        correct_answer_index=_require_int(payload, "correctAnswerIndex"),
    )


def _encode_quiz(quiz: Quiz) -> dict[str, Any]:
    return {
        "id": quiz.id,
        "topic": quiz.topic,
        "classCode": quiz.class_code,
        "questions": [encode_question(question) for question in quiz.questions],
    }


def _decode_quiz(payload: dict[str, Any]) -> Quiz:
    return Quiz(
        id=_require_str(payload, "id"),
        topic=_require_str(payload, "topic"),
        class_code=_require_str(payload, "classCode"),
        questions=tuple(decode_question(item) for item in payload["questions"]),
    )


def _encode_submission(submission: Submission) -> dict[str, Any]:
    return {
        "quizId": submission.quiz_id,
        "studentName": submission.student_name,
        "score": submission.score,
        "totalQuestions": submission.total_questions,
        "submittedAt": submission.submitted_at,
        "classCode": submission.class_code,
    }


def _decode_submission(payload: dict[str, Any]) -> Submission:
    return Submission(
        quiz_id=_require_str(payload, "quizId"),
        student_name=_require_str(payload, "studentName"),
        score=_require_int(payload, "score"),
        total_questions=_require_int(payload, "totalQuestions"),
        submitted_at=_require_str(payload, "submittedAt"),
        class_code=_require_str(payload, "classCode"),
    )


# --- Shared content ---

def encode_shared_content(item: SharedContent) -> dict[str, Any]:
    data: dict[str, Any] = {
        "id": item.id,
        "type": item.type,
        "title": item.title,
        "description": item.description,
        "classCode": item.class_code,
    }
    if isinstance(item, TextContent):
        data["content"] = item.content
    else:
        data["fileData"] = item.file_data
        data["fileName"] = item.file_name
        data["mimeType"] = item.mime_type
    return data


def _decode_shared_content(payload: dict[str, Any]) -> SharedContent:
    content_type = payload["type"]
    common = {
        "id": _require_str(payload, "id"),
        "title": _require_str(payload, "title"),
        "description": payload.get("description") or "",
        "class_code": _require_str(payload, "classCode"),
    }
    if content_type == "text":
        return TextContent(content=payload.get("content") or "", **common)
    if content_type in ("file", "image"):
        cls = FileContent if content_type == "file" else ImageContent
        return cls(
            file_data=_require_str(payload, "fileData"),
            file_name=_require_str(payload, "fileName"),
            mime_type=_require_str(payload, "mimeType"),
            **common,
        )
    raise ValueError(f"unknown shared content type {content_type!r}")


# --- Generated material ---

def _encode_lecture(lecture: GeneratedLecture) -> dict[str, Any]:
    return {
        "id": lecture.id,
        "topic": lecture.topic,
        "classCode": lecture.class_code,
        "slides": [{"title": slide.title, "points": list(slide.points)} for slide in lecture.slides],
    }


def decode_slide(payload: dict[str, Any]) -> LectureSlide:
    points = payload["points"]
    if not isinstance(points, list):
        raise TypeError("'points' must be a list")
    return LectureSlide(title=_require_str(payload, "title"), points=tuple(str(point) for point in points))


def _decode_lecture(payload: dict[str, Any]) -> GeneratedLecture:
    return GeneratedLecture(
        id=_require_str(payload, "id"),
        topic=_require_str(payload, "topic"),
        class_code=_require_str(payload, "classCode"),
        slides=tuple(decode_slide(item) for item in payload["slides"]),
    )


_CASE_STUDY_FIELDS = ("title", "introduction", "problem", "solution", "conclusion")


def _encode_case_study(study: CaseStudy) -> dict[str, Any]:
    data: dict[str, Any] = {"id": study.id, "classCode": study.class_code}
    for name in _CASE_STUDY_FIELDS:
        data[name] = getattr(study, name)
    return data


def _decode_case_study(payload: dict[str, Any]) -> CaseStudy:
    return CaseStudy(
        id=_require_str(payload, "id"),
        class_code=_require_str(payload, "classCode"),
        **{name: _require_str(payload, name) for name in _CASE_STUDY_FIELDS},
    )


# --- Attendance ---

def _encode_attendance(session: AttendanceSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "date": session.date,
        "isActive": session.is_active,
        "classCode": session.class_code,
        "records": [
            {"studentName": record.student_name, "timestamp": record.timestamp}
            for record in session.records
        ],
    }


def _decode_attendance(payload: dict[str, Any]) -> AttendanceSession:
    records: list[AttendanceRecord] = []
    seen: set[str] = set()
    for item in payload["records"]:
        record = AttendanceRecord(
            student_name=_require_str(item, "studentName"),
            timestamp=_require_str(item, "timestamp"),
        )
        if record.student_name in seen:
            continue
        seen.add(record.student_name)
        records.append(record)
    is_active = payload["isActive"]
    if not isinstance(is_active, bool):
        raise TypeError("'isActive' must be a boolean")
    return AttendanceSession(
        id=_require_str(payload, "id"),
        date=_require_str(payload, "date"),
        is_active=is_active,
        class_code=_require_str(payload, "classCode"),
        records=tuple(records),
    )


USER_CODEC: EntityCodec[User] = EntityCodec(_encode_user, _decode_user)
CLASSROOM_CODEC: EntityCodec[Classroom] = EntityCodec(_encode_classroom, _decode_classroom)
QUIZ_CODEC: EntityCodec[Quiz] = EntityCodec(_encode_quiz, _decode_quiz)
SUBMISSION_CODEC: EntityCodec[Submission] = EntityCodec(_encode_submission, _decode_submission)
SHARED_CONTENT_CODEC: EntityCodec[SharedContent] = EntityCodec(encode_shared_content, _decode_shared_content)
LECTURE_CODEC: EntityCodec[GeneratedLecture] = EntityCodec(_encode_lecture, _decode_lecture)
CASE_STUDY_CODEC: EntityCodec[CaseStudy] = EntityCodec(_encode_case_study, _decode_case_study)
ATTENDANCE_CODEC: EntityCodec[AttendanceSession] = EntityCodec(_encode_attendance, _decode_attendance)
