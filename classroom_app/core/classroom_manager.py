"""Business logic shared by every outer surface of the classroom app."""

from __future__ import annotations

from dataclasses import dataclass
import html
import logging
import random
import re
from threading import Lock
from typing import Any, Sequence
from uuid import uuid4

from classroom_app.constants.ai_constants import (
    DEFAULT_DIFFICULTY,
    DEFAULT_NUM_QUESTIONS,
    LECTURE_QUIZ_TOPIC_TEMPLATE,
)
from classroom_app.constants.faq_constants import DEFAULT_FAQS
from classroom_app.core.documents.document_converter import decode_file_data, encode_file_data, render_preview
from classroom_app.core.errors import ClassNotFoundError, ClassNotJoinedError, ClassroomValidationError
from classroom_app.core.generation import content_generator
from classroom_app.core.generation.text_generator import TextGenerator
from classroom_app.core.markdown_renderer import renderer
from classroom_app.core.models import (
    FAQ,
    AttendanceSession,
    CaseStudy,
    FileContent,
    GeneratedLecture,
    GradeResult,
    ImageContent,
    Question,
    Quiz,
    QuizDraft,
    Role,
    SharedContent,
    Submission,
    TextContent,
    User,
)
from classroom_app.core.services import analytics, content_assistant
from classroom_app.core.services.analytics import HistoryRow, QuizStats, StudentSummary, TeacherSummary
from classroom_app.core.services.attendance_manager import AttendanceManager, AttendanceState
from classroom_app.core.services.class_scope import ClassCollections, scope
from classroom_app.core.services.entity_store import EntityStore
from classroom_app.core.services.quiz_catalog import QuizCatalog
from classroom_app.core.services.quiz_grader import build_submission, grade
from classroom_app.core.services.registration import RegistrationService, normalize_class_code
from classroom_app.core.services.search_index import KnowledgeBase, SearchResult, SearchSession
from classroom_app.utils.clock import Clock, local_now

logger = logging.getLogger(__name__)

_EDITABLE_CONTENT_FIELDS = frozenset({"title", "description", "content"})


@dataclass(slots=True, frozen=True)
class AttendanceOverview:
    state: AttendanceState
    active_session: AttendanceSession | None
    history: tuple[AttendanceSession, ...]


@dataclass(slots=True, frozen=True)
class StudentDashboard:
    student: User
    summary: StudentSummary
    history: tuple[HistoryRow, ...]


class ClassroomManager:
    """Facade for classroom services: store, registration, quizzes, attendance and AI helpers.

    Store access is serialized by one lock. Calls to the text-generation
    service happen outside it so a slow reply never blocks other requests.
    """

    def __init__(
        self,
        store: EntityStore,
        generator: TextGenerator,
        clock: Clock = local_now,
        rng: random.Random | None = None,
    ) -> None:
        self._lock = Lock()
        self._clock = clock
        self._generator = generator

        if not store.is_open():
            store.open()
        self._store = store
        self._registration = RegistrationService(store, rng=rng)
        self._catalog = QuizCatalog(store)
        self._attendance = AttendanceManager(store, clock=clock)
        self._searches: dict[str, SearchSession] = {}
        self._faqs = tuple(FAQ(question=q, answer=a) for q, a in DEFAULT_FAQS)

    def close(self) -> None:
        with self._lock:
            self._store.close()

    # --- Accounts ---

    def sign_up(self, role: Role, name: str, email: str, password: str) -> User:
        with self._lock:
            return self._registration.authenticate(role, email, password, name=name, signup=True)

    def log_in(self, role: Role, email: str, password: str) -> User:
        with self._lock:
            return self._registration.authenticate(role, email, password)

    def log_out(self) -> None:
        with self._lock:
            self._registration.logout()

    def get_current_user(self) -> User | None:
        with self._lock:
            return self._store.current_user

    def join_class(self, email: str, class_code: str) -> User:
        with self._lock:
            return self._registration.join_class(email, class_code)

    # --- Class views ---

    def class_view(self, class_code: str) -> ClassCollections:
        with self._lock:
            code = self._require_class(class_code)
            return scope(code, self._store.snapshot())

    def view_for_user(self, email: str) -> ClassCollections:
        """Scoped view for a user; unassigned students must join a class first."""
        with self._lock:
            user = self._store.users.require(email)
            return scope(self._joined_class(user), self._store.snapshot())

    def enrolled_students(self, class_code: str) -> tuple[User, ...]:
        with self._lock:
            return self._registration.enrolled_students(self._require_class(class_code))

    def get_faqs(self) -> tuple[FAQ, ...]:
        return self._faqs

    # --- Quizzes ---

    def create_quiz(self, class_code: str, topic: str, questions: Sequence[Question]) -> Quiz:
        with self._lock:
            quiz = self._catalog.create_quiz(self._require_class(class_code), topic, questions)
        logger.info("Created quiz %s with %d question(s) for class %s", quiz.id, len(quiz.questions), quiz.class_code)
        return quiz

    def generate_quiz(
        self,
        topic: str,
        num_questions: int = DEFAULT_NUM_QUESTIONS,
        difficulty: str = DEFAULT_DIFFICULTY,
    ) -> QuizDraft:
        """Ask the AI for a quiz on ``topic``. The draft is not saved."""
        if not topic.strip():
            raise ClassroomValidationError("Please enter a topic for the quiz.")
        self._check_question_count(num_questions)
        return content_generator.generate_quiz(self._generator, topic.strip(), num_questions, difficulty)

    def generate_quiz_from_lecture(
        self,
        lecture_id: str,
        num_questions: int = DEFAULT_NUM_QUESTIONS,
        difficulty: str = DEFAULT_DIFFICULTY,
    ) -> QuizDraft:
        self._check_question_count(num_questions)
        with self._lock:
            lecture = self._store.lectures.require(lecture_id)
        draft = content_generator.generate_quiz_from_content(
            self._generator, content_generator.lecture_as_text(lecture), num_questions, difficulty
        )
        return QuizDraft(topic=LECTURE_QUIZ_TOPIC_TEMPLATE.format(topic=lecture.topic), questions=draft.questions)

    def save_quiz_draft(self, class_code: str, draft: QuizDraft) -> Quiz:
        with self._lock:
            return self._catalog.save_draft(self._require_class(class_code), draft)

    def rename_quiz(self, quiz_id: str, topic: str) -> Quiz:
        with self._lock:
            return self._catalog.rename_quiz(quiz_id, topic)

    def delete_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            quiz = self._catalog.delete_quiz(quiz_id)
        logger.info("Deleted quiz %s", quiz_id)
        return quiz

    def get_quiz(self, quiz_id: str) -> Quiz:
        with self._lock:
            return self._store.quizzes.require(quiz_id)

    def submit_quiz(self, quiz_id: str, email: str, answers: Sequence[int | None]) -> tuple[Submission, GradeResult]:
        """Grade a student's answers and record the attempt."""
        with self._lock:
            quiz = self._store.quizzes.require(quiz_id)
            student = self._store.users.require(email)
            if student.role is not Role.STUDENT:
                raise ClassroomValidationError("Only students can submit quizzes.")
            if self._joined_class(student) != quiz.class_code:
                raise ClassNotJoinedError("This quiz belongs to a different class.")
            result = grade(quiz, answers)
            submission = build_submission(quiz, student.name, result, self._clock().isoformat())
            self._store.submissions.create(submission)
        logger.info("Recorded %d/%d for %s on quiz %s", result.score, result.total, student.name, quiz_id)
        return submission, result

    def quiz_stats(self, quiz_id: str) -> QuizStats:
        with self._lock:
            quiz = self._store.quizzes.require(quiz_id)
            return analytics.quiz_stats(quiz, self._store.submissions.all())

    # --- Shared content ---

    def share_text(self, class_code: str, title: str, description: str, content: str) -> TextContent:
        self._check_title(title)
        if not content.strip():
            raise ClassroomValidationError("Please enter the text content to share.")
        with self._lock:
            item = TextContent(
                id=uuid4().hex,
                title=title.strip(),
                description=description.strip(),
                class_code=self._require_class(class_code),
                content=content,
            )
            return self._store.shared_content.create(item, prepend=True)

    def share_file(
        self,
        class_code: str,
        title: str,
        description: str,
        file_name: str,
        mime_type: str,
        file_data: str,
    ) -> FileContent | ImageContent:
        """Share an uploaded file; images become ``ImageContent``."""
        self._check_title(title)
        if not file_name.strip() or not file_data:
            raise ClassroomValidationError("Please choose a file to share.")
        decode_file_data(file_data)
        content_type = ImageContent if mime_type.startswith("image/") else FileContent
        with self._lock:
            item = content_type(
                id=uuid4().hex,
                title=title.strip(),
                description=description.strip(),
                class_code=self._require_class(class_code),
                file_data=file_data,
                file_name=file_name.strip(),
                mime_type=mime_type,
            )
            return self._store.shared_content.create(item, prepend=True)

    def update_content(self, content_id: str, **changes: Any) -> SharedContent:
        unknown = set(changes) - _EDITABLE_CONTENT_FIELDS
        if unknown:
            raise ClassroomValidationError(f"Cannot edit field(s): {', '.join(sorted(unknown))}.")
        if "title" in changes:
            self._check_title(changes["title"])
        for field_name in ("title", "description"):
            if field_name in changes:
                changes[field_name] = changes[field_name].strip()
        with self._lock:
            item = self._store.shared_content.require(content_id)
            if "content" in changes and not isinstance(item, TextContent):
                raise ClassroomValidationError("Only text content has an editable body.")
            return self._store.shared_content.update(content_id, **changes)

    def delete_content(self, content_id: str) -> SharedContent:
        with self._lock:
            return self._store.shared_content.delete(content_id)

    def get_content(self, content_id: str) -> SharedContent:
        with self._lock:
            return self._store.shared_content.require(content_id)

    def preview_content(self, content_id: str) -> str:
        """HTML fragment previewing a shared item."""
        item = self.get_content(content_id)
        if isinstance(item, TextContent):
            return renderer.render_fragment(item.content)
        if isinstance(item, ImageContent):
            src = encode_file_data(decode_file_data(item.file_data), item.mime_type)
            return f'<img src="{html.escape(src)}" alt="{html.escape(item.title)}" />'
        return render_preview(decode_file_data(item.file_data), item.mime_type)

    def summarize_content(self, content_id: str) -> str:
        return content_assistant.summarize(self.get_content(content_id), self._generator)

    def translate_content(self, content_id: str, language: str) -> str:
        return content_assistant.translate(self.get_content(content_id), language, self._generator)

    # --- Generated material ---

    def generate_lecture(self, class_code: str, outline: str) -> GeneratedLecture:
        """Generate slides from an outline and save them to the class."""
        if not outline.strip():
            raise ClassroomValidationError("Please enter a lecture outline.")
        with self._lock:
            self._require_class(class_code)
        slides = content_generator.generate_lecture_slides(self._generator, outline)
        topic = re.sub(r"^- ", "", outline.strip().split("\n")[0])
        with self._lock:
            lecture = GeneratedLecture(
                id=uuid4().hex,
                topic=topic,
                class_code=self._require_class(class_code),
                slides=slides,
            )
            self._store.lectures.create(lecture)
        logger.info("Saved lecture %s with %d slide(s)", lecture.id, len(slides))
        return lecture

    def generate_case_study(self, class_code: str, outline: str) -> CaseStudy:
        if not outline.strip():
            raise ClassroomValidationError("Please enter a case study outline.")
        with self._lock:
            self._require_class(class_code)
        fields = content_generator.generate_case_study(self._generator, outline)
        with self._lock:
            study = CaseStudy(id=uuid4().hex, class_code=self._require_class(class_code), **fields)
            self._store.case_studies.create(study)
        logger.info("Saved case study %s", study.id)
        return study

    def explain(self, question: str) -> str:
        if not question.strip():
            raise ClassroomValidationError("Please enter a question.")
        return content_generator.explain(self._generator, question.strip())

    # --- Attendance ---

    def start_attendance(self, class_code: str) -> AttendanceSession:
        with self._lock:
            return self._attendance.start_session(self._require_class(class_code))

    def stop_attendance(self, class_code: str) -> AttendanceSession | None:
        with self._lock:
            return self._attendance.stop_session(self._require_class(class_code))

    def check_in(self, class_code: str, email: str) -> bool:
        """Mark the student present in the class's active session, if any."""
        with self._lock:
            code = self._require_class(class_code)
            student = self._store.users.require(email)
            if self._joined_class(student) != code:
                raise ClassNotJoinedError("You are not a member of this class.")
            return self._attendance.check_in(code, student.name)

    def attendance_overview(self, class_code: str) -> AttendanceOverview:
        with self._lock:
            code = self._require_class(class_code)
            return AttendanceOverview(
                state=self._attendance.state(code),
                active_session=self._attendance.active_session(code),
                history=tuple(self._attendance.history(code)),
            )

    def student_attendance(self, email: str) -> tuple[AttendanceSession, ...]:
        with self._lock:
            student = self._store.users.require(email)
            return tuple(self._attendance.personal_history(student.name, self._joined_class(student)))

    # --- Dashboards ---

    def teacher_dashboard(self, class_code: str) -> TeacherSummary:
        with self._lock:
            code = self._require_class(class_code)
            view = scope(code, self._store.snapshot())
            return analytics.teacher_summary(
                view.quizzes,
                self._registration.enrolled_students(code),
                len(view.shared_content),
                self._attendance.active_session(code) is not None,
            )

    def student_dashboard(self, email: str) -> StudentDashboard:
        with self._lock:
            student = self._store.users.require(email)
            view = scope(self._joined_class(student), self._store.snapshot())
            return StudentDashboard(
                student=student,
                summary=analytics.student_summary(student.name, view.quizzes, view.submissions),
                history=tuple(analytics.student_history(student.name, view.quizzes, view.submissions)),
            )

    # --- Search ---

    def search(self, class_code: str, query: str) -> SearchResult | None:
        """Grounded answer from the class's material.

        Returns ``None`` when a newer search in the same class superseded this one.
        """
        with self._lock:
            code = self._require_class(class_code)
            view = scope(code, self._store.snapshot())
            session = self._searches.setdefault(code, SearchSession(self._generator))
        knowledge_base = KnowledgeBase(
            quizzes=view.quizzes,
            lectures=view.lectures,
            case_studies=view.case_studies,
            shared_content=view.shared_content,
            faqs=self._faqs,
        )
        return session.run(query, knowledge_base)

    # --- Internals ---

    def _require_class(self, class_code: str) -> str:
        code = normalize_class_code(class_code or "")
        if self._store.classrooms.get(code) is None:
            raise ClassNotFoundError(f"No classroom found with code '{code}'.")
        return code

    @staticmethod
    def _joined_class(user: User) -> str:
        if not user.class_code:
            raise ClassNotJoinedError("Please join a class with the code from your teacher first.")
        return user.class_code

    @staticmethod
    def _check_title(title: str) -> None:
        if not title.strip():
            raise ClassroomValidationError("Please enter a title.")

    @staticmethod
    def _check_question_count(num_questions: int) -> None:
        if num_questions < 1:
            raise ClassroomValidationError("Number of questions must be at least 1.")
