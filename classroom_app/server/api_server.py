"""FastAPI server exposing the classroom endpoints for teachers and students."""

from __future__ import annotations

from dataclasses import asdict
from typing import Any

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field
import uvicorn

from classroom_app.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from classroom_app.constants.ai_constants import DEFAULT_DIFFICULTY, DEFAULT_NUM_QUESTIONS
from classroom_app.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from classroom_app.core.classroom_manager import ClassroomManager
from classroom_app.core.errors import ClassroomError, ClassroomValidationError
from classroom_app.core.markdown_renderer import renderer
from classroom_app.core.models import Question, QuizDraft, Role


class SignupPayload(BaseModel):
    """Payload schema for account creation."""

    role: Role
    name: str
    email: str
    password: str


class LoginPayload(BaseModel):
    role: Role
    email: str
    password: str


class JoinClassPayload(BaseModel):
    email: str
    class_code: str


class QuestionPayload(BaseModel):
    question_text: str
    options: list[str]
    correct_answer_index: int

    def to_question(self) -> Question:
        return Question(
            question_text=self.question_text,
            options=tuple(self.options),
            correct_answer_index=self.correct_answer_index,
        )


class QuizPayload(BaseModel):
    """Payload schema for authored quizzes and reviewed AI drafts."""

    topic: str
    questions: list[QuestionPayload]


class GenerateQuizPayload(BaseModel):
    """Either a topic or a saved lecture to build the quiz from."""

    topic: str | None = None
    lecture_id: str | None = None
    num_questions: int = Field(default=DEFAULT_NUM_QUESTIONS, ge=1)
    difficulty: str = DEFAULT_DIFFICULTY


class RenameQuizPayload(BaseModel):
    topic: str


class SubmissionPayload(BaseModel):
    email: str
    answers: list[int | None]


class ContentPayload(BaseModel):
    """Text items carry ``content``; uploads carry the file fields."""

    title: str
    description: str = ""
    content: str | None = None
    file_name: str | None = None
    mime_type: str | None = None
    file_data: str | None = None


class ContentUpdatePayload(BaseModel):
    title: str | None = None
    description: str | None = None
    content: str | None = None


class TranslationPayload(BaseModel):
    language: str


class OutlinePayload(BaseModel):
    outline: str


class ExplainPayload(BaseModel):
    question: str


class CheckInPayload(BaseModel):
    email: str


class SearchPayload(BaseModel):
    query: str


def _get_classroom_manager_dependency(classroom_manager: ClassroomManager):
    def dependency() -> ClassroomManager:
        return classroom_manager

    return dependency


def _serialize(entity: Any) -> dict[str, Any]:
    return asdict(entity)


def _serialize_all(entities) -> list[dict[str, Any]]:
    return [asdict(entity) for entity in entities]


def create_api_app(classroom_manager: ClassroomManager) -> FastAPI:
    """Create a FastAPI application wired to the provided classroom manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION)
    manager_dep = _get_classroom_manager_dependency(classroom_manager)

    @app.exception_handler(ClassroomError)
    async def handle_classroom_error(request: Request, exc: ClassroomError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    @app.get("/")
    def get_status() -> dict[str, object]:
        return {
            "app": APP_NAME,
            "version": APP_VERSION,
            "license": APP_LICENSE,
            "about": APP_ABOUT_TEXT,
            "status": "ok",
        }

    @app.get("/faqs")
    def list_faqs(manager: ClassroomManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return _serialize_all(manager.get_faqs())

    # --- Accounts ---

    @app.post("/auth/signup", status_code=201)
    def sign_up(payload: SignupPayload, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.sign_up(payload.role, payload.name, payload.email, payload.password))

    @app.post("/auth/login")
    def log_in(payload: LoginPayload, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.log_in(payload.role, payload.email, payload.password))

    @app.post("/auth/logout", status_code=204)
    def log_out(manager: ClassroomManager = Depends(manager_dep)) -> None:
        manager.log_out()

    @app.get("/auth/me")
    def get_me(manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        user = manager.get_current_user()
        return {"user": _serialize(user) if user is not None else None}

    @app.post("/classes/join")
    def join_class(payload: JoinClassPayload, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.join_class(payload.email, payload.class_code))

    # --- Class views ---

    @app.get("/classes/{class_code}/view")
    def get_class_view(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.class_view(class_code))

    @app.get("/users/{email}/view")
    def get_user_view(email: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.view_for_user(email))

    @app.get("/classes/{class_code}/students")
    def list_students(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return _serialize_all(manager.enrolled_students(class_code))

    # --- Quizzes ---

    @app.post("/classes/{class_code}/quizzes", status_code=201)
    def create_quiz(
        class_code: str,
        payload: QuizPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        questions = [question.to_question() for question in payload.questions]
        return _serialize(manager.create_quiz(class_code, payload.topic, questions))

    @app.post("/classes/{class_code}/quizzes/generate")
    def generate_quiz(
        class_code: str,
        payload: GenerateQuizPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        manager.class_view(class_code)
        if payload.lecture_id:
            draft = manager.generate_quiz_from_lecture(payload.lecture_id, payload.num_questions, payload.difficulty)
        elif payload.topic:
            draft = manager.generate_quiz(payload.topic, payload.num_questions, payload.difficulty)
        else:
            raise ClassroomValidationError("Provide a topic or a lecture to generate a quiz from.")
        return _serialize(draft)

    @app.post("/classes/{class_code}/quizzes/drafts", status_code=201)
    def save_quiz_draft(
        class_code: str,
        payload: QuizPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        draft = QuizDraft(topic=payload.topic, questions=tuple(q.to_question() for q in payload.questions))
        return _serialize(manager.save_quiz_draft(class_code, draft))

    @app.patch("/quizzes/{quiz_id}")
    def rename_quiz(
        quiz_id: str,
        payload: RenameQuizPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        return _serialize(manager.rename_quiz(quiz_id, payload.topic))

    @app.delete("/quizzes/{quiz_id}", status_code=204)
    def delete_quiz(quiz_id: str, manager: ClassroomManager = Depends(manager_dep)) -> None:
        manager.delete_quiz(quiz_id)

    @app.post("/quizzes/{quiz_id}/submissions", status_code=201)
    def submit_quiz(
        quiz_id: str,
        payload: SubmissionPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        submission, result = manager.submit_quiz(quiz_id, payload.email, payload.answers)
        return {
            "submission": _serialize(submission),
            "score": result.score,
            "total": result.total,
            "percentage": result.percentage,
        }

    @app.get("/quizzes/{quiz_id}/stats")
    def get_quiz_stats(quiz_id: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.quiz_stats(quiz_id))

    # --- Shared content ---

    @app.post("/classes/{class_code}/content", status_code=201)
    def share_content(
        class_code: str,
        payload: ContentPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        if payload.content is not None:
            item = manager.share_text(class_code, payload.title, payload.description, payload.content)
        else:
            item = manager.share_file(
                class_code,
                payload.title,
                payload.description,
                payload.file_name or "",
                payload.mime_type or "application/octet-stream",
                payload.file_data or "",
            )
        return _serialize(item)

    @app.patch("/content/{content_id}")
    def update_content(
        content_id: str,
        payload: ContentUpdatePayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        return _serialize(manager.update_content(content_id, **payload.model_dump(exclude_none=True)))

    @app.delete("/content/{content_id}", status_code=204)
    def delete_content(content_id: str, manager: ClassroomManager = Depends(manager_dep)) -> None:
        manager.delete_content(content_id)

    @app.get("/content/{content_id}/preview", response_class=HTMLResponse)
    def preview_content(content_id: str, manager: ClassroomManager = Depends(manager_dep)) -> str:
        item = manager.get_content(content_id)
        return renderer.wrap_document(manager.preview_content(content_id), title=item.title)

    @app.post("/content/{content_id}/summary")
    def summarize_content(content_id: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, str]:
        summary = manager.summarize_content(content_id)
        return {"text": summary, "html": renderer.render_fragment(summary)}

    @app.post("/content/{content_id}/translation")
    def translate_content(
        content_id: str,
        payload: TranslationPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, str]:
        translation = manager.translate_content(content_id, payload.language)
        return {"language": payload.language, "text": translation, "html": renderer.render_fragment(translation)}

    # --- Generated material ---

    @app.post("/classes/{class_code}/lectures", status_code=201)
    def generate_lecture(
        class_code: str,
        payload: OutlinePayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        return _serialize(manager.generate_lecture(class_code, payload.outline))

    @app.post("/classes/{class_code}/case-studies", status_code=201)
    def generate_case_study(
        class_code: str,
        payload: OutlinePayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        return _serialize(manager.generate_case_study(class_code, payload.outline))

    @app.post("/assistant/explain")
    def explain(payload: ExplainPayload, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, str]:
        answer = manager.explain(payload.question)
        return {"text": answer, "html": renderer.render_fragment(answer)}

    # --- Attendance ---

    @app.post("/classes/{class_code}/attendance/start")
    def start_attendance(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.start_attendance(class_code))

    @app.post("/classes/{class_code}/attendance/stop")
    def stop_attendance(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        session = manager.stop_attendance(class_code)
        return {"session": _serialize(session) if session is not None else None}

    @app.post("/classes/{class_code}/attendance/check-in")
    def check_in(
        class_code: str,
        payload: CheckInPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, bool]:
        return {"recorded": manager.check_in(class_code, payload.email)}

    @app.get("/classes/{class_code}/attendance")
    def get_attendance(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        overview = manager.attendance_overview(class_code)
        active = overview.active_session
        return {
            "active": active is not None,
            "active_session": _serialize(active) if active is not None else None,
            "history": _serialize_all(overview.history),
        }

    @app.get("/students/{email}/attendance")
    def get_student_attendance(email: str, manager: ClassroomManager = Depends(manager_dep)) -> list[dict[str, Any]]:
        return _serialize_all(manager.student_attendance(email))

    # --- Dashboards ---

    @app.get("/classes/{class_code}/dashboard")
    def get_teacher_dashboard(class_code: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.teacher_dashboard(class_code))

    @app.get("/students/{email}/dashboard")
    def get_student_dashboard(email: str, manager: ClassroomManager = Depends(manager_dep)) -> dict[str, Any]:
        return _serialize(manager.student_dashboard(email))

    # --- Search ---

    @app.post("/classes/{class_code}/search")
    def search(
        class_code: str,
        payload: SearchPayload,
        manager: ClassroomManager = Depends(manager_dep),
    ) -> dict[str, Any]:
        result = manager.search(class_code, payload.query)
        if result is None:
            return {"superseded": True, "answer": None, "sources": []}
        return {
            "superseded": False,
            "answer": result.answer,
            "answer_html": renderer.render_fragment(result.answer),
            "sources": _serialize_all(result.sources),
        }

    return app


def run_api_server(
    classroom_manager: ClassroomManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Serve the API until the process is interrupted."""
    app = create_api_app(classroom_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
