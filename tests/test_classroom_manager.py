import base64
import threading

import pytest

from classroom_app.core.classroom_manager import ClassroomManager
from classroom_app.core.errors import (
    ClassNotFoundError,
    ClassNotJoinedError,
    ClassroomValidationError,
    GenerationError,
)
from classroom_app.core.models import ImageContent, Role, TextContent
from classroom_app.core.services.entity_store import EntityStore

from conftest import STRONG_PASSWORD, FakeTextGenerator, make_question


def test_unjoined_student_has_no_class_view(manager, teacher):
    manager.sign_up(Role.STUDENT, "Kim", "kim@school.test", STRONG_PASSWORD)

    with pytest.raises(ClassNotJoinedError):
        manager.view_for_user("kim@school.test")
    with pytest.raises(ClassNotJoinedError):
        manager.student_dashboard("kim@school.test")


def test_views_are_isolated_between_classes(manager, teacher, student):
    other = manager.sign_up(Role.TEACHER, "Bo", "bo@school.test", STRONG_PASSWORD)
    manager.create_quiz(teacher.class_code, "Ours", [make_question()])
    manager.create_quiz(other.class_code, "Theirs", [make_question()])

    view = manager.view_for_user(student.email)

    assert [q.topic for q in view.quizzes] == ["Ours"]
    assert [q.topic for q in manager.class_view(other.class_code).quizzes] == ["Theirs"]


def test_unknown_class_is_not_found(manager):
    with pytest.raises(ClassNotFoundError):
        manager.class_view("NOPE00")


def test_submit_quiz_records_each_attempt(manager, teacher, student, clock):
    quiz = manager.create_quiz(teacher.class_code, "Sums", [make_question("1+1?", 0), make_question("2+2?", 1)])

    first, result = manager.submit_quiz(quiz.id, student.email, [0, None])
    clock.advance(minutes=5)
    second, _ = manager.submit_quiz(quiz.id, student.email, [0, 1])

    assert (result.score, result.total) == (1, 2)
    assert first.submitted_at == "2024-03-04T09:30:00+00:00"
    assert second.submitted_at == "2024-03-04T09:35:00+00:00"
    assert first.student_name == "Sam Student"
    stats = manager.quiz_stats(quiz.id)
    assert stats.submission_count == 2
    assert stats.average_score == 2.0


def test_submit_quiz_from_other_class_is_rejected(manager, teacher, student):
    other = manager.sign_up(Role.TEACHER, "Bo", "bo@school.test", STRONG_PASSWORD)
    quiz = manager.create_quiz(other.class_code, "Theirs", [make_question()])

    with pytest.raises(ClassNotJoinedError):
        manager.submit_quiz(quiz.id, student.email, [1])


def test_generated_quiz_is_only_a_draft(manager, teacher, generator):
    generator.queue(
        {"topic": "Tides", "questions": [{"questionText": "Why?", "options": ["a", "b", "c", "d"], "correctAnswerIndex": 3}]}
    )

    draft = manager.generate_quiz("Tides", 1)

    assert draft.topic == "Tides"
    assert manager.class_view(teacher.class_code).quizzes == ()
    saved = manager.save_quiz_draft(teacher.class_code, draft)
    assert manager.get_quiz(saved.id).questions == draft.questions


def test_lecture_is_saved_and_feeds_a_quiz(manager, teacher, generator):
    generator.queue(
        {"slides": [{"title": "Light", "points": ["Chlorophyll"]}]},
        {"questions": [{"questionText": "What absorbs light?", "options": ["a", "b", "c", "d"], "correctAnswerIndex": 0}]},
    )

    lecture = manager.generate_lecture(teacher.class_code, "- Photosynthesis\n- Light reactions")
    draft = manager.generate_quiz_from_lecture(lecture.id, 1)

    assert lecture.topic == "Photosynthesis"
    assert manager.class_view(teacher.class_code).lectures == (lecture,)
    assert draft.topic == "Quiz on: Photosynthesis"
    assert "Slide: Light\n- Chlorophyll" in generator.calls[1]["prompt"]


def test_failed_generation_saves_nothing(manager, teacher, generator):
    generator.queue(RuntimeError("service down"))

    with pytest.raises(GenerationError):
        manager.generate_case_study(teacher.class_code, "River pollution")
    assert manager.class_view(teacher.class_code).case_studies == ()


def test_case_study_is_saved(manager, teacher, generator):
    generator.queue({"title": "T", "introduction": "I", "problem": "P", "solution": "S", "conclusion": "C"})

    study = manager.generate_case_study(teacher.class_code, "River pollution")

    assert study.class_code == teacher.class_code
    assert manager.class_view(teacher.class_code).case_studies == (study,)


def test_shared_content_newest_first(manager, teacher):
    manager.share_text(teacher.class_code, "First", "", "one")
    image_data = "data:image/png;base64," + base64.b64encode(b"png").decode("ascii")
    image = manager.share_file(teacher.class_code, "Diagram", "", "d.png", "image/png", image_data)

    items = manager.class_view(teacher.class_code).shared_content

    assert isinstance(image, ImageContent)
    assert [item.title for item in items] == ["Diagram", "First"]


def test_update_content_rules(manager, teacher):
    text = manager.share_text(teacher.class_code, "Notes", "", "draft")
    pdf = manager.share_file(teacher.class_code, "Sheet", "", "s.pdf", "application/pdf", "AA==")

    updated = manager.update_content(text.id, content="final", title="Notes v2")
    assert isinstance(updated, TextContent)
    assert (updated.title, updated.content) == ("Notes v2", "final")

    with pytest.raises(ClassroomValidationError):
        manager.update_content(pdf.id, content="nope")
    with pytest.raises(ClassroomValidationError):
        manager.update_content(text.id, class_code="OTHER1")

    manager.delete_content(pdf.id)
    assert [item.id for item in manager.class_view(teacher.class_code).shared_content] == [text.id]


def test_text_preview_is_rendered_markdown(manager, teacher):
    item = manager.share_text(teacher.class_code, "Notes", "", "# Heading")

    assert "<h1>Heading</h1>" in manager.preview_content(item.id)


def test_image_preview_rebuilds_data_url(manager, teacher):
    hostile = 'data:image/png" onerror="alert(1);base64,aGVsbG8='
    item = manager.share_file(teacher.class_code, "Pic", "", "p.png", "image/png", hostile)

    preview = manager.preview_content(item.id)

    assert "onerror" not in preview
    assert preview == '<img src="data:image/png;base64,aGVsbG8=" alt="Pic" />'


def test_edited_title_and_description_are_stripped(manager, teacher):
    item = manager.share_text(teacher.class_code, "  Notes ", "  Week 1 ", "body")

    updated = manager.update_content(item.id, title="  Notes v2  ", description=" Week 2\n")

    assert (item.title, item.description) == ("Notes", "Week 1")
    assert (updated.title, updated.description) == ("Notes v2", "Week 2")


def test_attendance_through_manager(manager, teacher, student):
    manager.start_attendance(teacher.class_code)

    assert manager.check_in(teacher.class_code, student.email) is True
    assert manager.check_in(teacher.class_code, student.email) is False
    assert manager.teacher_dashboard(teacher.class_code).attendance_active is True

    manager.stop_attendance(teacher.class_code)
    overview = manager.attendance_overview(teacher.class_code)
    assert overview.active_session is None
    assert [r.student_name for r in overview.history[0].records] == ["Sam Student"]
    assert len(manager.student_attendance(student.email)) == 1


def test_search_uses_class_material_and_faqs(manager, teacher, generator):
    manager.share_text(teacher.class_code, "Volcano notes", "Magma basics", "Lava cools into rock")
    generator.queue("Lava is molten rock.")

    result = manager.search(teacher.class_code, "lava")

    assert result.answer == "Lava is molten rock."
    assert [(s.name, s.type) for s in result.sources] == [("Volcano notes", "Shared Content")]


def test_student_dashboard(manager, teacher, student):
    first = manager.create_quiz(teacher.class_code, "One", [make_question()])
    manager.create_quiz(teacher.class_code, "Two", [make_question()])
    manager.submit_quiz(first.id, student.email, [1])

    dashboard = manager.student_dashboard(student.email)

    assert dashboard.summary.completed_count == 1
    assert dashboard.summary.next_quiz.topic == "Two"
    assert dashboard.summary.overall_percentage == 100.0
    assert [row.topic for row in dashboard.history] == ["One"]


def test_state_survives_restart(blob_store, manager, teacher, student, clock):
    manager.create_quiz(teacher.class_code, "Persisted", [make_question()])
    manager.start_attendance(teacher.class_code)
    manager.close()

    restarted = ClassroomManager(EntityStore(blob_store), FakeTextGenerator(), clock=clock)

    assert [q.topic for q in restarted.class_view(teacher.class_code).quizzes] == ["Persisted"]
    assert restarted.attendance_overview(teacher.class_code).active_session is not None
    assert restarted.get_current_user() == student


class GatedGenerator:
    """Holds back answers for prompts containing ``gate_word`` until released."""

    def __init__(self, gate_word: str) -> None:
        self.gate_word = gate_word
        self.entered = threading.Event()
        self.release = threading.Event()

    def generate(self, prompt, response_schema=None, image=None) -> str:
        if self.gate_word in prompt:
            self.entered.set()
            assert self.release.wait(timeout=5)
            return f"answer about {self.gate_word}"
        return "other answer"


def _search_in_background(manager, class_code, query):
    results = []
    worker = threading.Thread(target=lambda: results.append(manager.search(class_code, query)))
    worker.start()
    return worker, results


def test_search_in_another_class_does_not_supersede(blob_store, clock):
    generator = GatedGenerator("photosynthesis")
    manager = ClassroomManager(EntityStore(blob_store), generator, clock=clock)
    first = manager.sign_up(Role.TEACHER, "Ada", "ada@school.test", STRONG_PASSWORD)
    second = manager.sign_up(Role.TEACHER, "Bo", "bo@school.test", STRONG_PASSWORD)
    manager.share_text(first.class_code, "Plants", "", "photosynthesis in leaves")
    manager.share_text(second.class_code, "Maths", "", "algebra basics")

    worker, results = _search_in_background(manager, first.class_code, "photosynthesis")
    assert generator.entered.wait(timeout=5)
    other = manager.search(second.class_code, "algebra")
    generator.release.set()
    worker.join(timeout=5)

    assert other.answer == "other answer"
    assert results[0] is not None
    assert results[0].answer == "answer about photosynthesis"


def test_newer_search_in_same_class_supersedes(blob_store, clock):
    generator = GatedGenerator("photosynthesis")
    manager = ClassroomManager(EntityStore(blob_store), generator, clock=clock)
    teacher = manager.sign_up(Role.TEACHER, "Ada", "ada@school.test", STRONG_PASSWORD)
    manager.share_text(teacher.class_code, "Plants", "", "photosynthesis in leaves")

    worker, results = _search_in_background(manager, teacher.class_code, "photosynthesis")
    assert generator.entered.wait(timeout=5)
    newer = manager.search(teacher.class_code, "algebra")
    generator.release.set()
    worker.join(timeout=5)

    assert results == [None]
    assert newer.sources == ()
