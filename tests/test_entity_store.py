import json

import pytest

from classroom_app.core.errors import (
    ClassroomValidationError,
    ConflictError,
    DuplicateEntityError,
    NotFoundError,
    StoreClosedError,
)
from classroom_app.core.models import (
    AttendanceRecord,
    AttendanceSession,
    CaseStudy,
    Classroom,
    FileContent,
    GeneratedLecture,
    ImageContent,
    LectureSlide,
    Quiz,
    Role,
    Submission,
    TextContent,
    User,
)
from classroom_app.core.services.entity_store import EntityStore
from classroom_app.core.storage.blob_store import InMemoryBlobStore, JsonFileBlobStore

from conftest import make_question


def _populate(store: EntityStore) -> None:
    store.users.create(User("Ada", "ada@school.test", Role.TEACHER, "ABC123"))
    store.users.create(User("Sam", "sam@school.test", Role.STUDENT))
    store.classrooms.create(Classroom("ABC123", "ada@school.test"))
    store.quizzes.create(Quiz("q1", "Arithmetic", "ABC123", (make_question(),)))
    store.submissions.create(Submission("q1", "Sam", 1, 1, "2024-03-04T09:30:00+00:00", "ABC123"))
    store.shared_content.create(TextContent("t1", "Notes", "Week 1", "ABC123", "# Hello"))
    store.shared_content.create(
        FileContent("f1", "Syllabus", "", "ABC123", "data:application/pdf;base64,AA==", "s.pdf", "application/pdf")
    )
    store.shared_content.create(
        ImageContent("i1", "Diagram", "Cells", "ABC123", "iVBORw0KGgo=", "cell.png", "image/png")
    )
    store.lectures.create(GeneratedLecture("l1", "Cells", "ABC123", (LectureSlide("Intro", ("a", "b")),)))
    store.case_studies.create(CaseStudy("c1", "Title", "Intro", "Problem", "Solution", "End", "ABC123"))
    store.attendance_sessions.create(
        AttendanceSession("a1", "2024-03-04", False, "ABC123", (AttendanceRecord("Sam", "2024-03-04T09:31:00"),))
    )


def test_every_collection_round_trips(blob_store, store):
    """Everything written through the store is read back unchanged after reopening."""
    _populate(store)
    store.set_current_user(store.users.require("ada@school.test"))

    reopened = EntityStore(blob_store).open()

    for name in (
        "users",
        "classrooms",
        "quizzes",
        "submissions",
        "shared_content",
        "lectures",
        "case_studies",
        "attendance_sessions",
    ):
        assert getattr(reopened, name).all() == getattr(store, name).all()
    assert reopened.current_user == store.current_user
    assert reopened.load_warnings == []


def test_storage_layout_uses_fixed_keys(blob_store, store):
    _populate(store)
    store.set_current_user(store.users.require("sam@school.test"))

    assert blob_store.keys() == sorted(
        [
            "user",
            "allUsers",
            "classrooms",
            "quizzes",
            "submissions",
            "sharedContent",
            "generatedLectures",
            "generatedCaseStudies",
            "attendanceSessions",
        ]
    )
    quizzes = json.loads(blob_store.get("quizzes"))
    assert quizzes[0]["classCode"] == "ABC123"
    assert quizzes[0]["questions"][0]["correctAnswerIndex"] == 1


def test_corrupted_blob_is_discarded_with_warning():
    blobs = InMemoryBlobStore({"quizzes": "not json", "allUsers": json.dumps([{"name": "x"}])})
    store = EntityStore(blobs).open()

    assert store.quizzes.all() == ()
    assert store.users.all() == ()
    assert len(store.load_warnings) == 2
    assert blobs.get("quizzes") is None
    assert blobs.get("allUsers") is None


def test_corrupted_current_user_is_discarded():
    blobs = InMemoryBlobStore({"user": "{broken"})
    store = EntityStore(blobs).open()

    assert store.current_user is None
    assert store.load_warnings


def test_non_utf8_file_is_discarded_on_open(tmp_path):
    (tmp_path / "quizzes.json").write_bytes(b"\xff\xfe\x00garbage")
    (tmp_path / "user.json").write_bytes(b"\xff")

    store = EntityStore(JsonFileBlobStore(tmp_path)).open()

    assert store.quizzes.all() == ()
    assert store.current_user is None
    assert len(store.load_warnings) == 2
    assert not (tmp_path / "quizzes.json").exists()


def test_mutating_closed_store_raises(blob_store):
    store = EntityStore(blob_store)
    with pytest.raises(StoreClosedError):
        store.users.create(User("Ada", "ada@school.test", Role.TEACHER))
    assert blob_store.keys() == []


def test_close_then_mutate_raises(store):
    store.close()
    assert not store.is_open()
    with pytest.raises(RuntimeError):
        store.classrooms.create(Classroom("ZZZ999", "t@school.test"))


def test_duplicate_key_rejected(store):
    store.classrooms.create(Classroom("ABC123", "ada@school.test"))
    with pytest.raises(DuplicateEntityError):
        store.classrooms.create(Classroom("ABC123", "other@school.test"))
    assert len(store.classrooms) == 1


def test_update_cannot_change_key(store):
    store.users.create(User("Ada", "ada@school.test", Role.TEACHER))
    with pytest.raises(ClassroomValidationError):
        store.users.update("ada@school.test", email="new@school.test")


def test_update_and_delete_unknown_key(store):
    with pytest.raises(NotFoundError):
        store.quizzes.update("missing", topic="x")
    with pytest.raises(NotFoundError):
        store.quizzes.delete("missing")


def test_update_replaces_entity(store):
    store.quizzes.create(Quiz("q1", "Old", "ABC123", (make_question(),)))
    before = store.quizzes.all()

    updated = store.quizzes.update("q1", topic="New")

    assert updated.topic == "New"
    assert store.quizzes.require("q1").topic == "New"
    assert before[0].topic == "Old"


def test_update_with_unknown_field_is_validation_error(store):
    store.quizzes.create(Quiz("q1", "Old", "ABC123", (make_question(),)))
    with pytest.raises(ClassroomValidationError):
        store.quizzes.update("q1", colour="red")


def test_submissions_are_append_only(store):
    store.submissions.create(Submission("q1", "Sam", 1, 2, "t", "ABC123"))
    store.submissions.create(Submission("q1", "Sam", 2, 2, "t2", "ABC123"))

    assert len(store.submissions) == 2
    with pytest.raises(ConflictError):
        store.submissions.delete("q1")


def test_prepend_places_item_first(store):
    store.shared_content.create(TextContent("t1", "First", "", "ABC123", "a"))
    store.shared_content.create(TextContent("t2", "Second", "", "ABC123", "b"), prepend=True)

    assert [item.id for item in store.shared_content.all()] == ["t2", "t1"]


def test_clear_current_user_removes_blob(blob_store, store):
    user = store.users.create(User("Ada", "ada@school.test", Role.TEACHER))
    store.set_current_user(user)
    store.clear_current_user()

    assert blob_store.get("user") is None
    assert EntityStore(blob_store).open().current_user is None


def test_json_file_blob_store_round_trip(tmp_path):
    blobs = JsonFileBlobStore(tmp_path / "data")
    with EntityStore(blobs) as store:
        _populate(store)

    assert (tmp_path / "data" / "quizzes.json").exists()
    reopened = EntityStore(JsonFileBlobStore(tmp_path / "data")).open()
    assert reopened.quizzes.require("q1").topic == "Arithmetic"
    assert len(reopened.shared_content) == 3


def test_json_file_blob_store_rejects_unsafe_keys(tmp_path):
    blobs = JsonFileBlobStore(tmp_path)
    with pytest.raises(ValueError):
        blobs.set("../escape", "[]")
