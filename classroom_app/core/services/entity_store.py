"""Repository owning every classroom collection and its persistence."""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Callable, Generic, TypeVar

from classroom_app.constants.classroom_constants import (
    ATTENDANCE_KEY,
    CASE_STUDIES_KEY,
    CLASSROOMS_KEY,
    CURRENT_USER_KEY,
    LECTURES_KEY,
    QUIZZES_KEY,
    SHARED_CONTENT_KEY,
    SUBMISSIONS_KEY,
    USERS_KEY,
)
from classroom_app.core.entity_codec import (
    ATTENDANCE_CODEC,
    CASE_STUDY_CODEC,
    CLASSROOM_CODEC,
    LECTURE_CODEC,
    QUIZ_CODEC,
    SHARED_CONTENT_CODEC,
    SUBMISSION_CODEC,
    USER_CODEC,
    EntityCodec,
)
from classroom_app.core.errors import (
    ClassroomValidationError,
    ConflictError,
    DuplicateEntityError,
    EntityDecodeError,
    NotFoundError,
    StoreClosedError,
)
from classroom_app.core.models import (
    AttendanceSession,
    CaseStudy,
    Classroom,
    GeneratedLecture,
    Quiz,
    SharedContent,
    Submission,
    User,
)
from classroom_app.core.services.class_scope import ClassCollections
from classroom_app.core.storage.blob_store import BlobStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EntityCollection(Generic[T]):
    """One persisted collection.

    Every mutation swaps in a new tuple and writes the whole collection to the
    blob store before returning, so readers always see the latest state.
    ``key_attr`` is ``None`` for append-only collections without identity.
    """

    def __init__(
        self,
        store: EntityStore,
        storage_key: str,
        codec: EntityCodec[T],
        key_attr: str | None,
        label: str,
    ) -> None:
        self._store = store
        self._storage_key = storage_key
        self._codec = codec
        self._key_attr = key_attr
        self._label = label
        self._items: tuple[T, ...] = ()

    @property
    def storage_key(self) -> str:
        return self._storage_key

    def all(self) -> tuple[T, ...]:
        return self._items

    def __len__(self) -> int:
        return len(self._items)

    def filter(self, predicate: Callable[[T], bool]) -> tuple[T, ...]:
        return tuple(item for item in self._items if predicate(item))

    def get(self, key: str) -> T | None:
        attr = self._require_key_attr()
        return next((item for item in self._items if getattr(item, attr) == key), None)

    def require(self, key: str) -> T:
        item = self.get(key)
        if item is None:
            raise NotFoundError(f"No {self._label} found with key '{key}'.")
        return item

    def create(self, entity: T, *, prepend: bool = False) -> T:
        if self._key_attr is not None and self.get(getattr(entity, self._key_attr)) is not None:
            raise DuplicateEntityError(
                f"A {self._label} with key '{getattr(entity, self._key_attr)}' already exists."
            )
        self._commit((entity, *self._items) if prepend else (*self._items, entity))
        return entity

    def update(self, key: str, **patch: Any) -> T:
        attr = self._require_key_attr()
        if attr in patch and patch[attr] != key:
            raise ClassroomValidationError(f"The {self._label} key '{attr}' cannot be changed.")
        current = self.require(key)
        try:
            updated = dataclasses.replace(current, **patch)
        except (TypeError, ValueError) as exc:
            raise ClassroomValidationError(f"Invalid {self._label} update: {exc}") from exc
        self._commit(tuple(updated if item is current else item for item in self._items))
        return updated

    def replace_many(self, entities: list[T]) -> None:
        """Swap several existing entities (matched by key) in a single write."""
        attr = self._require_key_attr()
        replacements = {getattr(entity, attr): entity for entity in entities}
        missing = set(replacements) - {getattr(item, attr) for item in self._items}
        if missing:
            raise NotFoundError(f"No {self._label} found with key '{sorted(missing)[0]}'.")
        self._commit(tuple(replacements.get(getattr(item, attr), item) for item in self._items))

    def delete(self, key: str) -> T:
        current = self.require(key)
        self._commit(tuple(item for item in self._items if item is not current))
        return current

    def _require_key_attr(self) -> str:
        if self._key_attr is None:
            raise ConflictError(f"The {self._label} collection is append-only.")
        return self._key_attr

    def _commit(self, items: tuple[T, ...]) -> None:
        self._store._ensure_open()
        self._items = items
        self._store._persist(self._storage_key, self._codec.dumps_many(items))

    def _load(self, blob_store: BlobStore) -> str | None:
        """Load from the blob store. Returns a warning message when the blob was discarded."""
        try:
            blob = blob_store.get(self._storage_key)
            self._items = () if blob is None else self._codec.loads_many(blob)
        except EntityDecodeError as exc:
            self._items = ()
            blob_store.delete(self._storage_key)
            return f"Discarded corrupted '{self._storage_key}' blob: {exc}"
        return None

    def _dump(self) -> str:
        return self._codec.dumps_many(self._items)


class EntityStore:
    """Explicitly opened repository; the single source of truth for all collections."""

    def __init__(self, blob_store: BlobStore) -> None:
        self._blob_store = blob_store
        self._open: bool = False
        self._current_user: User | None = None
        self.load_warnings: list[str] = []

        self.users: EntityCollection[User] = EntityCollection(self, USERS_KEY, USER_CODEC, "email", "user")
        self.classrooms: EntityCollection[Classroom] = EntityCollection(
            self, CLASSROOMS_KEY, CLASSROOM_CODEC, "code", "classroom"
        )
        self.quizzes: EntityCollection[Quiz] = EntityCollection(self, QUIZZES_KEY, QUIZ_CODEC, "id", "quiz")
        self.submissions: EntityCollection[Submission] = EntityCollection(
            self, SUBMISSIONS_KEY, SUBMISSION_CODEC, None, "submission"
        )
        self.shared_content: EntityCollection[SharedContent] = EntityCollection(
            self, SHARED_CONTENT_KEY, SHARED_CONTENT_CODEC, "id", "shared content item"
        )
        self.lectures: EntityCollection[GeneratedLecture] = EntityCollection(
            self, LECTURES_KEY, LECTURE_CODEC, "id", "lecture"
        )
        self.case_studies: EntityCollection[CaseStudy] = EntityCollection(
            self, CASE_STUDIES_KEY, CASE_STUDY_CODEC, "id", "case study"
        )
        self.attendance_sessions: EntityCollection[AttendanceSession] = EntityCollection(
            self, ATTENDANCE_KEY, ATTENDANCE_CODEC, "id", "attendance session"
        )

    # --- Lifecycle ---

    def open(self) -> EntityStore:
        """Load every collection. Corrupted blobs are dropped, never fatal."""
        self.load_warnings = []
        for collection in self._collections():
            warning = collection._load(self._blob_store)
            if warning:
                self._warn(warning)
        self._current_user = self._load_current_user()
        self._open = True
        logger.info("Entity store opened with %d user(s) and %d classroom(s)", len(self.users), len(self.classrooms))
        return self

    def flush(self) -> None:
        self._ensure_open()
        for collection in self._collections():
            self._blob_store.set(collection.storage_key, collection._dump())
        self._write_current_user()

    def close(self) -> None:
        if not self._open:
            return
        self.flush()
        self._open = False
        logger.info("Entity store closed")

    def is_open(self) -> bool:
        return self._open

    def __enter__(self) -> EntityStore:
        if not self._open:
            self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # --- Current user ---

    @property
    def current_user(self) -> User | None:
        return self._current_user

    def set_current_user(self, user: User) -> None:
        self._ensure_open()
        self._current_user = user
        self._write_current_user()

    def clear_current_user(self) -> None:
        self._ensure_open()
        self._current_user = None
        self._write_current_user()

    # --- Views ---

    def snapshot(self) -> ClassCollections:
        """Return the content collections as they are right now."""
        return ClassCollections(
            quizzes=self.quizzes.all(),
            submissions=self.submissions.all(),
            shared_content=self.shared_content.all(),
            lectures=self.lectures.all(),
            case_studies=self.case_studies.all(),
            attendance_sessions=self.attendance_sessions.all(),
        )

    # --- Internals ---

    def _collections(self) -> list[EntityCollection[Any]]:
        return [
            self.users,
            self.classrooms,
            self.quizzes,
            self.submissions,
            self.shared_content,
            self.lectures,
            self.case_studies,
            self.attendance_sessions,
        ]

    def _ensure_open(self) -> None:
        if not self._open:
            raise StoreClosedError("Entity store is not open.")

    def _persist(self, storage_key: str, blob: str) -> None:
        self._blob_store.set(storage_key, blob)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.load_warnings.append(message)

    def _load_current_user(self) -> User | None:
        try:
            blob = self._blob_store.get(CURRENT_USER_KEY)
            return None if blob is None else USER_CODEC.loads_one(blob)
        except EntityDecodeError as exc:
            self._blob_store.delete(CURRENT_USER_KEY)
            self._warn(f"Discarded corrupted '{CURRENT_USER_KEY}' blob: {exc}")
            return None

    def _write_current_user(self) -> None:
        if self._current_user is None:
            self._blob_store.delete(CURRENT_USER_KEY)
        else:
            self._blob_store.set(CURRENT_USER_KEY, USER_CODEC.dumps_one(self._current_user))
