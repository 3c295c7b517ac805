"""Service running daily attendance sessions for each classroom."""

from __future__ import annotations

from dataclasses import dataclass, replace
import logging
from typing import Union
from uuid import uuid4

from classroom_app.core.errors import ClassroomValidationError
from classroom_app.core.models import AttendanceRecord, AttendanceSession
from classroom_app.core.services.entity_store import EntityStore
from classroom_app.utils.clock import Clock, local_now, today_iso

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class NoActiveSession:
    class_code: str


@dataclass(slots=True, frozen=True)
class ActiveSession:
    class_code: str
    session_id: str
    day: str


AttendanceState = Union[NoActiveSession, ActiveSession]


class AttendanceManager:
    """Per-classroom state machine: NoActiveSession <-> ActiveSession(day).

    At most one session per class is active. Sessions are persisted through
    the entity store; the state table is the authority on which one is active.
    """

    def __init__(self, store: EntityStore, clock: Clock = local_now) -> None:
        self._store = store
        self._clock = clock
        self._active: dict[str, ActiveSession] = {}
        self._rebuild_states()

    # --- Transitions ---

    def start_session(self, class_code: str) -> AttendanceSession:
        """Activate today's session for the class, creating it if needed."""
        today = today_iso(self._clock)
        sessions = self._store.attendance_sessions
        current = self._active.get(class_code)
        todays = next(
            (s for s in sessions.all() if s.class_code == class_code and s.date == today),
            None,
        )

        if current is not None and todays is not None and current.session_id == todays.id:
            return sessions.require(todays.id)

        changes: list[AttendanceSession] = []
        if current is not None:
            changes.append(replace(sessions.require(current.session_id), is_active=False))

        if todays is not None:
            session = replace(todays, is_active=True)
            changes.append(session)
            sessions.replace_many(changes)
            logger.info("Reopened attendance session %s for class %s", session.id, class_code)
        else:
            if changes:
                sessions.replace_many(changes)
            session = AttendanceSession(
                id=uuid4().hex,
                date=today,
                is_active=True,
                class_code=class_code,
            )
            sessions.create(session)
            logger.info("Started attendance session %s for class %s", session.id, class_code)

        self._active[class_code] = ActiveSession(class_code=class_code, session_id=session.id, day=session.date)
        return session

    def stop_session(self, class_code: str) -> AttendanceSession | None:
        """Deactivate the class's active session. Returns ``None`` if there was none."""
        current = self._active.pop(class_code, None)
        if current is None:
            return None
        logger.info("Stopped attendance session %s for class %s", current.session_id, class_code)
        return self._store.attendance_sessions.update(current.session_id, is_active=False)

    def check_in(self, class_code: str, student_name: str) -> bool:
        """Record a student as present.

        Returns True when a new record was added. Repeated check-ins and
        check-ins with no active session leave everything unchanged.
        """
        name = student_name.strip()
        if not name:
            raise ClassroomValidationError("Student name must not be empty.")

        current = self._active.get(class_code)
        if current is None:
            return False

        session = self._store.attendance_sessions.require(current.session_id)
        if session.has_record_for(name):
            return False

        record = AttendanceRecord(student_name=name, timestamp=self._clock().isoformat())
        self._store.attendance_sessions.update(session.id, records=(*session.records, record))
        return True

    # --- Read models ---

    def state(self, class_code: str) -> AttendanceState:
        return self._active.get(class_code) or NoActiveSession(class_code=class_code)

    def active_session(self, class_code: str) -> AttendanceSession | None:
        current = self._active.get(class_code)
        if current is None:
            return None
        return self._store.attendance_sessions.get(current.session_id)

    def history(self, class_code: str) -> list[AttendanceSession]:
        """Closed sessions of the class, most recent day first."""
        closed = self._store.attendance_sessions.filter(
            lambda s: s.class_code == class_code and not s.is_active
        )
        return sorted(closed, key=lambda s: s.date, reverse=True)

    def personal_history(self, student_name: str, class_code: str | None = None) -> list[AttendanceSession]:
        """Sessions the student checked into, most recent day first."""
        attended = self._store.attendance_sessions.filter(
            lambda s: s.has_record_for(student_name) and (class_code is None or s.class_code == class_code)
        )
        return sorted(attended, key=lambda s: s.date, reverse=True)

    # --- Internals ---

    def _rebuild_states(self) -> None:
        """Derive the state table from persisted sessions, repairing duplicate actives."""
        self._active.clear()
        winners: dict[str, AttendanceSession] = {}
        losers: list[AttendanceSession] = []
        for session in self._store.attendance_sessions.all():
            if not session.is_active:
                continue
            best = winners.get(session.class_code)
            if best is None:
                winners[session.class_code] = session
            elif session.date >= best.date:
                losers.append(best)
                winners[session.class_code] = session
            else:
                losers.append(session)

        if losers:
            logger.warning(
                "Found %d extra active attendance session(s); keeping the most recent per class",
                len(losers),
            )
            self._store.attendance_sessions.replace_many([replace(s, is_active=False) for s in losers])

        for class_code, session in winners.items():
            self._active[class_code] = ActiveSession(class_code=class_code, session_id=session.id, day=session.date)
