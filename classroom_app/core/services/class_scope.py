"""Projection of the content collections onto a single classroom."""

from __future__ import annotations

from dataclasses import dataclass

from classroom_app.core.models import (
    AttendanceSession,
    CaseStudy,
    GeneratedLecture,
    Quiz,
    SharedContent,
    Submission,
)


@dataclass(slots=True, frozen=True)
class ClassCollections:
    """Class-scoped collections, either the whole store or one classroom's slice."""

    quizzes: tuple[Quiz, ...] = ()
    submissions: tuple[Submission, ...] = ()
    shared_content: tuple[SharedContent, ...] = ()
    lectures: tuple[GeneratedLecture, ...] = ()
    case_studies: tuple[CaseStudy, ...] = ()
    attendance_sessions: tuple[AttendanceSession, ...] = ()

    def is_empty(self) -> bool:
        return not any(
            (
                self.quizzes,
                self.submissions,
                self.shared_content,
                self.lectures,
                self.case_studies,
                self.attendance_sessions,
            )
        )


def scope(class_code: str | None, collections: ClassCollections) -> ClassCollections:
    """Return the subset of every collection whose ``class_code`` matches.

    An absent class code (a student who has not joined yet) gives an empty view.
    """
    if not class_code:
        return ClassCollections()

    def belongs(item) -> bool:
        return item.class_code == class_code

    return ClassCollections(
        quizzes=tuple(filter(belongs, collections.quizzes)),
        submissions=tuple(filter(belongs, collections.submissions)),
        shared_content=tuple(filter(belongs, collections.shared_content)),
        lectures=tuple(filter(belongs, collections.lectures)),
        case_studies=tuple(filter(belongs, collections.case_studies)),
        attendance_sessions=tuple(filter(belongs, collections.attendance_sessions)),
    )
