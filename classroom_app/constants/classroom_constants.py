"""Classroom-related constants shared by the core services and the API."""

import string

CLASS_CODE_LENGTH: int = 6
CLASS_CODE_ALPHABET: str = string.ascii_uppercase + string.digits

OPTIONS_PER_QUESTION: int = 4
DEFAULT_OPTION_LABELS: tuple[str, ...] = ("Option A", "Option B", "Option C", "Option D")

PASSWORD_MIN_LENGTH: int = 8
PASSWORD_SPECIAL_CHARACTERS: str = "@$!%*?&"

RECENT_ITEMS_LIMIT: int = 3

# Blob store keys, one per persisted collection.
CURRENT_USER_KEY: str = "user"
USERS_KEY: str = "allUsers"
CLASSROOMS_KEY: str = "classrooms"
QUIZZES_KEY: str = "quizzes"
SUBMISSIONS_KEY: str = "submissions"
SHARED_CONTENT_KEY: str = "sharedContent"
LECTURES_KEY: str = "generatedLectures"
CASE_STUDIES_KEY: str = "generatedCaseStudies"
ATTENDANCE_KEY: str = "attendanceSessions"

DEFAULT_DATA_DIR: str = ".classroom_data"
