"""Static metadata describing Classroom Companion."""

APP_NAME = "Classroom Companion"
APP_VERSION = "0.1"
APP_LICENSE = "MIT License"
APP_ABOUT_TEXT = (
    "Classroom Companion is a classroom backend built with FastAPI. "
    "Teachers generate quizzes, lectures and case studies with AI, share material "
    "and run attendance; students take quizzes and ask a grounded search assistant."
)
