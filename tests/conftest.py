"""Shared fixtures: in-memory storage, a scripted text generator and a fixed clock."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import json
import random

import pytest

from classroom_app.core.classroom_manager import ClassroomManager
from classroom_app.core.models import Question, Role
from classroom_app.core.services.entity_store import EntityStore
from classroom_app.core.storage.blob_store import InMemoryBlobStore

STRONG_PASSWORD = "Secret1!"


class FakeTextGenerator:
    """Returns queued replies in order and records every prompt."""

    def __init__(self, *replies: str | dict | Exception) -> None:
        self.replies = list(replies)
        self.calls: list[dict] = []

    def queue(self, *replies: str | dict | Exception) -> None:
        self.replies.extend(replies)

    def generate(self, prompt, response_schema=None, image=None) -> str:
        self.calls.append({"prompt": prompt, "response_schema": response_schema, "image": image})
        if not self.replies:
            raise RuntimeError("no reply queued")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            return json.dumps(reply)
        return reply


class FixedClock:
    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta) -> None:
        self.now = self.now + timedelta(**delta)


def make_question(text: str = "2 + 2?", correct: int = 1) -> Question:
    return Question(question_text=text, options=("3", "4", "5", "6"), correct_answer_index=correct)


@pytest.fixture
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture
def store(blob_store) -> EntityStore:
    return EntityStore(blob_store).open()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(datetime(2024, 3, 4, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def generator() -> FakeTextGenerator:
    return FakeTextGenerator()


@pytest.fixture
def manager(store, generator, clock) -> ClassroomManager:
    return ClassroomManager(store, generator, clock=clock, rng=random.Random(7))


@pytest.fixture
def teacher(manager):
    return manager.sign_up(Role.TEACHER, "Ada Teacher", "ada@school.test", STRONG_PASSWORD)


@pytest.fixture
def student(manager, teacher):
    manager.sign_up(Role.STUDENT, "Sam Student", "sam@school.test", STRONG_PASSWORD)
    return manager.join_class("sam@school.test", teacher.class_code)
