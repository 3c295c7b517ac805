"""Signup, login and class-join flow."""

from __future__ import annotations

from dataclasses import replace
import logging
import random
import re
from typing import Iterable

from classroom_app.constants.classroom_constants import (
    CLASS_CODE_ALPHABET,
    CLASS_CODE_LENGTH,
    PASSWORD_MIN_LENGTH,
    PASSWORD_SPECIAL_CHARACTERS,
)
from classroom_app.core.errors import (
    ClassNotFoundError,
    ClassroomValidationError,
    RoleMismatchError,
)
from classroom_app.core.models import Classroom, Role, User
from classroom_app.core.services.entity_store import EntityStore

logger = logging.getLogger(__name__)

_SPECIAL_PATTERN = re.compile(f"[{re.escape(PASSWORD_SPECIAL_CHARACTERS)}]")


def generate_class_code(existing_codes: Iterable[str], rng: random.Random | None = None) -> str:
    """Return a 6-character uppercase alphanumeric code not in ``existing_codes``."""
    taken = set(existing_codes)
    rng = rng or random.SystemRandom()
    while True:
        code = "".join(rng.choice(CLASS_CODE_ALPHABET) for _ in range(CLASS_CODE_LENGTH))
        if code not in taken:
            return code


def validate_password(password: str) -> str | None:
    """Return a message listing what the password lacks, or ``None`` if it is strong."""
    missing = []
    if len(password) < PASSWORD_MIN_LENGTH:
        missing.append(f"at least {PASSWORD_MIN_LENGTH} characters")
    if not re.search(r"[a-z]", password):
        missing.append("a lowercase letter")
    if not re.search(r"[A-Z]", password):
        missing.append("an uppercase letter")
    if not re.search(r"\d", password):
        missing.append("a number")
    if not _SPECIAL_PATTERN.search(password):
        missing.append(f"a special character (e.g., {PASSWORD_SPECIAL_CHARACTERS})")
    if missing:
        return f"Password must contain {', '.join(missing)}."
    return None


def normalize_class_code(class_code: str) -> str:
    return class_code.strip().upper()


class RegistrationService:
    """Creates accounts and classrooms and binds students to a classroom.

    Passwords are checked for strength at signup but never stored.
    """

    def __init__(self, store: EntityStore, rng: random.Random | None = None) -> None:
        self._store = store
        self._rng = rng

    def authenticate(
        self,
        role: Role,
        email: str,
        password: str,
        name: str | None = None,
        signup: bool = False,
    ) -> User:
        """Log in an existing user or register a new one, and make them current."""
        email = email.strip()
        if signup and not (name or "").strip():
            raise ClassroomValidationError("Please enter your full name.")
        if not email or not password:
            raise ClassroomValidationError("Please fill in email and password.")
        if signup:
            problem = validate_password(password)
            if problem:
                raise ClassroomValidationError(problem)

        existing = self._store.users.get(email)
        if existing is not None:
            if existing.role != role:
                raise RoleMismatchError(
                    f"You have already registered as a {existing.role.value}. "
                    "Please log in with the correct role."
                )
            self._store.set_current_user(existing)
            logger.info("User %s logged in as %s", email, role.value)
            return existing

        display_name = name.strip() if signup and name else email.split("@")[0]
        user = User(name=display_name, email=email, role=role)
        if role is Role.TEACHER:
            code = generate_class_code((c.code for c in self._store.classrooms.all()), self._rng)
            self._store.classrooms.create(Classroom(code=code, teacher_email=email))
            user = replace(user, class_code=code)
            logger.info("Created classroom %s for teacher %s", code, email)

        self._store.users.create(user)
        self._store.set_current_user(user)
        logger.info("Registered %s %s", role.value, email)
        return user

    def join_class(self, email: str, class_code: str) -> User:
        code = normalize_class_code(class_code)
        if not code:
            raise ClassroomValidationError("Please enter a class code.")
        user = self._store.users.require(email)
        if user.role is not Role.STUDENT:
            raise ClassroomValidationError("Only students can join a classroom.")
        if self._store.classrooms.get(code) is None:
            raise ClassNotFoundError("Invalid class code. Please check with your teacher.")

        updated = self._store.users.update(email, class_code=code)
        current = self._store.current_user
        if current is not None and current.email == email:
            self._store.set_current_user(updated)
        logger.info("Student %s joined class %s", email, code)
        return updated

    def logout(self) -> None:
        self._store.clear_current_user()

    def enrolled_students(self, class_code: str) -> tuple[User, ...]:
        return self._store.users.filter(lambda u: u.role is Role.STUDENT and u.class_code == class_code)
