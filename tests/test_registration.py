import random
import re

import pytest

from classroom_app.core.errors import ClassNotFoundError, ClassroomValidationError, RoleMismatchError
from classroom_app.core.models import Role
from classroom_app.core.services.registration import (
    RegistrationService,
    generate_class_code,
    validate_password,
)

from conftest import STRONG_PASSWORD


class ScriptedRng:
    def __init__(self, characters: str) -> None:
        self._characters = iter(characters)

    def choice(self, sequence):
        return next(self._characters)


def test_class_code_format():
    code = generate_class_code([], random.Random(1))

    assert re.fullmatch(r"[A-Z0-9]{6}", code)


def test_class_code_regenerated_on_collision():
    code = generate_class_code({"AAAAAA"}, ScriptedRng("AAAAAABBBBBB"))

    assert code == "BBBBBB"


def test_weak_password_lists_missing_rules():
    message = validate_password("abc")

    assert "at least 8 characters" in message
    assert "an uppercase letter" in message
    assert "a number" in message
    assert "a special character" in message
    assert validate_password(STRONG_PASSWORD) is None


def test_teacher_signup_creates_classroom(store):
    service = RegistrationService(store, rng=random.Random(3))

    teacher = service.authenticate(Role.TEACHER, "ada@school.test", STRONG_PASSWORD, name="Ada", signup=True)

    assert teacher.class_code is not None
    assert store.classrooms.require(teacher.class_code).teacher_email == "ada@school.test"
    assert store.current_user == teacher


def test_teacher_codes_are_unique(store):
    service = RegistrationService(store)
    codes = {
        service.authenticate(Role.TEACHER, f"t{i}@school.test", STRONG_PASSWORD, name=f"T{i}", signup=True).class_code
        for i in range(20)
    }

    assert len(codes) == 20
    assert len(store.classrooms) == 20


def test_student_signup_has_no_class(store):
    student = RegistrationService(store).authenticate(
        Role.STUDENT, "sam@school.test", STRONG_PASSWORD, name="Sam", signup=True
    )

    assert student.class_code is None
    assert len(store.classrooms) == 0


def test_login_with_other_role_is_rejected(store):
    service = RegistrationService(store)
    service.authenticate(Role.STUDENT, "sam@school.test", STRONG_PASSWORD, name="Sam", signup=True)

    with pytest.raises(RoleMismatchError, match="already registered as a student"):
        service.authenticate(Role.TEACHER, "sam@school.test", "whatever")
    assert store.users.require("sam@school.test").role is Role.STUDENT


def test_login_of_unknown_email_registers_with_local_part(store):
    user = RegistrationService(store).authenticate(Role.STUDENT, "kim@school.test", "pw")

    assert user.name == "kim"
    assert store.users.get("kim@school.test") == user


def test_failed_validation_changes_nothing(blob_store, store):
    service = RegistrationService(store)

    with pytest.raises(ClassroomValidationError):
        service.authenticate(Role.TEACHER, "ada@school.test", STRONG_PASSWORD, name="  ", signup=True)
    with pytest.raises(ClassroomValidationError):
        service.authenticate(Role.TEACHER, "ada@school.test", "short", name="Ada", signup=True)
    with pytest.raises(ClassroomValidationError):
        service.authenticate(Role.TEACHER, "", STRONG_PASSWORD)

    assert len(store.users) == 0
    assert store.current_user is None
    assert blob_store.keys() == []


def test_join_class_normalizes_code(store):
    service = RegistrationService(store)
    teacher = service.authenticate(Role.TEACHER, "ada@school.test", STRONG_PASSWORD, name="Ada", signup=True)
    service.authenticate(Role.STUDENT, "sam@school.test", STRONG_PASSWORD, name="Sam", signup=True)

    joined = service.join_class("sam@school.test", f"  {teacher.class_code.lower()} ")

    assert joined.class_code == teacher.class_code
    assert store.users.require("sam@school.test").class_code == teacher.class_code
    assert store.current_user == joined
    assert service.enrolled_students(teacher.class_code) == (joined,)


def test_join_unknown_class(store):
    service = RegistrationService(store)
    service.authenticate(Role.STUDENT, "sam@school.test", STRONG_PASSWORD, name="Sam", signup=True)

    with pytest.raises(ClassNotFoundError, match="Invalid class code"):
        service.join_class("sam@school.test", "NOPE00")
    with pytest.raises(ClassroomValidationError):
        service.join_class("sam@school.test", "   ")
    assert store.users.require("sam@school.test").class_code is None


def test_teacher_cannot_join(store):
    service = RegistrationService(store)
    teacher = service.authenticate(Role.TEACHER, "ada@school.test", STRONG_PASSWORD, name="Ada", signup=True)

    with pytest.raises(ClassroomValidationError):
        service.join_class("ada@school.test", teacher.class_code)


def test_logout_clears_current_user(store):
    service = RegistrationService(store)
    service.authenticate(Role.STUDENT, "sam@school.test", STRONG_PASSWORD, name="Sam", signup=True)

    service.logout()

    assert store.current_user is None
