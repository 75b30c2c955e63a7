"""Tests for password hashing and account sessions."""

from __future__ import annotations

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

import auth
from models import Base, Employee


@pytest.fixture
def session():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    with sessionmaker(bind=engine, expire_on_commit=False)() as s:
        yield s
    engine.dispose()


def test_password_hash_roundtrip() -> None:
    stored = auth.hash_password("hunter22")
    assert stored.startswith("pbkdf2_sha256$")
    assert auth.verify_password("hunter22", stored)
    assert not auth.verify_password("hunter23", stored)
    assert not auth.verify_password("hunter22", "garbage")


def test_employee_signup_creates_profile(session) -> None:
    user, token = auth.sign_up(session, " Ann@Example.com ", "secret1", "employee")
    assert user.email == "ann@example.com"
    assert token
    profile = session.get(Employee, user.id)
    assert profile.name == "ann"
    assert profile.skills == []
    assert auth.user_for_token(session, token).id == user.id


def test_manager_signup_has_no_profile(session) -> None:
    user, _ = auth.sign_up(session, "boss@example.com", "secret1", "manager", "Boss")
    assert session.get(Employee, user.id) is None


def test_duplicate_email_names_existing_role(session) -> None:
    auth.sign_up(session, "ann@example.com", "secret1", "manager")
    with pytest.raises(auth.AuthError, match="already registered as a manager"):
        auth.sign_up(session, "ANN@example.com", "secret1", "employee")


@pytest.mark.parametrize(
    "email,password,role,message",
    [
        ("ann@example.com", "123", "employee", "at least 6"),
        ("not-an-email", "secret1", "employee", "valid email"),
        ("ann@example.com", "secret1", "admin", "Unknown role"),
    ],
)
def test_signup_validation(session, email, password, role, message) -> None:
    with pytest.raises(auth.AuthError, match=message):
        auth.sign_up(session, email, password, role)


def test_sign_in_and_out(session) -> None:
    auth.sign_up(session, "ann@example.com", "secret1", "employee")
    with pytest.raises(auth.AuthError, match="Invalid email or password"):
        auth.sign_in(session, "ann@example.com", "wrong")

    user, token = auth.sign_in(session, "ann@example.com", "secret1")
    auth.sign_out(session, token)
    assert auth.user_for_token(session, token) is None


def test_bearer_token_parsing() -> None:
    assert auth.bearer_token("Bearer abc") == "abc"
    assert auth.bearer_token("bearer  abc ") == "abc"
    assert auth.bearer_token("Basic abc") == ""
    assert auth.bearer_token(None) == ""
