"""Shared fixtures for the test suite."""

from __future__ import annotations

from typing import Any

import pytest
from fastapi.testclient import TestClient

from tests.fakes import sign_up


@pytest.fixture
def client(tmp_path, monkeypatch) -> TestClient:
    """API client backed by a fresh SQLite database and no LLM key."""
    monkeypatch.setenv("BASE_DIR", str(tmp_path))
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.delenv("GROQ_API_KEY", raising=False)

    from app import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def manager(client: TestClient) -> dict[str, Any]:
    return sign_up(client, "boss@example.com", "manager", "Morgan Manager")


@pytest.fixture
def employee(client: TestClient) -> dict[str, Any]:
    return sign_up(client, "alice@example.com", "employee", "Alice")
