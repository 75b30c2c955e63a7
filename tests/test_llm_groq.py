"""Tests for the Groq chat-completion client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests

import config
from matching.llm_groq import LLMError, groq_complete


def _response(json_body=None, status_error: Exception | None = None) -> MagicMock:
    resp = MagicMock()
    resp.json.return_value = json_body
    resp.raise_for_status.side_effect = status_error
    return resp


@pytest.fixture(autouse=True)
def api_key(monkeypatch) -> None:
    monkeypatch.setenv("GROQ_API_KEY", "test-key")


def test_returns_message_content() -> None:
    body = {"choices": [{"message": {"content": "hello"}}]}
    with patch("matching.llm_groq.requests.post", return_value=_response(body)) as post:
        assert groq_complete("sys", "user") == "hello"

    args, kwargs = post.call_args
    assert args[0] == config.LLM_API_URL
    assert kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert kwargs["json"]["messages"][0] == {"role": "system", "content": "sys"}
    assert kwargs["json"]["model"] == config.MODEL_NAME
    assert kwargs["timeout"] == config.LLM_TIMEOUT


def test_missing_key_raises_without_request(monkeypatch) -> None:
    monkeypatch.delenv("GROQ_API_KEY")
    with patch("matching.llm_groq.requests.post") as post:
        with pytest.raises(LLMError):
            groq_complete("sys", "user")
    post.assert_not_called()


def test_http_error_raises() -> None:
    resp = _response(status_error=requests.exceptions.HTTPError("500"))
    with patch("matching.llm_groq.requests.post", return_value=resp):
        with pytest.raises(LLMError):
            groq_complete("sys", "user")


def test_timeout_raises() -> None:
    with patch("matching.llm_groq.requests.post", side_effect=requests.exceptions.Timeout("slow")):
        with pytest.raises(LLMError):
            groq_complete("sys", "user")


@pytest.mark.parametrize("body", [{}, {"choices": []}, {"choices": [{"message": {"content": "  "}}]}])
def test_unexpected_body_raises(body) -> None:
    with patch("matching.llm_groq.requests.post", return_value=_response(body)):
        with pytest.raises(LLMError):
            groq_complete("sys", "user")
