"""Tests for AI recommendations with rule-based fallback."""

from __future__ import annotations

import json

from matching.llm_groq import LLMError
from matching.recommender import build_recommendation_prompt, recommend_employees
from tests.fakes import make_employee

REQUIREMENTS = {
    "title": "Dashboard",
    "description": "React front end",
    "required_skills": ["React", "TypeScript"],
    "priority": "high",
    "budget": 50000,
}


def _employees():
    return [
        make_employee("a", [{"name": "Python", "level": "beginner"}], "limited"),
        make_employee("b", [{"name": "React", "level": "expert"}], "available"),
    ]


def test_prompt_lists_candidates_and_requirements() -> None:
    prompt = build_recommendation_prompt(REQUIREMENTS, _employees())
    assert "Dashboard" in prompt
    assert "React, TypeScript" in prompt
    assert "50,000" in prompt
    assert '"React (expert)"' in prompt


def test_ai_reply_is_used_when_valid() -> None:
    def complete(system: str, user: str) -> str:
        return json.dumps({"recommendations": [
            {"employeeId": "a", "score": 80, "reasons": ["fast learner"], "availabilityStatus": "limited"},
        ]})

    result = recommend_employees(REQUIREMENTS, _employees(), complete=complete)
    assert result["source"] == "ai"
    assert result["recommendations"][0]["employee"].uid == "a"
    assert result["recommendations"][0]["reasons"] == ["fast learner"]


def test_llm_error_falls_back_with_required_skills() -> None:
    def complete(system: str, user: str) -> str:
        raise LLMError("no key")

    result = recommend_employees(REQUIREMENTS, _employees(), complete=complete)
    assert result["source"] == "fallback"
    recs = result["recommendations"]
    assert [r["employee"].uid for r in recs] == ["b", "a"]
    assert recs[0]["score"] == 65


def test_garbage_reply_falls_back() -> None:
    result = recommend_employees(REQUIREMENTS, _employees(), complete=lambda s, u: "I cannot help with that.")
    assert result["source"] == "fallback"
    assert len(result["recommendations"]) == 2


def test_unexpected_error_falls_back() -> None:
    def complete(system: str, user: str) -> str:
        raise RuntimeError("boom")

    result = recommend_employees(REQUIREMENTS, _employees(), complete=complete)
    assert result["source"] == "fallback"


def test_no_employees_returns_empty_without_calling_llm() -> None:
    calls = []
    result = recommend_employees(REQUIREMENTS, [], complete=lambda s, u: calls.append(1) or "")
    assert result == {"source": "fallback", "recommendations": []}
    assert calls == []
