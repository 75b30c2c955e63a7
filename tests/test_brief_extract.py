"""Tests for project brief skill extraction."""

from __future__ import annotations

from parsers.brief_extract import extract_brief_details, keyword_skills, project_required_skills


def test_keywords_are_whole_words_in_order() -> None:
    text = "We use React with TypeScript, Node and PostgreSQL. JavaScript too; no Javanese."
    assert keyword_skills(text) == ["react", "typescript", "node", "postgresql", "javascript"]


def test_java_does_not_match_inside_javascript() -> None:
    assert keyword_skills("JavaScript only") == ["javascript"]


def test_required_skills_tags_first_then_keywords() -> None:
    skills = project_required_skills([" React ", "Figma", ""], "Build in react and python on AWS")
    assert skills == ["React", "Figma", "python", "aws"]


def test_brief_title_from_labelled_line() -> None:
    text = "ACME Corp\nProject Title: Customer Portal\nStack: Vue, Docker and Kubernetes\n"
    details = extract_brief_details(text)
    assert details["title"] == "Customer Portal"
    assert details["required_skills"] == ["vue", "docker", "kubernetes"]


def test_brief_title_falls_back_to_first_line() -> None:
    assert extract_brief_details("\n\n  Inventory revamp  \nuses sql\n")["title"] == "Inventory revamp"
    assert extract_brief_details("")["title"] == "Untitled Project"
