"""Tests for report metrics and exports."""

from __future__ import annotations

import csv
import io
import json
from datetime import date, datetime
from types import SimpleNamespace

import pytest

import reports
from tests.fakes import make_employee

NOW = datetime(2025, 6, 15, 12, 0)


def _project(pid: str, status: str, progress: int, team: list[str], created: datetime,
             deadline: datetime = datetime(2030, 1, 1), budget: float | None = None,
             title: str | None = None, tags: list[str] | None = None) -> SimpleNamespace:
    return SimpleNamespace(
        id=pid, title=title or pid, status=status, priority="medium", progress=progress,
        assigned_employee_ids=team, created_at=created, deadline=deadline, budget=budget,
        manager_name="Morgan", tags=tags or [],
    )


@pytest.fixture
def projects() -> list[SimpleNamespace]:
    return [
        _project("p1", "completed", 100, ["e1"], datetime(2025, 1, 10), budget=1000),
        _project("p2", "in-progress", 40, ["e1", "e2"], datetime(2025, 3, 5), deadline=datetime(2025, 5, 1)),
        _project("p3", "planning", 0, [], datetime(2025, 6, 1), budget=500),
    ]


def test_summary_counts(projects) -> None:
    summary = reports.summarize(projects, NOW)
    assert summary == {
        "total_projects": 3,
        "completed_projects": 1,
        "in_progress_projects": 1,
        "overdue_projects": 1,
        "total_budget": 1500,
        "average_progress": 47,
    }


def test_completed_project_is_never_overdue() -> None:
    p = _project("p", "completed", 100, [], datetime(2020, 1, 1), deadline=datetime(2020, 2, 1))
    assert reports.is_overdue(p, NOW) is False


def test_status_distribution_covers_every_status(projects) -> None:
    dist = {row["status"]: row["count"] for row in reports.status_distribution(projects)}
    assert dist == {"planning": 1, "in-progress": 1, "review": 0, "completed": 1, "on-hold": 0}


def test_employee_metrics(projects) -> None:
    emps = [make_employee("e1", name="Ann"), make_employee("e2", name="Ben"), make_employee("e3")]
    metrics = {m["employee_id"]: m for m in reports.employee_metrics(projects, emps)}
    assert set(metrics) == {"e1", "e2"}
    assert metrics["e1"]["project_count"] == 2
    assert metrics["e1"]["completed_count"] == 1
    assert metrics["e1"]["avg_progress"] == 70
    assert metrics["e1"]["efficiency"] == 50
    assert metrics["e2"]["efficiency"] == 0


def test_filters(projects) -> None:
    assert [p.id for p in reports.filter_projects(projects, start_date=date(2025, 3, 5))] == ["p2", "p3"]
    assert [p.id for p in reports.filter_projects(projects, end_date=date(2025, 3, 5))] == ["p1", "p2"]
    assert [p.id for p in reports.filter_projects(projects, employee_id="e2")] == ["p2"]
    assert [p.id for p in reports.filter_projects(projects, project_id="p3")] == ["p3"]


def test_csv_quotes_commas_quotes_and_newlines() -> None:
    p = _project("p1", "planning", 0, ["e1"], datetime(2025, 1, 1),
                 title='Site "v2", phase\none', tags=["react", "node"])
    report = reports.build_report([p], [make_employee("e1", name="Doe, Jane")], now=NOW)
    text = reports.export(report, "csv")

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == reports.EXPORT_COLUMNS
    assert rows[1][0] == 'Site "v2", phase\none'
    assert rows[1][7] == "Doe, Jane"
    assert rows[1][8] == "react, node"
    assert text.endswith("\r\n")


def test_excel_export_escapes_html() -> None:
    p = _project("p1", "planning", 0, [], datetime(2025, 1, 1), title="<b>R&D</b>")
    out = reports.export(reports.build_report([p], [], now=NOW), "xls")
    assert "&lt;b&gt;R&amp;D&lt;/b&gt;" in out
    assert "<th>Progress (%)</th>" in out


def test_json_export_contains_full_report(projects) -> None:
    report = reports.build_report(projects, [], filters={"project_id": None}, now=NOW)
    data = json.loads(reports.export(report, "json"))
    assert data["summary"]["total_projects"] == 3
    assert data["generated_at"] == NOW.isoformat()


def test_unknown_format_and_filename() -> None:
    with pytest.raises(ValueError):
        reports.export({"projects": []}, "pdf")
    assert reports.export_filename("csv", date(2025, 6, 15)) == "project-report-2025-06-15.csv"
