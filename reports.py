import csv
import html
import io
import json
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from models import PROJECT_STATUSES, utcnow

EXPORT_COLUMNS = [
    "Title", "Status", "Priority", "Progress (%)", "Deadline",
    "Budget", "Manager", "Team", "Tags", "Created",
]

CONTENT_TYPES = {
    "csv": "text/csv; charset=utf-8",
    "xls": "application/vnd.ms-excel; charset=utf-8",
    "json": "application/json",
}


def filter_projects(projects: Iterable, start_date: Optional[date] = None, end_date: Optional[date] = None,
                    project_id: Optional[str] = None, employee_id: Optional[str] = None) -> List:
    """Projects created within [start_date, end_date] (whole days), optionally one project or one assignee."""
    out = []
    for p in projects:
        created = p.created_at.date() if p.created_at else None
        if start_date and created and created < start_date:
            continue
        if end_date and created and created > end_date:
            continue
        if project_id and p.id != project_id:
            continue
        if employee_id and employee_id not in p.assigned_employee_ids:
            continue
        out.append(p)
    return out


def is_overdue(project, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    return project.status != "completed" and project.deadline is not None and now > project.deadline


def summarize(projects: List, now: Optional[datetime] = None) -> Dict:
    total = len(projects)
    return {
        "total_projects": total,
        "completed_projects": sum(1 for p in projects if p.status == "completed"),
        "in_progress_projects": sum(1 for p in projects if p.status == "in-progress"),
        "overdue_projects": sum(1 for p in projects if is_overdue(p, now)),
        "total_budget": sum(p.budget or 0 for p in projects),
        "average_progress": round(sum(p.progress or 0 for p in projects) / total) if total else 0,
    }


def status_distribution(projects: List) -> List[Dict]:
    return [
        {"status": status, "count": sum(1 for p in projects if p.status == status)}
        for status in PROJECT_STATUSES
    ]


def employee_metrics(projects: List, employees: List) -> List[Dict]:
    metrics = []
    for emp in employees:
        mine = [p for p in projects if emp.uid in p.assigned_employee_ids]
        if not mine:
            continue
        completed = sum(1 for p in mine if p.status == "completed")
        metrics.append({
            "employee_id": emp.uid,
            "employee_name": emp.name,
            "project_count": len(mine),
            "completed_count": completed,
            "avg_progress": round(sum(p.progress or 0 for p in mine) / len(mine)),
            "efficiency": round(completed / len(mine) * 100),
        })
    return metrics


def project_rows(projects: List, employee_names: Dict[str, str]) -> List[Dict]:
    rows = []
    for p in projects:
        rows.append({
            "Title": p.title,
            "Status": p.status,
            "Priority": p.priority,
            "Progress (%)": p.progress or 0,
            "Deadline": p.deadline.date().isoformat() if p.deadline else "",
            "Budget": "" if p.budget is None else p.budget,
            "Manager": p.manager_name or "",
            "Team": "; ".join(employee_names.get(uid, uid) for uid in p.assigned_employee_ids),
            "Tags": ", ".join(p.tags or []),
            "Created": p.created_at.date().isoformat() if p.created_at else "",
        })
    return rows


def build_report(projects: List, employees: List, filters: Optional[Dict] = None,
                 now: Optional[datetime] = None) -> Dict:
    now = now or utcnow()
    names = {e.uid: e.name for e in employees}
    return {
        "generated_at": now.isoformat(),
        "filters": filters or {},
        "summary": summarize(projects, now),
        "status_distribution": status_distribution(projects),
        "employee_metrics": employee_metrics(projects, employees),
        "projects": project_rows(projects, names),
    }


def to_csv(rows: List[Dict]) -> str:
    """RFC 4180 CSV: fields holding commas, quotes or newlines are quoted, quotes doubled."""
    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=EXPORT_COLUMNS, quoting=csv.QUOTE_MINIMAL, lineterminator="\r\n")
    writer.writeheader()
    for row in rows:
        writer.writerow(row)
    return buf.getvalue()


def to_excel_html(rows: List[Dict], title: str = "Project Report") -> str:
    """HTML table that spreadsheet applications open as a worksheet."""
    head = "".join(f"<th>{html.escape(c)}</th>" for c in EXPORT_COLUMNS)
    body = "".join(
        "<tr>" + "".join(f"<td>{html.escape(str(row.get(c, '')))}</td>" for c in EXPORT_COLUMNS) + "</tr>"
        for row in rows
    )
    return (
        '<html xmlns:o="urn:schemas-microsoft-com:office:office" '
        'xmlns:x="urn:schemas-microsoft-com:office:excel" '
        'xmlns="http://www.w3.org/TR/REC-html40">'
        f'<head><meta charset="utf-8"><title>{html.escape(title)}</title></head>'
        f'<body><table border="1"><thead><tr>{head}</tr></thead><tbody>{body}</tbody></table></body></html>'
    )


def to_json(report: Dict) -> str:
    return json.dumps(report, indent=2, default=str)


def export(report: Dict, fmt: str) -> str:
    if fmt == "csv":
        return to_csv(report["projects"])
    if fmt == "xls":
        return to_excel_html(report["projects"])
    if fmt == "json":
        return to_json(report)
    raise ValueError(f"Unsupported export format: {fmt}")


def export_filename(fmt: str, today: Optional[date] = None) -> str:
    today = today or utcnow().date()
    return f"project-report-{today.isoformat()}.{fmt}"
