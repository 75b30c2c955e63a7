"""AI insights for employees (career coaching) and managers (team health).

Each call tries the LLM once, validates the reply strictly and otherwise
returns a deterministic fallback. Responses are cached per user and every
generated response is handed to the audit sink so feedback can be attached
to it later.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import config
from .cache import TTLCache
from .llm_groq import LLMError, groq_complete
from .prompts import (
    EMPLOYEE_INSIGHTS_SYSTEM_PROMPT,
    EMPLOYEE_INSIGHTS_USER_TEMPLATE,
    MANAGER_INSIGHTS_SYSTEM_PROMPT,
    MANAGER_INSIGHTS_USER_TEMPLATE,
)
from .response_parser import ResponseParseError, parse_employee_insights, parse_manager_insights

logger = logging.getLogger(__name__)

RECENT_PERFORMANCE = 6
RECENT_EMPLOYEE_PROJECTS = 5
RECENT_TEAM_PROJECTS = 10
FALLBACK_TEAM_INSIGHTS = 3


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_insight_id() -> str:
    return f"insight_{uuid.uuid4().hex[:12]}"


def _skills_text(skills) -> str:
    return ", ".join(
        f"{s.get('name', '')} ({s.get('level')})" if s.get("level") else s.get("name", "")
        for s in (skills or [])
    ) or "None listed"


def build_employee_prompt(employee, performance_records: List, projects: List) -> str:
    recent = performance_records[-RECENT_PERFORMANCE:]
    perf_lines = [
        f'- {r.date:%Y-%m-%d}: Score {r.score}/5, Feedback: "{r.feedback}" ({r.source})'
        for r in recent
    ]
    project_lines = [
        f"- {p.title}: {p.status}, Progress: {p.progress}%, Priority: {p.priority}"
        for p in projects[-RECENT_EMPLOYEE_PROJECTS:]
    ]
    return EMPLOYEE_INSIGHTS_USER_TEMPLATE.format(
        name=employee.name,
        role=employee.role or "employee",
        department=employee.department or "Not specified",
        skills=_skills_text(employee.skills),
        availability=employee.availability or "available",
        performance="\n".join(perf_lines) or "No records yet",
        projects="\n".join(project_lines) or "No projects yet",
    )


def team_data(employees: List, performance_by_employee: Dict[str, List], projects: List) -> List[Dict]:
    rows = []
    for emp in employees:
        records = performance_by_employee.get(emp.uid, [])
        recent_score = records[-1].score if records else 0
        avg_score = sum(r.score for r in records) / len(records) if records else 0
        emp_projects = [p for p in projects if emp.uid in p.assigned_employee_ids]
        rows.append({
            "id": emp.uid,
            "name": emp.name,
            "skills": len(emp.skills or []),
            "availability": emp.availability or "available",
            "recent_score": recent_score,
            "avg_score": round(avg_score, 1),
            "project_count": len(emp_projects),
            "completed_projects": sum(1 for p in emp_projects if p.status == "completed"),
        })
    return rows


def build_manager_prompt(employees: List, performance_by_employee: Dict[str, List], projects: List) -> str:
    names = {e.uid: e.name for e in employees}
    team_lines = [
        f"- {row['name']} ({row['id']}):\n"
        f"  * Skills: {row['skills']} listed\n"
        f"  * Availability: {row['availability']}\n"
        f"  * Recent Performance: {row['recent_score']}/5\n"
        f"  * Average Performance: {row['avg_score']}/5\n"
        f"  * Projects: {row['completed_projects']}/{row['project_count']} completed"
        for row in team_data(employees, performance_by_employee, projects)
    ]
    project_lines = []
    for p in projects[-RECENT_TEAM_PROJECTS:]:
        team = ", ".join(names.get(uid, uid) for uid in p.assigned_employee_ids) or "Unassigned"
        project_lines.append(f"- {p.title}: {p.status}, Team: {team}")
    return MANAGER_INSIGHTS_USER_TEMPLATE.format(
        team="\n".join(team_lines) or "No employees yet",
        projects="\n".join(project_lines) or "No projects yet",
    )


def fallback_employee_insights(employee) -> Dict:
    skill_count = len(employee.skills or [])
    return {
        "summary": f"{employee.name} has {skill_count} skills and is {employee.availability or 'available'}",
        "insights": [
            {
                "type": "Strength",
                "detail": f"Has {skill_count} documented skills",
                "rationale": "Profile shows diverse skill set",
                "confidence": 60,
                "actions": [],
            },
            {
                "type": "Gap",
                "detail": "Insufficient performance data for detailed analysis",
                "rationale": "Need more performance records to generate insights",
                "confidence": 50,
                "actions": [
                    {"type": "task", "label": "Request performance feedback from manager",
                     "meta": {"est_time": "1 week"}},
                ],
            },
            {
                "type": "NextStep",
                "detail": "Update profile with recent project experience",
                "rationale": "More complete profile enables better insights",
                "confidence": 70,
                "actions": [
                    {"type": "task", "label": "Add recent projects to profile",
                     "meta": {"est_time": "30 minutes"}},
                ],
            },
        ],
        "confidence_score": 60,
        "model_meta": {"model": "fallback", "version": "v1"},
    }


def fallback_manager_insights(employees: List) -> Dict:
    return {
        "summary": f"Team of {len(employees)} members with mixed availability levels",
        "team_trends": "Limited data available for comprehensive team analysis",
        "insights": [
            {
                "employeeId": emp.uid,
                "employeeName": emp.name,
                "reason": "Development Ready",
                "detail": f"{emp.name} has {len(emp.skills or [])} skills and is {emp.availability or 'available'}",
                "confidence": 50,
                "actions": [
                    {"type": "meeting", "label": "Schedule development discussion",
                     "meta": {"suggested_length": "30m", "priority": "medium"}},
                ],
            }
            for emp in employees[:FALLBACK_TEAM_INSIGHTS]
        ],
        "team_actions": [
            {"type": "training", "detail": "Consider team skill development workshop",
             "impact": "medium", "confidence": 60},
        ],
        "model_meta": {"model": "fallback", "version": "v1"},
    }


class InsightsService:
    def __init__(
        self,
        complete: Optional[Callable[[str, str], str]] = None,
        cache: Optional[TTLCache] = None,
        audit: Optional[Callable[[Dict], None]] = None,
    ):
        self._complete = complete or groq_complete
        self.cache = cache or TTLCache(config.INSIGHTS_CACHE_TTL)
        self._audit = audit

    def _ai_meta(self) -> Dict:
        return {"model": config.MODEL_NAME, "version": "v1"}

    def _record(self, entry: Dict) -> None:
        if self._audit is None:
            return
        try:
            self._audit(entry)
        except Exception:
            # audit write failures are logged only
            logger.exception("Failed to write insight audit log %s", entry.get("id"))

    def employee_insights(self, employee, performance_records: List, projects: List,
                          force_refresh: bool = False) -> Dict:
        cache_key = f"employee_{employee.uid}"
        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        prompt = build_employee_prompt(employee, performance_records, projects)
        try:
            payload = parse_employee_insights(self._complete(EMPLOYEE_INSIGHTS_SYSTEM_PROMPT, prompt))
            result = payload.model_dump(by_alias=True, exclude_none=True)
            result["model_meta"] = self._ai_meta()
        except (LLMError, ResponseParseError) as e:
            logger.warning(f"Employee insights fell back for {employee.uid}: {e}")
            result = fallback_employee_insights(employee)
        except Exception:
            logger.exception("Unexpected error generating employee insights for %s", employee.uid)
            result = fallback_employee_insights(employee)

        result["insight_id"] = _new_insight_id()
        result["generated_at"] = _now_iso()
        self._record({
            "id": result["insight_id"],
            "user_id": employee.uid,
            "user_role": "employee",
            "insight_type": "employee",
            "target_employee_id": employee.uid,
            "model_inputs": {"prompt": prompt},
            "model_response": result,
        })
        self.cache.set(cache_key, result)
        return result

    def manager_insights(self, manager_id: str, employees: List, performance_by_employee: Dict[str, List],
                         projects: List, force_refresh: bool = False) -> Dict:
        cache_key = f"manager_{manager_id}"
        if not force_refresh:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        prompt = build_manager_prompt(employees, performance_by_employee, projects)
        try:
            payload = parse_manager_insights(self._complete(MANAGER_INSIGHTS_SYSTEM_PROMPT, prompt), employees)
            result = payload.model_dump(by_alias=True, exclude_none=True)
            result["model_meta"] = self._ai_meta()
        except (LLMError, ResponseParseError) as e:
            logger.warning(f"Manager insights fell back for {manager_id}: {e}")
            result = fallback_manager_insights(employees)
        except Exception:
            logger.exception("Unexpected error generating manager insights for %s", manager_id)
            result = fallback_manager_insights(employees)

        result["insight_id"] = _new_insight_id()
        result["generated_at"] = _now_iso()
        self._record({
            "id": result["insight_id"],
            "user_id": manager_id,
            "user_role": "manager",
            "insight_type": "manager",
            "target_employee_id": None,
            "model_inputs": {"prompt": prompt},
            "model_response": result,
        })
        self.cache.set(cache_key, result)
        return result
