"""Extraction and strict validation of JSON embedded in LLM replies.

The model reply is treated as an untrusted blob: the JSON object is pulled out
of a fenced code block (or the outermost ``{...}`` span) and validated against
the pydantic payload models below. Anything that does not validate raises
``ResponseParseError`` and the caller falls back to deterministic output; no
field of a rejected payload is ever used.
"""
import json
import re
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

FENCED_JSON = re.compile(r"```(?:json)?\s*(\{[\s\S]*?\})\s*```", re.IGNORECASE)
BARE_JSON = re.compile(r"\{[\s\S]*\}")


class ResponseParseError(ValueError):
    """The LLM reply did not contain a valid payload."""


class _Strict(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RecommendationItem(_Strict):
    employee_id: str = Field(alias="employeeId", min_length=1)
    score: float = Field(ge=0, le=100)
    reasons: List[str] = []
    skill_matches: List[str] = Field(default_factory=list, alias="skillMatches")
    availability_status: Literal["excellent", "good", "limited", "unavailable"] = Field(
        "good", alias="availabilityStatus"
    )


class RecommendationPayload(_Strict):
    recommendations: List[RecommendationItem]


class ActionMeta(_Strict):
    est_time: Optional[str] = None
    suggested_length: Optional[str] = None
    priority: Optional[Literal["low", "medium", "high"]] = None
    url: Optional[str] = None


class InsightAction(_Strict):
    type: Literal["learning", "meeting", "task", "mentor", "course"]
    label: str
    meta: ActionMeta = Field(default_factory=ActionMeta)


class EmployeeInsight(_Strict):
    type: Literal["Strength", "Gap", "NextStep", "Mentor"]
    detail: str
    rationale: str
    confidence: float = Field(ge=0, le=100)
    actions: List[InsightAction] = []


class EmployeeInsightsPayload(_Strict):
    summary: str = Field(min_length=1)
    insights: List[EmployeeInsight]
    confidence_score: float = Field(75, ge=0, le=100)


class ManagerInsight(_Strict):
    employee_id: str = Field(alias="employeeId")
    employee_name: str = Field(alias="employeeName")
    reason: Literal["Attrition Risk", "Skill Gap", "Performance Drop", "High Performer", "Development Ready"]
    detail: str
    confidence: float = Field(ge=0, le=100)
    actions: List[InsightAction] = []


class TeamAction(_Strict):
    type: Literal["hiring", "training", "reassign", "recognition"]
    detail: str
    impact: Literal["low", "medium", "high"]
    confidence: float = Field(ge=0, le=100)


class ManagerInsightsPayload(_Strict):
    summary: str = Field(min_length=1)
    team_trends: str = ""
    insights: List[ManagerInsight] = []
    team_actions: List[TeamAction] = []


def extract_json_block(text: str) -> Dict:
    """Return the JSON object embedded in ``text``.

    A fenced code block wins; otherwise the span from the first ``{`` to the
    last ``}`` is tried.
    """
    if not text:
        raise ResponseParseError("Empty response")

    match = FENCED_JSON.search(text)
    candidate = match.group(1) if match else None
    if candidate is None:
        match = BARE_JSON.search(text)
        if not match:
            raise ResponseParseError("No JSON found in response")
        candidate = match.group(0)

    try:
        parsed = json.loads(candidate)
    except json.JSONDecodeError as e:
        raise ResponseParseError(f"Malformed JSON: {e}") from e
    if not isinstance(parsed, dict):
        raise ResponseParseError("Top-level JSON value is not an object")
    return parsed


def _validate(model, text: str):
    data = extract_json_block(text)
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ResponseParseError(f"Payload failed validation: {e.error_count()} error(s)") from e


def parse_recommendations(text: str, employees: List) -> List[Dict]:
    """Validated recommendations resolved against ``employees``, best first.

    Items naming an unknown employee are dropped silently; if none resolve the
    reply is unusable.
    """
    payload = _validate(RecommendationPayload, text)
    by_id = {e.uid: e for e in employees}

    results = []
    seen = set()
    for item in payload.recommendations:
        emp = by_id.get(item.employee_id)
        if emp is None or item.employee_id in seen:
            continue
        seen.add(item.employee_id)
        results.append({
            "employee": emp,
            "score": int(round(item.score)),
            "reasons": item.reasons,
            "skill_matches": item.skill_matches,
            "availability_status": item.availability_status,
        })

    if employees and not results:
        raise ResponseParseError("No recommendation referenced a known employee")
    return sorted(results, key=lambda r: r["score"], reverse=True)


def parse_employee_insights(text: str) -> EmployeeInsightsPayload:
    return _validate(EmployeeInsightsPayload, text)


def parse_manager_insights(text: str, employees: List) -> ManagerInsightsPayload:
    payload = _validate(ManagerInsightsPayload, text)
    known = {e.uid for e in employees}
    payload.insights = [i for i in payload.insights if i.employee_id in known]
    return payload
