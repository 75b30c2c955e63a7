from typing import Dict, List

SKILL_WEIGHT = 70
AVAILABILITY_BONUS = {"available": 30, "limited": 15, "unavailable": 0}
AVAILABILITY_LABEL = {"available": "excellent", "limited": "limited", "unavailable": "unavailable"}
SENIOR_LEVELS = ("advanced", "expert")


def _skill_name(skill) -> str:
    if isinstance(skill, dict):
        return skill.get("name") or ""
    return str(skill)


def _skill_level(skill) -> str:
    return (skill.get("level") or "") if isinstance(skill, dict) else ""


def skill_matches(employee_skills: List, required: List[str]) -> List[str]:
    """Names of employee skills matching any requirement.

    Case-insensitive substring test in both directions, so "React" matches
    "react.js" and "Java" matches "JavaScript".
    """
    req = [r.strip().lower() for r in required if r and r.strip()]
    found = []
    for skill in employee_skills or []:
        name = _skill_name(skill)
        lowered = name.strip().lower()
        if not lowered:
            continue
        if any(lowered in r or r in lowered for r in req):
            found.append(name)
    return found


def rule_score(matched: int, required_count: int, availability: str) -> int:
    ratio = matched / max(required_count, 1)
    raw = ratio * SKILL_WEIGHT + AVAILABILITY_BONUS.get(availability, 0)
    # half-up rounding, raw is never negative
    return max(0, min(100, int(raw + 0.5)))


def _reasons(matched: List[str], availability: str, skills: List) -> List[str]:
    reasons = []
    if matched:
        plural = "skill" if len(matched) == 1 else "skills"
        reasons.append(f"Matches {len(matched)} required {plural}")
    else:
        reasons.append("No required skills matched")

    if availability == "available":
        reasons.append("Available for immediate assignment")
    elif availability == "limited":
        reasons.append("Limited availability")
    else:
        reasons.append("Currently unavailable")

    if any(_skill_level(s) in SENIOR_LEVELS for s in skills or []):
        reasons.append("Has advanced/expert level skills")
    return reasons


def fallback_recommendations(required_skills: List[str], employees: List) -> List[Dict]:
    """Deterministic recommendations used whenever the LLM path is unusable.

    Every employee gets exactly one entry; entries are sorted best-first and
    ties keep input order.
    """
    required = [s for s in (required_skills or []) if s and s.strip()]
    results = []
    for emp in employees:
        availability = emp.availability or "available"
        matched = skill_matches(emp.skills, required)
        results.append({
            "employee": emp,
            "score": rule_score(len(matched), len(required), availability),
            "reasons": _reasons(matched, availability, emp.skills),
            "skill_matches": matched,
            "availability_status": AVAILABILITY_LABEL.get(availability, "unavailable"),
        })
    # sorted() is stable, reverse=True keeps tied entries in input order
    return sorted(results, key=lambda r: r["score"], reverse=True)
