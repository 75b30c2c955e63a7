import json
import logging
from typing import Callable, Dict, List, Optional

from .llm_groq import LLMError, groq_complete
from .prompts import RECOMMENDATION_SYSTEM_PROMPT, RECOMMENDATION_USER_TEMPLATE
from .response_parser import ResponseParseError, parse_recommendations
from .scorer import fallback_recommendations

logger = logging.getLogger(__name__)


def _skill_label(skill: Dict) -> str:
    level = skill.get("level")
    return f"{skill.get('name', '')} ({level})" if level else skill.get("name", "")


def build_recommendation_prompt(requirements: Dict, employees: List) -> str:
    employee_data = [
        {
            "id": emp.uid,
            "name": emp.name,
            "skills": [_skill_label(s) for s in (emp.skills or [])],
            "availability": emp.availability or "available",
            "department": emp.department or "Not specified",
            "position": emp.position or "Not specified",
        }
        for emp in employees
    ]
    budget = requirements.get("budget")
    return RECOMMENDATION_USER_TEMPLATE.format(
        title=requirements.get("title", ""),
        description=requirements.get("description", ""),
        skills=", ".join(requirements.get("required_skills") or []) or "Not specified",
        priority=requirements.get("priority", "medium"),
        budget=f"{budget:,.0f}" if budget else "Not specified",
        employees=json.dumps(employee_data, indent=2),
    )


def recommend_employees(
    requirements: Dict,
    employees: List,
    complete: Optional[Callable[[str, str], str]] = None,
) -> Dict:
    """Rank ``employees`` for a project.

    Tries the LLM once; on any failure (no key, network, unusable reply)
    returns the deterministic scorer's ranking for the same requirements.
    The result carries ``source`` = "ai" or "fallback".
    """
    if not employees:
        return {"source": "fallback", "recommendations": []}

    complete = complete or groq_complete
    required = requirements.get("required_skills") or []
    try:
        prompt = build_recommendation_prompt(requirements, employees)
        reply = complete(RECOMMENDATION_SYSTEM_PROMPT, prompt)
        recs = parse_recommendations(reply, employees)
        return {"source": "ai", "recommendations": recs}
    except (LLMError, ResponseParseError) as e:
        logger.warning(f"AI recommendations unavailable, using rule-based scorer: {e}")
    except Exception:
        logger.exception("Unexpected error in AI recommendations, using rule-based scorer")
    return {"source": "fallback", "recommendations": fallback_recommendations(required, employees)}
