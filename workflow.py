"""Project status transitions.

All status changes go through ``apply_status_change``; the table below is the
only source of legal moves and each move is further scoped by role.
"""
from typing import Dict, FrozenSet, Optional

TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "planning": frozenset({"in-progress", "on-hold"}),
    "in-progress": frozenset({"review", "on-hold"}),
    "review": frozenset({"completed", "in-progress", "on-hold"}),
    "on-hold": frozenset({"in-progress"}),
    "completed": frozenset(),
}

ROLE_TRANSITIONS: Dict[str, Dict[str, FrozenSet[str]]] = {
    # start work / submit for review / continue work
    "employee": {
        "planning": frozenset({"in-progress"}),
        "in-progress": frozenset({"review"}),
        "review": frozenset({"in-progress"}),
    },
    # start / hold / approve / request changes
    "manager": {
        "planning": frozenset({"in-progress", "on-hold"}),
        "in-progress": frozenset({"on-hold"}),
        "review": frozenset({"completed", "in-progress", "on-hold"}),
        "on-hold": frozenset({"in-progress"}),
    },
}

STATUS_ORDER = ("planning", "in-progress", "review", "completed", "on-hold")


class TransitionError(ValueError):
    def __init__(self, current: str, requested: str, allowed):
        self.current = current
        self.requested = requested
        self.allowed = sorted(allowed, key=STATUS_ORDER.index)
        legal = ", ".join(self.allowed) or "none"
        super().__init__(f"Cannot move project from '{current}' to '{requested}' (allowed: {legal})")


def allowed_transitions(current: str, role: Optional[str] = None) -> list:
    """Legal next states for ``current``, optionally narrowed to ``role``."""
    allowed = TRANSITIONS.get(current, frozenset())
    if role is not None:
        allowed = allowed & ROLE_TRANSITIONS.get(role, {}).get(current, frozenset())
    return sorted(allowed, key=STATUS_ORDER.index)


def validate_transition(current: str, requested: str, role: str) -> None:
    allowed = allowed_transitions(current, role)
    if requested not in allowed:
        raise TransitionError(current, requested, allowed)


def progress_after(requested: str, progress: int, explicit: Optional[int] = None) -> int:
    if requested == "completed":
        return 100
    if explicit is not None:
        return explicit
    if requested == "in-progress" and progress == 0:
        return 10
    return progress


def apply_status_change(project, requested: str, role: str, progress: Optional[int] = None):
    """Validate and apply a status change on ``project`` in place."""
    validate_transition(project.status, requested, role)
    project.progress = progress_after(requested, project.progress or 0, progress)
    project.status = requested
    return project
