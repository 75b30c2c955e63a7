from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

Availability = Literal["available", "limited", "unavailable"]
SkillLevel = Literal["beginner", "intermediate", "advanced", "expert"]
ProjectStatus = Literal["planning", "in-progress", "review", "completed", "on-hold"]
Priority = Literal["low", "medium", "high", "urgent"]
Role = Literal["manager", "employee"]


def _reject_null(value):
    # fields stored in non-nullable columns may be omitted but not cleared
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


# Auth
class SignUpIn(BaseModel):
    email: str
    password: str
    role: Role
    name: Optional[str] = None


class SignInIn(BaseModel):
    email: str
    password: str


class UserOut(BaseModel):
    uid: str
    email: str
    role: Role
    name: Optional[str] = None


class SessionOut(BaseModel):
    token: str
    user: UserOut


# Employees
class Skill(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    level: SkillLevel = "beginner"
    years_of_experience: Optional[float] = Field(None, ge=0)


class EmployeeOut(BaseModel):
    uid: str
    name: str
    email: str
    role: str = "employee"
    skills: List[Skill] = []
    availability: Availability = "available"
    availability_notes: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    joined_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class EmployeeUpdate(BaseModel):
    name: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    skills: Optional[List[Skill]] = None

    @field_validator("name", "skills")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class AvailabilityUpdate(BaseModel):
    availability: Availability
    notes: Optional[str] = None


class PerformanceIn(BaseModel):
    score: float = Field(ge=0, le=5)
    feedback: str = ""
    source: Literal["peer", "manager", "self"] = "manager"
    date: Optional[datetime] = None


class PerformanceOut(PerformanceIn):
    id: int
    employee_id: str


# Projects
class AssignedEmployee(BaseModel):
    uid: str
    name: str


class ProjectIn(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: Priority = "medium"
    deadline: datetime
    budget: Optional[float] = Field(None, ge=0)
    tags: List[str] = []
    assigned_employees: List[str] = []


class ProjectUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    priority: Optional[Priority] = None
    progress: Optional[int] = Field(None, ge=0, le=100)
    deadline: Optional[datetime] = None
    budget: Optional[float] = Field(None, ge=0)
    tags: Optional[List[str]] = None

    @field_validator("title", "description", "priority", "progress", "deadline", "tags")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class StatusChangeIn(BaseModel):
    status: ProjectStatus
    progress: Optional[int] = Field(None, ge=0, le=100)


class MemberIn(BaseModel):
    employee_id: str


class ProjectOut(BaseModel):
    id: str
    title: str
    description: str
    status: ProjectStatus
    priority: Priority
    progress: int
    manager_id: str
    manager_name: Optional[str] = None
    assigned_employees: List[AssignedEmployee] = []
    deadline: datetime
    budget: Optional[float] = None
    tags: List[str] = []
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    overdue: bool = False
    allowed_transitions: List[ProjectStatus] = []


class ExtractedSkills(BaseModel):
    title: str
    required_skills: List[str] = []


# Recommendations and insights
class RecommendationOut(BaseModel):
    employee: EmployeeOut
    score: int = Field(ge=0, le=100)
    reasons: List[str] = []
    skill_matches: List[str] = []
    availability_status: Literal["excellent", "good", "limited", "unavailable"]


class RecommendationsOut(BaseModel):
    project_id: str
    required_skills: List[str]
    source: Literal["ai", "fallback"]
    recommendations: List[RecommendationOut]


class FeedbackIn(BaseModel):
    action: Literal["helpful", "not_helpful", "disagree", "accept", "refresh"]
    feedback: Optional[str] = None


# Reports
class ReportOut(BaseModel):
    generated_at: str
    filters: Dict[str, Any]
    summary: Dict[str, Any]
    status_distribution: List[Dict[str, Any]]
    employee_metrics: List[Dict[str, Any]]
    projects: List[Dict[str, Any]]
