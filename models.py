from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Float, Text, DateTime, ForeignKey, UniqueConstraint, TypeDecorator
from sqlalchemy.orm import declarative_base, relationship
import json
import uuid

Base = declarative_base()

AVAILABILITY = ("available", "limited", "unavailable")
SKILL_LEVELS = ("beginner", "intermediate", "advanced", "expert")
PROJECT_STATUSES = ("planning", "in-progress", "review", "completed", "on-hold")
PRIORITIES = ("low", "medium", "high", "urgent")
ROLES = ("manager", "employee")


def utcnow():
    """Naive UTC timestamp, the form SQLite stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def new_id():
    return uuid.uuid4().hex


class JSONType(TypeDecorator):
    """Custom JSON type that works reliably with SQLite."""
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Python object to JSON string for storage."""
        if value is None:
            return None
        return json.dumps(value)

    def process_result_value(self, value, dialect):
        """Convert JSON string back to Python object."""
        if value is None:
            return None
        return json.loads(value)


class User(Base):
    __tablename__ = "users"
    id = Column(String, primary_key=True, default=new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    role = Column(String, nullable=False)  # manager | employee
    name = Column(String)
    created_at = Column(DateTime, default=utcnow)


class AuthSession(Base):
    __tablename__ = "auth_sessions"
    token = Column(String, primary_key=True)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime, default=utcnow)


class Employee(Base):
    __tablename__ = "employees"
    uid = Column(String, ForeignKey("users.id"), primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    role = Column(String, default="employee")
    skills = Column(JSONType, default=list)  # [{"name", "level", "years_of_experience"}]
    availability = Column(String, default="available")
    availability_notes = Column(Text, nullable=True)
    department = Column(String, nullable=True)
    position = Column(String, nullable=True)
    joined_at = Column(DateTime, default=utcnow)
    last_updated = Column(DateTime, default=utcnow, onupdate=utcnow)


class Project(Base):
    __tablename__ = "projects"
    id = Column(String, primary_key=True, default=new_id)
    title = Column(String, nullable=False)
    description = Column(Text, default="")
    status = Column(String, default="planning")
    priority = Column(String, default="medium")
    progress = Column(Integer, default=0)
    manager_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)
    manager_name = Column(String)
    deadline = Column(DateTime, nullable=False)
    budget = Column(Float, nullable=True)
    tags = Column(JSONType, default=list)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    assignments = relationship(
        "ProjectAssignment",
        cascade="all, delete-orphan",
        order_by="ProjectAssignment.id",
        lazy="selectin",
    )

    @property
    def assigned_employee_ids(self):
        return [a.employee_id for a in self.assignments]


class ProjectAssignment(Base):
    """One row per (project, employee); names are resolved from Employee on read."""
    __tablename__ = "project_assignments"
    __table_args__ = (UniqueConstraint("project_id", "employee_id"),)
    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    employee_id = Column(String, ForeignKey("employees.uid"), nullable=False, index=True)
    assigned_at = Column(DateTime, default=utcnow)

    employee = relationship("Employee", lazy="joined")


class PerformanceRecord(Base):
    __tablename__ = "performance_records"
    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(String, ForeignKey("employees.uid"), nullable=False, index=True)
    date = Column(DateTime, default=utcnow)
    score = Column(Float, nullable=False)  # 0-5
    feedback = Column(Text, default="")
    source = Column(String, default="manager")  # peer | manager | self


class InsightAuditLog(Base):
    __tablename__ = "insight_audit_logs"
    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    user_role = Column(String, nullable=False)
    insight_type = Column(String, nullable=False)  # employee | manager
    target_employee_id = Column(String, nullable=True)
    model_inputs = Column(JSONType)
    model_response = Column(JSONType)
    user_action = Column(String, nullable=True)
    feedback = Column(Text, nullable=True)
    timestamp = Column(DateTime, default=utcnow)
