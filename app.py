from __future__ import annotations
import os
import logging
from contextlib import asynccontextmanager
from datetime import date, timezone
from typing import List, Optional

from fastapi import FastAPI, UploadFile, File, HTTPException, Depends, Header, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

import auth
import config
import reports
from models import Base, Employee, InsightAuditLog, PerformanceRecord, Project, ProjectAssignment, User, utcnow
from schemas import (
    AssignedEmployee, AvailabilityUpdate, EmployeeOut, EmployeeUpdate, ExtractedSkills, FeedbackIn, MemberIn,
    PerformanceIn, PerformanceOut, ProjectIn, ProjectOut, ProjectUpdate, RecommendationOut, RecommendationsOut,
    ReportOut, SessionOut, SignInIn, SignUpIn, Skill, StatusChangeIn, UserOut,
)
from workflow import TransitionError, allowed_transitions, apply_status_change
from matching.insights import InsightsService
from matching.recommender import recommend_employees
from parsers.brief_extract import extract_brief_details, project_required_skills
from parsers.pdf import pdf_to_text

config.setup_logging()
logger = logging.getLogger(__name__)

engine = None
Session = sessionmaker(autoflush=False, expire_on_commit=False)


def _write_audit(entry: dict) -> None:
    with Session() as s:
        s.add(InsightAuditLog(**entry))
        _commit(s)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the data directory, engine and tables on startup."""
    global engine

    os.makedirs(config.base_dir(), exist_ok=True)
    db_url = config.database_url()
    logger.info(f"Database URL: {db_url}")
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}
    engine = create_engine(db_url, connect_args=connect_args)
    Session.configure(bind=engine)
    Base.metadata.create_all(engine)

    app.state.insights = InsightsService(audit=_write_audit)

    yield
    engine.dispose()
    logger.info("Application shutting down.")


app = FastAPI(title="Smart Talent Allocator", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(auth.PermissionDenied)
async def permission_denied_handler(request: Request, exc: auth.PermissionDenied):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


@app.exception_handler(TransitionError)
async def transition_error_handler(request: Request, exc: TransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc), "allowed": exc.allowed})


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _commit(s) -> None:
    try:
        s.commit()
    except SQLAlchemyError:
        logger.exception("Database commit failed")
        s.rollback()
        raise


def _naive_utc(dt):
    """Stored timestamps are naive UTC."""
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _user_out(user: User) -> UserOut:
    return UserOut(uid=user.id, email=user.email, role=user.role, name=user.name)


def current_user(authorization: Optional[str] = Header(None)) -> UserOut:
    with Session() as s:
        user = auth.user_for_token(s, auth.bearer_token(authorization))
        if user is None:
            raise HTTPException(status_code=401, detail="Not signed in")
        return _user_out(user)


def manager_user(user: UserOut = Depends(current_user)) -> UserOut:
    auth.require_role(user, "manager")
    return user


def employee_user(user: UserOut = Depends(current_user)) -> UserOut:
    auth.require_role(user, "employee")
    return user


def _employee_out(e: Employee) -> EmployeeOut:
    return EmployeeOut(
        uid=e.uid,
        name=e.name,
        email=e.email,
        role=e.role or "employee",
        skills=e.skills or [],
        availability=e.availability or "available",
        availability_notes=e.availability_notes,
        department=e.department,
        position=e.position,
        joined_at=e.joined_at,
        last_updated=e.last_updated,
    )


def _project_out(p: Project, role: str) -> ProjectOut:
    return ProjectOut(
        id=p.id,
        title=p.title,
        description=p.description or "",
        status=p.status,
        priority=p.priority,
        progress=p.progress or 0,
        manager_id=p.manager_id,
        manager_name=p.manager_name,
        assigned_employees=[
            AssignedEmployee(uid=a.employee_id, name=a.employee.name if a.employee else a.employee_id)
            for a in p.assignments
        ],
        deadline=p.deadline,
        budget=p.budget,
        tags=p.tags or [],
        created_at=p.created_at,
        updated_at=p.updated_at,
        overdue=reports.is_overdue(p),
        allowed_transitions=allowed_transitions(p.status, role),
    )


def _get_employee(s, uid: str) -> Employee:
    emp = s.get(Employee, uid)
    if emp is None:
        raise HTTPException(status_code=404, detail=f"Employee {uid} not found.")
    return emp


def _get_project(s, project_id: str, user: UserOut) -> Project:
    """Project visible to ``user``: its owning manager or an assigned employee."""
    project = s.get(Project, project_id)
    if project is None:
        raise HTTPException(status_code=404, detail=f"Project {project_id} not found.")
    if user.role == "manager" and project.manager_id != user.uid:
        raise auth.PermissionDenied("You do not manage this project")
    if user.role == "employee" and user.uid not in project.assigned_employee_ids:
        raise auth.PermissionDenied("You are not assigned to this project")
    return project


def _manager_projects(s, manager_id: str) -> List[Project]:
    return (
        s.query(Project)
        .filter(Project.manager_id == manager_id)
        .order_by(Project.created_at.asc())
        .all()
    )


def _all_employees(s) -> List[Employee]:
    return s.query(Employee).order_by(Employee.name.asc()).all()


# -------------------------------------------------------------------
# Routes: auth
# -------------------------------------------------------------------
@app.get("/health")
def health():
    return {"status": "ok"}


@app.post("/auth/signup", response_model=SessionOut, status_code=201)
def sign_up(body: SignUpIn):
    with Session() as s:
        try:
            user, token = auth.sign_up(s, body.email, body.password, body.role, body.name)
        except auth.AuthError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return SessionOut(token=token, user=_user_out(user))


@app.post("/auth/signin", response_model=SessionOut)
def sign_in(body: SignInIn):
    with Session() as s:
        try:
            user, token = auth.sign_in(s, body.email, body.password)
        except auth.AuthError as e:
            raise HTTPException(status_code=401, detail=str(e))
        return SessionOut(token=token, user=_user_out(user))


@app.post("/auth/signout")
def sign_out(authorization: Optional[str] = Header(None), user: UserOut = Depends(current_user)):
    with Session() as s:
        auth.sign_out(s, auth.bearer_token(authorization))
    return {"success": True}


@app.get("/auth/me", response_model=UserOut)
def me(user: UserOut = Depends(current_user)):
    return user


# -------------------------------------------------------------------
# Routes: employees
# -------------------------------------------------------------------
@app.get("/employees", response_model=List[EmployeeOut])
def list_employees(
    search: Optional[str] = None,
    skills: Optional[str] = Query(None, description="Comma-separated skill names"),
    availability: Optional[List[str]] = Query(None),
    department: Optional[str] = None,
    user: UserOut = Depends(current_user),
):
    wanted_skills = [x.strip().lower() for x in (skills or "").split(",") if x.strip()]
    term = (search or "").strip().lower()
    dept = (department or "").strip().lower()

    with Session() as s:
        out = []
        for e in _all_employees(s):
            if term and not any(term in (v or "").lower() for v in (e.name, e.email, e.department, e.position)):
                continue
            if wanted_skills and not any(
                w in (sk.get("name") or "").lower() for w in wanted_skills for sk in (e.skills or [])
            ):
                continue
            if availability and (e.availability or "available") not in availability:
                continue
            if dept and dept not in (e.department or "").lower():
                continue
            out.append(_employee_out(e))
        return out


@app.get("/employees/me", response_model=EmployeeOut)
def get_my_profile(user: UserOut = Depends(employee_user)):
    with Session() as s:
        return _employee_out(_get_employee(s, user.uid))


@app.put("/employees/me", response_model=EmployeeOut)
def update_my_profile(body: EmployeeUpdate, user: UserOut = Depends(employee_user)):
    with Session() as s:
        emp = _get_employee(s, user.uid)
        updates = body.model_dump(exclude_unset=True)
        if "skills" in updates:
            updates["skills"] = [sk.model_dump() for sk in body.skills or []]
        for field, value in updates.items():
            setattr(emp, field, value)
        if body.name:
            s.get(User, user.uid).name = body.name
        emp.last_updated = utcnow()
        _commit(s)
        return _employee_out(emp)


@app.post("/employees/me/skills", response_model=EmployeeOut)
def add_skill(skill: Skill, user: UserOut = Depends(employee_user)):
    """Add a skill, or replace the existing one with the same name (case-insensitive)."""
    with Session() as s:
        emp = _get_employee(s, user.uid)
        skills = list(emp.skills or [])
        idx = next((i for i, sk in enumerate(skills) if sk.get("name", "").lower() == skill.name.lower()), None)
        if idx is None:
            skills.append(skill.model_dump())
        else:
            skills[idx] = skill.model_dump()
        emp.skills = skills
        emp.last_updated = utcnow()
        _commit(s)
        return _employee_out(emp)


@app.delete("/employees/me/skills/{skill_name:path}", response_model=EmployeeOut)
def remove_skill(skill_name: str, user: UserOut = Depends(employee_user)):
    with Session() as s:
        emp = _get_employee(s, user.uid)
        emp.skills = [sk for sk in (emp.skills or []) if sk.get("name", "").lower() != skill_name.lower()]
        emp.last_updated = utcnow()
        _commit(s)
        return _employee_out(emp)


@app.put("/employees/me/availability", response_model=EmployeeOut)
def update_availability(body: AvailabilityUpdate, user: UserOut = Depends(employee_user)):
    with Session() as s:
        emp = _get_employee(s, user.uid)
        emp.availability = body.availability
        emp.availability_notes = body.notes
        emp.last_updated = utcnow()
        _commit(s)
        return _employee_out(emp)


@app.get("/employees/{uid}", response_model=EmployeeOut)
def get_employee(uid: str, user: UserOut = Depends(current_user)):
    with Session() as s:
        return _employee_out(_get_employee(s, uid))


@app.get("/skills/suggestions", response_model=List[str])
def skill_suggestions(user: UserOut = Depends(current_user)):
    with Session() as s:
        names = {sk.get("name") for e in _all_employees(s) for sk in (e.skills or []) if sk.get("name")}
        return sorted(names)


@app.post("/employees/{uid}/performance", response_model=PerformanceOut, status_code=201)
def add_performance_record(uid: str, body: PerformanceIn, user: UserOut = Depends(manager_user)):
    with Session() as s:
        _get_employee(s, uid)
        record = PerformanceRecord(
            employee_id=uid,
            date=_naive_utc(body.date) if body.date else utcnow(),
            score=body.score,
            feedback=body.feedback,
            source=body.source,
        )
        s.add(record)
        _commit(s)
        return PerformanceOut(id=record.id, employee_id=uid, score=record.score,
                              feedback=record.feedback, source=record.source, date=record.date)


@app.get("/employees/{uid}/performance", response_model=List[PerformanceOut])
def list_performance_records(uid: str, user: UserOut = Depends(current_user)):
    if user.role == "employee" and user.uid != uid:
        raise auth.PermissionDenied("Employees can only view their own performance records")
    with Session() as s:
        _get_employee(s, uid)
        rows = (
            s.query(PerformanceRecord)
            .filter(PerformanceRecord.employee_id == uid)
            .order_by(PerformanceRecord.date.asc())
            .all()
        )
        return [
            PerformanceOut(id=r.id, employee_id=uid, score=r.score, feedback=r.feedback, source=r.source, date=r.date)
            for r in rows
        ]


# -------------------------------------------------------------------
# Routes: projects
# -------------------------------------------------------------------
@app.post("/projects", response_model=ProjectOut, status_code=201)
def create_project(body: ProjectIn, user: UserOut = Depends(manager_user)):
    with Session() as s:
        member_ids = list(dict.fromkeys(body.assigned_employees))
        missing = [uid for uid in member_ids if s.get(Employee, uid) is None]
        if missing:
            raise HTTPException(status_code=400, detail=f"Unknown employee id(s): {', '.join(missing)}")

        project = Project(
            title=body.title,
            description=body.description,
            status="planning",
            priority=body.priority,
            progress=0,
            manager_id=user.uid,
            manager_name=user.name or "Manager",
            deadline=_naive_utc(body.deadline),
            budget=body.budget,
            tags=body.tags,
        )
        project.assignments = [ProjectAssignment(employee_id=uid) for uid in member_ids]
        s.add(project)
        _commit(s)
        s.refresh(project)
        return _project_out(project, user.role)


@app.get("/projects", response_model=List[ProjectOut])
def list_projects(user: UserOut = Depends(current_user)):
    """Managers see the projects they created, employees the ones they are assigned to."""
    with Session() as s:
        if user.role == "manager":
            projects = (
                s.query(Project)
                .filter(Project.manager_id == user.uid)
                .order_by(Project.created_at.desc())
                .all()
            )
        else:
            projects = (
                s.query(Project)
                .join(ProjectAssignment, ProjectAssignment.project_id == Project.id)
                .filter(ProjectAssignment.employee_id == user.uid)
                .order_by(Project.created_at.desc())
                .all()
            )
        return [_project_out(p, user.role) for p in projects]


@app.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(project_id: str, user: UserOut = Depends(current_user)):
    with Session() as s:
        return _project_out(_get_project(s, project_id, user), user.role)


@app.put("/projects/{project_id}", response_model=ProjectOut)
def update_project(project_id: str, body: ProjectUpdate, user: UserOut = Depends(manager_user)):
    """Edit project fields; status only changes through /status."""
    with Session() as s:
        project = _get_project(s, project_id, user)
        updates = body.model_dump(exclude_unset=True)
        if updates.get("deadline") is not None:
            updates["deadline"] = _naive_utc(updates["deadline"])
        for field, value in updates.items():
            setattr(project, field, value)
        project.updated_at = utcnow()
        _commit(s)
        return _project_out(project, user.role)


@app.post("/projects/{project_id}/status", response_model=ProjectOut)
def change_project_status(project_id: str, body: StatusChangeIn, user: UserOut = Depends(current_user)):
    with Session() as s:
        project = _get_project(s, project_id, user)
        previous = project.status
        apply_status_change(project, body.status, user.role, body.progress)
        project.updated_at = utcnow()
        _commit(s)
        logger.info(f"Project {project_id}: {previous} -> {project.status} by {user.role} {user.uid}")
        return _project_out(project, user.role)


@app.delete("/projects/{project_id}")
def delete_project(project_id: str, user: UserOut = Depends(manager_user)):
    with Session() as s:
        project = _get_project(s, project_id, user)
        s.delete(project)
        _commit(s)
        logger.info(f"Project {project_id} deleted by {user.uid}")
        return {"success": True}


@app.post("/projects/{project_id}/members", response_model=ProjectOut)
def add_project_member(project_id: str, body: MemberIn, user: UserOut = Depends(manager_user)):
    with Session() as s:
        project = _get_project(s, project_id, user)
        _get_employee(s, body.employee_id)
        if body.employee_id in project.assigned_employee_ids:
            raise HTTPException(status_code=409, detail="Employee already assigned to this project")
        project.assignments.append(ProjectAssignment(employee_id=body.employee_id))
        project.updated_at = utcnow()
        _commit(s)
        s.refresh(project)
        return _project_out(project, user.role)


@app.delete("/projects/{project_id}/members/{employee_id}", response_model=ProjectOut)
def remove_project_member(project_id: str, employee_id: str, user: UserOut = Depends(manager_user)):
    with Session() as s:
        project = _get_project(s, project_id, user)
        match = next((a for a in project.assignments if a.employee_id == employee_id), None)
        if match is None:
            raise HTTPException(status_code=404, detail="Employee is not assigned to this project")
        project.assignments.remove(match)
        project.updated_at = utcnow()
        _commit(s)
        return _project_out(project, user.role)


@app.get("/projects/{project_id}/recommendations", response_model=RecommendationsOut)
def project_recommendations(project_id: str, user: UserOut = Depends(manager_user)):
    """Rank employees not yet on the project."""
    with Session() as s:
        project = _get_project(s, project_id, user)
        assigned = set(project.assigned_employee_ids)
        candidates = [e for e in _all_employees(s) if e.uid not in assigned]
        required = project_required_skills(project.tags, project.description)
        result = recommend_employees(
            {
                "title": project.title,
                "description": project.description,
                "required_skills": required,
                "priority": project.priority,
                "budget": project.budget,
            },
            candidates,
        )
        return RecommendationsOut(
            project_id=project.id,
            required_skills=required,
            source=result["source"],
            recommendations=[
                RecommendationOut(
                    employee=_employee_out(r["employee"]),
                    score=r["score"],
                    reasons=r["reasons"],
                    skill_matches=r["skill_matches"],
                    availability_status=r["availability_status"],
                )
                for r in result["recommendations"]
            ],
        )


@app.post("/projects/extract-skills", response_model=ExtractedSkills)
async def extract_project_skills(brief: UploadFile = File(...), user: UserOut = Depends(manager_user)):
    """Suggest a title and required skills from an uploaded PDF brief."""
    if not (brief.filename or "").lower().endswith(".pdf"):
        raise HTTPException(status_code=400, detail="Only PDF files are supported")
    text = pdf_to_text(await brief.read())
    if not text:
        raise HTTPException(status_code=400, detail="Could not extract text from PDF")
    details = extract_brief_details(text)
    return ExtractedSkills(title=details["title"], required_skills=details["required_skills"])


# -------------------------------------------------------------------
# Routes: insights
# -------------------------------------------------------------------
@app.get("/insights/employee")
def employee_insights(refresh: bool = False, user: UserOut = Depends(employee_user)):
    with Session() as s:
        emp = _get_employee(s, user.uid)
        records = (
            s.query(PerformanceRecord)
            .filter(PerformanceRecord.employee_id == user.uid)
            .order_by(PerformanceRecord.date.asc())
            .all()
        )
        projects = (
            s.query(Project)
            .join(ProjectAssignment, ProjectAssignment.project_id == Project.id)
            .filter(ProjectAssignment.employee_id == user.uid)
            .order_by(Project.created_at.asc())
            .all()
        )
        return app.state.insights.employee_insights(emp, records, projects, force_refresh=refresh)


@app.get("/insights/manager")
def manager_insights(refresh: bool = False, user: UserOut = Depends(manager_user)):
    with Session() as s:
        employees = _all_employees(s)
        by_employee = {}
        for r in s.query(PerformanceRecord).order_by(PerformanceRecord.date.asc()).all():
            by_employee.setdefault(r.employee_id, []).append(r)
        projects = _manager_projects(s, user.uid)
        return app.state.insights.manager_insights(user.uid, employees, by_employee, projects, force_refresh=refresh)


@app.post("/insights/{insight_id}/feedback")
def insight_feedback(insight_id: str, body: FeedbackIn, user: UserOut = Depends(current_user)):
    with Session() as s:
        log = s.get(InsightAuditLog, insight_id)
        if log is None:
            raise HTTPException(status_code=404, detail=f"Insight {insight_id} not found.")
        if log.user_id != user.uid:
            raise auth.PermissionDenied("You can only give feedback on your own insights")
        log.user_action = body.action
        log.feedback = body.feedback
        _commit(s)
        logger.info(f"Feedback recorded on {insight_id}: {body.action}")
        return {"success": True}


# -------------------------------------------------------------------
# Routes: reports
# -------------------------------------------------------------------
def _build_report(s, user: UserOut, start_date, end_date, project_id, employee_id) -> dict:
    filters = {
        "start_date": start_date.isoformat() if start_date else None,
        "end_date": end_date.isoformat() if end_date else None,
        "project_id": project_id,
        "employee_id": employee_id,
    }
    projects = reports.filter_projects(_manager_projects(s, user.uid), start_date, end_date, project_id, employee_id)
    return reports.build_report(projects, _all_employees(s), filters)


@app.get("/reports", response_model=ReportOut)
def get_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    project_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    user: UserOut = Depends(manager_user),
):
    with Session() as s:
        return _build_report(s, user, start_date, end_date, project_id, employee_id)


@app.get("/reports/export")
def export_report(
    fmt: str = Query("csv", alias="format", pattern="^(csv|xls|json)$"),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    project_id: Optional[str] = None,
    employee_id: Optional[str] = None,
    user: UserOut = Depends(manager_user),
):
    with Session() as s:
        report = _build_report(s, user, start_date, end_date, project_id, employee_id)
    body = reports.export(report, fmt)
    filename = reports.export_filename(fmt)
    return Response(
        content=body,
        media_type=reports.CONTENT_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
