# ui/dashboard.py
import sys, os
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
import streamlit as st
import requests
import pandas as pd
from datetime import date, timedelta
from parsers.brief_extract import extract_brief_details
from parsers.pdf import pdf_to_text
# -------------------- CONFIG --------------------
API_URL = os.getenv("API_URL", "http://localhost:8000")
st.set_page_config(page_title="Smart Talent Allocator", page_icon="🧭", layout="wide")
st.title("🧭 Smart Talent Allocator")

st.markdown(
    "Manage skill profiles and projects, get AI-assisted team recommendations, "
    "career and team insights, and exportable project reports."
)

# -------------------- SESSION STATE --------------------
if "api_url" not in st.session_state:
    st.session_state.api_url = API_URL

if "token" not in st.session_state:
    st.session_state.token = None

if "user" not in st.session_state:
    st.session_state.user = None

# Last brief extraction, pre-fills the project form
if "brief" not in st.session_state:
    st.session_state.brief = {"title": "", "required_skills": [], "raw_text": ""}


def api(method, path, **kwargs):
    """Call the backend with the session token; shows connection errors and returns None."""
    headers = kwargs.pop("headers", {})
    if st.session_state.token:
        headers["Authorization"] = f"Bearer {st.session_state.token}"
    try:
        return requests.request(method, f"{st.session_state.api_url}{path}", headers=headers,
                                timeout=kwargs.pop("timeout", 60), **kwargs)
    except requests.exceptions.RequestException as e:
        st.error(f"❌ Connection error: {e}")
        return None


def error_detail(r):
    try:
        return r.json().get("detail", r.text)
    except ValueError:
        return r.text


# -------------------- AUTH --------------------
if not st.session_state.user:
    login_tab, signup_tab = st.tabs(["🔑 Sign in", "📝 Sign up"])

    with login_tab:
        with st.form("signin_form"):
            email = st.text_input("Email")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Sign in")
        if submitted:
            r = api("POST", "/auth/signin", json={"email": email, "password": password})
            if r is not None and r.status_code == 200:
                st.session_state.token = r.json()["token"]
                st.session_state.user = r.json()["user"]
                st.rerun()
            elif r is not None:
                st.error(error_detail(r))

    with signup_tab:
        with st.form("signup_form"):
            name = st.text_input("Full name")
            email = st.text_input("Email", key="signup_email")
            password = st.text_input("Password", type="password", key="signup_password")
            role = st.radio("Role", ["employee", "manager"], horizontal=True)
            submitted = st.form_submit_button("Create account")
        if submitted:
            r = api("POST", "/auth/signup",
                    json={"email": email, "password": password, "role": role, "name": name or None})
            if r is not None and r.status_code == 201:
                st.session_state.token = r.json()["token"]
                st.session_state.user = r.json()["user"]
                st.rerun()
            elif r is not None:
                st.error(error_detail(r))
    st.stop()

user = st.session_state.user
is_manager = user["role"] == "manager"

with st.sidebar:
    st.markdown(f"**👤 {user.get('name') or user['email']}**")
    st.caption(f"Role: {user['role']}")
    if st.button("Sign out"):
        api("POST", "/auth/signout")
        st.session_state.token = None
        st.session_state.user = None
        st.rerun()


def show_projects(projects):
    for p in projects:
        badge = " ⚠️ overdue" if p["overdue"] else ""
        with st.expander(f"📁 {p['title']} [{p['status']}] {p['progress']}%{badge}"):
            st.progress(p["progress"] / 100)
            st.markdown(p["description"] or "—")
            st.markdown(f"**Priority:** {p['priority']} · **Deadline:** {p['deadline'][:10]}")
            team = ", ".join(m["name"] for m in p["assigned_employees"]) or "—"
            st.markdown(f"**Team:** {team}")
            if p["tags"]:
                st.caption(" · ".join(p["tags"]))

            cols = st.columns(max(len(p["allowed_transitions"]), 1))
            for col, status in zip(cols, p["allowed_transitions"]):
                if col.button(f"→ {status}", key=f"{p['id']}_{status}"):
                    r = api("POST", f"/projects/{p['id']}/status", json={"status": status})
                    if r is not None and r.status_code == 200:
                        st.rerun()
                    elif r is not None:
                        st.error(error_detail(r))


def show_insight_feedback(result):
    c1, c2 = st.columns(2)
    for col, action, label in ((c1, "helpful", "👍 Helpful"), (c2, "not_helpful", "👎 Not helpful")):
        if col.button(label, key=f"{result['insight_id']}_{action}"):
            r = api("POST", f"/insights/{result['insight_id']}/feedback", json={"action": action})
            if r is not None and r.status_code == 200:
                st.success("Thanks for the feedback!")


# ==================== EMPLOYEE VIEW ====================
if not is_manager:
    tab1, tab2, tab3 = st.tabs(["🧠 My Profile", "📁 My Projects", "💡 Career Insights"])

    with tab1:
        r = api("GET", "/employees/me")
        profile = r.json() if r is not None and r.status_code == 200 else None
        if profile:
            with st.form("profile_form"):
                name = st.text_input("Name", value=profile["name"])
                department = st.text_input("Department", value=profile.get("department") or "")
                position = st.text_input("Position", value=profile.get("position") or "")
                if st.form_submit_button("Save profile"):
                    r = api("PUT", "/employees/me",
                            json={"name": name, "department": department, "position": position})
                    if r is not None and r.status_code == 200:
                        st.success("✅ Profile updated")

            st.markdown("### Availability")
            options = ["available", "limited", "unavailable"]
            with st.form("availability_form"):
                availability = st.selectbox("Status", options, index=options.index(profile["availability"]))
                notes = st.text_input("Notes", value=profile.get("availability_notes") or "")
                if st.form_submit_button("Update availability"):
                    api("PUT", "/employees/me/availability", json={"availability": availability, "notes": notes})
                    st.rerun()

            st.markdown("### Skills")
            if profile["skills"]:
                st.table(pd.DataFrame(profile["skills"]))
            else:
                st.info("No skills yet. Add your first one below.")

            with st.form("skill_form", clear_on_submit=True):
                suggestions = api("GET", "/skills/suggestions")
                hint = ", ".join(suggestions.json()[:15]) if suggestions is not None and suggestions.ok else ""
                skill_name = st.text_input("Skill", help=f"Used by colleagues: {hint}" if hint else None)
                level = st.selectbox("Level", ["beginner", "intermediate", "advanced", "expert"])
                years = st.number_input("Years of experience", min_value=0.0, step=0.5)
                if st.form_submit_button("Add / update skill") and skill_name.strip():
                    api("POST", "/employees/me/skills",
                        json={"name": skill_name.strip(), "level": level, "years_of_experience": years})
                    st.rerun()

            remove = st.selectbox("Remove skill", [""] + [s["name"] for s in profile["skills"]])
            if remove and st.button("🗑️ Remove"):
                api("DELETE", f"/employees/me/skills/{remove}")
                st.rerun()

    with tab2:
        r = api("GET", "/projects")
        projects = r.json() if r is not None and r.status_code == 200 else []
        if not projects:
            st.info("You are not assigned to any projects yet.")
        show_projects(projects)

    with tab3:
        refresh = st.button("🔄 Refresh insights")
        with st.spinner("Generating insights..."):
            r = api("GET", "/insights/employee", params={"refresh": refresh}, timeout=90)
        if r is not None and r.status_code == 200:
            result = r.json()
            st.markdown(f"### {result['summary']}")
            st.caption(f"Model: {result['model_meta']['model']} · Confidence: {result['confidence_score']}%")
            for ins in result["insights"]:
                with st.container(border=True):
                    st.markdown(f"**{ins['type']}:** {ins['detail']}")
                    st.caption(ins["rationale"])
                    for action in ins.get("actions", []):
                        st.markdown(f"- {action['label']}")
            show_insight_feedback(result)

# ==================== MANAGER VIEW ====================
else:
    tab1, tab2, tab3, tab4, tab5 = st.tabs(
        ["📁 Projects", "➕ New Project", "👥 Team & Recommendations", "💡 Team Insights", "📊 Reports"]
    )

    with tab1:
        r = api("GET", "/projects")
        projects = r.json() if r is not None and r.status_code == 200 else []
        if not projects:
            st.info("No projects yet. Create one in the next tab.")
        show_projects(projects)

    with tab2:
        brief_file = st.file_uploader("📄 Upload Project Brief (PDF, optional)", type=["pdf"])
        if brief_file:
            with st.spinner("Extracting details from uploaded brief..."):
                text = pdf_to_text(brief_file)
                if text:
                    st.session_state.brief = extract_brief_details(text)
                    st.success("✅ Brief parsed! Review the fields below.")
                else:
                    st.error("❌ Could not extract text from PDF")

        brief = st.session_state.brief
        r = api("GET", "/employees")
        employees = r.json() if r is not None and r.status_code == 200 else []
        names = {e["uid"]: e["name"] for e in employees}

        with st.form("project_form"):
            title = st.text_input("Title", value=brief["title"])
            description = st.text_area("Description", value=brief["raw_text"], height=150)
            tags = st.text_input("Required skills / tags (comma-separated)",
                                 value=", ".join(brief["required_skills"]))
            priority = st.selectbox("Priority", ["low", "medium", "high", "urgent"], index=1)
            deadline = st.date_input("Deadline", value=date.today() + timedelta(days=30))
            budget = st.number_input("Budget", min_value=0.0, step=1000.0)
            members = st.multiselect("Team", options=list(names), format_func=lambda uid: names[uid])
            submitted = st.form_submit_button("Create Project")

        if submitted:
            payload = {
                "title": title.strip(),
                "description": description.strip(),
                "priority": priority,
                "deadline": f"{deadline.isoformat()}T00:00:00",
                "budget": budget or None,
                "tags": [t.strip() for t in tags.split(",") if t.strip()],
                "assigned_employees": members,
            }
            r = api("POST", "/projects", json=payload)
            if r is not None and r.status_code == 201:
                st.success(f"✅ Project '{r.json()['title']}' created")
                st.session_state.brief = {"title": "", "required_skills": [], "raw_text": ""}
            elif r is not None:
                st.error(f"❌ Project creation failed: {error_detail(r)}")

    with tab3:
        c1, c2, c3 = st.columns(3)
        search = c1.text_input("Search")
        skills = c2.text_input("Skills (comma-separated)")
        availability = c3.multiselect("Availability", ["available", "limited", "unavailable"])
        r = api("GET", "/employees", params={"search": search or None, "skills": skills or None,
                                             "availability": availability or None})
        team = r.json() if r is not None and r.status_code == 200 else []
        if team:
            st.dataframe(pd.DataFrame([
                {
                    "Name": e["name"],
                    "Department": e.get("department") or "—",
                    "Availability": e["availability"],
                    "Skills": ", ".join(s["name"] for s in e["skills"]),
                }
                for e in team
            ]), use_container_width=True)
        else:
            st.warning("⚠️ No employees match these filters.")

        st.markdown("### 🎯 Recommendations")
        r = api("GET", "/projects")
        projects = r.json() if r is not None and r.status_code == 200 else []
        if projects:
            options = {f"{p['title']} ({p['status']})": p["id"] for p in projects}
            selected = options[st.selectbox("Project", list(options))]
            if st.button("🔍 Recommend Employees"):
                with st.spinner("Ranking employees..."):
                    r = api("GET", f"/projects/{selected}/recommendations", timeout=90)
                if r is not None and r.status_code == 200:
                    result = r.json()
                    st.caption(f"Source: {result['source']} · Required: {', '.join(result['required_skills']) or '—'}")
                    for rec in result["recommendations"]:
                        emp = rec["employee"]
                        with st.expander(f"🧑 {emp['name']} — {rec['score']}% match"):
                            st.markdown(f"**Availability:** {rec['availability_status']}")
                            st.markdown(f"**Skill matches:** {', '.join(rec['skill_matches']) or '—'}")
                            for reason in rec["reasons"]:
                                st.markdown(f"- {reason}")
                            if st.button("➕ Add to team", key=f"add_{emp['uid']}"):
                                api("POST", f"/projects/{selected}/members", json={"employee_id": emp["uid"]})
                                st.rerun()
                elif r is not None:
                    st.error(f"Recommendation request failed: {error_detail(r)}")

    with tab4:
        refresh = st.button("🔄 Refresh team insights")
        with st.spinner("Analyzing team..."):
            r = api("GET", "/insights/manager", params={"refresh": refresh}, timeout=90)
        if r is not None and r.status_code == 200:
            result = r.json()
            st.markdown(f"### {result['summary']}")
            st.caption(result.get("team_trends", ""))
            for ins in result["insights"]:
                with st.container(border=True):
                    st.markdown(f"**{ins['employeeName']} · {ins['reason']}** ({ins['confidence']}%)")
                    st.markdown(ins["detail"])
            if result.get("team_actions"):
                st.table(pd.DataFrame(result["team_actions"]))
            show_insight_feedback(result)

    with tab5:
        c1, c2 = st.columns(2)
        start = c1.date_input("From", value=date.today() - timedelta(days=90))
        end = c2.date_input("To", value=date.today())
        params = {"start_date": start.isoformat(), "end_date": end.isoformat()}
        r = api("GET", "/reports", params=params)
        if r is not None and r.status_code == 200:
            report = r.json()
            summary = report["summary"]
            m1, m2, m3, m4 = st.columns(4)
            m1.metric("Projects", summary["total_projects"])
            m2.metric("Completed", summary["completed_projects"])
            m3.metric("Overdue", summary["overdue_projects"])
            m4.metric("Avg. progress", f"{summary['average_progress']}%")

            st.bar_chart(pd.DataFrame(report["status_distribution"]).set_index("status"))
            if report["employee_metrics"]:
                st.table(pd.DataFrame(report["employee_metrics"]))
            if report["projects"]:
                st.dataframe(pd.DataFrame(report["projects"]), use_container_width=True)

            for fmt in ("csv", "xls", "json"):
                r = api("GET", "/reports/export", params={**params, "format": fmt})
                if r is not None and r.status_code == 200:
                    filename = r.headers.get("Content-Disposition", "").split("filename=")[-1].strip('"')
                    st.download_button(f"⬇️ Export {fmt.upper()}", data=r.content, file_name=filename,
                                       key=f"export_{fmt}")
        elif r is not None:
            st.error(error_detail(r))
