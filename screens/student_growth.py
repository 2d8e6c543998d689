# screens/student_growth.py
"""Trainer growth reports on students, per-student history and trainer ranking.

Trainers file a short report per student (teaching quality, doubt clearance,
optional test score, follow-ups). Staff read a student's report history and
portfolio progress, and branch leadership sees the monthly trainer ranking.
"""
from __future__ import annotations
import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd
import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.derived import to_number
from core.models import Role
from core.ui import (fetch_data, load_rows, options, page_header, person_name, render_table,
                     select_id, success)

logger = logging.getLogger(__name__)

SCORE_MIN, SCORE_MAX = 1, 10
RANKING_ROLES = {Role.ADMIN, Role.CEO, Role.CHANNEL_PARTNER}


def validate_growth(form: Dict[str, Any]) -> Tuple[bool, str]:
    if not form.get("studentId"):
        return False, "Please select a student"
    for key, label in (("qualityTeaching", "Quality of teaching"), ("doubtClearance", "Doubt clearance")):
        value = to_number(form.get(key))
        if not SCORE_MIN <= value <= SCORE_MAX:
            return False, f"{label} must be between {SCORE_MIN} and {SCORE_MAX}"
    test = form.get("testScore")
    if test not in (None, "") and not 0 <= to_number(test) <= 100:
        return False, "Test score must be a percentage between 0 and 100"
    return True, ""


def growth_payload(form: Dict[str, Any]) -> Dict[str, Any]:
    test = form.get("testScore")
    return {
        "studentId": form["studentId"],
        "courseId": form.get("courseId") or None,
        "qualityTeaching": int(to_number(form.get("qualityTeaching"))),
        "doubtClearance": int(to_number(form.get("doubtClearance"))),
        "testScore": None if test in (None, "") else to_number(test),
        "aiUpdate": (form.get("aiUpdate") or "").strip(),
        "portfolioFollowUp": bool(form.get("portfolioFollowUp")),
        "classFollowUp": bool(form.get("classFollowUp")),
    }


def submit_growth(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_growth(form)
    if not ok:
        return ok, msg
    try:
        api.reports.submit_growth(growth_payload(form))
    except ApiError as e:
        return False, e.message
    logger.info("Growth report filed for student %s", form["studentId"])
    return True, "Growth report submitted successfully"


def growth_rows(reports: List[dict]) -> List[Dict[str, Any]]:
    out = []
    for r in reports:
        trainer = (r.get("trainer") or {}).get("user")
        out.append({
            "date": str(r.get("reportDate") or r.get("createdAt") or "")[:10],
            "trainer": person_name(trainer) if trainer else "—",
            "course": (r.get("course") or {}).get("name") or "—",
            "quality": r.get("qualityTeaching"),
            "doubt": r.get("doubtClearance"),
            "test": r.get("testScore"),
            "portfolio": "Yes" if r.get("portfolioFollowUp") else "No",
            "class": "Yes" if r.get("classFollowUp") else "No",
            "notes": r.get("aiUpdate") or "",
        })
    return out


def growth_trend(reports: List[dict]) -> Dict[str, Any]:
    """Averages over a student's reports; the test average skips reports without a score."""
    if not reports:
        return {"reports": 0, "quality": 0.0, "doubt": 0.0, "test": None}
    tests = [to_number(r.get("testScore")) for r in reports if r.get("testScore") not in (None, "")]
    n = len(reports)
    return {
        "reports": n,
        "quality": round(sum(to_number(r.get("qualityTeaching")) for r in reports) / n, 1),
        "doubt": round(sum(to_number(r.get("doubtClearance")) for r in reports) / n, 1),
        "test": round(sum(tests) / len(tests), 1) if tests else None,
    }


def performance_rows(data: Any) -> List[Dict[str, Any]]:
    """Trainer ranking, best score first. Scores arrive as strings like "27.50"."""
    rows = [p for p in (data if isinstance(data, list) else []) if isinstance(p, dict)]
    ranked = sorted(rows, key=lambda p: to_number(p.get("score")), reverse=True)
    return [{
        "rank": i,
        "name": p.get("name") or "—",
        "quality": to_number(p.get("avgQuality")),
        "doubt": to_number(p.get("avgDoubt")),
        "reports": int(to_number(p.get("totalReports"))),
        "portfolioChecks": int(to_number(p.get("portfolioChecks"))),
        "classFollowUps": int(to_number(p.get("classFollowUps"))),
        "score": to_number(p.get("score")),
    } for i, p in enumerate(ranked, start=1)]


def month_params(today: Optional[datetime.date] = None, branch_id: Optional[str] = None) -> Dict[str, Any]:
    today = today or datetime.date.today()
    return {"month": today.month, "year": today.year, "branchId": branch_id}


def submit_work_for(api: ApiClient, student_id: str, task_id: str, form: Dict[str, Any]) -> Tuple[bool, str]:
    """Record portfolio work for a student's task; a resubmission goes back to PENDING on the server."""
    work_url = (form.get("workUrl") or "").strip()
    behance_url = (form.get("behanceUrl") or "").strip()
    if not work_url and not behance_url:
        return False, "Add a work link or a Behance link"
    try:
        api.portfolios.submit_work({
            "studentId": student_id,
            "taskId": task_id,
            "workUrl": work_url or None,
            "behanceUrl": behance_url or None,
            "remarks": (form.get("remarks") or "").strip(),
        })
    except ApiError as e:
        return False, e.message
    return True, "Portfolio work submitted successfully"


def _report_form(ctx: AppContext):
    students = options(load_rows(ctx.api.students.list, {"limit": 100}), person_name)
    courses = options(load_rows(ctx.api.courses.list))
    with st.form("growth_report", clear_on_submit=True):
        student = select_id("Student *", students, key="gr_student")
        course = select_id("Course", courses, key="gr_course", allow_all=True)
        c1, c2, c3 = st.columns(3)
        quality = c1.slider("Quality of teaching", SCORE_MIN, SCORE_MAX, 5)
        doubt = c2.slider("Doubt clearance", SCORE_MIN, SCORE_MAX, 5)
        test = c3.text_input("Test score (optional %)")
        ai_update = st.text_area("AI tool updates")
        f1, f2 = st.columns(2)
        portfolio = f1.checkbox("Portfolio follow-up done")
        klass = f2.checkbox("Class follow-up done")
        submitted = st.form_submit_button("Submit report", type="primary")
    if submitted:
        ok, msg = submit_growth(ctx.api, {
            "studentId": student, "courseId": course, "qualityTeaching": quality, "doubtClearance": doubt,
            "testScore": test.strip(), "aiUpdate": ai_update,
            "portfolioFollowUp": portfolio, "classFollowUp": klass,
        })
        if ok:
            success(msg)
        else:
            st.error(msg)


def _student_history(ctx: AppContext):
    students = options(load_rows(ctx.api.students.list, {"limit": 100}), person_name)
    student = select_id("Student", students, key="gr_history_student")
    if not student:
        st.info("Pick a student to see their growth reports.")
        return

    reports = fetch_data(ctx.api.reports.growth, student)
    reports = [r for r in (reports if isinstance(reports, list) else []) if isinstance(r, dict)]
    trend = growth_trend(reports)
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Reports", trend["reports"])
    c2.metric("Avg quality", trend["quality"])
    c3.metric("Avg doubt clearance", trend["doubt"])
    c4.metric("Avg test score", "—" if trend["test"] is None else f"{trend['test']}%")
    render_table(growth_rows(reports), {
        "Date": "date", "Trainer": "trainer", "Course": "course", "Quality": "quality",
        "Doubts": "doubt", "Test %": "test", "Portfolio": "portfolio", "Class": "class", "Notes": "notes",
    }, empty="No growth reports for this student yet.")

    st.markdown("#### Portfolio")
    details = fetch_data(ctx.api.portfolios.student_details, student) or {}
    if not isinstance(details, dict):
        details = {}
    stats = (details.get("student") or {}).get("completionStats") or {}
    if stats:
        st.progress(min(int(to_number(stats.get("completionRate"))), 100),
                    text=f"{stats.get('completedTasks') or 0} of {stats.get('totalTasks') or 0} tasks approved")
    tasks = [t for t in details.get("portfolio") or [] if isinstance(t, dict)]
    render_table(tasks, {
        "Task": "title",
        "Mandatory": lambda t: "Yes" if t.get("isMandatory") else "No",
        "Status": lambda t: t.get("status") or "NOT_STARTED",
        "Work": "workUrl",
        "Rejections": "rejectionCount",
    }, empty="No portfolio tasks for this student's course.")

    open_tasks = {t["taskId"]: t.get("title") or "Task" for t in tasks
                  if t.get("taskId") and t.get("status") != "APPROVED"}
    if open_tasks:
        with st.form("gr_submit_work", clear_on_submit=True):
            task = select_id("Task", open_tasks, key="gr_work_task")
            work_url = st.text_input("Work link")
            behance_url = st.text_input("Behance link")
            remarks = st.text_area("Remarks")
            if st.form_submit_button("Submit work on the student's behalf"):
                ok, msg = submit_work_for(ctx.api, student, task,
                                          {"workUrl": work_url, "behanceUrl": behance_url, "remarks": remarks})
                if ok:
                    success(msg)
                    st.rerun()
                else:
                    st.error(msg)


def _ranking(ctx: AppContext):
    branch = None
    if ctx.role() in (Role.ADMIN, Role.CEO):
        branches = options(load_rows(ctx.api.branches.list))
        branch = select_id("Branch", branches, key="gr_rank_branch", allow_all=True)
    rows = performance_rows(fetch_data(ctx.api.reports.performance, month_params(branch_id=branch)))
    if rows:
        st.bar_chart(pd.DataFrame(rows).set_index("name")[["score"]])
    render_table(rows, {
        "#": "rank", "Trainer": "name", "Avg quality": "quality", "Avg doubt": "doubt",
        "Reports": "reports", "Portfolio checks": "portfolioChecks", "Class follow-ups": "classFollowUps",
        "Score": "score",
    }, empty="No trainer activity this month.")


def render(ctx: AppContext):
    page_header("🌱 Student Growth", "Daily growth reports, student trends and trainer performance")
    role = ctx.role()
    names = []
    if role == Role.TRAINER:
        names.append("Submit report")
    names.append("Student reports")
    if role in RANKING_ROLES:
        names.append("Performance ranking")

    for tab, name in zip(st.tabs(names), names):
        with tab:
            if name == "Submit report":
                _report_form(ctx)
            elif name == "Student reports":
                _student_history(ctx)
            else:
                _ranking(ctx)
