# screens/portfolio.py
from __future__ import annotations
from typing import Any, Dict, List

import streamlit as st

from core.context import AppContext
from core.derived import attendance_percentage, to_number
from core.models import Role
from core.ui import (badge, fetch_data, load_rows, options, page_header, person_name, render_table,
                     run_action, select_id)

REVIEW_STATUSES = ("APPROVED", "REJECTED")


def item_status(item: Dict[str, Any]) -> str:
    if item.get("isVerified"):
        return "Verified"
    if item.get("completedAt"):
        return "Submitted"
    return "In Progress"


def group_by_student(items: List[dict]) -> List[Dict[str, Any]]:
    """One card per student, in first-seen order, with completion counts."""
    groups: Dict[str, Dict[str, Any]] = {}
    for it in items:
        sid = it.get("studentId")
        g = groups.setdefault(sid, {
            "studentId": sid,
            "student": person_name(it.get("student")),
            "course": ((it.get("student") or {}).get("course") or {}).get("name"),
            "items": [],
        })
        g["items"].append({**it, "status": item_status(it)})
    for g in groups.values():
        done = sum(1 for i in g["items"] if i["status"] in ("Verified", "Submitted"))
        g["completed"] = done
        g["progress"] = attendance_percentage(done, len(g["items"]))
    return list(groups.values())


def _overview(ctx: AppContext):
    courses = options(load_rows(ctx.api.courses.list))
    course = select_id("Course", courses, key="pf_course", allow_all=True)
    items = load_rows(ctx.api.portfolios.list, {"courseId": course, "limit": 100})
    groups = group_by_student(items)
    if not groups:
        st.info("No portfolio entries found")
        return
    for g in groups:
        with st.container(border=True):
            c1, c2 = st.columns([0.7, 0.3])
            c1.markdown(f"**{g['student']}**  \n{g['course'] or ''}")
            c2.markdown(f"**{g['progress']}%**  \n{g['completed']}/{len(g['items'])} items")
            st.progress(g["progress"])
            for it in g["items"]:
                a, b, c = st.columns([0.6, 0.2, 0.2])
                a.write(it.get("title") or it.get("projectTitle") or "Untitled")
                b.markdown(badge(it["status"], "success" if it["status"] == "Verified" else "warning"))
                if it["status"] == "Submitted" and c.button("Verify", key=f"pf_verify_{it['id']}"):
                    if run_action(lambda: ctx.api.portfolios.verify(it["id"]), "Portfolio verified"):
                        st.rerun()


def _review(ctx: AppContext):
    stats = fetch_data(ctx.api.portfolios.stats) or {}
    if isinstance(stats, dict) and stats:
        c1, c2, c3 = st.columns(3)
        c1.metric("Pending", stats.get("pending") or 0)
        c2.metric("Approved", stats.get("approved") or 0)
        c3.metric("Rejected", stats.get("rejected") or 0)

    pending = load_rows(ctx.api.portfolios.pending)
    if not pending:
        st.info("No submissions waiting for review.")
        return
    for sub in pending:
        task = sub.get("task") or {}
        with st.expander(f"{person_name(sub.get('student'))} · {task.get('title') or 'Task'}"):
            if sub.get("workUrl"):
                st.markdown(f"Work: {sub['workUrl']}")
            if sub.get("remarks"):
                st.caption(sub["remarks"])
            with st.form(f"pf_review_{sub['id']}"):
                decision = st.radio("Decision", REVIEW_STATUSES, horizontal=True)
                remarks = st.text_area("Feedback")
                if st.form_submit_button("Submit review", type="primary"):
                    if run_action(lambda: ctx.api.portfolios.review(sub["id"], {"status": decision, "remarks": remarks}),
                                  f"Submission {decision.lower()}"):
                        st.rerun()


def _tasks(ctx: AppContext):
    courses = options(load_rows(ctx.api.courses.list))
    course = select_id("Course", courses, key="pf_task_course")
    if not course:
        return
    render_table(load_rows(ctx.api.portfolios.tasks_for_course, course), {
        "Task": "title", "Description": "description", "Order": "order",
    }, empty="No tasks defined for this course.")
    with st.form("pf_new_task", clear_on_submit=True):
        title = st.text_input("Title *")
        description = st.text_area("Description")
        if st.form_submit_button("Add task"):
            if not title.strip():
                st.error("Title is required")
            elif run_action(lambda: ctx.api.portfolios.create_task(
                    {"courseId": course, "title": title.strip(), "description": description.strip()}),
                    "Portfolio task created"):
                st.rerun()


def _own_portfolio(ctx: AppContext):
    data = fetch_data(ctx.api.student_dashboard.portfolio) or {}
    stats = data.get("stats") or {}
    st.progress(min(int(to_number(stats.get("percentage"))), 100),
                text=f"{stats.get('approved') or 0} of {stats.get('total') or 0} tasks approved")
    render_table(data.get("tasks") or [], {
        "Task": "title",
        "Status": lambda t: (t.get("submission") or {}).get("status") or "NOT SUBMITTED",
        "Feedback": "submission.feedback",
    }, empty="No portfolio tasks yet.")
    st.caption("Submit work from the Portfolio tab of your dashboard.")


def render(ctx: AppContext):
    page_header("📁 Portfolio Management", "Track student portfolio completion across courses")
    if ctx.role() == Role.STUDENT:
        _own_portfolio(ctx)
        return
    tabs = st.tabs(["Overview", "Review queue", "Tasks"])
    with tabs[0]:
        _overview(ctx)
    with tabs[1]:
        _review(ctx)
    with tabs[2]:
        _tasks(ctx)
