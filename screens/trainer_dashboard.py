# screens/trainer_dashboard.py
from __future__ import annotations
import datetime
import logging
from typing import Any, Dict, List, Optional

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.derived import format_money, to_number
from core.models import AttendanceStatus, parse_envelope
from core.ui import (badge, fetch_data, load_rows, options, page_header, person_name,
                     render_table, run_action, select_id, success, toast_error)

logger = logging.getLogger(__name__)

PERIODS = (1, 2, 3)


def score_payload(rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Only rows with an entered score are sent; blanks mean 'not graded yet'."""
    out = []
    for r in rows:
        score = r.get("score")
        if score is None or str(score).strip() == "":
            continue
        out.append({"studentId": r["studentId"], "score": to_number(score), "feedback": r.get("feedback") or ""})
    return out


def run_eligibility_check(api: ApiClient, batch_id: str) -> Optional[int]:
    data = parse_envelope(api.trainer_dashboard.check_eligibility(batch_id)).data or {}
    return data.get("updatedCount") if isinstance(data, dict) else None


def _batch_picker(classes: List[dict], key: str) -> Optional[str]:
    if not classes:
        st.info("You have no batches assigned.")
        return None
    return select_id("Batch", options(classes), key=key)


def _overview(stats: Dict[str, Any]):
    left, right = st.columns(2)
    with left:
        st.markdown("#### Today's Batches")
        classes = stats.get("classes") or []
        if not classes:
            st.caption("No batches scheduled for today.")
        for c in classes:
            st.markdown(f"**{c.get('name')}** · {c.get('startTime') or '?'} - {c.get('endTime') or '?'}")
    with right:
        st.markdown("#### Today")
        c1, c2 = st.columns(2)
        c1.metric("Total Classes", stats.get("todayClasses") or 0)
        c2.metric("Low Attendance", stats.get("lowAttendance") or 0)
        c1.metric("Present", stats.get("presentToday") or 0)
        c2.metric("Absent", stats.get("absentToday") or 0)
        st.metric("Certificate Eligible", stats.get("eligibleForCertificate") or 0)


def _attendance(ctx: AppContext, classes: List[dict]):
    batch_id = _batch_picker(classes, "td_att_batch")
    if not batch_id:
        return
    students = load_rows(ctx.api.trainer_dashboard.batch_students, batch_id)
    if not students:
        st.info("No students in this batch.")
        return
    period = st.radio("Hour", PERIODS, horizontal=True, key="td_att_period")
    for s in students:
        c1, c2, c3 = st.columns([0.6, 0.2, 0.2])
        c1.markdown(f"{person_name(s)} · `{s.get('enrollmentNumber') or '-'}`")
        for col, status in ((c2, AttendanceStatus.PRESENT), (c3, AttendanceStatus.ABSENT)):
            if col.button(status.value.title(), key=f"td_att_{s['id']}_{period}_{status.value}"):
                run_action(lambda: ctx.api.attendance.mark(
                    {"studentId": s["id"], "status": status.value, "period": period}),
                    f"Hour {period} marked as {status.value}")


def _tests(ctx: AppContext, classes: List[dict]):
    batch_id = _batch_picker(classes, "td_tests_batch")
    if not batch_id:
        return

    with st.expander("➕ Create test"):
        with st.form("td_new_test", clear_on_submit=True):
            title = st.text_input("Title *")
            max_score = st.number_input("Max score", min_value=1, value=100)
            date = st.date_input("Date", value=datetime.date.today())
            if st.form_submit_button("Create", type="primary"):
                if not title.strip():
                    toast_error("Title is required")
                elif run_action(lambda: ctx.api.trainer_dashboard.create_test(
                        {"title": title.strip(), "maxScore": int(max_score), "date": date.isoformat(),
                         "batchId": batch_id}), "Test created successfully"):
                    st.rerun()

    tests = load_rows(ctx.api.trainer_dashboard.batch_tests, batch_id)
    render_table(tests, {"Test": "title", "Max score": "maxScore", "Date": "date"}, empty="No tests yet.")
    test_id = select_id("Enter scores for", options(tests, lambda t: t.get("title", "")), key="td_tests_pick") \
        if tests else None
    if not test_id:
        return

    students = load_rows(ctx.api.trainer_dashboard.batch_students, batch_id)
    existing = {s.get("studentId"): s for s in load_rows(ctx.api.trainer_dashboard.test_scores, test_id)}
    with st.form(f"td_scores_{test_id}"):
        rows = []
        for s in students:
            prev = existing.get(s["id"]) or {}
            c1, c2, c3 = st.columns([0.4, 0.2, 0.4])
            c1.markdown(person_name(s))
            score = c2.text_input("Score", value=str(prev.get("score", "")), key=f"sc_{test_id}_{s['id']}",
                                  label_visibility="collapsed")
            feedback = c3.text_input("Feedback", value=prev.get("feedback") or "",
                                     key=f"fb_{test_id}_{s['id']}", label_visibility="collapsed")
            rows.append({"studentId": s["id"], "score": score, "feedback": feedback})
        if st.form_submit_button("Save scores", type="primary"):
            run_action(lambda: ctx.api.trainer_dashboard.update_test_scores(test_id, score_payload(rows)),
                       "Scores updated successfully")


def _progress(ctx: AppContext, classes: List[dict]):
    batch_id = _batch_picker(classes, "td_prog_batch")
    if not batch_id:
        return
    for s in load_rows(ctx.api.trainer_dashboard.batch_progress, batch_id):
        prog = s.get("progress") or {}
        pct = int(to_number(prog.get("percentage")))
        with st.expander(f"{person_name(s)} · {pct}% completed"):
            st.progress(min(max(pct, 0), 100))
            with st.form(f"td_prog_{s['id']}"):
                topic = st.text_input("Current topic", value=prog.get("currentTopic") or "")
                value = st.slider("Progress %", 0, 100, value=min(max(pct, 0), 100))
                done = st.text_area("Completed topics (one per line)",
                                    value="\n".join(prog.get("completedTopics") or []))
                if st.form_submit_button("Save progress"):
                    topics = [t.strip() for t in done.splitlines() if t.strip()]
                    run_action(lambda: ctx.api.trainer_dashboard.update_student_progress(
                        s["id"], {"currentTopic": topic, "progress": value, "completedTopics": topics}),
                        "Progress updated successfully")


def _placement(ctx: AppContext, classes: List[dict]):
    batch_id = _batch_picker(classes, "td_pl_batch")
    if not batch_id:
        return
    if st.button("🔄 Run Auto-Check", key="td_pl_check"):
        try:
            with st.spinner("Checking eligibility..."):
                count = run_eligibility_check(ctx.api, batch_id)
        except ApiError as e:
            toast_error(e.message)
        else:
            success(f"Eligibility updated for {count or 0} students.")
    render_table(load_rows(ctx.api.trainer_dashboard.batch_students, batch_id), {
        "Student": person_name,
        "Enrollment": "enrollmentNumber",
        "Eligibility": lambda s: "Eligible" if s.get("placementEligible") else "Not Eligible",
        "Certificate": lambda s: "Locked" if s.get("certificateLocked") else "Unlocked",
    }, empty="No students found.")


def _incentives(ctx: AppContext):
    user = ctx.store.get_user() or {}
    trainers = load_rows(ctx.api.trainers.list, {"search": user.get("email")})
    mine = next((t for t in trainers if (t.get("user") or {}).get("email") == user.get("email")), None)
    if mine is None:
        st.info("No trainer profile is linked to your account.")
        return
    rows = load_rows(ctx.api.incentives.list, {"trainerId": mine["id"], "limit": 100})
    total = sum(to_number(r.get("amount")) for r in rows)
    paid = sum(to_number(r.get("amount")) for r in rows if r.get("isPaid"))
    c1, c2, c3 = st.columns(3)
    c1.metric("Total", format_money(total))
    c2.metric("Paid", format_money(paid))
    c3.metric("Pending", format_money(total - paid))
    render_table(rows, {
        "Type": "type",
        "Amount": lambda r: format_money(r.get("amount")),
        "Status": lambda r: "Paid" if r.get("isPaid") else "Pending",
        "Created": "createdAt",
    }, empty="No incentives yet.")


def render(ctx: AppContext):
    user = ctx.store.get_user() or {}
    page_header(f"Trainer Dashboard: {person_name(user)}", "Your batches, students and outcomes")

    stats = fetch_data(ctx.api.trainer_dashboard.stats)
    if not isinstance(stats, dict):
        st.info("Dashboard figures are unavailable right now.")
        return

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Active Students", stats.get("activeStudents") or 0)
    c2.metric("Attendance (Today)", f"{stats.get('presentToday') or 0} / "
              f"{(stats.get('presentToday') or 0) + (stats.get('absentToday') or 0)}")
    c3.metric("Pending Portfolios", stats.get("pendingPortfolios") or 0)
    c4.metric("Placement Eligible", stats.get("eligibleForPlacement") or 0)
    if stats.get("lowAttendance"):
        st.markdown(badge(f"{stats['lowAttendance']} students below attendance threshold", "danger"))

    classes = stats.get("classes") or []
    tabs = st.tabs(["Overview", "Attendance", "Tests", "Software Progress", "Placement Eligibility", "Incentives"])
    with tabs[0]:
        _overview(stats)
    with tabs[1]:
        _attendance(ctx, classes)
    with tabs[2]:
        _tests(ctx, classes)
    with tabs[3]:
        _progress(ctx, classes)
    with tabs[4]:
        _placement(ctx, classes)
    with tabs[5]:
        _incentives(ctx)
