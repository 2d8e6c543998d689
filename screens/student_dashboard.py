# screens/student_dashboard.py
from __future__ import annotations
from typing import Any, Dict

import streamlit as st

from core.context import AppContext
from core.derived import attendance_health, fee_balance, format_money, paid_percentage, to_number
from core.ui import badge, fetch_data, page_header, render_table, run_action


def fee_summary(fees: Dict[str, Any]) -> Dict[str, Any]:
    """Total/paid from the server; balance and paid share are recomputed locally."""
    total, paid = fees.get("total"), fees.get("paid")
    return {
        "total": to_number(total),
        "paid": to_number(paid),
        "balance": fee_balance(total, paid),
        "paid_pct": paid_percentage(total, paid),
    }


def _overview(ov: Dict[str, Any]):
    student = ov.get("student") or {}
    course = ov.get("course") or {}
    batch = ov.get("batch") or {}
    att = ov.get("attendance") or {}
    port = ov.get("portfolio") or {}
    tests = ov.get("tests") or {}
    soft = ov.get("softwareProgress") or {}

    st.markdown(f"### {student.get('name', '')}")
    st.caption(f"{student.get('enrollmentNumber') or '-'} · {course.get('name') or '-'} · "
               f"{(ov.get('branch') or {}).get('name') or '-'}")
    if batch:
        st.caption(f"Batch {batch.get('name')} · {batch.get('timing')} · Trainer: {batch.get('trainer')}")
    else:
        st.caption("Not yet assigned to a batch.")

    pct = att.get("percentage") or 0
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Attendance", f"{pct}%")
    c1.markdown(badge(attendance_health(pct).title(), attendance_health(pct)))
    c2.metric("Portfolio", f"{port.get('percentage') or 0}%", f"{port.get('approved') or 0}/{port.get('total') or 0} approved",
              delta_color="off")
    c3.metric("Tests", tests.get("status") or "PENDING", f"{tests.get('passed') or 0}/{tests.get('total') or 0} passed",
              delta_color="off")
    c4.metric("Software", f"{soft.get('percentage') or 0}%", soft.get("currentTopic") or "Not Started", delta_color="off")

    elig = ov.get("eligibility") or {}
    cert = elig.get("certificate") or {}
    placement = elig.get("placement") or {}
    st.markdown("#### Eligibility")
    st.markdown(f"Certificate: {badge(cert.get('status') or 'NOT_ELIGIBLE')} · "
                f"Placement: {badge(placement.get('status') or 'NOT_ELIGIBLE')}")
    for req in cert.get("missingRequirements") or []:
        st.caption(f"• {req}")


def _attendance(data: Dict[str, Any]):
    stats = data.get("stats") or {}
    pct = stats.get("percentage") or 0
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Attendance", f"{pct}%")
    c2.metric("Present", stats.get("present") or 0)
    c3.metric("Late", stats.get("late") or 0)
    c4.metric("Absent", stats.get("absent") or 0)
    st.markdown(badge(attendance_health(pct).title(), attendance_health(pct)))
    for alert in data.get("alerts") or []:
        st.warning(alert.get("message") if isinstance(alert, dict) else alert)
    render_table(data.get("records") or [], {
        "Date": "date",
        "Hour": "period",
        "Status": "status",
        "Remarks": "remarks",
    }, empty="No attendance recorded yet.")


def _progress(data: Dict[str, Any]):
    soft = data.get("software") or {}
    pct = int(to_number(soft.get("progress")))
    st.markdown(f"**{(data.get('course') or {}).get('name', '')}**")
    st.progress(min(max(pct, 0), 100), text=f"{pct}% · {soft.get('currentTopic') or 'Not Started'}")
    topics = soft.get("completedTopics") or []
    if topics:
        st.markdown("Completed topics: " + ", ".join(topics))
    if data.get("estimatedCompletion"):
        st.caption(f"Estimated completion: {data['estimatedCompletion']}")


def _portfolio(ctx: AppContext, data: Dict[str, Any]):
    stats = data.get("stats") or {}
    st.progress(min(int(to_number(stats.get("percentage"))), 100),
                text=f"{stats.get('approved') or 0} of {stats.get('total') or 0} tasks approved")
    for task in data.get("tasks") or []:
        sub = task.get("submission") or {}
        status = sub.get("status") or "NOT SUBMITTED"
        with st.expander(f"{task.get('title')} · {status}"):
            st.write(task.get("description") or "")
            if sub.get("workUrl"):
                st.markdown(f"Submitted: {sub['workUrl']}")
            if sub.get("feedback"):
                st.info(sub["feedback"])
            if status in ("NOT SUBMITTED", "REJECTED"):
                with st.form(f"sd_submit_{task['id']}", clear_on_submit=True):
                    url = st.text_input("Work URL *")
                    remarks = st.text_area("Remarks")
                    if st.form_submit_button("Submit"):
                        if not url.strip():
                            st.error("Work URL is required")
                        elif run_action(lambda: ctx.api.student_dashboard.submit_portfolio(
                                {"taskId": task["id"], "workUrl": url.strip(), "remarks": remarks}),
                                "Portfolio submitted successfully"):
                            st.rerun()


def _tests(data: Dict[str, Any]):
    stats = data.get("stats") or {}
    c1, c2, c3 = st.columns(3)
    c1.metric("Taken", stats.get("total") or 0)
    c2.metric("Passed", stats.get("passed") or 0)
    c3.metric("Pass rate", f"{stats.get('percentage') or 0}%")
    st.markdown("#### Upcoming")
    render_table(data.get("upcoming") or [], {"Test": "title", "Date": "date", "Max score": "maxScore"},
                 empty="No upcoming tests.")
    st.markdown("#### Results")
    render_table(data.get("results") or [], {
        "Test": "test.title",
        "Score": "score",
        "Result": lambda r: "Pass" if r.get("isPass") else "Fail",
        "Feedback": "feedback",
    }, empty="No results yet.")


def _fees(data: Dict[str, Any]):
    s = fee_summary(data)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total fee", format_money(s["total"]))
    c2.metric("Paid", format_money(s["paid"]))
    c3.metric("Balance", format_money(s["balance"]))
    st.progress(min(max(s["paid_pct"], 0), 100), text=f"{s['paid_pct']}% paid")
    if data.get("admissionDate"):
        st.caption(f"Admitted on {str(data['admissionDate'])[:10]}")
    render_table(data.get("paymentHistory") or [], {"Date": "date", "Amount": "amount", "Mode": "mode"},
                 empty="No payments recorded.")


def render(ctx: AppContext):
    overview = fetch_data(ctx.api.student_dashboard.overview)
    if not isinstance(overview, dict) or not overview.get("student"):
        page_header("My Dashboard")
        st.warning("Incomplete Data: your student profile is not fully set up yet. Please contact the office.")
        return

    first = (overview["student"].get("name") or "").split(" ")[0]
    page_header(f"Welcome, {first}!", "Your course, attendance and progress at a glance")

    tabs = st.tabs(["Overview", "Attendance", "Progress", "Portfolio", "Tests", "Fees"])
    with tabs[0]:
        _overview(overview)
    with tabs[1]:
        _attendance(fetch_data(ctx.api.student_dashboard.attendance) or {})
    with tabs[2]:
        _progress(fetch_data(ctx.api.student_dashboard.progress) or {})
    with tabs[3]:
        _portfolio(ctx, fetch_data(ctx.api.student_dashboard.portfolio) or {})
    with tabs[4]:
        _tests(fetch_data(ctx.api.student_dashboard.tests) or {})
    with tabs[5]:
        _fees(fetch_data(ctx.api.student_dashboard.fees) or {})
