# screens/attendance.py
from __future__ import annotations
import datetime
from typing import Any, Dict, List

import streamlit as st

from core.context import AppContext
from core.derived import attendance_band, attendance_percentage, to_number
from core.models import AttendanceStatus
from core.ui import (badge, load_rows, options, page_header, person_name, render_table, run_action,
                     select_id)

STATUSES = [s.value for s in AttendanceStatus]


def summary_percentage(row: Dict[str, Any]) -> int:
    """Percentage for a summary row; recomputed from counts when the server omits it."""
    pct = row.get("percentage")
    if pct is not None and str(pct).strip() != "":
        return round(to_number(str(pct).rstrip("%")))
    present, absent = to_number(row.get("present")), to_number(row.get("absent"))
    return attendance_percentage(present, present + absent)


def bulk_records(marks: Dict[str, str], day: datetime.date, batch_id: str) -> List[Dict[str, Any]]:
    return [{"studentId": sid, "status": status, "date": day.isoformat(), "batchId": batch_id}
            for sid, status in marks.items() if status]


def _mark_section(ctx: AppContext):
    batches = options(load_rows(ctx.api.batches.list))
    if not batches:
        st.caption("No batches available for marking.")
        return
    c1, c2 = st.columns(2)
    with c1:
        batch_id = select_id("Batch", batches, key="att_mark_batch")
    day = c2.date_input("Date", value=datetime.date.today(), key="att_mark_day")
    students = load_rows(ctx.api.trainer_dashboard.batch_students, batch_id) if batch_id else []
    if not students:
        st.caption("No students in this batch.")
        return
    with st.form(f"att_bulk_{batch_id}"):
        marks: Dict[str, str] = {}
        for s in students:
            marks[s["id"]] = st.radio(person_name(s), STATUSES, horizontal=True, key=f"att_{batch_id}_{s['id']}")
        if st.form_submit_button("Save attendance", type="primary"):
            records = bulk_records(marks, day, batch_id)
            if run_action(lambda: ctx.api.attendance.bulk_mark(records), f"Attendance saved for {len(records)} students"):
                st.rerun()


def render(ctx: AppContext):
    page_header("📅 Attendance & Classes", "Track daily attendance and class schedule")

    branches = options(load_rows(ctx.api.branches.list))
    f1, f2 = st.columns(2)
    day = f1.selectbox("Date", ["today", "yesterday"], format_func=str.title, key="att_day")
    with f2:
        branch = select_id("Branch", branches, key="att_branch", allow_all=True)
    date = datetime.date.today() - datetime.timedelta(days=1 if day == "yesterday" else 0)

    rows = load_rows(ctx.api.attendance.stats, {"date": date.isoformat(), "branchId": branch})

    st.markdown("#### Attendance Summary")
    render_table(rows, {
        "Student": lambda a: a.get("student") if isinstance(a.get("student"), str) else person_name(a.get("student")),
        "Course": lambda a: a.get("course") if isinstance(a.get("course"), str) else (a.get("course") or {}).get("name"),
        "Present": "present",
        "Absent": "absent",
        "Percentage": lambda a: f"{summary_percentage(a)}%",
    }, empty="No attendance records found")
    low = [a for a in rows if attendance_band(summary_percentage(a)) == "danger"]
    if low:
        st.markdown(badge(f"{len(low)} students below 75%", "danger"))

    with st.expander("✅ Mark attendance"):
        _mark_section(ctx)
