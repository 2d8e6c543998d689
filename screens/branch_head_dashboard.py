# screens/branch_head_dashboard.py
from __future__ import annotations
from typing import Any, Dict

import pandas as pd
import streamlit as st

from core.context import AppContext
from core.derived import format_money
from core.ui import fetch_data, page_header, person_name, render_table


def _kpis(kpis: Dict[str, Any]):
    adm = kpis.get("admissions") or {}
    att = kpis.get("attendance") or {}
    rev = kpis.get("revenue") or {}
    present, absent = att.get("present") or 0, att.get("absent") or 0
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Active Students", kpis.get("activeStudents") or 0)
    c2.metric("Admissions (Monthly)", adm.get("monthly") or 0, f"{adm.get('conversionRate') or 0}% conversion",
              delta_color="off")
    c3.metric("Attendance Today", f"{present}/{present + absent}")
    c4.metric("Total Revenue", format_money(rev.get("collected")), f"{format_money(rev.get('pending'))} pending",
              delta_color="inverse")


def _admissions(kpis: Dict[str, Any], admissions: Dict[str, Any]):
    adm = kpis.get("admissions") or {}
    st.info(f"{adm.get('today') or 0} Enrolled Today")
    left, right = st.columns(2)
    with left:
        st.markdown("#### Admissions by status")
        trend = admissions.get("admissionsTrend") or []
        if trend:
            df = pd.DataFrame([{"status": t.get("status"), "count": t.get("_count")} for t in trend])
            st.bar_chart(df, x="status", y="count")
        else:
            st.caption("No admissions this month.")
    with right:
        st.markdown("#### Lead Source Analytics")
        monthly = adm.get("monthly") or 0
        for src in admissions.get("leadsBySource") or []:
            count = src.get("_count") or 0
            st.caption(f"{src.get('source')}: {count} leads")
            st.progress(min(int(count / monthly * 100), 100) if monthly else 0)


def render(ctx: AppContext):
    user = ctx.store.get_user() or {}
    branch = (user.get("branch") or {}).get("name") or user.get("branchName") or "My Branch"
    page_header(f"Branch Control Center: {branch}", "Admissions, attendance and trainers for your branch")

    overview = fetch_data(ctx.api.branch_dashboard.overview)
    if not isinstance(overview, dict):
        st.info("Branch figures are unavailable right now.")
        return
    kpis = overview.get("kpis") or {}
    _kpis(kpis)

    tabs = st.tabs(["Overview", "Admissions", "Attendance", "Performance"])
    with tabs[0]:
        c1, c2 = st.columns(2)
        c1.metric("Placement Eligible", kpis.get("placementEligible") or 0)
        c2.metric("Pending Fees", format_money((kpis.get("revenue") or {}).get("pending")))
    with tabs[1]:
        _admissions(kpis, fetch_data(ctx.api.branch_dashboard.admissions) or {})
    with tabs[2]:
        attendance = fetch_data(ctx.api.branch_dashboard.attendance) or {}
        render_table(attendance.get("latestAttendance") or [], {
            "Student": lambda e: person_name(e.get("student")),
            "Status": "status",
            "Date": lambda e: str(e.get("date") or "")[:10],
        }, empty="No attendance marked yet.")
    with tabs[3]:
        trainers = fetch_data(ctx.api.branch_dashboard.trainers) or {}
        render_table(trainers.get("performance") or [], {
            "Trainer": "name",
            "Batches": "batchesCount",
            "Students": "totalStudents",
            "Efficiency": "efficiency",
        }, empty="No trainers in this branch.")
