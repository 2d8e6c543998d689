# screens/dashboard.py
from __future__ import annotations
from typing import Any, Dict, List, Tuple

import pandas as pd
import streamlit as st

from core.context import AppContext
from core.derived import conversion_rate
from core.ui import badge, fetch_data, page_header, render_table

KPI_LABELS = (
    ("leads", "Total Leads"),
    ("admissions", "Admissions"),
    ("activeStudents", "Active Students"),
    ("placements", "Placements"),
)


def kpi_metrics(kpis: Dict[str, Any]) -> List[Tuple[str, Any, str]]:
    """(label, value, delta) triples; missing KPIs render as dashes."""
    out = []
    for key, label in KPI_LABELS:
        k = kpis.get(key) or {}
        change = k.get("change")
        out.append((label, k.get("value"), None if change is None else f"{change}% from last month"))
    return out


def render(ctx: AppContext):
    page_header("CEO Dashboard", "Overview of all branches and operations")

    stats = fetch_data(ctx.api.dashboard.stats)
    if not isinstance(stats, dict):
        st.info("Dashboard figures are unavailable right now.")
        return

    cols = st.columns(len(KPI_LABELS))
    for col, (label, value, delta) in zip(cols, kpi_metrics(stats.get("kpis") or {})):
        col.metric(label, "—" if value is None else value, delta)

    left, right = st.columns(2)
    with left:
        st.markdown("#### Placement Trend")
        trend = pd.DataFrame(stats.get("placementTrend") or [])
        if {"month", "placed"} <= set(trend.columns):
            st.bar_chart(trend, x="month", y="placed")
        else:
            st.caption("No placements yet.")
    with right:
        st.markdown("#### Course-wise Distribution")
        dist = pd.DataFrame(stats.get("courseDistribution") or [])
        if {"name", "value"} <= set(dist.columns):
            st.bar_chart(dist, x="name", y="value")
        else:
            st.caption("No enrolments yet.")

    st.markdown("#### Branch-wise Performance")
    render_table(stats.get("branchPerformance") or [], {
        "Branch": "branch",
        "Leads": "leads",
        "Admissions": "admissions",
        "Active Students": "students",
        "Placements": "placements",
        "Conversion": lambda b: f"{conversion_rate(b.get('admissions'), b.get('leads'))}%",
    }, empty="No branches found.")

    st.markdown("#### Trainer Performance")
    trainers = stats.get("trainerPerformance") or []
    render_table(trainers, {
        "Trainer": "name",
        "Course": "course",
        "Students": "students",
        "Rating": lambda t: f"⭐ {t.get('rating')}" if t.get("rating") is not None else "—",
        "Status": "status",
    }, empty="No trainers found.")
    inactive = [t for t in trainers if (t.get("status") or "Active") != "Active"]
    if inactive:
        st.markdown(" ".join(badge(f"{t.get('name')}: {t.get('status')}", "warning") for t in inactive))
