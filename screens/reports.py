# screens/reports.py
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, List

import pandas as pd
import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.derived import fee_balance, format_money, to_number
from core.models import parse_envelope
from core.ui import fetch_data, load_rows, page_header, render_table

logger = logging.getLogger(__name__)


def branch_performance(api: ApiClient, branches: List[dict]) -> List[Dict[str, Any]]:
    """One row per branch; a branch whose report fails shows zeros instead of hiding the table."""
    out = []
    for b in branches:
        try:
            data = parse_envelope(api.reports.branch({"branchId": b["id"]})).data or {}
        except ApiError as e:
            logger.warning("Branch report failed for %s: %s", b.get("name"), e.message)
            data = {}
        out.append({
            "branch": b.get("name"),
            "leads": int(to_number((data.get("leads") or {}).get("total"))),
            "admissions": int(to_number((data.get("admissions") or {}).get("total"))),
            "placements": int(to_number((data.get("placements") or {}).get("successful"))),
        })
    return out


def report_rows(data: Any) -> List[dict]:
    """Table rows from a report payload: a bare list, or ``items``/``rows`` inside a dict."""
    if isinstance(data, dict):
        data = data.get("items") or data.get("rows") or []
    if not isinstance(data, list):
        return []
    return [r for r in data if isinstance(r, dict)]


def report_summary(data: Any) -> Dict[str, Any]:
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if isinstance(v, (int, float)) and not isinstance(v, bool)}


def _simple_report(call: Callable[..., Any], columns: Dict[str, Any], empty: str):
    data = fetch_data(call)
    summary = report_summary(data)
    if summary:
        cols = st.columns(min(len(summary), 4))
        for col, (k, v) in zip(cols, list(summary.items())[:4]):
            col.metric(k, v)
    render_table(report_rows(data), columns, empty=empty)


def render(ctx: AppContext):
    page_header("📈 Reports", "Performance reports and analytics")

    tabs = st.tabs(["Performance", "Courses", "Fees pending", "Placement eligible", "Daily admissions", "Revenue"])
    with tabs[0]:
        branches = load_rows(ctx.api.branches.list)
        perf = branch_performance(ctx.api, branches)
        st.markdown("#### Leads vs Admissions vs Placements")
        if perf:
            st.bar_chart(pd.DataFrame(perf).set_index("branch"))
        render_table(perf, {"Branch": "branch", "Leads": "leads", "Admissions": "admissions",
                            "Placements": "placements"}, empty="No branches found.")

        st.markdown("#### Trainer Performance (Incentives)")
        trainers = fetch_data(ctx.api.reports.trainer) or []
        trainer_rows = [{"name": t.get("name"), "courses": t.get("courses"), "incentives": t.get("totalIncentives")}
                        for t in trainers if isinstance(t, dict)]
        if trainer_rows:
            st.bar_chart(pd.DataFrame(trainer_rows), x="name", y="incentives")
        render_table(trainer_rows, {"Trainer": "name", "Courses": "courses",
                                    "Incentives": lambda t: format_money(t["incentives"])}, empty="No trainer data.")

    with tabs[1]:
        adm = fetch_data(ctx.api.reports.admissions) or {}
        courses = (adm.get("courseBreakdown") or []) if isinstance(adm, dict) else []
        render_table(courses, {
            "Course": "course",
            "Enrolled": "count",
            "Revenue": lambda c: format_money(c.get("totalFees")),
            "Collected": lambda c: format_money(c.get("collected")),
        }, empty="No admissions yet.")

    with tabs[2]:
        _simple_report(ctx.api.reports.fees_pending, {
            "Student": "name", "Course": "course", "Fee": "feeAmount", "Paid": "feePaid",
            "Balance": lambda r: format_money(fee_balance(r.get("feeAmount"), r.get("feePaid"))),
        }, "No pending fees.")
    with tabs[3]:
        _simple_report(ctx.api.reports.placement_eligible, {
            "Student": "name", "Course": "course", "Attendance %": "attendance", "Portfolio": "portfolio",
        }, "No eligible students.")
    with tabs[4]:
        _simple_report(ctx.api.reports.daily_admissions, {
            "Admission No.": "admissionNumber", "Student": "name", "Course": "course", "Fee": "feeAmount",
        }, "No admissions today.")
    with tabs[5]:
        _simple_report(ctx.api.reports.revenue, {
            "Month": "month", "Collected": "collected", "Pending": "pending",
        }, "No revenue data.")
