# screens/branch_insights.py
from __future__ import annotations
import datetime
import logging
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.derived import fee_balance, format_money, to_number
from core.models import Role
from core.ui import (fetch_data, iso, load_rows, options, page_header, person_name, render_table,
                     select_id, success)
from core.validation import validate_required
from screens.profile import refresh_user
from screens.student_growth import month_params

logger = logging.getLogger(__name__)

EXPENSE_CATEGORIES = ("MARKETING", "RENT", "UTILITIES", "SALARY", "EVENTS", "MAINTENANCE", "OTHER")
EVENT_TYPES = {"INDUSTRIAL_VISIT": "Industrial visit", "SEMINAR": "Seminar", "WORKSHOP": "Workshop"}


def user_branch_id(user: Optional[Dict[str, Any]]) -> Optional[str]:
    user = user or {}
    return user.get("branchId") or (user.get("branch") or {}).get("id")


def admission_fee_status(adm: Dict[str, Any]) -> str:
    return "Paid" if fee_balance(adm.get("feeAmount"), adm.get("feePaid")) <= 0 else "Partial"


def expense_summary(data: Any) -> Tuple[List[dict], float]:
    """Rows and month total from ``{expenses, totalAmount}``; the total is summed locally when missing."""
    if not isinstance(data, dict):
        return [], 0.0
    rows = [e for e in data.get("expenses") or [] if isinstance(e, dict)]
    total = data.get("totalAmount")
    if total is None:
        total = sum(to_number(e.get("amount")) for e in rows)
    return rows, to_number(total)


def validate_expense(form: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(form, ("branchId", "amount", "category"))
    if not ok:
        return ok, msg
    if to_number(form.get("amount")) <= 0:
        return False, "Amount must be greater than zero"
    return True, ""


def expense_payload(form: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "branchId": form["branchId"],
        "amount": to_number(form.get("amount")),
        "category": form["category"],
        "description": (form.get("description") or "").strip(),
        "date": iso(form.get("date")),
    }


def submit_expense(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_expense(form)
    if not ok:
        return ok, msg
    try:
        api.reports.submit_expense(expense_payload(form))
    except ApiError as e:
        return False, e.message
    return True, "Expense recorded"


def validate_event_plan(form: Dict[str, Any], today: Optional[datetime.date] = None) -> Tuple[bool, str]:
    ok, msg = validate_required(form, ("branchId", "type", "title", "date"))
    if not ok:
        return ok, msg
    when = form["date"]
    if isinstance(when, datetime.date) and when < (today or datetime.date.today()):
        return False, "Event date cannot be in the past"
    return True, ""


def event_plan_payload(form: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "branchId": form["branchId"],
        "type": form["type"],
        "title": form["title"].strip(),
        "description": (form.get("description") or "").strip(),
        "date": iso(form["date"]),
    }


def submit_event_plan(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_event_plan(form)
    if not ok:
        return ok, msg
    try:
        api.reports.submit_event_plan(event_plan_payload(form))
    except ApiError as e:
        return False, e.message
    logger.info("Event plan %r scheduled for branch %s", form["title"], form["branchId"])
    return True, "Event plan submitted"


def engagement_rows(data: Any) -> List[Dict[str, Any]]:
    rows = [r for r in (data if isinstance(data, list) else []) if isinstance(r, dict)]
    return [{
        "date": str(r.get("date") or "")[:10],
        "platform": r.get("platform") or "—",
        "likes": int(to_number(r.get("likes"))),
        "leads": int(to_number(r.get("leadsGenerated"))),
    } for r in rows]


def _pick_branch(ctx: AppContext) -> Optional[str]:
    user = ctx.store.get_user()
    own = user_branch_id(user)
    if ctx.role() == Role.CHANNEL_PARTNER:
        if not own:
            # Older sessions may predate branch info on the user; try the server copy once.
            ok, _ = refresh_user(ctx.api, ctx.store)
            own = user_branch_id(ctx.store.get_user()) if ok else None
        return own
    branches = options(load_rows(ctx.api.branches.list))
    if not branches:
        return own
    return select_id("Branch", branches, key="bi_branch", current=own)


def _admissions(ctx: AppContext, branch: str):
    rows = load_rows(ctx.api.reports.daily_admissions, {"branchId": branch})
    st.metric("Daily admissions", len(rows))
    render_table(rows, {
        "Student": person_name,
        "Course": "course.name",
        "Fee status": admission_fee_status,
        "Status": "status",
    }, empty="No admission records found for this period.")


def _fees(ctx: AppContext, branch: str):
    rows = load_rows(ctx.api.reports.fees_pending, {"branchId": branch})
    render_table(rows, {
        "Student": person_name,
        "Course": lambda r: (r.get("course") or {}).get("name") or "General Course",
        "Balance due": lambda r: format_money(r.get("feeBalance")),
    }, empty="No pending fees for this branch.")


def _operations(ctx: AppContext, branch: str):
    left, right = st.columns(2)
    with left:
        st.markdown("#### Branch expenses (this month)")
        rows, total = expense_summary(fetch_data(ctx.api.reports.expenses, month_params(branch_id=branch)))
        st.metric("Total", format_money(total))
        render_table(rows, {
            "Date": lambda e: str(e.get("date") or "")[:10],
            "Category": "category",
            "Amount": lambda e: format_money(e.get("amount")),
            "Description": "description",
        }, empty="No expenses recorded this month.")
        with st.form("bi_expense", clear_on_submit=True):
            amount = st.number_input("Amount *", min_value=0.0, step=100.0)
            category = st.selectbox("Category *", EXPENSE_CATEGORIES)
            when = st.date_input("Date", value=datetime.date.today())
            description = st.text_input("Description")
            if st.form_submit_button("Record expense"):
                ok, msg = submit_expense(ctx.api, {"branchId": branch, "amount": amount, "category": category,
                                                   "date": when, "description": description})
                if ok:
                    success(msg)
                    st.rerun()
                else:
                    st.error(msg)

    with right:
        st.markdown("#### Event planning")
        st.caption("Schedule industrial visits or seminars for this branch.")
        with st.form("bi_event", clear_on_submit=True):
            kind = st.selectbox("Type *", list(EVENT_TYPES), format_func=EVENT_TYPES.get)
            title = st.text_input("Title *")
            when = st.date_input("Date *", value=None)
            description = st.text_area("Description")
            if st.form_submit_button("Plan event", type="primary"):
                ok, msg = submit_event_plan(ctx.api, {"branchId": branch, "type": kind, "title": title,
                                                      "date": when, "description": description})
                if ok:
                    success(msg)
                else:
                    st.error(msg)


def _social(ctx: AppContext, branch: str):
    rows = engagement_rows(fetch_data(ctx.api.reports.social_engagement, {"branchId": branch}))
    if rows:
        c1, c2 = st.columns(2)
        c1.metric("Likes (last 10 posts)", sum(r["likes"] for r in rows))
        c2.metric("Leads generated", sum(r["leads"] for r in rows))
    render_table(rows, {"Date": "date", "Platform": "platform", "Likes": "likes", "Leads": "leads"},
                 empty="No social media activity recorded.")


def render(ctx: AppContext):
    page_header("🧭 Branch Insights", "Operational dashboard for branch heads")
    branch = _pick_branch(ctx)
    if not branch:
        if ctx.role() == Role.CHANNEL_PARTNER:
            st.error("Your login session is missing branch information. "
                     "Please sign out and sign in again to resolve this.")
        else:
            st.info("Please select or assign a branch to view insights.")
        return

    tabs = st.tabs(["Admissions", "Fees", "Operations", "Social"])
    with tabs[0]:
        _admissions(ctx, branch)
    with tabs[1]:
        _fees(ctx, branch)
    with tabs[2]:
        _operations(ctx, branch)
    with tabs[3]:
        _social(ctx, branch)
