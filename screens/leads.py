# screens/leads.py
from __future__ import annotations
import logging
from typing import Any, Dict, Optional

import streamlit as st

from core.context import AppContext
from core.models import LeadSource, LeadStatus
from core.ui import (cell, confirm_delete, fetch_data, iso, load_page, load_rows, options, page_caption, page_header,
                     pager, person_name, pick_row, render_table, run_action, select_id)
from core.validation import validate_lead

logger = logging.getLogger(__name__)

STATUSES = [s.value for s in LeadStatus]
SOURCES = [s.value for s in LeadSource]


def list_params(status: Optional[str], branch_id: Optional[str], search: str, page: Dict[str, int]) -> Dict[str, Any]:
    """Query string for the list call. Filtering happens on the server."""
    params: Dict[str, Any] = dict(page)
    if status:
        params["status"] = status
    if branch_id:
        params["branchId"] = branch_id
    if search and search.strip():
        params["search"] = search.strip()
    return params


def _lead_dialog(ctx: AppContext, lead: Optional[dict], courses: Dict[str, str], branches: Dict[str, str]):
    title = "Edit lead" if lead else "New lead"

    @st.dialog(title, width="large")
    def _dialog():
        src = {}
        if lead:
            # Pre-populate from the full record, not the table row.
            src = fetch_data(ctx.api.leads.get, lead["id"]) or lead
        with st.form("lead_form"):
            c1, c2 = st.columns(2)
            first = c1.text_input("First name *", value=src.get("firstName") or "")
            last = c2.text_input("Last name", value=src.get("lastName") or "")
            email = c1.text_input("Email", value=src.get("email") or "")
            phone = c2.text_input("Phone *", value=src.get("phone") or "")
            source = c1.selectbox("Source", SOURCES,
                                  index=SOURCES.index(src["source"]) if src.get("source") in SOURCES else 0)
            status = c2.selectbox("Status", STATUSES,
                                  index=STATUSES.index(src["status"]) if src.get("status") in STATUSES else 0)
            course = select_id("Interested course", courses, key="lead_course",
                               current=src.get("interestedCourse"), allow_all=True)
            branch = select_id("Branch", branches, key="lead_branch", current=src.get("branchId"), allow_all=True)
            follow = st.date_input("Next follow-up", value=None)
            notes = st.text_area("Notes", value=src.get("notes") or "")
            if st.form_submit_button("Save", type="primary"):
                data = {
                    "firstName": first.strip(), "lastName": last.strip(), "email": email.strip(),
                    "phone": phone.strip(), "source": source, "status": status,
                    "interestedCourse": course, "branchId": branch, "notes": notes,
                    "followUpDate": iso(follow),
                }
                ok, msg = validate_lead(data)
                if not ok:
                    st.error(msg)
                    return
                call = (lambda: ctx.api.leads.update(lead["id"], data)) if lead else (lambda: ctx.api.leads.create(data))
                if run_action(call, "Lead updated" if lead else "Lead created"):
                    st.rerun()

    _dialog()


def _convert_dialog(ctx: AppContext, lead: dict, courses: Dict[str, str]):
    @st.dialog("Convert to admission")
    def _dialog():
        st.write(f"Create an admission for **{person_name(lead)}**.")
        with st.form("lead_convert"):
            course = select_id("Course *", courses, key="conv_course", current=lead.get("interestedCourse"))
            fee = st.number_input("Fee amount", min_value=0.0, step=500.0)
            batch = st.text_input("Batch name")
            if st.form_submit_button("Convert", type="primary"):
                if not course:
                    st.error("Course is required")
                    return
                payload = {"courseId": course, "feeAmount": fee, "batchName": batch.strip() or None}
                if run_action(lambda: ctx.api.leads.convert(lead["id"], payload), "Lead converted to admission"):
                    st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("📝 Leads & Enquiries", "Manage all incoming leads and follow-ups")

    courses = options(load_rows(ctx.api.courses.list))
    branches = options(load_rows(ctx.api.branches.list))

    f1, f2, f3, f4 = st.columns([0.2, 0.2, 0.4, 0.2])
    with f1:
        status = st.selectbox("Status", [None] + STATUSES, format_func=lambda s: s or "All", key="leads_status")
    with f2:
        branch = select_id("Branch", branches, key="leads_branch", allow_all=True)
    with f3:
        search = st.text_input("Search", placeholder="Name, phone or email", key="leads_search")
    with f4:
        page = pager("leads")

    rows, meta = load_page(ctx.api.leads.list, list_params(status, branch, search, page))

    if st.button("➕ New Lead", type="primary"):
        _lead_dialog(ctx, None, courses, branches)

    render_table(rows, {
        "Name": person_name,
        "Phone": "phone",
        "Source": "source",
        "Branch": "branch.name",
        "Status": "status",
        "Date": lambda r: str(r.get("createdAt") or "")[:10],
    }, empty="No leads match these filters.")
    page_caption(meta)

    row = pick_row(rows, lambda r: f"{person_name(r)} · {r.get('phone', '')}", key="leads_pick")
    if row is None:
        return
    c1, c2, c3 = st.columns(3)
    if c1.button("✏️ Edit", use_container_width=True):
        _lead_dialog(ctx, row, courses, branches)
    if c2.button("🎓 Convert", use_container_width=True, disabled=cell(row, "status") == LeadStatus.CONVERTED.value):
        _convert_dialog(ctx, row, courses)
    if c3.button("🗑️ Delete", use_container_width=True):
        confirm_delete("lead", person_name(row), lambda: ctx.api.leads.delete(row["id"]), key=f"lead_del_{row['id']}")
