# screens/placements.py
from __future__ import annotations
from typing import Any, Dict, List, Optional

import streamlit as st

from core.context import AppContext
from core.models import PlacementStatus
from core.nav_registry import STAFF
from core.ui import (confirm_delete, load_rows, options, page_header, person_name, pick_row, render_table,
                     run_action, select_id)
from core.validation import validate_required

STATUSES = [s.value for s in PlacementStatus]


def alumni(placements: List[dict]) -> List[dict]:
    return [p for p in placements if p.get("status") == PlacementStatus.PLACED.value]


def format_package(value: Any) -> str:
    return f"₹{value} LPA" if value not in (None, "", 0) else "-"


def _placement_dialog(ctx: AppContext, placement: Optional[dict], companies: Dict[str, str]):
    @st.dialog("Edit placement" if placement else "New placement")
    def _dialog():
        src = placement or {}
        students = options(load_rows(ctx.api.students.list, {"limit": 200}), person_name) if not placement else {}
        with st.form("placement_form"):
            if placement:
                st.write(f"Student: **{person_name(src.get('student'))}**")
                student = src.get("studentId")
            else:
                student = select_id("Student *", students, key="pl_student")
            company = select_id("Company *", companies, key="pl_company", current=src.get("companyId"))
            position = st.text_input("Role *", value=src.get("position") or "")
            package = st.number_input("Package (LPA)", min_value=0.0, step=0.5, value=float(src.get("package") or 0))
            status = st.selectbox("Status", STATUSES,
                                  index=STATUSES.index(src["status"]) if src.get("status") in STATUSES else 1)
            if st.form_submit_button("Save", type="primary"):
                data = {"studentId": student, "companyId": company, "position": position.strip(),
                        "package": package or None, "status": status}
                ok, msg = validate_required(data, ("studentId", "companyId", "position"))
                if not ok:
                    st.error(msg)
                    return
                if placement:
                    call = lambda: ctx.api.placements.update(placement["id"], data)
                else:
                    call = lambda: ctx.api.placements.create(data)
                if run_action(call, "Placement updated" if placement else "Placement created"):
                    st.rerun()

    _dialog()


def _companies(ctx: AppContext, rows: List[dict], can_edit: bool):
    render_table(rows, {
        "Company": "name", "Industry": "industry", "Location": "location",
        "Contact": "contactPerson", "Email": "contactEmail",
    }, empty="No partner companies yet.")
    if not can_edit:
        return
    with st.expander("➕ Add company"):
        with st.form("company_form", clear_on_submit=True):
            c1, c2 = st.columns(2)
            data = {
                "name": c1.text_input("Name *").strip(),
                "industry": c2.text_input("Industry").strip(),
                "location": c1.text_input("Location").strip(),
                "contactPerson": c2.text_input("Contact person").strip(),
                "contactEmail": c1.text_input("Contact email").strip(),
                "website": c2.text_input("Website").strip(),
            }
            if st.form_submit_button("Add company"):
                if not data["name"]:
                    st.error("Company name is required")
                elif run_action(lambda: ctx.api.companies.create(data), "Company added"):
                    st.rerun()
    company = pick_row(rows, lambda c: c.get("name", ""), key="pl_company_pick")
    if company and st.button("🗑️ Delete company"):
        confirm_delete("company", company.get("name", ""), lambda: ctx.api.companies.delete(company["id"]),
                       key=f"co_del_{company['id']}")


def render(ctx: AppContext):
    page_header("💼 Placements", "Placement drives, offers and alumni")
    can_edit = ctx.role() in STAFF

    status = st.selectbox("Status", [None] + STATUSES, format_func=lambda s: s or "All", key="pl_status")
    placements = load_rows(ctx.api.placements.list, {"status": status, "limit": 100})
    company_rows = load_rows(ctx.api.companies.list, {"limit": 100})
    companies = options(company_rows)

    placed = alumni(placements)
    c1, c2, c3 = st.columns(3)
    c1.metric("Placements", len(placements))
    c2.metric("Placed", len(placed))
    c3.metric("Partner Companies", len(company_rows))

    tabs = st.tabs(["Placements", "Companies", "Alumni"])
    with tabs[0]:
        if can_edit and st.button("➕ New Placement", type="primary"):
            _placement_dialog(ctx, None, companies)
        render_table(placements, {
            "Student": lambda r: person_name(r.get("student")),
            "Course": "student.course.name",
            "Company": lambda r: (r.get("company") or {}).get("name") or "-",
            "Role": "position",
            "Package": lambda r: format_package(r.get("package")),
            "Status": "status",
        }, empty="No placements found.")
        row = pick_row(placements, lambda r: f"{person_name(r.get('student'))} · {(r.get('company') or {}).get('name') or '-'}",
                       key="pl_pick")
        if row and can_edit:
            a, b, c = st.columns(3)
            new_status = a.selectbox("Move to", STATUSES, index=STATUSES.index(row["status"])
                                     if row.get("status") in STATUSES else 0, key=f"pl_move_{row['id']}")
            if a.button("Update status", key=f"pl_move_go_{row['id']}"):
                if run_action(lambda: ctx.api.placements.update_status(row["id"], new_status), "Status updated"):
                    st.rerun()
            if b.button("✏️ Edit", use_container_width=True):
                _placement_dialog(ctx, row, companies)
            if c.button("🗑️ Delete", use_container_width=True):
                confirm_delete("placement", person_name(row.get("student")),
                               lambda: ctx.api.placements.delete(row["id"]), key=f"pl_del_{row['id']}")
    with tabs[1]:
        _companies(ctx, company_rows, can_edit)
    with tabs[2]:
        render_table(placed, {
            "Student": lambda r: person_name(r.get("student")),
            "Company": "company.name",
            "Role": "position",
            "Package": lambda r: format_package(r.get("package")),
        }, empty="No alumni yet.")
