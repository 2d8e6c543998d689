# screens/courses.py
from __future__ import annotations
from typing import Any, Dict, Optional

import streamlit as st

from core.context import AppContext
from core.derived import format_money, to_number
from core.nav_registry import STAFF
from core.ui import (confirm_delete, fetch_data, load_rows, options, page_header, person_name, pick_row,
                     render_table, run_action, select_id)
from core.validation import validate_required


def course_payload(form: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "name": (form.get("name") or "").strip(),
        "code": (form.get("code") or "").strip().upper(),
        "description": (form.get("description") or "").strip(),
        "duration": (form.get("duration") or "").strip(),
        "fees": to_number(form.get("fees")),
        "syllabus": (form.get("syllabus") or "").strip(),
        "prerequisites": (form.get("prerequisites") or "").strip(),
        "branchId": form.get("branchId") or None,
        "isActive": bool(form.get("isActive", True)),
    }


def _course_dialog(ctx: AppContext, course: Optional[dict], branches: Dict[str, str]):
    @st.dialog("Edit course" if course else "New course", width="large")
    def _dialog():
        src = (fetch_data(ctx.api.courses.get, course["id"]) or course) if course else {}
        with st.form("course_form"):
            c1, c2 = st.columns(2)
            form = {
                "name": c1.text_input("Name *", value=src.get("name") or ""),
                "code": c2.text_input("Code *", value=src.get("code") or ""),
                "duration": c1.text_input("Duration *", value=str(src.get("duration") or ""),
                                          placeholder="e.g. 6 months"),
                "fees": c2.number_input("Fees *", min_value=0.0, step=500.0, value=to_number(src.get("fees"))),
                "description": st.text_area("Description", value=src.get("description") or ""),
                "syllabus": st.text_area("Syllabus", value=src.get("syllabus") or ""),
                "prerequisites": st.text_input("Prerequisites", value=src.get("prerequisites") or ""),
            }
            form["branchId"] = select_id("Branch", branches, key="course_branch",
                                         current=src.get("branchId"), allow_all=True)
            form["isActive"] = st.checkbox("Active", value=src.get("isActive", True))
            if st.form_submit_button("Save", type="primary"):
                data = course_payload(form)
                ok, msg = validate_required(data, ("name", "code", "duration"))
                if not ok:
                    st.error(msg)
                    return
                if course:
                    call = lambda: ctx.api.courses.update(course["id"], data)
                else:
                    call = lambda: ctx.api.courses.create(data)
                if run_action(call, "Course updated" if course else "Course created"):
                    st.rerun()

    _dialog()


def _trainers_panel(ctx: AppContext, course: dict):
    detail = fetch_data(ctx.api.courses.get, course["id"]) or course
    assigned = detail.get("trainers") or []
    st.markdown(f"#### Trainers for {course.get('name')}")
    if not assigned:
        st.caption("No trainers assigned.")
    for t in assigned:
        trainer = t.get("trainer") or t
        c1, c2 = st.columns([0.8, 0.2])
        c1.write(person_name(trainer))
        if c2.button("Remove", key=f"crs_rm_{course['id']}_{trainer.get('id')}"):
            if run_action(lambda: ctx.api.courses.remove_trainer(course["id"], trainer["id"]), "Trainer removed"):
                st.rerun()

    assigned_ids = {(t.get("trainer") or t).get("id") for t in assigned}
    pool = {k: v for k, v in options(load_rows(ctx.api.trainers.list), person_name).items() if k not in assigned_ids}
    if pool:
        c1, c2 = st.columns([0.8, 0.2])
        with c1:
            pick = select_id("Assign trainer", pool, key=f"crs_assign_{course['id']}")
        if c2.button("Assign", key=f"crs_assign_go_{course['id']}") and pick:
            if run_action(lambda: ctx.api.courses.assign_trainer(course["id"], pick), "Trainer assigned"):
                st.rerun()


def render(ctx: AppContext):
    page_header("📘 Courses & Syllabus", "Course catalogue, fees and trainer assignments")
    can_edit = ctx.role() in STAFF

    search = st.text_input("Search", placeholder="Course name or code", key="crs_search")
    rows = load_rows(ctx.api.courses.list, {"search": search.strip()})
    branches = options(load_rows(ctx.api.branches.list)) if can_edit else {}

    if can_edit and st.button("➕ New Course", type="primary"):
        _course_dialog(ctx, None, branches)

    render_table(rows, {
        "Code": "code",
        "Name": "name",
        "Duration": "duration",
        "Fees": lambda r: format_money(r.get("fees")),
        "Trainers": lambda r: len(r.get("trainers") or []),
        "Active": lambda r: "Yes" if r.get("isActive", True) else "No",
    }, empty="No courses found.")

    row = pick_row(rows, lambda r: f"{r.get('code') or ''} · {r.get('name', '')}", key="crs_pick")
    if row is None:
        return
    if row.get("syllabus"):
        with st.expander("Syllabus"):
            st.write(row["syllabus"])
    if not can_edit:
        return
    c1, c2 = st.columns(2)
    if c1.button("✏️ Edit", use_container_width=True):
        _course_dialog(ctx, row, branches)
    if c2.button("🗑️ Delete", use_container_width=True):
        confirm_delete("course", row.get("name", ""), lambda: ctx.api.courses.delete(row["id"]),
                       key=f"crs_del_{row['id']}")
    _trainers_panel(ctx, row)
