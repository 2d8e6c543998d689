# screens/batches.py
from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from core.context import AppContext
from core.nav_registry import STAFF
from core.ui import (confirm_delete, fetch_data, load_rows, options, page_header, person_name, pick_row,
                     render_table, run_action, select_id)
from core.validation import validate_required

REQUIRED = ("name", "code", "courseId", "branchId")


def validate_batch(data: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(data, REQUIRED)
    if not ok:
        return ok, msg
    if data.get("startTime") and data.get("endTime") and data["startTime"] == data["endTime"]:
        return False, "Start and end time cannot be the same"
    return True, ""


def unassigned(students: List[dict], roster: List[dict]) -> List[dict]:
    """Candidates for the roster: everyone not already in it."""
    taken = {s.get("id") for s in roster}
    return [s for s in students if s.get("id") not in taken]


def _batch_dialog(ctx: AppContext, batch: Optional[dict], courses: Dict[str, str], branches: Dict[str, str]):
    @st.dialog("Edit batch" if batch else "New batch", width="large")
    def _dialog():
        src = batch or {}
        with st.form("batch_form"):
            c1, c2 = st.columns(2)
            name = c1.text_input("Name *", value=src.get("name") or "")
            code = c2.text_input("Code *", value=src.get("code") or "")
            course = select_id("Course *", courses, key="bt_course", current=src.get("courseId"))
            branch = select_id("Branch *", branches, key="bt_branch", current=src.get("branchId"))
            start = c1.text_input("Start time", value=src.get("startTime") or "", placeholder="10:00 AM")
            end = c2.text_input("End time", value=src.get("endTime") or "", placeholder="01:00 PM")
            if st.form_submit_button("Save", type="primary"):
                data = {"name": name.strip(), "code": code.strip(), "courseId": course, "branchId": branch,
                        "startTime": start.strip() or None, "endTime": end.strip() or None}
                ok, msg = validate_batch(data)
                if not ok:
                    st.error(msg)
                    return
                if batch:
                    call = lambda: ctx.api.batches.update(batch["id"], data)
                else:
                    call = lambda: ctx.api.batches.create(data)
                if run_action(call, "Batch updated" if batch else "Batch created"):
                    st.rerun()

    _dialog()


def _roster(ctx: AppContext, batch: dict, can_edit: bool):
    detail = fetch_data(ctx.api.batches.get, batch["id"]) or {}
    detail = detail.get("batch") or detail or batch
    roster = detail.get("students") or []

    st.markdown(f"#### Students in {batch.get('name')} ({len(roster)})")
    if not roster:
        st.caption("No students assigned yet.")
    for s in roster:
        c1, c2 = st.columns([0.8, 0.2])
        c1.write(f"{person_name(s)} · `{s.get('enrollmentNumber') or '-'}`")
        if can_edit and c2.button("Remove", key=f"bt_rm_{batch['id']}_{s['id']}"):
            if run_action(lambda: ctx.api.batches.remove_student(batch["id"], s["id"]), "Student removed from batch"):
                st.rerun()

    if not can_edit:
        return
    pool = unassigned(load_rows(ctx.api.students.list, {"branchId": batch.get("branchId"), "limit": 200}), roster)
    labels = {s["id"]: f"{person_name(s)} ({s.get('enrollmentNumber') or '-'})" for s in pool}
    picked = st.multiselect("Assign students", list(labels), format_func=labels.get, key=f"bt_pick_{batch['id']}")
    if st.button("Assign selected", disabled=not picked, key=f"bt_assign_{batch['id']}"):
        if run_action(lambda: ctx.api.batches.assign_students(batch["id"], picked),
                      f"{len(picked)} student(s) assigned"):
            st.rerun()


def render(ctx: AppContext):
    page_header("🗂️ Batches", "Timings, trainers and student rosters")
    can_edit = ctx.role() in STAFF

    search = st.text_input("Search", placeholder="Batch name or code", key="bt_search")
    rows = load_rows(ctx.api.batches.list, {"search": search.strip()})
    courses = options(load_rows(ctx.api.courses.list)) if can_edit else {}
    branches = options(load_rows(ctx.api.branches.list)) if can_edit else {}

    if can_edit and st.button("➕ New Batch", type="primary"):
        _batch_dialog(ctx, None, courses, branches)

    render_table(rows, {
        "Code": "code",
        "Name": "name",
        "Course": "course.name",
        "Branch": "branch.name",
        "Timing": lambda b: f"{b.get('startTime') or 'TBD'} - {b.get('endTime') or 'TBD'}",
        "Trainer": lambda b: person_name(b.get("trainer")) or "Not Assigned",
        "Students": lambda b: (b.get("_count") or {}).get("students", len(b.get("students") or [])),
    }, empty="No batches found.")

    row = pick_row(rows, lambda b: f"{b.get('code') or ''} · {b.get('name', '')}", key="bt_pick")
    if row is None:
        return
    if can_edit:
        c1, c2 = st.columns(2)
        if c1.button("✏️ Edit", use_container_width=True):
            _batch_dialog(ctx, row, courses, branches)
        if c2.button("🗑️ Delete", use_container_width=True):
            confirm_delete("batch", row.get("name", ""), lambda: ctx.api.batches.delete(row["id"]),
                           key=f"bt_del_{row['id']}")
    _roster(ctx, row, can_edit)
