# screens/admissions.py
from __future__ import annotations
import datetime
from typing import Any, Dict, Optional, Tuple

import streamlit as st

from core.context import AppContext
from core.derived import fee_balance, format_money
from core.models import AdmissionStatus
from core.ui import (confirm_delete, fetch_data, iso, load_page, load_rows, options, page_caption,
                     page_header, pager, parse_date, person_name, pick_row, render_table, run_action, select_id)
from core.validation import EMAIL_RE, validate_required

STATUSES = [s.value for s in AdmissionStatus]
GENDERS = ["MALE", "FEMALE", "OTHER"]
REQUIRED = ("firstName", "lastName", "email", "phone", "courseId", "branchId", "feeAmount")


def validate_admission(data: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(data, REQUIRED)
    if not ok:
        return ok, msg
    if not EMAIL_RE.match(data["email"]):
        return False, "Invalid email format"
    if data["feeAmount"] < 0:
        return False, "Fee amount cannot be negative"
    return True, ""


def _admission_dialog(ctx: AppContext, adm: Optional[dict], courses: Dict[str, str], branches: Dict[str, str]):
    @st.dialog("Edit admission" if adm else "New admission", width="large")
    def _dialog():
        src = (fetch_data(ctx.api.admissions.get, adm["id"]) or adm) if adm else {}
        with st.form("admission_form"):
            c1, c2 = st.columns(2)
            first = c1.text_input("First name *", value=src.get("firstName") or "")
            last = c2.text_input("Last name *", value=src.get("lastName") or "")
            email = c1.text_input("Email *", value=src.get("email") or "")
            phone = c2.text_input("Phone *", value=src.get("phone") or "")
            dob = c1.date_input("Date of birth", value=parse_date(src.get("dateOfBirth")),
                                min_value=datetime.date(1950, 1, 1))
            gender = c2.selectbox("Gender", GENDERS,
                                  index=GENDERS.index(src["gender"]) if src.get("gender") in GENDERS else 0)
            address = st.text_area("Address", value=src.get("address") or "")
            branch = select_id("Branch *", branches, key="adm_branch", current=src.get("branchId"))
            course = select_id("Course *", courses, key="adm_course", current=src.get("courseId"))
            batch = st.text_input("Batch name", value=src.get("batchName") or "")
            fee = st.number_input("Fee amount *", min_value=0.0, step=500.0,
                                  value=float(src.get("feeAmount") or 0))
            if st.form_submit_button("Save", type="primary"):
                data = {
                    "firstName": first.strip(), "lastName": last.strip(), "email": email.strip(),
                    "phone": phone.strip(), "dateOfBirth": iso(dob), "gender": gender,
                    "address": address.strip(), "branchId": branch, "courseId": course,
                    "batchName": batch.strip() or None, "feeAmount": float(fee),
                }
                ok, msg = validate_admission(data)
                if not ok:
                    st.error(msg)
                    return
                if adm:
                    call = lambda: ctx.api.admissions.update(adm["id"], data)
                else:
                    call = lambda: ctx.api.admissions.create(data)
                if run_action(call, "Admission updated" if adm else "Admission created"):
                    st.rerun()

    _dialog()


def _reject_dialog(ctx: AppContext, adm: dict):
    @st.dialog("Reject admission")
    def _dialog():
        reason = st.text_area("Reason")
        if st.button("Reject", type="primary"):
            if run_action(lambda: ctx.api.admissions.reject(adm["id"], reason.strip()), "Admission rejected"):
                st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("📋 Admissions", "Manage student admissions and enrollment")

    courses = options(load_rows(ctx.api.courses.list))
    branches = options(load_rows(ctx.api.branches.list))

    f1, f2, f3, f4, f5 = st.columns([0.15, 0.2, 0.2, 0.3, 0.15])
    status = f1.selectbox("Status", [None] + STATUSES, format_func=lambda s: s or "All", key="adm_status")
    with f2:
        branch = select_id("Branch", branches, key="adm_f_branch", allow_all=True)
    with f3:
        course = select_id("Course", courses, key="adm_f_course", allow_all=True)
    search = f4.text_input("Search", placeholder="Name, email or admission no.", key="adm_search")
    with f5:
        page = pager("adm")

    params: Dict[str, Any] = dict(page, status=status, branchId=branch, courseId=course, search=search.strip())
    rows, meta = load_page(ctx.api.admissions.list, params)

    if st.button("➕ New Admission", type="primary"):
        _admission_dialog(ctx, None, courses, branches)

    render_table(rows, {
        "Admission No.": "admissionNumber",
        "Student": person_name,
        "Course": "course.name",
        "Branch": "branch.name",
        "Fee": lambda r: format_money(r.get("feeAmount")),
        "Paid": lambda r: format_money(r.get("feePaid")),
        "Balance": lambda r: format_money(fee_balance(r.get("feeAmount"), r.get("feePaid"))),
        "Status": "status",
        "Date": lambda r: str(r.get("admissionDate") or r.get("createdAt") or "")[:10],
    }, empty="No admissions match these filters.")
    page_caption(meta)

    row = pick_row(rows, lambda r: f"{r.get('admissionNumber') or ''} · {person_name(r)}", key="adm_pick")
    if row is None:
        return
    pending = row.get("status") == AdmissionStatus.PENDING.value
    c1, c2, c3, c4 = st.columns(4)
    if c1.button("✏️ Edit", use_container_width=True):
        _admission_dialog(ctx, row, courses, branches)
    if c2.button("✅ Approve", use_container_width=True, disabled=not pending):
        if run_action(lambda: ctx.api.admissions.approve(row["id"]), "Admission approved"):
            st.rerun()
    if c3.button("⛔ Reject", use_container_width=True, disabled=not pending):
        _reject_dialog(ctx, row)
    if c4.button("🗑️ Delete", use_container_width=True):
        confirm_delete("admission", person_name(row), lambda: ctx.api.admissions.delete(row["id"]),
                       key=f"adm_del_{row['id']}")
