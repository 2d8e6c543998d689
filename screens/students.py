# screens/students.py
from __future__ import annotations
import datetime
from typing import Any, Dict, Optional

import streamlit as st

from core.context import AppContext
from core.derived import fee_balance, format_money, to_number
from core.models import LeadSource
from core.nav_registry import STAFF
from core.ui import (badge, confirm_delete, iso, load_page, load_rows, options, page_caption, page_header,
                     pager, parse_date, person_name, pick_row, render_table, run_action, select_id)
from core.validation import validate_student

SOFTWARE_OPTIONS = [
    "Illustrator", "Photoshop", "Coreldraw", "Premiere Pro", "After Effects",
    "Visual Studio Code", "Github", "Figma", "Adobe XD", "Balsamiq",
    "Invision", "Gemini CAD", "Tally Erp9",
]
GENDERS = ["MALE", "FEMALE", "OTHER"]
QUALIFICATIONS = ["10TH", "12TH", "DIPLOMA", "BACHELORS", "MASTERS", "OTHER"]
PAYMENT_PLANS = ["SINGLE", "INSTALLMENT"]
LEAD_SOURCES = [s.value for s in LeadSource]


def fee_status(student: Dict[str, Any]) -> str:
    adm = student.get("admission") or {}
    return "Pending" if fee_balance(adm.get("feeAmount"), adm.get("feePaid")) > 0 else "Paid"


def portfolio_status(student: Dict[str, Any]) -> str:
    portfolios = student.get("portfolios") or []
    if any(p.get("isVerified") for p in portfolios):
        return "Completed"
    return "In Progress" if portfolios else "Not Started"


def placement_status(student: Dict[str, Any]) -> str:
    placements = student.get("placements") or []
    if placements:
        return placements[0].get("status") or "Not Eligible"
    return "Not Eligible"


def student_payload(form: Dict[str, Any], editing: bool) -> Dict[str, Any]:
    """Request body; the fee fields only travel on create."""
    data = {k: form.get(k) for k in (
        "firstName", "lastName", "phone", "dateOfJoining", "dateOfBirth", "gender", "parentPhone",
        "address", "courseId", "branchId", "qualification", "leadSource", "aadhaarNumber", "panNumber",
    )}
    data["selectedSoftware"] = ", ".join(form.get("selectedSoftware") or [])
    if not editing:
        data["email"] = form.get("email")
        data["feeAmount"] = to_number(form.get("totalFee"))
        data["feePaid"] = to_number(form.get("initialPaid"))
        data["paymentPlan"] = form.get("paymentPlan")
    return data


def _pick(label: str, choices, current, key: str):
    return st.selectbox(label, choices, index=choices.index(current) if current in choices else None, key=key)


def _student_dialog(ctx: AppContext, student: Optional[dict], courses: Dict[str, str], branches: Dict[str, str]):
    editing = student is not None

    @st.dialog("Edit student" if editing else "New student", width="large")
    def _dialog():
        src = student or {}
        user = src.get("user") or {}
        adm = src.get("admission") or {}
        with st.form("student_form"):
            st.markdown("##### Personal information")
            c1, c2 = st.columns(2)
            form: Dict[str, Any] = {
                "firstName": c1.text_input("First name *", value=user.get("firstName") or ""),
                "lastName": c2.text_input("Last name *", value=user.get("lastName") or ""),
                "email": c1.text_input("Email *", value=user.get("email") or "", disabled=editing),
                "phone": c2.text_input("Phone *", value=user.get("phone") or ""),
                "dateOfJoining": iso(c1.date_input("Date of joining *", value=parse_date(src.get("dateOfJoining")))),
                "dateOfBirth": iso(c2.date_input("Date of birth *", value=parse_date(src.get("dateOfBirth")),
                                                 min_value=datetime.date(1950, 1, 1))),
                "gender": _pick("Gender *", GENDERS, src.get("gender"), "st_gender"),
                "parentPhone": st.text_input("Parent phone *", value=src.get("parentPhone") or ""),
                "address": st.text_area("Address *", value=src.get("address") or ""),
            }
            st.markdown("##### Academic information")
            form["courseId"] = select_id("Course *", courses, key="st_course", current=src.get("courseId"))
            form["branchId"] = select_id("Branch *", branches, key="st_branch", current=src.get("branchId"))
            saved = [s for s in (src.get("selectedSoftware") or "").split(", ") if s in SOFTWARE_OPTIONS]
            form["selectedSoftware"] = st.multiselect("Software *", SOFTWARE_OPTIONS, default=saved)
            form["qualification"] = _pick("Qualification *", QUALIFICATIONS, src.get("qualification"), "st_qual")
            form["leadSource"] = _pick("Lead source *", LEAD_SOURCES, src.get("leadSource"), "st_src")

            st.markdown("##### Identity & compliance")
            c1, c2 = st.columns(2)
            form["aadhaarNumber"] = c1.text_input("Aadhaar number *", value=src.get("aadhaarNumber") or "",
                                                  max_chars=12).strip()
            form["panNumber"] = c2.text_input("PAN number", value=src.get("panNumber") or "",
                                              max_chars=10).strip().upper()
            photo = st.file_uploader("Photo *" if not editing else "Photo", type=["png", "jpg", "jpeg"])

            if not editing:
                st.markdown("##### Fee information")
                c1, c2, c3 = st.columns(3)
                form["totalFee"] = c1.number_input("Total fee *", min_value=0.0, step=500.0, value=None)
                form["initialPaid"] = c2.number_input("Initial paid *", min_value=0.0, step=500.0, value=None)
                form["paymentPlan"] = c3.selectbox("Payment plan *", PAYMENT_PLANS, index=None)
            else:
                st.caption(f"Fee {format_money(adm.get('feeAmount'))} · paid {format_money(adm.get('feePaid'))} · "
                           f"balance {format_money(fee_balance(adm.get('feeAmount'), adm.get('feePaid')))}")

            if st.form_submit_button("Save", type="primary"):
                ok, msg = validate_student(form, editing=editing, has_photo=photo is not None)
                if not ok:
                    st.error(msg)
                    return
                data = student_payload(form, editing)
                if editing:
                    call = lambda: ctx.api.students.update(student["id"], data)
                else:
                    call = lambda: ctx.api.students.create(data)
                if run_action(call, "Student updated successfully" if editing else "Student created successfully"):
                    st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("🎓 Students", "Enrolled students, fees and outcomes")
    can_edit = ctx.role() in STAFF

    courses = options(load_rows(ctx.api.courses.list))
    branches = options(load_rows(ctx.api.branches.list)) if can_edit else {}

    f1, f2, f3, f4 = st.columns([0.2, 0.2, 0.4, 0.2])
    with f1:
        course = select_id("Course", courses, key="st_f_course", allow_all=True)
    with f2:
        branch = select_id("Branch", branches, key="st_f_branch", allow_all=True) if can_edit else None
    search = f3.text_input("Search", placeholder="Name, email or enrollment no.", key="st_search")
    with f4:
        page = pager("st")

    rows, meta = load_page(ctx.api.students.list, dict(page, courseId=course, branchId=branch, search=search.strip()))

    if can_edit and st.button("➕ New Student", type="primary"):
        _student_dialog(ctx, None, courses, branches)

    render_table(rows, {
        "ID": lambda r: r.get("enrollmentNumber") or (r.get("admission") or {}).get("admissionNumber") or "N/A",
        "Name": person_name,
        "Phone": lambda r: (r.get("user") or {}).get("phone") or "N/A",
        "Course": "course.name",
        "Branch": "branch.name",
        "Sem": "currentSemester",
        "Fees": fee_status,
        "Portfolio": portfolio_status,
        "Placement": placement_status,
    }, empty="No students match these filters.")
    page_caption(meta)

    row = pick_row(rows, lambda r: f"{r.get('enrollmentNumber') or ''} · {person_name(r)}", key="st_pick")
    if row is None:
        return
    st.markdown(" ".join([badge(fee_status(row), "success" if fee_status(row) == "Paid" else "warning"),
                          badge(portfolio_status(row)), badge(placement_status(row))]))
    if not can_edit:
        return
    c1, c2 = st.columns(2)
    if c1.button("✏️ Edit", use_container_width=True):
        _student_dialog(ctx, row, courses, branches)
    if c2.button("🗑️ Delete", use_container_width=True):
        confirm_delete("student", person_name(row), lambda: ctx.api.students.delete(row["id"]),
                       key=f"st_del_{row['id']}")
