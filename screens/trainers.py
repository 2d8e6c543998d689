# screens/trainers.py
from __future__ import annotations
import datetime
import re
from typing import Any, Dict, Optional, Tuple

import streamlit as st

from core.context import AppContext
from core.models import AttendanceStatus
from core.ui import (confirm_delete, fetch_data, load_rows, options, page_header, person_name, pick_row,
                     render_table, run_action, select_id)
from core.validation import EMAIL_RE, validate_required

TIME_RE = re.compile(r"^(\d{1,2})(?::(\d{2}))?$")
ATTENDANCE = [AttendanceStatus.PRESENT.value, AttendanceStatus.ABSENT.value, AttendanceStatus.LATE.value,
              "HALF_DAY", "LEAVE"]


def parse_clock(value: str) -> Optional[str]:
    """'5' -> '05:00', '17:30' -> '17:30'; None when blank or out of range."""
    m = TIME_RE.match((value or "").strip())
    if not m:
        return None
    hour, minute = int(m.group(1)), int(m.group(2) or 0)
    if hour > 23 or minute > 59:
        return None
    return f"{hour:02d}:{minute:02d}"


def attendance_payload(trainer_id: str, day: datetime.date, status: str, remarks: str,
                       in_time: str = "", out_time: str = "") -> Tuple[Optional[Dict[str, Any]], str]:
    today = day.isoformat()
    fmt_in, fmt_out = parse_clock(in_time), parse_clock(out_time)
    if in_time.strip() and not fmt_in:
        return None, "Invalid In Time. Please use format like '9' or '09:30'."
    if out_time.strip() and not fmt_out:
        return None, "Invalid Out Time. Please use format like '5' or '17:30'."
    return {
        "trainerId": trainer_id,
        "date": today,
        "status": status,
        "remarks": remarks.strip(),
        "inTime": f"{today}T{fmt_in}:00" if fmt_in else None,
        "outTime": f"{today}T{fmt_out}:00" if fmt_out else None,
    }, ""


def _trainer_dialog(ctx: AppContext, trainer: Optional[dict], branches: Dict[str, str]):
    @st.dialog("Edit trainer" if trainer else "New trainer", width="large")
    def _dialog():
        src = (fetch_data(ctx.api.trainers.get, trainer["id"]) or trainer) if trainer else {}
        user = src.get("user") or {}
        with st.form("trainer_form"):
            c1, c2 = st.columns(2)
            data = {
                "firstName": c1.text_input("First name *", value=user.get("firstName") or "").strip(),
                "lastName": c2.text_input("Last name *", value=user.get("lastName") or "").strip(),
                "email": c1.text_input("Email *", value=user.get("email") or "", disabled=bool(trainer)).strip(),
                "phone": c2.text_input("Phone", value=user.get("phone") or "").strip(),
                "employeeId": c1.text_input("Employee ID", value=src.get("employeeId") or "").strip(),
                "specialization": c2.text_input("Specialization *", value=src.get("specialization") or "").strip(),
                "experience": c1.number_input("Experience (years)", min_value=0, value=int(src.get("experience") or 0)),
                "qualification": c2.text_input("Qualification", value=src.get("qualification") or "").strip(),
            }
            data["branchId"] = select_id("Branch *", branches, key="tr_branch", current=src.get("branchId"))
            data["isActive"] = st.checkbox("Active", value=src.get("isActive", True))
            if st.form_submit_button("Save", type="primary"):
                ok, msg = validate_required(data, ("firstName", "lastName", "email", "specialization", "branchId"))
                if ok and not EMAIL_RE.match(data["email"]):
                    ok, msg = False, "Invalid email format"
                if not ok:
                    st.error(msg)
                    return
                if trainer:
                    call = lambda: ctx.api.trainers.update(trainer["id"], data)
                else:
                    call = lambda: ctx.api.trainers.create(data)
                if run_action(call, "Trainer updated" if trainer else "Trainer created"):
                    st.rerun()

    _dialog()


def _attendance_dialog(ctx: AppContext, trainer: dict):
    @st.dialog(f"Mark attendance: {person_name(trainer)}")
    def _dialog():
        with st.form("trainer_att_form"):
            day = st.date_input("Date", value=datetime.date.today())
            status = st.selectbox("Status", ATTENDANCE)
            c1, c2 = st.columns(2)
            in_time = c1.text_input("In time", placeholder="9 or 09:30")
            out_time = c2.text_input("Out time", placeholder="17 or 17:30")
            remarks = st.text_area("Remarks")
            if st.form_submit_button("Save", type="primary"):
                payload, err = attendance_payload(trainer["id"], day, status, remarks, in_time, out_time)
                if payload is None:
                    st.error(err)
                    return
                if run_action(lambda: ctx.api.trainer_attendance.mark(payload),
                              f"Attendance marked for {person_name(trainer)}"):
                    st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("👨‍🏫 Trainers", "View and manage trainer profiles")

    branches = options(load_rows(ctx.api.branches.list))
    f1, f2 = st.columns([0.3, 0.7])
    with f1:
        branch = select_id("Branch", branches, key="tr_f_branch", allow_all=True)
    search = f2.text_input("Search", placeholder="Name, email or specialization", key="tr_search")
    rows = load_rows(ctx.api.trainers.list, {"branchId": branch, "search": search.strip()})

    if st.button("➕ New Trainer", type="primary"):
        _trainer_dialog(ctx, None, branches)

    render_table(rows, {
        "Employee ID": "employeeId",
        "Trainer": person_name,
        "Email": "user.email",
        "Specialization": "specialization",
        "Branch": "branch.name",
        "Batches": lambda t: len(t.get("batches") or []),
        "Status": lambda t: "Active" if t.get("isActive", True) else "Inactive",
    }, empty="No trainers found.")

    row = pick_row(rows, person_name, key="tr_pick")
    if row is None:
        return
    c1, c2, c3 = st.columns(3)
    if c1.button("✏️ Edit", use_container_width=True):
        _trainer_dialog(ctx, row, branches)
    if c2.button("🕘 Mark attendance", use_container_width=True):
        _attendance_dialog(ctx, row)
    if c3.button("🗑️ Delete", use_container_width=True):
        confirm_delete("trainer", person_name(row), lambda: ctx.api.trainers.delete(row["id"]),
                       key=f"tr_del_{row['id']}")

    st.markdown("#### Recent attendance")
    render_table(load_rows(ctx.api.trainer_attendance.history, {"trainerId": row["id"]}), {
        "Date": lambda a: str(a.get("date") or "")[:10],
        "Status": "status",
        "In": lambda a: str(a.get("inTime") or "")[11:16],
        "Out": lambda a: str(a.get("outTime") or "")[11:16],
        "Remarks": "remarks",
    }, empty="No attendance recorded for this trainer.")
