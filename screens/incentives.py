# screens/incentives.py
from __future__ import annotations
import datetime
from typing import Any, Dict, List

import streamlit as st

from core.context import AppContext
from core.derived import format_money, paid_percentage, to_number
from core.models import IncentiveType
from core.ui import load_rows, page_header, person_name, pick_row, render_table, run_action, select_id

TYPES = [t.value for t in IncentiveType]


def incentive_totals(rows: List[dict]) -> Dict[str, Any]:
    total = sum(to_number(r.get("amount")) for r in rows)
    paid = sum(to_number(r.get("amount")) for r in rows if r.get("isPaid"))
    return {
        "total": total,
        "paid": paid,
        "pending": total - paid,
        "disbursed_pct": paid_percentage(total, paid),
        "remaining_pct": paid_percentage(total, total - paid),
    }


def by_trainer(rows: List[dict]) -> List[Dict[str, Any]]:
    """Per-trainer rollup of the incentive list."""
    out: Dict[str, Dict[str, Any]] = {}
    for r in rows:
        tid = r.get("trainerId")
        if not tid:
            continue
        e = out.setdefault(tid, {"trainer": person_name(r.get("trainer")) or "Unknown Trainer",
                                 "placements": 0, "total": 0.0, "paid": 0.0})
        amount = to_number(r.get("amount"))
        e["total"] += amount
        if r.get("isPaid"):
            e["paid"] += amount
        if r.get("type") == IncentiveType.PLACEMENT.value:
            e["placements"] += 1
    for e in out.values():
        e["pending"] = e["total"] - e["paid"]
    return list(out.values())


def _allocate_dialog(ctx: AppContext):
    @st.dialog("Allocate incentive")
    def _dialog():
        trainers = load_rows(ctx.api.trainers.list, {"limit": 100, "isActive": True})
        by_id = {t["id"]: t for t in trainers if t.get("id")}
        today = datetime.date.today()
        with st.form("incentive_form"):
            trainer_id = select_id("Trainer *", {k: person_name(v) for k, v in by_id.items()}, key="inc_trainer")
            amount = st.number_input("Amount *", min_value=0.0, step=100.0)
            kind = st.selectbox("Type", TYPES, index=TYPES.index(IncentiveType.PERFORMANCE.value))
            description = st.text_area("Description")
            c1, c2 = st.columns(2)
            month = c1.number_input("Month", min_value=1, max_value=12, value=today.month)
            year = c2.number_input("Year", min_value=2000, max_value=2100, value=today.year)
            if st.form_submit_button("Allocate", type="primary"):
                if not trainer_id or amount <= 0:
                    st.error("Trainer and a positive amount are required")
                    return
                payload = {
                    "userId": by_id[trainer_id].get("userId"),
                    "trainerId": trainer_id,
                    "amount": amount,
                    "type": kind,
                    "description": description.strip(),
                    "month": int(month),
                    "year": int(year),
                    "referenceType": "MANUAL_ALLOCATION",
                }
                if run_action(lambda: ctx.api.incentives.create(payload), "Incentive allocated"):
                    st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("🏅 Incentives", "Trainer and branch incentive tracking")

    f1, f2 = st.columns(2)
    paid_filter = f1.selectbox("Payment", [None, "true", "false"],
                               format_func=lambda v: {None: "All", "true": "Paid", "false": "Pending"}[v],
                               key="inc_paid")
    kind = f2.selectbox("Type", [None] + TYPES, format_func=lambda t: t or "All", key="inc_type")
    rows = load_rows(ctx.api.incentives.list, {"limit": 1000, "isPaid": paid_filter, "type": kind})

    t = incentive_totals(rows)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total Incentives", format_money(t["total"]))
    c2.metric("Disbursed", format_money(t["paid"]), f"{t['disbursed_pct']}%", delta_color="off")
    c3.metric("Pending", format_money(t["pending"]), f"{t['remaining_pct']}%", delta_color="off")

    if st.button("➕ Allocate Incentive", type="primary"):
        _allocate_dialog(ctx)

    st.markdown("#### Trainer-wise Incentives")
    render_table(by_trainer(rows), {
        "Trainer": "trainer",
        "Placement incentives": "placements",
        "Total": lambda e: format_money(e["total"]),
        "Paid": lambda e: format_money(e["paid"]),
        "Pending": lambda e: format_money(e["pending"]),
    }, empty="No trainer incentives yet.")

    st.markdown("#### All Incentives")
    render_table(rows, {
        "Recipient": lambda r: person_name(r.get("user")) or person_name(r.get("trainer")),
        "Type": "type",
        "Amount": lambda r: format_money(r.get("amount")),
        "Period": lambda r: f"{r.get('month') or '-'}/{r.get('year') or '-'}",
        "Status": lambda r: "Paid" if r.get("isPaid") else "Pending",
    }, empty="No incentives found.")

    pending = [r for r in rows if not r.get("isPaid")]
    row = pick_row(pending, lambda r: f"{person_name(r.get('user')) or person_name(r.get('trainer'))} · "
                                      f"{format_money(r.get('amount'))}", key="inc_pick")
    if row and st.button("💸 Mark as paid", type="primary"):
        if run_action(lambda: ctx.api.incentives.mark_paid(row["id"]), "Incentive marked as paid"):
            st.rerun()
