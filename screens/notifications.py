# screens/notifications.py
from __future__ import annotations
from typing import List

import streamlit as st

from core.context import AppContext
from core.nav_registry import STAFF
from core.ui import load_rows, page_header, render_table, run_action


def unread_count(rows: List[dict]) -> int:
    return sum(1 for n in rows if not n.get("isRead"))


def _inbox(ctx: AppContext):
    rows = load_rows(ctx.api.notifications.list, {"limit": 50})
    unread = unread_count(rows)
    c1, c2 = st.columns([0.7, 0.3])
    c1.caption(f"{unread} unread")
    if c2.button("Mark all as read", disabled=unread == 0, use_container_width=True):
        if run_action(lambda: ctx.api.notifications.mark_as_read(), "All notifications marked as read"):
            st.rerun()
    if not rows:
        st.info("You're all caught up.")
    for n in rows:
        with st.container(border=True):
            a, b = st.columns([0.85, 0.15])
            dot = "🔵 " if not n.get("isRead") else ""
            a.markdown(f"{dot}**{n.get('title', '')}**  \n{n.get('message', '')}")
            a.caption(str(n.get("createdAt") or "")[:16].replace("T", " "))
            if not n.get("isRead") and b.button("Read", key=f"nt_read_{n['id']}"):
                if run_action(lambda: ctx.api.notifications.mark_as_read(n["id"]), "Marked as read"):
                    st.rerun()


def render(ctx: AppContext):
    page_header("🔔 Notifications & WhatsApp", "View notifications and messaging activity")
    if ctx.role() not in STAFF:
        _inbox(ctx)
        return
    tabs = st.tabs(["Notifications", "WhatsApp Logs"])
    with tabs[0]:
        _inbox(ctx)
    with tabs[1]:
        render_table(load_rows(ctx.api.notifications.whatsapp_logs, {"limit": 50}), {
            "Recipient": "recipient",
            "Template": "template",
            "Status": lambda w: str(w.get("status") or ""),
            "Sent At": lambda w: str(w.get("sentAt") or w.get("createdAt") or "")[:16].replace("T", " "),
        }, empty="No WhatsApp messages sent yet.")
