# screens/users.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.models import ROLE_LABELS, Role, parse_envelope
from core.nav_registry import LEADERSHIP
from core.ui import (confirm_delete, load_rows, options, page_header, person_name, pick_row, render_table,
                     run_action, select_id, success)
from core.validation import MIN_PASSWORD, validate_user

logger = logging.getLogger(__name__)

TEMP_PASSWORD_KEY = "users_temp_password"


def creatable_roles(actor: Optional[Role]) -> List[Role]:
    """Roles the signed-in user may hand out."""
    if actor in LEADERSHIP:
        return [Role.CHANNEL_PARTNER, Role.TRAINER, Role.STUDENT]
    if actor == Role.CHANNEL_PARTNER:
        return [Role.TRAINER, Role.STUDENT]
    return []


def create_user(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str, Optional[str]]:
    """Returns (ok, message, temporary password issued by the server)."""
    data = {k: (form.get(k) or "").strip() if isinstance(form.get(k), str) else form.get(k)
            for k in ("firstName", "lastName", "email", "phone", "role", "branchId")}
    ok, msg = validate_user(data)
    if not ok:
        return False, msg, None
    data["email"] = data["email"].lower()
    try:
        env = parse_envelope(api.users.create(data))
    except ApiError as e:
        return False, e.message, None
    temp = env.data.get("tempPassword") if isinstance(env.data, dict) else None
    logger.info("Created %s account %s", data["role"], data["email"])
    return True, "User created successfully", temp


def _create_form(ctx: AppContext, branches: Dict[str, str]):
    roles = creatable_roles(ctx.role())
    with st.form("user_create", clear_on_submit=True):
        c1, c2 = st.columns(2)
        form = {
            "firstName": c1.text_input("First name *"),
            "lastName": c2.text_input("Last name *"),
            "email": c1.text_input("Email *"),
            "phone": c2.text_input("Phone"),
            "role": c1.selectbox("Role *", [r.value for r in roles], index=None,
                                 format_func=lambda v: ROLE_LABELS[Role(v)]),
        }
        with c2:
            form["branchId"] = select_id("Branch", branches, key="usr_branch", allow_all=True)
        if st.form_submit_button("Create user", type="primary"):
            ok, msg, temp = create_user(ctx.api, form)
            if ok:
                st.session_state[TEMP_PASSWORD_KEY] = temp
                success(msg)
            else:
                st.error(msg)


def _edit_dialog(ctx: AppContext, user: dict, branches: Dict[str, str]):
    @st.dialog(f"Edit {person_name(user)}")
    def _dialog():
        with st.form("user_edit"):
            c1, c2 = st.columns(2)
            data = {
                "firstName": c1.text_input("First name", value=user.get("firstName") or "").strip(),
                "lastName": c2.text_input("Last name", value=user.get("lastName") or "").strip(),
                "phone": c1.text_input("Phone", value=user.get("phone") or "").strip(),
                "isActive": c2.checkbox("Active", value=user.get("isActive", True)),
            }
            data["branchId"] = select_id("Branch", branches, key="usr_edit_branch", current=user.get("branchId"),
                                         allow_all=True)
            if st.form_submit_button("Save", type="primary"):
                if run_action(lambda: ctx.api.profile.admin_update_user(user["id"], data), "User updated"):
                    st.rerun()

    _dialog()


def _reset_dialog(ctx: AppContext, user: dict):
    @st.dialog(f"Reset password: {person_name(user)}")
    def _dialog():
        new = st.text_input("New password", type="password")
        if st.button("Reset", type="primary"):
            if len(new) < MIN_PASSWORD:
                st.error(f"Password must be at least {MIN_PASSWORD} characters long")
            elif run_action(lambda: ctx.api.profile.admin_reset_password(user["id"], new), "Password reset"):
                st.rerun()

    _dialog()


def render(ctx: AppContext):
    page_header("👥 User Management", "Create accounts and manage access")

    branches = options(load_rows(ctx.api.branches.list))

    temp = st.session_state.get(TEMP_PASSWORD_KEY)
    if temp:
        st.success("Share this temporary password with the new user. It will not be shown again.")
        st.code(temp, language=None)
        if st.button("Done"):
            st.session_state.pop(TEMP_PASSWORD_KEY, None)
            st.rerun()

    with st.expander("➕ Create user", expanded=False):
        _create_form(ctx, branches)

    f1, f2 = st.columns([0.3, 0.7])
    role = f1.selectbox("Role", [None] + [r.value for r in Role],
                        format_func=lambda v: "All" if v is None else ROLE_LABELS[Role(v)], key="usr_role")
    search = f2.text_input("Search", placeholder="Name or email", key="usr_search")
    rows = load_rows(ctx.api.users.list, {"role": role, "search": search.strip()})

    render_table(rows, {
        "Name": person_name,
        "Email": "email",
        "Phone": "phone",
        "Role": lambda u: ROLE_LABELS.get(Role.parse(u.get("role")), u.get("role")),
        "Branch": "branch.name",
        "Active": lambda u: "Yes" if u.get("isActive", True) else "No",
    }, empty="No users found.")

    row = pick_row(rows, lambda u: f"{person_name(u)} · {u.get('email', '')}", key="usr_pick")
    if row is None:
        return
    me = ctx.store.get_user() or {}
    c1, c2, c3 = st.columns(3)
    if c1.button("✏️ Edit", use_container_width=True):
        _edit_dialog(ctx, row, branches)
    if c2.button("🔑 Reset password", use_container_width=True):
        _reset_dialog(ctx, row)
    if c3.button("🗑️ Delete", use_container_width=True, disabled=row.get("id") == me.get("id")):
        confirm_delete("user", person_name(row), lambda: ctx.api.users.delete(row["id"]), key=f"usr_del_{row['id']}")
