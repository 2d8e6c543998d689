# screens/profile.py
from __future__ import annotations
import logging
from typing import Any, Dict, Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.models import ROLE_LABELS, Role, parse_envelope
from core.storage import SessionStore
from core.ui import fetch_data, success
from core.validation import validate_password_change

logger = logging.getLogger(__name__)

EDITABLE = ("firstName", "lastName", "phone")


def save_profile(api: ApiClient, store: SessionStore, form: Dict[str, Any]) -> Tuple[bool, str]:
    """PUT the profile and overwrite the local user copy with the server's answer."""
    payload = {k: (form.get(k) or "").strip() for k in EDITABLE}
    if not payload["firstName"] or not payload["lastName"]:
        return False, "First and last name are required"
    try:
        env = parse_envelope(api.profile.update(payload))
    except ApiError as e:
        return False, e.message
    if env.success and isinstance(env.data, dict):
        current = store.get_user() or {}
        store.set_user({**current, **env.data})
    return True, "Profile updated successfully"


def refresh_user(api: ApiClient, store: SessionStore) -> Tuple[bool, str]:
    """Re-read the signed-in account from the server into the local user copy."""
    try:
        env = parse_envelope(api.auth.me())
    except ApiError as e:
        return False, e.message
    if not isinstance(env.data, dict) or not env.data.get("id"):
        return False, "Failed to get user"
    store.set_user({**(store.get_user() or {}), **env.data})
    logger.info("Refreshed account snapshot for %s", env.data.get("email"))
    return True, "Account details reloaded"


def change_password(api: ApiClient, current: str, new: str, confirm: str) -> Tuple[bool, str]:
    ok, msg = validate_password_change(current, new, confirm)
    if not ok:
        return ok, msg
    try:
        api.profile.change_password(current, new)
    except ApiError as e:
        return False, e.message
    return True, "Password changed successfully"


def render(ctx: AppContext):
    st.title("👤 Profile")

    user = ctx.store.get_user()
    if not user:
        st.error("User not found in session. Please log in again.")
        return

    profile = fetch_data(ctx.api.profile.get)
    if not isinstance(profile, dict):
        profile = user
    role = Role.parse(profile.get("role"))

    st.markdown("### Account")
    branch = profile.get("branch") or {}
    st.json({
        "name": f"{profile.get('firstName', '')} {profile.get('lastName', '')}".strip() or "—",
        "email": profile.get("email") or "—",
        "role": ROLE_LABELS.get(role, profile.get("role") or "—"),
        "branch": branch.get("name") or "—",
    })
    if st.button("Reload account from server"):
        ok, msg = refresh_user(ctx.api, ctx.store)
        if ok:
            success(msg)
            st.rerun()
        else:
            st.error(msg)

    st.markdown("### Edit details")
    with st.form("profile_form"):
        c1, c2 = st.columns(2)
        first = c1.text_input("First name", value=profile.get("firstName") or "")
        last = c2.text_input("Last name", value=profile.get("lastName") or "")
        phone = st.text_input("Phone", value=profile.get("phone") or "")
        save = st.form_submit_button("Save changes", type="primary")
    if save:
        ok, msg = save_profile(ctx.api, ctx.store, {"firstName": first, "lastName": last, "phone": phone})
        if ok:
            success(msg)
        else:
            st.error(msg)

    st.markdown("### Change password")
    with st.form("password_form", clear_on_submit=True):
        current = st.text_input("Current password", type="password")
        new = st.text_input("New password", type="password")
        confirm = st.text_input("Confirm new password", type="password")
        change = st.form_submit_button("Change password")
    if change:
        ok, msg = change_password(ctx.api, current, new, confirm)
        if ok:
            success(msg)
        else:
            st.error(msg)
