# screens/login.py
from __future__ import annotations
import logging
from typing import Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.models import Session, parse_envelope
from core.navigation import navigate
from core.storage import SessionStore

logger = logging.getLogger(__name__)


def sign_in(api: ApiClient, store: SessionStore, email: str, password: str) -> Tuple[bool, str]:
    """Exchange credentials for a token and persist the session."""
    email = (email or "").strip().lower()
    if not email or not password:
        return False, "Email and password are required"
    try:
        env = parse_envelope(api.auth.login(email, password))
    except ApiError as e:
        return False, e.message
    data = env.data if isinstance(env.data, dict) else {}
    try:
        session = Session.model_validate({"token": data.get("token"), "user": data.get("user")})
    except ValueError:
        logger.warning("Login response for %s had no usable token/user", email)
        return False, env.message or "Login failed"
    store.set_session(session.token, data["user"])
    logger.info("Signed in %s as %s", email, session.user.role.value)
    return True, ""


def render(ctx: AppContext):
    flash = st.session_state.pop("flash", None)

    if ctx.store.has_session():
        navigate("/")

    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        st.title("🔐 Sign in")
        st.caption(ctx.settings.app.name)
        if flash:
            st.info(flash)

        with st.form("login_form"):
            email = st.text_input("Email", placeholder="you@institute.com")
            password = st.text_input("Password", type="password")
            submitted = st.form_submit_button("Login", type="primary", use_container_width=True)

        if submitted:
            with st.spinner("Signing in..."):
                ok, msg = sign_in(ctx.api, ctx.store, email, password)
            if ok:
                navigate("/")
            else:
                st.error(msg)

        st.markdown("---")
        if st.button("Interested in a course? Send an enquiry", use_container_width=True):
            navigate("/enquiry")
