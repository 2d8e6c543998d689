# screens/setup.py
from __future__ import annotations
import logging
from typing import Any, Dict, Tuple

import streamlit as st

from core.api import ApiClient, ApiError
from core.context import AppContext
from core.navigation import navigate
from core.validation import validate_setup

logger = logging.getLogger(__name__)


def initialize(api: ApiClient, form: Dict[str, Any]) -> Tuple[bool, str]:
    """Create the first administrator. The confirmation field never leaves the client."""
    ok, msg = validate_setup(form)
    if not ok:
        return ok, msg
    payload = {
        "firstName": form["firstName"].strip(),
        "lastName": form["lastName"].strip(),
        "email": form["email"].strip().lower(),
        "password": form["password"],
    }
    try:
        api.setup.initialize(payload)
    except ApiError as e:
        return False, e.message
    logger.info("Initial administrator created: %s", payload["email"])
    return True, "Setup complete. Please sign in with your new administrator account."


def render(ctx: AppContext):
    _, mid, _ = st.columns([1, 2, 1])
    with mid:
        st.title("🛠️ First-time setup")
        st.caption("Create the administrator account for this institute.")

        with st.form("setup_form"):
            c1, c2 = st.columns(2)
            first = c1.text_input("First name *")
            last = c2.text_input("Last name *")
            email = st.text_input("Email *")
            password = st.text_input("Password *", type="password", help="At least 6 characters")
            confirm = st.text_input("Confirm password *", type="password")
            submitted = st.form_submit_button("Create administrator", type="primary", use_container_width=True)

        if submitted:
            with st.spinner("Initializing..."):
                ok, msg = initialize(ctx.api, {
                    "firstName": first, "lastName": last, "email": email,
                    "password": password, "confirmPassword": confirm,
                })
            if ok:
                st.session_state["flash"] = msg
                navigate("/login")
            else:
                st.error(msg)
