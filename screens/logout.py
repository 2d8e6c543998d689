# screens/logout.py
from __future__ import annotations
import streamlit as st

from core.context import AppContext
from core.navigation import navigate


def render(ctx: AppContext):
    st.title("🚪 Logout")

    if ctx.store.get_token() or ctx.store.get_user() is not None:
        ctx.store.clear()

    st.success("You have been logged out successfully.")
    if st.button("Go to Login Page", type="primary"):
        navigate("/login")
