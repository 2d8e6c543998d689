# app.py
from __future__ import annotations
import logging

import streamlit as st

from core.context import AppContext
from core.guards import SetupGuard, auth_redirect
from core.models import ROLE_LABELS
from core.nav_registry import PUBLIC_PATHS, is_active, load_screen, screen_for, visible_sections
from core.navigation import EXPIRED_KEY, REFRESH_KEY, current_path, get_context, navigate
from core.settings import configure_logging, load_settings
from core.ui import render_error_panel, render_footer

logger = logging.getLogger(__name__)

HIDE_SIDEBAR = """
    <style>
        section[data-testid="stSidebar"] {
            display: none;
        }
    </style>
"""


def _render_sidebar(ctx: AppContext, path: str):
    session = ctx.session()
    role = session.user.role if session else None
    with st.sidebar:
        st.markdown(f"### {ctx.settings.app.name}")
        for section in visible_sections(role):
            st.caption(section.label.upper())
            for item in section.items:
                active = is_active(item, path)
                if st.button(f"{item.icon} {item.title}", key=f"nav_{item.path}",
                             type="primary" if active else "secondary", use_container_width=True):
                    navigate(item.path)


def _render_top_bar(ctx: AppContext):
    session = ctx.session()
    if session is None:
        return
    user = session.user
    branch = f" · {user.branch.name}" if user.branch and user.branch.name else ""
    left, mid, right = st.columns([0.7, 0.15, 0.15])
    with left:
        st.caption(f"Signed in as **{user.full_name}** · _{ROLE_LABELS.get(user.role, user.role.value)}_{branch}")
    with mid:
        if st.button("👤 Profile", key="top_profile"):
            navigate("/profile")
    with right:
        if st.button("Logout", key="logout_top"):
            navigate("/logout")


def _render_public(ctx: AppContext, path: str):
    st.markdown(HIDE_SIDEBAR, unsafe_allow_html=True)
    load_screen(PUBLIC_PATHS[path]).render(ctx)


def _render_shell(ctx: AppContext, path: str):
    redirect = auth_redirect(ctx.store)
    if redirect:
        navigate(redirect)

    role = ctx.role()
    _render_sidebar(ctx, path)
    _render_top_bar(ctx)

    name = screen_for(path, role)
    if name is None:
        st.title("Page not found")
        st.info(f"There is nothing at `{path}` for the {ROLE_LABELS.get(role, 'current')} role.")
        if st.button("Go to Dashboard"):
            navigate("/")
        return
    load_screen(name).render(ctx)


def main():
    settings = load_settings()
    configure_logging(settings)
    st.set_page_config(page_title=settings.app.name, layout="wide", page_icon="🎓")

    ctx = get_context(settings)
    path = current_path()

    # Setup check runs on every navigation; nothing renders until it resolves.
    with st.spinner("Loading..."):
        decision = SetupGuard(ctx.api).check(path)
    if decision.redirect:
        navigate(decision.redirect)

    try:
        if path in PUBLIC_PATHS:
            _render_public(ctx, path)
        else:
            _render_shell(ctx, path)
    except Exception as e:
        render_error_panel(e, debug=settings.app.debug)

    if st.session_state.pop(EXPIRED_KEY, False):
        st.session_state["flash"] = "Your session has expired. Please log in again."
        navigate("/login")
    if st.session_state.pop(REFRESH_KEY, False):
        st.rerun()

    render_footer(settings.app.name)


if __name__ == "__main__":
    main()
