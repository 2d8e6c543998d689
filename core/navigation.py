# core/navigation.py
from __future__ import annotations
import streamlit as st

from core.context import CLIENT_ID_PARAM, AppContext, build_context, new_client_id
from core.db import get_engine
from core.settings import Settings
from core.storage import SqlKeyValueStore

ROUTE_KEY = "route"
PAGE_PARAM = "page"
EXPIRED_KEY = "session_expired"
REFRESH_KEY = "chrome_stale"


def current_path() -> str:
    path = st.session_state.get(ROUTE_KEY)
    if not path:
        path = "/" + (st.query_params.get(PAGE_PARAM) or "").strip("/")
        st.session_state[ROUTE_KEY] = path
    return path


def navigate(path: str):
    """Switch location and rerun the script."""
    st.session_state[ROUTE_KEY] = path
    page = path.strip("/")
    if page:
        st.query_params[PAGE_PARAM] = page
    elif PAGE_PARAM in st.query_params:
        del st.query_params[PAGE_PARAM]
    st.rerun()


def navigate_to_login():
    navigate("/login")


def _client_id() -> str:
    sid = st.query_params.get(CLIENT_ID_PARAM)
    if not sid:
        sid = new_client_id()
        st.query_params[CLIENT_ID_PARAM] = sid
    return sid


@st.cache_resource
def _storage_engine(url: str):
    return get_engine(url)


def _mark_expired():
    st.session_state[EXPIRED_KEY] = True
    st.session_state[ROUTE_KEY] = "/login"


def _mark_chrome_stale(_store, **_kwargs):
    # Top bar and sidebar were already drawn this run; redraw them with the new user.
    st.session_state[REFRESH_KEY] = True


def get_context(settings: Settings) -> AppContext:
    """Create (once per browser session) the store + API client pair."""
    if "ctx" not in st.session_state:
        backend = None
        if settings.storage.url:
            backend = SqlKeyValueStore(_storage_engine(settings.storage.url), namespace=_client_id())
        ctx = build_context(settings, backend, on_expired=_mark_expired)
        ctx.store.user_changed.connect(_mark_chrome_stale)
        st.session_state["ctx"] = ctx
    return st.session_state["ctx"]
