# core/ui.py
from __future__ import annotations
import datetime
import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd
import streamlit as st

from core.api import ApiError
from core.models import unwrap_list, parse_envelope

logger = logging.getLogger(__name__)

BADGE_COLORS = {
    "success": "green", "warning": "orange", "danger": "red", "info": "blue", "default": "gray",
    "good": "green", "fair": "orange", "poor": "red",
}

STATUS_VARIANTS = {
    "NEW": "info", "CONTACTED": "info", "QUALIFIED": "warning", "NEGOTIATING": "warning",
    "CONVERTED": "success", "LOST": "danger",
    "PENDING": "warning", "APPROVED": "success", "REJECTED": "danger", "CANCELLED": "default",
    "ELIGIBLE": "success", "NOT_ELIGIBLE": "danger", "PLACED": "success", "OFFERED": "success",
    "PRESENT": "success", "ABSENT": "danger", "LATE": "warning", "EXCUSED": "info",
}

Column = Union[str, Callable[[dict], Any]]


def success(msg: str): st.toast(msg, icon="✅")
def toast_error(msg: str): st.toast(msg, icon="⚠️")
def info(msg: str): st.info(msg)


def page_header(title: str, description: str = ""):
    st.title(title)
    if description:
        st.caption(description)


def badge(text: str, variant: Optional[str] = None) -> str:
    variant = variant or STATUS_VARIANTS.get(str(text).upper(), "default")
    color = BADGE_COLORS.get(variant, "gray")
    return f":{color}-background[{text}]"


def kpi_row(metrics: Sequence[Tuple[str, Any]]):
    cols = st.columns(len(metrics) or 1)
    for col, (label, value) in zip(cols, metrics):
        col.metric(label, "—" if value is None else value)


def fetch(call: Callable[..., Any], *args, **kwargs) -> Any:
    """Run one facade call behind a spinner; toast and return None on failure."""
    try:
        with st.spinner("Loading..."):
            return call(*args, **kwargs)
    except ApiError as e:
        toast_error(e.message)
        return None


def fetch_data(call: Callable[..., Any], *args, **kwargs) -> Any:
    result = fetch(call, *args, **kwargs)
    return parse_envelope(result).data if result is not None else None


def load_rows(call: Callable[..., Any], *args, **kwargs) -> List[dict]:
    """List fetch for a page: rows on success, an empty list (never a stuck spinner) on failure."""
    result = fetch(call, *args, **kwargs)
    return unwrap_list(result) if result is not None else []


def load_page(call: Callable[..., Any], *args, **kwargs) -> Tuple[List[dict], Dict[str, Any]]:
    """Like load_rows, plus the server's pagination block (empty when absent)."""
    result = fetch(call, *args, **kwargs)
    if result is None:
        return [], {}
    data = parse_envelope(result).data
    meta = data.get("pagination") if isinstance(data, dict) else None
    return unwrap_list(result), meta if isinstance(meta, dict) else {}


def run_action(call: Callable[[], Any], done_msg: str) -> bool:
    try:
        call()
    except ApiError as e:
        toast_error(e.message)
        return False
    success(done_msg)
    return True


def cell(row: dict, key: str) -> Any:
    """Dotted lookup: ``cell(row, "course.name")``."""
    value: Any = row
    for part in key.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


def person_name(row: Optional[dict]) -> str:
    if not row:
        return ""
    user = row.get("user") if isinstance(row.get("user"), dict) else row
    return f"{user.get('firstName', '')} {user.get('lastName', '')}".strip() or user.get("email", "")


def render_table(rows: List[dict], columns: Dict[str, Column], empty: str = "No records found."):
    if not rows:
        st.info(empty)
        return
    data = []
    for r in rows:
        data.append({label: (col(r) if callable(col) else cell(r, col)) for label, col in columns.items()})
    st.dataframe(pd.DataFrame(data), hide_index=True, use_container_width=True)


def pick_row(rows: List[dict], label: Callable[[dict], str], key: str) -> Optional[dict]:
    if not rows:
        return None
    by_id = {r.get("id"): r for r in rows}
    choice = st.selectbox("Select a record", list(by_id.keys()),
                          format_func=lambda i: label(by_id[i]), key=key, index=None,
                          placeholder="Choose a row to view, edit or delete")
    return by_id.get(choice) if choice is not None else None


def options(rows: List[dict], label: Callable[[dict], str] = lambda r: r.get("name", "")) -> Dict[str, str]:
    return {r["id"]: label(r) for r in rows if r.get("id") is not None}


def select_id(title: str, choices: Dict[str, str], key: str, current: Optional[str] = None,
              allow_all: bool = False) -> Optional[str]:
    ids: List[Optional[str]] = list(choices.keys())
    if allow_all:
        ids = [None] + ids
    index = ids.index(current) if current in ids else 0 if ids else None
    return st.selectbox(title, ids, index=index, key=key,
                        format_func=lambda i: "All" if i is None else choices.get(i, str(i)))


def pager(key: str, page_size: int = 20) -> Dict[str, int]:
    page = st.number_input("Page", min_value=1, value=1, step=1, key=f"{key}__page")
    return {"page": int(page), "limit": page_size}


def page_caption(meta: Dict[str, Any]):
    if meta.get("total") is not None:
        st.caption(f"Page {meta.get('page', 1)} of {meta.get('totalPages') or 1} · {meta['total']} records")


def iso(value: Any) -> Optional[str]:
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value or None


def parse_date(value: Any) -> Optional[datetime.date]:
    """Date part of an ISO string from the server, or None."""
    try:
        return datetime.date.fromisoformat(str(value)[:10]) if value else None
    except ValueError:
        return None


def confirm_delete(noun: str, name: str, do_delete: Callable[[], Any], key: str):
    """Open a confirmation dialog; the delete only fires after explicit confirmation."""

    @st.dialog(f"Delete {noun}")
    def _dialog():
        st.warning(f"This will permanently delete **{name}**.")
        confirmed = st.checkbox(f"I understand this will permanently delete this {noun}", key=f"{key}__confirm")
        c1, c2 = st.columns(2)
        if c1.button("🗑️ Delete", type="primary", disabled=not confirmed, key=f"{key}__go",
                     use_container_width=True):
            if run_action(do_delete, f"{noun.capitalize()} deleted"):
                st.rerun()
        if c2.button("Cancel", key=f"{key}__cancel", use_container_width=True):
            st.rerun()

    _dialog()


def render_error_panel(err: BaseException, debug: bool = False):
    """Last-resort boundary for unexpected render-time failures."""
    logger.error("Unhandled page error: %s", err, exc_info=err)
    st.error("Something went wrong while rendering this page.")
    if debug:
        with st.expander("Diagnostics"):
            st.exception(err)
    if st.button("🔄 Reload", type="primary"):
        st.rerun()


def render_footer(app_name: str):
    year = datetime.datetime.now().year
    st.markdown("---")
    st.caption(f"© {year} • {app_name}")
