# tests/test_context.py
import pytest

from core.api import ApiError
from core.context import build_context, new_client_id
from screens.public_enquiry import public_courses

from conftest import ADMIN_USER


def test_context_shares_the_store_token_with_the_client(ctx, http):
    ctx.store.set_session("tok-ctx", dict(ADMIN_USER))
    ctx.api.dashboard.stats()
    assert http.last["headers"]["Authorization"] == "Bearer tok-ctx"
    assert http.last["timeout"] == ctx.settings.api.timeout_seconds
    assert ctx.role().value == "ADMIN"


def test_expired_token_clears_the_session_and_notifies(settings, http):
    expired = []
    ctx = build_context(settings, on_expired=lambda: expired.append(True), http=http)
    ctx.store.set_session("old", dict(ADMIN_USER))
    http.reply("GET", "/leads", {"message": "jwt expired"}, status=401)
    with pytest.raises(ApiError):
        ctx.api.leads.list()
    assert expired == [True]
    assert ctx.session() is None
    assert ctx.role() is None


def test_anonymous_401_does_not_expire_a_session(settings, http):
    expired = []
    ctx = build_context(settings, on_expired=lambda: expired.append(True), http=http)
    http.reply("GET", "/courses", {"message": "Access token required"}, status=401)
    assert public_courses(ctx.api) == []
    assert "Authorization" not in http.last["headers"]
    assert expired == []
    assert ctx.store.get_token() is None


def test_anonymous_401_leaves_a_stored_session_alone(settings, http):
    expired = []
    ctx = build_context(settings, on_expired=lambda: expired.append(True), http=http)
    ctx.store.set_session("tok-live", dict(ADMIN_USER))
    http.reply("POST", "/auth/login", {"message": "Invalid credentials"}, status=401)
    with pytest.raises(ApiError):
        ctx.api.auth.login("admin@institute.test", "wrong")
    assert expired == []
    assert ctx.store.get_token() == "tok-live"


def test_client_ids_are_random():
    assert new_client_id() != new_client_id()
