# tests/test_guards.py
import pytest
import requests

from core.guards import SetupGuard, SetupState, auth_redirect, resolve_setup_redirect

from conftest import ADMIN_USER


@pytest.mark.parametrize("required,path,expected", [
    (True, "/", "/setup"),
    (True, "/login", "/setup"),
    (True, "/setup", None),
    (False, "/setup", "/login"),
    (False, "/leads", None),
    (None, "/setup", None),
])
def test_resolve_setup_redirect(required, path, expected):
    assert resolve_setup_redirect(required, path) == expected


def test_guard_redirects_to_setup_when_required(api, http):
    http.reply("GET", "/setup/status", {"success": True, "data": {"setupRequired": True}})
    decision = SetupGuard(api).check("/login")
    assert decision.state is SetupState.SETUP_REQUIRED
    assert decision.redirect == "/setup"


def test_guard_sends_setup_page_to_login_once_done(api, http):
    http.reply("GET", "/setup/status", {"success": True, "data": {"setupRequired": False}})
    decision = SetupGuard(api).check("/setup")
    assert decision.state is SetupState.SETUP_NOT_REQUIRED
    assert decision.redirect == "/login"


def test_guard_fails_open_on_network_error(api, http):
    http.fail("GET", "/setup/status", requests.exceptions.ConnectionError("down"))
    decision = SetupGuard(api).check("/setup")
    assert decision.state is SetupState.CHECKING
    assert decision.redirect is None


def test_guard_ignores_malformed_status(api, http):
    http.reply("GET", "/setup/status", {"success": True, "data": {}})
    assert SetupGuard(api).check("/").redirect is None


def test_setup_status_is_checked_without_a_token(api, http, signed_in):
    SetupGuard(api).check("/")
    assert "Authorization" not in http.last["headers"]


def test_auth_redirect_needs_token_and_user(store):
    assert auth_redirect(store) == "/login"
    store.set_token("t")
    assert auth_redirect(store) == "/login"
    store.set_user(dict(ADMIN_USER))
    assert auth_redirect(store) is None
