# tests/test_storage.py
from core.db import get_engine
from core.storage import TOKEN_KEY, USER_KEY, SessionStore, SqlKeyValueStore

from conftest import ADMIN_USER


def test_token_roundtrip_and_removal(store):
    assert store.get_token() is None
    store.set_token("abc")
    assert store.get_token() == "abc"
    store.remove_token()
    assert store.get_token() is None


def test_user_snapshot_is_json_and_signals(store):
    events = []
    store.user_changed.connect(lambda sender, user: events.append((sender, user)))
    store.set_user(dict(ADMIN_USER))
    assert store.get_user()["email"] == "admin@institute.test"
    store.remove_user()
    assert store.get_user() is None
    assert events == [(store, ADMIN_USER), (store, None)]


def test_corrupt_user_snapshot_reads_as_signed_out():
    store = SessionStore({TOKEN_KEY: "t", USER_KEY: "{not json"})
    assert store.get_user() is None
    assert store.get_session() is None
    assert not store.has_session()


def test_session_requires_both_token_and_user(store):
    store.set_user(dict(ADMIN_USER))
    assert store.get_session() is None
    store.set_token("t")
    session = store.get_session()
    assert session.token == "t"
    assert session.user.full_name == "Asha Rao"


def test_clear_removes_both_keys(signed_in):
    signed_in.clear()
    assert signed_in.get_token() is None
    assert signed_in.get_user() is None


def test_legacy_branch_head_role_maps_to_channel_partner(store):
    store.set_session("t", {**ADMIN_USER, "role": "BRANCH_HEAD"})
    assert store.get_session().user.role.value == "CHANNEL_PARTNER"


def test_unknown_role_is_treated_as_no_session(store):
    store.set_session("t", {**ADMIN_USER, "role": "JANITOR"})
    assert store.get_session() is None


def test_sql_store_persists_per_namespace():
    engine = get_engine("sqlite:///:memory:")
    a = SqlKeyValueStore(engine, namespace="browser-a")
    b = SqlKeyValueStore(engine, namespace="browser-b")
    a["auth_token"] = "one"
    a["auth_token"] = "two"
    assert a["auth_token"] == "two"
    assert "auth_token" not in b
    assert len(a) == 1
    assert list(a) == ["auth_token"]
    del a["auth_token"]
    assert a.get("auth_token") is None


def test_session_survives_a_new_store_over_the_same_backend():
    engine = get_engine("sqlite:///:memory:")
    SessionStore(SqlKeyValueStore(engine, "sid1")).set_session("tok", dict(ADMIN_USER))
    reopened = SessionStore(SqlKeyValueStore(engine, "sid1"))
    assert reopened.has_session()
    assert reopened.get_session().user.email == "admin@institute.test"
