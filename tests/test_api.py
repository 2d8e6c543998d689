# tests/test_api.py
import pytest
import requests

from core.api import ApiClient, ApiError, UnauthorizedInterceptor
from core.storage import SessionStore

from conftest import ADMIN_USER, FakeHttp


def test_base_url_is_normalized(http):
    assert ApiClient("http://backend.test/", http=http).base_url == "http://backend.test/api"
    assert ApiClient("http://backend.test/api///", http=http).base_url == "http://backend.test/api"
    assert ApiClient("", http=http).base_url == "http://localhost:5000/api"


def test_bearer_header_only_when_token_present(api, http, store):
    api.courses.list()
    assert "Authorization" not in http.last["headers"]
    store.set_token("tok-1")
    api.courses.list()
    assert http.last["headers"]["Authorization"] == "Bearer tok-1"
    assert http.last["timeout"] == 7


def test_unauthenticated_endpoints_never_send_the_token(api, http, signed_in):
    api.setup.status()
    api.auth.login("a@b.co", "secret")
    api.leads.create_public({"firstName": "X"})
    assert all("Authorization" not in c["headers"] for c in http.calls)


def test_blank_params_are_dropped(api, http):
    api.leads.list({"status": None, "search": "", "page": 2})
    assert http.last["params"] == {"page": 2}


ONE_CALL_PER_GROUP = [
    ("GET", "/setup/status", lambda api: api.setup.status()),
    ("POST", "/auth/login", lambda api: api.auth.login("a@b.co", "pw")),
    ("GET", "/auth/me", lambda api: api.auth.me()),
    ("PUT", "/profile/password", lambda api: api.profile.change_password("old", "new")),
    ("GET", "/users", lambda api: api.users.list()),
    ("POST", "/branches", lambda api: api.branches.create({"name": "Pune"})),
    ("GET", "/leads", lambda api: api.leads.list()),
    ("POST", "/leads/public", lambda api: api.leads.create_public({"firstName": "A"})),
    ("POST", "/admissions/a1/approve", lambda api: api.admissions.approve("a1")),
    ("GET", "/students/s1", lambda api: api.students.get("s1")),
    ("GET", "/students/dashboard/fees", lambda api: api.student_dashboard.fees()),
    ("GET", "/trainers/t1", lambda api: api.trainers.get("t1")),
    ("GET", "/trainers/dashboard/stats", lambda api: api.trainer_dashboard.stats()),
    ("GET", "/trainer-attendance/history", lambda api: api.trainer_attendance.history()),
    ("GET", "/courses", lambda api: api.courses.list()),
    ("DELETE", "/batches/b1", lambda api: api.batches.delete("b1")),
    ("GET", "/attendance/stats", lambda api: api.attendance.stats()),
    ("POST", "/portfolios/submit", lambda api: api.portfolios.submit_work({"taskId": "k1"})),
    ("PATCH", "/placements/p1/status", lambda api: api.placements.update_status("p1", "PLACED")),
    ("POST", "/companies", lambda api: api.companies.create({"name": "Acme"})),
    ("PATCH", "/incentives/i1/paid", lambda api: api.incentives.mark_paid("i1")),
    ("GET", "/reports/growth/s1", lambda api: api.reports.growth("s1")),
    ("POST", "/reports/expenses", lambda api: api.reports.submit_expense({"amount": 10})),
    ("GET", "/dashboard/stats", lambda api: api.dashboard.stats()),
    ("GET", "/branch-dashboard/overview", lambda api: api.branch_dashboard.overview()),
    ("PUT", "/notifications/all/read", lambda api: api.notifications.mark_as_read()),
]


@pytest.mark.parametrize("method,path,call", ONE_CALL_PER_GROUP, ids=[p for _, p, _ in ONE_CALL_PER_GROUP])
def test_server_message_wins_over_default(api, http, method, path, call):
    http.reply(method, path, {"success": False, "message": "Branch is closed"}, status=400)
    with pytest.raises(ApiError) as exc:
        call(api)
    assert exc.value.message == "Branch is closed"
    assert exc.value.status == 400
    assert (http.last["method"], http.last["path"]) == (method, path)


@pytest.mark.parametrize("method,path,call,default", [
    ("DELETE", "/batches/b1", lambda api: api.batches.delete("b1"), "Failed to delete batch"),
    ("GET", "/reports/social-engagement", lambda api: api.reports.social_engagement(),
     "Failed to fetch social engagement"),
    ("POST", "/reports/event-plan", lambda api: api.reports.submit_event_plan({}), "Failed to submit event plan"),
])
def test_default_message_when_server_says_nothing(api, http, method, path, call, default):
    http.reply(method, path, None, status=500)
    with pytest.raises(ApiError) as exc:
        call(api)
    assert exc.value.message == default


def test_timeout_and_transport_errors_become_api_errors(api, http):
    http.fail("GET", "/dashboard/stats", requests.exceptions.Timeout("slow"))
    with pytest.raises(ApiError, match="did not respond in time"):
        api.dashboard.stats()
    http.fail("GET", "/dashboard/stats", requests.exceptions.ConnectionError("down"))
    with pytest.raises(ApiError, match="could not reach the server"):
        api.dashboard.stats()


def test_success_status_with_non_json_body_is_an_error(api, http):
    from conftest import FakeResponse
    http.routes[("GET", "/profile")] = FakeResponse(200, raw="<html>")
    with pytest.raises(ApiError, match="Failed to fetch profile"):
        api.profile.get()


def test_lead_create_routes_on_token(api, http, store):
    api.leads.create({"firstName": "A"})
    assert http.last["path"] == "/leads/public"
    store.set_token("tok")
    api.leads.create({"firstName": "A"})
    assert http.last["path"] == "/leads"
    assert http.last["headers"]["Authorization"] == "Bearer tok"


def test_endpoint_paths_and_bodies(api, http):
    api.admissions.reject("a1", "Incomplete documents")
    assert (http.last["method"], http.last["path"]) == ("PUT", "/admissions/a1")
    assert http.last["json"] == {"status": "REJECTED", "rejectionReason": "Incomplete documents"}

    api.batches.assign_students("b1", iter(["s1", "s2"]))
    assert http.last["json"] == {"studentIds": ["s1", "s2"]}

    api.placements.update_status("p1", "PLACED")
    assert (http.last["method"], http.last["path"]) == ("PATCH", "/placements/p1/status")

    api.notifications.mark_as_read()
    assert http.last["path"] == "/notifications/all/read"

    api.trainer_dashboard.update_test_scores("t1", [{"studentId": "s1", "score": 9}])
    assert http.last["json"] == {"scores": [{"studentId": "s1", "score": 9}]}

    api.branch_dashboard.fees()
    assert http.last["path"] == "/branch-dashboard/fees"


def test_unauthorized_interceptor_fires_once_per_session():
    http = FakeHttp()
    store = SessionStore()
    expired = []
    interceptor = UnauthorizedInterceptor(store, on_expired=lambda: expired.append(True))
    api = ApiClient("http://backend.test", token_provider=store.get_token, http=http,
                    on_unauthorized=interceptor)
    http.reply("GET", "/leads", {"message": "Token expired"}, status=401)
    http.reply("GET", "/courses", {"message": "Token expired"}, status=401)

    store.set_session("old", dict(ADMIN_USER))
    for call in (api.leads.list, api.courses.list):
        with pytest.raises(ApiError):
            call()
    assert expired == [True]
    assert store.get_token() is None

    # a fresh login re-arms it
    store.set_session("new", dict(ADMIN_USER))
    with pytest.raises(ApiError):
        api.leads.list()
    assert expired == [True, True]


def test_login_failure_with_401_does_not_expire_anything():
    http = FakeHttp()
    store = SessionStore()
    expired = []
    api = ApiClient("http://backend.test", http=http,
                    on_unauthorized=UnauthorizedInterceptor(store, lambda: expired.append(1)))
    http.reply("POST", "/auth/login", {"message": "Invalid credentials"}, status=401)
    with pytest.raises(ApiError, match="Invalid credentials"):
        api.auth.login("a@b.co", "nope")
    assert expired == []


def test_401_without_a_bearer_token_is_not_a_session_expiry():
    http = FakeHttp()
    rejected = []
    api = ApiClient("http://backend.test", token_provider=lambda: None, http=http,
                    on_unauthorized=rejected.append)
    http.reply("GET", "/courses", {"message": "Access token required"}, status=401)
    with pytest.raises(ApiError, match="Access token required") as exc:
        api.courses.list()
    assert exc.value.is_unauthorized
    assert rejected == []
