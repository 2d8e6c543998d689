# tests/test_auth_screens.py
import requests

from screens.login import sign_in
from screens.profile import change_password, save_profile
from screens.public_enquiry import public_courses, submit_enquiry
from screens.setup import initialize

from conftest import ADMIN_USER


def test_sign_in_stores_session(api, http, store):
    http.reply("POST", "/auth/login", {"success": True, "data": {"token": "tok-9", "user": ADMIN_USER}})
    ok, msg = sign_in(api, store, "  Admin@Institute.TEST ", "secret")
    assert (ok, msg) == (True, "")
    assert http.last["json"] == {"email": "admin@institute.test", "password": "secret"}
    assert store.get_token() == "tok-9"
    assert store.get_session().user.role.value == "ADMIN"


def test_sign_in_requires_both_fields(api, http, store):
    assert sign_in(api, store, "", "x") == (False, "Email and password are required")
    assert http.calls == []


def test_sign_in_reports_server_message(api, http, store):
    http.reply("POST", "/auth/login", {"success": False, "message": "Invalid credentials"}, status=401)
    assert sign_in(api, store, "a@b.co", "bad") == (False, "Invalid credentials")
    assert not store.has_session()


def test_sign_in_rejects_response_without_token(api, http, store):
    http.reply("POST", "/auth/login", {"success": True, "data": {"user": ADMIN_USER}})
    assert sign_in(api, store, "a@b.co", "pw") == (False, "Login failed")
    assert store.get_token() is None


def test_setup_sends_only_the_account_fields(api, http):
    ok, _ = initialize(api, {"firstName": " Asha ", "lastName": "Rao", "email": "ADMIN@X.CO",
                             "password": "secret1", "confirmPassword": "secret1"})
    assert ok
    assert http.last["path"] == "/setup/initialize"
    assert http.last["json"] == {"firstName": "Asha", "lastName": "Rao", "email": "admin@x.co",
                                 "password": "secret1"}


def test_setup_validation_stops_before_the_request(api, http):
    ok, msg = initialize(api, {"firstName": "A", "lastName": "B", "email": "a@b.co",
                               "password": "secret1", "confirmPassword": "other"})
    assert (ok, msg) == (False, "Passwords do not match")
    assert http.calls == []


def test_save_profile_merges_server_copy(api, http, signed_in):
    http.reply("PUT", "/profile", {"success": True, "data": {"firstName": "Asha", "lastName": "Iyer",
                                                             "phone": "9000000000"}})
    ok, msg = save_profile(api, signed_in, {"firstName": "Asha", "lastName": "Iyer", "phone": "9000000000"})
    assert (ok, msg) == (True, "Profile updated successfully")
    user = signed_in.get_user()
    assert user["lastName"] == "Iyer"
    assert user["role"] == "ADMIN"


def test_save_profile_requires_names(api, http, signed_in):
    assert save_profile(api, signed_in, {"firstName": "", "lastName": "X"})[0] is False
    assert http.calls == []


def test_change_password_posts_both_passwords(api, http):
    assert change_password(api, "oldpass", "newpass1", "newpass1") == (True, "Password changed successfully")
    assert http.last["json"] == {"currentPassword": "oldpass", "newPassword": "newpass1"}


ENQUIRY = {"firstName": "Neha", "lastName": "Shah", "email": "neha@example.com",
           "phone": "9876543210", "courseId": "c1", "message": "Weekend batch?"}


def test_enquiry_goes_public_even_with_a_stale_token(api, http, signed_in):
    ok, msg = submit_enquiry(api, ENQUIRY)
    assert ok
    assert msg.startswith("Thank you")
    assert http.last["path"] == "/leads/public"
    assert "Authorization" not in http.last["headers"]
    assert http.last["json"]["source"] == "WEBSITE"
    assert http.last["json"]["status"] == "NEW"


def test_enquiry_validation(api, http):
    assert submit_enquiry(api, {**ENQUIRY, "courseId": ""})[0] is False
    assert submit_enquiry(api, {**ENQUIRY, "email": "neha"}) == (False, "Invalid email format")
    assert http.calls == []


def test_enquiry_page_survives_missing_course_list(api, http):
    http.fail("GET", "/courses", requests.exceptions.ConnectionError("down"))
    assert public_courses(api) == []
