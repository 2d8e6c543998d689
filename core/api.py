# core/api.py
"""HTTP facade over the institute backend.

Every operation is a single attempt with the configured timeout. Responses
are parsed as JSON; a non-2xx status raises ``ApiError`` carrying the
server's ``message`` or the operation's default text.
"""
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Iterable, Optional

import requests

from core.settings import normalize_base_url

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Optional[str]]


class ApiError(Exception):
    """Transport or application failure, with a message fit for a toast."""

    def __init__(self, message: str, status: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload

    @property
    def is_unauthorized(self) -> bool:
        return self.status == 401


class UnauthorizedInterceptor:
    """Turns the first 401 of a session into a single "session expired" transition.

    Clears the store and calls ``on_expired`` once; re-arms when a user is
    stored again (i.e. after the next login).
    """

    def __init__(self, store, on_expired: Optional[Callable[[], None]] = None):
        self.store = store
        self.on_expired = on_expired
        self.fired = False
        store.user_changed.connect(self._on_user_changed)

    def _on_user_changed(self, _store, user=None) -> None:
        if user is not None:
            self.fired = False

    def __call__(self, error: ApiError) -> None:
        if self.fired:
            return
        self.fired = True
        logger.info("Authorization rejected (%s); clearing session", error.message)
        self.store.clear()
        if self.on_expired:
            self.on_expired()


def _clean_params(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not params:
        return None
    out = {k: v for k, v in params.items() if v is not None and v != ""}
    return out or None


class ApiClient:
    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider = lambda: None,
        timeout: float = 15.0,
        http: Optional[requests.Session] = None,
        on_unauthorized: Optional[Callable[[ApiError], None]] = None,
    ):
        self.base_url = normalize_base_url(base_url)
        self.token_provider = token_provider
        self.timeout = timeout
        self.http = http or requests.Session()
        self.on_unauthorized = on_unauthorized

        self.setup = SetupApi(self)
        self.auth = AuthApi(self)
        self.profile = ProfileApi(self)
        self.users = UsersApi(self)
        self.branches = BranchesApi(self)
        self.leads = LeadsApi(self)
        self.admissions = AdmissionsApi(self)
        self.students = StudentsApi(self)
        self.student_dashboard = StudentDashboardApi(self)
        self.trainers = TrainersApi(self)
        self.trainer_dashboard = TrainerDashboardApi(self)
        self.trainer_attendance = TrainerAttendanceApi(self)
        self.courses = CoursesApi(self)
        self.batches = BatchesApi(self)
        self.attendance = AttendanceApi(self)
        self.portfolios = PortfoliosApi(self)
        self.placements = PlacementsApi(self)
        self.companies = CompaniesApi(self)
        self.incentives = IncentivesApi(self)
        self.reports = ReportsApi(self)
        self.dashboard = DashboardApi(self)
        self.branch_dashboard = BranchDashboardApi(self)
        self.notifications = NotificationsApi(self)

    def has_token(self) -> bool:
        return bool(self.token_provider())

    def request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Any = None,
        auth: bool = True,
        default_message: str = "Request failed",
    ) -> Any:
        url = f"{self.base_url}{path}"
        headers: Dict[str, str] = {"Accept": "application/json"}
        if json is not None:
            headers["Content-Type"] = "application/json"
        sent_token = False
        if auth:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
                sent_token = True

        logger.debug("%s %s", method, url)
        try:
            resp = self.http.request(
                method, url,
                params=_clean_params(params),
                json=json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning("%s %s timed out after %ss", method, url, self.timeout)
            raise ApiError(f"{default_message}: the server did not respond in time") from e
        except requests.exceptions.RequestException as e:
            logger.warning("%s %s failed: %s", method, url, e)
            raise ApiError(f"{default_message}: could not reach the server") from e

        try:
            body = resp.json()
        except ValueError:
            body = None

        if not resp.ok:
            message = body.get("message") if isinstance(body, dict) else None
            error = ApiError(message or default_message, status=resp.status_code, payload=body)
            logger.info("%s %s -> %s: %s", method, url, resp.status_code, error.message)
            # Only a rejected token means the session expired; anonymous 401s just fail.
            if error.is_unauthorized and sent_token and self.on_unauthorized:
                self.on_unauthorized(error)
            raise error

        if body is None:
            raise ApiError(default_message, status=resp.status_code)
        return body


class Resource:
    def __init__(self, client: ApiClient):
        self.client = client

    def _get(self, path: str, msg: str, params: Optional[Dict[str, Any]] = None, auth: bool = True):
        return self.client.request("GET", path, params=params, auth=auth, default_message=msg)

    def _post(self, path: str, msg: str, data: Any = None, auth: bool = True):
        return self.client.request("POST", path, json=data if data is not None else {}, auth=auth, default_message=msg)

    def _put(self, path: str, msg: str, data: Any = None):
        return self.client.request("PUT", path, json=data if data is not None else {}, default_message=msg)

    def _patch(self, path: str, msg: str, data: Any = None):
        return self.client.request("PATCH", path, json=data if data is not None else {}, default_message=msg)

    def _delete(self, path: str, msg: str):
        return self.client.request("DELETE", path, default_message=msg)


class CrudResource(Resource):
    """list/get/create/update/delete on ``/<path>`` and ``/<path>/<id>``."""
    path: str = ""
    noun: str = "record"
    plural: str = "records"

    def list(self, params: Optional[Dict[str, Any]] = None):
        return self._get(self.path, f"Failed to fetch {self.plural}", params)

    def get(self, id: str):
        return self._get(f"{self.path}/{id}", f"Failed to fetch {self.noun}")

    def create(self, data: Dict[str, Any]):
        return self._post(self.path, f"Failed to create {self.noun}", data)

    def update(self, id: str, data: Dict[str, Any]):
        return self._put(f"{self.path}/{id}", f"Failed to update {self.noun}", data)

    def delete(self, id: str):
        return self._delete(f"{self.path}/{id}", f"Failed to delete {self.noun}")


class SetupApi(Resource):
    def status(self):
        return self._get("/setup/status", "Failed to check setup status", auth=False)

    def initialize(self, data: Dict[str, Any]):
        return self._post("/setup/initialize", "Failed to initialize setup", data, auth=False)


class AuthApi(Resource):
    def login(self, email: str, password: str):
        return self._post("/auth/login", "Login failed", {"email": email, "password": password}, auth=False)

    def me(self):
        return self._get("/auth/me", "Failed to get user")


class ProfileApi(Resource):
    def get(self):
        return self._get("/profile", "Failed to fetch profile")

    def update(self, data: Dict[str, Any]):
        return self._put("/profile", "Failed to update profile", data)

    def change_password(self, current_password: str, new_password: str):
        return self._put("/profile/password", "Failed to change password",
                         {"currentPassword": current_password, "newPassword": new_password})

    def admin_update_user(self, user_id: str, data: Dict[str, Any]):
        return self._put(f"/profile/users/{user_id}", "Failed to update user profile", data)

    def admin_reset_password(self, user_id: str, new_password: str):
        return self._put(f"/profile/users/{user_id}/password", "Failed to reset password",
                         {"newPassword": new_password})


class UsersApi(CrudResource):
    path, noun, plural = "/users", "user", "users"


class BranchesApi(CrudResource):
    path, noun, plural = "/branches", "branch", "branches"


class LeadsApi(CrudResource):
    path, noun, plural = "/leads", "lead", "leads"

    def create(self, data: Dict[str, Any]):
        # Signed-in staff go through the branch-scoped endpoint; anyone else is a public enquiry.
        if self.client.has_token():
            return super().create(data)
        return self.create_public(data)

    def create_public(self, data: Dict[str, Any]):
        return self._post("/leads/public", "Failed to submit enquiry", data, auth=False)

    def convert(self, id: str, data: Optional[Dict[str, Any]] = None):
        return self._post(f"/leads/{id}/convert", "Failed to convert lead", data)


class AdmissionsApi(CrudResource):
    path, noun, plural = "/admissions", "admission", "admissions"

    def approve(self, id: str):
        return self._post(f"/admissions/{id}/approve", "Failed to approve admission")

    def reject(self, id: str, reason: str = ""):
        return self._put(f"/admissions/{id}", "Failed to reject admission",
                         {"status": "REJECTED", "rejectionReason": reason})


class StudentsApi(CrudResource):
    path, noun, plural = "/students", "student", "students"


class StudentDashboardApi(Resource):
    def overview(self):
        return self._get("/students/dashboard/overview", "Failed to fetch dashboard overview")

    def attendance(self):
        return self._get("/students/dashboard/attendance", "Failed to fetch attendance")

    def progress(self):
        return self._get("/students/dashboard/progress", "Failed to fetch progress")

    def portfolio(self):
        return self._get("/students/dashboard/portfolio", "Failed to fetch portfolio")

    def submit_portfolio(self, data: Dict[str, Any]):
        return self._post("/students/dashboard/portfolio/submit", "Failed to submit portfolio", data)

    def tests(self):
        return self._get("/students/dashboard/tests", "Failed to fetch tests")

    def fees(self):
        return self._get("/students/dashboard/fees", "Failed to fetch fees")

    def notifications(self):
        return self._get("/students/dashboard/notifications", "Failed to fetch notifications")


class TrainersApi(CrudResource):
    path, noun, plural = "/trainers", "trainer", "trainers"

    def get(self, id: str):
        return self._get(f"/trainers/{id}", "Failed to fetch trainer details")


class TrainerDashboardApi(Resource):
    def stats(self):
        return self._get("/trainers/dashboard/stats", "Failed to fetch trainer stats")

    def batch_students(self, batch_id: str):
        return self._get(f"/trainers/batches/{batch_id}/students", "Failed to fetch batch students")

    def batch_tests(self, batch_id: str):
        return self._get(f"/trainers/batches/{batch_id}/tests", "Failed to fetch tests")

    def create_test(self, data: Dict[str, Any]):
        return self._post("/trainers/tests", "Failed to create test", data)

    def test_scores(self, test_id: str):
        return self._get(f"/trainers/tests/{test_id}/scores", "Failed to fetch test scores")

    def update_test_scores(self, test_id: str, scores: Iterable[Dict[str, Any]]):
        return self._put(f"/trainers/tests/{test_id}/scores", "Failed to update test scores",
                         {"scores": list(scores)})

    def batch_progress(self, batch_id: str):
        return self._get(f"/trainers/batches/{batch_id}/progress", "Failed to fetch software progress")

    def update_student_progress(self, student_id: str, data: Dict[str, Any]):
        return self._put(f"/trainers/students/{student_id}/progress", "Failed to update progress", data)

    def check_eligibility(self, batch_id: str):
        return self._post(f"/trainers/batches/{batch_id}/check-eligibility", "Failed to update eligibility")


class TrainerAttendanceApi(Resource):
    def mark(self, data: Dict[str, Any]):
        return self._post("/trainer-attendance/mark", "Failed to mark trainer attendance", data)

    def history(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/trainer-attendance/history", "Failed to fetch trainer attendance", params)


class CoursesApi(CrudResource):
    path, noun, plural = "/courses", "course", "courses"

    def get(self, id: str):
        return self._get(f"/courses/{id}", "Failed to fetch course details")

    def assign_trainer(self, course_id: str, trainer_id: str):
        return self._post(f"/courses/{course_id}/trainers", "Failed to assign trainer", {"trainerId": trainer_id})

    def remove_trainer(self, course_id: str, trainer_id: str):
        return self._delete(f"/courses/{course_id}/trainers/{trainer_id}", "Failed to remove trainer")


class BatchesApi(CrudResource):
    path, noun, plural = "/batches", "batch", "batches"

    def assign_students(self, batch_id: str, student_ids: Iterable[str]):
        return self._post(f"/batches/{batch_id}/students", "Failed to assign students",
                          {"studentIds": list(student_ids)})

    def remove_student(self, batch_id: str, student_id: str):
        return self._delete(f"/batches/{batch_id}/students/{student_id}", "Failed to remove student")


class AttendanceApi(CrudResource):
    path, noun, plural = "/attendance", "attendance record", "attendance"

    def stats(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/attendance/stats", "Failed to fetch attendance stats", params)

    def mark(self, data: Dict[str, Any]):
        return self._post("/attendance", "Failed to mark attendance", data)

    def bulk_mark(self, records: Iterable[Dict[str, Any]]):
        return self._post("/attendance/bulk", "Failed to mark attendance", {"records": list(records)})


class PortfoliosApi(CrudResource):
    path, noun, plural = "/portfolios", "portfolio", "portfolios"

    def verify(self, id: str):
        return self._post(f"/portfolios/{id}/verify", "Failed to verify portfolio")

    def tasks_for_course(self, course_id: str):
        return self._get(f"/portfolios/tasks/{course_id}", "Failed to fetch portfolio tasks")

    def create_task(self, data: Dict[str, Any]):
        return self._post("/portfolios/tasks", "Failed to create portfolio task", data)

    def submit_work(self, data: Dict[str, Any]):
        return self._post("/portfolios/submit", "Failed to submit portfolio work", data)

    def pending(self):
        return self._get("/portfolios/pending", "Failed to fetch pending submissions")

    def stats(self):
        return self._get("/portfolios/stats", "Failed to fetch portfolio stats")

    def student_details(self, student_id: str):
        return self._get(f"/portfolios/student/{student_id}", "Failed to fetch student portfolio")

    def review(self, submission_id: str, data: Dict[str, Any]):
        return self._put(f"/portfolios/review/{submission_id}", "Failed to review submission", data)


class PlacementsApi(CrudResource):
    path, noun, plural = "/placements", "placement", "placements"

    def update_status(self, id: str, status: str):
        return self._patch(f"/placements/{id}/status", "Failed to update placement status", {"status": status})


class CompaniesApi(CrudResource):
    path, noun, plural = "/companies", "company", "companies"


class IncentivesApi(CrudResource):
    path, noun, plural = "/incentives", "incentive", "incentives"

    def mark_paid(self, id: str):
        return self._patch(f"/incentives/{id}/paid", "Failed to mark incentive as paid")


class ReportsApi(Resource):
    def submit_growth(self, data: Dict[str, Any]):
        return self._post("/reports/growth", "Failed to submit growth report", data)

    def growth(self, student_id: str):
        return self._get(f"/reports/growth/{student_id}", "Failed to fetch growth reports")

    def performance(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/performance", "Failed to fetch trainer performance", params)

    def branch(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/branch", "Failed to fetch branch report", params)

    def trainer(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/trainer", "Failed to fetch trainer report", params)

    def admissions(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/admissions", "Failed to fetch admissions report", params)

    def placements(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/placements", "Failed to fetch placements report", params)

    def revenue(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/revenue", "Failed to fetch revenue report", params)

    def daily_admissions(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/daily-admissions", "Failed to fetch daily admissions", params)

    def fees_pending(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/fees-pending", "Failed to fetch pending fees", params)

    def placement_eligible(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/placement-eligible", "Failed to fetch placement-eligible students", params)

    def expenses(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/expenses", "Failed to fetch expenses", params)

    def submit_expense(self, data: Dict[str, Any]):
        return self._post("/reports/expenses", "Failed to submit expense", data)

    def social_engagement(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/reports/social-engagement", "Failed to fetch social engagement", params)

    def submit_event_plan(self, data: Dict[str, Any]):
        return self._post("/reports/event-plan", "Failed to submit event plan", data)


class DashboardApi(Resource):
    def stats(self):
        return self._get("/dashboard/stats", "Failed to fetch dashboard stats")


class BranchDashboardApi(Resource):
    def _section(self, name: str):
        return self._get(f"/branch-dashboard/{name}", f"Failed to fetch branch {name}")

    def overview(self):
        return self._section("overview")

    def admissions(self):
        return self._section("admissions")

    def attendance(self):
        return self._section("attendance")

    def progress(self):
        return self._section("progress")

    def portfolio(self):
        return self._section("portfolio")

    def trainers(self):
        return self._section("trainers")

    def fees(self):
        return self._section("fees")

    def placements(self):
        return self._section("placements")


class NotificationsApi(Resource):
    def list(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/notifications", "Failed to fetch notifications", params)

    def mark_as_read(self, id: str = "all"):
        return self._put(f"/notifications/{id}/read", "Failed to mark notification as read")

    def whatsapp_logs(self, params: Optional[Dict[str, Any]] = None):
        return self._get("/notifications/whatsapp-logs", "Failed to fetch WhatsApp logs", params)
