# tests/test_growth_screens.py
import datetime

from screens.branch_insights import (admission_fee_status, engagement_rows, expense_summary,
                                     submit_event_plan, submit_expense, user_branch_id,
                                     validate_event_plan)
from screens.profile import refresh_user
from screens.student_growth import (growth_rows, growth_trend, month_params, performance_rows,
                                    submit_growth, submit_work_for, validate_growth)

from conftest import ADMIN_USER

GROWTH_FORM = {
    "studentId": "s1", "courseId": "c1", "qualityTeaching": 8, "doubtClearance": "7",
    "testScore": "82.5", "aiUpdate": "  Tried Copilot  ", "portfolioFollowUp": True, "classFollowUp": 0,
}


def test_growth_report_is_posted_with_typed_fields(api, http, signed_in):
    assert submit_growth(api, GROWTH_FORM) == (True, "Growth report submitted successfully")
    assert (http.last["method"], http.last["path"]) == ("POST", "/reports/growth")
    assert http.last["json"] == {
        "studentId": "s1", "courseId": "c1", "qualityTeaching": 8, "doubtClearance": 7,
        "testScore": 82.5, "aiUpdate": "Tried Copilot", "portfolioFollowUp": True, "classFollowUp": False,
    }


def test_growth_report_validation_stops_before_the_network(api, http):
    assert submit_growth(api, {**GROWTH_FORM, "studentId": ""}) == (False, "Please select a student")
    assert validate_growth({**GROWTH_FORM, "qualityTeaching": 11}) == \
        (False, "Quality of teaching must be between 1 and 10")
    assert validate_growth({**GROWTH_FORM, "testScore": "120"})[0] is False
    assert validate_growth({**GROWTH_FORM, "testScore": ""}) == (True, "")
    assert http.calls == []


def test_growth_report_failure_surfaces_server_message(api, http, signed_in):
    http.reply("POST", "/reports/growth", {"success": False, "message": "Only trainers can submit growth reports"},
               status=403)
    assert submit_growth(api, GROWTH_FORM) == (False, "Only trainers can submit growth reports")


def test_growth_history_rows_and_trend():
    reports = [
        {"reportDate": "2026-10-02T09:00:00Z", "qualityTeaching": 8, "doubtClearance": 6, "testScore": 70,
         "trainer": {"user": {"firstName": "Kiran", "lastName": "M"}}, "course": {"name": "UI/UX"},
         "portfolioFollowUp": True},
        {"reportDate": "2026-10-01T09:00:00Z", "qualityTeaching": 6, "doubtClearance": 9, "testScore": None},
    ]
    rows = growth_rows(reports)
    assert rows[0]["date"] == "2026-10-02"
    assert rows[0]["trainer"] == "Kiran M"
    assert (rows[0]["portfolio"], rows[1]["course"]) == ("Yes", "—")
    assert growth_trend(reports) == {"reports": 2, "quality": 7.0, "doubt": 7.5, "test": 70.0}
    assert growth_trend([])["test"] is None


def test_trainer_ranking_sorts_string_scores():
    rows = performance_rows([
        {"name": "A", "score": "9.50", "avgQuality": "2.00", "totalReports": 3},
        {"name": "B", "score": "27.25", "avgQuality": "7.50", "totalReports": 12},
        "junk",
    ])
    assert [(r["rank"], r["name"], r["score"]) for r in rows] == [(1, "B", 27.25), (2, "A", 9.5)]
    assert rows[0]["quality"] == 7.5
    assert performance_rows({"unexpected": "shape"}) == []


def test_ranking_query_uses_the_current_month(api, http, signed_in):
    api.reports.performance(month_params(datetime.date(2026, 10, 19)))
    assert http.last["path"] == "/reports/performance"
    assert http.last["params"] == {"month": 10, "year": 2026}


def test_growth_history_and_portfolio_details_paths(api, http, signed_in):
    api.reports.growth("s1")
    assert (http.last["method"], http.last["path"]) == ("GET", "/reports/growth/s1")
    api.portfolios.student_details("s1")
    assert (http.last["method"], http.last["path"]) == ("GET", "/portfolios/student/s1")


def test_work_submitted_for_a_student(api, http, signed_in):
    ok, msg = submit_work_for(api, "s1", "k1", {"workUrl": " https://drive.test/w ", "remarks": "v2"})
    assert (ok, msg) == (True, "Portfolio work submitted successfully")
    assert http.last["path"] == "/portfolios/submit"
    assert http.last["json"] == {"studentId": "s1", "taskId": "k1", "workUrl": "https://drive.test/w",
                                 "behanceUrl": None, "remarks": "v2"}


def test_work_needs_a_link(api, http):
    assert submit_work_for(api, "s1", "k1", {"workUrl": " ", "behanceUrl": ""}) == \
        (False, "Add a work link or a Behance link")
    assert http.calls == []


def test_expense_summary_handles_shapes():
    rows, total = expense_summary({"expenses": [{"amount": 5000}, {"amount": "1,500"}], "totalAmount": 6500})
    assert (len(rows), total) == (2, 6500.0)
    assert expense_summary({"expenses": [{"amount": 5000}, {"amount": "1,500"}]})[1] == 6500.0
    assert expense_summary("nope") == ([], 0.0)


def test_expense_is_posted_for_the_branch(api, http, signed_in):
    ok, msg = submit_expense(api, {"branchId": "b1", "amount": 5000.0, "category": "MARKETING",
                                   "date": datetime.date(2026, 10, 19), "description": " Local ads "})
    assert (ok, msg) == (True, "Expense recorded")
    assert (http.last["method"], http.last["path"]) == ("POST", "/reports/expenses")
    assert http.last["json"] == {"branchId": "b1", "amount": 5000.0, "category": "MARKETING",
                                 "description": "Local ads", "date": "2026-10-19"}


def test_expense_needs_a_positive_amount(api, http):
    assert submit_expense(api, {"branchId": "b1", "amount": 0.0, "category": "RENT"}) == \
        (False, "Amount must be greater than zero")
    assert http.calls == []


def test_event_plan_is_posted(api, http, signed_in):
    when = datetime.date.today() + datetime.timedelta(days=7)
    ok, _ = submit_event_plan(api, {"branchId": "b1", "type": "SEMINAR", "title": " AI in design ",
                                    "date": when})
    assert ok
    assert http.last["path"] == "/reports/event-plan"
    assert http.last["json"] == {"branchId": "b1", "type": "SEMINAR", "title": "AI in design",
                                 "description": "", "date": when.isoformat()}


def test_event_plan_validation():
    today = datetime.date(2026, 10, 19)
    base = {"branchId": "b1", "type": "INDUSTRIAL_VISIT", "title": "Plant tour"}
    assert validate_event_plan({**base, "date": None}, today)[0] is False
    assert validate_event_plan({**base, "date": datetime.date(2026, 10, 1)}, today) == \
        (False, "Event date cannot be in the past")
    assert validate_event_plan({**base, "date": today}, today) == (True, "")


def test_social_engagement_rows(api, http, signed_in):
    http.reply("GET", "/reports/social-engagement", {"success": True, "data": [
        {"date": "2026-10-18T00:00:00Z", "platform": "INSTAGRAM", "likes": 120, "leadsGenerated": 4},
    ]})
    rows = engagement_rows(api.reports.social_engagement({"branchId": "b1"})["data"])
    assert http.last["params"] == {"branchId": "b1"}
    assert rows == [{"date": "2026-10-18", "platform": "INSTAGRAM", "likes": 120, "leads": 4}]
    assert engagement_rows(None) == []


def test_branch_helpers():
    assert user_branch_id({"branchId": "b1"}) == "b1"
    assert user_branch_id({"branch": {"id": "b2"}}) == "b2"
    assert user_branch_id(None) is None
    assert admission_fee_status({"feeAmount": 45000, "feePaid": 45000}) == "Paid"
    assert admission_fee_status({"feeAmount": 45000, "feePaid": "20000"}) == "Partial"


def test_refresh_user_merges_the_server_copy(api, http, signed_in):
    http.reply("GET", "/auth/me", {"success": True, "data": {"id": "u-admin", "email": "admin@institute.test",
                                                             "role": "ADMIN", "branchId": "b9"}})
    assert refresh_user(api, signed_in) == (True, "Account details reloaded")
    assert http.last["headers"]["Authorization"] == "Bearer tok-123"
    user = signed_in.get_user()
    assert (user["branchId"], user["firstName"]) == ("b9", ADMIN_USER["firstName"])


def test_refresh_user_keeps_the_snapshot_on_failure(api, http, signed_in):
    http.reply("GET", "/auth/me", {"success": False, "message": "User not found"}, status=404)
    assert refresh_user(api, signed_in) == (False, "User not found")
    assert signed_in.get_user() == ADMIN_USER
