# tests/test_nav_registry.py
import pytest

from core.models import Role
from core.nav_registry import (ROUTE_INDEX, SECTIONS, dashboard_for, is_active, screen_for,
                               visible_sections)


def _paths(role):
    return {i.path for s in visible_sections(role) for i in s.items}


@pytest.mark.parametrize("role,screen", [
    (Role.ADMIN, "dashboard"),
    (Role.CEO, "dashboard"),
    (Role.CHANNEL_PARTNER, "branch_head_dashboard"),
    (Role.TRAINER, "trainer_dashboard"),
    (Role.STUDENT, "student_dashboard"),
    ("BRANCH_HEAD", "branch_head_dashboard"),
    (None, "dashboard"),
])
def test_root_renders_the_role_dashboard(role, screen):
    assert dashboard_for(role) == screen
    assert screen_for("/", role) == screen


def test_student_sidebar_is_minimal():
    assert _paths(Role.STUDENT) == {"/", "/portfolio", "/notifications", "/profile"}


def test_trainer_sees_teaching_pages_but_not_admin_ones():
    paths = _paths(Role.TRAINER)
    assert {"/courses", "/batches", "/students", "/attendance", "/placements", "/reports"} <= paths
    assert not {"/leads", "/admissions", "/trainers", "/incentives", "/users"} & paths


def test_growth_is_for_teaching_roles_and_insights_for_staff():
    assert "/growth" in _paths(Role.TRAINER)
    assert "/insights" not in _paths(Role.TRAINER)
    assert {"/growth", "/insights"} <= _paths(Role.CHANNEL_PARTNER)
    assert screen_for("/insights", Role.CEO) == "branch_insights"
    assert screen_for("/growth", Role.STUDENT) is None


def test_only_leadership_manages_users():
    assert "/users" in _paths(Role.ADMIN)
    assert "/users" in _paths(Role.CEO)
    assert "/users" not in _paths(Role.CHANNEL_PARTNER)


def test_empty_sections_are_dropped():
    for section in visible_sections(Role.STUDENT):
        assert section.items


def test_forbidden_and_unknown_paths_resolve_to_nothing():
    assert screen_for("/users", Role.STUDENT) is None
    assert screen_for("/nowhere", Role.ADMIN) is None


def test_public_paths_resolve_for_anyone():
    assert screen_for("/enquiry", None) == "public_enquiry"
    assert screen_for("/login", Role.STUDENT) == "login"


def test_active_item_is_exact_match():
    item = ROUTE_INDEX["/leads"]
    assert is_active(item, "/leads")
    assert not is_active(item, "/leads/extra")


def test_every_item_points_at_a_screen_module():
    import importlib.util
    for section in SECTIONS:
        for item in section.items:
            assert importlib.util.find_spec(f"screens.{item.screen}") is not None, item.screen
