# core/nav_registry.py
from __future__ import annotations
import importlib
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional

from core.models import Role

STAFF = frozenset({Role.ADMIN, Role.CEO, Role.CHANNEL_PARTNER})
TEACHING = STAFF | {Role.TRAINER}
LEADERSHIP = frozenset({Role.ADMIN, Role.CEO})

PUBLIC_PATHS = {
    "/setup": "setup",
    "/login": "login",
    "/logout": "logout",
    "/enquiry": "public_enquiry",
}

@dataclass(frozen=True)
class NavItem:
    path: str                              # exact location, also the ?page= value
    title: str                             # sidebar label
    icon: str                              # emoji
    screen: str                            # module under screens/
    roles: Optional[FrozenSet[Role]] = None  # None: every role

    def visible_to(self, role: Optional[Role]) -> bool:
        return self.roles is None or (role is not None and role in self.roles)

@dataclass(frozen=True)
class Section:
    label: str
    items: List[NavItem]

SECTIONS: List[Section] = [
    Section("Main", [
        NavItem("/",            "Dashboard",          "📊", "dashboard"),
        NavItem("/leads",       "Leads & Enquiries",  "📝", "leads",       STAFF),
        NavItem("/admissions",  "Admissions",         "📋", "admissions",  STAFF),
    ]),
    Section("Academics", [
        NavItem("/courses",     "Courses & Syllabus", "📘", "courses",     TEACHING),
        NavItem("/batches",     "Batches",            "🗂️", "batches",     TEACHING),
        NavItem("/trainers",    "Trainers",           "👨‍🏫", "trainers",    STAFF),
        NavItem("/students",    "Students",           "🎓", "students",    TEACHING),
        NavItem("/attendance",  "Attendance",         "📅", "attendance",  TEACHING),
    ]),
    Section("Outcomes", [
        NavItem("/portfolio",   "Portfolio",          "📁", "portfolio"),
        NavItem("/placements",  "Placements",         "💼", "placements",  TEACHING),
        NavItem("/incentives",  "Incentives",         "🏅", "incentives",  STAFF),
    ]),
    Section("Analytics", [
        NavItem("/reports",        "Reports",         "📈", "reports",       TEACHING),
        NavItem("/growth",         "Student Growth",  "🌱", "student_growth", TEACHING),
        NavItem("/insights",       "Branch Insights", "🧭", "branch_insights", STAFF),
        NavItem("/notifications",  "Notifications",   "🔔", "notifications"),
    ]),
    Section("System", [
        NavItem("/users",       "User Management",    "👥", "users",       LEADERSHIP),
        NavItem("/profile",     "Profile",            "👤", "profile"),
    ]),
]

# Path index for quick lookup (used by the router)
ROUTE_INDEX: Dict[str, NavItem] = {i.path: i for s in SECTIONS for i in s.items}
DEFAULT_PATH = "/"

DASHBOARDS: Dict[Role, str] = {
    Role.TRAINER: "trainer_dashboard",
    Role.STUDENT: "student_dashboard",
    Role.CHANNEL_PARTNER: "branch_head_dashboard",
}


def dashboard_for(role: Optional[Role]) -> str:
    return DASHBOARDS.get(Role.parse(role), "dashboard")


def visible_sections(role: Optional[Role], sections: List[Section] = SECTIONS) -> List[Section]:
    role = Role.parse(role)
    out = []
    for s in sections:
        items = [i for i in s.items if i.visible_to(role)]
        if items:
            out.append(Section(s.label, items))
    return out


def is_active(item: NavItem, current_path: str) -> bool:
    return item.path == current_path


def screen_for(path: str, role: Optional[Role]) -> Optional[str]:
    """Screen module for a location, or None when the path is unknown or not allowed."""
    if path in PUBLIC_PATHS:
        return PUBLIC_PATHS[path]
    if path == DEFAULT_PATH:
        return dashboard_for(role)
    item = ROUTE_INDEX.get(path)
    if item is None or not item.visible_to(Role.parse(role)):
        return None
    return item.screen


def load_screen(name: str):
    return importlib.import_module(f"screens.{name}")
