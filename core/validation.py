# core/validation.py
from __future__ import annotations
import re
from typing import Any, Dict, Iterable, Tuple

AADHAAR_RE = re.compile(r"^\d{12}$")
PAN_RE = re.compile(r"^[A-Z]{5}[0-9]{4}[A-Z]$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^\+?\d{10,13}$")
MIN_PASSWORD = 6

REQUIRED_MSG = "Please fill in all required fields marked with *"

STUDENT_REQUIRED = (
    "firstName", "lastName", "email", "phone", "dateOfJoining", "dateOfBirth",
    "gender", "parentPhone", "address", "courseId", "branchId", "selectedSoftware",
    "qualification", "leadSource", "aadhaarNumber", "totalFee", "paymentPlan", "initialPaid",
)
STUDENT_EDIT_EXEMPT = {"totalFee", "paymentPlan", "initialPaid", "email"}


def _blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set)):
        return len(value) == 0
    return False


def missing_fields(data: Dict[str, Any], required: Iterable[str]) -> list[str]:
    return [f for f in required if _blank(data.get(f))]


def validate_required(data: Dict[str, Any], required: Iterable[str]) -> Tuple[bool, str]:
    if missing_fields(data, required):
        return False, REQUIRED_MSG
    return True, ""


def validate_student(data: Dict[str, Any], editing: bool = False, has_photo: bool = False) -> Tuple[bool, str]:
    required = [f for f in STUDENT_REQUIRED if not (editing and f in STUDENT_EDIT_EXEMPT)]
    ok, msg = validate_required(data, required)
    if not ok:
        return ok, msg
    if not AADHAAR_RE.match(str(data.get("aadhaarNumber") or "")):
        return False, "Aadhaar number must be exactly 12 digits"
    pan = (data.get("panNumber") or "").strip()
    if pan and not PAN_RE.match(pan):
        return False, "Invalid PAN number format"
    if not editing and not has_photo:
        return False, "Photo upload is required"
    return True, ""


def validate_lead(data: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(data, ("firstName", "phone"))
    if not ok:
        return ok, msg
    phone = re.sub(r"[\s-]", "", str(data.get("phone")))
    if not PHONE_RE.match(phone):
        return False, "Enter a valid phone number"
    email = (data.get("email") or "").strip()
    if email and not EMAIL_RE.match(email):
        return False, "Invalid email format"
    return True, ""


def validate_setup(data: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(data, ("firstName", "lastName", "email", "password"))
    if not ok:
        return False, "All fields are required"
    if not EMAIL_RE.match(data["email"].strip()):
        return False, "Invalid email format"
    if len(data["password"]) < MIN_PASSWORD:
        return False, f"Password must be at least {MIN_PASSWORD} characters long"
    if data.get("confirmPassword") is not None and data["confirmPassword"] != data["password"]:
        return False, "Passwords do not match"
    return True, ""


def validate_password_change(current: str, new: str, confirm: str) -> Tuple[bool, str]:
    if not current or not new:
        return False, "All fields are required"
    if len(new) < MIN_PASSWORD:
        return False, f"Password must be at least {MIN_PASSWORD} characters long"
    if new != confirm:
        return False, "Passwords do not match"
    return True, ""


def validate_user(data: Dict[str, Any]) -> Tuple[bool, str]:
    ok, msg = validate_required(data, ("firstName", "lastName", "email"))
    if not ok:
        return ok, msg
    if not EMAIL_RE.match(data["email"].strip()):
        return False, "Invalid email format"
    if not data.get("role"):
        return False, "Role is required"
    if data["role"] != "ADMIN" and not data.get("branchId"):
        return False, "Branch is required for non-admin users"
    return True, ""
