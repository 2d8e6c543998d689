# core/models.py
"""Typed views of the backend's JSON payloads.

The server owns every entity; these models only describe what the client
reads. Unknown fields are preserved so screens can still show them.
"""
from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)


class Role(str, Enum):
    ADMIN = "ADMIN"
    CEO = "CEO"
    CHANNEL_PARTNER = "CHANNEL_PARTNER"
    TRAINER = "TRAINER"
    STUDENT = "STUDENT"

    @classmethod
    def parse(cls, value: Any) -> Optional["Role"]:
        if isinstance(value, Role):
            return value
        if not value:
            return None
        v = str(value).strip().upper()
        if v == "BRANCH_HEAD":  # pre-rename accounts
            return cls.CHANNEL_PARTNER
        try:
            return cls(v)
        except ValueError:
            return None


ROLE_LABELS = {
    Role.ADMIN: "Administrator",
    Role.CEO: "CEO",
    Role.CHANNEL_PARTNER: "Branch Head",
    Role.TRAINER: "Trainer",
    Role.STUDENT: "Student",
}


class LeadStatus(str, Enum):
    NEW = "NEW"
    CONTACTED = "CONTACTED"
    QUALIFIED = "QUALIFIED"
    NEGOTIATING = "NEGOTIATING"
    CONVERTED = "CONVERTED"
    LOST = "LOST"

class LeadSource(str, Enum):
    WEBSITE = "WEBSITE"
    PHONE = "PHONE"
    WALK_IN = "WALK_IN"
    REFERRAL = "REFERRAL"
    SOCIAL_MEDIA = "SOCIAL_MEDIA"
    ADVERTISEMENT = "ADVERTISEMENT"
    OTHER = "OTHER"

class AdmissionStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
    CONVERTED = "CONVERTED"

class AttendanceStatus(str, Enum):
    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"

class PlacementStatus(str, Enum):
    NOT_ELIGIBLE = "NOT_ELIGIBLE"
    ELIGIBLE = "ELIGIBLE"
    APPLIED = "APPLIED"
    SHORTLISTED = "SHORTLISTED"
    INTERVIEWED = "INTERVIEWED"
    OFFERED = "OFFERED"
    PLACED = "PLACED"
    REJECTED = "REJECTED"

class IncentiveType(str, Enum):
    ADMISSION = "ADMISSION"
    PLACEMENT = "PLACEMENT"
    PERFORMANCE = "PERFORMANCE"
    BONUS = "BONUS"


class WireModel(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True, coerce_numbers_to_str=True)


class BranchRef(WireModel):
    id: str
    name: str = ""


class UserProfile(WireModel):
    id: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: str = ""
    phone: Optional[str] = None
    role: Role
    branch_id: Optional[str] = Field(None, alias="branchId")
    branch: Optional[BranchRef] = None
    photo: Optional[str] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, v):
        role = Role.parse(v)
        if role is None:
            raise ValueError(f"unknown role: {v!r}")
        return role

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email


class Session(BaseModel):
    token: str
    user: UserProfile


T = TypeVar("T", bound=BaseModel)


class Envelope(WireModel):
    success: bool = False
    data: Any = None
    message: Optional[str] = None


class Lead(WireModel):
    id: str
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: Optional[str] = None
    phone: str = ""
    source: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    branch_id: Optional[str] = Field(None, alias="branchId")
    course_id: Optional[str] = Field(None, alias="courseId")

class Admission(WireModel):
    id: str
    admission_number: Optional[str] = Field(None, alias="admissionNumber")
    first_name: str = Field("", alias="firstName")
    last_name: str = Field("", alias="lastName")
    email: Optional[str] = None
    course_id: Optional[str] = Field(None, alias="courseId")
    branch_id: Optional[str] = Field(None, alias="branchId")
    fee_amount: float = Field(0, alias="feeAmount")
    fee_paid: float = Field(0, alias="feePaid")
    status: AdmissionStatus = AdmissionStatus.PENDING

class Course(WireModel):
    id: str
    name: str
    code: Optional[str] = None
    fees: Optional[float] = None
    duration: Optional[Any] = None
    is_active: bool = Field(True, alias="isActive")

class Branch(WireModel):
    id: str
    name: str
    code: Optional[str] = None
    city: Optional[str] = None

class Batch(WireModel):
    id: str
    name: str
    code: Optional[str] = None
    course_id: Optional[str] = Field(None, alias="courseId")
    branch_id: Optional[str] = Field(None, alias="branchId")
    trainer_id: Optional[str] = Field(None, alias="trainerId")
    start_time: Optional[str] = Field(None, alias="startTime")
    end_time: Optional[str] = Field(None, alias="endTime")
    is_active: bool = Field(True, alias="isActive")

class Student(WireModel):
    id: str
    user_id: Optional[str] = Field(None, alias="userId")
    enrollment_number: Optional[str] = Field(None, alias="enrollmentNumber")
    course_id: Optional[str] = Field(None, alias="courseId")
    branch_id: Optional[str] = Field(None, alias="branchId")
    batch_id: Optional[str] = Field(None, alias="batchId")
    admission_id: Optional[str] = Field(None, alias="admissionId")
    aadhaar_number: Optional[str] = Field(None, alias="aadhaarNumber")
    pan_number: Optional[str] = Field(None, alias="panNumber")
    placement_eligible: bool = Field(False, alias="placementEligible")
    certificate_locked: bool = Field(True, alias="certificateLocked")

class Trainer(WireModel):
    id: str
    specialization: Optional[str] = None
    user: Optional[Dict[str, Any]] = None

class Company(WireModel):
    id: str
    name: str

class Placement(WireModel):
    id: str
    status: PlacementStatus = PlacementStatus.NOT_ELIGIBLE
    student_id: Optional[str] = Field(None, alias="studentId")
    company_id: Optional[str] = Field(None, alias="companyId")
    package: Optional[float] = None

class Incentive(WireModel):
    id: str
    type: Optional[IncentiveType] = None
    amount: float = 0
    is_paid: bool = Field(False, alias="isPaid")

class Notification(WireModel):
    id: str
    title: str = ""
    message: str = ""
    is_read: bool = Field(False, alias="isRead")


def parse_envelope(result: Any) -> Envelope:
    if isinstance(result, dict):
        try:
            return Envelope.model_validate(result)
        except ValidationError:
            logger.warning("Malformed response envelope: %r", result)
    return Envelope(success=False, data=None)


def unwrap_list(result: Any) -> List[dict]:
    """Return the row list from ``{data: [...]}`` or ``{data: {items: [...]}}`` shapes."""
    data = parse_envelope(result).data
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict):
        for key in ("items", "rows", "results", "leads", "admissions", "students",
                    "trainers", "courses", "batches", "placements", "notifications", "logs"):
            if isinstance(data.get(key), list):
                return [r for r in data[key] if isinstance(r, dict)]
    return []


def parse_items(model: Type[T], result: Any) -> List[T]:
    """Validate every row of a list response, skipping rows that don't fit."""
    items: List[T] = []
    for row in unwrap_list(result):
        try:
            items.append(model.model_validate(row))
        except ValidationError as e:
            logger.warning("Skipping %s row %r: %s", model.__name__, row.get("id"), e.error_count())
    return items
