# scripts/seed_test_student.py
"""
Give a STUDENT login a complete profile so the student dashboard has data.

Finds a student user, the first branch and course, then finds-or-creates a
batch, an admission and a student row for that user. Safe to re-run.

    python -m scripts.seed_test_student [--db URL] [--hint student3]
"""
from __future__ import annotations
import argparse
import datetime
import logging
import random
import sys
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sqlalchemy import text as sa_text
from sqlalchemy.engine import Connection, Engine

from core.db import get_engine
from core.derived import fee_balance
from core.settings import configure_logging, load_settings

logger = logging.getLogger(__name__)

DEFAULT_FEE = 45000
INITIAL_PAID = 30000


class SeedError(RuntimeError):
    pass


@dataclass
class SeedResult:
    user_id: str
    batch_id: str
    admission_id: str
    student_id: str
    created: List[str] = field(default_factory=list)


def _exec(conn: Connection, sql: str, params: Optional[Dict[str, Any]] = None):
    return conn.execute(sa_text(sql), params or {})


def _one(conn: Connection, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
    row = _exec(conn, sql, params).mappings().first()
    return dict(row) if row else None


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def find_student_user(conn: Connection, hint: str) -> Optional[Dict[str, Any]]:
    """Prefer a user matching the hint by name or email; otherwise any STUDENT."""
    if hint:
        like = f"%{hint.lower()}%"
        spaced = f"%{hint.lower().replace('student', 'student ')}%"
        row = _one(conn, """
            SELECT * FROM users
            WHERE LOWER("email") LIKE :like OR LOWER("firstName") LIKE :spaced
            ORDER BY "createdAt" LIMIT 1
        """, {"like": like, "spaced": spaced})
        if row:
            return row
    return _one(conn, """SELECT * FROM users WHERE "role" = 'STUDENT' ORDER BY "createdAt" LIMIT 1""")


def ensure_batch(conn: Connection, course_id: str, branch_id: str, result_created: List[str]) -> Dict[str, Any]:
    batch = _one(conn, """
        SELECT * FROM batches WHERE "courseId" = :c AND "branchId" = :b ORDER BY "createdAt" LIMIT 1
    """, {"c": course_id, "b": branch_id})
    if batch:
        return batch
    now = _now()
    batch = {
        "id": str(uuid.uuid4()),
        "name": "Standard Batch",
        "code": f"BCH-{random.randint(0, 999)}",
        "courseId": course_id,
        "branchId": branch_id,
        "startTime": "10:00 AM",
        "endTime": "01:00 PM",
        "isActive": True,
        "createdAt": now,
        "updatedAt": now,
    }
    _exec(conn, """
        INSERT INTO batches ("id", "name", "code", "courseId", "branchId", "startTime", "endTime",
                             "isActive", "createdAt", "updatedAt")
        VALUES (:id, :name, :code, :courseId, :branchId, :startTime, :endTime, :isActive, :createdAt, :updatedAt)
    """, batch)
    result_created.append("batch")
    return batch


def ensure_admission(conn: Connection, user: Dict[str, Any], course: Dict[str, Any], branch_id: str,
                     result_created: List[str]) -> Dict[str, Any]:
    admission = _one(conn, """SELECT * FROM admissions WHERE "email" = :e LIMIT 1""", {"e": user["email"]})
    if admission:
        return admission
    fee = course.get("fees") or DEFAULT_FEE
    now = _now()
    admission = {
        "id": str(uuid.uuid4()),
        "admissionNumber": f"ADM-{random.randint(0, 9999)}",
        "firstName": user.get("firstName") or "",
        "lastName": user.get("lastName") or "",
        "email": user["email"],
        "phone": user.get("phone") or "0000000000",
        "courseId": course["id"],
        "branchId": branch_id,
        "admissionDate": now,
        "feeAmount": fee,
        "feePaid": INITIAL_PAID,
        "feeBalance": fee_balance(fee, INITIAL_PAID),
        "status": "APPROVED",
        "createdAt": now,
        "updatedAt": now,
    }
    _exec(conn, """
        INSERT INTO admissions ("id", "admissionNumber", "firstName", "lastName", "email", "phone", "courseId",
                                "branchId", "admissionDate", "feeAmount", "feePaid", "feeBalance", "status",
                                "createdAt", "updatedAt")
        VALUES (:id, :admissionNumber, :firstName, :lastName, :email, :phone, :courseId, :branchId,
                :admissionDate, :feeAmount, :feePaid, :feeBalance, :status, :createdAt, :updatedAt)
    """, admission)
    result_created.append("admission")
    return admission


def ensure_student(conn: Connection, user_id: str, admission_id: str, course_id: str, branch_id: str,
                   batch_id: str, result_created: List[str]) -> Dict[str, Any]:
    student = _one(conn, """SELECT * FROM students WHERE "userId" = :u LIMIT 1""", {"u": user_id})
    if student:
        return student
    now = _now()
    student = {
        "id": str(uuid.uuid4()),
        "userId": user_id,
        "admissionId": admission_id,
        "enrollmentNumber": f"ST-{random.randint(0, 9999)}",
        "branchId": branch_id,
        "courseId": course_id,
        "batchId": batch_id,
        "currentSemester": 1,
        "isActive": True,
        "placementEligible": True,
        "certificateLocked": False,
        "createdAt": now,
        "updatedAt": now,
    }
    _exec(conn, """
        INSERT INTO students ("id", "userId", "admissionId", "enrollmentNumber", "branchId", "courseId",
                              "batchId", "currentSemester", "isActive", "placementEligible",
                              "certificateLocked", "createdAt", "updatedAt")
        VALUES (:id, :userId, :admissionId, :enrollmentNumber, :branchId, :courseId, :batchId,
                :currentSemester, :isActive, :placementEligible, :certificateLocked, :createdAt, :updatedAt)
    """, student)
    result_created.append("student")
    return student


def seed(engine: Engine, hint: str = "student3") -> SeedResult:
    """Run every step in one transaction; raises SeedError when core data is missing."""
    with engine.begin() as conn:
        user = find_student_user(conn, hint)
        if not user:
            raise SeedError("No student user found.")
        branch = _one(conn, """SELECT * FROM branches ORDER BY "createdAt" LIMIT 1""")
        course = _one(conn, """SELECT * FROM courses ORDER BY "createdAt" LIMIT 1""")
        if not branch or not course:
            raise SeedError("Core data (Branch or Course) missing.")

        created: List[str] = []
        batch = ensure_batch(conn, course["id"], branch["id"], created)
        admission = ensure_admission(conn, user, course, branch["id"], created)
        student = ensure_student(conn, user["id"], admission["id"], course["id"], branch["id"], batch["id"], created)

    return SeedResult(user_id=user["id"], batch_id=batch["id"], admission_id=admission["id"],
                      student_id=student["id"], created=created)


def main(argv: Optional[List[str]] = None) -> int:
    settings = load_settings()
    configure_logging(settings)
    parser = argparse.ArgumentParser(description="Create a minimal student profile for a STUDENT login.")
    parser.add_argument("--db", default=settings.seed.database_url, help="SQLAlchemy URL of the backend database")
    parser.add_argument("--hint", default=settings.seed.student_hint, help="name/email fragment of the user")
    args = parser.parse_args(argv)

    print("--- Creating Minimal Student Data ---")
    try:
        result = seed(get_engine(args.db), args.hint)
    except Exception as e:
        logger.exception("Seeding failed")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for step in ("batch", "admission", "student"):
        print(f"✅ {step} created" if step in result.created else f"• {step} already exists")
    print("--- Done! ---")
    return 0


if __name__ == "__main__":
    sys.exit(main())
