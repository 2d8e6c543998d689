# tests/test_seed.py
import pytest
from sqlalchemy import text as sa_text

from core.db import get_engine
from scripts.seed_test_student import SeedError, main, seed

SCHEMA = [
    """CREATE TABLE users ("id" TEXT PRIMARY KEY, "firstName" TEXT, "lastName" TEXT, "email" TEXT,
        "phone" TEXT, "role" TEXT, "createdAt" TEXT)""",
    """CREATE TABLE branches ("id" TEXT PRIMARY KEY, "name" TEXT, "createdAt" TEXT)""",
    """CREATE TABLE courses ("id" TEXT PRIMARY KEY, "name" TEXT, "fees" REAL, "createdAt" TEXT)""",
    """CREATE TABLE batches ("id" TEXT PRIMARY KEY, "name" TEXT, "code" TEXT, "courseId" TEXT,
        "branchId" TEXT, "startTime" TEXT, "endTime" TEXT, "isActive" BOOLEAN,
        "createdAt" TIMESTAMP, "updatedAt" TIMESTAMP)""",
    """CREATE TABLE admissions ("id" TEXT PRIMARY KEY, "admissionNumber" TEXT, "firstName" TEXT,
        "lastName" TEXT, "email" TEXT, "phone" TEXT, "courseId" TEXT, "branchId" TEXT,
        "admissionDate" TIMESTAMP, "feeAmount" REAL, "feePaid" REAL, "feeBalance" REAL, "status" TEXT,
        "createdAt" TIMESTAMP, "updatedAt" TIMESTAMP)""",
    """CREATE TABLE students ("id" TEXT PRIMARY KEY, "userId" TEXT, "admissionId" TEXT,
        "enrollmentNumber" TEXT, "branchId" TEXT, "courseId" TEXT, "batchId" TEXT,
        "currentSemester" INTEGER, "isActive" BOOLEAN, "placementEligible" BOOLEAN,
        "certificateLocked" BOOLEAN, "createdAt" TIMESTAMP, "updatedAt" TIMESTAMP)""",
]


def _engine(with_core_data=True):
    engine = get_engine("sqlite:///:memory:")
    with engine.begin() as conn:
        for ddl in SCHEMA:
            conn.execute(sa_text(ddl))
        conn.execute(sa_text("""INSERT INTO users VALUES
            ('u1', 'Student 1', 'One', 'student1@x.co', NULL, 'STUDENT', '2024-01-01'),
            ('u3', 'Student 3', 'Three', 'student3@x.co', '9876543210', 'STUDENT', '2024-01-03'),
            ('a1', 'Admin', 'User', 'admin@x.co', NULL, 'ADMIN', '2023-12-01')"""))
        if with_core_data:
            conn.execute(sa_text("INSERT INTO branches VALUES ('b1', 'Pune', '2024-01-01')"))
            conn.execute(sa_text("INSERT INTO courses VALUES ('c1', 'AutoCAD', 50000, '2024-01-01')"))
    return engine


def _count(engine, table):
    with engine.begin() as conn:
        return conn.execute(sa_text(f"SELECT COUNT(*) FROM {table}")).scalar()


def test_seed_builds_the_whole_profile_for_the_hinted_user():
    engine = _engine()
    result = seed(engine, "student3")
    assert result.user_id == "u3"
    assert result.created == ["batch", "admission", "student"]
    with engine.begin() as conn:
        adm = conn.execute(sa_text('SELECT * FROM admissions')).mappings().one()
        stu = conn.execute(sa_text('SELECT * FROM students')).mappings().one()
    assert adm["email"] == "student3@x.co"
    assert adm["feeAmount"] == 50000 and adm["feePaid"] == 30000 and adm["feeBalance"] == 20000
    assert adm["status"] == "APPROVED"
    assert stu["batchId"] == result.batch_id
    assert stu["admissionId"] == result.admission_id
    assert stu["enrollmentNumber"].startswith("ST-")


def test_seed_is_idempotent():
    engine = _engine()
    first = seed(engine, "student3")
    again = seed(engine, "student3")
    assert again.created == []
    assert again.student_id == first.student_id
    assert _count(engine, "students") == 1
    assert _count(engine, "batches") == 1


def test_unknown_hint_falls_back_to_first_student():
    assert seed(_engine(), "nobody-here").user_id == "u1"


def test_missing_branch_or_course_is_an_error():
    with pytest.raises(SeedError, match="Core data"):
        seed(_engine(with_core_data=False))


def test_main_exits_non_zero_on_failure(tmp_path, capsys):
    assert main(["--db", f"sqlite:///{tmp_path / 'empty.db'}"]) == 1
    assert "Error" in capsys.readouterr().err
