# core/derived.py
"""Display-only figures computed from raw numbers at render time.

Every screen that shows one of these goes through this module so the same
row never renders two different values.
"""
from __future__ import annotations
from typing import Any, Optional

ATTENDANCE_GOOD = 85
PLACEMENT_MIN_ATTENDANCE = 75
HEALTH_FAIR = 60


def to_number(value: Any) -> float:
    """Lenient numeric parse: '45,000', None and '' become numbers (0 for blanks)."""
    if value is None or value == "":
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", "").strip())
    except ValueError:
        return 0.0


def fee_balance(total: Any, paid: Any) -> float:
    """Outstanding fee. Overpayment gives a negative balance, which is shown as-is."""
    return to_number(total) - to_number(paid)


def paid_percentage(total: Any, paid: Any) -> int:
    t = to_number(total)
    if t <= 0:
        return 0
    return round(to_number(paid) / t * 100)


def attendance_percentage(present: Any, total: Any) -> int:
    t = to_number(total)
    if t <= 0:
        return 0
    return round(to_number(present) / t * 100)


def attendance_band(percentage: Any) -> str:
    """Badge variant for an attendance figure in the staff views."""
    pct = to_number(percentage)
    if pct >= ATTENDANCE_GOOD:
        return "success"
    if pct >= PLACEMENT_MIN_ATTENDANCE:
        return "warning"
    return "danger"


def attendance_health(percentage: Any) -> str:
    """Colour bucket used on the student's own dashboard."""
    pct = to_number(percentage)
    if pct >= PLACEMENT_MIN_ATTENDANCE:
        return "good"
    if pct >= HEALTH_FAIR:
        return "fair"
    return "poor"


def placement_band(attendance_pct: Any, certificate_locked: Optional[bool]) -> str:
    if to_number(attendance_pct) >= PLACEMENT_MIN_ATTENDANCE and not certificate_locked:
        return "ELIGIBLE"
    return "NOT_ELIGIBLE"


def format_money(amount: Any) -> str:
    value = to_number(amount)
    sign = "-" if value < 0 else ""
    return f"{sign}₹{abs(value):,.0f}"


def conversion_rate(converted: Any, total: Any) -> int:
    """Lead-to-admission conversion, as a whole percentage."""
    return attendance_percentage(converted, total)
