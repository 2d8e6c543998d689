# tests/test_derived.py
import pytest

from core.derived import (attendance_band, attendance_health, attendance_percentage, conversion_rate,
                          fee_balance, format_money, paid_percentage, placement_band, to_number)


def test_fee_balance_is_total_minus_paid():
    assert fee_balance(45000, 30000) == 15000
    assert fee_balance("45,000", "30000") == 15000
    assert fee_balance(None, None) == 0


def test_overpayment_keeps_negative_balance():
    assert fee_balance(10000, 12000) == -2000
    assert format_money(-2000) == "-₹2,000"


def test_percentages_guard_against_zero_totals():
    assert paid_percentage(0, 500) == 0
    assert attendance_percentage(3, 0) == 0
    assert paid_percentage(45000, 30000) == 67
    assert conversion_rate(5, 20) == 25


@pytest.mark.parametrize("pct,band", [(90, "success"), (85, "success"), (80, "warning"),
                                      (75, "warning"), (74, "danger"), (None, "danger")])
def test_attendance_band(pct, band):
    assert attendance_band(pct) == band


@pytest.mark.parametrize("pct,health", [(75, "good"), (60, "fair"), (59.9, "poor")])
def test_attendance_health(pct, health):
    assert attendance_health(pct) == health


def test_placement_band_needs_attendance_and_unlocked_certificate():
    assert placement_band(80, False) == "ELIGIBLE"
    assert placement_band(80, True) == "NOT_ELIGIBLE"
    assert placement_band(70, False) == "NOT_ELIGIBLE"


def test_to_number_is_lenient():
    assert to_number("") == 0
    assert to_number("abc") == 0
    assert to_number(" 1,250.5 ") == 1250.5
