# tests/test_models.py
from core.models import Lead, LeadStatus, Role, parse_envelope, parse_items, unwrap_list


def test_unwrap_list_handles_plain_and_paginated_shapes():
    assert unwrap_list({"success": True, "data": [{"id": "1"}, "junk"]}) == [{"id": "1"}]
    paged = {"success": True, "data": {"leads": [{"id": "2"}], "pagination": {"total": 1}}}
    assert unwrap_list(paged) == [{"id": "2"}]
    assert unwrap_list({"success": True, "data": {"logs": [{"id": "w1"}], "meta": {"total": 1}}}) == [{"id": "w1"}]
    assert unwrap_list({"success": True, "data": None}) == []
    assert unwrap_list("not a dict") == []


def test_parse_envelope_tolerates_garbage():
    env = parse_envelope(None)
    assert env.success is False and env.data is None
    assert parse_envelope({"success": True, "data": {"a": 1}, "extra": 1}).data == {"a": 1}


def test_parse_items_skips_rows_that_do_not_fit():
    result = {"success": True, "data": [
        {"id": 7, "firstName": "Meera", "phone": "9876543210", "status": "QUALIFIED"},
        {"firstName": "no id"},
    ]}
    leads = parse_items(Lead, result)
    assert len(leads) == 1
    assert leads[0].id == "7"
    assert leads[0].status is LeadStatus.QUALIFIED


def test_role_parse():
    assert Role.parse(" trainer ") is Role.TRAINER
    assert Role.parse("") is None
    assert Role.parse("NOPE") is None
