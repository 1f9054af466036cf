from datetime import date, datetime, timezone
from decimal import Decimal

from pydantic import BaseModel

from workflow_engine.services.payload import (
    NULL,
    FieldValue,
    ValueKind,
    parse_datetime,
    parse_decimal,
    resolve_path,
    snapshot_payload,
)


def test_resolve_path_walks_nested_mappings():
    payload = {"Client": {"Address": {"Country": "SL"}}}
    value = resolve_path(payload, "Client.Address.Country")
    assert value.kind is ValueKind.STRING
    assert value.as_text() == "SL"


def test_resolve_path_prefers_exact_key_then_case_insensitive():
    payload = {"status": "lower", "Status": "exact", "Amount": 10}
    assert resolve_path(payload, "Status").as_text() == "exact"
    assert resolve_path(payload, "amount").as_text() == "10"


def test_resolve_path_never_raises():
    assert resolve_path(None, "A") is NULL
    assert resolve_path({"A": [1, 2]}, "A.B") is NULL
    assert resolve_path({"A": 1}, "") is NULL
    assert resolve_path({"A": 1}, "A..B") is NULL
    assert resolve_path("not a mapping", "A") is NULL


def test_resolve_path_accepts_pydantic_models():
    class Event(BaseModel):
        Amount: int

    assert resolve_path(Event(Amount=7), "Amount").as_text() == "7"


def test_field_value_tags():
    assert FieldValue.of(None).is_null
    assert FieldValue.of(True).kind is ValueKind.BOOL
    assert FieldValue.of(3.5).kind is ValueKind.NUMBER
    assert FieldValue.of(date(2024, 1, 2)).kind is ValueKind.DATETIME
    assert FieldValue.of({"a": 1}).kind is ValueKind.MAP
    assert FieldValue.of(("a", "b")).kind is ValueKind.LIST


def test_field_value_text_rendering():
    assert FieldValue.of(False).as_text() == "false"
    assert FieldValue.of(1500.0).as_text() == "1500"
    assert FieldValue.of(Decimal("12.50")).as_text() == "12.5"
    assert FieldValue.of(["a", 1, True]).as_text() == "a,1,true"
    assert FieldValue.of(datetime(2024, 1, 2, 3, 4, 5)).as_text() == "2024-01-02T03:04:05"


def test_parse_decimal_rejects_non_finite_and_garbage():
    assert parse_decimal(" 42.10 ") == Decimal("42.10")
    assert parse_decimal("NaN") is None
    assert parse_decimal("Infinity") is None
    assert parse_decimal("abc") is None
    assert parse_decimal("") is None


def test_parse_datetime_formats_and_utc_default():
    parsed = parse_datetime("2024-05-06T07:08:09Z")
    assert parsed == datetime(2024, 5, 6, 7, 8, 9, tzinfo=timezone.utc)
    assert parse_datetime("05/06/2024") == datetime(2024, 5, 6, tzinfo=timezone.utc)
    assert parse_datetime("2024-05-06 07:08").tzinfo is timezone.utc
    assert parse_datetime("yesterday-ish") is None


def test_snapshot_payload_is_json_safe():
    snap = snapshot_payload({"When": datetime(2024, 1, 1), "Amount": Decimal("1.5"), "Nested": {"x": [1]}})
    assert snap["When"] == "2024-01-01 00:00:00"
    assert snap["Amount"] == "1.5"
    assert snap["Nested"] == {"x": [1]}
