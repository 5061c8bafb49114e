from __future__ import annotations

from decimal import Decimal

import pytest

from app.domain import ErrorKind, InvalidRecordError, classify_error
from crm.mapper import coerce_optional_str, map_customer_row, parse_customer_id


def test_map_customer_row_builds_payload(sample_customer_row):
    payload = map_customer_row(sample_customer_row)

    assert payload.id == 1
    assert payload.first_name == "Ann"
    assert payload.last_name == "Lee"
    assert payload.email == "a@x.com"
    assert payload.to_json() == '{"id":1,"firstName":"Ann","lastName":"Lee","email":"a@x.com"}'


def test_map_customer_row_is_idempotent(sample_customer_row):
    first = map_customer_row(sample_customer_row)
    second = map_customer_row(sample_customer_row)

    assert first == second
    assert first is not second
    assert sample_customer_row == {"id": 1, "first_name": "Ann", "last_name": "Lee", "email": "a@x.com"}


def test_map_customer_row_keeps_missing_fields_null():
    payload = map_customer_row({"id": "7", "first_name": None})

    assert payload.id == 7
    assert payload.first_name is None
    assert payload.last_name is None
    assert payload.email is None
    assert payload.to_json() == '{"id":7,"firstName":null,"lastName":null,"email":null}'


def test_map_customer_row_stringifies_non_string_fields():
    payload = map_customer_row({"id": 3, "first_name": 42, "last_name": True, "email": 1.5})

    assert payload.first_name == "42"
    assert payload.last_name == "True"
    assert payload.email == "1.5"


def test_map_customer_row_reports_customer_id_before_building_payload():
    seen: list[int] = []

    map_customer_row({"id": " 12 ", "email": "x@y.z"}, on_customer_id=seen.append)

    assert seen == [12]


def test_map_customer_row_rejects_non_numeric_id():
    seen: list[int] = []

    with pytest.raises(InvalidRecordError) as excinfo:
        map_customer_row({"id": "abc", "first_name": "Ann"}, on_customer_id=seen.append)

    assert excinfo.value.raw_value == "abc"
    assert classify_error(excinfo.value) is ErrorKind.INVALID_RECORD
    assert not ErrorKind.INVALID_RECORD.retryable
    assert seen == []


def test_map_customer_row_rejects_non_mapping():
    with pytest.raises(InvalidRecordError):
        map_customer_row([1, "Ann"])  # type: ignore[arg-type]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        (5, 5),
        ("5", 5),
        ("-20", -20),
        ("+7", 7),
        (" 12 ", 12),
        (5.0, 5),
        (Decimal("9"), 9),
    ],
)
def test_parse_customer_id_accepts_integral_values(raw, expected):
    assert parse_customer_id(raw) == expected


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "abc",
        "",
        "1.5",
        "1_000",
        "١٢",
        "0x1f",
        "- 3",
        1.5,
        float("nan"),
        float("inf"),
        True,
        [1],
        {"id": 1},
    ],
)
def test_parse_customer_id_rejects_invalid_values(raw):
    with pytest.raises(InvalidRecordError) as excinfo:
        parse_customer_id(raw)

    assert excinfo.value.raw_value is raw or excinfo.value.raw_value == raw


def test_coerce_optional_str():
    assert coerce_optional_str(None) is None
    assert coerce_optional_str("Lee") == "Lee"
    assert coerce_optional_str(10) == "10"
