from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from komiut_queue.ingestion.normalize import (
    int_or_zero,
    normalize_event_type,
    parse_iso_timestamp,
    safe_float,
    safe_int,
    safe_str,
    str_or_empty,
)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (3, 3.0),
        ("2.5", 2.5),
        ("", None),
        (None, None),
        (True, None),
        ("nan", None),
        ("inf", None),
        ("x", None),
        (10**400, None),
    ],
)
def test_safe_float(value: object, expected: float | None) -> None:
    assert safe_float(value) == expected


def test_safe_int_truncates() -> None:
    assert safe_int("7.9") == 7
    assert safe_int([1]) is None
    assert int_or_zero(None) == 0
    assert int_or_zero("12") == 12


def test_safe_str_accepts_scalars_only() -> None:
    assert safe_str("KBZ 123A") == "KBZ 123A"
    assert safe_str(123) == "123"
    assert safe_str("") is None
    assert safe_str(False) is None
    assert safe_str({"id": 1}) is None
    assert str_or_empty(None) == ""


def test_parse_iso_timestamp() -> None:
    assert parse_iso_timestamp("2026-01-01T08:00:00Z") == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
    assert parse_iso_timestamp("2026-01-01T08:00:00") == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
    assert parse_iso_timestamp("2026-01-01T11:00:00+03:00") == datetime(
        2026, 1, 1, 11, 0, tzinfo=timezone(timedelta(hours=3))
    )


@pytest.mark.parametrize("value", [None, "", "   ", "yesterday", 1735718400, ["2026-01-01"]])
def test_parse_iso_timestamp_rejects(value: object) -> None:
    assert parse_iso_timestamp(value) is None


def test_normalize_event_type() -> None:
    assert normalize_event_type("vehicle_joined_queue") == "vehiclejoinedqueue"
    assert normalize_event_type(" VehicleJoinedQueue ") == "vehiclejoinedqueue"
    assert normalize_event_type("___") is None
    assert normalize_event_type(None) is None
