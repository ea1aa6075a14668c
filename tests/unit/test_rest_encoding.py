"""Tests for the Firestore REST value encoding."""

from datetime import UTC, datetime

import pytest

from reware.infrastructure.firebase._rest_encoding import (
    decode_fields,
    decode_value,
    encode_fields,
    encode_value,
)


@pytest.mark.parametrize(
    ("value", "encoded"),
    [
        (None, {"nullValue": None}),
        (True, {"booleanValue": True}),
        (100, {"integerValue": "100"}),
        (1.5, {"doubleValue": 1.5}),
        ("fair", {"stringValue": "fair"}),
        (b"\x00\x01", {"bytesValue": "AAE="}),
    ],
)
def test_encode_scalars(value: object, encoded: dict) -> None:
    assert encode_value(value) == encoded


def test_bool_is_not_encoded_as_integer() -> None:
    assert encode_value(False) == {"booleanValue": False}


def test_encode_timestamp_is_utc_zulu() -> None:
    ts = datetime(2024, 5, 1, 12, 0, 0, 250000, tzinfo=UTC)
    assert encode_value(ts) == {"timestampValue": "2024-05-01T12:00:00.250000Z"}


def test_encode_nested_structures() -> None:
    encoded = encode_fields({"tags": ["a", 1], "meta": {"ok": True}})
    assert encoded == {
        "tags": {"arrayValue": {"values": [{"stringValue": "a"}, {"integerValue": "1"}]}},
        "meta": {"mapValue": {"fields": {"ok": {"booleanValue": True}}}},
    }


def test_encode_unsupported_type() -> None:
    with pytest.raises(TypeError):
        encode_value(object())


def test_decode_nanosecond_timestamp() -> None:
    value = decode_value({"timestampValue": "2024-05-01T12:00:00.123456789Z"})
    assert value == datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=UTC)


def test_decode_profile_document_fields() -> None:
    fields = {
        "email": {"stringValue": "a@b.c"},
        "points": {"integerValue": "150"},
        "role": {"stringValue": "admin"},
        "createdAt": {"timestampValue": "2024-05-01T12:00:00Z"},
        "tags": {"arrayValue": {}},
    }
    assert decode_fields(fields) == {
        "email": "a@b.c",
        "points": 150,
        "role": "admin",
        "createdAt": datetime(2024, 5, 1, 12, 0, tzinfo=UTC),
        "tags": [],
    }


def test_decode_empty_fields() -> None:
    assert decode_fields(None) == {}
