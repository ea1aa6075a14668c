"""Encode/decode Python values to/from Firestore REST API 'fields' format."""

from __future__ import annotations

import base64
import re
from datetime import datetime
from typing import Any

from reware.shared.utils.datetime import ensure_utc

# Firestore may return up to nanosecond precision; datetime keeps microseconds.
_FRACTION_RE = re.compile(r"\.(\d{6})\d+")


def encode_value(v: Any) -> dict[str, Any]:
    """Return the typed Firestore Value for a Python value."""
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": ensure_utc(v).strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": encode_fields(v)}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_fields(data: dict[str, Any]) -> dict[str, Any]:
    """Convert a Python dict to a Firestore Document.fields mapping."""
    return {k: encode_value(v) for k, v in data.items()}


def _decode_timestamp(raw: str) -> datetime:
    return datetime.fromisoformat(_FRACTION_RE.sub(r".\1", raw).replace("Z", "+00:00"))


def decode_value(obj: dict[str, Any]) -> Any:
    """Return the Python value for a typed Firestore Value."""
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return _decode_timestamp(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "referenceValue" in obj:
        return obj["referenceValue"]
    if "geoPointValue" in obj:
        return dict(obj["geoPointValue"])
    if "arrayValue" in obj:
        vals = obj.get("arrayValue", {}).get("values") or []
        return [decode_value(x) for x in vals]
    if "mapValue" in obj:
        return decode_fields(obj["mapValue"].get("fields"))
    return None


def decode_fields(fields: dict[str, Any] | None) -> dict[str, Any]:
    """Convert a Firestore Document.fields mapping to a Python dict."""
    if not fields:
        return {}
    return {k: decode_value(v) for k, v in fields.items()}
