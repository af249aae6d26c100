"""Normalization helpers.

Centralizes defensive parsing of loosely typed wire values. Every helper
returns ``None`` instead of raising so the model layer can fall back to
its field defaults.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime
from typing import Any


def safe_float(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_int(value: Any) -> int | None:
    parsed = safe_float(value)
    if parsed is None:
        return None
    return int(parsed)


def safe_str(value: Any) -> str | None:
    """Return *value* as text when it is a scalar, else ``None``.

    Numeric ids are accepted (``123`` -> ``"123"``); containers are not.
    """
    if isinstance(value, str):
        return value if value else None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(value)
    return None


def int_or_zero(value: Any) -> int:
    parsed = safe_int(value)
    return 0 if parsed is None else parsed


def str_or_empty(value: Any) -> str:
    parsed = safe_str(value)
    return "" if parsed is None else parsed


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC-normalised datetime.

    Naive values are assumed to be UTC. Unparseable values yield ``None``.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed


def normalize_event_type(value: Any) -> str | None:
    """Fold an event-type spelling into its concatenated lowercase key.

    ``"vehicle_joined_queue"``, ``"VehicleJoinedQueue"`` and
    ``"vehiclejoinedqueue"`` all become ``"vehiclejoinedqueue"``.
    """
    if not isinstance(value, str):
        return None
    key = value.strip().lower().replace("_", "")
    return key or None
