"""Redaction of queue frames for debug logs.

Queue frames carry driver details and, on some deployments, auth tokens
echoed back by the gateway. Frames usually arrive as raw JSON text, so
:func:`redact_frame` parses them before any field is masked; text that is
not JSON is never logged verbatim.
"""

from __future__ import annotations

import json
from collections.abc import Mapping, Sequence
from typing import Any

_REDACTED = "<redacted>"
_MAX_DEPTH = 20

# Compared after lowercasing and dropping underscores.
_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "token",
        "accesstoken",
        "refreshtoken",
        "authorization",
        "cookie",
        "password",
        "drivername",
        "driverphone",
        "phone",
        "phonenumber",
    }
)


def _is_sensitive(key: Any) -> bool:
    return str(key).lower().replace("_", "") in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of a parsed payload with sensitive fields masked.

    Long strings are truncated and bytes are summarised by length.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return f"{value[:max_string]}…<truncated>" if len(value) > max_string else value
    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"
    if isinstance(value, Mapping):
        return {
            str(key): _REDACTED if _is_sensitive(key) else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)


def redact_frame(frame: Any, *, max_string: int = 512) -> Any:
    """Redact a raw transport frame (JSON text, bytes or a parsed object)."""
    if isinstance(frame, (str, bytes, bytearray)):
        try:
            payload = json.loads(frame)
        except (TypeError, ValueError, RecursionError):
            size = len(frame)
            return f"<unparsed:{size}b>" if isinstance(frame, (bytes, bytearray)) else f"<unparsed:{size} chars>"
        return redact_for_log(payload, max_string=max_string)
    return redact_for_log(frame, max_string=max_string)
