"""Queue event decoding.

Two entry points share one parser:

- :func:`decode_strict` raises :class:`~komiut_queue.exceptions.QueueDecodeError`
  when a payload is structurally unusable.
- :func:`decode` never raises. Failures become a ``QueueErrorEvent`` whose
  ``origin`` tells an explicit server error apart from a payload the client
  could not understand, so a new server event type is not mistaken for a
  server-side failure.

Missing fields are not failures: they default to empty ids, zero counts and
empty vehicle lists.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from komiut_queue.exceptions import QueueDecodeError
from komiut_queue.ingestion.normalize import str_or_empty
from komiut_queue.models.events import EVENT_MODELS, QueueErrorEvent, QueueErrorOrigin, QueueEvent, QueueEventType

_logger = logging.getLogger(__name__)

RawFrame = str | bytes | bytearray | Mapping[str, Any]
"""A transport frame: JSON text/bytes or an already-parsed object."""

_UNKNOWN_ERROR = "Unknown error"


def _unknown_type_event(payload: Mapping[str, Any]) -> QueueErrorEvent:
    message = payload.get("message")
    return QueueErrorEvent.model_validate(
        {
            "routeId": payload.get("routeId"),
            "timestamp": payload.get("timestamp"),
            "message": message if isinstance(message, str) else _UNKNOWN_ERROR,
            "code": payload.get("code"),
            "origin": QueueErrorOrigin.UNKNOWN_TYPE,
        }
    )


def decode_strict(payload: Any) -> QueueEvent:
    """Decode a parsed JSON payload into a typed queue event.

    A missing or unrecognised ``type`` is not a decode failure: it yields a
    ``QueueErrorEvent`` with ``origin=unknown_type``.

    Raises
    ------
    QueueDecodeError
        If *payload* is not an object, or a variant field has an unusable
        shape (e.g. ``vehicles`` is not a list of objects).
    """
    if not isinstance(payload, Mapping):
        raise QueueDecodeError(f"Queue payload must be an object, got {type(payload).__name__}")

    raw_type = payload.get("type")
    event_type = QueueEventType.from_wire(raw_type)
    if event_type is None:
        return _unknown_type_event(payload)

    model = EVENT_MODELS[event_type]
    data: dict[str, Any] = dict(payload)
    data["type"] = event_type
    if event_type is QueueEventType.ERROR:
        data["origin"] = QueueErrorOrigin.SERVER
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise QueueDecodeError(
            f"Malformed {event_type.value} payload: {exc.error_count()} invalid field(s)",
            payload_type=str_or_empty(raw_type),
        ) from exc


def decode(payload: Any) -> QueueEvent:
    """Decode a parsed JSON payload, never raising.

    Structurally unusable payloads decode to a ``QueueErrorEvent`` with
    ``origin=decode``.
    """
    try:
        event = decode_strict(payload)
    except QueueDecodeError as exc:
        _logger.debug("Queue payload could not be decoded: %s", exc)
        return _decode_failure(payload, str(exc))
    except Exception:
        _logger.debug("Queue payload decoding failed unexpectedly", exc_info=True)
        return _decode_failure(payload, "Queue payload could not be decoded")

    if isinstance(event, QueueErrorEvent) and event.origin is QueueErrorOrigin.UNKNOWN_TYPE:
        _logger.debug("Unrecognised queue event type %r", payload.get("type"))
    return event


def decode_frame(frame: RawFrame) -> QueueEvent:
    """Decode a raw transport frame (JSON text, bytes, or a parsed object)."""
    if isinstance(frame, Mapping):
        return decode(frame)
    try:
        payload = json.loads(frame)
    except (TypeError, ValueError, RecursionError) as exc:
        _logger.debug("Queue frame is not valid JSON: %s", exc)
        return _decode_failure(None, "Queue frame is not valid JSON")
    return decode(payload)


def _decode_failure(payload: Any, message: str) -> QueueErrorEvent:
    route_id = payload.get("routeId") if isinstance(payload, Mapping) else None
    return QueueErrorEvent(
        route_id=str_or_empty(route_id),
        message=message,
        origin=QueueErrorOrigin.DECODE,
    )
