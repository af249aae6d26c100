"""Custom exception hierarchy for komiut_queue.

Decoding and reduction never raise; these exceptions belong to the strict
decode path, the user-action entry points, configuration and transport.
"""

from __future__ import annotations


class KomiutError(Exception):
    """Base exception for all komiut_queue errors."""


class KomiutConfigError(KomiutError):
    """Invalid or missing configuration."""


class KomiutTransportError(KomiutError):
    """WebSocket-level failure that should not be retried (e.g. rejected handshake)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class QueueDecodeError(KomiutError):
    """A queue payload is structurally unusable.

    Raised by :func:`komiut_queue.ingestion.decode.decode_strict` only.
    The fail-soft :func:`~komiut_queue.ingestion.decode.decode` turns it
    into a ``QueueErrorEvent`` with ``origin=decode``.
    """

    def __init__(self, message: str, *, payload_type: str = "") -> None:
        self.payload_type = payload_type
        super().__init__(message)


class QueueSelectionError(KomiutError):
    """A vehicle selection cannot be started (unknown vehicle, no seats...)."""

    def __init__(self, message: str, *, vehicle_id: str = "") -> None:
        self.vehicle_id = vehicle_id
        super().__init__(message)
