"""Queue event models.

The server pushes one JSON object per queue change. Each object carries a
``type`` discriminator, the ``routeId`` it belongs to and an optional
ISO-8601 ``timestamp``; the remaining fields depend on the type.
Parsing lives in :mod:`komiut_queue.ingestion.decode`.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field, field_validator

from komiut_queue.ingestion.normalize import normalize_event_type
from komiut_queue.models._base import IsoTimestamp, OptionalText, QueueBaseModel, QueueEnum, WireInt, WireText
from komiut_queue.models.vehicle import QueueVehicle, QueueVehicleStatus


class QueueEventType(QueueEnum):
    VEHICLE_JOINED_QUEUE = "vehicle_joined_queue"
    VEHICLE_LEFT_QUEUE = "vehicle_left_queue"
    VEHICLE_POSITION_CHANGED = "vehicle_position_changed"
    VEHICLE_SEAT_COUNT_CHANGED = "vehicle_seat_count_changed"
    VEHICLE_STATUS_CHANGED = "vehicle_status_changed"
    QUEUE_SYNCED = "queue_synced"
    ERROR = "error"

    @classmethod
    def from_wire(cls, value: Any) -> QueueEventType | None:
        """Resolve a wire spelling (snake_case, camelCase or concatenated).

        Returns ``None`` when the spelling is missing or unknown.
        """
        key = normalize_event_type(value)
        if key is None:
            return None
        return _EVENT_TYPE_KEYS.get(key)


_EVENT_TYPE_KEYS: dict[str, QueueEventType] = {member.value.replace("_", ""): member for member in QueueEventType}


class QueueErrorOrigin(QueueEnum):
    """Where a :class:`QueueErrorEvent` came from."""

    SERVER = "server"
    """The server sent an explicit ``error`` event."""
    UNKNOWN_TYPE = "unknown_type"
    """The payload ``type`` was missing or not recognised."""
    DECODE = "decode"
    """The payload could not be decoded at all."""


class QueueEvent(QueueBaseModel):
    """Base for queue events. Use one of the concrete variants."""

    type: QueueEventType
    route_id: WireText = ""
    timestamp: IsoTimestamp = None
    """Server time of the change, if sent. Not used for ordering."""


class VehicleJoinedQueueEvent(QueueEvent):
    type: Literal[QueueEventType.VEHICLE_JOINED_QUEUE] = QueueEventType.VEHICLE_JOINED_QUEUE
    vehicle: QueueVehicle = Field(default_factory=QueueVehicle)


class VehicleLeftQueueEvent(QueueEvent):
    type: Literal[QueueEventType.VEHICLE_LEFT_QUEUE] = QueueEventType.VEHICLE_LEFT_QUEUE
    vehicle_id: WireText = ""


class VehiclePositionChangedEvent(QueueEvent):
    type: Literal[QueueEventType.VEHICLE_POSITION_CHANGED] = QueueEventType.VEHICLE_POSITION_CHANGED
    vehicle_id: WireText = ""
    old_position: WireInt = 0
    new_position: WireInt = 0


class VehicleSeatCountChangedEvent(QueueEvent):
    type: Literal[QueueEventType.VEHICLE_SEAT_COUNT_CHANGED] = QueueEventType.VEHICLE_SEAT_COUNT_CHANGED
    vehicle_id: WireText = ""
    old_seat_count: WireInt = 0
    new_seat_count: WireInt = 0
    """Available seats reported by the server; may be out of range."""


class VehicleStatusChangedEvent(QueueEvent):
    type: Literal[QueueEventType.VEHICLE_STATUS_CHANGED] = QueueEventType.VEHICLE_STATUS_CHANGED
    vehicle_id: WireText = ""
    old_status: QueueVehicleStatus = QueueVehicleStatus.WAITING
    new_status: QueueVehicleStatus = QueueVehicleStatus.WAITING

    @field_validator("old_status", "new_status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> QueueVehicleStatus:
        return QueueVehicleStatus.parse(value)


class QueueSyncedEvent(QueueEvent):
    """Authoritative full snapshot of a route's queue."""

    type: Literal[QueueEventType.QUEUE_SYNCED] = QueueEventType.QUEUE_SYNCED
    vehicles: tuple[QueueVehicle, ...] = ()


class QueueErrorEvent(QueueEvent):
    """An error signal on the queue stream. Never mutates the vehicle list."""

    type: Literal[QueueEventType.ERROR] = QueueEventType.ERROR
    message: WireText = "Unknown error"
    code: OptionalText = None
    origin: QueueErrorOrigin = Field(default=QueueErrorOrigin.SERVER, exclude=True)
    """Not part of the wire form; set by the decoder."""

    @property
    def is_server_error(self) -> bool:
        return self.origin is QueueErrorOrigin.SERVER

    @property
    def is_decode_failure(self) -> bool:
        """True for payloads the client could not understand (bad shape or unknown type)."""
        return self.origin is not QueueErrorOrigin.SERVER


EVENT_MODELS: dict[QueueEventType, type[QueueEvent]] = {
    QueueEventType.VEHICLE_JOINED_QUEUE: VehicleJoinedQueueEvent,
    QueueEventType.VEHICLE_LEFT_QUEUE: VehicleLeftQueueEvent,
    QueueEventType.VEHICLE_POSITION_CHANGED: VehiclePositionChangedEvent,
    QueueEventType.VEHICLE_SEAT_COUNT_CHANGED: VehicleSeatCountChangedEvent,
    QueueEventType.VEHICLE_STATUS_CHANGED: VehicleStatusChangedEvent,
    QueueEventType.QUEUE_SYNCED: QueueSyncedEvent,
    QueueEventType.ERROR: QueueErrorEvent,
}
