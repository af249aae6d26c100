"""Data models for queue events and state."""

from komiut_queue.models._base import IsoTimestamp, QueueBaseModel, QueueEnum
from komiut_queue.models.events import (
    EVENT_MODELS,
    QueueErrorEvent,
    QueueErrorOrigin,
    QueueEvent,
    QueueEventType,
    QueueSyncedEvent,
    VehicleJoinedQueueEvent,
    VehicleLeftQueueEvent,
    VehiclePositionChangedEvent,
    VehicleSeatCountChangedEvent,
    VehicleStatusChangedEvent,
)
from komiut_queue.models.state import (
    ConnectionSignal,
    PendingVehicleSelection,
    QueueConnectionState,
    QueueState,
)
from komiut_queue.models.vehicle import QueueVehicle, QueueVehicleStatus

__all__ = [
    "ConnectionSignal",
    "EVENT_MODELS",
    "IsoTimestamp",
    "PendingVehicleSelection",
    "QueueBaseModel",
    "QueueConnectionState",
    "QueueEnum",
    "QueueErrorEvent",
    "QueueErrorOrigin",
    "QueueEvent",
    "QueueEventType",
    "QueueState",
    "QueueSyncedEvent",
    "QueueVehicle",
    "QueueVehicleStatus",
    "VehicleJoinedQueueEvent",
    "VehicleLeftQueueEvent",
    "VehiclePositionChangedEvent",
    "VehicleSeatCountChangedEvent",
    "VehicleStatusChangedEvent",
]
