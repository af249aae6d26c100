"""komiut_queue - Real-time matatu stage queue reconciliation."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("komiut-queue")
except PackageNotFoundError:
    __version__ = "0+local"
from komiut_queue._transport import QueueSocket
from komiut_queue.config import QueueConfig
from komiut_queue.exceptions import (
    KomiutConfigError,
    KomiutError,
    KomiutTransportError,
    QueueDecodeError,
    QueueSelectionError,
)
from komiut_queue.ingestion.decode import decode, decode_frame, decode_strict
from komiut_queue.ingestion.feed import consume_queue_source, expire_selections_periodically
from komiut_queue.models import (
    ConnectionSignal,
    PendingVehicleSelection,
    QueueConnectionState,
    QueueErrorEvent,
    QueueErrorOrigin,
    QueueEvent,
    QueueEventType,
    QueueState,
    QueueSyncedEvent,
    QueueVehicle,
    QueueVehicleStatus,
    VehicleJoinedQueueEvent,
    VehicleLeftQueueEvent,
    VehiclePositionChangedEvent,
    VehicleSeatCountChangedEvent,
    VehicleStatusChangedEvent,
)
from komiut_queue.state.reducer import reduce
from komiut_queue.state.store import QueueSnapshot, QueueStore

__all__ = [
    "__version__",
    "ConnectionSignal",
    "KomiutConfigError",
    "KomiutError",
    "KomiutTransportError",
    "PendingVehicleSelection",
    "QueueConfig",
    "QueueConnectionState",
    "QueueDecodeError",
    "QueueErrorEvent",
    "QueueErrorOrigin",
    "QueueEvent",
    "QueueEventType",
    "QueueSelectionError",
    "QueueSnapshot",
    "QueueSocket",
    "QueueState",
    "QueueStore",
    "QueueSyncedEvent",
    "QueueVehicle",
    "QueueVehicleStatus",
    "VehicleJoinedQueueEvent",
    "VehicleLeftQueueEvent",
    "VehiclePositionChangedEvent",
    "VehicleSeatCountChangedEvent",
    "VehicleStatusChangedEvent",
    "consume_queue_source",
    "decode",
    "decode_frame",
    "decode_strict",
    "expire_selections_periodically",
    "reduce",
]
