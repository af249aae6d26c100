"""Queue state models.

:class:`QueueState` is the materialized, immutable view of one route's
queue. New snapshots are produced by :mod:`komiut_queue.state.reducer`;
a snapshot handed to a reader is never changed afterwards.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import model_validator

from komiut_queue.models._base import QueueBaseModel, QueueEnum
from komiut_queue.models.vehicle import QueueVehicle, QueueVehicleStatus


class QueueConnectionState(QueueEnum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    RECONNECTING = "reconnecting"
    ERROR = "error"

    @property
    def is_connected(self) -> bool:
        return self is QueueConnectionState.CONNECTED

    @property
    def is_connecting(self) -> bool:
        return self in (QueueConnectionState.CONNECTING, QueueConnectionState.RECONNECTING)

    @property
    def has_issue(self) -> bool:
        return self in (QueueConnectionState.ERROR, QueueConnectionState.DISCONNECTED)


class ConnectionSignal(QueueBaseModel):
    """A transport lifecycle report for one route's queue stream."""

    state: QueueConnectionState
    reason: str | None = None


class PendingVehicleSelection(QueueBaseModel):
    """Optimistic record of an in-flight vehicle selection.

    A selection starts pending and ends either confirmed or failed; both
    outcomes are terminal.
    """

    vehicle_id: str
    seats_requested: int
    timestamp: datetime
    """When the user made the selection."""
    is_confirmed: bool = False
    has_failed: bool = False
    failure_reason: str | None = None
    expires_at: datetime | None = None
    """Deadline after which a still-pending selection times out."""

    @model_validator(mode="after")
    def _check_outcome(self) -> PendingVehicleSelection:
        if self.is_confirmed and self.has_failed:
            raise ValueError("a selection cannot be both confirmed and failed")
        return self

    @property
    def is_pending(self) -> bool:
        return not self.is_confirmed and not self.has_failed

    def is_expired(self, now: datetime) -> bool:
        return self.is_pending and self.expires_at is not None and now >= self.expires_at

    def confirmed(self) -> PendingVehicleSelection:
        return self.model_copy(update={"is_confirmed": True, "has_failed": False, "failure_reason": None})

    def failed(self, reason: str) -> PendingVehicleSelection:
        return self.model_copy(update={"is_confirmed": False, "has_failed": True, "failure_reason": reason})


class QueueState(QueueBaseModel):
    """Materialized queue for one route.

    ``vehicles`` holds at most one entry per ``vehicle_id`` and is always
    ordered by ascending ``position``.
    """

    route_id: str
    vehicles: tuple[QueueVehicle, ...] = ()
    connection_state: QueueConnectionState = QueueConnectionState.DISCONNECTED
    is_loading: bool = False
    is_syncing: bool = False
    """A refresh or post-reconnect full sync is outstanding."""
    error: str | None = None
    """Latest queue-level error, cleared by the caller after display."""
    last_updated: datetime | None = None
    selected_vehicle_id: str | None = None
    pending_selection: PendingVehicleSelection | None = None

    @classmethod
    def loading(cls, route_id: str) -> QueueState:
        """Initial state for a freshly opened queue view."""
        return cls(route_id=route_id, is_loading=True, connection_state=QueueConnectionState.CONNECTING)

    @classmethod
    def errored(cls, route_id: str, message: str) -> QueueState:
        return cls(route_id=route_id, error=message, connection_state=QueueConnectionState.ERROR)

    @property
    def is_empty(self) -> bool:
        return not self.vehicles

    @property
    def has_vehicles(self) -> bool:
        return bool(self.vehicles)

    @property
    def vehicle_count(self) -> int:
        return len(self.vehicles)

    @property
    def first_vehicle(self) -> QueueVehicle | None:
        """Next vehicle to depart."""
        return self.vehicles[0] if self.vehicles else None

    @property
    def boarding_vehicles(self) -> list[QueueVehicle]:
        return [v for v in self.vehicles if v.status is QueueVehicleStatus.BOARDING]

    @property
    def available_vehicles(self) -> list[QueueVehicle]:
        """Vehicles with at least one free seat."""
        return [v for v in self.vehicles if v.available_seats > 0]

    @property
    def total_available_seats(self) -> int:
        return sum(v.available_seats for v in self.vehicles)

    @property
    def is_live(self) -> bool:
        return self.connection_state.is_connected

    @property
    def has_error(self) -> bool:
        return self.error is not None

    @property
    def has_pending_update(self) -> bool:
        return self.pending_selection is not None

    @property
    def selected_vehicle(self) -> QueueVehicle | None:
        if self.selected_vehicle_id is None:
            return None
        return self.get_vehicle_by_id(self.selected_vehicle_id)

    def get_vehicle_by_id(self, vehicle_id: str) -> QueueVehicle | None:
        # Linear scan; a stage rarely holds more than a few dozen vehicles.
        for vehicle in self.vehicles:
            if vehicle.vehicle_id == vehicle_id:
                return vehicle
        return None
