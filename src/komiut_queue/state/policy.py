"""Deterministic queue merge policy.

This module contains *no* payload parsing. It decides how a decoded event
interacts with an optimistic selection and whether an error event means
the connection itself failed.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable

from komiut_queue.models.events import (
    QueueErrorEvent,
    QueueEvent,
    QueueSyncedEvent,
    VehicleLeftQueueEvent,
    VehicleSeatCountChangedEvent,
)
from komiut_queue.models.state import PendingVehicleSelection
from komiut_queue.models.vehicle import QueueVehicle

SELECTION_VEHICLE_LEFT = "Vehicle has left the queue"
SELECTION_SEATS_UNAVAILABLE = "Not enough seats available"
SELECTION_TIMED_OUT = "Selection timed out"

ConnectionFailurePredicate = Callable[[QueueErrorEvent], bool]


def selection_conflict(
    selection: PendingVehicleSelection,
    event: QueueEvent,
    vehicles: Iterable[QueueVehicle],
) -> str | None:
    """Return the failure reason if *event* invalidates a pending selection.

    *vehicles* is the vehicle list after the event was applied.

    Policy:
    - The selected vehicle left the queue, or is missing from a full sync.
    - The selected vehicle now has fewer seats than were requested.
    """
    if not selection.is_pending:
        return None

    if isinstance(event, VehicleLeftQueueEvent) and event.vehicle_id == selection.vehicle_id:
        return SELECTION_VEHICLE_LEFT

    if isinstance(event, QueueSyncedEvent):
        if all(vehicle.vehicle_id != selection.vehicle_id for vehicle in vehicles):
            return SELECTION_VEHICLE_LEFT
        return None

    if (
        isinstance(event, VehicleSeatCountChangedEvent)
        and event.vehicle_id == selection.vehicle_id
        and event.new_seat_count < selection.seats_requested
    ):
        return SELECTION_SEATS_UNAVAILABLE

    return None


def clears_selected_vehicle(reason: str) -> bool:
    """Whether a selection failure also drops the selected vehicle id."""
    return reason in (SELECTION_VEHICLE_LEFT, SELECTION_TIMED_OUT)


def connection_failure_codes(codes: Iterable[str]) -> ConnectionFailurePredicate:
    """Build a predicate matching error events whose ``code`` is in *codes*.

    Matching is case-insensitive. Events without a code never match.
    """
    normalized = frozenset(code.strip().lower() for code in codes if code.strip())

    def _is_connection_failure(event: QueueErrorEvent) -> bool:
        if event.code is None:
            return False
        return event.code.strip().lower() in normalized

    return _is_connection_failure
