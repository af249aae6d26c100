"""Pure queue reducer.

:func:`reduce` folds one decoded :class:`~komiut_queue.models.events.QueueEvent`
into a :class:`~komiut_queue.models.state.QueueState` and returns a new
snapshot. It never mutates its input and never raises.

The remaining functions are the transitions that do not arrive as wire
events: transport connection signals and the optimistic vehicle
selection (begin, confirm, fail, expire, acknowledge).

Ordering: events are applied in delivery order. Incremental events that
reference an unknown vehicle are no-ops; drift is healed by the next
``queue_synced`` event.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta
from typing import Any

from komiut_queue.exceptions import QueueSelectionError
from komiut_queue.models.events import (
    QueueErrorEvent,
    QueueEvent,
    QueueEventType,
    QueueSyncedEvent,
    VehicleJoinedQueueEvent,
    VehicleLeftQueueEvent,
    VehiclePositionChangedEvent,
    VehicleSeatCountChangedEvent,
    VehicleStatusChangedEvent,
)
from komiut_queue.models.state import ConnectionSignal, PendingVehicleSelection, QueueConnectionState, QueueState
from komiut_queue.models.vehicle import QueueVehicle
from komiut_queue.state.policy import (
    SELECTION_TIMED_OUT,
    ConnectionFailurePredicate,
    clears_selected_vehicle,
    selection_conflict,
)

_logger = logging.getLogger(__name__)

Vehicles = tuple[QueueVehicle, ...]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def sort_by_position(vehicles: Iterable[QueueVehicle]) -> Vehicles:
    """Return *vehicles* ordered by ascending position (stable)."""
    return tuple(sorted(vehicles, key=lambda vehicle: vehicle.position))


def _replace_vehicle(vehicles: Vehicles, vehicle_id: str, changes: dict[str, Any]) -> Vehicles | None:
    """Copy *vehicles* with *changes* applied to one vehicle.

    Returns ``None`` when no vehicle has *vehicle_id*.
    """
    for index, vehicle in enumerate(vehicles):
        if vehicle.vehicle_id == vehicle_id:
            updated = list(vehicles)
            updated[index] = vehicle.model_copy(update=changes)
            return tuple(updated)
    return None


# ---------------------------------------------------------------------------
# Per-variant handlers. Each returns the QueueState fields to update.
# ---------------------------------------------------------------------------


def _on_joined(state: QueueState, event: VehicleJoinedQueueEvent) -> dict[str, Any]:
    joined = event.vehicle
    others = [vehicle for vehicle in state.vehicles if vehicle.vehicle_id != joined.vehicle_id]
    return {"vehicles": sort_by_position([*others, joined])}


def _on_left(state: QueueState, event: VehicleLeftQueueEvent) -> dict[str, Any]:
    remaining = tuple(vehicle for vehicle in state.vehicles if vehicle.vehicle_id != event.vehicle_id)
    if len(remaining) == len(state.vehicles):
        return {}
    # Positions are left as-is; gaps heal on the next full sync.
    return {"vehicles": remaining}


def _on_position_changed(state: QueueState, event: VehiclePositionChangedEvent) -> dict[str, Any]:
    updated = _replace_vehicle(state.vehicles, event.vehicle_id, {"position": event.new_position})
    if updated is None:
        return {}
    return {"vehicles": sort_by_position(updated)}


def _on_seat_count_changed(state: QueueState, event: VehicleSeatCountChangedEvent) -> dict[str, Any]:
    vehicle = state.get_vehicle_by_id(event.vehicle_id)
    if vehicle is None:
        return {}
    seats = min(max(event.new_seat_count, 0), vehicle.total_seats)
    updated = _replace_vehicle(state.vehicles, event.vehicle_id, {"available_seats": seats})
    return {"vehicles": updated}


def _on_status_changed(state: QueueState, event: VehicleStatusChangedEvent) -> dict[str, Any]:
    updated = _replace_vehicle(state.vehicles, event.vehicle_id, {"status": event.new_status})
    if updated is None:
        return {}
    return {"vehicles": updated}


def _on_synced(state: QueueState, event: QueueSyncedEvent) -> dict[str, Any]:
    by_id: dict[str, QueueVehicle] = {}
    for vehicle in event.vehicles:
        # Duplicate entries: the last one wins.
        by_id[vehicle.vehicle_id] = vehicle
    return {
        "vehicles": sort_by_position(by_id.values()),
        "is_loading": False,
        "is_syncing": False,
    }


_HANDLERS: dict[QueueEventType, Callable[[QueueState, Any], dict[str, Any]]] = {
    QueueEventType.VEHICLE_JOINED_QUEUE: _on_joined,
    QueueEventType.VEHICLE_LEFT_QUEUE: _on_left,
    QueueEventType.VEHICLE_POSITION_CHANGED: _on_position_changed,
    QueueEventType.VEHICLE_SEAT_COUNT_CHANGED: _on_seat_count_changed,
    QueueEventType.VEHICLE_STATUS_CHANGED: _on_status_changed,
    QueueEventType.QUEUE_SYNCED: _on_synced,
}


def _on_error(
    event: QueueErrorEvent,
    is_connection_failure: ConnectionFailurePredicate | None,
) -> dict[str, Any]:
    changes: dict[str, Any] = {"error": event.message}
    if is_connection_failure is not None and is_connection_failure(event):
        changes["connection_state"] = QueueConnectionState.ERROR
    return changes


def _check_selection_conflicts(state: QueueState, event: QueueEvent) -> QueueState:
    selection = state.pending_selection
    if selection is None:
        return state
    reason = selection_conflict(selection, event, state.vehicles)
    if reason is None:
        return state
    return _fail(state, selection, reason)


def reduce(
    previous: QueueState,
    event: QueueEvent,
    *,
    now: datetime | None = None,
    is_connection_failure: ConnectionFailurePredicate | None = None,
) -> QueueState:
    """Apply *event* to *previous* and return the new snapshot.

    Parameters
    ----------
    now
        Wall-clock time recorded as ``last_updated``. Defaults to the
        current UTC time; the event's own timestamp is never used.
    is_connection_failure
        Transport policy deciding whether an error event means the
        connection failed. Without it error events never change
        ``connection_state``.
    """
    moment = now if now is not None else _utcnow()

    if not isinstance(event, QueueEvent):
        return previous.model_copy(
            update={"error": f"Unhandled queue event: {type(event).__name__}", "last_updated": moment}
        )

    try:
        if isinstance(event, QueueErrorEvent):
            changes = _on_error(event, is_connection_failure)
        else:
            changes = _HANDLERS[event.type](previous, event)
    except Exception:
        _logger.debug("Failed to apply %s event to route %s", event.type, previous.route_id, exc_info=True)
        return previous.model_copy(
            update={"error": f"Failed to apply {event.type.value} event", "last_updated": moment}
        )

    changes["last_updated"] = moment
    state = previous.model_copy(update=changes)
    return _check_selection_conflicts(state, event)


def apply_connection_signal(state: QueueState, signal: ConnectionSignal) -> QueueState:
    """Fold a transport connection report into *state*.

    The vehicle list is never cleared: during reconnection readers keep
    seeing the last known queue.
    """
    changes: dict[str, Any] = {"connection_state": signal.state}
    if signal.state is QueueConnectionState.ERROR and signal.reason:
        changes["error"] = signal.reason
    if signal.state is QueueConnectionState.CONNECTED and state.connection_state is QueueConnectionState.RECONNECTING:
        # Events may have been missed while offline; wait for a full sync.
        changes["is_syncing"] = True
    if signal.state.has_issue:
        changes["is_syncing"] = False
    return state.model_copy(update=changes)


def begin_sync(state: QueueState) -> QueueState:
    """Mark a refresh as requested; the next ``queue_synced`` clears it."""
    if state.is_syncing:
        return state
    return state.model_copy(update={"is_syncing": True})


# ---------------------------------------------------------------------------
# Optimistic vehicle selection
# ---------------------------------------------------------------------------


def begin_selection(
    state: QueueState,
    vehicle_id: str,
    seats: int,
    *,
    now: datetime | None = None,
    timeout: float | None = None,
) -> QueueState:
    """Record a user's vehicle selection before the server confirms it.

    Raises
    ------
    QueueSelectionError
        If fewer than one seat is requested, the vehicle is not queued,
        it is not accepting passengers or lacks the requested seats, or
        another selection is still pending.
    """
    if seats < 1:
        raise QueueSelectionError("At least one seat must be requested", vehicle_id=vehicle_id)

    current = state.pending_selection
    if current is not None and current.is_pending:
        raise QueueSelectionError(
            f"Selection of vehicle {current.vehicle_id} is still pending",
            vehicle_id=vehicle_id,
        )

    vehicle = state.get_vehicle_by_id(vehicle_id)
    if vehicle is None:
        raise QueueSelectionError("Vehicle is not in the queue", vehicle_id=vehicle_id)
    if not vehicle.status.can_board:
        raise QueueSelectionError(f"Vehicle is {vehicle.status.value}", vehicle_id=vehicle_id)
    if vehicle.available_seats < seats:
        raise QueueSelectionError(
            f"Only {vehicle.available_seats} seat(s) available",
            vehicle_id=vehicle_id,
        )

    moment = now if now is not None else _utcnow()
    expires_at = moment + timedelta(seconds=timeout) if timeout is not None and timeout > 0 else None
    selection = PendingVehicleSelection(
        vehicle_id=vehicle_id,
        seats_requested=seats,
        timestamp=moment,
        expires_at=expires_at,
    )
    return state.model_copy(update={"selected_vehicle_id": vehicle_id, "pending_selection": selection})


def _fail(state: QueueState, selection: PendingVehicleSelection, reason: str) -> QueueState:
    changes: dict[str, Any] = {"pending_selection": selection.failed(reason)}
    if clears_selected_vehicle(reason):
        changes["selected_vehicle_id"] = None
    return state.model_copy(update=changes)


def confirm_selection(state: QueueState) -> QueueState:
    """Mark the pending selection as confirmed by the server."""
    selection = state.pending_selection
    if selection is None or not selection.is_pending:
        return state
    return state.model_copy(update={"pending_selection": selection.confirmed()})


def fail_selection(state: QueueState, reason: str) -> QueueState:
    """Mark the pending selection as rejected and drop the selected vehicle."""
    selection = state.pending_selection
    if selection is None or not selection.is_pending:
        return state
    return state.model_copy(
        update={"pending_selection": selection.failed(reason), "selected_vehicle_id": None}
    )


def expire_selection(state: QueueState, *, now: datetime | None = None) -> QueueState:
    """Fail the pending selection once its deadline has passed."""
    selection = state.pending_selection
    if selection is None:
        return state
    moment = now if now is not None else _utcnow()
    if not selection.is_expired(moment):
        return state
    return _fail(state, selection, SELECTION_TIMED_OUT)


def clear_selection(state: QueueState) -> QueueState:
    """Acknowledge a selection outcome: drop the selection and the selected vehicle."""
    if state.pending_selection is None and state.selected_vehicle_id is None:
        return state
    return state.model_copy(update={"pending_selection": None, "selected_vehicle_id": None})
