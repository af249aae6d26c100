"""Deterministic in-memory queue store.

This is the only component allowed to replace a route's current
:class:`~komiut_queue.models.state.QueueState`. It is constructed
explicitly by the application and holds no module-level state.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import cast

from komiut_queue._redact import redact_frame
from komiut_queue.config import QueueConfig
from komiut_queue.exceptions import QueueSelectionError
from komiut_queue.ingestion.decode import RawFrame, decode_frame
from komiut_queue.models.events import QueueEvent
from komiut_queue.models.state import ConnectionSignal, PendingVehicleSelection, QueueState
from komiut_queue.state import reducer
from komiut_queue.state.policy import connection_failure_codes

_logger = logging.getLogger(__name__)

QueueListener = Callable[[QueueState], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class QueueSnapshot:
    """A route's state together with its change counter."""

    route_id: str
    version: int
    state: QueueState


class QueueStore:
    """In-memory store of per-route queue snapshots.

    Given the same sequence of events, signals and actions (and the same
    clock), the store produces the same snapshots. Every change bumps the
    route's version and notifies its listeners synchronously.
    """

    def __init__(
        self,
        *,
        config: QueueConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._config = config or QueueConfig()
        self._clock = clock
        self._is_connection_failure = connection_failure_codes(self._config.connection_error_codes)
        self._states: dict[str, QueueState] = {}
        self._versions: dict[str, int] = {}
        self._listeners: dict[str, list[QueueListener]] = {}

    @property
    def config(self) -> QueueConfig:
        return self._config

    @property
    def routes(self) -> list[str]:
        return list(self._states)

    def open(self, route_id: str) -> QueueState:
        """Return the route's state, creating a loading state on first use."""
        state = self._states.get(route_id)
        if state is None:
            state = QueueState.loading(route_id)
            self._states[route_id] = state
            self._versions[route_id] = 0
        return state

    def get(self, route_id: str) -> QueueState | None:
        return self._states.get(route_id)

    def snapshot(self, route_id: str) -> QueueSnapshot | None:
        state = self._states.get(route_id)
        if state is None:
            return None
        return QueueSnapshot(route_id=route_id, version=self._versions[route_id], state=state)

    def version(self, route_id: str) -> int:
        return self._versions.get(route_id, 0)

    def _commit(self, route_id: str, state: QueueState) -> QueueState:
        if state is self._states.get(route_id):
            return state
        self._states[route_id] = state
        self._versions[route_id] = self._versions.get(route_id, 0) + 1
        for listener in list(self._listeners.get(route_id, ())):
            try:
                listener(state)
            except Exception:
                _logger.debug("Queue listener for route %s failed", route_id, exc_info=True)
        return state

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def apply(self, route_id: str, event: QueueEvent) -> QueueState:
        """Apply a decoded event to *route_id*.

        Events addressed to another route (non-empty ``route_id`` that
        differs) are ignored.
        """
        state = self.open(route_id)
        if event.route_id and event.route_id != route_id:
            _logger.debug("Ignoring %s event for route %s on route %s", event.type, event.route_id, route_id)
            return state
        new_state = reducer.reduce(
            state,
            event,
            now=self._clock(),
            is_connection_failure=self._is_connection_failure,
        )
        return self._commit(route_id, new_state)

    def apply_frame(self, route_id: str, frame: RawFrame) -> QueueState:
        """Decode a raw transport frame and apply it to *route_id*."""
        if self._config.frame_trace_enabled:
            _logger.debug("Queue frame for route %s: %s", route_id, redact_frame(frame))
        return self.apply(route_id, decode_frame(frame))

    def apply_signal(self, route_id: str, signal: ConnectionSignal) -> QueueState:
        state = self.open(route_id)
        if signal.state is not state.connection_state:
            _logger.debug("Queue route %s: %s -> %s", route_id, state.connection_state, signal.state)
        return self._commit(route_id, reducer.apply_connection_signal(state, signal))

    def request_sync(self, route_id: str) -> QueueState:
        return self._commit(route_id, reducer.begin_sync(self.open(route_id)))

    # ------------------------------------------------------------------
    # Optimistic selection
    # ------------------------------------------------------------------

    def select_vehicle(self, route_id: str, vehicle_id: str, seats: int) -> PendingVehicleSelection:
        """Start an optimistic selection on an open route.

        Raises
        ------
        QueueSelectionError
            If the route is not open or the selection is not possible.
        """
        state = self._states.get(route_id)
        if state is None:
            raise QueueSelectionError(f"Queue for route {route_id} is not open", vehicle_id=vehicle_id)
        timeout = self._config.selection_timeout
        new_state = reducer.begin_selection(
            state,
            vehicle_id,
            seats,
            now=self._clock(),
            timeout=timeout if timeout > 0 else None,
        )
        self._commit(route_id, new_state)
        return cast(PendingVehicleSelection, new_state.pending_selection)

    def confirm_selection(self, route_id: str) -> QueueState:
        return self._commit(route_id, reducer.confirm_selection(self.open(route_id)))

    def fail_selection(self, route_id: str, reason: str) -> QueueState:
        return self._commit(route_id, reducer.fail_selection(self.open(route_id), reason))

    def clear_selection(self, route_id: str) -> QueueState:
        return self._commit(route_id, reducer.clear_selection(self.open(route_id)))

    def expire_selections(self) -> list[str]:
        """Time out overdue selections on every route.

        Returns the routes whose selection was failed.
        """
        now = self._clock()
        expired: list[str] = []
        for route_id, state in list(self._states.items()):
            new_state = reducer.expire_selection(state, now=now)
            if new_state is not state:
                self._commit(route_id, new_state)
                expired.append(route_id)
        return expired

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, route_id: str, listener: QueueListener) -> Callable[[], None]:
        """Call *listener* with every new state of *route_id*.

        Returns a callable that removes the listener.
        """
        listeners = self._listeners.setdefault(route_id, [])
        listeners.append(listener)

        def _unsubscribe() -> None:
            try:
                listeners.remove(listener)
            except ValueError:
                pass

        return _unsubscribe

    def close(self, route_id: str) -> None:
        """Forget a route's state and listeners."""
        self._states.pop(route_id, None)
        self._versions.pop(route_id, None)
        self._listeners.pop(route_id, None)
