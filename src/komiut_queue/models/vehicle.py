"""Queue vehicle model."""

from __future__ import annotations

from typing import Any

from pydantic import field_validator, model_validator

from komiut_queue.models._base import IsoTimestamp, OptionalText, QueueBaseModel, QueueEnum, WireInt, WireText


class QueueVehicleStatus(QueueEnum):
    """Status of a vehicle in the departure queue."""

    WAITING = "waiting"
    BOARDING = "boarding"
    DEPARTING = "departing"
    DEPARTED = "departed"

    @classmethod
    def parse(cls, value: Any) -> QueueVehicleStatus:
        """Parse a wire status; unknown or missing values become ``WAITING``."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.WAITING

    @property
    def can_board(self) -> bool:
        """Whether passengers may board a vehicle in this status."""
        return self in (QueueVehicleStatus.WAITING, QueueVehicleStatus.BOARDING)

    @property
    def is_in_queue(self) -> bool:
        return self is not QueueVehicleStatus.DEPARTED


class QueueVehicle(QueueBaseModel):
    """A vehicle waiting in a route's departure queue.

    ``available_seats`` is clamped into ``[0, total_seats]`` on
    construction, so a snapshot can never report more free seats than the
    vehicle has.
    """

    id: WireText = ""
    """Queue entry ID."""
    vehicle_id: WireText = ""
    """Vehicle reference; the identity used by every queue event."""
    registration_number: WireText = ""
    """Registration plate (e.g. ``"KBZ 123A"``)."""
    route_id: WireText = ""
    position: WireInt = 0
    """1-based rank in the queue; lower departs sooner."""
    status: QueueVehicleStatus = QueueVehicleStatus.WAITING
    total_seats: WireInt = 0
    available_seats: WireInt = 0
    driver_name: OptionalText = None
    estimated_departure_time: IsoTimestamp = None
    joined_at: IsoTimestamp = None
    make: OptionalText = None
    model: OptionalText = None
    color: OptionalText = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> QueueVehicleStatus:
        return QueueVehicleStatus.parse(value)

    @model_validator(mode="after")
    def _clamp_seats(self) -> QueueVehicle:
        total = max(self.total_seats, 0)
        available = min(max(self.available_seats, 0), total)
        if total != self.total_seats:
            object.__setattr__(self, "total_seats", total)
        if available != self.available_seats:
            object.__setattr__(self, "available_seats", available)
        return self

    @property
    def occupied_seats(self) -> int:
        return self.total_seats - self.available_seats

    @property
    def is_full(self) -> bool:
        return self.available_seats <= 0

    @property
    def has_seats(self) -> bool:
        return self.available_seats > 0

    @property
    def occupancy(self) -> float:
        """Fraction of occupied seats (0.0 to 1.0)."""
        if self.total_seats <= 0:
            return 0.0
        return self.occupied_seats / self.total_seats

    @property
    def can_board(self) -> bool:
        """Whether passengers can currently board this vehicle."""
        return self.status.can_board and self.has_seats

    @property
    def is_first(self) -> bool:
        return self.position == 1
