from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from komiut_queue.exceptions import QueueDecodeError
from komiut_queue.ingestion.decode import decode, decode_frame, decode_strict
from komiut_queue.models.events import (
    EVENT_MODELS,
    QueueErrorEvent,
    QueueErrorOrigin,
    QueueEventType,
    QueueSyncedEvent,
    VehicleJoinedQueueEvent,
    VehicleLeftQueueEvent,
    VehiclePositionChangedEvent,
    VehicleSeatCountChangedEvent,
    VehicleStatusChangedEvent,
)
from komiut_queue.models.vehicle import QueueVehicleStatus

VEHICLE_PAYLOAD: dict = {
    "id": "queue-1",
    "vehicleId": "vehicle-1",
    "registrationNumber": "KBZ 123A",
    "routeId": "route-42",
    "position": 1,
    "status": "boarding",
    "totalSeats": 14,
    "availableSeats": 6,
    "driverName": "John Kamau",
    "estimatedDepartureTime": "2026-01-01T08:05:00Z",
}


class TestEventTypeSpellings:
    @pytest.mark.parametrize(
        "spelling",
        ["vehicle_left_queue", "vehicleleftqueue", "VehicleLeftQueue", "VEHICLE_LEFT_QUEUE", "vehicleLeftQueue"],
    )
    def test_left_spellings(self, spelling: str) -> None:
        event = decode({"type": spelling, "routeId": "route-42", "vehicleId": "vehicle-1"})

        assert isinstance(event, VehicleLeftQueueEvent)
        assert event.vehicle_id == "vehicle-1"

    def test_every_type_has_both_spellings(self) -> None:
        for member in QueueEventType:
            assert QueueEventType.from_wire(member.value) is member
            assert QueueEventType.from_wire(member.value.replace("_", "")) is member

    def test_unknown_type_is_none(self) -> None:
        assert QueueEventType.from_wire("vehicle_teleported") is None
        assert QueueEventType.from_wire(None) is None
        assert QueueEventType.from_wire(42) is None


class TestVariants:
    def test_joined(self) -> None:
        event = decode(
            {
                "type": "vehicle_joined_queue",
                "routeId": "route-42",
                "timestamp": "2026-01-01T08:00:00Z",
                "vehicle": VEHICLE_PAYLOAD,
            }
        )

        assert isinstance(event, VehicleJoinedQueueEvent)
        assert event.route_id == "route-42"
        assert event.timestamp == datetime(2026, 1, 1, 8, 0, tzinfo=UTC)
        assert event.vehicle.vehicle_id == "vehicle-1"
        assert event.vehicle.status is QueueVehicleStatus.BOARDING
        assert event.vehicle.estimated_departure_time == datetime(2026, 1, 1, 8, 5, tzinfo=UTC)

    def test_position_changed(self) -> None:
        event = decode(
            {"type": "vehiclePositionChanged", "vehicleId": "vehicle-2", "oldPosition": 2, "newPosition": 1}
        )

        assert isinstance(event, VehiclePositionChangedEvent)
        assert (event.old_position, event.new_position) == (2, 1)

    def test_seat_count_changed_accepts_numeric_strings(self) -> None:
        event = decode(
            {"type": "vehicle_seat_count_changed", "vehicleId": "vehicle-1", "oldSeatCount": "10", "newSeatCount": "9"}
        )

        assert isinstance(event, VehicleSeatCountChangedEvent)
        assert event.new_seat_count == 9

    def test_status_changed(self) -> None:
        event = decode(
            {"type": "vehicle_status_changed", "vehicleId": "vehicle-1", "oldStatus": "WAITING", "newStatus": "Boarding"}
        )

        assert isinstance(event, VehicleStatusChangedEvent)
        assert event.old_status is QueueVehicleStatus.WAITING
        assert event.new_status is QueueVehicleStatus.BOARDING

    def test_synced(self) -> None:
        second = {**VEHICLE_PAYLOAD, "id": "queue-2", "vehicleId": "vehicle-2", "position": 2}
        event = decode({"type": "queue_synced", "routeId": "route-42", "vehicles": [VEHICLE_PAYLOAD, second]})

        assert isinstance(event, QueueSyncedEvent)
        assert [v.vehicle_id for v in event.vehicles] == ["vehicle-1", "vehicle-2"]

    def test_server_error(self) -> None:
        event = decode({"type": "error", "routeId": "route-42", "message": "Stage closed", "code": "STAGE_CLOSED"})

        assert isinstance(event, QueueErrorEvent)
        assert event.message == "Stage closed"
        assert event.code == "STAGE_CLOSED"
        assert event.origin is QueueErrorOrigin.SERVER
        assert event.is_server_error

    def test_server_cannot_spoof_origin(self) -> None:
        event = decode({"type": "error", "origin": "decode"})

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.SERVER


class TestFailSoft:
    def test_unknown_type_decodes_to_error(self) -> None:
        event = decode({"type": "totally_unknown"})

        assert isinstance(event, QueueErrorEvent)
        assert event.message == "Unknown error"
        assert event.route_id == ""
        assert event.origin is QueueErrorOrigin.UNKNOWN_TYPE
        assert event.is_decode_failure

    def test_missing_type_decodes_to_error(self) -> None:
        event = decode({"routeId": "route-42"})

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.UNKNOWN_TYPE
        assert event.route_id == "route-42"

    def test_missing_fields_default(self) -> None:
        left = decode({"type": "vehicle_left_queue"})
        seats = decode({"type": "vehicle_seat_count_changed"})
        synced = decode({"type": "queue_synced"})
        joined = decode({"type": "vehicle_joined_queue"})

        assert isinstance(left, VehicleLeftQueueEvent) and left.vehicle_id == ""
        assert isinstance(seats, VehicleSeatCountChangedEvent) and seats.new_seat_count == 0
        assert isinstance(synced, QueueSyncedEvent) and synced.vehicles == ()
        assert isinstance(joined, VehicleJoinedQueueEvent) and joined.vehicle.vehicle_id == ""

    def test_nulls_use_defaults(self) -> None:
        event = decode({"type": "vehicle_left_queue", "routeId": None, "vehicleId": None, "timestamp": None})

        assert isinstance(event, VehicleLeftQueueEvent)
        assert event.route_id == ""
        assert event.timestamp is None

    def test_bad_timestamp_is_dropped(self) -> None:
        event = decode({"type": "vehicle_left_queue", "timestamp": "yesterday-ish"})

        assert event.timestamp is None

    @pytest.mark.parametrize(
        "payload",
        [
            None,
            [],
            "vehicle_left_queue",
            42,
            {"type": "queue_synced", "vehicles": "all of them"},
            {"type": "queue_synced", "vehicles": [1, 2]},
            {"type": "vehicle_joined_queue", "vehicle": "KBZ 123A"},
        ],
    )
    def test_malformed_payload_decodes_to_decode_error(self, payload: object) -> None:
        event = decode(payload)

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.DECODE

    def test_out_of_range_number_uses_default(self) -> None:
        event = decode({"type": "vehicle_position_changed", "vehicleId": "v1", "newPosition": 10**400})

        assert isinstance(event, VehiclePositionChangedEvent)
        assert event.vehicle_id == "v1"
        assert event.new_position == 0

    def test_out_of_range_number_in_vehicle(self) -> None:
        vehicle = {**VEHICLE_PAYLOAD, "availableSeats": -(10**400)}

        event = decode({"type": "queue_synced", "routeId": "route-42", "vehicles": [vehicle]})

        assert isinstance(event, QueueSyncedEvent)
        assert event.vehicles[0].available_seats == 0

    def test_malformed_payload_keeps_route(self) -> None:
        event = decode({"type": "queue_synced", "routeId": "route-42", "vehicles": {"a": 1}})

        assert isinstance(event, QueueErrorEvent)
        assert event.route_id == "route-42"


class TestStrict:
    def test_raises_for_non_object(self) -> None:
        with pytest.raises(QueueDecodeError):
            decode_strict(["not", "an", "object"])

    def test_raises_for_bad_shape(self) -> None:
        with pytest.raises(QueueDecodeError) as excinfo:
            decode_strict({"type": "queueSynced", "vehicles": "nope"})

        assert excinfo.value.payload_type == "queueSynced"

    def test_unknown_type_is_not_an_exception(self) -> None:
        event = decode_strict({"type": "vehicle_teleported"})

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.UNKNOWN_TYPE


class TestFrames:
    def test_text_frame(self) -> None:
        event = decode_frame(json.dumps({"type": "vehicle_left_queue", "vehicleId": "vehicle-1"}))

        assert isinstance(event, VehicleLeftQueueEvent)

    def test_bytes_frame(self) -> None:
        event = decode_frame(b'{"type": "vehicleleftqueue", "vehicleId": "vehicle-1"}')

        assert isinstance(event, VehicleLeftQueueEvent)

    def test_invalid_json_frame(self) -> None:
        event = decode_frame("{not json")

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.DECODE

    def test_event_round_trips_through_wire_form(self) -> None:
        original = decode({"type": "vehicle_joined_queue", "routeId": "route-42", "vehicle": VEHICLE_PAYLOAD})

        wire = original.to_json()

        assert wire["type"] == "vehicle_joined_queue"
        assert wire["vehicle"]["vehicleId"] == "vehicle-1"
        assert decode_frame(json.dumps(wire)) == original

    def test_out_of_range_number_in_text_frame(self) -> None:
        frame = '{"type": "vehicle_joined_queue", "vehicle": {"vehicleId": "v1", "position": 1' + "0" * 400 + "}}"

        event = decode_frame(frame)

        assert isinstance(event, VehicleJoinedQueueEvent)
        assert event.vehicle.position == 0

    def test_deeply_nested_frame(self) -> None:
        event = decode_frame("[" * 100_000 + "]" * 100_000)

        assert isinstance(event, QueueErrorEvent)
        assert event.origin is QueueErrorOrigin.DECODE


def test_unexpected_model_failure_is_fail_soft(monkeypatch: pytest.MonkeyPatch) -> None:
    class _Exploding:
        @classmethod
        def model_validate(cls, data: object) -> None:
            raise RuntimeError("validator bug")

    monkeypatch.setitem(EVENT_MODELS, QueueEventType.VEHICLE_LEFT_QUEUE, _Exploding)

    event = decode({"type": "vehicle_left_queue", "routeId": "route-42", "vehicleId": "v1"})

    assert isinstance(event, QueueErrorEvent)
    assert event.origin is QueueErrorOrigin.DECODE
    assert event.route_id == "route-42"
