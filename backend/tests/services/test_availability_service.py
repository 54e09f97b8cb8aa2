"""
Tests for pms/services/availability_service.py
Covers: is_room_available, get_available_rooms, check_room_type_availability
"""
import pytest
from datetime import date
from unittest.mock import patch
from sqlalchemy.exc import OperationalError

from pms.exceptions import AvailabilityCheckFailed, StoreFailure
from pms.models.ontology import ReservationStatus, RoomStatus
from pms.models.schemas import RoomTypeAvailabilityRequest


class TestIsRoomAvailable:

    def test_empty_room(self, engine, room_101, july_stay):
        assert engine.availability.is_room_available(room_101.hotel_id, room_101.id, *july_stay)

    def test_overlap_rejected(self, engine, room_101, make_reservation):
        make_reservation(room_101, date(2024, 7, 10), date(2024, 7, 15))
        assert not engine.availability.is_room_available(
            room_101.hotel_id, room_101.id, date(2024, 7, 14), date(2024, 7, 16)
        )

    def test_back_to_back_allowed(self, engine, room_101, make_reservation):
        make_reservation(room_101, date(2024, 7, 10), date(2024, 7, 15))
        avail = engine.availability
        assert avail.is_room_available(room_101.hotel_id, room_101.id, date(2024, 7, 15), date(2024, 7, 18))
        assert avail.is_room_available(room_101.hotel_id, room_101.id, date(2024, 7, 8), date(2024, 7, 10))

    @pytest.mark.parametrize("status", [
        ReservationStatus.CANCELLED, ReservationStatus.CHECKED_OUT, ReservationStatus.NO_SHOW,
    ])
    def test_inactive_reservations_do_not_block(self, engine, room_101, make_reservation, status):
        make_reservation(room_101, date(2024, 7, 10), date(2024, 7, 15), status=status)
        assert engine.availability.is_room_available(
            room_101.hotel_id, room_101.id, date(2024, 7, 11), date(2024, 7, 12)
        )

    @pytest.mark.parametrize("status", [
        ReservationStatus.PENDING, ReservationStatus.CONFIRMED, ReservationStatus.CHECKED_IN,
    ])
    def test_active_reservations_block(self, engine, room_101, make_reservation, status):
        make_reservation(room_101, date(2024, 7, 10), date(2024, 7, 15), status=status)
        assert not engine.availability.is_room_available(
            room_101.hotel_id, room_101.id, date(2024, 7, 11), date(2024, 7, 12)
        )

    def test_exclude_self(self, engine, room_101, make_reservation):
        existing = make_reservation(room_101, date(2024, 7, 10), date(2024, 7, 15))
        assert engine.availability.is_room_available(
            room_101.hotel_id, room_101.id, date(2024, 7, 12), date(2024, 7, 17),
            exclude_reservation_id=existing.id
        )

    def test_other_rooms_do_not_block(self, engine, make_room, standard_type, make_reservation):
        room_a = make_room(standard_type, "101")
        room_b = make_room(standard_type, "102")
        make_reservation(room_a, date(2024, 7, 10), date(2024, 7, 15))
        assert engine.availability.is_room_available(
            room_b.hotel_id, room_b.id, date(2024, 7, 10), date(2024, 7, 15)
        )

    def test_query_failure_is_typed(self, engine, db_session, room_101, july_stay):
        with patch.object(db_session, "query", side_effect=OperationalError("SELECT", {}, Exception("db down"))):
            with pytest.raises(AvailabilityCheckFailed) as exc_info:
                engine.availability.is_room_available(room_101.hotel_id, room_101.id, *july_stay)
        assert isinstance(exc_info.value, StoreFailure)
        assert exc_info.value.error_type == "availability_check_failed"


class TestGetAvailableRooms:

    def test_filters_booked_and_maintenance(self, engine, make_room, standard_type, make_reservation, july_stay):
        free = make_room(standard_type, "103")
        booked = make_room(standard_type, "101")
        make_room(standard_type, "102", status=RoomStatus.MAINTENANCE)
        make_reservation(booked, date(2024, 7, 12), date(2024, 7, 13))

        rooms = engine.availability.get_available_rooms(free.hotel_id, *july_stay)
        assert [r.room_number for r in rooms] == ["103"]

    def test_ordered_by_room_number(self, engine, make_room, standard_type, july_stay):
        for number in ("203", "101", "102"):
            make_room(standard_type, number)
        rooms = engine.availability.get_available_rooms(standard_type.hotel_id, *july_stay)
        assert [r.room_number for r in rooms] == ["101", "102", "203"]

    def test_room_type_filter(self, engine, make_room, make_room_type, standard_type, july_stay):
        deluxe = make_room_type("Deluxe", capacity=2)
        make_room(standard_type, "101")
        make_room(deluxe, "201")
        rooms = engine.availability.get_available_rooms(standard_type.hotel_id, *july_stay, room_type_id=deluxe.id)
        assert [r.room_number for r in rooms] == ["201"]

    def test_dirty_and_occupied_rooms_still_allocatable(self, engine, make_room, standard_type, july_stay):
        make_room(standard_type, "101", status=RoomStatus.DIRTY)
        make_room(standard_type, "102", status=RoomStatus.OCCUPIED)
        rooms = engine.availability.get_available_rooms(standard_type.hotel_id, *july_stay)
        assert len(rooms) == 2


class TestCheckRoomTypeAvailability:

    def test_requested_vs_available(self, engine, make_room, make_room_type, standard_type,
                                    make_reservation, july_stay):
        deluxe = make_room_type("Deluxe", capacity=2)
        make_room(standard_type, "101")
        busy = make_room(standard_type, "102")
        make_room(deluxe, "201")
        make_reservation(busy, *july_stay)

        results = engine.availability.check_room_type_availability(
            standard_type.hotel_id, *july_stay,
            [
                RoomTypeAvailabilityRequest(room_type_id=standard_type.id, quantity=2),
                RoomTypeAvailabilityRequest(room_type_id=deluxe.id, quantity=1),
            ]
        )
        assert (results[0].requested, results[0].available, results[0].is_available) == (2, 1, False)
        assert (results[1].requested, results[1].available, results[1].is_available) == (1, 1, True)
