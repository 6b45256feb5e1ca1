"""
Tests for AvailabilityService.

Tests cover:
- One verdict per lunch and dinner slot
- Occupancy from existing bookings feeding the combination solver
- Failure of one slot's query leaving the other slots intact
"""
from datetime import time
from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from table_booking.error_handling import BookingValidationError, DatabaseConnectionError
from table_booking.schedule import DINNER_TIME_SLOTS, LUNCH_TIME_SLOTS


class TestCheckSlot:

    def test_single_table_fit(self, availability_service, sample_tables, tomorrow):
        verdict = availability_service.check_slot(tomorrow, "18:00", 5)

        assert verdict.available is True
        assert [t.table_number for t in verdict.tables] == [5]
        assert verdict.service == "dinner"
        assert verdict.end_time == "19:30"
        assert verdict.table_ids == [sample_tables[5].id]

    def test_combines_tables_when_large_ones_are_booked(
        self, availability_service, sample_tables, book_tables, tomorrow
    ):
        book_tables([sample_tables[5], sample_tables[6]], 12, tomorrow, time(18, 0))

        verdict = availability_service.check_slot(tomorrow, time(18, 30), 5)

        assert verdict.available is True
        assert len(verdict.tables) == 2
        assert verdict.total_seats == 6

    def test_no_combination(self, availability_service, sample_tables, tomorrow):
        verdict = availability_service.check_slot(tomorrow, "12:00", 27)
        assert verdict.available is False
        assert verdict.tables == []

    def test_exclude_group(self, availability_service, sample_tables, book_tables, tomorrow):
        group_id = book_tables([sample_tables[6]], 8, tomorrow, time(18, 0))

        without = availability_service.check_slot(tomorrow, "18:30", 8)
        moving = availability_service.check_slot(tomorrow, "18:30", 8, exclude_group_id=group_id)

        # 6 + 2 seats the party of 8 exactly
        assert [t.table_number for t in without.tables] == [1, 5]
        assert [t.table_number for t in moving.tables] == [6]

    def test_unknown_slot(self, availability_service, sample_tables, tomorrow):
        with pytest.raises(BookingValidationError):
            availability_service.check_slot(tomorrow, "15:00", 2)


class TestCheckAllAvailability:

    def test_covers_every_slot(self, availability_service, sample_tables, tomorrow):
        result = availability_service.check_all_availability(tomorrow, 2)

        assert list(result) == LUNCH_TIME_SLOTS + DINNER_TIME_SLOTS
        assert all(verdict.available for verdict in result.values())
        assert all(len(verdict.tables) == 1 for verdict in result.values())

    def test_bookings_only_affect_overlapping_slots(
        self, availability_service, sample_tables, book_tables, tomorrow
    ):
        # Every table taken at 18:00
        book_tables(list(sample_tables.values()), 26, tomorrow, time(18, 0))

        result = availability_service.check_all_availability(tomorrow, 2)

        blocked = [slot for slot, verdict in result.items() if not verdict.available]
        assert blocked == ["17:30", "18:00", "18:30", "19:00"]

    def test_no_tables(self, availability_service, tomorrow):
        result = availability_service.check_all_availability(tomorrow, 2)
        assert len(result) == 14
        assert not any(verdict.available for verdict in result.values())

    @pytest.mark.parametrize("failure", [
        DatabaseConnectionError("Database operation query_available_tables failed"),
        OperationalError("SELECT", {}, Exception("timeout")),
    ])
    def test_failed_slot_is_isolated(
        self, availability_service, store, sample_tables, tomorrow, failure
    ):
        original = store.query_available_tables

        def flaky(booking_date, booking_time, exclude_group_id=None):
            if booking_time == time(18, 30):
                raise failure
            return original(booking_date, booking_time, exclude_group_id=exclude_group_id)

        with patch.object(store, "query_available_tables", side_effect=flaky):
            result = availability_service.check_all_availability(tomorrow, 5)

        assert result["18:30"].available is False
        assert result["18:30"].tables == []
        others = [verdict for slot, verdict in result.items() if slot != "18:30"]
        assert len(others) == 13
        assert all(verdict.available for verdict in others)
        assert all([t.table_number for t in v.tables] == [5] for v in others)

    def test_unexpected_error_is_isolated(self, availability_service, store, sample_tables, tomorrow):
        original = store.query_available_tables

        def broken(booking_date, booking_time, exclude_group_id=None):
            if booking_time == time(12, 0):
                raise RuntimeError("boom")
            return original(booking_date, booking_time, exclude_group_id=exclude_group_id)

        with patch.object(store, "query_available_tables", side_effect=broken):
            result = availability_service.check_all_availability(tomorrow, 2)

        assert len(result) == 14
        assert result["12:00"].available is False
        assert all(v.available for slot, v in result.items() if slot != "12:00")


def test_split_by_service(availability_service, sample_tables, tomorrow):
    result = availability_service.check_all_availability(tomorrow, 4)
    split = availability_service.split_by_service(result)

    assert list(split["lunch"]) == LUNCH_TIME_SLOTS
    assert list(split["dinner"]) == DINNER_TIME_SLOTS
    assert all(v.service == "lunch" for v in split["lunch"].values())
