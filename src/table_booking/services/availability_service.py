"""
AvailabilityService - per-slot availability for a date and party size.

For every slot of the lunch and dinner services the store is asked for the
tables free during the slot's occupancy window, and the combination solver
picks the tables that would seat the party. A slot whose query fails is
reported unavailable; the other slots are unaffected.
"""
from datetime import date, time
from typing import Dict, Optional, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from ..error_handling.exceptions import DatabaseError
from ..error_handling.logging_config import log_performance
from ..models.schemas import SlotAvailability
from ..schedule import ServiceSchedule, format_time, parse_time
from .table_solver import DEFAULT_EXHAUSTIVE_LIMIT, find_best_table_combination
from .table_store import TableStore


class AvailabilityService:
    """
    Evaluates slot availability against the current bookings.

    Results are snapshots: nothing is cached between calls, and a booking
    must be re-validated at commit time.
    """

    def __init__(
        self,
        store: TableStore,
        schedule: Optional[ServiceSchedule] = None,
        exhaustive_limit: int = DEFAULT_EXHAUSTIVE_LIMIT,
    ):
        """
        Args:
            store: Data store for table and booking queries
            schedule: Slot lists and booking duration (defaults to the store's)
            exhaustive_limit: Passed to the solver
        """
        self.store = store
        self.schedule = schedule or store.schedule
        self.exhaustive_limit = exhaustive_limit

    def check_slot(
        self,
        booking_date: date,
        booking_time: Union[str, time],
        party_size: int,
        exclude_group_id: Optional[str] = None,
    ) -> SlotAvailability:
        """
        Availability of one slot.

        Args:
            booking_date: Date to check
            booking_time: Slot start time
            party_size: Number of guests
            exclude_group_id: Treat this group's tables as free (when moving it)

        Returns:
            SlotAvailability with the chosen tables, or available=False

        Raises:
            DatabaseError: If the store query fails
        """
        start = parse_time(booking_time)
        label = format_time(start)
        free_tables = self.store.query_available_tables(
            booking_date, start, exclude_group_id=exclude_group_id
        )
        chosen = find_best_table_combination(
            free_tables, party_size, exhaustive_limit=self.exhaustive_limit
        )
        return SlotAvailability(
            time=label,
            service=self.schedule.service_for(label),
            available=bool(chosen),
            tables=chosen,
            end_time=self.schedule.end_of(start),
        )

    def _unavailable(self, slot: str) -> SlotAvailability:
        return SlotAvailability(
            time=slot,
            service=self.schedule.service_for(slot),
            available=False,
            tables=[],
            end_time=self.schedule.end_of(slot),
        )

    @log_performance("check_all_availability")
    def check_all_availability(
        self,
        booking_date: date,
        party_size: int,
        exclude_group_id: Optional[str] = None,
    ) -> Dict[str, SlotAvailability]:
        """
        Availability of every lunch and dinner slot on a date.

        Slots are evaluated one by one. A failed query marks only its own
        slot unavailable.

        Args:
            booking_date: Date to check
            party_size: Number of guests
            exclude_group_id: Treat this group's tables as free (when moving it)

        Returns:
            Mapping of HH:MM slot to its SlotAvailability
        """
        availability: Dict[str, SlotAvailability] = {}

        for slot in self.schedule.all_slots:
            try:
                availability[slot] = self.check_slot(
                    booking_date, slot, party_size, exclude_group_id=exclude_group_id
                )
            except (DatabaseError, SQLAlchemyError) as e:
                logger.warning(f"Error checking availability for {booking_date} {slot}: {e}")
                availability[slot] = self._unavailable(slot)
            except Exception:
                logger.exception(f"Unexpected error checking availability for {booking_date} {slot}")
                availability[slot] = self._unavailable(slot)

        open_slots = sum(1 for verdict in availability.values() if verdict.available)
        logger.debug(
            f"Availability for {booking_date}, party of {party_size}: "
            f"{open_slots}/{len(availability)} slots open"
        )
        return availability

    def split_by_service(
        self,
        availability: Dict[str, SlotAvailability],
    ) -> Dict[str, Dict[str, SlotAvailability]]:
        """
        Group an availability map into lunch and dinner, in schedule order.
        """
        return {
            "lunch": {s: availability[s] for s in self.schedule.lunch_slots if s in availability},
            "dinner": {s: availability[s] for s in self.schedule.dinner_slots if s in availability},
        }
