"""
BookingService - booking group lifecycle for the reservation engine.

This service handles:
- The customer-exists precondition before a booking is committed
- Re-validation of the chosen tables immediately before commit
- Creating, moving (cancel and recreate) and cancelling booking groups
  through single store transactions
"""
from datetime import date, time
from typing import Any, List, Mapping, Optional, Union

from loguru import logger

from ..error_handling.exceptions import (
    BookingGroupNotFoundError,
    BookingSystemError,
    BookingValidationError,
    CustomerConfirmationRequiredError,
    SlotNoLongerAvailableError,
)
from ..error_handling.handlers import log_error, parse_request
from ..error_handling.logging_config import LogContext, log_booking_event
from ..models.schemas import (
    BookingGroupCreate,
    BookingGroupInfo,
    BookingGroupUpdate,
    normalize_phone,
)
from ..schedule import ServiceSchedule, format_time
from .availability_service import AvailabilityService
from .table_store import TableStore


class BookingService:
    """
    Service class that encapsulates the booking group lifecycle.

    A group is Pending while composed by the caller, Committed once the
    store has written all its rows, and then either Cancelled (rows removed)
    or Edited (old group removed, new group committed under a new id).
    """

    def __init__(
        self,
        store: TableStore,
        availability: Optional[AvailabilityService] = None,
        schedule: Optional[ServiceSchedule] = None,
        max_party_size: Optional[int] = None,
    ):
        """
        Initialize the booking service.

        Args:
            store: Data store used for every read and write
            availability: Slot evaluator used for re-validation
            schedule: Slot lists and booking duration
            max_party_size: Largest party accepted, None for no limit
        """
        self.store = store
        self.schedule = schedule or store.schedule
        self.availability = availability or AvailabilityService(store, self.schedule)
        self.max_party_size = max_party_size

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def validate_booking_request(
        self,
        booking_date: date,
        booking_time: time,
        party_size: int,
    ) -> None:
        """
        Validate date, time and party size against the schedule.

        Raises:
            BookingValidationError: On the first rule that fails
        """
        if party_size < 1:
            raise BookingValidationError(
                "Party size must be at least 1",
                field="party_size",
                value=party_size,
            )

        if self.max_party_size is not None and party_size > self.max_party_size:
            raise BookingValidationError(
                f"Party size cannot exceed {self.max_party_size} people",
                user_message=f"We can seat at most {self.max_party_size} guests per booking.",
                field="party_size",
                value=party_size,
                max_party_size=self.max_party_size,
            )

        if booking_date < date.today():
            raise BookingValidationError(
                "Booking date cannot be in the past",
                field="date",
                value=booking_date,
                today=date.today(),
            )

        if not self.schedule.contains(booking_time):
            raise BookingValidationError(
                f"{format_time(booking_time)} is not a bookable time slot",
                field="time",
                value=format_time(booking_time),
                alternatives=self.schedule.all_slots,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def customer_exists(self, phone: str) -> bool:
        """
        Precondition hook: whether a customer with this phone already exists.

        Callers use it to ask for confirmation before a booking creates a
        new customer record.
        """
        if not phone or not phone.strip():
            raise BookingValidationError("Phone number is required", field="customer_phone")
        return self.store.customer_exists_by_phone(normalize_phone(phone))

    def get_booking_group(self, group_id: str) -> BookingGroupInfo:
        """
        Raises:
            BookingGroupNotFoundError: If the group has no rows
        """
        rows = self.store.get_booking_group(group_id)
        if not rows:
            raise BookingGroupNotFoundError(group_id)
        return self.store.summarize_group(rows)

    def list_booking_groups(self, from_date: Optional[date] = None) -> List[BookingGroupInfo]:
        return self.store.list_booking_groups(from_date)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def _revalidate(
        self,
        request: BookingGroupCreate,
    ) -> None:
        """
        Check that the requested tables are still free and still seat the party.
        """
        free = {
            table.id: table
            for table in self.store.query_available_tables(
                request.booking_date, request.booking_time
            )
        }
        chosen = [free[tid] for tid in request.table_ids if tid in free]
        if len(chosen) != len(request.table_ids) or sum(t.seats for t in chosen) < request.party_size:
            raise SlotNoLongerAvailableError(
                request.booking_date,
                request.booking_time,
                request.party_size,
                table_ids=list(request.table_ids),
                still_free=[t.id for t in chosen],
            )

    def create_booking_group(
        self,
        request: Union[BookingGroupCreate, Mapping[str, Any]],
        confirm_customer_creation: bool = False,
    ) -> str:
        """
        Commit a new booking group for the tables of a chosen slot.

        Steps:
        1. Validate the request
        2. If no customer has the phone, require confirmation to create one
        3. Re-validate the chosen tables for the slot
        4. Write all rows in one store transaction

        Args:
            request: BookingGroupCreate or raw field mapping
            confirm_customer_creation: Caller has confirmed creating a new customer

        Returns:
            The new group id

        Raises:
            BookingValidationError: Missing or invalid field
            CustomerConfirmationRequiredError: Unknown phone, creation not confirmed
            SlotNoLongerAvailableError: Tables taken since availability was shown
            BookingConflictError: Store refused the write
            DatabaseError: Store unreachable or failing
        """
        request = parse_request(BookingGroupCreate, request)

        with LogContext(operation="create_booking_group", phone=request.customer_phone):
            try:
                self.validate_booking_request(
                    request.booking_date, request.booking_time, request.party_size
                )

                if not confirm_customer_creation and not self.customer_exists(request.customer_phone):
                    raise CustomerConfirmationRequiredError(
                        request.customer_phone, request.customer_name
                    )

                self._revalidate(request)

                group_id = self.store.create_booking_group(
                    customer_name=request.customer_name,
                    customer_phone=request.customer_phone,
                    table_ids=request.table_ids,
                    party_size=request.party_size,
                    booking_date=request.booking_date,
                    booking_time=request.booking_time,
                    create_customer=confirm_customer_creation,
                )
            except BookingSystemError as e:
                log_error(e, "create_booking_group", {"table_ids": request.table_ids})
                raise

        log_booking_event(
            "CREATED",
            group_id=group_id,
            details={
                "date": str(request.booking_date),
                "time": format_time(request.booking_time),
                "party_size": request.party_size,
                "tables": len(request.table_ids),
            },
        )
        return group_id

    def edit_booking_group(
        self,
        group_id: str,
        update: Union[BookingGroupUpdate, Mapping[str, Any]],
    ) -> str:
        """
        Move or resize a booking group by cancelling it and creating a new one.

        The new tables are chosen by the solver for the new slot, treating the
        group's own tables as free. Nothing changes if no combination fits.

        Args:
            group_id: Group to replace
            update: New party size, date and time

        Returns:
            The new group id

        Raises:
            BookingGroupNotFoundError: Unknown group
            BookingValidationError: Invalid new values
            SlotNoLongerAvailableError: No combination seats the party at the new slot
        """
        update = parse_request(BookingGroupUpdate, update)

        with LogContext(operation="edit_booking_group", group_id=group_id):
            try:
                self.validate_booking_request(
                    update.booking_date, update.booking_time, update.party_size
                )
                current = self.get_booking_group(group_id)

                slot = self.availability.check_slot(
                    update.booking_date,
                    update.booking_time,
                    update.party_size,
                    exclude_group_id=group_id,
                )
                if not slot.available:
                    raise SlotNoLongerAvailableError(
                        update.booking_date,
                        update.booking_time,
                        update.party_size,
                        group_id=group_id,
                    )

                new_group_id = self.store.update_booking_group(
                    group_id_to_cancel=group_id,
                    customer_name=current.customer_name or "",
                    customer_phone=current.customer_phone or "",
                    new_table_ids=slot.table_ids,
                    new_party_size=update.party_size,
                    booking_date=update.booking_date,
                    booking_time=update.booking_time,
                )
            except BookingSystemError as e:
                log_error(e, "edit_booking_group", {"group_id": group_id})
                raise

        log_booking_event(
            "EDITED",
            group_id=new_group_id,
            details={
                "replaces": group_id,
                "date": str(update.booking_date),
                "time": format_time(update.booking_time),
                "party_size": update.party_size,
                "tables": len(slot.table_ids),
            },
        )
        return new_group_id

    def cancel_booking_group(self, group_id: str) -> int:
        """
        Cancel every booking of a group.

        Cancelling an unknown or already cancelled group succeeds as a no-op.

        Returns:
            Number of booking rows removed
        """
        if not group_id:
            raise BookingValidationError("Group id is required", field="group_id")

        try:
            removed = self.store.cancel_booking_group(group_id)
        except BookingSystemError as e:
            log_error(e, "cancel_booking_group", {"group_id": group_id})
            raise

        if removed:
            log_booking_event("CANCELLED", group_id=group_id, details={"rows": removed})
        else:
            logger.info(f"Cancel of booking group {group_id} was a no-op")
        return removed
