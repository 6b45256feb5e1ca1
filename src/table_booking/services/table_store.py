"""
TableStore - data store operations for tables, customers and booking groups.

Every mutation runs as one transaction on the session: a booking group is
either fully written or not at all, and a cancelled group disappears in a
single statement. The exclusion rule (no two bookings of one table with
overlapping occupancy windows) is re-checked inside the write transaction,
so the commit is the single source of truth.
"""
import uuid
from collections import OrderedDict
from datetime import date, time
from typing import Dict, List, Optional, Sequence

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from ..error_handling.exceptions import (
    BookingConflictError,
    BookingGroupNotFoundError,
    BookingSystemError,
    CustomerConfirmationRequiredError,
    TableNotFoundError,
)
from ..error_handling.handlers import call_with_retry, translate_database_error
from ..models.database import Booking, Customer, RestaurantTable
from ..models.schemas import BookingGroupInfo, TableInfo
from ..schedule import ServiceSchedule


def split_customer_name(full_name: str) -> tuple:
    """Split "First Middle Last" into ("First", "Middle Last")."""
    parts = full_name.strip().split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


class TableStore:
    """
    SQLAlchemy-backed store for the reservation engine.

    Reads are retried on connectivity errors; writes never are.
    """

    def __init__(
        self,
        session: Session,
        schedule: Optional[ServiceSchedule] = None,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
    ):
        """
        Args:
            session: SQLAlchemy database session
            schedule: Service schedule providing the booking duration
            max_retries: Retries of read queries on connectivity errors
            retry_backoff: Exponential backoff multiplier between retries
        """
        self.session = session
        self.schedule = schedule or ServiceSchedule()
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _read(self, operation: str, func, *args, **kwargs):
        try:
            return call_with_retry(
                func,
                *args,
                max_retries=self.max_retries,
                backoff_factor=self.retry_backoff,
                **kwargs
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            raise translate_database_error(e, operation) from e

    def _conflicting_bookings(
        self,
        booking_date: date,
        booking_time: time,
        exclude_group_id: Optional[str] = None,
    ):
        """Select of bookings whose occupancy overlaps a window starting at ``booking_time``."""
        lower, upper = self.schedule.overlap_bounds(booking_date, booking_time)
        stmt = select(Booking).where(Booking.booking_date == booking_date)
        if lower is not None:
            stmt = stmt.where(Booking.booking_time > lower)
        if upper is not None:
            stmt = stmt.where(Booking.booking_time < upper)
        if exclude_group_id:
            stmt = stmt.where(Booking.group_id != exclude_group_id)
        return stmt

    def _build_booking(self, **values) -> Booking:
        return Booking(**values)

    def _resolve_customer(
        self,
        customer_name: str,
        customer_phone: str,
        create_customer: bool,
    ) -> Customer:
        customer = self.session.query(Customer).filter(Customer.phone == customer_phone).first()
        if customer is not None:
            return customer
        if not create_customer:
            raise CustomerConfirmationRequiredError(customer_phone, customer_name)

        first_name, last_name = split_customer_name(customer_name)
        customer = Customer(first_name=first_name, last_name=last_name, phone=customer_phone)
        self.session.add(customer)
        self.session.flush()
        logger.info(f"Created customer {customer.name} ({customer_phone})")
        return customer

    def _load_tables(self, table_ids: Sequence[str]) -> List[RestaurantTable]:
        tables = (
            self.session.query(RestaurantTable)
            .filter(RestaurantTable.id.in_(list(table_ids)))
            .with_for_update()
            .all()
        )
        found = {t.id for t in tables}
        missing = [tid for tid in table_ids if tid not in found]
        if missing:
            raise TableNotFoundError(missing[0], missing=missing)
        disabled = sorted((t for t in tables if not t.is_available), key=lambda t: t.table_number)
        if disabled:
            raise BookingConflictError(
                f"Table {disabled[0].table_number} is not available for booking",
                table_id=disabled[0].id,
                disabled_tables=[t.table_number for t in disabled],
            )
        return tables

    def _check_exclusion(
        self,
        table_ids: Sequence[str],
        booking_date: date,
        booking_time: time,
        exclude_group_id: Optional[str] = None,
    ) -> None:
        stmt = self._conflicting_bookings(booking_date, booking_time, exclude_group_id)
        stmt = stmt.where(Booking.table_id.in_(list(table_ids)))
        clash = self.session.execute(stmt.limit(1)).scalars().first()
        if clash is not None:
            raise BookingConflictError(
                f"Table {clash.table_id} already booked at {clash.booking_time} on {booking_date}",
                table_id=clash.table_id,
                conflicting_group_id=clash.group_id,
            )

    def _insert_group(
        self,
        group_id: str,
        table_ids: Sequence[str],
        customer_id: Optional[str],
        party_size: int,
        booking_date: date,
        booking_time: time,
    ) -> None:
        for table_id in table_ids:
            # Full party size on every row, see Booking
            self.session.add(self._build_booking(
                group_id=group_id,
                table_id=table_id,
                customer_id=customer_id,
                party_size=party_size,
                booking_date=booking_date,
                booking_time=booking_time,
            ))
        self.session.flush()

    def _write(self, operation: str, func, *args, **kwargs):
        try:
            result = func(*args, **kwargs)
            self.session.commit()
            return result
        except BookingSystemError:
            self.session.rollback()
            raise
        except SQLAlchemyError as e:
            self.session.rollback()
            raise translate_database_error(e, operation) from e

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def query_available_tables(
        self,
        booking_date: date,
        booking_time: time,
        exclude_group_id: Optional[str] = None,
    ) -> List[TableInfo]:
        """
        Tables that are enabled and have no booking overlapping the slot's window.

        Party size plays no part here; the solver combines tables downstream.

        Args:
            booking_date: Date of the slot
            booking_time: Start time of the slot
            exclude_group_id: Ignore this group's bookings (when moving it)

        Returns:
            TableInfo list ordered by table number

        Raises:
            DatabaseConnectionError: If the store is unreachable after retries
        """
        def run() -> List[TableInfo]:
            occupied = self._conflicting_bookings(
                booking_date, booking_time, exclude_group_id
            ).with_only_columns(Booking.table_id)
            rows = (
                self.session.query(RestaurantTable)
                .filter(
                    RestaurantTable.is_available.is_(True),
                    RestaurantTable.id.not_in(occupied),
                )
                .order_by(RestaurantTable.table_number)
                .all()
            )
            return [TableInfo.model_validate(row) for row in rows]

        return self._read("query_available_tables", run)

    def customer_exists_by_phone(self, phone: str) -> bool:
        def run() -> bool:
            return self.session.query(Customer.id).filter(Customer.phone == phone).first() is not None

        return self._read("customer_exists_by_phone", run)

    def get_booking_group(self, group_id: str) -> List[Booking]:
        """All rows of a booking group, ordered by table number (empty if unknown)."""
        def run() -> List[Booking]:
            return (
                self.session.query(Booking)
                .join(RestaurantTable)
                .options(selectinload(Booking.table), selectinload(Booking.customer))
                .filter(Booking.group_id == group_id)
                .order_by(RestaurantTable.table_number)
                .all()
            )

        return self._read("get_booking_group", run)

    def list_booking_groups(self, from_date: Optional[date] = None) -> List[BookingGroupInfo]:
        """
        Summaries of every booking group, ordered by date and time.

        Args:
            from_date: Only groups on or after this date
        """
        def run() -> List[Booking]:
            query = (
                self.session.query(Booking)
                .join(RestaurantTable)
                .options(selectinload(Booking.table), selectinload(Booking.customer))
            )
            if from_date is not None:
                query = query.filter(Booking.booking_date >= from_date)
            return query.order_by(
                Booking.booking_date, Booking.booking_time, RestaurantTable.table_number
            ).all()

        grouped: Dict[str, List[Booking]] = OrderedDict()
        for row in self._read("list_booking_groups", run):
            grouped.setdefault(row.group_id, []).append(row)
        return [self.summarize_group(rows) for rows in grouped.values()]

    def summarize_group(self, rows: Sequence[Booking]) -> BookingGroupInfo:
        first = rows[0]
        customer = first.customer
        return BookingGroupInfo(
            group_id=first.group_id,
            booking_date=first.booking_date,
            booking_time=first.booking_time,
            end_time=self.schedule.end_of(first.booking_time),
            # Every row carries the full party size; never sum across rows
            party_size=first.party_size,
            customer_id=first.customer_id,
            customer_name=customer.name if customer else None,
            customer_phone=customer.phone if customer else None,
            tables=[TableInfo.model_validate(row.table) for row in rows],
        )

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def create_booking_group(
        self,
        customer_name: str,
        customer_phone: str,
        table_ids: Sequence[str],
        party_size: int,
        booking_date: date,
        booking_time: time,
        create_customer: bool = False,
    ) -> str:
        """
        Book every table in ``table_ids`` for one party in a single transaction.

        Returns:
            The new group id

        Raises:
            CustomerConfirmationRequiredError: Unknown phone and create_customer is False
            TableNotFoundError: A table id does not exist
            BookingConflictError: A table already has an overlapping booking
            DatabaseConnectionError: The store could not be reached
        """
        group_id = str(uuid.uuid4())

        def run() -> str:
            customer = self._resolve_customer(customer_name, customer_phone, create_customer)
            self._load_tables(table_ids)
            self._check_exclusion(table_ids, booking_date, booking_time)
            self._insert_group(
                group_id, table_ids, customer.id, party_size, booking_date, booking_time
            )
            return group_id

        return self._write("create_booking_group", run)

    def update_booking_group(
        self,
        group_id_to_cancel: str,
        customer_name: str,
        customer_phone: str,
        new_table_ids: Sequence[str],
        new_party_size: int,
        booking_date: date,
        booking_time: time,
    ) -> str:
        """
        Replace a booking group with a new one in a single transaction.

        The old rows are deleted and the new group is written with a new id,
        keeping the old group's customer. The exclusion check ignores the old
        group, since it is being moved rather than duplicated.

        Returns:
            The new group id

        Raises:
            BookingGroupNotFoundError: No rows exist for ``group_id_to_cancel``
            BookingConflictError: A new table already has an overlapping booking
        """
        new_group_id = str(uuid.uuid4())

        def run() -> str:
            old_rows = (
                self.session.query(Booking)
                .filter(Booking.group_id == group_id_to_cancel)
                .with_for_update()
                .all()
            )
            if not old_rows:
                raise BookingGroupNotFoundError(group_id_to_cancel)

            customer_id = old_rows[0].customer_id
            if customer_id is None and customer_phone:
                customer_id = self._resolve_customer(
                    customer_name, customer_phone, create_customer=True
                ).id

            self._load_tables(new_table_ids)
            self._check_exclusion(
                new_table_ids, booking_date, booking_time, exclude_group_id=group_id_to_cancel
            )
            self.session.execute(
                delete(Booking).where(Booking.group_id == group_id_to_cancel)
            )
            self._insert_group(
                new_group_id, new_table_ids, customer_id, new_party_size, booking_date, booking_time
            )
            return new_group_id

        return self._write("update_booking_group", run)

    def cancel_booking_group(self, group_id: str) -> int:
        """
        Delete every row of a booking group in one statement.

        Returns:
            Number of rows removed; 0 when the group was already gone
        """
        def run() -> int:
            result = self.session.execute(delete(Booking).where(Booking.group_id == group_id))
            return result.rowcount or 0

        return self._write("cancel_booking_group", run)
