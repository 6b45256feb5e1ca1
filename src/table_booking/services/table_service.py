"""
TableService - floor plan administration.

The manual availability flag set here is the administrator override the
availability queries honour, independent of bookings.
"""
from typing import Any, List, Mapping, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..error_handling.exceptions import (
    BookingConflictError,
    BookingValidationError,
    TableNotFoundError,
)
from ..error_handling.handlers import parse_request, translate_database_error
from ..models.database import Booking, RestaurantTable
from ..models.schemas import TableCreate, TableInfo


class TableService:
    """Add, resize, enable/disable and delete restaurant tables."""

    def __init__(self, session: Session):
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise translate_database_error(e, operation) from e

    def _get(self, table_id: str) -> RestaurantTable:
        table = self.session.get(RestaurantTable, table_id)
        if table is None:
            raise TableNotFoundError(table_id)
        return table

    def get_by_number(self, table_number: int) -> TableInfo:
        table = (
            self.session.query(RestaurantTable)
            .filter(RestaurantTable.table_number == table_number)
            .first()
        )
        if table is None:
            raise TableNotFoundError(table_number)
        return TableInfo.model_validate(table)

    def list_tables(self) -> List[TableInfo]:
        rows = self.session.query(RestaurantTable).order_by(RestaurantTable.table_number).all()
        return [TableInfo.model_validate(row) for row in rows]

    def add_table(self, data: Union[TableCreate, Mapping[str, Any]]) -> TableInfo:
        """
        Raises:
            BookingValidationError: Non-positive number or seats
            BookingConflictError: Table number already in use
        """
        data = parse_request(TableCreate, data)
        exists = (
            self.session.query(RestaurantTable.id)
            .filter(RestaurantTable.table_number == data.table_number)
            .first()
        )
        if exists is not None:
            raise BookingConflictError(
                f"Table number {data.table_number} already exists",
                table_number=data.table_number,
            )

        table = RestaurantTable(**data.model_dump())
        self.session.add(table)
        self._commit("add_table")
        logger.info(f"Added table {table.table_number} with {table.seats} seats")
        return TableInfo.model_validate(table)

    def update_table_seats(self, table_id: str, seats: int) -> TableInfo:
        if seats < 1:
            raise BookingValidationError(
                "A table needs at least one seat", field="seats", value=seats
            )
        table = self._get(table_id)
        table.seats = seats
        self._commit("update_table_seats")
        return TableInfo.model_validate(table)

    def set_table_availability(self, table_id: str, is_available: bool) -> TableInfo:
        table = self._get(table_id)
        table.is_available = is_available
        self._commit("set_table_availability")
        logger.info(
            f"Table {table.table_number} {'enabled' if is_available else 'disabled'} for booking"
        )
        return TableInfo.model_validate(table)

    def delete_table(self, table_id: str) -> None:
        """
        Raises:
            TableNotFoundError: Unknown table
            BookingConflictError: The table still has bookings
        """
        table = self._get(table_id)
        booked = self.session.query(Booking.id).filter(Booking.table_id == table_id).first()
        if booked is not None:
            raise BookingConflictError(
                f"Table {table.table_number} still has bookings",
                table_id=table_id,
            )
        self.session.delete(table)
        self._commit("delete_table")
        logger.info(f"Deleted table {table.table_number}")
