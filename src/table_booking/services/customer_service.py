"""
CustomerService - customer records for the admin pages.
"""
from datetime import date
from typing import Any, List, Mapping, Optional, Union

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..error_handling.exceptions import (
    BookingConflictError,
    BookingValidationError,
    CustomerNotFoundError,
)
from ..error_handling.handlers import parse_request, translate_database_error
from ..models.database import Booking, Customer
from ..models.schemas import CustomerCreate, CustomerInfo, CustomerUpdate

BOOKING_STATUS_FILTERS = ("all", "upcoming", "past", "none")


class CustomerService:
    """Create, edit, search and filter customers."""

    def __init__(self, session: Session):
        self.session = session

    def _commit(self, operation: str) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise translate_database_error(e, operation) from e

    def _ensure_phone_free(self, phone: Optional[str], customer_id: Optional[str] = None) -> None:
        if not phone:
            return
        query = self.session.query(Customer.id).filter(Customer.phone == phone)
        if customer_id is not None:
            query = query.filter(Customer.id != customer_id)
        if query.first() is not None:
            raise BookingConflictError(
                f"A customer with phone {phone} already exists",
                phone=phone,
            )

    def add_customer(self, data: Union[CustomerCreate, Mapping[str, Any]]) -> CustomerInfo:
        """
        Raises:
            BookingValidationError: Invalid fields
            BookingConflictError: Phone already used by another customer
        """
        data = parse_request(CustomerCreate, data)
        self._ensure_phone_free(data.phone)

        customer = Customer(**data.model_dump())
        self.session.add(customer)
        self._commit("add_customer")

        logger.info(f"Added customer {customer.name} ({customer.status})")
        return CustomerInfo.model_validate(customer)

    def update_customer_details(
        self,
        customer_id: str,
        data: Union[CustomerUpdate, Mapping[str, Any]],
    ) -> CustomerInfo:
        """
        Raises:
            CustomerNotFoundError: Unknown customer
            BookingConflictError: Phone already used by another customer
        """
        data = parse_request(CustomerUpdate, data)
        customer = self.session.get(Customer, customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)

        self._ensure_phone_free(data.phone, customer_id)
        customer.first_name = data.first_name.strip()
        customer.last_name = data.last_name.strip()
        customer.phone = data.phone
        self._commit("update_customer_details")
        return CustomerInfo.model_validate(customer)

    def search_customers(self, name_fragment: str, limit: int = 5) -> List[CustomerInfo]:
        """
        Case-insensitive name search for auto-completion.

        Fragments shorter than two characters return no suggestions.
        """
        fragment = (name_fragment or "").strip()
        if len(fragment) < 2:
            return []

        pattern = f"%{fragment}%"
        full_name = Customer.first_name + " " + Customer.last_name
        rows = (
            self.session.query(Customer)
            .filter(full_name.ilike(pattern))
            .order_by(Customer.first_name, Customer.last_name)
            .limit(limit)
            .all()
        )
        return [CustomerInfo.model_validate(row) for row in rows]

    def filter_customers(
        self,
        name_filter: Optional[str] = None,
        booking_status_filter: str = "all",
        today: Optional[date] = None,
    ) -> List[CustomerInfo]:
        """
        Customers matching a name and a booking status, VIPs first.

        Args:
            name_filter: Case-insensitive fragment of the full name
            booking_status_filter: "all", "upcoming" (booked today or later),
                "past" (has bookings, none upcoming) or "none" (never booked)
            today: Reference date for upcoming/past

        Raises:
            BookingValidationError: Unknown booking status filter
        """
        if booking_status_filter not in BOOKING_STATUS_FILTERS:
            raise BookingValidationError(
                f"Unknown booking status filter {booking_status_filter!r}",
                field="booking_status_filter",
                value=booking_status_filter,
                alternatives=list(BOOKING_STATUS_FILTERS),
            )

        today = today or date.today()
        query = self.session.query(Customer)

        if name_filter and name_filter.strip():
            full_name = Customer.first_name + " " + Customer.last_name
            query = query.filter(full_name.ilike(f"%{name_filter.strip()}%"))

        upcoming = Customer.bookings.any(Booking.booking_date >= today)
        if booking_status_filter == "upcoming":
            query = query.filter(upcoming)
        elif booking_status_filter == "past":
            query = query.filter(Customer.bookings.any(), ~upcoming)
        elif booking_status_filter == "none":
            query = query.filter(~Customer.bookings.any())

        try:
            rows = query.order_by(
                Customer.status.desc(), Customer.first_name, Customer.last_name
            ).all()
        except SQLAlchemyError as e:
            raise translate_database_error(e, "filter_customers") from e
        return [CustomerInfo.model_validate(row) for row in rows]
