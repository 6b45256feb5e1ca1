"""
Custom Exception Classes for the table reservation engine.

This module defines exception classes for different error categories:
- Business Logic Errors (validation, stale availability, customer gate)
- Lookup Errors (unknown booking group, table or customer)
- Technical Errors (database connectivity, queries, constraint conflicts)

Each exception includes context for error recovery and logging.
"""

from typing import Optional, Any, Dict, List
from datetime import date, time


class BookingSystemError(Exception):
    """Base exception for all booking system errors."""

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        recoverable: bool = True
    ):
        """
        Initialize booking system error.

        Args:
            message: Technical error message for logging
            user_message: User-facing message
            context: Additional context for error recovery
            recoverable: Whether the error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.user_message = user_message or message
        self.context = context or {}
        self.recoverable = recoverable


# ============================================================================
# Business Logic Errors
# ============================================================================

class BookingValidationError(BookingSystemError):
    """
    Raised when a request is refused before touching the data store.

    Examples:
    - Missing customer name or phone
    - Non-positive party size
    - Malformed or past date, time outside the slot list
    """

    def __init__(
        self,
        message: str,
        user_message: Optional[str] = None,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        alternatives: Optional[list] = None,
        **kwargs
    ):
        """
        Initialize booking validation error.

        Args:
            message: Technical error message
            user_message: User-facing message
            field: Field that failed validation (name, phone, date, time, party_size)
            value: Invalid value
            alternatives: List of alternative valid options
            **kwargs: Additional context
        """
        context = {
            "field": field,
            "value": value,
            "alternatives": alternatives or [],
            **kwargs
        }
        super().__init__(message, user_message, context, recoverable=True)
        self.field = field
        self.value = value
        self.alternatives = alternatives or []


class SlotNoLongerAvailableError(BookingSystemError):
    """
    Raised when the tables chosen for a slot are no longer jointly sufficient.

    The availability shown to the user is a snapshot; this error is how a
    booking committed in the meantime is reported instead of double-booking.
    """

    def __init__(
        self,
        booking_date: date,
        booking_time: time,
        party_size: int,
        table_ids: Optional[List[str]] = None,
        **kwargs
    ):
        message = (
            f"Slot no longer available: date={booking_date}, time={booking_time}, "
            f"party_size={party_size}"
        )
        context = {
            "date": booking_date,
            "time": booking_time,
            "party_size": party_size,
            "table_ids": table_ids or [],
            **kwargs
        }
        super().__init__(message, context=context, recoverable=True)
        self.booking_date = booking_date
        self.booking_time = booking_time
        self.party_size = party_size
        self.table_ids = table_ids or []


class CustomerConfirmationRequiredError(BookingSystemError):
    """Raised when no customer has the given phone and creation was not confirmed."""

    def __init__(self, phone: str, customer_name: Optional[str] = None, **kwargs):
        message = f"No customer with phone {phone}; creation must be confirmed"
        context = {"phone": phone, "customer_name": customer_name, **kwargs}
        super().__init__(message, context=context, recoverable=True)
        self.phone = phone
        self.customer_name = customer_name


# ============================================================================
# Lookup Errors
# ============================================================================

class NotFoundError(BookingSystemError):
    """Raised when a referenced record does not exist."""

    def __init__(self, entity: str, identifier: Any, **kwargs):
        message = f"{entity} not found: {identifier}"
        context = {"entity": entity, "identifier": identifier, **kwargs}
        super().__init__(message, context=context, recoverable=True)
        self.entity = entity
        self.identifier = identifier


class BookingGroupNotFoundError(NotFoundError):
    """Raised when a booking group has no rows."""

    def __init__(self, group_id: str, **kwargs):
        super().__init__("Booking group", group_id, **kwargs)
        self.group_id = group_id


class TableNotFoundError(NotFoundError):
    """Raised when a restaurant table does not exist."""

    def __init__(self, table_id: Any, **kwargs):
        super().__init__("Table", table_id, **kwargs)
        self.table_id = table_id


class CustomerNotFoundError(NotFoundError):
    """Raised when a customer does not exist."""

    def __init__(self, customer_id: Any, **kwargs):
        super().__init__("Customer", customer_id, **kwargs)
        self.customer_id = customer_id


# ============================================================================
# Technical Errors - Database
# ============================================================================

class DatabaseError(BookingSystemError):
    """
    Raised when database operations fail.

    Examples:
    - Connection errors
    - Query failures
    - Transaction errors
    - Constraint violations
    """

    def __init__(
        self,
        message: str,
        error_type: str = "unknown",
        original_error: Optional[Exception] = None,
        retry_possible: bool = True,
        **kwargs
    ):
        """
        Initialize database error.

        Args:
            message: Error message
            error_type: Type of error (connection, query, conflict)
            original_error: Original exception
            retry_possible: Whether retry is possible
            **kwargs: Additional context
        """
        context = {
            "error_type": error_type,
            "original_error": str(original_error) if original_error else None,
            "retry_possible": retry_possible,
            **kwargs
        }
        super().__init__(message, context=context, recoverable=retry_possible)
        self.error_type = error_type
        self.original_error = original_error
        self.retry_possible = retry_possible


class DatabaseConnectionError(DatabaseError):
    """Raised when the data store cannot be reached."""

    def __init__(self, message: str = "Database connection failed", **kwargs):
        super().__init__(
            message=message,
            error_type="connection",
            retry_possible=True,
            **kwargs
        )


class DatabaseQueryError(DatabaseError):
    """Raised when database query fails."""

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_type="query",
            retry_possible=True,
            **kwargs
        )


class BookingConflictError(DatabaseError):
    """
    Raised when the store refuses a write, e.g. an overlapping table booking
    or a duplicate unique value. Never retried automatically.
    """

    def __init__(self, message: str, **kwargs):
        super().__init__(
            message=message,
            error_type="conflict",
            retry_possible=False,
            **kwargs
        )
