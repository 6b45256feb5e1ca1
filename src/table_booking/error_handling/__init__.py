"""
Error handling module for the table reservation engine.

Main Components:
    - exceptions: Custom exception classes for all error scenarios
    - error_messages: User-facing message generation
    - handlers: Retry, translation and reporting utilities
    - logging_config: loguru sinks and audit logging
"""

from .exceptions import (
    # Base exceptions
    BookingSystemError,

    # Business logic errors
    BookingValidationError,
    SlotNoLongerAvailableError,
    CustomerConfirmationRequiredError,

    # Lookup errors
    NotFoundError,
    BookingGroupNotFoundError,
    TableNotFoundError,
    CustomerNotFoundError,

    # Database errors
    DatabaseError,
    DatabaseConnectionError,
    DatabaseQueryError,
    BookingConflictError,
)

from .error_messages import (
    get_error_message,
    suggest_next_action,
    format_date_friendly,
    format_time_friendly,
)

from .handlers import (
    call_with_retry,
    retry_on_error,
    translate_database_error,
    parse_request,
    log_error,
    error_response,
)

from .logging_config import (
    configure_logging,
    init_logging,
    log_booking_event,
    log_performance,
    LogContext,
)

__all__ = [
    "BookingSystemError",
    "BookingValidationError",
    "SlotNoLongerAvailableError",
    "CustomerConfirmationRequiredError",
    "NotFoundError",
    "BookingGroupNotFoundError",
    "TableNotFoundError",
    "CustomerNotFoundError",
    "DatabaseError",
    "DatabaseConnectionError",
    "DatabaseQueryError",
    "BookingConflictError",
    "get_error_message",
    "suggest_next_action",
    "format_date_friendly",
    "format_time_friendly",
    "call_with_retry",
    "retry_on_error",
    "translate_database_error",
    "parse_request",
    "log_error",
    "error_response",
    "configure_logging",
    "init_logging",
    "log_booking_event",
    "log_performance",
    "LogContext",
]
