"""
Centralized error handling utilities for the booking system.

This module provides utilities for:
- Retrying idempotent reads on connectivity errors
- Translating SQLAlchemy errors into the booking error hierarchy
- Turning schema validation failures into BookingValidationError
- Error logging and user-facing error responses
"""
import functools
from typing import Any, Callable, Dict, Mapping, Optional, Type, TypeVar, Union

from loguru import logger
from pydantic import BaseModel, ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    DisconnectionError,
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from tenacity import (
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from .exceptions import (
    BookingSystemError,
    BookingValidationError,
    BookingConflictError,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseQueryError,
    NotFoundError,
    SlotNoLongerAvailableError,
    CustomerConfirmationRequiredError,
)
from .error_messages import get_error_message, suggest_next_action


SchemaT = TypeVar("SchemaT", bound=BaseModel)

CONNECTIVITY_ERRORS = (OperationalError, DisconnectionError)


def _log_retry(retry_state) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    name = getattr(retry_state.fn, "__name__", "call")
    logger.warning(
        f"Attempt {retry_state.attempt_number} of {name} failed: {error}. Retrying..."
    )


def call_with_retry(
    func: Callable[..., Any],
    *args,
    max_retries: int = 3,
    exceptions: tuple = CONNECTIVITY_ERRORS,
    backoff_factor: float = 0.5,
    **kwargs
) -> Any:
    """
    Call ``func`` and retry it on the given exceptions with exponential backoff.

    Only use for reads: a write retried without re-validating availability
    could compound a booking race.

    Args:
        func: Callable to invoke
        max_retries: Retries after the first attempt
        exceptions: Exception types that trigger a retry
        backoff_factor: Multiplier of the exponential wait (0 disables waiting)

    Returns:
        Whatever ``func`` returns

    Raises:
        The last exception once retries are exhausted
    """
    retryer = Retrying(
        stop=stop_after_attempt(max_retries + 1),
        wait=wait_exponential(multiplier=backoff_factor, max=10),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
    return retryer(func, *args, **kwargs)


def retry_on_error(
    max_retries: int = 3,
    exceptions: tuple = CONNECTIVITY_ERRORS,
    backoff_factor: float = 0.5,
):
    """
    Decorator form of :func:`call_with_retry`.

    Example:
        @retry_on_error(max_retries=2)
        def load_tables(session):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return call_with_retry(
                func,
                *args,
                max_retries=max_retries,
                exceptions=exceptions,
                backoff_factor=backoff_factor,
                **kwargs
            )
        return wrapper
    return decorator


def translate_database_error(error: Exception, operation: str) -> BookingSystemError:
    """
    Map an SQLAlchemy exception onto the booking error hierarchy.

    Errors that already belong to the hierarchy are returned unchanged.

    Args:
        error: Exception raised by the session
        operation: Name of the store operation, for context

    Returns:
        The error to raise in place of ``error``
    """
    if isinstance(error, BookingSystemError):
        return error

    if isinstance(error, CONNECTIVITY_ERRORS):
        return DatabaseConnectionError(
            f"Database operation {operation} failed: {error}",
            original_error=error,
            operation=operation,
        )

    if isinstance(error, IntegrityError):
        detail = str(error.orig) if getattr(error, "orig", None) is not None else str(error)
        return BookingConflictError(
            f"Database constraint violation during {operation}: {detail}",
            original_error=error,
            operation=operation,
        )

    if isinstance(error, SQLAlchemyError):
        return DatabaseQueryError(
            f"Database query failed during {operation}: {error}",
            original_error=error,
            operation=operation,
        )

    return DatabaseError(
        f"Unexpected error during {operation}: {error}",
        original_error=error,
        retry_possible=False,
        operation=operation,
    )


def parse_request(
    schema: Type[SchemaT],
    data: Union[SchemaT, Mapping[str, Any]],
) -> SchemaT:
    """
    Validate request data against a pydantic schema.

    Args:
        schema: Pydantic model class
        data: Model instance (returned as is) or raw mapping

    Returns:
        Validated model instance

    Raises:
        BookingValidationError: Naming the first field that failed
    """
    if isinstance(data, schema):
        return data
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        errors = e.errors()
        first = errors[0] if errors else {}
        location = [str(part) for part in first.get("loc", ())]
        field = location[0] if location else None
        reason = first.get("msg", "invalid value")
        raise BookingValidationError(
            f"Invalid {schema.__name__}: {'.'.join(location) or 'request'}: {reason}",
            field=field,
            value=first.get("input"),
            errors=[err.get("msg") for err in errors],
        ) from e


def log_error(
    error: Exception,
    operation: str,
    context: Optional[Dict[str, Any]] = None,
) -> None:
    """
    Log an error with its context at a level matching its category.

    Args:
        error: Exception that occurred
        operation: Operation that failed
        context: Additional context information
    """
    details = dict(context or {})
    if isinstance(error, BookingSystemError):
        details.update({k: v for k, v in error.context.items() if v is not None})

    expected = (
        BookingValidationError,
        SlotNoLongerAvailableError,
        CustomerConfirmationRequiredError,
        NotFoundError,
    )
    level = "WARNING" if isinstance(error, expected) else "ERROR"

    logger.bind(category="ERROR", operation=operation).log(
        level,
        f"{operation} failed: {type(error).__name__}: {error} | context={details}"
    )


def error_response(error: Exception) -> Dict[str, Any]:
    """
    Build the response shown to a user after a failed operation.

    Returns:
        Dictionary with:
        - user_message: Message to show
        - next_action: Suggested next action
        - recoverable: Whether the user can fix the problem
        - should_retry: Whether the same call may simply be repeated
        - error_type: Exception class name
    """
    recoverable = error.recoverable if isinstance(error, BookingSystemError) else False
    should_retry = isinstance(error, DatabaseError) and error.retry_possible

    return {
        "user_message": get_error_message(error),
        "next_action": suggest_next_action(error),
        "recoverable": recoverable,
        "should_retry": should_retry,
        "error_type": type(error).__name__,
    }
