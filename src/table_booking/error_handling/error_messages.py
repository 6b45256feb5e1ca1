"""
User-facing error message generation for the reservation screens.

Every error that reaches a person gets a short, friendly sentence with the
date and time spelled out the way a host would say them, plus a hint about
what to do next.
"""
from datetime import date, time, datetime
from typing import List

from .exceptions import (
    BookingSystemError,
    BookingValidationError,
    SlotNoLongerAvailableError,
    CustomerConfirmationRequiredError,
    BookingGroupNotFoundError,
    NotFoundError,
    DatabaseError,
    DatabaseConnectionError,
    BookingConflictError,
)


def format_date_friendly(date_obj: date) -> str:
    """
    Format date in a friendly format.

    Args:
        date_obj: Date to format

    Returns:
        Friendly date string (e.g., "today", "tomorrow", "Friday, December 25th")
    """
    today = datetime.now().date()
    delta = (date_obj - today).days

    if delta == 0:
        return "today"
    elif delta == 1:
        return "tomorrow"
    elif 2 <= delta <= 6:
        return date_obj.strftime("%A")
    else:
        day = date_obj.day
        suffix = "th" if 11 <= day <= 13 else {1: "st", 2: "nd", 3: "rd"}.get(day % 10, "th")
        return date_obj.strftime(f"%A, %B {day}{suffix}")


def format_time_friendly(time_obj: time) -> str:
    """
    Format time in a friendly format.

    Args:
        time_obj: Time to format

    Returns:
        Friendly time string (e.g., "6:30 PM", "noon")
    """
    hour = time_obj.hour
    minute = time_obj.minute

    if hour == 12 and minute == 0:
        return "noon"

    period = "PM" if hour >= 12 else "AM"
    display_hour = hour if hour <= 12 else hour - 12
    if display_hour == 0:
        display_hour = 12

    if minute == 0:
        return f"{display_hour} {period}"
    return f"{display_hour}:{minute:02d} {period}"


def format_slot_alternatives(slots: List[str], max_count: int = 3) -> str:
    """Join up to ``max_count`` HH:MM slots into "a, b or c"."""
    if not slots:
        return ""
    labels = [
        format_time_friendly(datetime.strptime(s, "%H:%M").time())
        for s in slots[:max_count]
    ]
    if len(labels) == 1:
        return labels[0]
    return ", ".join(labels[:-1]) + f" or {labels[-1]}"


def generate_validation_error_message(error: BookingValidationError) -> str:
    field_messages = {
        "customer_name": "Please enter the guest's name.",
        "customer_phone": "Please enter a valid phone number.",
        "party_size": "Party size must be at least one guest.",
        "date": "Please pick a valid date.",
        "booking_date": "Please pick a valid date.",
        "time": "Please pick one of the available times.",
        "booking_time": "Please pick one of the available times.",
        "table_ids": "Please pick an available time slot first.",
    }
    if error.user_message and error.user_message != error.message:
        message = error.user_message
    else:
        message = field_messages.get(error.field or "", "Please fill out all fields.")

    if error.alternatives:
        message += f" You could try {format_slot_alternatives(error.alternatives)}."
    return message


def generate_slot_unavailable_message(error: SlotNoLongerAvailableError) -> str:
    when = (
        f"{format_date_friendly(error.booking_date)} at "
        f"{format_time_friendly(error.booking_time)}"
    )
    return (
        f"Sorry, the tables for {when} were just taken. "
        "Please choose another time slot."
    )


def generate_database_error_message(error: DatabaseError) -> str:
    if isinstance(error, BookingConflictError):
        return "That change conflicts with an existing record. Please refresh and try again."
    if isinstance(error, DatabaseConnectionError):
        return "We couldn't reach the reservation system. Please check the connection and try again."
    return "Something went wrong while saving. Please try again."


def get_error_message(error: Exception) -> str:
    """
    Get the user-facing message for any error.

    Args:
        error: Exception raised by a service

    Returns:
        Message suitable for a toast or inline form error
    """
    if isinstance(error, BookingValidationError):
        return generate_validation_error_message(error)
    if isinstance(error, SlotNoLongerAvailableError):
        return generate_slot_unavailable_message(error)
    if isinstance(error, CustomerConfirmationRequiredError):
        return (
            f"No customer with phone {error.phone} exists yet. "
            "Confirm to create a new customer record."
        )
    if isinstance(error, BookingGroupNotFoundError):
        return "That reservation no longer exists."
    if isinstance(error, NotFoundError):
        return f"{error.entity} not found."
    if isinstance(error, DatabaseError):
        return generate_database_error_message(error)
    if isinstance(error, BookingSystemError):
        return error.user_message
    return "An unexpected error occurred. Please try again."


def suggest_next_action(error: Exception) -> str:
    """
    Suggest what the caller should do after an error.

    Returns:
        One of "fix_input", "reselect_slot", "confirm_customer", "refresh", "retry", "abort"
    """
    if isinstance(error, BookingValidationError):
        return "fix_input"
    if isinstance(error, SlotNoLongerAvailableError):
        return "reselect_slot"
    if isinstance(error, CustomerConfirmationRequiredError):
        return "confirm_customer"
    if isinstance(error, (NotFoundError, BookingConflictError)):
        return "refresh"
    if isinstance(error, DatabaseError) and error.retry_possible:
        return "retry"
    return "abort"
