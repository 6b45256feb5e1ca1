"""
Service windows and time slot arithmetic for table reservations.

A slot is a fixed clock time at which a reservation may begin. Every
booking occupies its table for a fixed duration from its start time, so
two bookings of the same table conflict when their start times are less
than one duration apart.
"""
from dataclasses import dataclass, field
from datetime import date, time, datetime, timedelta
from typing import List, Optional, Tuple, Union

from .error_handling.exceptions import BookingValidationError


LUNCH_TIME_SLOTS = ["11:30", "12:00", "12:30", "13:00", "13:30", "14:00"]
DINNER_TIME_SLOTS = ["17:30", "18:00", "18:30", "19:00", "19:30", "20:00", "20:30", "21:00"]
BOOKING_DURATION_MINUTES = 90

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"


def parse_date(value: Union[str, date]) -> date:
    """
    Parse a YYYY-MM-DD date string.

    Raises:
        BookingValidationError: If the value is not a valid date
    """
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value.strip(), DATE_FORMAT).date()
    except (ValueError, AttributeError):
        raise BookingValidationError(
            f"Invalid date {value!r}, expected YYYY-MM-DD",
            user_message="Please pick a valid date.",
            field="date",
            value=value,
        )


def parse_time(value: Union[str, time]) -> time:
    """
    Parse a 24-hour HH:MM time string. Seconds (HH:MM:SS) are accepted and dropped.

    Raises:
        BookingValidationError: If the value is not a valid time
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        text = value.strip()
        if text.count(":") == 2:
            text = text.rsplit(":", 1)[0]
        return datetime.strptime(text, TIME_FORMAT).time()
    except (ValueError, AttributeError):
        raise BookingValidationError(
            f"Invalid time {value!r}, expected HH:MM",
            user_message="Please pick a valid time.",
            field="time",
            value=value,
        )


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def format_time(value: time) -> str:
    return value.strftime(TIME_FORMAT)


@dataclass(frozen=True)
class ServiceSchedule:
    """
    The lunch and dinner slot lists plus the occupancy duration of a booking.

    Passed explicitly to the availability and booking services; nothing in
    the core reads schedule data from module state.
    """
    lunch_slots: Tuple[str, ...] = tuple(LUNCH_TIME_SLOTS)
    dinner_slots: Tuple[str, ...] = tuple(DINNER_TIME_SLOTS)
    duration_minutes: int = BOOKING_DURATION_MINUTES
    _times: Tuple[time, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValueError("Booking duration must be positive")
        # Normalise to canonical HH:MM strings
        lunch = tuple(format_time(parse_time(s)) for s in self.lunch_slots)
        dinner = tuple(format_time(parse_time(s)) for s in self.dinner_slots)
        object.__setattr__(self, "lunch_slots", lunch)
        object.__setattr__(self, "dinner_slots", dinner)
        object.__setattr__(self, "_times", tuple(parse_time(s) for s in lunch + dinner))

    @property
    def duration(self) -> timedelta:
        return timedelta(minutes=self.duration_minutes)

    @property
    def all_slots(self) -> List[str]:
        return list(self.lunch_slots) + list(self.dinner_slots)

    def contains(self, slot: Union[str, time]) -> bool:
        return parse_time(slot) in self._times

    def service_for(self, slot: Union[str, time]) -> str:
        """Return "lunch" or "dinner" for a slot of this schedule."""
        label = format_time(parse_time(slot))
        if label in self.lunch_slots:
            return "lunch"
        if label in self.dinner_slots:
            return "dinner"
        raise BookingValidationError(
            f"{label} is not a bookable time slot",
            user_message="Please choose one of the listed time slots.",
            field="time",
            value=label,
            alternatives=self.all_slots,
        )

    def end_of(self, start: Union[str, time]) -> str:
        """Clock time at which a booking starting at ``start`` frees its table."""
        begin = datetime.combine(date.today(), parse_time(start))
        return format_time((begin + self.duration).time())

    def overlap_bounds(
        self,
        booking_date: date,
        start: Union[str, time],
    ) -> Tuple[Optional[time], Optional[time]]:
        """
        Exclusive bounds on the start time of a booking that conflicts with
        a window beginning at ``start`` on ``booking_date``.

        A bound is None when it falls on another day, meaning the window is
        unbounded on that side within the date.
        """
        begin = datetime.combine(booking_date, parse_time(start))
        lower = begin - self.duration
        upper = begin + self.duration
        return (
            lower.time() if lower.date() == booking_date else None,
            upper.time() if upper.date() == booking_date else None,
        )

    def overlaps(self, first: Union[str, time], second: Union[str, time]) -> bool:
        """True when bookings starting at ``first`` and ``second`` on one day overlap."""
        day = date.today()
        a = datetime.combine(day, parse_time(first))
        b = datetime.combine(day, parse_time(second))
        return abs(a - b) < self.duration
