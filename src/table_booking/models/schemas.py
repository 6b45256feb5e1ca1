"""
Pydantic models for data validation and serialization.
"""
import re
from datetime import date, time, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, ConfigDict


PHONE_SEPARATORS = r'[\s\-\(\)\.]'


def normalize_phone(v: str) -> str:
    """Strip spaces, dashes, dots and parentheses: "090-512-3456" -> "0905123456"."""
    return re.sub(PHONE_SEPARATORS, '', v)


def validate_phone(v: str) -> str:
    """
    Validate phone number format and return its normalized form.
    Accepts formats like: +84905123456, (090) 512-3456, 090-512-3456, 0905123456
    """
    cleaned = normalize_phone(v)

    if not re.match(r'^\+?\d{10,15}$', cleaned):
        raise ValueError(
            "Phone number must contain 10-15 digits and may include spaces, "
            "dashes, parentheses, or a leading +"
        )

    return cleaned


def _strip_seconds(v: time) -> time:
    return v.replace(second=0, microsecond=0)


class TableInfo(BaseModel):
    """
    A table as seen by the combination solver and the availability screens.
    """
    id: str
    table_number: int
    seats: int = Field(..., gt=0)
    is_available: bool = True

    model_config = ConfigDict(
        from_attributes=True,
        frozen=True,
        json_schema_extra={
            "example": {
                "id": "7b1e2c9a-3f7d-4f57-9a51-2f4f7c2a1d10",
                "table_number": 4,
                "seats": 4,
                "is_available": True
            }
        }
    )


class TableCreate(BaseModel):
    """
    Pydantic model for adding a table to the floor plan.
    """
    table_number: int = Field(..., gt=0)
    seats: int = Field(..., gt=0)
    is_available: bool = True


class SlotAvailability(BaseModel):
    """
    Availability verdict for one time slot.
    """
    time: str
    service: Literal["lunch", "dinner"]
    available: bool
    tables: List[TableInfo] = Field(default_factory=list)
    end_time: str

    @property
    def table_ids(self) -> List[str]:
        return [table.id for table in self.tables]

    @property
    def total_seats(self) -> int:
        return sum(table.seats for table in self.tables)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "time": "18:30",
                "service": "dinner",
                "available": True,
                "tables": [{"id": "…", "table_number": 2, "seats": 2, "is_available": True}],
                "end_time": "20:00"
            }
        }
    )


class BookingGroupCreate(BaseModel):
    """
    Pydantic model for validating a new multi-table booking.
    """
    customer_name: str = Field(..., min_length=1, max_length=255, description="Customer name")
    customer_phone: str = Field(..., min_length=10, max_length=50, description="Customer phone number")
    table_ids: List[str] = Field(..., min_length=1, description="Tables from the chosen slot")
    party_size: int = Field(..., ge=1, description="Number of guests")
    booking_date: date = Field(..., description="Booking date")
    booking_time: time = Field(..., description="Slot start time")

    @field_validator("customer_name")
    @classmethod
    def validate_customer_name(cls, v: str) -> str:
        """Validate customer name is not empty after stripping whitespace."""
        if not v.strip():
            raise ValueError("Customer name cannot be empty")
        return v.strip()

    @field_validator("customer_phone")
    @classmethod
    def validate_phone_format(cls, v: str) -> str:
        return validate_phone(v)

    @field_validator("table_ids")
    @classmethod
    def deduplicate_tables(cls, v: List[str]) -> List[str]:
        return list(dict.fromkeys(v))

    @field_validator("booking_time")
    @classmethod
    def validate_time(cls, v: time) -> time:
        return _strip_seconds(v)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "customer_name": "Nguyen Van An",
                "customer_phone": "0905123456",
                "table_ids": ["…", "…"],
                "party_size": 5,
                "booking_date": "2024-12-24",
                "booking_time": "18:30"
            }
        }
    )


class BookingGroupUpdate(BaseModel):
    """
    Pydantic model for moving or resizing an existing booking group.
    """
    party_size: int = Field(..., ge=1)
    booking_date: date
    booking_time: time

    @field_validator("booking_time")
    @classmethod
    def validate_time(cls, v: time) -> time:
        return _strip_seconds(v)


class BookingGroupInfo(BaseModel):
    """
    One party's reservation across its tables.
    """
    group_id: str
    booking_date: date
    booking_time: time
    end_time: str
    party_size: int
    customer_id: Optional[str] = None
    customer_name: Optional[str] = None
    customer_phone: Optional[str] = None
    tables: List[TableInfo] = Field(default_factory=list)

    @property
    def table_numbers(self) -> str:
        return ", ".join(str(t.table_number) for t in self.tables)


class CustomerCreate(BaseModel):
    """
    Pydantic model for adding a customer from the admin pages.
    """
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field("", max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[str] = Field(None, max_length=255)
    status: Literal["regular", "vip"] = "regular"
    user_id: Optional[str] = None

    @field_validator("first_name")
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("First name cannot be empty")
        return v.strip()

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return validate_phone(v)

    @field_validator("email")
    @classmethod
    def validate_email_format(cls, v: Optional[str]) -> Optional[str]:
        """Validate email format if provided."""
        if v is None or v.strip() == "":
            return None

        email_pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
        if not re.match(email_pattern, v):
            raise ValueError("Invalid email format")

        return v


class CustomerUpdate(BaseModel):
    """
    Pydantic model for editing a customer's name and phone.
    """
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field("", max_length=255)
    phone: Optional[str] = Field(None, max_length=50)

    @field_validator("phone")
    @classmethod
    def validate_phone_format(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not v.strip():
            return None
        return validate_phone(v)


class CustomerInfo(BaseModel):
    """
    Customer row as listed on the admin customer page.
    """
    id: str
    first_name: str
    last_name: str
    phone: Optional[str]
    email: Optional[str]
    status: str
    user_id: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)
