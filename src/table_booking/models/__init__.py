"""
Models package - SQLAlchemy ORM models and Pydantic schemas.
"""
from .database import (
    Base,
    Booking,
    Customer,
    RestaurantTable,
    init_db,
    create_tables,
    create_session_factory,
    session_scope,
)

from .schemas import (
    TableInfo,
    TableCreate,
    SlotAvailability,
    BookingGroupCreate,
    BookingGroupUpdate,
    BookingGroupInfo,
    CustomerCreate,
    CustomerUpdate,
    CustomerInfo,
)

__all__ = [
    # Database models
    "Base",
    "Booking",
    "Customer",
    "RestaurantTable",
    # Database utilities
    "init_db",
    "create_tables",
    "create_session_factory",
    "session_scope",
    # Pydantic schemas
    "TableInfo",
    "TableCreate",
    "SlotAvailability",
    "BookingGroupCreate",
    "BookingGroupUpdate",
    "BookingGroupInfo",
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerInfo",
]
