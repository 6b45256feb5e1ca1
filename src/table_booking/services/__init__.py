"""
Services package - table combination, availability and booking lifecycle.
"""
from .table_solver import find_best_table_combination
from .table_store import TableStore
from .availability_service import AvailabilityService
from .booking_service import BookingService
from .customer_service import CustomerService
from .table_service import TableService

__all__ = [
    "find_best_table_combination",
    "TableStore",
    "AvailabilityService",
    "BookingService",
    "CustomerService",
    "TableService",
]
