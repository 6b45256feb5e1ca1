"""
Pytest configuration and shared fixtures.
"""
import sys
from pathlib import Path
from datetime import date, time, timedelta
from typing import Dict, Generator

import pytest
from sqlalchemy.orm import Session

# Add src directory to path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from table_booking.models.database import (
    Base,
    Customer,
    RestaurantTable,
    create_session_factory,
    create_tables,
    init_db,
)
from table_booking.schedule import ServiceSchedule
from table_booking.services import (
    AvailabilityService,
    BookingService,
    CustomerService,
    TableService,
    TableStore,
)


# (table_number, seats)
TEST_FLOOR_PLAN = [(1, 2), (2, 2), (3, 4), (4, 4), (5, 6), (6, 8)]


@pytest.fixture(scope="function")
def test_db_url() -> str:
    """
    Provide an in-memory SQLite database URL for testing.
    Each test gets a fresh database.
    """
    return "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine(test_db_url: str):
    """
    Create a test database engine with all tables.
    """
    engine = init_db(test_db_url)
    create_tables(engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """
    Create a database session for testing.
    """
    SessionLocal = create_session_factory(db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture(scope="function")
def schedule() -> ServiceSchedule:
    return ServiceSchedule()


@pytest.fixture(scope="function")
def tomorrow() -> date:
    return date.today() + timedelta(days=1)


@pytest.fixture(scope="function")
def dinner_time() -> time:
    return time(18, 0)


@pytest.fixture(scope="function")
def sample_tables(db_session: Session) -> Dict[int, RestaurantTable]:
    """
    Create a small floor plan, keyed by table number.
    """
    tables = {}
    for number, seats in TEST_FLOOR_PLAN:
        table = RestaurantTable(table_number=number, seats=seats, is_available=True)
        db_session.add(table)
        tables[number] = table
    db_session.commit()
    return tables


@pytest.fixture(scope="function")
def customer(db_session: Session) -> Customer:
    """
    Create an existing customer.
    """
    record = Customer(first_name="Nguyen", last_name="Van An", phone="0905123456")
    db_session.add(record)
    db_session.commit()
    return record


@pytest.fixture(scope="function")
def store(db_session: Session, schedule: ServiceSchedule) -> TableStore:
    """
    Create a TableStore that retries without waiting.
    """
    return TableStore(db_session, schedule, max_retries=2, retry_backoff=0)


@pytest.fixture(scope="function")
def availability_service(store: TableStore, schedule: ServiceSchedule) -> AvailabilityService:
    return AvailabilityService(store, schedule)


@pytest.fixture(scope="function")
def booking_service(
    store: TableStore,
    availability_service: AvailabilityService,
    schedule: ServiceSchedule,
) -> BookingService:
    """
    Create a BookingService instance for testing.
    """
    return BookingService(store, availability_service, schedule, max_party_size=20)


@pytest.fixture(scope="function")
def customer_service(db_session: Session) -> CustomerService:
    return CustomerService(db_session)


@pytest.fixture(scope="function")
def table_service(db_session: Session) -> TableService:
    return TableService(db_session)


@pytest.fixture(scope="function")
def book_tables(store: TableStore, customer: Customer):
    """
    Write a booking group directly through the store.

    Usage: group_id = book_tables([table, ...], party_size, date, time)
    """
    def _book(tables, party_size, booking_date, booking_time):
        return store.create_booking_group(
            customer_name=customer.name,
            customer_phone=customer.phone,
            table_ids=[t.id for t in tables],
            party_size=party_size,
            booking_date=booking_date,
            booking_time=booking_time,
        )
    return _book
