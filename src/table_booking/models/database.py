"""
SQLAlchemy database models and session management for table reservations.
"""
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Generator

from loguru import logger
from sqlalchemy import (
    create_engine,
    event,
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Time,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, relationship, Session, sessionmaker

Base = declarative_base()


def new_id() -> str:
    return str(uuid.uuid4())


class RestaurantTable(Base):
    """
    A physical table with a seat capacity and a manual availability override.
    """
    __tablename__ = "restaurant_tables"

    id = Column(String(36), primary_key=True, default=new_id)
    table_number = Column(Integer, nullable=False, unique=True)
    seats = Column(Integer, nullable=False)
    # Administrator override, independent of bookings
    is_available = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    bookings = relationship("Booking", back_populates="table")

    __table_args__ = (
        CheckConstraint("seats > 0", name="ck_table_seats_positive"),
    )

    def __repr__(self) -> str:
        return (
            f"<RestaurantTable(table_number={self.table_number}, seats={self.seats}, "
            f"is_available={self.is_available})>"
        )


class Customer(Base):
    """
    Customer model, optionally linked to an authenticated account.
    """
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=new_id)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False, default="")
    phone = Column(String(50), nullable=True, unique=True)
    email = Column(String(255), nullable=True)
    status = Column(
        Enum("regular", "vip", name="customer_status"),
        nullable=False,
        default="regular",
    )
    user_id = Column(String(36), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    bookings = relationship("Booking", back_populates="customer")

    @property
    def name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

    def __repr__(self) -> str:
        return f"<Customer(name='{self.name}', phone='{self.phone}', status='{self.status}')>"


class Booking(Base):
    """
    One table's share of a booking group.

    Every row of a group carries the group's full party size, not a split.
    """
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, default=new_id)
    group_id = Column(String(36), nullable=False, index=True)
    table_id = Column(String(36), ForeignKey("restaurant_tables.id"), nullable=False)
    customer_id = Column(String(36), ForeignKey("customers.id"), nullable=True)
    party_size = Column(Integer, nullable=False)
    booking_date = Column(Date, nullable=False)
    booking_time = Column(Time, nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    table = relationship("RestaurantTable", back_populates="bookings")
    customer = relationship("Customer", back_populates="bookings")

    __table_args__ = (
        CheckConstraint("party_size > 0", name="ck_booking_party_size_positive"),
        # Index for fast availability queries
        Index("ix_booking_table_date", "table_id", "booking_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(group_id={self.group_id}, table_id={self.table_id}, "
            f"date={self.booking_date}, time={self.booking_time}, party_size={self.party_size})>"
        )


def init_db(database_url: str, echo: bool = False) -> Engine:
    """
    Create a database engine.

    Args:
        database_url: SQLAlchemy connection string
        echo: Log every SQL statement

    Returns:
        SQLAlchemy Engine instance
    """
    options = {"echo": echo, "pool_pre_ping": True}
    if database_url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}

    engine = create_engine(database_url, **options)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def enable_foreign_keys(dbapi_conn, connection_record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    logger.debug(f"Database engine created for {engine.url.render_as_string(hide_password=True)}")
    return engine


def create_tables(engine: Engine) -> None:
    """Create all tables in the database."""
    Base.metadata.create_all(bind=engine)


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Create a session factory bound to ``engine``.
    """
    return sessionmaker(
        bind=engine,
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
    )


@contextmanager
def session_scope(session_factory: sessionmaker) -> Generator[Session, None, None]:
    """
    Context manager for database sessions with automatic cleanup.

    Yields:
        SQLAlchemy Session instance

    Example:
        with session_scope(factory) as session:
            tables = session.query(RestaurantTable).all()
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
