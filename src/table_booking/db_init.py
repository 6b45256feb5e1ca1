"""
Database initialization and seeding for the table reservation engine.

This module:
1. Initializes the database connection
2. Creates all tables
3. Seeds a default floor plan when the restaurant has no tables yet
"""
import sys
from typing import Optional, Sequence, Tuple

from dotenv import load_dotenv
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from .config import get_settings
from .models.database import (
    RestaurantTable,
    create_session_factory,
    create_tables,
    init_db,
    session_scope,
)

# (table_number, seats)
DEFAULT_FLOOR_PLAN: Tuple[Tuple[int, int], ...] = (
    (1, 2), (2, 2), (3, 2), (4, 4), (5, 4),
    (6, 4), (7, 4), (8, 6), (9, 6), (10, 8),
)


def seed_floor_plan(
    session: Session,
    floor_plan: Sequence[Tuple[int, int]] = DEFAULT_FLOOR_PLAN,
) -> int:
    """
    Add the default tables if the restaurant has none.

    Returns:
        Number of tables created (0 when tables already exist)
    """
    existing = session.query(RestaurantTable).count()
    if existing:
        print(f"✓ Floor plan already has {existing} tables")
        return 0

    for table_number, seats in floor_plan:
        session.add(RestaurantTable(table_number=table_number, seats=seats, is_available=True))
    session.flush()

    print(f"✓ Created {len(floor_plan)} tables:")
    for table_number, seats in floor_plan:
        print(f"  - Table {table_number}: {seats} seats")
    return len(floor_plan)


def initialize_database(database_url: str, seed: bool = True) -> Engine:
    """
    Initialize the database: create tables and seed initial data.

    Args:
        database_url: SQLAlchemy connection string
        seed: Whether to seed the default floor plan

    Returns:
        The engine bound to ``database_url``
    """
    print("Initializing database...")
    engine = init_db(database_url)
    print(f"✓ Connected to database: {engine.url.database}")

    print("\nCreating database tables...")
    create_tables(engine)
    print("✓ Tables created successfully:")
    print("  - restaurant_tables")
    print("  - customers")
    print("  - bookings")

    if seed:
        print("\nSeeding initial data...")
        with session_scope(create_session_factory(engine)) as session:
            seed_floor_plan(session)

    print("\n" + "=" * 50)
    print("Database initialization complete!")
    print("=" * 50)
    return engine


def main(database_url: Optional[str] = None) -> int:
    """
    Entry point for database initialization.
    """
    load_dotenv()
    database_url = database_url or get_settings().database_url

    print("=" * 50)
    print("Table Booking - Database Setup")
    print("=" * 50 + "\n")

    try:
        initialize_database(database_url).dispose()
    except Exception as e:
        print(f"\n✗ Error during database initialization: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
