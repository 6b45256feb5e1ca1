"""
Tests for the SQLAlchemy models and session helpers.
"""
from datetime import time

import pytest
from sqlalchemy.exc import IntegrityError

from table_booking.db_init import (
    DEFAULT_FLOOR_PLAN,
    initialize_database,
    main as db_init_main,
    seed_floor_plan,
)
from table_booking.models.database import (
    Booking,
    Customer,
    RestaurantTable,
    create_session_factory,
    session_scope,
)


class TestRestaurantTable:

    def test_defaults(self, db_session):
        table = RestaurantTable(table_number=1, seats=4)
        db_session.add(table)
        db_session.commit()

        assert len(table.id) == 36
        assert table.is_available is True
        assert table.created_at is not None

    def test_table_number_unique(self, db_session):
        db_session.add(RestaurantTable(table_number=1, seats=2))
        db_session.add(RestaurantTable(table_number=1, seats=4))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_seats_must_be_positive(self, db_session):
        db_session.add(RestaurantTable(table_number=1, seats=0))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestCustomer:

    def test_name_property(self, db_session):
        customer = Customer(first_name="Tran", last_name="Thi Binh", phone="0911222333")
        db_session.add(customer)
        db_session.commit()

        assert customer.name == "Tran Thi Binh"
        assert customer.status == "regular"

    def test_name_without_last_name(self):
        assert Customer(first_name="Minh", last_name="").name == "Minh"

    def test_phone_unique(self, db_session):
        db_session.add(Customer(first_name="A", phone="0905000000"))
        db_session.add(Customer(first_name="B", phone="0905000000"))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestBooking:

    def test_group_rows_share_group_id(self, db_session, sample_tables, customer, tomorrow):
        for number in (1, 2):
            db_session.add(Booking(
                group_id="group-1",
                table_id=sample_tables[number].id,
                customer_id=customer.id,
                party_size=4,
                booking_date=tomorrow,
                booking_time=time(18, 0),
            ))
        db_session.commit()

        rows = db_session.query(Booking).filter(Booking.group_id == "group-1").all()
        assert len(rows) == 2
        assert {row.table.table_number for row in rows} == {1, 2}
        assert all(row.customer.phone == customer.phone for row in rows)

    def test_table_must_exist(self, db_session, tomorrow):
        db_session.add(Booking(
            group_id="group-1",
            table_id="missing",
            party_size=2,
            booking_date=tomorrow,
            booking_time=time(12, 0),
        ))
        with pytest.raises(IntegrityError):
            db_session.commit()

    def test_party_size_must_be_positive(self, db_session, sample_tables, tomorrow):
        db_session.add(Booking(
            group_id="group-1",
            table_id=sample_tables[1].id,
            party_size=0,
            booking_date=tomorrow,
            booking_time=time(12, 0),
        ))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestSessionScope:

    def test_commits_on_success(self, db_engine):
        factory = create_session_factory(db_engine)
        with session_scope(factory) as session:
            session.add(RestaurantTable(table_number=7, seats=2))

        with session_scope(factory) as session:
            assert session.query(RestaurantTable).count() == 1

    def test_rolls_back_on_error(self, db_engine):
        factory = create_session_factory(db_engine)
        with pytest.raises(RuntimeError):
            with session_scope(factory) as session:
                session.add(RestaurantTable(table_number=7, seats=2))
                session.flush()
                raise RuntimeError("boom")

        with session_scope(factory) as session:
            assert session.query(RestaurantTable).count() == 0


class TestSeeding:

    def test_seed_floor_plan(self, db_session, capsys):
        created = seed_floor_plan(db_session)
        db_session.commit()

        assert created == len(DEFAULT_FLOOR_PLAN)
        assert db_session.query(RestaurantTable).count() == len(DEFAULT_FLOOR_PLAN)
        assert "Created 10 tables" in capsys.readouterr().out

    def test_seed_is_skipped_when_tables_exist(self, db_session, sample_tables):
        assert seed_floor_plan(db_session) == 0
        assert db_session.query(RestaurantTable).count() == len(sample_tables)

    def test_initialize_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'seeded.db'}"
        engine = initialize_database(url)
        try:
            with session_scope(create_session_factory(engine)) as session:
                seats = sorted(t.seats for t in session.query(RestaurantTable).all())
            assert seats == sorted(s for _, s in DEFAULT_FLOOR_PLAN)
        finally:
            engine.dispose()

    def test_main(self, tmp_path, capsys):
        assert db_init_main(f"sqlite:///{tmp_path / 'setup.db'}") == 0
        assert "Database initialization complete!" in capsys.readouterr().out

    def test_main_reports_failure(self, capsys):
        assert db_init_main("not-a-database-url") == 1
        assert "Error during database initialization" in capsys.readouterr().err
