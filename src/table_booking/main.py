"""
Command-line entry point for the table reservation engine.

Usage:
    table-booking init-db
    table-booking availability 2024-12-24 5
    table-booking book --name "Nguyen Van An" --phone 0905123456 \\
        --date 2024-12-24 --time 18:30 --party-size 5 --yes
    table-booking edit <group-id> --date 2024-12-24 --time 19:00 --party-size 6
    table-booking cancel <group-id>
"""
import argparse
import sys
from typing import List, Optional

from dotenv import load_dotenv
from loguru import logger

from .config import Settings, get_settings
from .db_init import seed_floor_plan
from .error_handling import (
    BookingSystemError,
    SlotNoLongerAvailableError,
    error_response,
    init_logging,
)
from .models.database import create_session_factory, create_tables, init_db, session_scope
from .schedule import format_time, parse_date, parse_time
from .services import (
    AvailabilityService,
    BookingService,
    CustomerService,
    TableService,
    TableStore,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="table-booking",
        description="Restaurant table reservations",
    )
    parser.add_argument("--database-url", help="Overrides DATABASE_URL")
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser("init-db", help="Create the schema and seed the floor plan")
    init.add_argument("--no-seed", action="store_true", help="Do not seed default tables")

    availability = commands.add_parser("availability", help="Show slot availability")
    availability.add_argument("date", help="YYYY-MM-DD")
    availability.add_argument("party_size", type=int)

    book = commands.add_parser("book", help="Book the best tables of a slot")
    book.add_argument("--name", required=True)
    book.add_argument("--phone", required=True)
    book.add_argument("--date", required=True, help="YYYY-MM-DD")
    book.add_argument("--time", required=True, help="HH:MM")
    book.add_argument("--party-size", type=int, required=True)
    book.add_argument("--yes", action="store_true", help="Create the customer if the phone is new")

    edit = commands.add_parser("edit", help="Move or resize a booking group")
    edit.add_argument("group_id")
    edit.add_argument("--date", required=True, help="YYYY-MM-DD")
    edit.add_argument("--time", required=True, help="HH:MM")
    edit.add_argument("--party-size", type=int, required=True)

    cancel = commands.add_parser("cancel", help="Cancel a booking group")
    cancel.add_argument("group_id")

    bookings = commands.add_parser("bookings", help="List booking groups")
    bookings.add_argument("--from-date", help="YYYY-MM-DD")

    commands.add_parser("tables", help="List tables")

    add_table = commands.add_parser("add-table", help="Add a table")
    add_table.add_argument("table_number", type=int)
    add_table.add_argument("seats", type=int)

    set_table = commands.add_parser("set-table", help="Change seats or availability of a table")
    set_table.add_argument("table_number", type=int)
    set_table.add_argument("--seats", type=int)
    toggle = set_table.add_mutually_exclusive_group()
    toggle.add_argument("--enable", dest="available", action="store_const", const=True)
    toggle.add_argument("--disable", dest="available", action="store_const", const=False)

    customers = commands.add_parser("customers", help="List customers")
    customers.add_argument("--name", help="Name fragment")
    customers.add_argument(
        "--status",
        default="all",
        choices=["all", "upcoming", "past", "none"],
        help="Booking status filter",
    )

    add_customer = commands.add_parser("add-customer", help="Add a customer")
    add_customer.add_argument("--first-name", required=True)
    add_customer.add_argument("--last-name", default="")
    add_customer.add_argument("--phone")
    add_customer.add_argument("--email")
    add_customer.add_argument("--vip", action="store_true")

    return parser


def _print_availability(service: AvailabilityService, availability, title: str) -> None:
    print(title)
    for service_name, slots in service.split_by_service(availability).items():
        print(service_name.capitalize())
        for slot, verdict in slots.items():
            if verdict.available:
                numbers = ", ".join(str(t.table_number) for t in verdict.tables)
                print(f"  {slot}-{verdict.end_time}  available    tables {numbers} "
                      f"({verdict.total_seats} seats)")
            else:
                print(f"  {slot}-{verdict.end_time}  unavailable")


def _print_group(group) -> None:
    print(
        f"{group.group_id}  {group.booking_date} {format_time(group.booking_time)}-{group.end_time}  "
        f"party of {group.party_size}  tables {group.table_numbers}  "
        f"{group.customer_name or '-'} ({group.customer_phone or '-'})"
    )


def run_command(args: argparse.Namespace, settings: Settings, session) -> int:
    schedule = settings.schedule()
    store = TableStore(session, schedule, max_retries=settings.query_max_retries)
    availability = AvailabilityService(
        store, schedule, exhaustive_limit=settings.solver_exhaustive_limit
    )
    bookings = BookingService(store, availability, schedule, settings.max_party_size)

    if args.command == "init-db":
        if not args.no_seed:
            seed_floor_plan(session)
        return 0

    if args.command == "availability":
        booking_date = parse_date(args.date)
        result = availability.check_all_availability(booking_date, args.party_size)
        _print_availability(
            availability,
            result,
            f"{settings.restaurant_name}: {booking_date}, party of {args.party_size}",
        )
        return 0

    if args.command == "book":
        booking_date = parse_date(args.date)
        booking_time = parse_time(args.time)
        bookings.validate_booking_request(booking_date, booking_time, args.party_size)
        slot = availability.check_slot(booking_date, booking_time, args.party_size)
        if not slot.available:
            raise SlotNoLongerAvailableError(booking_date, booking_time, args.party_size)
        group_id = bookings.create_booking_group(
            {
                "customer_name": args.name,
                "customer_phone": args.phone,
                "table_ids": slot.table_ids,
                "party_size": args.party_size,
                "booking_date": booking_date,
                "booking_time": booking_time,
            },
            confirm_customer_creation=args.yes,
        )
        _print_group(bookings.get_booking_group(group_id))
        return 0

    if args.command == "edit":
        group_id = bookings.edit_booking_group(
            args.group_id,
            {
                "party_size": args.party_size,
                "booking_date": parse_date(args.date),
                "booking_time": parse_time(args.time),
            },
        )
        _print_group(bookings.get_booking_group(group_id))
        return 0

    if args.command == "cancel":
        removed = bookings.cancel_booking_group(args.group_id)
        print(f"Cancelled {removed} booking(s)" if removed else "Nothing to cancel")
        return 0

    if args.command == "bookings":
        from_date = parse_date(args.from_date) if args.from_date else None
        for group in bookings.list_booking_groups(from_date):
            _print_group(group)
        return 0

    tables = TableService(session)

    if args.command == "tables":
        for table in tables.list_tables():
            state = "enabled" if table.is_available else "disabled"
            print(f"Table {table.table_number}: {table.seats} seats, {state}")
        return 0

    if args.command == "add-table":
        table = tables.add_table({"table_number": args.table_number, "seats": args.seats})
        print(f"Added table {table.table_number} ({table.seats} seats)")
        return 0

    if args.command == "set-table":
        table = tables.get_by_number(args.table_number)
        if args.seats is not None:
            table = tables.update_table_seats(table.id, args.seats)
        if args.available is not None:
            table = tables.set_table_availability(table.id, args.available)
        state = "enabled" if table.is_available else "disabled"
        print(f"Table {table.table_number}: {table.seats} seats, {state}")
        return 0

    customers = CustomerService(session)

    if args.command == "customers":
        for customer in customers.filter_customers(args.name, args.status):
            vip = " (VIP)" if customer.status == "vip" else ""
            print(f"{customer.name}{vip}  {customer.phone or '-'}")
        return 0

    if args.command == "add-customer":
        customer = customers.add_customer({
            "first_name": args.first_name,
            "last_name": args.last_name,
            "phone": args.phone,
            "email": args.email,
            "status": "vip" if args.vip else "regular",
        })
        print(f"Added customer {customer.name} ({customer.status})")
        return 0

    raise ValueError(f"Unknown command {args.command}")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the command-line interface.
    """
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = get_settings()
    init_logging(
        settings.environment,
        log_level=settings.log_level,
        log_to_file=settings.log_to_file,
        log_dir=settings.log_dir,
    )

    engine = init_db(args.database_url or settings.database_url)
    try:
        create_tables(engine)
        with session_scope(create_session_factory(engine)) as session:
            return run_command(args, settings, session)
    except BookingSystemError as e:
        response = error_response(e)
        print(response["user_message"], file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    finally:
        engine.dispose()


if __name__ == "__main__":
    sys.exit(main())
