"""Ordering service management CLI.

Creates and drops the cart and order tables when the ordering domain is
configured with a relational provider (memory providers need no schema).

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def setup_databases():
    """Create the ordering database schema."""
    from ordering.domain import ordering
    from ordering.utils.db import setup_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Creating ordering database schema...")
    touched = setup_db(ordering)
    print(f"  schema ready ({', '.join(touched) or 'no relational providers configured'}).")
    print("Done.")


def drop_databases():
    """Drop the ordering database schema."""
    from ordering.domain import ordering
    from ordering.utils.db import drop_db

    print("Initializing ordering domain...")
    ordering.init()
    print("Dropping ordering database schema...")
    touched = drop_db(ordering)
    print(f"  schema dropped ({', '.join(touched) or 'no relational providers configured'}).")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Ordering service database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases()
    elif args.command == "drop-db":
        drop_databases()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
