"""Review Trust database management CLI.

Creates and drops the schema of the trust domain's SQL providers.
Run with ``PROTEAN_ENV=production`` to target PostgreSQL; the default
configuration is in-memory and has no schema to manage.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _domain():
    from trust.domain import trust

    print("Initializing trust domain...")
    trust.init()
    return trust


def setup_database():
    from trust.utils.db import setup_db

    domain = _domain()
    print("Creating trust database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from trust.utils.db import drop_db

    domain = _domain()
    print("Dropping trust database schema...")
    drop_db(domain)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Review Trust database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
