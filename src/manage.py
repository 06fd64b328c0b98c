"""Storefront database management CLI.

Creates and drops the MongoDB collections and indexes declared by the
storefront aggregates. The database is selected by the ``[tool.protean]``
configuration and ``PROTEAN_ENV``.

Usage:
    python src/manage.py setup-db   # Create all collections and indexes
    python src/manage.py drop-db    # Drop all collections
"""

import argparse
import sys


def setup_databases():
    """Create collections and indexes for every aggregate."""
    from shared.domain import init_domain
    from shared.utils.db import setup_db

    print("Initializing storefront domain...")
    domain = init_domain()
    print("Creating collections and indexes...")
    setup_db(domain)
    print("Done.")


def drop_databases():
    """Drop every aggregate collection."""
    from shared.domain import init_domain
    from shared.utils.db import drop_db

    print("Initializing storefront domain...")
    domain = init_domain()
    print("Dropping collections...")
    drop_db(domain)
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Storefront database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all collections and indexes")
    subparsers.add_parser("drop-db", help="Drop all collections")

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
