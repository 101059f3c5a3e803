"""Marketstock database management CLI.

Provides commands to create and drop the stock ledger schema, and the Protean
database schemas for domains configured with a SQL provider.

Usage:
    python src/manage.py setup-ledger   # Create the stock_entities table
    python src/manage.py drop-ledger    # Drop the stock_entities table
    python src/manage.py setup-db       # Create Protean tables for all domains
    python src/manage.py drop-db        # Drop Protean tables for all domains
"""

import argparse
import sys

DOMAIN_NAMES = ["catalogue", "inventory", "ordering"]


def _domains(names=None):
    from catalogue.domain import catalogue
    from inventory.domain import inventory
    from ordering.domain import ordering

    all_domains = {"catalogue": catalogue, "inventory": inventory, "ordering": ordering}
    return {name: all_domains[name] for name in names} if names else all_domains


def _ledger(url=None):
    from inventory.stock.ledger import StockLedger
    from shared.config import settings

    return StockLedger.from_url(
        url or settings.stock_database_url,
        echo=settings.stock_database_echo,
        lock_timeout=settings.stock_lock_timeout,
    )


def setup_ledger(url=None):
    ledger = _ledger(url)
    print(f"Creating stock ledger schema at {ledger.engine.url!r}...")
    ledger.create_schema()
    ledger.dispose()
    print("Done.")


def drop_ledger(url=None):
    ledger = _ledger(url)
    print(f"Dropping stock ledger schema at {ledger.engine.url!r}...")
    ledger.drop_schema()
    ledger.dispose()
    print("Done.")


def setup_databases(domains=None):
    """Create database schemas for the specified (or all) domains."""
    from catalogue.utils.db import setup_db

    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Creating {name} database schema...")
        setup_db(domain)
        print(f"  {name} schema ready.")

    print("Done.")


def drop_databases(domains=None):
    """Drop database schemas for the specified (or all) domains."""
    from catalogue.utils.db import drop_db

    for name, domain in _domains(domains).items():
        print(f"Initializing {name} domain...")
        domain.init()
        print(f"Dropping {name} database schema...")
        drop_db(domain)
        print(f"  {name} schema dropped.")

    print("Done.")


def main(argv=None):
    parser = argparse.ArgumentParser(description="Marketstock database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    for command, help_text in (
        ("setup-ledger", "Create the stock ledger table"),
        ("drop-ledger", "Drop the stock ledger table"),
    ):
        ledger_parser = subparsers.add_parser(command, help=help_text)
        ledger_parser.add_argument("--url", help="Ledger database URL (default: STOCK_DATABASE_URL)")

    for command, help_text in (
        ("setup-db", "Create all database tables"),
        ("drop-db", "Drop all database tables"),
    ):
        db_parser = subparsers.add_parser(command, help=help_text)
        db_parser.add_argument(
            "--domain",
            choices=DOMAIN_NAMES,
            nargs="*",
            help="Specific domain(s) (default: all)",
        )

    args = parser.parse_args(argv)

    if args.command == "setup-ledger":
        setup_ledger(args.url)
    elif args.command == "drop-ledger":
        drop_ledger(args.url)
    elif args.command == "setup-db":
        setup_databases(args.domain)
    elif args.command == "drop-db":
        drop_databases(args.domain)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
