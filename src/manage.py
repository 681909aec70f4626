"""MultiVend database management CLI.

Creates and drops the schema of the configured SQL provider (PostgreSQL in
production). The memory provider used in development and tests has no
schema, so both commands are no-ops there; ``seed-plans`` works on any provider.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db   # Create all tables
    PROTEAN_ENV=production python src/manage.py drop-db    # Drop all tables
    python src/manage.py seed-plans                        # Create the standard subscription plans
"""

import argparse
import sys


def _initialized_domain():
    from marketplace.domain import marketplace
    from marketplace.utils.logging import configure_logging

    configure_logging(log_dir=None)
    print("Initializing marketplace domain...")
    marketplace.init()
    return marketplace


def setup_database():
    from marketplace.utils.db import setup_db

    domain = _initialized_domain()
    print("Creating marketplace database schema...")
    providers = setup_db(domain)
    if providers:
        print(f"  schema ready on: {', '.join(providers)}")
    else:
        print("  no SQL provider configured; nothing to create.")
    print("Done.")


def drop_database():
    from marketplace.utils.db import drop_db

    domain = _initialized_domain()
    print("Dropping marketplace database schema...")
    providers = drop_db(domain)
    if providers:
        print(f"  schema dropped on: {', '.join(providers)}")
    else:
        print("  no SQL provider configured; nothing to drop.")
    print("Done.")


def seed_plans():
    from marketplace.subscription.management import seed_default_plans

    domain = _initialized_domain()
    print("Seeding subscription plans...")
    with domain.domain_context():
        created = seed_default_plans()
    if created:
        print(f"  created: {', '.join(created)}")
    else:
        print("  all standard plans already exist.")
    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="MultiVend database management")
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")
    subparsers.add_parser("seed-plans", help="Create the standard subscription plans")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-plans":
        seed_plans()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
