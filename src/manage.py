"""Pharmacy database management CLI.

Creates or drops relational tables for the pharmacy domain when a SQL
provider is configured (see the ``[production]`` overlay in domain.toml).
With the default memory provider both commands are no-ops.

Usage:
    PROTEAN_ENV=production python src/manage.py setup-db
    PROTEAN_ENV=production python src/manage.py drop-db
    python src/manage.py seed-admin --name "Ops" --email ops@example.com
"""

import argparse
import sys


def _init_domain():
    from pharmacy.domain import pharmacy

    pharmacy.init()
    return pharmacy


def setup_database():
    from pharmacy.utils.db import setup_db

    domain = _init_domain()
    print(f"Creating {domain.name} database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from pharmacy.utils.db import drop_db

    domain = _init_domain()
    print(f"Dropping {domain.name} database schema...")
    drop_db(domain)
    print("Done.")


def seed_admin(name, email):
    """Register a staff customer so the back office can be used."""
    from pharmacy.identity.customer import Customer, CustomerRole

    domain = _init_domain()
    with domain.domain_context():
        admin = Customer.register(name=name, email=email, role=CustomerRole.ADMIN.value)
        domain.repository_for(Customer).add(admin)
    print(f"Admin user created: {admin.id}")


def main():
    parser = argparse.ArgumentParser(description="Pharmacy database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    seed_parser = subparsers.add_parser("seed-admin", help="Create a staff user")
    seed_parser.add_argument("--name", required=True)
    seed_parser.add_argument("--email", required=True)

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "seed-admin":
        seed_admin(args.name, args.email)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
