"""
Initialize the Library Service database.

This script:
1. Creates all database tables
2. Creates the bootstrap admin account, if credentials are given
3. Optionally loads a small sample catalog
4. Verifies the expected tables exist

Usage:
    library-init-db [--drop-existing] [--sample-data] [--database-url URL]
                    [--admin-username NAME --admin-password PASSWORD]

Admin credentials default to ``LIBRARY_ADMIN_USERNAME`` and
``LIBRARY_ADMIN_PASSWORD``.
"""

import argparse
import logging
import sys

from sqlalchemy import inspect

from .config import get_config
from .database import DatabaseManager, get_db_manager
from .errors import BookExistsError, LibraryError
from .services import build_services

logger = logging.getLogger(__name__)

EXPECTED_TABLES = {"users", "books", "borrow_records", "login_sessions"}

SAMPLE_BOOKS = [
    ("The Great Gatsby", "F. Scott Fitzgerald", 3),
    ("To Kill a Mockingbird", "Harper Lee", 2),
    ("1984", "George Orwell", 2),
    ("Animal Farm", "George Orwell", 1),
    ("The Pragmatic Programmer", "Andrew Hunt", 4),
]


def load_sample_data(db_manager: DatabaseManager) -> int:
    """Add the sample catalog; titles already present are skipped."""
    admin = build_services(db_manager).admin
    added = 0
    for title, author, stock in SAMPLE_BOOKS:
        try:
            admin.add_book(title, author, stock)
            added += 1
        except BookExistsError:
            logger.info("Sample book '%s' already present", title)
    return added


def main(argv: list[str] | None = None) -> None:
    """Main entry point for database initialization."""
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    config = get_config()

    parser = argparse.ArgumentParser(description="Initialize the Library Service database")
    parser.add_argument(
        "--drop-existing",
        action="store_true",
        help="Drop existing tables before creating new ones",
    )
    parser.add_argument(
        "--sample-data",
        action="store_true",
        help="Load a small sample catalog after creating tables",
    )
    parser.add_argument(
        "--database-url",
        help="Override default database URL",
    )
    parser.add_argument("--admin-username", default=config.admin_username)
    parser.add_argument("--admin-password", default=config.admin_password)

    args = parser.parse_args(argv)

    logger.info("Initializing database manager...")
    db_manager = get_db_manager(args.database_url)

    if not db_manager.verify_connection():
        logger.error("Failed to connect to database")
        sys.exit(1)

    try:
        logger.info("Creating database schema...")
        db_manager.init_database(drop_existing=args.drop_existing)

        if args.admin_username and args.admin_password:
            build_services(db_manager).auth.ensure_admin(
                args.admin_username, args.admin_password
            )
        else:
            logger.warning("No admin credentials given; no admin account was created")

        if args.sample_data:
            logger.info("Loading sample data...")
            added = load_sample_data(db_manager)
            logger.info("Added %d sample book(s)", added)

        tables = set(inspect(db_manager.engine).get_table_names())
        logger.info("Tables: %s", ", ".join(sorted(tables)))

        missing_tables = EXPECTED_TABLES - tables
        if missing_tables:
            logger.error("Missing expected tables: %s", ", ".join(sorted(missing_tables)))
            sys.exit(1)

        logger.info("Database initialization complete")

    except LibraryError as e:
        logger.error("Database initialization failed: %s", e)
        sys.exit(1)
    finally:
        db_manager.close()


if __name__ == "__main__":
    main()
