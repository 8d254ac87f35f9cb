#!/usr/bin/env python3
"""Migration script to add and backfill the cash_flow_category column.

Older databases store transactions without an explicit cash flow category.
This migration:
- adds a nullable cash_flow_category column to the transactions table if it
  is missing
- assigns a category to every transaction that has none, using the keyword
  rules over its description and category tag

Categories that are already set are left alone, so the script can be run
more than once.

Usage:
    python migrations/migrate_backfill_cash_flow_category.py [--db-path PATH]
"""

import sys
from pathlib import Path

# Add src to path so we can import cashrecon modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from sqlalchemy import text, inspect
from cashrecon.database.factories import create_sqlite_database
from cashrecon.domain.transaction import TransactionService


def column_exists(engine, table_name: str, column_name: str) -> bool:
    """Check if a column exists in a table.

    Args:
        engine: SQLAlchemy engine
        table_name: Name of the table
        column_name: Name of the column

    Returns:
        True if column exists, False otherwise
    """
    inspector = inspect(engine)
    columns = [col["name"] for col in inspector.get_columns(table_name)]
    return column_name in columns


def migrate_database(database_path: str | None = None) -> int:
    """Add the cash_flow_category column if needed and backfill it.

    Args:
        database_path: Path to database file. If None, uses default location.

    Returns:
        Number of transactions that received a category
    """
    db = create_sqlite_database(database_path=database_path)
    db.connect()

    try:
        session = db.session_factory()
        try:
            engine = session.bind
            if engine is None:
                raise RuntimeError("Could not get database engine from session")
        finally:
            session.close()

        inspector = inspect(engine)
        if "transactions" not in inspector.get_table_names():
            raise RuntimeError(
                "Table 'transactions' does not exist. Please initialize the database schema first."
            )

        if column_exists(engine, "transactions", "cash_flow_category"):
            print("Column cash_flow_category already exists")
        else:
            with engine.begin() as conn:
                conn.execute(text("ALTER TABLE transactions ADD COLUMN cash_flow_category VARCHAR"))
            print("  Added column: cash_flow_category")

        print("Backfilling cash flow categories...")
        updated = TransactionService(db).backfill_cash_flow_categories()
        print(f"  Assigned a category to {updated} transaction(s)")
        print("Migration completed successfully!")
        return updated
    finally:
        db.disconnect()


def main():
    """Main entry point for migration script."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Add and backfill the cash_flow_category column"
    )
    parser.add_argument(
        "--db-path",
        type=str,
        help="Path to database file (overrides CASHRECON_DB_PATH environment variable)",
    )
    args = parser.parse_args()

    try:
        migrate_database(database_path=args.db_path)
        return 0
    except Exception as e:
        print(f"\nMigration failed: {e}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
