"""Tests for the cash flow category backfill migration."""

import importlib.util
from datetime import date, datetime, UTC
from decimal import Decimal
from pathlib import Path

from cashrecon.domain.entities import CashFlowCategory

MIGRATION = Path(__file__).parent.parent / "migrations" / "migrate_backfill_cash_flow_category.py"


def _load_migration():
    spec = importlib.util.spec_from_file_location("migrate_backfill_cash_flow_category", MIGRATION)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_backfill_assigns_missing_categories(temp_db):
    account_id = temp_db.create_account(name="Till", bank_name="Cash")
    untagged = temp_db.create_transaction(
        type="expense",
        category="Payroll",
        amount=Decimal("900.00"),
        date=date(2024, 10, 1),
        account_id=account_id,
        payment_method="bank_transfer",
        status="completed",
        cash_flow_category=None,
        created_at=datetime(2024, 10, 1, tzinfo=UTC),
    )

    migration = _load_migration()
    assert migration.migrate_database(temp_db.database_path) == 1
    # Running it again finds nothing left to do.
    assert migration.migrate_database(temp_db.database_path) == 0

    assert temp_db.get_transaction(untagged).cash_flow_category is (
        CashFlowCategory.EMPLOYEE_SALARIES
    )
