"""Shared pytest fixtures for cashrecon tests."""

import os
import tempfile
from datetime import date, datetime, UTC
from decimal import Decimal

import pytest

from cashrecon.database.factories import create_sqlite_database
from cashrecon.domain.account import AccountService
from cashrecon.domain.allocation import DEFAULT_POLICY
from cashrecon.domain.cashflow import CashFlowService
from cashrecon.domain.clock import FixedClock
from cashrecon.domain.end_of_day import EndOfDayService
from cashrecon.domain.locking import AccountLockRegistry
from cashrecon.domain.reconciliation import BankReconciliationService
from cashrecon.domain.reports import ReportService
from cashrecon.domain.transaction import TransactionService

# The fixed "now" used by service fixtures.
NOW = datetime(2024, 10, 25, 18, 0, tzinfo=UTC)
TODAY = NOW.date()


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock frozen at 2024-10-25 18:00 UTC."""
    return FixedClock(NOW)


@pytest.fixture
def locks():
    """Lock registry shared by the service fixtures."""
    return AccountLockRegistry(timeout=1.0)


@pytest.fixture
def account_service(temp_db, clock, locks):
    """Create an AccountService with a temporary database."""
    return AccountService(temp_db, clock=clock, locks=locks)


@pytest.fixture
def transaction_service(temp_db, clock, locks):
    """Create a TransactionService with a temporary database."""
    return TransactionService(temp_db, clock=clock, locks=locks)


@pytest.fixture
def cashflow_service(temp_db, transaction_service, clock):
    """Create a CashFlowService with a temporary database."""
    return CashFlowService(temp_db, transactions=transaction_service, clock=clock)


@pytest.fixture
def bank_service(temp_db, transaction_service, clock, locks):
    """Create a BankReconciliationService with a temporary database."""
    return BankReconciliationService(
        temp_db, transactions=transaction_service, clock=clock, locks=locks
    )


@pytest.fixture
def eod_service(temp_db, transaction_service, clock):
    """Create an EndOfDayService with a temporary database."""
    return EndOfDayService(
        temp_db, transactions=transaction_service, policy=DEFAULT_POLICY, clock=clock
    )


@pytest.fixture
def report_service(temp_db, transaction_service, clock):
    """Create a ReportService with a temporary database."""
    return ReportService(
        temp_db, transactions=transaction_service, policy=DEFAULT_POLICY, clock=clock
    )


@pytest.fixture
def sample_account(account_service, transaction_service, bank_service):
    """Primary checking account reconciled at 10,000.00 on 2024-09-30.

    The opening deposit is recorded and reconciled, so the account starts
    with a book balance of 10,000.00 and no unreconciled transactions.
    """
    account_id = account_service.create_account(
        name="Main Checking", bank_name="Test Bank", is_primary=True
    )
    transaction_service.append(
        type="income",
        amount=Decimal("10000.00"),
        account_id=account_id,
        date=date(2024, 9, 30),
        category="capital",
        payment_method="bank_transfer",
        cash_flow_category="owner_contributions",
        description="Opening deposit",
    )
    bank_service.create_bank_reconciliation(
        account_id=account_id,
        statement_date=date(2024, 9, 30),
        statement_balance=Decimal("10000.00"),
        reconciled_by="setup",
    )
    return account_service.get_account(account_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
