"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence
from datetime import date, datetime
from decimal import Decimal

# Import entities directly to avoid circular import through domain/__init__.py
from cashrecon.domain.entities import (
    BankAccount,
    BankReconciliation,
    CashFlowCategory,
    EndOfDayReport,
    EndOfDayStatus,
    ReconciliationStatus,
    Transaction,
    TransactionFilter,
    TransactionStatus,
)


class Database(ABC):
    """Abstract database interface for cashrecon.

    Implementations enforce record invariants at write time: amounts are
    never negative, reconciliation flags never revert, and a reconciled
    end-of-day report is never modified.
    """

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Account operations
    @abstractmethod
    def create_account(
        self,
        name: str,
        bank_name: str,
        account_type: str = "checking",
        account_number: Optional[str] = None,
        currency: str = "USD",
        opening_balance: Decimal = Decimal("0.00"),
        is_primary: bool = False,
        created_at: Optional[datetime] = None,
    ) -> int:
        """Create a new account. Returns account ID.

        An account created with ``is_primary`` demotes the previous primary
        account in the same write.
        """
        pass

    @abstractmethod
    def get_account(self, account_id: int) -> Optional[BankAccount]:
        """Get account by ID."""
        pass

    @abstractmethod
    def list_accounts(self, include_inactive: bool = False) -> list[BankAccount]:
        """List accounts ordered by name."""
        pass

    @abstractmethod
    def set_account_balance(self, account_id: int, balance: Decimal, updated_at: datetime) -> None:
        """Set current and available balance of an account."""
        pass

    @abstractmethod
    def set_primary_account(self, account_id: int, updated_at: datetime) -> None:
        """Make an account the single primary account."""
        pass

    @abstractmethod
    def set_account_active(self, account_id: int, is_active: bool, updated_at: datetime) -> None:
        """Activate or deactivate an account."""
        pass

    # Transaction operations
    @abstractmethod
    def create_transaction(
        self,
        type: str,
        category: str,
        amount: Decimal,
        date: date,
        account_id: int,
        payment_method: str,
        status: str,
        cash_flow_category: Optional[str],
        created_at: datetime,
        description: str = "",
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        reference_number: Optional[str] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        notes: str = "",
        created_by: Optional[str] = None,
        currency: str = "USD",
    ) -> int:
        """Create a transaction. Returns transaction ID.

        The transaction number is assigned by the store.
        """
        pass

    @abstractmethod
    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID."""
        pass

    @abstractmethod
    def list_transactions(self, filters: TransactionFilter) -> list[Transaction]:
        """List transactions matching every set filter field.

        Results are ordered by date descending, then by insertion order.
        """
        pass

    @abstractmethod
    def mark_transactions_reconciled(
        self, transaction_ids: Sequence[int], reconciled_by: str, reconciled_at: datetime
    ) -> int:
        """Flag transactions as reconciled.

        Unknown and already reconciled IDs are skipped. Returns the number of
        transactions newly flagged.
        """
        pass

    @abstractmethod
    def update_transaction_status(
        self, transaction_id: int, status: TransactionStatus, updated_at: datetime
    ) -> None:
        """Update transaction status."""
        pass

    @abstractmethod
    def update_transaction_cash_flow_category(
        self, transaction_id: int, cash_flow_category: CashFlowCategory, updated_at: datetime
    ) -> None:
        """Set the cash-flow category of a transaction."""
        pass

    # Bank reconciliation operations
    @abstractmethod
    def save_bank_reconciliation(
        self,
        account_id: int,
        reconciliation_date: datetime,
        statement_date: date,
        statement_balance: Decimal,
        book_balance: Decimal,
        difference: Decimal,
        status: ReconciliationStatus,
        matched_transaction_ids: Sequence[int],
        unmatched_book_transaction_ids: Sequence[int],
        unmatched_bank_transactions: Sequence[str],
        notes: str,
        reconciled_by: Optional[str],
    ) -> int:
        """Persist a reconciliation record. Returns reconciliation ID.

        For a completed reconciliation the account balance, the account's
        last reconciliation stamp and the matched transactions' flags are
        written in the same transaction as the record. Either all of it is
        stored or none of it is.
        """
        pass

    @abstractmethod
    def get_bank_reconciliation(self, reconciliation_id: int) -> Optional[BankReconciliation]:
        """Get bank reconciliation by ID."""
        pass

    @abstractmethod
    def list_bank_reconciliations(
        self,
        account_id: Optional[int] = None,
        status: Optional[ReconciliationStatus] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankReconciliation]:
        """List reconciliations, newest first."""
        pass

    # End-of-day report operations
    @abstractmethod
    def create_end_of_day_report(self, **fields: Any) -> int:
        """Create an end-of-day report. Returns report ID."""
        pass

    @abstractmethod
    def get_end_of_day_report(self, report_id: int) -> Optional[EndOfDayReport]:
        """Get end-of-day report by ID."""
        pass

    @abstractmethod
    def list_end_of_day_reports(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[EndOfDayStatus] = None,
    ) -> list[EndOfDayReport]:
        """List end-of-day reports, newest report date first."""
        pass

    @abstractmethod
    def update_end_of_day_report(self, report_id: int, **fields: Any) -> None:
        """Update fields of an end-of-day report that is not yet reconciled."""
        pass
