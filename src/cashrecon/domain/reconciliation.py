"""Bank reconciliation domain service."""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from cashrecon.database.base import Database
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import (
    BankAccount,
    BankReconciliation,
    ReconciliationStatus,
    Transaction,
    TransactionFilter,
    TransactionStatus,
)
from cashrecon.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
    reconciliation_not_found,
)
from cashrecon.domain.locking import AccountLockRegistry
from cashrecon.domain.money import RECONCILIATION_TOLERANCE, ZERO, money_sum, to_decimal
from cashrecon.domain.transaction import TransactionService
from cashrecon.domain.validation import coerce_optional_enum, require_identity

logger = logging.getLogger(__name__)


def compute_book_balance(account: BankAccount, transactions: Iterable[Transaction]) -> Decimal:
    """Last reconciled balance plus the signed sum of the given transactions."""
    base = account.last_reconciled_balance if account.last_reconciled_balance is not None else ZERO
    return base + money_sum(txn.signed_amount for txn in transactions)


class BankReconciliationService:
    """Service for reconciling book balances against bank statements."""

    def __init__(
        self,
        db: Database,
        transactions: Optional[TransactionService] = None,
        clock: Optional[Clock] = None,
        locks: Optional[AccountLockRegistry] = None,
    ):
        """Initialize bank reconciliation service.

        Args:
            db: Database instance
            transactions: Transaction store (built from ``db`` when omitted)
            clock: Time source
            locks: Per-account lock registry shared with the transaction store
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks or AccountLockRegistry()
        self.transactions = transactions or TransactionService(
            db, clock=self.clock, locks=self.locks
        )

    def create_bank_reconciliation(
        self,
        account_id: int,
        statement_date: date,
        statement_balance: Any,
        reconciled_by: str,
        notes: str = "",
        unmatched_bank_transactions: Iterable[str] = (),
    ) -> BankReconciliation:
        """Compare the book balance of an account against a bank statement.

        The book balance is the account's last reconciled balance plus every
        completed, unreconciled transaction dated on or before the statement
        date. The statement balance is compared as given, without rounding.
        When the difference is under a cent, the account balance, its last
        reconciliation stamp and the transaction flags are updated together
        with the record. Otherwise only the record is saved, with status
        ``discrepancy``.

        The batch is not flagged through ``TransactionService.reconcile``.
        That call commits on its own, and here the flags must commit in the
        same store write as the balance update. Both paths use the store's
        shared flagging routine, so skipped ids and kept stamps behave alike.

        Args:
            account_id: Account ID
            statement_date: Closing date of the bank statement
            statement_balance: Balance shown on the statement
            reconciled_by: Identity performing the reconciliation
            notes: Free-text notes
            unmatched_bank_transactions: Statement lines with no book counterpart

        Returns:
            The saved reconciliation

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If the statement balance is not a number
            ConcurrencyConflict: If the account lock cannot be acquired in time
        """
        reconciled_by = require_identity(reconciled_by, "reconciled_by")
        balance = to_decimal(statement_balance, "statement balance")
        bank_lines = tuple(unmatched_bank_transactions)

        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))

        with self.locks.hold(account_id):
            account = self.db.get_account(account_id)
            if account is None:
                raise NotFoundError(account_not_found(account_id))

            book_transactions = self.transactions.query(
                TransactionFilter(
                    account_id=account_id,
                    status=TransactionStatus.COMPLETED,
                    is_reconciled=False,
                    end_date=statement_date,
                )
            )
            book_balance = compute_book_balance(account, book_transactions)
            difference = abs(balance - book_balance)
            transaction_ids = [txn.id for txn in book_transactions]

            if difference < RECONCILIATION_TOLERANCE:
                status = ReconciliationStatus.COMPLETED
                matched, unmatched = transaction_ids, []
            else:
                status = ReconciliationStatus.DISCREPANCY
                matched, unmatched = [], transaction_ids

            reconciliation_id = self.db.save_bank_reconciliation(
                account_id=account_id,
                reconciliation_date=self.clock.now(),
                statement_date=statement_date,
                statement_balance=balance,
                book_balance=book_balance,
                difference=difference,
                status=status,
                matched_transaction_ids=matched,
                unmatched_book_transaction_ids=unmatched,
                unmatched_bank_transactions=bank_lines,
                notes=notes or "",
                reconciled_by=reconciled_by,
            )

        if status is ReconciliationStatus.COMPLETED:
            logger.info(
                "Reconciled account %s at %s (%d transactions)",
                account_id,
                balance,
                len(matched),
            )
        else:
            logger.warning(
                "Reconciliation discrepancy on account %s: statement %s, book %s, difference %s",
                account_id,
                balance,
                book_balance,
                difference,
            )
        return self.get_bank_reconciliation(reconciliation_id)

    def get_bank_reconciliation(self, reconciliation_id: int) -> BankReconciliation:
        """Get reconciliation by ID.

        Raises:
            NotFoundError: If reconciliation doesn't exist
        """
        reconciliation = self.db.get_bank_reconciliation(reconciliation_id)
        if reconciliation is None:
            raise NotFoundError(reconciliation_not_found(reconciliation_id))
        return reconciliation

    def get_bank_reconciliations(
        self,
        account_id: Optional[int] = None,
        status: Optional[ReconciliationStatus | str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[BankReconciliation]:
        """List reconciliations, newest first.

        Args:
            account_id: Optional account filter
            status: Optional status filter
            start_date: Optional earliest reconciliation date
            end_date: Optional latest reconciliation date

        Returns:
            List of reconciliations sorted by reconciliation date descending
        """
        if start_date and end_date and start_date > end_date:
            raise ValidationError(f"Start date {start_date} is after end date {end_date}")
        return self.db.list_bank_reconciliations(
            account_id=account_id,
            status=coerce_optional_enum(ReconciliationStatus, status, "reconciliation status"),
            start_date=start_date,
            end_date=end_date,
        )
