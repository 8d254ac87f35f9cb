"""Transaction store domain service."""

import logging
from collections import defaultdict
from contextlib import ExitStack
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from cashrecon.database.base import Database
from cashrecon.domain.cancellation import CancellationToken, check_cancelled
from cashrecon.domain.classification import category_matches_type, classify_by_keywords
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import (
    CashFlowCategory,
    PaymentMethod,
    Transaction,
    TransactionFilter,
    TransactionStats,
    TransactionStatus,
    TransactionType,
)
from cashrecon.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    invalid_status_transition,
    negative_amount,
    transaction_not_found,
)
from cashrecon.domain.locking import AccountLockRegistry
from cashrecon.domain.money import ZERO, money_sum, to_decimal, to_money
from cashrecon.domain.validation import (
    coerce_enum,
    coerce_optional_enum,
    require_identity,
)

logger = logging.getLogger(__name__)

_STATUS_TRANSITIONS = {
    TransactionStatus.PENDING: {
        TransactionStatus.COMPLETED,
        TransactionStatus.FAILED,
        TransactionStatus.CANCELLED,
    },
}


class TransactionService:
    """Append-oriented store of money movements."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        locks: Optional[AccountLockRegistry] = None,
    ):
        """Initialize transaction service.

        Args:
            db: Database instance
            clock: Time source (defaults to the system clock)
            locks: Per-account lock registry shared with the other services
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks or AccountLockRegistry()

    def _resolve_account_id(self, account_id: Optional[int]) -> int:
        if account_id is None:
            for acc in self.db.list_accounts():
                if acc.is_primary:
                    return acc.id
            raise ValidationError("No account given and no primary account is set")

        account = self.db.get_account(account_id)
        if account is None:
            raise ValidationError(account_not_found(account_id))
        if not account.is_active:
            raise ValidationError(f"Account {account_id} is inactive")
        return account_id

    def append(
        self,
        type: TransactionType | str,
        amount: Any,
        account_id: Optional[int] = None,
        date: Optional[date] = None,
        category: str = "other",
        payment_method: PaymentMethod | str = PaymentMethod.CASH,
        status: TransactionStatus | str = TransactionStatus.COMPLETED,
        cash_flow_category: Optional[CashFlowCategory | str] = None,
        description: str = "",
        reference_id: Optional[str] = None,
        reference_type: Optional[str] = None,
        reference_number: Optional[str] = None,
        customer_id: Optional[str] = None,
        vendor_id: Optional[str] = None,
        notes: str = "",
        created_by: Optional[str] = None,
        currency: str = "USD",
    ) -> Transaction:
        """Record a new money movement.

        Args:
            type: income, expense or transfer
            amount: Non-negative amount; direction comes from ``type``
            account_id: Account ID (defaults to the primary account)
            date: Transaction date (defaults to today)
            category: Free-form category tag
            payment_method: How the money moved
            status: Initial status (defaults to completed)
            cash_flow_category: Explicit cash-flow category; when omitted it is
                decided once here from the description and category keywords
            description: Free-text description
            reference_id: ID of the originating sale, invoice or expense
            reference_type: Kind of originating record
            reference_number: Human-readable reference
            customer_id: Customer for income
            vendor_id: Vendor for expenses
            notes: Additional notes
            created_by: Identity of the creator
            currency: ISO currency code

        Returns:
            The stored transaction

        Raises:
            ValidationError: If amount is negative or invalid, the account is
                unknown, or an enum value is not recognized
        """
        txn_type = coerce_enum(TransactionType, type, "transaction type")
        method = coerce_enum(PaymentMethod, payment_method, "payment method")
        txn_status = coerce_enum(TransactionStatus, status, "status")
        explicit_category = coerce_optional_enum(
            CashFlowCategory, cash_flow_category, "cash flow category"
        )

        # Sign of the unrounded value; -0.004 must not pass as -0.00.
        exact = to_decimal(amount)
        if exact < 0:
            raise ValidationError(negative_amount(exact))
        value = to_money(exact)

        if explicit_category is not None and not category_matches_type(txn_type, explicit_category):
            raise ValidationError(
                f"Cash flow category '{explicit_category.value}' does not fit a {txn_type.value} transaction"
            )
        flow_category = explicit_category or classify_by_keywords(
            txn_type, description=description, category=category, vendor_id=vendor_id
        )

        resolved_account_id = self._resolve_account_id(account_id)
        with self.locks.hold(resolved_account_id):
            transaction_id = self.db.create_transaction(
                type=txn_type.value,
                category=category or "other",
                amount=value,
                date=date or self.clock.today(),
                account_id=resolved_account_id,
                payment_method=method.value,
                status=txn_status.value,
                cash_flow_category=flow_category.value,
                created_at=self.clock.now(),
                description=description or "",
                reference_id=reference_id,
                reference_type=reference_type,
                reference_number=reference_number,
                customer_id=customer_id,
                vendor_id=vendor_id,
                notes=notes or "",
                created_by=created_by,
                currency=currency,
            )

        logger.info(
            "Appended %s transaction %s of %s to account %s",
            txn_type.value,
            transaction_id,
            value,
            resolved_account_id,
        )
        return self.require_transaction(transaction_id)

    def get_transaction(self, transaction_id: int) -> Optional[Transaction]:
        """Get transaction by ID.

        Args:
            transaction_id: Transaction ID

        Returns:
            Transaction entity or None if not found
        """
        return self.db.get_transaction(transaction_id)

    def require_transaction(self, transaction_id: int) -> Transaction:
        """Get transaction by ID, raising NotFoundError when absent."""
        txn = self.db.get_transaction(transaction_id)
        if txn is None:
            raise NotFoundError(transaction_not_found(transaction_id))
        return txn

    def query(
        self,
        filters: Optional[TransactionFilter] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> list[Transaction]:
        """List transactions matching every set filter field.

        Results are ordered by date descending; transactions on the same date
        keep their insertion order.

        Raises:
            OperationCancelled: If ``cancel_token`` fires before results are returned
        """
        filters = filters or TransactionFilter()
        check_cancelled(cancel_token, "Transaction query")
        logger.debug("Querying transactions with %s", filters)
        transactions = self.db.list_transactions(filters)
        check_cancelled(cancel_token, "Transaction query")
        return transactions

    def reconcile(self, transaction_ids: Iterable[int], reconciled_by: str) -> int:
        """Mark transactions as reconciled.

        Unknown IDs are skipped. IDs that are already reconciled keep their
        original stamp and are not counted again.

        Args:
            transaction_ids: IDs to mark
            reconciled_by: Identity performing the reconciliation

        Returns:
            Number of transactions newly marked
        """
        reconciled_by = require_identity(reconciled_by, "reconciled_by")
        found = []
        for transaction_id in dict.fromkeys(transaction_ids):
            txn = self.db.get_transaction(transaction_id)
            if txn is not None:
                found.append(txn)

        if not found:
            return 0

        with ExitStack() as stack:
            # Fixed acquisition order avoids deadlocks between batches.
            for account_id in sorted({txn.account_id for txn in found}):
                stack.enter_context(self.locks.hold(account_id))
            count = self.db.mark_transactions_reconciled(
                [txn.id for txn in found], reconciled_by, self.clock.now()
            )

        logger.info("Reconciled %d of %d transactions by %s", count, len(found), reconciled_by)
        return count

    def update_status(self, transaction_id: int, status: TransactionStatus | str) -> Transaction:
        """Move a pending transaction to completed, failed or cancelled.

        Raises:
            NotFoundError: If transaction doesn't exist
            ConflictError: If the transition is not allowed
        """
        target = coerce_enum(TransactionStatus, status, "status")
        txn = self.require_transaction(transaction_id)
        with self.locks.hold(txn.account_id):
            txn = self.require_transaction(transaction_id)
            if target not in _STATUS_TRANSITIONS.get(txn.status, set()):
                raise ConflictError(
                    invalid_status_transition(
                        "Transaction", transaction_id, txn.status.value, target.value
                    )
                )
            self.db.update_transaction_status(transaction_id, target, self.clock.now())
        logger.info("Transaction %s moved to %s", transaction_id, target.value)
        return self.require_transaction(transaction_id)

    def get_unreconciled(self, account_id: Optional[int] = None) -> list[Transaction]:
        """List transactions not yet reconciled."""
        return self.query(TransactionFilter(account_id=account_id, is_reconciled=False))

    def get_by_reference(self, reference_type: str, reference_id: str) -> list[Transaction]:
        """List transactions created from a given sale, invoice or expense."""
        return [
            txn
            for txn in self.query()
            if txn.reference_type == reference_type and txn.reference_id == reference_id
        ]

    def get_stats(self, filters: Optional[TransactionFilter] = None) -> TransactionStats:
        """Aggregate counts and totals over a filtered transaction set."""
        transactions = self.query(filters)

        by_type: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_category: dict[str, Decimal] = defaultdict(lambda: ZERO)
        by_payment_method: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in transactions:
            by_type[txn.type.value] += txn.amount
            by_category[txn.category] += txn.amount
            by_payment_method[txn.payment_method.value] += txn.amount

        total_income = money_sum(
            txn.amount for txn in transactions if txn.type is TransactionType.INCOME
        )
        total_expenses = money_sum(
            txn.amount for txn in transactions if txn.type is TransactionType.EXPENSE
        )
        reconciled_count = sum(1 for txn in transactions if txn.is_reconciled)

        return TransactionStats(
            total_transactions=len(transactions),
            total_income=total_income,
            total_expenses=total_expenses,
            net_income=total_income - total_expenses,
            pending_count=sum(1 for txn in transactions if txn.status is TransactionStatus.PENDING),
            completed_count=sum(
                1 for txn in transactions if txn.status is TransactionStatus.COMPLETED
            ),
            reconciled_count=reconciled_count,
            unreconciled_count=len(transactions) - reconciled_count,
            by_type=dict(by_type),
            by_category=dict(by_category),
            by_payment_method=dict(by_payment_method),
        )

    def backfill_cash_flow_categories(self) -> int:
        """Assign keyword-derived cash-flow categories to rows that have none.

        Rows loaded into the store without going through ``append`` (bulk
        imports, older databases) carry no category. This is a one-time
        migration step; categories that are already set are never changed.

        Returns:
            Number of transactions updated
        """
        updated = 0
        now = self.clock.now()
        for txn in self.query():
            if txn.cash_flow_category is not None:
                continue
            category = classify_by_keywords(
                txn.type, description=txn.description, category=txn.category, vendor_id=txn.vendor_id
            )
            self.db.update_transaction_cash_flow_category(txn.id, category, now)
            updated += 1
        logger.info("Backfilled cash flow category on %d transactions", updated)
        return updated
