"""End-of-day cash drawer closeout domain service."""

import logging
import threading
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from cashrecon.database.base import Database
from cashrecon.domain.allocation import AllocationPolicy, DEFAULT_POLICY
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import (
    CashMovements,
    EndOfDayReport,
    EndOfDayStatus,
    PaymentBreakdown,
    PaymentMethod,
    SalesSummary,
    Transaction,
    TransactionFilter,
    TransactionStatus,
    TransactionType,
)
from cashrecon.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invalid_status_transition,
    report_not_found,
)
from cashrecon.domain.money import CENT, ZERO, money_sum, to_money
from cashrecon.domain.transaction import TransactionService
from cashrecon.domain.validation import coerce_optional_enum, require_identity

logger = logging.getLogger(__name__)

# Income tagged with this category is a float top-up, not a sale.
DEPOSIT_CATEGORY = "deposit"

_BREAKDOWN_FIELD = {
    PaymentMethod.CASH: "cash",
    PaymentMethod.CARD: "card",
    PaymentMethod.BANK_TRANSFER: "bank_transfer",
    PaymentMethod.MOBILE_PAYMENT: "mobile_payment",
    PaymentMethod.STORE_CREDIT: "store_credit",
    PaymentMethod.CHECK: "other",
    PaymentMethod.OTHER: "other",
}


def _is_deposit(txn: Transaction) -> bool:
    return txn.category.strip().lower() == DEPOSIT_CATEGORY


def _completed_sales(transactions: Iterable[Transaction]) -> list[Transaction]:
    return [
        txn
        for txn in transactions
        if txn.status is TransactionStatus.COMPLETED
        and txn.type is TransactionType.INCOME
        and not _is_deposit(txn)
    ]


def compute_payment_breakdown(transactions: Iterable[Transaction]) -> PaymentBreakdown:
    """Sum completed sales per payment method; checks count as other."""
    totals = {name: ZERO for name in set(_BREAKDOWN_FIELD.values())}
    for txn in _completed_sales(transactions):
        totals[_BREAKDOWN_FIELD[txn.payment_method]] += txn.amount
    return PaymentBreakdown(**totals)


def compute_cash_movements(transactions: Iterable[Transaction]) -> CashMovements:
    """Sum the day's completed cash transactions by drawer movement."""
    cash = [
        txn
        for txn in transactions
        if txn.status is TransactionStatus.COMPLETED and txn.payment_method is PaymentMethod.CASH
    ]
    income = [txn for txn in cash if txn.type is TransactionType.INCOME]
    return CashMovements(
        cash_sales=money_sum(txn.amount for txn in income if not _is_deposit(txn)),
        cash_expenses=money_sum(txn.amount for txn in cash if txn.type is TransactionType.EXPENSE),
        cash_deposits=money_sum(txn.amount for txn in income if _is_deposit(txn)),
        cash_withdrawals=money_sum(
            txn.amount for txn in cash if txn.type is TransactionType.TRANSFER
        ),
    )


def compute_sales_summary(transactions: Iterable[Transaction], tax_rate: Decimal) -> SalesSummary:
    """Count and total the day's sales, with tax added at ``tax_rate``."""
    sales = _completed_sales(transactions)
    revenue = money_sum(txn.amount for txn in sales)
    tax = (revenue * tax_rate).quantize(CENT, rounding=ROUND_HALF_UP)
    return SalesSummary(
        total_transactions=len(sales),
        total_revenue=revenue,
        total_tax=tax,
        net_revenue=revenue + tax,
    )


def expected_closing_balance(opening_balance: Decimal, movements: CashMovements) -> Decimal:
    """Opening float plus sales and deposits, minus expenses and withdrawals."""
    return (
        opening_balance
        + movements.cash_sales
        - movements.cash_expenses
        + movements.cash_deposits
        - movements.cash_withdrawals
    )


class EndOfDayService:
    """Service for daily cash drawer reports."""

    def __init__(
        self,
        db: Database,
        transactions: Optional[TransactionService] = None,
        policy: Optional[AllocationPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize end-of-day service.

        Args:
            db: Database instance
            transactions: Transaction store (built from ``db`` when omitted)
            policy: Allocation policy supplying the sales tax rate
            clock: Time source
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.policy = policy or DEFAULT_POLICY
        self.transactions = transactions or TransactionService(db, clock=self.clock)
        self._state_lock = threading.Lock()

    def generate_end_of_day_report(
        self,
        cashier_id: str,
        opening_balance: Any,
        report_date: Optional[date] = None,
        actual_closing_balance: Optional[Any] = None,
        cashier_name: Optional[str] = None,
        shift_id: Optional[str] = None,
        notes: str = "",
    ) -> EndOfDayReport:
        """Build and store the closeout report for one day.

        Args:
            cashier_id: Identity of the cashier closing the drawer
            opening_balance: Cash float at the start of the day
            report_date: Day to report on (defaults to today)
            actual_closing_balance: Counted drawer amount (defaults to the
                expected closing balance)
            cashier_name: Display name of the cashier
            shift_id: Optional shift identifier
            notes: Free-text notes

        Returns:
            The stored report, with status ``open``
        """
        cashier_id = require_identity(cashier_id, "cashier_id")
        opening = to_money(opening_balance, "opening balance")
        day = report_date or self.clock.today()

        transactions = self.transactions.query(TransactionFilter(start_date=day, end_date=day))
        breakdown = compute_payment_breakdown(transactions)
        movements = compute_cash_movements(transactions)
        sales = compute_sales_summary(transactions, self.policy.ratio("tax_rate"))
        expected = expected_closing_balance(opening, movements)
        actual = (
            expected
            if actual_closing_balance is None
            else to_money(actual_closing_balance, "actual closing balance")
        )
        difference = actual - expected
        now = self.clock.now()

        report_id = self.db.create_end_of_day_report(
            report_date=day,
            cashier_id=cashier_id,
            cashier_name=cashier_name,
            shift_id=shift_id,
            opening_balance=opening,
            expected_closing_balance=expected,
            actual_closing_balance=actual,
            difference=difference,
            status=EndOfDayStatus.OPEN,
            payment_breakdown=breakdown,
            cash_movements=movements,
            sales=sales,
            transaction_ids=tuple(txn.id for txn in transactions),
            notes=notes or "",
            created_at=now,
            updated_at=now,
        )

        logger.info(
            "Generated end-of-day report %s for %s by %s (expected %s)",
            report_id,
            day,
            cashier_id,
            expected,
        )
        if difference != 0:
            logger.warning("Drawer variance of %s on %s (report %s)", difference, day, report_id)
        return self.get_end_of_day_report(report_id)

    def close_end_of_day_report(
        self, report_id: int, actual_closing_balance: Optional[Any] = None
    ) -> EndOfDayReport:
        """Close an open report, optionally recording the counted drawer amount.

        Raises:
            NotFoundError: If report doesn't exist
            ConflictError: If the report is not open
        """
        with self._state_lock:
            report = self.get_end_of_day_report(report_id)
            if report.status is not EndOfDayStatus.OPEN:
                raise ConflictError(
                    invalid_status_transition(
                        "End-of-day report",
                        report_id,
                        report.status.value,
                        EndOfDayStatus.CLOSED.value,
                    )
                )

            now = self.clock.now()
            fields: dict[str, Any] = {
                "status": EndOfDayStatus.CLOSED,
                "closed_at": now,
                "updated_at": now,
            }
            if actual_closing_balance is not None:
                actual = to_money(actual_closing_balance, "actual closing balance")
                fields["actual_closing_balance"] = actual
                fields["difference"] = actual - report.expected_closing_balance
            self.db.update_end_of_day_report(report_id, **fields)

        logger.info("Closed end-of-day report %s", report_id)
        return self.get_end_of_day_report(report_id)

    def reconcile_end_of_day_report(
        self,
        report_id: int,
        actual_closing_balance: Any,
        reconciled_by: str,
        notes: str = "",
    ) -> EndOfDayReport:
        """Record the counted drawer amount and mark the report reconciled.

        Args:
            report_id: Report ID
            actual_closing_balance: Counted drawer amount
            reconciled_by: Identity performing the reconciliation
            notes: Reconciliation notes, e.g. an explanation of a shortage

        Returns:
            The reconciled report

        Raises:
            NotFoundError: If report doesn't exist
            ConflictError: If the report is already reconciled
        """
        reconciled_by = require_identity(reconciled_by, "reconciled_by")
        actual = to_money(actual_closing_balance, "actual closing balance")

        with self._state_lock:
            report = self.get_end_of_day_report(report_id)
            if report.is_reconciled:
                raise ConflictError(
                    invalid_status_transition(
                        "End-of-day report",
                        report_id,
                        report.status.value,
                        EndOfDayStatus.RECONCILED.value,
                    )
                )

            difference = actual - report.expected_closing_balance
            now = self.clock.now()
            self.db.update_end_of_day_report(
                report_id,
                actual_closing_balance=actual,
                difference=difference,
                status=EndOfDayStatus.RECONCILED,
                reconciled_at=now,
                reconciled_by=reconciled_by,
                reconciliation_notes=notes or "",
                updated_at=now,
            )

        logger.info("Reconciled end-of-day report %s by %s", report_id, reconciled_by)
        if difference != 0:
            logger.warning("Drawer variance of %s on report %s", difference, report_id)
        return self.get_end_of_day_report(report_id)

    def get_end_of_day_report(self, report_id: int) -> EndOfDayReport:
        """Get end-of-day report by ID.

        Raises:
            NotFoundError: If report doesn't exist
        """
        report = self.db.get_end_of_day_report(report_id)
        if report is None:
            raise NotFoundError(report_not_found(report_id))
        return report

    def get_end_of_day_reports(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[EndOfDayStatus | str] = None,
    ) -> list[EndOfDayReport]:
        """List reports, newest report date first."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError(f"Start date {start_date} is after end date {end_date}")
        return self.db.list_end_of_day_reports(
            start_date=start_date,
            end_date=end_date,
            status=coerce_optional_enum(EndOfDayStatus, status, "report status"),
        )
