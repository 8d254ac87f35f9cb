"""Cash flow statement domain service."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Optional

from cashrecon.database.base import Database
from cashrecon.domain.cancellation import CancellationToken
from cashrecon.domain.classification import classify_by_keywords
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import (
    AccountBalance,
    CashFlowCategory,
    CashFlowEntry,
    CashFlowStatement,
    CashFlowSummary,
    FinancingActivities,
    InvestingActivities,
    OperatingActivities,
    Transaction,
    TransactionFilter,
    TransactionStatus,
)
from cashrecon.domain.errors import (
    NotFoundError,
    ValidationError,
    account_not_found,
)
from cashrecon.domain.money import ZERO, money_sum, to_money
from cashrecon.domain.transaction import TransactionService

logger = logging.getLogger(__name__)


def _category_of(txn: Transaction) -> CashFlowCategory:
    if txn.cash_flow_category is not None:
        return txn.cash_flow_category
    # Rows that predate the backfill still land in exactly one bucket.
    logger.debug("Transaction %s has no cash flow category; using keywords", txn.id)
    return classify_by_keywords(
        txn.type, description=txn.description, category=txn.category, vendor_id=txn.vendor_id
    )


def build_cash_flow_statement(
    transactions: Iterable[Transaction],
    opening_balance: Decimal,
    start_date: date,
    end_date: date,
    account_id: int,
) -> CashFlowStatement:
    """Build a cash flow statement from completed transactions.

    Entries are ordered by date ascending with transaction id as tiebreak, and
    each carries the running balance after it is applied.

    Args:
        transactions: Transactions in the window, in any order
        opening_balance: Balance before the first entry
        start_date: Window start (reporting only)
        end_date: Window end (reporting only)
        account_id: Account the statement covers

    Returns:
        CashFlowStatement where closing equals opening plus inflows minus outflows
    """
    ordered = sorted(transactions, key=lambda txn: (txn.date, txn.id))

    by_category: dict[CashFlowCategory, Decimal] = defaultdict(lambda: ZERO)
    entries = []
    balance = opening_balance
    total_inflows = ZERO
    total_outflows = ZERO

    for txn in ordered:
        category = _category_of(txn)
        by_category[category] += txn.amount
        if txn.type.is_inflow:
            total_inflows += txn.amount
        else:
            total_outflows += txn.amount
        balance += txn.signed_amount
        entries.append(
            CashFlowEntry(
                transaction_id=txn.id,
                date=txn.date,
                is_inflow=txn.type.is_inflow,
                cash_flow_category=category,
                category=txn.category,
                description=txn.description,
                amount=txn.amount,
                balance=balance,
                reference_id=txn.reference_id,
                reference_type=txn.reference_type,
                account_id=txn.account_id,
            )
        )

    c = by_category
    operating = OperatingActivities(
        receipts_from_customers=c[CashFlowCategory.CUSTOMER_RECEIPTS],
        payments_to_suppliers=c[CashFlowCategory.SUPPLIER_PAYMENTS],
        employee_salaries=c[CashFlowCategory.EMPLOYEE_SALARIES],
        other_operating_expenses=c[CashFlowCategory.OTHER_OPERATING_EXPENSES],
        net_operating_cash=c[CashFlowCategory.CUSTOMER_RECEIPTS]
        - c[CashFlowCategory.SUPPLIER_PAYMENTS]
        - c[CashFlowCategory.EMPLOYEE_SALARIES]
        - c[CashFlowCategory.OTHER_OPERATING_EXPENSES],
    )
    investing = InvestingActivities(
        equipment_purchases=c[CashFlowCategory.EQUIPMENT_PURCHASES],
        asset_sales=c[CashFlowCategory.ASSET_SALES],
        net_investing_cash=c[CashFlowCategory.ASSET_SALES]
        - c[CashFlowCategory.EQUIPMENT_PURCHASES],
    )
    financing = FinancingActivities(
        loan_proceeds=c[CashFlowCategory.LOAN_PROCEEDS],
        loan_repayments=c[CashFlowCategory.LOAN_REPAYMENTS],
        owner_contributions=c[CashFlowCategory.OWNER_CONTRIBUTIONS],
        owner_withdrawals=c[CashFlowCategory.OWNER_WITHDRAWALS],
        transfers_out=c[CashFlowCategory.TRANSFERS_OUT],
        net_financing_cash=c[CashFlowCategory.LOAN_PROCEEDS]
        + c[CashFlowCategory.OWNER_CONTRIBUTIONS]
        - c[CashFlowCategory.LOAN_REPAYMENTS]
        - c[CashFlowCategory.OWNER_WITHDRAWALS]
        - c[CashFlowCategory.TRANSFERS_OUT],
    )

    return CashFlowStatement(
        start_date=start_date,
        end_date=end_date,
        account_id=account_id,
        opening_balance=opening_balance,
        closing_balance=entries[-1].balance if entries else opening_balance,
        total_inflows=total_inflows,
        total_outflows=total_outflows,
        net_cash_flow=total_inflows - total_outflows,
        operating_activities=operating,
        investing_activities=investing,
        financing_activities=financing,
        entries=tuple(entries),
    )


class CashFlowService:
    """Service for cash flow statements over the transaction store."""

    def __init__(
        self,
        db: Database,
        transactions: Optional[TransactionService] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize cash flow service.

        Args:
            db: Database instance
            transactions: Transaction store (built from ``db`` when omitted)
            clock: Time source for default date ranges
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.transactions = transactions or TransactionService(db, clock=self.clock)

    def _resolve_account_id(self, account_id: Optional[int]) -> int:
        if account_id is None:
            for acc in self.db.list_accounts():
                if acc.is_primary:
                    return acc.id
            raise ValidationError("No account given and no primary account is set")
        if self.db.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return account_id

    def get_cash_flow_statement(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        opening_balance: Any = ZERO,
        cancel_token: Optional[CancellationToken] = None,
    ) -> CashFlowStatement:
        """Build the cash flow statement for an account and date range.

        Only completed transactions contribute.

        Args:
            start_date: Range start (defaults to the first day of the current month)
            end_date: Range end (defaults to today)
            account_id: Account ID (defaults to the primary account)
            opening_balance: Balance at the start of the range
            cancel_token: Optional token to abandon the underlying query

        Returns:
            CashFlowStatement

        Raises:
            ValidationError: If the range is inverted or no account can be resolved
            NotFoundError: If account doesn't exist
        """
        today = self.clock.today()
        start = start_date or today.replace(day=1)
        end = end_date or today
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")

        resolved_account_id = self._resolve_account_id(account_id)
        transactions = self.transactions.query(
            TransactionFilter(
                account_id=resolved_account_id,
                status=TransactionStatus.COMPLETED,
                start_date=start,
                end_date=end,
            ),
            cancel_token=cancel_token,
        )
        statement = build_cash_flow_statement(
            transactions,
            opening_balance=to_money(opening_balance, "opening balance"),
            start_date=start,
            end_date=end,
            account_id=resolved_account_id,
        )
        logger.debug(
            "Cash flow for account %s %s..%s: %d entries, net %s",
            resolved_account_id,
            start,
            end,
            len(statement.entries),
            statement.net_cash_flow,
        )
        return statement

    def get_cash_flow_summary(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        account_id: Optional[int] = None,
        opening_balance: Any = ZERO,
    ) -> CashFlowSummary:
        """Summarize cash across active accounts alongside one account's statement."""
        statement = self.get_cash_flow_statement(
            start_date=start_date,
            end_date=end_date,
            account_id=account_id,
            opening_balance=opening_balance,
        )
        accounts = tuple(
            AccountBalance(
                id=acc.id,
                name=acc.name,
                balance=acc.current_balance,
                account_type=acc.account_type,
            )
            for acc in self.db.list_accounts()
        )
        return CashFlowSummary(
            total_cash=money_sum(acc.balance for acc in accounts),
            opening_balance=statement.opening_balance,
            closing_balance=statement.closing_balance,
            net_cash_flow=statement.net_cash_flow,
            operating_cash_flow=statement.operating_activities.net_operating_cash,
            investing_cash_flow=statement.investing_activities.net_investing_cash,
            financing_cash_flow=statement.financing_activities.net_financing_cash,
            accounts=accounts,
        )
