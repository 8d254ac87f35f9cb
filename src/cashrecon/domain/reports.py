"""Financial report domain service."""

import logging
from collections import defaultdict
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from cashrecon.database.base import Database
from cashrecon.domain.allocation import AllocationPolicy, DEFAULT_POLICY
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import (
    CostOfGoodsSold,
    FinancialSummary,
    LineMargin,
    OperatingExpenses,
    ProfitLossStatement,
    ProfitMarginAnalysis,
    RevenueBreakdown,
    TaxReport,
    Transaction,
    TransactionFilter,
    TransactionStatus,
    TransactionType,
)
from cashrecon.domain.errors import ValidationError
from cashrecon.domain.money import CENT, ZERO, money_sum, percent_of
from cashrecon.domain.transaction import TransactionService

logger = logging.getLogger(__name__)

# Expense category tags, lower-cased, mapped to profit and loss lines.
# Tags not listed here are reported under "other".
EXPENSE_LINES = {
    "salaries": "salaries",
    "salaries & wages": "salaries",
    "wages": "salaries",
    "payroll": "salaries",
    "rent": "rent",
    "rent & utilities": "rent",
    "utilities": "utilities",
    "marketing": "marketing",
    "marketing & advertising": "marketing",
    "advertising": "marketing",
    "insurance": "insurance",
    "maintenance": "maintenance",
    "maintenance & repairs": "maintenance",
    "repairs": "maintenance",
    "supplies": "supplies",
    "equipment & supplies": "supplies",
    "depreciation": "depreciation",
}


def _allocate(amount: Decimal, ratio: Decimal) -> Decimal:
    return (amount * ratio).quantize(CENT, rounding=ROUND_HALF_UP)


def expense_line(category: str) -> str:
    """Map an expense category tag to its profit and loss line."""
    return EXPENSE_LINES.get(category.strip().lower(), "other")


class ReportService:
    """Service for profit and loss, tax and summary reports."""

    def __init__(
        self,
        db: Database,
        transactions: Optional[TransactionService] = None,
        policy: Optional[AllocationPolicy] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize report service.

        Args:
            db: Database instance
            transactions: Transaction store (built from ``db`` when omitted)
            policy: Allocation ratios used to split revenue and costs
            clock: Time source for default date ranges
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.policy = policy or DEFAULT_POLICY
        self.transactions = transactions or TransactionService(db, clock=self.clock)

    def _period(self, start_date: Optional[date], end_date: Optional[date]) -> tuple[date, date]:
        today = self.clock.today()
        start = start_date or date(today.year, 1, 1)
        end = end_date or today
        if start > end:
            raise ValidationError(f"Start date {start} is after end date {end}")
        return start, end

    def _transactions(
        self,
        txn_type: TransactionType,
        status: TransactionStatus,
        start: date,
        end: date,
    ) -> list[Transaction]:
        return self.transactions.query(
            TransactionFilter(type=txn_type, status=status, start_date=start, end_date=end)
        )

    def generate_profit_loss(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> ProfitLossStatement:
        """Build a profit and loss statement.

        Revenue is the total of completed income. Revenue lines, direct costs
        and depreciation are derived from it with the allocation policy.
        Operating expenses come from completed expense transactions grouped by
        their category tag.

        Args:
            start_date: Period start (defaults to January 1st of the current year)
            end_date: Period end (defaults to today)

        Returns:
            ProfitLossStatement
        """
        start, end = self._period(start_date, end_date)
        ratio = self.policy.ratio

        income = self._transactions(TransactionType.INCOME, TransactionStatus.COMPLETED, start, end)
        total_revenue = money_sum(txn.amount for txn in income)

        class_revenue = _allocate(total_revenue, ratio("class_revenue"))
        membership_revenue = _allocate(total_revenue, ratio("membership_revenue"))
        product_sales = _allocate(total_revenue, ratio("product_sales"))
        # Remainder keeps the lines adding up to the total after rounding.
        other_revenue = total_revenue - class_revenue - membership_revenue - product_sales
        revenue = RevenueBreakdown(
            class_revenue=class_revenue,
            membership_revenue=membership_revenue,
            product_sales=product_sales,
            other_revenue=other_revenue,
        )

        cogs = CostOfGoodsSold(
            product_costs=_allocate(product_sales, ratio("product_cost")),
            instructor_fees=_allocate(class_revenue, ratio("instructor_fees")),
            other_direct_costs=_allocate(total_revenue, ratio("other_direct_costs")),
        )
        cost_of_goods_sold = cogs.product_costs + cogs.instructor_fees + cogs.other_direct_costs
        gross_profit = total_revenue - cost_of_goods_sold

        expenses = self._transactions(
            TransactionType.EXPENSE, TransactionStatus.COMPLETED, start, end
        )
        by_line: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for txn in expenses:
            by_line[expense_line(txn.category)] += txn.amount

        utilities_from_rent = _allocate(by_line["rent"], ratio("utilities_share_of_rent"))
        operating_expenses = OperatingExpenses(
            salaries=by_line["salaries"],
            rent=by_line["rent"] - utilities_from_rent,
            utilities=by_line["utilities"] + utilities_from_rent,
            marketing=by_line["marketing"],
            insurance=by_line["insurance"],
            maintenance=by_line["maintenance"],
            supplies=by_line["supplies"],
            depreciation=by_line["depreciation"] + _allocate(total_revenue, ratio("depreciation")),
            other=by_line["other"],
        )
        total_operating_expenses = money_sum(
            getattr(operating_expenses, name)
            for name in (
                "salaries",
                "rent",
                "utilities",
                "marketing",
                "insurance",
                "maintenance",
                "supplies",
                "depreciation",
                "other",
            )
        )

        operating_income = gross_profit - total_operating_expenses
        other_income = ZERO
        other_expenses = ZERO
        net_income = operating_income + other_income - other_expenses

        statement = ProfitLossStatement(
            start_date=start,
            end_date=end,
            allocation_policy=self.policy.label,
            total_revenue=total_revenue,
            revenue=revenue,
            cost_of_goods_sold=cost_of_goods_sold,
            cogs=cogs,
            gross_profit=gross_profit,
            gross_profit_margin=percent_of(gross_profit, total_revenue),
            total_operating_expenses=total_operating_expenses,
            operating_expenses=operating_expenses,
            operating_income=operating_income,
            operating_margin=percent_of(operating_income, total_revenue),
            other_income=other_income,
            other_expenses=other_expenses,
            net_income=net_income,
            net_profit_margin=percent_of(net_income, total_revenue),
        )
        logger.info(
            "Generated profit and loss %s..%s with policy %s: net income %s",
            start,
            end,
            self.policy.label,
            net_income,
        )
        return statement

    def generate_tax_report(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> TaxReport:
        """Estimate sales tax from completed income using the allocation policy."""
        start, end = self._period(start_date, end_date)
        income = self._transactions(TransactionType.INCOME, TransactionStatus.COMPLETED, start, end)

        total_sales = money_sum(txn.amount for txn in income)
        taxable_sales = _allocate(total_sales, self.policy.ratio("taxable_share"))
        tax_rate = self.policy.ratio("tax_rate")
        tax_collected = _allocate(taxable_sales, tax_rate)
        rate_label = f"{(tax_rate * 100).normalize():f}%"
        tax_credits = ZERO

        return TaxReport(
            start_date=start,
            end_date=end,
            total_sales=total_sales,
            taxable_sales=taxable_sales,
            non_taxable_sales=total_sales - taxable_sales,
            total_tax_collected=tax_collected,
            tax_by_rate={rate_label: tax_collected},
            tax_payable=tax_collected,
            tax_credits=tax_credits,
            net_tax_due=tax_collected - tax_credits,
        )

    def generate_financial_summary(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> FinancialSummary:
        """Summarize earnings, cash and open items for a period.

        Receivables are pending income and payables are pending expenses
        dated within the period. Cash is the current balance across active
        accounts.
        """
        profit_loss = self.generate_profit_loss(start_date, end_date)
        start, end = profit_loss.start_date, profit_loss.end_date

        receivables = money_sum(
            txn.amount
            for txn in self._transactions(
                TransactionType.INCOME, TransactionStatus.PENDING, start, end
            )
        )
        payables = money_sum(
            txn.amount
            for txn in self._transactions(
                TransactionType.EXPENSE, TransactionStatus.PENDING, start, end
            )
        )
        cash_balance = money_sum(acc.current_balance for acc in self.db.list_accounts())

        return FinancialSummary(
            start_date=start,
            end_date=end,
            total_revenue=profit_loss.total_revenue,
            total_expenses=profit_loss.total_operating_expenses + profit_loss.cost_of_goods_sold,
            net_income=profit_loss.net_income,
            cash_balance=cash_balance,
            accounts_receivable=receivables,
            accounts_payable=payables,
            profit_margin=profit_loss.net_profit_margin,
        )

    def generate_profit_margin_analysis(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> ProfitMarginAnalysis:
        """Compare margins of the class, membership and product revenue lines."""
        profit_loss = self.generate_profit_loss(start_date, end_date)
        revenue, cogs = profit_loss.revenue, profit_loss.cogs

        lines = []
        for name, line_revenue, cost in (
            ("Classes", revenue.class_revenue, cogs.instructor_fees),
            ("Memberships", revenue.membership_revenue, ZERO),
            ("Products", revenue.product_sales, cogs.product_costs),
        ):
            lines.append(
                LineMargin(
                    name=name,
                    revenue=line_revenue,
                    cost=cost,
                    margin=percent_of(line_revenue - cost, line_revenue),
                )
            )

        return ProfitMarginAnalysis(
            start_date=profit_loss.start_date,
            end_date=profit_loss.end_date,
            overall_margin=profit_loss.net_profit_margin,
            lines=tuple(lines),
        )
