"""Domain model entities for cashrecon.

These are pure data classes representing business concepts, independent of
database schema. Every entity returned by a service is a frozen copy, so
callers own what they receive and can never mutate store state through it.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional

ZERO = Decimal("0.00")


class TransactionType(str, Enum):
    """Direction of a money movement relative to its account."""

    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"

    @property
    def is_inflow(self) -> bool:
        return self is TransactionType.INCOME


class TransactionStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    CHECK = "check"
    MOBILE_PAYMENT = "mobile_payment"
    STORE_CREDIT = "store_credit"
    OTHER = "other"


class CashFlowActivity(str, Enum):
    """Cash-flow activity bucket."""

    OPERATING = "operating"
    INVESTING = "investing"
    FINANCING = "financing"


class CashFlowCategory(str, Enum):
    """Explicit cash-flow taxonomy assigned to a transaction at creation time."""

    CUSTOMER_RECEIPTS = "customer_receipts"
    SUPPLIER_PAYMENTS = "supplier_payments"
    EMPLOYEE_SALARIES = "employee_salaries"
    OTHER_OPERATING_EXPENSES = "other_operating_expenses"
    EQUIPMENT_PURCHASES = "equipment_purchases"
    ASSET_SALES = "asset_sales"
    LOAN_PROCEEDS = "loan_proceeds"
    LOAN_REPAYMENTS = "loan_repayments"
    OWNER_CONTRIBUTIONS = "owner_contributions"
    OWNER_WITHDRAWALS = "owner_withdrawals"
    TRANSFERS_OUT = "transfers_out"

    @property
    def activity(self) -> CashFlowActivity:
        return _CATEGORY_ACTIVITY[self]

    @property
    def is_inflow(self) -> bool:
        return self in _INFLOW_CATEGORIES


_CATEGORY_ACTIVITY = {
    CashFlowCategory.CUSTOMER_RECEIPTS: CashFlowActivity.OPERATING,
    CashFlowCategory.SUPPLIER_PAYMENTS: CashFlowActivity.OPERATING,
    CashFlowCategory.EMPLOYEE_SALARIES: CashFlowActivity.OPERATING,
    CashFlowCategory.OTHER_OPERATING_EXPENSES: CashFlowActivity.OPERATING,
    CashFlowCategory.EQUIPMENT_PURCHASES: CashFlowActivity.INVESTING,
    CashFlowCategory.ASSET_SALES: CashFlowActivity.INVESTING,
    CashFlowCategory.LOAN_PROCEEDS: CashFlowActivity.FINANCING,
    CashFlowCategory.LOAN_REPAYMENTS: CashFlowActivity.FINANCING,
    CashFlowCategory.OWNER_CONTRIBUTIONS: CashFlowActivity.FINANCING,
    CashFlowCategory.OWNER_WITHDRAWALS: CashFlowActivity.FINANCING,
    CashFlowCategory.TRANSFERS_OUT: CashFlowActivity.FINANCING,
}

_INFLOW_CATEGORIES = frozenset(
    {
        CashFlowCategory.CUSTOMER_RECEIPTS,
        CashFlowCategory.ASSET_SALES,
        CashFlowCategory.LOAN_PROCEEDS,
        CashFlowCategory.OWNER_CONTRIBUTIONS,
    }
)


class ReconciliationStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DISCREPANCY = "discrepancy"


class EndOfDayStatus(str, Enum):
    OPEN = "open"
    CLOSED = "closed"
    RECONCILED = "reconciled"


@dataclass(frozen=True)
class BankAccount:
    """Cash-holding account domain entity."""

    id: int
    name: str
    bank_name: str
    account_number: Optional[str]
    account_type: str
    currency: str
    current_balance: Decimal
    available_balance: Decimal
    is_active: bool
    is_primary: bool
    last_reconciled_at: Optional[datetime]
    last_reconciled_balance: Optional[Decimal]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class Transaction:
    """Money movement domain entity."""

    id: int
    transaction_number: str
    type: TransactionType
    category: str
    amount: Decimal
    date: date
    account_id: int
    payment_method: PaymentMethod
    status: TransactionStatus
    cash_flow_category: Optional[CashFlowCategory]
    description: str = ""
    reference_id: Optional[str] = None
    reference_type: Optional[str] = None
    reference_number: Optional[str] = None
    customer_id: Optional[str] = None
    vendor_id: Optional[str] = None
    notes: str = ""
    created_by: Optional[str] = None
    currency: str = "USD"
    is_reconciled: bool = False
    reconciled_at: Optional[datetime] = None
    reconciled_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def signed_amount(self) -> Decimal:
        """Amount with the sign implied by the transaction type."""
        return self.amount if self.type.is_inflow else -self.amount


@dataclass(frozen=True)
class TransactionFilter:
    """Conjunctive transaction query; unset fields do not constrain."""

    type: Optional[TransactionType] = None
    category: Optional[str] = None
    status: Optional[TransactionStatus] = None
    payment_method: Optional[PaymentMethod] = None
    account_id: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    search: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None
    is_reconciled: Optional[bool] = None


@dataclass(frozen=True)
class TransactionStats:
    """Aggregate counts and totals over a filtered transaction set."""

    total_transactions: int
    total_income: Decimal
    total_expenses: Decimal
    net_income: Decimal
    pending_count: int
    completed_count: int
    reconciled_count: int
    unreconciled_count: int
    by_type: dict[str, Decimal] = field(default_factory=dict)
    by_category: dict[str, Decimal] = field(default_factory=dict)
    by_payment_method: dict[str, Decimal] = field(default_factory=dict)


@dataclass(frozen=True)
class CashFlowEntry:
    """One transaction's line in a cash-flow statement."""

    transaction_id: int
    date: date
    is_inflow: bool
    cash_flow_category: CashFlowCategory
    category: str
    description: str
    amount: Decimal
    balance: Decimal
    reference_id: Optional[str]
    reference_type: Optional[str]
    account_id: int


@dataclass(frozen=True)
class OperatingActivities:
    receipts_from_customers: Decimal = ZERO
    payments_to_suppliers: Decimal = ZERO
    employee_salaries: Decimal = ZERO
    other_operating_expenses: Decimal = ZERO
    net_operating_cash: Decimal = ZERO


@dataclass(frozen=True)
class InvestingActivities:
    equipment_purchases: Decimal = ZERO
    asset_sales: Decimal = ZERO
    net_investing_cash: Decimal = ZERO


@dataclass(frozen=True)
class FinancingActivities:
    loan_proceeds: Decimal = ZERO
    loan_repayments: Decimal = ZERO
    owner_contributions: Decimal = ZERO
    owner_withdrawals: Decimal = ZERO
    transfers_out: Decimal = ZERO
    net_financing_cash: Decimal = ZERO


@dataclass(frozen=True)
class CashFlowStatement:
    """Read-only cash-flow report over a date range and account."""

    start_date: date
    end_date: date
    account_id: int
    opening_balance: Decimal
    closing_balance: Decimal
    total_inflows: Decimal
    total_outflows: Decimal
    net_cash_flow: Decimal
    operating_activities: OperatingActivities
    investing_activities: InvestingActivities
    financing_activities: FinancingActivities
    entries: tuple[CashFlowEntry, ...] = ()


@dataclass(frozen=True)
class AccountBalance:
    id: int
    name: str
    balance: Decimal
    account_type: str


@dataclass(frozen=True)
class CashFlowSummary:
    total_cash: Decimal
    opening_balance: Decimal
    closing_balance: Decimal
    net_cash_flow: Decimal
    operating_cash_flow: Decimal
    investing_cash_flow: Decimal
    financing_cash_flow: Decimal
    accounts: tuple[AccountBalance, ...] = ()


@dataclass(frozen=True)
class BankReconciliation:
    """Point-in-time comparison of book balance against a bank statement."""

    id: int
    account_id: int
    account_name: str
    reconciliation_date: datetime
    statement_date: date
    statement_balance: Decimal
    book_balance: Decimal
    difference: Decimal
    status: ReconciliationStatus
    matched_transaction_ids: tuple[int, ...] = ()
    unmatched_book_transaction_ids: tuple[int, ...] = ()
    unmatched_bank_transactions: tuple[str, ...] = ()
    notes: str = ""
    reconciled_by: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class PaymentBreakdown:
    """Completed sales per payment method for one day."""

    cash: Decimal = ZERO
    card: Decimal = ZERO
    bank_transfer: Decimal = ZERO
    mobile_payment: Decimal = ZERO
    store_credit: Decimal = ZERO
    other: Decimal = ZERO


@dataclass(frozen=True)
class CashMovements:
    """Cash drawer movements for one day."""

    cash_sales: Decimal = ZERO
    cash_expenses: Decimal = ZERO
    cash_deposits: Decimal = ZERO
    cash_withdrawals: Decimal = ZERO


@dataclass(frozen=True)
class SalesSummary:
    total_transactions: int = 0
    total_revenue: Decimal = ZERO
    total_tax: Decimal = ZERO
    net_revenue: Decimal = ZERO


@dataclass(frozen=True)
class EndOfDayReport:
    """Daily cash-drawer closeout."""

    id: int
    report_date: date
    cashier_id: str
    opening_balance: Decimal
    expected_closing_balance: Decimal
    actual_closing_balance: Decimal
    difference: Decimal
    status: EndOfDayStatus
    payment_breakdown: PaymentBreakdown
    cash_movements: CashMovements
    sales: SalesSummary
    transaction_ids: tuple[int, ...] = ()
    cashier_name: Optional[str] = None
    shift_id: Optional[str] = None
    notes: str = ""
    closed_at: Optional[datetime] = None
    reconciled_at: Optional[datetime] = None
    reconciled_by: Optional[str] = None
    reconciliation_notes: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_reconciled(self) -> bool:
        return self.status is EndOfDayStatus.RECONCILED


@dataclass(frozen=True)
class RevenueBreakdown:
    class_revenue: Decimal = ZERO
    membership_revenue: Decimal = ZERO
    product_sales: Decimal = ZERO
    other_revenue: Decimal = ZERO


@dataclass(frozen=True)
class CostOfGoodsSold:
    product_costs: Decimal = ZERO
    instructor_fees: Decimal = ZERO
    other_direct_costs: Decimal = ZERO


@dataclass(frozen=True)
class OperatingExpenses:
    salaries: Decimal = ZERO
    rent: Decimal = ZERO
    utilities: Decimal = ZERO
    marketing: Decimal = ZERO
    insurance: Decimal = ZERO
    maintenance: Decimal = ZERO
    supplies: Decimal = ZERO
    depreciation: Decimal = ZERO
    other: Decimal = ZERO


@dataclass(frozen=True)
class ProfitLossStatement:
    start_date: date
    end_date: date
    allocation_policy: str
    total_revenue: Decimal
    revenue: RevenueBreakdown
    cost_of_goods_sold: Decimal
    cogs: CostOfGoodsSold
    gross_profit: Decimal
    gross_profit_margin: Decimal
    total_operating_expenses: Decimal
    operating_expenses: OperatingExpenses
    operating_income: Decimal
    operating_margin: Decimal
    other_income: Decimal
    other_expenses: Decimal
    net_income: Decimal
    net_profit_margin: Decimal


@dataclass(frozen=True)
class TaxReport:
    start_date: date
    end_date: date
    total_sales: Decimal
    taxable_sales: Decimal
    non_taxable_sales: Decimal
    total_tax_collected: Decimal
    tax_by_rate: dict[str, Decimal]
    tax_payable: Decimal
    tax_credits: Decimal
    net_tax_due: Decimal


@dataclass(frozen=True)
class FinancialSummary:
    start_date: date
    end_date: date
    total_revenue: Decimal
    total_expenses: Decimal
    net_income: Decimal
    cash_balance: Decimal
    accounts_receivable: Decimal
    accounts_payable: Decimal
    profit_margin: Decimal


@dataclass(frozen=True)
class LineMargin:
    name: str
    revenue: Decimal
    cost: Decimal
    margin: Decimal


@dataclass(frozen=True)
class ProfitMarginAnalysis:
    start_date: date
    end_date: date
    overall_margin: Decimal
    lines: tuple[LineMargin, ...] = ()

    @property
    def top_margin_lines(self) -> tuple[LineMargin, ...]:
        return tuple(sorted(self.lines, key=lambda line: line.margin, reverse=True))
