"""Cash-flow category assignment.

Statements classify transactions by their stored ``cash_flow_category``.
The keyword rules below only decide that category once: when a transaction
is created without one, and when older rows are backfilled.
"""

from typing import Optional

from cashrecon.domain.entities import CashFlowCategory, TransactionType

_INCOME_RULES: tuple[tuple[tuple[str, ...], CashFlowCategory], ...] = (
    (("loan",), CashFlowCategory.LOAN_PROCEEDS),
    (("owner", "capital", "contribution"), CashFlowCategory.OWNER_CONTRIBUTIONS),
    (("asset sale", "equipment"), CashFlowCategory.ASSET_SALES),
)

_EXPENSE_RULES: tuple[tuple[tuple[str, ...], CashFlowCategory], ...] = (
    (("salary", "salaries", "payroll", "wage"), CashFlowCategory.EMPLOYEE_SALARIES),
    (("equipment",), CashFlowCategory.EQUIPMENT_PURCHASES),
    (("loan",), CashFlowCategory.LOAN_REPAYMENTS),
    (("owner", "drawing"), CashFlowCategory.OWNER_WITHDRAWALS),
)


def _first_match(
    text: str, rules: tuple[tuple[tuple[str, ...], CashFlowCategory], ...]
) -> Optional[CashFlowCategory]:
    for keywords, category in rules:
        if any(keyword in text for keyword in keywords):
            return category
    return None


def classify_by_keywords(
    txn_type: TransactionType,
    description: Optional[str] = None,
    category: Optional[str] = None,
    vendor_id: Optional[str] = None,
) -> CashFlowCategory:
    """Guess a cash-flow category from free text.

    Rules are checked in order and the first hit wins, so every transaction
    lands in exactly one bucket.
    """
    text = f"{description or ''} {category or ''}".lower()

    if txn_type is TransactionType.TRANSFER:
        return CashFlowCategory.TRANSFERS_OUT

    if txn_type is TransactionType.INCOME:
        return _first_match(text, _INCOME_RULES) or CashFlowCategory.CUSTOMER_RECEIPTS

    matched = _first_match(text, _EXPENSE_RULES)
    if matched is not None:
        return matched
    if vendor_id:
        return CashFlowCategory.SUPPLIER_PAYMENTS
    return CashFlowCategory.OTHER_OPERATING_EXPENSES


def category_matches_type(txn_type: TransactionType, category: CashFlowCategory) -> bool:
    """Check that an explicit category points the same direction as the type."""
    if txn_type is TransactionType.TRANSFER:
        return category is CashFlowCategory.TRANSFERS_OUT
    if category is CashFlowCategory.TRANSFERS_OUT:
        return False
    return category.is_inflow == txn_type.is_inflow
