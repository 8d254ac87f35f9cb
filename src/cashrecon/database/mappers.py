"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so enum values, JSON payloads and
money columns are translated in one place.
"""

from dataclasses import asdict
from decimal import Decimal
from typing import Any, Optional

from cashrecon.domain import entities as domain
from cashrecon.database.models import (
    Account as ORMAccount,
    Transaction as ORMTransaction,
    BankReconciliation as ORMBankReconciliation,
    EndOfDayReport as ORMEndOfDayReport,
)

CENT = Decimal("0.01")


def _money(value: Any) -> Decimal:
    return Decimal(str(value)).quantize(CENT)


def _exact_money(value: Any) -> Decimal:
    # Whole-cent values keep two places; sub-cent statement figures keep theirs.
    amount = Decimal(str(value))
    cents = amount.quantize(CENT)
    return cents if cents == amount else amount.normalize()


def _optional_money(value: Any) -> Optional[Decimal]:
    return None if value is None else _money(value)


def value_object_to_json(value_object: Any) -> dict[str, Any]:
    """Serialize a flat money dataclass for a JSON column (Decimals as strings)."""
    return {
        key: str(val) if isinstance(val, Decimal) else val
        for key, val in asdict(value_object).items()
    }


def _value_object_from_json(cls, payload: Optional[dict[str, Any]]):
    payload = payload or {}
    kwargs = {}
    for key, default in asdict(cls()).items():
        raw = payload.get(key, default)
        kwargs[key] = _money(raw) if isinstance(default, Decimal) else raw
    return cls(**kwargs)


def account_to_domain(orm_account: ORMAccount) -> domain.BankAccount:
    """Convert SQLAlchemy Account model to domain BankAccount entity."""
    return domain.BankAccount(
        id=orm_account.id,
        name=orm_account.name,
        bank_name=orm_account.bank_name,
        account_number=orm_account.account_number,
        account_type=orm_account.account_type,
        currency=orm_account.currency,
        current_balance=_money(orm_account.current_balance),
        available_balance=_money(orm_account.available_balance),
        is_active=orm_account.is_active,
        is_primary=orm_account.is_primary,
        last_reconciled_at=orm_account.last_reconciled_at,
        last_reconciled_balance=_optional_money(orm_account.last_reconciled_balance),
        created_at=orm_account.created_at,
        updated_at=orm_account.updated_at,
    )


def transaction_to_domain(orm_transaction: ORMTransaction) -> domain.Transaction:
    """Convert SQLAlchemy Transaction model to domain Transaction entity."""
    cash_flow_category = None
    if orm_transaction.cash_flow_category is not None:
        cash_flow_category = domain.CashFlowCategory(orm_transaction.cash_flow_category)

    return domain.Transaction(
        id=orm_transaction.id,
        transaction_number=orm_transaction.transaction_number,
        type=domain.TransactionType(orm_transaction.type),
        category=orm_transaction.category,
        amount=_money(orm_transaction.amount),
        date=orm_transaction.date,
        account_id=orm_transaction.account_id,
        payment_method=domain.PaymentMethod(orm_transaction.payment_method),
        status=domain.TransactionStatus(orm_transaction.status),
        cash_flow_category=cash_flow_category,
        description=orm_transaction.description or "",
        reference_id=orm_transaction.reference_id,
        reference_type=orm_transaction.reference_type,
        reference_number=orm_transaction.reference_number,
        customer_id=orm_transaction.customer_id,
        vendor_id=orm_transaction.vendor_id,
        notes=orm_transaction.notes or "",
        created_by=orm_transaction.created_by,
        currency=orm_transaction.currency,
        is_reconciled=orm_transaction.is_reconciled,
        reconciled_at=orm_transaction.reconciled_at,
        reconciled_by=orm_transaction.reconciled_by,
        created_at=orm_transaction.created_at,
        updated_at=orm_transaction.updated_at,
    )


def reconciliation_to_domain(
    orm_reconciliation: ORMBankReconciliation,
) -> domain.BankReconciliation:
    """Convert SQLAlchemy BankReconciliation model to domain entity."""
    return domain.BankReconciliation(
        id=orm_reconciliation.id,
        account_id=orm_reconciliation.account_id,
        account_name=orm_reconciliation.account.name,
        reconciliation_date=orm_reconciliation.reconciliation_date,
        statement_date=orm_reconciliation.statement_date,
        statement_balance=_exact_money(orm_reconciliation.statement_balance),
        book_balance=_money(orm_reconciliation.book_balance),
        difference=_exact_money(orm_reconciliation.difference),
        status=domain.ReconciliationStatus(orm_reconciliation.status),
        matched_transaction_ids=tuple(orm_reconciliation.matched_transaction_ids or ()),
        unmatched_book_transaction_ids=tuple(
            orm_reconciliation.unmatched_book_transaction_ids or ()
        ),
        unmatched_bank_transactions=tuple(
            orm_reconciliation.unmatched_bank_transactions or ()
        ),
        notes=orm_reconciliation.notes or "",
        reconciled_by=orm_reconciliation.reconciled_by,
        created_at=orm_reconciliation.created_at,
    )


def end_of_day_report_to_domain(orm_report: ORMEndOfDayReport) -> domain.EndOfDayReport:
    """Convert SQLAlchemy EndOfDayReport model to domain entity."""
    return domain.EndOfDayReport(
        id=orm_report.id,
        report_date=orm_report.report_date,
        cashier_id=orm_report.cashier_id,
        opening_balance=_money(orm_report.opening_balance),
        expected_closing_balance=_money(orm_report.expected_closing_balance),
        actual_closing_balance=_money(orm_report.actual_closing_balance),
        difference=_money(orm_report.difference),
        status=domain.EndOfDayStatus(orm_report.status),
        payment_breakdown=_value_object_from_json(
            domain.PaymentBreakdown, orm_report.payment_breakdown
        ),
        cash_movements=_value_object_from_json(domain.CashMovements, orm_report.cash_movements),
        sales=_value_object_from_json(domain.SalesSummary, orm_report.sales),
        transaction_ids=tuple(orm_report.transaction_ids or ()),
        cashier_name=orm_report.cashier_name,
        shift_id=orm_report.shift_id,
        notes=orm_report.notes or "",
        closed_at=orm_report.closed_at,
        reconciled_at=orm_report.reconciled_at,
        reconciled_by=orm_report.reconciled_by,
        reconciliation_notes=orm_report.reconciliation_notes or "",
        created_at=orm_report.created_at,
        updated_at=orm_report.updated_at,
    )
