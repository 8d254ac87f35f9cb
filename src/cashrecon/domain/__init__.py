"""Domain layer for cashrecon application.

Services are resolved lazily because the database layer imports the entity
module from this package.
"""

_SERVICES = {
    "AccountService": "cashrecon.domain.account",
    "TransactionService": "cashrecon.domain.transaction",
    "CashFlowService": "cashrecon.domain.cashflow",
    "BankReconciliationService": "cashrecon.domain.reconciliation",
    "EndOfDayService": "cashrecon.domain.end_of_day",
    "ReportService": "cashrecon.domain.reports",
}

__all__ = list(_SERVICES)


def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
