"""Shared domain error messages and error types."""

from decimal import Decimal


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations or illegal state changes."""


class ConcurrencyConflict(DomainError):
    """A per-account lock could not be acquired within the allowed wait."""


class OperationCancelled(DomainError):
    """A cancellable operation was cancelled or ran past its deadline."""


def account_not_found(account_id: int) -> str:
    """Return message for missing account."""
    return f"Account {account_id} not found"


def transaction_not_found(transaction_id: int) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def reconciliation_not_found(reconciliation_id: int) -> str:
    """Return message for missing bank reconciliation."""
    return f"Bank reconciliation {reconciliation_id} not found"


def report_not_found(report_id: int) -> str:
    """Return message for missing end-of-day report."""
    return f"End-of-day report {report_id} not found"


def negative_amount(amount: Decimal) -> str:
    """Return message for an amount below zero."""
    return f"Amount must be non-negative, got {amount}"


def duplicate_account_name(name: str) -> str:
    """Return message for duplicate account name."""
    return f"Account with name '{name}' already exists"


def invalid_status_transition(entity: str, entity_id: int, current: str, target: str) -> str:
    """Return message for a state machine transition that is not allowed."""
    return f"{entity} {entity_id} cannot move from '{current}' to '{target}'"


def lock_timeout(account_id: int, timeout: float) -> str:
    """Return message when the account lock wait is exceeded."""
    return (
        f"Account {account_id} is busy with another update "
        f"(waited {timeout:g}s); retry shortly"
    )
