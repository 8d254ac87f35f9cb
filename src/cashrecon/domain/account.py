"""Account domain service."""

import logging
from decimal import Decimal
from typing import Any, Optional

from cashrecon.database.base import Database
from cashrecon.domain.clock import Clock, SystemClock
from cashrecon.domain.entities import BankAccount
from cashrecon.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    account_not_found,
    duplicate_account_name,
)
from cashrecon.domain.locking import AccountLockRegistry
from cashrecon.domain.money import to_money

logger = logging.getLogger(__name__)

ACCOUNT_TYPES = ("checking", "savings", "cash")


class AccountService:
    """Service for managing bank and cash accounts."""

    def __init__(
        self,
        db: Database,
        clock: Optional[Clock] = None,
        locks: Optional[AccountLockRegistry] = None,
    ):
        """Initialize account service.

        Args:
            db: Database instance
            clock: Time source (defaults to the system clock)
            locks: Per-account lock registry shared with the other services
        """
        self.db = db
        self.clock = clock or SystemClock()
        self.locks = locks or AccountLockRegistry()

    def create_account(
        self,
        name: str,
        bank_name: str,
        account_type: str = "checking",
        account_number: Optional[str] = None,
        currency: str = "USD",
        opening_balance: Any = Decimal("0.00"),
        is_primary: bool = False,
    ) -> int:
        """Create a new account.

        Args:
            name: Account name
            bank_name: Bank name
            account_type: One of checking, savings, cash
            account_number: Optional masked account number
            currency: ISO currency code
            opening_balance: Starting balance
            is_primary: Make this the primary account (demotes any other)

        Returns:
            Account ID

        Raises:
            ValidationError: If name is empty or account type is unknown
            ConflictError: If account name already exists
        """
        if not name or not name.strip():
            raise ValidationError("Account name is required")
        if account_type not in ACCOUNT_TYPES:
            raise ValidationError(
                f"Unknown account type '{account_type}'. Expected one of: {', '.join(ACCOUNT_TYPES)}"
            )

        for acc in self.db.list_accounts(include_inactive=True):
            if acc.name == name:
                raise ConflictError(duplicate_account_name(name))

        account_id = self.db.create_account(
            name=name,
            bank_name=bank_name,
            account_type=account_type,
            account_number=account_number,
            currency=currency,
            opening_balance=to_money(opening_balance, "opening balance"),
            is_primary=is_primary,
            created_at=self.clock.now(),
        )
        logger.info("Created account %s (%s)", account_id, name)
        return account_id

    def get_account(self, account_id: int) -> Optional[BankAccount]:
        """Get account by ID.

        Args:
            account_id: Account ID

        Returns:
            Account entity or None if not found
        """
        return self.db.get_account(account_id)

    def require_account(self, account_id: int) -> BankAccount:
        """Get account by ID, raising NotFoundError when absent."""
        account = self.db.get_account(account_id)
        if account is None:
            raise NotFoundError(account_not_found(account_id))
        return account

    def list_accounts(self, include_inactive: bool = False) -> list[BankAccount]:
        """List accounts.

        Args:
            include_inactive: If True, include deactivated accounts

        Returns:
            List of account entities
        """
        return self.db.list_accounts(include_inactive=include_inactive)

    def get_primary_account(self) -> Optional[BankAccount]:
        """Return the active primary account, if one is set."""
        for acc in self.db.list_accounts():
            if acc.is_primary:
                return acc
        return None

    def set_balance(self, account_id: int, balance: Any) -> BankAccount:
        """Explicitly set an account's current and available balance."""
        amount = to_money(balance, "balance")
        with self.locks.hold(account_id):
            self.require_account(account_id)
            self.db.set_account_balance(account_id, amount, self.clock.now())
        logger.info("Set balance of account %s to %s", account_id, amount)
        return self.require_account(account_id)

    def set_primary(self, account_id: int) -> BankAccount:
        """Make an account the primary cash-flow target.

        Raises:
            NotFoundError: If account doesn't exist
            ValidationError: If account is inactive
        """
        account = self.require_account(account_id)
        if not account.is_active:
            raise ValidationError(f"Account {account_id} is inactive and cannot be primary")
        self.db.set_primary_account(account_id, self.clock.now())
        return self.require_account(account_id)

    def deactivate(self, account_id: int) -> BankAccount:
        """Deactivate an account; a primary account loses its primary flag."""
        with self.locks.hold(account_id):
            self.require_account(account_id)
            self.db.set_account_active(account_id, False, self.clock.now())
        return self.require_account(account_id)
