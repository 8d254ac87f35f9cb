"""Utility for resolving account names to IDs."""

from cashrecon.domain.account import AccountService
from cashrecon.domain.errors import NotFoundError, account_not_found


def resolve_account(account_service: AccountService, account: str | int) -> int:
    """Resolve account name or ID to account ID.

    A value that parses as an integer is treated as an ID; anything else is
    matched against account names, including inactive accounts.

    Args:
        account_service: AccountService instance
        account: Account name, or ID as int or numeric string

    Returns:
        Account ID

    Raises:
        NotFoundError: If account is not found
    """
    try:
        account_id = int(account)
    except (ValueError, TypeError):
        account_id = None

    if account_id is not None:
        if account_service.get_account(account_id) is None:
            raise NotFoundError(account_not_found(account_id))
        return account_id

    for acc in account_service.list_accounts(include_inactive=True):
        if acc.name == account:
            return acc.id

    raise NotFoundError(f"Account '{account}' not found")
