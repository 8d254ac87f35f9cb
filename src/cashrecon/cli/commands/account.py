"""Account management commands."""

import click

from cashrecon.cli.account_resolution import resolve_account_or_exit
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.account import ACCOUNT_TYPES
from cashrecon.domain.errors import DomainError
from cashrecon.utils.amount_parser import parse_amount


@click.group()
def account_group():
    """Manage bank and cash accounts."""
    pass


@account_group.command("create")
@click.argument("name", metavar="ACCOUNT_NAME")
@click.option("--bank", help="Bank name (defaults to account name if not provided)")
@click.option("--type", "account_type", type=click.Choice(ACCOUNT_TYPES), default="checking", show_default=True)
@click.option("--number", "account_number", help="Masked account number, e.g. ****1234")
@click.option("--currency", default="USD", show_default=True, help="ISO currency code")
@click.option("--opening-balance", default="0", help="Starting balance")
@click.option("--primary", is_flag=True, help="Make this the primary account")
@click.pass_context
def create_account(
    ctx,
    name: str,
    bank: str | None,
    account_type: str,
    account_number: str | None,
    currency: str,
    opening_balance: str,
    primary: bool,
):
    """Create a new account.

    Examples:
        cashrecon account create "Main Checking" --bank "Chase" --primary
        cashrecon account create "Front Desk Drawer" --type cash --opening-balance 500
    """
    service = ctx.obj["accounts"]
    bank_name = bank if bank is not None else name

    try:
        account_id = service.create_account(
            name=name,
            bank_name=bank_name,
            account_type=account_type,
            account_number=account_number,
            currency=currency,
            opening_balance=parse_amount(opening_balance),
            is_primary=primary,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Created account '{name}' (ID: {account_id})")


@account_group.command("list")
@click.option("--all", "include_inactive", is_flag=True, help="Include inactive accounts")
@click.pass_context
def list_accounts(ctx, include_inactive: bool):
    """List accounts."""
    accounts = ctx.obj["accounts"].list_accounts(include_inactive=include_inactive)
    if not accounts:
        click.echo("No accounts found.")
        return

    click.echo("\nAccounts:")
    click.echo("-" * 80)
    for acc in accounts:
        flags = []
        if acc.is_primary:
            flags.append("primary")
        if not acc.is_active:
            flags.append("inactive")
        suffix = f" [{', '.join(flags)}]" if flags else ""
        click.echo(
            f"ID: {acc.id:3d} | {acc.name:20s} | {acc.account_type:8s} | "
            f"Balance: ${acc.current_balance:>12,.2f}{suffix}"
        )


@account_group.command("show")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def show_account(ctx, account: str):
    """Show account details. ACCOUNT can be an account name or ID."""
    service = ctx.obj["accounts"]
    account_id = resolve_account_or_exit(ctx, service, account)
    acc = service.require_account(account_id)

    click.echo(f"Account {acc.id}: {acc.name}")
    click.echo(f"  Bank: {acc.bank_name}")
    click.echo(f"  Type: {acc.account_type} ({acc.currency})")
    click.echo(f"  Current balance: ${acc.current_balance:,.2f}")
    click.echo(f"  Available balance: ${acc.available_balance:,.2f}")
    if acc.last_reconciled_at is not None:
        click.echo(
            f"  Last reconciled: {acc.last_reconciled_at:%Y-%m-%d %H:%M} "
            f"at ${acc.last_reconciled_balance:,.2f}"
        )
    else:
        click.echo("  Last reconciled: never")


@account_group.command("set-primary")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def set_primary(ctx, account: str):
    """Make ACCOUNT the primary account for cash flow reports."""
    service = ctx.obj["accounts"]
    account_id = resolve_account_or_exit(ctx, service, account)
    try:
        acc = service.set_primary(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"'{acc.name}' is now the primary account")


@account_group.command("deactivate")
@click.argument("account", metavar="ACCOUNT")
@click.pass_context
def deactivate_account(ctx, account: str):
    """Deactivate ACCOUNT. Its history is kept."""
    service = ctx.obj["accounts"]
    account_id = resolve_account_or_exit(ctx, service, account)
    try:
        acc = service.deactivate(account_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Deactivated account '{acc.name}'")


def register_commands(cli):
    """Register account commands with main CLI."""
    cli.add_command(account_group, name="account")
