"""Transaction commands."""

import click

from cashrecon.cli.account_resolution import resolve_optional_account
from cashrecon.cli.date_filters import parse_date_or_exit, period_flags_from, period_options, resolve_cli_date_range
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.entities import (
    CashFlowCategory,
    PaymentMethod,
    TransactionFilter,
    TransactionStatus,
    TransactionType,
)
from cashrecon.domain.errors import DomainError
from cashrecon.utils.amount_parser import parse_amount


def _choice(enum_cls) -> click.Choice:
    return click.Choice([member.value for member in enum_cls])


@click.group()
def transaction_group():
    """Record and inspect transactions."""
    pass


@transaction_group.command("add")
@click.argument("txn_type", metavar="TYPE", type=_choice(TransactionType))
@click.argument("amount")
@click.option("--account", help="Account name or ID (defaults to the primary account)")
@click.option("--date", "txn_date", help="Transaction date (YYYY-MM-DD or relative like 'today')")
@click.option("--category", default="other", show_default=True, help="Category tag, e.g. rent or deposit")
@click.option("--method", "payment_method", type=_choice(PaymentMethod), default="cash", show_default=True)
@click.option("--status", type=_choice(TransactionStatus), default="completed", show_default=True)
@click.option("--cash-flow-category", type=_choice(CashFlowCategory), help="Explicit cash flow category")
@click.option("--description", default="", help="Transaction description")
@click.option("--reference", help="Reference number")
@click.option("--vendor", help="Vendor ID for expenses")
@click.option("--customer", help="Customer ID for income")
@click.option("--notes", default="", help="Notes")
@click.option("--by", "created_by", help="Identity of the person recording it")
@click.pass_context
def add_transaction(
    ctx,
    txn_type: str,
    amount: str,
    account: str | None,
    txn_date: str | None,
    category: str,
    payment_method: str,
    status: str,
    cash_flow_category: str | None,
    description: str,
    reference: str | None,
    vendor: str | None,
    customer: str | None,
    notes: str,
    created_by: str | None,
):
    """Record a transaction. AMOUNT is non-negative; TYPE gives the direction.

    Examples:
        cashrecon transaction add income 45.00 --method card --description "Yoga class"
        cashrecon transaction add expense 1200 --category rent --method bank_transfer
    """
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)
    day = parse_date_or_exit(ctx, txn_date, "date")

    try:
        txn = ctx.obj["transactions"].append(
            type=txn_type,
            amount=parse_amount(amount),
            account_id=account_id,
            date=day,
            category=category,
            payment_method=payment_method,
            status=status,
            cash_flow_category=cash_flow_category,
            description=description,
            reference_number=reference,
            vendor_id=vendor,
            customer_id=customer,
            notes=notes,
            created_by=created_by,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo(
        f"Recorded {txn.transaction_number} (ID: {txn.id}): {txn.type.value} "
        f"${txn.amount:,.2f} [{txn.cash_flow_category.value}]"
    )


@transaction_group.command("list")
@period_options
@click.option("--type", "txn_type", type=_choice(TransactionType))
@click.option("--status", type=_choice(TransactionStatus))
@click.option("--method", "payment_method", type=_choice(PaymentMethod))
@click.option("--category", help="Category tag")
@click.option("--account", help="Account name or ID")
@click.option("--search", help="Search number, description and reference")
@click.option("--min-amount", help="Minimum amount")
@click.option("--max-amount", help="Maximum amount")
@click.option("--unreconciled", is_flag=True, help="Show only unreconciled transactions")
@click.pass_context
def list_transactions(
    ctx,
    txn_type: str | None,
    status: str | None,
    payment_method: str | None,
    category: str | None,
    account: str | None,
    search: str | None,
    min_amount: str | None,
    max_amount: str | None,
    unreconciled: bool,
    start_date: str | None,
    end_date: str | None,
    **period_kwargs,
):
    """List transactions, newest first."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)

    try:
        filters = TransactionFilter(
            type=TransactionType(txn_type) if txn_type else None,
            status=TransactionStatus(status) if status else None,
            payment_method=PaymentMethod(payment_method) if payment_method else None,
            category=category,
            account_id=account_id,
            start_date=start,
            end_date=end,
            search=search,
            min_amount=parse_amount(min_amount) if min_amount else None,
            max_amount=parse_amount(max_amount) if max_amount else None,
            is_reconciled=False if unreconciled else None,
        )
        transactions = ctx.obj["transactions"].query(filters)
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    if not transactions:
        click.echo("No transactions found.")
        return

    click.echo(f"\nFound {len(transactions)} transaction(s):")
    click.echo("-" * 100)
    click.echo(
        f"{'ID':<6} {'Number':<15} {'Date':<12} {'Type':<9} {'Amount':>12}  {'Status':<10} {'R':<2} {'Description':<30}"
    )
    click.echo("-" * 100)
    for txn in transactions:
        reconciled = "*" if txn.is_reconciled else ""
        click.echo(
            f"{txn.id:<6} {txn.transaction_number:<15} {str(txn.date):<12} {txn.type.value:<9} "
            f"{txn.amount:>12,.2f}  {txn.status.value:<10} {reconciled:<2} {txn.description[:30]:<30}"
        )


@transaction_group.command("show")
@click.argument("transaction_id", type=int)
@click.pass_context
def show_transaction(ctx, transaction_id: int):
    """Show one transaction."""
    try:
        txn = ctx.obj["transactions"].require_transaction(transaction_id)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Transaction {txn.id} ({txn.transaction_number})")
    click.echo(f"  Date: {txn.date}")
    click.echo(f"  Type: {txn.type.value}")
    click.echo(f"  Amount: ${txn.amount:,.2f} {txn.currency}")
    click.echo(f"  Account ID: {txn.account_id}")
    click.echo(f"  Category: {txn.category}")
    if txn.cash_flow_category is not None:
        click.echo(f"  Cash flow: {txn.cash_flow_category.value} ({txn.cash_flow_category.activity.value})")
    click.echo(f"  Payment method: {txn.payment_method.value}")
    click.echo(f"  Status: {txn.status.value}")
    if txn.description:
        click.echo(f"  Description: {txn.description}")
    if txn.reference_number:
        click.echo(f"  Reference: {txn.reference_number}")
    if txn.is_reconciled:
        click.echo(f"  Reconciled: {txn.reconciled_at:%Y-%m-%d %H:%M} by {txn.reconciled_by}")
    else:
        click.echo("  Reconciled: no")


@transaction_group.command("reconcile")
@click.argument("transaction_ids", type=int, nargs=-1, required=True)
@click.option("--by", "reconciled_by", required=True, help="Identity performing the reconciliation")
@click.pass_context
def reconcile_transactions(ctx, transaction_ids: tuple[int, ...], reconciled_by: str):
    """Mark transactions as reconciled."""
    try:
        count = ctx.obj["transactions"].reconcile(list(transaction_ids), reconciled_by)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Reconciled {count} transaction(s)")


@transaction_group.command("set-status")
@click.argument("transaction_id", type=int)
@click.argument("status", type=click.Choice(["completed", "failed", "cancelled"]))
@click.pass_context
def set_status(ctx, transaction_id: int, status: str):
    """Settle a pending transaction."""
    try:
        txn = ctx.obj["transactions"].update_status(transaction_id, status)
    except DomainError as e:
        handle_domain_error(ctx, e)
    click.echo(f"Transaction {txn.id} is now {txn.status.value}")


@transaction_group.command("stats")
@period_options
@click.option("--account", help="Account name or ID")
@click.pass_context
def transaction_stats(ctx, account: str | None, start_date: str | None, end_date: str | None, **period_kwargs):
    """Show counts and totals."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)
    stats = ctx.obj["transactions"].get_stats(
        TransactionFilter(account_id=account_id, start_date=start, end_date=end)
    )

    click.echo(f"Transactions: {stats.total_transactions}")
    click.echo(f"  Income:   ${stats.total_income:>12,.2f}")
    click.echo(f"  Expenses: ${stats.total_expenses:>12,.2f}")
    click.echo(f"  Net:      ${stats.net_income:>12,.2f}")
    click.echo(f"  Pending: {stats.pending_count}  Completed: {stats.completed_count}")
    click.echo(f"  Reconciled: {stats.reconciled_count}  Unreconciled: {stats.unreconciled_count}")
    if stats.by_payment_method:
        click.echo("  By payment method:")
        for method, total in sorted(stats.by_payment_method.items()):
            click.echo(f"    {method:<15} ${total:>12,.2f}")


def register_commands(cli: click.Group) -> None:
    """Register transaction commands with main CLI."""
    cli.add_command(transaction_group, name="transaction")
