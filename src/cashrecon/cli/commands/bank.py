"""Bank reconciliation commands."""

import click

from cashrecon.cli.account_resolution import resolve_account_or_exit, resolve_optional_account
from cashrecon.cli.date_filters import parse_date_or_exit, period_flags_from, period_options, resolve_cli_date_range
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.entities import ReconciliationStatus
from cashrecon.domain.errors import DomainError
from cashrecon.utils.amount_parser import parse_amount


def _print_reconciliation(rec) -> None:
    click.echo(f"Reconciliation {rec.id}: {rec.account_name} as of {rec.statement_date}")
    click.echo(f"  Statement balance: ${rec.statement_balance:,.2f}")
    click.echo(f"  Book balance:      ${rec.book_balance:,.2f}")
    click.echo(f"  Difference:        ${rec.difference:,.2f}")
    click.echo(f"  Status: {rec.status.value}")
    if rec.matched_transaction_ids:
        click.echo(f"  Matched transactions: {', '.join(str(i) for i in rec.matched_transaction_ids)}")
    if rec.unmatched_book_transaction_ids:
        click.echo(
            "  Unmatched book transactions: "
            + ", ".join(str(i) for i in rec.unmatched_book_transaction_ids)
        )
    for line in rec.unmatched_bank_transactions:
        click.echo(f"  Unmatched bank line: {line}")
    if rec.notes:
        click.echo(f"  Notes: {rec.notes}")


@click.group()
def bank_group():
    """Reconcile accounts against bank statements."""
    pass


@bank_group.command("reconcile")
@click.argument("account", metavar="ACCOUNT")
@click.argument("statement_balance")
@click.option("--statement-date", required=True, help="Statement closing date")
@click.option("--by", "reconciled_by", required=True, help="Identity performing the reconciliation")
@click.option("--notes", default="", help="Notes")
@click.option("--bank-line", "bank_lines", multiple=True, help="Statement line with no book counterpart (repeatable)")
@click.pass_context
def reconcile(
    ctx,
    account: str,
    statement_balance: str,
    statement_date: str,
    reconciled_by: str,
    notes: str,
    bank_lines: tuple[str, ...],
):
    """Reconcile ACCOUNT against a statement showing STATEMENT_BALANCE.

    A discrepancy is reported, not treated as a failure.

    Examples:
        cashrecon bank reconcile "Main Checking" 10500.00 --statement-date 2024-10-31 --by admin
    """
    account_id = resolve_account_or_exit(ctx, ctx.obj["accounts"], account)
    day = parse_date_or_exit(ctx, statement_date, "statement date")

    try:
        rec = ctx.obj["bank"].create_bank_reconciliation(
            account_id=account_id,
            statement_date=day,
            statement_balance=parse_amount(statement_balance),
            reconciled_by=reconciled_by,
            notes=notes,
            unmatched_bank_transactions=bank_lines,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    _print_reconciliation(rec)
    if rec.status is ReconciliationStatus.DISCREPANCY:
        click.echo("Book and statement balances differ; account was not updated.")


@bank_group.command("show")
@click.argument("reconciliation_id", type=int)
@click.pass_context
def show(ctx, reconciliation_id: int):
    """Show one reconciliation."""
    try:
        rec = ctx.obj["bank"].get_bank_reconciliation(reconciliation_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _print_reconciliation(rec)


@bank_group.command("list")
@period_options
@click.option("--account", help="Account name or ID")
@click.option("--status", type=click.Choice([s.value for s in ReconciliationStatus]))
@click.pass_context
def list_reconciliations(
    ctx,
    account: str | None,
    status: str | None,
    start_date: str | None,
    end_date: str | None,
    **period_kwargs,
):
    """List reconciliations, newest first."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)
    try:
        reconciliations = ctx.obj["bank"].get_bank_reconciliations(
            account_id=account_id, status=status, start_date=start, end_date=end
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not reconciliations:
        click.echo("No reconciliations found.")
        return

    for rec in reconciliations:
        click.echo(
            f"{rec.id:<5} {rec.reconciliation_date:%Y-%m-%d} {rec.account_name:<20} "
            f"{rec.statement_balance:>12,.2f} {rec.difference:>10,.2f} {rec.status.value}"
        )


def register_commands(cli: click.Group) -> None:
    """Register bank reconciliation commands with main CLI."""
    cli.add_command(bank_group, name="bank")
