"""End-of-day cash drawer commands."""

import click

from cashrecon.cli.date_filters import parse_date_or_exit, period_flags_from, period_options, resolve_cli_date_range
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.entities import EndOfDayStatus
from cashrecon.domain.errors import DomainError
from cashrecon.utils.amount_parser import parse_amount


def _print_report(report) -> None:
    click.echo(f"End-of-day report {report.id} for {report.report_date} ({report.status.value})")
    click.echo(f"  Cashier: {report.cashier_name or report.cashier_id}")
    click.echo("  Payments:")
    breakdown = report.payment_breakdown
    for label, amount in (
        ("Cash", breakdown.cash),
        ("Card", breakdown.card),
        ("Bank transfer", breakdown.bank_transfer),
        ("Mobile payment", breakdown.mobile_payment),
        ("Store credit", breakdown.store_credit),
        ("Other", breakdown.other),
    ):
        click.echo(f"    {label:<20} ${amount:>10,.2f}")

    movements = report.cash_movements
    click.echo("  Drawer:")
    click.echo(f"    {'Opening float':<20} ${report.opening_balance:>10,.2f}")
    click.echo(f"    {'Cash sales':<20} ${movements.cash_sales:>10,.2f}")
    click.echo(f"    {'Cash expenses':<20} ${-movements.cash_expenses:>10,.2f}")
    click.echo(f"    {'Deposits':<20} ${movements.cash_deposits:>10,.2f}")
    click.echo(f"    {'Withdrawals':<20} ${-movements.cash_withdrawals:>10,.2f}")
    click.echo(f"    {'Expected':<20} ${report.expected_closing_balance:>10,.2f}")
    click.echo(f"    {'Counted':<20} ${report.actual_closing_balance:>10,.2f}")
    click.echo(f"    {'Difference':<20} ${report.difference:>10,.2f}")
    click.echo(
        f"  Sales: {report.sales.total_transactions} transaction(s), "
        f"revenue ${report.sales.total_revenue:,.2f}, tax ${report.sales.total_tax:,.2f}"
    )
    if report.reconciliation_notes:
        click.echo(f"  Reconciliation notes: {report.reconciliation_notes}")


@click.group()
def eod_group():
    """Daily cash drawer closeout."""
    pass


@eod_group.command("generate")
@click.option("--date", "report_date", help="Day to report on (defaults to today)")
@click.option("--cashier", "cashier_id", required=True, help="Cashier ID")
@click.option("--cashier-name", help="Cashier display name")
@click.option("--shift", "shift_id", help="Shift ID")
@click.option("--opening-balance", required=True, help="Cash float at the start of the day")
@click.option("--counted", help="Counted drawer amount (defaults to the expected balance)")
@click.option("--notes", default="", help="Notes")
@click.pass_context
def generate(
    ctx,
    report_date: str | None,
    cashier_id: str,
    cashier_name: str | None,
    shift_id: str | None,
    opening_balance: str,
    counted: str | None,
    notes: str,
):
    """Generate the closeout report for a day.

    Examples:
        cashrecon eod generate --cashier admin --opening-balance 500 --counted 948.50
    """
    day = parse_date_or_exit(ctx, report_date, "date")
    try:
        report = ctx.obj["eod"].generate_end_of_day_report(
            cashier_id=cashier_id,
            opening_balance=parse_amount(opening_balance),
            report_date=day,
            actual_closing_balance=parse_amount(counted) if counted is not None else None,
            cashier_name=cashier_name,
            shift_id=shift_id,
            notes=notes,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    _print_report(report)


@eod_group.command("close")
@click.argument("report_id", type=int)
@click.option("--counted", help="Counted drawer amount")
@click.pass_context
def close(ctx, report_id: int, counted: str | None):
    """Close an open report."""
    try:
        report = ctx.obj["eod"].close_end_of_day_report(
            report_id, actual_closing_balance=parse_amount(counted) if counted is not None else None
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    click.echo(f"Closed end-of-day report {report.id} (difference ${report.difference:,.2f})")


@eod_group.command("reconcile")
@click.argument("report_id", type=int)
@click.option("--counted", required=True, help="Counted drawer amount")
@click.option("--by", "reconciled_by", required=True, help="Identity performing the reconciliation")
@click.option("--notes", default="", help="Reconciliation notes")
@click.pass_context
def reconcile(ctx, report_id: int, counted: str, reconciled_by: str, notes: str):
    """Reconcile a report against the counted drawer."""
    try:
        report = ctx.obj["eod"].reconcile_end_of_day_report(
            report_id,
            actual_closing_balance=parse_amount(counted),
            reconciled_by=reconciled_by,
            notes=notes,
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)
    _print_report(report)


@eod_group.command("show")
@click.argument("report_id", type=int)
@click.pass_context
def show(ctx, report_id: int):
    """Show one report."""
    try:
        report = ctx.obj["eod"].get_end_of_day_report(report_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
    _print_report(report)


@eod_group.command("list")
@period_options
@click.option("--status", type=click.Choice([s.value for s in EndOfDayStatus]))
@click.pass_context
def list_reports(ctx, status: str | None, start_date: str | None, end_date: str | None, **period_kwargs):
    """List reports, newest first."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    try:
        reports = ctx.obj["eod"].get_end_of_day_reports(start_date=start, end_date=end, status=status)
    except DomainError as e:
        handle_domain_error(ctx, e)

    if not reports:
        click.echo("No end-of-day reports found.")
        return

    for report in reports:
        click.echo(
            f"{report.id:<5} {str(report.report_date):<12} {report.cashier_id:<12} "
            f"{report.expected_closing_balance:>10,.2f} {report.difference:>8,.2f} {report.status.value}"
        )


def register_commands(cli: click.Group) -> None:
    """Register end-of-day commands with main CLI."""
    cli.add_command(eod_group, name="eod")
