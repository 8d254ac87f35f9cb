"""Cash flow commands."""

import click

from cashrecon.cli.account_resolution import resolve_optional_account
from cashrecon.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.errors import DomainError
from cashrecon.utils.amount_parser import parse_amount


def _line(label: str, amount, indent: int = 2) -> None:
    click.echo(f"{' ' * indent}{label:<{40 - indent}} ${amount:>14,.2f}")


@click.group()
def cashflow_group():
    """Cash flow statements."""
    pass


@cashflow_group.command("statement")
@period_options
@click.option("--account", help="Account name or ID (defaults to the primary account)")
@click.option("--opening-balance", default="0", show_default=True, help="Balance at the start of the range")
@click.option("--entries", "show_entries", is_flag=True, help="List every entry with its running balance")
@click.pass_context
def statement(
    ctx,
    account: str | None,
    opening_balance: str,
    show_entries: bool,
    start_date: str | None,
    end_date: str | None,
    **period_kwargs,
):
    """Show the cash flow statement.

    Defaults to the current month on the primary account.

    Examples:
        cashrecon cashflow statement
        cashrecon cashflow statement --last-month --account "Main Checking" --entries
    """
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)

    try:
        result = ctx.obj["cashflow"].get_cash_flow_statement(
            start_date=start,
            end_date=end,
            account_id=account_id,
            opening_balance=parse_amount(opening_balance),
        )
    except (DomainError, ValueError) as e:
        handle_domain_error(ctx, e)

    click.echo(f"Cash flow for account {result.account_id}: {result.start_date} to {result.end_date}")
    click.echo("=" * 60)
    _line("Opening balance", result.opening_balance, indent=0)

    op = result.operating_activities
    click.echo("\nOperating activities")
    _line("Receipts from customers", op.receipts_from_customers)
    _line("Payments to suppliers", -op.payments_to_suppliers)
    _line("Employee salaries", -op.employee_salaries)
    _line("Other operating expenses", -op.other_operating_expenses)
    _line("Net operating cash", op.net_operating_cash, indent=0)

    inv = result.investing_activities
    click.echo("\nInvesting activities")
    _line("Equipment purchases", -inv.equipment_purchases)
    _line("Asset sales", inv.asset_sales)
    _line("Net investing cash", inv.net_investing_cash, indent=0)

    fin = result.financing_activities
    click.echo("\nFinancing activities")
    _line("Loan proceeds", fin.loan_proceeds)
    _line("Loan repayments", -fin.loan_repayments)
    _line("Owner contributions", fin.owner_contributions)
    _line("Owner withdrawals", -fin.owner_withdrawals)
    _line("Transfers out", -fin.transfers_out)
    _line("Net financing cash", fin.net_financing_cash, indent=0)

    click.echo("-" * 60)
    _line("Total inflows", result.total_inflows, indent=0)
    _line("Total outflows", result.total_outflows, indent=0)
    _line("Net cash flow", result.net_cash_flow, indent=0)
    _line("Closing balance", result.closing_balance, indent=0)

    if show_entries and result.entries:
        click.echo(f"\n{'Date':<12} {'Txn':<6} {'Category':<26} {'Amount':>12} {'Balance':>14}")
        for entry in result.entries:
            signed = entry.amount if entry.is_inflow else -entry.amount
            click.echo(
                f"{str(entry.date):<12} {entry.transaction_id:<6} "
                f"{entry.cash_flow_category.value:<26} {signed:>12,.2f} {entry.balance:>14,.2f}"
            )


@cashflow_group.command("summary")
@period_options
@click.option("--account", help="Account name or ID (defaults to the primary account)")
@click.pass_context
def summary(ctx, account: str | None, start_date: str | None, end_date: str | None, **period_kwargs):
    """Show cash across accounts with the period's net flows."""
    start, end = resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )
    account_id = resolve_optional_account(ctx, ctx.obj["accounts"], account)

    try:
        result = ctx.obj["cashflow"].get_cash_flow_summary(
            start_date=start, end_date=end, account_id=account_id
        )
    except DomainError as e:
        handle_domain_error(ctx, e)

    _line("Total cash", result.total_cash, indent=0)
    for acc in result.accounts:
        _line(f"{acc.name} ({acc.account_type})", acc.balance)
    _line("Operating cash flow", result.operating_cash_flow, indent=0)
    _line("Investing cash flow", result.investing_cash_flow, indent=0)
    _line("Financing cash flow", result.financing_cash_flow, indent=0)
    _line("Net cash flow", result.net_cash_flow, indent=0)


def register_commands(cli: click.Group) -> None:
    """Register cash flow commands with main CLI."""
    cli.add_command(cashflow_group, name="cashflow")
