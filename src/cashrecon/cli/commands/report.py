"""Financial report commands."""

import click

from cashrecon.cli.date_filters import period_flags_from, period_options, resolve_cli_date_range
from cashrecon.cli.error_handling import handle_domain_error
from cashrecon.domain.errors import DomainError


def _line(label: str, amount, indent: int = 2) -> None:
    click.echo(f"{' ' * indent}{label:<{40 - indent}} ${amount:>14,.2f}")


def _period(ctx, start_date, end_date, period_kwargs):
    return resolve_cli_date_range(
        ctx,
        start_date=start_date,
        end_date=end_date,
        period_flags=period_flags_from(period_kwargs),
    )


@click.group()
def report_group():
    """Profit and loss, tax and summary reports."""
    pass


@report_group.command("profit-loss")
@period_options
@click.pass_context
def profit_loss(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Profit and loss statement (defaults to year to date)."""
    start, end = _period(ctx, start_date, end_date, period_kwargs)
    try:
        pl = ctx.obj["reports"].generate_profit_loss(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Profit and loss: {pl.start_date} to {pl.end_date} (policy {pl.allocation_policy})")
    click.echo("=" * 60)
    _line("Class revenue", pl.revenue.class_revenue)
    _line("Membership revenue", pl.revenue.membership_revenue)
    _line("Product sales", pl.revenue.product_sales)
    _line("Other revenue", pl.revenue.other_revenue)
    _line("Total revenue", pl.total_revenue, indent=0)
    _line("Product costs", pl.cogs.product_costs)
    _line("Instructor fees", pl.cogs.instructor_fees)
    _line("Other direct costs", pl.cogs.other_direct_costs)
    _line("Cost of goods sold", pl.cost_of_goods_sold, indent=0)
    _line(f"Gross profit ({pl.gross_profit_margin}%)", pl.gross_profit, indent=0)
    opex = pl.operating_expenses
    for label, amount in (
        ("Salaries", opex.salaries),
        ("Rent", opex.rent),
        ("Utilities", opex.utilities),
        ("Marketing", opex.marketing),
        ("Insurance", opex.insurance),
        ("Maintenance", opex.maintenance),
        ("Supplies", opex.supplies),
        ("Depreciation", opex.depreciation),
        ("Other", opex.other),
    ):
        _line(label, amount)
    _line("Operating expenses", pl.total_operating_expenses, indent=0)
    _line(f"Operating income ({pl.operating_margin}%)", pl.operating_income, indent=0)
    _line(f"Net income ({pl.net_profit_margin}%)", pl.net_income, indent=0)


@report_group.command("tax")
@period_options
@click.pass_context
def tax(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Sales tax report (defaults to year to date)."""
    start, end = _period(ctx, start_date, end_date, period_kwargs)
    try:
        result = ctx.obj["reports"].generate_tax_report(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Tax report: {result.start_date} to {result.end_date}")
    _line("Total sales", result.total_sales, indent=0)
    _line("Taxable sales", result.taxable_sales)
    _line("Non-taxable sales", result.non_taxable_sales)
    for rate, amount in result.tax_by_rate.items():
        _line(f"Tax at {rate}", amount)
    _line("Net tax due", result.net_tax_due, indent=0)


@report_group.command("summary")
@period_options
@click.pass_context
def summary(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Financial summary (defaults to year to date)."""
    start, end = _period(ctx, start_date, end_date, period_kwargs)
    try:
        result = ctx.obj["reports"].generate_financial_summary(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Financial summary: {result.start_date} to {result.end_date}")
    _line("Revenue", result.total_revenue, indent=0)
    _line("Expenses", result.total_expenses, indent=0)
    _line("Net income", result.net_income, indent=0)
    _line("Cash balance", result.cash_balance, indent=0)
    _line("Accounts receivable", result.accounts_receivable, indent=0)
    _line("Accounts payable", result.accounts_payable, indent=0)
    click.echo(f"Profit margin: {result.profit_margin}%")


@report_group.command("margins")
@period_options
@click.pass_context
def margins(ctx, start_date: str | None, end_date: str | None, **period_kwargs):
    """Margin per revenue line, highest first."""
    start, end = _period(ctx, start_date, end_date, period_kwargs)
    try:
        result = ctx.obj["reports"].generate_profit_margin_analysis(start, end)
    except DomainError as e:
        handle_domain_error(ctx, e)

    click.echo(f"Overall margin: {result.overall_margin}%")
    for line in result.top_margin_lines:
        click.echo(
            f"  {line.name:<15} revenue ${line.revenue:>12,.2f}  cost ${line.cost:>12,.2f}  "
            f"margin {line.margin}%"
        )


def register_commands(cli: click.Group) -> None:
    """Register report commands with main CLI."""
    cli.add_command(report_group, name="report")
