"""Main CLI entry point."""

import logging

import click

from cashrecon.database.factories import create_sqlite_database
from cashrecon.domain.account import AccountService
from cashrecon.domain.allocation import load_allocation_policy
from cashrecon.domain.cashflow import CashFlowService
from cashrecon.domain.clock import SystemClock
from cashrecon.domain.end_of_day import EndOfDayService
from cashrecon.domain.errors import DomainError
from cashrecon.domain.locking import AccountLockRegistry
from cashrecon.domain.reconciliation import BankReconciliationService
from cashrecon.domain.reports import ReportService
from cashrecon.domain.transaction import TransactionService

# Import and register all commands at module level
from cashrecon.cli.commands import (
    account,
    transaction,
    cashflow,
    bank,
    eod,
    report,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def build_services(db, policy_path: str | None = None) -> dict:
    """Wire the domain services around one database, clock and lock registry."""
    clock = SystemClock()
    locks = AccountLockRegistry()
    policy = load_allocation_policy(policy_path)
    transactions = TransactionService(db, clock=clock, locks=locks)
    return {
        "db": db,
        "accounts": AccountService(db, clock=clock, locks=locks),
        "transactions": transactions,
        "cashflow": CashFlowService(db, transactions=transactions, clock=clock),
        "bank": BankReconciliationService(db, transactions=transactions, clock=clock, locks=locks),
        "eod": EndOfDayService(db, transactions=transactions, policy=policy, clock=clock),
        "reports": ReportService(db, transactions=transactions, policy=policy, clock=clock),
    }


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CASHRECON_DB_PATH environment variable)",
    envvar="CASHRECON_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    envvar="CASHRECON_LOG_LEVEL",
    help="Logging verbosity (CASHRECON_LOG_LEVEL)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str):
    """Cashrecon - cash reconciliation and financial reporting.

    Record money movements, reconcile accounts against bank statements,
    close out the daily cash drawer and produce cash flow, profit and loss
    and tax reports.
    """
    ctx.ensure_object(dict)
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_sqlite_database(database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.call_on_close(db.disconnect)
        try:
            ctx.obj.update(build_services(db))
        except DomainError as e:
            click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


# Register all commands
account.register_commands(cli)
transaction.register_commands(cli)
cashflow.register_commands(cli)
bank.register_commands(cli)
eod.register_commands(cli)
report.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
