"""Turn domain failures into CLI output and exit codes."""

import logging

import click

from cashrecon.domain.errors import ConcurrencyConflict, DomainError

logger = logging.getLogger(__name__)


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Print the failure on stderr and stop the command with exit status 1."""
    logger.debug("Command %s failed: %r", ctx.info_name, error)
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, ConcurrencyConflict):
        click.echo("Another update is in progress; try the command again.", err=True)
    ctx.exit(1)
