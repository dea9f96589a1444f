"""CLI error handling helpers."""

import logging

import click

from clinicfin.domain.errors import DomainError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Scripts may retry when the database was unreachable
STORE_UNAVAILABLE_EXIT = 2


def handle_domain_error(ctx: click.Context, error: DomainError | ValueError) -> None:
    """Render a domain error and exit with failure."""
    logger.debug("%s failed", ctx.command_path, exc_info=error)
    click.echo(f"Error: {error}", err=True)
    ctx.exit(STORE_UNAVAILABLE_EXIT if isinstance(error, StoreUnavailableError) else 1)
