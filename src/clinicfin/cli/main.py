"""Main CLI entry point."""

import logging
from dataclasses import replace

import click

from clinicfin.config import load_settings
from clinicfin.database.factories import create_database

# Import and register all commands at module level
from clinicfin.cli.commands import (
    audit,
    clinic,
    line_items,
    upload,
    verify,
    versions,
)


@click.group()
@click.option(
    "--db-path",
    type=click.Path(),
    help="Path to database file (overrides CLINICFIN_DB_PATH environment variable)",
    envvar="CLINICFIN_DB_PATH",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (overrides CLINICFIN_LOG_LEVEL environment variable)",
)
@click.pass_context
def cli(ctx, db_path: str | None, log_level: str | None):
    """Clinicfin - Clinic P&L ingestion and versioning.

    Upload QuickBooks profit & loss exports for several clinics, keep every
    clinic-month as a versioned snapshot and audit the derived totals.
    """
    ctx.ensure_object(dict)

    settings = load_settings()
    if log_level is not None:
        settings = replace(settings, log_level=log_level.upper())
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    ctx.obj["settings"] = settings

    # Initialize database connection only when actually running a command
    # (not when showing help)
    if ctx.invoked_subcommand is not None:
        db = create_database(settings, database_path=db_path)
        db.connect()
        db.initialize_schema()
        ctx.obj["db"] = db
        ctx.call_on_close(db.disconnect)


# Register all commands
clinic.register_commands(cli)
upload.register_commands(cli)
versions.register_commands(cli)
audit.register_commands(cli)
verify.register_commands(cli)
line_items.register_commands(cli)


def main():
    """Main entry point for CLI."""
    cli()


if __name__ == "__main__":
    main()
