"""Verify command."""

import click

from clinicfin.cli.error_handling import handle_domain_error
from clinicfin.domain.errors import DomainError
from clinicfin.domain.verification import VerificationService


@click.command("verify")
@click.argument("csv_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--clinic", help="Clinic name or ID (defaults to the clinic named in the file)")
@click.pass_context
def verify_file(ctx, csv_file: str, clinic: str | None):
    """Compare a P&L CSV with the stored records."""
    db = ctx.obj["db"]
    service = VerificationService(db)

    try:
        report = service.verify_file(csv_file, clinic=clinic)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"\nVerified {report.file} against clinic '{report.clinic_name}':")
    click.echo(f"  Months checked: {report.months_checked}")
    click.echo(f"  Months matching: {report.matched_months}")
    for year, month in report.missing_months:
        click.echo(f"  Missing: {year}/{month:02d}")
    for d in report.discrepancies:
        click.echo(
            f"  {d.year}/{d.month:02d} {d.field}: file {d.expected}, stored {d.stored} "
            f"(diff {d.difference})"
        )

    if not report.is_clean:
        ctx.exit(1)


def register_commands(cli):
    """Register verify command with main CLI."""
    cli.add_command(verify_file)
