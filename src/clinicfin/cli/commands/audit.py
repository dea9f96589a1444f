"""Audit command."""

import click

from clinicfin.domain.audit import AuditService


@click.command("audit")
@click.option("--fix", is_flag=True, help="Commit recomputed totals for drifted records")
@click.option("--verbose", "-v", is_flag=True, help="List every drifted field")
@click.pass_context
def audit_records(ctx, fix: bool, verbose: bool):
    """Check stored totals against the calculation engine."""
    db = ctx.obj["db"]
    service = AuditService(db)

    report = service.run(repair=fix)

    click.echo("\nAudit complete:")
    click.echo(f"  Records scanned: {report.records_scanned}")
    click.echo(f"  Records with drift: {report.records_with_drift}")
    click.echo(f"  Fields in drift: {report.fields_in_drift}")
    if report.versions_out_of_sync:
        click.echo(f"  Versions out of sync: {report.versions_out_of_sync}")
    if fix:
        click.echo(f"  Fields fixed: {report.fields_fixed}")
        click.echo(f"  Still in error after fix: {report.still_in_error_after_fix}")

    if verbose:
        for record in report.drift:
            click.echo(f"\nClinic {record.clinic_id} - {record.year}/{record.month:02d}:")
            for item in record.fields:
                click.echo(f"  {item.field}: stored {item.stored}, expected {item.expected}")

    if report.still_in_error_after_fix:
        ctx.exit(1)


def register_commands(cli):
    """Register audit command with main CLI."""
    cli.add_command(audit_records)
