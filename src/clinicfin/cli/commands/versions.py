"""Version history commands."""

import click

from clinicfin.cli.error_handling import handle_domain_error
from clinicfin.domain.clinic import ClinicService
from clinicfin.domain.errors import DomainError
from clinicfin.domain.orchestrator import UploadOrchestrator
from clinicfin.domain.versioning import VersionStore


@click.group()
def versions_group():
    """Inspect and roll back clinic-month versions."""
    pass


@versions_group.command("list")
@click.option("--clinic", help="Clinic name or ID")
@click.option("--year", type=int, help="Only this year")
@click.option("--month", type=click.IntRange(1, 12), help="Only this month (1-12)")
@click.pass_context
def list_versions(ctx, clinic: str | None, year: int | None, month: int | None):
    """List versions grouped by clinic-month, newest first.

    Examples:
        clinicfin versions list
        clinicfin versions list --clinic Webster --year 2024
    """
    db = ctx.obj["db"]
    store = VersionStore(db)

    clinic_id = None
    if clinic is not None:
        try:
            clinic_id = ClinicService(db).resolve_clinic(clinic).id
        except DomainError as e:
            handle_domain_error(ctx, e)
            return

    timeline = store.version_timeline(clinic_id=clinic_id, year=year, month=month)
    if not timeline:
        click.echo("No versions found.")
        return

    for (key_clinic, key_year, key_month), versions in timeline.items():
        click.echo(f"\nClinic {key_clinic} - {key_year}/{key_month:02d}:")
        for v in versions:
            created = v.created_at.strftime("%Y-%m-%d %H:%M") if v.created_at else ""
            upload = f"upload {v.upload_id}" if v.upload_id is not None else v.source.value
            click.echo(
                f"  ID: {v.id:4d} | v{v.version:<3d} | {created:16s} | {upload:12s} | "
                f"net income {v.values['net_income']}"
            )


@versions_group.command("rollback")
@click.argument("version_id", type=int)
@click.option("--upload", "upload_id", type=int, help="Upload the version must belong to")
@click.pass_context
def rollback_version(ctx, version_id: int, upload_id: int | None):
    """Restore VERSION_ID as the newest version of its clinic-month.

    Examples:
        clinicfin versions rollback 12
        clinicfin versions rollback 12 --upload 3
    """
    db = ctx.obj["db"]
    orchestrator = UploadOrchestrator(db, settings=ctx.obj["settings"])

    try:
        result = orchestrator.rollback(upload_id, version_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(
        f"Rolled back clinic {result.clinic_id} {result.year}/{result.month:02d} "
        f"to version {result.restored_version_number} "
        f"(new version {result.new_version_number}, ID: {result.version_id})"
    )


def register_commands(cli):
    """Register version commands with main CLI."""
    cli.add_command(versions_group, name="versions")
