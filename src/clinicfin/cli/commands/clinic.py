"""Clinic management commands."""

import click

from clinicfin.cli.error_handling import handle_domain_error
from clinicfin.domain.clinic import ClinicService
from clinicfin.domain.errors import DomainError


@click.group()
def clinic_group():
    """Manage clinics."""
    pass


@clinic_group.command("create")
@click.argument("name", metavar="CLINIC_NAME")
@click.option("--location", help="Clinic location (defaults to the part after the last '-')")
@click.pass_context
def create_clinic(ctx, name: str, location: str | None):
    """Create a new clinic.

    Examples:
        clinicfin clinic create "Webster"
        clinicfin clinic create "APP - West Houston"
        clinicfin clinic create "Main Street" --location "Houston"
    """
    db = ctx.obj["db"]
    service = ClinicService(db)

    try:
        clinic_id = service.create_clinic(name=name, location=location)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    clinic = service.get_clinic(clinic_id)
    click.echo(f"Created clinic '{clinic.name}' (ID: {clinic_id})")
    if location is None:
        click.echo(f"Location set to '{clinic.location}'")


@clinic_group.command("list")
@click.pass_context
def list_clinics(ctx):
    """List all clinics."""
    db = ctx.obj["db"]
    service = ClinicService(db)

    clinics = service.list_clinics()
    if not clinics:
        click.echo("No clinics found.")
        return

    click.echo("\nClinics:")
    click.echo("-" * 60)
    for c in clinics:
        click.echo(f"ID: {c.id:3d} | {c.name:25s} | Location: {c.location or ''}")


def register_commands(cli):
    """Register clinic commands with main CLI."""
    cli.add_command(clinic_group, name="clinic")
