"""Upload commands: run, inspect and resume ingestion batches."""

import json
from dataclasses import replace

import click

from clinicfin.cli.error_handling import handle_domain_error
from clinicfin.domain.entities import BatchResult, UploadStatus
from clinicfin.domain.errors import DomainError
from clinicfin.domain.orchestrator import UploadOrchestrator
from clinicfin.domain.progress import ProgressChannel, ProgressEvent
from clinicfin.domain.upload_history import UploadHistoryService
from clinicfin.domain.versioning import VersionStore

POLL_SECONDS = 0.2


def _echo_event(event: ProgressEvent, as_json: bool) -> None:
    if as_json:
        click.echo(json.dumps(event.to_dict()))
        return
    parts = [f"[{event.progress:3d}%]", event.status]
    if event.current_file:
        parts.append(event.current_file)
    if event.message:
        parts.append(f"- {event.message}")
    click.echo(" ".join(parts))


def _echo_result(result: BatchResult) -> None:
    click.echo(f"\nUpload {result.upload_id} {result.status.value}:")
    click.echo(f"  Records processed: {result.records_processed}")
    click.echo(f"  Files processed: {result.files_processed}")
    click.echo(f"  Clinics affected: {len(result.clinics_affected)}")
    if result.errors:
        click.echo(f"  Errors: {len(result.errors)}")
        for error in result.errors:
            where = f"{error.file} ({error.record})" if error.record else error.file
            click.echo(f"    {where}: {error.error}", err=True)


@click.command("upload")
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--uploaded-by", default="cli", show_default=True, help="Who submitted the batch")
@click.option("--create-clinics", is_flag=True, help="Create clinics named in files that do not exist yet")
@click.option("--json", "as_json", is_flag=True, help="Print progress events as JSON lines")
@click.pass_context
def upload_files(ctx, files: tuple[str, ...], uploaded_by: str, create_clinics: bool, as_json: bool):
    """Upload P&L CSV files and follow their progress.

    Examples:
        clinicfin upload "APP Financials 23-25(Webster).csv"
        clinicfin upload webster.csv katy.csv --create-clinics
    """
    db = ctx.obj["db"]
    settings = ctx.obj["settings"]
    if create_clinics:
        settings = replace(settings, create_clinics=True)

    channel = ProgressChannel(settings.progress_buffer_size)
    orchestrator = UploadOrchestrator(db, channel, settings)

    try:
        with channel.subscribe() as subscription:
            try:
                upload_id = orchestrator.submit(list(files), uploaded_by=uploaded_by)
            except DomainError as e:
                handle_domain_error(ctx, e)
                return

            while True:
                event = subscription.get(timeout=POLL_SECONDS)
                if event is not None:
                    _echo_event(event, as_json)
                    if event.result is not None:
                        break
                elif not orchestrator.is_running(upload_id):
                    for event in subscription.drain():
                        _echo_event(event, as_json)
                    break

        try:
            result = orchestrator.wait(upload_id)
        except DomainError as e:
            handle_domain_error(ctx, e)
            return
    finally:
        orchestrator.shutdown()

    if as_json:
        click.echo(json.dumps({"uploadId": upload_id, "status": result.status.value, **result.to_dict()}))
    else:
        _echo_result(result)

    if result.status == UploadStatus.FAILED:
        ctx.exit(1)


@click.command("upload-history")
@click.option("--page", default=1, show_default=True, type=int, help="Page number")
@click.option("--limit", default=20, show_default=True, type=int, help="Uploads per page")
@click.pass_context
def upload_history(ctx, page: int, limit: int):
    """List past uploads, newest first."""
    db = ctx.obj["db"]
    service = UploadHistoryService(db)

    try:
        result = service.list_uploads(page=page, limit=limit)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    if not result.uploads:
        click.echo("No uploads found.")
        return

    click.echo(f"\nUploads (page {result.page} of {result.total_pages}, {result.total} total):")
    click.echo("-" * 80)
    for upload in result.uploads:
        created = upload.created_at.strftime("%Y-%m-%d %H:%M") if upload.created_at else ""
        click.echo(
            f"ID: {upload.id:4d} | {created:16s} | {upload.status.value:21s} | "
            f"{upload.records_count:4d} records | {upload.uploaded_by}"
        )


@click.command("upload-show")
@click.argument("upload_id", type=int)
@click.pass_context
def show_upload(ctx, upload_id: int):
    """Show one upload with the versions it produced."""
    db = ctx.obj["db"]
    service = UploadHistoryService(db)

    try:
        upload = service.get_upload(upload_id)
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    click.echo(f"Upload {upload.id}")
    click.echo(f"  Status: {upload.status.value}")
    click.echo(f"  Uploaded by: {upload.uploaded_by}")
    click.echo(f"  Files ({upload.file_count}): {', '.join(upload.file_names)}")
    click.echo(f"  Records: {upload.records_count}")
    click.echo(f"  Clinics affected: {', '.join(str(c) for c in upload.clinics_affected) or '-'}")

    if upload.error_message:
        click.echo("  Errors:")
        for error in json.loads(upload.error_message):
            where = f"{error['file']} ({error['record']})" if error.get("record") else error["file"]
            click.echo(f"    {where}: {error['error']}")

    versions = VersionStore(db).list_versions(upload_id=upload_id)
    if versions:
        click.echo("  Versions:")
        for v in versions:
            click.echo(
                f"    ID: {v.id:4d} | clinic {v.clinic_id} | {v.year}/{v.month:02d} | "
                f"v{v.version} | net income {v.values['net_income']}"
            )


@click.command("upload-resume")
@click.argument("upload_id", type=int)
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_context
def resume_upload(ctx, upload_id: int, files: tuple[str, ...]):
    """Resume an interrupted upload with the same files."""
    db = ctx.obj["db"]
    orchestrator = UploadOrchestrator(db, settings=ctx.obj["settings"])

    try:
        result = orchestrator.resume(upload_id, list(files))
    except DomainError as e:
        handle_domain_error(ctx, e)
        return

    _echo_result(result)
    if result.status == UploadStatus.FAILED:
        ctx.exit(1)


def register_commands(cli):
    """Register upload commands with main CLI."""
    cli.add_command(upload_files)
    cli.add_command(upload_history)
    cli.add_command(show_upload)
    cli.add_command(resume_upload)
