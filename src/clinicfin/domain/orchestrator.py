"""Upload orchestrator: runs ingestion batches end to end.

Per file: parse -> rows; per row: map -> validate -> recompute -> commit.
A failing row or file is recorded in the batch report and processing moves
on; only an unreachable store stops the batch.
"""

import json
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence

from clinicfin.config import Settings, load_settings
from clinicfin.database.base import Database
from clinicfin.domain.calculation import CalculationEngine
from clinicfin.domain.clinic import ClinicService
from clinicfin.domain.entities import BatchError, BatchResult, Clinic, UploadStatus, Version
from clinicfin.domain.errors import (
    ConflictError,
    DomainError,
    NotFoundError,
    ParseError,
    StoreUnavailableError,
    ValidationError,
    clinic_name_not_found,
    invalid_status_transition,
    period_label,
    upload_not_found,
    version_not_visible,
)
from clinicfin.domain.mapper import LineItemMapper
from clinicfin.domain.pl_parser import ParsedFile, RawMonth, parse_pl_file
from clinicfin.domain.progress import ROLLBACK, ProgressChannel, ProgressEvent
from clinicfin.domain.upload_history import UploadHistoryService
from clinicfin.domain.validator import RecordValidator
from clinicfin.domain.versioning import VersionStore

logger = logging.getLogger(__name__)

FilePath = str | Path
Parser = Callable[[FilePath], ParsedFile]


@dataclass(frozen=True)
class RollbackResult:
    """Outcome of restoring a past version."""

    new_version_number: int
    version_id: int
    restored_version_number: int
    clinic_id: int
    year: int
    month: int


def _final_status(result: BatchResult) -> UploadStatus:
    if result.records_processed == 0:
        return UploadStatus.FAILED
    if result.errors:
        return UploadStatus.COMPLETED_WITH_ERRORS
    return UploadStatus.COMPLETED


def _wire_status(status: UploadStatus) -> str:
    # Clients only distinguish success from failure
    return UploadStatus.FAILED.value if status == UploadStatus.FAILED else UploadStatus.COMPLETED.value


class UploadOrchestrator:
    """Coordinates ingestion batches and rollbacks."""

    def __init__(
        self,
        db: Database,
        channel: Optional[ProgressChannel] = None,
        settings: Optional[Settings] = None,
        parser: Parser = parse_pl_file,
        today: Optional[date] = None,
    ):
        """Initialize upload orchestrator.

        Args:
            db: Database instance
            channel: Progress channel events are published on
            settings: Runtime settings (loaded from the environment when omitted)
            parser: Turns a file path into a ParsedFile
            today: Reference date for year validation (defaults to today)
        """
        self.db = db
        self.settings = settings or load_settings()
        self.channel = channel or ProgressChannel(self.settings.progress_buffer_size)
        self.parser = parser
        self.today = today
        self.clinics = ClinicService(db)
        self.uploads = UploadHistoryService(db)
        self.versions = VersionStore(db)
        self.mapper = LineItemMapper()
        self.engine = CalculationEngine()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._futures: dict[int, Future] = {}
        self._lock = threading.Lock()

    # Batch entry points
    def submit(self, files: Sequence[FilePath], uploaded_by: str = "system") -> int:
        """Create a pending upload and process it in the background.

        Returns:
            Upload ID

        Raises:
            ValidationError: If no files are given
        """
        files = list(files)
        if not files:
            raise ValidationError("No files to upload")

        upload_id = self.uploads.create_upload([Path(f).name for f in files], uploaded_by)
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=self.settings.max_workers, thread_name_prefix="clinicfin-upload"
                )
            self._futures[upload_id] = self._executor.submit(self._run, upload_id, files)
        return upload_id

    def _run(self, upload_id: int, files: list[FilePath]) -> BatchResult:
        try:
            return self.process(upload_id, files)
        except Exception:
            logger.exception("Upload %d stopped unexpectedly", upload_id)
            raise
        finally:
            # Worker threads each hold their own session
            self.db.disconnect()

    def wait(self, upload_id: int, timeout: Optional[float] = None) -> BatchResult:
        """Block until a submitted batch finishes and return its report.

        Raises:
            NotFoundError: If the upload was not submitted here
        """
        with self._lock:
            future = self._futures.get(upload_id)
        if future is None:
            raise NotFoundError(upload_not_found(upload_id))
        return future.result(timeout)

    def is_running(self, upload_id: int) -> bool:
        """True while a submitted batch has not finished."""
        with self._lock:
            future = self._futures.get(upload_id)
        return future is not None and not future.done()

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting batches, optionally waiting for running ones."""
        with self._lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    def process(self, upload_id: int, files: Sequence[FilePath]) -> BatchResult:
        """Run a pending batch synchronously.

        Raises:
            NotFoundError: If the upload does not exist
            ConflictError: If the upload is not pending
        """
        self.uploads.transition(upload_id, UploadStatus.PROCESSING)
        logger.info("Processing upload %d (%d file(s))", upload_id, len(files))
        return self._process_files(upload_id, list(files), resumed=frozenset())

    def resume(self, upload_id: int, files: Sequence[FilePath]) -> BatchResult:
        """Continue an interrupted batch.

        Clinic-months already committed under this upload are skipped, so
        no row is versioned twice.

        Raises:
            NotFoundError: If the upload does not exist
            ConflictError: If the upload is not in processing
        """
        upload = self.uploads.get_upload(upload_id)
        if upload.status != UploadStatus.PROCESSING:
            raise ConflictError(
                invalid_status_transition(upload_id, upload.status.value, UploadStatus.PROCESSING.value)
            )

        committed = {version.key for version in self.versions.list_versions(upload_id=upload_id)}
        logger.info("Resuming upload %d, %d clinic-month(s) already committed", upload_id, len(committed))
        return self._process_files(upload_id, list(files), resumed=frozenset(committed))

    # Batch internals
    def _publish(self, upload_id: int, status: str, progress: int, **fields) -> None:
        self.channel.publish(ProgressEvent(upload_id=upload_id, status=status, progress=progress, **fields))

    def _resolve_clinic(self, name: str) -> Clinic:
        if self.settings.create_clinics:
            return self.clinics.get_or_create_clinic(name)
        clinic = self.clinics.find_clinic(name)
        if clinic is None:
            raise NotFoundError(clinic_name_not_found(name))
        return clinic

    def _process_row(
        self, upload_id: int, clinic: Clinic, raw_month: RawMonth, validator: RecordValidator
    ) -> Version:
        mapping = self.mapper.map_row(raw_month.raw, clinic.id, raw_month.year, raw_month.month)
        validation = validator.validate(mapping.candidate)
        if not validation.is_valid:
            raise ValidationError("; ".join(validation.errors))

        label = period_label(clinic.name, raw_month.year, raw_month.month)
        for warning in validation.warnings:
            logger.warning("%s: %s", label, warning)

        record = self.engine.recompute(validation.record)
        for drift in self.engine.compare_source_totals(mapping.source_totals, record):
            logger.warning(
                "%s: source %s %s differs from recomputed %s",
                label,
                drift.field,
                drift.stored,
                drift.expected,
            )

        return self.versions.commit(
            record.clinic_id, record.year, record.month, record.values, upload_id=upload_id
        )

    def _process_files(
        self, upload_id: int, files: list[FilePath], resumed: frozenset[tuple[int, int, int]]
    ) -> BatchResult:
        result = BatchResult(
            upload_id=upload_id,
            status=UploadStatus.PROCESSING,
            records_processed=len(resumed),
            files_processed=len(files),
        )
        clinics = {key[0] for key in resumed}
        validator = RecordValidator(self.db, today=self.today, min_year=self.settings.min_year)
        total = len(files) or 1
        file_name = None

        self._publish(
            upload_id,
            UploadStatus.PROCESSING.value,
            0,
            message=f"Processing {len(files)} file(s)",
        )

        try:
            for index, path in enumerate(files):
                file_name = Path(path).name
                self._publish(
                    upload_id,
                    UploadStatus.PROCESSING.value,
                    index * 100 // total,
                    current_file=file_name,
                    records_processed=result.records_processed,
                    message=f"Processing {file_name}",
                )

                try:
                    parsed = self.parser(path)
                    clinic = self._resolve_clinic(parsed.clinic_name)
                except StoreUnavailableError:
                    raise
                except DomainError as e:
                    logger.error("Upload %d: skipping %s: %s", upload_id, file_name, e)
                    result.errors.append(BatchError(file=file_name, error=str(e)))
                    continue

                rows = len(parsed.months) or 1
                for row_index, raw_month in enumerate(parsed.months):
                    key = (clinic.id, raw_month.year, raw_month.month)
                    label = period_label(clinic.name, raw_month.year, raw_month.month)
                    if key in resumed:
                        logger.debug("Upload %d: %s committed by an earlier run", upload_id, label)
                        continue

                    try:
                        self._process_row(upload_id, clinic, raw_month, validator)
                    except StoreUnavailableError:
                        raise
                    except DomainError as e:
                        logger.error("Upload %d: %s rejected: %s", upload_id, label, e)
                        result.errors.append(BatchError(file=file_name, record=label, error=str(e)))
                        continue
                    except Exception as e:
                        logger.exception("Upload %d: %s failed", upload_id, label)
                        result.errors.append(BatchError(file=file_name, record=label, error=str(e)))
                        continue

                    clinics.add(clinic.id)
                    result.records_processed += 1
                    self._publish(
                        upload_id,
                        UploadStatus.PROCESSING.value,
                        min(99, (index * rows + row_index + 1) * 100 // (total * rows)),
                        current_file=file_name,
                        records_processed=result.records_processed,
                        message=f"Committed {label}",
                    )

            result.status = _final_status(result)
        except StoreUnavailableError as e:
            logger.error("Upload %d failed: %s", upload_id, e)
            result.errors.append(BatchError(file=file_name or "", error=str(e)))
            result.status = UploadStatus.FAILED

        result.clinics_affected = sorted(clinics)
        self._finish(result)
        return result

    def _finish(self, result: BatchResult) -> None:
        error_message = None
        if result.errors:
            error_message = json.dumps([error.to_dict() for error in result.errors])

        try:
            self.uploads.transition(
                result.upload_id,
                result.status,
                records_count=result.records_processed,
                error_message=error_message,
                clinics_affected=result.clinics_affected,
            )
        except DomainError as e:
            logger.error("Could not record final status of upload %d: %s", result.upload_id, e)
            status_note = f" (status not recorded: {e})"
        else:
            status_note = ""

        logger.info(
            "Upload %d %s: %d record(s), %d error(s)",
            result.upload_id,
            result.status.value,
            result.records_processed,
            len(result.errors),
        )
        failed = result.status == UploadStatus.FAILED
        self._publish(
            result.upload_id,
            _wire_status(result.status),
            100,
            records_processed=result.records_processed,
            message=f"Upload {'failed' if failed else 'completed'}: "
            f"{result.records_processed} record(s) processed{status_note}",
            error=result.errors[-1].error if failed and result.errors else None,
            result=result.to_dict(),
        )

    # Rollback
    def rollback(self, upload_id: Optional[int], version_id: int) -> RollbackResult:
        """Restore a past version as the newest version of its clinic-month.

        Args:
            upload_id: Upload the rollback is requested from; when given the
                version's clinic-month must have been touched by it
            version_id: Version to restore

        Raises:
            NotFoundError: If the version (or upload) does not exist, or the
                version is not visible from the upload
        """
        target = self.versions.get_version(version_id)
        if upload_id is not None:
            self.uploads.get_upload(upload_id)
            touched = {version.key for version in self.versions.list_versions(upload_id=upload_id)}
            if target.key not in touched:
                raise NotFoundError(version_not_visible(version_id, upload_id))

        restored = self.versions.rollback(version_id)
        result = RollbackResult(
            new_version_number=restored.version,
            version_id=restored.id,
            restored_version_number=target.version,
            clinic_id=target.clinic_id,
            year=target.year,
            month=target.month,
        )
        clinic = self.clinics.get_clinic(target.clinic_id)
        label = period_label(clinic.name if clinic else target.clinic_id, target.year, target.month)
        self.channel.publish(
            ProgressEvent(
                upload_id=upload_id,
                status=UploadStatus.COMPLETED.value,
                progress=100,
                type=ROLLBACK,
                message=f"Rolled back {label} to version {target.version}",
                result={
                    "versionId": restored.id,
                    "newVersionNumber": restored.version,
                    "restoredVersionNumber": target.version,
                },
            )
        )
        return result
