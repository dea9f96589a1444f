"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so the wide financial_records
table and the JSON version snapshots both surface as the same
``values`` mapping in the domain.
"""

from decimal import Decimal
from typing import Mapping

from clinicfin.domain import entities as domain
from clinicfin.domain.line_items import ALL_FIELDS
from clinicfin.database.models import (
    Clinic as ORMClinic,
    FinancialRecord as ORMFinancialRecord,
    FinancialVersion as ORMFinancialVersion,
    UploadHistory as ORMUploadHistory,
)

ZERO = Decimal("0")


def snapshot_to_json(values: Mapping[str, Decimal]) -> dict[str, str]:
    """Serialize field values for the version ``data`` column."""
    return {field: str(values.get(field, ZERO)) for field in ALL_FIELDS}


def snapshot_from_json(data: Mapping[str, str]) -> dict[str, Decimal]:
    """Deserialize a version ``data`` column; unknown keys are ignored."""
    return {field: Decimal(str(data.get(field, "0"))) for field in ALL_FIELDS}


def clinic_to_domain(orm_clinic: ORMClinic) -> domain.Clinic:
    """Convert SQLAlchemy Clinic model to domain Clinic entity."""
    return domain.Clinic(
        id=orm_clinic.id,
        name=orm_clinic.name,
        location=orm_clinic.location,
        created_at=orm_clinic.created_at,
    )


def financial_record_to_domain(orm_record: ORMFinancialRecord) -> domain.FinancialRecord:
    """Convert SQLAlchemy FinancialRecord model to domain FinancialRecord entity."""
    values = {}
    for field in ALL_FIELDS:
        value = getattr(orm_record, field)
        values[field] = ZERO if value is None else Decimal(value)
    return domain.FinancialRecord(
        id=orm_record.id,
        clinic_id=orm_record.clinic_id,
        year=orm_record.year,
        month=orm_record.month,
        values=values,
        updated_at=orm_record.updated_at,
    )


def version_to_domain(orm_version: ORMFinancialVersion) -> domain.Version:
    """Convert SQLAlchemy FinancialVersion model to domain Version entity."""
    return domain.Version(
        id=orm_version.id,
        clinic_id=orm_version.clinic_id,
        year=orm_version.year,
        month=orm_version.month,
        version=orm_version.version,
        values=snapshot_from_json(orm_version.data),
        source=domain.VersionSource(orm_version.source),
        created_at=orm_version.created_at,
        upload_id=orm_version.upload_id,
        previous_version_id=orm_version.previous_version_id,
    )


def upload_to_domain(orm_upload: ORMUploadHistory) -> domain.UploadHistory:
    """Convert SQLAlchemy UploadHistory model to domain UploadHistory entity."""
    return domain.UploadHistory(
        id=orm_upload.id,
        status=domain.UploadStatus(orm_upload.status),
        file_names=list(orm_upload.file_names or []),
        file_count=orm_upload.file_count,
        uploaded_by=orm_upload.uploaded_by,
        records_count=orm_upload.records_count,
        error_message=orm_upload.error_message,
        clinics_affected=list(orm_upload.clinics_affected or []),
        created_at=orm_upload.created_at,
        updated_at=orm_upload.updated_at,
    )
