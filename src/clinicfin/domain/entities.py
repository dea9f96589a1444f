"""Domain model entities for clinicfin.

These are pure data classes representing business concepts, independent of
database schema. Line item amounts travel as a mapping of canonical field
name to Decimal (see clinicfin.domain.line_items) so the persistence layer
can store them as columns or JSON without the domain caring.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import Optional, Mapping

RawRow = dict[str, Decimal | int | float | str | None]
"""Sparse map of account key (code or QuickBooks label) to raw amount."""


class UploadStatus(str, Enum):
    """Lifecycle of one ingestion batch."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    COMPLETED_WITH_ERRORS = "completed_with_errors"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES

    def can_transition_to(self, target: "UploadStatus") -> bool:
        return target in _TRANSITIONS[self]


TERMINAL_STATUSES = frozenset(
    {UploadStatus.COMPLETED, UploadStatus.COMPLETED_WITH_ERRORS, UploadStatus.FAILED}
)

_TRANSITIONS: dict[UploadStatus, frozenset[UploadStatus]] = {
    UploadStatus.PENDING: frozenset({UploadStatus.PROCESSING, UploadStatus.FAILED}),
    UploadStatus.PROCESSING: TERMINAL_STATUSES,
    UploadStatus.COMPLETED: frozenset(),
    UploadStatus.COMPLETED_WITH_ERRORS: frozenset(),
    UploadStatus.FAILED: frozenset(),
}


class VersionSource(str, Enum):
    """What produced a version."""

    UPLOAD = "upload"
    ROLLBACK = "rollback"
    AUDIT = "audit"


@dataclass(frozen=True)
class Clinic:
    """Clinic domain entity."""

    id: int
    name: str
    location: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class RecordCandidate:
    """Mapped but not yet validated monthly record.

    Values may still be None (blank or unreadable cells) or non-finite.
    """

    clinic_id: Optional[int]
    year: int
    month: int
    values: dict[str, Optional[Decimal]]


@dataclass(frozen=True)
class FinancialRecord:
    """Current monthly snapshot for one clinic.

    ``values`` holds every schema field as a Decimal.
    """

    clinic_id: int
    year: int
    month: int
    values: Mapping[str, Decimal]
    id: Optional[int] = None
    updated_at: Optional[datetime] = None

    @property
    def date(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.clinic_id, self.year, self.month)

    def get(self, field_name: str) -> Decimal:
        return self.values.get(field_name, Decimal("0"))


@dataclass(frozen=True)
class Version:
    """Immutable snapshot of a clinic-month at one point in time."""

    id: int
    clinic_id: int
    year: int
    month: int
    version: int
    values: Mapping[str, Decimal]
    source: VersionSource
    created_at: datetime
    upload_id: Optional[int] = None
    previous_version_id: Optional[int] = None

    @property
    def key(self) -> tuple[int, int, int]:
        return (self.clinic_id, self.year, self.month)


@dataclass(frozen=True)
class UploadHistory:
    """Audit log entry for one ingestion batch."""

    id: int
    status: UploadStatus
    file_names: list[str]
    file_count: int
    uploaded_by: str
    records_count: int
    error_message: Optional[str]
    clinics_affected: list[int]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class UploadPage:
    """One page of upload history, newest first."""

    uploads: list[UploadHistory]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.limit - 1) // self.limit if self.limit else 0


@dataclass
class BatchError:
    """Structured row- or file-level failure reported to ingestion clients."""

    file: str
    error: str
    record: Optional[str] = None

    def to_dict(self) -> dict[str, Optional[str]]:
        return {"file": self.file, "record": self.record, "error": self.error}


@dataclass
class BatchResult:
    """Final report of one ingestion batch."""

    upload_id: int
    status: UploadStatus
    records_processed: int = 0
    files_processed: int = 0
    clinics_affected: list[int] = field(default_factory=list)
    errors: list[BatchError] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "recordsProcessed": self.records_processed,
            "filesProcessed": self.files_processed,
            "clinicsAffected": len(self.clinics_affected),
            "errors": [error.to_dict() for error in self.errors],
        }
