"""Abstract database interface."""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, Mapping

# Import entities directly to avoid circular import through domain/__init__.py
from clinicfin.domain.entities import (
    Clinic,
    FinancialRecord,
    UploadHistory,
    UploadStatus,
    Version,
    VersionSource,
)


class Database(ABC):
    """Abstract database interface for clinicfin."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database (releases the calling thread's session)."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Clinic operations
    @abstractmethod
    def create_clinic(self, name: str, location: Optional[str] = None) -> int:
        """Create a new clinic. Returns clinic ID."""
        pass

    @abstractmethod
    def get_clinic(self, clinic_id: int) -> Optional[Clinic]:
        """Get clinic by ID."""
        pass

    @abstractmethod
    def get_clinic_by_name(self, name: str) -> Optional[Clinic]:
        """Get clinic by exact name."""
        pass

    @abstractmethod
    def list_clinics(self) -> list[Clinic]:
        """List all clinics."""
        pass

    # Financial record operations
    @abstractmethod
    def get_financial_record(self, clinic_id: int, year: int, month: int) -> Optional[FinancialRecord]:
        """Get the current record of one clinic-month."""
        pass

    @abstractmethod
    def list_financial_records(self, clinic_id: Optional[int] = None) -> list[FinancialRecord]:
        """List current records ordered by clinic, year and month."""
        pass

    # Version operations
    @abstractmethod
    def commit_version(
        self,
        clinic_id: int,
        year: int,
        month: int,
        values: Mapping[str, Decimal],
        upload_id: Optional[int] = None,
        source: VersionSource = VersionSource.UPLOAD,
    ) -> Version:
        """Append a version and upsert the live record in one transaction.

        Raises:
            ConcurrencyConflictError: If another commit took the version number
            StoreUnavailableError: If the database cannot be reached
        """
        pass

    @abstractmethod
    def get_version(self, version_id: int) -> Optional[Version]:
        """Get version by ID."""
        pass

    @abstractmethod
    def get_latest_version(self, clinic_id: int, year: int, month: int) -> Optional[Version]:
        """Get the authoritative (highest) version of one clinic-month."""
        pass

    @abstractmethod
    def list_versions(
        self,
        clinic_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        upload_id: Optional[int] = None,
    ) -> list[Version]:
        """List versions, most recent first.

        Ordered by year, month and version number, all descending.
        """
        pass

    # Upload history operations
    @abstractmethod
    def create_upload(self, file_names: list[str], uploaded_by: str) -> int:
        """Create a pending upload entry. Returns upload ID."""
        pass

    @abstractmethod
    def get_upload(self, upload_id: int) -> Optional[UploadHistory]:
        """Get upload by ID."""
        pass

    @abstractmethod
    def update_upload(
        self,
        upload_id: int,
        status: UploadStatus,
        records_count: Optional[int] = None,
        error_message: Optional[str] = None,
        clinics_affected: Optional[list[int]] = None,
    ) -> None:
        """Update upload status and result fields."""
        pass

    @abstractmethod
    def list_uploads(self, offset: int = 0, limit: int = 20) -> list[UploadHistory]:
        """List uploads, newest first."""
        pass

    @abstractmethod
    def count_uploads(self) -> int:
        """Count all uploads."""
        pass
