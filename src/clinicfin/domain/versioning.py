"""Version store: immutable, rollback-able history of clinic-months."""

import logging
from decimal import Decimal
from typing import Mapping, Optional

from clinicfin.database.base import Database
from clinicfin.domain.calculation import to_cents
from clinicfin.domain.entities import Version, VersionSource
from clinicfin.domain.errors import (
    ConcurrencyConflictError,
    NotFoundError,
    period_label,
    version_not_found,
)
from clinicfin.domain.line_items import ALL_FIELDS

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class VersionStore:
    """Service for committing and rolling back financial versions."""

    def __init__(self, db: Database):
        """Initialize version store.

        Args:
            db: Database instance
        """
        self.db = db

    def commit(
        self,
        clinic_id: int,
        year: int,
        month: int,
        values: Mapping[str, Decimal],
        upload_id: Optional[int] = None,
        source: VersionSource | str = VersionSource.UPLOAD,
    ) -> Version:
        """Commit a clinic-month as its next version.

        The new version and the live record are written in one transaction.
        Amounts are rounded to cents first so the stored snapshot and the
        live record always agree.

        Args:
            clinic_id: Clinic ID
            year: Record year
            month: Record month (1-12)
            values: Field values; missing fields are stored as 0
            upload_id: Upload that produced the version, if any
            source: What produced the version

        Returns:
            The committed version

        Raises:
            ConcurrencyConflictError: If a concurrent commit won the same
                version number twice in a row
            StoreUnavailableError: If the database cannot be reached
        """
        source = VersionSource(source)
        snapshot = {name: to_cents(values.get(name, ZERO)) for name in ALL_FIELDS}
        try:
            return self.db.commit_version(clinic_id, year, month, snapshot, upload_id, source)
        except ConcurrencyConflictError as e:
            logger.warning("Retrying commit for %s: %s", period_label(clinic_id, year, month), e)
            return self.db.commit_version(clinic_id, year, month, snapshot, upload_id, source)

    def get_version(self, version_id: int) -> Version:
        """Get a version by ID.

        Raises:
            NotFoundError: If the version does not exist
        """
        version = self.db.get_version(version_id)
        if version is None:
            raise NotFoundError(version_not_found(version_id))
        return version

    def rollback(self, version_id: int) -> Version:
        """Restore a past version by committing its snapshot as a new version.

        History is never rewritten: rolling back from version N+1 to N
        produces version N+2 equal to N.

        Raises:
            NotFoundError: If the version does not exist
        """
        target = self.get_version(version_id)
        restored = self.commit(
            target.clinic_id,
            target.year,
            target.month,
            target.values,
            upload_id=None,
            source=VersionSource.ROLLBACK,
        )
        logger.info(
            "Rolled back %s to version %d as version %d",
            period_label(target.clinic_id, target.year, target.month),
            target.version,
            restored.version,
        )
        return restored

    def list_versions(
        self,
        clinic_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
        upload_id: Optional[int] = None,
    ) -> list[Version]:
        """List versions, most recent period and version first."""
        return self.db.list_versions(clinic_id=clinic_id, year=year, month=month, upload_id=upload_id)

    def version_timeline(
        self,
        clinic_id: Optional[int] = None,
        year: Optional[int] = None,
        month: Optional[int] = None,
    ) -> dict[tuple[int, int, int], list[Version]]:
        """Group versions by (clinic_id, year, month), newest version first."""
        timeline: dict[tuple[int, int, int], list[Version]] = {}
        for version in self.list_versions(clinic_id=clinic_id, year=year, month=month):
            timeline.setdefault(version.key, []).append(version)
        return timeline
