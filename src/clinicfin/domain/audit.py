"""Audit of stored records against the calculation engine."""

import logging
from dataclasses import dataclass, field

from clinicfin.database.base import Database
from clinicfin.domain.calculation import CalculationEngine, FieldDrift, differs
from clinicfin.domain.entities import FinancialRecord, VersionSource
from clinicfin.domain.errors import period_label
from clinicfin.domain.line_items import ALL_FIELDS
from clinicfin.domain.versioning import VersionStore

logger = logging.getLogger(__name__)


@dataclass
class RecordDrift:
    """Drifted fields of one clinic-month."""

    clinic_id: int
    year: int
    month: int
    fields: list[FieldDrift]


@dataclass
class AuditReport:
    """Summary of one audit run."""

    records_scanned: int = 0
    records_with_drift: int = 0
    fields_in_drift: int = 0
    fields_fixed: int = 0
    still_in_error_after_fix: int = 0
    versions_out_of_sync: int = 0
    drift: list[RecordDrift] = field(default_factory=list)


def _out_of_sync(record: FinancialRecord, values) -> bool:
    return any(differs(record.get(name), values.get(name)) for name in ALL_FIELDS)


class AuditService:
    """Service for finding and repairing drifted totals."""

    def __init__(self, db: Database):
        """Initialize audit service.

        Args:
            db: Database instance
        """
        self.db = db
        self.engine = CalculationEngine()
        self.versions = VersionStore(db)

    def run(self, repair: bool = False) -> AuditReport:
        """Scan every live record for drift.

        Repairs are committed as new versions with source ``audit``, after
        which the store is scanned again and any remaining drift is counted
        in ``still_in_error_after_fix``.

        Args:
            repair: Commit recomputed records for drifted clinic-months

        Returns:
            AuditReport
        """
        report = AuditReport()
        records = self.db.list_financial_records()
        report.records_scanned = len(records)

        for record in records:
            latest = self.db.get_latest_version(record.clinic_id, record.year, record.month)
            if latest is None or _out_of_sync(record, latest.values):
                report.versions_out_of_sync += 1

            drift = self.engine.find_drift(record.values)
            if not drift:
                continue

            label = period_label(record.clinic_id, record.year, record.month)
            report.records_with_drift += 1
            report.fields_in_drift += len(drift)
            report.drift.append(RecordDrift(record.clinic_id, record.year, record.month, drift))
            for item in drift:
                logger.warning(
                    "%s: %s stored %s, expected %s", label, item.field, item.stored, item.expected
                )

            if repair:
                fixed = self.engine.recompute(record)
                self.versions.commit(
                    record.clinic_id, record.year, record.month, fixed.values, source=VersionSource.AUDIT
                )
                report.fields_fixed += len(drift)
                logger.info("Repaired %d field(s) for %s", len(drift), label)

        if repair and report.fields_fixed:
            for record in self.db.list_financial_records():
                report.still_in_error_after_fix += len(self.engine.find_drift(record.values))

        return report
