"""Verification of a source P&L file against stored records."""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Optional

from clinicfin.database.base import Database
from clinicfin.domain.calculation import CalculationEngine, differs, to_cents
from clinicfin.domain.clinic import ClinicService
from clinicfin.domain.entities import FinancialRecord
from clinicfin.domain.line_items import ALL_FIELDS
from clinicfin.domain.mapper import LineItemMapper
from clinicfin.domain.pl_parser import parse_pl_file
from clinicfin.domain.validator import RecordValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldDiscrepancy:
    """A field whose stored amount differs from the source file."""

    year: int
    month: int
    field: str
    expected: Decimal
    stored: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored - self.expected


@dataclass
class VerificationReport:
    """Result of comparing one file with the store."""

    file: str
    clinic_name: str
    months_checked: int = 0
    matched_months: int = 0
    missing_months: list[tuple[int, int]] = field(default_factory=list)
    discrepancies: list[FieldDiscrepancy] = field(default_factory=list)

    @property
    def is_clean(self) -> bool:
        return not self.missing_months and not self.discrepancies


class VerificationService:
    """Service for checking that stored records match their source files."""

    def __init__(self, db: Database):
        """Initialize verification service.

        Args:
            db: Database instance
        """
        self.db = db
        self.clinics = ClinicService(db)
        self.mapper = LineItemMapper()
        self.engine = CalculationEngine()

    def verify_file(self, path: str | Path, clinic: Optional[str | int] = None) -> VerificationReport:
        """Compare every month of a P&L file with the live records.

        The file goes through the same mapping, validation and recomputation
        as an upload, so only real differences are reported.

        Args:
            path: Path to the P&L CSV
            clinic: Clinic name or ID; taken from the file when omitted

        Returns:
            VerificationReport

        Raises:
            ParseError: If the file cannot be parsed
            NotFoundError: If the clinic does not exist
        """
        parsed = parse_pl_file(path)
        target = self.clinics.resolve_clinic(clinic if clinic is not None else parsed.clinic_name)
        report = VerificationReport(file=parsed.file_name, clinic_name=target.name)
        validator = RecordValidator(self.db)

        for raw_month in parsed.months:
            period = (raw_month.year, raw_month.month)
            mapping = self.mapper.map_row(raw_month.raw, target.id, *period)
            validation = validator.validate(mapping.candidate)
            if not validation.is_valid:
                logger.info("%s %s/%s not checked: %s", parsed.file_name, *period, validation.errors)
                continue

            report.months_checked += 1
            stored = self.db.get_financial_record(target.id, *period)
            if stored is None:
                report.missing_months.append(period)
                continue

            expected = self.engine.recompute(validation.record)
            found = self._compare(expected, stored)
            if found:
                report.discrepancies.extend(found)
            else:
                report.matched_months += 1

        return report

    def _compare(self, expected: FinancialRecord, stored: FinancialRecord) -> list[FieldDiscrepancy]:
        return [
            FieldDiscrepancy(
                year=expected.year,
                month=expected.month,
                field=name,
                expected=to_cents(expected.get(name)),
                stored=stored.get(name),
            )
            for name in ALL_FIELDS
            if differs(to_cents(expected.get(name)), stored.get(name))
        ]
