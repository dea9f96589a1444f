"""Record validation for mapped monthly rows."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional

from clinicfin.database.base import Database
from clinicfin.domain.entities import FinancialRecord, RecordCandidate
from clinicfin.domain.line_items import ALL_FIELDS

MIN_YEAR = 2000
ZERO = Decimal("0")


@dataclass
class ValidationResult:
    """Accepted record, or the reasons the candidate was rejected."""

    record: Optional[FinancialRecord]
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return self.record is not None and not self.errors


def _finite_decimal(value: object) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        value = Decimal(value)
    if isinstance(value, Decimal) and value.is_finite():
        return value
    return None


class RecordValidator:
    """Validate record candidates of one batch.

    Keeps the clinic-months already accepted so a batch cannot write the
    same key twice; use a fresh instance per batch.
    """

    def __init__(self, db: Database, today: Optional[date] = None, min_year: int = MIN_YEAR):
        """Initialize record validator.

        Args:
            db: Database instance used to check clinic references
            today: Reference date for the upper year bound (defaults to today)
            min_year: Lowest accepted year
        """
        self.db = db
        self.today = today or date.today()
        self.min_year = min_year
        self._known_clinics: dict[int, bool] = {}
        self._seen: set[tuple[int, int, int]] = set()

    @property
    def max_year(self) -> int:
        return self.today.year + 1

    def _clinic_exists(self, clinic_id: int) -> bool:
        if clinic_id not in self._known_clinics:
            self._known_clinics[clinic_id] = self.db.get_clinic(clinic_id) is not None
        return self._known_clinics[clinic_id]

    def validate(self, candidate: RecordCandidate) -> ValidationResult:
        """Validate one candidate.

        Missing, non-numeric and non-finite amounts become 0 with a warning.
        A record whose every field is zero is rejected as a likely parse
        failure.
        """
        errors: list[str] = []
        warnings: list[str] = []

        if candidate.clinic_id is None:
            errors.append("Clinic is required")
        elif not self._clinic_exists(candidate.clinic_id):
            errors.append(f"Clinic {candidate.clinic_id} does not exist")

        year, month = candidate.year, candidate.month
        if not isinstance(year, int) or isinstance(year, bool) or not self.min_year <= year <= self.max_year:
            errors.append(f"Invalid year: {year}. Must be between {self.min_year} and {self.max_year}")
        if not isinstance(month, int) or isinstance(month, bool) or not 1 <= month <= 12:
            errors.append(f"Invalid month: {month}. Must be between 1 and 12")

        values: dict[str, Decimal] = {}
        for name in ALL_FIELDS:
            raw = candidate.values.get(name)
            amount = _finite_decimal(raw)
            if amount is None:
                if name in candidate.values:
                    warnings.append(f"{name}: non-numeric value {raw!r} treated as 0")
                amount = ZERO
            values[name] = amount

        if all(amount == ZERO for amount in values.values()):
            errors.append("All line items are zero; the row was probably not parsed")

        if errors:
            return ValidationResult(record=None, errors=errors, warnings=warnings)

        key = (candidate.clinic_id, year, month)
        if key in self._seen:
            return ValidationResult(
                record=None,
                errors=[f"Duplicate clinic-month {year}/{month} for clinic {candidate.clinic_id} in this batch"],
                warnings=warnings,
            )
        self._seen.add(key)

        record = FinancialRecord(clinic_id=candidate.clinic_id, year=year, month=month, values=values)
        return ValidationResult(record=record, warnings=warnings)
