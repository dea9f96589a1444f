"""Line-item mapper: raw account keys to canonical schema fields."""

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from clinicfin.domain.entities import RawRow, RecordCandidate
from clinicfin.domain.line_items import LINE_ITEM_MAPPINGS, ROLLUP_FIELDS, TOTALS, MappingEntry
from clinicfin.utils.amount_parser import coerce_amount

logger = logging.getLogger(__name__)

# "66030 · Wages", "66030 � Wages", "64300· Medical Books", "40000"
_KEY_PATTERN = re.compile(r"^\s*(\d{3,6})(?:\s*[·�]\s*|\s+|$)(.*)$")


def normalize_label(label: str) -> str:
    """Lower-case a label and collapse whitespace for lookups."""
    return " ".join(label.replace("·", " ").split()).lower()


def split_key(key: str) -> tuple[Optional[str], str]:
    """Split a raw key into (account code, label).

    Code-less keys return (None, key).
    """
    match = _KEY_PATTERN.match(key)
    if match is None:
        return None, key.strip()
    return match.group(1), match.group(2).strip()


@dataclass
class MappingResult:
    """Outcome of mapping one raw monthly row."""

    candidate: RecordCandidate
    unmapped: list[str] = field(default_factory=list)
    ambiguous: list[str] = field(default_factory=list)
    source_totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def warnings(self) -> list[str]:
        return [f"Unmapped line item '{key}'" for key in self.unmapped] + [
            f"Ambiguous account code '{key}'" for key in self.ambiguous
        ]


class LineItemMapper:
    """Pure lookup from raw account keys to schema fields."""

    def __init__(self, mappings: tuple[MappingEntry, ...] = LINE_ITEM_MAPPINGS):
        self._by_code: dict[str, list[MappingEntry]] = {}
        self._by_label: dict[str, MappingEntry] = {}
        for entry in mappings:
            if entry.code is None:
                self._by_label[normalize_label(entry.label)] = entry
            else:
                self._by_code.setdefault(entry.code, []).append(entry)

    def is_ambiguous(self, code: str) -> bool:
        """True when a code is used by more than one account."""
        return len({entry.field for entry in self._by_code.get(code, [])}) > 1

    def lookup(self, key: str) -> tuple[Optional[MappingEntry], bool]:
        """Resolve one raw key.

        Returns:
            (entry, ambiguous): entry is None when the key is unknown or
            ambiguous; ambiguous tells the two apart.
        """
        code, label = split_key(key)
        if code is None:
            return self._by_label.get(normalize_label(label)), False

        candidates = self._by_code.get(code, [])
        if not candidates:
            return None, False
        if not self.is_ambiguous(code):
            return candidates[0], False

        # Reused code: only the label can say which account is meant
        wanted = normalize_label(label)
        matches = {e.field: e for e in candidates if normalize_label(e.label) == wanted}
        if len(matches) == 1:
            return next(iter(matches.values())), False
        return None, True

    def map_row(
        self, raw_row: RawRow, clinic_id: Optional[int], year: int, month: int
    ) -> MappingResult:
        """Map a raw monthly row onto a record candidate.

        Amounts for keys mapping to the same field are summed. Unknown and
        ambiguous keys are reported and their amounts dropped. Source grand
        totals are kept aside in ``source_totals`` and never populate the
        candidate.
        """
        values: dict[str, Optional[Decimal]] = {}
        result = MappingResult(candidate=RecordCandidate(clinic_id, year, month, values))

        for key, raw_value in raw_row.items():
            entry, ambiguous = self.lookup(str(key))
            if entry is None:
                (result.ambiguous if ambiguous else result.unmapped).append(str(key))
                continue

            amount = coerce_amount(raw_value)
            if entry.category == TOTALS:
                if amount is not None:
                    result.source_totals[entry.field] = amount
                continue

            if amount is None:
                # Leave the field for the validator to default and report
                values.setdefault(entry.field, None)
                continue
            if entry.field in ROLLUP_FIELDS:
                # Header and "Total ..." lines restate one subtotal; never add them up
                values[entry.field] = amount
            else:
                values[entry.field] = (values.get(entry.field) or Decimal("0")) + amount

        for key in result.unmapped:
            logger.warning("Unmapped line item '%s' for %s/%s dropped", key, year, month)
        for key in result.ambiguous:
            logger.warning("Ambiguous account code '%s' for %s/%s dropped", key, year, month)
        return result
