"""Calculation engine for derived P&L totals.

One implementation of the formula chain, used by ingestion, audit, repair
and verification alike:

    rollup(parent)      = sum(children) if any child is non-zero else parent
    total_income        = sum(income leaves)
    total_cogs          = sum(cogs leaves)
    total_expenses      = sum(top-level expense lines)
    gross_profit        = total_income - total_cogs
    net_ordinary_income = gross_profit - total_expenses
    net_income          = net_ordinary_income + interest_income
                          - depreciation_expense - management_fee_paid
                          - interest_expense - corporate_admin_fee
                          - other_expenses

Totals found in the input are never trusted.
"""

from dataclasses import dataclass, replace
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping

from clinicfin.domain.entities import FinancialRecord
from clinicfin.domain.line_items import (
    ALL_FIELDS,
    COGS_FIELDS,
    DERIVED_FIELDS,
    INCOME_FIELDS,
    NET_INCOME_DEDUCTIONS,
    ROLLUPS,
    ROLLUP_FIELDS,
    TOP_LEVEL_EXPENSE_FIELDS,
)

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Stored and recomputed amounts further apart than this are drift.
EPSILON = Decimal("0.01")


def to_cents(amount: Decimal) -> Decimal:
    """Round an amount to whole cents."""
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def differs(a: Decimal, b: Decimal) -> bool:
    """True when two amounts differ by more than EPSILON."""
    return abs(Decimal(a) - Decimal(b)) > EPSILON


@dataclass(frozen=True)
class FieldDrift:
    """A stored derived field that disagrees with its recomputed value."""

    field: str
    stored: Decimal
    expected: Decimal

    @property
    def difference(self) -> Decimal:
        return self.stored - self.expected


class CalculationEngine:
    """Pure recomputation of rollups and derived totals."""

    def recompute_values(self, values: Mapping[str, Decimal]) -> dict[str, Decimal]:
        """Return a full field map with rollups and totals recomputed."""
        result = {name: Decimal(values.get(name, ZERO)) for name in ALL_FIELDS}

        # ROLLUPS lists inner tiers first, so nested parents see resolved children
        for parent, children in ROLLUPS.items():
            if any(result[child] != ZERO for child in children):
                result[parent] = sum((result[child] for child in children), ZERO)

        result["total_income"] = sum((result[f] for f in INCOME_FIELDS), ZERO)
        result["total_cogs"] = sum((result[f] for f in COGS_FIELDS), ZERO)
        result["total_expenses"] = sum((result[f] for f in TOP_LEVEL_EXPENSE_FIELDS), ZERO)
        result["gross_profit"] = result["total_income"] - result["total_cogs"]
        result["net_ordinary_income"] = result["gross_profit"] - result["total_expenses"]
        result["net_income"] = (
            result["net_ordinary_income"]
            + result["interest_income"]
            - sum((result[f] for f in NET_INCOME_DEDUCTIONS), ZERO)
        )
        return result

    def recompute(self, record: FinancialRecord) -> FinancialRecord:
        """Return a copy of the record with rollups and totals recomputed."""
        return replace(record, values=self.recompute_values(record.values))

    def find_drift(self, values: Mapping[str, Decimal]) -> list[FieldDrift]:
        """List rollup and derived fields that differ from their recomputed value."""
        expected = self.recompute_values(values)
        drift = []
        for name in ROLLUP_FIELDS + DERIVED_FIELDS:
            stored = Decimal(values.get(name, ZERO))
            if differs(stored, expected[name]):
                drift.append(FieldDrift(field=name, stored=stored, expected=expected[name]))
        return drift

    def compare_source_totals(
        self, source_totals: Mapping[str, Decimal], record: FinancialRecord
    ) -> list[FieldDrift]:
        """Compare totals printed in a source file with the recomputed record."""
        return [
            FieldDrift(field=name, stored=amount, expected=record.get(name))
            for name, amount in source_totals.items()
            if differs(amount, record.get(name))
        ]
