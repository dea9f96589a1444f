"""Tests for the calculation engine."""

from decimal import Decimal

import pytest

from clinicfin.domain.calculation import EPSILON, differs, to_cents
from clinicfin.domain.entities import FinancialRecord
from clinicfin.domain.line_items import ALL_FIELDS, DERIVED_FIELDS


def D(value) -> Decimal:
    return Decimal(str(value))


def test_worked_example(engine):
    """Test the derived totals of a small record."""
    values = engine.recompute_values(
        {
            "hd_research_income": D(100000),
            "cogs_medical_billing": D(20000),
            "payroll_shared_wages": D(30000),
        }
    )

    assert values["total_income"] == D(100000)
    assert values["total_cogs"] == D(20000)
    assert values["gross_profit"] == D(80000)
    assert values["shared_payroll"] == D(30000)
    assert values["payroll_expense"] == D(30000)
    assert values["total_expenses"] == D(30000)
    assert values["net_ordinary_income"] == D(50000)
    assert values["net_income"] == D(50000)


def test_other_income_and_expenses(engine):
    """Test the net income adjustments below net ordinary income."""
    values = engine.recompute_values(
        {
            "practice_income": D(1000),
            "interest_income": D(10),
            "depreciation_expense": D(100),
            "management_fee_paid": D(50),
            "interest_expense": D(5),
            "corporate_admin_fee": D(20),
            "other_expenses": D(1),
        }
    )

    assert values["net_ordinary_income"] == D(1000)
    assert values["net_income"] == D(1000 + 10 - 100 - 50 - 5 - 20 - 1)


def test_payroll_tiers_roll_up(engine):
    """Test nested payroll rollups."""
    values = engine.recompute_values(
        {
            "payroll_shared_wages": D(100),
            "payroll_shared_tax": D(10),
            "payroll_physician_wages": D(200),
            "payroll_in_office_wages": D(50),
            "payroll_processing_fees": D(5),
        }
    )

    assert values["shared_payroll"] == D(110)
    assert values["physician_payroll"] == D(200)
    assert values["in_office_payroll"] == D(50)
    assert values["payroll_expense"] == D(365)
    assert values["total_expenses"] == D(365)


def test_rollup_without_children_keeps_reported_subtotal(engine):
    """Test that a subtotal with no detail lines is kept."""
    values = engine.recompute_values({"automobile_expense": D(40), "rent_expense": D(60)})

    assert values["automobile_expense"] == D(40)
    assert values["total_expenses"] == D(100)


def test_rollup_with_children_replaces_reported_subtotal(engine):
    """Test that detail lines win over a stale subtotal."""
    values = engine.recompute_values(
        {"automobile_expense": D(999), "gas_expense": D(30), "parking_expense": D(10)}
    )

    assert values["automobile_expense"] == D(40)
    assert values["total_expenses"] == D(40)


def test_source_totals_are_ignored(engine):
    """Test that stored totals are always recomputed from leaves."""
    values = engine.recompute_values({"practice_income": D(10), "total_income": D(5000)})

    assert values["total_income"] == D(10)


def test_formula_invariant_holds(engine):
    """Test the formula chain on a record touching every category."""
    values = engine.recompute_values(
        {
            "practice_income": D("1234.56"),
            "refunds_income": D("-34.56"),
            "cogs_lab_supplies": D("200.10"),
            "rent_expense": D("300"),
            "health_insurance_expense": D("25.25"),
            "employee_meals_expense": D("4.75"),
            "interest_income": D("1.11"),
            "depreciation_expense": D("2.22"),
        }
    )

    assert values["gross_profit"] == values["total_income"] - values["total_cogs"]
    assert values["net_ordinary_income"] == values["gross_profit"] - values["total_expenses"]
    assert values["total_expenses"] == D("330.00")


def test_recompute_is_idempotent(engine):
    """Test that recomputing a recomputed record changes nothing."""
    once = engine.recompute_values({"practice_income": D(10), "gas_expense": D(3)})

    assert engine.recompute_values(once) == once
    assert engine.find_drift(once) == []


def test_recompute_record_returns_copy(engine):
    """Test recomputing a record entity."""
    record = FinancialRecord(clinic_id=1, year=2024, month=1, values={"practice_income": D(10)})

    fixed = engine.recompute(record)

    assert fixed is not record
    assert fixed.get("net_income") == D(10)
    assert set(fixed.values) == set(ALL_FIELDS)
    assert "net_income" not in record.values


def test_find_drift(engine):
    """Test reporting stored totals that disagree with their leaves."""
    values = engine.recompute_values({"practice_income": D(100)})
    values["total_income"] = D("100.50")
    values["net_income"] = D("100.01")

    drift = engine.find_drift(values)

    assert [d.field for d in drift] == ["total_income"]
    assert drift[0].stored == D("100.50")
    assert drift[0].expected == D(100)
    assert drift[0].difference == D("0.50")


def test_drift_covers_only_derived_and_rollups(engine):
    """Test that leaf fields never drift."""
    fields = {d.field for d in engine.find_drift({"total_income": D(1), "gas_expense": D(0)})}

    assert fields <= set(DERIVED_FIELDS) | {"automobile_expense"}
    assert "total_income" in fields


def test_compare_source_totals(engine):
    """Test comparing printed totals with the recomputed record."""
    record = engine.recompute(
        FinancialRecord(clinic_id=1, year=2024, month=1, values={"practice_income": D(100)})
    )

    drift = engine.compare_source_totals({"total_income": D(100), "net_income": D(90)}, record)

    assert [(d.field, d.stored, d.expected) for d in drift] == [("net_income", D(90), D(100))]


@pytest.mark.parametrize(
    "a,b,expected",
    [("1.00", "1.01", False), ("1.00", "1.02", True), ("-5", "-5.005", False)],
)
def test_epsilon_threshold(a, b, expected):
    """Test the single drift threshold."""
    assert EPSILON == D("0.01")
    assert differs(D(a), D(b)) is expected


def test_to_cents():
    """Test rounding to whole cents."""
    assert to_cents(D("1.005")) == D("1.01")
    assert to_cents(D(3)) == D("3.00")
