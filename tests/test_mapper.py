"""Tests for the line-item mapper."""

from decimal import Decimal

from clinicfin.domain.mapper import LineItemMapper, normalize_label, split_key


def test_split_key_variants():
    """Test the separators QuickBooks exports use between code and label."""
    assert split_key("66030 · Wages") == ("66030", "Wages")
    assert split_key("66030 � Wages") == ("66030", "Wages")
    assert split_key("64300· Medical Books and Research") == ("64300", "Medical Books and Research")
    assert split_key("40000") == ("40000", "")
    assert split_key("Automobile Expense - Other") == (None, "Automobile Expense - Other")


def test_normalize_label():
    """Test case and whitespace folding."""
    assert normalize_label("  Total   Payroll ") == "total payroll"


def test_map_worked_example(mapper):
    """Test mapping bare codes onto schema fields."""
    result = mapper.map_row({"40000": 100000, "53000": 20000, "66030": 30000}, 1, 2024, 1)

    values = result.candidate.values
    assert values["hd_research_income"] == Decimal("100000")
    assert values["cogs_medical_billing"] == Decimal("20000")
    assert values["payroll_shared_wages"] == Decimal("30000")
    assert result.unmapped == []
    assert result.ambiguous == []


def test_map_labelled_keys(mapper):
    """Test mapping full QuickBooks labels and code-less labels."""
    result = mapper.map_row(
        {
            "40000 · HD Research LLC Income": "1,250.00",
            "Automobile Expense - Other": "(75.00)",
        },
        1,
        2024,
        2,
    )

    assert result.candidate.values["hd_research_income"] == Decimal("1250.00")
    assert result.candidate.values["automobile_expense_other"] == Decimal("-75.00")


def test_codes_sharing_a_field_are_summed(mapper):
    """Test that two codes for one account add up."""
    result = mapper.map_row({"57500": "100", "59400": "50"}, 1, 2024, 1)

    assert result.candidate.values["cogs_chronic_care_management"] == Decimal("150")


def test_ambiguous_code_resolved_by_label(mapper):
    """Test that a reused code is told apart by its label."""
    result = mapper.map_row(
        {
            "65200 · Janitorial Expense": "10",
            "66140 · Office Party": "20",
            "6380 · License & Fee": "30",
        },
        1,
        2024,
        1,
    )

    values = result.candidate.values
    assert values["janitorial_expense"] == Decimal("10")
    assert values["office_party_expense"] == Decimal("20")
    assert values["license_fee_expense"] == Decimal("30")
    assert "automobile_expense" not in values
    assert result.ambiguous == []


def test_bare_ambiguous_code_is_reported(mapper):
    """Test that an ambiguous code without a label is dropped, not guessed."""
    result = mapper.map_row({"65200": "10"}, 1, 2024, 1)

    assert result.ambiguous == ["65200"]
    assert result.candidate.values == {}
    assert "Ambiguous account code '65200'" in result.warnings


def test_unmapped_keys_are_reported(mapper):
    """Test that unknown codes are warnings and their amounts are dropped."""
    result = mapper.map_row({"99999": "500", "Mystery Line": "1"}, 1, 2024, 1)

    assert result.unmapped == ["99999", "Mystery Line"]
    assert result.candidate.values == {}


def test_source_totals_kept_aside(mapper):
    """Test that grand totals in the source never populate the record."""
    result = mapper.map_row({"40000": "100", "Total Income": "999", "Net Income": "5"}, 1, 2024, 1)

    assert "total_income" not in result.candidate.values
    assert result.source_totals == {"total_income": Decimal("999"), "net_income": Decimal("5")}


def test_rollup_subtotal_lines_do_not_double(mapper):
    """Test that a rollup header and its total line restate one subtotal."""
    result = mapper.map_row(
        {"Automobile Expense": "40", "Total Automobile Expense": "40"}, 1, 2024, 1
    )

    assert result.candidate.values["automobile_expense"] == Decimal("40")


def test_unreadable_amount_left_for_validator(mapper):
    """Test that an unreadable cell maps to None."""
    result = mapper.map_row({"40000": "n/a"}, 1, 2024, 1)

    assert result.candidate.values == {"hd_research_income": None}


def test_custom_mapping_table():
    """Test a mapper over an alternative table."""
    from clinicfin.domain.line_items import MappingEntry

    mapper = LineItemMapper((MappingEntry("100", "Sales", "practice_income", "income"),))
    result = mapper.map_row({"100 · Sales": "7", "40000": "1"}, 1, 2024, 1)

    assert result.candidate.values == {"practice_income": Decimal("7")}
    assert result.unmapped == ["40000"]


def test_non_finite_amounts_left_for_validator(mapper):
    """Test that NaN and infinite cells map to None instead of summing."""
    result = mapper.map_row({"40000": "Infinity", "66030": "NaN", "53000": "sNaN"}, 1, 2024, 1)

    assert result.candidate.values == {
        "hd_research_income": None,
        "payroll_shared_wages": None,
        "cogs_medical_billing": None,
    }
