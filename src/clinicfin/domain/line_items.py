"""Canonical P&L schema and the account-code mapping table.

Every FinancialRecord carries the same fixed set of fields:

- leaf fields: atomic amounts read from the source spreadsheet, grouped in
  four categories (income, cogs, expenses, other),
- rollup fields: subtotals whose value is the sum of their children when any
  child is present (payroll tiers, automobile, meals, insurance),
- derived totals: computed by the calculation engine, never taken from the
  source.

LINE_ITEM_MAPPINGS maps raw account codes (or code-less QuickBooks labels)
onto those fields. A few codes are reused for different accounts; those
entries are told apart by their label.
"""

from dataclasses import dataclass
from typing import Optional

INCOME = "income"
COGS = "cogs"
EXPENSES = "expenses"
OTHER = "other"
TOTALS = "totals"

CATEGORIES = (INCOME, COGS, EXPENSES, OTHER, TOTALS)


@dataclass(frozen=True)
class MappingEntry:
    """One row of the line-item mapping table."""

    code: Optional[str]
    label: str
    field: str
    category: str


INCOME_FIELDS = (
    "hd_research_income",
    "personal_injury_income",
    "ach_credit_income",
    "nonmedical_income",
    "otc_deposit_income",
    "practice_income",
    "refunds_income",
    "management_fee_income",
)

COGS_FIELDS = (
    "cogs_consulting",
    "cogs_medical_waste",
    "cogs_medical_billing",
    "cogs_medical_supplies",
    "cogs_contract_labor",
    "cogs_merchant_fees",
    "cogs_management_fees",
    "cogs_medical_books",
    "cogs_laboratory_fees",
    "cogs_laboratory_directory",
    "cogs_lab_supplies",
    "cogs_patient_expense",
    "cogs_chronic_care_management",
)

SHARED_PAYROLL_FIELDS = (
    "payroll_shared_wages",
    "payroll_shared_tax",
    "payroll_shared_overhead",
    "payroll_shared_health",
    "payroll_shared_contract",
    "payroll_shared_reimbursements",
)

PHYSICIAN_PAYROLL_FIELDS = (
    "payroll_physician_wages",
    "payroll_physician_tax",
    "payroll_physician_benefits",
    "payroll_physician_bonus",
    "payroll_physician_other",
)

IN_OFFICE_PAYROLL_FIELDS = (
    "payroll_in_office_salary",
    "payroll_in_office_wages",
    "payroll_in_office_bonus",
    "payroll_in_office_np_extra_visits",
    "payroll_in_office_telehealth",
    "payroll_in_office_administration",
    "payroll_in_office_payroll_taxes",
    "payroll_in_office_unemployment",
    "payroll_in_office_health_insurance",
    "payroll_in_office_simple_plan_match",
    "payroll_in_office_other",
)

AUTOMOBILE_FIELDS = (
    "automobile_expense_other",
    "gas_expense",
    "parking_expense",
)

MEALS_FIELDS = (
    "business_entertainment_expense",
    "employee_meals_expense",
    "travel_meals_expense",
    "office_snacks_expense",
    "office_party_expense",
    "meals_entertainment_expense_other",
)

INSURANCE_FIELDS = (
    "health_insurance_expense",
    "liability_insurance_expense",
    "medical_malpractice_expense",
    "insurance_expense_other",
)

# Operating expense leaves that do not roll up into a subtotal.
STANDALONE_EXPENSE_FIELDS = (
    "rent_expense",
    "utilities_expense",
    "janitorial_expense",
    "repairs_maintenance_expense",
    "security_expense",
    "accounting_expense",
    "legal_fees_expense",
    "professional_fees_expense",
    "credentialing_expense",
    "office_expense",
    "office_supplies_expense",
    "postage_expense",
    "printing_expense",
    "computer_expense",
    "telephone_internet_expense",
    "advertising_expense",
    "charitable_expense",
    "marketing_gifts_expense",
    "small_medical_equip_expense",
    "oxygen_gas_expense",
    "radiation_badges_expense",
    "linens_cleaning_expense",
    "equipment_rental_expense",
    "travel_expense",
    "taxes_expense",
    "personal_property_tax_expense",
    "franchise_tax_expense",
    "licenses_permits_expense",
    "license_fee_expense",
    "bank_service_charges_expense",
    "continuing_education_expense",
    "dues_subscriptions_expense",
    "uniforms_expense",
    "answering_service_expense",
    "recruiting_expense",
    "moving_expense",
    "conference_fees_expense",
    "miscellaneous_expense",
)

EXPENSE_LEAF_FIELDS = (
    SHARED_PAYROLL_FIELDS
    + PHYSICIAN_PAYROLL_FIELDS
    + IN_OFFICE_PAYROLL_FIELDS
    + ("payroll_processing_fees", "payroll_other")
    + AUTOMOBILE_FIELDS
    + MEALS_FIELDS
    + INSURANCE_FIELDS
    + STANDALONE_EXPENSE_FIELDS
)

OTHER_FIELDS = (
    "interest_income",
    "depreciation_expense",
    "management_fee_paid",
    "interest_expense",
    "corporate_admin_fee",
    "other_expenses",
)

# Parent subtotal -> children, inner tiers listed before the tiers using them.
ROLLUPS: dict[str, tuple[str, ...]] = {
    "shared_payroll": SHARED_PAYROLL_FIELDS,
    "physician_payroll": PHYSICIAN_PAYROLL_FIELDS,
    "in_office_payroll": IN_OFFICE_PAYROLL_FIELDS,
    "payroll_expense": (
        "shared_payroll",
        "physician_payroll",
        "in_office_payroll",
        "payroll_processing_fees",
        "payroll_other",
    ),
    "automobile_expense": AUTOMOBILE_FIELDS,
    "meals_entertainment_expense": MEALS_FIELDS,
    "insurance_expense": INSURANCE_FIELDS,
}

ROLLUP_FIELDS = tuple(ROLLUPS)

_ROLLUP_CHILDREN = {child for children in ROLLUPS.values() for child in children}

# Lines summed into total_expenses: standalone leaves plus outermost rollups.
TOP_LEVEL_EXPENSE_FIELDS = tuple(
    field for field in ROLLUP_FIELDS if field not in _ROLLUP_CHILDREN
) + STANDALONE_EXPENSE_FIELDS

# Subtracted from net ordinary income; interest_income is added instead.
NET_INCOME_DEDUCTIONS = (
    "depreciation_expense",
    "management_fee_paid",
    "interest_expense",
    "corporate_admin_fee",
    "other_expenses",
)

DERIVED_FIELDS = (
    "total_income",
    "total_cogs",
    "gross_profit",
    "total_expenses",
    "net_ordinary_income",
    "net_income",
)

LEAF_FIELDS = INCOME_FIELDS + COGS_FIELDS + EXPENSE_LEAF_FIELDS + OTHER_FIELDS

ALL_FIELDS = LEAF_FIELDS + ROLLUP_FIELDS + DERIVED_FIELDS

FIELD_CATEGORIES: dict[str, str] = {
    **{field: INCOME for field in INCOME_FIELDS},
    **{field: COGS for field in COGS_FIELDS},
    **{field: EXPENSES for field in EXPENSE_LEAF_FIELDS + ROLLUP_FIELDS},
    **{field: OTHER for field in OTHER_FIELDS},
    **{field: TOTALS for field in DERIVED_FIELDS},
}


def _entries(category: str, rows: tuple[tuple[Optional[str], str, str], ...]) -> tuple[MappingEntry, ...]:
    return tuple(MappingEntry(code, label, field, category) for code, label, field in rows)


LINE_ITEM_MAPPINGS: tuple[MappingEntry, ...] = (
    _entries(
        INCOME,
        (
            ("40000", "HD Research LLC Income", "hd_research_income"),
            ("41000", "Personal Injury", "personal_injury_income"),
            ("42000", "Nonmedical Income", "nonmedical_income"),
            ("43000", "ACH Credit", "ach_credit_income"),
            ("44000", "OTC Deposit", "otc_deposit_income"),
            ("44500", "Practice Income", "practice_income"),
            ("45000", "Refunds", "refunds_income"),
            ("46000", "Management Fee Income", "management_fee_income"),
        ),
    )
    + _entries(
        COGS,
        (
            ("51000", "Consulting", "cogs_consulting"),
            ("52000", "Medical Waste", "cogs_medical_waste"),
            ("53000", "Medical Billing", "cogs_medical_billing"),
            ("54000", "Medical Supplies", "cogs_medical_supplies"),
            ("55000", "Contract Labor", "cogs_contract_labor"),
            ("56000", "Merchant Fees", "cogs_merchant_fees"),
            ("58000", "Management Fees", "cogs_management_fees"),
            ("64300", "Medical Books and Research", "cogs_medical_books"),
            ("68200", "Laboratory Fees", "cogs_laboratory_fees"),
            ("59100", "Laboratory Directory", "cogs_laboratory_directory"),
            ("6380", "Laboratory Directory", "cogs_laboratory_directory"),
            ("68300", "Lab Supplies", "cogs_lab_supplies"),
            ("59300", "Patient Expense", "cogs_patient_expense"),
            ("59400", "Chronic Care Management", "cogs_chronic_care_management"),
            ("57500", "Chronic Care Management", "cogs_chronic_care_management"),
        ),
    )
    + _entries(
        EXPENSES,
        (
            # Payroll: shared
            ("66030", "Wages", "payroll_shared_wages"),
            ("66033", "Payroll Tax", "payroll_shared_tax"),
            ("66031", "Payroll Overhead", "payroll_shared_overhead"),
            ("66032", "Health Insurance", "payroll_shared_health"),
            ("66038", "Contract Labor", "payroll_shared_contract"),
            ("66039", "Reimbursments", "payroll_shared_reimbursements"),
            (None, "Total Shared Payroll", "shared_payroll"),
            # Payroll: physician
            ("66010", "Wages", "payroll_physician_wages"),
            ("66011", "Payroll Tax", "payroll_physician_tax"),
            ("66012", "Provider Benefits", "payroll_physician_benefits"),
            ("66075", "Physician Bonus", "payroll_physician_bonus"),
            (None, "Physician Payroll - Other", "payroll_physician_other"),
            (None, "Total Physician Payroll", "physician_payroll"),
            # Payroll: in-office
            ("66020", "Salary - Other", "payroll_in_office_salary"),
            ("66051", "Wages", "payroll_in_office_wages"),
            ("66052", "Bonus", "payroll_in_office_bonus"),
            ("66053", "NP Extra Visits", "payroll_in_office_np_extra_visits"),
            ("66054", "Telehealth", "payroll_in_office_telehealth"),
            ("66055", "Administration", "payroll_in_office_administration"),
            ("66061", "Payroll Taxes", "payroll_in_office_payroll_taxes"),
            ("66062", "Unemployment", "payroll_in_office_unemployment"),
            ("66071", "Health Insurance", "payroll_in_office_health_insurance"),
            ("66072", "Simple Plan Match", "payroll_in_office_simple_plan_match"),
            (None, "In Office Payroll - Other", "payroll_in_office_other"),
            (None, "Total In-Office Payroll", "in_office_payroll"),
            # Payroll: processing and total
            ("65800", "Payroll Processing Fees", "payroll_processing_fees"),
            (None, "Payroll - Other", "payroll_other"),
            (None, "Total Payroll", "payroll_expense"),
            # Facilities
            ("67100", "Rent Expense", "rent_expense"),
            ("68600", "Utilities", "utilities_expense"),
            ("65900", "Janitorial Expense", "janitorial_expense"),
            ("65200", "Janitorial Expense", "janitorial_expense"),
            ("67200", "Repairs and Maintenance", "repairs_maintenance_expense"),
            ("67400", "Security", "security_expense"),
            # Professional services
            ("65100", "Accounting", "accounting_expense"),
            ("66400", "Legal Fees", "legal_fees_expense"),
            ("66700", "Professional Fees", "professional_fees_expense"),
            ("65475", "Credentialing", "credentialing_expense"),
            # Office and admin
            ("66800", "Office Expense", "office_expense"),
            ("64900", "Office Supplies", "office_supplies_expense"),
            ("66900", "Postage", "postage_expense"),
            ("67300", "Printing", "printing_expense"),
            ("68100", "Computer Expense", "computer_expense"),
            ("66200", "Telephone and Internet", "telephone_internet_expense"),
            # Marketing
            ("65000", "Advertising and Promotion", "advertising_expense"),
            ("65350", "Charitable Contributions", "charitable_expense"),
            ("66120", "Marketing Gifts", "marketing_gifts_expense"),
            # Medical operations
            ("67700", "Small Medical Equipment", "small_medical_equip_expense"),
            ("67600", "Oxygen and Gas", "oxygen_gas_expense"),
            ("67900", "Radiation Badges", "radiation_badges_expense"),
            ("66500", "Linens and Cleaning", "linens_cleaning_expense"),
            ("67500", "Equipment Rental", "equipment_rental_expense"),
            # Travel and auto
            ("65200", "Automobile Expense", "automobile_expense"),
            (None, "Automobile Expense", "automobile_expense"),
            (None, "Total Automobile Expense", "automobile_expense"),
            (None, "Automobile Expense - Other", "automobile_expense_other"),
            ("65210", "Gas", "gas_expense"),
            ("65220", "Parking", "parking_expense"),
            ("68400", "Travel Expense", "travel_expense"),
            # Meals and entertainment
            ("66110", "Business Entertainment", "business_entertainment_expense"),
            ("66150", "Employee meals on Premises", "employee_meals_expense"),
            ("66160", "Travel Meals", "travel_meals_expense"),
            ("66140", "Office Snacks and Beverages", "office_snacks_expense"),
            ("66140", "Office Party", "office_party_expense"),
            (None, "Meals and Entertainment - Other", "meals_entertainment_expense_other"),
            (None, "Total Meals and Entertainment", "meals_entertainment_expense"),
            # Insurance
            ("65610", "Health Insurance", "health_insurance_expense"),
            ("65620", "Liability Insurance", "liability_insurance_expense"),
            ("65630", "Medical Malpractice", "medical_malpractice_expense"),
            (None, "Insurance - Other", "insurance_expense_other"),
            (None, "Total Insurance", "insurance_expense"),
            # Taxes, licenses and everything else
            ("68000", "Taxes", "taxes_expense"),
            ("68010", "Personal Property Tax", "personal_property_tax_expense"),
            ("68020", "Franchise Tax", "franchise_tax_expense"),
            ("65700", "Business Licenses and Permits", "licenses_permits_expense"),
            ("6380", "License & Fee", "license_fee_expense"),
            ("65300", "Bank Service Charges", "bank_service_charges_expense"),
            ("65400", "Continuing Education", "continuing_education_expense"),
            ("65500", "Dues and Subscriptions", "dues_subscriptions_expense"),
            ("68500", "Uniforms", "uniforms_expense"),
            ("69900", "Answering Service", "answering_service_expense"),
            ("67800", "Recruiting", "recruiting_expense"),
            ("66600", "Moving Expense", "moving_expense"),
            ("68700", "Conference Fees", "conference_fees_expense"),
            ("70000", "Miscellaneous", "miscellaneous_expense"),
        ),
    )
    + _entries(
        OTHER,
        (
            ("93000", "Interest Income", "interest_income"),
            ("84000", "Depreciation Expense", "depreciation_expense"),
            ("80000", "Management Fee Paid", "management_fee_paid"),
            ("85000", "Interest Expense", "interest_expense"),
            ("89005", "Corporate Admin Fee", "corporate_admin_fee"),
            ("80500", "Other Expenses", "other_expenses"),
        ),
    )
    + _entries(
        TOTALS,
        (
            (None, "Total Income", "total_income"),
            (None, "Cost of Goods Sold", "total_cogs"),
            (None, "Total COGS", "total_cogs"),
            (None, "Gross Profit", "gross_profit"),
            (None, "Total Expense", "total_expenses"),
            (None, "Net Ordinary Income", "net_ordinary_income"),
            (None, "Net Income", "net_income"),
        ),
    )
)


def fields_for_category(category: str) -> tuple[str, ...]:
    """Return the schema fields belonging to a category, in schema order."""
    if category not in CATEGORIES:
        raise ValueError(f"Unknown line item category '{category}'")
    return tuple(field for field in ALL_FIELDS if FIELD_CATEGORIES[field] == category)
