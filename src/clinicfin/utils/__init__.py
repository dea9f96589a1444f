"""Utility functions for clinicfin."""

from clinicfin.utils.amount_parser import parse_amount, coerce_amount
from clinicfin.utils.period_parser import parse_month_header
from clinicfin.utils.clinic_names import (
    clinic_name_from_filename,
    clinic_name_from_title,
    location_from_name,
)

__all__ = [
    "parse_amount",
    "coerce_amount",
    "parse_month_header",
    "clinic_name_from_filename",
    "clinic_name_from_title",
    "location_from_name",
]
