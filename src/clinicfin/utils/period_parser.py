"""Month header parsing utilities."""

from datetime import datetime
from typing import Optional

from dateutil import parser as date_parser

_MONTHS = {
    "jan": 1, "feb": 2, "mar": 3, "apr": 4, "may": 5, "jun": 6,
    "jul": 7, "aug": 8, "sep": 9, "oct": 10, "nov": 11, "dec": 12,
}

# Parsed headers only need year and month; the day is pinned to the 1st.
_DEFAULT = datetime(2000, 1, 1)


def expand_two_digit_year(year: int) -> int:
    """Convert a 2-digit year to 4 digits (23 -> 2023, 99 -> 1999)."""
    if year >= 100:
        return year
    return 2000 + year if year < 50 else 1900 + year


def parse_month_header(header: Optional[str]) -> Optional[tuple[int, int]]:
    """Parse a P&L month column header into (year, month).

    Supports the QuickBooks short form ("Jan 23") and falls back to
    dateutil for longer spellings ("January 2024", "2024-01").

    Returns:
        (year, month) tuple, or None if the header is not a month
    """
    if not header or not header.strip():
        return None

    header = header.strip()
    parts = header.split()
    if len(parts) == 2:
        month = _MONTHS.get(parts[0][:3].lower())
        if month is not None and parts[1].isdigit():
            return (expand_two_digit_year(int(parts[1])), month)

    # Columns like "TOTAL", "Jan - Dec 24" or a bare number are not single months
    if header.isdigit() or not any(ch.isdigit() for ch in header) or " - " in header:
        return None

    try:
        parsed = date_parser.parse(header, default=_DEFAULT)
    except (ValueError, OverflowError):
        return None
    return (parsed.year, parsed.month)
