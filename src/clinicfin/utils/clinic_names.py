"""Helpers for deriving clinic identity from P&L files."""

import re
from pathlib import Path
from typing import Optional

_LLC_PATTERN = re.compile(r"^.*?\bLLC\s*-\s*(.+)$", re.IGNORECASE)
_PARENS_PATTERN = re.compile(r"\(([^)]+)\)")


def clinic_name_from_filename(filename: str) -> str:
    """Extract a clinic name from a filename.

    "APP Financials 23-25(West_Houston).csv" -> "West Houston"
    """
    match = _PARENS_PATTERN.search(filename)
    if match:
        return match.group(1).replace("_", " ").strip()
    return Path(filename).stem


def clinic_name_from_title(title: Optional[str]) -> Optional[str]:
    """Extract a clinic name from the report title cell.

    "American Pain Partners LLC - Webster" -> "Webster". Titles that look
    like report captions ("Profit & Loss") yield None.
    """
    if not title or not title.strip():
        return None

    match = _LLC_PATTERN.match(title.strip())
    if match:
        return match.group(1).strip()

    cleaned = title.strip()
    if "LLC" in cleaned or "Profit" in cleaned or "Loss" in cleaned:
        return None
    return cleaned


def location_from_name(name: str) -> str:
    """Return the trailing "- Location" part of a clinic name, or the name."""
    parts = name.split("-")
    if len(parts) > 1:
        return parts[-1].strip()
    return name.strip()
