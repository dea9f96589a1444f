"""QuickBooks profit & loss CSV parser.

Expected layout of the export::

    American Pain Partners LLC - Webster        <- row 0: title, clinic
    Profit & Loss                               <- row 1
    January 2024 through December 2024          <- row 2
    ,Jan 24,,Feb 24,,...,TOTAL                  <- row 3: month headers
    Ordinary Income/Expense                     <- row 4 onwards: line items
    40000 · HD Research LLC Income,"1,250.00",,(75.00),,...

Each month column becomes one raw row keyed by the line-item label.
"""

import csv
import logging
from dataclasses import dataclass, field
from pathlib import Path

from clinicfin.domain.entities import RawRow
from clinicfin.domain.errors import ParseError
from clinicfin.utils.clinic_names import clinic_name_from_filename, clinic_name_from_title
from clinicfin.utils.period_parser import parse_month_header

logger = logging.getLogger(__name__)

MIN_ROWS = 5
HEADER_ROW = 3
FIRST_DATA_ROW = 4


@dataclass(frozen=True)
class RawMonth:
    """Raw line items of one month column."""

    year: int
    month: int
    column: int
    raw: RawRow


@dataclass(frozen=True)
class ParsedFile:
    """A parsed P&L export."""

    file_name: str
    clinic_name: str
    months: list[RawMonth] = field(default_factory=list)


def _read_rows(path: Path) -> list[list[str]]:
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            return [row for row in csv.reader(f)]
    except FileNotFoundError as e:
        raise ParseError(f"File not found: {path}") from e
    except (OSError, UnicodeDecodeError, csv.Error) as e:
        raise ParseError(f"Could not read {path.name}: {e}") from e


def _month_columns(header: list[str]) -> list[tuple[int, int, int]]:
    """Return (column, year, month) for every month header in the row."""
    columns = []
    for column, cell in enumerate(header):
        if column == 0:
            continue
        period = parse_month_header(cell)
        if period is not None:
            columns.append((column, period[0], period[1]))
    return columns


def parse_pl_file(path: str | Path) -> ParsedFile:
    """Parse a QuickBooks P&L CSV export into raw monthly rows.

    Args:
        path: Path to the CSV file

    Returns:
        ParsedFile with one RawMonth per month column holding any value

    Raises:
        ParseError: If the file is unreadable, too short or has no month
            columns
    """
    path = Path(path)
    rows = _read_rows(path)
    if len(rows) < MIN_ROWS:
        raise ParseError(f"{path.name}: expected at least {MIN_ROWS} rows, found {len(rows)}")

    title = rows[0][0] if rows[0] else None
    clinic_name = clinic_name_from_title(title) or clinic_name_from_filename(path.name)

    columns = _month_columns(rows[HEADER_ROW])
    if not columns:
        raise ParseError(f"{path.name}: no month columns found in row {HEADER_ROW + 1}")

    months = []
    for column, year, month in columns:
        raw: RawRow = {}
        for row in rows[FIRST_DATA_ROW:]:
            if not row or not row[0].strip() or column >= len(row):
                continue
            cell = row[column].strip()
            if not cell:
                # Section headers carry no amounts
                continue
            raw[row[0].strip()] = cell
        if not raw:
            logger.debug("%s: skipping empty month column %s/%s", path.name, year, month)
            continue
        months.append(RawMonth(year=year, month=month, column=column, raw=raw))

    logger.info("Parsed %s: clinic '%s', %d month(s)", path.name, clinic_name, len(months))
    return ParsedFile(file_name=path.name, clinic_name=clinic_name, months=months)
