"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re
from typing import Optional

# Cells QuickBooks exports for "nothing booked this month".
_ZERO_MARKERS = {"-", "--", "—"}


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into a Decimal.

    Handles various formats:
    - "123.45"
    - "$123.45"
    - "-123.45"
    - "1,234.56"
    - "(123.45)" (negative in parentheses)
    - "-" (zero)

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    # Remove whitespace and stray quotes
    amount_str = amount_str.strip().replace('"', "")

    if amount_str in _ZERO_MARKERS:
        return Decimal("0")

    # Handle parentheses notation (negative)
    is_negative = False
    if amount_str.startswith("(") and amount_str.endswith(")"):
        is_negative = True
        amount_str = amount_str[1:-1]

    # Remove currency symbols
    amount_str = re.sub(r"[$€£¥]", "", amount_str)

    # Remove commas and inner spaces
    amount_str = amount_str.replace(",", "").replace(" ", "")

    try:
        amount = Decimal(amount_str)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Amount '{amount_str}' is not a finite number")
    if is_negative:
        amount = -amount
    return amount


def coerce_amount(value: object) -> Optional[Decimal]:
    """Convert a raw spreadsheet value to a Decimal.

    Returns None when the value is missing, not a number, or not finite;
    the caller decides whether that is a warning or an error.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        amount = Decimal(str(value))
        return amount if amount.is_finite() else None
    if isinstance(value, str):
        if not value.strip():
            return None
        try:
            return parse_amount(value)
        except ValueError:
            return None
    return None
