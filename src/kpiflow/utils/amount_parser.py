"""Numeric value parsing utilities."""

from decimal import Decimal, InvalidOperation
from typing import Any, Optional
import re

_DECORATION = re.compile(r"[$€£¥,%\s]")


def parse_numeric_value(value: Any) -> Optional[Decimal]:
    """Parse a raw spreadsheet cell into a Decimal.

    Handles various formats:
    - 485000 or 94.5 (already numeric)
    - "485000"
    - "$485,000"
    - "94.5%"
    - "-1,234.56"
    - "(1,234.56)" (negative in parentheses)

    Args:
        value: Raw cell value

    Returns:
        Decimal value, or None if the value is blank or not numeric
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float, Decimal)):
        try:
            number = Decimal(str(value))
        except InvalidOperation:
            return None
        return number if number.is_finite() else None

    if not isinstance(value, str):
        return None

    text = value.strip()

    # Handle parentheses notation (negative)
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1]

    text = _DECORATION.sub("", text)
    if text in ("", "-", "+", "."):
        return None

    try:
        number = Decimal(text)
    except InvalidOperation:
        return None

    if not number.is_finite():
        return None
    return -number if is_negative else number
