"""Date parsing utilities."""

import re
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Any, Optional

from dateutil import parser as date_parser

# Spreadsheet serial dates count days from 1899-12-30 (Excel/Sheets epoch)
SPREADSHEET_EPOCH = date(1899, 12, 30)
MAX_SERIAL_DATE = 2958465  # 9999-12-31

_ISO_PATTERN = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_US_PATTERN = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})")
_EU_PATTERN = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})")
_SERIAL_PATTERN = re.compile(r"^\d+(\.\d+)?$")
_YEAR_PATTERN = re.compile(r"^\d{4}$")

# Fixed default so partial dates ("March 2024") never depend on today
_DEFAULT_DATETIME = datetime(2000, 1, 1)


def _from_serial(serial: float) -> Optional[date]:
    if serial < 1 or serial > MAX_SERIAL_DATE:
        return None
    return SPREADSHEET_EPOCH + timedelta(days=int(serial))


def _build_date(year: str, month: str, day: str) -> Optional[date]:
    try:
        return date(int(year), int(month), int(day))
    except ValueError:
        return None


def parse_date_value(value: Any) -> Optional[date]:
    """Parse a raw spreadsheet cell into a date.

    Handles:
    - date and datetime objects
    - spreadsheet serial numbers (45292 -> 2024-01-01)
    - a bare four-digit year string ("2024" -> 2024-01-01)
    - "2024-01-15" and ISO timestamps
    - "1/15/2024" (month first)
    - "15.01.2024" (day first)
    - free-form text such as "January 2024" or "Jan 15, 2024"

    Args:
        value: Raw cell value

    Returns:
        Date object, or None if the value cannot be read as a date
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    if isinstance(value, (int, float, Decimal)):
        try:
            return _from_serial(float(value))
        except (ValueError, OverflowError):
            return None

    if not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    # A bare year is January of that year, not serial day 2024
    if _YEAR_PATTERN.match(text):
        return _build_date(text, "1", "1")

    if _SERIAL_PATTERN.match(text):
        return _from_serial(float(text))

    match = _ISO_PATTERN.match(text)
    if match:
        return _build_date(match.group(1), match.group(2), match.group(3))

    match = _US_PATTERN.match(text)
    if match:
        return _build_date(match.group(3), match.group(1), match.group(2))

    match = _EU_PATTERN.match(text)
    if match:
        return _build_date(match.group(3), match.group(2), match.group(1))

    try:
        return date_parser.parse(text, default=_DEFAULT_DATETIME).date()
    except (ValueError, OverflowError, TypeError):
        return None


def period_start(value: date) -> date:
    """Return the first day of the month containing the given date."""
    return value.replace(day=1)
