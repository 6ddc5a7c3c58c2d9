"""Abstract spreadsheet source interface."""

from abc import ABC, abstractmethod
from typing import Any


def is_blank_row(row: dict[str, Any]) -> bool:
    """True if every cell is None or whitespace."""
    return all(value is None or (isinstance(value, str) and not value.strip()) for value in row.values())


def drop_trailing_blank_rows(rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Remove blank rows after the last data row.

    Blank rows between data rows are kept, so a row's position in the list
    always matches its position in the sheet.
    """
    end = len(rows)
    while end and is_blank_row(rows[end - 1]):
        end -= 1
    return rows[:end]


class SpreadsheetSource(ABC):
    """Anything that yields ordered, header-keyed rows."""

    @abstractmethod
    def read_rows(self) -> list[dict[str, Any]]:
        """Read all data rows.

        Returns:
            Rows in sheet order, each a dict of column header -> raw cell value.
            Row N of the list is the Nth row below the header row.
        """
        pass
