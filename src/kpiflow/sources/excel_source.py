"""Excel workbook source."""

import logging
from pathlib import Path
from typing import Any, Optional

import openpyxl

from kpiflow.sources.base import SpreadsheetSource, drop_trailing_blank_rows

logger = logging.getLogger(__name__)


def _header(value: object) -> str:
    if value is None:
        return ""
    return str(value).strip()


class ExcelWorkbookSource(SpreadsheetSource):
    """Read rows from one worksheet of an .xlsx workbook.

    The first row holds the headers. Cells keep the types openpyxl gives
    them (numbers, datetimes, strings), computed values rather than formulas.
    """

    def __init__(self, path: str, sheet_name: Optional[str] = None):
        self.path = Path(path)
        self.sheet_name = sheet_name

    def read_rows(self) -> list[dict[str, Any]]:
        """Read all rows of the worksheet up to the last non-empty one.

        Raises:
            FileNotFoundError: If the workbook doesn't exist
            ValueError: If the named sheet doesn't exist
        """
        if not self.path.exists():
            raise FileNotFoundError(f"Workbook not found: {self.path}")

        wb = openpyxl.load_workbook(self.path, read_only=True, data_only=True)
        try:
            if self.sheet_name is None:
                ws = wb.worksheets[0]
            elif self.sheet_name in wb.sheetnames:
                ws = wb[self.sheet_name]
            else:
                raise ValueError(
                    f"Sheet '{self.sheet_name}' not found. Available: {', '.join(wb.sheetnames)}"
                )

            raw_rows = ws.iter_rows(values_only=True)
            header_row = next(raw_rows, None)
            if header_row is None:
                return []
            headers = [_header(cell) for cell in header_row]

            rows = []
            for values in raw_rows:
                rows.append(
                    {
                        header: values[idx] if idx < len(values) else None
                        for idx, header in enumerate(headers)
                        if header
                    }
                )
            rows = drop_trailing_blank_rows(rows)
            logger.debug("Read %d rows from %s [%s]", len(rows), self.path, ws.title)
            return rows
        finally:
            wb.close()
