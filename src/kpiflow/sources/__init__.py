"""Spreadsheet sources: readers that turn files into row records."""

from kpiflow.sources.base import SpreadsheetSource
from kpiflow.sources.csv_source import CSVFileSource
from kpiflow.sources.excel_source import ExcelWorkbookSource

__all__ = ["SpreadsheetSource", "CSVFileSource", "ExcelWorkbookSource", "open_source"]


def open_source(path: str, sheet_name=None) -> SpreadsheetSource:
    """Pick a reader from the file extension (.xlsx/.xlsm read as workbooks)."""
    if path.lower().endswith((".xlsx", ".xlsm")):
        return ExcelWorkbookSource(path, sheet_name=sheet_name)
    return CSVFileSource(path)
