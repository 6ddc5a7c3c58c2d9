"""Tests for the KPI import service."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError

from kpiflow.domain.entities import ColumnMapping, ImportIssue, MappingSelection
from kpiflow.domain.kpi_import import KpiImportService
from kpiflow.domain.sample_data import SAMPLE_DATA_MAPPINGS
from kpiflow.sources import CSVFileSource
from kpiflow.sources.base import SpreadsheetSource


class StaticSheet(SpreadsheetSource):
    """In-memory stand-in for a Google Sheets reader."""

    def __init__(self, rows):
        self.rows = rows

    def read_rows(self):
        return list(self.rows)


class BrokenSheet(SpreadsheetSource):
    def read_rows(self):
        raise RuntimeError("Sheets API quota exceeded")


def _values(db, deal_id):
    return [(v.kpi_id, v.period_date, v.data_type, v.value) for v in db.list_kpi_data(deal_id)]


def test_end_to_end_create_and_import(temp_db, import_service, kpi_definitions):
    """Test the documented revenue/occupancy scenario."""
    result = import_service.create_connection_and_import(
        fund_id="fund-1",
        name="Upload",
        selections=[
            MappingSelection("Total Revenue", "total_revenue", "actual", include=True),
            MappingSelection("Occupancy Rate", "physical_occupancy", "actual", include=True),
        ],
        deal_id="deal-1",
        rows=[{"Date": "2024-01-01", "Total Revenue": "485,000", "Occupancy Rate": "bad"}],
    )

    assert result.success is True
    assert result.rows_imported == 1
    assert result.rows_skipped == 0
    assert result.columns_mapped == 2
    assert result.errors == [
        ImportIssue(row=1, column="Occupancy Rate", message="Invalid numeric value", severity="warning")
    ]
    assert result.connection_id is not None
    assert result.imported_at is not None

    stored = temp_db.list_kpi_data("deal-1")
    assert len(stored) == 1
    assert stored[0].kpi_id == kpi_definitions["total_revenue"].id
    assert stored[0].value == Decimal("485000")
    assert stored[0].period_date == date(2024, 1, 1)
    assert stored[0].source == "excel"
    assert stored[0].source_ref == "Upload:row1"


def test_excluded_selections_are_never_used(temp_db, import_service, connection_service, kpi_definitions):
    """Test that only included selections are stored and applied."""
    result = import_service.create_connection_and_import(
        fund_id="fund-1",
        name="Upload",
        selections=[
            MappingSelection("Total Revenue", "total_revenue", include=True),
            MappingSelection("X", "y", include=False),
        ],
        deal_id="deal-1",
        rows=[{"Date": "2024-01-01", "Total Revenue": "100", "X": "5"}],
    )

    assert result.columns_mapped == 1
    assert result.errors == []
    conn = connection_service.get_connection(result.connection_id)
    assert [m.column_name for m in conn.column_mapping] == ["Total Revenue"]


def test_invalid_selection_creates_nothing(import_service, connection_service, kpi_definitions):
    result = import_service.create_connection_and_import(
        fund_id="fund-1",
        name="Upload",
        selections=[MappingSelection("Total Revenue", "total_revenue", data_type="projection")],
        deal_id="deal-1",
        rows=[{"Date": "2024-01-01", "Total Revenue": "100"}],
    )

    assert result.success is False
    assert result.connection_id is None
    assert connection_service.list_connections() == []


def test_import_excel_marks_connection_success(import_service, connection_service, excel_connection):
    rows = [
        {"Date": "2024-01-01", "Total Revenue": "$485,000", "Occupancy Rate": "94.5%", "Revenue Budget": "480000"},
        {"Date": "2024-02-01", "Total Revenue": "$490,000", "Occupancy Rate": "", "Revenue Budget": "482000"},
    ]

    result = import_service.import_excel("deal-1", excel_connection.id, rows, user_id="user-1")

    assert result.success is True
    assert result.rows_imported == 5
    assert result.columns_mapped == 3
    assert result.connection_id == excel_connection.id

    conn = connection_service.get_connection(excel_connection.id)
    assert conn.sync_status == "success"
    assert conn.sync_error is None
    assert conn.last_synced_at is not None
    assert conn.last_sync_row_count == 5


def test_reimport_is_idempotent(temp_db, import_service, excel_connection):
    """Test that importing the same dataset twice does not duplicate values."""
    rows = [
        {"Date": "2024-01-15", "Total Revenue": "100", "Revenue Budget": "90"},
        {"Date": "2024-02-15", "Total Revenue": "110", "Revenue Budget": "95"},
    ]

    import_service.import_excel("deal-1", excel_connection.id, rows)
    first = _values(temp_db, "deal-1")
    import_service.import_excel("deal-1", excel_connection.id, rows)
    second = _values(temp_db, "deal-1")

    assert len(first) == 4
    assert first == second


def test_reimport_overwrites_changed_values(temp_db, import_service, excel_connection, kpi_definitions):
    import_service.import_excel("deal-1", excel_connection.id, [{"Date": "2024-01-01", "Total Revenue": "100"}])
    # Same month, different day: same period key
    import_service.import_excel("deal-1", excel_connection.id, [{"Date": "2024-01-31", "Total Revenue": "125"}])

    stored = temp_db.list_kpi_data("deal-1")
    assert len(stored) == 1
    assert stored[0].value == Decimal("125")


def test_dimensions_are_stored_separately(temp_db, import_service, excel_connection):
    import_service.import_excel(
        "deal-1", excel_connection.id, [{"Date": "2024-01-01", "Total Revenue": "100", "Revenue Budget": "90"}]
    )

    stored = {v.data_type: v.value for v in temp_db.list_kpi_data("deal-1")}
    assert stored == {"actual": Decimal("100"), "budget": Decimal("90")}


def test_row_and_column_errors_are_accumulated_in_order(import_service, excel_connection):
    rows = [
        {"Date": "2024-01-01", "Total Revenue": "abc", "Occupancy Rate": "94"},
        {"Date": "2024-02-01", "Total Revenue": "100", "Occupancy Rate": "95"},
        {"Date": "2024-03-01", "Total Revenue": "101", "Occupancy Rate": "n/a"},
        {"Date": "", "Total Revenue": "102", "Occupancy Rate": "96"},
    ]

    result = import_service.import_excel("deal-1", excel_connection.id, rows)

    assert result.success is True
    assert result.rows_imported == 4
    assert result.rows_skipped == 1
    assert [(e.row, e.column, e.severity) for e in result.errors] == [
        (1, "Total Revenue", "warning"),
        (3, "Occupancy Rate", "warning"),
        (4, "Date", "error"),
    ]


def test_row_numbers_follow_file_position_across_blank_lines(tmp_path, temp_db, import_service, excel_connection):
    path = tmp_path / "gap.csv"
    path.write_text(
        "Date,Total Revenue\n2024-01-01,100\n\n,\n2024-02-01,abc\n2024-03-01,300\n",
        encoding="utf-8",
    )

    result = import_service.import_excel("deal-1", excel_connection.id, CSVFileSource(str(path)).read_rows())

    assert result.rows_imported == 2
    assert result.rows_skipped == 0
    assert [(e.row, e.column) for e in result.errors] == [(4, "Total Revenue")]
    refs = sorted(v.source_ref for v in temp_db.list_kpi_data("deal-1"))
    assert refs == ["Monthly Ops:row1", "Monthly Ops:row5"]


def test_unknown_kpi_code_is_a_warning(connection_service, import_service, kpi_definitions):
    connection_id = connection_service.create_excel_connection(fund_id="fund-1", name="Ops")
    connection_service.update_column_mapping(
        connection_id,
        [ColumnMapping("Revenue", "total_revenue"), ColumnMapping("Widgets", "widget_count")],
    )

    result = import_service.import_excel(
        "deal-1", connection_id, [{"Date": "2024-01-01", "Revenue": "1", "Widgets": "2"}]
    )

    assert result.success is True
    assert result.rows_imported == 1
    assert [(e.column, e.message, e.severity) for e in result.errors] == [
        ("Widgets", "Unknown KPI code: widget_count", "warning")
    ]


def test_persistence_failure_marks_connection_error(temp_db, import_service, connection_service, excel_connection, monkeypatch):
    def fail(deal_id, points):
        raise RuntimeError("database is locked")

    monkeypatch.setattr(temp_db, "bulk_upsert_kpi_data", fail)

    result = import_service.import_excel("deal-1", excel_connection.id, [{"Date": "2024-01-01", "Total Revenue": "1"}])

    assert result.success is False
    assert result.rows_imported == 0
    assert result.errors == [
        ImportIssue(row=None, column=None, message="database is locked", severity="error")
    ]
    conn = connection_service.get_connection(excel_connection.id)
    assert conn.sync_status == "error"
    assert conn.sync_error == "database is locked"


def test_connection_write_failure_returns_failed_result(temp_db, import_service, connection_service, kpi_definitions, monkeypatch):
    def fail(**kwargs):
        raise OperationalError("INSERT INTO data_connections", {}, Exception("disk I/O error"))

    monkeypatch.setattr(temp_db, "create_connection", fail)

    result = import_service.create_connection_and_import(
        fund_id="fund-1",
        name="Upload",
        selections=[MappingSelection("Total Revenue", "total_revenue")],
        deal_id="deal-1",
        rows=[{"Date": "2024-01-01", "Total Revenue": "1"}],
    )

    assert result.success is False
    assert result.connection_id is None
    assert result.rows_imported == 0
    assert len(result.errors) == 1
    assert result.errors[0].row is None
    assert result.errors[0].column is None
    assert "disk I/O error" in result.errors[0].message
    assert connection_service.list_connections() == []


def test_status_write_failure_after_upsert_marks_connection_error(temp_db, import_service, connection_service, excel_connection, monkeypatch):
    update_connection = temp_db.update_connection

    def fail_on_success(connection_id, **fields):
        if fields.get("sync_status") == "success":
            raise OperationalError("UPDATE data_connections", {}, Exception("database is locked"))
        update_connection(connection_id, **fields)

    monkeypatch.setattr(temp_db, "update_connection", fail_on_success)

    result = import_service.import_excel("deal-1", excel_connection.id, [{"Date": "2024-01-01", "Total Revenue": "1"}])

    assert result.success is False
    assert result.rows_imported == 0
    assert "database is locked" in result.errors[0].message
    conn = connection_service.get_connection(excel_connection.id)
    assert conn.sync_status == "error"
    assert "database is locked" in conn.sync_error


def test_syncing_write_failure_returns_failed_result(temp_db, import_service, excel_connection, monkeypatch):
    def fail(connection_id, **fields):
        raise OperationalError("UPDATE data_connections", {}, Exception("database is locked"))

    monkeypatch.setattr(temp_db, "update_connection", fail)

    result = import_service.import_excel("deal-1", excel_connection.id, [{"Date": "2024-01-01", "Total Revenue": "1"}])

    assert result.success is False
    assert result.connection_id == excel_connection.id
    assert result.errors[0].severity == "error"
    assert "database is locked" in result.errors[0].message


def test_successful_retry_clears_error(temp_db, import_service, connection_service, excel_connection, monkeypatch):
    rows = [{"Date": "2024-01-01", "Total Revenue": "1"}]
    def fail(deal_id, points):
        raise RuntimeError("boom")

    with monkeypatch.context() as m:
        m.setattr(temp_db, "bulk_upsert_kpi_data", fail)
        assert import_service.import_excel("deal-1", excel_connection.id, rows).success is False

    result = import_service.import_excel("deal-1", excel_connection.id, rows)

    assert result.success is True
    conn = connection_service.get_connection(excel_connection.id)
    assert conn.sync_status == "success"
    assert conn.sync_error is None


def test_missing_connection_is_operation_fatal(import_service):
    result = import_service.import_excel("deal-1", 999, [{"Date": "2024-01-01"}])

    assert result.success is False
    assert result.errors[0].row is None
    assert result.errors[0].column is None
    assert result.errors[0].message == "Connection 999 not found"


def test_unconfigured_mapping_is_operation_fatal(import_service, connection_service):
    connection_id = connection_service.create_excel_connection(fund_id="fund-1", name="Empty")

    result = import_service.import_excel("deal-1", connection_id, [{"Date": "2024-01-01"}])

    assert result.success is False
    assert "not configured" in result.errors[0].message
    conn = connection_service.get_connection(connection_id)
    assert conn.sync_status == "error"


def test_wrong_provider_is_rejected(import_service, connection_service, excel_connection):
    result = import_service.sync_google_sheets(excel_connection.id, "deal-1")

    assert result.success is False
    assert "expected 'google_sheets'" in result.errors[0].message


@pytest.fixture
def sheets_connection(connection_service, kpi_definitions):
    connection_id = connection_service.create_google_sheets_connection(
        fund_id="fund-1", name="Live Sheet", spreadsheet_id="sheet-123", deal_id="deal-1"
    )
    connection_service.set_column(connection_id, "Total Revenue", "total_revenue")
    return connection_service.get_connection(connection_id)


def test_sync_google_sheets(temp_db, sheets_connection, connection_service):
    service = KpiImportService(temp_db, sheet_source=StaticSheet([{"Date": "2024-01-01", "Total Revenue": 500}]))

    result = service.sync_google_sheets(sheets_connection.id, "deal-1", user_id="user-1")

    assert result.success is True
    assert result.rows_imported == 1
    stored = temp_db.list_kpi_data("deal-1")
    assert stored[0].source == "google_sheets"
    assert stored[0].created_by == "user-1"
    assert connection_service.get_connection(sheets_connection.id).sync_status == "success"


def test_sync_google_sheets_source_failure(temp_db, sheets_connection, connection_service):
    service = KpiImportService(temp_db, sheet_source=BrokenSheet())

    result = service.sync_google_sheets(sheets_connection.id, "deal-1")

    assert result.success is False
    assert result.errors[0].message == "Sheets API quota exceeded"
    conn = connection_service.get_connection(sheets_connection.id)
    assert conn.sync_status == "error"
    assert conn.sync_error == "Sheets API quota exceeded"


def test_sync_google_sheets_without_source(import_service, sheets_connection, connection_service):
    result = import_service.sync_google_sheets(sheets_connection.id, "deal-1")

    assert result.success is False
    assert connection_service.get_connection(sheets_connection.id).sync_status == "error"


def test_both_entry_points_store_identical_values(temp_db, import_service, connection_service, kpi_definitions):
    """Test that create-and-import and stored-mapping import normalize alike."""
    rows = [
        {"Date": "1/15/2024", "Revenue": "$1,200.50", "Occ": "93.2%"},
        {"Date": 45323, "Revenue": "(50)", "Occ": ""},
        {"Date": None, "Revenue": "7", "Occ": "1"},
    ]
    selections = [MappingSelection("Revenue", "total_revenue"), MappingSelection("Occ", "physical_occupancy")]

    created = import_service.create_connection_and_import(
        fund_id="fund-1", name="A", selections=selections, deal_id="deal-a", rows=rows
    )
    connection_id = connection_service.create_excel_connection(fund_id="fund-1", name="B")
    connection_service.update_column_mapping(connection_id, [s.to_mapping() for s in selections])
    stored = import_service.import_excel("deal-b", connection_id, rows)

    assert _values(temp_db, "deal-a") == _values(temp_db, "deal-b")
    assert (created.rows_imported, created.rows_skipped) == (stored.rows_imported, stored.rows_skipped) == (3, 1)
    assert created.errors == stored.errors


def test_preview_mapped_data(temp_db, import_service, excel_connection):
    rows = [
        {"Date": "2024-01-01", "Total Revenue": "100", "Notes": "x"},
        {"Date": "2024-02-01", "Total Revenue": "110", "Notes": "y"},
    ]

    preview = import_service.preview_mapped_data(excel_connection.id, rows)

    assert preview.columns == ["Date", "Total Revenue", "Notes"]
    assert len(preview.mapped_data) == 1
    assert preview.mapped_data[0].kpi_code == "total_revenue"
    assert preview.mapped_data[0].kpi_name == "Total Revenue"
    assert preview.mapped_data[0].values == ["100", "110"]
    assert preview.unmapped_columns == ["Notes"]
    assert temp_db.list_kpi_data("deal-1") == []


def test_import_sample_data(temp_db, import_service, kpi_definitions):
    result = import_service.import_sample_data("fund-1", "deal-1", user_id="user-1")

    assert result.success is True
    assert result.errors == []
    assert result.rows_skipped == 0
    assert result.columns_mapped == len(SAMPLE_DATA_MAPPINGS)
    assert result.rows_imported == 12 * len(SAMPLE_DATA_MAPPINGS)
    assert len(temp_db.list_kpi_data("deal-1", data_type="forecast")) == 12 * 5


def test_suggest_mappings_uses_stored_definitions(import_service, kpi_definitions):
    suggestions = import_service.suggest_mappings(["Date", "Total Revenue", "Loan Balance"])

    assert [s.suggested_kpi_code for s in suggestions] == [None, "total_revenue", "principal_balance"]
