"""Shared pytest fixtures for kpiflow tests."""

import tempfile
import os
from pathlib import Path
import pytest

from kpiflow.database.factories import create_sqlite_database
from kpiflow.domain.connection import ConnectionService
from kpiflow.domain.kpi import KpiService
from kpiflow.domain.kpi_import import KpiImportService


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def connection_service(temp_db):
    """Create a ConnectionService with a temporary database."""
    return ConnectionService(temp_db)


@pytest.fixture
def kpi_service(temp_db):
    """Create a KpiService with a temporary database."""
    return KpiService(temp_db)


@pytest.fixture
def import_service(temp_db):
    """Create a KpiImportService with a temporary database."""
    return KpiImportService(temp_db)


@pytest.fixture
def kpi_definitions(kpi_service):
    """Seed the default KPI catalog and return code -> definition."""
    from kpiflow.cli.commands.init_kpis import INITIAL_KPI_DEFINITIONS

    for code, name, category, description, fmt, sort_order in INITIAL_KPI_DEFINITIONS:
        kpi_service.create_definition(
            code=code,
            name=name,
            category=category,
            format=fmt,
            description=description,
            sort_order=sort_order,
        )
    return {d.code: d for d in kpi_service.list_definitions()}


@pytest.fixture
def excel_connection(connection_service, kpi_definitions):
    """Create an Excel connection with a revenue/occupancy mapping."""
    from kpiflow.domain.entities import ColumnMapping

    connection_id = connection_service.create_excel_connection(
        fund_id="fund-1", name="Monthly Ops", deal_id="deal-1"
    )
    connection_service.update_column_mapping(
        connection_id,
        [
            ColumnMapping("Total Revenue", "total_revenue", "actual"),
            ColumnMapping("Occupancy Rate", "physical_occupancy", "actual"),
            ColumnMapping("Revenue Budget", "total_revenue", "budget"),
        ],
    )
    return connection_service.get_connection(connection_id)


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


@pytest.fixture
def fixtures_dir():
    """Return the path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"
