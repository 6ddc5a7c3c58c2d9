"""Abstract database interface."""

from abc import ABC, abstractmethod
from typing import Any, Optional, Sequence
from datetime import date

# Import entities directly to avoid circular import through domain/__init__.py
from kpiflow.domain.entities import (
    ColumnMapping,
    DataConnection,
    KpiDefinition,
    KpiDataPoint,
    StoredKpiValue,
)


class Database(ABC):
    """Abstract database interface for kpiflow."""

    @abstractmethod
    def connect(self) -> None:
        """Connect to the database."""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Disconnect from the database."""
        pass

    @abstractmethod
    def initialize_schema(self) -> None:
        """Initialize database schema (create tables)."""
        pass

    # Data connection operations
    @abstractmethod
    def create_connection(
        self,
        fund_id: str,
        provider: str,
        name: str,
        deal_id: Optional[str] = None,
        spreadsheet_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
        credentials_encrypted: Optional[str] = None,
        column_mapping: Sequence[ColumnMapping] = (),
    ) -> int:
        """Create a connection in 'pending' status. Returns connection ID.

        The connection and its column mapping are written in one commit.
        """
        pass

    @abstractmethod
    def get_connection(self, connection_id: int) -> Optional[DataConnection]:
        """Get connection by ID."""
        pass

    @abstractmethod
    def list_connections(
        self, fund_id: Optional[str] = None, deal_id: Optional[str] = None
    ) -> list[DataConnection]:
        """List connections, newest first, optionally filtered by fund and deal."""
        pass

    @abstractmethod
    def update_connection(self, connection_id: int, **fields: Any) -> None:
        """Update connection fields.

        Accepts any DataConnection attribute except id/created_at. A
        'column_mapping' value must be a sequence of ColumnMapping.
        """
        pass

    @abstractmethod
    def delete_connection(self, connection_id: int) -> None:
        """Delete a connection. Stored KPI data is kept."""
        pass

    # KPI definition operations
    @abstractmethod
    def create_kpi_definition(
        self,
        code: str,
        name: str,
        category: str,
        format: str,
        description: Optional[str] = None,
        sort_order: int = 0,
    ) -> int:
        """Create a KPI definition. Returns definition ID."""
        pass

    @abstractmethod
    def get_kpi_definition_by_code(self, code: str) -> Optional[KpiDefinition]:
        """Get KPI definition by code."""
        pass

    @abstractmethod
    def get_all_definitions(self) -> list[KpiDefinition]:
        """List all KPI definitions ordered by category, sort order and code."""
        pass

    # KPI data operations
    @abstractmethod
    def bulk_upsert_kpi_data(self, deal_id: str, points: Sequence[KpiDataPoint]) -> int:
        """Insert or update KPI values keyed by
        (deal_id, kpi_id, period_type, period_date, data_type).

        Either every point is committed or the call raises and nothing is.
        Returns the number of points written.
        """
        pass

    @abstractmethod
    def list_kpi_data(
        self,
        deal_id: str,
        kpi_id: Optional[int] = None,
        data_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[StoredKpiValue]:
        """List stored KPI values for a deal ordered by period, KPI and data type."""
        pass
