"""Data connection domain service."""

import logging
from typing import Optional, Sequence

from kpiflow.database.base import Database
from kpiflow.domain.entities import (
    ColumnMapping,
    DataConnection as DataConnectionEntity,
    DATA_TYPES,
    PROVIDERS,
    SYNC_FREQUENCIES,
)
from kpiflow.domain.errors import (
    NotFoundError,
    ValidationError,
    connection_not_found,
    invalid_choice,
)

logger = logging.getLogger(__name__)


def dedupe_column_mapping(mappings: Sequence[ColumnMapping]) -> list[ColumnMapping]:
    """Collapse mappings sharing a column name.

    The last entry for a column wins and takes the position of the first one.
    """
    order: list[str] = []
    latest: dict[str, ColumnMapping] = {}
    for mapping in mappings:
        if mapping.column_name not in latest:
            order.append(mapping.column_name)
        latest[mapping.column_name] = mapping
    return [latest[name] for name in order]


def validate_column_mapping(mappings: Sequence[ColumnMapping]) -> None:
    """Check column names, KPI codes and data types of a mapping list.

    Raises:
        ValidationError: If any entry is incomplete or has an unknown data type
    """
    for mapping in mappings:
        if not mapping.column_name or not mapping.column_name.strip():
            raise ValidationError("Column mapping entries need a column name")
        if not mapping.kpi_code or not mapping.kpi_code.strip():
            raise ValidationError(f"Column '{mapping.column_name}' has no KPI code")
        if mapping.data_type not in DATA_TYPES:
            raise ValidationError(invalid_choice("data type", mapping.data_type, DATA_TYPES))


class ConnectionService:
    """Service for managing data connections."""

    def __init__(self, db: Database):
        """Initialize connection service.

        Args:
            db: Database instance
        """
        self.db = db

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
        """Create a new connection in 'pending' status.

        The connection and its mapping are written together, so a failure
        leaves neither behind.

        Args:
            fund_id: Owning fund
            provider: 'google_sheets' or 'excel'
            name: Human readable name
            deal_id: Optional deal the connection feeds
            spreadsheet_id: Google spreadsheet ID
            sheet_name: Sheet/tab name
            credentials_encrypted: Opaque credential blob
            column_mapping: Initial column mapping

        Returns:
            Connection ID

        Raises:
            ValidationError: If provider, name or mapping is invalid
        """
        if provider not in PROVIDERS:
            raise ValidationError(invalid_choice("provider", provider, PROVIDERS))
        if not name or not name.strip():
            raise ValidationError("Connection name is required")

        mapping = dedupe_column_mapping(column_mapping)
        validate_column_mapping(mapping)

        connection_id = self.db.create_connection(
            fund_id=fund_id,
            provider=provider,
            name=name.strip(),
            deal_id=deal_id,
            spreadsheet_id=spreadsheet_id,
            sheet_name=sheet_name,
            credentials_encrypted=credentials_encrypted,
            column_mapping=mapping,
        )
        logger.info("Created %s connection %s for fund %s", provider, connection_id, fund_id)
        return connection_id

    def create_excel_connection(
        self, fund_id: str, name: str, deal_id: Optional[str] = None
    ) -> int:
        """Create an Excel/CSV upload connection."""
        return self.create_connection(fund_id=fund_id, provider="excel", name=name, deal_id=deal_id)

    def create_google_sheets_connection(
        self,
        fund_id: str,
        name: str,
        spreadsheet_id: str,
        sheet_name: Optional[str] = None,
        credentials_encrypted: Optional[str] = None,
        deal_id: Optional[str] = None,
    ) -> int:
        """Create a Google Sheets connection."""
        if not spreadsheet_id:
            raise ValidationError("Spreadsheet ID is required for Google Sheets connections")
        return self.create_connection(
            fund_id=fund_id,
            provider="google_sheets",
            name=name,
            deal_id=deal_id,
            spreadsheet_id=spreadsheet_id,
            sheet_name=sheet_name,
            credentials_encrypted=credentials_encrypted,
        )

    def get_connection(self, connection_id: int) -> Optional[DataConnectionEntity]:
        """Get connection by ID.

        Args:
            connection_id: Connection ID

        Returns:
            Connection entity or None if not found
        """
        return self.db.get_connection(connection_id)

    def require_connection(self, connection_id: int) -> DataConnectionEntity:
        """Get connection by ID or raise NotFoundError."""
        connection = self.db.get_connection(connection_id)
        if connection is None:
            raise NotFoundError(connection_not_found(connection_id))
        return connection

    def list_connections(
        self, fund_id: Optional[str] = None, deal_id: Optional[str] = None
    ) -> list[DataConnectionEntity]:
        """List connections, newest first.

        Args:
            fund_id: Optional fund filter
            deal_id: Optional deal filter

        Returns:
            List of connection entities
        """
        return self.db.list_connections(fund_id=fund_id, deal_id=deal_id)

    def update_column_mapping(
        self, connection_id: int, mappings: Sequence[ColumnMapping]
    ) -> DataConnectionEntity:
        """Replace a connection's column mapping.

        Raises:
            NotFoundError: If the connection doesn't exist
            ValidationError: If a mapping entry is invalid
        """
        self.require_connection(connection_id)
        mapping = dedupe_column_mapping(mappings)
        validate_column_mapping(mapping)
        self.db.update_connection(connection_id, column_mapping=mapping)
        return self.require_connection(connection_id)

    def set_column(
        self, connection_id: int, column_name: str, kpi_code: str, data_type: str = "actual"
    ) -> DataConnectionEntity:
        """Add or replace the mapping for a single column."""
        connection = self.require_connection(connection_id)
        updated = list(connection.column_mapping) + [
            ColumnMapping(column_name=column_name, kpi_code=kpi_code, data_type=data_type)
        ]
        return self.update_column_mapping(connection_id, updated)

    def remove_column(self, connection_id: int, column_name: str) -> DataConnectionEntity:
        """Remove the mapping for a single column.

        Raises:
            NotFoundError: If the connection or column mapping doesn't exist
        """
        connection = self.require_connection(connection_id)
        remaining = [m for m in connection.column_mapping if m.column_name != column_name]
        if len(remaining) == len(connection.column_mapping):
            raise NotFoundError(f"Column '{column_name}' is not mapped on connection {connection_id}")
        return self.update_column_mapping(connection_id, remaining)

    def update_connection_deal(self, connection_id: int, deal_id: Optional[str]) -> None:
        """Point a connection at another deal (or none)."""
        self.require_connection(connection_id)
        self.db.update_connection(connection_id, deal_id=deal_id)

    def update_sync_settings(
        self,
        connection_id: int,
        frequency: Optional[str] = None,
        enabled: Optional[bool] = None,
    ) -> None:
        """Update the stored sync schedule. Running the schedule happens elsewhere."""
        self.require_connection(connection_id)
        fields = {}
        if frequency is not None:
            if frequency not in SYNC_FREQUENCIES:
                raise ValidationError(invalid_choice("sync frequency", frequency, SYNC_FREQUENCIES))
            fields["sync_frequency"] = frequency
        if enabled is not None:
            fields["sync_enabled"] = enabled
        if fields:
            self.db.update_connection(connection_id, **fields)

    def delete_connection(self, connection_id: int) -> None:
        """Delete a connection and its mapping. Imported KPI data is kept.

        Raises:
            NotFoundError: If the connection doesn't exist
        """
        self.require_connection(connection_id)
        self.db.delete_connection(connection_id)
        logger.info("Deleted connection %s", connection_id)
