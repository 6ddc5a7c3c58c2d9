"""KPI import domain service.

Every import, whether it creates a connection from freshly selected mappings
or reuses a connection's stored mapping, goes through ``KpiImportService._run_import``.
The difference between the two is captured by a ``MappingProvider``.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, UTC
from typing import Any, Callable, Mapping, Optional, Sequence

from kpiflow.database.base import Database
from kpiflow.domain.column_mapping import suggest_mappings
from kpiflow.domain.connection import ConnectionService
from kpiflow.domain.entities import (
    ColumnMapping,
    DataConnection,
    ImportIssue,
    ImportResult,
    KpiDataPoint,
    MappedColumnPreview,
    MappingPreview,
    MappingSelection,
    SEVERITY_ERROR,
    SuggestedMapping,
)
from kpiflow.domain.errors import (
    DomainError,
    ValidationError,
    mapping_not_configured,
    wrong_provider,
)
from kpiflow.domain.row_normalizer import DATE_COLUMN_KEYS, normalize_row
from kpiflow.domain.sample_data import DEFAULT_SEED, get_sample_data
from kpiflow.sources.base import SpreadsheetSource

logger = logging.getLogger(__name__)

Rows = Sequence[Mapping[str, Any]]


class MappingProvider(ABC):
    """Supplies the connection and column mapping an import runs against."""

    connection_id: Optional[int] = None

    @abstractmethod
    def resolve(self, connections: ConnectionService) -> tuple[DataConnection, list[ColumnMapping]]:
        """Return the connection and the mappings to apply.

        Raises:
            DomainError: If no usable connection/mapping can be produced
        """
        pass


class SelectedMappings(MappingProvider):
    """Mappings confirmed by a user; a new connection is created to hold them.

    Only selections marked ``include`` are kept. The connection and its
    mapping are written in one step, so a failure leaves nothing behind.
    """

    def __init__(
        self,
        fund_id: str,
        name: str,
        selections: Sequence[MappingSelection],
        deal_id: Optional[str] = None,
        provider: str = "excel",
        spreadsheet_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ):
        self.fund_id = fund_id
        self.name = name
        self.selections = list(selections)
        self.deal_id = deal_id
        self.provider = provider
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name

    def included(self) -> list[ColumnMapping]:
        return [s.to_mapping() for s in self.selections if s.include]

    def resolve(self, connections: ConnectionService) -> tuple[DataConnection, list[ColumnMapping]]:
        self.connection_id = connections.create_connection(
            fund_id=self.fund_id,
            provider=self.provider,
            name=self.name,
            deal_id=self.deal_id,
            spreadsheet_id=self.spreadsheet_id,
            sheet_name=self.sheet_name,
            column_mapping=self.included(),
        )
        connection = connections.require_connection(self.connection_id)
        return connection, list(connection.column_mapping)


class StoredMappings(MappingProvider):
    """The curated mapping already stored on an existing connection."""

    def __init__(self, connection_id: int, expected_provider: Optional[str] = None):
        self.connection_id = connection_id
        self.expected_provider = expected_provider

    def resolve(self, connections: ConnectionService) -> tuple[DataConnection, list[ColumnMapping]]:
        connection = connections.require_connection(self.connection_id)
        if self.expected_provider is not None and connection.provider != self.expected_provider:
            raise ValidationError(
                wrong_provider(connection.id, self.expected_provider, connection.provider)
            )
        if not connection.column_mapping:
            raise ValidationError(mapping_not_configured(connection.id))
        return connection, list(connection.column_mapping)


class KpiImportService:
    """Service for importing spreadsheet rows as KPI data."""

    def __init__(self, db: Database, sheet_source: Optional[SpreadsheetSource] = None):
        """Initialize KPI import service.

        Args:
            db: Database instance
            sheet_source: Reader used by Google Sheets syncs
        """
        self.db = db
        self.sheet_source = sheet_source
        self.connection_service = ConnectionService(db)

    def create_connection_and_import(
        self,
        fund_id: str,
        name: str,
        selections: Sequence[MappingSelection],
        deal_id: str,
        rows: Rows,
        user_id: Optional[str] = None,
        provider: str = "excel",
        spreadsheet_id: Optional[str] = None,
        sheet_name: Optional[str] = None,
    ) -> ImportResult:
        """Create a connection from selected mappings and import rows through it.

        Args:
            fund_id: Owning fund
            name: Connection name
            selections: Candidate mappings; only included ones are stored
            deal_id: Deal the KPI values belong to
            rows: Row records keyed by column name
            user_id: Optional importing user
            provider: Connection provider
            spreadsheet_id: Google spreadsheet ID for google_sheets connections
            sheet_name: Sheet/tab name

        Returns:
            ImportResult for the whole dataset
        """
        mapping_provider = SelectedMappings(
            fund_id=fund_id,
            name=name,
            selections=selections,
            deal_id=deal_id,
            provider=provider,
            spreadsheet_id=spreadsheet_id,
            sheet_name=sheet_name,
        )
        return self._run_import(mapping_provider, deal_id, lambda connection: rows, user_id)

    def import_excel(
        self,
        deal_id: str,
        connection_id: int,
        rows: Rows,
        user_id: Optional[str] = None,
    ) -> ImportResult:
        """Import uploaded rows through an existing Excel connection's stored mapping."""
        return self._run_import(
            StoredMappings(connection_id, expected_provider="excel"),
            deal_id,
            lambda connection: rows,
            user_id,
        )

    def sync_google_sheets(
        self, connection_id: int, deal_id: str, user_id: Optional[str] = None
    ) -> ImportResult:
        """Pull rows from the configured sheet source and import them.

        Fetching happens after the connection is marked ``syncing``, so a
        failing source leaves the connection in ``error``.
        """
        return self._run_import(
            StoredMappings(connection_id, expected_provider="google_sheets"),
            deal_id,
            self._read_sheet,
            user_id,
        )

    def import_sample_data(
        self,
        fund_id: str,
        deal_id: str,
        user_id: Optional[str] = None,
        seed: int = DEFAULT_SEED,
    ) -> ImportResult:
        """Create a connection for the sample dataset and import all of it."""
        sample = get_sample_data(seed)
        selections = [
            MappingSelection(column_name=m.column_name, kpi_code=m.kpi_code, data_type=m.data_type)
            for m in sample.mappings
        ]
        return self.create_connection_and_import(
            fund_id=fund_id,
            name=sample.name,
            selections=selections,
            deal_id=deal_id,
            rows=sample.rows,
            user_id=user_id,
        )

    def preview_mapped_data(self, connection_id: int, sample_rows: Rows) -> MappingPreview:
        """Show how sample rows line up with a connection's stored mapping.

        Nothing is written.

        Raises:
            NotFoundError: If the connection doesn't exist
        """
        connection = self.connection_service.require_connection(connection_id)
        names = {d.code: d.name for d in self.db.get_all_definitions()}

        columns: list[str] = []
        for row in sample_rows:
            for key in row:
                if key not in columns:
                    columns.append(key)

        mapped_data = []
        mapped_columns = set()
        for mapping in connection.column_mapping:
            if mapping.column_name not in columns:
                continue
            mapped_columns.add(mapping.column_name)
            mapped_data.append(
                MappedColumnPreview(
                    kpi_code=mapping.kpi_code,
                    kpi_name=names.get(mapping.kpi_code, mapping.kpi_code),
                    values=[row.get(mapping.column_name) for row in sample_rows],
                )
            )

        unmapped = [
            c for c in columns if c not in mapped_columns and c not in DATE_COLUMN_KEYS
        ]
        return MappingPreview(columns=columns, mapped_data=mapped_data, unmapped_columns=unmapped)

    def suggest_mappings(
        self,
        column_names: Sequence[str],
        sample_values: Optional[Mapping[str, Sequence[Any]]] = None,
    ) -> list[SuggestedMapping]:
        """Suggest KPI mappings for headers against the stored KPI definitions."""
        return suggest_mappings(column_names, self.db.get_all_definitions(), sample_values)

    def _read_sheet(self, connection: DataConnection) -> Rows:
        if self.sheet_source is None:
            raise ValidationError(
                f"No spreadsheet source configured for connection {connection.id}"
            )
        return self.sheet_source.read_rows()

    def _run_import(
        self,
        provider: MappingProvider,
        deal_id: str,
        load_rows: Callable[[DataConnection], Rows],
        user_id: Optional[str],
    ) -> ImportResult:
        try:
            connection, mappings = provider.resolve(self.connection_service)
        except DomainError as e:
            logger.error("Import aborted before processing rows: %s", e)
            self._mark_error(provider.connection_id, str(e))
            return self._failure(str(e), provider.connection_id, columns_mapped=0)
        except Exception as e:
            logger.exception("Could not prepare import for connection %s", provider.connection_id)
            self._mark_error(provider.connection_id, str(e))
            return self._failure(str(e), provider.connection_id, columns_mapped=0)

        try:
            self.db.update_connection(connection.id, sync_status="syncing", sync_error=None)
            logger.info(
                "Importing into connection %s (%s) for deal %s with %d mapped columns",
                connection.id,
                connection.name,
                deal_id,
                len(mappings),
            )

            rows = load_rows(connection)
            kpi_ids = {d.code: d.id for d in self.db.get_all_definitions()}

            points: list[KpiDataPoint] = []
            issues: list[ImportIssue] = []
            rows_skipped = 0
            for row_number, row in enumerate(rows, start=1):
                outcome = normalize_row(
                    row,
                    row_number,
                    mappings,
                    kpi_ids,
                    source=connection.provider,
                    source_ref=f"{connection.name}:row{row_number}",
                    created_by=user_id,
                )
                for issue in outcome.issues:
                    logger.debug("%s", issue)
                points.extend(outcome.points)
                issues.extend(outcome.issues)
                if outcome.skipped:
                    rows_skipped += 1

            if points:
                self.db.bulk_upsert_kpi_data(deal_id, points)

            imported_at = datetime.now(UTC)
            self.db.update_connection(
                connection.id,
                sync_status="success",
                sync_error=None,
                last_synced_at=imported_at,
                last_sync_row_count=len(points),
            )
        except Exception as e:
            logger.exception("Import into connection %s failed", connection.id)
            self._mark_error(connection.id, str(e))
            return self._failure(str(e), connection.id, columns_mapped=len(mappings))

        logger.info(
            "Imported %d values into connection %s (%d rows skipped, %d issues)",
            len(points),
            connection.id,
            rows_skipped,
            len(issues),
        )
        return ImportResult(
            success=True,
            rows_imported=len(points),
            rows_skipped=rows_skipped,
            columns_mapped=len(mappings),
            errors=issues,
            connection_id=connection.id,
            imported_at=imported_at,
        )

    def _mark_error(self, connection_id: Optional[int], message: str) -> None:
        if connection_id is None:
            return
        try:
            if self.db.get_connection(connection_id) is None:
                return
            self.db.update_connection(connection_id, sync_status="error", sync_error=message)
        except Exception:
            # The failed import is still reported through the returned result
            logger.exception("Could not record error status on connection %s", connection_id)

    @staticmethod
    def _failure(message: str, connection_id: Optional[int], columns_mapped: int) -> ImportResult:
        return ImportResult(
            success=False,
            rows_imported=0,
            rows_skipped=0,
            columns_mapped=columns_mapped,
            errors=[ImportIssue(row=None, column=None, message=message, severity=SEVERITY_ERROR)],
            connection_id=connection_id,
        )
