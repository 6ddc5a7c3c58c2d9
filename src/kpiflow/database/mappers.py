"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, including the JSON encoding of
column mappings, so schema changes stay inside the database package.
"""

from typing import Iterable

from kpiflow.domain import entities as domain
from kpiflow.database.models import (
    DataConnection as ORMDataConnection,
    KpiDefinition as ORMKpiDefinition,
    KpiData as ORMKpiData,
)


def column_mapping_to_json(mappings: Iterable[domain.ColumnMapping]) -> list[dict[str, str]]:
    """Encode column mappings for the JSON column."""
    return [m.to_dict() for m in mappings]


def column_mapping_from_json(raw: list[dict] | None) -> tuple[domain.ColumnMapping, ...]:
    """Decode column mappings from the JSON column."""
    return tuple(domain.ColumnMapping.from_dict(item) for item in raw or [])


def connection_to_domain(orm_connection: ORMDataConnection) -> domain.DataConnection:
    """Convert SQLAlchemy DataConnection model to domain DataConnection entity."""
    return domain.DataConnection(
        id=orm_connection.id,
        fund_id=orm_connection.fund_id,
        deal_id=orm_connection.deal_id,
        provider=orm_connection.provider,
        name=orm_connection.name,
        spreadsheet_id=orm_connection.spreadsheet_id,
        sheet_name=orm_connection.sheet_name,
        credentials_encrypted=orm_connection.credentials_encrypted,
        column_mapping=column_mapping_from_json(orm_connection.column_mapping),
        sync_status=orm_connection.sync_status,
        sync_error=orm_connection.sync_error,
        last_synced_at=orm_connection.last_synced_at,
        last_sync_row_count=orm_connection.last_sync_row_count,
        sync_frequency=orm_connection.sync_frequency,
        sync_enabled=orm_connection.sync_enabled,
        created_at=orm_connection.created_at,
    )


def kpi_definition_to_domain(orm_definition: ORMKpiDefinition) -> domain.KpiDefinition:
    """Convert SQLAlchemy KpiDefinition model to domain KpiDefinition entity."""
    return domain.KpiDefinition(
        id=orm_definition.id,
        code=orm_definition.code,
        name=orm_definition.name,
        category=orm_definition.category,
        format=orm_definition.format,
        description=orm_definition.description,
    )


def kpi_data_to_domain(orm_data: ORMKpiData) -> domain.StoredKpiValue:
    """Convert SQLAlchemy KpiData model to domain StoredKpiValue entity."""
    return domain.StoredKpiValue(
        id=orm_data.id,
        deal_id=orm_data.deal_id,
        kpi_id=orm_data.kpi_id,
        period_type=orm_data.period_type,
        period_date=orm_data.period_date,
        data_type=orm_data.data_type,
        value=orm_data.value,
        source=orm_data.source,
        source_ref=orm_data.source_ref,
        created_by=orm_data.created_by,
        imported_at=orm_data.imported_at,
    )
