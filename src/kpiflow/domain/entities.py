"""Domain model entities for kpiflow.

These are pure data classes representing the import pipeline's business
concepts, independent of database schema. Services and the database layer
exchange these objects; SQLAlchemy models never leave the database package.
"""

from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal
from typing import Any, Optional

PROVIDERS = ("google_sheets", "excel")
DATA_TYPES = ("actual", "forecast", "budget")
SYNC_STATUSES = ("pending", "syncing", "success", "error")
SYNC_FREQUENCIES = ("manual", "hourly", "daily", "weekly")
PERIOD_TYPE_MONTHLY = "monthly"

SEVERITY_ERROR = "error"
SEVERITY_WARNING = "warning"


@dataclass(frozen=True)
class ColumnMapping:
    """Spreadsheet column bound to a KPI code under one planning dimension."""

    column_name: str
    kpi_code: str
    data_type: str = "actual"

    def to_dict(self) -> dict[str, str]:
        return {
            "columnName": self.column_name,
            "kpiCode": self.kpi_code,
            "dataType": self.data_type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ColumnMapping":
        return cls(
            column_name=data["columnName"],
            kpi_code=data["kpiCode"],
            data_type=data.get("dataType", "actual"),
        )


@dataclass(frozen=True)
class MappingSelection:
    """Candidate mapping as confirmed (or rejected) by a user before import."""

    column_name: str
    kpi_code: str
    data_type: str = "actual"
    include: bool = True

    def to_mapping(self) -> ColumnMapping:
        return ColumnMapping(
            column_name=self.column_name,
            kpi_code=self.kpi_code,
            data_type=self.data_type,
        )


@dataclass(frozen=True)
class DataConnection:
    """Configured binding between a tabular data source and a fund/deal."""

    id: int
    fund_id: str
    deal_id: Optional[str]
    provider: str
    name: str
    spreadsheet_id: Optional[str]
    sheet_name: Optional[str]
    credentials_encrypted: Optional[str]
    column_mapping: tuple[ColumnMapping, ...]
    sync_status: str
    sync_error: Optional[str]
    last_synced_at: Optional[datetime]
    last_sync_row_count: Optional[int]
    sync_frequency: str
    sync_enabled: bool
    created_at: datetime


@dataclass(frozen=True)
class KpiDefinition:
    """KPI catalog entry. Read-only from the import pipeline's perspective."""

    id: int
    code: str
    name: str
    category: str
    format: str
    description: Optional[str] = None


@dataclass(frozen=True)
class KpiDataPoint:
    """Candidate KPI value produced by normalization, not yet persisted."""

    kpi_id: int
    period_type: str
    period_date: date
    data_type: str
    value: Decimal
    source: str
    source_ref: str
    created_by: Optional[str] = None


@dataclass(frozen=True)
class StoredKpiValue:
    """KPI value as persisted for a deal."""

    id: int
    deal_id: str
    kpi_id: int
    period_type: str
    period_date: date
    data_type: str
    value: Decimal
    source: str
    source_ref: Optional[str]
    created_by: Optional[str]
    imported_at: Optional[datetime]


@dataclass(frozen=True)
class ImportIssue:
    """Row-, column- or operation-level problem reported by an import."""

    row: Optional[int]
    column: Optional[str]
    message: str
    severity: str = SEVERITY_ERROR

    def __str__(self) -> str:
        location = []
        if self.row is not None:
            location.append(f"Row {self.row}")
        if self.column is not None:
            location.append(f"[{self.column}]")
        prefix = " ".join(location)
        return f"{prefix}: {self.message}" if prefix else self.message


@dataclass(frozen=True)
class ImportResult:
    """Summary of one import call."""

    success: bool
    rows_imported: int
    rows_skipped: int
    columns_mapped: int
    errors: list[ImportIssue] = field(default_factory=list)
    connection_id: Optional[int] = None
    imported_at: Optional[datetime] = None


@dataclass(frozen=True)
class SuggestedMapping:
    """Proposed column-to-KPI match. The planning dimension is left to the user."""

    column_name: str
    suggested_kpi_code: Optional[str]
    suggested_kpi_name: Optional[str]
    confidence: str
    confidence_score: float
    include: bool


@dataclass(frozen=True)
class ColumnInfo:
    """Column profile used by the mapping step."""

    name: str
    detected_type: str
    sample_values: list[Any]
    null_count: int


@dataclass(frozen=True)
class MappedColumnPreview:
    kpi_code: str
    kpi_name: str
    values: list[Any]


@dataclass(frozen=True)
class MappingPreview:
    """Read-only view of how sample rows line up with a connection's mapping."""

    columns: list[str]
    mapped_data: list[MappedColumnPreview]
    unmapped_columns: list[str]


@dataclass(frozen=True)
class SampleDataConfig:
    """Synthetic dataset for demos and onboarding."""

    name: str
    description: str
    property_type: str
    columns: list[str]
    rows: list[dict[str, Any]]
    mappings: list[ColumnMapping]
