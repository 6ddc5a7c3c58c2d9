"""Row normalization: one spreadsheet row to candidate KPI data points.

A missing or unreadable period date rejects the whole row with an
``error``. Every other problem (unknown KPI code, non-numeric cell) is a
``warning`` on that one column and the rest of the row still imports.
A row with no values at all is a spacer and yields nothing.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from kpiflow.domain.entities import (
    ColumnMapping,
    ImportIssue,
    KpiDataPoint,
    PERIOD_TYPE_MONTHLY,
    SEVERITY_ERROR,
    SEVERITY_WARNING,
)
from kpiflow.utils.amount_parser import parse_numeric_value
from kpiflow.utils.date_parser import parse_date_value, period_start

# Probed in priority order; the first non-empty value wins
DATE_COLUMN_KEYS = ("Date", "date", "Period", "period")

MISSING_DATE_MESSAGE = "Invalid or missing date"
INVALID_NUMBER_MESSAGE = "Invalid numeric value"


@dataclass
class RowOutcome:
    """Data points and issues produced for one row."""

    points: list[KpiDataPoint] = field(default_factory=list)
    issues: list[ImportIssue] = field(default_factory=list)
    skipped: bool = False


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def resolve_period_date(row: Mapping[str, Any]) -> Optional[date]:
    """Return the row's monthly period key, or None if it has no usable date."""
    for key in DATE_COLUMN_KEYS:
        raw = row.get(key)
        if _is_blank(raw):
            continue
        parsed = parse_date_value(raw)
        return period_start(parsed) if parsed is not None else None
    return None


def normalize_row(
    row: Mapping[str, Any],
    row_number: int,
    mappings: Sequence[ColumnMapping],
    kpi_ids: Mapping[str, int],
    source: str,
    source_ref: str,
    created_by: Optional[str] = None,
) -> RowOutcome:
    """Convert one raw row into KPI data point candidates.

    Args:
        row: Column name -> raw cell value
        row_number: 1-based row index used in issues
        mappings: Column mappings, processed in order
        kpi_ids: KPI code -> KPI definition ID
        source: Ingestion channel stored on each point
        source_ref: Provenance string stored on each point
        created_by: Optional user ID

    Returns:
        RowOutcome with points, issues and whether the row was skipped
    """
    outcome = RowOutcome()

    # Spacer rows carry nothing and are not counted as skipped
    if all(_is_blank(value) for value in row.values()):
        return outcome

    period_date = resolve_period_date(row)
    if period_date is None:
        outcome.issues.append(
            ImportIssue(row=row_number, column="Date", message=MISSING_DATE_MESSAGE, severity=SEVERITY_ERROR)
        )
        outcome.skipped = True
        return outcome

    for mapping in mappings:
        cell = row.get(mapping.column_name)
        # Blank cells are intentional gaps, not errors
        if cell is None or cell == "":
            continue

        kpi_id = kpi_ids.get(mapping.kpi_code)
        if kpi_id is None:
            outcome.issues.append(
                ImportIssue(
                    row=row_number,
                    column=mapping.column_name,
                    message=f"Unknown KPI code: {mapping.kpi_code}",
                    severity=SEVERITY_WARNING,
                )
            )
            continue

        value = parse_numeric_value(cell)
        if value is None:
            outcome.issues.append(
                ImportIssue(
                    row=row_number,
                    column=mapping.column_name,
                    message=INVALID_NUMBER_MESSAGE,
                    severity=SEVERITY_WARNING,
                )
            )
            continue

        outcome.points.append(
            KpiDataPoint(
                kpi_id=kpi_id,
                period_type=PERIOD_TYPE_MONTHLY,
                period_date=period_date,
                data_type=mapping.data_type,
                value=value,
                source=source,
                source_ref=source_ref,
                created_by=created_by,
            )
        )

    return outcome
