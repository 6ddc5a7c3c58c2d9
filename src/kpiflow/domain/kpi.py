"""KPI definition and stored data domain service."""

from typing import Optional
from datetime import date

from kpiflow.database.base import Database
from kpiflow.domain.entities import DATA_TYPES, KpiDefinition, StoredKpiValue
from kpiflow.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invalid_choice,
    kpi_code_exists,
)

KPI_FORMATS = ("currency", "percentage", "number", "ratio")


class KpiService:
    """Service for KPI definitions and stored KPI values."""

    def __init__(self, db: Database):
        """Initialize KPI service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_definition(
        self,
        code: str,
        name: str,
        category: str,
        format: str,
        description: Optional[str] = None,
        sort_order: int = 0,
    ) -> int:
        """Create a KPI definition.

        Raises:
            ConflictError: If the code is already defined
            ValidationError: If the format is unknown
        """
        if format not in KPI_FORMATS:
            raise ValidationError(invalid_choice("format", format, KPI_FORMATS))
        if self.db.get_kpi_definition_by_code(code) is not None:
            raise ConflictError(kpi_code_exists(code))
        return self.db.create_kpi_definition(
            code=code,
            name=name,
            category=category,
            format=format,
            description=description,
            sort_order=sort_order,
        )

    def get_definition_by_code(self, code: str) -> Optional[KpiDefinition]:
        return self.db.get_kpi_definition_by_code(code)

    def list_definitions(self, category: Optional[str] = None) -> list[KpiDefinition]:
        definitions = self.db.get_all_definitions()
        if category is not None:
            definitions = [d for d in definitions if d.category == category]
        return definitions

    def list_data(
        self,
        deal_id: str,
        kpi_code: Optional[str] = None,
        data_type: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[StoredKpiValue]:
        """List stored KPI values for a deal.

        Raises:
            NotFoundError: If kpi_code is given but not defined
            ValidationError: If data_type is unknown
        """
        kpi_id = None
        if kpi_code is not None:
            definition = self.db.get_kpi_definition_by_code(kpi_code)
            if definition is None:
                raise NotFoundError(f"KPI definition '{kpi_code}' not found")
            kpi_id = definition.id
        if data_type is not None and data_type not in DATA_TYPES:
            raise ValidationError(invalid_choice("data type", data_type, DATA_TYPES))
        return self.db.list_kpi_data(
            deal_id=deal_id,
            kpi_id=kpi_id,
            data_type=data_type,
            start_date=start_date,
            end_date=end_date,
        )
