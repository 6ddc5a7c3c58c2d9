"""Domain layer for kpiflow application."""

__all__ = [
    "ConnectionService",
    "KpiService",
    "KpiImportService",
]


# Services are imported lazily: database.base imports domain.entities, and the
# services import database.base.
def __getattr__(name):
    if name == "ConnectionService":
        from kpiflow.domain.connection import ConnectionService
        return ConnectionService
    if name == "KpiService":
        from kpiflow.domain.kpi import KpiService
        return KpiService
    if name == "KpiImportService":
        from kpiflow.domain.kpi_import import KpiImportService
        return KpiImportService
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
