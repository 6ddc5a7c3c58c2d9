"""Database layer for kpiflow application."""

from kpiflow.database.base import Database
from kpiflow.database.factories import create_sqlite_database

__all__ = ["Database", "create_sqlite_database"]
