"""Database layer for clinicfin application."""

from clinicfin.database.base import Database
from clinicfin.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
