"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from clinicfin.config import Settings, default_db_path
from clinicfin.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks CLINICFIN_DB_PATH
            environment variable, then defaults to ~/.clinicfin/clinicfin.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get("CLINICFIN_DB_PATH")

    if database_path is None:
        db_file = default_db_path()
        db_file.parent.mkdir(parents=True, exist_ok=True)
        database_path = str(db_file)

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)


def create_database(
    settings: Optional[Settings] = None, database_path: Optional[str] = None
) -> SQLAlchemyDatabase:
    """Create the database named by an explicit path or the settings.

    An explicit path wins, then CLINICFIN_DATABASE_URL, then the SQLite path.
    """
    if database_path is not None:
        return create_sqlite_database(database_path=str(Path(database_path)))
    if settings is not None and settings.database_url:
        return SQLAlchemyDatabase(settings.database_url)
    return create_sqlite_database(database_path=settings.db_path if settings else None)
