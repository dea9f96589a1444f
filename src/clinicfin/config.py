"""Runtime settings loaded from the environment."""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


def default_db_path() -> Path:
    return Path.home() / ".clinicfin" / "clinicfin.db"


@dataclass(frozen=True)
class Settings:
    database_url: str | None
    db_path: str | None
    log_level: str
    progress_buffer_size: int
    max_workers: int
    create_clinics: bool
    min_year: int


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("CLINICFIN_DATABASE_URL") or None,
        db_path=os.getenv("CLINICFIN_DB_PATH") or None,
        log_level=os.getenv("CLINICFIN_LOG_LEVEL", "WARNING").upper(),
        progress_buffer_size=_parse_int(os.getenv("CLINICFIN_PROGRESS_BUFFER"), 100),
        max_workers=_parse_int(os.getenv("CLINICFIN_MAX_WORKERS"), 2),
        create_clinics=_parse_bool(os.getenv("CLINICFIN_CREATE_CLINICS"), False),
        min_year=_parse_int(os.getenv("CLINICFIN_MIN_YEAR"), 2000),
    )
