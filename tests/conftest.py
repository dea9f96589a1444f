"""Shared pytest fixtures for clinicfin tests."""

import csv
import tempfile
import os
from pathlib import Path
import pytest

from clinicfin.config import Settings
from clinicfin.database.factories import create_sqlite_database
from clinicfin.domain.calculation import CalculationEngine
from clinicfin.domain.clinic import ClinicService
from clinicfin.domain.mapper import LineItemMapper
from clinicfin.domain.orchestrator import UploadOrchestrator
from clinicfin.domain.progress import ProgressChannel
from clinicfin.domain.upload_history import UploadHistoryService
from clinicfin.domain.versioning import VersionStore

# Two months of a small clinic P&L: (label, [Jan 24, Feb 24])
DEFAULT_LINES = [
    ("Ordinary Income/Expense", ["", ""]),
    ("Income", ["", ""]),
    ("40000 · HD Research LLC Income", ["100,000.00", "110,000.00"]),
    ("Total Income", ["100,000.00", "110,000.00"]),
    ("Cost of Goods Sold", ["", ""]),
    ("53000 · Medical Billing", ["20,000.00", "(1,000.00)"]),
    ("Total COGS", ["20,000.00", "(1,000.00)"]),
    ("Gross Profit", ["80,000.00", "111,000.00"]),
    ("Expense", ["", ""]),
    ("66030 · Wages", ["30,000.00", "31,000.00"]),
    ("Total Expense", ["30,000.00", "31,000.00"]),
    ("Net Ordinary Income", ["50,000.00", "80,000.00"]),
    ("Net Income", ["50,000.00", "80,000.00"]),
]


def write_pl_csv(
    path: Path,
    lines=None,
    months=("Jan 24", "Feb 24"),
    title="American Pain Partners LLC - Webster",
) -> Path:
    """Write a QuickBooks-shaped P&L export."""
    lines = DEFAULT_LINES if lines is None else lines
    header = [""]
    for month in months:
        header += [month, ""]
    header.append("TOTAL")

    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow([title])
        writer.writerow(["Profit & Loss"])
        writer.writerow([f"{months[0]} through {months[-1]}"])
        writer.writerow(header)
        for label, values in lines:
            row = [label]
            for value in values:
                row += [value, ""]
            row.append("")
            writer.writerow(row)
    return path


@pytest.fixture
def temp_db():
    """Create a temporary database for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create database
    db = create_sqlite_database(database_path=db_path)
    # Store the path for tests that need it
    db.database_path = db_path
    db.connect()
    db.initialize_schema()

    yield db

    # Cleanup
    db.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def settings():
    """Settings independent of the test environment."""
    return Settings(
        database_url=None,
        db_path=None,
        log_level="WARNING",
        progress_buffer_size=100,
        max_workers=2,
        create_clinics=False,
        min_year=2000,
    )


@pytest.fixture
def clinic_service(temp_db):
    """Create a ClinicService with a temporary database."""
    return ClinicService(temp_db)


@pytest.fixture
def version_store(temp_db):
    """Create a VersionStore with a temporary database."""
    return VersionStore(temp_db)


@pytest.fixture
def upload_history_service(temp_db):
    """Create an UploadHistoryService with a temporary database."""
    return UploadHistoryService(temp_db)


@pytest.fixture
def engine():
    """Create a CalculationEngine."""
    return CalculationEngine()


@pytest.fixture
def mapper():
    """Create a LineItemMapper over the standard mapping table."""
    return LineItemMapper()


@pytest.fixture
def channel():
    """Create a ProgressChannel."""
    return ProgressChannel(buffer_size=100)


@pytest.fixture
def orchestrator(temp_db, channel, settings):
    """Create an UploadOrchestrator and shut its workers down afterwards."""
    orchestrator = UploadOrchestrator(temp_db, channel, settings)
    yield orchestrator
    orchestrator.shutdown()


@pytest.fixture
def sample_clinic(clinic_service):
    """Create a sample clinic for testing."""
    clinic_id = clinic_service.create_clinic(name="Webster")
    return clinic_service.get_clinic(clinic_id)


@pytest.fixture
def pl_csv(tmp_path):
    """Factory writing P&L CSV files into a temporary directory."""

    def make(name="APP Financials 24(Webster).csv", **kwargs) -> Path:
        return write_pl_csv(tmp_path / name, **kwargs)

    return make


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
