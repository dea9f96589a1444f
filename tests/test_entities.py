"""Tests for domain entities."""

import pytest
from dataclasses import FrozenInstanceError
from datetime import datetime, date, UTC
from decimal import Decimal

from clinicfin.domain.entities import (
    BatchError,
    BatchResult,
    Clinic,
    FinancialRecord,
    UploadPage,
    UploadStatus,
)


class TestClinic:
    """Tests for Clinic entity."""

    def test_clinic_immutability(self):
        """Test that Clinic entities are immutable."""
        clinic = Clinic(id=1, name="Webster", location="Webster", created_at=datetime.now(UTC))
        with pytest.raises(FrozenInstanceError):
            clinic.name = "Katy"


class TestFinancialRecord:
    """Tests for FinancialRecord entity."""

    def test_date_and_key(self):
        """Test the derived period fields."""
        record = FinancialRecord(clinic_id=3, year=2024, month=2, values={})
        assert record.date == date(2024, 2, 1)
        assert record.key == (3, 2024, 2)

    def test_get_defaults_to_zero(self):
        """Test reading a field that is not set."""
        record = FinancialRecord(clinic_id=1, year=2024, month=1, values={"rent_expense": Decimal("5")})
        assert record.get("rent_expense") == Decimal("5")
        assert record.get("net_income") == Decimal("0")


class TestUploadStatus:
    """Tests for the upload lifecycle."""

    def test_terminal_statuses(self):
        """Test which statuses end a batch."""
        assert not UploadStatus.PENDING.is_terminal
        assert not UploadStatus.PROCESSING.is_terminal
        assert UploadStatus.COMPLETED.is_terminal
        assert UploadStatus.COMPLETED_WITH_ERRORS.is_terminal
        assert UploadStatus.FAILED.is_terminal

    def test_transitions(self):
        """Test the allowed status changes."""
        assert UploadStatus.PENDING.can_transition_to(UploadStatus.PROCESSING)
        assert UploadStatus.PROCESSING.can_transition_to(UploadStatus.COMPLETED_WITH_ERRORS)
        assert not UploadStatus.PENDING.can_transition_to(UploadStatus.COMPLETED)
        assert not UploadStatus.FAILED.can_transition_to(UploadStatus.PROCESSING)


class TestUploadPage:
    """Tests for UploadPage."""

    @pytest.mark.parametrize("total,pages", [(0, 0), (1, 1), (20, 1), (21, 2)])
    def test_total_pages(self, total, pages):
        """Test page count rounding."""
        assert UploadPage(uploads=[], page=1, limit=20, total=total).total_pages == pages


class TestBatchResult:
    """Tests for the batch report."""

    def test_to_dict(self):
        """Test the client-facing result shape."""
        result = BatchResult(
            upload_id=1,
            status=UploadStatus.COMPLETED_WITH_ERRORS,
            records_processed=9,
            files_processed=1,
            clinics_affected=[1, 2],
            errors=[BatchError(file="a.csv", record="Webster - 2024/13", error="Invalid month")],
        )

        assert result.to_dict() == {
            "recordsProcessed": 9,
            "filesProcessed": 1,
            "clinicsAffected": 2,
            "errors": [{"file": "a.csv", "record": "Webster - 2024/13", "error": "Invalid month"}],
        }
