"""Tests for database mappers."""

import pytest
from datetime import datetime, UTC
from decimal import Decimal

from clinicfin.database.models import (
    Clinic as ORMClinic,
    FinancialVersion as ORMFinancialVersion,
    UploadHistory as ORMUploadHistory,
)
from clinicfin.database.mappers import (
    clinic_to_domain,
    snapshot_from_json,
    snapshot_to_json,
    upload_to_domain,
    version_to_domain,
)
from clinicfin.domain.entities import Clinic, UploadHistory, UploadStatus, Version, VersionSource
from clinicfin.domain.line_items import ALL_FIELDS


class TestClinicMapper:
    """Tests for Clinic mapper."""

    def test_clinic_to_domain(self):
        """Test converting ORM Clinic to domain Clinic."""
        orm_clinic = ORMClinic(id=1, name="Webster", location="Webster", created_at=datetime.now(UTC))
        clinic = clinic_to_domain(orm_clinic)

        assert isinstance(clinic, Clinic)
        assert clinic.id == 1
        assert clinic.name == "Webster"
        assert clinic.created_at == orm_clinic.created_at


class TestSnapshotMapper:
    """Tests for version snapshot serialization."""

    def test_snapshot_to_json_fills_every_field(self):
        """Test that missing fields are stored as zero strings."""
        data = snapshot_to_json({"rent_expense": Decimal("12.50")})

        assert set(data) == set(ALL_FIELDS)
        assert data["rent_expense"] == "12.50"
        assert data["net_income"] == "0"

    def test_snapshot_from_json_ignores_unknown_keys(self):
        """Test reading a snapshot written by an older schema."""
        values = snapshot_from_json({"rent_expense": "1.10", "retired_field": "9"})

        assert values["rent_expense"] == Decimal("1.10")
        assert "retired_field" not in values
        assert values["gas_expense"] == Decimal("0")


class TestVersionMapper:
    """Tests for FinancialVersion mapper."""

    def test_version_to_domain(self):
        """Test converting ORM FinancialVersion to domain Version."""
        orm_version = ORMFinancialVersion(
            id=7,
            clinic_id=1,
            year=2024,
            month=3,
            version=2,
            data=snapshot_to_json({"practice_income": Decimal("10.00")}),
            source="rollback",
            upload_id=None,
            previous_version_id=6,
            created_at=datetime.now(UTC),
        )
        version = version_to_domain(orm_version)

        assert isinstance(version, Version)
        assert version.key == (1, 2024, 3)
        assert version.source == VersionSource.ROLLBACK
        assert version.values["practice_income"] == Decimal("10.00")
        assert version.previous_version_id == 6


class TestUploadMapper:
    """Tests for UploadHistory mapper."""

    def test_upload_to_domain(self):
        """Test converting ORM UploadHistory to domain UploadHistory."""
        now = datetime.now(UTC)
        orm_upload = ORMUploadHistory(
            id=3,
            status="completed_with_errors",
            file_names=["a.csv"],
            file_count=1,
            uploaded_by="alice",
            records_count=9,
            error_message="[]",
            clinics_affected=None,
            created_at=now,
            updated_at=now,
        )
        upload = upload_to_domain(orm_upload)

        assert isinstance(upload, UploadHistory)
        assert upload.status == UploadStatus.COMPLETED_WITH_ERRORS
        assert upload.file_names == ["a.csv"]
        assert upload.clinics_affected == []
