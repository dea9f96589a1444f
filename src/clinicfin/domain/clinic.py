"""Clinic domain service."""

import logging
from typing import Optional

from clinicfin.database.base import Database
from clinicfin.domain.entities import Clinic as ClinicEntity
from clinicfin.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    clinic_name_not_found,
    clinic_not_found,
    duplicate_clinic_name,
)
from clinicfin.utils.clinic_names import location_from_name

logger = logging.getLogger(__name__)


class ClinicService:
    """Service for managing clinics."""

    def __init__(self, db: Database):
        """Initialize clinic service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_clinic(self, name: str, location: Optional[str] = None) -> int:
        """Create a new clinic.

        Args:
            name: Clinic name
            location: Location; derived from a trailing "- Location" when omitted

        Returns:
            Clinic ID

        Raises:
            ValidationError: If the name is blank
            ConflictError: If clinic name already exists
        """
        name = name.strip() if name else ""
        if not name:
            raise ValidationError("Clinic name is required")
        if self.db.get_clinic_by_name(name) is not None:
            raise ConflictError(duplicate_clinic_name(name))

        if location is None:
            location = location_from_name(name)
        clinic_id = self.db.create_clinic(name=name, location=location)
        logger.info("Created clinic '%s' (ID %d)", name, clinic_id)
        return clinic_id

    def get_clinic(self, clinic_id: int) -> Optional[ClinicEntity]:
        """Get clinic by ID."""
        return self.db.get_clinic(clinic_id)

    def list_clinics(self) -> list[ClinicEntity]:
        """List all clinics."""
        return self.db.list_clinics()

    def find_clinic(self, name: str) -> Optional[ClinicEntity]:
        """Find a clinic by name.

        Exact matches win; otherwise a single case-insensitive match on the
        name or location is accepted ("Webster" finds "APP - Webster").
        """
        clinic = self.db.get_clinic_by_name(name)
        if clinic is not None:
            return clinic

        wanted = name.strip().lower()
        matches = [
            c
            for c in self.db.list_clinics()
            if c.name.lower() == wanted or (c.location or "").lower() == wanted
        ]
        if len(matches) == 1:
            return matches[0]
        return None

    def resolve_clinic(self, clinic: str | int) -> ClinicEntity:
        """Resolve a clinic name or ID.

        Raises:
            NotFoundError: If no clinic matches
        """
        if isinstance(clinic, int):
            found = self.db.get_clinic(clinic)
            if found is None:
                raise NotFoundError(clinic_not_found(clinic))
            return found

        # Try to parse as integer (handles string IDs like "1")
        try:
            clinic_id = int(clinic)
        except (ValueError, TypeError):
            clinic_id = None
        if clinic_id is not None:
            found = self.db.get_clinic(clinic_id)
            if found is None:
                raise NotFoundError(clinic_not_found(clinic_id))
            return found

        found = self.find_clinic(clinic)
        if found is None:
            raise NotFoundError(clinic_name_not_found(clinic))
        return found

    def get_or_create_clinic(self, name: str) -> ClinicEntity:
        """Find a clinic by name, creating it when missing."""
        clinic = self.find_clinic(name)
        if clinic is not None:
            return clinic
        clinic_id = self.create_clinic(name)
        return self.db.get_clinic(clinic_id)
