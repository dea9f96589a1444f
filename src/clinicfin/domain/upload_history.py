"""Upload history domain service."""

import logging
from typing import Optional

from clinicfin.database.base import Database
from clinicfin.domain.entities import UploadHistory, UploadPage, UploadStatus
from clinicfin.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    invalid_status_transition,
    upload_not_found,
)

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class UploadHistoryService:
    """Service for the append-only log of ingestion batches."""

    def __init__(self, db: Database):
        """Initialize upload history service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_upload(self, file_names: list[str], uploaded_by: str = "system") -> int:
        """Create a pending upload entry.

        Args:
            file_names: Names of the files in the batch
            uploaded_by: Who submitted the batch

        Returns:
            Upload ID
        """
        upload_id = self.db.create_upload(file_names=file_names, uploaded_by=uploaded_by)
        logger.info("Created upload %d with %d file(s)", upload_id, len(file_names))
        return upload_id

    def get_upload(self, upload_id: int) -> UploadHistory:
        """Get an upload by ID.

        Raises:
            NotFoundError: If the upload does not exist
        """
        upload = self.db.get_upload(upload_id)
        if upload is None:
            raise NotFoundError(upload_not_found(upload_id))
        return upload

    def list_uploads(self, page: int = 1, limit: int = DEFAULT_PAGE_SIZE) -> UploadPage:
        """List uploads, newest first.

        Args:
            page: 1-based page number
            limit: Page size

        Raises:
            ValidationError: If page or limit is not positive
        """
        if page < 1:
            raise ValidationError(f"Page must be at least 1, got {page}")
        if limit < 1:
            raise ValidationError(f"Limit must be at least 1, got {limit}")

        uploads = self.db.list_uploads(offset=(page - 1) * limit, limit=limit)
        return UploadPage(uploads=uploads, page=page, limit=limit, total=self.db.count_uploads())

    def transition(
        self,
        upload_id: int,
        status: UploadStatus,
        records_count: Optional[int] = None,
        error_message: Optional[str] = None,
        clinics_affected: Optional[list[int]] = None,
    ) -> UploadHistory:
        """Move an upload to a new status.

        Terminal statuses are never left again.

        Raises:
            NotFoundError: If the upload does not exist
            ConflictError: If the status change is not allowed
        """
        upload = self.get_upload(upload_id)
        if not upload.status.can_transition_to(status):
            raise ConflictError(
                invalid_status_transition(upload_id, upload.status.value, status.value)
            )

        self.db.update_upload(
            upload_id,
            status,
            records_count=records_count,
            error_message=error_message,
            clinics_affected=clinics_affected,
        )
        logger.info("Upload %d: %s -> %s", upload_id, upload.status.value, status.value)
        return self.get_upload(upload_id)
