"""Shared domain error messages and error types."""


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class ParseError(DomainError):
    """A source spreadsheet is unreadable or not in the expected shape."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class ConcurrencyConflictError(ConflictError):
    """Another commit won the race for the same clinic-month version."""


class StoreUnavailableError(DomainError):
    """The database cannot be reached; fatal to the whole batch."""


def clinic_not_found(clinic_id: int) -> str:
    """Return message for missing clinic by ID."""
    return f"Clinic {clinic_id} not found"


def clinic_name_not_found(name: str) -> str:
    """Return message for missing clinic by name."""
    return f"Clinic '{name}' not found"


def duplicate_clinic_name(name: str) -> str:
    """Return message for duplicate clinic name."""
    return f"Clinic with name '{name}' already exists"


def version_not_found(version_id: int) -> str:
    """Return message for missing version."""
    return f"Version {version_id} not found"


def upload_not_found(upload_id: int) -> str:
    """Return message for missing upload."""
    return f"Upload {upload_id} not found"


def version_not_visible(version_id: int, upload_id: int) -> str:
    """Return message when a version's clinic-month was not part of an upload."""
    return f"Version {version_id} not found for upload {upload_id}"


def invalid_status_transition(upload_id: int, current: str, target: str) -> str:
    """Return message for a forbidden upload status change."""
    return f"Upload {upload_id} cannot move from '{current}' to '{target}'"


def period_label(clinic: str | int | None, year: int, month: int) -> str:
    """Return the human-readable label of one clinic-month.

    Pass the clinic name where it is known; a bare ID reads "clinic <id>".
    """
    if isinstance(clinic, int):
        clinic = f"clinic {clinic}"
    return f"{clinic} - {year}/{month}"
