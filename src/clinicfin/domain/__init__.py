"""Domain layer for clinicfin application."""

_SERVICES = {
    "ClinicService": "clinicfin.domain.clinic",
    "LineItemMapper": "clinicfin.domain.mapper",
    "RecordValidator": "clinicfin.domain.validator",
    "CalculationEngine": "clinicfin.domain.calculation",
    "AuditService": "clinicfin.domain.audit",
    "VersionStore": "clinicfin.domain.versioning",
    "UploadHistoryService": "clinicfin.domain.upload_history",
    "ProgressChannel": "clinicfin.domain.progress",
    "UploadOrchestrator": "clinicfin.domain.orchestrator",
    "VerificationService": "clinicfin.domain.verification",
}

__all__ = list(_SERVICES)


# Services import the database layer, which imports domain entities;
# resolve them lazily to keep that cycle out of package import.
def __getattr__(name):
    if name in _SERVICES:
        import importlib

        return getattr(importlib.import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
