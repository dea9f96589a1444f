"""CLI commands for clinicfin."""
