"""CLI package for clinicfin."""
