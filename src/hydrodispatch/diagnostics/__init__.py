"""Infeasibility diagnostics."""

from .infeasibility import (
    TROUBLESHOOTING_CHECKLIST,
    InfeasibilityDiagnoser,
    render_report,
    write_report,
)

__all__ = ["TROUBLESHOOTING_CHECKLIST", "InfeasibilityDiagnoser", "render_report", "write_report"]
