"""Result analysis: extraction, violation checks and export."""

from .constraint_violations import (
    ConstraintViolation,
    ConstraintViolationChecker,
    ViolationReport,
    classify_constraint,
    write_violation_report,
)
from .exporter import SolutionExporter
from .extraction import CostComponent, CostParameters, ResultExtractor

__all__ = [
    "ConstraintViolation",
    "ConstraintViolationChecker",
    "CostComponent",
    "CostParameters",
    "ResultExtractor",
    "SolutionExporter",
    "ViolationReport",
    "classify_constraint",
    "write_violation_report",
]
