"""Data models for hydrodispatch."""

from .config import Config
from .optimization import OptimizationModel, VariableState
from .options import SolveOptions
from .solution import (
    CostBreakdown,
    IISConflict,
    IISResult,
    IISStatus,
    PriceRow,
    PriceTable,
    SolveResult,
    SolverInfo,
    SolveStatus,
    TwoStageResult,
)

__all__ = [
    "Config",
    "CostBreakdown",
    "IISConflict",
    "IISResult",
    "IISStatus",
    "OptimizationModel",
    "PriceRow",
    "PriceTable",
    "SolveOptions",
    "SolveResult",
    "SolveStatus",
    "SolverInfo",
    "TwoStageResult",
    "VariableState",
]
