"""hydrodispatch - solve orchestration and two-stage pricing for hydrothermal dispatch."""

__version__ = "0.1.0"

from .analysis.extraction import CostComponent, CostParameters, ResultExtractor
from .exceptions import (
    BackendUnavailableError,
    ConfigurationError,
    HydroDispatchError,
    ModelBusyError,
    ModelStateError,
    UnknownBackendError,
)
from .models import (
    CostBreakdown,
    IISConflict,
    IISResult,
    IISStatus,
    OptimizationModel,
    PriceRow,
    PriceTable,
    SolveOptions,
    SolveResult,
    SolveStatus,
    TwoStageResult,
)
from .orchestrator import SolveOrchestrator, diagnose, solve, write_report

__all__ = [
    "BackendUnavailableError",
    "ConfigurationError",
    "CostBreakdown",
    "CostComponent",
    "CostParameters",
    "HydroDispatchError",
    "IISConflict",
    "IISResult",
    "IISStatus",
    "ModelBusyError",
    "ModelStateError",
    "OptimizationModel",
    "PriceRow",
    "PriceTable",
    "ResultExtractor",
    "SolveOptions",
    "SolveOrchestrator",
    "SolveResult",
    "SolveStatus",
    "TwoStageResult",
    "UnknownBackendError",
    "diagnose",
    "solve",
    "write_report",
]
