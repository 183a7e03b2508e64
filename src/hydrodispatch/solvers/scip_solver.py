"""SCIP solver backend using pyscipopt."""

import importlib

import pulp

from .base import BackendSettings, BaseSolver, SolverError
from ..utils.logger import get_logger

logger = get_logger(__name__)


class SCIPSolver(BaseSolver):
    """SCIP through pyscipopt.

    Passthrough options are SCIP parameter paths such as ``limits/nodes``.
    PuLP does not read SCIP duals, so pricing with this backend reports every
    price as unavailable.
    """

    name = "scip"
    display_name = "SCIP (Solving Constraint Integer Programs)"
    install_hint = "pip install 'hydrodispatch[scip]'"
    supports_conflict = True

    def probe(self) -> None:
        try:
            pyscipopt = importlib.import_module("pyscipopt")
        except ImportError as e:
            raise SolverError(f"pyscipopt is not available: {e}") from e
        logger.debug(f"pyscipopt {getattr(pyscipopt, '__version__', 'unknown')} loaded")
        super().probe()

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        return pulp.SCIP_PY(
            msg=settings.msg,
            timeLimit=settings.time_limit,
            gapRel=settings.mip_gap,
            threads=settings.threads,
            warmStart=settings.warm_start,
            options=self._format_options(settings.options, "="),
        )
