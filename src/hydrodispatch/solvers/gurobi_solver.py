"""Gurobi solver backend using gurobipy."""

import importlib
import time
from itertools import product
from typing import TYPE_CHECKING, Any

import pulp

from ..models.solution import SolveStatus
from ..utils.logger import get_logger
from .base import BackendSettings, BaseSolver, ConflictSearchTimeout, ConflictSet, SolverError
from .status import StatusTable

if TYPE_CHECKING:
    from ..models.optimization import OptimizationModel

logger = get_logger(__name__)

# Gurobi optimization status codes (GRB.Status)
GRB_LOADED = 1
GRB_OPTIMAL = 2
GRB_INFEASIBLE = 3
GRB_INF_OR_UNBD = 4
GRB_UNBOUNDED = 5
GRB_CUTOFF = 6
GRB_ITERATION_LIMIT = 7
GRB_NODE_LIMIT = 8
GRB_TIME_LIMIT = 9
GRB_SOLUTION_LIMIT = 10
GRB_INTERRUPTED = 11
GRB_NUMERIC = 12
GRB_SUBOPTIMAL = 13
GRB_INPROGRESS = 14
GRB_USER_OBJ_LIMIT = 15
GRB_WORK_LIMIT = 16
GRB_MEM_LIMIT = 17

_LIMIT_CODES = {
    GRB_ITERATION_LIMIT,
    GRB_NODE_LIMIT,
    GRB_TIME_LIMIT,
    GRB_SOLUTION_LIMIT,
    GRB_INTERRUPTED,
    GRB_SUBOPTIMAL,
    GRB_USER_OBJ_LIMIT,
    GRB_WORK_LIMIT,
    GRB_MEM_LIMIT,
}


def _classify_gurobi(code: tuple[int, bool]) -> SolveStatus:
    status, has_incumbent = code
    if status == GRB_OPTIMAL:
        return SolveStatus.OPTIMAL
    if status == GRB_INFEASIBLE:
        return SolveStatus.INFEASIBLE
    if status == GRB_UNBOUNDED:
        return SolveStatus.UNBOUNDED
    if status == GRB_INF_OR_UNBD:
        # Presolve could not tell which; treated as infeasible so it can be diagnosed
        return SolveStatus.INFEASIBLE
    if status in _LIMIT_CODES:
        return SolveStatus.FEASIBLE_NON_OPTIMAL if has_incumbent else SolveStatus.NOT_SOLVED
    if status in (GRB_LOADED, GRB_INPROGRESS, GRB_CUTOFF):
        return SolveStatus.NOT_SOLVED
    return SolveStatus.ERROR


# (Model.Status, Model.SolCount > 0)
GUROBI_STATUS_TABLE = StatusTable(
    "gurobi",
    product(range(GRB_LOADED, GRB_MEM_LIMIT + 1), (True, False)),
    _classify_gurobi,
)


class GurobiSolver(BaseSolver):
    """Gurobi through gurobipy.

    Passthrough options are Gurobi parameter names (e.g. ``MIPFocus``).
    Conflicts come from Gurobi's own ``computeIIS``.
    """

    name = "gurobi"
    display_name = "Gurobi Optimizer"
    install_hint = "pip install 'hydrodispatch[gurobi]' (requires a Gurobi license)"
    supports_duals = True
    supports_conflict = True
    status_table = GUROBI_STATUS_TABLE

    def probe(self) -> None:
        try:
            importlib.import_module("gurobipy")
        except ImportError as e:
            raise SolverError(f"gurobipy is not installed: {e}") from e
        super().probe()

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        params = dict(settings.options)
        if settings.threads is not None:
            params.setdefault("Threads", settings.threads)
        return pulp.GUROBI(
            msg=settings.msg,
            timeLimit=settings.time_limit,
            gapRel=settings.mip_gap,
            warmStart=settings.warm_start,
            manageEnv=True,
            **params,
        )

    def solve(self, problem: pulp.LpProblem, settings: BackendSettings) -> Any:
        solver = self.command(settings)
        try:
            problem.solve(solver)
            return self.native_status(problem)
        finally:
            solver.close()

    def native_status(self, problem: pulp.LpProblem) -> Any:
        model = getattr(problem, "solverModel", None)
        if model is None:
            return super().native_status(problem)
        return (int(model.Status), model.SolCount > 0)

    def compute_conflict(
        self, model: "OptimizationModel", time_limit: float
    ) -> ConflictSet | None:
        """Compute an IIS with Gurobi's native conflict refiner."""
        gp = importlib.import_module("gurobipy")
        problem = model.problem
        start = time.monotonic()
        solver = self.command(BackendSettings(time_limit=time_limit))
        try:
            problem.solve(solver)
            grb_model = problem.solverModel
            if grb_model.Status not in (GRB_INFEASIBLE, GRB_INF_OR_UNBD):
                return None
            remaining = time_limit - (time.monotonic() - start)
            if remaining <= 0:
                raise ConflictSearchTimeout("No time left for Gurobi conflict search")
            grb_model.setParam("TimeLimit", remaining)
            try:
                grb_model.computeIIS()
            except gp.GurobiError as e:
                raise SolverError(f"Gurobi conflict search failed: {e}") from e
            if not grb_model.IISMinimal and time.monotonic() - start >= time_limit:
                raise ConflictSearchTimeout(
                    f"Gurobi conflict search exceeded {time_limit:.1f}s"
                )
            conflict = ConflictSet(
                constraints=[c.ConstrName for c in grb_model.getConstrs() if c.IISConstr],
                lower_bounds=[v.VarName for v in grb_model.getVars() if v.IISLB],
                upper_bounds=[v.VarName for v in grb_model.getVars() if v.IISUB],
            )
            logger.info(f"Gurobi IIS contains {len(conflict)} elements")
            return conflict
        finally:
            solver.close()
