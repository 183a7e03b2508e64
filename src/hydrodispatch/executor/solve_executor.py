"""Single solve attempt against an optimization model."""

import logging
import math
import time
from contextlib import nullcontext
from typing import Any

import pulp

from ..models.optimization import OptimizationModel
from ..models.options import SolveOptions
from ..models.solution import SolveResult, SolveStatus
from ..solvers.base import BackendSettings, BaseSolver, SolverError
from ..utils.logger import get_logger
from ..utils.solve_log import SolveLog

logger = get_logger(__name__)


class SolveExecutor:
    """Runs exactly one solve and normalizes its outcome.

    No retries happen here. Backend crashes become ``SolveStatus.ERROR``
    results with the backend message preserved.
    """

    def execute(
        self,
        model: OptimizationModel,
        solver: BaseSolver,
        options: SolveOptions,
        *,
        stage: str = "single",
        relax: bool = False,
        solve_log: SolveLog | None = None,
    ) -> SolveResult:
        """Solve the model once.

        Args:
            model: Model to solve in place
            solver: Resolved backend
            options: Solve options
            stage: Stage label recorded in the result and the log
            relax: Solve the continuous relaxation, restoring integrality after
            solve_log: Open log to write to; otherwise ``options.log_file`` is used

        Returns:
            Immutable solve result
        """
        warm_start = False
        if options.warm_start is not None and options.warm_start.has_values:
            seeded = model.set_start_values(options.warm_start)
            warm_start = seeded > 0
            logger.info(f"Warm start seeded {seeded} variables")

        settings = BackendSettings.from_options(options, warm_start=warm_start)
        message = None

        with model.relaxed() if relax else nullcontext(model):
            is_relaxation = not model.is_mip()
            start = time.perf_counter()
            try:
                raw_status: Any = solver.solve(model.problem, settings)
            except (pulp.PulpSolverError, SolverError) as e:
                logger.error(f"{solver.name} failed during {stage} solve: {e}")
                raw_status = None
                message = str(e)
                status = SolveStatus.ERROR
            else:
                status = solver.map_status(raw_status)
            solve_time = time.perf_counter() - start

            variables: dict[str, dict[Any, float]] = {}
            objective = None
            if status.has_solution:
                variables = self._read_values(model)
                objective = self._read_objective(model)

            duals: dict[str, dict[Any, float]] = {}
            if status is SolveStatus.OPTIMAL and is_relaxation and solver.supports_duals:
                duals = self._read_duals(model)

        model.record_solve(
            status,
            raw_status,
            solver.name,
            duals_valid=bool(duals),
            time_limit=options.time_limit_seconds,
        )
        result = SolveResult(
            status=status,
            raw_status=None if raw_status is None else repr(raw_status),
            backend=solver.name,
            stage=stage,
            objective_value=objective,
            solve_time=solve_time,
            variables=variables,
            duals=duals,
            is_relaxation=is_relaxation,
            log_file=str(options.log_file) if options.log_file else None,
            message=message,
        )

        summary = self._summary(result)
        logger.log(logging.INFO if options.verbosity >= 1 else logging.DEBUG, summary)
        if solve_log is not None:
            solve_log.event(summary)
        elif options.log_file is not None:
            with SolveLog(options.log_file) as log:
                log.event(summary)
        return result

    @staticmethod
    def _summary(result: SolveResult) -> str:
        objective = "n/a" if result.objective_value is None else f"{result.objective_value:.6g}"
        return (
            f"{result.stage} solve finished: backend={result.backend} "
            f"status={result.status.value} raw={result.raw_status} "
            f"objective={objective} time={result.solve_time:.3f}s"
        )

    @staticmethod
    def _read_values(model: OptimizationModel) -> dict[str, dict[Any, float]]:
        values: dict[str, dict[Any, float]] = {}
        missing = 0
        for group, variables in model.variable_groups.items():
            table = values.setdefault(group, {})
            for key, var in variables.items():
                if var.varValue is None:
                    missing += 1
                    continue
                table[key] = float(var.varValue)
        if missing:
            logger.warning(f"{missing} variables have no value after the solve")
        return values

    @staticmethod
    def _read_objective(model: OptimizationModel) -> float | None:
        value = pulp.value(model.problem.objective)
        if value is None:
            return None
        value = float(value)
        return value if math.isfinite(value) else None

    @staticmethod
    def _read_duals(model: OptimizationModel) -> dict[str, dict[Any, float]]:
        duals: dict[str, dict[Any, float]] = {}
        for group, constraints in model.constraint_groups.items():
            table = {
                key: float(constraint.pi)
                for key, constraint in constraints.items()
                if constraint.pi is not None
            }
            if table:
                duals[group] = table
        return duals
