"""Infeasibility diagnosis and IIS reports."""

import time
from datetime import datetime
from pathlib import Path

import pulp

from ..exceptions import BackendUnavailableError
from ..models.optimization import OptimizationModel
from ..models.solution import IISConflict, IISResult, IISStatus, SolveStatus
from ..solvers.base import ConflictSearchTimeout, ConflictSet, SolverError
from ..solvers.registry import SolverRegistry, get_default_registry
from ..utils.logger import get_logger
from ..utils.solve_log import auto_log_path

logger = get_logger(__name__)

TROUBLESHOOTING_CHECKLIST = (
    "Check variable bounds that may have been tightened too far "
    "(minimum generation, reservoir volume limits, fixed schedules).",
    "Check whether demand can be relaxed, or add a deficit (unserved energy) "
    "variable with a penalty cost.",
    "Check for missing capacity: total available generation and interchange "
    "must cover demand in every zone and period.",
    "Check equality constraints (water balance, energy balance) for "
    "inconsistent right-hand sides or initial conditions.",
)


class InfeasibilityDiagnoser:
    """Explains, on request, why a model has no feasible solution."""

    def __init__(self, registry: SolverRegistry | None = None, time_limit: float = 300.0):
        """Initialize the diagnoser.

        Args:
            registry: Registry resolving the backend
            time_limit: Default conflict search budget in seconds
        """
        self.registry = registry or get_default_registry()
        self.time_limit = time_limit

    def diagnose(
        self,
        model: OptimizationModel,
        *,
        time_limit: float | None = None,
        backend: str | None = None,
    ) -> IISResult:
        """Compute an irreducible infeasible subsystem of the model.

        Nothing is attempted unless the model's last solve was infeasible.
        Unsupported backends, timeouts and failed searches are reported as
        ``not-supported-by-backend``.

        Args:
            model: Model whose last solve was infeasible
            time_limit: Search budget in seconds; defaults to the time limit of
                the model's last solve, then to the diagnoser's
            backend: Backend to use; defaults to the one that ran the last solve

        Returns:
            Diagnosis result
        """
        budget = time_limit
        if budget is None:
            budget = model.last_time_limit or self.time_limit
        name = backend or model.last_backend or self.registry.default

        if model.last_status is not SolveStatus.INFEASIBLE:
            logger.warning(
                f"Model {model.name} last solve was {model.last_status.value}; "
                "skipping infeasibility diagnosis"
            )
            return IISResult(
                status=IISStatus.NOT_INFEASIBLE,
                backend=name,
                message=f"Last solve status is {model.last_status.value}",
            )

        try:
            solver = self.registry.resolve(name)
        except BackendUnavailableError as e:
            return self._unsupported(name, str(e))
        if not solver.supports_conflict:
            return self._unsupported(name, f"{solver.display_name} has no conflict search")

        start = time.monotonic()
        try:
            conflict = solver.compute_conflict(model, budget)
        except ConflictSearchTimeout as e:
            logger.warning(f"Conflict search timed out: {e}")
            return self._unsupported(name, str(e), time.monotonic() - start)
        except SolverError as e:
            logger.warning(f"Conflict search failed: {e}")
            return self._unsupported(name, str(e), time.monotonic() - start)
        elapsed = time.monotonic() - start

        if conflict is None:
            return self._unsupported(
                name, "Conflict search could not reproduce the infeasibility", elapsed
            )

        conflicts = self._materialize(model, conflict)
        logger.info(f"IIS for {model.name}: {len(conflicts)} conflicts in {elapsed:.2f}s")
        return IISResult(
            status=IISStatus.FOUND,
            conflicts=conflicts,
            backend=name,
            computation_time=elapsed,
        )

    @staticmethod
    def _unsupported(backend: str, message: str, elapsed: float = 0.0) -> IISResult:
        return IISResult(
            status=IISStatus.NOT_SUPPORTED,
            backend=backend,
            computation_time=elapsed,
            message=message,
        )

    @staticmethod
    def _materialize(model: OptimizationModel, conflict: ConflictSet) -> list[IISConflict]:
        """Walk the model and keep the flagged constraints and bounds."""
        constraint_groups = {
            constraint.name: group
            for group, constraints in model.constraint_groups.items()
            for constraint in constraints.values()
        }
        flagged = set(conflict.constraints)
        conflicts = []
        for constraint in model.problem.constraints():
            if constraint.name not in flagged:
                continue
            conflicts.append(
                IISConflict(
                    name=constraint.name,
                    kind="constraint",
                    expression=str(constraint),
                    bound=-constraint.constant + 0.0,
                    sense=pulp.LpConstraintSenses[constraint.sense],
                    group=constraint_groups.get(constraint.name),
                )
            )

        lower, upper = set(conflict.lower_bounds), set(conflict.upper_bounds)
        for var in model.variables():
            location = model.locate(var)
            group = location[0] if location else None
            if var.name in lower and var.lowBound is not None:
                conflicts.append(
                    IISConflict(
                        name=var.name,
                        kind="lower_bound",
                        expression=f"{var.name} >= {var.lowBound}",
                        bound=var.lowBound,
                        sense=">=",
                        group=group,
                    )
                )
            if var.name in upper and var.upBound is not None:
                conflicts.append(
                    IISConflict(
                        name=var.name,
                        kind="upper_bound",
                        expression=f"{var.name} <= {var.upBound}",
                        bound=var.upBound,
                        sense="<=",
                        group=group,
                    )
                )
        return conflicts


def render_report(result: IISResult, generated: datetime | None = None) -> str:
    """Render an IIS result as plain text."""
    generated = generated or datetime.now()
    lines = [
        "=" * 72,
        "INFEASIBILITY DIAGNOSIS REPORT",
        "=" * 72,
        f"Generated: {generated:%Y-%m-%d %H:%M:%S}",
        f"Backend: {result.backend or 'unknown'}",
        f"Status: {result.status.value}",
        f"Computation time: {result.computation_time:.2f}s",
    ]
    if result.message:
        lines.append(f"Message: {result.message}")
    lines += ["", "SUMMARY", "-" * 72]

    constraints = sum(1 for c in result.conflicts if c.kind == "constraint")
    bounds = len(result.conflicts) - constraints
    if result.found:
        lines.append(
            f"{len(result.conflicts)} elements conflict: "
            f"{constraints} constraints and {bounds} variable bounds."
        )
    else:
        lines.append("No conflicting subsystem was computed.")

    for index, conflict in enumerate(result.conflicts, start=1):
        title = f"[{index}] {conflict.kind.replace('_', ' ')}: {conflict.name}"
        if conflict.group:
            title += f" (group {conflict.group})"
        lines += ["", title, f"    Expression: {conflict.expression}"]
        if conflict.bound is not None:
            lines.append(f"    Violated bound: {conflict.sense or ''} {conflict.bound:g}".rstrip())

    lines += ["", "TROUBLESHOOTING CHECKLIST", "-" * 72]
    lines += [f"  {i}. {item}" for i, item in enumerate(TROUBLESHOOTING_CHECKLIST, start=1)]
    lines.append("")
    return "\n".join(lines)


def write_report(
    result: IISResult, path: str | Path | None = None, report_dir: str | Path = "logs"
) -> Path:
    """Write a human-readable IIS report.

    Args:
        result: Diagnosis result
        path: Report path; defaults to ``<report_dir>/iis_report_<timestamp>.txt``
        report_dir: Directory for auto-named reports

    Returns:
        Path of the written report
    """
    generated = datetime.now()
    if path is None:
        path = auto_log_path(report_dir, generated, prefix="iis_report").with_suffix(".txt")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_report(result, generated), encoding="utf-8")
    logger.info(f"IIS report written to {path}")
    return path
