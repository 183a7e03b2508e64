"""Deletion-filter search for an irreducible infeasible subsystem.

For backends without a native conflict refiner. Every check runs on an
isolated copy rebuilt from ``LpProblem.toDict()``, so the caller's problem is
never touched.
"""

import copy
import time
from typing import TYPE_CHECKING, Any

import pulp

from ..models.solution import SolveStatus
from ..utils.logger import get_logger
from .base import BackendSettings, ConflictSearchTimeout, ConflictSet, SolverError

if TYPE_CHECKING:
    from .base import BaseSolver

logger = get_logger(__name__)

# (kind, name): kind is "constraint", "lower_bound" or "upper_bound"
Element = tuple[str, str]


class DeletionFilter:
    """Find an IIS by dropping one element at a time.

    An element (constraint or finite variable bound) stays out of the
    candidate set whenever the remaining system is still infeasible; what is
    left at the end is irreducible.
    """

    def __init__(self, solver: "BaseSolver", time_limit: float):
        """Initialize the filter.

        Args:
            solver: Backend running the feasibility checks
            time_limit: Total search budget in seconds
        """
        self.solver = solver
        self.time_limit = time_limit
        self.checks = 0
        self._deadline = 0.0

    def run(self, problem: pulp.LpProblem) -> ConflictSet | None:
        """Search for an IIS.

        Args:
            problem: Infeasible problem

        Returns:
            Conflict set, or None if the full problem is feasible

        Raises:
            ConflictSearchTimeout: If the budget is exhausted
            SolverError: If a feasibility check is inconclusive
        """
        self._deadline = time.monotonic() + self.time_limit
        self.checks = 0
        data = problem.toDict()
        elements = self._elements(data)
        logger.info(
            f"Starting deletion filter over {len(elements)} elements "
            f"with {self.solver.name}"
        )

        if self._is_feasible(data, set(elements)):
            return None

        active = list(elements)
        for element in elements:
            trial = [e for e in active if e != element]
            if not self._is_feasible(data, set(trial)):
                active = trial

        conflict = ConflictSet()
        for kind, name in active:
            if kind == "constraint":
                conflict.constraints.append(name)
            elif kind == "lower_bound":
                conflict.lower_bounds.append(name)
            else:
                conflict.upper_bounds.append(name)
        logger.info(
            f"Deletion filter kept {len(conflict)} of {len(elements)} elements "
            f"after {self.checks} checks"
        )
        return conflict

    @staticmethod
    def _elements(data: dict[str, Any]) -> list[Element]:
        elements: list[Element] = [
            ("constraint", c["name"]) for c in data["constraints"]
        ]
        for var in data["variables"]:
            if var["lowBound"] is not None:
                elements.append(("lower_bound", var["name"]))
            if var["upBound"] is not None:
                elements.append(("upper_bound", var["name"]))
        return elements

    def _is_feasible(self, data: dict[str, Any], active: set[Element]) -> bool:
        remaining = self._deadline - time.monotonic()
        if remaining <= 0:
            raise ConflictSearchTimeout(
                f"Conflict search exceeded {self.time_limit:.1f}s after {self.checks} checks"
            )
        self.checks += 1

        subset = copy.deepcopy(data)
        subset["objective"]["coefficients"] = []
        subset["constraints"] = [
            c for c in subset["constraints"] if ("constraint", c["name"]) in active
        ]
        for var in subset["variables"]:
            if ("lower_bound", var["name"]) not in active:
                var["lowBound"] = None
            if ("upper_bound", var["name"]) not in active:
                var["upBound"] = None
        _, candidate = pulp.LpProblem.fromDict(subset)

        raw = self.solver.solve(candidate, BackendSettings(time_limit=remaining))
        status = self.solver.map_status(raw)
        if status in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE_NON_OPTIMAL, SolveStatus.UNBOUNDED):
            return True
        if status is SolveStatus.INFEASIBLE:
            return False
        if time.monotonic() >= self._deadline:
            raise ConflictSearchTimeout(
                f"Conflict search exceeded {self.time_limit:.1f}s after {self.checks} checks"
            )
        raise SolverError(f"Feasibility check was inconclusive: {status.value} ({raw!r})")
