"""Exhaustive mappings from backend-native termination codes to SolveStatus."""

from itertools import product
from typing import Any, Callable, Hashable, Iterable, Mapping

import pulp

from ..models.solution import SolveStatus
from ..utils.logger import get_logger

logger = get_logger(__name__)


class StatusTable:
    """Mapping of native termination codes onto ``SolveStatus``.

    The table is built from an explicit domain of every code a backend can
    report, and construction fails when any of them is left unmapped. Codes
    outside the domain resolve to ``SolveStatus.ERROR``.
    """

    def __init__(
        self,
        name: str,
        domain: Iterable[Hashable],
        rule: Callable[[Any], SolveStatus],
    ):
        """Build and validate the table.

        Args:
            name: Table name used in log messages
            domain: Every native code the backend can report
            rule: Classification applied to each domain code

        Raises:
            ValueError: If the rule leaves a domain code unmapped
        """
        self.name = name
        table: dict[Hashable, SolveStatus] = {}
        unmapped = []
        for code in domain:
            status = rule(code)
            if not isinstance(status, SolveStatus):
                unmapped.append(code)
                continue
            table[code] = status
        if unmapped:
            raise ValueError(f"Status table {name} leaves codes unmapped: {unmapped}")
        self._table: Mapping[Hashable, SolveStatus] = table

    def __contains__(self, code: Hashable) -> bool:
        return code in self._table

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, code: Hashable) -> SolveStatus:
        """Map a native code, defaulting to ``ERROR`` for unknown codes."""
        try:
            return self._table[code]
        except (KeyError, TypeError):
            logger.warning(f"Unmapped {self.name} termination code {code!r}; reporting error")
            return SolveStatus.ERROR


def _classify_pulp(code: tuple[int, int]) -> SolveStatus:
    status, sol_status = code
    if status == pulp.LpStatusOptimal:
        if sol_status == pulp.LpSolutionOptimal:
            return SolveStatus.OPTIMAL
        if sol_status == pulp.LpSolutionIntegerFeasible:
            return SolveStatus.FEASIBLE_NON_OPTIMAL
        return SolveStatus.ERROR
    if status == pulp.LpStatusNotSolved:
        # A limit was hit; an incumbent may still exist
        if sol_status in (pulp.LpSolutionIntegerFeasible, pulp.LpSolutionOptimal):
            return SolveStatus.FEASIBLE_NON_OPTIMAL
        if sol_status == pulp.LpSolutionNoSolutionFound:
            return SolveStatus.NOT_SOLVED
        return SolveStatus.ERROR
    if status == pulp.LpStatusInfeasible:
        return SolveStatus.INFEASIBLE
    if status == pulp.LpStatusUnbounded:
        return SolveStatus.UNBOUNDED
    return SolveStatus.ERROR


# (LpProblem.status, LpProblem.sol_status)
PULP_STATUS_TABLE = StatusTable(
    "pulp",
    product(pulp.LpStatus, pulp.LpSolution),
    _classify_pulp,
)
