"""Base solver abstraction layer."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

import pulp

from ..models.solution import SolverInfo, SolveStatus
from .status import PULP_STATUS_TABLE, StatusTable

if TYPE_CHECKING:
    from ..models.optimization import OptimizationModel
    from ..models.options import SolveOptions


class SolverError(Exception):
    """Base class for solver-related errors."""
    pass


class ConflictSearchTimeout(SolverError):
    """Conflict search did not finish within its time budget."""
    pass


@dataclass(frozen=True)
class BackendSettings:
    """Backend-neutral settings applied to one backend call."""

    time_limit: float | None = None
    mip_gap: float | None = None
    msg: bool = False
    threads: int | None = None
    warm_start: bool = False
    options: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_options(
        cls, options: "SolveOptions", warm_start: bool = False
    ) -> "BackendSettings":
        return cls(
            time_limit=options.time_limit_seconds,
            mip_gap=options.mip_gap,
            msg=options.verbosity >= 2,
            threads=options.threads,
            warm_start=warm_start,
            options=dict(options.backend_options),
        )


@dataclass
class ConflictSet:
    """Names of constraints and variable bounds forming an infeasible subsystem."""

    constraints: list[str] = field(default_factory=list)
    lower_bounds: list[str] = field(default_factory=list)
    upper_bounds: list[str] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.constraints) + len(self.lower_bounds) + len(self.upper_bounds)


class BaseSolver(ABC):
    """Abstract base class for solver backends.

    A backend turns ``BackendSettings`` into a PuLP solver command, runs it
    against a problem and reports the native termination code, which its
    ``status_table`` maps onto ``SolveStatus``.
    """

    name: ClassVar[str]
    display_name: ClassVar[str]
    install_hint: ClassVar[str | None] = None
    mandatory: ClassVar[bool] = False
    supports_duals: ClassVar[bool] = False
    supports_conflict: ClassVar[bool] = False
    status_table: ClassVar[StatusTable] = PULP_STATUS_TABLE

    def probe(self) -> None:
        """Check that the backend's native dependency can be used.

        Raises:
            SolverError: If the backend cannot be used
        """
        if not self.command(BackendSettings()).available():
            raise SolverError(f"{self.display_name} is not available")

    @abstractmethod
    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        """Build the PuLP solver command for the given settings.

        Args:
            settings: Backend-neutral solve settings

        Returns:
            Configured PuLP solver
        """
        pass

    def solve(self, problem: pulp.LpProblem, settings: BackendSettings) -> Any:
        """Solve a problem in place.

        Args:
            problem: PuLP problem to solve
            settings: Backend-neutral solve settings

        Returns:
            Native termination code

        Raises:
            pulp.PulpSolverError: If the backend crashes
        """
        problem.solve(self.command(settings))
        return self.native_status(problem)

    def native_status(self, problem: pulp.LpProblem) -> Any:
        """Native termination code of the last solve."""
        return (problem.status, problem.sol_status)

    def map_status(self, raw_status: Any) -> SolveStatus:
        return self.status_table.lookup(raw_status)

    def compute_conflict(
        self, model: "OptimizationModel", time_limit: float
    ) -> ConflictSet | None:
        """Compute an irreducible infeasible subsystem of the model.

        Args:
            model: Model whose last solve was infeasible
            time_limit: Search budget in seconds

        Returns:
            Conflict set, or None if the model turns out to be feasible

        Raises:
            SolverError: If the backend does not support conflict search
            ConflictSearchTimeout: If the budget is exhausted
        """
        if not self.supports_conflict:
            raise SolverError(f"{self.display_name} does not support conflict search")

        from .conflict import DeletionFilter

        return DeletionFilter(self, time_limit).run(model.problem)

    def get_info(self, available: bool) -> SolverInfo:
        """Get solver information."""
        return SolverInfo(
            name=self.name,
            display_name=self.display_name,
            available=available,
            mandatory=self.mandatory,
            supports_duals=self.supports_duals,
            supports_conflict=self.supports_conflict,
            install_hint=self.install_hint,
        )

    @staticmethod
    def _format_options(options: dict[str, Any], separator: str) -> list[str]:
        return [f"{key}{separator}{value}" for key, value in options.items()]
