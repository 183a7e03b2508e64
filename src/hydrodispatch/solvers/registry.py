"""Solver registry resolving backend names to usable solvers."""

import threading
from collections import Counter
from functools import lru_cache

from ..exceptions import BackendUnavailableError, UnknownBackendError
from ..models.solution import SolverInfo
from ..utils.logger import get_logger
from .base import BaseSolver
from .cbc_solver import CBCSolver
from .glpk_solver import GLPKSolver
from .gurobi_solver import GurobiSolver
from .highs_solver import HiGHSSolver
from .scip_solver import SCIPSolver

logger = get_logger(__name__)

BUILTIN_SOLVERS: tuple[type[BaseSolver], ...] = (
    CBCSolver,
    HiGHSSolver,
    SCIPSolver,
    GurobiSolver,
    GLPKSolver,
)


class SolverRegistry:
    """Registry of solver backends with a load-once availability cache.

    Optional backends are probed the first time they are asked for; the
    outcome, success or failure, is cached for the lifetime of the registry
    and never retried. Mandatory backends are always available.
    """

    def __init__(
        self,
        solvers: tuple[type[BaseSolver], ...] = BUILTIN_SOLVERS,
        default: str = "cbc",
    ):
        """Initialize the registry.

        Args:
            solvers: Backend classes to register
            default: Name of the fallback backend
        """
        self._registry: dict[str, type[BaseSolver]] = {}
        self._instances: dict[str, BaseSolver] = {}
        self._availability: dict[str, bool] = {}
        self._lock = threading.Lock()
        self.load_attempts: Counter[str] = Counter()
        for solver_class in solvers:
            self.register(solver_class)
        self.default = default.lower()

    def register(self, solver_class: type[BaseSolver]) -> None:
        """Register a backend class under its ``name``."""
        name = solver_class.name.lower()
        with self._lock:
            self._registry[name] = solver_class
            self._instances.pop(name, None)
            self._availability.pop(name, None)

    def registered(self) -> list[str]:
        """Get names of all registered backends."""
        return list(self._registry)

    def is_registered(self, solver_name: str) -> bool:
        return solver_name.lower() in self._registry

    def is_available(self, solver_name: str) -> bool:
        """Check if a backend can be used.

        Args:
            solver_name: Name of the backend

        Returns:
            True if the backend is registered and loaded successfully
        """
        solver_name = solver_name.lower()
        if solver_name not in self._registry:
            return False
        return self._load(solver_name) is not None

    def get_available_solvers(self) -> list[str]:
        """Get list of available solver names.

        Returns:
            Names of backends that loaded successfully
        """
        return [name for name in self._registry if self.is_available(name)]

    def resolve(self, solver_name: str) -> BaseSolver:
        """Resolve a backend name to a solver instance.

        Args:
            solver_name: Name of the backend

        Returns:
            Loaded solver instance

        Raises:
            UnknownBackendError: If the backend is not registered
            BackendUnavailableError: If the backend could not be loaded
        """
        solver_name = solver_name.lower()
        if solver_name not in self._registry:
            available = ", ".join(self.registered())
            raise UnknownBackendError(
                f"Unsupported solver: {solver_name}. Available solvers: {available}"
            )
        solver = self._load(solver_name)
        if solver is None:
            raise BackendUnavailableError(
                solver_name, self._registry[solver_name].install_hint
            )
        return solver

    def get_solver_info(self) -> dict[str, SolverInfo]:
        """Get information about every registered backend."""
        info = {}
        for name, solver_class in self._registry.items():
            solver = self._load(name)
            info[name] = (solver or solver_class()).get_info(solver is not None)
        return info

    def _load(self, solver_name: str) -> BaseSolver | None:
        with self._lock:
            if solver_name in self._availability:
                return self._instances.get(solver_name)

            solver_class = self._registry[solver_name]
            solver = solver_class()
            if solver_class.mandatory:
                self._availability[solver_name] = True
                self._instances[solver_name] = solver
                return solver

            self.load_attempts[solver_name] += 1
            try:
                solver.probe()
            except Exception as e:
                logger.warning(
                    f"Solver backend '{solver_name}' is unavailable: {e}. "
                    f"Install with: {solver_class.install_hint}"
                )
                self._availability[solver_name] = False
                return None

            logger.info(f"Solver backend '{solver_name}' loaded")
            self._availability[solver_name] = True
            self._instances[solver_name] = solver
            return solver


@lru_cache(maxsize=1)
def get_default_registry() -> SolverRegistry:
    """Process-wide registry of the built-in backends, created once."""
    return SolverRegistry()
