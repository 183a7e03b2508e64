"""Optimization model borrowed by the solve engine.

The model builder owns an ``OptimizationModel``; the engine borrows it for
one call at a time, fixes integer decisions for the pricing solve and must
hand it back with every variable's bounds and category unchanged.
"""

import math
import threading
from contextlib import contextmanager
from typing import Any, Iterable, Iterator, Mapping, NamedTuple

import pulp

from ..exceptions import ModelBusyError, ModelStateError
from ..utils.logger import get_logger
from .solution import SolveResult, SolveStatus

logger = get_logger(__name__)

DEFAULT_PRICE_GROUP = "submarket_balance"


class VariableState(NamedTuple):
    """Bounds and category of a variable, as seen by the backend."""

    low_bound: float | None
    up_bound: float | None
    cat: str


def _key_parts(key: Any) -> tuple[Any, ...]:
    return key if isinstance(key, tuple) else (key,)


def element_name(group: str, key: Any) -> str:
    """Name a grouped variable or constraint as ``<group>_<key parts>``."""
    return "_".join([group, *(str(part) for part in _key_parts(key))])


class OptimizationModel:
    """Mixed-integer program with named variable and constraint groups.

    Wraps a PuLP ``LpProblem``. Variable groups map keys (typically
    ``(entity_id, period)`` tuples) to ``LpVariable`` objects; constraint
    groups map keys to ``LpConstraint`` objects. The market-balance group
    named by ``price_group`` is keyed by ``(zone, period)``.
    """

    def __init__(
        self,
        problem: pulp.LpProblem,
        *,
        price_group: str = DEFAULT_PRICE_GROUP,
        cost_scale: float = 1.0,
        cost_parameters: Any = None,
    ):
        """Initialize the model.

        Args:
            problem: PuLP problem holding objective, constraints and variables
            price_group: Constraint group whose duals are market prices
            cost_scale: Factor the objective costs were multiplied by
            cost_parameters: Static unit costs used for the cost breakdown
        """
        if cost_scale <= 0:
            raise ValueError(f"cost_scale must be positive, got {cost_scale}")
        self.problem = problem
        self.price_group = price_group
        self.cost_scale = cost_scale
        self.cost_parameters = cost_parameters
        self.variable_groups: dict[str, dict[Any, pulp.LpVariable]] = {}
        self.constraint_groups: dict[str, dict[Any, pulp.LpConstraint]] = {}
        self._locations: dict[str, tuple[str, Any]] = {}
        self._original_states: dict[str, VariableState] = {}
        self._borrow_lock = threading.Lock()

        self.last_status = SolveStatus.NOT_SOLVED
        self.last_raw_status: Any = None
        self.last_backend: str | None = None
        self.last_time_limit: float | None = None
        self.duals_valid = False

    @classmethod
    def minimize(cls, name: str, **kwargs: Any) -> "OptimizationModel":
        """Create a model around an empty minimisation problem."""
        return cls(pulp.LpProblem(name, pulp.LpMinimize), **kwargs)

    @property
    def name(self) -> str:
        return self.problem.name

    # Building

    def add_variables(
        self,
        group: str,
        keys: Iterable[Any],
        low_bound: float | None = None,
        up_bound: float | None = None,
        cat: str = pulp.LpContinuous,
    ) -> dict[Any, pulp.LpVariable]:
        """Create one variable per key and register them as a group.

        Args:
            group: Variable group name (e.g. ``thermal_commitment``)
            keys: Group keys, scalars or tuples
            low_bound: Lower bound for every variable
            up_bound: Upper bound for every variable
            cat: PuLP category (Continuous, Integer or Binary)

        Returns:
            Mapping from key to the created variable
        """
        variables = {
            key: self.problem.add_variable(
                element_name(group, key), low_bound, up_bound, cat
            )
            for key in keys
        }
        return self.add_variable_group(group, variables)

    def add_variable_group(
        self, group: str, variables: Mapping[Any, pulp.LpVariable]
    ) -> dict[Any, pulp.LpVariable]:
        """Register pre-built variables under a group name."""
        table = self.variable_groups.setdefault(group, {})
        for key, var in variables.items():
            table[key] = var
            self._locations[var.name] = (group, key)
        return table

    def add_constraint_group(
        self, group: str, constraints: Mapping[Any, pulp.LpConstraint]
    ) -> dict[Any, pulp.LpConstraint]:
        """Add constraints to the problem and register them as a group.

        Each constraint is named ``<group>_<key parts>``.
        """
        table = self.constraint_groups.setdefault(group, {})
        for key, constraint in constraints.items():
            self.problem.addConstraint(constraint, element_name(group, key))
            table[key] = constraint
        return table

    def set_objective(self, expression: pulp.LpAffineExpression) -> None:
        self.problem.setObjective(expression)

    # Reading

    def variable_group(self, group: str) -> dict[Any, pulp.LpVariable]:
        """Get a variable group.

        Raises:
            KeyError: If the group does not exist
        """
        return self.variable_groups[group]

    def constraint_group(self, group: str) -> dict[Any, pulp.LpConstraint]:
        """Get a constraint group.

        Raises:
            KeyError: If the group does not exist
        """
        return self.constraint_groups[group]

    def constraint(self, name: str) -> pulp.LpConstraint | None:
        return self.problem.get_constraint_by_name(name)

    def variables(self) -> list[pulp.LpVariable]:
        return self.problem.variables()

    def locate(self, var: pulp.LpVariable) -> tuple[str, Any] | None:
        """Return ``(group, key)`` of a registered variable, or None."""
        return self._locations.get(var.name)

    def integer_variables(self) -> list[pulp.LpVariable]:
        return [v for v in self.variables() if v.cat == pulp.LpInteger]

    def free_integer_count(self) -> int:
        """Number of integer variables not yet fixed."""
        return len(self.integer_variables())

    def is_mip(self) -> bool:
        return bool(self.problem.isMIP())

    # Fix state

    def fix_state(self) -> tuple[tuple[str, VariableState], ...]:
        """Snapshot of every variable's bounds and category."""
        return tuple(
            (v.name, VariableState(v.lowBound, v.upBound, v.cat))
            for v in self.variables()
        )

    @property
    def fixed_variable_names(self) -> list[str]:
        return list(self._original_states)

    def fix_variable(self, var: pulp.LpVariable, value: float) -> None:
        """Pin a variable to a value and make it continuous.

        The original bounds and category are remembered on the first fix
        only, so fixing twice still restores the pre-fix state.
        """
        if var.name not in self._original_states:
            self._original_states[var.name] = VariableState(
                var.lowBound, var.upBound, var.cat
            )
        var.lowBound = value
        var.upBound = value
        var.cat = pulp.LpContinuous

    def unfix_variable(self, var: pulp.LpVariable) -> None:
        """Restore a fixed variable's original bounds and category."""
        state = self._original_states.pop(var.name, None)
        if state is None:
            return
        var.lowBound = state.low_bound
        var.upBound = state.up_bound
        var.cat = state.cat

    def unfix_all(self) -> int:
        """Restore every fixed variable.

        Returns:
            Number of variables restored
        """
        by_name = {v.name: v for v in self.variables()}
        restored = 0
        for name in list(self._original_states):
            var = by_name.get(name)
            if var is None:
                raise ModelStateError(f"Fixed variable {name} is no longer in the model")
            self.unfix_variable(var)
            restored += 1
        return restored

    @contextmanager
    def relaxed(self) -> Iterator["OptimizationModel"]:
        """Make every integer variable continuous for the duration."""
        relaxed = self.integer_variables()
        for var in relaxed:
            var.cat = pulp.LpContinuous
        try:
            yield self
        finally:
            for var in relaxed:
                var.cat = pulp.LpInteger

    @contextmanager
    def borrow(self) -> Iterator["OptimizationModel"]:
        """Exclusive, non-reentrant borrow of the model for one solve call.

        Raises:
            ModelBusyError: If the model is already borrowed
        """
        if not self._borrow_lock.acquire(blocking=False):
            raise ModelBusyError(f"Model {self.name} is already being solved")
        try:
            yield self
        finally:
            self._borrow_lock.release()

    # Solve bookkeeping

    def set_start_values(self, result: SolveResult) -> int:
        """Seed initial values from a prior result.

        Integer values are rounded at 0.5. Values outside the current bounds
        are skipped.

        Returns:
            Number of variables seeded
        """
        seeded = 0
        for group, values in result.variables.items():
            table = self.variable_groups.get(group)
            if table is None:
                continue
            for key, value in values.items():
                var = table.get(key)
                if var is None:
                    continue
                if var.cat == pulp.LpInteger:
                    value = float(math.floor(value + 0.5))
                if var.setInitialValue(value, check=False):
                    seeded += 1
        return seeded

    def record_solve(
        self,
        status: SolveStatus,
        raw_status: Any,
        backend: str | None,
        duals_valid: bool,
        time_limit: float | None = None,
    ) -> None:
        """Record the outcome of the latest solve and the time limit it ran under."""
        self.last_status = status
        self.last_raw_status = raw_status
        self.last_backend = backend
        self.last_time_limit = time_limit
        self.duals_valid = duals_valid

    def __repr__(self) -> str:
        return (
            f"OptimizationModel(name={self.name!r}, "
            f"variables={len(self.variables())}, "
            f"constraints={len(self.problem.constraints())}, "
            f"last_status={self.last_status.value})"
        )
