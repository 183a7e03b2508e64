"""Data models for solve results, prices, costs and infeasibility diagnoses."""

import math
from enum import Enum
from functools import total_ordering
from typing import Any, ClassVar, Iterable, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


@total_ordering
class SolveStatus(Enum):
    """Canonical termination status every backend is mapped onto.

    Members are totally ordered by severity, so ``max(statuses)`` is the
    worst outcome of a batch and ``exit_code`` is usable as a process exit
    code.
    """

    OPTIMAL = "optimal"
    FEASIBLE_NON_OPTIMAL = "feasible_non_optimal"
    INFEASIBLE = "infeasible"
    UNBOUNDED = "unbounded"
    NOT_SOLVED = "not_solved"
    ERROR = "error"

    @property
    def severity(self) -> int:
        """Position in the severity order (0 is best)."""
        return _SEVERITY[self]

    @property
    def exit_code(self) -> int:
        """Small integer code for CI-style consumers."""
        return _SEVERITY[self]

    @property
    def has_solution(self) -> bool:
        """Whether a primal solution is available for this status."""
        return self in (SolveStatus.OPTIMAL, SolveStatus.FEASIBLE_NON_OPTIMAL)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SolveStatus):
            return NotImplemented
        return _SEVERITY[self] < _SEVERITY[other]


_SEVERITY = {status: rank for rank, status in enumerate(SolveStatus)}


class SolveResult(BaseModel):
    """Outcome of exactly one solve attempt."""

    model_config = ConfigDict(frozen=True)

    status: SolveStatus = Field(description="Normalized termination status")
    raw_status: str | None = Field(
        None, description="Backend-native termination code, kept for debugging"
    )
    backend: str | None = Field(None, description="Backend that ran the solve")
    stage: str = Field("single", description="Solve stage (commitment, pricing, single)")
    objective_value: float | None = Field(
        None, description="Objective value, only when a primal solution exists"
    )
    solve_time: float = Field(0.0, description="Wall-clock solve time in seconds")
    variables: dict[str, dict[Any, float]] = Field(
        default_factory=dict, description="Variable values by group and key"
    )
    duals: dict[str, dict[Any, float]] = Field(
        default_factory=dict,
        description="Dual values by constraint group and key (relaxations only)",
    )
    is_relaxation: bool = Field(
        False, description="Whether the solved program had no integer variables"
    )
    log_file: str | None = Field(None, description="Solve log file path")
    message: str | None = Field(None, description="Additional backend message")

    @property
    def has_values(self) -> bool:
        """Check if primal values were read back."""
        return self.status.has_solution and bool(self.variables)

    @property
    def has_duals(self) -> bool:
        """Check if dual values were read back."""
        return bool(self.duals)

    @property
    def is_optimal(self) -> bool:
        """Check if the solve proved optimality."""
        return self.status is SolveStatus.OPTIMAL


class PriceRow(BaseModel):
    """Marginal price of one market zone in one period."""

    model_config = ConfigDict(frozen=True)

    zone: str
    period: int
    price: float | None = Field(
        None, description="Shadow price, None when the pricing stage was not optimal"
    )

    @property
    def available(self) -> bool:
        return self.price is not None


class PriceTable(BaseModel):
    """Tabular (zone, period, price) view of market-balance duals.

    The column set never depends on content: an empty table still reports
    ``COLUMNS``.
    """

    model_config = ConfigDict(frozen=True)

    COLUMNS: ClassVar[tuple[str, str, str]] = ("zone", "period", "price")

    rows: list[PriceRow] = Field(default_factory=list)

    @classmethod
    def unavailable(cls, keys: Iterable[tuple[Any, int]]) -> "PriceTable":
        """Build a table whose every price is marked unavailable."""
        rows = [PriceRow(zone=str(zone), period=int(period)) for zone, period in keys]
        return cls(rows=sorted(rows, key=lambda r: (r.zone, r.period)))

    @property
    def columns(self) -> tuple[str, str, str]:
        return self.COLUMNS

    @property
    def is_empty(self) -> bool:
        return not self.rows

    @property
    def is_available(self) -> bool:
        """True when the table has rows and every price is known."""
        return bool(self.rows) and all(row.available for row in self.rows)

    @property
    def zones(self) -> list[str]:
        return sorted({row.zone for row in self.rows})

    def __len__(self) -> int:
        return len(self.rows)

    def prices(self, zone: str) -> list[float | None]:
        """Prices of one zone ordered by period."""
        return [row.price for row in self.rows if row.zone == zone]

    def get(self, zone: str, period: int) -> float | None:
        for row in self.rows:
            if row.zone == zone and row.period == period:
                return row.price
        return None

    def to_records(self) -> list[dict[str, Any]]:
        return [row.model_dump() for row in self.rows]


class CostBreakdown(BaseModel):
    """Named cost components and their total."""

    model_config = ConfigDict(frozen=True)

    components: dict[str, float] = Field(default_factory=dict)
    total: float = 0.0

    @model_validator(mode="after")
    def _check_total(self) -> "CostBreakdown":
        expected = math.fsum(self.components.values())
        if not math.isclose(self.total, expected, rel_tol=1e-9, abs_tol=1e-9):
            raise ValueError(
                f"Cost total {self.total} does not match sum of components {expected}"
            )
        return self

    @classmethod
    def from_components(cls, components: dict[str, float]) -> "CostBreakdown":
        return cls(components=dict(components), total=math.fsum(components.values()))

    @classmethod
    def zero(cls, names: Iterable[str] = ()) -> "CostBreakdown":
        return cls.from_components({name: 0.0 for name in names})

    def __getitem__(self, name: str) -> float:
        return self.components[name]


class TwoStageResult(BaseModel):
    """Commitment-stage result plus optional pricing-stage result and prices."""

    model_config = ConfigDict(frozen=True)

    commitment: SolveResult
    pricing: SolveResult | None = None
    price_table: PriceTable = Field(default_factory=PriceTable)
    cost_breakdown: CostBreakdown = Field(default_factory=CostBreakdown)
    stages: list[str] = Field(
        default_factory=list, description="Pricing state transitions, in order"
    )
    log_file: str | None = None

    @property
    def status(self) -> SolveStatus:
        """Status of the commitment stage."""
        return self.commitment.status

    @property
    def exit_code(self) -> int:
        return self.commitment.status.exit_code

    @property
    def objective_value(self) -> float | None:
        return self.commitment.objective_value

    @property
    def priced(self) -> bool:
        return self.pricing is not None and self.pricing.is_optimal


class IISStatus(str, Enum):
    """Outcome of an infeasibility diagnosis."""

    FOUND = "found"
    NOT_SUPPORTED = "not-supported-by-backend"
    NOT_INFEASIBLE = "not-infeasible"


class IISConflict(BaseModel):
    """One constraint or variable bound taking part in an infeasibility."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Constraint or variable name")
    kind: Literal["constraint", "lower_bound", "upper_bound"]
    expression: str = Field(description="Literal mathematical expression")
    bound: float | None = Field(None, description="Right-hand side or bound value")
    sense: str | None = Field(None, description="Relation (<=, >=, =)")
    group: str | None = Field(None, description="Owning named group, when known")


class IISResult(BaseModel):
    """Result of an explicit infeasibility diagnosis request."""

    model_config = ConfigDict(frozen=True)

    status: IISStatus
    conflicts: list[IISConflict] = Field(default_factory=list)
    backend: str | None = None
    computation_time: float = 0.0
    message: str | None = None

    @property
    def found(self) -> bool:
        return self.status is IISStatus.FOUND


class SolverInfo(BaseModel):
    """Information about a solver backend."""

    name: str = Field(description="Solver name")
    display_name: str | None = Field(default=None, description="Human-readable name")
    available: bool = Field(description="Whether the solver is available")
    mandatory: bool = Field(False, description="Whether the backend is always present")
    supports_duals: bool = False
    supports_conflict: bool = False
    install_hint: str | None = Field(
        default=None, description="How to install the backend when missing"
    )
