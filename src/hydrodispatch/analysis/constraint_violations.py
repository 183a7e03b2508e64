"""Post-solve constraint violation checks for optimization models."""

from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Any

import pulp
from pydantic import BaseModel, Field

from ..models.optimization import OptimizationModel
from ..models.solution import SolveResult
from ..utils.logger import get_logger

logger = get_logger(__name__)


def classify_constraint(name: str) -> str:
    """Classify a constraint by name: thermal, hydro, balance, network, ramp or unknown."""
    lname = name.lower()
    if "thermal" in lname:
        return "thermal"
    if "hydro" in lname or "water_balance" in lname or "storage" in lname:
        return "hydro"
    if "balance" in lname or "submarket" in lname:
        return "balance"
    if "network" in lname or "flow" in lname or "line" in lname:
        return "network"
    if "ramp" in lname:
        return "ramp"
    return "unknown"


class ConstraintViolation(BaseModel):
    """A constraint, bound or integrality requirement not met by a solution."""

    name: str = Field(description="Constraint or variable name")
    kind: str = Field(description="constraint, lower_bound, upper_bound or integer")
    constraint_type: str = Field(description="Classification of the constraint")
    magnitude: float = Field(description="Distance from feasibility")
    lhs_value: float | None = None
    sense: str | None = None
    rhs_value: float | None = None


class ViolationReport(BaseModel):
    """Violations of one solution, sorted by magnitude descending."""

    model_name: str = ""
    timestamp: datetime = Field(default_factory=datetime.now)
    tolerance: float
    violations: list[ConstraintViolation] = Field(default_factory=list)
    constraints_checked: int = 0
    variables_checked: int = 0

    @property
    def total_violations(self) -> int:
        return len(self.violations)

    @property
    def max_violation(self) -> float:
        return self.violations[0].magnitude if self.violations else 0.0

    @property
    def violations_by_type(self) -> dict[str, int]:
        return dict(Counter(v.constraint_type for v in self.violations))

    @property
    def is_valid(self) -> bool:
        return not self.violations


class ConstraintViolationChecker:
    """Checks a solution against the model's constraints, bounds and integrality."""

    def __init__(self, tolerance: float = 1e-6):
        """Initialize the checker.

        Args:
            tolerance: Numerical tolerance for constraint checking
        """
        self.tolerance = tolerance

    def check(
        self, model: OptimizationModel, result: SolveResult | None = None
    ) -> ViolationReport:
        """Check a solution for violations.

        Args:
            model: Model defining constraints and bounds
            result: Result whose values are checked; defaults to the values
                currently held by the model's variables

        Returns:
            Violation report
        """
        values = self._values(model, result)
        violations = []
        violations += self._check_linear_constraints(model, values)
        violations += self._check_variable_bounds(model, values)
        violations += self._check_integer_constraints(model, values)
        violations.sort(key=lambda v: v.magnitude, reverse=True)

        report = ViolationReport(
            model_name=model.name,
            tolerance=self.tolerance,
            violations=violations,
            constraints_checked=len(model.problem.constraints()),
            variables_checked=len(values),
        )
        logger.info(f"Solution validation completed: {report.total_violations} violations found")
        return report

    @staticmethod
    def _values(model: OptimizationModel, result: SolveResult | None) -> dict[str, float]:
        if result is None:
            return {v.name: v.varValue for v in model.variables() if v.varValue is not None}
        values = {}
        for group, table in result.variables.items():
            variables = model.variable_groups.get(group, {})
            for key, value in table.items():
                var = variables.get(key)
                if var is not None:
                    values[var.name] = value
        return values

    def _check_linear_constraints(
        self, model: OptimizationModel, values: dict[str, float]
    ) -> list[ConstraintViolation]:
        violations = []
        for constraint in model.problem.constraints():
            if any(var.name not in values for var in constraint.keys()):
                logger.debug(f"Skipping constraint {constraint.name}: incomplete values")
                continue
            lhs = sum(coeff * values[var.name] for var, coeff in constraint.items())
            rhs = -constraint.constant
            if constraint.sense == pulp.LpConstraintLE:
                magnitude = lhs - rhs
            elif constraint.sense == pulp.LpConstraintGE:
                magnitude = rhs - lhs
            else:
                magnitude = abs(lhs - rhs)
            if magnitude > self.tolerance:
                violations.append(
                    ConstraintViolation(
                        name=constraint.name,
                        kind="constraint",
                        constraint_type=classify_constraint(constraint.name),
                        magnitude=magnitude,
                        lhs_value=lhs,
                        sense=pulp.LpConstraintSenses[constraint.sense],
                        rhs_value=rhs,
                    )
                )
        return violations

    def _check_variable_bounds(
        self, model: OptimizationModel, values: dict[str, float]
    ) -> list[ConstraintViolation]:
        violations = []
        for var in model.variables():
            value = values.get(var.name)
            if value is None:
                continue
            if var.lowBound is not None and value < var.lowBound - self.tolerance:
                violations.append(self._bound_violation(var, value, "lower_bound", var.lowBound))
            if var.upBound is not None and value > var.upBound + self.tolerance:
                violations.append(self._bound_violation(var, value, "upper_bound", var.upBound))
        return violations

    @staticmethod
    def _bound_violation(var: Any, value: float, kind: str, bound: float) -> ConstraintViolation:
        return ConstraintViolation(
            name=var.name,
            kind=kind,
            constraint_type=classify_constraint(var.name),
            magnitude=abs(value - bound),
            lhs_value=value,
            sense=">=" if kind == "lower_bound" else "<=",
            rhs_value=bound,
        )

    def _check_integer_constraints(
        self, model: OptimizationModel, values: dict[str, float]
    ) -> list[ConstraintViolation]:
        violations = []
        for var in model.integer_variables():
            value = values.get(var.name)
            if value is None:
                continue
            deviation = abs(value - round(value))
            if deviation > self.tolerance:
                violations.append(
                    ConstraintViolation(
                        name=var.name,
                        kind="integer",
                        constraint_type=classify_constraint(var.name),
                        magnitude=deviation,
                        lhs_value=value,
                        rhs_value=float(round(value)),
                    )
                )
        return violations


def write_violation_report(report: ViolationReport, path: str | Path) -> Path:
    """Write a human-readable violation report.

    Args:
        report: Violation report
        path: Output file path; parent directories are created

    Returns:
        Path written to
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    lines = [
        "Constraint Violation Report",
        "===========================",
        f"Model: {report.model_name}",
        f"Timestamp: {report.timestamp:%Y-%m-%d %H:%M:%S}",
        f"Tolerance: {report.tolerance:g}",
        "",
        "Summary",
        "-------",
        f"Constraints checked: {report.constraints_checked}",
        f"Total violations: {report.total_violations}",
        f"Maximum violation: {report.max_violation:g}",
        "",
    ]
    if report.violations_by_type:
        lines.append("Violations by Type:")
        lines += [f"  {vtype}: {count}" for vtype, count in sorted(report.violations_by_type.items())]
        lines.append("")
    lines += ["Detailed Violations (sorted by magnitude)", "-" * 41]
    if not report.violations:
        lines.append("No violations found.")
    for i, v in enumerate(report.violations, start=1):
        lines.append(f"{i}. [{v.constraint_type}] {v.name} ({v.kind}): {v.magnitude:g}")
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path
