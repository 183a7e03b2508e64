"""Tests for infeasibility diagnosis and IIS reports."""

from datetime import datetime

import pytest

from conftest import FakeSolver, ProbeCountingSolver
from hydrodispatch.diagnostics.infeasibility import (
    TROUBLESHOOTING_CHECKLIST,
    InfeasibilityDiagnoser,
    render_report,
    write_report,
)
from hydrodispatch.models.solution import IISConflict, IISResult, IISStatus, SolveStatus
from hydrodispatch.solvers.base import ConflictSearchTimeout, ConflictSet
from hydrodispatch.solvers.registry import SolverRegistry


class ConflictFakeSolver(FakeSolver):
    """Fake backend returning a preset conflict search outcome."""

    name = "conflict_fake"
    supports_conflict = True
    outcome: object = None

    def compute_conflict(self, model, time_limit):
        self.time_limit = time_limit
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@pytest.fixture
def conflict_registry():
    ConflictFakeSolver.outcome = ConflictSet(
        constraints=["submarket_balance_SE_1"],
        upper_bounds=["thermal_generation_T1_1"],
    )
    return SolverRegistry(solvers=(ConflictFakeSolver, FakeSolver), default="conflict_fake")


@pytest.fixture
def failed_model(infeasible_model):
    """Infeasible model whose last solve reported infeasibility."""
    infeasible_model.record_solve(SolveStatus.INFEASIBLE, (-1, -1), "conflict_fake", False)
    return infeasible_model


class TestInfeasibilityDiagnoser:
    """Test cases for InfeasibilityDiagnoser."""

    def test_feasible_model_is_not_diagnosed(self, dispatch_model, conflict_registry):
        """Nothing is attempted unless the last solve was infeasible."""
        result = InfeasibilityDiagnoser(conflict_registry).diagnose(dispatch_model)

        assert result.status is IISStatus.NOT_INFEASIBLE
        assert result.conflicts == []
        assert "not_solved" in result.message

    def test_conflicts_are_materialized(self, failed_model, conflict_registry):
        """Flagged constraints and bounds carry their expression and group."""
        result = InfeasibilityDiagnoser(conflict_registry).diagnose(failed_model)

        assert result.status is IISStatus.FOUND
        assert result.backend == "conflict_fake"
        assert [c.kind for c in result.conflicts] == ["constraint", "upper_bound"]

        constraint, bound = result.conflicts
        assert constraint.name == "submarket_balance_SE_1"
        assert constraint.group == "submarket_balance"
        assert constraint.sense == ">="
        assert constraint.bound == 1000
        assert "thermal_generation_T1_1" in constraint.expression
        assert ">=" in constraint.expression

        assert bound.name == "thermal_generation_T1_1"
        assert bound.group == "thermal_generation"
        assert bound.bound == 150
        assert bound.expression == "thermal_generation_T1_1 <= 150"

    def test_time_limit_is_passed(self, failed_model, conflict_registry):
        diagnoser = InfeasibilityDiagnoser(conflict_registry, time_limit=12.0)
        diagnoser.diagnose(failed_model)
        assert conflict_registry.resolve("conflict_fake").time_limit == 12.0

        diagnoser.diagnose(failed_model, time_limit=3.0)
        assert conflict_registry.resolve("conflict_fake").time_limit == 3.0

    def test_time_limit_inherited_from_last_solve(self, infeasible_model, conflict_registry):
        """Without an explicit budget the last solve's time limit applies."""
        infeasible_model.record_solve(
            SolveStatus.INFEASIBLE, (-1, -1), "conflict_fake", False, time_limit=45.0
        )
        InfeasibilityDiagnoser(conflict_registry, time_limit=300.0).diagnose(infeasible_model)

        assert conflict_registry.resolve("conflict_fake").time_limit == 45.0

    def test_backend_without_conflict_search(self, failed_model, conflict_registry):
        """Backends without conflict search report not-supported."""
        result = InfeasibilityDiagnoser(conflict_registry).diagnose(failed_model, backend="fake")

        assert result.status is IISStatus.NOT_SUPPORTED
        assert "no conflict search" in result.message

    def test_timeout_reports_not_supported(self, failed_model, conflict_registry):
        """An exhausted budget is reported, never raised."""
        ConflictFakeSolver.outcome = ConflictSearchTimeout("exceeded 1.0s")
        result = InfeasibilityDiagnoser(conflict_registry).diagnose(failed_model)

        assert result.status is IISStatus.NOT_SUPPORTED
        assert result.message == "exceeded 1.0s"

    def test_unreproduced_infeasibility(self, failed_model, conflict_registry):
        """A search that finds the model feasible yields no conflicts."""
        ConflictFakeSolver.outcome = None
        result = InfeasibilityDiagnoser(conflict_registry).diagnose(failed_model)

        assert result.status is IISStatus.NOT_SUPPORTED
        assert result.conflicts == []

    def test_unavailable_backend(self, failed_model):
        """A missing backend is reported as not-supported."""
        ProbeCountingSolver.available = False
        registry = SolverRegistry(solvers=(ProbeCountingSolver,), default="probe_counting")
        result = InfeasibilityDiagnoser(registry).diagnose(failed_model, backend="probe_counting")

        assert result.status is IISStatus.NOT_SUPPORTED
        assert "not available" in result.message


class TestReports:
    """Test cases for IIS report rendering."""

    @pytest.fixture
    def found_result(self):
        return IISResult(
            status=IISStatus.FOUND,
            backend="cbc",
            computation_time=0.42,
            conflicts=[
                IISConflict(
                    name="submarket_balance_SE_1",
                    kind="constraint",
                    expression="thermal_generation_T1_1 >= 1000",
                    bound=1000.0,
                    sense=">=",
                    group="submarket_balance",
                ),
                IISConflict(
                    name="thermal_generation_T1_1",
                    kind="upper_bound",
                    expression="thermal_generation_T1_1 <= 150",
                    bound=150.0,
                    sense="<=",
                    group="thermal_generation",
                ),
            ],
        )

    def test_render_found(self, found_result):
        """Reports list each conflict and the checklist."""
        text = render_report(found_result, datetime(2024, 1, 2, 3, 4, 5))

        assert "INFEASIBILITY DIAGNOSIS REPORT" in text
        assert "Generated: 2024-01-02 03:04:05" in text
        assert "2 elements conflict: 1 constraints and 1 variable bounds." in text
        assert "[1] constraint: submarket_balance_SE_1 (group submarket_balance)" in text
        assert "[2] upper bound: thermal_generation_T1_1" in text
        assert "Violated bound: >= 1000" in text
        for item in TROUBLESHOOTING_CHECKLIST:
            assert item in text

    def test_render_not_supported(self):
        result = IISResult(status=IISStatus.NOT_SUPPORTED, backend="glpk", message="no refiner")
        text = render_report(result)

        assert "Status: not-supported-by-backend" in text
        assert "Message: no refiner" in text
        assert "No conflicting subsystem was computed." in text
        assert "TROUBLESHOOTING CHECKLIST" in text

    def test_write_report_auto_name(self, found_result, tmp_path):
        """Reports without a path are named after their timestamp."""
        path = write_report(found_result, report_dir=tmp_path / "reports")

        assert path.parent == tmp_path / "reports"
        assert path.name.startswith("iis_report_")
        assert path.suffix == ".txt"
        assert "submarket_balance_SE_1" in path.read_text()

    def test_write_report_explicit_path(self, found_result, tmp_path):
        target = tmp_path / "iis.txt"
        assert write_report(found_result, target) == target
        assert target.exists()
