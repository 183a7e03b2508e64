"""Tests for native status mapping tables."""

import logging
from itertools import product

import pulp
import pytest

from hydrodispatch.models.solution import SolveStatus
from hydrodispatch.solvers.gurobi_solver import (
    GRB_INF_OR_UNBD,
    GRB_INFEASIBLE,
    GRB_OPTIMAL,
    GRB_TIME_LIMIT,
    GUROBI_STATUS_TABLE,
)
from hydrodispatch.solvers.status import PULP_STATUS_TABLE, StatusTable


class TestPulpStatusTable:
    """Test cases for the PuLP status table."""

    def test_every_pulp_code_is_mapped(self):
        """The table covers every (status, sol_status) pair."""
        for code in product(pulp.LpStatus, pulp.LpSolution):
            assert code in PULP_STATUS_TABLE
        assert len(PULP_STATUS_TABLE) == len(pulp.LpStatus) * len(pulp.LpSolution)

    @pytest.mark.parametrize(
        "code,expected",
        [
            ((1, 1), SolveStatus.OPTIMAL),
            ((1, 2), SolveStatus.FEASIBLE_NON_OPTIMAL),
            ((0, 2), SolveStatus.FEASIBLE_NON_OPTIMAL),
            ((0, 0), SolveStatus.NOT_SOLVED),
            ((-1, -1), SolveStatus.INFEASIBLE),
            ((-1, 0), SolveStatus.INFEASIBLE),
            ((-2, -2), SolveStatus.UNBOUNDED),
            ((-3, 0), SolveStatus.ERROR),
            ((1, -1), SolveStatus.ERROR),
        ],
    )
    def test_known_codes(self, code, expected):
        """Test representative mappings."""
        assert PULP_STATUS_TABLE.lookup(code) is expected

    def test_unmapped_code_is_error(self, caplog):
        """Codes outside the table map to ERROR with a warning."""
        with caplog.at_level(logging.WARNING):
            assert PULP_STATUS_TABLE.lookup((7, 7)) is SolveStatus.ERROR
            assert PULP_STATUS_TABLE.lookup(["unhashable"]) is SolveStatus.ERROR
        assert "(7, 7)" in caplog.text

    def test_unmapped_domain_code_fails_at_build(self):
        """A rule that leaves a domain code unmapped is rejected."""
        with pytest.raises(ValueError, match="leaves codes unmapped"):
            StatusTable(
                "partial",
                ["ok", "other"],
                lambda code: SolveStatus.OPTIMAL if code == "ok" else None,
            )


class TestGurobiStatusTable:
    """Test cases for the Gurobi status table."""

    def test_time_limit_depends_on_incumbent(self):
        """A time limit with an incumbent is feasible, without one not solved."""
        assert GUROBI_STATUS_TABLE.lookup((GRB_TIME_LIMIT, True)) is SolveStatus.FEASIBLE_NON_OPTIMAL
        assert GUROBI_STATUS_TABLE.lookup((GRB_TIME_LIMIT, False)) is SolveStatus.NOT_SOLVED

    def test_terminal_codes(self):
        """Test optimal and infeasible codes."""
        assert GUROBI_STATUS_TABLE.lookup((GRB_OPTIMAL, True)) is SolveStatus.OPTIMAL
        assert GUROBI_STATUS_TABLE.lookup((GRB_INFEASIBLE, False)) is SolveStatus.INFEASIBLE
        assert GUROBI_STATUS_TABLE.lookup((GRB_INF_OR_UNBD, False)) is SolveStatus.INFEASIBLE

    def test_every_gurobi_code_is_mapped(self):
        """All seventeen status codes are covered with and without incumbent."""
        assert len(GUROBI_STATUS_TABLE) == 34
        assert GUROBI_STATUS_TABLE.lookup((99, False)) is SolveStatus.ERROR
