"""Solver abstraction layer."""

from .base import BackendSettings, BaseSolver, ConflictSearchTimeout, ConflictSet, SolverError
from .cbc_solver import CBCSolver
from .conflict import DeletionFilter
from .glpk_solver import GLPKSolver
from .gurobi_solver import GurobiSolver
from .highs_solver import HiGHSSolver
from .registry import SolverRegistry, get_default_registry
from .scip_solver import SCIPSolver
from .status import PULP_STATUS_TABLE, StatusTable

__all__ = [
    "PULP_STATUS_TABLE",
    "BackendSettings",
    "BaseSolver",
    "CBCSolver",
    "ConflictSearchTimeout",
    "ConflictSet",
    "DeletionFilter",
    "GLPKSolver",
    "GurobiSolver",
    "HiGHSSolver",
    "SCIPSolver",
    "SolverError",
    "SolverRegistry",
    "StatusTable",
    "get_default_registry",
]
