"""Solve execution."""

from .solve_executor import SolveExecutor

__all__ = ["SolveExecutor"]
