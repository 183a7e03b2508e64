"""HiGHS solver backend using highspy."""

import importlib

import pulp

from .base import BackendSettings, BaseSolver, SolverError


class HiGHSSolver(BaseSolver):
    """HiGHS through its Python bindings.

    Passthrough options are HiGHS option names (e.g. ``presolve``,
    ``mip_rel_gap``) and are set on the solver before the run.
    """

    name = "highs"
    display_name = "HiGHS"
    install_hint = "pip install 'hydrodispatch[highs]'"
    supports_duals = True
    supports_conflict = True

    def probe(self) -> None:
        try:
            importlib.import_module("highspy")
        except ImportError as e:
            raise SolverError(f"highspy is not installed: {e}") from e
        super().probe()

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        return pulp.HiGHS(
            msg=settings.msg,
            timeLimit=settings.time_limit,
            gapRel=settings.mip_gap,
            threads=settings.threads,
            **settings.options,
        )
