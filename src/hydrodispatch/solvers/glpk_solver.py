"""GLPK solver backend driving the glpsol executable."""

import math

import pulp

from .base import BackendSettings, BaseSolver


class GLPKSolver(BaseSolver):
    """GNU Linear Programming Kit through ``glpsol``.

    PuLP does not read GLPK duals and GLPK has no conflict search, so this
    backend yields neither prices nor infeasibility diagnoses.
    """

    name = "glpk"
    display_name = "GLPK"
    install_hint = "apt install glpk-utils (or brew install glpk)"

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        options = []
        if settings.mip_gap is not None:
            options += ["--mipgap", str(settings.mip_gap)]
        for key, value in settings.options.items():
            options += [f"--{key}", str(value)]
        # glpsol takes whole seconds
        time_limit = None
        if settings.time_limit is not None:
            time_limit = max(1, math.ceil(settings.time_limit))
        return pulp.GLPK_CMD(
            msg=settings.msg,
            timeLimit=time_limit,
            options=options,
        )
