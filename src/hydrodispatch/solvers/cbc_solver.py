"""CBC solver backend bundled with PuLP."""

import pulp

from .base import BackendSettings, BaseSolver


class CBCSolver(BaseSolver):
    """COIN-OR CBC, shipped with PuLP and always present.

    Passthrough options are handed to the CBC command line as
    ``-<name> <value>``.
    """

    name = "cbc"
    display_name = "COIN-OR CBC"
    mandatory = True
    supports_duals = True
    supports_conflict = True

    def probe(self) -> None:
        # Bundled with PuLP; nothing to load
        return None

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        return pulp.PULP_CBC_CMD(
            msg=settings.msg,
            timeLimit=settings.time_limit,
            gapRel=settings.mip_gap,
            threads=settings.threads,
            warmStart=settings.warm_start,
            options=self._format_options(settings.options, " "),
        )
