"""Single public entry point for solving, pricing and diagnosing models."""

from datetime import datetime
from pathlib import Path
from typing import Any

from .analysis.extraction import CostParameters, ResultExtractor
from .diagnostics.infeasibility import InfeasibilityDiagnoser
from .diagnostics.infeasibility import write_report as write_iis_report
from .exceptions import BackendUnavailableError
from .executor.solve_executor import SolveExecutor
from .models.optimization import OptimizationModel
from .models.options import SolveOptions
from .models.solution import CostBreakdown, IISResult, TwoStageResult
from .pricing.two_stage import TwoStagePricingCoordinator
from .solvers.base import BaseSolver
from .solvers.registry import SolverRegistry, get_default_registry
from .utils.config_manager import ConfigManager
from .utils.logger import get_logger
from .utils.solve_log import SolveLog, auto_log_path

logger = get_logger(__name__)


class SolveOrchestrator:
    """Wires registry, executor, pricing, extraction and diagnosis together.

    Example:
        orchestrator = SolveOrchestrator()
        result = orchestrator.solve(model, SolveOptions(time_limit_seconds=60))
        if result.priced:
            print(result.price_table.to_records())
    """

    def __init__(
        self,
        config_manager: ConfigManager | None = None,
        registry: SolverRegistry | None = None,
        executor: SolveExecutor | None = None,
        extractor: ResultExtractor | None = None,
    ):
        """Initialize the orchestrator.

        Args:
            config_manager: Configuration source; loads packaged defaults if None
            registry: Solver registry; the process-wide one if None
            executor: Executor shared by both stages
            extractor: Result extractor
        """
        self.config_manager = config_manager or ConfigManager()
        self.config = self.config_manager.get_config()
        self.registry = registry or get_default_registry()
        self.executor = executor or SolveExecutor()
        self.extractor = extractor or ResultExtractor()
        self.coordinator = TwoStagePricingCoordinator(
            executor=self.executor,
            extractor=self.extractor,
            round_integers=self.config.pricing.round_integers,
        )
        self.diagnoser = InfeasibilityDiagnoser(
            registry=self.registry, time_limit=self.config.diagnostics.time_limit
        )

    def default_options(self, **overrides: Any) -> SolveOptions:
        """Solve options built from configuration defaults."""
        return SolveOptions.from_config(self.config, **overrides)

    def resolve_backend(self, options: SolveOptions) -> BaseSolver:
        """Resolve the requested backend, falling back to the default one.

        Raises:
            UnknownBackendError: If the backend name is not registered
            BackendUnavailableError: If the backend is missing and fallback is off
        """
        try:
            return self.registry.resolve(options.backend)
        except BackendUnavailableError as e:
            if not options.allow_fallback or options.backend == self.registry.default:
                raise
            logger.warning(f"{e}; falling back to '{self.registry.default}'")
            return self.registry.resolve(self.registry.default)

    def solve(
        self,
        model: OptimizationModel,
        options: SolveOptions | None = None,
        *,
        cost_parameters: CostParameters | None = None,
        **overrides: Any,
    ) -> TwoStageResult:
        """Solve a model for commitment and, optionally, prices.

        Args:
            model: Model to solve; restored to its original form on return
            options: Solve options; configuration defaults if None
            cost_parameters: Unit costs for the breakdown; defaults to
                ``model.cost_parameters``
            **overrides: Option fields replacing those of ``options``

        Returns:
            Two-stage result (never None, even when the commitment solve fails)

        Raises:
            UnknownBackendError: If the backend name is not registered
            BackendUnavailableError: If the backend is missing and fallback is off
            ModelBusyError: If the model is being solved by another call
        """
        if options is None:
            options = self.default_options(**overrides)
        elif overrides:
            options = options.with_overrides(**overrides)

        started = datetime.now()
        log_file = options.log_file or auto_log_path(options.log_dir, started)
        options = options.with_overrides(log_file=Path(log_file))

        solver = self.resolve_backend(options)
        parameters = cost_parameters or model.cost_parameters

        with SolveLog(options.log_file) as solve_log:
            solve_log.event(
                f"solve started: model={model.name} backend={solver.name} "
                f"time_limit={options.time_limit_seconds}s mip_gap={options.mip_gap} "
                f"pricing={options.pricing}"
            )
            if options.warm_start is not None:
                solve_log.event(
                    f"warm start from {options.warm_start.stage} result "
                    f"({options.warm_start.status.value})"
                )

            outcome = self.coordinator.run(model, solver, options, solve_log=solve_log)

            source = outcome.commitment
            if outcome.pricing is not None and outcome.pricing.has_values:
                source = outcome.pricing
            costs = (
                self.extractor.cost_breakdown(source, parameters)
                if parameters is not None
                else CostBreakdown()
            )

            result = TwoStageResult(
                commitment=outcome.commitment,
                pricing=outcome.pricing,
                price_table=outcome.price_table,
                cost_breakdown=costs,
                stages=[stage.value for stage in outcome.history],
                log_file=str(options.log_file),
            )
            elapsed = (datetime.now() - started).total_seconds()
            summary = (
                f"solve finished: status={result.status.value} "
                f"objective={result.objective_value} backend={solver.name} "
                f"priced_rows={len(result.price_table)} "
                f"total_cost={costs.total:.6g} elapsed={elapsed:.3f}s"
            )
            solve_log.event(summary)

        logger.info(summary)
        return result

    def diagnose(self, model: OptimizationModel, **kwargs: Any) -> IISResult:
        """Diagnose an infeasible model; see ``InfeasibilityDiagnoser.diagnose``."""
        return self.diagnoser.diagnose(model, **kwargs)

    def write_report(self, result: IISResult, path: str | Path | None = None) -> Path:
        """Write an IIS report, auto-named under the configured report directory."""
        return write_iis_report(result, path, report_dir=self.config.output.report_dir)


_default_orchestrator: SolveOrchestrator | None = None


def get_orchestrator() -> SolveOrchestrator:
    """Shared orchestrator built from the packaged configuration."""
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = SolveOrchestrator()
    return _default_orchestrator


def solve(
    model: OptimizationModel, options: SolveOptions | None = None, **overrides: Any
) -> TwoStageResult:
    """Solve a model with the shared orchestrator."""
    return get_orchestrator().solve(model, options, **overrides)


def diagnose(model: OptimizationModel, **kwargs: Any) -> IISResult:
    """Diagnose an infeasible model with the shared orchestrator."""
    return get_orchestrator().diagnose(model, **kwargs)


def write_report(result: IISResult, path: str | Path | None = None) -> Path:
    """Write an IIS report with the shared orchestrator's settings."""
    return get_orchestrator().write_report(result, path)
