"""Two-stage commit-then-price workflow.

Duals of a mixed-integer program carry no economic meaning, so prices come
from a second solve: every integer decision is pinned to its stage-1 value,
which leaves a linear program whose market-balance duals are the prices.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from ..exceptions import ModelStateError
from ..models.optimization import OptimizationModel
from ..models.options import SolveOptions
from ..models.solution import PriceTable, SolveResult, SolveStatus
from ..solvers.base import BaseSolver
from ..executor.solve_executor import SolveExecutor
from ..analysis.extraction import ResultExtractor, price_key
from ..utils.logger import get_logger
from ..utils.solve_log import SolveLog

logger = get_logger(__name__)


class PricingStage(Enum):
    NOT_STARTED = "not_started"
    STAGE1_SOLVING = "stage1_solving"
    STAGE1_DONE = "stage1_done"
    STAGE2_SOLVING = "stage2_solving"
    STAGE2_DONE = "stage2_done"
    SKIPPED = "skipped"
    FINISHED = "finished"


_TRANSITIONS: dict[PricingStage, frozenset[PricingStage]] = {
    PricingStage.NOT_STARTED: frozenset({PricingStage.STAGE1_SOLVING}),
    PricingStage.STAGE1_SOLVING: frozenset({PricingStage.STAGE1_DONE}),
    PricingStage.STAGE1_DONE: frozenset(
        {PricingStage.STAGE2_SOLVING, PricingStage.SKIPPED, PricingStage.FINISHED}
    ),
    PricingStage.STAGE2_SOLVING: frozenset({PricingStage.STAGE2_DONE}),
    PricingStage.STAGE2_DONE: frozenset({PricingStage.FINISHED}),
    PricingStage.SKIPPED: frozenset({PricingStage.FINISHED}),
    PricingStage.FINISHED: frozenset(),
}


@dataclass
class PricingOutcome:
    """Results of one coordinator run."""

    commitment: SolveResult
    pricing: SolveResult | None = None
    price_table: PriceTable = field(default_factory=PriceTable)
    history: list[PricingStage] = field(default_factory=list)


class TwoStagePricingCoordinator:
    """Drives the commitment solve and the pricing solve on one model."""

    def __init__(
        self,
        executor: SolveExecutor | None = None,
        extractor: ResultExtractor | None = None,
        round_integers: bool = True,
    ):
        """Initialize the coordinator.

        Args:
            executor: Executor running each stage
            extractor: Extractor building the price table
            round_integers: Round stage-1 integer values before pinning them
        """
        self.executor = executor or SolveExecutor()
        self.extractor = extractor or ResultExtractor()
        self.round_integers = round_integers
        self.stage = PricingStage.NOT_STARTED
        self.history: list[PricingStage] = []
        self._log: SolveLog | None = None

    def _advance(self, stage: PricingStage) -> None:
        if stage not in _TRANSITIONS[self.stage]:
            raise ModelStateError(
                f"Invalid pricing transition {self.stage.value} -> {stage.value}"
            )
        logger.debug(f"Pricing stage {self.stage.value} -> {stage.value}")
        if self._log is not None:
            self._log.event(f"stage transition: {self.stage.value} -> {stage.value}")
        self.stage = stage
        self.history.append(stage)

    def run(
        self,
        model: OptimizationModel,
        solver: BaseSolver,
        options: SolveOptions,
        solve_log: SolveLog | None = None,
    ) -> PricingOutcome:
        """Run the commitment solve and, when it succeeds, the pricing solve.

        The model is borrowed exclusively for the whole run. Any variable
        pinned for pricing is restored before this returns or raises.

        Args:
            model: Model to solve
            solver: Resolved backend
            options: Solve options; ``options.pricing`` false skips stage 2
            solve_log: Open log receiving stage transitions

        Returns:
            Commitment result, optional pricing result and price table
        """
        self.stage = PricingStage.NOT_STARTED
        self.history = [PricingStage.NOT_STARTED]
        self._log = solve_log
        try:
            with model.borrow():
                return self._run(model, solver, options)
        finally:
            self._log = None

    def _run(
        self, model: OptimizationModel, solver: BaseSolver, options: SolveOptions
    ) -> PricingOutcome:
        self._advance(PricingStage.STAGE1_SOLVING)
        commitment = self.executor.execute(
            model, solver, options, stage="commitment", solve_log=self._log
        )
        self._advance(PricingStage.STAGE1_DONE)

        if not commitment.status.has_solution:
            logger.info(
                f"Commitment solve ended {commitment.status.value}; pricing not attempted"
            )
            self._advance(PricingStage.FINISHED)
            return PricingOutcome(commitment=commitment, history=list(self.history))

        if not options.pricing:
            self._advance(PricingStage.SKIPPED)
            self._advance(PricingStage.FINISHED)
            return PricingOutcome(commitment=commitment, history=list(self.history))

        pricing_options = options.with_overrides(warm_start=None)
        with self.fixed_commitment(model, commitment):
            remaining = model.free_integer_count()
            if remaining:
                raise ModelStateError(
                    f"{remaining} integer variables still free before the pricing solve"
                )
            self._advance(PricingStage.STAGE2_SOLVING)
            pricing = self.executor.execute(
                model, solver, pricing_options, stage="pricing", solve_log=self._log
            )
            self._advance(PricingStage.STAGE2_DONE)

        price_table = self._price_table(model, pricing)
        self._advance(PricingStage.FINISHED)
        return PricingOutcome(
            commitment=commitment,
            pricing=pricing,
            price_table=price_table,
            history=list(self.history),
        )

    @contextmanager
    def fixed_commitment(
        self, model: OptimizationModel, commitment: SolveResult
    ) -> Iterator[int]:
        """Pin every integer variable to its stage-1 value for the duration.

        Yields:
            Number of variables pinned
        """
        pinned = []
        try:
            for var in model.integer_variables():
                value = self._commitment_value(model, commitment, var)
                if self.round_integers:
                    value = float(round(value))
                model.fix_variable(var, value)
                pinned.append(var)
            logger.info(f"Pinned {len(pinned)} integer variables for pricing")
            yield len(pinned)
        finally:
            for var in pinned:
                model.unfix_variable(var)

    @staticmethod
    def _commitment_value(model: OptimizationModel, commitment: SolveResult, var) -> float:
        location = model.locate(var)
        if location is not None:
            group, key = location
            value = commitment.variables.get(group, {}).get(key)
            if value is not None:
                return value
        if var.varValue is None:
            raise ModelStateError(f"Integer variable {var.name} has no stage-1 value")
        return float(var.varValue)

    def _price_table(self, model: OptimizationModel, pricing: SolveResult) -> PriceTable:
        if pricing.status is SolveStatus.OPTIMAL and model.price_group in pricing.duals:
            return self.extractor.price_table(
                pricing, group=model.price_group, scale=1.0 / model.cost_scale
            )
        reason = (
            f"pricing solve ended {pricing.status.value}"
            if pricing.status is not SolveStatus.OPTIMAL
            else f"{pricing.backend} reported no duals"
        )
        logger.warning(f"Prices unavailable: {reason}")
        keys = model.constraint_groups.get(model.price_group, {}).keys()
        return PriceTable.unavailable(k for k in map(price_key, keys) if k is not None)
