"""Two-stage marginal pricing."""

from .two_stage import PricingOutcome, PricingStage, TwoStagePricingCoordinator

__all__ = ["PricingOutcome", "PricingStage", "TwoStagePricingCoordinator"]
