"""Extraction of costs, prices and time series from solve results."""

import math
from typing import Any, Collection, Iterable

from pydantic import BaseModel, Field

from ..models.optimization import DEFAULT_PRICE_GROUP
from ..models.solution import CostBreakdown, PriceRow, PriceTable, SolveResult
from ..utils.logger import get_logger

logger = get_logger(__name__)

THERMAL_FUEL = "thermal_fuel"
THERMAL_STARTUP = "thermal_startup"
THERMAL_SHUTDOWN = "thermal_shutdown"
DEFICIT_PENALTY = "deficit_penalty"
HYDRO_WATER_VALUE = "hydro_water_value"


def entity_of(key: Any) -> Any:
    """Entity part of a ``(entity_id, period)`` key, or the key itself."""
    return key[0] if isinstance(key, tuple) else key


def period_of(key: Any) -> Any:
    """Period part of an ``(entity_id, period)`` key, or None for scalar keys."""
    return key[-1] if isinstance(key, tuple) and len(key) > 1 else None


def price_key(key: Any) -> tuple[str, int] | None:
    """``(zone, period)`` of a market-balance key, or None if it is not one.

    Periods must be integers; labels such as ``"2024-01-01T00"`` do not qualify.
    """
    if not (isinstance(key, tuple) and len(key) == 2):
        return None
    try:
        return str(key[0]), int(key[1])
    except (TypeError, ValueError):
        return None


class CostComponent(BaseModel):
    """One cost category: ``value x unit_cost`` summed over a variable group."""

    name: str = Field(description="Component name in the breakdown")
    variable_group: str = Field(description="Variable group holding the quantities")
    unit_costs: dict[str, float] = Field(
        default_factory=dict, description="Unit cost per entity id"
    )
    default_unit_cost: float = Field(
        0.0, description="Unit cost for entities missing from unit_costs"
    )

    def unit_cost(self, entity: Any) -> float:
        return self.unit_costs.get(str(entity), self.default_unit_cost)


class CostParameters(BaseModel):
    """Static unit costs for a cost breakdown."""

    components: list[CostComponent] = Field(default_factory=list)

    @property
    def names(self) -> list[str]:
        return [component.name for component in self.components]

    @classmethod
    def hydrothermal(
        cls,
        *,
        fuel_costs: dict[str, float] | None = None,
        startup_costs: dict[str, float] | None = None,
        shutdown_costs: dict[str, float] | None = None,
        deficit_cost: float = 0.0,
        water_values: dict[str, float] | None = None,
        generation_group: str = "thermal_generation",
        startup_group: str = "thermal_startup",
        shutdown_group: str = "thermal_shutdown",
        deficit_group: str = "deficit",
        storage_group: str = "hydro_storage",
    ) -> "CostParameters":
        """Standard five-component breakdown of a hydrothermal dispatch.

        Args:
            fuel_costs: Fuel cost per MWh by thermal plant
            startup_costs: Cost per startup by thermal plant
            shutdown_costs: Cost per shutdown by thermal plant
            deficit_cost: Penalty per MWh of unserved demand (all zones)
            water_values: Opportunity cost of stored water by reservoir
            generation_group: Thermal generation variable group
            startup_group: Thermal startup variable group
            shutdown_group: Thermal shutdown variable group
            deficit_group: Deficit variable group
            storage_group: Reservoir storage variable group

        Returns:
            Cost parameters with one component per category
        """
        return cls(
            components=[
                CostComponent(
                    name=THERMAL_FUEL,
                    variable_group=generation_group,
                    unit_costs=fuel_costs or {},
                ),
                CostComponent(
                    name=THERMAL_STARTUP,
                    variable_group=startup_group,
                    unit_costs=startup_costs or {},
                ),
                CostComponent(
                    name=THERMAL_SHUTDOWN,
                    variable_group=shutdown_group,
                    unit_costs=shutdown_costs or {},
                ),
                CostComponent(
                    name=DEFICIT_PENALTY,
                    variable_group=deficit_group,
                    default_unit_cost=deficit_cost,
                ),
                CostComponent(
                    name=HYDRO_WATER_VALUE,
                    variable_group=storage_group,
                    unit_costs=water_values or {},
                ),
            ]
        )


class ResultExtractor:
    """Turns raw solve results into typed, reusable structures.

    Nothing here raises on missing data: an unsolved result gives an all-zero
    breakdown, missing duals give an empty price table and missing series
    entries read as 0.0, each with a logged warning.
    """

    def cost_breakdown(
        self, result: SolveResult, parameters: CostParameters | None
    ) -> CostBreakdown:
        """Sum ``value x unit_cost`` per cost category.

        Args:
            result: Solve result with variable values
            parameters: Static unit costs

        Returns:
            Cost breakdown whose total is the sum of its components
        """
        if parameters is None:
            return CostBreakdown()
        if not result.has_values:
            logger.warning(
                f"No primal values in {result.stage} result ({result.status.value}); "
                "returning zero cost breakdown"
            )
            return CostBreakdown.zero(parameters.names)

        components: dict[str, float] = {}
        for component in parameters.components:
            values = result.variables.get(component.variable_group)
            if values is None:
                logger.debug(
                    f"Variable group {component.variable_group} absent; "
                    f"{component.name} is zero"
                )
                components[component.name] = 0.0
                continue
            components[component.name] = math.fsum(
                value * component.unit_cost(entity_of(key))
                for key, value in values.items()
            )
        return CostBreakdown.from_components(components)

    def price_table(
        self,
        result: SolveResult | None,
        *,
        group: str = DEFAULT_PRICE_GROUP,
        zones: Collection[str] | None = None,
        periods: Collection[int] | None = None,
        scale: float = 1.0,
    ) -> PriceTable:
        """Project market-balance duals into (zone, period, price) rows.

        Args:
            result: Pricing-stage result
            group: Market-balance constraint group
            zones: Keep only these zones
            periods: Keep only these periods (e.g. ``range(1, 25)``)
            scale: Factor applied to each dual

        Returns:
            Price table, empty when the result carries no duals
        """
        if result is None or group not in result.duals:
            if result is not None:
                logger.warning(
                    f"No duals for group {group} in {result.stage} result "
                    f"({result.status.value}); returning empty price table"
                )
            return PriceTable()

        rows = []
        for key, dual in result.duals[group].items():
            parsed = price_key(key)
            if parsed is None:
                logger.warning(f"Skipping price key {key!r}: expected (zone, period)")
                continue
            zone, period = parsed
            if zones is not None and zone not in zones:
                continue
            if periods is not None and period not in periods:
                continue
            # Normalize -0.0 to 0.0
            rows.append(PriceRow(zone=zone, period=period, price=dual * scale + 0.0))
        rows.sort(key=lambda row: (row.zone, row.period))
        return PriceTable(rows=rows)

    def series(
        self,
        result: SolveResult,
        variable_group: str,
        entity_id: Any,
        periods: Iterable[int],
    ) -> list[float]:
        """Values of one entity across a period range.

        Args:
            result: Solve result
            variable_group: Variable group name
            entity_id: Entity id (first element of the group keys)
            periods: Periods to read

        Returns:
            One value per period; missing entries are 0.0
        """
        values = result.variables.get(variable_group, {})
        series = []
        missing = []
        for period in periods:
            value = values.get((entity_id, period))
            if value is None:
                missing.append(period)
                value = 0.0
            series.append(value)
        if missing:
            logger.warning(
                f"{variable_group}[{entity_id}] has no value for periods {missing}; using 0.0"
            )
        return series
