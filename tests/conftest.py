"""pytest configuration and shared fixtures."""

import sys
from pathlib import Path
from typing import Any, Callable

import pulp
import pytest
import yaml

# Add src directory to Python path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from hydrodispatch.analysis.extraction import CostParameters
from hydrodispatch.models.optimization import OptimizationModel
from hydrodispatch.solvers.base import BackendSettings, BaseSolver, SolverError
from hydrodispatch.solvers.registry import SolverRegistry
from hydrodispatch.utils.config_manager import ConfigManager

THERMAL_PLANTS = {
    # plant: (zone, fuel cost $/MWh, fixed cost $/period on, min MW, max MW)
    "T1": ("SE", 50.0, 1000.0, 50.0, 150.0),
    "T2": ("SE", 80.0, 200.0, 20.0, 200.0),
}
DEMAND = {1: 100.0, 2: 220.0, 3: 180.0}
DEFICIT_COST = 5000.0


def build_dispatch_model(
    demand: dict[int, float] | None = None,
    with_deficit: bool = True,
    cost_scale: float = 1.0,
) -> OptimizationModel:
    """Two thermal plants serving one zone over three periods."""
    demand = demand or DEMAND
    periods = sorted(demand)
    model = OptimizationModel.minimize("dispatch", cost_scale=cost_scale)
    keys = [(plant, t) for plant in THERMAL_PLANTS for t in periods]

    on = model.add_variables("thermal_commitment", keys, cat=pulp.LpBinary)
    gen = model.add_variables("thermal_generation", keys, low_bound=0)
    deficit = {}
    if with_deficit:
        deficit = model.add_variables("deficit", [("SE", t) for t in periods], low_bound=0)

    model.add_constraint_group(
        "submarket_balance",
        {
            ("SE", t): pulp.lpSum(gen[p, t] for p in THERMAL_PLANTS)
            + (deficit["SE", t] if with_deficit else 0)
            == demand[t]
            for t in periods
        },
    )
    model.add_constraint_group(
        "thermal_max_generation",
        {(p, t): gen[p, t] <= THERMAL_PLANTS[p][4] * on[p, t] for p, t in keys},
    )
    model.add_constraint_group(
        "thermal_min_generation",
        {(p, t): gen[p, t] >= THERMAL_PLANTS[p][3] * on[p, t] for p, t in keys},
    )

    objective = pulp.lpSum(
        cost_scale * (THERMAL_PLANTS[p][1] * gen[p, t] + THERMAL_PLANTS[p][2] * on[p, t])
        for p, t in keys
    )
    if with_deficit:
        objective += pulp.lpSum(cost_scale * DEFICIT_COST * deficit[k] for k in deficit)
    model.set_objective(objective)
    model.cost_parameters = CostParameters.hydrothermal(
        fuel_costs={p: v[1] for p, v in THERMAL_PLANTS.items()},
        deficit_cost=DEFICIT_COST,
    )
    return model


def build_infeasible_model() -> OptimizationModel:
    """Demand of 1000 against 150 of capacity, no deficit variable."""
    model = OptimizationModel.minimize("infeasible")
    gen = model.add_variables("thermal_generation", [("T1", 1)], low_bound=0, up_bound=150)
    on = model.add_variables("thermal_commitment", [("T1", 1)], cat=pulp.LpBinary)
    model.add_constraint_group("submarket_balance", {("SE", 1): gen["T1", 1] >= 1000})
    model.add_constraint_group(
        "thermal_max_generation", {("T1", 1): gen["T1", 1] <= 150 * on["T1", 1]}
    )
    model.set_objective(50 * gen["T1", 1] + 100 * on["T1", 1])
    return model


class FakeSolver(BaseSolver):
    """Scripted backend that never runs a real solver.

    Every call pops the next raw status from ``script`` (the last one
    repeats), assigns ``value_for(var)`` to each variable and, for problems
    without integer variables, ``dual`` to every constraint's ``pi``.
    """

    name = "fake"
    display_name = "Fake Solver"
    install_hint = "nothing to install"
    mandatory = True
    supports_duals = True
    supports_conflict = False

    def __init__(
        self,
        script: list[Any] | None = None,
        value_for: Callable[[pulp.LpVariable], float] | None = None,
        dual: float = 42.0,
        raises: Exception | None = None,
        raise_on_call: int | None = None,
    ):
        self.script = list(script or [(1, 1)])
        self.value_for = value_for or (lambda var: var.lowBound if var.lowBound is not None else 1.0)
        self.dual = dual
        self.raises = raises
        self.raise_on_call = raise_on_call
        self.calls: list[dict[str, Any]] = []

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        raise NotImplementedError("FakeSolver solves problems directly")

    def solve(self, problem: pulp.LpProblem, settings: BackendSettings) -> Any:
        integers = [v for v in problem.variables() if v.cat == pulp.LpInteger]
        self.calls.append(
            {
                "settings": settings,
                "free_integers": len(integers),
                "bounds": {v.name: (v.lowBound, v.upBound, v.cat) for v in problem.variables()},
            }
        )
        if self.raises is not None and (
            self.raise_on_call is None or self.raise_on_call == len(self.calls)
        ):
            raise self.raises
        raw = self.script[min(len(self.calls), len(self.script)) - 1]
        for var in problem.variables():
            var.varValue = self.value_for(var)
        for constraint in problem.constraints():
            constraint.pi = None if integers else self.dual
        return raw


class ProbeCountingSolver(BaseSolver):
    """Optional backend whose probe outcome is controlled by the test."""

    name = "probe_counting"
    display_name = "Probe Counting Solver"
    install_hint = "pip install probe-counting"
    probe_calls = 0
    available = True

    def probe(self) -> None:
        type(self).probe_calls += 1
        if not type(self).available:
            raise SolverError("native library missing")

    def command(self, settings: BackendSettings) -> pulp.LpSolver:
        return pulp.PULP_CBC_CMD(msg=False)


@pytest.fixture
def dispatch_model():
    """Feasible two-plant, three-period dispatch model."""
    return build_dispatch_model()


@pytest.fixture
def infeasible_model():
    """Model with demand 1000 and capacity 150, no deficit."""
    return build_infeasible_model()


@pytest.fixture
def fake_registry():
    """Registry holding only the fake backend, as default."""
    return SolverRegistry(solvers=(FakeSolver,), default="fake")


@pytest.fixture
def temp_config_dir(tmp_path):
    """Configuration directory with a minimal default.yaml."""
    config_data = {
        "logging": {"level": "DEBUG"},
        "solvers": {"default": "cbc", "timeout": 120, "mip_gap": 0.001},
        "output": {"log_dir": str(tmp_path / "logs"), "report_dir": str(tmp_path / "reports")},
    }
    with open(tmp_path / "default.yaml", "w") as f:
        yaml.dump(config_data, f)
    return tmp_path


@pytest.fixture
def config_manager(temp_config_dir):
    """ConfigManager reading the temporary configuration."""
    return ConfigManager(str(temp_config_dir))


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep configuration environment variables from leaking into tests."""
    for var in list(ConfigManager.ENV_MAPPINGS) + ["ENVIRONMENT"]:
        monkeypatch.delenv(var, raising=False)
