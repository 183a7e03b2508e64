"""Configuration data models."""

from typing import Any

from pydantic import BaseModel, Field


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SolverConfig(BaseModel):
    """Solver configuration."""
    default: str = "cbc"
    timeout: float = Field(3600, description="Time limit for each solve in seconds")
    mip_gap: float = Field(0.01, description="Relative optimality gap")
    verbosity: int = Field(1, description="0 silent, 1 summary, 2 detailed")
    threads: int | None = Field(None, description="Backend worker threads")
    allow_fallback: bool = Field(
        True, description="Fall back to the default backend when one is unavailable"
    )


class PricingConfig(BaseModel):
    """Two-stage pricing configuration."""
    enabled: bool = True
    round_integers: bool = Field(
        True, description="Round stage-1 integer values before fixing them"
    )


class DiagnosticsConfig(BaseModel):
    """Infeasibility diagnosis configuration."""
    time_limit: float = Field(
        300, description="Conflict search budget in seconds when the last solve recorded none"
    )


class OutputConfig(BaseModel):
    """Log and report output locations."""
    log_dir: str = "logs"
    report_dir: str = "logs"


class Config(BaseModel):
    """Main configuration container."""
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    solvers: SolverConfig = Field(default_factory=SolverConfig)
    pricing: PricingConfig = Field(default_factory=PricingConfig)
    diagnostics: DiagnosticsConfig = Field(default_factory=DiagnosticsConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create config from dictionary."""
        return cls.model_validate(data)
