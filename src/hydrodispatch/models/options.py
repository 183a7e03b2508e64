"""Solve options model."""

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .config import Config
from .solution import SolveResult


class SolveOptions(BaseModel):
    """Immutable configuration of one solve call.

    Invalid values (empty backend name, non-positive time limit, negative gap,
    verbosity outside 0..2) raise ``pydantic.ValidationError`` at construction.
    """

    model_config = ConfigDict(frozen=True)

    backend: str = Field("cbc", description="Solver backend name")
    time_limit_seconds: float = Field(
        3600.0, gt=0, description="Time limit for each backend call in seconds"
    )
    mip_gap: float = Field(0.01, ge=0, description="Relative optimality gap")
    verbosity: int = Field(1, ge=0, le=2, description="0 silent, 1 summary, 2 detailed")
    pricing: bool = Field(True, description="Run the second, pricing solve")
    log_file: Path | None = Field(
        None, description="Solve log path, auto-generated when unset"
    )
    log_dir: Path = Field(Path("logs"), description="Directory for auto-named logs")
    warm_start: SolveResult | None = Field(
        None, description="Prior result whose values seed the backend"
    )
    backend_options: dict[str, Any] = Field(
        default_factory=dict, description="Backend-specific passthrough options"
    )
    threads: int | None = Field(None, ge=1, description="Backend worker threads")
    allow_fallback: bool = Field(
        True, description="Use the default backend when the requested one is missing"
    )

    @field_validator("backend")
    @classmethod
    def normalize_backend(cls, v: str) -> str:
        """Lower-case the backend name and reject empty names."""
        v = v.strip().lower()
        if not v:
            raise ValueError("Backend name must not be empty")
        return v

    @classmethod
    def from_config(cls, config: Config, **overrides: Any) -> "SolveOptions":
        """Build options from configuration defaults.

        Args:
            config: Loaded configuration
            **overrides: Field values taking precedence over the configuration

        Returns:
            Validated solve options
        """
        values: dict[str, Any] = {
            "backend": config.solvers.default,
            "time_limit_seconds": config.solvers.timeout,
            "mip_gap": config.solvers.mip_gap,
            "verbosity": config.solvers.verbosity,
            "threads": config.solvers.threads,
            "allow_fallback": config.solvers.allow_fallback,
            "pricing": config.pricing.enabled,
            "log_dir": config.output.log_dir,
        }
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, **overrides: Any) -> "SolveOptions":
        """Return a validated copy with some fields replaced."""
        values = {name: getattr(self, name) for name in type(self).model_fields}
        values.update(overrides)
        return type(self)(**values)
