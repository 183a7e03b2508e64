"""Application logging for hydrodispatch.

Module loggers (``hydrodispatch.*``) carry the operational messages: backend
resolution and fallback, stage transitions, warnings about unavailable
prices. The per-call solve logs in ``solve_log`` are separate files and do
not pass through here.
"""

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .config_manager import ConfigManager


def setup_logging(config_manager: "ConfigManager | None" = None) -> None:
    """Configure the root logger from the ``logging`` configuration section.

    PuLP logs every solver command line and temporary file at INFO, which
    would bury the dispatch messages of a batch run, so its logger is held
    at WARNING regardless of the configured level.

    Args:
        config_manager: Source of the level and format; the packaged
            defaults when None
    """
    if config_manager is None:
        from .config_manager import ConfigManager

        config_manager = ConfigManager()

    logging_config = config_manager.config.logging

    logging.basicConfig(
        level=getattr(logging, logging_config.level.upper()),
        format=logging_config.format,
        force=True,
    )
    logging.getLogger("pulp").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a hydrodispatch module, usually ``get_logger(__name__)``."""
    return logging.getLogger(name)
