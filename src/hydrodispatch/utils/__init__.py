"""Utility modules for hydrodispatch."""

from .config_manager import ConfigManager
from .logger import get_logger, setup_logging
from .solve_log import SolveLog, auto_log_path

__all__ = ["ConfigManager", "SolveLog", "auto_log_path", "get_logger", "setup_logging"]
