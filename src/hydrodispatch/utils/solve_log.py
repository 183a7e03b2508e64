"""Per-call solve log files."""

import itertools
import logging
from datetime import datetime
from pathlib import Path
from types import TracebackType

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"

_counter = itertools.count()


def auto_log_path(log_dir: str | Path, started: datetime | None = None, prefix: str = "solve") -> Path:
    """Name a log file after a run's start time, e.g. ``logs/solve_20240101_120000.log``."""
    started = started or datetime.now()
    return Path(log_dir) / f"{prefix}_{started:%Y%m%d_%H%M%S}.log"


class SolveLog:
    """Timestamped, line-per-event log file owned by one solve call.

    Each instance writes through its own non-propagating logger, so
    concurrent solves never share a handler. The logger is not registered
    with the logging manager and goes away with the instance. Opening the
    same path twice appends.

    Example:
        with SolveLog("logs/solve.log") as log:
            log.event("solve started")
    """

    def __init__(self, path: str | Path, level: int = logging.INFO):
        self.path = Path(path)
        self.level = level
        self._logger = logging.Logger(f"hydrodispatch.solve_log.{next(_counter)}", logging.DEBUG)
        self._logger.propagate = False
        self._handler: logging.FileHandler | None = None

    def open(self) -> "SolveLog":
        if self._handler is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(self.path, mode="a", encoding="utf-8")
            self._handler.setFormatter(logging.Formatter(LOG_FORMAT))
            self._handler.setLevel(self.level)
            self._logger.addHandler(self._handler)
        return self

    def close(self) -> None:
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None

    def event(self, message: str, level: int = logging.INFO) -> None:
        """Write one timestamped line."""
        if self._handler is None:
            raise RuntimeError(f"Solve log {self.path} is not open")
        self._logger.log(level, message)

    def __enter__(self) -> "SolveLog":
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
