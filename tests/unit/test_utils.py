"""Tests for utility modules."""

import logging
import tempfile
from datetime import datetime
from pathlib import Path

import pytest
import yaml

from hydrodispatch.utils.config_manager import ConfigManager
from hydrodispatch.utils.logger import get_logger, setup_logging
from hydrodispatch.utils.solve_log import SolveLog, auto_log_path


class TestConfigManager:
    """Test cases for ConfigManager."""

    def test_packaged_defaults(self):
        """Test ConfigManager loading the packaged default.yaml."""
        manager = ConfigManager()
        config = manager.get_config()

        assert config.solvers.default == "cbc"
        assert config.pricing.enabled is True
        assert config.diagnostics.time_limit == 300

    def test_config_manager_with_directory(self, config_manager):
        """Test ConfigManager loading from directory."""
        config = config_manager.config

        assert config.logging.level == "DEBUG"
        assert config.solvers.timeout == 120
        assert config.solvers.mip_gap == 0.001
        # Sections absent from the file keep their defaults
        assert config.pricing.round_integers is True

    def test_config_manager_with_file_path(self, temp_config_dir):
        """A file path resolves to its directory."""
        manager = ConfigManager(str(temp_config_dir / "default.yaml"))
        assert manager.config_dir == temp_config_dir

    def test_config_manager_missing_default_config(self):
        """Test ConfigManager when default config is missing."""
        with (
            tempfile.TemporaryDirectory() as temp_dir,
            pytest.raises(FileNotFoundError),
        ):
            ConfigManager(str(temp_dir))

    def test_invalid_yaml(self, tmp_path):
        """Malformed YAML is reported as ValueError."""
        (tmp_path / "default.yaml").write_text("solvers: [unclosed")
        with pytest.raises(ValueError, match="Invalid YAML"):
            ConfigManager(str(tmp_path))

    def test_environment_overlay(self, temp_config_dir, monkeypatch):
        """The ENVIRONMENT file is merged over the defaults."""
        with open(temp_config_dir / "production.yaml", "w") as f:
            yaml.dump({"solvers": {"timeout": 30}}, f)
        monkeypatch.setenv("ENVIRONMENT", "production")

        config = ConfigManager(str(temp_config_dir)).config
        assert config.solvers.timeout == 30
        assert config.solvers.mip_gap == 0.001

    def test_environment_variable_overrides(self, temp_config_dir, monkeypatch):
        """Test environment variables override file values."""
        monkeypatch.setenv("HYDRODISPATCH_SOLVER_DEFAULT", "highs")
        monkeypatch.setenv("HYDRODISPATCH_SOLVER_TIMEOUT", "45.5")
        monkeypatch.setenv("HYDRODISPATCH_LOG_LEVEL", "WARNING")

        config = ConfigManager(str(temp_config_dir)).config
        assert config.solvers.default == "highs"
        assert config.solvers.timeout == 45.5
        assert config.logging.level == "WARNING"

    def test_invalid_environment_value(self, temp_config_dir, monkeypatch):
        """Unconvertible environment values raise ValueError."""
        monkeypatch.setenv("HYDRODISPATCH_SOLVER_MIP_GAP", "tight")
        with pytest.raises(ValueError, match="HYDRODISPATCH_SOLVER_MIP_GAP"):
            ConfigManager(str(temp_config_dir))

    def test_get_dot_notation(self, config_manager):
        """Test getting configuration values with dot notation."""
        assert config_manager.get("solvers.timeout") == 120
        assert config_manager.get("solvers.missing", "fallback") == "fallback"
        assert config_manager.get("missing.key") is None


class TestLogger:
    """Test cases for logger utilities."""

    def test_get_logger(self):
        """Test getting logger instance."""
        logger = get_logger("test_logger")
        assert logger.name == "test_logger"

    def test_setup_logging(self, config_manager):
        """Test setting up logging from configuration."""
        setup_logging(config_manager)

        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("pulp").level == logging.WARNING


class TestSolveLog:
    """Test cases for per-call solve logs."""

    def test_auto_log_path(self, tmp_path):
        """Auto-named logs carry the start timestamp."""
        path = auto_log_path(tmp_path, datetime(2024, 3, 5, 14, 7, 9))
        assert path == tmp_path / "solve_20240305_140709.log"

    def test_events_are_timestamped(self, tmp_path):
        """Each event is one timestamped line."""
        path = tmp_path / "nested" / "solve.log"
        with SolveLog(path) as log:
            log.event("solve started")
            log.event("solve finished")

        lines = path.read_text().splitlines()
        assert len(lines) == 2
        assert lines[0].endswith("INFO - solve started")
        assert lines[0][:4].isdigit()

    def test_reopening_appends(self, tmp_path):
        """Opening an existing log appends to it."""
        path = tmp_path / "solve.log"
        with SolveLog(path) as log:
            log.event("first")
        with SolveLog(path) as log:
            log.event("second")

        assert len(path.read_text().splitlines()) == 2

    def test_event_on_closed_log_raises(self, tmp_path):
        """Writing to a closed log is an error."""
        log = SolveLog(tmp_path / "solve.log")
        with pytest.raises(RuntimeError, match="is not open"):
            log.event("too early")

    def test_logs_do_not_propagate(self, tmp_path, caplog):
        """Solve log lines stay out of the application log."""
        with caplog.at_level(logging.INFO), SolveLog(tmp_path / "solve.log") as log:
            log.event("private line")
        assert "private line" not in caplog.text
        assert Path(tmp_path / "solve.log").exists()

    def test_loggers_are_not_registered(self, tmp_path):
        """Solve logs leave no loggers behind in the logging manager."""

        def registered():
            return [n for n in logging.Logger.manager.loggerDict if "solve_log." in n]

        before = registered()
        for i in range(5):
            with SolveLog(tmp_path / f"solve_{i}.log") as log:
                log.event("line")

        assert registered() == before
        assert (tmp_path / "solve_4.log").read_text().endswith("INFO - line\n")
