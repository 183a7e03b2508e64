"""Export of two-stage solve results to CSV and JSON."""

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any

from ..models.solution import SolveResult, TwoStageResult
from ..utils.logger import get_logger

logger = get_logger(__name__)


def _key_columns(values: dict[Any, float]) -> tuple[str, ...]:
    """``entity``, one ``key_<i>`` column per middle key part, then ``period``."""
    width = max((len(key) for key in values if isinstance(key, tuple)), default=2)
    return ("entity", *(f"key_{i}" for i in range(2, width)), "period")


def _records(values: dict[Any, float]) -> list[dict[str, Any]]:
    records = []
    for key, value in values.items():
        parts = key if isinstance(key, tuple) else (key,)
        record: dict[str, Any] = {"entity": str(parts[0])}
        for i, part in enumerate(parts[1:-1], start=2):
            record[f"key_{i}"] = part
        record["period"] = parts[-1] if len(parts) > 1 else None
        record["value"] = value
        records.append(record)
    return records


class SolutionExporter:
    """Writes a ``TwoStageResult`` as CSV files or one JSON document.

    Variable values come from the pricing stage when it produced a solution
    (its dispatch is the one the prices belong to), otherwise from the
    commitment stage.
    """

    @staticmethod
    def _values_source(result: TwoStageResult) -> SolveResult:
        if result.pricing is not None and result.pricing.has_values:
            return result.pricing
        return result.commitment

    def summary(self, result: TwoStageResult) -> dict[str, Any]:
        """Flat summary of a two-stage result."""
        summary: dict[str, Any] = {
            "status": result.status.value,
            "exit_code": result.exit_code,
            "backend": result.commitment.backend,
            "objective_value": result.objective_value,
            "commitment_solve_time": result.commitment.solve_time,
            "pricing_status": result.pricing.status.value if result.pricing else None,
            "pricing_objective_value": (
                result.pricing.objective_value if result.pricing else None
            ),
            "pricing_solve_time": result.pricing.solve_time if result.pricing else None,
            "price_rows": len(result.price_table),
            "total_cost": result.cost_breakdown.total,
        }
        for name, value in result.cost_breakdown.components.items():
            summary[f"cost_{name}"] = value
        return summary

    def export_csv(self, result: TwoStageResult, directory: str | Path) -> list[Path]:
        """Write one CSV per variable group plus ``prices.csv`` and ``summary.csv``.

        Args:
            result: Two-stage result
            directory: Output directory, created if needed

        Returns:
            Paths of the written files
        """
        directory = Path(directory)
        directory.mkdir(parents=True, exist_ok=True)
        written = []

        for group, values in self._values_source(result).variables.items():
            path = directory / f"{group}.csv"
            self._write_csv(path, (*_key_columns(values), "value"), _records(values))
            written.append(path)

        path = directory / "prices.csv"
        self._write_csv(path, result.price_table.columns, result.price_table.to_records())
        written.append(path)

        path = directory / "summary.csv"
        rows = [{"metric": k, "value": v} for k, v in self.summary(result).items()]
        self._write_csv(path, ("metric", "value"), rows)
        written.append(path)

        logger.info(f"Exported {len(written)} CSV files to {directory}")
        return written

    def export_json(self, result: TwoStageResult, path: str | Path) -> Path:
        """Write the whole result as one JSON document.

        Args:
            result: Two-stage result
            path: Output file path (.json)

        Returns:
            Path written to
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        document = {
            "metadata": {
                "export_timestamp": datetime.now().isoformat(timespec="seconds"),
                "log_file": result.log_file,
                "stages": result.stages,
            },
            "summary": self.summary(result),
            "variables": {
                group: _records(values)
                for group, values in self._values_source(result).variables.items()
            },
            "prices": result.price_table.to_records(),
            "costs": {
                "components": result.cost_breakdown.components,
                "total": result.cost_breakdown.total,
            },
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
        logger.info(f"Exported JSON solution to {path}")
        return path

    @staticmethod
    def _write_csv(path: Path, columns: tuple[str, ...], rows: list[dict[str, Any]]) -> None:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=list(columns))
            writer.writeheader()
            writer.writerows(rows)
