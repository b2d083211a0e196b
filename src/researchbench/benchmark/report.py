import json
import math
from pathlib import Path

import pandas as pd
from rich.table import Table

from researchbench.benchmark.runner import BenchmarkResult

COLUMNS = ["backend", "benchmark", "mode", "iterations", "calls", "score", "error", "min", "max", "unit"]


def results_to_frame(results: list[BenchmarkResult]) -> pd.DataFrame:
    """One row per benchmark result, in COLUMNS order."""
    return pd.DataFrame([r.to_dict() for r in results], columns=COLUMNS)


def build_table(results: list[BenchmarkResult], title: str = "Benchmark results") -> Table:
    """Render results as a rich table, JMH style: score ± error per unit."""
    table = Table(title=title)
    table.add_column("Backend")
    table.add_column("Benchmark")
    table.add_column("Mode")
    table.add_column("Cnt", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Error", justify="right")
    table.add_column("Units")

    for result in results:
        error = result.error
        table.add_row(
            result.label,
            result.benchmark,
            result.mode,
            str(len(result.scores)),
            f"{result.score:.3f}",
            "" if math.isnan(error) else f"± {error:.3f}",
            f"{result.unit.symbol}/op",
        )
    return table


def write_json(results: list[BenchmarkResult], path: Path) -> Path:
    """Write results as a JSON list. NaN errors are written as null."""
    rows = []
    for result in results:
        row = result.to_dict()
        if math.isnan(row["error"]):
            row["error"] = None
        rows.append(row)

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        json.dump(rows, f, indent=2)
    return path
