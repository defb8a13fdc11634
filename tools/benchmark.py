"""Deterministic benchmarking harness for the interval subtraction service."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
if str(PACKAGE_ROOT) not in sys.path:
    sys.path.insert(0, str(PACKAGE_ROOT))

# Ensure profiling is enabled before importing profiling helpers
os.environ.setdefault("TIMEDIFF_PROFILE", "1")

from rich import box, table  # noqa: E402

from timediff.common.console import get_console  # noqa: E402
from timediff.common.profiling import (  # noqa: E402  (import after env setup)
    Profiler,
    profile_enabled,
    profile_section,
)
from timediff.common.settings import configure_logging  # noqa: E402
from timediff.services.subtraction import IntervalSubtractionService  # noqa: E402
from timediff.utils.interval_logger import IntervalLogger  # noqa: E402
from timediff.utils.synthetic import generate_workload  # noqa: E402


def _run_iteration(
    base_count: int, remove_count: int, seed: int, iteration: int
) -> Dict[str, Any]:
    with profile_section("benchmark.generate"):
        base, to_remove = generate_workload(base_count, remove_count, seed=seed + iteration)

    with profile_section("benchmark.subtract"):
        report = IntervalSubtractionService.subtract_with_report(base, to_remove)

    return {
        "iteration": iteration,
        "base": len(base),
        "remove": len(to_remove),
        "conflicts": report.conflicts_resolved,
        "pieces": report.pieces_reinserted,
        "residuals": len(report.residuals),
        "tree_height": report.tree_height,
    }


def run_benchmark(
    base_count: int, remove_count: int, iterations: int, seed: int
) -> Dict[str, Any]:
    summary: List[Dict[str, Any]] = []
    with profile_section("benchmark.total_run"):
        for iteration in range(1, iterations + 1):
            summary.append(_run_iteration(base_count, remove_count, seed, iteration))

    summary_path = Profiler.instance().flush()
    return {
        "seed": seed,
        "iterations": iterations,
        "results": summary,
        "profile_summary": str(summary_path) if summary_path else None,
    }


def _profile_table() -> table.Table:
    profile_table = table.Table(title="Profile", style="dim", box=box.SIMPLE)
    for column in ("Section", "Calls", "Wall total (ms)", "Wall p95 (ms)", "CPU (ms)"):
        profile_table.add_column(column)
    for row in Profiler.instance().summary():
        profile_table.add_row(
            row["name"],
            str(row["calls"]),
            f"{row['wall_ms_total']:.2f}",
            f"{row['wall_ms_p95']:.2f}",
            f"{row['cpu_ms_total']:.2f}",
        )
    return profile_table


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--base-count", type=int, default=2000)
    parser.add_argument("--remove-count", type=int, default=1000)
    parser.add_argument(
        "--iterations",
        type=int,
        default=3,
        help="Number of benchmark iterations to execute",
    )
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument(
        "--show-residuals",
        action="store_true",
        help="Print the residual intervals of the last iteration",
    )
    args = parser.parse_args(argv)

    configure_logging()
    console = get_console()
    result = run_benchmark(
        max(0, args.base_count),
        max(0, args.remove_count),
        max(1, args.iterations),
        args.seed,
    )

    console.print("[bold cyan]Interval subtraction benchmark summary[/bold cyan]")
    console.print(json.dumps(result, indent=2))

    if profile_enabled():
        console.print(_profile_table())
    else:
        console.print(
            "[yellow]Warning:[/] Profiling artifacts were not generated because"
            " TIMEDIFF_PROFILE was disabled."
        )

    if args.show_residuals:
        base, to_remove = generate_workload(
            args.base_count, args.remove_count, seed=args.seed + max(1, args.iterations)
        )
        IntervalLogger.print(
            IntervalSubtractionService.subtract_with_report(base, to_remove)
        )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
