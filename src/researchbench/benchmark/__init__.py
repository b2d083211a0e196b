"""
Benchmark

This package provides the average-time benchmark runner and the Research
latency harness that runs on it.
"""

from researchbench.benchmark.harness import ResearchBenchmark, run_benchmarks
from researchbench.benchmark.runner import (
    BenchmarkError,
    BenchmarkOptions,
    BenchmarkResult,
    BenchmarkRunner,
    Blackhole,
    Iterations,
    TimeUnit,
    benchmark,
)

__all__ = [
    "BenchmarkError",
    "BenchmarkOptions",
    "BenchmarkResult",
    "BenchmarkRunner",
    "Blackhole",
    "Iterations",
    "ResearchBenchmark",
    "TimeUnit",
    "benchmark",
    "run_benchmarks",
]
