"""
Average-time microbenchmark runner.

Benchmarks are methods on a harness object marked with @benchmark. For each
selected method the runner performs one trial:

    harness.setup()
    warm-up iterations      (scores discarded)
    measurement iterations  (scores recorded)
    harness.teardown()

An iteration calls the method back to back until its minimum duration has
elapsed, and scores the average time per call. Everything runs in the
calling thread so the method keeps access to state prepared in setup().
"""

import gc
import inspect
import logging
import re
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

import numpy as np
from scipy import stats

logger = logging.getLogger(__name__)


class BenchmarkError(Exception):
    """A benchmark raised during its trial and the run is set to fail on error."""


class TimeUnit(Enum):
    NANOSECONDS = ("ns", 1)
    MICROSECONDS = ("us", 1_000)
    MILLISECONDS = ("ms", 1_000_000)
    SECONDS = ("s", 1_000_000_000)

    def __init__(self, symbol: str, nanos: int):
        self.symbol = symbol
        self.nanos = nanos

    def from_nanos(self, value: float) -> float:
        return value / self.nanos

    def to_nanos(self, value: float) -> int:
        return int(value * self.nanos)


@dataclass(frozen=True)
class Iterations:
    """How many iterations a phase runs and the minimum duration of each."""

    iterations: int
    time: float
    time_unit: TimeUnit = TimeUnit.MILLISECONDS

    @property
    def duration_ns(self) -> int:
        return self.time_unit.to_nanos(self.time)


DEFAULT_WARMUP = Iterations(3, 10)
DEFAULT_MEASUREMENT = Iterations(20, 10)


@dataclass(frozen=True)
class BenchmarkSpec:
    name: str
    warmup: Iterations
    measurement: Iterations
    output_time_unit: TimeUnit
    consumes: bool


def benchmark(
    warmup: Iterations = DEFAULT_WARMUP,
    measurement: Iterations = DEFAULT_MEASUREMENT,
    output_time_unit: TimeUnit = TimeUnit.MICROSECONDS,
):
    """
    Mark a harness method as a benchmark.

    A method that takes an argument besides self is passed the runner's
    Blackhole and should hand it every value it produces.
    """

    def decorator(func: Callable) -> Callable:
        params = list(inspect.signature(func).parameters)
        func.__benchmark__ = BenchmarkSpec(
            name=func.__name__,
            warmup=warmup,
            measurement=measurement,
            output_time_unit=output_time_unit,
            consumes=len(params) > 1,
        )
        return func

    return decorator


class Blackhole:
    """Sink for benchmark values, so producing them is never dead code."""

    __slots__ = ("_last", "consumed")

    def __init__(self):
        self._last = None
        self.consumed = 0

    def consume(self, value: Any) -> None:
        self._last = value
        self.consumed += 1


@dataclass
class BenchmarkOptions:
    """
    Run-wide options.

    The overrides replace every benchmark's own warm-up/measurement
    settings when set; leave them None to use what @benchmark declares.
    """

    include: str = ".*"
    forks: int = 0
    threads: int = 1
    should_do_gc: bool = True
    should_fail_on_error: bool = True
    warmup_iterations: int | None = None
    measurement_iterations: int | None = None
    iteration_time_ms: float | None = None

    def __post_init__(self):
        if self.forks != 0:
            raise ValueError("forks must be 0: benchmarks share state with the harness instance")
        if self.threads != 1:
            raise ValueError("threads must be 1: benchmarks run sequentially in the calling thread")
        if self.warmup_iterations is not None and self.warmup_iterations < 0:
            raise ValueError("warmup_iterations must be >= 0")
        if self.measurement_iterations is not None and self.measurement_iterations < 1:
            raise ValueError("measurement_iterations must be >= 1")
        if self.iteration_time_ms is not None and self.iteration_time_ms < 0:
            raise ValueError("iteration_time_ms must be >= 0")
        try:
            re.compile(self.include)
        except re.error as exc:
            raise ValueError(f"Invalid include pattern {self.include!r}: {exc}") from exc


@dataclass
class BenchmarkResult:
    benchmark: str
    unit: TimeUnit
    scores: list[float]
    calls: int
    label: str = ""
    mode: str = "avgt"
    confidence: float = 0.999

    @property
    def score(self) -> float:
        return float(np.mean(self.scores))

    @property
    def error(self) -> float:
        """Half-width of the confidence interval around the mean score."""
        n = len(self.scores)
        if n < 2:
            return float("nan")
        t = stats.t.ppf(1 - (1 - self.confidence) / 2, n - 1)
        return float(t * np.std(self.scores, ddof=1) / np.sqrt(n))

    @property
    def min(self) -> float:
        return float(np.min(self.scores))

    @property
    def max(self) -> float:
        return float(np.max(self.scores))

    def to_dict(self) -> dict:
        return {
            "benchmark": self.benchmark,
            "backend": self.label,
            "mode": self.mode,
            "unit": self.unit.symbol,
            "score": self.score,
            "error": self.error,
            "min": self.min,
            "max": self.max,
            "iterations": len(self.scores),
            "calls": self.calls,
        }


@dataclass
class _Trial:
    spec: BenchmarkSpec
    call: Callable[[], Any]
    blackhole: Blackhole = field(default_factory=Blackhole)


class BenchmarkRunner:
    """Runs every @benchmark method of a harness, one trial per method."""

    def __init__(self, options: BenchmarkOptions = None, clock: Callable[[], int] = time.perf_counter_ns):
        self.options = options or BenchmarkOptions()
        self.clock = clock
        self._include = re.compile(self.options.include)

    def discover(self, harness: Any) -> list[tuple[BenchmarkSpec, Callable]]:
        """Benchmark methods of the harness matching the include pattern, in name order."""
        found = []
        for name, member in inspect.getmembers(type(harness), inspect.isfunction):
            spec = getattr(member, "__benchmark__", None)
            if spec is None or not self._include.search(f"{type(harness).__name__}.{name}"):
                continue
            found.append((spec, getattr(harness, name)))
        return sorted(found, key=lambda item: item[0].name)

    def run(self, harness: Any, label: str = "") -> list[BenchmarkResult]:
        """
        Run all selected benchmarks on the harness.

        Returns results for the benchmarks that completed. With
        should_fail_on_error set, the first failure raises BenchmarkError.
        """
        benchmarks = self.discover(harness)
        if not benchmarks:
            logger.warning("No benchmarks on %s match %r", type(harness).__name__, self.options.include)

        results = []
        for spec, method in benchmarks:
            try:
                results.append(self.run_trial(harness, spec, method, label))
            except Exception as exc:
                if self.options.should_fail_on_error:
                    raise BenchmarkError(f"Benchmark {spec.name} failed: {exc}") from exc
                logger.exception("Benchmark %s failed, skipping", spec.name)
        return results

    def run_trial(self, harness: Any, spec: BenchmarkSpec, method: Callable, label: str = "") -> BenchmarkResult:
        """Setup, warm up, measure and tear down a single benchmark."""
        warmup = self._phase(spec.warmup, self.options.warmup_iterations)
        measurement = self._phase(spec.measurement, self.options.measurement_iterations)

        logger.info(
            "Trial %s%s: %d warm-up and %d measurement iterations of %.0f ms",
            spec.name,
            f" [{label}]" if label else "",
            warmup.iterations,
            measurement.iterations,
            measurement.duration_ns / 1_000_000,
        )

        harness.setup()
        try:
            trial = self._trial(spec, method)

            for i in range(warmup.iterations):
                calls, elapsed = self._run_iteration(trial.call, warmup.duration_ns)
                logger.debug("%s warm-up %d: %d calls in %d ns", spec.name, i + 1, calls, elapsed)

            scores = []
            total_calls = 0
            for i in range(measurement.iterations):
                calls, elapsed = self._run_iteration(trial.call, measurement.duration_ns)
                total_calls += calls
                scores.append(spec.output_time_unit.from_nanos(elapsed / calls))
                logger.debug("%s iteration %d: %d calls in %d ns", spec.name, i + 1, calls, elapsed)
        finally:
            harness.teardown()

        result = BenchmarkResult(
            benchmark=spec.name,
            unit=spec.output_time_unit,
            scores=scores,
            calls=total_calls,
            label=label,
        )
        logger.info("Trial %s: %.3f %s/op", spec.name, result.score, result.unit.symbol)
        return result

    def _phase(self, phase: Iterations, iterations: int | None) -> Iterations:
        """Apply the run-wide overrides to a phase declared by @benchmark."""
        if iterations is None:
            iterations = phase.iterations
        if self.options.iteration_time_ms is None:
            return Iterations(iterations, phase.time, phase.time_unit)
        return Iterations(iterations, self.options.iteration_time_ms, TimeUnit.MILLISECONDS)

    def _trial(self, spec: BenchmarkSpec, method: Callable) -> _Trial:
        trial = _Trial(spec=spec, call=method)
        if spec.consumes:
            blackhole = trial.blackhole
            trial.call = lambda: method(blackhole)
        return trial

    def _run_iteration(self, call: Callable[[], Any], duration_ns: int) -> tuple[int, int]:
        """Call back to back until duration_ns has elapsed. Returns (calls, elapsed ns)."""
        if self.options.should_do_gc:
            gc.collect()

        clock = self.clock
        calls = 0
        start = clock()
        deadline = start + duration_ns
        while True:
            call()
            calls += 1
            now = clock()
            if now >= deadline:
                break
        return calls, now - start
