"""
Unit tests for the benchmark runner.

Run with: pytest src/researchbench/benchmark/runner_test.py -v
"""

import itertools
import math
from unittest.mock import patch

import pytest

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

# 1 us iterations against a clock that advances 100 ns per reading
ONE_MICROSECOND = Iterations(2, 1, TimeUnit.MICROSECONDS)


def fake_clock(step: int = 100):
    return itertools.count(0, step).__next__


class CountingHarness:
    def __init__(self):
        self.setups = 0
        self.teardowns = 0
        self.calls = 0
        self.value = "payload"

    def setup(self):
        self.setups += 1

    def teardown(self):
        self.teardowns += 1

    @benchmark(warmup=ONE_MICROSECOND, measurement=Iterations(3, 1, TimeUnit.MICROSECONDS))
    def b_plain(self):
        self.calls += 1

    @benchmark(
        warmup=ONE_MICROSECOND,
        measurement=Iterations(3, 1, TimeUnit.MICROSECONDS),
        output_time_unit=TimeUnit.NANOSECONDS,
    )
    def a_consumes(self, blackhole):
        blackhole.consume(self.value)

    def not_a_benchmark(self):
        raise AssertionError("should never run")


class FailingHarness(CountingHarness):
    @benchmark(warmup=ONE_MICROSECOND, measurement=ONE_MICROSECOND)
    def c_fails(self):
        raise RuntimeError("backend went away")


class BrokenTeardownHarness(CountingHarness):
    def teardown(self):
        raise OSError("close failed")


def make_runner(**kwargs) -> BenchmarkRunner:
    kwargs.setdefault("should_do_gc", False)
    return BenchmarkRunner(BenchmarkOptions(**kwargs), clock=fake_clock())


class TestTimeUnit:
    @pytest.mark.parametrize(
        "unit,nanos,expected",
        [
            (TimeUnit.NANOSECONDS, 1500, 1500),
            (TimeUnit.MICROSECONDS, 1500, 1.5),
            (TimeUnit.MILLISECONDS, 3_000_000, 3),
            (TimeUnit.SECONDS, 2_000_000_000, 2),
        ],
    )
    def test_from_nanos(self, unit, nanos, expected):
        assert unit.from_nanos(nanos) == expected

    def test_iterations_duration(self):
        assert Iterations(20, 200).duration_ns == 200_000_000
        assert Iterations(1, 5, TimeUnit.MICROSECONDS).duration_ns == 5_000


class TestBenchmarkDecorator:
    def test_defaults(self):
        @benchmark()
        def bench(self):
            pass

        spec = bench.__benchmark__
        assert spec.name == "bench"
        assert spec.warmup == Iterations(3, 10)
        assert spec.measurement == Iterations(20, 10)
        assert spec.output_time_unit is TimeUnit.MICROSECONDS
        assert spec.consumes is False

    def test_detects_blackhole_parameter(self):
        assert CountingHarness.a_consumes.__benchmark__.consumes is True


class TestOptions:
    @pytest.mark.parametrize("kwargs", [{"forks": 1}, {"threads": 2}, {"threads": 0}])
    def test_rejects_forks_and_threads(self, kwargs):
        with pytest.raises(ValueError):
            BenchmarkOptions(**kwargs)

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"measurement_iterations": 0},
            {"warmup_iterations": -1},
            {"iteration_time_ms": -0.5},
        ],
    )
    def test_rejects_invalid_phase_overrides(self, kwargs):
        with pytest.raises(ValueError):
            BenchmarkOptions(**kwargs)

    def test_accepts_zero_warmup(self):
        assert BenchmarkOptions(warmup_iterations=0, iteration_time_ms=0).warmup_iterations == 0

    def test_rejects_invalid_include_pattern(self):
        with pytest.raises(ValueError, match="bm\\["):
            BenchmarkOptions(include="bm[")

    def test_defaults(self):
        options = BenchmarkOptions()

        assert options.forks == 0
        assert options.threads == 1
        assert options.should_do_gc is True
        assert options.should_fail_on_error is True


class TestDiscover:
    def test_discover_in_name_order(self):
        names = [spec.name for spec, _ in make_runner().discover(CountingHarness())]

        assert names == ["a_consumes", "b_plain"]

    def test_include_filters_by_qualified_name(self):
        runner = make_runner(include=r"\.CountingHarness\.b_")

        names = [spec.name for spec, _ in runner.discover(CountingHarness())]

        assert names == ["b_plain"]

    def test_include_matching_nothing(self):
        assert make_runner(include="nope").run(CountingHarness()) == []


class TestRunTrial:
    def test_scores_average_time_per_call(self):
        harness = CountingHarness()

        [result] = make_runner(include="b_plain").run(harness)

        # Each 1 us iteration fits 10 calls at 100 ns each
        assert result.scores == [0.1, 0.1, 0.1]
        assert result.unit is TimeUnit.MICROSECONDS
        assert result.calls == 30
        assert harness.calls == 50

    def test_output_time_unit(self):
        [result] = make_runner(include="a_consumes").run(CountingHarness())

        assert result.scores == [100.0, 100.0, 100.0]
        assert result.unit is TimeUnit.NANOSECONDS

    def test_setup_and_teardown_once_per_trial(self):
        harness = CountingHarness()

        make_runner().run(harness)

        assert harness.setups == 2
        assert harness.teardowns == 2

    def test_blackhole_receives_values(self):
        runner = make_runner()
        harness = CountingHarness()
        spec, method = runner.discover(harness)[0]
        trial = runner._trial(spec, method)

        trial.call()

        assert trial.blackhole.consumed == 1

    def test_overrides_replace_declared_phases(self):
        harness = CountingHarness()
        runner = make_runner(include="b_plain", warmup_iterations=0, measurement_iterations=5)

        [result] = runner.run(harness)

        assert len(result.scores) == 5
        assert harness.calls == 50

    def test_iteration_time_override(self):
        runner = make_runner(include="b_plain", iteration_time_ms=0.002)

        [result] = runner.run(CountingHarness())

        assert result.calls == 60

    def test_gc_between_iterations(self):
        runner = BenchmarkRunner(BenchmarkOptions(include="b_plain"), clock=fake_clock())

        with patch("researchbench.benchmark.runner.gc.collect") as collect:
            runner.run(CountingHarness())

        assert collect.call_count == 5

    def test_label_is_recorded(self):
        [result] = make_runner(include="b_plain").run(CountingHarness(), label="redis")

        assert result.label == "redis"
        assert result.to_dict()["backend"] == "redis"


class TestErrors:
    def test_fail_on_error_raises(self):
        harness = FailingHarness()

        with pytest.raises(BenchmarkError, match="c_fails") as exc_info:
            make_runner().run(harness)

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        # Teardown still runs for the failed trial
        assert harness.setups == harness.teardowns == 3

    def test_skip_on_error(self):
        results = make_runner(should_fail_on_error=False).run(FailingHarness())

        assert [r.benchmark for r in results] == ["a_consumes", "b_plain"]

    def test_teardown_error_propagates(self):
        with pytest.raises(BenchmarkError) as exc_info:
            make_runner(include="b_plain").run(BrokenTeardownHarness())

        assert isinstance(exc_info.value.__cause__, OSError)


class TestBenchmarkResult:
    def test_statistics(self):
        result = BenchmarkResult("bench", TimeUnit.MICROSECONDS, scores=[1.0, 2.0, 3.0], calls=30)

        assert result.score == 2.0
        assert result.min == 1.0
        assert result.max == 3.0
        assert result.error > 0

    def test_error_undefined_for_single_iteration(self):
        result = BenchmarkResult("bench", TimeUnit.MICROSECONDS, scores=[1.0], calls=10)

        assert math.isnan(result.error)

    def test_to_dict(self):
        result = BenchmarkResult("bench", TimeUnit.NANOSECONDS, scores=[5.0, 5.0], calls=4, label="mongo")

        assert result.to_dict() == {
            "benchmark": "bench",
            "backend": "mongo",
            "mode": "avgt",
            "unit": "ns",
            "score": 5.0,
            "error": 0.0,
            "min": 5.0,
            "max": 5.0,
            "iterations": 2,
            "calls": 4,
        }


def test_blackhole_counts_values():
    blackhole = Blackhole()

    blackhole.consume(1)
    blackhole.consume(None)

    assert blackhole.consumed == 2
