import logging
import uuid
from unittest.mock import create_autospec

from researchbench.benchmark.runner import (
    BenchmarkOptions,
    BenchmarkResult,
    BenchmarkRunner,
    Blackhole,
    Iterations,
    TimeUnit,
    benchmark,
)
from researchbench.research.model import Research
from researchbench.research.repository import ResearchRepository

logger = logging.getLogger(__name__)

SEED_NAME = "Very Cool Research"
SEED_WORD_LENGTH = 20000


class ResearchBenchmark:
    """
    Latency benchmarks for creating, writing and reading Research records.

    The real repository is injected; the mocked one is created per trial in
    setup() so the mocked benchmarks only pay for call dispatch and record
    construction. The harness works against any ResearchRepository backend.
    """

    def __init__(self, repository: ResearchRepository):
        self.repository = repository
        self.mocked_repository = None
        self.read_research_id: uuid.UUID | None = None

    def setup(self) -> None:
        """Persist the record the read benchmarks look up, and create the mock."""
        research = Research(SEED_NAME, SEED_WORD_LENGTH)
        self.read_research_id = research.id
        self.repository.save(research)
        self.mocked_repository = create_autospec(ResearchRepository, instance=True)

    def teardown(self) -> None:
        self.mocked_repository.reset_mock()
        self.mocked_repository = None

    @benchmark(warmup=Iterations(3, 10), measurement=Iterations(20, 10))
    def bm1_create_object(self, blackhole: Blackhole) -> None:
        blackhole.consume(Research("Cool Research", 5000))

    @benchmark(warmup=Iterations(3, 200), measurement=Iterations(20, 200))
    def bm2_mock_write_object(self) -> None:
        self.mocked_repository.save(Research("Cool Research", 5000))

    @benchmark(warmup=Iterations(3, 1000), measurement=Iterations(20, 1000))
    def bm3_write_object(self) -> None:
        self.repository.save(Research("Cool Research", 5000))

    # Nanoseconds: a field read is far below a microsecond
    @benchmark(
        warmup=Iterations(3, 10),
        measurement=Iterations(20, 10),
        output_time_unit=TimeUnit.NANOSECONDS,
    )
    def bm4_retrieve_key(self, blackhole: Blackhole) -> None:
        blackhole.consume(self.read_research_id)

    @benchmark(warmup=Iterations(3, 200), measurement=Iterations(20, 200))
    def bm5_mock_read_object(self, blackhole: Blackhole) -> None:
        blackhole.consume(self.mocked_repository.find_by_id(self.read_research_id))

    @benchmark(warmup=Iterations(3, 1000), measurement=Iterations(20, 1000))
    def bm6_read_object(self, blackhole: Blackhole) -> None:
        blackhole.consume(self.repository.find_by_id(self.read_research_id))


def run_benchmarks(
    repository: ResearchRepository,
    options: BenchmarkOptions = None,
    label: str = "",
) -> list[BenchmarkResult]:
    """
    Run every ResearchBenchmark against one backend, then empty its store.

    The store is cleared even when a benchmark fails, so a failed run does
    not leak records into the next one.
    """
    runner = BenchmarkRunner(options)
    harness = ResearchBenchmark(repository)
    try:
        results = runner.run(harness, label=label)
    except Exception:
        # Keep the benchmark failure as the error the caller sees
        try:
            repository.delete_all()
        except Exception:
            logger.exception("Failed to clear research records after a failed run")
        raise

    repository.delete_all()
    logger.info("Cleared research records%s", f" from {label}" if label else "")
    return results
