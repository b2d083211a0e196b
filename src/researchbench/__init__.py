"""Research record persistence over MongoDB and Redis, with a latency benchmark harness."""

__version__ = "0.1.0"
