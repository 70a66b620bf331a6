from __future__ import annotations

from .app import QueryCLIOptions, main, run_queries
from .benchmark import QueryBenchmarkResult, benchmark_knn_latency, count_bruteforce_mismatches

__all__ = [
    "QueryBenchmarkResult",
    "benchmark_knn_latency",
    "count_bruteforce_mismatches",
    "QueryCLIOptions",
    "run_queries",
    "main",
]
