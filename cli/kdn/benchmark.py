from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Tuple

import numpy as np
from numpy.random import default_rng

from kdneighbors import KDTree, NeighborResult
from tests.utils.datasets import bruteforce_knn, gaussian_dataset


@dataclass(frozen=True)
class QueryBenchmarkResult:
    elapsed_seconds: float
    queries: int
    k: int
    latency_ms: float
    queries_per_second: float
    build_seconds: float
    leaves: int
    depth: int


def _build_tree(
    *,
    dimension: int,
    tree_points: int,
    queries: int,
    max_leaf_size: int,
    metric: str,
    seed: int,
) -> Tuple[KDTree, np.ndarray, np.ndarray, float]:
    rng = default_rng(seed)
    points, labels, query_points = gaussian_dataset(
        rng, tree_points=tree_points, queries=queries, dimension=dimension
    )
    tree = KDTree(max_leaf_size=max_leaf_size, metric=metric)
    start = time.perf_counter()
    tree.build(points, labels)
    build_seconds = time.perf_counter() - start
    return tree, points, query_points, build_seconds


def benchmark_knn_latency(
    *,
    dimension: int,
    tree_points: int,
    query_count: int,
    k: int,
    max_leaf_size: int,
    metric: str = "euclidean",
    seed: int = 0,
) -> Tuple[KDTree, np.ndarray, np.ndarray, list[NeighborResult], QueryBenchmarkResult]:
    tree, points, queries, build_seconds = _build_tree(
        dimension=dimension,
        tree_points=tree_points,
        queries=query_count,
        max_leaf_size=max_leaf_size,
        metric=metric,
        seed=seed,
    )
    start = time.perf_counter()
    results = tree.query_batch(queries, k)
    elapsed = time.perf_counter() - start
    qps = query_count / elapsed if elapsed > 0 else float("inf")
    latency = (elapsed / query_count) * 1e3 if query_count else 0.0
    return tree, points, queries, results, QueryBenchmarkResult(
        elapsed_seconds=elapsed,
        queries=query_count,
        k=k,
        latency_ms=latency,
        queries_per_second=qps,
        build_seconds=build_seconds,
        leaves=tree.stats.num_leaves,
        depth=tree.stats.depth,
    )


def count_bruteforce_mismatches(
    points: np.ndarray,
    queries: np.ndarray,
    results: list[NeighborResult],
    k: int,
) -> int:
    """Number of queries whose distances differ from a dense Euclidean scan."""

    mismatches = 0
    for query, result in zip(queries, results):
        _, expected = bruteforce_knn(points, query, k)
        if not np.allclose(result.distances, expected, rtol=1e-9, atol=1e-12):
            mismatches += 1
    return mismatches


__all__ = [
    "QueryBenchmarkResult",
    "benchmark_knn_latency",
    "count_bruteforce_mismatches",
]
