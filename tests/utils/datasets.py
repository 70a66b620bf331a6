from __future__ import annotations

from typing import Tuple

import numpy as np
from numpy.random import Generator, default_rng

Array = np.ndarray


def _ensure_rng(rng: Generator | None) -> Generator:
    return rng or default_rng()


def gaussian_points(
    rng: Generator | None,
    count: int,
    dimension: int,
    *,
    dtype: np.dtype | type[np.floating] = np.float64,
) -> Array:
    """Sample `count` Gaussian points with the requested dimensionality."""

    generator = _ensure_rng(rng)
    if count <= 0 or dimension <= 0:
        return np.zeros((max(count, 0), max(dimension, 0)), dtype=dtype)
    samples = generator.normal(loc=0.0, scale=1.0, size=(count, dimension))
    return np.asarray(samples, dtype=dtype)


def gaussian_dataset(
    rng: Generator | None,
    *,
    tree_points: int,
    queries: int,
    dimension: int,
    dtype: np.dtype | type[np.floating] = np.float64,
) -> Tuple[Array, Array, Array]:
    """Return `(points, labels, queries)`; labels are a noisy linear function of the points."""

    generator = _ensure_rng(rng)
    points = gaussian_points(generator, tree_points, dimension, dtype=dtype)
    weights = np.linspace(1.0, 2.0, num=max(dimension, 1))[:dimension]
    labels = points @ weights + generator.normal(scale=0.01, size=tree_points)
    query_points = gaussian_points(generator, queries, dimension, dtype=dtype)
    return points, np.asarray(labels, dtype=np.float64), query_points


def bruteforce_knn(points: Array, query: Array, k: int) -> Tuple[Array, Array]:
    """Reference k-NN by dense Euclidean distances (stable on ties)."""

    dists = np.linalg.norm(points - query[None, :], axis=1)
    order = np.argsort(dists, kind="stable")[:k]
    return order.astype(np.int64), dists[order]
