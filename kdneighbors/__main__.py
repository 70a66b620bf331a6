#!/usr/bin/env python
"""Quick-start guide for kdneighbors.

Run with: python -m kdneighbors

This module avoids importing kdneighbors internals so the help text prints
without loading numpy.
"""

from __future__ import annotations

QUICKSTART = """\
================================================================================
                                 KDNEIGHBORS
        K-d tree nearest-neighbour search and inverse-distance regression
================================================================================

BASIC USAGE (k-NN)
------------------
    import numpy as np
    from kdneighbors import KDTree

    points = np.random.randn(10000, 3)
    labels = points.sum(axis=1)
    tree = KDTree(max_leaf_size=20).build(points, labels)

    # Labels and distances of the 5 nearest samples, closest first
    neighbor_labels, distances = tree.query(points[0], k=5)

    # Everything within a radius
    hits = tree.range(points[0], radius=0.5)

REGRESSION
----------
    from kdneighbors import KDNeighborsRegressor, Labeled, Unlabeled

    model = KDNeighborsRegressor(k=3, max_leaf_size=20, weighted=True)
    model.train(Labeled(points, labels))
    predictions = model.predict(Unlabeled(points[:10]))
    model.save("model.json")

METRICS
-------
    KDTree(metric="manhattan")            # euclidean, manhattan, chebyshev, minkowski3
    KDTree(metric=lambda a, b: ...)       # any callable; disables pruning

RUNTIME CONFIGURATION
---------------------
    KDNEIGHBORS_PRECISION=float32|float64
    KDNEIGHBORS_METRIC=euclidean
    KDNEIGHBORS_ENABLE_DIAGNOSTICS=1
    KDNEIGHBORS_LOG_LEVEL=INFO
    KDNEIGHBORS_QUERY_WORKERS=1

BENCHMARKING CLI
----------------
    python -m cli.kdn --dimension 3 --tree-points 8192 --queries 1024 --k 8

================================================================================
"""


def main() -> None:
    """Print quick-start guide."""
    print(QUICKSTART)


if __name__ == "__main__":
    main()
