"""kdneighbors: K-d tree nearest-neighbour search and regression.

Quick Start
-----------
>>> import numpy as np
>>> from kdneighbors import KDTree
>>>
>>> points = np.random.randn(10000, 3)
>>> labels = points.sum(axis=1)
>>> tree = KDTree(max_leaf_size=20).build(points, labels)
>>> neighbor_labels, distances = tree.query(points[0], k=5)

Regression
----------
>>> from kdneighbors import KDNeighborsRegressor, Labeled, Unlabeled
>>>
>>> model = KDNeighborsRegressor(k=3, weighted=True)
>>> model.train(Labeled(points, labels))
>>> predictions = model.predict(Unlabeled(points[:10]))

Classes
-------
KDTree : Balanced K-d tree with exact k-NN and radius queries.
KDNeighborsRegressor : Averages (optionally inverse-distance weighted) neighbour labels.
Labeled, Unlabeled : Dataset containers with column type introspection.
"""

from importlib.metadata import PackageNotFoundError, version as _pkg_version

try:
    __version__ = _pkg_version("kdneighbors")
except PackageNotFoundError:  # pragma: no cover - running from a source checkout
    __version__ = "0.1.0"

from .core import (
    KDTree,
    Leaf,
    Metric,
    MetricRegistry,
    Partition,
    TreeStats,
    available_metrics,
    get_metric,
    register_metric,
)
from .datasets import ColumnType, Labeled, Unlabeled
from .errors import (
    AlgorithmInvariantViolation,
    InvalidConfiguration,
    InvalidInput,
    InvalidState,
    KDNeighborsError,
    NotTrained,
)
from .estimators import KDNeighborsRegressor
from .queries import NeighborResult

__all__ = [
    "__version__",
    "KDTree",
    "KDNeighborsRegressor",
    "NeighborResult",
    "TreeStats",
    "Leaf",
    "Partition",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "ColumnType",
    "Labeled",
    "Unlabeled",
    "KDNeighborsError",
    "InvalidConfiguration",
    "InvalidInput",
    "InvalidState",
    "NotTrained",
    "AlgorithmInvariantViolation",
]
