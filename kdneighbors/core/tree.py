from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Tuple

import numpy as np

from kdneighbors import config as kd_config
from kdneighbors.algo.build import grow
from kdneighbors.core.metrics import Metric, resolve_metric
from kdneighbors.core.node import Leaf, Node, count_nodes, iter_leaves, tree_depth
from kdneighbors.diagnostics import log_operation
from kdneighbors.errors import InvalidConfiguration, InvalidInput, InvalidState
from kdneighbors.logging import get_logger
from kdneighbors.queries.knn import NeighborResult, knn, search_knn, search_radius

LOGGER = get_logger("core.tree")


@dataclass(frozen=True)
class TreeStats:
    num_points: int = 0
    num_leaves: int = 0
    num_partitions: int = 0
    depth: int = 0
    largest_leaf: int = 0

    @classmethod
    def from_root(cls, root: Node) -> "TreeStats":
        partitions, leaves = count_nodes(root)
        sizes = [leaf.size for leaf in iter_leaves(root)]
        return cls(
            num_points=int(sum(sizes)),
            num_leaves=leaves,
            num_partitions=partitions,
            depth=tree_depth(root),
            largest_leaf=max(sizes, default=0),
        )


def _as_float_matrix(values: Any, dtype: Any, *, what: str) -> np.ndarray:
    try:
        arr = np.asarray(values, dtype=dtype)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"{what} must be a rectangular array of real numbers.") from exc
    return arr


class KDTree:
    """K-d tree index answering exact nearest-neighbour and radius queries.

    The index starts out bare; :meth:`build` grows the tree from a training
    set and publishes it atomically. Once published the tree is never mutated,
    so any number of threads may query it concurrently. Queries issued while a
    build is in progress block until the new tree is published.
    """

    def __init__(
        self,
        max_leaf_size: int = 20,
        metric: Metric | str | Callable[..., float] | None = None,
    ) -> None:
        if isinstance(max_leaf_size, bool) or not isinstance(max_leaf_size, (int, np.integer)):
            raise InvalidConfiguration(f"Max leaf size must be an integer, {max_leaf_size!r} given.")
        if max_leaf_size < 1:
            raise InvalidConfiguration(
                f"At least one sample is required per leaf, {max_leaf_size} given."
            )
        try:
            self._metric = resolve_metric(metric)
        except (KeyError, TypeError) as exc:
            raise InvalidConfiguration(str(exc)) from exc
        self._max_leaf_size = int(max_leaf_size)
        self._dtype = np.dtype(kd_config.runtime_config().precision)
        self._lock = threading.Lock()
        self._root: Node | None = None
        self._dimension: int | None = None
        self._stats = TreeStats()

    @property
    def max_leaf_size(self) -> int:
        return self._max_leaf_size

    @property
    def metric(self) -> Metric:
        return self._metric

    @property
    def dimension(self) -> int | None:
        return self._dimension

    @property
    def num_points(self) -> int:
        return self._stats.num_points

    @property
    def stats(self) -> TreeStats:
        return self._stats

    def is_empty(self) -> bool:
        return self._root is None

    def bare(self) -> bool:
        return self.is_empty()

    def build(self, samples: Any, labels: Any) -> "KDTree":
        """Grow a new tree over ``samples``/``labels``, replacing any previous one."""

        points = _as_float_matrix(samples, self._dtype, what="Samples")
        targets = _as_float_matrix(labels, np.float64, what="Labels")
        if points.ndim != 2:
            raise InvalidInput(
                f"Samples must be a 2D array of shape (n, d), got {points.ndim} dimension(s)."
            )
        if points.shape[0] == 0:
            raise InvalidInput("Cannot build a tree from an empty training set.")
        if points.shape[1] == 0:
            raise InvalidInput("Samples must have at least one feature.")
        if not np.all(np.isfinite(points)):
            raise InvalidInput("Samples must not contain NaN or infinite values.")
        if targets.ndim != 1 or targets.shape[0] != points.shape[0]:
            raise InvalidInput(
                f"Expected one label per sample ({points.shape[0]}), got shape {targets.shape}."
            )

        with self._lock, log_operation(LOGGER, "kdtree_build") as op_log:
            root = grow(points, targets, max_leaf_size=self._max_leaf_size)
            stats = TreeStats.from_root(root)
            self._root = root
            self._dimension = int(points.shape[1])
            self._stats = stats
            op_log.add_metadata(
                points=stats.num_points,
                dimension=self._dimension,
                leaves=stats.num_leaves,
                depth=stats.depth,
            )
        return self

    def query(
        self, point: Any, k: int, *, return_indices: bool = False
    ) -> Tuple[np.ndarray, np.ndarray] | Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Return ``(labels, distances)`` of the ``k`` samples closest to ``point``.

        When fewer than ``k`` samples are stored every sample is returned.
        """

        root, metric, dimension = self._snapshot()
        batch = self._validate_points(point, dimension)
        if batch.shape[0] != 1:
            raise InvalidInput(f"Expected a single query point, got {batch.shape[0]}.")
        if k < 1:
            raise InvalidInput(f"At least 1 neighbor is required, {k} given.")
        result = search_knn(root, batch[0], int(k), metric)
        if return_indices:
            return result.labels, result.distances, result.indices
        return result.labels, result.distances

    def query_batch(self, points: Any, k: int) -> List[NeighborResult]:
        return knn(self, points, k=int(k))

    def range(self, point: Any, radius: float) -> NeighborResult:
        """Return every stored sample within ``radius`` of ``point``."""

        root, metric, dimension = self._snapshot()
        batch = self._validate_points(point, dimension)
        if batch.shape[0] != 1:
            raise InvalidInput(f"Expected a single query point, got {batch.shape[0]}.")
        if not radius >= 0:
            raise InvalidInput(f"Radius must be non-negative, {radius} given.")
        return search_radius(root, batch[0], float(radius), metric)

    def leaves(self) -> Iterator[Leaf]:
        root, _, _ = self._snapshot()
        return iter_leaves(root)

    def to_dict(self) -> Dict[str, Any]:
        from kdneighbors.core.persistence import tree_to_dict

        return tree_to_dict(self)

    @classmethod
    def from_dict(
        cls,
        payload: Dict[str, Any],
        *,
        metric: Metric | str | Callable[..., float] | None = None,
    ) -> "KDTree":
        from kdneighbors.core.persistence import tree_from_dict

        return tree_from_dict(payload, metric=metric)

    def _publish(self, root: Node, dimension: int) -> None:
        with self._lock:
            self._root = root
            self._dimension = int(dimension)
            self._stats = TreeStats.from_root(root)

    def _snapshot(self) -> Tuple[Node, Metric, int]:
        """Return the published root with the dimensionality it was built on."""

        with self._lock:
            root, dimension = self._root, self._dimension
        if root is None or dimension is None:
            raise InvalidState("The index has not been built; call build() first.")
        return root, self._metric, dimension

    def _validate_points(self, points: Any, dimension: int) -> np.ndarray:
        batch = _as_float_matrix(points, self._dtype, what="Query points")
        if batch.ndim == 1:
            batch = batch[None, :]
        if batch.ndim != 2:
            raise InvalidInput("Query points must be a vector or a 2D array.")
        if batch.shape[1] != dimension:
            raise InvalidInput(
                f"Query dimensionality {batch.shape[1]} does not match the "
                f"tree dimensionality {dimension}."
            )
        if not np.all(np.isfinite(batch)):
            raise InvalidInput("Query points must not contain NaN or infinite values.")
        return batch

    def __repr__(self) -> str:
        return (
            f"KDTree(max_leaf_size={self._max_leaf_size}, metric={self._metric.name!r}, "
            f"points={self.num_points}, dimension={self._dimension})"
        )


__all__ = ["KDTree", "TreeStats"]
