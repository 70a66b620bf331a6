from __future__ import annotations

import heapq
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Sequence, Tuple

import numpy as np

from kdneighbors import config as kd_config
from kdneighbors.core.metrics import Metric
from kdneighbors.core.node import Leaf, Node, Partition
from kdneighbors.diagnostics import log_operation
from kdneighbors.errors import InvalidInput
from kdneighbors.logging import get_logger

if TYPE_CHECKING:  # pragma: no cover - typing only
    from kdneighbors.core.tree import KDTree


LOGGER = get_logger("queries.knn")


@dataclass(frozen=True)
class NeighborResult:
    """Neighbours of one query point, ordered by increasing distance."""

    labels: np.ndarray
    distances: np.ndarray
    indices: np.ndarray

    def __len__(self) -> int:
        return int(self.indices.shape[0])


def _pack(entries: Sequence[Tuple[float, int, int, Any]], label_dtype: Any) -> NeighborResult:
    ordered = sorted(entries, key=lambda entry: (entry[0], entry[1]))
    return NeighborResult(
        labels=np.asarray([entry[3] for entry in ordered], dtype=label_dtype),
        distances=np.asarray([entry[0] for entry in ordered], dtype=np.float64),
        indices=np.asarray([entry[2] for entry in ordered], dtype=np.int64),
    )


def _descend(node: Node, point: np.ndarray, stack: List[Tuple[Node, float]]) -> Leaf:
    """Walk to the leaf containing ``point``, stacking far siblings with their plane gap."""

    while isinstance(node, Partition):
        near, far = node.side(point)
        stack.append((far, abs(float(point[node.dimension]) - node.threshold)))
        node = near
    if not isinstance(node, Leaf):
        raise TypeError(f"Unexpected node type {type(node).__name__}.")
    return node


def search_knn(root: Node, point: np.ndarray, k: int, metric: Metric) -> NeighborResult:
    """Exact k-nearest-neighbour search with hyperplane pruning.

    Equal distances keep the order in which samples were first encountered.
    Returns fewer than ``k`` neighbours when the tree holds fewer samples.
    """

    # Max-heap on (distance, encounter order): the root is the entry evicted next.
    best: List[Tuple[float, int, int, int, Any]] = []
    stack: List[Tuple[Node, float]] = [(root, 0.0)]
    label_dtype = None
    seen = 0

    while stack:
        node, gap = stack.pop()
        if metric.axis_bounded and len(best) >= k and gap >= -best[0][0]:
            continue

        leaf = _descend(node, point, stack)
        if leaf.size == 0:
            continue
        label_dtype = leaf.labels.dtype
        distances = metric.pairwise(point, leaf.samples)[0]
        for offset in range(leaf.size):
            distance = float(distances[offset])
            entry = (-distance, -seen, seen, int(leaf.indices[offset]), leaf.labels[offset])
            seen += 1
            if len(best) < k:
                heapq.heappush(best, entry)
            elif distance < -best[0][0]:
                heapq.heapreplace(best, entry)

    return _pack(
        [(-neg_dist, order, index, label) for neg_dist, _, order, index, label in best],
        label_dtype if label_dtype is not None else np.float64,
    )


def search_radius(root: Node, point: np.ndarray, radius: float, metric: Metric) -> NeighborResult:
    """Return every sample within ``radius`` of ``point`` (inclusive)."""

    found: List[Tuple[float, int, int, Any]] = []
    stack: List[Tuple[Node, float]] = [(root, 0.0)]
    label_dtype = None
    seen = 0

    while stack:
        node, gap = stack.pop()
        if metric.axis_bounded and gap > radius:
            continue

        leaf = _descend(node, point, stack)
        if leaf.size == 0:
            continue
        label_dtype = leaf.labels.dtype
        distances = metric.pairwise(point, leaf.samples)[0]
        for offset in range(leaf.size):
            distance = float(distances[offset])
            if distance <= radius:
                found.append((distance, seen, int(leaf.indices[offset]), leaf.labels[offset]))
            seen += 1

    return _pack(found, label_dtype if label_dtype is not None else np.float64)


def knn(tree: "KDTree", query_points: Any, *, k: int) -> List[NeighborResult]:
    """Query ``k`` neighbours for every row of ``query_points``."""

    with log_operation(LOGGER, "knn_query") as op_log:
        root, metric, dimension = tree._snapshot()
        batch = tree._validate_points(query_points, dimension)
        if k < 1:
            raise InvalidInput(f"At least 1 neighbor is required, {k} given.")

        workers = kd_config.runtime_config().query_workers
        if workers > 1 and batch.shape[0] > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                results = list(pool.map(lambda row: search_knn(root, row, k, metric), batch))
        else:
            results = [search_knn(root, row, k, metric) for row in batch]

        op_log.add_metadata(queries=int(batch.shape[0]), k=k, workers=workers)
        return results


__all__ = ["NeighborResult", "knn", "search_knn", "search_radius"]
