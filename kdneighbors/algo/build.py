from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple

import numpy as np

from kdneighbors.core.node import Leaf, Node, Partition
from kdneighbors.errors import AlgorithmInvariantViolation
from kdneighbors.logging import get_logger

LOGGER = get_logger("algo.build")


@dataclass(frozen=True)
class SplitPlan:
    dimension: int
    threshold: float
    left_mask: np.ndarray


def _median(values: np.ndarray) -> float:
    """Median of ``values`` that stays finite for finite input.

    ``np.median`` sums the two middle values, which overflows near the float
    limits; halving each before adding does not.
    """

    count = values.shape[0]
    upper = count // 2
    if count % 2:
        return float(np.partition(values, upper)[upper])
    ordered = np.partition(values, (upper - 1, upper))
    lo, hi = float(ordered[upper - 1]), float(ordered[upper])
    return 0.5 * lo + 0.5 * hi


def choose_split(points: np.ndarray) -> SplitPlan | None:
    """Pick the widest axis and split it at the median of its values.

    Returns ``None`` when no axis separates the points (every sample is
    identical), in which case the caller keeps them together in one leaf.
    """

    with np.errstate(over="ignore"):
        spans = points.max(axis=0) - points.min(axis=0)
    dimension = int(np.argmax(spans))
    if not spans[dimension] > 0:
        return None

    values = points[:, dimension]
    threshold = _median(values)
    left_mask = values < threshold
    if left_mask.all() or not left_mask.any():
        # Median sits on an extreme value; split just above the minimum.
        threshold = float(values[values > values.min()].min())
        left_mask = values < threshold

    if left_mask.all() or not left_mask.any():
        raise AlgorithmInvariantViolation(
            f"Split on dimension {dimension} at {threshold!r} failed to separate "
            f"{points.shape[0]} samples."
        )
    return SplitPlan(dimension=dimension, threshold=threshold, left_mask=left_mask)


def grow(samples: np.ndarray, labels: np.ndarray, *, max_leaf_size: int) -> Node:
    """Build a balanced K-d tree over ``samples`` and return its root.

    Uses an explicit work stack so duplicate-heavy inputs that produce deep,
    lopsided trees never hit the interpreter recursion limit.
    """

    num_points = int(samples.shape[0])
    built: Dict[int, Node] = {}
    # ("visit", node_id, indices) or ("join", node_id, dimension, threshold, left_id, right_id)
    stack: List[Tuple] = [("visit", 0, np.arange(num_points, dtype=np.int64))]
    next_id = 1
    fallback_leaves = 0

    while stack:
        frame = stack.pop()
        if frame[0] == "join":
            _, node_id, dimension, threshold, left_id, right_id = frame
            built[node_id] = Partition(
                dimension=dimension,
                threshold=threshold,
                left=built.pop(left_id),
                right=built.pop(right_id),
            )
            continue

        _, node_id, indices = frame
        if indices.shape[0] <= max_leaf_size:
            built[node_id] = Leaf.create(samples[indices], labels[indices], indices)
            continue

        plan = choose_split(samples[indices])
        if plan is None:
            fallback_leaves += 1
            built[node_id] = Leaf.create(samples[indices], labels[indices], indices)
            continue

        left_id, right_id = next_id, next_id + 1
        next_id += 2
        stack.append(("join", node_id, plan.dimension, plan.threshold, left_id, right_id))
        stack.append(("visit", right_id, indices[~plan.left_mask]))
        stack.append(("visit", left_id, indices[plan.left_mask]))

    if fallback_leaves:
        LOGGER.debug(
            "Kept %d unsplittable groups of identical samples as oversized leaves.",
            fallback_leaves,
        )
    return built.pop(0)


__all__ = ["SplitPlan", "choose_split", "grow"]
