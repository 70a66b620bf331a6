"""Spatial node variants making up a K-d tree.

A node is either a :class:`Partition` (split dimension, threshold and two
children) or a :class:`Leaf` bucket of training samples. Traversal code
handles both variants explicitly with ``isinstance`` checks.

Boundary convention: samples with ``feature[dimension] < threshold`` live in
``left``; samples with ``feature[dimension] >= threshold`` live in ``right``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple, Union

import numpy as np


def _readonly(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


@dataclass(frozen=True, eq=False)
class Leaf:
    samples: np.ndarray
    labels: np.ndarray
    indices: np.ndarray

    @classmethod
    def create(cls, samples: np.ndarray, labels: np.ndarray, indices: np.ndarray) -> "Leaf":
        return cls(
            samples=_readonly(np.array(samples, copy=True)),
            labels=_readonly(np.array(labels, copy=True)),
            indices=_readonly(np.asarray(indices, dtype=np.int64).copy()),
        )

    @property
    def size(self) -> int:
        return int(self.samples.shape[0])


@dataclass(frozen=True, eq=False)
class Partition:
    dimension: int
    threshold: float
    left: "Node"
    right: "Node"

    def side(self, point: np.ndarray) -> Tuple["Node", "Node"]:
        """Return ``(near, far)`` children for ``point``."""

        if point[self.dimension] < self.threshold:
            return self.left, self.right
        return self.right, self.left


Node = Union[Leaf, Partition]


def is_leaf(node: Node) -> bool:
    return isinstance(node, Leaf)


def iter_leaves(node: Node) -> Iterator[Leaf]:
    """Yield leaves from left to right."""

    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Leaf):
            yield current
        elif isinstance(current, Partition):
            stack.append(current.right)
            stack.append(current.left)
        else:
            raise TypeError(f"Unexpected node type {type(current).__name__}.")


def tree_depth(node: Node) -> int:
    """Number of partitions on the longest root-to-leaf path."""

    deepest = 0
    stack: List[Tuple[Node, int]] = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        if is_leaf(current):
            deepest = max(deepest, depth)
        else:
            stack.append((current.left, depth + 1))
            stack.append((current.right, depth + 1))
    return deepest


def count_nodes(node: Node) -> Tuple[int, int]:
    """Return ``(partitions, leaves)``."""

    partitions = 0
    leaves = 0
    stack: List[Node] = [node]
    while stack:
        current = stack.pop()
        if isinstance(current, Partition):
            partitions += 1
            stack.append(current.left)
            stack.append(current.right)
        else:
            leaves += 1
    return partitions, leaves


__all__ = [
    "Leaf",
    "Node",
    "Partition",
    "count_nodes",
    "is_leaf",
    "iter_leaves",
    "tree_depth",
]
