from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict

import numpy as np

from kdneighbors.core.metrics import Metric
from kdneighbors.core.node import Leaf, Node, Partition, iter_leaves
from kdneighbors.errors import InvalidInput

if TYPE_CHECKING:  # pragma: no cover - typing only
    from kdneighbors.core.tree import KDTree

KDTREE_SCHEMA_ID = "kdneighbors.kdtree.v1"
REGRESSOR_SCHEMA_ID = "kdneighbors.kdn_regressor.v1"


def node_to_dict(node: Node) -> Dict[str, Any]:
    if isinstance(node, Partition):
        return {
            "kind": "partition",
            "dimension": int(node.dimension),
            "threshold": float(node.threshold),
            "left": node_to_dict(node.left),
            "right": node_to_dict(node.right),
        }
    if isinstance(node, Leaf):
        return {
            "kind": "leaf",
            "samples": node.samples.tolist(),
            "labels": node.labels.tolist(),
            "indices": node.indices.tolist(),
        }
    raise TypeError(f"Unexpected node type {type(node).__name__}.")


def node_from_dict(payload: Dict[str, Any], *, dimension: int, dtype: Any) -> Node:
    kind = payload.get("kind")
    if kind == "partition":
        axis = int(payload["dimension"])
        if not 0 <= axis < dimension:
            raise InvalidInput(f"Partition dimension {axis} outside [0, {dimension}).")
        return Partition(
            dimension=axis,
            threshold=float(payload["threshold"]),
            left=node_from_dict(payload["left"], dimension=dimension, dtype=dtype),
            right=node_from_dict(payload["right"], dimension=dimension, dtype=dtype),
        )
    if kind == "leaf":
        samples = np.asarray(payload["samples"], dtype=dtype).reshape(-1, dimension)
        labels = np.asarray(payload["labels"], dtype=np.float64).reshape(-1)
        indices = np.asarray(payload["indices"], dtype=np.int64).reshape(-1)
        if not samples.shape[0] == labels.shape[0] == indices.shape[0]:
            raise InvalidInput("Leaf payload has misaligned samples, labels and indices.")
        return Leaf.create(samples, labels, indices)
    raise InvalidInput(f"Unknown node kind {kind!r}.")


def tree_to_dict(tree: "KDTree") -> Dict[str, Any]:
    """Serialisable view of a built tree (split layout and leaf contents)."""

    root, metric, dimension = tree._snapshot()
    return {
        "schema_id": KDTREE_SCHEMA_ID,
        "max_leaf_size": tree.max_leaf_size,
        "metric": metric.name,
        "dimension": dimension,
        "num_points": sum(leaf.size for leaf in iter_leaves(root)),
        "root": node_to_dict(root),
    }


def tree_from_dict(
    payload: Dict[str, Any],
    *,
    metric: Metric | str | Callable[..., float] | None = None,
) -> "KDTree":
    from kdneighbors.core.tree import KDTree

    if payload.get("schema_id") != KDTREE_SCHEMA_ID:
        raise InvalidInput(
            f"Expected schema '{KDTREE_SCHEMA_ID}', got {payload.get('schema_id')!r}."
        )
    tree = KDTree(
        max_leaf_size=int(payload["max_leaf_size"]),
        metric=metric if metric is not None else payload["metric"],
    )
    dimension = int(payload["dimension"])
    root = node_from_dict(payload["root"], dimension=dimension, dtype=tree._dtype)
    tree._publish(root, dimension)
    if tree.num_points != int(payload["num_points"]):
        raise InvalidInput(
            f"Payload declares {payload['num_points']} points but holds {tree.num_points}."
        )
    return tree


def write_json(payload: Dict[str, Any], path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w", encoding="utf-8") as handle:
        json.dump(payload, handle)
    return target


def read_json(path: str | Path) -> Dict[str, Any]:
    with Path(path).open("r", encoding="utf-8") as handle:
        return json.load(handle)


__all__ = [
    "KDTREE_SCHEMA_ID",
    "REGRESSOR_SCHEMA_ID",
    "node_from_dict",
    "node_to_dict",
    "read_json",
    "tree_from_dict",
    "tree_to_dict",
    "write_json",
]
