"""Core data structures: metrics, spatial nodes and the K-d tree index."""

from .metrics import (
    Metric,
    MetricRegistry,
    available_metrics,
    get_metric,
    register_metric,
    resolve_metric,
)
from .node import Leaf, Node, Partition, count_nodes, is_leaf, iter_leaves, tree_depth
from .tree import KDTree, TreeStats

__all__ = [
    "KDTree",
    "TreeStats",
    "Leaf",
    "Node",
    "Partition",
    "count_nodes",
    "is_leaf",
    "iter_leaves",
    "tree_depth",
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
