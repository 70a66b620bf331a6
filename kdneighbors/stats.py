from __future__ import annotations

from typing import Any

import numpy as np

from kdneighbors.errors import InvalidInput


def mean(values: Any) -> float:
    """Arithmetic mean of a non-empty sequence."""

    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise InvalidInput("Mean is undefined for an empty sequence.")
    return float(np.mean(arr))


def weighted_mean(values: Any, weights: Any) -> float:
    """Weighted arithmetic mean; weights must be non-negative with a positive total."""

    arr = np.asarray(values, dtype=np.float64).reshape(-1)
    w = np.asarray(weights, dtype=np.float64).reshape(-1)
    if arr.size == 0:
        raise InvalidInput("Weighted mean is undefined for an empty sequence.")
    if arr.shape != w.shape:
        raise InvalidInput(
            f"Expected {arr.size} weights, got {w.size}."
        )
    if np.any(w < 0):
        raise InvalidInput("Weights must be non-negative.")
    total = float(np.sum(w))
    if total <= 0.0:
        raise InvalidInput("Weights must sum to a positive value.")
    return float(np.dot(arr, w) / total)


__all__ = ["mean", "weighted_mean"]
