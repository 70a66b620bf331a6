from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Protocol, Tuple

import numpy as np

from kdneighbors import config as kd_config

ArrayLike = Any


class PairwiseKernel(Protocol):
    def __call__(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        ...


class PointwiseKernel(Protocol):
    def __call__(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        ...


@dataclass(frozen=True)
class Metric:
    """Container for the distance kernels used by the tree algorithms.

    ``axis_bounded`` declares that the absolute difference along any single
    axis never exceeds the distance between two points. Queries only prune
    across a splitting hyperplane when this holds.
    """

    name: str
    pairwise_kernel: PairwiseKernel
    pointwise_kernel: PointwiseKernel
    axis_bounded: bool = False

    def pairwise(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        return self.pairwise_kernel(lhs, rhs)

    def pointwise(self, lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        return self.pointwise_kernel(lhs, rhs)

    def distance(self, lhs: ArrayLike, rhs: ArrayLike) -> float:
        return float(self.pointwise_kernel(_ensure_1d(lhs), _ensure_1d(rhs)))

    @classmethod
    def from_callable(
        cls,
        fn: Callable[[np.ndarray, np.ndarray], float],
        *,
        name: str | None = None,
        axis_bounded: bool = False,
    ) -> "Metric":
        """Wrap a scalar ``fn(a, b) -> float`` into a Metric."""

        def _pairwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
            lhs_arr = _ensure_2d(lhs)
            rhs_arr = _ensure_2d(rhs)
            out = np.empty((lhs_arr.shape[0], rhs_arr.shape[0]), dtype=np.float64)
            for i, a in enumerate(lhs_arr):
                for j, b in enumerate(rhs_arr):
                    out[i, j] = float(fn(a, b))
            return out

        def _pointwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
            lhs_arr = np.asarray(lhs, dtype=np.float64)
            rhs_arr = np.asarray(rhs, dtype=np.float64)
            if lhs_arr.shape != rhs_arr.shape:
                raise ValueError("Pointwise metric operands must have identical shapes.")
            if lhs_arr.ndim == 1:
                return np.asarray(float(fn(lhs_arr, rhs_arr)), dtype=np.float64)
            return np.asarray(
                [float(fn(a, b)) for a, b in zip(lhs_arr, rhs_arr)], dtype=np.float64
            )

        label = name or getattr(fn, "__name__", "custom")
        return cls(
            name=label,
            pairwise_kernel=_pairwise,
            pointwise_kernel=_pointwise,
            axis_bounded=axis_bounded,
        )


class MetricRegistry:
    """Minimal registry for runtime-selectable metrics."""

    def __init__(self) -> None:
        self._metrics: Dict[str, Metric] = {}

    def register(self, metric: Metric, *, overwrite: bool = False) -> None:
        name = metric.name.lower()
        if not overwrite and name in self._metrics:
            raise ValueError(f"Metric '{metric.name}' already registered.")
        self._metrics[name] = metric

    def get(self, name: str) -> Metric:
        key = name.lower()
        if key not in self._metrics:
            raise KeyError(f"Metric '{name}' not registered.")
        return self._metrics[key]

    def names(self) -> Tuple[str, ...]:
        return tuple(sorted(self._metrics.keys()))


def _ensure_1d(array: ArrayLike) -> np.ndarray:
    return np.asarray(array, dtype=np.float64).reshape(-1)


def _ensure_2d(array: ArrayLike) -> np.ndarray:
    arr = np.asarray(array, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr[None, :]
    return arr


def _minkowski_kernels(p: float) -> Tuple[PairwiseKernel, PointwiseKernel]:
    def _reduce(diff: np.ndarray, axis: int) -> np.ndarray:
        absdiff = np.abs(diff)
        if p == 1.0:
            return np.sum(absdiff, axis=axis)
        if p == 2.0:
            return np.sqrt(np.sum(absdiff * absdiff, axis=axis))
        if np.isinf(p):
            return np.max(absdiff, axis=axis, initial=0.0)
        return np.power(np.sum(np.power(absdiff, p), axis=axis), 1.0 / p)

    def _pairwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        lhs_arr = _ensure_2d(lhs)
        rhs_arr = _ensure_2d(rhs)
        if lhs_arr.size == 0 or rhs_arr.size == 0:
            return np.zeros((lhs_arr.shape[0], rhs_arr.shape[0]), dtype=np.float64)
        diff = lhs_arr[:, None, :] - rhs_arr[None, :, :]
        return _reduce(diff, axis=-1)

    def _pointwise(lhs: ArrayLike, rhs: ArrayLike) -> np.ndarray:
        lhs_arr = np.asarray(lhs, dtype=np.float64)
        rhs_arr = np.asarray(rhs, dtype=np.float64)
        if lhs_arr.shape != rhs_arr.shape:
            raise ValueError("Pointwise metric operands must have identical shapes.")
        return np.asarray(_reduce(lhs_arr - rhs_arr, axis=-1), dtype=np.float64)

    return _pairwise, _pointwise


def _load_runtime_registry() -> MetricRegistry:
    registry = MetricRegistry()
    for name, p in (
        ("euclidean", 2.0),
        ("manhattan", 1.0),
        ("chebyshev", float("inf")),
        ("minkowski3", 3.0),
    ):
        pairwise, pointwise = _minkowski_kernels(p)
        registry.register(
            Metric(
                name=name,
                pairwise_kernel=pairwise,
                pointwise_kernel=pointwise,
                axis_bounded=True,
            )
        )
    return registry


_REGISTRY = _load_runtime_registry()


def get_metric(name: str | None = None) -> Metric:
    """Return a registered metric, defaulting to the runtime-selected metric."""

    if name is None:
        name = kd_config.runtime_config().metric
    return _REGISTRY.get(name)


def register_metric(metric: Metric, *, overwrite: bool = False) -> None:
    _REGISTRY.register(metric, overwrite=overwrite)


def resolve_metric(value: Metric | str | Callable[..., float] | None) -> Metric:
    """Coerce a metric argument (name, Metric, callable or None) into a Metric."""

    if value is None or isinstance(value, str):
        return get_metric(value)
    if isinstance(value, Metric):
        return value
    if callable(value):
        return Metric.from_callable(value)
    raise TypeError(f"Cannot interpret {value!r} as a distance metric.")


def available_metrics() -> Tuple[str, ...]:
    return _REGISTRY.names()


__all__ = [
    "Metric",
    "MetricRegistry",
    "available_metrics",
    "get_metric",
    "register_metric",
    "resolve_metric",
]
