"""K-d Neighbors regressor.

Locates the neighbourhood of each sample with a K-d tree and averages the
labels of the ``k`` nearest training samples, optionally weighting each label
by ``1 / (1 + distance)`` so that closer neighbours count more.

References: J. L. Bentley (1975). Multidimensional Binary Search Trees Used
for Associative Searching.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict

import numpy as np

from kdneighbors.core.metrics import Metric
from kdneighbors.core.persistence import REGRESSOR_SCHEMA_ID, read_json, write_json
from kdneighbors.core.tree import KDTree
from kdneighbors.datasets import ColumnType, Labeled, Unlabeled
from kdneighbors.diagnostics import log_operation
from kdneighbors.errors import InvalidConfiguration, InvalidInput, NotTrained
from kdneighbors.logging import get_logger
from kdneighbors.queries.knn import NeighborResult
from kdneighbors.stats import mean, weighted_mean

LOGGER = get_logger("estimators.regressor")


class KDNeighborsRegressor:
    """Nearest-neighbour regression backed by a :class:`KDTree`.

    Parameters
    ----------
    k : int
        Number of neighbours aggregated per prediction. Must not exceed
        ``max_leaf_size``.
    max_leaf_size : int
        Capacity of the tree's leaf buckets.
    metric : Metric | str | callable | None
        Distance metric; defaults to the runtime-selected metric (Euclidean).
    weighted : bool
        Use inverse-distance weights instead of a plain mean.
    """

    def __init__(
        self,
        k: int = 3,
        max_leaf_size: int = 20,
        metric: Metric | str | Callable[..., float] | None = None,
        weighted: bool = True,
    ) -> None:
        if k < 1:
            raise InvalidConfiguration(
                f"At least 1 neighbor is required to make a prediction, {k} given."
            )
        if k > max_leaf_size:
            raise InvalidConfiguration(
                f"K cannot be larger than the max leaf size, {k} given "
                f"but {max_leaf_size} allowed."
            )
        self._k = int(k)
        self._weighted = bool(weighted)
        self._tree = KDTree(max_leaf_size=max_leaf_size, metric=metric)

    @property
    def k(self) -> int:
        return self._k

    @property
    def weighted(self) -> bool:
        return self._weighted

    @property
    def tree(self) -> KDTree:
        return self._tree

    @property
    def trained(self) -> bool:
        return not self._tree.is_empty()

    def params(self) -> Dict[str, Any]:
        return {
            "k": self._k,
            "max_leaf_size": self._tree.max_leaf_size,
            "metric": self._tree.metric.name,
            "weighted": self._weighted,
        }

    def train(self, dataset: Unlabeled) -> None:
        if not isinstance(dataset, Labeled):
            raise InvalidInput("This estimator requires a labeled training set.")
        if dataset.type_count(ColumnType.CONTINUOUS) != dataset.num_columns:
            raise InvalidInput("This estimator only works with continuous features.")
        if dataset.num_rows == 0:
            raise InvalidInput("Cannot train on an empty dataset.")

        self._tree.build(dataset.as_array(), dataset.labels_array())

    def predict(self, dataset: Unlabeled) -> np.ndarray:
        """Return one prediction per sample, in input order."""

        if ColumnType.CATEGORICAL in dataset.types():
            raise InvalidInput("This estimator only works with continuous features.")
        if not self.trained:
            raise NotTrained("Estimator has not been trained.")
        if dataset.num_rows == 0:
            return np.empty(0, dtype=np.float64)

        with log_operation(LOGGER, "kdn_predict") as op_log:
            results = self._tree.query_batch(dataset.as_array(), self._k)
            predictions = np.asarray(
                [self._aggregate(result) for result in results], dtype=np.float64
            )
            op_log.add_metadata(samples=len(results), k=self._k, weighted=self._weighted)
        return predictions

    def fit(self, samples: Any, labels: Any) -> "KDNeighborsRegressor":
        self.train(Labeled(samples, labels))
        return self

    def predict_samples(self, samples: Any) -> np.ndarray:
        return self.predict(Unlabeled(samples))

    def _aggregate(self, result: NeighborResult) -> float:
        if self._weighted:
            weights = 1.0 / (1.0 + result.distances)
            return weighted_mean(result.labels, weights)
        return mean(result.labels)

    def save(self, path: str | Path) -> Path:
        payload = {
            "schema_id": REGRESSOR_SCHEMA_ID,
            **self.params(),
            "tree": self._tree.to_dict() if self.trained else None,
        }
        target = write_json(payload, path)
        LOGGER.info("Saved regressor to %s", target)
        return target

    @classmethod
    def load(
        cls,
        path: str | Path,
        *,
        metric: Metric | str | Callable[..., float] | None = None,
    ) -> "KDNeighborsRegressor":
        payload = read_json(path)
        if payload.get("schema_id") != REGRESSOR_SCHEMA_ID:
            raise InvalidInput(
                f"Expected schema '{REGRESSOR_SCHEMA_ID}', got {payload.get('schema_id')!r}."
            )
        resolved = metric if metric is not None else payload["metric"]
        model = cls(
            k=int(payload["k"]),
            max_leaf_size=int(payload["max_leaf_size"]),
            metric=resolved,
            weighted=bool(payload["weighted"]),
        )
        if payload.get("tree") is not None:
            model._tree = KDTree.from_dict(payload["tree"], metric=resolved)
        return model

    def __repr__(self) -> str:
        return (
            f"KDNeighborsRegressor(k={self._k}, max_leaf_size={self._tree.max_leaf_size}, "
            f"metric={self._tree.metric.name!r}, weighted={self._weighted})"
        )


__all__ = ["KDNeighborsRegressor"]
