"""Minimal tabular dataset containers consumed by the estimators.

A column is continuous when every value in it is a real number; anything
else (strings, booleans, objects) makes it categorical.
"""

from __future__ import annotations

import numbers
from enum import Enum
from typing import Any, Iterator, List, Sequence, Tuple

import numpy as np

from kdneighbors.errors import InvalidInput


class ColumnType(str, Enum):
    CONTINUOUS = "continuous"
    CATEGORICAL = "categorical"


def _infer_type(value: Any) -> ColumnType:
    if isinstance(value, (bool, np.bool_)):
        return ColumnType.CATEGORICAL
    if isinstance(value, numbers.Real):
        return ColumnType.CONTINUOUS
    return ColumnType.CATEGORICAL


def _infer_types(rows: List[Tuple[Any, ...]]) -> Tuple[ColumnType, ...]:
    if not rows:
        return ()
    types = []
    for column in range(len(rows[0])):
        continuous = all(
            _infer_type(row[column]) is ColumnType.CONTINUOUS for row in rows
        )
        types.append(ColumnType.CONTINUOUS if continuous else ColumnType.CATEGORICAL)
    return tuple(types)


def _as_rows(samples: Any) -> List[Tuple[Any, ...]]:
    if isinstance(samples, np.ndarray):
        if samples.ndim == 1 and samples.size == 0:
            return []
        if samples.ndim != 2:
            raise InvalidInput(f"Samples must be 2-dimensional, got {samples.ndim}.")
        return [tuple(row.tolist()) for row in samples]
    rows = [tuple(row) for row in samples]
    if rows:
        width = len(rows[0])
        for offset, row in enumerate(rows):
            if len(row) != width:
                raise InvalidInput(
                    f"Sample {offset} has {len(row)} features, expected {width}."
                )
    return rows


class Unlabeled:
    """An ordered collection of fixed-width samples."""

    def __init__(self, samples: Any) -> None:
        self._samples = _as_rows(samples)
        self._types = _infer_types(self._samples)

    @property
    def samples(self) -> List[Tuple[Any, ...]]:
        return list(self._samples)

    @property
    def num_rows(self) -> int:
        return len(self._samples)

    @property
    def num_columns(self) -> int:
        return len(self._types)

    def types(self) -> Tuple[ColumnType, ...]:
        return self._types

    def column_type(self, column: int) -> ColumnType:
        return self._types[column]

    def type_count(self, column_type: ColumnType) -> int:
        return sum(1 for current in self._types if current is column_type)

    def is_continuous(self) -> bool:
        return self.type_count(ColumnType.CONTINUOUS) == self.num_columns

    def as_array(self, dtype: Any = np.float64) -> np.ndarray:
        """Return the samples as a ``(rows, columns)`` float array."""

        if not self.is_continuous():
            raise InvalidInput("Only continuous datasets can be converted to a float array.")
        if not self._samples:
            return np.empty((0, 0), dtype=dtype)
        return np.asarray(self._samples, dtype=dtype)

    def __len__(self) -> int:
        return self.num_rows

    def __iter__(self) -> Iterator[Tuple[Any, ...]]:
        return iter(self._samples)


class Labeled(Unlabeled):
    """Samples paired one-to-one with real-valued labels."""

    def __init__(self, samples: Any, labels: Sequence[Any]) -> None:
        super().__init__(samples)
        if isinstance(labels, np.ndarray):
            values = labels.reshape(-1).tolist()
        else:
            values = list(labels)
        if len(values) != self.num_rows:
            raise InvalidInput(
                f"The number of labels ({len(values)}) must equal the number of samples "
                f"({self.num_rows})."
            )
        for offset, value in enumerate(values):
            if _infer_type(value) is not ColumnType.CONTINUOUS:
                raise InvalidInput(f"Label {offset} is not a real number: {value!r}.")
        self._labels = values

    @property
    def labels(self) -> List[float]:
        return list(self._labels)

    def labels_array(self) -> np.ndarray:
        return np.asarray(self._labels, dtype=np.float64)


__all__ = ["ColumnType", "Labeled", "Unlabeled"]
