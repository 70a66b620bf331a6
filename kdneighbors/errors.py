from __future__ import annotations


class KDNeighborsError(Exception):
    """Base class for every error raised by kdneighbors."""


class InvalidConfiguration(KDNeighborsError, ValueError):
    """Hyper-parameters rejected at construction time."""


class InvalidInput(KDNeighborsError, ValueError):
    """Samples, labels or datasets with an incompatible shape or type."""


class InvalidState(KDNeighborsError, RuntimeError):
    """Operation issued against an index that has not been built."""


class NotTrained(InvalidState):
    """Prediction requested before the estimator was trained."""


class AlgorithmInvariantViolation(KDNeighborsError, RuntimeError):
    """Internal consistency check failed while growing the tree."""


__all__ = [
    "KDNeighborsError",
    "InvalidConfiguration",
    "InvalidInput",
    "InvalidState",
    "NotTrained",
    "AlgorithmInvariantViolation",
]
