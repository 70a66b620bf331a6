from .regressor import KDNeighborsRegressor

__all__ = ["KDNeighborsRegressor"]
