from .knn import NeighborResult, knn, search_knn, search_radius

__all__ = ["NeighborResult", "knn", "search_knn", "search_radius"]
