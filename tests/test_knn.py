import numpy as np
import pytest

from kdneighbors import KDTree
from kdneighbors.core.metrics import Metric, get_metric
from kdneighbors.errors import InvalidInput, InvalidState
from tests.utils.datasets import bruteforce_knn, gaussian_points


def _random_points(n: int, d: int, seed: int = 0) -> np.ndarray:
    return gaussian_points(np.random.default_rng(seed), n, d)


def _example_tree(max_leaf_size: int = 2) -> KDTree:
    samples = [[0.0, 0.0], [1.0, 0.0], [0.0, 1.0], [5.0, 5.0]]
    labels = [10.0, 20.0, 30.0, 100.0]
    return KDTree(max_leaf_size=max_leaf_size).build(samples, labels)


@pytest.mark.parametrize("max_leaf_size", [1, 2, 4])
def test_example_neighbourhood_of_origin(max_leaf_size):
    tree = _example_tree(max_leaf_size)

    labels, distances = tree.query([0.0, 0.0], k=2)

    assert labels[0] == 10.0
    assert labels[1] in (20.0, 30.0)
    assert distances.tolist() == [0.0, 1.0]


def test_example_ties_keep_insertion_order_within_a_leaf():
    tree = _example_tree(max_leaf_size=4)

    labels, distances = tree.query([0.0, 0.0], k=3)

    assert labels.tolist() == [10.0, 20.0, 30.0]
    assert distances.tolist() == [0.0, 1.0, 1.0]


@pytest.mark.parametrize("dimension", [1, 2, 3, 6])
@pytest.mark.parametrize("k", [1, 5, 16])
def test_knn_matches_bruteforce_distances(dimension, k):
    points = _random_points(400, dimension, seed=dimension)
    labels = np.arange(400, dtype=np.float64)
    tree = KDTree(max_leaf_size=16).build(points, labels)
    queries = _random_points(25, dimension, seed=100 + dimension)

    for query in queries:
        got_labels, got_distances, got_indices = tree.query(query, k, return_indices=True)
        ref_indices, ref_distances = bruteforce_knn(points, query, k)

        assert np.allclose(got_distances, ref_distances)
        assert np.all(np.diff(got_distances) >= 0)
        np.testing.assert_array_equal(got_labels, labels[got_indices])
        assert np.allclose(np.linalg.norm(points[got_indices] - query, axis=1), got_distances)


@pytest.mark.parametrize("name", ["manhattan", "chebyshev", "minkowski3"])
def test_knn_matches_bruteforce_for_other_metrics(name):
    metric = get_metric(name)
    points = _random_points(300, 3, seed=7)
    tree = KDTree(max_leaf_size=8, metric=name).build(points, np.zeros(300))

    for query in _random_points(10, 3, seed=8):
        _, distances = tree.query(query, 6)
        reference = np.sort(metric.pairwise(query, points)[0])[:6]
        assert np.allclose(distances, reference)


def test_custom_metric_without_axis_bound_is_still_exact():
    def scaled(a, b):
        return float(np.linalg.norm((a - b) * np.asarray([0.1, 10.0])))

    points = _random_points(120, 2, seed=12)
    tree = KDTree(max_leaf_size=4, metric=scaled).build(points, np.zeros(120))
    query = np.asarray([0.3, -0.2])

    _, distances = tree.query(query, 5)
    reference = np.sort([scaled(query, p) for p in points])[:5]
    assert np.allclose(distances, reference)


def test_pruning_skips_most_of_the_tree():
    euclidean = get_metric("euclidean")
    scanned = []

    def counting_pairwise(lhs, rhs):
        scanned.append(np.asarray(rhs).shape[0])
        return euclidean.pairwise(lhs, rhs)

    metric = Metric(
        name="counting",
        pairwise_kernel=counting_pairwise,
        pointwise_kernel=euclidean.pointwise_kernel,
        axis_bounded=True,
    )
    points = _random_points(4096, 2, seed=21)
    tree = KDTree(max_leaf_size=16, metric=metric).build(points, np.zeros(4096))

    tree.query([0.1, 0.1], 4)

    assert sum(scanned) < points.shape[0] // 4


def test_repeated_queries_are_identical():
    points = _random_points(256, 3, seed=31)
    tree = KDTree(max_leaf_size=8).build(points, np.arange(256, dtype=np.float64))
    query = _random_points(1, 3, seed=32)[0]

    first = tree.query(query, 7, return_indices=True)
    second = tree.query(query, 7, return_indices=True)

    for lhs, rhs in zip(first, second):
        np.testing.assert_array_equal(lhs, rhs)


def test_increasing_k_preserves_prefix():
    points = _random_points(300, 2, seed=41)
    tree = KDTree(max_leaf_size=10).build(points, np.arange(300, dtype=np.float64))
    query = np.asarray([0.25, -0.5])

    previous = None
    for k in range(1, 11):
        _, distances, indices = tree.query(query, k, return_indices=True)
        if previous is not None:
            assert indices[: k - 1].tolist() == previous.tolist()
        previous = indices


def test_k_larger_than_training_set_returns_everything():
    tree = _example_tree(max_leaf_size=2)

    labels, distances = tree.query([0.0, 0.0], k=10)

    assert len(labels) == 4
    assert sorted(labels.tolist()) == [10.0, 20.0, 30.0, 100.0]
    assert np.all(np.diff(distances) >= 0)


def test_single_leaf_degenerates_to_bruteforce():
    points = _random_points(6, 2, seed=51)
    tree = KDTree(max_leaf_size=6).build(points, np.zeros(6))
    query = np.asarray([0.0, 0.0])

    _, distances, indices = tree.query(query, 6, return_indices=True)
    ref_indices, ref_distances = bruteforce_knn(points, query, 6)

    assert tree.stats.num_partitions == 0
    assert indices.tolist() == ref_indices.tolist()
    assert np.allclose(distances, ref_distances)


def test_query_on_bare_index_raises():
    with pytest.raises(InvalidState):
        KDTree().query([0.0, 0.0], 1)


@pytest.mark.parametrize(
    "point, k",
    [
        ([0.0, 0.0, 0.0], 1),
        ([0.0], 1),
        ([0.0, np.inf], 1),
        ([0.0, 0.0], 0),
        ([[0.0, 0.0], [1.0, 1.0]], 1),
    ],
)
def test_query_rejects_invalid_input(point, k):
    tree = _example_tree()
    with pytest.raises(InvalidInput):
        tree.query(point, k)


def test_query_batch_matches_single_queries():
    points = _random_points(200, 3, seed=61)
    tree = KDTree(max_leaf_size=5).build(points, np.arange(200, dtype=np.float64))
    queries = _random_points(12, 3, seed=62)

    results = tree.query_batch(queries, 4)

    assert len(results) == 12
    for query, result in zip(queries, results):
        labels, distances = tree.query(query, 4)
        np.testing.assert_array_equal(result.labels, labels)
        np.testing.assert_array_equal(result.distances, distances)
        assert len(result) == 4


def test_range_query_matches_bruteforce():
    points = _random_points(500, 2, seed=71)
    tree = KDTree(max_leaf_size=12).build(points, np.arange(500, dtype=np.float64))
    query = np.asarray([0.2, 0.1])

    result = tree.range(query, 0.4)

    dists = np.linalg.norm(points - query, axis=1)
    expected = np.flatnonzero(dists <= 0.4)
    assert sorted(result.indices.tolist()) == sorted(expected.tolist())
    assert np.all(result.distances <= 0.4)
    assert np.all(np.diff(result.distances) >= 0)


def test_range_query_boundary_and_errors():
    tree = _example_tree()

    result = tree.range([0.0, 0.0], 1.0)
    assert sorted(result.labels.tolist()) == [10.0, 20.0, 30.0]
    assert len(tree.range([2.5, 2.5], 0.1)) == 0
    with pytest.raises(InvalidInput):
        tree.range([0.0, 0.0], -1.0)
