import numpy as np
import pytest

from kdneighbors.datasets import ColumnType, Labeled, Unlabeled
from kdneighbors.errors import InvalidInput
from kdneighbors.stats import mean, weighted_mean


def test_column_types_are_inferred_per_column():
    dataset = Unlabeled([[1.0, "a", 3], [2.0, "b", 4]])

    assert dataset.types() == (
        ColumnType.CONTINUOUS,
        ColumnType.CATEGORICAL,
        ColumnType.CONTINUOUS,
    )
    assert dataset.type_count(ColumnType.CONTINUOUS) == 2
    assert not dataset.is_continuous()
    assert dataset.num_rows == 2
    assert dataset.num_columns == 3


def test_mixed_column_is_categorical():
    dataset = Unlabeled([[1.0], ["x"]])

    assert dataset.column_type(0) is ColumnType.CATEGORICAL


def test_booleans_are_categorical():
    assert Unlabeled([[True, 1.0]]).types()[0] is ColumnType.CATEGORICAL


def test_numpy_samples_round_trip_to_array():
    samples = np.arange(6, dtype=np.float64).reshape(3, 2)
    dataset = Unlabeled(samples)

    assert dataset.is_continuous()
    np.testing.assert_array_equal(dataset.as_array(), samples)
    assert len(dataset) == 3
    assert list(dataset)[1] == (2.0, 3.0)


def test_ragged_samples_rejected():
    with pytest.raises(InvalidInput):
        Unlabeled([[1.0, 2.0], [3.0]])


def test_categorical_dataset_cannot_become_array():
    with pytest.raises(InvalidInput):
        Unlabeled([["a"]]).as_array()


def test_labeled_validates_labels():
    with pytest.raises(InvalidInput):
        Labeled([[1.0], [2.0]], [1.0])
    with pytest.raises(InvalidInput):
        Labeled([[1.0]], ["high"])

    dataset = Labeled(np.ones((2, 2)), np.asarray([1.0, 2.0]))
    assert dataset.labels == [1.0, 2.0]
    np.testing.assert_array_equal(dataset.labels_array(), [1.0, 2.0])


def test_mean_and_weighted_mean():
    assert mean([1.0, 2.0, 6.0]) == pytest.approx(3.0)
    assert weighted_mean([1.0, 3.0], [3.0, 1.0]) == pytest.approx(1.5)


@pytest.mark.parametrize(
    "values, weights",
    [([], []), ([1.0], [1.0, 2.0]), ([1.0, 2.0], [0.0, 0.0]), ([1.0], [-1.0])],
)
def test_weighted_mean_rejects_bad_weights(values, weights):
    with pytest.raises(InvalidInput):
        weighted_mean(values, weights)


def test_mean_rejects_empty():
    with pytest.raises(InvalidInput):
        mean([])
