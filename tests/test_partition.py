import pandas as pd
import pytest

from liftform.partition import partition_dataset


def test_partition_disjoint_and_complete(sensor_frame):
    partition = partition_dataset(sensor_frame, 'classe', train_fraction=0.7, seed=1)
    training, validation = partition.training, partition.validation

    assert len(training) + len(validation) == len(sensor_frame)
    assert training.index.intersection(validation.index).empty
    assert set(training.index) | set(validation.index) == set(sensor_frame.index)
    assert partition.sizes == (105, 45)


def test_partition_is_stratified(sensor_frame):
    partition = partition_dataset(sensor_frame, 'classe', train_fraction=0.7, seed=1)
    full = sensor_frame['classe'].value_counts(normalize=True)

    for part in (partition.training, partition.validation):
        proportions = part['classe'].value_counts(normalize=True)
        for label, expected in full.items():
            assert proportions[label] == pytest.approx(expected, abs=0.03)


def test_partition_same_seed_same_split(sensor_frame):
    first = partition_dataset(sensor_frame, 'classe', seed=3)
    second = partition_dataset(sensor_frame, 'classe', seed=3)
    assert list(first.training.index) == list(second.training.index)


def test_partition_rejects_empty_dataset(sensor_frame):
    with pytest.raises(ValueError):
        partition_dataset(sensor_frame.iloc[0:0], 'classe')


def test_partition_rejects_bad_fraction(sensor_frame):
    with pytest.raises(ValueError):
        partition_dataset(sensor_frame, 'classe', train_fraction=1.0)


def test_partition_requires_label(sensor_frame):
    with pytest.raises(KeyError):
        partition_dataset(sensor_frame.drop(columns=['classe']), 'classe')


def test_partition_rejects_duplicate_index(sensor_frame):
    duplicated = pd.concat([sensor_frame, sensor_frame])
    with pytest.raises(ValueError):
        partition_dataset(duplicated, 'classe')
