import numpy as np
import pandas as pd
import pytest

from liftform.data_loader import DataLoader


def test_load_data_cleans_columns(config, raw_csv_files, tmp_path):
    loader = DataLoader(config, base_path=tmp_path)
    train_df, test_df = loader.load_data()

    sensor_cols = loader.sensor_columns(train_df)
    assert len(sensor_cols) == 52
    assert 'X' not in train_df.columns
    assert 'user_name' not in train_df.columns
    assert 'kurtosis_roll_belt' not in train_df.columns
    assert 'amplitude_yaw_arm' not in train_df.columns
    assert list(train_df.columns) == sensor_cols + ['classe']

    assert list(test_df.columns) == ['problem_id'] + sensor_cols
    assert len(test_df) == 20
    assert train_df[sensor_cols].isna().sum().sum() == 0


def test_missing_file_raises(config, tmp_path):
    config['data']['train_path'] = 'missing.csv'
    with pytest.raises(FileNotFoundError):
        DataLoader(config, base_path=tmp_path).load_data()


def test_na_check_rejects_remaining_missing_values(config, sensor_frame):
    df = sensor_frame.copy()
    df.loc[0:4, 'yaw_arm'] = np.nan
    with pytest.raises(ValueError, match='missing values'):
        DataLoader(config).clean_labeled(df)


def test_unknown_class_rejected(config, sensor_frame):
    df = sensor_frame.copy()
    df.loc[0, 'classe'] = 'F'
    with pytest.raises(ValueError, match='unknown classes'):
        DataLoader(config).clean_labeled(df)


def test_missing_label_column(config, sensor_frame):
    with pytest.raises(KeyError):
        DataLoader(config).clean_labeled(sensor_frame.drop(columns=['classe']))


def test_unlabeled_missing_columns(config, sensor_frame):
    loader = DataLoader(config)
    clean = loader.clean_labeled(sensor_frame)
    unlabeled = sensor_frame.drop(columns=['classe', 'magnet_forearm_z'])
    unlabeled['problem_id'] = np.arange(len(unlabeled))

    with pytest.raises(KeyError, match='magnet_forearm_z'):
        loader.clean_unlabeled(unlabeled, loader.sensor_columns(clean))


def test_class_distribution(config, sensor_frame):
    distribution = DataLoader(config).class_distribution(sensor_frame)
    assert list(distribution['classe']) == ['A', 'B', 'C', 'D', 'E']
    assert distribution['count'].sum() == len(sensor_frame)
    assert distribution['proportion'].sum() == pytest.approx(1.0)
