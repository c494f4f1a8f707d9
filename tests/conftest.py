import copy

import numpy as np
import pandas as pd
import pytest

from liftform.features import feature_names


CLASSES = ['A', 'B', 'C', 'D', 'E']
LOCATIONS = ['belt', 'arm', 'dumbbell', 'forearm']

TEST_CONFIG = {
    'data': {
        'train_path': 'pml-training.csv',
        'test_path': 'pml-testing.csv',
        'label_col': 'classe',
        'id_col': 'problem_id',
        'classes': CLASSES,
        'null_values': ["NA", "", "#DIV/0!"],
        'drop_cols': ['X', 'user_name', 'raw_timestamp_part_1', 'raw_timestamp_part_2',
                      'cvtd_timestamp', 'new_window', 'num_window'],
        'max_na_fraction': 0.9,
    },
    'features': {
        'locations': LOCATIONS,
        'scalar_measurements': ['roll', 'pitch', 'yaw', 'total_accel'],
        'axial_measurements': ['gyros', 'accel', 'magnet'],
        'axes': ['x', 'y', 'z'],
    },
    'training': {
        'seed': 7,
        'n_folds': 5,
        'train_fraction': 0.7,
        'confidence_level': 0.95,
        'model_type': 'random_forest',
    },
    'lgbm': {
        'n_estimators': 20,
        'learning_rate': 0.1,
        'num_leaves': 7,
        'min_child_samples': 5,
        'n_jobs': 1,
        'deterministic': True,
        'verbose': -1,
    },
    'random_forest': {
        'n_estimators': 15,
        'max_features': 'sqrt',
        'n_jobs': 1,
    },
    'output': {
        'results_dir': 'results',
        'save_plots': False,
        'save_model': True,
        'save_feature_importance': True,
    },
}


def make_sensor_frame(n_per_class=30, locations=LOCATIONS, informative=('belt',), seed=0):
    """
    Synthetic observations following the dataset's column naming.

    Columns of the informative locations are shifted by class so that those
    subsets separate the classes; the others are pure noise.
    """
    rng = np.random.default_rng(seed)
    labels = np.repeat(CLASSES, n_per_class)
    class_offset = np.repeat(np.arange(len(CLASSES)), n_per_class).astype(float)

    data = {}
    for location in locations:
        for col in feature_names([location]):
            values = rng.normal(0.0, 1.0, size=len(labels))
            if location in informative:
                values = values + 3.0 * class_offset
            data[col] = values

    df = pd.DataFrame(data)
    df['classe'] = labels
    return df.sample(frac=1.0, random_state=seed).reset_index(drop=True)


@pytest.fixture
def config():
    return copy.deepcopy(TEST_CONFIG)


@pytest.fixture
def sensor_frame():
    return make_sensor_frame()


@pytest.fixture
def raw_csv_files(tmp_path):
    """Labeled and unlabeled CSVs shaped like the raw dataset files."""
    labeled = make_sensor_frame(n_per_class=20, seed=1)
    n = len(labeled)

    labeled.insert(0, 'X', np.arange(1, n + 1))
    labeled.insert(1, 'user_name', 'carlitos')
    labeled.insert(2, 'new_window', 'no')
    labeled.insert(3, 'num_window', np.arange(n) // 10)

    kurtosis = np.full(n, 'NA', dtype=object)
    kurtosis[::25] = '#DIV/0!'
    kurtosis[5] = '1.25'
    labeled['kurtosis_roll_belt'] = kurtosis
    labeled['amplitude_yaw_arm'] = ''

    unlabeled = make_sensor_frame(n_per_class=4, seed=2).drop(columns=['classe'])
    unlabeled.insert(0, 'X', np.arange(1, len(unlabeled) + 1))
    unlabeled['kurtosis_roll_belt'] = 'NA'
    unlabeled['problem_id'] = np.arange(1, len(unlabeled) + 1)

    train_path = tmp_path / 'pml-training.csv'
    test_path = tmp_path / 'pml-testing.csv'
    labeled.to_csv(train_path, index=False)
    unlabeled.to_csv(test_path, index=False)
    return train_path, test_path
