import numpy as np
import pandas as pd
import pytest

from conftest import make_sensor_frame
from liftform.model import FormClassifier
from liftform.partition import partition_dataset
from liftform.selection import select_best
from liftform.train import FeatureColumnError, SubsetEvaluator, results_table


@pytest.fixture
def two_location_config(config):
    config['features']['locations'] = ['belt', 'arm']
    return config


@pytest.fixture
def partition():
    df = make_sensor_frame(n_per_class=30, locations=['belt', 'arm'], informative=('belt',))
    return partition_dataset(df, 'classe', train_fraction=0.7, seed=7)


def test_evaluate_single_subset(two_location_config, partition):
    evaluator = SubsetEvaluator(two_location_config)
    result = evaluator.evaluate(0, ('belt',), partition.training, partition.validation)
    record = result.record

    assert record.subset == ('belt',)
    assert record.n_features == 13
    assert len(record.fold_accuracies) == 5
    assert record.cv_accuracy == pytest.approx(np.mean(record.fold_accuracies))
    assert record.n_validation == len(partition.validation)
    assert record.oos_accuracy == pytest.approx(record.n_correct / record.n_validation)
    assert record.ci_lower <= record.oos_accuracy <= record.ci_upper
    assert record.oos_accuracy > 0.8
    assert len(result.validation_predictions) == len(partition.validation)
    assert result.model.feature_cols[0] == 'roll_belt'


def test_evaluate_all_two_locations(two_location_config, partition):
    evaluator = SubsetEvaluator(two_location_config)
    results = evaluator.evaluate_all(partition.training, partition.validation)
    records = [r.record for r in results]

    assert [r.subset for r in records] == [('belt',), ('arm',), ('belt', 'arm')]
    assert [r.index for r in records] == [0, 1, 2]
    for record in records:
        assert record.ci_lower <= record.oos_accuracy <= record.ci_upper

    state = select_best(results)
    assert all(state.record.oos_accuracy >= r.oos_accuracy for r in records)
    # the arm channels carry no class signal
    assert state.record.subset != ('arm',)

    table = results_table(records)
    assert list(table['subset']) == ['belt', 'arm', 'belt+arm']


def test_same_seed_same_results(two_location_config, partition):
    first = SubsetEvaluator(two_location_config).evaluate_all(partition.training, partition.validation)
    second = SubsetEvaluator(two_location_config).evaluate_all(partition.training, partition.validation)

    assert [r.record for r in first] == [r.record for r in second]
    assert select_best(first).record == select_best(second).record


def test_lightgbm_subset(two_location_config, partition):
    two_location_config['training']['model_type'] = 'lightgbm'
    evaluator = SubsetEvaluator(two_location_config)
    result = evaluator.evaluate(0, ('belt',), partition.training, partition.validation)

    assert result.model.model_type == 'lightgbm'
    assert result.record.ci_lower <= result.record.oos_accuracy <= result.record.ci_upper
    assert set(result.validation_predictions) <= {'A', 'B', 'C', 'D', 'E'}


def test_missing_feature_column_is_fatal(two_location_config, partition):
    training = partition.training.drop(columns=['gyros_arm_y'])
    evaluator = SubsetEvaluator(two_location_config)

    with pytest.raises(FeatureColumnError, match='gyros_arm_y'):
        evaluator.evaluate(1, ('arm',), training, partition.validation)

    with pytest.raises(FeatureColumnError):
        evaluator.evaluate_all(training, partition.validation)


def test_non_numeric_feature_column_is_fatal(two_location_config, partition):
    validation = partition.validation.copy()
    validation['roll_belt'] = 'n/a'
    evaluator = SubsetEvaluator(two_location_config)

    with pytest.raises(FeatureColumnError, match='roll_belt'):
        evaluator.evaluate(0, ('belt',), partition.training, validation)


def test_classifier_requires_fit(config):
    model = FormClassifier(config, ['roll_belt'])
    with pytest.raises(ValueError):
        model.predict(pd.DataFrame({'roll_belt': [0.0]}))


def test_classifier_fits_once(config, sensor_frame):
    model = FormClassifier(config, ['roll_belt', 'pitch_belt'])
    model.fit(sensor_frame, sensor_frame['classe'])
    with pytest.raises(ValueError):
        model.fit(sensor_frame, sensor_frame['classe'])


def test_classifier_save_and_load(config, sensor_frame, tmp_path):
    model = FormClassifier(config, ['roll_belt', 'pitch_belt', 'yaw_belt'])
    model.fit(sensor_frame, sensor_frame['classe'])
    path = tmp_path / 'models' / 'model.pkl'
    model.save(path)

    loaded = FormClassifier.load(path)
    np.testing.assert_array_equal(loaded.predict(sensor_frame), model.predict(sensor_frame))
    proba = loaded.predict_proba(sensor_frame)
    assert list(proba.columns) == ['A', 'B', 'C', 'D', 'E']
    assert np.allclose(proba.sum(axis=1), 1.0)


def test_feature_importance(config, sensor_frame):
    model = FormClassifier(config, ['roll_belt', 'roll_arm'])
    model.fit(sensor_frame, sensor_frame['classe'])
    importance = model.get_feature_importance()
    assert importance.iloc[0]['feature'] == 'roll_belt'
