from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from sklearn.model_selection import StratifiedKFold

from .evaluate import binomial_confidence_interval, calculate_accuracy
from .features import FeatureNameGenerator
from .model import FormClassifier
from .subsets import enumerate_subsets, subset_label


class FeatureColumnError(ValueError):
    """A feature column required by a location subset is absent or unusable."""


@dataclass(frozen=True)
class EvaluationRecord:
    index: int
    subset: Tuple[str, ...]
    n_features: int
    fold_accuracies: Tuple[float, ...]
    cv_accuracy: float
    cv_accuracy_sd: float
    oos_accuracy: float
    ci_lower: float
    ci_upper: float
    n_correct: int
    n_validation: int

    @property
    def label(self) -> str:
        return subset_label(self.subset)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'subset': self.label,
            'n_locations': len(self.subset),
            'n_features': self.n_features,
            'cv_accuracy': self.cv_accuracy,
            'cv_accuracy_sd': self.cv_accuracy_sd,
            'oos_accuracy': self.oos_accuracy,
            'ci_lower': self.ci_lower,
            'ci_upper': self.ci_upper,
            'n_correct': self.n_correct,
            'n_validation': self.n_validation,
        }


@dataclass(frozen=True)
class SubsetResult:
    record: EvaluationRecord
    model: Optional[FormClassifier] = field(default=None, compare=False)
    validation_predictions: Optional[np.ndarray] = field(default=None, compare=False)


def results_table(records: Sequence[EvaluationRecord]) -> pd.DataFrame:
    """One row per record, in enumeration order."""
    return pd.DataFrame([record.to_dict() for record in records])


class SubsetEvaluator:
    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.label_col = config['data'].get('label_col', 'classe')
        self.n_folds = int(config['training'].get('n_folds', 5))
        self.seed = int(config['training'].get('seed', 42))
        self.confidence_level = float(config['training'].get('confidence_level', 0.95))
        self.names = FeatureNameGenerator(config)

    def _check_columns(self, df: pd.DataFrame, columns: List[str], partition: str) -> None:
        """Every subset column must be present and numeric in the partition."""
        missing = [col for col in columns if col not in df.columns]
        if missing:
            raise FeatureColumnError(f"{partition} partition is missing feature columns: {missing}")

        unusable = [
            col for col in columns
            if not pd.api.types.is_numeric_dtype(df[col]) or df[col].isna().all()
        ]
        if unusable:
            raise FeatureColumnError(f"{partition} partition has non-numeric feature columns: {unusable}")

    def cross_validate(self, X: pd.DataFrame, y: np.ndarray, feature_cols: List[str]) -> List[float]:
        """Per-fold accuracy of stratified k-fold cross-validation."""
        cv = StratifiedKFold(n_splits=self.n_folds, shuffle=True, random_state=self.seed)

        fold_scores = []
        for fold, (train_idx, val_idx) in enumerate(cv.split(X, y)):
            model = FormClassifier(self.config, feature_cols)
            model.fit(X.iloc[train_idx], y[train_idx])
            val_preds = model.predict(X.iloc[val_idx])
            fold_scores.append(calculate_accuracy(y[val_idx], val_preds))

        return fold_scores

    def evaluate(
        self,
        index: int,
        subset: Sequence[str],
        training: pd.DataFrame,
        validation: pd.DataFrame,
    ) -> SubsetResult:
        """
        Train and score a classifier on one location subset.

        Cross-validation on the training partition gives the in-sample
        accuracy estimate. A final classifier fitted on the whole training
        partition is then scored once on the validation partition.
        """
        subset = tuple(subset)
        feature_cols = self.names.columns_for(subset)
        self._check_columns(training, feature_cols, 'training')
        self._check_columns(validation, feature_cols, 'validation')

        X_train = training[[self.label_col] + feature_cols]
        X_val = validation[[self.label_col] + feature_cols]
        y_train = X_train[self.label_col].to_numpy()
        y_val = X_val[self.label_col].to_numpy()

        fold_scores = self.cross_validate(X_train, y_train, feature_cols)

        model = FormClassifier(self.config, feature_cols)
        model.fit(X_train, y_train)
        val_preds = model.predict(X_val)

        n_validation = len(y_val)
        n_correct = int(np.sum(val_preds == y_val))
        ci_lower, ci_upper = binomial_confidence_interval(
            n_correct, n_validation, self.confidence_level
        )

        record = EvaluationRecord(
            index=index,
            subset=subset,
            n_features=len(feature_cols),
            fold_accuracies=tuple(fold_scores),
            cv_accuracy=float(np.mean(fold_scores)),
            cv_accuracy_sd=float(np.std(fold_scores, ddof=1)),
            oos_accuracy=n_correct / n_validation,
            ci_lower=ci_lower,
            ci_upper=ci_upper,
            n_correct=n_correct,
            n_validation=n_validation,
        )
        return SubsetResult(record=record, model=model, validation_predictions=val_preds)

    def evaluate_all(
        self,
        training: pd.DataFrame,
        validation: pd.DataFrame,
        universe: Optional[Sequence[str]] = None,
    ) -> List[SubsetResult]:
        """Evaluate every location subset in enumeration order."""
        universe = list(universe) if universe is not None else self.names.locations
        subsets = enumerate_subsets(universe)

        print(f"\n{'='*60}")
        print(f"Evaluating {len(subsets)} sensor location subsets "
              f"({self.n_folds}-fold cross-validation each)")
        print(f"{'='*60}")

        results = []
        for index, subset in enumerate(subsets):
            result = self.evaluate(index, subset, training, validation)
            record = result.record
            results.append(result)

            print(f"[{index + 1:2d}/{len(subsets)}] {record.label:<28} "
                  f"CV: {record.cv_accuracy:.4f} ± {record.cv_accuracy_sd:.4f}  "
                  f"OOS: {record.oos_accuracy:.4f} "
                  f"[{record.ci_lower:.4f}, {record.ci_upper:.4f}]")

        return results
