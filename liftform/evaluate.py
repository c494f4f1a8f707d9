from typing import Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.stats import binomtest
from sklearn.metrics import accuracy_score, confusion_matrix


def calculate_accuracy(y_true, y_pred) -> float:
    """Calculate overall accuracy."""
    return float(accuracy_score(y_true, y_pred))


def binomial_confidence_interval(
    n_correct: int,
    n_total: int,
    confidence_level: float = 0.95,
) -> Tuple[float, float]:
    """
    Exact (Clopper-Pearson) two-sided confidence interval for an accuracy.

    Args:
        n_correct: Number of correct classifications
        n_total: Number of classified observations
        confidence_level: Coverage of the interval

    Returns:
        lower, upper: Interval bounds on the proportion correct
    """
    if n_total <= 0:
        raise ValueError("n_total must be positive")
    if not 0 <= n_correct <= n_total:
        raise ValueError(f"n_correct must be in [0, {n_total}], got {n_correct}")

    ci = binomtest(int(n_correct), int(n_total)).proportion_ci(
        confidence_level=confidence_level, method='exact'
    )
    return float(ci.low), float(ci.high)


def confusion_table(y_true, y_pred, labels: Sequence[str]) -> pd.DataFrame:
    """
    Confusion matrix with predictions as rows and reference classes as columns.
    """
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    table = pd.DataFrame(cm.T, index=list(labels), columns=list(labels))
    table.index.name = 'Prediction'
    table.columns.name = 'Reference'
    return table


def class_statistics(y_true, y_pred, labels: Sequence[str]) -> pd.DataFrame:
    """
    One-vs-rest statistics for every class.

    Returns a frame indexed by class with sensitivity, specificity, positive
    and negative predictive value, prevalence and balanced accuracy.
    """
    cm = confusion_matrix(y_true, y_pred, labels=list(labels))
    total = cm.sum()

    rows = []
    for i, label in enumerate(labels):
        tp = cm[i, i]
        fn = cm[i, :].sum() - tp
        fp = cm[:, i].sum() - tp
        tn = total - tp - fn - fp

        sensitivity = tp / (tp + fn) if (tp + fn) > 0 else np.nan
        specificity = tn / (tn + fp) if (tn + fp) > 0 else np.nan
        rows.append({
            'class': label,
            'sensitivity': sensitivity,
            'specificity': specificity,
            'pos_pred_value': tp / (tp + fp) if (tp + fp) > 0 else np.nan,
            'neg_pred_value': tn / (tn + fn) if (tn + fn) > 0 else np.nan,
            'prevalence': (tp + fn) / total if total > 0 else np.nan,
            'balanced_accuracy': (sensitivity + specificity) / 2,
        })

    return pd.DataFrame(rows).set_index('class')


def ci_label(confidence_level: float) -> str:
    """Interval label for a confidence level, e.g. '95% CI'."""
    return f"{confidence_level:.0%} CI"


def print_evaluation_summary(
    y_true,
    y_pred,
    labels: Sequence[str],
    confidence_level: float = 0.95,
) -> None:
    """Print a comprehensive evaluation summary."""
    n_total = len(y_true)
    n_correct = int(np.sum(np.asarray(y_true) == np.asarray(y_pred)))
    lower, upper = binomial_confidence_interval(n_correct, n_total, confidence_level)

    print("=" * 60)
    print("EVALUATION SUMMARY")
    print("=" * 60)
    print(f"Accuracy: {calculate_accuracy(y_true, y_pred):.4f} "
          f"({ci_label(confidence_level)} {lower:.4f} - {upper:.4f}, {n_correct}/{n_total})")
    print("\nConfusion Matrix:")
    print(confusion_table(y_true, y_pred, labels).to_string())
    print("\nStatistics by Class:")
    print(class_statistics(y_true, y_pred, labels).round(4).to_string())
    print("=" * 60)
