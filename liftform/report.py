"""
Report rendering: exploration figures, subset results, selected-model
diagnostics and predictions for the unlabeled dataset.
"""

import json
import math
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .data_loader import CLASS_DESCRIPTIONS
from .evaluate import ci_label, class_statistics, confusion_table
from .features import FeatureNameGenerator
from .partition import Partition
from .selection import SelectionState
from .train import EvaluationRecord, results_table


class ReportRenderer:
    def __init__(self, config: Dict[str, Any], output_dir: Path):
        self.config = config
        self.output_dir = Path(output_dir)
        self.figures_dir = self.output_dir / "figures"
        self.label_col = config['data'].get('label_col', 'classe')
        self.id_col = config['data'].get('id_col', 'problem_id')
        self.classes = list(config['data'].get('classes', list(CLASS_DESCRIPTIONS)))
        self.save_plots = config['output'].get('save_plots', True)
        self.confidence_level = float(config['training'].get('confidence_level', 0.95))
        self.names = FeatureNameGenerator(config)
        self.figures: List[Path] = []
        self.predictions: Optional[pd.DataFrame] = None

        self.output_dir.mkdir(parents=True, exist_ok=True)
        if self.save_plots:
            self.figures_dir.mkdir(parents=True, exist_ok=True)

    def _save_figure(self, fig, name: str) -> Optional[Path]:
        path = self.figures_dir / name
        fig.tight_layout()
        fig.savefig(path, dpi=100)
        plt.close(fig)
        self.figures.append(path)
        return path

    # ------------------------------------------------------------------
    # Exploration
    # ------------------------------------------------------------------

    def plot_class_distribution(self, df: pd.DataFrame) -> Optional[Path]:
        if not self.save_plots:
            return None

        sns.set_style("whitegrid")
        fig, ax = plt.subplots(figsize=(8, 5))
        sns.countplot(data=df, x=self.label_col, order=self.classes, color="#4C72B0", ax=ax)
        ax.set_xlabel("Class")
        ax.set_ylabel("Count")
        ax.set_title("Observations per Class", fontweight="bold")
        return self._save_figure(fig, "class_distribution.png")

    def plot_feature_distributions(self, df: pd.DataFrame, location: str) -> Optional[Path]:
        """Box plots of a location's scalar channels by class."""
        if not self.save_plots:
            return None

        columns = [f"{m}_{location}" for m in self.names.scalar_measurements]
        columns = [col for col in columns if col in df.columns]
        if not columns:
            return None

        sns.set_style("whitegrid")
        n_cols = 2
        n_rows = math.ceil(len(columns) / n_cols)
        fig, axes = plt.subplots(n_rows, n_cols, figsize=(12, 4 * n_rows), squeeze=False)

        for idx, col in enumerate(columns):
            ax = axes[idx // n_cols, idx % n_cols]
            sns.boxplot(data=df, x=self.label_col, y=col, order=self.classes, ax=ax)
            ax.set_title(col, fontweight="bold", fontsize=10)
            ax.set_xlabel("")

        for j in range(len(columns), n_rows * n_cols):
            axes[j // n_cols, j % n_cols].axis("off")

        fig.suptitle(f"Feature Distributions by Class: {location}", fontsize=13)
        return self._save_figure(fig, f"features_{location}.png")

    def plot_correlation(self, df: pd.DataFrame, columns: Sequence[str]) -> Optional[Path]:
        if not self.save_plots or len(columns) < 2:
            return None

        corr = df[list(columns)].corr()
        mask = np.triu(np.ones_like(corr, dtype=bool))

        fig, ax = plt.subplots(figsize=(18, 14))
        sns.heatmap(corr, mask=mask, cmap="viridis", center=0, linewidths=0.2, ax=ax)
        ax.set_title("Correlation Heatmap: Sensor Features", fontsize=16)
        ax.set_xticklabels(ax.get_xticklabels(), rotation=90, fontsize=7)
        ax.set_yticklabels(ax.get_yticklabels(), fontsize=7)
        return self._save_figure(fig, "feature_correlation.png")

    def explore(self, training: pd.DataFrame) -> pd.DataFrame:
        """Exploration on the training partition; returns per-class feature means."""
        sensor_cols = [col for col in self.names.all_columns() if col in training.columns]

        self.plot_class_distribution(training)
        for location in self.names.locations:
            self.plot_feature_distributions(training, location)
        self.plot_correlation(training, sensor_cols)

        return training.groupby(self.label_col)[sensor_cols].mean().T

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------

    def plot_accuracy(self, records: Sequence[EvaluationRecord]) -> Optional[Path]:
        """In-sample vs out-of-sample accuracy per subset, with the validation CI."""
        if not self.save_plots:
            return None

        table = results_table(records)
        x = np.arange(len(table))

        sns.set_style("whitegrid")
        fig, ax = plt.subplots(figsize=(14, 6))
        ax.errorbar(
            x - 0.15, table['cv_accuracy'], yerr=table['cv_accuracy_sd'],
            fmt='o', capsize=3, label="Cross-validation (mean ± sd)",
        )
        ax.errorbar(
            x + 0.15, table['oos_accuracy'],
            yerr=[table['oos_accuracy'] - table['ci_lower'], table['ci_upper'] - table['oos_accuracy']],
            fmt='s', capsize=3, label=f"Validation ({ci_label(self.confidence_level)})",
        )
        ax.set_xticks(x)
        ax.set_xticklabels(table['subset'], rotation=45, ha="right")
        ax.set_ylabel("Accuracy")
        ax.set_title("Accuracy by Sensor Location Subset", fontweight="bold")
        ax.legend()
        return self._save_figure(fig, "subset_accuracy.png")

    def plot_confusion_matrix(self, table: pd.DataFrame) -> Optional[Path]:
        if not self.save_plots:
            return None

        fig, ax = plt.subplots(figsize=(7, 6))
        sns.heatmap(table, annot=True, fmt="d", cmap="Blues", cbar=False, ax=ax)
        ax.set_title("Confusion Matrix: Selected Model on Validation Set", fontweight="bold")
        return self._save_figure(fig, "confusion_matrix.png")

    def plot_feature_importance(self, importance_df: pd.DataFrame, top_n: int = 20) -> Optional[Path]:
        if not self.save_plots:
            return None

        top = importance_df.head(top_n)
        fig, ax = plt.subplots(figsize=(8, max(4, 0.35 * len(top))))
        sns.barplot(data=top, x='importance', y='feature', color="#55A868", ax=ax)
        ax.set_title(f"Top {len(top)} Features: Selected Model", fontweight="bold")
        return self._save_figure(fig, "feature_importance.png")

    def predict_unlabeled(self, state: SelectionState, test_df: pd.DataFrame) -> pd.DataFrame:
        """Apply the selected model to the unlabeled dataset."""
        predictions = state.model.predict(test_df)
        return pd.DataFrame({
            self.id_col: test_df[self.id_col].to_numpy(),
            f"predicted_{self.label_col}": predictions,
        })

    def render(
        self,
        records: Sequence[EvaluationRecord],
        state: SelectionState,
        partition: Partition,
        test_df: pd.DataFrame,
        class_distribution: Optional[pd.DataFrame] = None,
    ) -> Dict[str, Path]:
        """
        Write every report artifact and return their paths.

        Artifacts: results.csv, confusion_matrix.csv, class_statistics.csv,
        predictions.csv, run_summary.json, report.md and, when enabled, the
        figures and the pickled selected model.
        """
        print("Rendering report...")
        class_means = self.explore(partition.training)

        table = results_table(records)
        best = state.record
        y_val = partition.validation[self.label_col].to_numpy()
        val_preds = state.best.validation_predictions
        confusion = confusion_table(y_val, val_preds, self.classes)
        stats = class_statistics(y_val, val_preds, self.classes)
        predictions = self.predict_unlabeled(state, test_df)
        self.predictions = predictions

        self.plot_accuracy(records)
        self.plot_confusion_matrix(confusion)

        paths = {
            'results': self.output_dir / "results.csv",
            'confusion_matrix': self.output_dir / "confusion_matrix.csv",
            'class_statistics': self.output_dir / "class_statistics.csv",
            'predictions': self.output_dir / "predictions.csv",
            'summary': self.output_dir / "run_summary.json",
            'report': self.output_dir / "report.md",
        }
        table.to_csv(paths['results'], index=False)
        confusion.to_csv(paths['confusion_matrix'])
        stats.to_csv(paths['class_statistics'])
        predictions.to_csv(paths['predictions'], index=False)

        importance_df = None
        if self.config['output'].get('save_feature_importance', True):
            importance_df = state.model.get_feature_importance()
            paths['feature_importance'] = self.output_dir / "feature_importance.csv"
            importance_df.to_csv(paths['feature_importance'], index=False)
            self.plot_feature_importance(importance_df)

        if self.config['output'].get('save_model', True):
            paths['model'] = self.output_dir / "models" / "best_model.pkl"
            state.model.save(paths['model'])

        summary = {
            'generated_at': datetime.now().isoformat(timespec='seconds'),
            'model_type': state.model.model_type,
            'seed': self.config['training'].get('seed'),
            'n_folds': self.config['training'].get('n_folds'),
            'n_training': len(partition.training),
            'n_validation': len(partition.validation),
            'n_subsets': len(records),
            'best': best.to_dict(),
        }
        with open(paths['summary'], 'w') as f:
            json.dump(summary, f, indent=2, default=float)

        self._write_markdown(
            paths['report'], table, state, partition, confusion, stats,
            predictions, class_means, class_distribution, importance_df,
        )

        print(f"✓ Report saved to {paths['report']}")
        return paths

    def _write_markdown(
        self, path, table, state, partition, confusion, stats,
        predictions, class_means, class_distribution, importance_df,
    ) -> None:
        best = state.record
        lines = [
            "# Weight Lifting Exercise Form Classification",
            "",
            f"Generated {datetime.now().strftime('%Y-%m-%d %H:%M:%S')} "
            f"with a {state.model.model_type} classifier.",
            "",
            "## Data",
            "",
            f"- Training partition: {len(partition.training)} observations",
            f"- Validation partition: {len(partition.validation)} observations",
            f"- Sensor locations: {', '.join(self.names.locations)}",
            "",
        ]
        if class_distribution is not None:
            lines += ["### Class distribution", "", "```", class_distribution.to_string(index=False), "```", ""]

        lines += [
            "### Feature means by class (training partition)", "",
            "```", class_means.round(3).to_string(), "```", "",
            "## Sensor location subsets", "",
            "```",
            table.drop(columns=['n_correct']).round(4).to_string(index=False),
            "```", "",
            "## Selected model", "",
            f"- Locations: **{best.label}** ({best.n_features} features)",
            f"- Cross-validation accuracy: {best.cv_accuracy:.4f} ± {best.cv_accuracy_sd:.4f}",
            f"- Validation accuracy: {best.oos_accuracy:.4f} "
            f"({ci_label(self.confidence_level)} {best.ci_lower:.4f} - {best.ci_upper:.4f})",
            f"- Expected out-of-sample error: {1 - best.oos_accuracy:.4f}",
            "",
            "### Confusion matrix (validation)", "",
            "```", confusion.to_string(), "```", "",
            "### Statistics by class", "",
            "```", stats.round(4).to_string(), "```", "",
        ]
        if importance_df is not None:
            lines += ["### Top features", "", "```", importance_df.head(20).to_string(index=False), "```", ""]

        lines += ["## Predictions", "", "```", predictions.to_string(index=False), "```", ""]

        if self.figures:
            lines += ["## Figures", ""]
            lines += [f"![{fig.stem}](figures/{fig.name})" for fig in self.figures]
            lines.append("")

        with open(path, 'w', encoding='utf-8') as f:
            f.write("\n".join(lines))
