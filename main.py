#!/usr/bin/env python
"""
Weight Lifting Exercises - Sensor Location Subset Search
Main execution script: load, partition, evaluate subsets, select, report
"""

import argparse
import sys
import traceback
import warnings
from datetime import datetime
from pathlib import Path

import numpy as np

from liftform.config import PROJECT_ROOT, load_config, apply_overrides
from liftform.data_loader import CLASS_DESCRIPTIONS, DataLoader
from liftform.evaluate import print_evaluation_summary
from liftform.partition import partition_dataset
from liftform.report import ReportRenderer
from liftform.selection import select_best
from liftform.train import SubsetEvaluator

warnings.filterwarnings('ignore')


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Weight lifting form classification report")
    parser.add_argument("--config", type=str, default=None, help="Path to config YAML")
    parser.add_argument("--train-path", type=str, default=None, help="Labeled CSV")
    parser.add_argument("--test-path", type=str, default=None, help="Unlabeled CSV")
    parser.add_argument("--output-dir", type=str, default=None, help="Results directory")
    parser.add_argument(
        "--model-type", type=str, default=None,
        choices=["lightgbm", "random_forest"], help="Classifier to train per subset",
    )
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--no-plots", action="store_true", help="Skip figure rendering")
    return parser.parse_args(argv)


def _from_cwd(path):
    """Paths given on the command line are relative to the working directory."""
    return str(Path(path).resolve()) if path is not None else None


def run(config: dict, base_path: Path = None) -> Path:
    """Run the full pipeline and return the results directory."""
    base_path = Path(base_path) if base_path is not None else PROJECT_ROOT
    seed = config['training']['seed']
    np.random.seed(seed)

    label_col = config['data'].get('label_col', 'classe')
    classes = config['data'].get('classes', list(CLASS_DESCRIPTIONS))

    print("\n" + "="*60)
    print("STEP 1: Loading Data")
    print("="*60)
    data_loader = DataLoader(config, base_path=base_path)
    train_df, test_df = data_loader.load_data()
    class_distribution = data_loader.class_distribution(train_df)
    print(class_distribution.to_string(index=False))

    print("\n" + "="*60)
    print("STEP 2: Partitioning")
    print("="*60)
    partition = partition_dataset(
        train_df, label_col,
        train_fraction=config['training']['train_fraction'],
        seed=seed,
    )
    print(f"✓ Training partition: {len(partition.training)} observations")
    print(f"✓ Validation partition: {len(partition.validation)} observations")

    print("\n" + "="*60)
    print("STEP 3: Evaluating Sensor Location Subsets")
    print("="*60)
    evaluator = SubsetEvaluator(config)
    results = evaluator.evaluate_all(partition.training, partition.validation)
    records = [result.record for result in results]

    print("\n" + "="*60)
    print("STEP 4: Model Selection")
    print("="*60)
    state = select_best(results)
    best = state.record
    print(f"✓ Selected subset: {best.label} ({best.n_features} features)")
    print(f"✓ CV accuracy: {best.cv_accuracy:.4f} ± {best.cv_accuracy_sd:.4f}")
    print(f"✓ Validation accuracy: {best.oos_accuracy:.4f} "
          f"[{best.ci_lower:.4f}, {best.ci_upper:.4f}]")
    print_evaluation_summary(
        partition.validation[label_col].to_numpy(),
        state.best.validation_predictions,
        classes,
        config['training'].get('confidence_level', 0.95),
    )

    print("\n" + "="*60)
    print("STEP 5: Report and Predictions")
    print("="*60)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    results_root = Path(config['output']['results_dir'])
    if not results_root.is_absolute():
        results_root = base_path / results_root
    results_dir = results_root / f"run_{timestamp}"

    renderer = ReportRenderer(config, results_dir)
    paths = renderer.render(records, state, partition, test_df, class_distribution)
    print(renderer.predictions.to_string(index=False))

    print("\n" + "="*60)
    print("RUN COMPLETE")
    print("="*60)
    print(f"✓ Subsets evaluated: {len(records)}")
    print(f"✓ Best subset: {best.label} (validation accuracy {best.oos_accuracy:.4f})")
    print(f"✓ Predictions: {paths['predictions']}")
    print(f"✓ Results saved to: {results_dir}")
    print("="*60)

    return results_dir


def main(argv=None):
    """Main execution pipeline."""
    args = parse_args(argv)

    print("="*60)
    print("Weight Lifting Exercises - Form Classification")
    print("="*60)
    print(f"Start time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")

    try:
        config = load_config(args.config)
        config = apply_overrides(config, {
            'data.train_path': _from_cwd(args.train_path),
            'data.test_path': _from_cwd(args.test_path),
            'output.results_dir': _from_cwd(args.output_dir),
            'training.model_type': args.model_type,
            'training.seed': args.seed,
            'output.save_plots': False if args.no_plots else None,
        })
        print(f"\n✓ Configuration loaded (model: {config['training']['model_type']})")

        return run(config, base_path=PROJECT_ROOT)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
