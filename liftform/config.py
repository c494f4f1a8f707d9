import copy
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


# Relative data and output paths in the config resolve against the project root
PROJECT_ROOT = Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = PROJECT_ROOT / "config" / "config.yaml"

MODEL_TYPES = ("lightgbm", "random_forest")


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file."""
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r', encoding='utf-8') as f:
        config = yaml.safe_load(f)

    validate_config(config)
    return config


def validate_config(config: Dict[str, Any]) -> None:
    """Check the keys the pipeline relies on."""
    for section in ('data', 'features', 'training', 'output'):
        if section not in config:
            raise ValueError(f"Missing config section: '{section}'")

    training = config['training']
    if training.get('model_type', 'lightgbm') not in MODEL_TYPES:
        raise ValueError(
            f"Unknown model_type '{training.get('model_type')}', expected one of {MODEL_TYPES}"
        )
    if int(training.get('n_folds', 5)) < 2:
        raise ValueError("training.n_folds must be at least 2")

    fraction = float(training.get('train_fraction', 0.7))
    if not 0.0 < fraction < 1.0:
        raise ValueError(f"training.train_fraction must be in (0, 1), got {fraction}")

    if not config['features'].get('locations'):
        raise ValueError("features.locations must list at least one sensor location")


def apply_overrides(config: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of config with dotted-key overrides applied.

    Keys whose value is None are ignored, so argparse namespaces can be
    passed through directly.
    """
    config = copy.deepcopy(config)
    for dotted_key, value in overrides.items():
        if value is None:
            continue
        section = config
        *parents, leaf = dotted_key.split('.')
        for key in parents:
            section = section.setdefault(key, {})
        section[leaf] = value

    validate_config(config)
    return config
