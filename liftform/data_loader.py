from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np
import pandas as pd
import polars as pl

from .config import PROJECT_ROOT
from .features import FeatureNameGenerator


# Class labels of the Weight Lifting Exercises dataset
CLASS_DESCRIPTIONS = {
    "A": "Exactly according to the specification",
    "B": "Throwing the elbows to the front",
    "C": "Lifting the dumbbell only halfway",
    "D": "Lowering the dumbbell only halfway",
    "E": "Throwing the hips to the front",
}


class DataLoader:
    def __init__(self, config: Dict[str, Any], base_path: Optional[Path] = None):
        self.config = config
        self.data_config = config['data']
        self.base_path = Path(base_path) if base_path else PROJECT_ROOT
        self.label_col = self.data_config.get('label_col', 'classe')
        self.id_col = self.data_config.get('id_col', 'problem_id')
        self.classes = list(self.data_config.get('classes', list(CLASS_DESCRIPTIONS)))
        self.null_values = list(self.data_config.get('null_values', ["NA", "", "#DIV/0!"]))
        self.drop_cols = list(self.data_config.get('drop_cols', []))
        self.max_na_fraction = float(self.data_config.get('max_na_fraction', 0.9))
        self.names = FeatureNameGenerator(config)

    def _resolve(self, path: str) -> Path:
        path = Path(path)
        return path if path.is_absolute() else self.base_path / path

    def read_csv(self, path: str) -> pd.DataFrame:
        """Read a raw CSV, treating the dataset's placeholder strings as nulls."""
        full_path = self._resolve(path)
        if not full_path.exists():
            raise FileNotFoundError(f"Data file not found: {full_path}")

        df = pl.read_csv(
            full_path,
            null_values=self.null_values,
            infer_schema_length=None,
        )
        return df.to_pandas()

    def load_data(self) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Load and clean the labeled and unlabeled datasets."""
        print("Loading training data...")
        raw_train = self.read_csv(self.data_config['train_path'])

        print("Loading test data...")
        raw_test = self.read_csv(self.data_config['test_path'])

        print(f"✓ Raw train shape: {raw_train.shape}")
        print(f"✓ Raw test shape: {raw_test.shape}")

        train_df = self.clean_labeled(raw_train)
        test_df = self.clean_unlabeled(raw_test, self.sensor_columns(train_df))

        print(f"✓ Clean train shape: {train_df.shape}")
        print(f"✓ Clean test shape: {test_df.shape}")

        return train_df, test_df

    def clean_labeled(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Drop bookkeeping and sparse columns from the labeled dataset.

        Window summary statistics (kurtosis, skewness, max, ...) are only
        filled on window boundaries and are removed by the null-fraction
        filter. The remaining sensor columns must be complete.
        """
        if self.label_col not in df.columns:
            raise KeyError(f"Label column '{self.label_col}' not found in labeled data")

        df = df.drop(columns=[col for col in self.drop_cols if col in df.columns])

        na_fraction = df.isna().mean()
        sparse_cols = na_fraction[na_fraction > self.max_na_fraction].index.tolist()
        df = df.drop(columns=sparse_cols)
        print(f"✓ Dropped {len(sparse_cols)} columns with more than "
              f"{self.max_na_fraction:.0%} missing values")

        labels = df[self.label_col]
        unknown = sorted(set(labels.dropna().astype(str)) - set(self.classes))
        if labels.isna().any() or unknown:
            raise ValueError(
                f"Label column '{self.label_col}' has missing or unknown classes: {unknown}"
            )

        self.check_missing_values(df, self.sensor_columns(df))

        df = df.reset_index(drop=True)
        df[self.label_col] = df[self.label_col].astype(str)
        return df

    def clean_unlabeled(self, df: pd.DataFrame, sensor_cols: List[str]) -> pd.DataFrame:
        """Restrict the unlabeled dataset to the id column and the retained sensor columns."""
        required = [self.id_col] + sensor_cols
        missing = [col for col in required if col not in df.columns]
        if missing:
            raise KeyError(f"Unlabeled data is missing columns: {missing}")

        df = df[required].reset_index(drop=True)
        self.check_missing_values(df, sensor_cols)
        return df

    def sensor_columns(self, df: pd.DataFrame) -> List[str]:
        """Retained sensor columns, in the dataset's column order."""
        known = set(self.names.all_columns())
        return [col for col in df.columns if col in known]

    @staticmethod
    def check_missing_values(df: pd.DataFrame, columns: List[str]) -> None:
        """Sanity check: no missing values may remain in the sensor columns."""
        na_count = int(df[columns].isna().sum().sum())
        if na_count > 0:
            per_column = df[columns].isna().sum()
            offenders = per_column[per_column > 0].to_dict()
            raise ValueError(f"{na_count} missing values remain after cleaning: {offenders}")
        print(f"✓ NA check passed ({len(columns)} sensor columns, 0 missing values)")

    def class_distribution(self, df: pd.DataFrame) -> pd.DataFrame:
        """Counts and proportions of each class."""
        counts = df[self.label_col].value_counts().reindex(self.classes, fill_value=0)
        return pd.DataFrame({
            'classe': counts.index,
            'description': [CLASS_DESCRIPTIONS.get(c, "") for c in counts.index],
            'count': counts.values,
            'proportion': np.round(counts.values / max(len(df), 1), 4),
        })
