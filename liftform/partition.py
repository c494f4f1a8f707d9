from dataclasses import dataclass

import pandas as pd
from sklearn.model_selection import train_test_split


@dataclass(frozen=True)
class Partition:
    training: pd.DataFrame
    validation: pd.DataFrame

    @property
    def sizes(self):
        return len(self.training), len(self.validation)


def partition_dataset(
    df: pd.DataFrame,
    label_col: str,
    train_fraction: float = 0.7,
    seed: int = 42,
) -> Partition:
    """
    Split labeled observations into training and validation sets.

    Sampling is stratified on the label so both partitions keep the class
    proportions of the full dataset.

    Args:
        df: Labeled observations
        label_col: Name of the label column
        train_fraction: Share of observations placed in the training set
        seed: Random seed for the split

    Returns:
        Partition with disjoint training and validation frames
    """
    if len(df) == 0:
        raise ValueError("Cannot partition an empty dataset")
    if label_col not in df.columns:
        raise KeyError(f"Label column '{label_col}' not found")
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0, 1), got {train_fraction}")
    if not df.index.is_unique:
        raise ValueError("Observation index must be unique to partition the dataset")

    train_idx, val_idx = train_test_split(
        df.index.to_numpy(),
        train_size=train_fraction,
        stratify=df[label_col],
        random_state=seed,
    )

    training = df.loc[train_idx]
    validation = df.loc[val_idx]

    if len(training) == 0 or len(validation) == 0:
        raise ValueError(
            f"Partition produced an empty set (train={len(training)}, validation={len(validation)})"
        )
    if len(training) + len(validation) != len(df):
        raise ValueError(
            f"Partition sizes {len(training)} + {len(validation)} do not match dataset size {len(df)}"
        )
    if training.index.intersection(validation.index).size > 0:
        raise ValueError("Training and validation partitions overlap")

    return Partition(training=training, validation=validation)
