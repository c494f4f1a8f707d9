from typing import Dict, Any, List
import pickle
from pathlib import Path

import numpy as np
import pandas as pd
from lightgbm import LGBMClassifier
from sklearn.ensemble import RandomForestClassifier
from sklearn.preprocessing import LabelEncoder


class FormClassifier:
    """Classifier bound to the feature columns of one sensor location subset."""

    def __init__(self, config: Dict[str, Any], feature_cols: List[str]):
        self.config = config
        self.model_type = config['training'].get('model_type', 'lightgbm')
        self.seed = config['training'].get('seed', 42)
        self.feature_cols = list(feature_cols)
        self.label_encoder = LabelEncoder()
        self.model = None

    def _create_model(self):
        """Create a new estimator instance."""
        if self.model_type == 'lightgbm':
            params = dict(self.config.get('lgbm', {}))
            params['random_state'] = self.seed
            return LGBMClassifier(**params)

        if self.model_type == 'random_forest':
            params = dict(self.config.get('random_forest', {}))
            params['random_state'] = self.seed
            return RandomForestClassifier(**params)

        raise ValueError(f"Unknown model type: {self.model_type}")

    @property
    def is_fitted(self) -> bool:
        return self.model is not None

    @property
    def classes_(self) -> np.ndarray:
        return self.label_encoder.classes_

    def fit(self, X: pd.DataFrame, y) -> "FormClassifier":
        """Fit on the bound feature columns. A classifier is fitted only once."""
        if self.is_fitted:
            raise ValueError("Classifier has already been trained")

        y_encoded = self.label_encoder.fit_transform(np.asarray(y))
        model = self._create_model()
        model.fit(X[self.feature_cols], y_encoded)
        self.model = model
        return self

    def predict(self, X: pd.DataFrame) -> np.ndarray:
        """Predict class labels."""
        if not self.is_fitted:
            raise ValueError("No model has been trained yet")

        encoded = self.model.predict(X[self.feature_cols])
        return self.label_encoder.inverse_transform(np.asarray(encoded, dtype=int))

    def predict_proba(self, X: pd.DataFrame) -> pd.DataFrame:
        """Class probabilities, one column per class label."""
        if not self.is_fitted:
            raise ValueError("No model has been trained yet")

        proba = self.model.predict_proba(X[self.feature_cols])
        return pd.DataFrame(proba, columns=self.classes_, index=X.index)

    def get_feature_importance(self) -> pd.DataFrame:
        if not self.is_fitted:
            raise ValueError("No model has been trained yet")

        importance_df = pd.DataFrame({
            'feature': self.feature_cols,
            'importance': self.model.feature_importances_,
        })
        return importance_df.sort_values('importance', ascending=False).reset_index(drop=True)

    def save(self, path: Path) -> None:
        """Save the trained classifier to disk."""
        if not self.is_fitted:
            raise ValueError("No model has been trained yet")

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'wb') as f:
            pickle.dump(self, f)

        print(f"✓ Saved {self.model_type} model ({len(self.feature_cols)} features) to {path}")

    @staticmethod
    def load(path: Path) -> "FormClassifier":
        """Load a classifier saved with ``save``."""
        path = Path(path)
        with open(path, 'rb') as f:
            classifier = pickle.load(f)

        if not isinstance(classifier, FormClassifier):
            raise ValueError(f"{path} does not contain a FormClassifier")

        print(f"✓ Loaded {classifier.model_type} model from {path}")
        return classifier
