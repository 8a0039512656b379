"""
Tabular Dataset Loader

This module loads the classic tabular datasets bundled with scikit-learn
(wine by default, iris as an alternative), reports their metadata and splits
them into training and testing sets.
"""

import logging
from typing import Dict, List, Tuple

import pandas as pd
from sklearn.datasets import load_iris, load_wine
from sklearn.model_selection import train_test_split


logger = logging.getLogger(__name__)

DATASET_LOADERS = {
    'wine': load_wine,
    'iris': load_iris,
}


def load_tabular_dataset(name: str = "wine") -> Tuple[pd.DataFrame, pd.Series, List[str]]:
    """
    Load a bundled scikit-learn dataset as pandas objects.

    The wine dataset holds 13 chemical measurements for 178 wines from three
    cultivars; iris holds 4 flower measurements for 150 irises of three species.

    Args:
        name: Dataset name, "wine" or "iris"

    Returns:
        Tuple of (features, labels, target_names) where:
            - features: DataFrame of shape (n_samples, n_features)
            - labels: Series of integer class labels named "target"
            - target_names: Class names, indexed by label

    Raises:
        ValueError: If the dataset name is unknown
    """
    if name not in DATASET_LOADERS:
        raise ValueError(f"Unknown dataset '{name}'. Choose from: {', '.join(DATASET_LOADERS)}")

    bunch = DATASET_LOADERS[name](as_frame=True)
    features = bunch.data
    labels = bunch.target
    target_names = [str(target) for target in bunch.target_names]

    logger.info(f"Loaded '{name}' dataset: {features.shape[0]} samples, {features.shape[1]} features")

    return features, labels, target_names


def get_dataset_info(features: pd.DataFrame, labels: pd.Series, target_names: List[str]) -> Dict:
    """
    Extract metadata and statistics from a loaded dataset.

    Returns:
        Dictionary containing:
            - n_samples: Number of rows
            - n_features: Number of feature columns
            - feature_names: List of feature column names
            - classes: List of class names
            - samples_per_class: Number of samples per class name
    """
    if len(features) == 0:
        return {
            "n_samples": 0,
            "n_features": features.shape[1] if features.ndim == 2 else 0,
            "feature_names": list(features.columns),
            "classes": list(target_names),
            "samples_per_class": {}
        }

    counts = labels.value_counts().sort_index()
    samples_per_class = {
        target_names[int(label)]: int(count) for label, count in counts.items()
    }

    return {
        "n_samples": int(features.shape[0]),
        "n_features": int(features.shape[1]),
        "feature_names": list(features.columns),
        "classes": list(target_names),
        "samples_per_class": samples_per_class
    }


def split_dataset(
    features: pd.DataFrame,
    labels: pd.Series,
    test_size: float = 0.2,
    random_state: int = 42,
    stratify: bool = True
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.Series, pd.Series]:
    """
    Split a dataset into training and testing sets.

    Args:
        features: Feature DataFrame
        labels: Label Series
        test_size: Proportion of data held out for testing (default: 0.2)
        random_state: Random seed for reproducibility (default: 42)
        stratify: Keep class proportions equal in both sets (default: True)

    Returns:
        Tuple of (X_train, X_test, y_train, y_test)

    Raises:
        ValueError: If test_size is not between 0 and 1
    """
    if not 0 < test_size < 1:
        raise ValueError(f"test_size must be between 0 and 1, got {test_size}")

    X_train, X_test, y_train, y_test = train_test_split(
        features,
        labels,
        test_size=test_size,
        random_state=random_state,
        stratify=labels if stratify else None
    )

    logger.info(f"Train samples: {len(X_train)}, Test samples: {len(X_test)}")

    return X_train, X_test, y_train, y_test
