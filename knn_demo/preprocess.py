"""
Feature Scaling

k-nearest-neighbors compares samples by distance, so features measured on
large scales (proline in the wine data runs into the thousands) would
dominate ones measured in fractions. This module standardizes features with
scikit-learn's StandardScaler, fitted on the training split only.
"""

from typing import Dict, Tuple

import numpy as np
from sklearn.preprocessing import StandardScaler


def scale_features(X_train, X_test) -> Tuple[np.ndarray, np.ndarray, StandardScaler]:
    """
    Standardize features to zero mean and unit variance.

    Args:
        X_train: Training features of shape (n_train, n_features)
        X_test: Testing features of shape (n_test, n_features)

    Returns:
        Tuple of (X_train_scaled, X_test_scaled, scaler) where the scaler
        holds the training mean and standard deviation of every feature

    Raises:
        ValueError: If the two splits have a different number of features
    """
    if np.shape(X_train)[1] != np.shape(X_test)[1]:
        raise ValueError(
            f"Feature count mismatch: train has {np.shape(X_train)[1]}, test has {np.shape(X_test)[1]}"
        )

    scaler = StandardScaler()
    X_train_scaled = scaler.fit_transform(X_train)
    X_test_scaled = scaler.transform(X_test)

    return X_train_scaled, X_test_scaled, scaler


def summarize_scaling(X_scaled: np.ndarray) -> Dict[str, np.ndarray]:
    """Per-feature mean and standard deviation of scaled data."""
    return {
        'mean': np.mean(X_scaled, axis=0),
        'std': np.std(X_scaled, axis=0)
    }
