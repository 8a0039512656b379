"""
k-NN Training Module

This module trains and evaluates scikit-learn KNeighborsClassifier models on
scaled tabular features, searches for a good number of neighbors, and
persists fitted models.
"""

import logging
import os
import pickle
import time
from typing import Dict, Iterable, List, Optional

import numpy as np
from sklearn.metrics import accuracy_score, classification_report, confusion_matrix
from sklearn.neighbors import VALID_METRICS as SKLEARN_VALID_METRICS, KNeighborsClassifier
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import StandardScaler


logger = logging.getLogger(__name__)

VALID_WEIGHTS = ('uniform', 'distance')

# Named distance metrics accepted by any of the neighbor search algorithms
VALID_METRICS = tuple(sorted({
    metric for metrics in SKLEARN_VALID_METRICS.values() for metric in metrics if isinstance(metric, str)
}))


def train_knn_model(
    X_train,
    y_train,
    n_neighbors: int = 5,
    weights: str = "uniform",
    metric: str = "minkowski",
    verbose: bool = True
) -> Dict:
    """
    Fit a KNN classifier on training features.

    Args:
        X_train: Scaled training features of shape (n_samples, n_features)
        y_train: Training labels of shape (n_samples,)
        n_neighbors: Number of neighbors that vote on a label (default: 5)
        weights: "uniform" (one vote each) or "distance" (closer votes count more)
        metric: Distance metric passed to scikit-learn (default: minkowski, i.e. Euclidean)
        verbose: Whether to log training progress

    Returns:
        Dictionary containing:
            - model: Fitted KNeighborsClassifier instance
            - training_time: Fit time in seconds
            - n_samples: Number of training samples

    Raises:
        ValueError: If n_neighbors is not between 1 and the training size,
            or weights or metric is unknown
    """
    n_samples = len(X_train)

    if n_neighbors < 1 or n_neighbors > n_samples:
        raise ValueError(f"n_neighbors must be between 1 and {n_samples}, got {n_neighbors}")

    if weights not in VALID_WEIGHTS:
        raise ValueError(f"weights must be one of {VALID_WEIGHTS}, got '{weights}'")

    if metric not in VALID_METRICS:
        raise ValueError(f"Unknown distance metric '{metric}'")

    if verbose:
        logger.info(f"Training KNN model (n_neighbors={n_neighbors}, weights={weights}, metric={metric})")
        logger.info(f"Training set size: {n_samples} samples")

    model = KNeighborsClassifier(n_neighbors=n_neighbors, weights=weights, metric=metric)

    start_time_train = time.time()
    model.fit(X_train, y_train)
    training_time = time.time() - start_time_train

    if verbose:
        logger.info(f"Training complete! Time: {training_time:.3f} seconds")

    return {
        'model': model,
        'training_time': training_time,
        'n_samples': n_samples
    }


def evaluate_model(model, X_test, y_test, target_names: Optional[List[str]] = None) -> Dict:
    """
    Predict the test set and score the predictions.

    Args:
        model: Fitted classifier
        X_test: Scaled testing features
        y_test: True testing labels
        target_names: Optional class names for the report, indexed by label

    Returns:
        Dictionary containing:
            - accuracy: Fraction of correct predictions
            - confusion_matrix: Counts of true (rows) vs predicted (columns) labels
            - classification_report: Per-class precision/recall/F1 as text
            - report_dict: Same report as a dictionary
            - predictions: Predicted labels
            - inference_time_ms_per_sample: Prediction time in milliseconds per sample

    Raises:
        ValueError: If the test set is empty
    """
    if len(X_test) == 0:
        raise ValueError("Cannot evaluate on an empty test set")

    start_time_inference = time.time()
    predictions = model.predict(X_test)
    inference_time_ms_per_sample = ((time.time() - start_time_inference) / len(X_test)) * 1000

    labels = np.arange(len(target_names)) if target_names is not None else None

    report_kwargs = {'labels': labels, 'target_names': target_names, 'zero_division': 0}

    return {
        'accuracy': accuracy_score(y_test, predictions),
        'confusion_matrix': confusion_matrix(y_test, predictions, labels=labels),
        'classification_report': classification_report(y_test, predictions, **report_kwargs),
        'report_dict': classification_report(y_test, predictions, output_dict=True, **report_kwargs),
        'predictions': predictions,
        'inference_time_ms_per_sample': inference_time_ms_per_sample
    }


def find_best_k(
    X_train,
    y_train,
    X_test,
    y_test,
    k_values: Iterable[int] = range(1, 21),
    weights: str = "uniform",
    metric: str = "minkowski"
) -> Dict:
    """
    Score a range of neighbor counts and pick the one with the lowest error.

    Every candidate uses the same weights and metric as the trained model,
    so the score at a given k matches train_knn_model with that k.
    k values larger than the training set are skipped. Ties go to the
    smallest k.

    Returns:
        Dictionary containing:
            - k_values: Evaluated k values
            - error_rates: Test error rate for each k
            - accuracies: Test accuracy for each k
            - best_k: k with the lowest error rate

    Raises:
        ValueError: If no candidate k fits the training set
    """
    candidates = sorted({int(k) for k in k_values if 1 <= int(k) <= len(X_train)})

    if not candidates:
        raise ValueError(f"No valid k values for a training set of {len(X_train)} samples")

    accuracies = []
    for k in candidates:
        model = KNeighborsClassifier(n_neighbors=k, weights=weights, metric=metric)
        model.fit(X_train, y_train)
        accuracies.append(accuracy_score(y_test, model.predict(X_test)))

    error_rates = [1.0 - accuracy for accuracy in accuracies]
    best_k = candidates[int(np.argmin(error_rates))]

    logger.info(f"Best k: {best_k} (error rate {min(error_rates):.4f})")

    return {
        'k_values': candidates,
        'error_rates': error_rates,
        'accuracies': accuracies,
        'best_k': best_k
    }


def build_inference_pipeline(scaler: StandardScaler, model: KNeighborsClassifier) -> Pipeline:
    """Chain a fitted scaler and classifier so raw features can be predicted directly."""
    return Pipeline([('scaler', scaler), ('knn', model)])


def save_knn_model(model, path: str) -> None:
    """
    Save a trained KNN model (or inference pipeline) to a file.

    Args:
        model: Fitted estimator to save
        path: File path to save the model (.pkl format)

    Raises:
        IOError: If the file cannot be written
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(path, 'wb') as f:
        pickle.dump(model, f)

    logger.info(f"Model saved to {path}")


def load_knn_model(path: str):
    """
    Load a KNN model from a file.

    Raises:
        FileNotFoundError: If the model file does not exist
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Model file not found: {path}")

    with open(path, 'rb') as f:
        model = pickle.load(f)

    logger.info(f"Model loaded from {path}")

    return model
