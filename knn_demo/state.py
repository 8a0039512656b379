"""
State Management for the k-NN Demo

This module handles configuration management and metrics tracking for the
classification pipeline. It provides functions to load/save configuration
and persist evaluation metrics.
"""

import copy
import json
import os
from datetime import datetime
from typing import Any, Dict, Optional

from knn_demo.dataset_loader import DATASET_LOADERS
from knn_demo.train import VALID_METRICS, VALID_WEIGHTS


DEFAULT_CONFIG_PATH = "./knn_demo/config.json"

DEFAULT_CONFIG: Dict[str, Any] = {
    "dataset": "wine",
    "model_path": "./knn_demo/local/knn_model.pkl",
    "metrics_path": "./knn_demo/local/metrics.json",
    "log_level": "INFO",
    "split": {
        "test_size": 0.2,
        "random_state": 42,
        "stratify": True
    },
    "knn": {
        "n_neighbors": 5,
        "weights": "uniform",
        "metric": "minkowski"
    },
    "k_search": {
        "min_k": 1,
        "max_k": 20
    }
}


def default_config() -> Dict:
    """Return a fresh copy of the default configuration."""
    return copy.deepcopy(DEFAULT_CONFIG)


def load_config(config_path: str = DEFAULT_CONFIG_PATH) -> Dict:
    """
    Load configuration from a JSON file.

    Args:
        config_path (str): Path to the configuration file

    Returns:
        dict: Configuration dictionary with pipeline settings

    Raises:
        FileNotFoundError: If config file does not exist
        json.JSONDecodeError: If config file is not valid JSON
        ValueError: If required configuration fields are missing or invalid
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r') as f:
        config = json.load(f)

    validate_config(config)

    return config


def save_config(config: Dict, config_path: str = DEFAULT_CONFIG_PATH) -> None:
    """
    Save configuration to a JSON file.

    Raises:
        IOError: If the file cannot be written
        ValueError: If required configuration fields are missing or invalid
    """
    validate_config(config)

    directory = os.path.dirname(config_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    with open(config_path, 'w') as f:
        json.dump(config, f, indent=2)


def save_metrics(metrics: Dict[str, Any], metrics_path: str = "./knn_demo/local/metrics.json") -> None:
    """
    Save evaluation metrics to a JSON file.

    A timestamp is added when the metrics do not carry one.

    Args:
        metrics (dict): Dictionary containing JSON-serializable metrics
        metrics_path (str): Path to the metrics file

    Raises:
        IOError: If the file cannot be written
    """
    directory = os.path.dirname(metrics_path)
    if directory:
        os.makedirs(directory, exist_ok=True)

    if 'timestamp' not in metrics:
        metrics['timestamp'] = datetime.now().isoformat()

    with open(metrics_path, 'w') as f:
        json.dump(metrics, f, indent=2)


def load_metrics(metrics_path: str = "./knn_demo/local/metrics.json") -> Optional[Dict]:
    """
    Load evaluation metrics from a JSON file.

    Returns:
        dict or None: Metrics dictionary or None if file does not exist

    Raises:
        json.JSONDecodeError: If metrics file is not valid JSON
    """
    if not os.path.exists(metrics_path):
        return None

    with open(metrics_path, 'r') as f:
        metrics = json.load(f)

    return metrics


def validate_config(config: Dict) -> None:
    """
    Validate that required configuration fields are present and sane.

    Raises:
        ValueError: If required fields are missing or invalid
    """
    required_fields = ['dataset', 'model_path', 'metrics_path']

    for field in required_fields:
        if field not in config:
            raise ValueError(f"Required configuration field missing: {field}")

        if not isinstance(config[field], str):
            raise ValueError(f"Configuration field '{field}' must be a string")

        if not config[field].strip():
            raise ValueError(f"Configuration field '{field}' cannot be empty")

    if config['dataset'] not in DATASET_LOADERS:
        raise ValueError(
            f"Unknown dataset '{config['dataset']}'. Choose from: {', '.join(DATASET_LOADERS)}"
        )

    if 'split' in config:
        split = config['split']

        if not isinstance(split, dict):
            raise ValueError("'split' configuration must be a dictionary")

        if 'test_size' in split:
            test_size = split['test_size']
            if not isinstance(test_size, (int, float)) or not 0 < test_size < 1:
                raise ValueError(f"Split parameter 'test_size' must be between 0 and 1, got {test_size}")

        if 'random_state' in split and not isinstance(split['random_state'], int):
            raise ValueError("Split parameter 'random_state' must be an integer")

        if 'stratify' in split and not isinstance(split['stratify'], bool):
            raise ValueError("Split parameter 'stratify' must be a boolean")

    if 'knn' in config:
        knn = config['knn']

        if not isinstance(knn, dict):
            raise ValueError("'knn' configuration must be a dictionary")

        if 'n_neighbors' in knn:
            if not isinstance(knn['n_neighbors'], int) or isinstance(knn['n_neighbors'], bool):
                raise ValueError("KNN parameter 'n_neighbors' must be an integer")
            if knn['n_neighbors'] <= 0:
                raise ValueError("KNN parameter 'n_neighbors' must be positive")

        if 'weights' in knn and knn['weights'] not in VALID_WEIGHTS:
            raise ValueError(f"KNN parameter 'weights' must be one of {VALID_WEIGHTS}")

        if 'metric' in knn and knn['metric'] not in VALID_METRICS:
            raise ValueError(f"KNN parameter 'metric' is not a known distance metric: {knn['metric']}")

    if 'k_search' in config:
        k_search = config['k_search']

        if not isinstance(k_search, dict):
            raise ValueError("'k_search' configuration must be a dictionary")

        min_k = k_search.get('min_k', 1)
        max_k = k_search.get('max_k', 20)

        if not isinstance(min_k, int) or not isinstance(max_k, int):
            raise ValueError("'k_search' bounds must be integers")

        if min_k < 1:
            raise ValueError("'k_search.min_k' must be at least 1")

        if min_k > max_k:
            raise ValueError(f"'k_search.min_k' ({min_k}) cannot exceed 'max_k' ({max_k})")


def get_config_value(config: Dict, key: str, default: Any = None) -> Any:
    """
    Get a configuration value with optional default.

    Example:
        get_config_value(config, 'knn.n_neighbors', 5)
    """
    keys = key.split('.')
    value = config

    for k in keys:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return default

    return value


def update_config_value(config: Dict, key: str, value: Any) -> Dict:
    """
    Update a configuration value (supports nested keys with dot notation).

    Example:
        update_config_value(config, 'split.test_size', 0.25)
    """
    keys = key.split('.')
    current = config

    for k in keys[:-1]:
        if k not in current:
            current[k] = {}
        current = current[k]

    current[keys[-1]] = value
    return config
