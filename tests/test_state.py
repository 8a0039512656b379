"""
Unit tests for configuration and metrics management.
"""

import json
import os
import shutil
import tempfile

import pytest

from knn_demo.state import (
    DEFAULT_CONFIG,
    default_config,
    get_config_value,
    load_config,
    load_metrics,
    save_config,
    save_metrics,
    update_config_value,
    validate_config
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


def test_default_config_is_a_copy():
    """Test that editing the default config does not change the module default."""
    config = default_config()
    config['knn']['n_neighbors'] = 99

    assert DEFAULT_CONFIG['knn']['n_neighbors'] == 5
    validate_config(default_config())


def test_bundled_config_matches_defaults():
    """Test that the shipped config.json holds the default settings."""
    config_path = os.path.join(os.path.dirname(__file__), '..', 'knn_demo', 'config.json')

    assert load_config(config_path) == DEFAULT_CONFIG


def test_save_and_load_config(temp_dir):
    """Test a config round trip through a nested directory."""
    config_path = os.path.join(temp_dir, 'nested', 'config.json')
    config = default_config()
    config['dataset'] = 'iris'

    save_config(config, config_path)
    loaded = load_config(config_path)

    assert loaded['dataset'] == 'iris'
    assert loaded['split'] == DEFAULT_CONFIG['split']


def test_load_config_missing_file(temp_dir):
    """Test that a missing config raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_config(os.path.join(temp_dir, 'missing.json'))


def test_load_config_invalid_json(temp_dir):
    """Test that a malformed config raises JSONDecodeError."""
    config_path = os.path.join(temp_dir, 'config.json')
    with open(config_path, 'w') as f:
        f.write("{not json")

    with pytest.raises(json.JSONDecodeError):
        load_config(config_path)


@pytest.mark.parametrize("key,value", [
    ('dataset', 'titanic'),
    ('dataset', 3),
    ('model_path', ''),
    ('split.test_size', 1.5),
    ('split.random_state', 'seed'),
    ('split.stratify', 'yes'),
    ('knn.n_neighbors', 0),
    ('knn.n_neighbors', True),
    ('knn.weights', 'cosine'),
    ('knn.metric', 'bogus'),
    ('k_search.min_k', 0),
    ('k_search.min_k', 30),
])
def test_validate_config_rejects_invalid_values(key, value):
    """Test that invalid settings raise ValueError."""
    config = update_config_value(default_config(), key, value)

    with pytest.raises(ValueError):
        validate_config(config)


def test_validate_config_missing_field():
    """Test that a missing required field raises ValueError."""
    config = default_config()
    del config['metrics_path']

    with pytest.raises(ValueError, match="metrics_path"):
        validate_config(config)


def test_save_config_validates(temp_dir):
    """Test that an invalid config is never written."""
    config_path = os.path.join(temp_dir, 'config.json')
    config = update_config_value(default_config(), 'knn.n_neighbors', -1)

    with pytest.raises(ValueError):
        save_config(config, config_path)

    assert not os.path.exists(config_path)


def test_get_config_value():
    """Test dotted key lookup with defaults."""
    config = default_config()

    assert get_config_value(config, 'dataset') == 'wine'
    assert get_config_value(config, 'knn.n_neighbors') == 5
    assert get_config_value(config, 'knn.leaf_size', 30) == 30
    assert get_config_value(config, 'dataset.name', 'none') == 'none'


def test_update_config_value_creates_nested_keys():
    """Test dotted key updates."""
    config = default_config()

    update_config_value(config, 'split.test_size', 0.25)
    update_config_value(config, 'plot.dpi', 150)

    assert config['split']['test_size'] == 0.25
    assert config['plot'] == {'dpi': 150}


def test_save_and_load_metrics(temp_dir):
    """Test that metrics are written with a timestamp."""
    metrics_path = os.path.join(temp_dir, 'local', 'metrics.json')

    save_metrics({'accuracy': 0.97, 'n_neighbors': 5}, metrics_path)
    metrics = load_metrics(metrics_path)

    assert metrics['accuracy'] == 0.97
    assert metrics['n_neighbors'] == 5
    assert 'timestamp' in metrics


def test_save_metrics_keeps_existing_timestamp(temp_dir):
    """Test that a provided timestamp is not replaced."""
    metrics_path = os.path.join(temp_dir, 'metrics.json')

    save_metrics({'accuracy': 0.5, 'timestamp': '2024-01-01T00:00:00'}, metrics_path)

    assert load_metrics(metrics_path)['timestamp'] == '2024-01-01T00:00:00'


def test_load_metrics_missing_file(temp_dir):
    """Test that missing metrics load as None."""
    assert load_metrics(os.path.join(temp_dir, 'metrics.json')) is None
