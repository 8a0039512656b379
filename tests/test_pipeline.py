"""
Tests for the end-to-end classification pipeline and its command line.
"""

import json
import logging
import os
import shutil
import sys
import tempfile

import pytest
import numpy as np

from knn_demo import pipeline
from knn_demo.pipeline import run_pipeline
from knn_demo.state import default_config, update_config_value
from knn_demo.train import load_knn_model
from knn_demo.utils import setup_logging


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture(autouse=True)
def fresh_logger(monkeypatch):
    """Let setup_logging attach a handler to the current stderr in every test."""
    logger = logging.getLogger("knn_demo")
    monkeypatch.setattr(logger, 'handlers', [])
    monkeypatch.setattr(logger, 'level', logger.level)
    monkeypatch.setattr(logger, 'propagate', logger.propagate)


@pytest.fixture
def config(temp_dir):
    """Default configuration writing into the temporary directory."""
    config = default_config()
    config['model_path'] = os.path.join(temp_dir, 'local', 'knn_model.pkl')
    config['metrics_path'] = os.path.join(temp_dir, 'local', 'metrics.json')
    return config


def test_run_pipeline_wine(config):
    """Test the default wine run."""
    results = run_pipeline(config, verbose=False)

    assert results['dataset_info']['n_samples'] == 178
    assert results['n_train'] == 142
    assert results['n_test'] == 36
    assert results['accuracy'] > 0.85
    assert results['confusion_matrix'].shape == (3, 3)
    assert results['target_names'] == ['class_0', 'class_1', 'class_2']
    np.testing.assert_allclose(results['scaling']['mean'], 0.0, atol=1e-9)
    assert 'k_search' not in results


def test_run_pipeline_defaults_without_config():
    """Test that no config falls back to the defaults."""
    results = run_pipeline(verbose=False)

    assert results['model'].n_neighbors == 5
    assert results['dataset_info']['n_features'] == 13


def test_run_pipeline_iris_with_search(config):
    """Test the iris dataset with a k search."""
    update_config_value(config, 'dataset', 'iris')
    update_config_value(config, 'k_search.max_k', 10)

    results = run_pipeline(config, search_k=True, verbose=False)

    assert results['n_test'] == 30
    assert results['k_search']['k_values'] == list(range(1, 11))
    assert results['k_search']['best_k'] in range(1, 11)


def test_run_pipeline_k_search_uses_configured_metric(config):
    """Test that the k search scores the configured k like the trained model."""
    update_config_value(config, 'knn.metric', 'chebyshev')

    results = run_pipeline(config, search_k=True, verbose=False)

    search = results['k_search']
    k_index = search['k_values'].index(5)
    assert results['model'].metric == 'chebyshev'
    assert search['accuracies'][k_index] == pytest.approx(results['accuracy'])


def test_run_pipeline_invalid_config(config):
    """Test that an invalid config raises ValueError."""
    update_config_value(config, 'knn.weights', 'cosine')

    with pytest.raises(ValueError):
        run_pipeline(config, verbose=False)


def test_run_pipeline_saves_model_and_metrics(config):
    """Test that saving writes a usable pipeline and a metrics file."""
    results = run_pipeline(config, search_k=True, save=True, verbose=False)

    assert os.path.exists(config['model_path'])
    assert os.path.exists(config['metrics_path'])

    with open(config['metrics_path']) as f:
        metrics = json.load(f)

    assert metrics['dataset'] == 'wine'
    assert metrics['n_neighbors'] == 5
    assert metrics['accuracy'] == pytest.approx(results['accuracy'])
    assert metrics['best_k'] == results['k_search']['best_k']
    assert np.array(metrics['confusion_matrix']).sum() == 36

    loaded = load_knn_model(config['model_path'])
    features = results['inference_pipeline'].named_steps['scaler'].mean_.reshape(1, -1)
    np.testing.assert_array_equal(loaded.predict(features), results['inference_pipeline'].predict(features))


def test_run_pipeline_prints_report(config, capsys):
    """Test the printed accuracy report."""
    run_pipeline(config, search_k=True, verbose=True)

    output = capsys.readouterr().out
    assert "Accuracy:" in output
    assert "Confusion matrix:" in output
    assert "<- best" in output


def test_main_with_overrides(temp_dir, config, monkeypatch, capsys):
    """Test the command line with a config file and overrides."""
    config_path = os.path.join(temp_dir, 'config.json')
    with open(config_path, 'w') as f:
        json.dump(config, f)

    monkeypatch.setattr(sys, 'argv', [
        'pipeline', '--config', config_path, '--dataset', 'iris', '--n-neighbors', '3', '--save'
    ])

    pipeline.main()

    output = capsys.readouterr().out
    assert "IRIS DATASET" in output
    assert "n_neighbors: 3" in output

    with open(config['metrics_path']) as f:
        assert json.load(f)['n_neighbors'] == 3


def test_main_missing_config_uses_defaults(temp_dir, monkeypatch, capsys):
    """Test that a missing config file warns and falls back to defaults."""
    monkeypatch.setattr(sys, 'argv', [
        'pipeline', '--config', os.path.join(temp_dir, 'missing.json')
    ])

    pipeline.main()

    captured = capsys.readouterr()
    assert "knn_demo - WARNING - Configuration file not found" in captured.err
    assert "Using defaults" in captured.err
    assert "WINE DATASET" in captured.out


def test_setup_logging_updates_level():
    """Test that a second call changes the level without adding handlers."""
    logger = setup_logging("INFO")
    logger = setup_logging("DEBUG")

    assert len(logger.handlers) == 1
    assert logger.level == logging.DEBUG
    assert logger.handlers[0].level == logging.DEBUG
    assert logger.propagate is False


def test_main_invalid_override_exits(temp_dir, monkeypatch, capsys):
    """Test that an invalid override exits with status 1."""
    monkeypatch.setattr(sys, 'argv', [
        'pipeline', '--config', os.path.join(temp_dir, 'missing.json'), '--test-size', '1.5'
    ])

    with pytest.raises(SystemExit) as exc_info:
        pipeline.main()

    assert exc_info.value.code == 1
    assert "ERROR" in capsys.readouterr().err
