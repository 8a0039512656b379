"""
Unit tests for tabular dataset loading functionality.

Tests dataset loading, metadata extraction, and train/test splitting.
"""

import pytest
import numpy as np
import pandas as pd

from knn_demo.dataset_loader import (
    get_dataset_info,
    load_tabular_dataset,
    split_dataset
)


@pytest.fixture
def wine():
    """Load the wine dataset once per test."""
    return load_tabular_dataset('wine')


def test_load_wine_dataset(wine):
    """Test loading the wine dataset."""
    features, labels, target_names = wine

    assert isinstance(features, pd.DataFrame)
    assert features.shape == (178, 13)
    assert len(labels) == 178
    assert target_names == ['class_0', 'class_1', 'class_2']
    assert 'alcohol' in features.columns


def test_load_iris_dataset():
    """Test loading the iris dataset."""
    features, labels, target_names = load_tabular_dataset('iris')

    assert features.shape == (150, 4)
    assert target_names == ['setosa', 'versicolor', 'virginica']


def test_load_unknown_dataset():
    """Test that an unknown dataset name raises ValueError."""
    with pytest.raises(ValueError):
        load_tabular_dataset('titanic')


def test_get_dataset_info(wine):
    """Test metadata extraction."""
    info = get_dataset_info(*wine)

    assert info['n_samples'] == 178
    assert info['n_features'] == 13
    assert len(info['feature_names']) == 13
    assert info['classes'] == ['class_0', 'class_1', 'class_2']
    assert info['samples_per_class'] == {'class_0': 59, 'class_1': 71, 'class_2': 48}


def test_get_dataset_info_empty(wine):
    """Test metadata extraction on an empty dataset."""
    features, labels, target_names = wine

    info = get_dataset_info(features.iloc[:0], labels.iloc[:0], target_names)

    assert info['n_samples'] == 0
    assert info['samples_per_class'] == {}


def test_split_dataset_default_ratio(wine):
    """Test the default 80/20 split."""
    features, labels, _ = wine

    X_train, X_test, y_train, y_test = split_dataset(features, labels)

    assert len(X_train) == 142
    assert len(X_test) == 36
    assert len(X_train) + len(X_test) == 178
    assert len(y_train) == len(X_train)
    assert len(y_test) == len(X_test)


def test_split_dataset_no_overlap(wine):
    """Test that training and testing rows do not overlap."""
    features, labels, _ = wine

    X_train, X_test, _, _ = split_dataset(features, labels)

    assert set(X_train.index).isdisjoint(set(X_test.index))


def test_split_dataset_stratified(wine):
    """Test that every class appears in both splits."""
    features, labels, _ = wine

    _, _, y_train, y_test = split_dataset(features, labels, stratify=True)

    assert set(np.unique(y_train)) == {0, 1, 2}
    assert set(np.unique(y_test)) == {0, 1, 2}


def test_split_dataset_invalid_ratio(wine):
    """Test that invalid test sizes raise ValueError."""
    features, labels, _ = wine

    for test_size in [0.0, 1.0, 1.5, -0.1]:
        with pytest.raises(ValueError):
            split_dataset(features, labels, test_size=test_size)


def test_split_dataset_reproducibility(wine):
    """Test that splitting with the same seed produces the same results."""
    features, labels, _ = wine

    X_train1, X_test1, _, _ = split_dataset(features, labels, random_state=7)
    X_train2, X_test2, _, _ = split_dataset(features, labels, random_state=7)

    assert list(X_train1.index) == list(X_train2.index)
    assert list(X_test1.index) == list(X_test2.index)
