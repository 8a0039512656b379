"""
Unit tests for the demonstration datasets.

Tests the literal matrix, vector and list builders, the grouped data frame,
and loading of the bundled state data.
"""

import os
import shutil
import tempfile

import pytest
import numpy as np
import pandas as pd

from apply_family.datasets import (
    REGION_LEVELS,
    STATE_X77_COLUMNS,
    describe_structure,
    load_state_area,
    load_state_region,
    load_state_x77,
    make_list,
    make_matrix,
    make_tdata,
    make_vector,
)


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


def test_make_matrix_fills_columns():
    """Test that the matrix is filled column by column."""
    matrix = make_matrix()

    assert matrix.shape == (10, 3)
    np.testing.assert_array_equal(matrix[:, 0], np.arange(1, 11))
    assert matrix[0, 1] == 11
    assert matrix[9, 2] == 30


def test_make_vector_and_list():
    """Test the vector and list builders."""
    np.testing.assert_array_equal(make_vector(), np.arange(1, 11))
    assert [len(v) for v in make_list()] == [9, 12, 15]


def test_make_tdata():
    """Test attaching a grouping column to the matrix."""
    tdata = make_tdata()

    assert list(tdata.columns) == ['V1', 'V2', 'V3', 'V4']
    assert tdata['V1'].tolist() == [1, 1, 1, 1, 1, 2, 2, 2, 2, 2]
    assert tdata['V4'].tolist() == list(range(21, 31))


def test_make_tdata_invalid_shape():
    """Test that a matrix without 10 rows raises ValueError."""
    with pytest.raises(ValueError):
        make_tdata(np.zeros((5, 3)))

    with pytest.raises(ValueError):
        make_tdata(np.arange(10))


def test_load_state_x77():
    """Test loading the state.x77 measurements."""
    state_x77 = load_state_x77()

    assert state_x77.shape == (50, 8)
    assert list(state_x77.columns) == STATE_X77_COLUMNS
    assert state_x77.index[0] == 'Alabama'
    assert state_x77.index[-1] == 'Wyoming'
    assert state_x77.loc['Alabama', 'Population'] == 3615
    assert state_x77.loc['California', 'Population'] == 21198
    assert all(pd.api.types.is_numeric_dtype(state_x77[c]) for c in state_x77.columns)


def test_load_state_area_matches_state_order():
    """Test that state.area lines up with state.x77."""
    state_area = load_state_area()

    assert len(state_area) == 50
    assert state_area['Alaska'] == 589757
    assert list(state_area.index) == list(load_state_x77().index)


def test_load_state_region_levels():
    """Test the region factor and its level order."""
    state_region = load_state_region()

    assert list(state_region.cat.categories) == REGION_LEVELS
    counts = state_region.value_counts()
    assert counts['Northeast'] == 9
    assert counts['South'] == 16
    assert counts['North Central'] == 12
    assert counts['West'] == 13
    assert state_region['Texas'] == 'South'


def test_load_state_data_missing_directory(temp_dir):
    """Test that a directory without data files raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_state_x77(temp_dir)

    with pytest.raises(FileNotFoundError):
        load_state_area(temp_dir)


def test_load_state_x77_unexpected_columns(temp_dir):
    """Test that a file with the wrong columns raises ValueError."""
    path = os.path.join(temp_dir, 'state_x77.csv')
    with open(path, 'w') as f:
        f.write("State,Population,Income\nAlabama,3615,3624\n")

    with pytest.raises(ValueError):
        load_state_x77(temp_dir)


def test_load_state_region_unknown_region(temp_dir):
    """Test that an unknown region name raises ValueError."""
    path = os.path.join(temp_dir, 'state_info.csv')
    with open(path, 'w') as f:
        f.write("State,Abbreviation,Area,Region\nAtlantis,AT,100,Undersea\n")

    with pytest.raises(ValueError):
        load_state_region(temp_dir)


def test_describe_structure():
    """Test the str()-like structure summary."""
    text = describe_structure(load_state_x77())
    lines = text.splitlines()

    assert lines[0] == "DataFrame: 50 obs. of 8 variables:"
    assert len(lines) == 9
    assert lines[1].startswith(" $ Population")
    assert "int  3615 365 2212 2110 21198 ..." in lines[1]
    assert "num" in lines[3]
