"""
Demonstration Datasets

This module builds the small literal matrices and vectors used to introduce
the apply family, and loads the bundled state dataset (the figures behind R's
state.x77, state.area and state.region) used for the real-data examples.
"""

import os
from pathlib import Path
from typing import List, Optional

import numpy as np
import pandas as pd


DATA_DIR = Path(__file__).resolve().parent / "data"

STATE_X77_FILE = "state_x77.csv"
STATE_INFO_FILE = "state_info.csv"

STATE_X77_COLUMNS = [
    'Population', 'Income', 'Illiteracy', 'Life Exp',
    'Murder', 'HS Grad', 'Frost', 'Area'
]

# Factor level order used by R's state.region
REGION_LEVELS = ['Northeast', 'South', 'North Central', 'West']


def make_matrix() -> np.ndarray:
    """
    Build the 10x3 demonstration matrix.

    Column 1 holds 1-10, column 2 holds 11-20 and column 3 holds 21-30,
    the column-major fill of matrix(c(1:10, 11:20, 21:30), nrow=10, ncol=3).
    """
    return np.arange(1, 31).reshape(3, 10).T


def make_vector() -> np.ndarray:
    """Integers 1 to 10."""
    return np.arange(1, 11)


def make_list() -> List[np.ndarray]:
    """Three integer vectors of different lengths: 1-9, 1-12 and 1-15."""
    return [np.arange(1, 10), np.arange(1, 13), np.arange(1, 16)]


def make_tdata(matrix: Optional[np.ndarray] = None) -> pd.DataFrame:
    """
    Attach a grouping factor to the demonstration matrix.

    Args:
        matrix: 10-row matrix to extend (default: make_matrix())

    Returns:
        DataFrame with columns V1 (1 for the first five rows, 2 for the rest)
        and V2, V3, ... holding the matrix columns
    """
    if matrix is None:
        matrix = make_matrix()

    matrix = np.asarray(matrix)
    if matrix.ndim != 2 or matrix.shape[0] != 10:
        raise ValueError(f"Expected a matrix with 10 rows, got shape {matrix.shape}")

    tdata = pd.DataFrame({'V1': np.repeat([1, 2], 5)})
    for i in range(matrix.shape[1]):
        tdata[f'V{i + 2}'] = matrix[:, i]

    return tdata


def _read_state_csv(filename: str, data_dir: Optional[str] = None) -> pd.DataFrame:
    directory = Path(data_dir) if data_dir is not None else DATA_DIR
    path = directory / filename

    if not os.path.exists(path):
        raise FileNotFoundError(f"State data file not found at {path}")

    return pd.read_csv(path, index_col='State')


def load_state_x77(data_dir: Optional[str] = None) -> pd.DataFrame:
    """
    Load the state.x77 matrix: eight numeric measurements for the 50 states.

    Columns: Population (thousands, 1975), Income (per capita, 1974),
    Illiteracy (percent, 1970), Life Exp (years, 1969-71), Murder (per
    100,000, 1976), HS Grad (percent, 1970), Frost (mean days below freezing)
    and Area (land area in square miles).

    Args:
        data_dir: Directory holding state_x77.csv (default: bundled data)

    Returns:
        DataFrame indexed by state name, in alphabetical order

    Raises:
        FileNotFoundError: If the data file does not exist
        ValueError: If the file does not have the expected columns
    """
    frame = _read_state_csv(STATE_X77_FILE, data_dir)

    if list(frame.columns) != STATE_X77_COLUMNS:
        raise ValueError(
            f"Unexpected state.x77 columns: {list(frame.columns)}, expected {STATE_X77_COLUMNS}"
        )

    frame.index.name = None
    return frame


def load_state_area(data_dir: Optional[str] = None) -> pd.Series:
    """
    Load state.area: total area of each state in square miles.

    The order matches load_state_x77(), so both can be combined element-wise.
    """
    frame = _read_state_csv(STATE_INFO_FILE, data_dir)

    if 'Area' not in frame.columns:
        raise ValueError(f"{STATE_INFO_FILE} has no 'Area' column")

    area = frame['Area'].rename('area')
    area.index.name = None
    return area


def load_state_region(data_dir: Optional[str] = None) -> pd.Series:
    """Load state.region as a categorical Series with R's level order."""
    frame = _read_state_csv(STATE_INFO_FILE, data_dir)

    if 'Region' not in frame.columns:
        raise ValueError(f"{STATE_INFO_FILE} has no 'Region' column")

    unknown = set(frame['Region']) - set(REGION_LEVELS)
    if unknown:
        raise ValueError(f"Unknown regions in {STATE_INFO_FILE}: {sorted(unknown)}")

    region = frame['Region'].astype(pd.CategoricalDtype(REGION_LEVELS)).rename('region')
    region.index.name = None
    return region


def _structure_kind(series: pd.Series) -> str:
    if isinstance(series.dtype, pd.CategoricalDtype):
        return f"Factor w/ {len(series.cat.categories)} levels"
    if pd.api.types.is_integer_dtype(series):
        return "int"
    if pd.api.types.is_numeric_dtype(series):
        return "num"
    return "chr"


def describe_structure(frame: pd.DataFrame, n_values: int = 5) -> str:
    """
    Describe a DataFrame the way R's str() does.

    Example output:
        DataFrame: 50 obs. of 8 variables:
         $ Population: int  3615 365 2212 2110 21198 ...
    """
    lines = [f"DataFrame: {frame.shape[0]} obs. of {frame.shape[1]} variables:"]

    width = max((len(str(column)) for column in frame.columns), default=0)
    for column in frame.columns:
        series = frame[column]
        shown = ' '.join(str(value) for value in series.iloc[:n_values])
        suffix = ' ...' if len(series) > n_values else ''
        lines.append(f" $ {str(column):<{width}}: {_structure_kind(series)}  {shown}{suffix}")

    return '\n'.join(lines)
