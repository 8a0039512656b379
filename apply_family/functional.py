"""
Apply Family

This module provides Python renditions of the base-R "apply family":
apply, lapply, sapply, vapply, tapply and mapply. Each one invokes a
user-supplied function over the rows, columns, cells, elements or groups of
a data collection and hands the real work to numpy and pandas.

The functions keep R's calling conventions where they matter for teaching:
margins are 1-based (1 = rows, 2 = columns), results of equal-length vector
calls are stacked as columns, and vapply checks every result against a type
template built with numeric(), integer(), character() or logical().
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd


logger = logging.getLogger(__name__)


_R_TYPE_NAMES = {
    'b': 'logical',
    'i': 'integer',
    'u': 'integer',
    'f': 'double',
    'c': 'complex',
    'U': 'character',
    'S': 'character',
    'O': 'character',
    'list': 'list',
}

# Result kinds a template kind accepts (logical -> integer -> double)
_COERCIBLE_KINDS = {
    'b': {'b'},
    'i': {'b', 'i', 'u'},
    'f': {'b', 'i', 'u', 'f'},
    'O': {'U', 'S', 'O'},
}


class DimensionError(ValueError):
    """Raised when apply() receives data with fewer than two dimensions."""


class ValueTemplateError(ValueError):
    """Raised when a vapply() result does not match its FUN.VALUE template."""


def numeric(n: int = 1) -> np.ndarray:
    """Template for n double values (R's numeric(n))."""
    return np.zeros(n, dtype=np.float64)


def integer(n: int = 1) -> np.ndarray:
    """Template for n integer values (R's integer(n))."""
    return np.zeros(n, dtype=np.int64)


def logical(n: int = 1) -> np.ndarray:
    """Template for n logical values (R's logical(n))."""
    return np.zeros(n, dtype=bool)


def character(n: int = 1) -> np.ndarray:
    """Template for n strings (R's character(n))."""
    return np.full(n, '', dtype=object)


_VECTOR_MODES = {
    'numeric': numeric,
    'double': numeric,
    'integer': integer,
    'logical': logical,
    'character': character,
}


def vector(mode: str = "numeric", length: int = 0) -> Union[np.ndarray, List]:
    """
    Pre-allocate a vector of the given mode, filled with zero values.

    Args:
        mode: One of numeric, double, integer, logical, character or list
        length: Number of elements

    Returns:
        Zero-filled numpy array, or a list of None for mode "list"

    Raises:
        ValueError: If mode is unknown or length is negative
    """
    if length < 0:
        raise ValueError(f"vector length must be non-negative, got {length}")

    if mode == 'list':
        return [None] * length

    if mode not in _VECTOR_MODES:
        raise ValueError(f"vector: cannot make a vector of mode '{mode}'")

    return _VECTOR_MODES[mode](length)


def rep(x: Any, times: int) -> np.ndarray:
    """
    Replicate x the given number of times (R's rep(x, times)).

    A vector argument is repeated as a whole, so rep([1, 2], 2) is [1, 2, 1, 2].
    """
    if int(times) != times or times < 0:
        raise ValueError(f"invalid 'times' argument: {times}")
    return np.tile(np.atleast_1d(x), int(times))


def _ndim(value: Any) -> Optional[int]:
    """Number of dimensions, or None for ragged nested sequences."""
    try:
        return np.ndim(value)
    except ValueError:
        return None


def _is_scalar(value: Any) -> bool:
    ndim = _ndim(value)
    return ndim == 0 or (ndim == 1 and np.size(value) == 1)


def _scalar(value: Any) -> Any:
    if np.ndim(value) == 0:
        return value
    return np.asarray(value).reshape(-1)[0]


def _common_length(results: Sequence[Any]) -> Optional[int]:
    """Shared length of 1-D vector results, or None when they differ."""
    if not results or not all(_ndim(r) == 1 for r in results):
        return None
    lengths = {len(r) for r in results}
    if len(lengths) != 1:
        return None
    return lengths.pop()


def _elements(X: Any) -> List[Any]:
    """Split a collection into the elements a list-apply iterates over."""
    if isinstance(X, dict):
        return list(X.values())
    if isinstance(X, pd.DataFrame):
        return [X[column] for column in X.columns]
    if isinstance(X, pd.Series):
        return list(X.to_numpy())
    if isinstance(X, np.ndarray):
        if X.ndim == 0:
            return [X[()]]
        # Matrices are traversed column by column
        return list(X.ravel(order='F')) if X.ndim > 1 else list(X)
    if isinstance(X, (list, tuple, range)):
        return list(X)
    if isinstance(X, (str, bytes)) or not hasattr(X, '__iter__'):
        return [X]
    return list(X)


def _own_names(X: Any) -> Optional[List[Any]]:
    """Names carried by the collection itself (dict keys, labels, columns)."""
    if isinstance(X, dict):
        return list(X.keys())
    if isinstance(X, pd.DataFrame):
        return list(X.columns)
    if isinstance(X, pd.Series) and not isinstance(X.index, pd.RangeIndex):
        return list(X.index)
    return None


def _element_names(X: Any, use_names: bool) -> Optional[List[Any]]:
    if not use_names:
        return None

    names = _own_names(X)
    if names is not None:
        return names

    # A character vector names its own results
    if isinstance(X, (list, tuple, np.ndarray, pd.Series)) and len(X) > 0:
        values = _elements(X)
        if all(isinstance(value, str) for value in values):
            return values

    return None


def _simplify(results: List[Any], names: Optional[List[Any]] = None) -> Any:
    """
    Simplify a list of results the way sapply does.

    All scalars become a 1-D array, equal-length vectors become a matrix with
    one column per element, anything else is returned as a list (or a dict
    when names are available).
    """
    if not results:
        return results

    if all(_is_scalar(r) for r in results):
        values = np.array([_scalar(r) for r in results])
        if names is not None:
            return pd.Series(values, index=names)
        return values

    length = _common_length(results)
    if length is not None and length > 1:
        matrix = np.column_stack([np.asarray(r) for r in results])
        if names is not None:
            return pd.DataFrame(matrix, columns=names)
        return matrix

    if names is not None:
        return dict(zip(names, results))
    return results


def _normalize_margin(margin: Union[int, Sequence[int]], ndim: int) -> Tuple[int, ...]:
    if isinstance(margin, (int, np.integer)):
        margins = (int(margin),)
    else:
        margins = tuple(int(m) for m in margin)

    if not margins:
        raise ValueError("MARGIN must contain at least one dimension")

    if len(set(margins)) != len(margins):
        raise ValueError(f"MARGIN contains duplicated dimensions: {margins}")

    for m in margins:
        if m < 1 or m > ndim:
            raise ValueError(f"'MARGIN' does not match dim(X): {m} not in 1..{ndim}")

    return margins


def apply(X: Any, margin: Union[int, Sequence[int]], fun: Callable, *args, **kwargs) -> Any:
    """
    Apply a function over the margins of a matrix or array.

    apply(X, MARGIN, FUN): X is the data, MARGIN picks rows (1), columns (2)
    or several dimensions at once ((1, 2) visits every cell of a matrix) and
    FUN is called once per slice.

    Args:
        X: Matrix-like data (numpy array, nested lists or pandas DataFrame)
        margin: 1-based dimension or tuple of dimensions to iterate over
        fun: Function called on each slice
        *args: Extra positional arguments forwarded to fun
        **kwargs: Extra keyword arguments forwarded to fun

    Returns:
        - numpy array shaped like the margin when every call returns a scalar
        - numpy array of shape (k, *margin) when every call returns a vector
          of length k; results become columns
        - list of raw results otherwise
        A DataFrame input with a single margin yields a labelled Series or
        DataFrame instead.

    Raises:
        DimensionError: If X has fewer than two dimensions
        ValueError: If margin does not fit the dimensions of X
    """
    frame = X if isinstance(X, pd.DataFrame) else None
    array = frame.to_numpy() if frame is not None else np.asarray(X)

    if array.ndim < 2:
        raise DimensionError("dim(X) must have a positive length")

    margins = _normalize_margin(margin, array.ndim)
    axes = [m - 1 for m in margins]
    extents = tuple(array.shape[axis] for axis in axes)

    results = []
    for position in np.ndindex(*extents):
        slicer = [slice(None)] * array.ndim
        for axis, index in zip(axes, position):
            slicer[axis] = index
        results.append(fun(array[tuple(slicer)], *args, **kwargs))

    labels = None
    if frame is not None and len(axes) == 1:
        labels = list(frame.index) if axes[0] == 0 else list(frame.columns)

    if all(_is_scalar(r) for r in results):
        values = np.array([_scalar(r) for r in results]).reshape(extents)
        if labels is not None:
            return pd.Series(values, index=labels)
        return values

    length = _common_length(results)
    if length is not None and length > 1:
        stacked = np.column_stack([np.asarray(r) for r in results])
        if labels is not None:
            return pd.DataFrame(stacked, columns=labels)
        return stacked.reshape((length,) + extents)

    return results


def lapply(X: Any, fun: Callable, *args, **kwargs) -> Union[List[Any], Dict[Any, Any]]:
    """
    Apply a function to every element of a list or vector.

    A plain vector is treated like a list, so lapply(vec, np.sum) calls sum on
    each single value instead of adding the vector up. Collections with names
    (dict, labelled Series, DataFrame columns) give back a dict with the same
    names; everything else gives a list.
    """
    results = [fun(element, *args, **kwargs) for element in _elements(X)]

    names = _own_names(X)
    if names is not None:
        return dict(zip(names, results))
    return results


def sapply(X: Any, fun: Callable, *args, simplify: bool = True, use_names: bool = True, **kwargs) -> Any:
    """
    lapply that simplifies its output when possible.

    Args:
        X: List, vector, dict, Series or DataFrame
        fun: Function applied to each element
        simplify: Collapse scalar results into a vector and equal-length
            vector results into a matrix
        use_names: Label results with the element names, or with the values
            themselves for a character vector

    Returns:
        Simplified array/Series/DataFrame, or the unsimplified list/dict
    """
    results = [fun(element, *args, **kwargs) for element in _elements(X)]
    names = _element_names(X, use_names)

    if not simplify:
        if names is not None:
            return dict(zip(names, results))
        return results

    return _simplify(results, names)


def _check_template(result: Any, template: np.ndarray, position: int) -> np.ndarray:
    # None stands in for R's NULL, a zero-length result
    try:
        values = np.asarray([] if result is None else result)
    except ValueError:
        raise ValueTemplateError(
            f"values must be length {template.size},\n"
            f" but FUN(X[[{position}]]) result is a ragged list of length {len(result)}"
        )

    if values.ndim > 1 or values.size != template.size:
        raise ValueTemplateError(
            f"values must be length {template.size},\n"
            f" but FUN(X[[{position}]]) result is length {values.size}"
        )

    template_kind = 'i' if template.dtype.kind == 'u' else template.dtype.kind
    allowed = _COERCIBLE_KINDS.get(template_kind, {template_kind})

    result_kind = values.dtype.kind
    if result_kind == 'O':
        # Object arrays only hold character values when every element is a str
        strays = [value for value in values.ravel() if not isinstance(value, str)]
        if strays:
            result_kind = np.asarray(strays[0]).dtype.kind
            if result_kind == 'O':
                result_kind = 'list'

    if result_kind not in allowed:
        raise ValueTemplateError(
            f"values must be type '{_R_TYPE_NAMES.get(template.dtype.kind, template.dtype.name)}',\n"
            f" but FUN(X[[{position}]]) result is type "
            f"'{_R_TYPE_NAMES.get(result_kind, values.dtype.name)}'"
        )

    return values.reshape(template.size).astype(template.dtype)


def vapply(X: Any, fun: Callable, fun_value: np.ndarray, *args, use_names: bool = True, **kwargs) -> Any:
    """
    sapply with a declared result type.

    Every result must match fun_value in length and type, for example
    numeric(1) for "one number per element". A mismatch raises an error
    instead of silently producing a list, which makes vapply the safe choice
    when exactly one result per subject is expected.

    Args:
        X: List, vector, dict, Series or DataFrame
        fun: Function applied to each element
        fun_value: Template built with numeric(), integer(), logical() or
            character()
        use_names: Label results with element names when available

    Returns:
        1-D array for length-1 templates, otherwise a (len(fun_value), n)
        matrix; a Series/DataFrame when names are available

    Raises:
        ValueTemplateError: If any result does not match the template
    """
    template = np.asarray(fun_value)
    if template.ndim != 1:
        raise ValueError("FUN.VALUE must be a vector")

    elements = _elements(X)
    names = _element_names(X, use_names)

    checked = [
        _check_template(fun(element, *args, **kwargs), template, position)
        for position, element in enumerate(elements, start=1)
    ]

    if template.size == 1:
        values = np.array([c[0] for c in checked], dtype=template.dtype)
        if names is not None:
            return pd.Series(values, index=names)
        return values

    if not checked:
        return np.empty((template.size, 0), dtype=template.dtype)

    matrix = np.column_stack(checked).astype(template.dtype)
    if names is not None:
        return pd.DataFrame(matrix, columns=names)
    return matrix


def tapply(X: Any, index: Any, fun: Callable, *args, **kwargs) -> pd.Series:
    """
    Apply a function to each group of values defined by a factor.

    tapply(X, INDEX, FUN): INDEX is the factor used to separate the data.
    Groups follow the level order of a categorical index, or the sorted unique
    values otherwise. Empty levels give NaN without calling fun.

    Args:
        X: 1-D values
        index: Factor of the same length as X
        fun: Function applied to each group

    Returns:
        Series indexed by level; holds arrays (object dtype) when fun returns
        vectors

    Raises:
        ValueError: If X and index differ in length
    """
    values = X.to_numpy() if isinstance(X, pd.Series) else np.asarray(X)
    if values.ndim != 1:
        raise ValueError(f"tapply expects 1-D values, got {values.ndim} dimensions")

    factor = pd.Categorical(index)
    if len(factor) != len(values):
        raise ValueError(
            f"arguments must have same length: X has {len(values)}, INDEX has {len(factor)}"
        )

    results = []
    for code in range(len(factor.categories)):
        group = values[factor.codes == code]
        results.append(fun(group, *args, **kwargs) if group.size else np.nan)

    levels = pd.Index(factor.categories)

    if all(_is_scalar(r) for r in results):
        return pd.Series([_scalar(r) for r in results], index=levels)

    return pd.Series(results, index=levels, dtype=object)


def mapply(
    fun: Callable,
    *iterables,
    more_args: Optional[Dict[str, Any]] = None,
    simplify: bool = True,
    use_names: bool = True
) -> Any:
    """
    Apply a function in parallel over several vectors.

    The first vector feeds the first argument of fun, the second vector the
    second argument, and so on. Shorter vectors are recycled to the length of
    the longest one. more_args holds keyword arguments passed to every call.

    Example:
        mapply(rep, range(1, 10), range(9, 0, -1)) repeats 1 nine times,
        2 eight times, ..., 9 once.

    Returns:
        Simplified result like sapply, or a list/dict when simplify is False

    Raises:
        ValueError: If zero-length inputs are mixed with non-empty ones
    """
    more_args = more_args or {}
    columns = [_elements(iterable) for iterable in iterables]

    if not columns:
        return []

    lengths = [len(column) for column in columns]
    longest = max(lengths)

    if longest == 0:
        return []

    if min(lengths) == 0:
        raise ValueError("zero-length inputs cannot be mixed with those of non-zero length")

    if any(longest % length for length in lengths):
        logger.warning("longer argument not a multiple of length of shorter")

    results = [
        fun(*(column[i % len(column)] for column in columns), **more_args)
        for i in range(longest)
    ]

    names = _element_names(iterables[0], use_names)
    if names is not None and len(names) != longest:
        names = None

    if not simplify:
        if names is not None:
            return dict(zip(names, results))
        return results

    return _simplify(results, names)
