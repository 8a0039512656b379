"""
Apply Family Tutorial

A narrated walk-through of apply, lapply, sapply, vapply, tapply and mapply.
Every section prints what it does and returns the values it computed, so the
same code backs the console tutorial and the tests.

Usage:
    python -m apply_family.tutorial
    python -m apply_family.tutorial --section apply
    python -m apply_family.tutorial --section states --data-dir ./my_state_data
"""

import argparse
import inspect
import logging
import sys
from typing import Any, Callable, Dict, List, Optional

import numpy as np
from scipy import stats

from apply_family import functional
from apply_family.datasets import (
    describe_structure,
    load_state_area,
    load_state_region,
    load_state_x77,
    make_list,
    make_matrix,
    make_tdata,
    make_vector,
)
from apply_family.functional import (
    DimensionError,
    ValueTemplateError,
    apply,
    lapply,
    mapply,
    numeric,
    rep,
    sapply,
    tapply,
    vapply,
    vector,
)


logger = logging.getLogger(__name__)

APPLY_FUNCTIONS = ['apply', 'lapply', 'sapply', 'vapply', 'tapply', 'mapply']


def sd(x) -> float:
    """Sample standard deviation (n - 1 denominator), like R's sd()."""
    return float(np.std(x, ddof=1))


def standard_error(x) -> float:
    """Standard error of the mean: sd(x) / sqrt(length(x))."""
    return float(stats.sem(x))


def help_text(name: str) -> str:
    """
    Return the documentation of an apply-family function (the ?apply step).

    Raises:
        ValueError: If name is not one of the apply functions
    """
    if name not in APPLY_FUNCTIONS:
        raise ValueError(f"No documentation for '{name}'. Choose from: {', '.join(APPLY_FUNCTIONS)}")
    return inspect.getdoc(getattr(functional, name))


def print_help(*names: str) -> None:
    """Print the summary line of each named function's documentation (?name)."""
    for name in names:
        print(f"?{name}: {help_text(name).splitlines()[0]}")
    print()


def print_header(text: str) -> None:
    print("\n" + "=" * 70)
    print(text.center(70))
    print("=" * 70 + "\n")


def _show(title: str, value: Any, note: Optional[str] = None, verbose: bool = True) -> Any:
    if verbose:
        print(f"# {title}")
        if note:
            print(f"# {note}")
        print(value)
        print()
    return value


def apply_section(matrix: Optional[np.ndarray] = None, verbose: bool = True) -> Dict[str, Any]:
    """
    apply(X, MARGIN, FUN) on the demonstration matrix.

    Covers row and column sums, an inline function (n - 1), a function
    defined outside the call (standard error), a cell-wise transform with
    MARGIN = (1, 2), and the error raised when apply meets a plain vector.
    """
    if matrix is None:
        matrix = make_matrix()

    if verbose:
        print_header("apply")
        print_help('apply')

    results = {'matrix': _show("my_matrx", matrix, verbose=verbose)}

    results['row_sums'] = _show(
        "Row sums: apply(my_matrx, 1, np.sum)",
        apply(matrix, 1, np.sum),
        verbose=verbose
    )
    results['col_sums'] = _show(
        "Column sums: apply(my_matrx, 2, np.sum)",
        apply(matrix, 2, np.sum),
        verbose=verbose
    )
    results['col_lengths'] = _show(
        "Data points per column: apply(my_matrx, 2, len)",
        apply(matrix, 2, len),
        verbose=verbose
    )
    results['col_lengths_minus_one'] = _show(
        "n - 1 per column with an inline function",
        apply(matrix, 2, lambda x: len(x) - 1),
        note="There is no built-in for this, so the function is written inside the call.",
        verbose=verbose
    )
    results['col_standard_errors'] = _show(
        "Standard error per column: apply(my_matrx, 2, standard_error)",
        apply(matrix, 2, standard_error),
        note="standard_error is defined once and can be reused later.",
        verbose=verbose
    )
    results['plus_three'] = _show(
        "Transforming every cell: apply(my_matrx, (1, 2), lambda x: x + 3)",
        apply(matrix, (1, 2), lambda x: x + 3),
        verbose=verbose
    )

    vec = make_vector()
    try:
        apply(vec, 1, np.sum)
        message = None
    except DimensionError as e:
        message = f"Error in apply(vec, 1, np.sum): {e}"

    results['vector_error'] = _show(
        "apply on a vector",
        message,
        note="apply expects at least two dimensions; use lapply, sapply or vapply for vectors.",
        verbose=verbose
    )

    return results


def list_section(verbose: bool = True) -> Dict[str, Any]:
    """
    lapply, sapply and vapply on a vector and on a list of vectors.

    lapply always returns a list, sapply simplifies to a vector when it can,
    and vapply additionally checks every result against a declared template.
    """
    vec = make_vector()
    my_lst = make_list()

    if verbose:
        print_header("lapply, sapply and vapply")
        print_help('lapply', 'sapply', 'vapply')

    results = {}
    results['lapply_vector'] = _show(
        "lapply(vec, np.sum)",
        lapply(vec, np.sum),
        note="The vector is treated like a list, so each value is summed on its own.",
        verbose=verbose
    )
    results['lapply_list'] = _show(
        "lapply(my_lst, np.sum)",
        lapply(my_lst, np.sum),
        note="A list of the three sums.",
        verbose=verbose
    )
    results['sapply_vector'] = _show("sapply(vec, np.sum)", sapply(vec, np.sum), verbose=verbose)
    results['sapply_list'] = _show(
        "sapply(my_lst, np.sum)",
        sapply(my_lst, np.sum),
        note="Simplified to a vector.",
        verbose=verbose
    )
    results['vapply_vector'] = _show(
        "vapply(vec, np.sum, numeric(1))",
        vapply(vec, np.sum, numeric(1)),
        verbose=verbose
    )
    results['vapply_list'] = _show(
        "vapply(my_lst, np.sum, numeric(1))",
        vapply(my_lst, np.sum, numeric(1)),
        verbose=verbose
    )

    try:
        vapply(my_lst, lambda x: x + 2, numeric(1))
        message = None
    except ValueTemplateError as e:
        message = f"Error in vapply(my_lst, lambda x: x + 2, numeric(1)): {e}"

    results['vapply_error'] = _show(
        "vapply with a function returning several values",
        message,
        note="numeric(1) promises one number per element, so a longer result is an error.",
        verbose=verbose
    )

    return results


def tapply_section(verbose: bool = True) -> Dict[str, Any]:
    """tapply(X, INDEX, FUN): group means and a combined mean/sd summary."""
    tdata = make_tdata()

    if verbose:
        print_header("tapply")
        print_help('tapply')

    results = {'tdata': _show("tdata", tdata, verbose=verbose)}
    results['group_means'] = _show(
        "tapply(tdata['V2'], tdata['V1'], np.mean)",
        tapply(tdata['V2'], tdata['V1'], np.mean),
        verbose=verbose
    )
    results['group_summary'] = _show(
        "Mean and sd of V2 by V1",
        tapply(tdata['V2'], tdata['V1'], lambda x: np.array([np.mean(x), sd(x)])),
        verbose=verbose
    )

    return results


def mapply_section(verbose: bool = True) -> Dict[str, Any]:
    """
    mapply(FUN, ...): paired iteration over several vectors.

    Repeats values with rep, derives a ratio column and fills a
    pre-allocated vector with products.
    """
    tdata = make_tdata()

    if verbose:
        print_header("mapply")
        print_help('mapply')

    results = {}
    results['repeats'] = _show(
        "mapply(rep, range(1, 10), range(9, 0, -1))",
        mapply(rep, range(1, 10), range(9, 0, -1)),
        note="The first vector gives the value, the second how many times to repeat it.",
        verbose=verbose
    )

    tdata['V5'] = mapply(lambda x, y: x / y, tdata['V2'], tdata['V4'])
    results['ratio'] = _show("tdata['V5'] = V2 / V4", tdata['V5'].to_numpy(), verbose=verbose)
    results['tdata'] = _show("tdata", tdata, verbose=verbose)

    new_vec = vector(mode="numeric", length=10)
    _show("Pre-allocated new_vec", new_vec, verbose=verbose)
    new_vec = mapply(lambda x, y: x * y, tdata['V3'], tdata['V4'])
    results['products'] = _show("new_vec = V3 * V4", new_vec, verbose=verbose)

    return results


def state_section(data_dir: Optional[str] = None, verbose: bool = True) -> Dict[str, Any]:
    """
    apply, mapply and tapply on the 50-state dataset.

    Column summaries of state.x77, population density from two separate
    sources combined element-wise, and population ranges by region.
    """
    state_x77 = load_state_x77(data_dir)
    state_area = load_state_area(data_dir)
    state_region = load_state_region(data_dir)
    logger.info(f"Loaded state data: {state_x77.shape[0]} states, {state_x77.shape[1]} measurements")

    if verbose:
        print_header("Apply functions on the state dataset")

    results = {}
    results['head'] = _show("state_x77.head()", state_x77.head(), verbose=verbose)
    results['structure'] = _show("Structure of state_x77", describe_structure(state_x77), verbose=verbose)

    results['means'] = _show("apply(state_x77, 2, np.mean)", apply(state_x77, 2, np.mean), verbose=verbose)
    results['medians'] = _show("apply(state_x77, 2, np.median)", apply(state_x77, 2, np.median), verbose=verbose)
    results['sds'] = _show("apply(state_x77, 2, sd)", apply(state_x77, 2, sd), verbose=verbose)

    state_summary = apply(state_x77, 2, lambda x: np.array([np.mean(x), sd(x)]))
    state_summary.index = ['mean', 'sd']
    results['state_summary'] = _show("Mean and sd per column", state_summary, verbose=verbose)

    state_range = apply(state_x77, 2, lambda x: np.array([np.min(x), np.median(x), np.max(x)]))
    state_range.index = ['min', 'median', 'max']
    results['state_range'] = _show("Min, median and max per column", state_range, verbose=verbose)

    population = state_x77['Population']
    results['population_density'] = _show(
        "Population density: mapply(lambda x, y: x / y, population, state_area)",
        mapply(lambda x, y: x / y, population, state_area),
        note="Both vectors are in alphabetical state order, so they pair up element by element.",
        verbose=verbose
    )

    results['region_info'] = _show(
        "Population min, median and max by region",
        tapply(population, state_region, lambda x: np.array([np.min(x), np.median(x), np.max(x)])),
        verbose=verbose
    )

    return results


SECTIONS: Dict[str, Callable[..., Dict[str, Any]]] = {
    'apply': apply_section,
    'lists': list_section,
    'tapply': tapply_section,
    'mapply': mapply_section,
    'states': state_section,
}


def run_tutorial(
    sections: Optional[List[str]] = None,
    data_dir: Optional[str] = None,
    verbose: bool = True
) -> Dict[str, Dict[str, Any]]:
    """
    Run tutorial sections in order.

    Args:
        sections: Section names to run (default: all, in tutorial order)
        data_dir: Directory with the state CSV files (default: bundled data)
        verbose: Whether to print narration and results

    Returns:
        Dictionary mapping section name to the values it computed

    Raises:
        ValueError: If a section name is unknown
    """
    if sections is None:
        sections = list(SECTIONS)

    unknown = [name for name in sections if name not in SECTIONS]
    if unknown:
        raise ValueError(f"Unknown section(s): {', '.join(unknown)}. Choose from: {', '.join(SECTIONS)}")

    results = {}
    for name in sections:
        logger.debug(f"Running section '{name}'")
        if name == 'states':
            results[name] = state_section(data_dir=data_dir, verbose=verbose)
        else:
            results[name] = SECTIONS[name](verbose=verbose)

    return results


def main():
    parser = argparse.ArgumentParser(
        description="Walk through the apply family of functions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the whole tutorial
  python -m apply_family.tutorial

  # Only the apply and tapply sections
  python -m apply_family.tutorial --section apply --section tapply

  # Use state data from another directory
  python -m apply_family.tutorial --section states --data-dir ./state_data
        """
    )

    parser.add_argument(
        '--section',
        action='append',
        choices=list(SECTIONS),
        help='Section to run; repeat for several (default: all)'
    )

    parser.add_argument(
        '--data-dir',
        type=str,
        default=None,
        help='Directory containing state_x77.csv and state_info.csv (default: bundled data)'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default='WARNING',
        help='Logging level (default: WARNING)'
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        run_tutorial(sections=args.section, data_dir=args.data_dir)
    except Exception as e:
        print(f"\n✗ ERROR: {str(e)}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
