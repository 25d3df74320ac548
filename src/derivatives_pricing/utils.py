"""Small shared helpers: timing, percentiles and interpolation."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Sequence
import time

import numpy as np

from .exceptions import EmptyDataError, InvalidParameterError

__all__ = [
    "log_timing",
    "calculate_percentile",
    "linear_interpolate",
]


@contextmanager
def log_timing(logger, label: str, enabled: bool) -> Iterator[None]:
    """Log timing for a code block when enabled is True."""
    if not enabled:
        yield
        return
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed = time.perf_counter() - start
        logger.debug("Timing %s: %.6fs", label, elapsed)


def calculate_percentile(data: Sequence[float] | np.ndarray, percentile: float) -> float:
    """Percentile of a sample with linear interpolation between order statistics.

    Parameters
    ==========
    data: sequence of float
        sample values (any order)
    percentile: float
        percentile in [0, 100]

    Returns
    =======
    float
        the interpolated percentile

    Raises
    ======
    EmptyDataError
        if data is empty
    """
    values = np.asarray(data, dtype=float).ravel()
    if values.size == 0:
        raise EmptyDataError("Cannot compute a percentile of an empty sample")
    if not 0.0 <= percentile <= 100.0:
        raise InvalidParameterError(f"percentile must be in [0, 100], got {percentile}")
    return float(np.percentile(values, percentile, method="linear"))


def linear_interpolate(
    xs: Sequence[float] | np.ndarray,
    ys: Sequence[float] | np.ndarray,
    x: float,
) -> float:
    """Piecewise-linear interpolation of (xs, ys) at x, clamped to the end values."""
    xs_arr = np.asarray(xs, dtype=float)
    ys_arr = np.asarray(ys, dtype=float)
    if xs_arr.size == 0:
        raise EmptyDataError("Cannot interpolate on an empty grid")
    if xs_arr.shape != ys_arr.shape:
        raise InvalidParameterError("xs and ys must have the same length")
    if np.any(np.diff(xs_arr) < 0):
        raise InvalidParameterError("xs must be sorted in ascending order")
    return float(np.interp(float(x), xs_arr, ys_arr))
