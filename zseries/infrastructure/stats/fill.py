"""
Infrastructure: Missing Value Fill

numpy and scipy implementations of the fill methods a dataset's fill() accepts.
Positions are treated as evenly spaced; NaN marks a missing value.
"""

from typing import Callable, Dict

import numpy as np
from scipy.interpolate import CubicSpline

from zseries.domain.errors import ConfigurationError


def _last_observed(vector: np.ndarray) -> np.ndarray:
    """For each position, index of the latest observed value at or before it, -1 if none."""
    positions = np.where(~np.isnan(vector), np.arange(vector.size), -1)
    return np.maximum.accumulate(positions) if vector.size else positions


def fill_previous(vector: np.ndarray) -> np.ndarray:
    last = _last_observed(vector)
    return np.where(last >= 0, vector[last], np.nan)


def fill_next(vector: np.ndarray) -> np.ndarray:
    return fill_previous(vector[::-1])[::-1]


def fill_nearest(vector: np.ndarray) -> np.ndarray:
    """Nearest observed value; ties go to the earlier one."""
    n = vector.size
    positions = np.arange(n)
    before = _last_observed(vector)
    after = (n - 1 - _last_observed(vector[::-1]))[::-1]
    after = np.where(after < n, after, -1)

    dist_before = np.where(before >= 0, positions - before, np.inf)
    dist_after = np.where(after >= 0, after - positions, np.inf)
    source = np.where(dist_before <= dist_after, before, after)
    return np.where(source >= 0, vector[source], np.nan)


def fill_linear(vector: np.ndarray) -> np.ndarray:
    """Linear interpolation between observed values; leading and trailing gaps stay NaN."""
    observed = np.flatnonzero(~np.isnan(vector))
    out = vector.copy()
    if observed.size < 2:
        return out
    inner = np.arange(observed[0], observed[-1] + 1)
    out[inner] = np.interp(inner, observed, vector[observed])
    return out


def fill_spline(vector: np.ndarray) -> np.ndarray:
    """Natural cubic spline through the observed values; leading and trailing gaps stay NaN."""
    observed = np.flatnonzero(~np.isnan(vector))
    out = vector.copy()
    if observed.size < 2:
        return out
    inner = np.arange(observed[0], observed[-1] + 1)
    out[inner] = CubicSpline(observed, vector[observed], bc_type="natural")(inner)
    return out


def fill_zero(vector: np.ndarray) -> np.ndarray:
    return np.where(np.isnan(vector), 0.0, vector)


FILL_METHODS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "linear": fill_linear,
    "nearest": fill_nearest,
    "next": fill_next,
    "previous": fill_previous,
    "spline": fill_spline,
    "zero": fill_zero,
}


def fill_missing(vector: np.ndarray, method: str) -> np.ndarray:
    """
    Fill NaN positions of a vector.

    Args:
        vector: 1-D float vector
        method: One of linear, nearest, next, previous, spline, zero

    Returns:
        New vector; the input is not modified

    Raises:
        ConfigurationError: Unknown method
    """
    try:
        fill = FILL_METHODS[method]
    except KeyError:
        raise ConfigurationError(
            f"unknown fill method {method!r}, expected one of {sorted(FILL_METHODS)}"
        ) from None
    return fill(np.asarray(vector, dtype=np.float64))
