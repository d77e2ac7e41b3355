"""
Classification breaks for hypsometric relief maps.

Breaks adapt to the elevation range of each region: low-relief regions get a
fine step so bands stay visible, strongly varying terrain gets a fixed coarse
step. Breaks are anchored to the 50 m grid so legend labels stay readable.
"""

import logging
import math
from typing import Tuple

import numpy as np

logger = logging.getLogger(__name__)

LOW_RELIEF_SPAN = 200
COARSE_STEP = 200
MIN_FINE_STEP = 50
GRID_ANCHOR = 50
FALLBACK_BREAKS = 5


def elevation_range(elevation) -> Tuple[float, float]:
    """
    Return (min, max) of the defined values in an elevation array.

    Raises:
        ValueError: If the array has no defined (non-NaN) values
    """
    values = np.asarray(elevation, dtype=np.float64)
    if values.size == 0 or np.all(np.isnan(values)):
        raise ValueError("Elevation data contains no defined values")
    return float(np.nanmin(values)), float(np.nanmax(values))


def break_step(lo: float, hi: float) -> float:
    """
    Interval between consecutive breaks for the range [lo, hi].

    Spans under 200 use max(50, span/10 rounded to the nearest 10); wider
    spans always use 200.
    """
    span = hi - lo
    if span < LOW_RELIEF_SPAN:
        return float(max(MIN_FINE_STEP, round(span / 10, -1)))
    return float(COARSE_STEP)


def _seq(start: float, stop: float, step: float) -> np.ndarray:
    """Values start, start+step, ... up to and including stop (within float tolerance)."""
    if stop < start:
        return np.array([], dtype=np.float64)
    n = int(math.floor((stop - start) / step + 1e-10))
    return np.minimum(start + np.arange(n + 1) * step, stop)


def compute_breaks(lo: float, hi: float) -> Tuple[float, ...]:
    """
    Compute classification breaks for an elevation range.

    Args:
        lo: Minimum defined elevation
        hi: Maximum defined elevation

    Returns:
        Tuple of break values spanning [lo, hi]. Perfectly flat ranges
        (lo == hi) and ranges that produce fewer than two breaks fall back to
        five evenly spaced values over [lo, hi], which may all be equal.

    Examples:
        >>> compute_breaks(10, 85)
        (0.0, 50.0, 100.0)
        >>> compute_breaks(5, 5)
        (5.0, 5.0, 5.0, 5.0, 5.0)
    """
    if hi < lo:
        raise ValueError(f"Invalid elevation range: min {lo} > max {hi}")

    step = break_step(lo, hi)
    start = math.floor(lo / GRID_ANCHOR) * GRID_ANCHOR
    stop = math.ceil(hi / GRID_ANCHOR) * GRID_ANCHOR

    breaks = _seq(start, stop, step) if hi > lo else np.array([], dtype=np.float64)

    if len(breaks) < 2:
        logger.debug(f"Degenerate range {lo:.1f}-{hi:.1f}, using {FALLBACK_BREAKS} even breaks")
        breaks = np.linspace(lo, hi, FALLBACK_BREAKS)

    logger.debug(f"Range {lo:.1f}-{hi:.1f} m, step {step:g}: {len(breaks)} breaks")
    return tuple(float(b) for b in breaks)
