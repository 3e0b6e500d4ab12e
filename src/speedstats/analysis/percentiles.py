"""
Speed Percentile Estimation (Functional Core)

Pure functions only.  No I/O, no side effects.

Package Location: src/speedstats/analysis/percentiles.py

Two estimators are provided:

``percentile_from_samples``
    Nearest-rank order statistic over raw samples.  The rank formula
    ``ceil(p * n) - 1`` is shared with the per-vehicle rollup and the
    bucket aggregators, so all of them must agree to the last bit.  It is
    *not* a linear interpolation between neighbouring samples.

``percentile_from_bins``
    Linear interpolation inside a pre-binned histogram, used when only
    per-bin vehicle counts are available (device speed-bin tables).
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence

import numpy as np

from .bins import SpeedBin

# Fallback offset into the last bin when cumulative counts never reach target
_LAST_BIN_FALLBACK: float = 2.0


def percentile_from_samples(values: Iterable[float], p: float) -> float:
    """
    Nearest-rank percentile of *values*.

    Args:
        values: Numeric samples in any order.
        p:      Fraction in ``[0, 1]`` (``0.85`` for p85).

    Returns:
        The sample at sorted index ``ceil(p * n) - 1`` (clamped to
        ``[0, n - 1]``), or ``0.0`` for empty input.
    """
    arr = np.sort(np.asarray(list(values), dtype=float))
    n = arr.size
    if n == 0:
        return 0.0
    index = min(max(math.ceil(p * n) - 1, 0), n - 1)
    return float(arr[index])


def percentile_from_bins(
    counts: Sequence[float],
    bins: Sequence[SpeedBin],
    p: float,
) -> int:
    """
    Percentile of a binned speed distribution by linear interpolation.

    The target rank is ``total * p``.  Within the first bin whose running
    total reaches the target, the result is placed proportionally between
    the bin's lower edge and its upper edge (the open final bin counts as
    5 units wide).

    Args:
        counts: Vehicle count per bin, aligned with *bins*.
        bins:   Bin table (``SPEED_BINS_8`` or ``SPEED_BINS_12``).
        p:      Fraction in ``[0, 1]``.

    Returns:
        Interpolated speed rounded half-up to an integer.  ``0`` when the
        histogram is empty.
    """
    total = sum(counts)
    if total == 0:
        return 0

    target = total * p
    cumulative = 0
    for count, speed_bin in zip(counts, bins):
        cumulative += count
        if cumulative >= target:
            position = target - (cumulative - count)
            fraction = position / count if count > 0 else 0.0
            return _round_half_up(speed_bin.min + fraction * speed_bin.width)

    return _round_half_up(bins[-1].min + _LAST_BIN_FALLBACK)


def p85_from_bins(counts: Sequence[float], bins: Sequence[SpeedBin]) -> int:
    """85th percentile of a binned distribution."""
    return percentile_from_bins(counts, bins, 0.85)


def p50_from_bins(counts: Sequence[float], bins: Sequence[SpeedBin]) -> int:
    """Median of a binned distribution."""
    return percentile_from_bins(counts, bins, 0.50)


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; ``0.0`` for empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def _round_half_up(value: float) -> int:
    # Report tables were built with round-half-up, not banker's rounding
    return int(math.floor(value + 0.5))
