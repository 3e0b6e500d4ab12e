"""
Speed Bin Classification (Functional Core)

Pure functions only.  No I/O, no side effects.

Package Location: src/speedstats/analysis/bins.py

Two fixed bin tables are used by the reporting tables:

``SPEED_BINS_8``  (24-hour speed summary)
    1-10, 10-20, 20-30, 30-40, 40-50, 50-60, 60-70, 70+

``SPEED_BINS_12`` (daily speed-bin distribution, device table layout)
    5-10, 11-15, 16-20, ..., 56-60, 61+

Downstream tables assume these exact boundaries; callers pick a table but
never build their own.

Classification rule:
    First bin with ``min <= speed < max`` wins; the final bin also takes
    any ``speed >= min`` regardless of ``max``.  Speeds below the first
    bin's ``min`` (and speeds that fall between the 1-unit steps of the
    12-bin table, e.g. 10.5) match nothing and are dropped from counts.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, List, Optional, Sequence, Tuple, Union

# Interpolation width assumed for the open-ended final bin
OPEN_BIN_WIDTH: float = 5.0


@dataclass(frozen=True)
class SpeedBin:
    """One speed range; ``max`` is ``math.inf`` for the open final bin."""

    min: float
    max: float
    label: str

    @property
    def is_open(self) -> bool:
        return math.isinf(self.max)

    @property
    def width(self) -> float:
        return OPEN_BIN_WIDTH if self.is_open else self.max - self.min


SPEED_BINS_8: Tuple[SpeedBin, ...] = (
    SpeedBin(1, 10, "1-10"),
    SpeedBin(10, 20, "10-20"),
    SpeedBin(20, 30, "20-30"),
    SpeedBin(30, 40, "30-40"),
    SpeedBin(40, 50, "40-50"),
    SpeedBin(50, 60, "50-60"),
    SpeedBin(60, 70, "60-70"),
    SpeedBin(70, math.inf, "70+"),
)

SPEED_BINS_12: Tuple[SpeedBin, ...] = (
    SpeedBin(5, 10, "5-10"),
    SpeedBin(11, 15, "11-15"),
    SpeedBin(16, 20, "16-20"),
    SpeedBin(21, 25, "21-25"),
    SpeedBin(26, 30, "26-30"),
    SpeedBin(31, 35, "31-35"),
    SpeedBin(36, 40, "36-40"),
    SpeedBin(41, 45, "41-45"),
    SpeedBin(46, 50, "46-50"),
    SpeedBin(51, 55, "51-55"),
    SpeedBin(56, 60, "56-60"),
    SpeedBin(61, math.inf, "61+"),
)

_SCHEMES = {8: SPEED_BINS_8, 12: SPEED_BINS_12}


def get_bins(scheme: Union[int, str]) -> Tuple[SpeedBin, ...]:
    """
    Resolve a bin-scheme identifier to its canonical table.

    Args:
        scheme: ``8`` or ``12`` (int or numeric string).

    Returns:
        ``SPEED_BINS_8`` or ``SPEED_BINS_12``.

    Raises:
        ValueError: For any other scheme.
    """
    try:
        return _SCHEMES[int(scheme)]
    except (KeyError, TypeError, ValueError):
        raise ValueError(
            f"Unknown speed bin scheme {scheme!r}; expected 8 or 12."
        ) from None


def classify(speed: float, bins: Sequence[SpeedBin]) -> Optional[int]:
    """
    Index of the bin *speed* falls into.

    Args:
        speed: Speed value (NaN never matches).
        bins:  Bin table.

    Returns:
        Bin index, or ``None`` when no bin matches.
    """
    last = len(bins) - 1
    for i, speed_bin in enumerate(bins):
        if speed_bin.min <= speed < speed_bin.max:
            return i
        if i == last and speed >= speed_bin.min:
            return i
    return None


def weighted_bin_counts(
    speeds: Iterable[float],
    weights: Iterable[int],
    bins: Sequence[SpeedBin],
) -> List[int]:
    """
    Histogram where each speed contributes its weight instead of 1.

    Used to spread interval vehicle counts over bins by the interval's
    average speed.

    Args:
        speeds:  Speed per item.
        weights: Weight per item (usually the interval vehicle count).
        bins:    Bin table.

    Returns:
        Summed weight per bin.
    """
    counts = [0] * len(bins)
    for speed, weight in zip(speeds, weights):
        index = classify(speed, bins)
        if index is not None:
            counts[index] += int(weight)
    return counts
