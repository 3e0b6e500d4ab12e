"""
Study Statistics (Functional Core)

Pure functions only.  No I/O, no side effects.

Computes one ``ReportStatistics`` over an arbitrary window of interval
records (not bucketed).

Package Location: src/speedstats/analysis/stats.py

85th-percentile source priority (first tier with usable evidence wins):
    1. True per-vehicle speeds (positive values), nearest rank.
    2. External per-date percentile map: mean of its positive p85 values.
    3. Direct per-interval p85 values: mean of the positive ones.
    4. Interval average speeds: nearest rank.
    5. ``None``.

A tier that is present but holds no positive value counts as no evidence
and falls through to the next one.  In particular, per-vehicle speeds that
are all zero or negative pass to the next tier rather than reporting 0.
"""

from __future__ import annotations

from typing import Iterable, Optional

import numpy as np

from .percentiles import mean, percentile_from_samples
from .records import (
    ExternalPercentileMap,
    IntervalInput,
    ReportStatistics,
    interval_frame,
    positive_float,
)

_P85: float = 0.85


def calculate_stats(
    records: IntervalInput,
    vehicle_speeds: Optional[Iterable[float]] = None,
    percentiles: Optional[ExternalPercentileMap] = None,
) -> ReportStatistics:
    """
    Totals, violation rate, average/peak speed and p85 for a record window.

    Args:
        records:        Interval data (records, mappings or DataFrame).
                        Timestamps are not required.
        vehicle_speeds: Optional individual vehicle speeds (finest evidence,
                        only some study types provide them).
        percentiles:    Optional external ``{date: {"p50", "p85"}}`` map.

    Returns:
        ``ReportStatistics``.  ``violation_rate``, ``avg_speed`` and
        ``peak_speed`` default to 0; ``p85`` is ``None`` when no tier has
        evidence.
    """
    df = interval_frame(records)

    total_vehicles = int(df["vehicles"].sum())
    total_violators = int(df["violators"].sum())

    has_speed = df["avg_speed"] > 0
    vehicles = df.loc[has_speed, "vehicles"]
    weights = vehicles.where(vehicles > 0, 1)
    weight_sum = float(weights.sum())
    avg_speed = (
        float((df.loc[has_speed, "avg_speed"] * weights).sum()) / weight_sum
        if weight_sum > 0 else 0.0
    )

    peaks = df.loc[df["peak_speed"] > 0, "peak_speed"]
    peak_speed = float(peaks.max()) if not peaks.empty else 0.0

    p85 = _p85_from_vehicles(vehicle_speeds)
    if p85 is None:
        p85 = _p85_from_external(percentiles)
    if p85 is None:
        direct = df.loc[df["p85"] > 0, "p85"]
        if not direct.empty:
            p85 = mean(direct.tolist())
    if p85 is None and has_speed.any():
        p85 = percentile_from_samples(df.loc[has_speed, "avg_speed"], _P85)

    return ReportStatistics(
        total_vehicles=total_vehicles,
        total_violators=total_violators,
        violation_rate=(
            (total_violators / total_vehicles) * 100 if total_vehicles > 0 else 0.0
        ),
        avg_speed=avg_speed,
        peak_speed=peak_speed,
        p85=p85,
    )


def _p85_from_vehicles(vehicle_speeds: Optional[Iterable[float]]) -> Optional[float]:
    if vehicle_speeds is None:
        return None
    speeds = np.asarray(list(vehicle_speeds), dtype=float)
    speeds = speeds[speeds > 0]
    if speeds.size == 0:
        return None
    return percentile_from_samples(speeds, _P85)


def _p85_from_external(percentiles: Optional[ExternalPercentileMap]) -> Optional[float]:
    if not percentiles:
        return None
    values = []
    for date_key in sorted(percentiles):
        entry = percentiles[date_key]
        value = positive_float(entry.get("p85")) if entry else None
        if value is not None:
            values.append(value)
    return mean(values) if values else None
