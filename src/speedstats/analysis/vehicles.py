"""
Per-Vehicle Rollup (Functional Core)

Pure functions only.  No I/O, no side effects.

Some counters log every vehicle (timestamp + speed) instead of interval
summaries.  This module rolls those observations up into hourly
``IntervalRecord`` objects so the rest of the package can treat every study
type alike, and exposes the raw speeds for the per-vehicle p85 tier of
``stats.calculate_stats``.

Package Location: src/speedstats/analysis/vehicles.py

Rollup rules (per local calendar hour):
    - observations without a timestamp or with speed <= 0 are dropped
    - vehicles   = number of observations
    - violators  = observations strictly above ``speed_limit`` (0 when no
                   positive limit is set)
    - avg_speed  = arithmetic mean, peak_speed = max
    - p85        = nearest-rank 85th percentile (same rank rule as
                   ``percentile_from_samples``)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Optional, Union

import pandas as pd

from .percentiles import percentile_from_samples
from .records import IntervalRecord, to_timestamps

_P85: float = 0.85


@dataclass(frozen=True)
class VehicleObservation:
    """A single vehicle passing the counter."""

    timestamp: Optional[datetime]
    speed: float


VehicleInput = Union[pd.DataFrame, Iterable[Union[VehicleObservation, Mapping[str, Any]]]]


def vehicle_frame(
    observations: VehicleInput,
    timezone: Optional[str] = None,
) -> pd.DataFrame:
    """
    Normalise per-vehicle input to a ``[datetime, speed]`` DataFrame.

    Args:
        observations: VehicleObservations, mappings with ``datetime`` (or
            ``timestamp``) and ``speed`` keys, or a DataFrame.
        timezone: Study timezone for tz-aware timestamps.

    Returns:
        DataFrame with naive local ``datetime`` (NaT when unparseable) and
        float ``speed`` (NaN when unparseable).
    """
    if isinstance(observations, pd.DataFrame):
        df = observations.rename(columns={"timestamp": "datetime"})
    else:
        rows = [
            {"datetime": o.timestamp, "speed": o.speed}
            if isinstance(o, VehicleObservation) else dict(o)
            for o in observations
        ]
        df = pd.DataFrame(rows).rename(columns={"timestamp": "datetime"})

    out = pd.DataFrame(index=df.index)
    if "datetime" in df.columns:
        out["datetime"] = to_timestamps(df["datetime"], timezone)
    else:
        out["datetime"] = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")
    if "speed" in df.columns:
        out["speed"] = pd.to_numeric(df["speed"], errors="coerce").astype(float)
    else:
        out["speed"] = pd.Series(float("nan"), index=df.index, dtype=float)
    return out.reset_index(drop=True)


def vehicle_speeds(observations: VehicleInput) -> List[float]:
    """Positive speeds of all observations, in input order."""
    speeds = vehicle_frame(observations)["speed"]
    return speeds.loc[speeds > 0].tolist()


def intervals_from_vehicles(
    observations: VehicleInput,
    speed_limit: float = 0,
    timezone: Optional[str] = None,
) -> List[IntervalRecord]:
    """
    Roll per-vehicle observations up into hourly interval records.

    Args:
        observations: Per-vehicle data (see ``vehicle_frame``).
        speed_limit:  Posted limit; vehicles strictly faster are violators.
                      ``0`` disables violator counting.
        timezone:     Study timezone for tz-aware timestamps.

    Returns:
        One ``IntervalRecord`` per hour that has at least one valid
        observation, ordered by hour.  Timestamps are the naive local hour
        start.
    """
    df = vehicle_frame(observations, timezone=timezone)
    df = df.loc[df["datetime"].notna() & (df["speed"] > 0)]
    if df.empty:
        return []

    hours = df["datetime"].dt.floor("h")
    intervals: List[IntervalRecord] = []
    for start, speeds in df.groupby(hours, sort=True)["speed"]:
        values = speeds.to_numpy()
        violators = int((values > speed_limit).sum()) if speed_limit > 0 else 0
        intervals.append(
            IntervalRecord(
                timestamp=start.to_pydatetime(),
                vehicles=int(values.size),
                violators=violators,
                avg_speed=float(values.mean()),
                peak_speed=float(values.max()),
                p85=percentile_from_samples(values, _P85),
            )
        )
    return intervals
