"""
Speed Study Records (Functional Core)

Pure data types and normalisation helpers.  No I/O, no side effects.

Package Location: src/speedstats/analysis/records.py

Every aggregator in this package accepts interval data in one of three
forms and funnels it through :func:`interval_frame`:

1. A sequence of :class:`IntervalRecord` objects.
2. A sequence of plain mappings (``{"datetime": ..., "vehicles": ...}``).
3. A ``pandas.DataFrame`` with the canonical interval columns.

Canonical interval columns::

    datetime    timestamp of the interval (NaT -> skipped by bucketing)
    vehicles    int, 0 when absent
    violators   int, 0 when absent
    avg_speed   float, NaN when absent (evidence only when > 0)
    peak_speed  float, NaN when absent (0 is treated as absent)
    p85         float, NaN when absent (a direct per-interval percentile)

Truthiness rule:
    The reporting tool treats a zero ``avg_speed``, ``peak_speed`` or
    ``p85`` as "not recorded".  The aggregators keep that rule by only
    counting strictly positive values as evidence.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, tzinfo
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from ..utils.timezone import resolve_pytz, to_local_wall_time

# ---------------------------------------------------------------------------
# Column schema
# ---------------------------------------------------------------------------

INTERVAL_COLUMNS: List[str] = [
    "datetime", "vehicles", "violators", "avg_speed", "peak_speed", "p85",
]

_COUNT_COLUMNS = ("vehicles", "violators")
_SPEED_COLUMNS = ("avg_speed", "peak_speed", "p85")

# Alternate field names accepted on input
_COLUMN_ALIASES: Dict[str, str] = {
    "timestamp":      "datetime",
    "vehicle_count":  "vehicles",
    "violator_count": "violators",
    "direct_p85":     "p85",
}

# {"YYYY-MM-DD": {"p50": float, "p85": float}}
ExternalPercentileMap = Mapping[str, Mapping[str, float]]


# ---------------------------------------------------------------------------
# Input record
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class IntervalRecord:
    """One sensor-reported measurement window.

    ``p85`` is a percentile computed upstream for this interval (device
    firmware or per-vehicle rollup) and outranks anything derived from
    ``avg_speed``.
    """

    timestamp: Optional[datetime]
    vehicles: int = 0
    violators: int = 0
    avg_speed: Optional[float] = None
    peak_speed: Optional[float] = None
    p85: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "datetime":   self.timestamp,
            "vehicles":   self.vehicles,
            "violators":  self.violators,
            "avg_speed":  self.avg_speed,
            "peak_speed": self.peak_speed,
            "p85":        self.p85,
        }


IntervalInput = Union[pd.DataFrame, Iterable[Union[IntervalRecord, Mapping[str, Any]]]]


# ---------------------------------------------------------------------------
# Output records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BucketSummary:
    """Aggregate for one calendar day or one calendar hour.

    ``None`` fields mean "no data" and must be rendered as such, never as 0.
    """

    key: str
    label: str
    start: datetime
    vehicles: int = 0
    violators: int = 0
    non_speeders: int = 0
    pct_speeders: Optional[float] = None
    avg_speed: Optional[float] = None
    peak_speed: Optional[float] = None
    p85: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class HourOfDaySummary:
    """Aggregate for one hour-of-day slot (0-23) across all dates."""

    hour: int
    label: str
    vehicles: int = 0
    violators: int = 0
    avg_speed: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ReportStatistics:
    """Scalar summary over an arbitrary record window."""

    total_vehicles: int = 0
    total_violators: int = 0
    violation_rate: float = 0.0
    avg_speed: float = 0.0
    peak_speed: float = 0.0
    p85: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Return the camelCase mapping consumed by report headers."""
        return {
            "totalVehicles":  self.total_vehicles,
            "totalViolators": self.total_violators,
            "violationRate":  self.violation_rate,
            "avgSpeed":       self.avg_speed,
            "peakSpeed":      self.peak_speed,
            "p85":            self.p85,
        }


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def interval_frame(
    records: IntervalInput,
    timezone: Optional[str] = None,
) -> pd.DataFrame:
    """
    Normalise interval input into the canonical DataFrame.

    Args:
        records: IntervalRecords, mappings, or a DataFrame.  Column aliases
            (``timestamp``, ``vehicle_count``, ``violator_count``,
            ``direct_p85``) are accepted.
        timezone: IANA timezone of the study.  Timezone-aware timestamps are
            converted to this zone and made naive (local wall time).  When
            ``None``, aware timestamps keep their own zone's wall time.

    Returns:
        New DataFrame with exactly :data:`INTERVAL_COLUMNS`, in input order.
        ``datetime`` is naive ``datetime64``; unparseable values are NaT.
    """
    if isinstance(records, pd.DataFrame):
        df = records.rename(columns=_COLUMN_ALIASES)
    else:
        rows = [
            r.to_dict() if isinstance(r, IntervalRecord) else dict(r)
            for r in records
        ]
        df = pd.DataFrame(rows).rename(columns=_COLUMN_ALIASES)

    out = pd.DataFrame(index=df.index)

    if "datetime" in df.columns:
        out["datetime"] = to_timestamps(df["datetime"], timezone)
    else:
        out["datetime"] = pd.Series(pd.NaT, index=df.index, dtype="datetime64[ns]")

    for col in _COUNT_COLUMNS:
        if col in df.columns:
            values = pd.to_numeric(df[col], errors="coerce").fillna(0)
            out[col] = values.astype(np.int64)
        else:
            out[col] = pd.Series(0, index=df.index, dtype=np.int64)

    for col in _SPEED_COLUMNS:
        if col in df.columns:
            out[col] = pd.to_numeric(df[col], errors="coerce").astype(float)
        else:
            out[col] = pd.Series(np.nan, index=df.index, dtype=float)

    return out.reset_index(drop=True)


def summaries_to_frame(summaries: Sequence[Any]) -> pd.DataFrame:
    """
    Flatten a list of summary dataclasses into a DataFrame.

    ``None`` fields become NaN, which charting and table code treats as
    "no data".

    Args:
        summaries: BucketSummary / HourOfDaySummary (or any object with
            ``to_dict()``) instances.

    Returns:
        One row per summary, columns in field order.  Empty DataFrame for
        empty input.
    """
    return pd.DataFrame([s.to_dict() for s in summaries])


def external_p85(
    percentiles: Optional[ExternalPercentileMap],
    date_key: str,
) -> Optional[float]:
    """
    Look up the external 85th percentile for one date.

    An entry whose ``p85`` is missing, NaN or not positive counts as absent.

    Args:
        percentiles: Optional external percentile map.
        date_key:    ``YYYY-MM-DD``.

    Returns:
        The percentile as ``float``, or ``None``.
    """
    if not percentiles:
        return None
    entry = percentiles.get(date_key)
    if not entry:
        return None
    return positive_float(entry.get("p85"))


def optional_float(value: Any) -> Optional[float]:
    """Return *value* as ``float``, or ``None`` for None/NaN."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def positive_float(value: Any) -> Optional[float]:
    """Return *value* as ``float`` when it is strictly positive, else ``None``."""
    number = optional_float(value)
    if number is None or number <= 0:
        return None
    return number


# ---------------------------------------------------------------------------
# Timestamp coercion
# ---------------------------------------------------------------------------

def to_timestamps(values: pd.Series, timezone: Optional[str] = None) -> pd.Series:
    """
    Parse a timestamp column into naive local wall time.

    Each string is parsed on its own format, so ISO, space-separated and
    ``MM/DD/YYYY`` values may share a column.  Aware values are converted
    to *timezone* (or keep their own wall time when it is ``None``); naive
    values are local already.  Unparseable values become NaT.
    """
    if not pd.api.types.is_datetime64_any_dtype(values):
        try:
            parsed = pd.to_datetime(values, errors="coerce", format="mixed")
        except (TypeError, ValueError):
            parsed = None
        if parsed is None or not pd.api.types.is_datetime64_any_dtype(parsed):
            # naive mixed with aware values, or several UTC offsets
            tz = resolve_pytz(timezone) if timezone else None
            return pd.Series(
                [_wall_time(v, tz) for v in values],
                index=values.index,
                dtype="datetime64[ns]",
            )
        values = parsed
    return to_local_wall_time(values, timezone)


def _wall_time(value: Any, tz: Optional[tzinfo]) -> pd.Timestamp:
    try:
        ts = pd.Timestamp(value)
    except (TypeError, ValueError, OverflowError):
        return pd.NaT
    if pd.isna(ts):
        return pd.NaT
    if ts.tzinfo is not None:
        if tz is not None:
            ts = ts.tz_convert(tz)
        ts = ts.tz_localize(None)
    return ts
