"""
Time-Bucket Aggregation (Functional Core)

Pure functions only.  No I/O, no side effects.
Input is interval data (see ``records.interval_frame``); output is a list of
frozen ``BucketSummary`` records.

Package Location: src/speedstats/analysis/buckets.py

Pipeline (shared by daily and hourly mode):
    1. Records without a timestamp are skipped.  Timestamps are grouped by
       local calendar day (``YYYY-MM-DD``) or local calendar hour
       (``YYYY-MM-DD-HH``).
    2. Per bucket: vehicles and violators are summed; each positive
       ``avg_speed`` contributes ``avg_speed * max(vehicles, 1)`` to a speed
       sum and is kept as a sample; the largest positive ``peak_speed`` is
       tracked; positive direct ``p85`` values are averaged.
    3. Gap filling: one bucket per day/hour across the closed range between
       the first and last observed bucket.  Unobserved slots carry zero
       counts and ``None`` speed fields.
    4. p85 priority (first available wins):
           a. external percentile map entry for the bucket's date
           b. mean of direct per-interval p85 values
           c. nearest-rank p85 of the interval average speeds
           d. None
       Hourly buckets reuse their date's external value.

Ordering:
    Buckets are emitted by ascending bucket-start timestamp.  ``groupby``
    sorts its keys and the gap-fill index is a monotonic ``date_range``; no
    result depends on insertion order.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Literal, Optional

import pandas as pd

from .percentiles import percentile_from_samples
from .records import (
    BucketSummary,
    ExternalPercentileMap,
    IntervalInput,
    external_p85,
    interval_frame,
    optional_float,
)
from ..utils.dates import chart_date_label, chart_hour_label, date_key, hour_key

BucketMode = Literal["daily", "hourly"]

_P85: float = 0.85

# pandas offset alias, key formatter and label formatter per mode
_MODE_FREQ: Dict[str, str] = {"daily": "D", "hourly": "h"}
_MODE_KEY: Dict[str, Callable] = {"daily": date_key, "hourly": hour_key}
_MODE_LABEL: Dict[str, Callable] = {"daily": chart_date_label, "hourly": chart_hour_label}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def aggregate_daily(
    records: IntervalInput,
    percentiles: Optional[ExternalPercentileMap] = None,
    timezone: Optional[str] = None,
) -> List[BucketSummary]:
    """
    Summarise interval data per local calendar day, gap-filled.

    Args:
        records:     Interval data (records, mappings or DataFrame).
        percentiles: Optional external ``{date: {"p50", "p85"}}`` map whose
                     p85 outranks every other source for that date.
        timezone:    Study timezone for tz-aware timestamps.

    Returns:
        Contiguous, chronologically ordered daily buckets.  Empty list when
        no record carries a timestamp.
    """
    return aggregate_buckets(records, "daily", percentiles, timezone)


def aggregate_hourly(
    records: IntervalInput,
    percentiles: Optional[ExternalPercentileMap] = None,
    timezone: Optional[str] = None,
) -> List[BucketSummary]:
    """
    Summarise interval data per local calendar hour, gap-filled.

    Args:
        records:     Interval data (records, mappings or DataFrame).
        percentiles: Optional external percentile map, keyed by date only.
        timezone:    Study timezone for tz-aware timestamps.

    Returns:
        Contiguous, chronologically ordered hourly buckets.
    """
    return aggregate_buckets(records, "hourly", percentiles, timezone)


def aggregate_buckets(
    records: IntervalInput,
    mode: BucketMode,
    percentiles: Optional[ExternalPercentileMap] = None,
    timezone: Optional[str] = None,
) -> List[BucketSummary]:
    """
    Shared daily/hourly pipeline.  See module docstring.

    Args:
        records:     Interval data.
        mode:        ``"daily"`` or ``"hourly"``.
        percentiles: Optional external percentile map.
        timezone:    Study timezone for tz-aware timestamps.

    Returns:
        List of ``BucketSummary``.

    Raises:
        ValueError: If *mode* is not ``"daily"`` or ``"hourly"``.
    """
    if mode not in _MODE_FREQ:
        raise ValueError(f"Unknown bucket mode {mode!r}; expected 'daily' or 'hourly'.")

    df = interval_frame(records, timezone=timezone)
    df = df.loc[df["datetime"].notna()]
    if df.empty:
        return []

    freq = _MODE_FREQ[mode]
    slots = df["datetime"].dt.floor(freq)
    acc = accumulate_intervals(df, slots)

    # ---- gap fill: every slot between first and last observed bucket -------
    full_range = pd.date_range(acc.index.min(), acc.index.max(), freq=freq)
    acc = acc.reindex(full_range)

    make_key = _MODE_KEY[mode]
    make_label = _MODE_LABEL[mode]
    return [
        _summarize(ts.to_pydatetime(), row, make_key, make_label, percentiles)
        for ts, row in zip(acc.index, acc.itertuples(index=False))
    ]


def accumulate_intervals(df: pd.DataFrame, keys: pd.Series) -> pd.DataFrame:
    """
    Per-group accumulators over canonical interval rows.

    Args:
        df:   Canonical interval DataFrame (see ``interval_frame``).
        keys: Grouping key per row, aligned with *df* (bucket start
              timestamp, hour of day, ...).

    Returns:
        DataFrame indexed by sorted key with columns:

        ``intervals``     number of records in the group
        ``vehicles``      summed vehicle count
        ``violators``     summed violator count
        ``speed_sum``     sum of ``avg_speed * max(vehicles, 1)``
        ``speed_weight``  sum of ``max(vehicles, 1)`` over speed evidence
        ``peak_speed``    max positive peak speed (NaN when none)
        ``direct_p85``    mean positive direct p85 (NaN when none)
        ``sample_p85``    nearest-rank p85 of positive avg speeds (NaN when none)
    """
    vehicles = df["vehicles"]
    has_speed = df["avg_speed"] > 0
    # zero-volume intervals with a speed still count once
    weight = vehicles.where(vehicles > 0, 1).where(has_speed, 0)

    work = pd.DataFrame(
        {
            "vehicles":     vehicles,
            "violators":    df["violators"],
            "speed_sum":    (df["avg_speed"] * weight).where(has_speed, 0.0),
            "speed_weight": weight,
            "peak_speed":   df["peak_speed"].where(df["peak_speed"] > 0),
            "direct_p85":   df["p85"].where(df["p85"] > 0),
        },
        index=df.index,
    )

    acc = work.groupby(keys, sort=True).agg(
        intervals=("vehicles", "size"),
        vehicles=("vehicles", "sum"),
        violators=("violators", "sum"),
        speed_sum=("speed_sum", "sum"),
        speed_weight=("speed_weight", "sum"),
        peak_speed=("peak_speed", "max"),
        direct_p85=("direct_p85", "mean"),
    )

    if has_speed.any():
        samples = df.loc[has_speed, "avg_speed"]
        acc["sample_p85"] = samples.groupby(keys[has_speed], sort=True).agg(
            lambda s: percentile_from_samples(s, _P85)
        )
    else:
        acc["sample_p85"] = float("nan")
    return acc


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _summarize(
    start,
    row,
    make_key: Callable,
    make_label: Callable,
    percentiles: Optional[ExternalPercentileMap],
) -> BucketSummary:
    """Build one BucketSummary from an accumulator row (NaN row = empty slot)."""
    key = make_key(start)
    label = make_label(start)

    if pd.isna(row.intervals) or row.intervals == 0:
        return BucketSummary(key=key, label=label, start=start)

    vehicles = int(row.vehicles)
    violators = int(row.violators)

    p85 = external_p85(percentiles, date_key(start))
    if p85 is None:
        p85 = optional_float(row.direct_p85)
    if p85 is None:
        p85 = optional_float(row.sample_p85)

    return BucketSummary(
        key=key,
        label=label,
        start=start,
        vehicles=vehicles,
        violators=violators,
        non_speeders=vehicles - violators,
        pct_speeders=(violators / vehicles) * 100 if vehicles > 0 else None,
        avg_speed=_weighted_mean(row.speed_sum, row.speed_weight),
        peak_speed=optional_float(row.peak_speed),
        p85=p85,
    )


def _weighted_mean(total: float, weight: float) -> Optional[float]:
    if pd.isna(weight) or weight <= 0:
        return None
    return float(total) / float(weight)
