"""
Report Table Data (Functional Core)

Pure functions only.  No I/O, no layout, no side effects.

Prepares the numbers behind the three tabular report pages.  Drawing the
tables is the reporting layer's job; everything here returns frozen
dataclasses with ``to_dict()``.

Package Location: src/speedstats/analysis/tables.py

Tables:
    speed_summary_table     24 hour-of-day rows for one date, each with an
                            8-bin histogram.  An hour's vehicles all land in
                            the bin of that hour's average speed.  The totals
                            row carries a p85 interpolated from the summed
                            bins.
    volume_summary_table    24 hour-of-day rows for one date with each hour's
                            share of the day's volume.
    daily_speed_bins_table  One row per observed date with a 12-bin
                            histogram.  Each interval's vehicles land in the
                            bin of the interval's average speed.  Every row,
                            and the totals row, carries p85 and p50
                            interpolated from its own bins.

Dates are local calendar dates of the study (see ``records.interval_frame``).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from .bins import SPEED_BINS_8, SPEED_BINS_12, SpeedBin, weighted_bin_counts
from .hour_of_day import aggregate_by_hour_of_day
from .percentiles import p50_from_bins, p85_from_bins
from .records import IntervalInput, interval_frame
from ..utils.dates import chart_date_label, date_key

DateLike = Union[str, date, datetime]


# ---------------------------------------------------------------------------
# Table records
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SpeedSummaryRow:
    hour: int
    label: str
    vehicles: int
    violators: int
    pct_speeders: Optional[float]
    avg_speed: Optional[float]
    bins: Tuple[int, ...]


@dataclass(frozen=True)
class SpeedSummaryTable:
    date: str
    bins: Tuple[SpeedBin, ...]
    rows: Tuple[SpeedSummaryRow, ...]
    total_vehicles: int
    total_violators: int
    violation_rate: float
    avg_speed: Optional[float]
    bin_totals: Tuple[int, ...]
    p85: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class VolumeSummaryRow:
    hour: int
    label: str
    vehicles: int
    pct_of_total: Optional[float]


@dataclass(frozen=True)
class VolumeSummaryTable:
    date: str
    rows: Tuple[VolumeSummaryRow, ...]
    total_vehicles: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class DailySpeedBinsRow:
    date: str
    label: str
    vehicles: int
    violators: int
    bins: Tuple[int, ...]
    p85: Optional[int]
    p50: Optional[int]


@dataclass(frozen=True)
class DailySpeedBinsTable:
    bins: Tuple[SpeedBin, ...]
    rows: Tuple[DailySpeedBinsRow, ...]
    total_vehicles: int
    total_violators: int
    violation_rate: float
    bin_totals: Tuple[int, ...]
    p85: Optional[int]
    p50: Optional[int]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def speed_summary_table(
    records: IntervalInput,
    day: DateLike,
    timezone: Optional[str] = None,
) -> SpeedSummaryTable:
    """
    24-hour speed summary for one local date.

    Args:
        records:  Interval data (records, mappings or DataFrame).
        day:      Local date (``'YYYY-MM-DD'``, ``date`` or ``datetime``).
        timezone: Study timezone for tz-aware timestamps.

    Returns:
        ``SpeedSummaryTable`` with 24 rows over ``SPEED_BINS_8``.  ``p85`` is
        ``None`` when no vehicles could be binned.
    """
    day_ts = _as_day(day)
    df = _rows_on_day(interval_frame(records, timezone=timezone), day_ts)
    hours = aggregate_by_hour_of_day(df)

    n_bins = len(SPEED_BINS_8)
    rows: List[SpeedSummaryRow] = []
    bin_totals = [0] * n_bins
    total_vehicles = total_violators = 0
    speed_sum = 0.0
    speed_vehicles = 0

    for h in hours:
        total_vehicles += h.vehicles
        total_violators += h.violators
        row_bins = [0] * n_bins
        if h.avg_speed is not None and h.vehicles > 0:
            speed_sum += h.avg_speed * h.vehicles
            speed_vehicles += h.vehicles
            row_bins = weighted_bin_counts([h.avg_speed], [h.vehicles], SPEED_BINS_8)
            bin_totals = [t + c for t, c in zip(bin_totals, row_bins)]

        rows.append(
            SpeedSummaryRow(
                hour=h.hour,
                label=h.label,
                vehicles=h.vehicles,
                violators=h.violators,
                pct_speeders=_pct(h.violators, h.vehicles),
                avg_speed=h.avg_speed,
                bins=tuple(row_bins),
            )
        )

    return SpeedSummaryTable(
        date=date_key(day_ts),
        bins=SPEED_BINS_8,
        rows=tuple(rows),
        total_vehicles=total_vehicles,
        total_violators=total_violators,
        violation_rate=_pct(total_violators, total_vehicles) or 0.0,
        avg_speed=speed_sum / speed_vehicles if speed_vehicles > 0 else None,
        bin_totals=tuple(bin_totals),
        p85=_bin_percentile(p85_from_bins, bin_totals, SPEED_BINS_8),
    )


def volume_summary_table(
    records: IntervalInput,
    day: DateLike,
    timezone: Optional[str] = None,
) -> VolumeSummaryTable:
    """
    24-hour volume summary for one local date.

    Args:
        records:  Interval data (records, mappings or DataFrame).
        day:      Local date.
        timezone: Study timezone for tz-aware timestamps.

    Returns:
        ``VolumeSummaryTable``; ``pct_of_total`` is ``None`` on every row
        when the day has no vehicles.
    """
    day_ts = _as_day(day)
    df = _rows_on_day(interval_frame(records, timezone=timezone), day_ts)
    hours = aggregate_by_hour_of_day(df)
    total = sum(h.vehicles for h in hours)

    rows = tuple(
        VolumeSummaryRow(
            hour=h.hour,
            label=h.label,
            vehicles=h.vehicles,
            pct_of_total=_pct(h.vehicles, total),
        )
        for h in hours
    )
    return VolumeSummaryTable(date=date_key(day_ts), rows=rows, total_vehicles=total)


def daily_speed_bins_table(
    records: IntervalInput,
    start: Optional[DateLike] = None,
    end: Optional[DateLike] = None,
    timezone: Optional[str] = None,
    bins: Sequence[SpeedBin] = SPEED_BINS_12,
) -> DailySpeedBinsTable:
    """
    Per-day binned speed distribution over an inclusive date range.

    Args:
        records:  Interval data (records, mappings or DataFrame).
        start:    First local date to include (``None`` = unbounded).
        end:      Last local date to include (``None`` = unbounded).
        timezone: Study timezone for tz-aware timestamps.
        bins:     Bin table; the device layout ``SPEED_BINS_12`` by default.

    Returns:
        ``DailySpeedBinsTable`` with one row per date that has records, in
        date order.  Only intervals with both a positive average speed and a
        positive vehicle count are binned.
    """
    bins = tuple(bins)
    n_bins = len(bins)

    df = interval_frame(records, timezone=timezone)
    df = df.loc[df["datetime"].notna()]
    days = df["datetime"].dt.normalize()
    mask = pd.Series(True, index=df.index)
    if start is not None:
        mask &= days >= _as_day(start)
    if end is not None:
        mask &= days <= _as_day(end)
    df, days = df.loc[mask], days.loc[mask]

    if df.empty:
        return DailySpeedBinsTable(
            bins=bins, rows=(), total_vehicles=0, total_violators=0,
            violation_rate=0.0, bin_totals=(0,) * n_bins, p85=None, p50=None,
        )

    rows: List[DailySpeedBinsRow] = []
    bin_totals = [0] * n_bins
    for day, group in df.groupby(days, sort=True):
        speeds = group.loc[(group["avg_speed"] > 0) & (group["vehicles"] > 0)]
        row_bins = weighted_bin_counts(speeds["avg_speed"], speeds["vehicles"], bins)
        bin_totals = [t + c for t, c in zip(bin_totals, row_bins)]
        rows.append(
            DailySpeedBinsRow(
                date=date_key(day),
                label=chart_date_label(day),
                vehicles=int(group["vehicles"].sum()),
                violators=int(group["violators"].sum()),
                bins=tuple(row_bins),
                p85=_bin_percentile(p85_from_bins, row_bins, bins),
                p50=_bin_percentile(p50_from_bins, row_bins, bins),
            )
        )

    total_vehicles = sum(r.vehicles for r in rows)
    total_violators = sum(r.violators for r in rows)

    return DailySpeedBinsTable(
        bins=bins,
        rows=tuple(rows),
        total_vehicles=total_vehicles,
        total_violators=total_violators,
        violation_rate=_pct(total_violators, total_vehicles) or 0.0,
        bin_totals=tuple(bin_totals),
        p85=_bin_percentile(p85_from_bins, bin_totals, bins),
        p50=_bin_percentile(p50_from_bins, bin_totals, bins),
    )


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _as_day(value: DateLike) -> pd.Timestamp:
    """Midnight ``Timestamp`` (naive) for a date-like value."""
    ts = pd.Timestamp(value)
    if ts.tzinfo is not None:
        ts = ts.tz_localize(None)
    return ts.normalize()


def _rows_on_day(df: pd.DataFrame, day: pd.Timestamp) -> pd.DataFrame:
    stamps = df["datetime"]
    return df.loc[stamps.notna() & (stamps.dt.normalize() == day)]


def _pct(part: float, whole: float) -> Optional[float]:
    return (part / whole) * 100 if whole > 0 else None


def _bin_percentile(
    func: Callable[[Sequence[int], Sequence[SpeedBin]], int],
    counts: Sequence[int],
    bins: Sequence[SpeedBin],
) -> Optional[int]:
    """Binned percentile, or ``None`` when nothing was binned."""
    return func(counts, bins) if sum(counts) > 0 else None
