"""
Hour-of-Day Aggregation (Functional Core)

Pure functions only.  No I/O, no side effects.

Folds every interval into one of 24 fixed hour-of-day slots regardless of
calendar date, for daily-pattern summaries and the 24-hour report tables.
No percentile is produced at this granularity.

Package Location: src/speedstats/analysis/hour_of_day.py
"""

from __future__ import annotations

from typing import List, Optional

from .buckets import accumulate_intervals
from .records import HourOfDaySummary, IntervalInput, interval_frame
from ..utils.dates import format_hour

HOURS_PER_DAY: int = 24


def aggregate_by_hour_of_day(
    records: IntervalInput,
    timezone: Optional[str] = None,
) -> List[HourOfDaySummary]:
    """
    Summarise interval data into 24 hour-of-day slots.

    Args:
        records:  Interval data (records, mappings or DataFrame).  Records
                  without a timestamp are skipped.
        timezone: Study timezone for tz-aware timestamps.

    Returns:
        Exactly 24 ``HourOfDaySummary`` items, hour 0 through 23.  Hours with
        no records have zero counts and ``avg_speed=None``.
    """
    df = interval_frame(records, timezone=timezone)
    df = df.loc[df["datetime"].notna()]

    if df.empty:
        acc = None
    else:
        acc = accumulate_intervals(df, df["datetime"].dt.hour).reindex(range(HOURS_PER_DAY))

    summaries: List[HourOfDaySummary] = []
    for hour in range(HOURS_PER_DAY):
        label = format_hour(hour)
        if acc is None or not acc.at[hour, "intervals"] > 0:
            summaries.append(HourOfDaySummary(hour=hour, label=label))
            continue

        weight = acc.at[hour, "speed_weight"]
        summaries.append(
            HourOfDaySummary(
                hour=hour,
                label=label,
                vehicles=int(acc.at[hour, "vehicles"]),
                violators=int(acc.at[hour, "violators"]),
                avg_speed=(
                    float(acc.at[hour, "speed_sum"]) / float(weight)
                    if weight > 0 else None
                ),
            )
        )
    return summaries
