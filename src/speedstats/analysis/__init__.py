"""
Speed Study Analysis Package (Functional Core)

This package contains pure transformation functions with no I/O.
All functions accept interval data (records, mappings or DataFrames) and
return frozen summary records.

Modules:
- records:     Input/output record types and interval normalisation
- percentiles: Nearest-rank and binned (interpolated) percentiles
- bins:        Fixed 8-bin / 12-bin speed tables and classification
- buckets:     Daily / hourly gap-filled aggregation
- hour_of_day: 24-slot hour-of-day aggregation
- stats:       Window statistics with p85 source priority
- tables:      Data behind the 24-hour and daily speed-bin tables
- vehicles:    Per-vehicle observations rolled up to hourly intervals
"""

from .records import (
    INTERVAL_COLUMNS,
    BucketSummary,
    ExternalPercentileMap,
    HourOfDaySummary,
    IntervalRecord,
    ReportStatistics,
    interval_frame,
    summaries_to_frame,
)

from .percentiles import (
    percentile_from_samples,
    percentile_from_bins,
    p85_from_bins,
    p50_from_bins,
)

from .bins import (
    SPEED_BINS_8,
    SPEED_BINS_12,
    SpeedBin,
    classify,
    get_bins,
    weighted_bin_counts,
)

from .buckets import (
    aggregate_buckets,
    aggregate_daily,
    aggregate_hourly,
)

from .hour_of_day import (
    aggregate_by_hour_of_day,
)

from .stats import (
    calculate_stats,
)

from .tables import (
    DailySpeedBinsTable,
    SpeedSummaryTable,
    VolumeSummaryTable,
    daily_speed_bins_table,
    speed_summary_table,
    volume_summary_table,
)

from .vehicles import (
    VehicleObservation,
    intervals_from_vehicles,
    vehicle_frame,
    vehicle_speeds,
)

__all__ = [
    # Records
    'INTERVAL_COLUMNS',
    'BucketSummary',
    'ExternalPercentileMap',
    'HourOfDaySummary',
    'IntervalRecord',
    'ReportStatistics',
    'interval_frame',
    'summaries_to_frame',
    # Percentiles
    'percentile_from_samples',
    'percentile_from_bins',
    'p85_from_bins',
    'p50_from_bins',
    # Bins
    'SPEED_BINS_8',
    'SPEED_BINS_12',
    'SpeedBin',
    'classify',
    'get_bins',
    'weighted_bin_counts',
    # Buckets
    'aggregate_buckets',
    'aggregate_daily',
    'aggregate_hourly',
    # Hour of day
    'aggregate_by_hour_of_day',
    # Stats
    'calculate_stats',
    # Tables
    'DailySpeedBinsTable',
    'SpeedSummaryTable',
    'VolumeSummaryTable',
    'daily_speed_bins_table',
    'speed_summary_table',
    'volume_summary_table',
    # Vehicles
    'VehicleObservation',
    'intervals_from_vehicles',
    'vehicle_frame',
    'vehicle_speeds',
]
