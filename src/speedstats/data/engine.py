"""
Study Engine (Imperative Shell)

Orchestrates one speed study: loads ``study.json`` and the study's data
files from a directory, resolves configuration, and delegates every
calculation to the Functional Core (``speedstats.analysis``).

Package Location: src/speedstats/data/engine.py

Study directory layout::

    <study_dir>/
        study.json          optional metadata (see data/config.py)
        data.csv            interval or per-vehicle CSV (name configurable)
        percentiles.json    optional external per-date percentiles

Per-vehicle files are rolled up to hourly intervals on load; their raw
speeds are kept for the per-vehicle p85 tier of ``calculate_stats``.

Each public method optionally writes its result to ``output_dir`` as CSV.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Union

import pandas as pd

from .config import StudyConfig, load_study_config
from .reader import (
    StudyDataError,
    is_vehicle_file,
    read_intervals,
    read_percentiles,
    read_vehicles,
)
from ..analysis.bins import get_bins
from ..analysis.buckets import aggregate_daily, aggregate_hourly
from ..analysis.hour_of_day import aggregate_by_hour_of_day
from ..analysis.records import (
    BucketSummary,
    ExternalPercentileMap,
    HourOfDaySummary,
    ReportStatistics,
    interval_frame,
    summaries_to_frame,
)
from ..analysis.stats import calculate_stats
from ..analysis.tables import (
    DailySpeedBinsTable,
    SpeedSummaryTable,
    VolumeSummaryTable,
    daily_speed_bins_table,
    speed_summary_table,
    volume_summary_table,
)
from ..analysis.vehicles import intervals_from_vehicles

log = logging.getLogger(__name__)

DateLike = Union[str, date, datetime]


class StudyEngine:
    """
    Loads a study directory and produces its summaries.

    Example::

        engine = StudyEngine(Path("studies/S-1042"))

        daily = engine.daily()                      # List[BucketSummary]
        stats = engine.statistics()                 # ReportStatistics
        engine.hourly(output_dir=Path("out"))       # also writes Hourly_S-1042.csv

    Args:
        study_dir: Directory holding ``study.json`` and the data files.
        timezone:  Override for the study timezone (CLI flag); falls back to
                   ``study.json`` and finally to ``None`` (timestamps taken as
                   local wall time).
    """

    def __init__(self, study_dir: Union[str, Path], timezone: Optional[str] = None):
        self.study_dir = Path(study_dir)
        if not self.study_dir.is_dir():
            raise StudyDataError(f"Study directory not found: {self.study_dir}")

        self.config: StudyConfig = load_study_config(self.study_dir)
        self.timezone: Optional[str] = timezone or self.config.timezone
        self.study_id: str = self.config.study_id or self.study_dir.name

        self._records: Optional[pd.DataFrame] = None
        self._vehicle_speeds: Optional[List[float]] = None
        self._percentiles: Optional[ExternalPercentileMap] = None
        self._loaded = False

    # ------------------------------------------------------------------
    # Loaded data
    # ------------------------------------------------------------------

    @property
    def records(self) -> pd.DataFrame:
        """Canonical interval frame for the study (loaded on first use)."""
        self._load()
        return self._records

    @property
    def vehicle_speeds(self) -> Optional[List[float]]:
        """Raw per-vehicle speeds, or ``None`` for interval studies."""
        self._load()
        return self._vehicle_speeds

    @property
    def percentiles(self) -> Optional[ExternalPercentileMap]:
        """External percentile map, or ``None`` when the study has none."""
        self._load()
        return self._percentiles

    # ------------------------------------------------------------------
    # Public methods
    # ------------------------------------------------------------------

    def daily(self, output_dir: Optional[Path] = None) -> List[BucketSummary]:
        """Gap-filled daily buckets."""
        result = aggregate_daily(self.records, self.percentiles)
        self._export(summaries_to_frame(result), output_dir, "Daily")
        return result

    def hourly(self, output_dir: Optional[Path] = None) -> List[BucketSummary]:
        """Gap-filled hourly buckets."""
        result = aggregate_hourly(self.records, self.percentiles)
        self._export(summaries_to_frame(result), output_dir, "Hourly")
        return result

    def hour_of_day(self, output_dir: Optional[Path] = None) -> List[HourOfDaySummary]:
        """24 hour-of-day slots across the whole study."""
        result = aggregate_by_hour_of_day(self.records)
        self._export(summaries_to_frame(result), output_dir, "HourOfDay")
        return result

    def statistics(self, output_dir: Optional[Path] = None) -> ReportStatistics:
        """Window statistics over the whole study."""
        result = calculate_stats(
            self.records,
            vehicle_speeds=self.vehicle_speeds,
            percentiles=self.percentiles,
        )
        self._export(pd.DataFrame([result.to_dict()]), output_dir, "Statistics")
        return result

    def speed_bins(
        self,
        start: Optional[DateLike] = None,
        end: Optional[DateLike] = None,
        output_dir: Optional[Path] = None,
    ) -> DailySpeedBinsTable:
        """Daily speed distribution over an inclusive date range.

        Uses the study's configured bin scheme (12 bins unless study.json
        says otherwise).
        """
        result = daily_speed_bins_table(
            self.records, start=start, end=end, bins=get_bins(self.config.bin_scheme)
        )
        frame = pd.DataFrame(
            [
                {
                    "date": row.date,
                    "vehicles": row.vehicles,
                    "violators": row.violators,
                    **{b.label: n for b, n in zip(result.bins, row.bins)},
                    "p85": row.p85,
                    "p50": row.p50,
                }
                for row in result.rows
            ]
        )
        self._export(frame, output_dir, "SpeedBins")
        return result

    def speed_summary(self, day: DateLike) -> SpeedSummaryTable:
        """24-hour 8-bin speed summary for one date."""
        return speed_summary_table(self.records, day)

    def volume_summary(self, day: DateLike) -> VolumeSummaryTable:
        """24-hour volume summary for one date."""
        return volume_summary_table(self.records, day)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _load(self) -> None:
        if self._loaded:
            return

        data_path = self.study_dir / self.config.data_file
        if is_vehicle_file(data_path):
            vehicles = read_vehicles(data_path, timezone=self.timezone)
            intervals = intervals_from_vehicles(
                vehicles,
                speed_limit=self.config.speed_limit,
            )
            self._records = interval_frame(intervals)
            self._vehicle_speeds = vehicles.loc[vehicles["speed"] > 0, "speed"].tolist()
            log.info(
                "Rolled %d vehicles up to %d hourly intervals for study %s",
                len(vehicles),
                len(intervals),
                self.study_id,
                extra={"study_id": self.study_id},
            )
        else:
            self._records = read_intervals(data_path, timezone=self.timezone)

        pct_path = self.study_dir / self.config.percentiles_file
        if pct_path.exists():
            self._percentiles = read_percentiles(pct_path) or None

        self._loaded = True

    def _export(self, frame: pd.DataFrame, output_dir: Optional[Path], kind: str) -> None:
        if output_dir is None:
            return
        output_dir = Path(output_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        out_path = output_dir / f"{kind}_{self.study_id}.csv"
        frame.to_csv(out_path, index=False)
        log.info("%s summary written to %s", kind, out_path, extra={"study_id": self.study_id})
