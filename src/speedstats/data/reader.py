"""
Study Data Reader (Imperative Shell)

Loads study files from disk and hands clean, typed frames to the
Functional Core (``speedstats.analysis``).  No statistics live here.

Package Location: src/speedstats/data/reader.py

File formats:

1. Interval CSV (one row per counter interval)::

       datetime,vehicles,violators,avg_speed,peak_speed,p85
       2024-06-01 07:00,112,18,33.4,51,39

   Only ``datetime`` is required.  Missing counts default to 0; missing or
   non-numeric speeds become NaN (no evidence).

2. Per-vehicle CSV (one row per vehicle)::

       datetime,speed
       2024-06-01 07:00:12,34.5

   Detected by a ``speed`` column without a ``vehicles`` column.

3. Percentile JSON (external per-date percentiles)::

       {"2024-06-01": {"p50": 31.0, "p85": 38.0}, ...}

Rows whose timestamp cannot be parsed are dropped here, with a warning, so
the core never sees them.
"""

from __future__ import annotations

import json
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from ..analysis.records import INTERVAL_COLUMNS, interval_frame, to_timestamps
from ..analysis.vehicles import vehicle_frame

log = logging.getLogger(__name__)


class StudyDataError(Exception):
    """Raised when a study data file is missing, unreadable or malformed."""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def is_vehicle_file(path: Union[str, Path]) -> bool:
    """
    Return ``True`` when *path* holds per-vehicle rows rather than intervals.

    Raises:
        StudyDataError: If the file cannot be read.
    """
    columns = _read_csv(path, nrows=0).columns
    return "speed" in columns and "vehicles" not in columns


def read_intervals(
    path: Union[str, Path],
    timezone: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read an interval CSV into the canonical interval DataFrame.

    Args:
        path:     CSV file path.
        timezone: Study timezone; timestamps carrying a UTC offset are
                  converted to its local wall time.

    Returns:
        DataFrame with :data:`~speedstats.analysis.records.INTERVAL_COLUMNS`,
        timestamps parsed (rows with unparseable timestamps removed).

    Raises:
        StudyDataError: If the file is missing/unreadable or has no
            ``datetime`` column.
    """
    raw = _read_csv(path)
    _require_columns(raw, ["datetime"], path)

    raw = raw.copy()
    raw["datetime"] = to_timestamps(raw["datetime"], timezone)
    raw = _drop_unparsed(raw, path)

    known = [c for c in INTERVAL_COLUMNS if c in raw.columns]
    df = interval_frame(raw[known], timezone=timezone)
    log.info(
        "Loaded %d interval rows from %s",
        len(df),
        Path(path).name,
        extra={"rows": len(df), "file": str(path)},
    )
    return df


def read_vehicles(
    path: Union[str, Path],
    timezone: Optional[str] = None,
) -> pd.DataFrame:
    """
    Read a per-vehicle CSV into a ``[datetime, speed]`` DataFrame.

    Timestamps carrying a UTC offset are converted to *timezone* wall time.

    Raises:
        StudyDataError: If the file is missing/unreadable or lacks the
            ``datetime`` or ``speed`` column.
    """
    raw = _read_csv(path)
    _require_columns(raw, ["datetime", "speed"], path)

    raw = raw.copy()
    raw["datetime"] = to_timestamps(raw["datetime"], timezone)
    raw = _drop_unparsed(raw, path)

    df = vehicle_frame(raw[["datetime", "speed"]], timezone=timezone)
    log.info(
        "Loaded %d vehicle observations from %s",
        len(df),
        Path(path).name,
        extra={"rows": len(df), "file": str(path)},
    )
    return df


def read_percentiles(path: Union[str, Path]) -> Dict[str, Dict[str, float]]:
    """
    Read an external percentile map.

    Entries that are not objects are skipped with a warning; non-numeric
    ``p50``/``p85`` values are dropped from their entry.

    Args:
        path: JSON file path.

    Returns:
        ``{"YYYY-MM-DD": {"p50": float, "p85": float}}``.

    Raises:
        StudyDataError: If the file is missing, unreadable or not a JSON
            object.
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
    except FileNotFoundError as exc:
        raise StudyDataError(f"Percentile file not found: {path}") from exc
    except (OSError, json.JSONDecodeError) as exc:
        raise StudyDataError(f"Failed to read percentile file {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise StudyDataError(f"{path} must contain a JSON object keyed by date.")

    percentiles: Dict[str, Dict[str, float]] = {}
    for date_key in sorted(raw):
        entry = raw[date_key]
        if not isinstance(entry, dict):
            log.warning("Skipping percentile entry %s: not an object", date_key)
            continue
        values: Dict[str, float] = {}
        for name in ("p50", "p85"):
            try:
                number = float(entry[name])
            except (KeyError, TypeError, ValueError):
                continue
            if not math.isnan(number):
                values[name] = number
        percentiles[date_key] = values

    log.info("Loaded external percentiles for %d dates from %s", len(percentiles), path.name)
    return percentiles


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _read_csv(path: Union[str, Path], **kwargs) -> pd.DataFrame:
    path = Path(path)
    if not path.exists():
        raise StudyDataError(f"Data file not found: {path}")
    try:
        df = pd.read_csv(path, **kwargs)
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (OSError, pd.errors.ParserError, UnicodeDecodeError) as exc:
        raise StudyDataError(f"Failed to read {path}: {exc}") from exc
    df.columns = [str(c).strip().lower() for c in df.columns]
    return df


def _require_columns(df: pd.DataFrame, required: List[str], path: Union[str, Path]) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise StudyDataError(
            f"{Path(path).name} is missing required column(s): {', '.join(missing)}"
        )


def _drop_unparsed(df: pd.DataFrame, path: Union[str, Path]) -> pd.DataFrame:
    bad = df["datetime"].isna()
    if bad.any():
        log.warning(
            "Dropped %d row(s) with unparseable timestamps from %s",
            int(bad.sum()),
            Path(path).name,
            extra={"dropped": int(bad.sum()), "file": str(path)},
        )
    return df.loc[~bad]
