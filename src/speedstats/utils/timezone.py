"""Study timezone lookup and local wall-time conversion."""

import logging
from typing import Optional

import pandas as pd
import pytz
from pytz import BaseTzInfo

logger = logging.getLogger(__name__)


def resolve_pytz(tz_string: Optional[str]) -> BaseTzInfo:
    """Look up the study timezone.

    The name comes from ``--timezone`` or the ``timezone`` key of
    study.json.  A missing or unrecognised name resolves to UTC, logged as
    a warning so a mistyped study zone does not shift buckets silently.

    Args:
        tz_string: Zone name such as 'US/Mountain' or 'America/Denver'.

    Returns:
        pytz zone; UTC on fallback.
    """
    if not tz_string:
        logger.warning("Study has no timezone; using UTC wall time.")
        return pytz.utc

    try:
        return pytz.timezone(tz_string)
    except pytz.UnknownTimeZoneError:
        logger.warning(
            "Unknown study timezone %r; using UTC wall time.",
            tz_string,
            extra={"timezone": tz_string},
        )
        return pytz.utc


def to_local_wall_time(
    timestamps: pd.Series,
    tz_string: Optional[str] = None,
) -> pd.Series:
    """Express a timestamp column as naive local wall-clock time.

    Study data is bucketed by the local calendar date and hour the sensor
    observed, so aware timestamps are converted before the zone is dropped.
    Naive timestamps are assumed to be local already and pass through.

    Args:
        timestamps: ``datetime64`` Series, naive or tz-aware.
        tz_string:  Study timezone.  When ``None``, aware timestamps keep the
                    wall time of the zone they carry.

    Returns:
        Naive ``datetime64`` Series aligned with *timestamps*.
    """
    if timestamps.dt.tz is None:
        return timestamps
    if tz_string:
        timestamps = timestamps.dt.tz_convert(resolve_pytz(tz_string))
    return timestamps.dt.tz_localize(None)
