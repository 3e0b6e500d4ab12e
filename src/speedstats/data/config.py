"""
Study Configuration (Imperative Shell)

Reads ``study.json``, the per-study metadata file that sits next to the
study's data files.

Package Location: src/speedstats/data/config.py

Example ``study.json``::

    {
        "study_id":         "S-1042",
        "location":         "Main St at 5th Ave",
        "direction":        "NB",
        "study_type":       "Radar",
        "counter_number":   "R-17",
        "speed_limit":      35,
        "timezone":         "US/Central",
        "bin_scheme":       12,
        "data_file":        "data.csv",
        "percentiles_file": "percentiles.json"
    }

Every key is optional.  Effective values follow the precedence
CLI flag > study.json > default.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

from ..analysis.bins import get_bins

log = logging.getLogger(__name__)

CONFIG_FILENAME = "study.json"


class StudyConfigError(Exception):
    """Raised when ``study.json`` cannot be read or holds invalid values."""


@dataclass(frozen=True)
class StudyConfig:
    study_id: Optional[str] = None
    location: Optional[str] = None
    direction: Optional[str] = None
    study_type: Optional[str] = None
    counter_number: Optional[str] = None
    speed_limit: float = 0.0
    timezone: Optional[str] = None
    bin_scheme: int = 12
    data_file: str = "data.csv"
    percentiles_file: str = "percentiles.json"

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "StudyConfig":
        """
        Build a config from a parsed ``study.json`` mapping.

        Unknown keys are ignored (with a debug log) so metadata files can
        carry extra fields for other tools.

        Raises:
            StudyConfigError: If ``speed_limit`` is not numeric or
                ``bin_scheme`` is not 8 or 12.
        """
        known = {f.name for f in fields(cls)}
        extra = sorted(set(raw) - known)
        if extra:
            log.debug("Ignoring unknown study.json keys: %s", ", ".join(extra))

        values = {k: v for k, v in raw.items() if k in known and v is not None}

        if "speed_limit" in values:
            try:
                values["speed_limit"] = float(values["speed_limit"])
            except (TypeError, ValueError):
                raise StudyConfigError(
                    f"speed_limit must be numeric, got {values['speed_limit']!r}"
                ) from None

        if "bin_scheme" in values:
            try:
                get_bins(values["bin_scheme"])
            except ValueError as exc:
                raise StudyConfigError(str(exc)) from None
            values["bin_scheme"] = int(values["bin_scheme"])

        for key in ("study_id", "counter_number"):
            if key in values:
                values[key] = str(values[key])

        return cls(**values)


def load_study_config(path: Union[str, Path]) -> StudyConfig:
    """
    Load a study configuration.

    Args:
        path: A study directory (``study.json`` is looked up inside it) or the
              JSON file itself.

    Returns:
        ``StudyConfig``.  Defaults when the file does not exist.

    Raises:
        StudyConfigError: If the file exists but is not a valid JSON object.
    """
    path = Path(path)
    if path.is_dir():
        path = path / CONFIG_FILENAME

    if not path.exists():
        log.info("No %s found at %s; using defaults.", CONFIG_FILENAME, path.parent)
        return StudyConfig()

    try:
        with path.open(encoding="utf-8") as fh:
            raw = json.load(fh)
    except json.JSONDecodeError as exc:
        raise StudyConfigError(f"Failed to parse {path}: {exc}") from exc
    except OSError as exc:
        raise StudyConfigError(f"Failed to read {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise StudyConfigError(f"{path} must contain a JSON object.")

    return StudyConfig.from_dict(raw)
