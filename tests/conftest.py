"""Shared fixtures for the speedstats test suite."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import pytest

from speedstats.analysis.records import IntervalRecord


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo ``configure_logging`` between tests so caplog keeps working."""
    yield
    logger = logging.getLogger("speedstats")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def two_day_records():
    """One interval on each of two consecutive days, speeds only (no p85)."""
    return [
        IntervalRecord(datetime(2024, 6, 1, 7), vehicles=100, violators=20, avg_speed=35.0),
        IntervalRecord(datetime(2024, 6, 2, 7), vehicles=50, violators=5, avg_speed=30.0),
    ]


@pytest.fixture
def write_study(tmp_path) -> Callable[..., Path]:
    """Factory that lays out a study directory under ``tmp_path``.

    Usage::

        study = write_study(csv="datetime,vehicles\\n...", config={...})
    """

    def _write(
        csv: str,
        config: Optional[dict] = None,
        percentiles: Optional[dict] = None,
        name: str = "S-1",
    ) -> Path:
        study = tmp_path / name
        study.mkdir()
        (study / "data.csv").write_text(csv)
        if config is not None:
            (study / "study.json").write_text(json.dumps(config))
        if percentiles is not None:
            (study / "percentiles.json").write_text(json.dumps(percentiles))
        return study

    return _write
