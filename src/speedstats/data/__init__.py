"""
Speed Study Data Package (Imperative Shell)

This package handles all file I/O and orchestration for a speed study.

Modules:
- config: study.json loading and validation
- reader: Interval / per-vehicle CSV and percentile JSON readers
- engine: StudyEngine, which wires files to the analysis package
"""

from .config import (
    CONFIG_FILENAME,
    StudyConfig,
    StudyConfigError,
    load_study_config,
)

from .reader import (
    StudyDataError,
    is_vehicle_file,
    read_intervals,
    read_percentiles,
    read_vehicles,
)

from .engine import StudyEngine

__all__ = [
    # Config
    'CONFIG_FILENAME',
    'StudyConfig',
    'StudyConfigError',
    'load_study_config',
    # Reader
    'StudyDataError',
    'is_vehicle_file',
    'read_intervals',
    'read_percentiles',
    'read_vehicles',
    # Engine
    'StudyEngine',
]
