"""Tests for StudyEngine over on-disk study directories."""

import pandas as pd
import pytest

from speedstats.data.engine import StudyEngine
from speedstats.data.reader import StudyDataError

_INTERVALS = """\
datetime,vehicles,violators,avg_speed,peak_speed,p85
2024-06-01 07:00,100,20,33,51,
2024-06-01 08:00,50,10,43,60,
2024-06-03 07:00,40,4,36,47,
"""

_VEHICLES = """\
datetime,speed
2024-06-01 07:05,30
2024-06-01 07:20,40
2024-06-01 07:50,50
2024-06-01 08:10,20
"""


class TestIntervalStudy:
    def test_daily_is_gap_filled(self, write_study) -> None:
        engine = StudyEngine(write_study(_INTERVALS))
        daily = engine.daily()
        assert [b.key for b in daily] == ["2024-06-01", "2024-06-02", "2024-06-03"]
        assert daily[1].vehicles == 0

    def test_study_id_defaults_to_directory_name(self, write_study) -> None:
        assert StudyEngine(write_study(_INTERVALS, name="Main-NB")).study_id == "Main-NB"

    def test_external_percentiles_are_used(self, write_study) -> None:
        study = write_study(
            _INTERVALS,
            percentiles={"2024-06-01": {"p50": 30, "p85": 41}},
        )
        engine = StudyEngine(study)
        assert engine.daily()[0].p85 == pytest.approx(41.0)
        assert engine.statistics().p85 == pytest.approx(41.0)

    def test_statistics(self, write_study) -> None:
        stats = StudyEngine(write_study(_INTERVALS)).statistics()
        assert stats.total_vehicles == 190
        assert stats.total_violators == 34
        assert stats.peak_speed == pytest.approx(60.0)

    def test_hour_of_day(self, write_study) -> None:
        slots = StudyEngine(write_study(_INTERVALS)).hour_of_day()
        assert slots[7].vehicles == 140
        assert slots[8].vehicles == 50

    def test_speed_bins_follow_config(self, write_study) -> None:
        twelve = StudyEngine(write_study(_INTERVALS, name="a")).speed_bins()
        eight = StudyEngine(write_study(_INTERVALS, config={"bin_scheme": 8}, name="b")).speed_bins()
        assert len(twelve.bins) == 12
        assert len(eight.bins) == 8
        assert eight.rows[0].bins[3] == 100

    def test_summary_tables(self, write_study) -> None:
        engine = StudyEngine(write_study(_INTERVALS))
        assert engine.speed_summary("2024-06-01").total_vehicles == 150
        assert engine.volume_summary("2024-06-03").total_vehicles == 40

    def test_study_timezone_from_config(self, write_study) -> None:
        csv = "datetime,vehicles,avg_speed\n2024-06-01T03:00:00Z,4,30\n"
        engine = StudyEngine(write_study(csv, config={"timezone": "US/Central"}))
        assert engine.daily()[0].key == "2024-05-31"

    def test_timezone_argument_overrides_config(self, write_study) -> None:
        csv = "datetime,vehicles,avg_speed\n2024-06-01T03:00:00Z,4,30\n"
        study = write_study(csv, config={"timezone": "US/Central"})
        engine = StudyEngine(study, timezone="UTC")
        assert engine.daily()[0].key == "2024-06-01"


class TestVehicleStudy:
    def test_rolls_up_and_keeps_raw_speeds(self, write_study) -> None:
        engine = StudyEngine(write_study(_VEHICLES, config={"speed_limit": 35}))
        hourly = engine.hourly()
        assert [b.vehicles for b in hourly] == [3, 1]
        assert [b.violators for b in hourly] == [2, 0]
        assert engine.vehicle_speeds == [30.0, 40.0, 50.0, 20.0]

    def test_statistics_use_vehicle_speeds(self, write_study) -> None:
        stats = StudyEngine(write_study(_VEHICLES)).statistics()
        # nearest rank over 4 speeds: ceil(3.4) - 1 = 3 -> 50
        assert stats.p85 == pytest.approx(50.0)
        assert stats.total_vehicles == 4


class TestExport:
    def test_writes_csv(self, write_study, tmp_path) -> None:
        out = tmp_path / "out"
        engine = StudyEngine(write_study(_INTERVALS, config={"study_id": "S-9"}))
        engine.daily(output_dir=out)
        engine.statistics(output_dir=out)
        engine.speed_bins(output_dir=out)

        daily = pd.read_csv(out / "Daily_S-9.csv")
        assert daily["key"].tolist() == ["2024-06-01", "2024-06-02", "2024-06-03"]
        stats = pd.read_csv(out / "Statistics_S-9.csv")
        assert stats["totalVehicles"].iloc[0] == 190
        bins = pd.read_csv(out / "SpeedBins_S-9.csv")
        assert "31-35" in bins.columns
        assert bins["p85"].tolist() == [43, 39]
        assert bins["p50"].tolist() == [34, 38]

    def test_no_output_dir_writes_nothing(self, write_study, tmp_path) -> None:
        StudyEngine(write_study(_INTERVALS)).daily()
        assert not list(tmp_path.glob("**/Daily_*.csv"))


class TestErrors:
    def test_missing_directory(self, tmp_path) -> None:
        with pytest.raises(StudyDataError, match="not found"):
            StudyEngine(tmp_path / "missing")

    def test_missing_data_file(self, tmp_path) -> None:
        (tmp_path / "empty").mkdir()
        engine = StudyEngine(tmp_path / "empty")
        with pytest.raises(StudyDataError, match="Data file not found"):
            engine.daily()
