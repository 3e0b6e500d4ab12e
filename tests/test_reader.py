"""Tests for the study file readers."""

import json
import logging

import pandas as pd
import pytest

from speedstats.data.reader import (
    StudyDataError,
    is_vehicle_file,
    read_intervals,
    read_percentiles,
    read_vehicles,
)

_INTERVAL_CSV = """\
DateTime,Vehicles,Violators,Avg_Speed,Peak_Speed,P85
2024-06-01 07:00,112,18,33.4,51,39
2024-06-01 08:00,,2,,,
not a date,5,0,30,40,
"""


class TestReadIntervals:
    def test_reads_and_normalises(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text(_INTERVAL_CSV)
        df = read_intervals(path)
        assert list(df.columns) == [
            "datetime", "vehicles", "violators", "avg_speed", "peak_speed", "p85",
        ]
        assert len(df) == 2
        assert df["vehicles"].tolist() == [112, 0]
        assert df["avg_speed"].iloc[0] == pytest.approx(33.4)
        assert pd.isna(df["avg_speed"].iloc[1])
        assert df["datetime"].iloc[0] == pd.Timestamp("2024-06-01 07:00")

    def test_unparseable_rows_are_logged(self, tmp_path, caplog) -> None:
        path = tmp_path / "data.csv"
        path.write_text(_INTERVAL_CSV)
        with caplog.at_level(logging.WARNING, logger="speedstats"):
            read_intervals(path)
        assert "Dropped 1 row(s)" in caplog.text

    def test_only_datetime_required(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("datetime\n2024-06-01 07:00\n")
        df = read_intervals(path)
        assert df["vehicles"].tolist() == [0]
        assert pd.isna(df["p85"].iloc[0])

    def test_converts_offsets_to_study_timezone(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("datetime,vehicles\n2024-06-01T03:00:00Z,4\n")
        df = read_intervals(path, timezone="US/Central")
        assert df["datetime"].iloc[0] == pd.Timestamp("2024-05-31 22:00")

    def test_mixed_formats_and_offsets(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text(
            "datetime,vehicles\n"
            "2024-06-01 10:00,5\n"
            "2024-06-01T17:00:00Z,7\n"
            "06/02/2024 09:00,11\n"
        )
        df = read_intervals(path, timezone="US/Central")
        assert df["datetime"].tolist() == [
            pd.Timestamp("2024-06-01 10:00"),
            pd.Timestamp("2024-06-01 12:00"),
            pd.Timestamp("2024-06-02 09:00"),
        ]

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(StudyDataError, match="not found"):
            read_intervals(tmp_path / "nope.csv")

    def test_missing_datetime_column(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("vehicles,avg_speed\n3,30\n")
        with pytest.raises(StudyDataError, match="datetime"):
            read_intervals(path)

    def test_empty_file(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("")
        with pytest.raises(StudyDataError):
            read_intervals(path)


class TestReadVehicles:
    def test_reads_speeds(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("datetime,speed\n2024-06-01 07:00:12,34.5\n2024-06-01 07:01:02,29\n")
        assert is_vehicle_file(path)
        df = read_vehicles(path)
        assert df["speed"].tolist() == [34.5, 29.0]

    def test_requires_speed(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text("datetime\n2024-06-01 07:00:12\n")
        with pytest.raises(StudyDataError, match="speed"):
            read_vehicles(path)

    def test_interval_file_is_not_vehicle_file(self, tmp_path) -> None:
        path = tmp_path / "data.csv"
        path.write_text(_INTERVAL_CSV)
        assert not is_vehicle_file(path)


class TestReadPercentiles:
    def test_reads_sorted_entries(self, tmp_path) -> None:
        path = tmp_path / "percentiles.json"
        path.write_text(json.dumps({
            "2024-06-02": {"p50": 31, "p85": "38.5"},
            "2024-06-01": {"p50": 30.0, "p85": None},
            "2024-06-03": "bogus",
        }))
        result = read_percentiles(path)
        assert list(result) == ["2024-06-01", "2024-06-02"]
        assert result["2024-06-01"] == {"p50": 30.0}
        assert result["2024-06-02"] == {"p50": 31.0, "p85": 38.5}

    def test_invalid_json(self, tmp_path) -> None:
        path = tmp_path / "percentiles.json"
        path.write_text("{not json")
        with pytest.raises(StudyDataError):
            read_percentiles(path)

    def test_not_an_object(self, tmp_path) -> None:
        path = tmp_path / "percentiles.json"
        path.write_text("[1, 2]")
        with pytest.raises(StudyDataError, match="JSON object"):
            read_percentiles(path)

    def test_missing_file(self, tmp_path) -> None:
        with pytest.raises(StudyDataError, match="not found"):
            read_percentiles(tmp_path / "percentiles.json")
