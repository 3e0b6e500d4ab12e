"""Tests for the speedstats command-line interface."""

import json

import pytest

from speedstats.cli import main

_INTERVALS = """\
datetime,vehicles,violators,avg_speed,peak_speed
2024-06-01 07:00,100,20,33,51
2024-06-01 08:00,50,10,43,60
2024-06-02 07:00,40,4,36,47
"""


class TestCommands:
    def test_daily(self, write_study, capsys) -> None:
        main(["daily", "--study", str(write_study(_INTERVALS))])
        out = capsys.readouterr().out
        assert "2024-06-01" in out
        assert "2024-06-02" in out

    def test_hourly_includes_gap_hours(self, write_study, capsys) -> None:
        main(["hourly", "--study", str(write_study(_INTERVALS))])
        out = capsys.readouterr().out
        assert "2024-06-01-12" in out

    def test_hour_of_day(self, write_study, capsys) -> None:
        main(["hour-of-day", "--study", str(write_study(_INTERVALS))])
        out = capsys.readouterr().out
        assert "11 PM" in out

    def test_stats_prints_json(self, write_study, capsys) -> None:
        main(["stats", "--study", str(write_study(_INTERVALS, config={"study_id": "S-7"}))])
        payload = json.loads(capsys.readouterr().out)
        assert payload["studyId"] == "S-7"
        assert payload["totalVehicles"] == 190
        assert payload["peakSpeed"] == 60.0

    def test_bins_with_range(self, write_study, capsys) -> None:
        main([
            "bins", "--study", str(write_study(_INTERVALS)),
            "--start", "2024-06-02", "--end", "2024-06-02",
        ])
        out = capsys.readouterr().out
        assert "6/2" in out
        assert "6/1 " not in out
        assert "Total: 40 vehicles" in out

    def test_bins_rows_carry_percentiles(self, write_study, capsys) -> None:
        main([
            "bins", "--study", str(write_study(_INTERVALS)),
            "--start", "2024-06-02", "--end", "2024-06-02",
        ])
        lines = capsys.readouterr().out.splitlines()
        header = lines[0].split()
        assert header[-2:] == ["p85", "p50"]
        # 40 vehicles at 36 mph in the 36-40 bin
        assert lines[1].split()[-2:] == ["39.0", "38.0"]

    def test_summary(self, write_study, capsys) -> None:
        main(["summary", "--study", str(write_study(_INTERVALS)), "--date", "2024-06-01"])
        out = capsys.readouterr().out
        assert "24-hour speed summary for 2024-06-01" in out
        assert "24-hour volume summary for 2024-06-01" in out
        assert "Total: 150 vehicles" in out

    def test_output_dir(self, write_study, tmp_path, capsys) -> None:
        out_dir = tmp_path / "out"
        study = write_study(_INTERVALS, config={"study_id": "S-7"})
        main(["daily", "--study", str(study), "--output", str(out_dir)])
        assert (out_dir / "Daily_S-7.csv").exists()


class TestErrors:
    def test_missing_study_exits_1(self, tmp_path, capsys) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["daily", "--study", str(tmp_path / "missing")])
        assert exc.value.code == 1
        assert "Error:" in capsys.readouterr().err

    def test_bad_config_exits_1(self, write_study, capsys) -> None:
        study = write_study(_INTERVALS)
        (study / "study.json").write_text("{oops")
        with pytest.raises(SystemExit) as exc:
            main(["stats", "--study", str(study)])
        assert exc.value.code == 1

    def test_bad_date_is_a_usage_error(self, write_study) -> None:
        with pytest.raises(SystemExit) as exc:
            main(["summary", "--study", str(write_study(_INTERVALS)), "--date", "someday"])
        assert exc.value.code == 2

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            main([])
