"""Tests for study.json loading."""

import json

import pytest

from speedstats.data.config import StudyConfig, StudyConfigError, load_study_config


class TestLoadStudyConfig:
    def test_missing_file_gives_defaults(self, tmp_path) -> None:
        config = load_study_config(tmp_path)
        assert config == StudyConfig()
        assert config.bin_scheme == 12
        assert config.speed_limit == 0.0

    def test_reads_directory_or_file(self, tmp_path) -> None:
        path = tmp_path / "study.json"
        path.write_text(json.dumps({
            "study_id": 1042,
            "location": "Main St at 5th Ave",
            "speed_limit": "35",
            "timezone": "US/Central",
            "bin_scheme": 8,
        }))
        for source in (tmp_path, path):
            config = load_study_config(source)
            assert config.study_id == "1042"
            assert config.speed_limit == 35.0
            assert config.timezone == "US/Central"
            assert config.bin_scheme == 8

    def test_unknown_keys_are_ignored(self, tmp_path) -> None:
        (tmp_path / "study.json").write_text(json.dumps({"weather": "rain", "direction": "NB"}))
        assert load_study_config(tmp_path).direction == "NB"

    def test_null_values_keep_defaults(self, tmp_path) -> None:
        (tmp_path / "study.json").write_text(json.dumps({"data_file": None}))
        assert load_study_config(tmp_path).data_file == "data.csv"

    def test_invalid_json(self, tmp_path) -> None:
        (tmp_path / "study.json").write_text("{oops")
        with pytest.raises(StudyConfigError, match="Failed to parse"):
            load_study_config(tmp_path)

    def test_not_an_object(self, tmp_path) -> None:
        (tmp_path / "study.json").write_text("[]")
        with pytest.raises(StudyConfigError):
            load_study_config(tmp_path)

    def test_bad_speed_limit(self) -> None:
        with pytest.raises(StudyConfigError, match="speed_limit"):
            StudyConfig.from_dict({"speed_limit": "fast"})

    def test_bad_bin_scheme(self) -> None:
        with pytest.raises(StudyConfigError, match="bin scheme"):
            StudyConfig.from_dict({"bin_scheme": 10})
