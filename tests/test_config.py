"""Tests for meetscribe.config module."""

from __future__ import annotations

import os
from pathlib import Path

import pytest

from meetscribe.config import (
    MeetscribeConfig,
    create_default_config,
    find_config_file,
    load_config,
    write_config,
)
from meetscribe.exceptions import ConfigurationError


class TestMeetscribeConfig:
    def test_default_config(self) -> None:
        config = MeetscribeConfig()
        assert config.mode == "local"
        assert config.poll_interval == 5.0
        assert config.max_poll_attempts == 60
        assert config.sync_tolerance == 0.5
        assert config.poll_ceiling_seconds == 300.0

    def test_invalid_mode_raises(self) -> None:
        with pytest.raises(ValueError):
            MeetscribeConfig(mode="cloud")

    def test_invalid_whisper_backend_raises(self) -> None:
        with pytest.raises(ValueError):
            MeetscribeConfig(whisper_backend="cpp")

    def test_non_positive_poll_interval_raises(self) -> None:
        with pytest.raises(ValueError):
            MeetscribeConfig(poll_interval=0)

    def test_blank_api_key_is_none(self) -> None:
        assert MeetscribeConfig(api_key="  ").api_key is None


class TestLoadConfig:
    def test_load_config_from_file(self, config_file: Path) -> None:
        config = load_config(config_file, env={})
        assert config.mode == "remote"
        assert config.api_key == "test-key"
        assert config.speaker_labels is True
        assert config.poll_interval == 2.0
        assert config.config_path == config_file

    def test_env_fills_missing_api_key(self, tmp_path: Path) -> None:
        path = tmp_path / "meetscribe.yaml"
        write_config({"mode": "remote"}, path)
        config = load_config(path, env={"ASSEMBLYAI_API_KEY": "from-env"})
        assert config.api_key == "from-env"

    def test_file_key_wins_over_env(self, config_file: Path) -> None:
        config = load_config(config_file, env={"ASSEMBLYAI_API_KEY": "from-env"})
        assert config.api_key == "test-key"

    def test_load_missing_config_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_value_raises_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "meetscribe.yaml"
        write_config({"mode": "satellite"}, path)
        with pytest.raises(ConfigurationError):
            load_config(path, env={})

    def test_invalid_yaml_raises_configuration_error(self, tmp_path: Path) -> None:
        path = tmp_path / "meetscribe.yaml"
        path.write_text("mode: [unclosed")
        with pytest.raises(ConfigurationError):
            load_config(path, env={})

    def test_defaults_when_no_file(self, tmp_path: Path) -> None:
        original_cwd = os.getcwd()
        try:
            os.chdir(tmp_path)
            config = load_config(env={})
        finally:
            os.chdir(original_cwd)
        assert config.mode == "local"


class TestFindConfigFile:
    def test_finds_in_parent(self, config_file: Path) -> None:
        nested = config_file.parent / "a" / "b"
        nested.mkdir(parents=True)
        assert find_config_file(nested) == config_file.resolve()


class TestCreateDefaultConfig:
    def test_round_trips_through_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "meetscribe.yaml"
        write_config(create_default_config("remote"), path)
        config = load_config(path, env={})
        assert config.mode == "remote"
        assert config.api_key is None
