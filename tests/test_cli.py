"""Tests for meetscribe CLI commands."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FakeHost
from typer.testing import CliRunner

from meetscribe.cli import app
from meetscribe.io import write_result
from meetscribe.models import TranscriptionResult

runner = CliRunner()


@pytest.fixture
def workdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ASSEMBLYAI_API_KEY", raising=False)
    return tmp_path


@pytest.fixture
def result_file(tmp_path: Path, sample_result: TranscriptionResult) -> Path:
    path = tmp_path / "meeting.json"
    write_result(path, sample_result)
    return path


class TestVersion:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "meetscribe" in result.output


class TestInitCommand:
    def test_creates_config(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init", "--mode", "remote"])
        assert result.exit_code == 0
        content = (workdir / "meetscribe.yaml").read_text()
        assert "mode: remote" in content

    def test_fails_if_config_exists(self, workdir: Path) -> None:
        (workdir / "meetscribe.yaml").write_text("mode: local\n")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_rejects_invalid_mode(self, workdir: Path) -> None:
        result = runner.invoke(app, ["init", "--mode", "cloud"])
        assert result.exit_code == 1


class TestTranscribeCommand:
    def test_remote_without_key_fails(self, workdir: Path) -> None:
        audio = workdir / "meeting.wav"
        audio.write_bytes(b"RIFF")

        result = runner.invoke(app, ["transcribe", str(audio), "--mode", "remote"])

        assert result.exit_code == 1
        assert "API key" in result.output

    def test_local_missing_audio_fails(self, workdir: Path) -> None:
        result = runner.invoke(app, ["transcribe", str(workdir / "missing.wav")])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_local_transcription_written_as_json(
        self, workdir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        host = FakeHost(
            result={
                "full_text": "Hello team",
                "segments": [{"start": 0.0, "end": 1.5, "text": "Hello team"}],
            }
        )
        monkeypatch.setattr(
            "meetscribe.transcribe.dispatcher.WhisperHost", lambda model, backend: host
        )
        audio = workdir / "meeting.wav"
        audio.write_bytes(b"RIFF")
        output = workdir / "out.json"

        result = runner.invoke(
            app, ["transcribe", str(audio), "-o", str(output), "--language", "en"]
        )

        assert result.exit_code == 0
        data = json.loads(output.read_text())
        assert data["full_text"] == "Hello team"
        assert data["segments"][0]["segment_id"] == "seg_001"
        assert host.calls == [(str(audio), "en")]

    def test_json_saved_next_to_audio_by_default(
        self, workdir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        host = FakeHost(
            result={"full_text": "Hi", "segments": [{"start": 0.0, "end": 75.0, "text": "Hi"}]}
        )
        monkeypatch.setattr(
            "meetscribe.transcribe.dispatcher.WhisperHost", lambda model, backend: host
        )
        audio = workdir / "standup.m4a"
        audio.write_bytes(b"\x00")

        result = runner.invoke(app, ["transcribe", str(audio)])

        assert result.exit_code == 0
        assert (workdir / "standup.json").exists()
        assert "1:15 of audio" in result.output

    def test_local_transcription_as_srt(
        self, workdir: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        host = FakeHost(
            result={"full_text": "Hi", "segments": [{"start": 0.0, "end": 1.0, "text": "Hi"}]}
        )
        monkeypatch.setattr(
            "meetscribe.transcribe.dispatcher.WhisperHost", lambda model, backend: host
        )
        audio = workdir / "meeting.wav"
        audio.write_bytes(b"RIFF")
        output = workdir / "out.srt"

        result = runner.invoke(app, ["transcribe", str(audio), "-f", "srt", "-o", str(output)])

        assert result.exit_code == 0
        assert output.read_text().startswith("1\n00:00:00,000 --> 00:00:01,000\nHi")


class TestSegmentsCommand:
    def test_lists_segments(self, result_file: Path) -> None:
        result = runner.invoke(app, ["segments", str(result_file)])
        assert result.exit_code == 0
        assert "Good morning everyone." in result.output
        assert "3 segments" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["segments", str(tmp_path / "nope.json")])
        assert result.exit_code == 1

    def test_non_object_document_is_reported(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[1, 2, 3]")
        result = runner.invoke(app, ["segments", str(path)])
        assert result.exit_code == 1
        assert "Error reading" in result.output

    def test_no_segments_prints_full_text(self, tmp_path: Path) -> None:
        path = tmp_path / "remote.json"
        write_result(path, TranscriptionResult(full_text="flat transcript"))
        result = runner.invoke(app, ["segments", str(path)])
        assert result.exit_code == 0
        assert "flat transcript" in result.output


class TestLocateCommand:
    def test_resolves_segment(self, workdir: Path, result_file: Path) -> None:
        result = runner.invoke(app, ["locate", str(result_file), "3.0"])
        assert result.exit_code == 0
        assert "seg_002" in result.output

    def test_gap_within_tolerance(self, workdir: Path, result_file: Path) -> None:
        result = runner.invoke(app, ["locate", str(result_file), "6.4"])
        assert result.exit_code == 0
        assert "seg_002" in result.output

    def test_custom_tolerance(self, workdir: Path, result_file: Path) -> None:
        result = runner.invoke(app, ["locate", str(result_file), "6.9", "-t", "0.0"])
        assert result.exit_code == 0
        assert "seg_003" in result.output

    def test_non_object_document_is_reported(self, workdir: Path) -> None:
        path = workdir / "scalar.json"
        path.write_text('"just a string"')
        result = runner.invoke(app, ["locate", str(path), "1.0", "-t", "0.5"])
        assert result.exit_code == 1
        assert "Error reading" in result.output
