"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

import pytest
import yaml

from meetscribe.models import Segment, TranscriptionResult


class FakeResponse:
    """Stands in for an aiohttp response used as an async context manager."""

    def __init__(
        self,
        status: int = 200,
        payload: Any = None,
        reason: str = "OK",
        body: str | None = None,
    ) -> None:
        self.status = status
        self.payload = payload
        self.reason = reason
        self.body = body

    async def json(self) -> Any:
        if self.body is not None:
            return json.loads(self.body)
        return self.payload

    async def text(self) -> str:
        if self.body is not None:
            return self.body
        return json.dumps(self.payload)

    async def __aenter__(self) -> FakeResponse:
        return self

    async def __aexit__(self, *exc_info: Any) -> bool:
        return False


class FakeSession:
    """In-memory HTTP session recording requests and replaying queued responses.

    Responses are queued per (method, path); the last queued response for a
    route is reused once the queue is down to one entry. Queue an exception
    instance to make the request raise it.
    """

    def __init__(self, base_url: str = "https://api.example.test/v2") -> None:
        self.base_url = base_url
        self.requests: list[dict[str, Any]] = []
        self._routes: dict[tuple[str, str], list[Any]] = {}
        self.closed = False

    def queue(self, method: str, path: str, *responses: Any) -> None:
        self._routes.setdefault((method, path), []).extend(responses)

    def count(self, method: str, path: str) -> int:
        return sum(1 for r in self.requests if r["method"] == method and r["path"] == path)

    def _respond(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        path = url[len(self.base_url) :]
        self.requests.append({"method": method, "path": path, **kwargs})
        queued = self._routes.get((method, path))
        if not queued:
            raise AssertionError(f"Unexpected request: {method} {path}")
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, BaseException):
            raise response
        return response

    def post(self, url: str, headers: dict | None = None, data: Any = None, json: Any = None):
        return self._respond("POST", url, headers=headers, data=data, json=json)

    def get(self, url: str, headers: dict | None = None):
        return self._respond("GET", url, headers=headers)

    async def close(self) -> None:
        self.closed = True


class FakeHost:
    """Host returning a canned result and recording calls."""

    def __init__(self, result: Any = "", error: Exception | None = None) -> None:
        self.result = result
        self.error = error
        self.calls: list[tuple[str, str | None]] = []
        self.threads: list[str] = []
        self.realtime = False

    def transcribe(self, audio_path: str, language: str | None) -> Any:
        self.calls.append((audio_path, language))
        self.threads.append(threading.current_thread().name)
        if self.error is not None:
            raise self.error
        return self.result

    def enable_realtime(self) -> str:
        self.realtime = True
        return "Real-time transcription enabled"

    def disable_realtime(self) -> str:
        self.realtime = False
        return "Real-time transcription disabled"


class RecordingSleep:
    """Async sleep replacement that records requested delays and returns at once."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sample_segments() -> list[Segment]:
    """Two adjacent segments: 0-5s and 5-9s."""
    return [
        Segment(segment_id="seg_001", start=0.0, end=5.0, text="Hello"),
        Segment(segment_id="seg_002", start=5.0, end=9.0, text="World"),
    ]


@pytest.fixture
def sample_result() -> TranscriptionResult:
    """Return a local-mode result with three segments."""
    return TranscriptionResult(
        full_text="Good morning everyone. Let's review the roadmap. Any questions?",
        segments=(
            Segment(
                segment_id="seg_001",
                start=0.0,
                end=2.345,
                text="Good morning everyone.",
                confidence=0.94,
            ),
            Segment(segment_id="seg_002", start=2.345, end=6.1, text="Let's review the roadmap."),
            Segment(
                segment_id="seg_003",
                start=7.25,
                end=9.125,
                text="Any questions?",
                confidence=0.81,
                speaker="B",
            ),
        ),
        mode="local",
        language="en",
    )


@pytest.fixture
def sample_utterances_payload() -> dict:
    """Return a completed provider payload with diarized utterances (ms)."""
    return {
        "id": "job_1",
        "status": "completed",
        "text": "Hi there. Hello. How are you?",
        "utterances": [
            {"speaker": "A", "text": "Hi there.", "start": 250, "end": 1800, "confidence": 0.91},
            {"speaker": "B", "text": "Hello.", "start": 2000, "end": 2600, "confidence": 0.88},
            {"speaker": "A", "text": "How are you?", "start": 3100, "end": 4500},
        ],
    }


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a remote-mode meetscribe.yaml and return its path."""
    path = tmp_path / "meetscribe.yaml"
    config = {
        "mode": "remote",
        "api_key": "test-key",
        "speaker_labels": True,
        "poll_interval": 2.0,
        "max_poll_attempts": 10,
    }
    with open(path, "w") as f:
        yaml.dump(config, f)
    return path
