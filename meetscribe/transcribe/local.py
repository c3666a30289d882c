"""
meetscribe.transcribe.local - Local Whisper transcription adapter.

Wraps a synchronous host transcription call (faster-whisper or mlx-whisper
by default) and runs it on a worker thread so callers on an event loop are
never blocked.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Protocol

from meetscribe.exceptions import LocalTranscriptionError
from meetscribe.models import TranscriptionResult, assign_segment_ids

logger = logging.getLogger(__name__)


class LocalHost(Protocol):
    """Host entry points the adapter calls into."""

    def transcribe(self, audio_path: str, language: str | None) -> str | dict[str, Any]: ...

    def enable_realtime(self) -> str: ...

    def disable_realtime(self) -> str: ...


class WhisperHost:
    """Default host running Whisper in-process.

    Real-time transcription itself belongs to the audio capture subsystem;
    this host only records whether it has been requested.
    """

    def __init__(self, model: str = "base", backend: str = "faster") -> None:
        self.model = model
        self.backend = backend
        self.realtime_enabled = False
        self._model_instance: Any = None

    def transcribe(self, audio_path: str, language: str | None) -> dict[str, Any]:
        if not Path(audio_path).exists():
            raise FileNotFoundError(f"Audio file not found: {audio_path}")

        if self.backend == "mlx":
            segments = self._transcribe_mlx(audio_path, language)
        elif self.backend == "faster":
            segments = self._transcribe_faster(audio_path, language)
        else:
            raise ValueError(f"Unknown whisper backend: {self.backend}")

        return {
            "full_text": " ".join(seg["text"] for seg in segments if seg["text"]),
            "segments": segments,
        }

    def _transcribe_mlx(self, audio_path: str, language: str | None) -> list[dict[str, Any]]:
        try:
            import mlx_whisper
        except ImportError as e:
            raise ImportError(
                "mlx-whisper not installed. Install with: pip install mlx-whisper"
            ) from e

        kwargs: dict[str, Any] = {"path_or_hf_repo": f"mlx-community/whisper-{self.model}-mlx"}
        if language:
            kwargs["language"] = language

        result = mlx_whisper.transcribe(audio_path, **kwargs)
        return [
            {
                "start": seg.get("start", 0),
                "end": seg.get("end", 0),
                "text": seg.get("text", "").strip(),
            }
            for seg in result.get("segments", [])
        ]

    def _transcribe_faster(self, audio_path: str, language: str | None) -> list[dict[str, Any]]:
        try:
            from faster_whisper import WhisperModel
        except ImportError as e:
            raise ImportError(
                "faster-whisper not installed. Install with: pip install faster-whisper"
            ) from e

        if self._model_instance is None:
            logger.info("Loading faster-whisper model '%s'", self.model)
            self._model_instance = WhisperModel(self.model, device="auto", compute_type="auto")

        kwargs: dict[str, Any] = {}
        if language:
            kwargs["language"] = language

        segments, _info = self._model_instance.transcribe(audio_path, **kwargs)
        return [
            {"start": seg.start, "end": seg.end, "text": seg.text.strip()} for seg in segments
        ]

    def enable_realtime(self) -> str:
        self.realtime_enabled = True
        return "Real-time transcription enabled"

    def disable_realtime(self) -> str:
        self.realtime_enabled = False
        return "Real-time transcription disabled"


def parse_host_result(raw: str | dict[str, Any], language: str | None = None) -> TranscriptionResult:
    """Normalize either host result shape into a TranscriptionResult.

    A bare string is the legacy shape and carries no segments.
    """
    if isinstance(raw, str):
        return TranscriptionResult(full_text=raw, mode="local", language=language)

    segments = assign_segment_ids(raw.get("segments") or [])
    full_text = raw.get("full_text")
    if full_text is None:
        full_text = " ".join(seg.text for seg in segments if seg.text)
    return TranscriptionResult(
        full_text=full_text,
        segments=segments,
        mode="local",
        language=raw.get("language", language),
    )


class LocalDispatchAdapter:
    """Runs the host's blocking transcription call off the event loop."""

    def __init__(self, host: LocalHost | None = None) -> None:
        self.host = host or WhisperHost()

    def transcribe_blocking(
        self, audio_path: str | Path, language: str | None = None
    ) -> TranscriptionResult:
        """Call the host once and wrap its result.

        Raises:
            LocalTranscriptionError: Any host failure, message kept verbatim
        """
        logger.info("Transcribing %s locally", audio_path)
        try:
            raw = self.host.transcribe(str(audio_path), language)
        except Exception as e:
            raise LocalTranscriptionError(str(e) or type(e).__name__) from e

        try:
            result = parse_host_result(raw, language)
        except (ValueError, TypeError, AttributeError) as e:
            raise LocalTranscriptionError(f"Unexpected host result: {e}") from e

        logger.info("Local transcription produced %d segment(s)", len(result.segments))
        return result

    async def transcribe(
        self, audio_path: str | Path, language: str | None = None
    ) -> TranscriptionResult:
        """Run transcribe_blocking on a worker thread."""
        return await asyncio.to_thread(self.transcribe_blocking, audio_path, language)

    def enable_realtime(self) -> str:
        try:
            return self.host.enable_realtime()
        except Exception as e:
            raise LocalTranscriptionError(str(e) or type(e).__name__) from e

    def disable_realtime(self) -> str:
        try:
            return self.host.disable_realtime()
        except Exception as e:
            raise LocalTranscriptionError(str(e) or type(e).__name__) from e
