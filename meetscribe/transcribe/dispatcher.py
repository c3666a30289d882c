"""
meetscribe.transcribe.dispatcher - Mode-selecting transcription facade.

Routes a file to the local adapter or the remote job client, attaches
operation context to any failure and re-raises it. No retries happen here.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from meetscribe.config import DEFAULT_BASE_URL, MeetscribeConfig
from meetscribe.exceptions import (
    ConfigurationError,
    MeetscribeError,
    UnsupportedOperationError,
    UploadError,
)
from meetscribe.models import TranscriptionResult
from meetscribe.transcribe.local import LocalDispatchAdapter, WhisperHost
from meetscribe.transcribe.remote import CancellationToken, RemoteJobClient, SubmitOptions

logger = logging.getLogger(__name__)

RemoteFactory = Callable[[str], RemoteJobClient]


class TranscriptionMode(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"

    @classmethod
    def parse(cls, value: str | TranscriptionMode) -> TranscriptionMode:
        try:
            return cls(value)
        except ValueError:
            raise ConfigurationError(
                f"Invalid transcription mode: {value!r} (expected 'local' or 'remote')"
            ) from None


class TranscriptionDispatcher:
    """Uniform transcribe contract over the local and remote backends."""

    def __init__(
        self,
        mode: str | TranscriptionMode = TranscriptionMode.LOCAL,
        api_key: str | None = None,
        speaker_labels: bool = False,
        local: LocalDispatchAdapter | None = None,
        remote_factory: RemoteFactory | None = None,
        language: str | None = None,
        speech_model: str = "universal",
        base_url: str = DEFAULT_BASE_URL,
        poll_interval: float = 5.0,
        max_poll_attempts: int = 60,
    ) -> None:
        self._mode = TranscriptionMode.parse(mode)
        self._api_key = api_key
        self._speaker_labels = speaker_labels
        self._realtime_active = False
        self.local = local or LocalDispatchAdapter()
        self.language = language
        self.speech_model = speech_model
        self.base_url = base_url
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self._remote_factory = remote_factory or self._default_remote

    @classmethod
    def from_config(
        cls,
        config: MeetscribeConfig,
        local: LocalDispatchAdapter | None = None,
        remote_factory: RemoteFactory | None = None,
    ) -> TranscriptionDispatcher:
        """Create a dispatcher from a MeetscribeConfig."""
        if local is None:
            local = LocalDispatchAdapter(
                WhisperHost(model=config.whisper_model, backend=config.whisper_backend)
            )
        return cls(
            mode=config.mode,
            api_key=config.api_key,
            speaker_labels=config.speaker_labels,
            local=local,
            remote_factory=remote_factory,
            language=config.language,
            speech_model=config.speech_model,
            base_url=config.base_url,
            poll_interval=config.poll_interval,
            max_poll_attempts=config.max_poll_attempts,
        )

    def _default_remote(self, api_key: str) -> RemoteJobClient:
        return RemoteJobClient(
            api_key,
            base_url=self.base_url,
            poll_interval=self.poll_interval,
            max_attempts=self.max_poll_attempts,
        )

    @property
    def mode(self) -> TranscriptionMode:
        return self._mode

    @property
    def speaker_diarization(self) -> bool:
        return self._speaker_labels

    @property
    def realtime_active(self) -> bool:
        return self._realtime_active

    def switch_mode(self, mode: str | TranscriptionMode, api_key: str | None = None) -> None:
        """Change backend for subsequent calls; in-flight calls are unaffected."""
        new_mode = TranscriptionMode.parse(mode)
        if self._realtime_active and new_mode is not TranscriptionMode.LOCAL:
            self.local.disable_realtime()
            self._realtime_active = False
        self._mode = new_mode
        self._api_key = api_key
        logger.info("Transcription mode set to %s", new_mode.value)

    def set_speaker_diarization(self, enabled: bool) -> None:
        self._speaker_labels = enabled

    async def transcribe_file(
        self,
        path: str | Path,
        cancel_token: CancellationToken | None = None,
    ) -> TranscriptionResult:
        """Transcribe an audio file with the currently selected backend.

        Raises:
            ConfigurationError: Remote mode without an API key
            MeetscribeError: Any backend failure, with mode and file attached
        """
        path = Path(path)
        mode = self._mode
        api_key = self._api_key
        options = SubmitOptions(
            speaker_labels=self._speaker_labels, speech_model=self.speech_model
        )

        try:
            if mode is TranscriptionMode.REMOTE:
                if not api_key:
                    raise ConfigurationError("Remote transcription requires an API key")
                return await self._transcribe_remote(path, api_key, options, cancel_token)
            return await self.local.transcribe(path, self.language)
        except MeetscribeError as e:
            e.add_context(mode=mode.value, path=str(path))
            logger.error("Transcription failed: %s", e)
            raise

    async def _transcribe_remote(
        self,
        path: Path,
        api_key: str,
        options: SubmitOptions,
        cancel_token: CancellationToken | None,
    ) -> TranscriptionResult:
        try:
            audio = await asyncio.to_thread(path.read_bytes)
        except OSError as e:
            raise UploadError(f"Could not read audio file: {e}") from e

        async with self._remote_factory(api_key) as client:
            return await client.transcribe(
                audio, options, cancel_token=cancel_token, filename=path.name
            )

    def _require_local(self, operation: str) -> None:
        if self._mode is not TranscriptionMode.LOCAL:
            raise UnsupportedOperationError(
                f"{operation} is not available in {self._mode.value} mode",
                mode=self._mode.value,
            )

    async def enable_realtime(self) -> str:
        """Start real-time transcription (local mode only)."""
        self._require_local("Real-time transcription")
        message = await asyncio.to_thread(self.local.enable_realtime)
        self._realtime_active = True
        return message

    async def disable_realtime(self) -> str:
        """Stop real-time transcription (local mode only)."""
        self._require_local("Real-time transcription")
        message = await asyncio.to_thread(self.local.disable_realtime)
        self._realtime_active = False
        return message
