"""
meetscribe.transcribe.remote - Poll-based remote transcription client.

Uploads audio to an AssemblyAI-compatible provider, submits a transcription
job and polls it at a fixed interval until it completes, fails, times out
or is cancelled.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

import aiohttp
from pydantic import BaseModel, ConfigDict

from meetscribe.config import DEFAULT_BASE_URL
from meetscribe.exceptions import (
    PollTimeoutError,
    SubmitError,
    TranscriptionCancelledError,
    TranscriptionError,
    UploadError,
)
from meetscribe.models import Job, JobStatus, Segment, TranscriptionResult

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_ATTEMPTS = 60

SleepFn = Callable[[float], Awaitable[Any]]


class SubmitOptions(BaseModel):
    """Per-job options sent with the transcription request."""

    model_config = ConfigDict(frozen=True)

    speaker_labels: bool = False
    speech_model: str = "universal"


class CancellationToken:
    """Cooperative cancellation signal for a polling loop.

    Call cancel() from the event loop thread; from another thread use
    loop.call_soon_threadsafe(token.cancel).
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise TranscriptionCancelledError("Transcription cancelled")

    async def wait(self) -> None:
        await self._event.wait()


def _is_success(status: int) -> bool:
    return 200 <= status < 300


def normalize_transcript(payload: Mapping[str, Any], speaker_labels: bool) -> TranscriptionResult:
    """Convert a completed provider payload into a TranscriptionResult.

    With speaker labels requested and utterances present, each utterance
    becomes a segment whose text is prefixed "Speaker {id}: ". Utterance
    times are milliseconds on the wire. Otherwise only the flat text is kept.
    """
    utterances = payload.get("utterances") or []
    if not (speaker_labels and utterances):
        return TranscriptionResult(
            full_text=payload.get("text") or "",
            mode="remote",
            language=payload.get("language_code"),
        )

    ordered = sorted(utterances, key=lambda u: u.get("start", 0))
    segments = []
    lines = []
    for i, utterance in enumerate(ordered):
        speaker = str(utterance.get("speaker", "?"))
        line = f"Speaker {speaker}: {str(utterance.get('text', '')).strip()}"
        confidence = utterance.get("confidence")
        if confidence is not None and not 0.0 <= confidence <= 1.0:
            confidence = None
        start = utterance.get("start", 0) / 1000
        segments.append(
            Segment(
                segment_id=f"seg_{i + 1:03d}",
                start=start,
                end=max(start, utterance.get("end", 0) / 1000),
                text=line,
                confidence=confidence,
                speaker=speaker,
            )
        )
        lines.append(line)

    return TranscriptionResult(
        full_text="\n".join(lines),
        segments=tuple(segments),
        mode="remote",
        language=payload.get("language_code"),
    )


class RemoteJobClient:
    """Async client for upload, job submission and status polling."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        session: aiohttp.ClientSession | None = None,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        request_timeout: float = 60.0,
        sleep: SleepFn | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.request_timeout = request_timeout
        self._session = session
        self._owns_session = session is None
        self._sleep_fn = sleep or asyncio.sleep

    async def __aenter__(self) -> RemoteJobClient:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.request_timeout)
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session if this client created it."""
        if self._owns_session and self._session is not None:
            await self._session.close()
            self._session = None

    def _headers(self) -> dict[str, str]:
        return {"Authorization": self.api_key}

    async def upload(self, audio: bytes, filename: str = "audio") -> str:
        """Upload raw audio and return the provider's upload URL.

        Raises:
            UploadError: On a non-2xx response or network failure
        """
        form = aiohttp.FormData()
        form.add_field("audio", audio, filename=filename, content_type="application/octet-stream")

        logger.debug("Uploading %d bytes to %s/upload", len(audio), self.base_url)
        try:
            async with self._get_session().post(
                f"{self.base_url}/upload", headers=self._headers(), data=form
            ) as response:
                if not _is_success(response.status):
                    raise UploadError(f"Upload failed: {response.status} {response.reason}")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UploadError(f"Upload failed: {e}") from e
        except ValueError as e:
            raise UploadError(f"Malformed upload response: {e}") from e

        upload_url = data.get("upload_url") if isinstance(data, dict) else None
        if not upload_url:
            raise UploadError("Upload response did not include an upload_url")
        return upload_url

    async def submit(self, upload_url: str, options: SubmitOptions | None = None) -> str:
        """Create a transcription job and return its id.

        Raises:
            SubmitError: On a non-2xx response or network failure
        """
        options = options or SubmitOptions()
        body = {
            "audio_url": upload_url,
            "speech_model": options.speech_model,
            "speaker_labels": options.speaker_labels,
        }
        try:
            async with self._get_session().post(
                f"{self.base_url}/transcript", headers=self._headers(), json=body
            ) as response:
                if not _is_success(response.status):
                    raise SubmitError(
                        f"Transcription request failed: {response.status} {response.reason}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise SubmitError(f"Transcription request failed: {e}") from e
        except ValueError as e:
            raise SubmitError(f"Malformed transcription response: {e}") from e

        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise SubmitError("Transcription response did not include a job id")
        logger.info("Submitted transcription job %s", job_id)
        return str(job_id)

    async def get_job(self, job_id: str) -> dict[str, Any]:
        """Read the job's current status payload once.

        Raises:
            TranscriptionError: If the status could not be read
        """
        try:
            async with self._get_session().get(
                f"{self.base_url}/transcript/{job_id}", headers=self._headers()
            ) as response:
                if not _is_success(response.status):
                    raise TranscriptionError(
                        f"Failed to get transcript status: {response.status} {response.reason}"
                    )
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TranscriptionError(f"Failed to get transcript status: {e}") from e
        except ValueError as e:
            raise TranscriptionError(f"Malformed transcript status response: {e}") from e

        if not isinstance(data, dict):
            raise TranscriptionError("Malformed transcript status response")
        return data

    async def _sleep(self, seconds: float, cancel_token: CancellationToken | None) -> None:
        """Sleep between polls, waking early if the token is cancelled."""
        if cancel_token is None:
            await self._sleep_fn(seconds)
            return

        sleeper = asyncio.ensure_future(self._sleep_fn(seconds))
        canceller = asyncio.ensure_future(cancel_token.wait())
        try:
            await asyncio.wait({sleeper, canceller}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, canceller):
                if not task.done():
                    task.cancel()
            await asyncio.gather(sleeper, canceller, return_exceptions=True)
        cancel_token.raise_if_cancelled()

    async def poll_until_done(
        self,
        job_id: str,
        poll_interval: float | None = None,
        max_attempts: int | None = None,
        speaker_labels: bool = False,
        cancel_token: CancellationToken | None = None,
    ) -> TranscriptionResult:
        """Poll a job at a fixed interval until it reaches a terminal status.

        Args:
            job_id: Provider job id returned by submit()
            poll_interval: Seconds between polls (client default if None)
            max_attempts: Status reads before giving up (client default if None)
            speaker_labels: Whether diarized utterances should become segments
            cancel_token: Checked before every poll and every sleep

        Returns:
            Normalized TranscriptionResult

        Raises:
            TranscriptionError: If the provider reports an error status
            PollTimeoutError: If max_attempts reads return no terminal status
            TranscriptionCancelledError: If cancel_token is cancelled
        """
        interval = self.poll_interval if poll_interval is None else poll_interval
        attempts = self.max_attempts if max_attempts is None else max_attempts
        job = Job(job_id=job_id)

        for attempt in range(1, attempts + 1):
            if cancel_token is not None:
                cancel_token.raise_if_cancelled()

            payload = await self.get_job(job_id)
            status = JobStatus.parse(payload.get("status"))
            logger.debug("Job %s attempt %d/%d: %s", job_id, attempt, attempts, status.value)

            if status is JobStatus.COMPLETED:
                result = normalize_transcript(payload, speaker_labels)
                job = job.advance(status, result=result)
                logger.info("Job %s completed after %d poll(s)", job_id, attempt)
                return result

            if status is JobStatus.ERROR:
                message = payload.get("error") or "unknown provider error"
                job = job.advance(status, error=message)
                raise TranscriptionError(f"Transcription failed: {message}")

            job = job.advance(status)

            if attempt < attempts:
                if cancel_token is not None:
                    cancel_token.raise_if_cancelled()
                await self._sleep(interval, cancel_token)

        raise PollTimeoutError(
            f"Transcription timed out after {attempts} status checks ({job.status.value})",
            attempts=attempts,
        )

    async def transcribe(
        self,
        audio: bytes,
        options: SubmitOptions | None = None,
        cancel_token: CancellationToken | None = None,
        filename: str = "audio",
    ) -> TranscriptionResult:
        """Upload, submit and poll in sequence; the first failure propagates."""
        options = options or SubmitOptions()
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        upload_url = await self.upload(audio, filename=filename)
        return await self.transcribe_url(upload_url, options, cancel_token)

    async def transcribe_url(
        self,
        audio_url: str,
        options: SubmitOptions | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> TranscriptionResult:
        """Transcribe audio the provider can already reach (no upload)."""
        options = options or SubmitOptions()
        if cancel_token is not None:
            cancel_token.raise_if_cancelled()
        job_id = await self.submit(audio_url, options)
        return await self.poll_until_done(
            job_id,
            speaker_labels=options.speaker_labels,
            cancel_token=cancel_token,
        )
