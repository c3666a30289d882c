"""
meetscribe.exceptions - Custom exception classes.

All Meetscribe-specific exceptions inherit from MeetscribeError, which
carries the operation context (mode, file, stage) a caller needs to show
a specific message.
"""

from __future__ import annotations


class MeetscribeError(Exception):
    """Base exception for all Meetscribe errors."""

    default_stage: str | None = None

    def __init__(
        self,
        message: str,
        mode: str | None = None,
        path: str | None = None,
        stage: str | None = None,
    ) -> None:
        self.message = message
        self.mode = mode
        self.path = path
        self.stage = stage or self.default_stage
        super().__init__(message)

    def add_context(
        self,
        mode: str | None = None,
        path: str | None = None,
        stage: str | None = None,
    ) -> MeetscribeError:
        """Attach operation context, keeping any value already set."""
        if self.mode is None:
            self.mode = mode
        if self.path is None:
            self.path = path
        if self.stage is None:
            self.stage = stage
        return self

    def __str__(self) -> str:
        context = [
            f"{key}={value}"
            for key, value in (("mode", self.mode), ("stage", self.stage), ("file", self.path))
            if value
        ]
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ConfigurationError(MeetscribeError):
    """Missing credentials, invalid mode, or invalid configuration file."""

    pass


class RemoteTranscriptionError(MeetscribeError):
    """Failure talking to the remote transcription provider."""

    pass


class UploadError(RemoteTranscriptionError):
    """Audio upload rejected or failed on the network."""

    default_stage = "upload"


class SubmitError(RemoteTranscriptionError):
    """Transcription job could not be created."""

    default_stage = "submit"


class TranscriptionError(RemoteTranscriptionError):
    """Provider reported a failed job, or its status could not be read."""

    default_stage = "poll"


class PollTimeoutError(RemoteTranscriptionError, TimeoutError):
    """Job did not reach a terminal status within the attempt ceiling.

    Also a builtin TimeoutError, so generic timeout handlers catch it.
    """

    default_stage = "poll"

    def __init__(self, message: str, attempts: int = 0, **context: str | None) -> None:
        self.attempts = attempts
        super().__init__(message, **context)


class TranscriptionCancelledError(RemoteTranscriptionError):
    """Caller aborted an in-flight transcription."""

    default_stage = "poll"


class LocalTranscriptionError(MeetscribeError):
    """Opaque failure reported by the local transcription host."""

    default_stage = "local"


class UnsupportedOperationError(MeetscribeError):
    """Operation not available in the current transcription mode."""

    pass


class JobStateError(MeetscribeError):
    """Illegal job status transition."""

    pass


class PlaybackStateError(MeetscribeError):
    """Playback operation not valid in the current player state."""

    pass
