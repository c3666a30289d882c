"""
meetscribe.transcribe - Transcription backends and dispatch.

Local Whisper runs synchronously on a worker thread; the remote provider
is an upload, submit and poll job. The dispatcher picks one per call.
"""

from __future__ import annotations

from meetscribe.transcribe.dispatcher import TranscriptionDispatcher, TranscriptionMode
from meetscribe.transcribe.local import LocalDispatchAdapter, WhisperHost
from meetscribe.transcribe.remote import CancellationToken, RemoteJobClient, SubmitOptions

__all__ = [
    "CancellationToken",
    "LocalDispatchAdapter",
    "RemoteJobClient",
    "SubmitOptions",
    "TranscriptionDispatcher",
    "TranscriptionMode",
    "WhisperHost",
]
