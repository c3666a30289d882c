"""
Meetscribe - meeting transcription and synchronized transcript playback.

Turns a recorded meeting into timestamped text through either a local
Whisper model or a remote poll-based transcription provider, and keeps
transcript highlighting in step with audio playback.
"""

__version__ = "0.1.0"
