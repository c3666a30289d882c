"""
meetscribe.playback - Transcript playback synchronization.

Maps a continuously advancing audio clock onto timestamped segments for
highlighting, auto-scroll and seek-to-segment.
"""

from __future__ import annotations
