"""
meetscribe.utils - Shared utility functions.

Time formatting used by the CLI and transcript renderers.
"""

from __future__ import annotations

import math


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (HH:MM:SS if >= 1 hour, otherwise MM:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_timestamp(seconds: float) -> str:
    """Format seconds as MM:SS.cc (hundredths), the transcript view format.

    Args:
        seconds: Position in seconds; NaN and negatives render as zero

    Returns:
        Formatted string, e.g. 65.25 -> "01:05.25"
    """
    if not seconds or math.isnan(seconds) or seconds < 0:
        return "00:00.00"
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    hundredths = int(round((seconds % 1) * 100, 6))
    return f"{minutes:02d}:{secs:02d}.{hundredths:02d}"


def format_srt_time(seconds: float) -> str:
    """Format seconds as an SRT timestamp (HH:MM:SS,mmm)."""
    total_ms = max(0, round(seconds * 1000))
    hours, rem = divmod(total_ms, 3_600_000)
    minutes, rem = divmod(rem, 60_000)
    secs, ms = divmod(rem, 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{ms:03d}"
