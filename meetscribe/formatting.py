"""
meetscribe.formatting - Render transcription results for export.

Plain text with timestamps, SRT subtitles, and a Markdown document with a
short summary followed by the segments and the full text.
"""

from __future__ import annotations

from collections.abc import Callable

from meetscribe.models import TranscriptionResult
from meetscribe.utils import format_srt_time, format_timestamp


def to_text(result: TranscriptionResult) -> str:
    """Render segments as "[start - end] text" lines, or the full text."""
    if not result.segments:
        return result.full_text.rstrip("\n") + "\n" if result.full_text else ""
    lines = [
        f"[{format_timestamp(seg.start)} - {format_timestamp(seg.end)}] {seg.text}"
        for seg in result.segments
    ]
    return "\n".join(lines) + "\n"


def to_srt(result: TranscriptionResult) -> str:
    """Render segments as SRT cues. Results without segments yield ""."""
    cues = []
    for i, seg in enumerate(result.segments, start=1):
        cues.append(
            f"{i}\n{format_srt_time(seg.start)} --> {format_srt_time(seg.end)}\n{seg.text}\n"
        )
    return "\n".join(cues)


def to_markdown(result: TranscriptionResult, title: str = "Transcript") -> str:
    """Render a Markdown export: summary, timestamped segments, full text."""
    lines = [f"# {title}", ""]
    if result.segments:
        total = result.segments[-1].end
        lines.append(
            f"**{len(result.segments)} segments**, {format_timestamp(total)} total"
        )
        lines.append("")
        lines.append("## Segments")
        lines.append("")
        for seg in result.segments:
            lines.append(
                f"- `{format_timestamp(seg.start)} - {format_timestamp(seg.end)}` "
                f"({seg.duration:.1f}s) {seg.text}"
            )
        lines.append("")
    lines.append("## Full Text")
    lines.append("")
    lines.append(result.full_text.strip() or "_No transcript available._")
    return "\n".join(lines) + "\n"


FORMATTERS: dict[str, Callable[[TranscriptionResult], str]] = {
    "txt": to_text,
    "srt": to_srt,
    "md": to_markdown,
}


def get_formatter(name: str) -> Callable[[TranscriptionResult], str]:
    """Look up a renderer by format name."""
    try:
        return FORMATTERS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown format: {name}. Choose from: {', '.join(sorted(FORMATTERS))}"
        ) from None
