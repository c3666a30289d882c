"""
meetscribe.playback.controller - Playback synchronization controller.

Owns the playback state machine (idle, ready, playing, paused) and resolves
the current transcript segment on every clock tick. The host feeds time
updates through on_tick(); the controller never touches an event loop.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

from meetscribe.exceptions import PlaybackStateError
from meetscribe.models import Segment, sort_segments

logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.5

ScrollCallback = Callable[[Segment], None]


class PlaybackStatus(str, Enum):
    IDLE = "idle"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"


@dataclass(frozen=True)
class PlaybackState:
    """Snapshot of the player as seen by the UI."""

    status: PlaybackStatus = PlaybackStatus.IDLE
    current_time: float = 0.0
    duration: float | None = None
    active_segment_id: str | None = None

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING


def resolve_segment(
    segments: Sequence[Segment], time: float, tolerance: float = DEFAULT_TOLERANCE
) -> Segment | None:
    """Pick the segment to highlight at `time`.

    Segments must be sorted by start. Lookup order: a segment containing
    `time` (latest start wins where they overlap), then the first segment
    within `tolerance` of its bounds, then the segment whose start is
    nearest. Returns None only for an empty list.
    """
    if not segments:
        return None

    containing = None
    for seg in segments:
        if seg.start > time:
            break
        if time <= seg.end:
            containing = seg
    if containing is not None:
        return containing

    for seg in segments:
        if seg.start - tolerance <= time <= seg.end + tolerance:
            return seg

    return min(segments, key=lambda seg: abs(seg.start - time))


class PlaybackController:
    """Drives transcript highlighting and auto-scroll from an audio clock."""

    def __init__(
        self,
        tolerance: float = DEFAULT_TOLERANCE,
        on_scroll: ScrollCallback | None = None,
        sync_enabled: bool = True,
    ) -> None:
        self.tolerance = tolerance
        self.on_scroll = on_scroll
        self._sync_enabled = sync_enabled
        self._segments: list[Segment] = []
        self._by_id: dict[str, Segment] = {}
        self._audio_ref: Any = None
        self._status = PlaybackStatus.IDLE
        self._current_time = 0.0
        self._duration: float | None = None
        self._active_id: str | None = None
        self._last_scrolled_id: str | None = None

    # State

    @property
    def state(self) -> PlaybackState:
        return PlaybackState(
            status=self._status,
            current_time=self._current_time,
            duration=self._duration,
            active_segment_id=self._active_id,
        )

    @property
    def status(self) -> PlaybackStatus:
        return self._status

    @property
    def segments(self) -> tuple[Segment, ...]:
        return tuple(self._segments)

    @property
    def audio_ref(self) -> Any:
        return self._audio_ref

    @property
    def sync_enabled(self) -> bool:
        return self._sync_enabled

    @property
    def active_segment(self) -> Segment | None:
        if self._active_id is None:
            return None
        return self._by_id.get(self._active_id)

    def _require_loaded(self, operation: str) -> None:
        if self._status is PlaybackStatus.IDLE:
            raise PlaybackStateError(f"Cannot {operation}: no audio loaded")

    # Loading

    def load(self, audio_ref: Any, segments: Sequence[Segment] = ()) -> None:
        """Load audio and its segments; playback starts from zero, not playing."""
        self._audio_ref = audio_ref
        self._segments = sort_segments(segments)
        self._by_id = {seg.segment_id: seg for seg in self._segments}
        self._status = PlaybackStatus.READY
        self._current_time = 0.0
        self._duration = None
        self._active_id = None
        self._last_scrolled_id = None
        logger.debug("Loaded %s with %d segment(s)", audio_ref, len(self._segments))
        self._sync()

    def unload(self) -> None:
        self._audio_ref = None
        self._segments = []
        self._by_id = {}
        self._status = PlaybackStatus.IDLE
        self._current_time = 0.0
        self._duration = None
        self._active_id = None
        self._last_scrolled_id = None

    def set_duration(self, duration: float) -> None:
        """Record the media duration once metadata is available."""
        self._require_loaded("set duration")
        self._duration = max(0.0, duration)
        if self._current_time > self._duration:
            self._current_time = self._duration

    # Transport

    def play(self) -> None:
        self._require_loaded("play")
        self._status = PlaybackStatus.PLAYING

    def pause(self) -> None:
        self._require_loaded("pause")
        if self._status is PlaybackStatus.PLAYING:
            self._status = PlaybackStatus.PAUSED

    def toggle(self) -> None:
        if self._status is PlaybackStatus.PLAYING:
            self.pause()
        else:
            self.play()

    def stop(self) -> None:
        self._require_loaded("stop")
        self._status = PlaybackStatus.READY
        self._current_time = 0.0
        self._sync()

    def on_ended(self) -> None:
        """Media reached its end; position is kept."""
        if self._status is PlaybackStatus.IDLE:
            return
        self._status = PlaybackStatus.READY

    def seek(self, time: float) -> Segment | None:
        """Move the position without changing play/pause state."""
        self._require_loaded("seek")
        time = max(0.0, time)
        if self._duration is not None:
            time = min(time, self._duration)
        self._current_time = time
        return self._sync()

    def jump_to_segment(self, segment_id: str) -> Segment:
        """Seek to a segment's start and start playing if paused.

        Raises:
            KeyError: If no loaded segment has this id
        """
        self._require_loaded("jump to segment")
        segment = self._by_id.get(segment_id)
        if segment is None:
            raise KeyError(f"Unknown segment: {segment_id}")

        self._current_time = segment.start
        self._active_id = segment.segment_id
        self._maybe_scroll(segment)
        if self._status is not PlaybackStatus.PLAYING:
            self.play()
        return segment

    # Clock

    def on_tick(self, time: float) -> Segment | None:
        """Handle a time update from the audio clock.

        Returns:
            The current segment, or None when idle, sync is off, or there
            are no segments
        """
        if self._status is PlaybackStatus.IDLE:
            return None
        self._current_time = max(0.0, time)
        segment = self._sync()
        if (
            self._duration is not None
            and self._status is PlaybackStatus.PLAYING
            and self._current_time >= self._duration
        ):
            self.on_ended()
        return segment

    def resolve_current_segment(self, time: float | None = None) -> Segment | None:
        """Resolve the segment for `time` (default: current position)."""
        if time is None:
            time = self._current_time
        return resolve_segment(self._segments, time, self.tolerance)

    # Sync

    def enable_sync(self) -> None:
        if self._sync_enabled:
            return
        self._sync_enabled = True
        self._last_scrolled_id = None
        self._sync()

    def disable_sync(self) -> None:
        self._sync_enabled = False
        self._last_scrolled_id = None
        self._active_id = None

    def set_sync(self, enabled: bool) -> None:
        if enabled:
            self.enable_sync()
        else:
            self.disable_sync()

    def _sync(self) -> Segment | None:
        if not self._sync_enabled or self._status is PlaybackStatus.IDLE:
            self._active_id = None
            return None
        segment = self.resolve_current_segment()
        if segment is None:
            self._active_id = None
            return None
        self._active_id = segment.segment_id
        self._maybe_scroll(segment)
        return segment

    def _maybe_scroll(self, segment: Segment) -> None:
        if not self._sync_enabled or segment.segment_id == self._last_scrolled_id:
            return
        self._last_scrolled_id = segment.segment_id
        if self.on_scroll is not None:
            self.on_scroll(segment)
