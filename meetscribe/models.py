"""
meetscribe.models - Segment model and job lifecycle shared by both backends.

Segments and transcription results are immutable pydantic models handed
off by value; a Job tracks a remote transcription through its statuses.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from meetscribe.exceptions import JobStateError


class Segment(BaseModel):
    """A timestamped span of transcript text."""

    model_config = ConfigDict(frozen=True)

    segment_id: str
    start: float = Field(ge=0.0)
    end: float = Field(ge=0.0)
    text: str
    confidence: float | None = Field(default=None, ge=0.0, le=1.0)
    speaker: str | None = None

    @model_validator(mode="after")
    def check_bounds(self) -> Segment:
        if self.end < self.start:
            raise ValueError(f"Segment end ({self.end}) is before start ({self.start})")
        return self

    @property
    def duration(self) -> float:
        return self.end - self.start


class TranscriptionResult(BaseModel):
    """Full text plus the (possibly empty) ordered list of segments."""

    model_config = ConfigDict(frozen=True)

    full_text: str = ""
    segments: tuple[Segment, ...] = ()
    mode: str | None = None
    language: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.full_text and not self.segments

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> TranscriptionResult:
        """Validate a saved result document.

        Raises:
            ValueError: If data is not a mapping or not a valid result
        """
        if not isinstance(data, Mapping):
            raise ValueError(
                f"Transcription result must be a JSON object, got {type(data).__name__}"
            )
        return cls.model_validate(dict(data))


def sort_segments(segments: Iterable[Segment]) -> list[Segment]:
    """Order segments chronologically by start time (stable)."""
    return sorted(segments, key=lambda seg: seg.start)


def assign_segment_ids(raw_segments: Iterable[Mapping[str, Any]]) -> tuple[Segment, ...]:
    """Build Segments from raw dicts, numbering them in chronological order.

    Args:
        raw_segments: Dicts with start, end, text and optional confidence/speaker

    Returns:
        Tuple of Segments with ids seg_001, seg_002, ...
    """
    ordered = sorted(raw_segments, key=lambda seg: float(seg.get("start", 0)))
    segments = []
    for i, seg in enumerate(ordered):
        segments.append(
            Segment(
                segment_id=f"seg_{i + 1:03d}",
                start=float(seg.get("start", 0)),
                end=float(seg.get("end", seg.get("start", 0))),
                text=str(seg.get("text", "")).strip(),
                confidence=seg.get("confidence"),
                speaker=seg.get("speaker"),
            )
        )
    return tuple(segments)


class JobStatus(str, Enum):
    """Remote job status as reported by the provider."""

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    ERROR = "error"

    @classmethod
    def parse(cls, value: Any) -> JobStatus:
        """Map a provider status string; unknown values count as processing."""
        try:
            return cls(value)
        except ValueError:
            return cls.PROCESSING

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.ERROR)


class Job(BaseModel):
    """A provider-side transcription job, advanced only by polling reads."""

    model_config = ConfigDict(frozen=True)

    job_id: str
    status: JobStatus = JobStatus.QUEUED
    result: TranscriptionResult | None = None
    error: str | None = None

    def advance(
        self,
        status: JobStatus,
        result: TranscriptionResult | None = None,
        error: str | None = None,
    ) -> Job:
        """Return the job in its next status.

        Raises:
            JobStateError: If the job already reached a terminal status
        """
        if self.status.is_terminal:
            raise JobStateError(
                f"Job {self.job_id} is already {self.status.value}; cannot move to {status.value}"
            )
        return Job(job_id=self.job_id, status=status, result=result, error=error)
