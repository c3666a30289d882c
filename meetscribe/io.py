"""
meetscribe.io - Result documents on disk.

Every write goes through a sibling temp file that is swapped into place, so
an interrupted save never leaves a truncated transcript behind.
"""

from __future__ import annotations

import json
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

from meetscribe.models import TranscriptionResult

RESULT_SUFFIX = ".json"


def _atomic_write(path: Path, write: Callable[[IO[str]], None]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            write(tmp)
        except Exception:
            tmp.close()
            tmp_path.unlink(missing_ok=True)
            raise
    tmp_path.replace(path)


def read_json(path: Path) -> dict[str, Any]:
    """Read a UTF-8 JSON document.

    Raises:
        FileNotFoundError: If file doesn't exist
        json.JSONDecodeError: If file contains invalid JSON
    """
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, data: dict[str, Any], indent: int = 2) -> None:
    """Write a JSON document atomically, keeping non-ASCII text readable."""
    _atomic_write(path, lambda f: json.dump(data, f, indent=indent, ensure_ascii=False))


def write_text(path: Path, content: str) -> None:
    """Write a rendered transcript (txt, srt, md) atomically."""
    _atomic_write(path, lambda f: f.write(content))


def default_result_path(audio_path: Path, suffix: str = RESULT_SUFFIX) -> Path:
    """Output path next to the recording, e.g. standup.m4a -> standup.json."""
    return audio_path.with_suffix(suffix)


def write_result(path: Path, result: TranscriptionResult) -> None:
    write_json(path, result.to_dict())


def read_result(path: Path) -> TranscriptionResult:
    """Load a transcription result saved by write_result.

    Raises:
        FileNotFoundError: If file doesn't exist
        ValueError: If the document is not valid JSON or not a valid result
    """
    return TranscriptionResult.from_dict(read_json(path))
