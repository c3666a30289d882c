"""
meetscribe.config - YAML config loading and validation.

Handles loading meetscribe.yaml, filling the provider API key from the
environment, and validating all parameters.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from meetscribe.exceptions import ConfigurationError

CONFIG_FILENAME = "meetscribe.yaml"
API_KEY_ENV = "ASSEMBLYAI_API_KEY"
DEFAULT_BASE_URL = "https://api.assemblyai.com/v2"

VALID_MODES = {"local", "remote"}


class MeetscribeConfig(BaseModel):
    """Resolved configuration for transcription and playback sync."""

    mode: str = "local"

    api_key: str | None = None
    base_url: str = DEFAULT_BASE_URL
    speech_model: str = "universal"
    speaker_labels: bool = False
    poll_interval: float = Field(default=5.0, gt=0.0)
    max_poll_attempts: int = Field(default=60, gt=0)
    request_timeout: float = Field(default=60.0, gt=0.0)

    language: str | None = None
    whisper_backend: str = "faster"
    whisper_model: str = "base"

    sync_tolerance: float = Field(default=0.5, ge=0.0)

    config_path: Path | None = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str) -> str:
        if v not in VALID_MODES:
            raise ValueError(f"mode must be one of: {VALID_MODES}")
        return v

    @field_validator("whisper_backend")
    @classmethod
    def validate_whisper_backend(cls, v: str) -> str:
        valid = {"faster", "mlx"}
        if v not in valid:
            raise ValueError(f"whisper_backend must be one of: {valid}")
        return v

    @field_validator("api_key")
    @classmethod
    def blank_key_is_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def poll_ceiling_seconds(self) -> float:
        return self.poll_interval * self.max_poll_attempts


def find_config_file(start: Path | None = None) -> Path | None:
    """Find meetscribe.yaml by walking up from start (default: cwd)."""
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / CONFIG_FILENAME
        if candidate.exists():
            return candidate
        if current == current.parent:
            return None
        current = current.parent


def load_config(path: Path | None = None, env: dict[str, str] | None = None) -> MeetscribeConfig:
    """Load and validate configuration.

    Args:
        path: Explicit config file; searched for from the cwd when None
        env: Environment mapping (defaults to os.environ)

    Returns:
        Validated MeetscribeConfig (defaults when no file is found)

    Raises:
        FileNotFoundError: If an explicit path does not exist
        ConfigurationError: If the file is malformed or fails validation
    """
    env = os.environ if env is None else env

    if path is not None and not path.exists():
        raise FileNotFoundError(f"No config file found at {path}")
    config_file = path or find_config_file()

    raw_config: dict[str, Any] = {}
    if config_file is not None:
        try:
            with open(config_file) as f:
                raw_config = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {config_file}: {e}") from e
        if not isinstance(raw_config, dict):
            raise ConfigurationError(f"{config_file} must contain a mapping")
        raw_config["config_path"] = config_file

    if not raw_config.get("api_key") and env.get(API_KEY_ENV):
        raw_config["api_key"] = env[API_KEY_ENV]

    try:
        return MeetscribeConfig(**raw_config)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def create_default_config(mode: str = "local") -> dict[str, Any]:
    """Create a default config dict for a new workspace."""
    return {
        "mode": mode,
        "api_key": None,
        "speech_model": "universal",
        "speaker_labels": False,
        "poll_interval": 5.0,
        "max_poll_attempts": 60,
        "language": None,
        "whisper_backend": "faster",
        "whisper_model": "base",
        "sync_tolerance": 0.5,
    }


def write_config(config: dict[str, Any], path: Path) -> None:
    """Write configuration to a YAML file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w") as f:
        yaml.dump(config, f, default_flow_style=False, sort_keys=False)
