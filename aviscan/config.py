"""
Scan Configuration
==================

Settings for a scan run, validated with pydantic.

Precedence: built-in defaults < YAML config file < command-line flags.

Example config file:

    ffmpeg_path: /opt/ffmpeg/bin/ffmpeg
    timeout_seconds: 30
    log_dir: ./scan-logs
    show_errors: true
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from aviscan.exceptions import ConfigurationError

_logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================

# Only AVI containers are scanned; matched case-insensitively
TARGET_EXTENSION = ".avi"

# Default per-file budget; broken files sometimes hang ffmpeg
DEFAULT_TIMEOUT_SECONDS = 10

DEFAULT_FFMPEG = "ffmpeg"


class ScanConfig(BaseModel):
    """Validated settings for one scan run."""

    model_config = ConfigDict(extra="forbid")

    ffmpeg_path: str = Field(
        default=DEFAULT_FFMPEG,
        min_length=1,
        description="Validator executable, bare name or path",
    )
    timeout_seconds: int = Field(
        default=DEFAULT_TIMEOUT_SECONDS,
        gt=0,
        description="Seconds ffmpeg may run on one file before it is killed",
    )
    log_dir: Path = Field(
        default=Path("."),
        description="Directory the transcript log file is written to",
    )
    sort_entries: bool = Field(
        default=True,
        description="Sort directory entries by name for deterministic output",
    )
    follow_symlinks: bool = Field(
        default=False,
        description="Descend into symlinked directories",
    )
    color: bool = Field(default=True, description="Color OK/FAIL on the console")
    show_errors: bool = Field(
        default=False,
        description="Print retained diagnostic lines under each failed file",
    )

    @field_validator("ffmpeg_path")
    @classmethod
    def validate_ffmpeg_path(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("ffmpeg_path must not be blank")
        return v.strip()

    def with_overrides(self, **overrides: Any) -> ScanConfig:
        """Return a copy with every non-None override applied and re-validated."""
        applied = {key: value for key, value in overrides.items() if value is not None}
        if not applied:
            return self
        merged = self.model_dump()
        merged.update(applied)
        return build_config(merged)


def build_config(data: dict[str, Any]) -> ScanConfig:
    """Validate a settings mapping, raising ConfigurationError on bad values."""
    try:
        return ScanConfig.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from e


def load_config(config_path: str | Path | None = None) -> ScanConfig:
    """
    Load settings from a YAML file, or return defaults when no path is given.

    Args:
        config_path: Path to a YAML mapping of ScanConfig fields

    Returns:
        Validated ScanConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable, malformed,
            not a mapping, or fails validation
    """
    if config_path is None:
        return ScanConfig()

    path = Path(config_path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {path}") from e
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in config file {path}: {e}") from e
    except OSError as e:
        raise ConfigurationError(f"Error reading config file {path}: {e}") from e

    if data is None:
        _logger.warning("Config file is empty, using defaults: %s", path)
        return ScanConfig()

    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Config file must be a YAML mapping, got {type(data).__name__}: {path}"
        )

    _logger.debug("Loaded config from %s: %s", path, data)
    return build_config(data)
