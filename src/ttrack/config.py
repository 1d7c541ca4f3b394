"""Configuration for ttrack."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Any

from platformdirs import user_config_path, user_data_path
from pydantic import BaseModel, Field, ValidationError

from ttrack.errors import ConfigError

logger = logging.getLogger(__name__)

APP_NAME = "ttrack"

Channel = Annotated[int, Field(ge=0, le=255)]

DEFAULT_TIMELINE_COLORS: list[tuple[int, int, int]] = [
    (183, 28, 28),
    (26, 35, 126),
    (0, 77, 64),
    (38, 50, 56),
]


def default_storage_dir() -> Path:
    """Per-user data directory for ttrack (e.g. ~/.local/share/ttrack)."""
    return Path(user_data_path(APP_NAME))


def default_config_dir() -> Path:
    """Base user config directory; ttrack's files live inside it."""
    return Path(user_config_path())


class Config(BaseModel):
    """User settings.

    Attributes:
        storage_dir: Directory holding the activity JSON files.
        timeline_colors: Background palette for timeline rows.
        deny_overlapping: Reject activities overlapping finished ones.
    """

    storage_dir: Path = Field(default_factory=default_storage_dir)
    timeline_colors: list[tuple[Channel, Channel, Channel]] = Field(
        default_factory=lambda: list(DEFAULT_TIMELINE_COLORS)
    )
    deny_overlapping: bool = True


def config_paths(config_dir: Path) -> list[Path]:
    """Candidate config files, lowest priority first."""
    return [config_dir / APP_NAME / "config.json", config_dir / f"{APP_NAME}_config.json"]


def load_config(config_dir: Path | None = None) -> Config:
    """Load settings from the user's config directory.

    Values from later files override earlier ones; missing files are skipped.

    Raises:
        ConfigError: If a config file is not valid JSON or has invalid values.
    """
    if config_dir is None:
        config_dir = default_config_dir()

    merged: dict[str, Any] = {}
    for path in config_paths(config_dir):
        if not path.exists():
            continue
        logger.debug("Loading config from %s", path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"{path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a JSON object")
        merged.update(data)

    try:
        return Config.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"invalid configuration: {e}") from e
