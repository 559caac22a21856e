"""Configuration loading for stockphase.

Settings live in ~/.config/stockphase/config.toml. Every section is optional
and a missing file yields the defaults.
"""

from pathlib import Path
from typing import Optional, Union

import toml
from pydantic import BaseModel, Field, ValidationError

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "stockphase" / "config.toml"


class ConfigError(Exception):
    """Raised when the config file cannot be read or is invalid."""


class AnalysisSettings(BaseModel):
    max_workers: int = Field(default=4, ge=1, description="Batch fan-out width")
    flow_days: int = Field(default=5, ge=1, description="Days summed for the flow signal")

    model_config = {"frozen": True}


class LoggingSettings(BaseModel):
    level: str = Field(default="WARNING", description="Root log level")

    model_config = {"frozen": True}


class DisplaySettings(BaseModel):
    currency: str = Field(default="$", description="Prefix for prices in CLI output")

    model_config = {"frozen": True}


class Settings(BaseModel):
    """Top-level settings, one attribute per TOML table."""

    analysis: AnalysisSettings = Field(default_factory=AnalysisSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)

    model_config = {"frozen": True}


def load_config(path: Optional[Union[str, Path]] = None) -> Settings:
    """Load settings from a TOML file.

    Args:
        path: Config file; defaults to ~/.config/stockphase/config.toml.

    Returns:
        Settings, with defaults when the file does not exist.

    Raises:
        ConfigError: If the file exists but cannot be parsed or validated.
    """
    config_path = Path(path) if path else DEFAULT_CONFIG_PATH

    if not config_path.exists():
        return Settings()

    try:
        raw = toml.load(config_path)
    except (toml.TomlDecodeError, OSError) as e:
        raise ConfigError(f"Could not read {config_path}: {e}") from e

    try:
        return Settings(**raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid config in {config_path}: {e}") from e
