"""
Configuration management using Pydantic models loaded from YAML.
"""

import logging
from pathlib import Path

import pendulum
import yaml
from pydantic import BaseModel, Field, field_validator


class EngineConfig(BaseModel):
    """Tuning of the availability engine."""
    slot_stride_minutes: int = 15
    min_conflict_overlap_minutes: int = 0  # 0 = any overlap is a conflict
    concurrent_staff_reads: bool = True

    @field_validator("slot_stride_minutes")
    @classmethod
    def validate_stride(cls, value: int) -> int:
        """Ensure the slot stride is positive."""
        if value <= 0:
            raise ValueError("slot_stride_minutes must be greater than zero")
        return value

    @field_validator("min_conflict_overlap_minutes")
    @classmethod
    def validate_threshold(cls, value: int) -> int:
        """Ensure the conflict threshold is not negative."""
        if value < 0:
            raise ValueError("min_conflict_overlap_minutes must not be negative")
        return value


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    data_file: Path | None = None
    log_level: str = "WARNING"
    engine: EngineConfig = Field(default_factory=EngineConfig)

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: str) -> str:
        """Ensure the timezone is a known IANA identifier."""
        try:
            pendulum.timezone(value)
        except Exception as exc:
            raise ValueError(f"Unknown timezone: {value}") from exc
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Ensure the log level is one the logging module knows."""
        level = value.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {value}")
        return level

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        A relative ``data_file`` is resolved against the config file's folder.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config = config.model_copy(update={"data_file": config_path.parent / config.data_file})
        return config


def get_default_config_path() -> Path:
    """
    Locate ``config.yaml`` in the working directory, then in the checkout
    holding the ``bookingslots`` package.

    Returns the working-directory path when neither exists.
    """
    search_dirs = (Path.cwd(), Path(__file__).resolve().parent.parent)
    for folder in search_dirs:
        candidate = folder / "config.yaml"
        if candidate.exists():
            return candidate
    return search_dirs[0] / "config.yaml"
