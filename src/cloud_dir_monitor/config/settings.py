"""
Configuration management for the cloud directory monitor.

Handles environment variables, configuration file loading, and provides
default settings with validation for all system components.
"""

import fnmatch
import os
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cloud_dir_monitor.models.cloud_item import FileType
from cloud_dir_monitor.models.exceptions import ConfigurationError


class LogLevel(str, Enum):
    """Logging level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _default_cloud_root() -> Path:
    data_home = os.environ.get('XDG_DATA_HOME')
    if data_home:
        return Path(data_home) / "cloud_dir_monitor" / "containers"
    return Path.home() / ".local" / "share" / "cloud_dir_monitor" / "containers"


class MonitorConfig(BaseSettings):
    """
    Central configuration class for the cloud directory monitor.

    Handles all configuration options with environment variable support,
    validation, and sensible defaults for development and production use.
    """

    model_config = SettingsConfigDict(
        env_prefix="CLOUD_DIR_MONITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # === Container Configuration ===
    container_identifier: str = Field(
        default="iCloud.app.organicmaps", min_length=1, description="Identifier of the monitored cloud container"
    )
    file_type: FileType = Field(default=FileType.KML, description="Kind of files the monitor observes")

    # === Local Provider Configuration ===
    cloud_root: Path = Field(default_factory=_default_cloud_root, description="Directory holding container roots")
    identity_token_path: Path | None = Field(
        default=None, description="File whose content is the signed-in account token"
    )
    create_container_directories: bool = Field(
        default=True, description="Create the container documents directory on first resolution"
    )

    # === Change Source Configuration ===
    update_debounce_seconds: float = Field(
        default=0.5, ge=0.0, le=30.0, description="Debounce time for directory update events"
    )
    ignored_patterns: list[str] = Field(
        default=["*.tmp", "*.swp", "~*", ".DS_Store"],
        description="File name patterns to ignore during monitoring",
    )

    # === Logging Configuration ===
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_file: Path | None = Field(default=None, description="Log file path (stderr if None)")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", description="Log message format"
    )

    # === Development Configuration ===
    debug_mode: bool = Field(default=False, description="Enable debug mode with verbose logging")

    @field_validator('identity_token_path', mode='before')
    @classmethod
    def validate_identity_token_path(cls, v):
        """Treat an empty value as unset and expand the user home."""
        if v in (None, ""):
            return None
        return Path(v).expanduser()

    @field_validator('container_identifier')
    @classmethod
    def validate_container_identifier(cls, v):
        """Reject identifiers that would escape the cloud root."""
        if "/" in v or "\\" in v or v in (".", ".."):
            raise ConfigurationError(
                "container_identifier must be a single path component",
                config_key="container_identifier",
                expected_type="str without path separators",
                actual_value=v,
            )
        return v

    @model_validator(mode='after')
    def validate_debug_logging(self):
        """Debug mode forces debug logging."""
        if self.debug_mode and self.log_level != LogLevel.DEBUG:
            self.log_level = LogLevel.DEBUG
        return self

    def resolve_identity_token_path(self) -> Path:
        """Get the token file path, defaulting to ``<cloud_root>/.identity``."""
        if self.identity_token_path is not None:
            return self.identity_token_path
        return self.cloud_root / ".identity"

    def is_file_monitored(self, file_path: str | Path) -> bool:
        """Check if a file has the monitored type and is not ignored."""
        if not self.file_type.matches(file_path):
            return False
        return not self.should_ignore_file(file_path)

    def should_ignore_file(self, file_path: str | Path) -> bool:
        """Check if a file should be ignored based on patterns."""
        name = Path(file_path).name
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignored_patterns)

    def get_log_config(self) -> dict[str, Any]:
        """Get logging configuration dictionary."""
        config = {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {"standard": {"format": self.log_format}},
            "handlers": {
                "default": {
                    "level": self.log_level.value,
                    "formatter": "standard",
                    "class": "logging.StreamHandler" if not self.log_file else "logging.FileHandler",
                }
            },
            "loggers": {
                "cloud_dir_monitor": {"handlers": ["default"], "level": self.log_level.value, "propagate": False}
            },
        }

        if self.log_file:
            config["handlers"]["default"]["filename"] = str(self.log_file)

        return config


# Global configuration instance
_config: MonitorConfig | None = None


def get_config() -> MonitorConfig:
    """
    Get the global configuration instance.

    Creates a new instance on first call and reuses it for subsequent calls.
    """
    global _config
    if _config is None:
        _config = MonitorConfig()
    return _config


def reload_config() -> MonitorConfig:
    """
    Force reload the configuration from environment/files.

    Useful for testing or when configuration needs to be updated at runtime.
    """
    global _config
    _config = MonitorConfig()
    return _config


def set_config(config: MonitorConfig) -> None:
    """
    Set a custom configuration instance.

    Primarily used for testing or advanced configuration scenarios.
    """
    global _config
    _config = config
