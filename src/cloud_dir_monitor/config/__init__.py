"""Configuration management and settings."""

from cloud_dir_monitor.config.settings import LogLevel, MonitorConfig, get_config, reload_config, set_config

__all__ = ["MonitorConfig", "LogLevel", "get_config", "reload_config", "set_config"]
