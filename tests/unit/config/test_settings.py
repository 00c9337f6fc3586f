"""Unit tests for monitor configuration."""

from pathlib import Path

import pytest
from cloud_dir_monitor.config import LogLevel, MonitorConfig, get_config, set_config
from cloud_dir_monitor.models import ConfigurationError, FileType
from pydantic import ValidationError


class TestMonitorConfig:
    """Test cases for MonitorConfig."""

    @pytest.fixture
    def config(self, tmp_path):
        return MonitorConfig(cloud_root=tmp_path, _env_file=None)

    def test_defaults(self, config, tmp_path):
        """Test default values."""
        assert config.container_identifier == "iCloud.app.organicmaps"
        assert config.file_type is FileType.KML
        assert config.cloud_root == tmp_path
        assert config.create_container_directories is True
        assert config.log_level is LogLevel.INFO

    def test_environment_overrides(self, monkeypatch, tmp_path):
        """Test loading settings from environment variables."""
        monkeypatch.setenv("CLOUD_DIR_MONITOR_CONTAINER_IDENTIFIER", "iCloud.test")
        monkeypatch.setenv("CLOUD_DIR_MONITOR_FILE_TYPE", "gpx")
        monkeypatch.setenv("CLOUD_DIR_MONITOR_CLOUD_ROOT", str(tmp_path))

        config = MonitorConfig(_env_file=None)

        assert config.container_identifier == "iCloud.test"
        assert config.file_type is FileType.GPX
        assert config.cloud_root == tmp_path

    def test_invalid_container_identifier(self, tmp_path):
        """Test that identifiers with path separators are rejected."""
        with pytest.raises(ConfigurationError):
            MonitorConfig(cloud_root=tmp_path, container_identifier="../escape", _env_file=None)

    def test_invalid_debounce(self, tmp_path):
        with pytest.raises(ValidationError):
            MonitorConfig(cloud_root=tmp_path, update_debounce_seconds=-1, _env_file=None)

    def test_debug_mode_forces_debug_logging(self, tmp_path):
        config = MonitorConfig(cloud_root=tmp_path, debug_mode=True, _env_file=None)

        assert config.log_level is LogLevel.DEBUG

    def test_identity_token_path_default(self, config, tmp_path):
        """Test that the token file defaults to the cloud root."""
        assert config.identity_token_path is None
        assert config.resolve_identity_token_path() == tmp_path / ".identity"

    def test_identity_token_path_explicit(self, tmp_path):
        token_path = tmp_path / "account" / "token"
        config = MonitorConfig(cloud_root=tmp_path, identity_token_path=str(token_path), _env_file=None)

        assert config.resolve_identity_token_path() == token_path

    def test_is_file_monitored(self, config):
        """Test file type and ignore pattern filtering."""
        assert config.is_file_monitored(Path("/cloud/Documents/track.kml"))
        assert not config.is_file_monitored(Path("/cloud/Documents/track.gpx"))
        assert not config.is_file_monitored(Path("/cloud/Documents/~track.kml"))

    def test_should_ignore_file(self, config):
        assert config.should_ignore_file("/cloud/Documents/file.tmp")
        assert config.should_ignore_file("/cloud/Documents/.DS_Store")
        assert not config.should_ignore_file("/cloud/Documents/file.kml")

    def test_log_config(self, tmp_path):
        """Test logging configuration dictionary."""
        config = MonitorConfig(cloud_root=tmp_path, log_file=tmp_path / "monitor.log", _env_file=None)

        log_config = config.get_log_config()

        assert log_config["handlers"]["default"]["class"] == "logging.FileHandler"
        assert log_config["handlers"]["default"]["filename"] == str(tmp_path / "monitor.log")
        assert log_config["loggers"]["cloud_dir_monitor"]["level"] == "INFO"

    def test_global_config(self, config):
        set_config(config)

        assert get_config() is config
