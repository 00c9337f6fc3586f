"""Unit tests for the local filesystem provider."""

import errno
from unittest.mock import patch

import pytest
from cloud_dir_monitor.config import MonitorConfig
from cloud_dir_monitor.models import FileType, ProviderError, ProviderErrorCode, SynchronizationError, classify
from cloud_dir_monitor.providers import LocalContainerProvider, LocalIdentityProvider, provider_error_from_os_error


class TestProviderErrorFromOSError:
    """Test cases for errno translation."""

    @pytest.mark.parametrize(
        "err,expected",
        [
            (errno.ENOSPC, SynchronizationError.FILE_NOT_UPLOADED_DUE_TO_QUOTA),
            (errno.ETIMEDOUT, SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE),
            (errno.EHOSTUNREACH, SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE),
            (errno.EIO, SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE),
            (errno.ENOENT, SynchronizationError.FILE_UNAVAILABLE),
        ],
    )
    def test_classified_errnos(self, err, expected):
        error = provider_error_from_os_error(OSError(err, "failure"), path="/cloud", operation="scan")

        assert isinstance(error, ProviderError)
        assert classify(error) is expected
        assert error.context["path"] == "/cloud"

    def test_other_errno_keeps_raw_code(self):
        error = provider_error_from_os_error(OSError(errno.EACCES, "denied"))

        assert error.code == errno.EACCES
        assert classify(error) is None


class TestLocalIdentityProvider:
    """Test cases for LocalIdentityProvider."""

    def test_missing_token_file(self, tmp_path):
        provider = LocalIdentityProvider(tmp_path / ".identity")

        assert provider.ubiquity_identity_token() is None

    def test_token_read_on_every_call(self, tmp_path):
        """Test that sign-in and sign-out are picked up without caching."""
        token_path = tmp_path / ".identity"
        provider = LocalIdentityProvider(token_path)

        token_path.write_text("account-token\n")
        assert provider.ubiquity_identity_token() == "account-token"

        token_path.unlink()
        assert provider.ubiquity_identity_token() is None

    def test_empty_token_is_absent(self, tmp_path):
        token_path = tmp_path / ".identity"
        token_path.write_text("   ")

        assert LocalIdentityProvider(token_path).ubiquity_identity_token() is None

    def test_from_config(self, tmp_path):
        config = MonitorConfig(cloud_root=tmp_path, _env_file=None)

        assert LocalIdentityProvider.from_config(config).token_path == tmp_path / ".identity"


class TestLocalContainerProvider:
    """Test cases for LocalContainerProvider."""

    def test_existing_container(self, tmp_path):
        documents = tmp_path / "iCloud.test" / "Documents"
        documents.mkdir(parents=True)
        provider = LocalContainerProvider(tmp_path, create_directories=False)

        assert provider.container_url("iCloud.test", FileType.KML) == documents.resolve()

    def test_creates_documents_directory(self, tmp_path):
        provider = LocalContainerProvider(tmp_path)

        url = provider.container_url("iCloud.test", FileType.KML)

        assert url == (tmp_path / "iCloud.test" / "Documents").resolve()
        assert url.is_dir()

    def test_missing_container_without_creation(self, tmp_path):
        provider = LocalContainerProvider(tmp_path, create_directories=False)

        assert provider.container_url("iCloud.missing", FileType.KML) is None

    def test_os_error_becomes_provider_error(self, tmp_path):
        provider = LocalContainerProvider(tmp_path)

        with patch("pathlib.Path.mkdir", side_effect=OSError(errno.ENOSPC, "No space left")):
            with pytest.raises(ProviderError) as exc_info:
                provider.container_url("iCloud.test", FileType.KML)

        assert exc_info.value.code == ProviderErrorCode.FILE_NOT_UPLOADED_DUE_TO_QUOTA
