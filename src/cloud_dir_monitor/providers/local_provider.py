"""
Local filesystem cloud provider.

Backs the identity and container interfaces with plain directories, the
way a synchronized cloud drive appears on disk: a token file marks the
signed-in account and every container is a directory under the cloud
root holding a ``Documents`` folder.
"""

import errno
import logging
from pathlib import Path

from cloud_dir_monitor.config import MonitorConfig
from cloud_dir_monitor.core.interfaces import IContainerProvider, IIdentityProvider
from cloud_dir_monitor.models import FileType, ProviderError, ProviderErrorCode

logger = logging.getLogger(__name__)

DOCUMENTS_DIRECTORY = "Documents"

QUOTA_ERRNO_CODES = {getattr(errno, name) for name in ("ENOSPC", "EDQUOT") if hasattr(errno, name)}

# Network-related errno codes seen on remote-backed mounts
NETWORK_ERRNO_CODES = {
    getattr(errno, name)
    for name in (
        "EIO",
        "ECONNREFUSED",
        "ECONNRESET",
        "ETIMEDOUT",
        "ENETDOWN",
        "ENETUNREACH",
        "EHOSTUNREACH",
        "ENOTCONN",
        "ESTALE",
    )
    if hasattr(errno, name)
}


def provider_error_from_os_error(
    exc: OSError,
    path: Path | str | None = None,
    operation: str | None = None,
) -> ProviderError:
    """
    Translate an OSError into a provider error code.

    Args:
        exc: Error raised by a filesystem call
        path: Path the call operated on
        operation: Name of the failed operation

    Returns:
        ProviderError with a ubiquity code when the errno has one, otherwise
        with the raw errno as code
    """
    if exc.errno in QUOTA_ERRNO_CODES:
        code = int(ProviderErrorCode.FILE_NOT_UPLOADED_DUE_TO_QUOTA)
    elif exc.errno in NETWORK_ERRNO_CODES:
        code = int(ProviderErrorCode.SERVER_NOT_AVAILABLE)
    elif exc.errno == errno.ENOENT:
        code = int(ProviderErrorCode.FILE_UNAVAILABLE)
    else:
        code = exc.errno or 0

    return ProviderError(
        f"{operation or 'filesystem operation'} failed: {exc}",
        code=code,
        path=str(path) if path is not None else None,
        operation=operation,
        underlying_error=exc,
    )


class LocalIdentityProvider(IIdentityProvider):
    """Reads the account token from a file on every call."""

    def __init__(self, token_path: Path):
        self.token_path = token_path

    def ubiquity_identity_token(self) -> str | None:
        try:
            token = self.token_path.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.debug("Cannot read identity token %s: %s", self.token_path, e)
            return None
        return token or None

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "LocalIdentityProvider":
        return cls(config.resolve_identity_token_path())


class LocalContainerProvider(IContainerProvider):
    """
    Resolves containers to ``<cloud_root>/<identifier>/Documents``.

    When ``create_directories`` is set, the documents directory of an
    existing or new container is created on first resolution.
    """

    def __init__(self, cloud_root: Path, create_directories: bool = True):
        self.cloud_root = cloud_root
        self.create_directories = create_directories

    def container_url(self, container_identifier: str, file_type: FileType) -> Path | None:
        container_root = self.cloud_root / container_identifier
        documents = container_root / DOCUMENTS_DIRECTORY

        try:
            if documents.is_dir():
                return documents.resolve()

            if not self.create_directories:
                logger.debug("Container %s has no documents directory at %s", container_identifier, documents)
                return None

            documents.mkdir(parents=True, exist_ok=True)
            logger.info(
                "Created documents directory for container %s (%s files): %s",
                container_identifier,
                file_type.value,
                documents,
            )
            return documents.resolve()

        except OSError as e:
            raise provider_error_from_os_error(e, path=documents, operation="container_url") from e

    @classmethod
    def from_config(cls, config: MonitorConfig) -> "LocalContainerProvider":
        return cls(config.cloud_root, create_directories=config.create_container_directories)
