"""
Synchronization error taxonomy.

Classifies opaque provider error codes into the small closed set of
failures that consumers of the directory monitor have to handle, and maps
every value to the localization key of its user-facing message.
"""

from enum import Enum, IntEnum
from typing import Any


class ProviderErrorCode(IntEnum):
    """Provider error codes that carry synchronization meaning."""

    # Item has not been uploaded to the cloud by another device yet
    FILE_UNAVAILABLE = 4353
    # Item was not uploaded because the account would go over quota
    FILE_NOT_UPLOADED_DUE_TO_QUOTA = 4354
    # Connecting to the cloud servers failed
    SERVER_NOT_AVAILABLE = 4355


class SynchronizationError(str, Enum):
    """Closed set of synchronization failures reported to consumers."""

    FILE_UNAVAILABLE = "file_unavailable"
    FILE_NOT_UPLOADED_DUE_TO_QUOTA = "file_not_uploaded_due_to_quota"
    UBIQUITY_SERVER_NOT_AVAILABLE = "ubiquity_server_not_available"
    ICLOUD_IS_NOT_AVAILABLE = "icloud_is_not_available"
    CONTAINER_NOT_FOUND = "container_not_found"

    @classmethod
    def classify(cls, provider_error: Any) -> "SynchronizationError | None":
        """
        Map a provider error to the taxonomy.

        Args:
            provider_error: Integer provider code, or an exception carrying
                a ``code`` attribute

        Returns:
            The matching taxonomy value, or None for unrecognized codes
        """
        code = provider_error
        if isinstance(provider_error, BaseException):
            code = getattr(provider_error, "code", None)

        if isinstance(code, bool) or not isinstance(code, int):
            return None

        return _CLASSIFICATION.get(code)

    @property
    def description(self) -> str:
        """Localization key of the user-facing message."""
        return _DESCRIPTIONS[self]


CONNECTION_ERROR_KEY = "icloud_synchronization_error_connection_error"
QUOTA_EXCEEDED_KEY = "icloud_synchronization_error_quota_exceeded"
CLOUD_UNAVAILABLE_KEY = "icloud_synchronization_error_cloud_is_unavailable"

_CLASSIFICATION: dict[int, SynchronizationError] = {
    ProviderErrorCode.FILE_UNAVAILABLE: SynchronizationError.FILE_UNAVAILABLE,
    ProviderErrorCode.FILE_NOT_UPLOADED_DUE_TO_QUOTA: SynchronizationError.FILE_NOT_UPLOADED_DUE_TO_QUOTA,
    ProviderErrorCode.SERVER_NOT_AVAILABLE: SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE,
}

_DESCRIPTIONS: dict[SynchronizationError, str] = {
    SynchronizationError.FILE_UNAVAILABLE: CONNECTION_ERROR_KEY,
    SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE: CONNECTION_ERROR_KEY,
    SynchronizationError.FILE_NOT_UPLOADED_DUE_TO_QUOTA: QUOTA_EXCEEDED_KEY,
    SynchronizationError.ICLOUD_IS_NOT_AVAILABLE: CLOUD_UNAVAILABLE_KEY,
    SynchronizationError.CONTAINER_NOT_FOUND: CLOUD_UNAVAILABLE_KEY,
}


def classify(provider_error: Any) -> SynchronizationError | None:
    """Module-level shortcut for ``SynchronizationError.classify``."""
    return SynchronizationError.classify(provider_error)
