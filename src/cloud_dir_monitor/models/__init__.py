"""Data models, error taxonomy and exceptions for the monitor."""

from cloud_dir_monitor.models.cloud_item import ChangeKind, ChangeNotification, CloudItem, FileType
from cloud_dir_monitor.models.exceptions import (
    BaseError,
    ConfigurationError,
    MonitoringError,
    ProviderError,
    SynchronizationFailure,
)
from cloud_dir_monitor.models.sync_error import ProviderErrorCode, SynchronizationError, classify

__all__ = [
    "ChangeKind",
    "ChangeNotification",
    "CloudItem",
    "FileType",
    "BaseError",
    "ConfigurationError",
    "MonitoringError",
    "ProviderError",
    "SynchronizationFailure",
    "ProviderErrorCode",
    "SynchronizationError",
    "classify",
]
