"""
Custom exception classes for the cloud directory monitor.

Provides specific exception types for different error scenarios to enable
proper error handling and debugging throughout the system.
"""

import logging
from typing import Any

from cloud_dir_monitor.models.sync_error import CONNECTION_ERROR_KEY, SynchronizationError

logger = logging.getLogger(__name__)


class BaseError(Exception):
    """
    Base exception class for all cloud directory monitor errors.

    All custom exceptions in the system should inherit from this base class
    to enable consistent error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the error.

        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context information
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation including error code if present."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"context={self.context})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class ProviderError(BaseError):
    """Raised by cloud providers and change sources, carrying a provider error code."""

    def __init__(
        self,
        message: str,
        code: int,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context: dict[str, Any] = {"code": code}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(message, error_code="PROVIDER_ERROR", context=context, cause=underlying_error)
        self.code = code


class MonitoringError(BaseError):
    """Raised when change source operations fail."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code="MONITORING_ERROR",
            context=context,
            cause=underlying_error,
        )


class SynchronizationFailure(BaseError):
    """
    Raised or delivered when cloud synchronization fails.

    Wraps a ``SynchronizationError`` taxonomy value. A failure whose
    ``error`` is None is the generic fallback for provider errors that
    could not be classified.
    """

    def __init__(
        self,
        error: SynchronizationError | None,
        message: str | None = None,
        provider_code: int | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context: dict[str, Any] = {}
        if provider_code is not None:
            context["provider_code"] = provider_code
        if operation:
            context["operation"] = operation

        if message is None:
            message = f"Synchronization failed: {error.value}" if error else "Synchronization failed"

        error_code = f"SYNC_ERROR:{error.value}" if error else "SYNC_ERROR"
        super().__init__(message, error_code=error_code, context=context, cause=underlying_error)
        self.error = error
        self.provider_code = provider_code

    @property
    def is_classified(self) -> bool:
        """Whether the failure maps to a taxonomy value."""
        return self.error is not None

    @property
    def description(self) -> str:
        """Localization key of the user-facing message."""
        if self.error is None:
            return CONNECTION_ERROR_KEY
        return self.error.description

    @classmethod
    def from_provider_error(cls, exc: Exception, operation: str | None = None) -> "SynchronizationFailure":
        """
        Build a failure from an arbitrary provider exception.

        Args:
            exc: Exception raised by a provider or change source
            operation: Operation during which the exception occurred

        Returns:
            A classified failure when the code is known, otherwise the generic one
        """
        if isinstance(exc, cls):
            return exc

        provider_code = getattr(exc, "code", None)
        if not isinstance(provider_code, int):
            provider_code = None

        error = SynchronizationError.classify(exc)
        if error is None:
            logger.warning("Unclassified provider error (code=%s) during %s: %s", provider_code, operation, exc)
        else:
            logger.debug("Classified provider error (code=%s) as %s", provider_code, error.value)

        return cls(
            error,
            message=str(exc),
            provider_code=provider_code,
            operation=operation,
            underlying_error=exc,
        )


def raise_sync_failure(
    error: SynchronizationError,
    operation: str,
    message: str | None = None,
) -> None:
    """Raise a synchronization failure with context."""
    raise SynchronizationFailure(error, message=message, operation=operation)
