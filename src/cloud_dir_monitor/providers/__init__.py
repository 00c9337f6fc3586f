"""
Cloud provider implementations.

The local provider maps containers and the signed-in account onto plain
directories so the monitor can run against any synchronized drive.
"""

from .local_provider import LocalContainerProvider, LocalIdentityProvider, provider_error_from_os_error

__all__ = [
    "LocalContainerProvider",
    "LocalIdentityProvider",
    "provider_error_from_os_error",
]
