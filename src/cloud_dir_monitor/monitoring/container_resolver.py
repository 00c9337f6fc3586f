"""
Container directory resolution.

Resolving a container can be slow because the first request may trigger
provider initialization. The resolver runs provider calls off the event
loop, serializes concurrent requests and caches successful results.
"""

import asyncio
import logging
from pathlib import Path

from cloud_dir_monitor.core.interfaces import IContainerProvider
from cloud_dir_monitor.models import FileType, SynchronizationError, SynchronizationFailure

logger = logging.getLogger(__name__)


class ContainerResolver:
    """Resolves container identifiers to their documents directory."""

    def __init__(self, container_provider: IContainerProvider):
        self.container_provider = container_provider
        self._resolved: dict[str, Path] = {}
        self._lock = asyncio.Lock()

    async def resolve_container_url(self, container_identifier: str, file_type: FileType) -> Path:
        """
        Resolve the directory of a container.

        Args:
            container_identifier: Identifier of the cloud container
            file_type: Kind of files that will be observed

        Returns:
            Documents directory of the container

        Raises:
            SynchronizationFailure: CONTAINER_NOT_FOUND if the provider has no
                directory for the identifier, the classified provider error,
                or the generic failure for unclassified provider errors
        """
        async with self._lock:
            cached = self._resolved.get(container_identifier)
            if cached is not None:
                logger.debug("Using cached directory for container %s: %s", container_identifier, cached)
                return cached

            logger.info("Resolving container %s (%s)", container_identifier, file_type.value)
            try:
                url = await asyncio.to_thread(self.container_provider.container_url, container_identifier, file_type)
            except Exception as e:
                logger.error("Failed to resolve container %s: %s", container_identifier, e)
                raise SynchronizationFailure.from_provider_error(e, operation="resolve_container_url") from e

            if url is None:
                logger.error("Container not found: %s", container_identifier)
                raise SynchronizationFailure(
                    SynchronizationError.CONTAINER_NOT_FOUND,
                    message=f"Container not found: {container_identifier}",
                    operation="resolve_container_url",
                )

            self._resolved[container_identifier] = url
            logger.info("Resolved container %s to %s", container_identifier, url)
            return url

    def invalidate(self, container_identifier: str | None = None) -> None:
        """Drop cached directories, for one container or all of them."""
        if container_identifier is None:
            self._resolved.clear()
        else:
            self._resolved.pop(container_identifier, None)

    def get_cached_containers(self) -> dict[str, str]:
        """Get the cached container directories."""
        return {identifier: str(path) for identifier, path in self._resolved.items()}
