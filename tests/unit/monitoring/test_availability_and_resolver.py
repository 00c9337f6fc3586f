"""Unit tests for the availability probe and container resolver."""

import asyncio
import threading
import time
from pathlib import Path
from unittest.mock import Mock

import pytest
from cloud_dir_monitor.core import IContainerProvider, IIdentityProvider
from cloud_dir_monitor.models import FileType, ProviderError, SynchronizationError, SynchronizationFailure
from cloud_dir_monitor.monitoring import ContainerResolver, DirectoryAvailabilityProbe


class TestDirectoryAvailabilityProbe:
    """Test cases for DirectoryAvailabilityProbe."""

    def test_reflects_token_on_every_call(self):
        """Test that toggling the token is seen on the next call."""
        identity_provider = Mock(spec=IIdentityProvider)
        probe = DirectoryAvailabilityProbe(identity_provider)

        identity_provider.ubiquity_identity_token.return_value = "mockToken"
        assert probe.is_available() is True

        identity_provider.ubiquity_identity_token.return_value = None
        assert probe.is_available() is False

        identity_provider.ubiquity_identity_token.return_value = "otherToken"
        assert probe.is_available() is True
        assert identity_provider.ubiquity_identity_token.call_count == 3

    def test_empty_token_is_unavailable(self):
        identity_provider = Mock(spec=IIdentityProvider)
        identity_provider.ubiquity_identity_token.return_value = ""

        assert DirectoryAvailabilityProbe(identity_provider).is_available() is False


class TestContainerResolver:
    """Test cases for ContainerResolver."""

    @pytest.fixture
    def container_provider(self):
        provider = Mock(spec=IContainerProvider)
        provider.container_url.return_value = Path("/cloud/iCloud.test/Documents")
        return provider

    @pytest.fixture
    def resolver(self, container_provider):
        return ContainerResolver(container_provider)

    @pytest.mark.asyncio
    async def test_resolve_success(self, resolver, container_provider):
        url = await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert url == Path("/cloud/iCloud.test/Documents")
        container_provider.container_url.assert_called_once_with("iCloud.test", FileType.KML)

    @pytest.mark.asyncio
    async def test_resolution_is_cached(self, resolver, container_provider):
        """Test that repeated calls do not repeat provider work."""
        first = await resolver.resolve_container_url("iCloud.test", FileType.KML)
        second = await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert first == second
        container_provider.container_url.assert_called_once()
        assert resolver.get_cached_containers() == {"iCloud.test": str(first)}

    @pytest.mark.asyncio
    async def test_concurrent_resolution_is_serialized(self, container_provider):
        """Test that concurrent callers share one slow provider call."""
        active = 0
        max_active = 0
        guard = threading.Lock()

        def slow_container_url(identifier, file_type):
            nonlocal active, max_active
            with guard:
                active += 1
                max_active = max(max_active, active)
            time.sleep(0.05)
            with guard:
                active -= 1
            return Path("/cloud") / identifier / "Documents"

        container_provider.container_url.side_effect = slow_container_url
        resolver = ContainerResolver(container_provider)

        results = await asyncio.gather(
            *(resolver.resolve_container_url("iCloud.test", FileType.KML) for _ in range(5))
        )

        assert len(set(results)) == 1
        assert max_active == 1
        container_provider.container_url.assert_called_once()

    @pytest.mark.asyncio
    async def test_container_not_found(self, resolver, container_provider):
        container_provider.container_url.return_value = None

        with pytest.raises(SynchronizationFailure) as exc_info:
            await resolver.resolve_container_url("iCloud.missing", FileType.KML)

        assert exc_info.value.error is SynchronizationError.CONTAINER_NOT_FOUND
        assert resolver.get_cached_containers() == {}

    @pytest.mark.asyncio
    async def test_classified_provider_error(self, resolver, container_provider):
        container_provider.container_url.side_effect = ProviderError("servers down", code=4355)

        with pytest.raises(SynchronizationFailure) as exc_info:
            await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert exc_info.value.error is SynchronizationError.UBIQUITY_SERVER_NOT_AVAILABLE

    @pytest.mark.asyncio
    async def test_unclassified_provider_error(self, resolver, container_provider):
        """Test that unknown provider failures surface as the generic failure."""
        container_provider.container_url.side_effect = RuntimeError("provider crashed")

        with pytest.raises(SynchronizationFailure) as exc_info:
            await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert exc_info.value.error is None
        assert exc_info.value.description == "icloud_synchronization_error_connection_error"

    @pytest.mark.asyncio
    async def test_failures_are_not_cached(self, resolver, container_provider):
        container_provider.container_url.side_effect = [None, Path("/cloud/iCloud.test/Documents")]

        with pytest.raises(SynchronizationFailure):
            await resolver.resolve_container_url("iCloud.test", FileType.KML)

        url = await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert url == Path("/cloud/iCloud.test/Documents")

    @pytest.mark.asyncio
    async def test_invalidate(self, resolver, container_provider):
        await resolver.resolve_container_url("iCloud.test", FileType.KML)

        resolver.invalidate("iCloud.test")
        await resolver.resolve_container_url("iCloud.test", FileType.KML)

        assert container_provider.container_url.call_count == 2
