"""
Cloud directory monitor.

Owns the lifecycle of a watch over a cloud container's documents
directory: checks that a cloud account is available, resolves the
container, subscribes to a change source and forwards its notifications
to a delegate, classifying provider errors on the way.
"""

import asyncio
import logging
import threading
import weakref
from collections.abc import Callable
from enum import Enum
from functools import partial
from pathlib import Path
from typing import Any

from cloud_dir_monitor.config import MonitorConfig
from cloud_dir_monitor.core.interfaces import (
    IChangeSource,
    IChangeSubscription,
    IContainerProvider,
    IIdentityProvider,
    IMonitorDelegate,
)
from cloud_dir_monitor.models import (
    ChangeKind,
    ChangeNotification,
    CloudItem,
    FileType,
    MonitoringError,
    SynchronizationError,
    SynchronizationFailure,
)
from cloud_dir_monitor.models.exceptions import raise_sync_failure
from cloud_dir_monitor.monitoring.availability_probe import DirectoryAvailabilityProbe
from cloud_dir_monitor.monitoring.change_source import WatchdogChangeSource
from cloud_dir_monitor.monitoring.container_resolver import ContainerResolver
from cloud_dir_monitor.providers import LocalContainerProvider, LocalIdentityProvider

logger = logging.getLogger(__name__)

StartCompletion = Callable[[SynchronizationFailure | None], None]


class MonitorState(str, Enum):
    """Lifecycle state of a directory monitor."""

    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"


class CloudDirectoryMonitor:
    """
    Watches a cloud container directory and reports changes to a delegate.

    The delegate is held through a weak reference: the monitor never keeps
    its consumer alive, and events for a collected or missing delegate are
    dropped. Delegate callbacks are serialized per monitor and are
    delivered on the event loop that ran ``start()``. Once ``stop()`` or
    ``pause()`` returns, no further callback starts until the monitor is
    started or resumed again.
    """

    def __init__(
        self,
        container_identifier: str,
        file_type: FileType,
        identity_provider: IIdentityProvider,
        container_provider: IContainerProvider,
        change_source: IChangeSource | None = None,
        delegate: IMonitorDelegate | None = None,
    ):
        """
        Initialize the monitor.

        Args:
            container_identifier: Identifier of the cloud container to watch
            file_type: Kind of files to report
            identity_provider: Source of the signed-in account token
            container_provider: Resolves the container to a directory
            change_source: Optional change source (watchdog-based if not provided)
            delegate: Optional consumer of monitor notifications
        """
        self._container_identifier = container_identifier
        self._file_type = file_type

        self.availability_probe = DirectoryAvailabilityProbe(identity_provider)
        self.container_resolver = ContainerResolver(container_provider)
        self.change_source = change_source or WatchdogChangeSource()

        self._delegate_ref: weakref.ref | None = None
        self.delegate = delegate

        # Guards state and serializes delegate delivery
        self._lock = threading.RLock()
        self._state = MonitorState.IDLE
        self._session = 0
        self._has_gathered_initial_snapshot = False
        self._subscription: IChangeSubscription | None = None
        self._directory: Path | None = None
        self._delivery_loop: asyncio.AbstractEventLoop | None = None
        self._start_task: asyncio.Task | None = None

        self._stats = {
            "initial_snapshots": 0,
            "updates": 0,
            "errors": 0,
            "dropped_events": 0,
            "last_error": None,
        }

    @classmethod
    def from_config(
        cls,
        config: MonitorConfig,
        delegate: IMonitorDelegate | None = None,
    ) -> "CloudDirectoryMonitor":
        """Create a monitor backed by the local filesystem provider."""
        return cls(
            container_identifier=config.container_identifier,
            file_type=config.file_type,
            identity_provider=LocalIdentityProvider.from_config(config),
            container_provider=LocalContainerProvider.from_config(config),
            change_source=WatchdogChangeSource(config),
            delegate=delegate,
        )

    @property
    def container_identifier(self) -> str:
        return self._container_identifier

    @property
    def file_type(self) -> FileType:
        return self._file_type

    @property
    def delegate(self) -> IMonitorDelegate | None:
        """The consumer, or None if unset or no longer alive."""
        if self._delegate_ref is None:
            return None
        return self._delegate_ref()

    @delegate.setter
    def delegate(self, delegate: IMonitorDelegate | None) -> None:
        self._delegate_ref = weakref.ref(delegate) if delegate is not None else None

    @property
    def state(self) -> MonitorState:
        return self._state

    @property
    def is_started(self) -> bool:
        return self._state in (MonitorState.RUNNING, MonitorState.PAUSED)

    @property
    def is_paused(self) -> bool:
        # A stopped monitor reports itself as paused
        return self._state in (MonitorState.PAUSED, MonitorState.STOPPED)

    @property
    def subscription(self) -> IChangeSubscription | None:
        """The live change source subscription, while started."""
        return self._subscription

    @property
    def directory(self) -> Path | None:
        """Directory watched by the current or last session."""
        return self._directory

    def is_cloud_available(self) -> bool:
        """Check whether a cloud account is signed in."""
        return self.availability_probe.is_available()

    async def fetch_ubiquity_directory_url(self) -> Path:
        """
        Resolve the monitored container's directory.

        Raises:
            SynchronizationFailure: If the container cannot be resolved
        """
        return await self.container_resolver.resolve_container_url(self._container_identifier, self._file_type)

    async def start(self) -> None:
        """
        Start monitoring.

        Starting a started or paused monitor succeeds without doing
        anything. Concurrent calls share a single start attempt.

        Raises:
            SynchronizationFailure: ICLOUD_IS_NOT_AVAILABLE when no account is
                signed in, or the container resolution failure. The monitor
                is left in the state it had before the call.
        """
        if self.is_started:
            logger.debug("Monitor for %s already started", self._container_identifier)
            return

        if self._start_task is None:
            self._start_task = asyncio.get_running_loop().create_task(self._start_session())
            self._start_task.add_done_callback(self._clear_start_task)

        await asyncio.shield(self._start_task)

    def start_in_background(self, completion: StartCompletion) -> asyncio.Task:
        """
        Start monitoring without awaiting the result.

        Args:
            completion: Called exactly once with None on success or the
                failure that prevented the start

        Returns:
            Task running the start attempt
        """

        async def run() -> None:
            try:
                await self.start()
            except SynchronizationFailure as failure:
                completion(failure)
                return
            except Exception as e:
                completion(SynchronizationFailure.from_provider_error(e, operation="start"))
                return
            completion(None)

        return asyncio.get_running_loop().create_task(run())

    def _clear_start_task(self, task: asyncio.Task) -> None:
        if self._start_task is task:
            self._start_task = None

    async def _start_session(self) -> None:
        previous_state = self._state

        try:
            available = self.availability_probe.is_available()
        except Exception as e:
            logger.error("Failed to check cloud availability for %s: %s", self._container_identifier, e)
            raise SynchronizationFailure.from_provider_error(e, operation="start") from e

        if not available:
            logger.warning("Cannot start monitoring %s: cloud is not available", self._container_identifier)
            raise_sync_failure(
                SynchronizationError.ICLOUD_IS_NOT_AVAILABLE,
                operation="start",
                message="Cloud is not available",
            )

        logger.info("Starting monitor for container %s (%s)", self._container_identifier, self._file_type.value)
        self._state = MonitorState.STARTING

        try:
            directory = await self.fetch_ubiquity_directory_url()
        except SynchronizationFailure as e:
            self._state = previous_state
            logger.error("Failed to start monitor for %s: %s", self._container_identifier, e)
            raise

        try:
            with self._lock:
                self._session += 1
                session = self._session
                self._has_gathered_initial_snapshot = False
                self._directory = directory
                self._delivery_loop = asyncio.get_running_loop()
                subscription = self.change_source.subscribe(
                    directory, self._file_type, partial(self._on_change, session)
                )
                self._subscription = subscription
                self._state = MonitorState.RUNNING

            subscription.start()
        except Exception as e:
            with self._lock:
                self._subscription = None
                self._session += 1
                self._state = previous_state
            logger.error("Failed to start change source for %s: %s", directory, e)
            raise SynchronizationFailure.from_provider_error(e, operation="start") from e

        logger.info("Monitoring started for %s", directory)

    def stop(self) -> None:
        """
        Stop monitoring and release the change source subscription.

        Does nothing if the monitor is not started.

        Raises:
            MonitoringError: If the subscription fails to stop. The monitor
                is stopped regardless and delivers no further callbacks.
        """
        with self._lock:
            if not self.is_started:
                logger.debug("Monitor not started, nothing to stop")
                return

            subscription = self._subscription
            self._subscription = None
            self._session += 1
            self._state = MonitorState.STOPPED

        logger.info("Stopping monitor for %s", self._container_identifier)
        try:
            if subscription is not None:
                subscription.stop()
        except Exception as e:
            logger.error("Error stopping change source: %s", e)
            raise MonitoringError(
                "Failed to stop monitoring",
                path=str(self._directory) if self._directory else None,
                operation="stop",
                underlying_error=e,
            ) from e

    def pause(self) -> None:
        """Suspend delivery of change notifications. Only affects a running monitor."""
        with self._lock:
            if self._state != MonitorState.RUNNING:
                logger.debug("Monitor not running, nothing to pause")
                return
            self._state = MonitorState.PAUSED
            subscription = self._subscription

        if subscription is not None:
            subscription.disable_updates()
        logger.info("Monitor paused for %s", self._container_identifier)

    def resume(self) -> None:
        """Resume delivery of change notifications. Only affects a paused monitor."""
        with self._lock:
            if self._state != MonitorState.PAUSED:
                logger.debug("Monitor not paused, nothing to resume")
                return
            self._state = MonitorState.RUNNING
            subscription = self._subscription

        if subscription is not None:
            subscription.enable_updates()
        logger.info("Monitor resumed for %s", self._container_identifier)

    def _on_change(self, session: int, notification: ChangeNotification) -> None:
        """Receive a notification from the change source, on any thread."""
        loop = self._delivery_loop
        if loop is not None and not loop.is_closed() and not self._is_running_in(loop):
            loop.call_soon_threadsafe(self._deliver, session, notification)
            return

        self._deliver(session, notification)

    @staticmethod
    def _is_running_in(loop: asyncio.AbstractEventLoop) -> bool:
        try:
            return asyncio.get_running_loop() is loop
        except RuntimeError:
            return False

    def _deliver(self, session: int, notification: ChangeNotification) -> None:
        with self._lock:
            if session != self._session or self._state != MonitorState.RUNNING:
                self._stats["dropped_events"] += 1
                logger.debug("Dropping %s (state: %s)", notification, self._state.value)
                return

            if notification.kind == ChangeKind.ERROR:
                self._forward_error(notification)
            elif notification.kind == ChangeKind.GATHERING_FINISHED and not self._has_gathered_initial_snapshot:
                self._has_gathered_initial_snapshot = True
                self._stats["initial_snapshots"] += 1
                self._call_delegate("on_initial_snapshot", notification.items)
            else:
                self._stats["updates"] += 1
                self._call_delegate("on_update", notification.items)

    def _forward_error(self, notification: ChangeNotification) -> None:
        if notification.error is None:
            failure = SynchronizationFailure(None, message="Change source reported an error", operation="monitor")
        else:
            failure = SynchronizationFailure.from_provider_error(notification.error, operation="monitor")
        self._stats["errors"] += 1
        self._stats["last_error"] = failure.error.value if failure.error else "unclassified"
        logger.warning("Synchronization error in %s: %s", self._directory, failure)
        self._call_delegate("on_error", failure)

    def _call_delegate(self, method: str, payload: list[CloudItem] | SynchronizationFailure) -> None:
        delegate = self.delegate
        if delegate is None:
            logger.debug("No delegate, dropping %s", method)
            return

        try:
            getattr(delegate, method)(payload)
        except Exception as e:
            logger.error("Delegate %s raised: %s", method, e)

    def get_status(self) -> dict[str, Any]:
        """
        Get monitor status and statistics.

        Returns:
            Dictionary with lifecycle state and event counters
        """
        subscription = self._subscription
        return {
            "state": self._state.value,
            "is_started": self.is_started,
            "is_paused": self.is_paused,
            "container_identifier": self._container_identifier,
            "file_type": self._file_type.value,
            "directory": str(self._directory) if self._directory else None,
            "has_gathered_initial_snapshot": self._has_gathered_initial_snapshot,
            "items": len(subscription.results()) if subscription is not None else 0,
            "event_stats": self._stats.copy(),
        }
