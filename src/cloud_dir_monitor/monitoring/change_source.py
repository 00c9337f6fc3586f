"""
Watchdog-backed change source for cloud-synchronized directories.

Runs an initial gathering pass over the directory, then watches it for
file additions, modifications and deletions, reporting the current set of
matching items after each debounced burst of changes.
"""

import asyncio
import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from cloud_dir_monitor.config import MonitorConfig
from cloud_dir_monitor.core.interfaces import ChangeListener, IChangeSource, IChangeSubscription
from cloud_dir_monitor.models import ChangeNotification, CloudItem, FileType, MonitoringError
from cloud_dir_monitor.models.cloud_item import is_placeholder_name, placeholder_name_target
from cloud_dir_monitor.providers import provider_error_from_os_error

logger = logging.getLogger(__name__)


class DirectoryQuery(FileSystemEventHandler):
    """
    Live query over a directory, driven by a watchdog observer.

    Notifications are delivered on the event loop that was running when
    the query started. Without a running loop they are delivered
    synchronously from the observer thread.
    """

    def __init__(
        self,
        directory: Path,
        file_type: FileType,
        listener: ChangeListener,
        ignore_file: Callable[[Path], bool] | None = None,
        debounce_seconds: float = 0.5,
    ):
        """
        Initialize the query.

        Args:
            directory: Directory to observe recursively
            file_type: Only files of this type are reported
            listener: Receives change notifications
            ignore_file: Optional predicate excluding files from results
            debounce_seconds: Quiet period before an update is reported
        """
        super().__init__()
        self.directory = directory
        self.file_type = file_type
        self.listener = listener
        self.ignore_file = ignore_file
        self.debounce_seconds = debounce_seconds

        self._items: list[CloudItem] = []
        self._lock = threading.Lock()
        self._active = False
        self._gathered = False
        self._updates_enabled = True
        self._pending_update = False
        self._pending_gathering = False

        self._observer: BaseObserver | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._gather_future: Future | None = None
        self._update_future: Future | None = None

    def start(self) -> None:
        if self._active:
            return

        if not self.directory.exists():
            raise MonitoringError(
                f"Directory does not exist: {self.directory}", path=str(self.directory), operation="start_query"
            )

        if not self.directory.is_dir():
            raise MonitoringError(
                f"Path is not a directory: {self.directory}", path=str(self.directory), operation="start_query"
            )

        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
            logger.debug("No running event loop, notifications will be delivered from the observer thread")

        try:
            self._observer = Observer()
            self._observer.schedule(self, str(self.directory), recursive=True)
            self._observer.start()
        except Exception as e:
            self._observer = None
            logger.error("Failed to start directory query for %s: %s", self.directory, e)
            raise MonitoringError(
                f"Failed to start query: {e}",
                path=str(self.directory),
                operation="start_query",
                underlying_error=e,
            ) from e

        self._active = True
        self._gathered = False
        logger.info("Started query over %s (%s files)", self.directory, self.file_type.value)

        if self._loop is not None:
            self._gather_future = asyncio.run_coroutine_threadsafe(self._gather(), self._loop)
        else:
            self._gather_sync()

    def stop(self) -> None:
        if not self._active and self._observer is None:
            return

        self._active = False

        for future in (self._gather_future, self._update_future):
            if future is not None and not future.done():
                future.cancel()
        self._gather_future = None
        self._update_future = None

        observer = self._observer
        self._observer = None
        try:
            if observer is not None and observer.is_alive():
                observer.stop()
                observer.join(timeout=5.0)
        except Exception as e:
            logger.error("Error stopping directory query for %s: %s", self.directory, e)
            raise MonitoringError(
                "Failed to stop query", path=str(self.directory), operation="stop_query", underlying_error=e
            ) from e

        self._pending_update = False
        self._pending_gathering = False
        logger.info("Stopped query over %s", self.directory)

    def disable_updates(self) -> None:
        self._updates_enabled = False

        # A debounced update still waiting to fire is replayed on enable
        if self._update_future is not None and not self._update_future.done():
            self._update_future.cancel()
            self._update_future = None
            self._pending_update = True
        logger.debug("Updates disabled for %s", self.directory)

    def enable_updates(self) -> None:
        self._updates_enabled = True
        logger.debug("Updates enabled for %s", self.directory)

        if self._pending_gathering:
            self._pending_gathering = False
            self._pending_update = False
            self._emit(ChangeNotification.gathering_finished(self.results()))
            return

        # Changes observed while disabled are reported as one update
        if self._pending_update:
            self._pending_update = False
            self._schedule_update()

    def results(self) -> list[CloudItem]:
        with self._lock:
            return list(self._items)

    @property
    def is_active(self) -> bool:
        return self._active

    # Watchdog callbacks, invoked on the observer thread

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle_file_event('created', Path(event.src_path))

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle_file_event('modified', Path(event.src_path))

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._handle_file_event('deleted', Path(event.src_path))

    def on_moved(self, event: FileSystemEvent) -> None:
        if hasattr(event, 'dest_path') and not event.is_directory:
            # A placeholder replaced by the downloaded file arrives as a move
            self._handle_file_event('deleted', Path(event.src_path))
            self._handle_file_event('created', Path(event.dest_path))

    def _handle_file_event(self, event_type: str, file_path: Path) -> None:
        if not self._active or not self._should_track(file_path):
            return

        logger.debug("File event: %s %s", event_type, file_path)

        if not self._gathered:
            # Retry a failed gathering pass, a running one picks the change up
            if self._gather_future is None or self._gather_future.done():
                self._schedule_gather()
            return

        if not self._updates_enabled:
            self._pending_update = True
            return

        self._schedule_update()

    def _schedule_gather(self) -> None:
        if self._loop is None or self._loop.is_closed():
            self._gather_sync()
            return

        try:
            self._gather_future = asyncio.run_coroutine_threadsafe(self._gather(), self._loop)
        except RuntimeError as e:
            logger.error("Failed to schedule gathering for %s: %s", self.directory, e)

    def _schedule_update(self) -> None:
        if self._loop is None or self._loop.is_closed():
            self._update_sync()
            return

        if self._update_future is not None and not self._update_future.done():
            self._update_future.cancel()

        try:
            self._update_future = asyncio.run_coroutine_threadsafe(self._process_debounced_update(), self._loop)
        except RuntimeError as e:
            logger.error("Failed to schedule update for %s: %s", self.directory, e)

    async def _gather(self) -> None:
        try:
            items = await asyncio.to_thread(self._scan)
        except OSError as e:
            logger.error("Initial gathering failed for %s: %s", self.directory, e)
            self._emit(ChangeNotification.failed(provider_error_from_os_error(e, self.directory, "gather")))
            return

        if not self._active:
            return

        self._finish_gathering(items)

    def _gather_sync(self) -> None:
        try:
            items = self._scan()
        except OSError as e:
            logger.error("Initial gathering failed for %s: %s", self.directory, e)
            self._emit(ChangeNotification.failed(provider_error_from_os_error(e, self.directory, "gather")))
            return

        self._finish_gathering(items)

    def _finish_gathering(self, items: list[CloudItem]) -> None:
        self._store(items)
        self._gathered = True
        logger.info("Finished gathering %d items in %s", len(items), self.directory)

        if not self._updates_enabled:
            self._pending_gathering = True
            return

        self._emit(ChangeNotification.gathering_finished(items))

    async def _process_debounced_update(self) -> None:
        await asyncio.sleep(self.debounce_seconds)

        if not self._active:
            return

        try:
            items = await asyncio.to_thread(self._scan)
        except OSError as e:
            logger.error("Update scan failed for %s: %s", self.directory, e)
            self._emit(ChangeNotification.failed(provider_error_from_os_error(e, self.directory, "update")))
            return

        if not self._active:
            return

        self._store(items)
        if not self._updates_enabled:
            self._pending_update = True
            return

        self._emit(ChangeNotification.updated(items))

    def _update_sync(self) -> None:
        try:
            items = self._scan()
        except OSError as e:
            logger.error("Update scan failed for %s: %s", self.directory, e)
            self._emit(ChangeNotification.failed(provider_error_from_os_error(e, self.directory, "update")))
            return

        self._store(items)
        self._emit(ChangeNotification.updated(items))

    def _scan(self) -> list[CloudItem]:
        """
        Collect the items currently in the directory.

        Raises:
            OSError: If the directory or one of its items cannot be read
        """
        items: dict[Path, CloudItem] = {}
        for path in sorted(self.directory.rglob("*")):
            if not self._should_track(path):
                continue
            try:
                if not path.is_file():
                    continue
                if is_placeholder_name(path.name):
                    item = CloudItem.from_placeholder(path)
                    # A downloaded copy takes precedence over its placeholder
                    items.setdefault(item.path, item)
                else:
                    item = CloudItem.from_path(path)
                    items[item.path] = item
            except FileNotFoundError:
                # Removed between listing and inspection
                continue
        return sorted(items.values(), key=lambda item: str(item.path))

    def _store(self, items: list[CloudItem]) -> None:
        with self._lock:
            self._items = list(items)

    def _should_track(self, file_path: Path) -> bool:
        name = file_path.name
        if is_placeholder_name(name):
            name = placeholder_name_target(name)

        if not self.file_type.matches(name):
            return False

        if self.ignore_file is not None and self.ignore_file(file_path.with_name(name)):
            return False

        return True

    def _emit(self, notification: ChangeNotification) -> None:
        try:
            logger.debug("Emitting %s", notification)
            self.listener(notification)
        except Exception as e:
            logger.error("Error delivering %s from %s: %s", notification.kind.value, self.directory, e)


class WatchdogChangeSource(IChangeSource):
    """Creates watchdog-backed directory queries."""

    def __init__(self, config: MonitorConfig | None = None, debounce_seconds: float | None = None):
        self.config = config
        if debounce_seconds is None:
            debounce_seconds = config.update_debounce_seconds if config is not None else 0.5
        self.debounce_seconds = debounce_seconds

    def subscribe(self, directory: Path, file_type: FileType, listener: ChangeListener) -> DirectoryQuery:
        return DirectoryQuery(
            directory=directory,
            file_type=file_type,
            listener=listener,
            ignore_file=self.config.should_ignore_file if self.config is not None else None,
            debounce_seconds=self.debounce_seconds,
        )
