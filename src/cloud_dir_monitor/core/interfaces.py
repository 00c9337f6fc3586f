"""
Abstract interfaces for the cloud directory monitor.

These interfaces define the contracts between the monitor and its
collaborators (identity provider, container provider, change source and
the consumer delegate), enabling dependency injection for testing and
alternative provider implementations.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from pathlib import Path

from cloud_dir_monitor.models import ChangeNotification, CloudItem, FileType, SynchronizationFailure

ChangeListener = Callable[[ChangeNotification], None]


class IIdentityProvider(ABC):
    """Interface for looking up the signed-in cloud account."""

    @abstractmethod
    def ubiquity_identity_token(self) -> str | None:
        """
        Get the identity token of the current cloud account.

        Returns:
            Opaque token, or None when no usable account is signed in
        """
        pass


class IContainerProvider(ABC):
    """Interface for resolving cloud containers to directories."""

    @abstractmethod
    def container_url(self, container_identifier: str, file_type: FileType) -> Path | None:
        """
        Resolve the documents directory of a container.

        May be slow: the first call can initialize the provider.

        Args:
            container_identifier: Identifier of the cloud container
            file_type: Kind of files that will be observed in the container

        Returns:
            Directory path, or None if the container does not exist

        Raises:
            ProviderError: If the provider fails
        """
        pass


class IChangeSubscription(ABC):
    """Interface for a live directory query."""

    @abstractmethod
    def start(self) -> None:
        """
        Activate the query.

        Emits a gathering-finished notification once the initial pass over
        the directory completes, then updated notifications.

        Raises:
            MonitoringError: If the query cannot be started
        """
        pass

    @abstractmethod
    def stop(self) -> None:
        """Deactivate the query and release its resources."""
        pass

    @abstractmethod
    def disable_updates(self) -> None:
        """Suspend delivery of update notifications."""
        pass

    @abstractmethod
    def enable_updates(self) -> None:
        """Resume delivery of update notifications."""
        pass

    @abstractmethod
    def results(self) -> list[CloudItem]:
        """Get the items currently matched by the query."""
        pass

    @property
    @abstractmethod
    def is_active(self) -> bool:
        """Check whether the query is running."""
        pass


class IChangeSource(ABC):
    """Interface for subscribing to directory changes."""

    @abstractmethod
    def subscribe(self, directory: Path, file_type: FileType, listener: ChangeListener) -> IChangeSubscription:
        """
        Create a query over a directory.

        The returned subscription is inactive until started.

        Args:
            directory: Directory to observe
            file_type: Only items of this kind are reported
            listener: Receives notifications, possibly from another thread

        Returns:
            Subscription owned by the caller
        """
        pass


class IMonitorDelegate(ABC):
    """Interface for consumers of monitor notifications."""

    @abstractmethod
    def on_initial_snapshot(self, items: list[CloudItem]) -> None:
        """Called once per monitoring session with the baseline contents."""
        pass

    @abstractmethod
    def on_update(self, items: list[CloudItem]) -> None:
        """Called for every later change with the current contents."""
        pass

    @abstractmethod
    def on_error(self, failure: SynchronizationFailure) -> None:
        """Called when the change source reports a synchronization failure."""
        pass
