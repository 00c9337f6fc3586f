"""Core contracts between the monitor and its collaborators."""

from cloud_dir_monitor.core.interfaces import (
    ChangeListener,
    IChangeSource,
    IChangeSubscription,
    IContainerProvider,
    IIdentityProvider,
    IMonitorDelegate,
)

__all__ = [
    "ChangeListener",
    "IChangeSource",
    "IChangeSubscription",
    "IContainerProvider",
    "IIdentityProvider",
    "IMonitorDelegate",
]
