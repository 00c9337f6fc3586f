"""
Monitoring package for cloud directory change detection.

This package provides the directory monitor state machine together with
the collaborators it drives: the availability probe, the container
resolver and the watchdog-backed change source.
"""

from .availability_probe import DirectoryAvailabilityProbe
from .change_source import DirectoryQuery, WatchdogChangeSource
from .container_resolver import ContainerResolver
from .directory_monitor import CloudDirectoryMonitor, MonitorState

__all__ = [
    "CloudDirectoryMonitor",
    "ContainerResolver",
    "DirectoryAvailabilityProbe",
    "DirectoryQuery",
    "MonitorState",
    "WatchdogChangeSource",
]
