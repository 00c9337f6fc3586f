"""
Data models for observed cloud items and change notifications.

These models describe what a change source reports about the monitored
directory: the items currently present and the kind of change that
produced the report.
"""

import time
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, computed_field

from cloud_dir_monitor.models.exceptions import ProviderError


PLACEHOLDER_SUFFIX = ".icloud"


def is_placeholder_name(name: str) -> bool:
    """Check whether a file name is a cloud placeholder for a remote-only item."""
    return name.startswith(".") and name.endswith(PLACEHOLDER_SUFFIX) and len(name) > len(PLACEHOLDER_SUFFIX) + 1


def placeholder_name_target(name: str) -> str:
    """Get the name of the item a placeholder stands for."""
    return name[1 : -len(PLACEHOLDER_SUFFIX)]


class FileType(str, Enum):
    """Kinds of files a monitor can be configured to observe."""

    KML = "kml"
    KMZ = "kmz"
    GPX = "gpx"

    @property
    def extension(self) -> str:
        """File extension including the leading dot."""
        return f".{self.value}"

    def matches(self, file_path: str | Path) -> bool:
        """Check whether a path has this file type's extension."""
        return Path(file_path).suffix.lower() == self.extension


class ChangeKind(str, Enum):
    """Kinds of events emitted by a change source."""

    GATHERING_FINISHED = "gathering_finished"
    UPDATED = "updated"
    ERROR = "error"


class CloudItem(BaseModel):
    """A single file observed in the monitored cloud directory."""

    model_config = ConfigDict(frozen=True)

    path: Path = Field(..., description="Absolute path of the item")
    size: int = Field(default=0, ge=0, description="Size in bytes")
    modified_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Last modification time",
    )
    is_downloaded: bool = Field(default=True, description="Whether the item content is available locally")

    @computed_field
    @property
    def name(self) -> str:
        """File name of the item."""
        return self.path.name

    @classmethod
    def from_path(cls, file_path: Path) -> "CloudItem":
        """
        Build an item from a file on disk.

        Raises:
            OSError: If the file cannot be inspected
        """
        stat = file_path.stat()
        return cls(
            path=file_path,
            size=stat.st_size,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            is_downloaded=True,
        )

    @classmethod
    def from_placeholder(cls, placeholder_path: Path) -> "CloudItem":
        """
        Build an item from a not-yet-downloaded placeholder.

        Placeholders are named ``.<name>.icloud`` and stand for ``<name>``
        in the same directory.

        Raises:
            OSError: If the placeholder cannot be inspected
        """
        stat = placeholder_path.stat()
        return cls(
            path=placeholder_path.with_name(placeholder_name_target(placeholder_path.name)),
            size=0,
            modified_at=datetime.fromtimestamp(stat.st_mtime, tz=UTC),
            is_downloaded=False,
        )

    def __str__(self) -> str:
        return f"CloudItem({self.name}, {self.size} bytes)"


class ChangeNotification:
    """Represents one event delivered by a change source."""

    def __init__(
        self,
        kind: ChangeKind,
        items: list[CloudItem] | None = None,
        error: ProviderError | None = None,
    ):
        self.kind = kind
        self.items = list(items or [])
        self.error = error
        self.timestamp = time.time()

    @classmethod
    def gathering_finished(cls, items: list[CloudItem]) -> "ChangeNotification":
        return cls(ChangeKind.GATHERING_FINISHED, items=items)

    @classmethod
    def updated(cls, items: list[CloudItem]) -> "ChangeNotification":
        return cls(ChangeKind.UPDATED, items=items)

    @classmethod
    def failed(cls, error: ProviderError) -> "ChangeNotification":
        return cls(ChangeKind.ERROR, error=error)

    def __str__(self) -> str:
        if self.kind == ChangeKind.ERROR:
            return f"ChangeNotification({self.kind.value}: {self.error})"
        return f"ChangeNotification({self.kind.value}: {len(self.items)} items)"
