"""Enumerations for frouter."""

from enum import Enum


class ChangeKind(str, Enum):
    """Rudimentary kind of a raw filesystem notification."""

    CREATED = "created"
    """A file appeared."""

    MODIFIED = "modified"
    """File contents or metadata changed."""

    DELETED = "deleted"
    """A file disappeared."""

    OTHER = "other"
    """Anything the watch backend could not classify."""


class RouterState(str, Enum):
    """State of the router control loop."""

    IDLE = "idle"
    """No pending batch."""

    ACCUMULATING = "accumulating"
    """Batch is non-empty and waiting for a quiet period."""

    STOPPED = "stopped"
    """The loop has exited."""


class ErrorKind(str, Enum):
    """Label attached to every reported error."""

    CONFIG = "config"
    """Configuration could not be loaded or parsed."""

    DIRECTORY = "directory"
    """A configured directory could not be created."""

    WATCH = "watch"
    """Watching or unwatching a directory failed."""

    MOVE = "move"
    """Copying or removing a file failed."""

    HASH = "hash"
    """Computing a content digest failed."""

    SINK = "sink"
    """The move log could not begin or commit a transaction."""
