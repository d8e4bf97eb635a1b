"""
Error types for frouter.

All errors inherit from FileRouterError and carry an ErrorKind label so
they can be reported through the same channel.
"""

from pathlib import Path

from .models.enums import ErrorKind


class FileRouterError(Exception):
    """Base exception for all routing failures."""

    kind: ErrorKind = ErrorKind.MOVE

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(FileRouterError):
    """Raised when a configuration file cannot be read or is malformed."""

    kind = ErrorKind.CONFIG

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Invalid configuration {self.path}: {reason}")


class WatchError(FileRouterError):
    """Raised when a directory cannot be watched or unwatched."""

    kind = ErrorKind.WATCH

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Watch failure for {self.path}: {reason}")


class MoveError(FileRouterError):
    """Raised when a file could not be moved to its destination."""

    kind = ErrorKind.MOVE

    def __init__(self, source: Path | str, destination: Path | str, reason: str):
        self.source = Path(source)
        self.destination = Path(destination)
        self.reason = reason
        super().__init__(f"Failed to move {self.source} -> {self.destination}: {reason}")


class HashError(FileRouterError):
    """Raised when a content digest could not be computed."""

    kind = ErrorKind.HASH

    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to hash {self.path}: {reason}")


class SinkError(FileRouterError):
    """Raised when the move log rejects a transaction operation."""

    kind = ErrorKind.SINK

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        self.reason = reason
        super().__init__(f"Move log {operation} failed: {reason}")
