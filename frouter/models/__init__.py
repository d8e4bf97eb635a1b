"""Core data models for frouter."""

from .enums import ChangeKind, ErrorKind, RouterState
from .config import Configuration, FileExtension, DEFAULT_IGNORE_PATTERNS
from .records import MoveRecord, ErrorRecord, local_timestamp

__all__ = [
    "ChangeKind",
    "ErrorKind",
    "RouterState",
    "Configuration",
    "FileExtension",
    "DEFAULT_IGNORE_PATTERNS",
    "MoveRecord",
    "ErrorRecord",
    "local_timestamp",
]
