"""Storage layer for frouter."""

from .database import Database
from .move_log import MoveLog
from .files import compute_sha256, copy_then_delete, ensure_directory, list_files

__all__ = [
    "Database",
    "MoveLog",
    "compute_sha256",
    "copy_then_delete",
    "ensure_directory",
    "list_files",
]
