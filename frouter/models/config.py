"""Routing configuration models."""

import fnmatch
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_IGNORE_PATTERNS = (
    "*.tmp",
    "*.part",
    "*.crdownload",
    ".DS_Store",
    "Thumbs.db",
    "*.swp",
    "*~",
)


class FileExtension(BaseModel):
    """A file extension and the directory its files are routed to."""

    model_config = ConfigDict(frozen=True)

    name: str
    """Extension without the leading dot, e.g. "pdf"."""

    path: Path
    """Destination directory for matching files."""

    @field_validator("name")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("extension name must not be empty")
        return value

    def matches(self, file_path: Path) -> bool:
        """Case-insensitive comparison against the file suffix."""
        return file_path.suffix[1:].lower() == self.name.lower()


class Configuration(BaseModel):
    """
    An immutable snapshot of the routing configuration.

    A reload builds a new Configuration rather than mutating the live one,
    so a comparison between old and new never sees a half-updated value.
    """

    model_config = ConfigDict(frozen=True)

    directories: dict[str, Path] = Field(default_factory=dict)
    """Logical directory name -> absolute path of a watched source directory."""

    extensions: tuple[FileExtension, ...] = ()
    """Enabled extensions in declaration order."""

    ignore_patterns: tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    """Filename patterns that are never routed."""

    def watch_paths(self) -> set[Path]:
        """Every directory that must be watched for this configuration."""
        paths = set(self.directories.values())
        paths.update(ext.path for ext in self.extensions)
        return paths

    def find_extension(self, file_path: Path) -> Optional[FileExtension]:
        """Return the first declared extension matching the file, if any."""
        for ext in self.extensions:
            if ext.matches(file_path):
                return ext
        return None

    def is_ignored(self, file_path: Path) -> bool:
        """Check the filename against the ignore patterns."""
        name = file_path.name
        return any(fnmatch.fnmatch(name, pattern) for pattern in self.ignore_patterns)
