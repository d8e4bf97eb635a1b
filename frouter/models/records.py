"""Records produced by routing: completed moves and reported errors."""

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from .enums import ErrorKind


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def local_timestamp(moment: datetime | None = None) -> str:
    """Human-readable local time, e.g. 2024-03-01 14:05:09."""
    return (moment or datetime.now()).strftime(TIMESTAMP_FORMAT)


class MoveRecord(BaseModel):
    """
    One completed move, as written to the move log.

    The timestamp is local time formatted as YYYY-MM-DD HH:MM:SS and the
    hash is a lowercase hex SHA-256 digest of the file contents.
    """

    source_path: str
    destination_path: str
    filename: str
    timestamp: str = Field(default_factory=local_timestamp)
    filehash: str

    @classmethod
    def for_move(cls, source: Path, destination: Path, filehash: str) -> "MoveRecord":
        return cls(
            source_path=str(source),
            destination_path=str(destination),
            filename=source.name,
            filehash=filehash,
        )


class ErrorRecord(BaseModel):
    """An error surfaced through the reporting channel."""

    model_config = ConfigDict(use_enum_values=True)

    kind: ErrorKind
    message: str
    timestamp: str = Field(default_factory=local_timestamp)
