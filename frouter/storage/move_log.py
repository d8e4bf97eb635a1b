"""Move log: durable record of every completed move."""

import logging
import sqlite3

from .database import Database
from ..errors import SinkError
from ..models import MoveRecord

logger = logging.getLogger(__name__)


class MoveLog:
    """
    Persistent storage for completed moves.

    Moves from one batch are appended inside a single explicit transaction.
    Every failure is raised as SinkError so callers can report it with the
    right kind label.
    """

    def __init__(self, database: Database):
        self.db = database

    async def begin(self) -> None:
        """Open the transaction for a batch."""
        try:
            await self.db.begin_transaction()
        except (sqlite3.Error, RuntimeError) as e:
            raise SinkError("begin", str(e)) from e

    async def append(self, record: MoveRecord) -> None:
        """Insert one move (uncommitted until commit())."""
        try:
            await self.db.execute(
                "INSERT INTO moves (source, destination, filename, timestamp, filehash) "
                "VALUES (?, ?, ?, ?, ?)",
                (
                    record.source_path,
                    record.destination_path,
                    record.filename,
                    record.timestamp,
                    record.filehash,
                ),
            )
        except (sqlite3.Error, RuntimeError) as e:
            raise SinkError("append", str(e)) from e

    async def commit(self) -> None:
        """Commit the batch."""
        try:
            await self.db.commit()
        except (sqlite3.Error, RuntimeError) as e:
            raise SinkError("commit", str(e)) from e

    async def rollback(self) -> None:
        """Abandon the batch if a transaction is still open."""
        if not self.db.in_transaction:
            return
        try:
            await self.db.rollback()
        except (sqlite3.Error, RuntimeError) as e:
            raise SinkError("rollback", str(e)) from e

    async def list_recent(self, limit: int = 100) -> list[MoveRecord]:
        """Most recent moves first."""
        rows = await self.db.fetch_all(
            "SELECT * FROM moves ORDER BY rowid DESC LIMIT ?",
            (limit,),
        )
        return [self._row_to_record(row) for row in rows]

    async def find_by_hash(self, filehash: str) -> list[MoveRecord]:
        """All moves of files with the given content digest."""
        rows = await self.db.fetch_all(
            "SELECT * FROM moves WHERE filehash = ? ORDER BY rowid ASC",
            (filehash,),
        )
        return [self._row_to_record(row) for row in rows]

    async def count(self) -> int:
        """Total number of logged moves."""
        row = await self.db.fetch_one("SELECT COUNT(*) AS n FROM moves")
        return row["n"] if row else 0

    def _row_to_record(self, row: dict) -> MoveRecord:
        return MoveRecord(
            source_path=row["source"],
            destination_path=row["destination"],
            filename=row["filename"],
            timestamp=row["timestamp"],
            filehash=row["filehash"],
        )
