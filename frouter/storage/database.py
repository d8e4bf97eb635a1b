"""SQLite database connection and schema management."""

import aiosqlite
from pathlib import Path
from typing import Optional
import logging

logger = logging.getLogger(__name__)


# SQL schema for the move log
MOVES_SCHEMA = """
CREATE TABLE IF NOT EXISTS moves (
    source TEXT NOT NULL,
    destination TEXT NOT NULL,
    filename TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    filehash TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_moves_timestamp ON moves(timestamp);
CREATE INDEX IF NOT EXISTS idx_moves_filehash ON moves(filehash);
"""


class Database:
    """
    Async SQLite database connection manager.

    Runs in autocommit mode; batches use explicit BEGIN/COMMIT.
    """

    def __init__(self, db_path: Path | str = "frouter.db"):
        self.db_path = Path(db_path)
        self._connection: Optional[aiosqlite.Connection] = None

    async def connect(self) -> None:
        """Establish database connection and initialize schema."""
        if self._connection is not None:
            return

        # Ensure directory exists
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Connecting to database: {self.db_path}")
        self._connection = await aiosqlite.connect(
            self.db_path,
            isolation_level=None,  # Autocommit mode
        )

        # Enable WAL mode for better concurrency
        await self._connection.execute("PRAGMA journal_mode = WAL")

        # Initialize schema
        await self._init_schema()

        logger.info("Database connected and schema initialized")

    async def _init_schema(self) -> None:
        """Create tables if they don't exist."""
        await self._connection.executescript(MOVES_SCHEMA)

    async def close(self) -> None:
        """Close database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("Database connection closed")

    @property
    def connection(self) -> aiosqlite.Connection:
        """Get the current connection (raises if not connected)."""
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None and self._connection.in_transaction

    async def execute(self, sql: str, params: tuple = ()) -> aiosqlite.Cursor:
        """Execute a SQL statement."""
        return await self.connection.execute(sql, params)

    async def fetch_one(self, sql: str, params: tuple = ()) -> Optional[dict]:
        """Fetch a single row as a dictionary."""
        self.connection.row_factory = aiosqlite.Row
        async with self.connection.execute(sql, params) as cursor:
            row = await cursor.fetchone()
            if row:
                return dict(row)
            return None

    async def fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        """Fetch all rows as dictionaries."""
        self.connection.row_factory = aiosqlite.Row
        async with self.connection.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def begin_transaction(self) -> None:
        """Begin an explicit transaction."""
        await self.connection.execute("BEGIN")

    async def commit(self) -> None:
        """Commit the current transaction."""
        await self.connection.execute("COMMIT")

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        await self.connection.execute("ROLLBACK")
