"""SQLite database connection manager using aiosqlite."""

from __future__ import annotations

import logging
import os
import sqlite3

import aiosqlite

from askcii.storage.schema import SCHEMA_SQL

logger = logging.getLogger(__name__)

MEMORY_PATH = ":memory:"


class StorageError(RuntimeError):
    """The database file could not be opened or initialised."""


class Database:
    """Async SQLite connection manager.

    One connection per invocation: open with ``connect()`` (or ``async with``)
    and close when the invocation ends.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection and ensure schema exists.

        Creates the parent directory of the database file when missing.
        Raises StorageError on any I/O failure.
        """
        try:
            if self._db_path != MEMORY_PATH:
                parent = os.path.dirname(os.path.abspath(self._db_path))
                os.makedirs(parent, exist_ok=True)
            self._conn = await aiosqlite.connect(self._db_path)
            self._conn.row_factory = aiosqlite.Row
            await self._conn.executescript(SCHEMA_SQL)
            await self._conn.commit()
        except (sqlite3.Error, OSError) as e:
            await self.close()
            raise StorageError(f"Unable to open database at {self._db_path}: {e}") from e
        logger.debug("Database connected at %s", self._db_path)

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def __aenter__(self) -> Database:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._conn
