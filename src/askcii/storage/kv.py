"""Flat key-value storage over the ``configs`` table."""

from __future__ import annotations

from askcii.storage.database import Database


class KeyValueStore:
    """Manages unique string keys and their string values in SQLite."""

    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, key: str) -> str | None:
        """Get a value by key. Returns None if not found."""
        cursor = await self._db.conn.execute("SELECT value FROM configs WHERE key = ?", (key,))
        row = await cursor.fetchone()
        return row["value"] if row else None

    async def set(self, key: str, value: str | None) -> None:
        """Set a value, replacing any existing one."""
        await self._db.conn.execute(
            """INSERT INTO configs (key, value) VALUES (?, ?)
               ON CONFLICT(key) DO UPDATE SET value=excluded.value""",
            (key, value),
        )
        await self._db.conn.commit()

    async def delete(self, key: str) -> bool:
        """Delete a key. Returns True if a row was removed."""
        cursor = await self._db.conn.execute("DELETE FROM configs WHERE key = ?", (key,))
        await self._db.conn.commit()
        return cursor.rowcount > 0

    async def items(self, prefix: str = "") -> list[tuple[str, str | None]]:
        """All (key, value) pairs whose key starts with ``prefix``, in insertion order."""
        # substr() keeps the match literal; LIKE would treat "_" as a wildcard.
        cursor = await self._db.conn.execute(
            "SELECT key, value FROM configs WHERE substr(key, 1, ?) = ? ORDER BY id",
            (len(prefix), prefix),
        )
        rows = await cursor.fetchall()
        return [(row["key"], row["value"]) for row in rows]

    async def keys(self, prefix: str = "") -> list[str]:
        return [key for key, _ in await self.items(prefix)]
