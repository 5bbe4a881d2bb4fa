"""Chat and message persistence."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal

from askcii.storage.database import Database

Role = Literal["user", "assistant", "system"]


@dataclass
class Chat:
    id: int
    context: str | None
    model_id: str | None
    created_at: str  # ISO 8601

    @classmethod
    def from_row(cls, row: Any) -> Chat:
        return cls(
            id=row["id"],
            context=row["context"],
            model_id=row["model_id"],
            created_at=row["created_at"],
        )


@dataclass
class Message:
    id: int
    chat_id: int
    role: str | None
    content: str
    model_id: str | None
    input_tokens: int | None
    output_tokens: int | None
    created_at: str  # ISO 8601

    @classmethod
    def from_row(cls, row: Any) -> Message:
        return cls(
            id=row["id"],
            chat_id=row["chat_id"],
            role=row["role"],
            content=row["content"] or "",
            model_id=row["model_id"],
            input_tokens=row["input_tokens"],
            output_tokens=row["output_tokens"],
            created_at=row["created_at"],
        )


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ConversationStore:
    """Manages chats and their append-only message log in SQLite.

    Chats are keyed by a session context string. Uniqueness of the context is
    not enforced by the schema: the oldest matching chat wins.
    """

    def __init__(self, db: Database) -> None:
        self._db = db

    # --- Chats ---

    async def find_or_create_chat(self, context: str, model_id: str | None) -> Chat:
        """Return the first chat for ``context``, creating one if none exists."""
        cursor = await self._db.conn.execute(
            "SELECT * FROM chats WHERE context = ? ORDER BY id LIMIT 1", (context,)
        )
        row = await cursor.fetchone()
        if row is not None:
            return Chat.from_row(row)

        now = _now()
        cursor = await self._db.conn.execute(
            "INSERT INTO chats (context, model_id, created_at) VALUES (?, ?, ?)",
            (context, model_id, now),
        )
        await self._db.conn.commit()
        return Chat(id=cursor.lastrowid, context=context, model_id=model_id, created_at=now)

    async def get_chat(self, chat_id: int) -> Chat | None:
        cursor = await self._db.conn.execute("SELECT * FROM chats WHERE id = ?", (chat_id,))
        row = await cursor.fetchone()
        return Chat.from_row(row) if row else None

    # --- Messages ---

    async def add_message(
        self,
        chat: Chat,
        role: Role,
        content: str | None,
        model_id: str | None,
        input_tokens: int | None = None,
        output_tokens: int | None = None,
    ) -> Message:
        """Append a message to a chat."""
        now = _now()
        cursor = await self._db.conn.execute(
            """INSERT INTO messages (chat_id, role, content, model_id, input_tokens, output_tokens, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (chat.id, role, content, model_id, input_tokens, output_tokens, now),
        )
        await self._db.conn.commit()
        return Message(
            id=cursor.lastrowid,
            chat_id=chat.id,
            role=role,
            content=content or "",
            model_id=model_id,
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            created_at=now,
        )

    async def append_content(self, message: Message, delta: str) -> Message:
        """Append streamed text to a message, both in the database and in place."""
        await self._db.conn.execute(
            "UPDATE messages SET content = COALESCE(content, '') || ? WHERE id = ?",
            (delta, message.id),
        )
        await self._db.conn.commit()
        message.content += delta
        return message

    async def update_message(
        self,
        message: Message,
        *,
        role: str | None,
        content: str | None,
        model_id: str | None,
        input_tokens: int | None,
        output_tokens: int | None,
    ) -> Message:
        """Give a message its final values."""
        await self._db.conn.execute(
            """UPDATE messages
               SET role = ?, content = ?, model_id = ?, input_tokens = ?, output_tokens = ?
               WHERE id = ?""",
            (role, content, model_id, input_tokens, output_tokens, message.id),
        )
        await self._db.conn.commit()
        message.role = role
        message.content = content or ""
        message.model_id = model_id
        message.input_tokens = input_tokens
        message.output_tokens = output_tokens
        return message

    async def get_message(self, message_id: int) -> Message | None:
        cursor = await self._db.conn.execute("SELECT * FROM messages WHERE id = ?", (message_id,))
        row = await cursor.fetchone()
        return Message.from_row(row) if row else None

    async def messages(self, chat: Chat) -> list[Message]:
        """All messages of a chat in creation order."""
        cursor = await self._db.conn.execute(
            "SELECT * FROM messages WHERE chat_id = ? ORDER BY id", (chat.id,)
        )
        rows = await cursor.fetchall()
        return [Message.from_row(r) for r in rows]

    async def last_assistant_message(self, chat: Chat) -> Message | None:
        """The most recently created assistant message of a chat."""
        cursor = await self._db.conn.execute(
            "SELECT * FROM messages WHERE chat_id = ? AND role = 'assistant' ORDER BY id DESC LIMIT 1",
            (chat.id,),
        )
        row = await cursor.fetchone()
        return Message.from_row(row) if row else None
