"""SQLite persistence: key-value settings, configurations and conversations."""

from askcii.storage.configs import ConfigRegistry
from askcii.storage.conversations import Chat, ConversationStore, Message
from askcii.storage.database import Database, StorageError
from askcii.storage.kv import KeyValueStore

__all__ = [
    "Chat",
    "ConfigRegistry",
    "ConversationStore",
    "Database",
    "KeyValueStore",
    "Message",
    "StorageError",
]
