"""Named provider configurations stored as JSON in the key-value table.

Layout inside the flat namespace:

- ``config_<id>``: JSON blob for one configuration
- ``default_config_id``: id of the default configuration
- ``api_key`` / ``api_endpoint`` / ``model_id``: legacy single-configuration
  settings, read only when no configuration exists
"""

from __future__ import annotations

import logging

from askcii.providers import (
    ConfigEntry,
    InvalidConfigEntry,
    build_config_entry,
    decode_config_entry,
    encode_config_entry,
)
from askcii.storage.database import Database
from askcii.storage.kv import KeyValueStore

logger = logging.getLogger(__name__)

CONFIG_PREFIX = "config_"
DEFAULT_CONFIG_KEY = "default_config_id"
DEFAULT_CONFIG_ID = "1"

LEGACY_API_KEY = "api_key"
LEGACY_API_ENDPOINT = "api_endpoint"
LEGACY_MODEL_ID = "model_id"


def _config_key(config_id: str) -> str:
    return f"{CONFIG_PREFIX}{config_id}"


def _config_id(key: str) -> str:
    return key[len(CONFIG_PREFIX):]


class ConfigRegistry:
    """Manages provider configurations, the default pointer and legacy settings."""

    def __init__(self, db: Database) -> None:
        self._kv = KeyValueStore(db)

    # --- Flat settings ---

    async def get(self, key: str) -> str | None:
        return await self._kv.get(key)

    async def set(self, key: str, value: str | None) -> None:
        await self._kv.set(key, value)

    async def api_key(self) -> str | None:
        return await self._kv.get(LEGACY_API_KEY)

    async def api_endpoint(self) -> str | None:
        return await self._kv.get(LEGACY_API_ENDPOINT)

    async def model_id(self) -> str | None:
        return await self._kv.get(LEGACY_MODEL_ID)

    # --- Configurations ---

    async def add_configuration(
        self,
        name: str,
        api_key: str | None,
        api_endpoint: str | None,
        model_id: str | None,
        provider: str | None,
    ) -> str:
        """Store a new configuration and return its id.

        The id is one more than the highest numeric id currently stored, so
        ids start at 1 and restart there once every configuration is deleted.
        Names are not required to be unique.
        """
        next_id = str(await self._max_id() + 1)
        entry = build_config_entry(
            provider=provider,
            id=next_id,
            name=name,
            api_key=api_key,
            api_endpoint=api_endpoint,
            model_id=model_id,
        )
        await self._kv.set(_config_key(next_id), encode_config_entry(entry))
        logger.info("Added configuration %s (%s)", next_id, entry.provider)
        return next_id

    async def get_configuration(self, config_id: str) -> ConfigEntry | None:
        """Get a configuration by id.

        Returns None when it does not exist or cannot be decoded.
        """
        raw = await self._kv.get(_config_key(config_id))
        if raw is None:
            return None
        return self._decode(config_id, raw)

    async def list_configurations(self) -> list[ConfigEntry]:
        """All decodable configurations, ordered by numeric id."""
        entries = [
            entry
            for key, raw in await self._kv.items(CONFIG_PREFIX)
            if (entry := self._decode(_config_id(key), raw)) is not None
        ]
        return sorted(entries, key=lambda e: _sort_key(e.id))

    async def set_default_configuration(self, config_id: str) -> None:
        await self._kv.set(DEFAULT_CONFIG_KEY, config_id)

    async def default_configuration_id(self) -> str:
        """The default configuration id, ``"1"`` when unset. Not validated."""
        return await self._kv.get(DEFAULT_CONFIG_KEY) or DEFAULT_CONFIG_ID

    async def delete_configuration(self, config_id: str) -> bool:
        """Delete a configuration, reassigning or clearing the default pointer.

        An unset pointer counts as pointing at ``"1"``.

        Returns False when no such configuration exists.
        """
        if not await self._kv.delete(_config_key(config_id)):
            return False

        logger.info("Deleted configuration %s", config_id)
        if await self.default_configuration_id() == config_id:
            remaining = [
                cid
                for key, raw in await self._kv.items(CONFIG_PREFIX)
                if self._decode(cid := _config_id(key), raw) is not None
            ]
            if remaining:
                new_default = remaining[0]
                await self.set_default_configuration(new_default)
                logger.info("Default configuration reassigned to %s", new_default)
            else:
                await self._kv.delete(DEFAULT_CONFIG_KEY)
        return True

    async def current_configuration(self) -> ConfigEntry | None:
        """Resolve the default configuration.

        Falls back to the legacy flat settings (provider ``openai``) only when
        no readable configuration is stored; corrupt entries count as absent.
        A stale default pointer with other configurations present resolves to
        None.
        """
        entry = await self.get_configuration(await self.default_configuration_id())
        if entry is not None:
            return entry

        if await self.list_configurations():
            return None

        return build_config_entry(
            api_key=await self.api_key(),
            api_endpoint=await self.api_endpoint(),
            model_id=await self.model_id(),
        )

    # --- Internals ---

    async def _max_id(self) -> int:
        ids = [int(cid) for cid in map(_config_id, await self._kv.keys(CONFIG_PREFIX)) if cid.isdigit()]
        return max(ids, default=0)

    @staticmethod
    def _decode(config_id: str, raw: str | None) -> ConfigEntry | None:
        try:
            return decode_config_entry(raw, id=config_id)
        except InvalidConfigEntry as e:
            logger.warning("Skipping unreadable configuration %s: %s", config_id, e)
            return None


def _sort_key(config_id: str | None) -> tuple[int, str]:
    cid = config_id or ""
    return (int(cid), "") if cid.isdigit() else (2**63, cid)
