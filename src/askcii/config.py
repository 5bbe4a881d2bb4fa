"""Runtime configuration read from the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

ENV_SESSION = "ASKCII_SESSION"
ENV_API_KEY = "ASKCII_API_KEY"
ENV_API_ENDPOINT = "ASKCII_API_ENDPOINT"
ENV_MODEL_ID = "ASKCII_MODEL_ID"
ENV_DB_PATH = "ASKCII_DB_PATH"
ENV_LOG_LEVEL = "ASKCII_LOG_LEVEL"

DEFAULT_LOG_LEVEL = "warning"


def default_db_path() -> str:
    return str(Path.home() / ".local" / "share" / "askcii" / "askcii.db")


@dataclass
class Config:
    """Process-level settings.

    ``api_key``, ``api_endpoint`` and ``model_id`` are the fallback backend
    used only when nothing is stored in the database.
    """

    db_path: str = field(default_factory=default_db_path)
    session: str | None = None
    api_key: str | None = None
    api_endpoint: str | None = None
    model_id: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Config:
        env = os.environ if environ is None else environ
        return cls(
            db_path=env.get(ENV_DB_PATH) or default_db_path(),
            session=env.get(ENV_SESSION) or None,
            api_key=env.get(ENV_API_KEY),
            api_endpoint=env.get(ENV_API_ENDPOINT),
            model_id=env.get(ENV_MODEL_ID),
            log_level=(env.get(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).lower(),
        )
