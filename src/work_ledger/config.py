"""Runtime settings for the work ledger service.

Values come from the process environment, optionally seeded from a ``.env``
file in the working directory:

    DATABASE_URL    SQLAlchemy async URL (SQLite by default)
    SQL_ECHO        log every SQL statement
    HOST / PORT     bind address for ``python -m work_ledger``
    DEBUG           FastAPI debug mode and uvicorn reload
    LOG_LEVEL       root logging level
    ENGINE_VERSION  version string reported by the API
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./work_ledger.db"

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in _TRUTHY


def _env_port(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from exc


@dataclass(frozen=True)
class Settings:
    """Service settings. Built once and passed to whatever needs them."""

    database_url: str
    engine_version: str
    host: str
    port: int
    debug: bool
    log_level: str
    sql_echo: bool = False

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()

        return cls(
            database_url=os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            engine_version=os.getenv("ENGINE_VERSION", "1.0.0"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=_env_port("PORT", 8000),
            debug=_env_flag("DEBUG"),
            log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
            sql_echo=_env_flag("SQL_ECHO"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings from the environment, read once per process."""
    return Settings.from_env()
