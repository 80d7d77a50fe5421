"""Configuration management using pydantic-settings.

Settings are read from ``RELCACHE_*`` environment variables and an optional
``.env`` file:

    RELCACHE_TABLE_NAME: Table that holds cache rows (default ``cache``)
    RELCACHE_DEFAULT_TTL: TTL in seconds applied when a caller gives none
        (default ``0``, never expire)
    RELCACHE_DB_PATH: SQLite database file, or ``:memory:``
"""

import os
import re
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_DATABASE = ":memory:"

# Table names are interpolated into SQL, so only plain identifiers pass.
_IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,63}$")


def validate_table_name(table_name: str) -> str:
    """Return ``table_name`` unchanged if it is a safe SQL identifier.

    Raises:
        ValueError: If the name could not be used verbatim in a statement.
    """
    if not isinstance(table_name, str) or not _IDENTIFIER_PATTERN.match(table_name):
        raise ValueError(
            f"Invalid cache table name {table_name!r}: expected a letter or "
            "underscore followed by up to 63 letters, digits or underscores"
        )
    return table_name


def default_database_path() -> Path:
    """Default SQLite location under the XDG cache directory."""
    xdg_cache_home = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache_home) if xdg_cache_home else Path.home() / ".cache"
    return base / "relcache" / "cache.db"


class CacheSettings(BaseSettings):
    """Settings for relcache, loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="RELCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    table_name: str = Field(
        default="cache", description="Table that stores the cache rows"
    )
    default_ttl: int = Field(
        default=0,
        ge=0,
        description="TTL in seconds used when none is given; 0 never expires",
    )
    db_path: str | None = Field(
        default=None, description="SQLite database path or ':memory:'"
    )

    @field_validator("table_name")
    @classmethod
    def _check_table_name(cls, value: str) -> str:
        return validate_table_name(value)

    @property
    def database_path(self) -> Path | str:
        """Resolved SQLite path; ``:memory:`` is returned as a string."""
        if self.db_path == MEMORY_DATABASE:
            return MEMORY_DATABASE
        if self.db_path:
            return Path(self.db_path)
        return default_database_path()
