"""SQLite storage backend built on the standard library ``sqlite3`` module.

Uses qmark placeholders, ``sqlite3.Row`` for name-addressed rows and
``INSERT ... ON CONFLICT DO UPDATE`` as the atomic upsert.

Database path resolution for ``SQLiteBackend.from_path``:
1. Explicit path argument
2. ``RELCACHE_DB_PATH`` environment variable
3. ``$XDG_CACHE_HOME/relcache/cache.db``
4. ``~/.cache/relcache/cache.db``
"""

import logging
import sqlite3
from pathlib import Path
from typing import Any

from ..config import MEMORY_DATABASE, CacheSettings
from ..models import DATA_COLUMN, EXPIRATION_COLUMN, KEY_COLUMN
from .base import DBAPIBackend

logger = logging.getLogger(__name__)

# OperationalError messages that point at the statement, not the connection.
_STATEMENT_FAILURES = (
    "no such table",
    "no such column",
    "has no column named",
    "syntax error",
)


class SQLiteBackend(DBAPIBackend):
    """Storage backend for a ``sqlite3.Connection``.

    Example:
        ```python
        backend = SQLiteBackend.from_path("/tmp/cache.db")
        cache = RelationalCache(backend, "cache")
        ```
    """

    driver = sqlite3
    placeholder = "?"
    data_type = "BLOB"
    expiration_type = "INTEGER"

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        autocommit: bool = True,
        database_path: Path | str | None = None,
    ) -> None:
        super().__init__(connection, autocommit=autocommit)
        self._database_path = database_path

    @classmethod
    def from_path(
        cls, database_path: Path | str | None = None, *, timeout: float = 30.0
    ) -> "SQLiteBackend":
        """Open (and own) a SQLite database file.

        Args:
            database_path: File path or ``":memory:"``. Resolved from the
                environment when None.
            timeout: Seconds to wait on a locked database before failing.
        """
        if database_path is None:
            database_path = CacheSettings().database_path
        elif str(database_path) == MEMORY_DATABASE:
            database_path = MEMORY_DATABASE
        else:
            database_path = Path(database_path)

        if isinstance(database_path, Path):
            database_path.parent.mkdir(parents=True, exist_ok=True)

        connection = sqlite3.connect(
            str(database_path),
            timeout=timeout,
            check_same_thread=False,
            isolation_level=None,
        )
        if database_path != MEMORY_DATABASE:
            # WAL lets readers proceed while another connection writes
            connection.execute("PRAGMA journal_mode=WAL")

        backend = cls(connection, database_path=database_path)
        backend._owns_connection = True
        logger.debug(f"Opened SQLite cache database at {database_path}")
        return backend

    @property
    def database_path(self) -> Path | str | None:
        """Path of the database file, ``":memory:"``, or None if unknown."""
        return self._database_path

    def upsert_statement(self, table_name: str) -> str:
        return (
            f"INSERT INTO {table_name} ({KEY_COLUMN}, {DATA_COLUMN}, "
            f"{EXPIRATION_COLUMN}) VALUES (?, ?, ?) "
            f"ON CONFLICT({KEY_COLUMN}) DO UPDATE SET "
            f"{DATA_COLUMN} = excluded.{DATA_COLUMN}, "
            f"{EXPIRATION_COLUMN} = excluded.{EXPIRATION_COLUMN}"
        )

    def is_connection_failure(self, error: BaseException) -> bool:
        # sqlite3 raises OperationalError for bad statements too
        message = str(error).lower()
        if isinstance(error, sqlite3.ProgrammingError):
            return "closed" in message
        if isinstance(error, sqlite3.OperationalError):
            return not any(failure in message for failure in _STATEMENT_FAILURES)
        return False

    def _cursor(self) -> sqlite3.Cursor:
        cursor = self._connection.cursor()
        cursor.row_factory = sqlite3.Row
        return cursor

    def _row_to_dict(self, cursor: Any, row: sqlite3.Row) -> dict[str, Any]:
        return dict(zip(row.keys(), row, strict=True))
