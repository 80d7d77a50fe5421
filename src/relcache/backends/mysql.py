"""MySQL storage backend built on PyMySQL.

Uses ``%s`` placeholders, ``DictCursor`` for name-addressed rows and
``INSERT ... ON DUPLICATE KEY UPDATE`` as the atomic upsert. The connection
is opened and configured by the caller:

    ```python
    connection = pymysql.connect(host="db", user="app", database="app")
    cache = RelationalCache(MySQLBackend(connection), "cache")
    ```
"""

import logging
from typing import Any

import pymysql
from pymysql.cursors import DictCursor

from ..models import DATA_COLUMN, EXPIRATION_COLUMN, KEY_COLUMN
from .base import DBAPIBackend

logger = logging.getLogger(__name__)

# Client-side errors (CR_*) all mean the connection is gone or unusable.
_CLIENT_ERRNOS_START = 2000

# Too many connections, access denied to database, access denied for user,
# server shutdown in progress.
_CONNECTION_ERRNOS = frozenset({1040, 1044, 1045, 1053})


class MySQLBackend(DBAPIBackend):
    """Storage backend for a PyMySQL connection.

    Payloads are stored as LONGBLOB so arbitrarily large byte strings survive
    unchanged, and expirations as BIGINT so timestamps past 2038 fit.

    Args:
        connection: An open PyMySQL connection. The caller keeps ownership.
        autocommit: See ``DBAPIBackend``.
        row_alias: Write the upsert with a row alias (``AS new``) instead of
            ``VALUES(col)``, which MySQL deprecated in 8.0.20. MariaDB does
            not accept the alias form, so it stays opt-in.
    """

    driver = pymysql
    placeholder = "%s"
    data_type = "LONGBLOB"
    expiration_type = "BIGINT"

    def __init__(
        self, connection: Any, *, autocommit: bool = True, row_alias: bool = False
    ) -> None:
        super().__init__(connection, autocommit=autocommit)
        self._row_alias = row_alias

    def upsert_statement(self, table_name: str) -> str:
        insert = (
            f"INSERT INTO {table_name} ({KEY_COLUMN}, {DATA_COLUMN}, "
            f"{EXPIRATION_COLUMN}) VALUES (%s, %s, %s) "
        )
        if self._row_alias:
            return (
                f"{insert}AS new ON DUPLICATE KEY UPDATE "
                f"{DATA_COLUMN} = new.{DATA_COLUMN}, "
                f"{EXPIRATION_COLUMN} = new.{EXPIRATION_COLUMN}"
            )
        return (
            f"{insert}ON DUPLICATE KEY UPDATE "
            f"{DATA_COLUMN} = VALUES({DATA_COLUMN}), "
            f"{EXPIRATION_COLUMN} = VALUES({EXPIRATION_COLUMN})"
        )

    def is_connection_failure(self, error: BaseException) -> bool:
        # PyMySQL raises OperationalError for statement errors too (unknown
        # column, lock wait timeout, deadlock), so decide by errno.
        if isinstance(error, pymysql.err.InterfaceError):
            return True
        if not isinstance(error, pymysql.err.OperationalError):
            return False
        errno = error.args[0] if error.args else None
        if not isinstance(errno, int):
            return True
        return errno in _CONNECTION_ERRNOS or _CLIENT_ERRNOS_START <= errno < 3000

    def ping(self) -> bool:
        """Check the server is reachable without reconnecting."""
        try:
            self._connection.ping(reconnect=False)
        except pymysql.Error as exc:
            logger.warning(f"MySQL ping failed: {exc}")
            return False
        return True

    def _cursor(self) -> Any:
        return self._connection.cursor(DictCursor)

    def _row_to_dict(self, cursor: Any, row: dict[str, Any]) -> dict[str, Any]:
        return dict(row)
