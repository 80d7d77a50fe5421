"""Storage backend protocol and the shared DB-API 2.0 adapter.

The cache talks to its database only through ``StorageBackend``. Concrete
drivers differ in placeholder style, row fetching and upsert syntax; those
differences live in the subclasses of ``DBAPIBackend`` and nowhere else.
"""

import logging
from collections.abc import Iterator, Sequence
from contextlib import closing, contextmanager
from types import ModuleType
from typing import Any, Protocol, runtime_checkable

from ..exceptions import CacheConnectionError, StorageError
from ..models import DATA_COLUMN, EXPIRATION_COLUMN, KEY_COLUMN, MAX_KEY_LENGTH

logger = logging.getLogger(__name__)


@runtime_checkable
class StorageBackend(Protocol):
    """Protocol for the database connection behind a RelationalCache.

    Implementations must translate driver failures into
    ``CacheConnectionError`` (connection unusable) or ``StorageError``
    (statement failed).
    """

    placeholder: str

    def create_table_statement(self, table_name: str) -> str:
        """Idempotent DDL creating the three-column cache table."""
        ...

    def upsert_statement(self, table_name: str) -> str:
        """Atomic insert-or-replace of one row, placeholders ordered k, d, e."""
        ...

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> int:
        """Execute a statement and return the affected row count."""
        ...

    def fetch_one(
        self, statement: str, parameters: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        """Execute a query and return its first row keyed by column name."""
        ...

    def close(self) -> None:
        """Release resources owned by the backend."""
        ...


class DBAPIBackend:
    """Shared implementation for DB-API 2.0 connections.

    Subclasses set ``driver`` and ``placeholder`` and provide the dialect
    specific DDL and upsert statements.

    Args:
        connection: An open DB-API connection. The caller keeps ownership.
        autocommit: Commit after every statement so each cache operation is
            its own unit of work. Pass False when the caller manages
            transactions on the connection.
    """

    driver: ModuleType | None = None
    placeholder: str = "?"
    data_type: str = "BLOB"
    expiration_type: str = "INTEGER"

    def __init__(self, connection: Any, *, autocommit: bool = True) -> None:
        self._connection = connection
        self._autocommit = autocommit
        self._owns_connection = False

    @property
    def connection(self) -> Any:
        """The wrapped DB-API connection."""
        return self._connection

    def create_table_statement(self, table_name: str) -> str:
        return (
            f"CREATE TABLE IF NOT EXISTS {table_name} ("
            f"{KEY_COLUMN} VARCHAR({MAX_KEY_LENGTH}) PRIMARY KEY NOT NULL, "
            f"{DATA_COLUMN} {self.data_type}, "
            f"{EXPIRATION_COLUMN} {self.expiration_type})"
        )

    def upsert_statement(self, table_name: str) -> str:
        raise NotImplementedError

    def execute(self, statement: str, parameters: Sequence[Any] = ()) -> int:
        with self._translate_errors(statement):
            with closing(self._cursor()) as cursor:
                cursor.execute(statement, tuple(parameters))
                affected = cursor.rowcount
            self._finish()
        return affected

    def fetch_one(
        self, statement: str, parameters: Sequence[Any] = ()
    ) -> dict[str, Any] | None:
        with self._translate_errors(statement):
            with closing(self._cursor()) as cursor:
                cursor.execute(statement, tuple(parameters))
                row = cursor.fetchone()
                result = None if row is None else self._row_to_dict(cursor, row)
            self._finish()
        return result

    def close(self) -> None:
        """Close the connection if this backend opened it."""
        if self._owns_connection:
            self._connection.close()
            logger.debug(f"Closed connection owned by {type(self).__name__}")

    def _cursor(self) -> Any:
        return self._connection.cursor()

    def _row_to_dict(self, cursor: Any, row: Any) -> dict[str, Any]:
        columns = [description[0] for description in cursor.description]
        return dict(zip(columns, row, strict=True))

    def _finish(self) -> None:
        if self._autocommit:
            self._connection.commit()

    def _driver_errors(self, *names: str) -> tuple[type[BaseException], ...]:
        """Look up driver exception classes by their DB-API names.

        The driver module is consulted first. Without one, the connection's
        own attributes are used (a DB-API optional extension).
        """
        found = []
        for name in names:
            if self.driver is not None:
                error_class = getattr(self.driver, name, None)
            else:
                error_class = getattr(self._connection, name, None)
            if isinstance(error_class, type) and issubclass(error_class, BaseException):
                found.append(error_class)
        return tuple(found)

    def is_connection_failure(self, error: BaseException) -> bool:
        """Whether ``error`` means the connection itself is unusable."""
        return isinstance(
            error, self._driver_errors("OperationalError", "InterfaceError")
        )

    @contextmanager
    def _translate_errors(self, statement: str) -> Iterator[None]:
        try:
            yield
        except self._driver_errors("Error") as exc:
            if self.is_connection_failure(exc):
                logger.error(f"Connection failure while executing {statement!r}: {exc}")
                raise CacheConnectionError(str(exc)) from exc
            raise StorageError(f"Statement failed: {exc}") from exc
