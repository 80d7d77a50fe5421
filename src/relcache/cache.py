"""TTL-aware key-value cache stored in a single relational table.

Each entry is one row with three columns: the key (``k``), the serialized
payload (``d``) and an optional absolute expiration in epoch seconds (``e``).
Expired rows are removed lazily, when a read observes them; there is no
background sweep, so abandoned keys keep their rows until they are reused,
deleted or flushed.
"""

import logging
import time
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from .backends.base import StorageBackend
from .config import CacheSettings, validate_table_name
from .exceptions import CacheConnectionError, StorageError
from .models import (
    COLUMNS,
    EXPIRATION_COLUMN,
    KEY_COLUMN,
    MAX_KEY_LENGTH,
    CacheEntry,
)

logger = logging.getLogger(__name__)


class RelationalCache:
    """Cache provider backed by one table of a relational database.

    The backend connection is owned by the caller; this class only issues one
    blocking statement per operation through it. Concurrent writers to the
    same key are serialized by the database's native upsert.

    Example:
        ```python
        cache = RelationalCache(SQLiteBackend.from_path(":memory:"), "cache")
        cache.put("user:1", b"payload", ttl_seconds=60)
        payload, found = cache.get("user:1")
        ```

    Args:
        backend: Storage backend wrapping an open connection.
        table_name: Table to store rows in. Defaults to the
            ``RELCACHE_TABLE_NAME`` setting.
        clock: Returns the current time in epoch seconds.

    Raises:
        ValueError: If ``table_name`` is not a plain SQL identifier.
        CacheConnectionError: If the backend rejects the table creation.
    """

    def __init__(
        self,
        backend: StorageBackend,
        table_name: str | None = None,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if table_name is None:
            table_name = CacheSettings().table_name
        self._table_name = validate_table_name(table_name)
        self._backend = backend
        self._clock = clock

        placeholder = backend.placeholder
        self._select_sql = (
            f"SELECT {', '.join(COLUMNS)} FROM {table_name} "
            f"WHERE {KEY_COLUMN} = {placeholder} LIMIT 1"
        )
        self._select_meta_sql = (
            f"SELECT {KEY_COLUMN}, {EXPIRATION_COLUMN} FROM {table_name} "
            f"WHERE {KEY_COLUMN} = {placeholder} LIMIT 1"
        )
        self._delete_sql = (
            f"DELETE FROM {table_name} WHERE {KEY_COLUMN} = {placeholder}"
        )
        self._expire_sql = (
            f"DELETE FROM {table_name} WHERE {KEY_COLUMN} = {placeholder} "
            f"AND {EXPIRATION_COLUMN} < {placeholder}"
        )
        self._flush_sql = f"DELETE FROM {table_name}"
        self._upsert_sql = backend.upsert_statement(table_name)

        self._ensure_table_exists()

    @property
    def table_name(self) -> str:
        """Name of the backing table."""
        return self._table_name

    @property
    def backend(self) -> StorageBackend:
        """The storage backend this cache writes through."""
        return self._backend

    def _now(self) -> int:
        return int(self._clock())

    def _ensure_table_exists(self) -> None:
        statement = self._backend.create_table_statement(self._table_name)
        try:
            self._backend.execute(statement)
        except StorageError as exc:
            logger.error(f"Could not create cache table {self._table_name}: {exc}")
            raise CacheConnectionError(
                f"Could not create cache table {self._table_name}: {exc}"
            ) from exc
        logger.info(f"Cache table {self._table_name} is ready")

    def _find(self, key: str, include_data: bool = True) -> CacheEntry | None:
        """Load the live entry for ``key``, deleting it first if it expired."""
        statement = self._select_sql if include_data else self._select_meta_sql
        row = self._backend.fetch_one(statement, (key,))
        if row is None:
            return None

        now = self._now()
        entry = CacheEntry.from_row(row)
        if entry.is_expired(now):
            logger.debug(f"Entry {key!r} expired at {entry.expiration}, removing")
            self._delete_expired(key, now)
            return None

        return entry

    def _delete_expired(self, key: str, now: int) -> None:
        # Only remove the row if it is still expired, a concurrent put may
        # have replaced it since the select.
        try:
            self._backend.execute(self._expire_sql, (key, now))
        except StorageError as exc:
            logger.warning(f"Failed to remove expired {key!r}: {exc}")

    def get(self, key: str) -> tuple[bytes | None, bool]:
        """Fetch the payload stored for ``key``.

        Returns:
            ``(payload, True)`` for a live entry, ``(None, False)`` when the
            key is absent or expired.

        Raises:
            StorageError: If the lookup itself failed.
        """
        entry = self._find(key)
        if entry is None:
            logger.debug(f"Cache miss for {key!r}")
            return None, False
        logger.debug(f"Cache hit for {key!r}")
        return entry.payload, True

    def contains(self, key: str) -> bool:
        """Check whether a live entry exists without fetching its payload."""
        return self._find(key, include_data=False) is not None

    def __contains__(self, key: str) -> bool:
        return self.contains(key)

    def put(self, key: str, payload: bytes, ttl_seconds: int = 0) -> bool:
        """Insert or replace the entry for ``key`` in one atomic statement.

        Args:
            key: Cache key, at most 500 characters.
            payload: Serialized value.
            ttl_seconds: Lifetime in seconds. Zero or negative never expires.

        Returns:
            True on success, False if the database rejected the write.

        Raises:
            CacheConnectionError: If the connection is unusable.
        """
        if len(key) > MAX_KEY_LENGTH:
            raise ValueError(
                f"Cache key is {len(key)} characters, limit is {MAX_KEY_LENGTH}"
            )
        if not isinstance(payload, (bytes, bytearray, memoryview)):
            raise TypeError(
                f"Cache payload must be bytes, got {type(payload).__name__}"
            )

        expiration = self._now() + ttl_seconds if ttl_seconds > 0 else None
        try:
            self._backend.execute(self._upsert_sql, (key, bytes(payload), expiration))
        except StorageError as exc:
            logger.warning(f"Failed to store {key!r}: {exc}")
            return False
        return True

    def delete(self, key: str) -> bool:
        """Remove the entry for ``key``. Removing an absent key succeeds."""
        try:
            self._backend.execute(self._delete_sql, (key,))
        except StorageError as exc:
            logger.warning(f"Failed to delete {key!r}: {exc}")
            return False
        return True

    def flush(self) -> bool:
        """Remove every entry in the table."""
        try:
            removed = self._backend.execute(self._flush_sql)
        except StorageError as exc:
            logger.warning(f"Failed to flush {self._table_name}: {exc}")
            return False
        logger.info(f"Flushed {removed} entries from {self._table_name}")
        return True

    def stats(self) -> dict[str, Any] | None:
        """Statistics are not tracked by this provider."""
        return None

    def get_many(self, keys: Iterable[str]) -> dict[str, bytes]:
        """Fetch several keys; only live hits appear in the result."""
        found: dict[str, bytes] = {}
        for key in keys:
            payload, hit = self.get(key)
            if hit and payload is not None:
                found[key] = payload
        return found

    def put_many(self, items: Mapping[str, bytes], ttl_seconds: int = 0) -> bool:
        """Store several entries with one TTL. True only if every write succeeded."""
        success = True
        for key, payload in items.items():
            success = self.put(key, payload, ttl_seconds) and success
        return success

    def delete_many(self, keys: Iterable[str]) -> bool:
        """Remove several keys. True only if every delete succeeded."""
        success = True
        for key in keys:
            success = self.delete(key) and success
        return success
