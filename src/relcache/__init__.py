"""relcache: TTL-aware key-value caching in a relational table.

This library provides:
- A cache provider storing opaque byte payloads in one three-column table
- Lazy expiration (expired rows are removed when a read observes them)
- Interchangeable storage backends for sqlite3 and PyMySQL connections
- An optional serializing layer for storing Python values
"""

from relcache.backends.base import DBAPIBackend, StorageBackend
from relcache.backends.mysql import MySQLBackend
from relcache.backends.sqlite import SQLiteBackend
from relcache.cache import RelationalCache
from relcache.config import CacheSettings
from relcache.exceptions import CacheConnectionError, CacheError, StorageError
from relcache.models import CacheEntry
from relcache.provider import CacheProvider
from relcache.serialization import (
    JsonSerializer,
    PickleSerializer,
    SerializingCache,
    Serializer,
)

__version__ = "0.1.0"

__all__ = [
    "CacheConnectionError",
    "CacheEntry",
    "CacheError",
    "CacheProvider",
    "CacheSettings",
    "DBAPIBackend",
    "JsonSerializer",
    "MySQLBackend",
    "PickleSerializer",
    "RelationalCache",
    "SQLiteBackend",
    "Serializer",
    "SerializingCache",
    "StorageBackend",
    "StorageError",
    "__version__",
]
