"""Storage backend implementations.

This module provides the backend protocol and adapters for the database
drivers a RelationalCache can sit on.

Exports:
    StorageBackend: Protocol defining the backend interface.
    DBAPIBackend: Shared DB-API 2.0 adapter with error translation.
    SQLiteBackend: Standard library sqlite3 adapter.
    MySQLBackend: PyMySQL adapter.
"""

from relcache.backends.base import DBAPIBackend, StorageBackend
from relcache.backends.mysql import MySQLBackend
from relcache.backends.sqlite import SQLiteBackend

__all__ = [
    "DBAPIBackend",
    "MySQLBackend",
    "SQLiteBackend",
    "StorageBackend",
]
