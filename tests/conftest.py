"""Pytest configuration and fixtures for relcache tests."""

import os
from collections.abc import Generator
from pathlib import Path

import pymysql
import pytest

from relcache import RelationalCache
from relcache.backends.base import StorageBackend
from relcache.backends.mysql import MySQLBackend
from relcache.backends.sqlite import SQLiteBackend

TEST_TABLE = "cache_test"

MYSQL_HOST = os.environ.get("RELCACHE_TEST_MYSQL_HOST")


class FakeClock:
    """Controllable replacement for ``time.time``."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def connect_test_mysql() -> MySQLBackend:
    """Connect to the MySQL server named by RELCACHE_TEST_MYSQL_* variables."""
    connection = pymysql.connect(
        host=MYSQL_HOST,
        port=int(os.environ.get("RELCACHE_TEST_MYSQL_PORT", "3306")),
        user=os.environ.get("RELCACHE_TEST_MYSQL_USER", "root"),
        password=os.environ.get("RELCACHE_TEST_MYSQL_PASSWORD", ""),
        database=os.environ.get("RELCACHE_TEST_MYSQL_DATABASE", "relcache_test"),
    )
    return MySQLBackend(connection)


def row_count(cache: RelationalCache, key: str) -> int:
    """Count physical rows for ``key``, expired or not."""
    placeholder = cache.backend.placeholder
    row = cache.backend.fetch_one(
        f"SELECT COUNT(*) AS n FROM {cache.table_name} WHERE k = {placeholder}",
        (key,),
    )
    assert row is not None
    return int(row["n"])


def _get_backend_params() -> list[str]:
    """Get list of backend parameter names for parametrization."""
    params = ["sqlite_memory", "sqlite_file"]
    if MYSQL_HOST:
        params.append("mysql")
    return params


@pytest.fixture
def clock() -> FakeClock:
    """Fake clock starting at a fixed epoch second."""
    return FakeClock()


@pytest.fixture(params=_get_backend_params())
def backend(
    request: pytest.FixtureRequest, tmp_path: Path
) -> Generator[StorageBackend, None, None]:
    """Create a storage backend for testing.

    Parametrized to test SQLiteBackend (memory and file) and MySQLBackend
    when RELCACHE_TEST_MYSQL_HOST names a reachable server.
    """
    if request.param == "sqlite_memory":
        sqlite_backend = SQLiteBackend.from_path(":memory:")
        yield sqlite_backend
        sqlite_backend.close()
    elif request.param == "sqlite_file":
        sqlite_backend = SQLiteBackend.from_path(tmp_path / "test_cache.db")
        yield sqlite_backend
        sqlite_backend.close()
    elif request.param == "mysql":
        try:
            mysql_backend = connect_test_mysql()
        except Exception as exception:
            pytest.skip(f"MySQL connection failed: {exception}")
        if not mysql_backend.ping():
            pytest.skip("MySQL server not available")
        mysql_backend.execute(f"DROP TABLE IF EXISTS {TEST_TABLE}")
        yield mysql_backend
        mysql_backend.execute(f"DROP TABLE IF EXISTS {TEST_TABLE}")
        mysql_backend.connection.close()


@pytest.fixture
def cache(backend: StorageBackend, clock: FakeClock) -> RelationalCache:
    """RelationalCache over an empty ``cache_test`` table."""
    return RelationalCache(backend, TEST_TABLE, clock=clock)


@pytest.fixture
def count_rows():
    """Helper counting physical rows for a key in a cache's table."""
    return row_count
