"""Tests for CacheSettings."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from relcache.config import CacheSettings, validate_table_name


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove RELCACHE_* variables that could leak into these tests."""
    for name in ("RELCACHE_TABLE_NAME", "RELCACHE_DEFAULT_TTL", "RELCACHE_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


class TestCacheSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        """Test default values."""
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        settings = CacheSettings()

        assert settings.table_name == "cache"
        assert settings.default_ttl == 0
        assert settings.db_path is None
        assert settings.database_path == tmp_path / "relcache" / "cache.db"

    def test_reads_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that RELCACHE_* variables are picked up."""
        monkeypatch.setenv("RELCACHE_TABLE_NAME", "page_cache")
        monkeypatch.setenv("RELCACHE_DEFAULT_TTL", "300")
        monkeypatch.setenv("RELCACHE_DB_PATH", "/var/cache/app.db")

        settings = CacheSettings()

        assert settings.table_name == "page_cache"
        assert settings.default_ttl == 300
        assert settings.database_path == Path("/var/cache/app.db")

    def test_memory_path_kept_as_string(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that :memory: is not turned into a relative file path."""
        monkeypatch.setenv("RELCACHE_DB_PATH", ":memory:")
        assert CacheSettings().database_path == ":memory:"

    def test_home_fallback(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test the ~/.cache fallback when XDG_CACHE_HOME is unset."""
        monkeypatch.delenv("XDG_CACHE_HOME", raising=False)
        assert CacheSettings().database_path == (
            Path.home() / ".cache" / "relcache" / "cache.db"
        )

    def test_invalid_table_name(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that unsafe table names are rejected."""
        monkeypatch.setenv("RELCACHE_TABLE_NAME", "cache;drop")
        with pytest.raises(ValidationError):
            CacheSettings()

    def test_negative_default_ttl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that a negative default TTL is rejected."""
        monkeypatch.setenv("RELCACHE_DEFAULT_TTL", "-1")
        with pytest.raises(ValidationError):
            CacheSettings()


class TestValidateTableName:
    """Tests for table name validation."""

    @pytest.mark.parametrize("name", ["cache", "_cache", "Cache_2", "c" * 64])
    def test_accepts_identifiers(self, name: str) -> None:
        assert validate_table_name(name) == name

    @pytest.mark.parametrize(
        "name", ["", "2cache", "cache table", "cache`", "schema.cache", "c" * 65]
    )
    def test_rejects_non_identifiers(self, name: str) -> None:
        with pytest.raises(ValueError):
            validate_table_name(name)
