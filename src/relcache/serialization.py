"""Value serialization on top of a byte-level cache provider.

Providers such as RelationalCache store opaque bytes. ``SerializingCache``
is the caller-side layer that turns Python values into those bytes and back.
"""

import json
import logging
import pickle
from typing import Any, Protocol, runtime_checkable

from pydantic import BaseModel

from .config import CacheSettings
from .provider import CacheProvider

logger = logging.getLogger(__name__)


@runtime_checkable
class Serializer(Protocol):
    """Converts values to payload bytes and back."""

    def dumps(self, value: Any) -> bytes: ...

    def loads(self, payload: bytes) -> Any: ...


class PickleSerializer:
    """Pickle-based serializer. Only load payloads written by trusted code."""

    def __init__(self, protocol: int = pickle.HIGHEST_PROTOCOL) -> None:
        self.protocol = protocol

    def dumps(self, value: Any) -> bytes:
        return pickle.dumps(value, protocol=self.protocol)

    def loads(self, payload: bytes) -> Any:
        return pickle.loads(payload)


class JsonSerializer:
    """JSON serializer; pydantic models are stored as their dumped dict."""

    def dumps(self, value: Any) -> bytes:
        if isinstance(value, BaseModel):
            value = value.model_dump(mode="json")
        return json.dumps(value, separators=(",", ":")).encode("utf-8")

    def loads(self, payload: bytes) -> Any:
        return json.loads(payload.decode("utf-8"))


class SerializingCache:
    """Stores Python values in a byte-level ``CacheProvider``.

    Args:
        provider: The underlying byte cache.
        serializer: Codec for values. Defaults to pickle.
        default_ttl: TTL for ``save`` calls that give none. Defaults to the
            ``RELCACHE_DEFAULT_TTL`` setting.
    """

    def __init__(
        self,
        provider: CacheProvider,
        serializer: Serializer | None = None,
        default_ttl: int | None = None,
    ) -> None:
        self.provider = provider
        self.serializer = serializer if serializer is not None else PickleSerializer()
        self.default_ttl = (
            default_ttl if default_ttl is not None else CacheSettings().default_ttl
        )

    def fetch(self, key: str, default: Any = None) -> Any:
        """Return the value for ``key``, or ``default`` on a miss.

        A payload that cannot be decoded counts as a miss, including pickles
        that reference classes or modules which no longer exist.
        """
        payload, found = self.provider.get(key)
        if not found or payload is None:
            return default
        try:
            return self.serializer.loads(payload)
        except Exception as exc:
            logger.warning(f"Discarding undecodable payload for {key!r}: {exc}")
            return default

    def save(self, key: str, value: Any, ttl_seconds: int | None = None) -> bool:
        """Serialize and store ``value``."""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        return self.provider.put(key, self.serializer.dumps(value), ttl)

    def contains(self, key: str) -> bool:
        return self.provider.contains(key)

    def delete(self, key: str) -> bool:
        return self.provider.delete(key)

    def flush(self) -> bool:
        return self.provider.flush()
