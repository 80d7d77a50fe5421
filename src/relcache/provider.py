"""The cache-provider contract exposed to callers.

Any object with these methods can be handed to code that caches through
relcache, so storage implementations can be swapped without touching call
sites. Payloads are opaque bytes; serialization belongs to the caller.
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheProvider(Protocol):
    """Protocol for TTL-aware byte caches."""

    def get(self, key: str) -> tuple[bytes | None, bool]:
        """Return ``(payload, True)`` for a live entry, else ``(None, False)``."""
        ...

    def contains(self, key: str) -> bool:
        """Return True iff a live entry exists for ``key``."""
        ...

    def put(self, key: str, payload: bytes, ttl_seconds: int = 0) -> bool:
        """Store ``payload``; ``ttl_seconds <= 0`` means it never expires."""
        ...

    def delete(self, key: str) -> bool:
        """Remove ``key``; removing an absent key succeeds."""
        ...

    def flush(self) -> bool:
        """Remove every entry."""
        ...

    def stats(self) -> dict[str, Any] | None:
        """Usage statistics, or None when the provider does not track them."""
        ...
