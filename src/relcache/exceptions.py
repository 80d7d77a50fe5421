"""Error taxonomy for relcache.

Callers only ever see these exceptions (plus ``ValueError``/``TypeError`` for
their own mistakes); raw driver exceptions are translated by the backends.
"""


class CacheError(Exception):
    """Base class for all relcache errors."""


class CacheConnectionError(CacheError, ConnectionError):
    """The storage connection is unusable or rejected a statement outright.

    Raised for network loss, authentication failures and schema creation
    failures. Never swallowed and never retried.
    """


class StorageError(CacheError):
    """A single statement failed while the connection itself stayed usable."""
