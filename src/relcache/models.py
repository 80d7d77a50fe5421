"""Row model for the cache table."""

from dataclasses import dataclass

# Column names of the backing table.
KEY_COLUMN = "k"
DATA_COLUMN = "d"
EXPIRATION_COLUMN = "e"

COLUMNS = (KEY_COLUMN, DATA_COLUMN, EXPIRATION_COLUMN)

MAX_KEY_LENGTH = 500


@dataclass(frozen=True)
class CacheEntry:
    """One row of the cache table.

    Attributes:
        key: Primary key of the row.
        payload: Serialized value. ``None`` when the row was loaded without
            its data column (existence checks skip it).
        expiration: Absolute Unix epoch second after which the entry is dead.
            ``None`` means the entry never expires. ``0`` is a real timestamp
            in the past, not a "no expiry" marker.
    """

    key: str
    payload: bytes | None = None
    expiration: int | None = None

    def is_expired(self, current_time: int) -> bool:
        """Check whether the entry is dead at ``current_time`` (epoch seconds)."""
        return self.expiration is not None and self.expiration < current_time

    @classmethod
    def from_row(cls, row: dict) -> "CacheEntry":
        """Build an entry from a row addressed by column name."""
        payload = row.get(DATA_COLUMN)
        if isinstance(payload, str):
            # Tables created with a TEXT data column
            payload = payload.encode("utf-8")
        elif payload is not None and not isinstance(payload, bytes):
            # Some drivers hand back bytearray/memoryview for BLOB columns
            payload = bytes(payload)
        expiration = row.get(EXPIRATION_COLUMN)
        return cls(
            key=row[KEY_COLUMN],
            payload=payload,
            expiration=int(expiration) if expiration is not None else None,
        )
