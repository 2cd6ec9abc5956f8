"""
Key-value stores with per-key TTL.

``KeyValueStore`` is the contract the session registry depends on: get, set
with an optional TTL, delete, purge_expired. ``SqliteKeyValueStore`` persists
entries in the ``kv_store`` table; ``MemoryKeyValueStore`` keeps them in a
dict for single-process development and tests. Both treat an entry whose TTL
has passed as absent and drop it on read. Writes also sweep every expired
entry, so keys that are never read again (unredeemed reset grants) do not
accumulate.
"""

import threading
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Tuple

from ..core.db import Database

Clock = Callable[[], float]


class KeyValueStore(ABC):
    """Abstract key-value interface."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the value, or None when missing or expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        """Store ``value`` unconditionally (last writer wins)."""
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Delete key. Returns True if it existed."""
        ...

    @abstractmethod
    def purge_expired(self) -> int:
        """Remove every expired entry. Returns count."""
        ...


class SqliteKeyValueStore(KeyValueStore):
    def __init__(self, db: Database, clock: Clock = time.time):
        self.db = db
        self.clock = clock

    def get(self, key: str) -> Optional[str]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT value, expires_at FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            if row is None:
                return None
            if row["expires_at"] is not None and row["expires_at"] <= self.clock():
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                return None
            return row["value"]

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        now = self.clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        with self.db.connect() as conn:
            # sweep before the upsert so the row written here survives
            conn.execute(
                "DELETE FROM kv_store WHERE expires_at IS NOT NULL AND expires_at <= ?", (now,)
            )
            conn.execute(
                """
                INSERT INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, expires_at = excluded.expires_at
                """,
                (key, value, expires_at),
            )

    def delete(self, key: str) -> bool:
        with self.db.connect() as conn:
            cur = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            return cur.rowcount > 0

    def purge_expired(self) -> int:
        with self.db.connect() as conn:
            cur = conn.execute(
                "DELETE FROM kv_store WHERE expires_at IS NOT NULL AND expires_at <= ?",
                (self.clock(),),
            )
            return cur.rowcount


class MemoryKeyValueStore(KeyValueStore):
    def __init__(self, clock: Clock = time.time):
        self.clock = clock
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and expires_at <= self.clock():
                del self._data[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        now = self.clock()
        expires_at = now + ttl_seconds if ttl_seconds is not None else None
        with self._lock:
            self._purge_locked(now)
            self._data[key] = (value, expires_at)

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def purge_expired(self) -> int:
        with self._lock:
            return self._purge_locked(self.clock())

    def _purge_locked(self, now: float) -> int:
        expired = [k for k, (_, exp) in self._data.items() if exp is not None and exp <= now]
        for k in expired:
            del self._data[k]
        return len(expired)
