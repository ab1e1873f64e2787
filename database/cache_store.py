# database/cache_store.py

import asyncio
import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
import logging

logger = logging.getLogger(__name__)


class CacheUnavailableError(Exception):
    """Backing store could not be read or written"""
    pass


@dataclass
class CacheEntry:
    """One cached payload"""
    key: str
    payload: Dict[str, Any]
    cached_at: float


class CacheStore(ABC):
    """
    Async key/value storage with per-namespace entries and a metadata table

    Implementations raise CacheUnavailableError when the backend fails.
    """

    @abstractmethod
    async def get(self, namespace: str, key: str) -> Optional[CacheEntry]:
        ...

    @abstractmethod
    async def set(self, namespace: str, key: str, payload: Dict[str, Any], cached_at: float):
        ...

    @abstractmethod
    async def delete(self, namespace: str, key: str):
        ...

    @abstractmethod
    async def items(self, namespace: str) -> List[CacheEntry]:
        ...

    @abstractmethod
    async def count(self, namespace: str) -> int:
        ...

    @abstractmethod
    async def delete_oldest(self, namespace: str, limit: int) -> int:
        """Remove up to `limit` entries with the oldest cached_at; returns the number removed"""
        ...

    @abstractmethod
    async def clear(self, namespace: Optional[str] = None):
        """Remove all entries of a namespace, or every entry when None"""
        ...

    @abstractmethod
    async def get_meta(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    async def set_meta(self, key: str, value: str):
        ...


class MemoryCacheStore(CacheStore):
    """In-process store, used by tests and when no cache file is configured"""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], CacheEntry] = {}
        self._meta: Dict[str, str] = {}

    async def get(self, namespace: str, key: str) -> Optional[CacheEntry]:
        return self._entries.get((namespace, key))

    async def set(self, namespace: str, key: str, payload: Dict[str, Any], cached_at: float):
        self._entries[(namespace, key)] = CacheEntry(key=key, payload=dict(payload), cached_at=cached_at)

    async def delete(self, namespace: str, key: str):
        self._entries.pop((namespace, key), None)

    async def items(self, namespace: str) -> List[CacheEntry]:
        return [entry for (ns, _), entry in self._entries.items() if ns == namespace]

    async def count(self, namespace: str) -> int:
        return sum(1 for ns, _ in self._entries if ns == namespace)

    async def delete_oldest(self, namespace: str, limit: int) -> int:
        if limit <= 0:
            return 0
        oldest = sorted(await self.items(namespace), key=lambda e: e.cached_at)[:limit]
        for entry in oldest:
            del self._entries[(namespace, entry.key)]
        return len(oldest)

    async def clear(self, namespace: Optional[str] = None):
        if namespace is None:
            self._entries.clear()
            return
        for ns_key in [k for k in self._entries if k[0] == namespace]:
            del self._entries[ns_key]

    async def get_meta(self, key: str) -> Optional[str]:
        return self._meta.get(key)

    async def set_meta(self, key: str, value: str):
        self._meta[key] = value

    def __len__(self):
        return len(self._entries)


class SQLiteCacheStore(CacheStore):
    """SQLite-backed store; blocking calls run in a worker thread"""

    def __init__(self, db_path: str = "data/cache.db"):
        """
        Raises:
            CacheUnavailableError: the database file cannot be created or opened
        """
        self.db_path = str(db_path)
        try:
            self._ensure_database()
        except (sqlite3.Error, OSError) as e:
            raise CacheUnavailableError(f"Cannot open cache database {self.db_path}: {e}") from e

    def _ensure_database(self):
        """Create database and tables if they don't exist"""
        db_file = Path(self.db_path)
        db_file.parent.mkdir(parents=True, exist_ok=True)

        schema_path = Path(__file__).parent / "schema.sql"
        if not schema_path.exists():
            logger.error(f"Schema file not found: {schema_path}")
            raise FileNotFoundError(f"Schema file not found: {schema_path}")

        with open(schema_path, 'r') as f:
            schema = f.read()

        with self.get_connection() as conn:
            conn.executescript(schema)
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute("PRAGMA busy_timeout=30000")

        logger.info(f"Cache database initialized: {self.db_path}")

    @contextmanager
    def get_connection(self):
        """Context manager for database connections"""
        conn = sqlite3.connect(self.db_path, timeout=30.0)
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            conn.close()

    async def _run(self, func, *args):
        try:
            return await asyncio.to_thread(func, *args)
        except (sqlite3.Error, OSError) as e:
            raise CacheUnavailableError(f"Cache store failed: {e}") from e

    # ========== Entries ==========

    def _get(self, namespace: str, key: str) -> Optional[CacheEntry]:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT cache_key, payload, cached_at FROM cache_entries WHERE namespace = ? AND cache_key = ?",
                (namespace, key)
            ).fetchone()
        return self._row_to_entry(row) if row else None

    def _set(self, namespace: str, key: str, payload: Dict[str, Any], cached_at: float):
        with self.get_connection() as conn:
            conn.execute("""
                INSERT INTO cache_entries (namespace, cache_key, payload, cached_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(namespace, cache_key)
                DO UPDATE SET payload = excluded.payload, cached_at = excluded.cached_at
            """, (namespace, key, json.dumps(payload), cached_at))

    def _delete(self, namespace: str, key: str):
        with self.get_connection() as conn:
            conn.execute(
                "DELETE FROM cache_entries WHERE namespace = ? AND cache_key = ?",
                (namespace, key)
            )

    def _items(self, namespace: str) -> List[CacheEntry]:
        with self.get_connection() as conn:
            rows = conn.execute(
                "SELECT cache_key, payload, cached_at FROM cache_entries WHERE namespace = ? ORDER BY cached_at",
                (namespace,)
            ).fetchall()
        return [self._row_to_entry(row) for row in rows]

    def _count(self, namespace: str) -> int:
        with self.get_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS n FROM cache_entries WHERE namespace = ?", (namespace,)
            ).fetchone()
        return row['n']

    def _delete_oldest(self, namespace: str, limit: int) -> int:
        if limit <= 0:
            return 0
        with self.get_connection() as conn:
            cursor = conn.execute("""
                DELETE FROM cache_entries
                WHERE namespace = ? AND cache_key IN (
                    SELECT cache_key FROM cache_entries
                    WHERE namespace = ?
                    ORDER BY cached_at
                    LIMIT ?
                )
            """, (namespace, namespace, limit))
            return cursor.rowcount

    def _clear(self, namespace: Optional[str]):
        with self.get_connection() as conn:
            if namespace is None:
                conn.execute("DELETE FROM cache_entries")
            else:
                conn.execute("DELETE FROM cache_entries WHERE namespace = ?", (namespace,))

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> CacheEntry:
        return CacheEntry(key=row['cache_key'], payload=json.loads(row['payload']), cached_at=row['cached_at'])

    # ========== Metadata ==========

    def _get_meta(self, key: str) -> Optional[str]:
        with self.get_connection() as conn:
            row = conn.execute("SELECT value FROM metadata WHERE key = ?", (key,)).fetchone()
        return row['value'] if row else None

    def _set_meta(self, key: str, value: str):
        with self.get_connection() as conn:
            conn.execute(
                "INSERT INTO metadata (key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value)
            )

    async def get(self, namespace: str, key: str) -> Optional[CacheEntry]:
        return await self._run(self._get, namespace, key)

    async def set(self, namespace: str, key: str, payload: Dict[str, Any], cached_at: float):
        await self._run(self._set, namespace, key, payload, cached_at)

    async def delete(self, namespace: str, key: str):
        await self._run(self._delete, namespace, key)

    async def items(self, namespace: str) -> List[CacheEntry]:
        return await self._run(self._items, namespace)

    async def count(self, namespace: str) -> int:
        return await self._run(self._count, namespace)

    async def delete_oldest(self, namespace: str, limit: int) -> int:
        return await self._run(self._delete_oldest, namespace, limit)

    async def clear(self, namespace: Optional[str] = None):
        await self._run(self._clear, namespace)

    async def get_meta(self, key: str) -> Optional[str]:
        return await self._run(self._get_meta, key)

    async def set_meta(self, key: str, value: str):
        await self._run(self._set_meta, key, value)


def open_cache_store(db_path) -> CacheStore:
    """SQLite store at db_path, or an in-memory store when the file cannot be used"""
    try:
        return SQLiteCacheStore(db_path)
    except CacheUnavailableError as e:
        logger.warning(f"{e}; falling back to in-memory cache")
        return MemoryCacheStore()
