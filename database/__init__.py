# database/__init__.py
from database.cache_store import (
    CacheEntry,
    CacheStore,
    CacheUnavailableError,
    MemoryCacheStore,
    SQLiteCacheStore,
    open_cache_store,
)

__all__ = [
    'CacheEntry',
    'CacheStore',
    'CacheUnavailableError',
    'MemoryCacheStore',
    'SQLiteCacheStore',
    'open_cache_store',
]
