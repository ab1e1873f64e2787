# salary/cache.py
import asyncio
import logging
import sqlite3
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Optional

from database.cache_store import CacheStore, CacheUnavailableError
from salary.config import SalaryConfig
from salary.models import LABEL_RATE_LIMITED, MatchType, SalaryResult

logger = logging.getLogger(__name__)

SALARY_NAMESPACE = "salary"
MATCH_NAMESPACE = "match"
VERSION_META_KEY = "salary_db_version"

STORE_ERRORS = (CacheUnavailableError, sqlite3.Error, OSError)


class TieredCache:
    """
    TTL cache for lookup results over a CacheStore

    Lifetime depends on what produced the result: database matches live
    longest, AI estimates less, misses only briefly. Store failures are
    logged and reported as misses so lookups keep working uncached.
    """

    def __init__(
        self,
        store: CacheStore,
        config: Optional[SalaryConfig] = None,
        clock: Callable[[], float] = time.time
    ):
        self.store = store
        self.config = config or SalaryConfig()
        self.clock = clock
        self.max_entries = {
            SALARY_NAMESPACE: self.config.max_salary_entries,
            MATCH_NAMESPACE: self.config.max_match_entries,
        }
        self._lock = asyncio.Lock()
        self._last_sweep = 0.0

    def ttl_for(self, result: SalaryResult) -> int:
        if result.match_type.is_db_match:
            return self.config.db_match_ttl
        if result.match_type == MatchType.AI_ESTIMATE:
            return self.config.ai_estimate_ttl
        return self.config.not_found_ttl

    def _ttl_for_payload(self, namespace: str, payload: Dict[str, Any]) -> int:
        if namespace == MATCH_NAMESPACE:
            return self.config.match_cache_ttl
        return self.ttl_for(SalaryResult.from_dict(payload))

    def _is_expired(self, cached_at: float, ttl: int, now: float) -> bool:
        return now - cached_at > ttl

    # ========== Salary results ==========

    async def get_salary(self, key: str) -> Optional[SalaryResult]:
        """Cached result for a fingerprint, or None when absent/expired/unreadable"""
        try:
            entry = await self.store.get(SALARY_NAMESPACE, key)
            if entry is None:
                return None
            result = SalaryResult.from_dict(entry.payload)
            if self._is_expired(entry.cached_at, self.ttl_for(result), self.clock()):
                await self.store.delete(SALARY_NAMESPACE, key)
                return None
        except STORE_ERRORS as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None
        except (KeyError, ValueError, TypeError) as e:
            logger.warning(f"Discarding unreadable cache entry {key}: {e}")
            return None

        result.cached_at = entry.cached_at
        return result

    async def set_salary(self, key: str, result: SalaryResult) -> bool:
        """Store a result; rate-limited outcomes are never cached"""
        if result.label == LABEL_RATE_LIMITED:
            return False

        now = self.clock()
        stored = replace(result, cached_at=now)
        try:
            await self.store.set(SALARY_NAMESPACE, key, stored.to_dict(), now)
        except STORE_ERRORS as e:
            logger.warning(f"Cache write failed for {key}: {e}")
            return False

        await self.evict(SALARY_NAMESPACE)
        return True

    # ========== Resume match results ==========

    async def get_match(self, key: str) -> Optional[Dict[str, Any]]:
        try:
            entry = await self.store.get(MATCH_NAMESPACE, key)
            if entry is None:
                return None
            if self._is_expired(entry.cached_at, self.config.match_cache_ttl, self.clock()):
                await self.store.delete(MATCH_NAMESPACE, key)
                return None
        except STORE_ERRORS as e:
            logger.warning(f"Match cache read failed for {key}: {e}")
            return None
        return entry.payload

    async def set_match(self, key: str, payload: Dict[str, Any]) -> bool:
        now = self.clock()
        try:
            await self.store.set(MATCH_NAMESPACE, key, payload, now)
        except STORE_ERRORS as e:
            logger.warning(f"Match cache write failed for {key}: {e}")
            return False

        await self.evict(MATCH_NAMESPACE)
        return True

    # ========== Maintenance ==========

    async def evict(self, namespace: str) -> int:
        """Drop oldest entries beyond max_entries; returns the number removed"""
        limit = self.max_entries.get(namespace)
        if not limit:
            return 0

        async with self._lock:
            try:
                overflow = await self.store.count(namespace) - limit
                if overflow <= 0:
                    return 0
                removed = await self.store.delete_oldest(namespace, overflow)
            except STORE_ERRORS as e:
                logger.warning(f"Cache eviction failed for {namespace}: {e}")
                return 0

        logger.debug(f"Evicted {removed} {namespace} cache entries")
        return removed

    async def sweep(self, force: bool = False) -> int:
        """Remove expired entries, at most once per sweep_interval unless forced"""
        now = self.clock()
        if not force and now - self._last_sweep < self.config.sweep_interval:
            return 0
        self._last_sweep = now

        removed = 0
        async with self._lock:
            for namespace in (SALARY_NAMESPACE, MATCH_NAMESPACE):
                try:
                    for entry in await self.store.items(namespace):
                        try:
                            ttl = self._ttl_for_payload(namespace, entry.payload)
                        except (KeyError, ValueError, TypeError):
                            ttl = 0
                        if self._is_expired(entry.cached_at, ttl, now):
                            await self.store.delete(namespace, entry.key)
                            removed += 1
                except STORE_ERRORS as e:
                    logger.warning(f"Cache sweep failed for {namespace}: {e}")

        if removed:
            logger.info(f"Swept {removed} expired cache entries")
        return removed

    async def ensure_version(self, version: int) -> bool:
        """
        Clear cached salary results when the database version changed

        Returns True when the cache was invalidated.
        """
        try:
            stored = await self.store.get_meta(VERSION_META_KEY)
            if stored == str(version):
                return False
            await self.store.clear(SALARY_NAMESPACE)
            await self.store.set_meta(VERSION_META_KEY, str(version))
        except STORE_ERRORS as e:
            logger.warning(f"Cache version check failed: {e}")
            return False

        logger.info(f"Salary database version changed ({stored} -> {version}), cache cleared")
        return True
