# salary/lookup_service.py
"""
Salary lookup orchestration

Per job: cache -> database cascade -> generative estimate. Estimates are
deduplicated by job fingerprint, so a batch containing the same job twice
(or two overlapping batches) costs one model call.
"""
import asyncio
import logging
from typing import Dict, List, Optional, Sequence

from ai.config import AIConfig, get_config as get_ai_config
from ai.errors import GenerationError, RateLimitedError
from ai.generative_client import GenerativeClient
from ai.salary_estimator import SalaryEstimator
from database.cache_store import CacheStore, open_cache_store
from salary.cache import TieredCache
from salary.config import SalaryConfig, get_config
from salary.database import SalaryDatabase
from salary.location_resolver import LocationResolver
from salary.matcher import SalaryMatcher
from salary.models import (
    LABEL_ESTIMATE_FAILED, LABEL_RATE_LIMITED,
    JobQuery, LocationInfo, SalaryResult,
)
from salary.reference_data import load_location_tables, load_title_aliases
from salary.title_normalizer import TitleNormalizer

logger = logging.getLogger(__name__)

# Fingerprint namespace for forced estimates; keeps them apart from DB results
FORCED_AI_NAMESPACE = "ai"


class SalaryLookupService:
    """Batch salary lookups with caching and a generative fallback"""

    def __init__(
        self,
        matcher: SalaryMatcher,
        cache: TieredCache,
        estimator: Optional[SalaryEstimator] = None,
        config: Optional[SalaryConfig] = None
    ):
        self.matcher = matcher
        self.cache = cache
        self.estimator = estimator
        self.config = config or SalaryConfig()
        self._in_flight: Dict[str, asyncio.Task] = {}
        self._started = False

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def start(self):
        """
        Prepare the cache for the loaded database

        Must be called before the first lookup. Clears cached salary results
        when the database version changed since the last run.
        """
        if self._started:
            return
        await self.cache.ensure_version(self.matcher.db.version)
        await self.cache.sweep(force=True)
        self._started = True
        logger.info(
            f"Salary lookup service ready: {len(self.matcher.db)} entries, "
            f"AI fallback {'on' if self.estimator and self.config.use_ai_fallback else 'off'}"
        )

    def _require_started(self):
        if not self._started:
            raise RuntimeError("SalaryLookupService.start() must be awaited before lookups")

    async def lookup_batch(self, jobs: Sequence[JobQuery], force_ai: bool = False) -> List[SalaryResult]:
        """
        Look up salaries for many jobs

        Returns one result per job in input order. Jobs still running when
        batch_timeout expires come back as "Data Unavailable"; their
        estimates keep running and land in the cache for the next request.
        """
        self._require_started()
        if not jobs:
            return []

        await self.cache.sweep()

        tasks = [asyncio.ensure_future(self._lookup_one(job, force_ai)) for job in jobs]
        done, pending = await asyncio.wait(tasks, timeout=self.config.batch_timeout)

        if pending:
            logger.warning(
                f"Batch deadline ({self.config.batch_timeout}s) hit with "
                f"{len(pending)}/{len(tasks)} jobs unresolved"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)

        results = []
        for job, task in zip(jobs, tasks):
            if task in done and task.exception() is None:
                results.append(task.result())
                continue
            if task in done:
                logger.error(f"Lookup failed for {job}: {task.exception()}")
            results.append(SalaryResult.not_found())

        found = sum(1 for r in results if r.found)
        logger.info(f"Salary batch: {found}/{len(results)} found")
        return results

    async def lookup_single(self, job: JobQuery, force_ai: bool = True) -> SalaryResult:
        """Single lookup, by default skipping the database cascade"""
        self._require_started()
        try:
            return await asyncio.wait_for(self._lookup_one(job, force_ai), self.config.batch_timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Lookup timed out for {job}")
            return SalaryResult.not_found()
        except Exception as e:
            logger.error(f"Lookup failed for {job}: {e}")
            return SalaryResult.not_found()

    async def _lookup_one(self, job: JobQuery, force_ai: bool) -> SalaryResult:
        key = job.fingerprint(FORCED_AI_NAMESPACE if force_ai else "")

        cached = await self.cache.get_salary(key)
        if cached is not None:
            logger.debug(f"Cache hit {key}: {cached.label}")
            return cached

        location: Optional[LocationInfo] = None
        if not force_ai:
            result = self.matcher.match_job(job)
            if result.found or not self._fallback_enabled():
                await self.cache.set_salary(key, result)
                return result
            location = result.location

        if self.estimator is None:
            return SalaryResult.not_found(location=location)

        return await self._deduplicated_estimate(key, job, location)

    def _fallback_enabled(self) -> bool:
        return self.estimator is not None and self.config.use_ai_fallback

    async def _deduplicated_estimate(
        self,
        key: str,
        job: JobQuery,
        location: Optional[LocationInfo]
    ) -> SalaryResult:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._estimate_and_cache(key, job, location))
            self._in_flight[key] = task
        else:
            logger.debug(f"Joining in-flight estimate {key}")
        # Shielded so a caller's deadline does not cancel the shared estimate
        return await asyncio.shield(task)

    async def _estimate_and_cache(
        self,
        key: str,
        job: JobQuery,
        location: Optional[LocationInfo]
    ) -> SalaryResult:
        currency = location.currency if location else ""
        try:
            try:
                result = await self.estimator.estimate(job.title, job.company, job.location)
            except RateLimitedError as e:
                logger.warning(f"Estimate rate limited for {job}: {e}")
                result = SalaryResult.not_found(LABEL_RATE_LIMITED, currency=currency, location=location)
            except GenerationError as e:
                logger.error(f"Estimate failed for {job}: {e}")
                result = SalaryResult.not_found(LABEL_ESTIMATE_FAILED, currency=currency, location=location)

            await self.cache.set_salary(key, result)
            return result
        finally:
            self._in_flight.pop(key, None)


def build_lookup_service(
    config: Optional[SalaryConfig] = None,
    ai_config: Optional[AIConfig] = None,
    store: Optional[CacheStore] = None,
    transport=None
) -> SalaryLookupService:
    """
    Wire the service from configuration

    The caller still has to await start().
    """
    config = config or get_config()
    ai_config = ai_config or get_ai_config()

    tables = load_location_tables(config.location_data_path)
    normalizer = TitleNormalizer(
        aliases=load_title_aliases(config.title_aliases_path),
        min_alias_length=config.min_alias_length,
        role_keywords=config.role_keywords
    )
    db = SalaryDatabase.load(config.salary_db_path, known_currencies=tables.known_currencies)
    matcher = SalaryMatcher(
        db,
        title_normalizer=normalizer,
        location_resolver=LocationResolver(tables),
        fuzzy_threshold=config.fuzzy_threshold
    )

    cache = TieredCache(store or open_cache_store(config.cache_db_path), config)

    estimator = None
    if config.use_ai_fallback:
        client = GenerativeClient.from_config(ai_config, transport=transport)
        estimator = SalaryEstimator(client, ai_config, tables)

    return SalaryLookupService(matcher, cache, estimator, config)
