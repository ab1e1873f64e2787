# salary/matcher.py
"""
Tiered salary matcher

Tiers, most specific first:
  1. exact     - title + company + city
  2. company   - title + company (same country)
  3. city      - title + city (any company)
  4. country   - title + country
  5. fuzzy     - 60% word overlap on title within the same country
  5b. role     - core role keyword (manager, engineer, ...) + company / city / country
  6. none      - caller decides whether to ask the generative fallback
"""
import logging
from collections import Counter
from dataclasses import dataclass
from typing import List, Optional, Sequence

from salary.company_cleaner import clean_company_name, company_matches
from salary.database import SalaryDatabase
from salary.formatting import format_label, round_half_up
from salary.location_resolver import LocationResolver
from salary.models import (
    JobQuery, LocationInfo, MatchType, SalaryDatabaseEntry, SalaryResult,
)
from salary.reference_data import LocationTables
from salary.title_normalizer import TitleNormalizer

logger = logging.getLogger(__name__)


def word_overlap(query: str, candidate: str) -> float:
    """Share of query words (len > 2) that also appear in the candidate"""
    query_words = [w for w in query.split(' ') if len(w) > 2]
    candidate_words = {w for w in candidate.split(' ') if len(w) > 2}
    if not query_words:
        return 0.0
    matched = sum(1 for w in query_words if w in candidate_words)
    return matched / len(query_words)


@dataclass
class SalaryAverage:
    """Averaged figures over one match set"""
    salary_min: int
    salary_max: int
    salary_median: int
    currency: str
    source: str
    sample_size: int


def average_entries(entries: Sequence[SalaryDatabaseEntry],
                    preferred_currency: str = '') -> SalaryAverage:
    """
    Average a match set

    Rows are grouped by currency so incompatible values never get mixed:
    the group in the caller's currency wins, then the largest group, then
    the group of the first row.
    """
    counts = Counter(e.currency for e in entries)
    if len(counts) > 1:
        logger.warning(f"Mixed currencies in match set: {dict(counts)}")

    if preferred_currency and preferred_currency in counts:
        currency = preferred_currency
    else:
        first = entries[0].currency
        top = max(counts.values())
        currency = first if counts[first] == top else counts.most_common(1)[0][0]

    group = [e for e in entries if e.currency == currency]
    n = len(group)
    return SalaryAverage(
        salary_min=round_half_up(sum(e.salary_min for e in group) / n),
        salary_max=round_half_up(sum(e.salary_max for e in group) / n),
        salary_median=round_half_up(sum(e.salary_median for e in group) / n),
        currency=currency,
        source=group[0].source,
        sample_size=n,
    )


class SalaryMatcher:
    """Look up salaries from the database with cascading strategies"""

    def __init__(
        self,
        db: SalaryDatabase,
        title_normalizer: Optional[TitleNormalizer] = None,
        location_resolver: Optional[LocationResolver] = None,
        fuzzy_threshold: float = 0.6
    ):
        self.db = db
        self.title_normalizer = title_normalizer or TitleNormalizer()
        self.location_resolver = location_resolver or LocationResolver()
        self.fuzzy_threshold = fuzzy_threshold

    @property
    def tables(self) -> LocationTables:
        return self.location_resolver.tables

    def match(self, title: str, company: str, location: str) -> SalaryResult:
        """Look up salary for a single job"""
        company = company or ''
        norm_title = self.title_normalizer.normalize(title or '')
        loc = self.location_resolver.resolve(location or '')
        has_company = company.strip() != ''

        logger.debug(
            f"[match] title='{title}' -> '{norm_title}' | company='{company}' -> "
            f"'{clean_company_name(company)}' | city='{loc.city}' country='{loc.country}'"
        )

        def same_country(e: SalaryDatabaseEntry) -> bool:
            return e.country == loc.country or not loc.country

        def same_city(e: SalaryDatabaseEntry) -> bool:
            return loc.city != '' and e.city == loc.city

        def same_company(e: SalaryDatabaseEntry) -> bool:
            return has_company and company_matches(e.company, company)

        def title_equal(e: SalaryDatabaseEntry) -> bool:
            return e.title_normalized == norm_title

        tiers: List[tuple] = [
            (MatchType.EXACT,
             lambda e: title_equal(e) and same_company(e) and e.city == loc.city),
            (MatchType.COMPANY_AVERAGE,
             lambda e: title_equal(e) and same_company(e) and same_country(e)),
            (MatchType.MARKET_AVERAGE,
             lambda e: title_equal(e) and same_city(e)),
            (MatchType.NATIONAL_AVERAGE,
             lambda e: title_equal(e) and loc.country != '' and e.country == loc.country),
            (MatchType.FUZZY_AVERAGE,
             lambda e: word_overlap(norm_title, e.title_normalized) >= self.fuzzy_threshold
             and same_country(e)),
        ]

        core_role = self.title_normalizer.extract_core_role(norm_title)
        if core_role:
            def has_role(e: SalaryDatabaseEntry) -> bool:
                return core_role in e.title_normalized.split(' ')

            tiers.extend([
                (MatchType.FUZZY_AVERAGE,
                 lambda e: has_role(e) and same_company(e) and same_country(e)),
                (MatchType.FUZZY_AVERAGE,
                 lambda e: has_role(e) and same_city(e)),
                (MatchType.FUZZY_AVERAGE,
                 lambda e: has_role(e) and same_country(e)),
            ])

        for match_type, predicate in tiers:
            matched = [e for e in self.db.entries if predicate(e)]
            if matched:
                logger.debug(f"[match] {match_type.value}: {len(matched)} entries")
                return self._found(matched, match_type, loc)

        # No match; caller may try the generative fallback
        return SalaryResult.not_found(currency=loc.currency, location=loc)

    def match_job(self, job: JobQuery) -> SalaryResult:
        return self.match(job.title, job.company, job.location)

    def match_many(self, jobs: Sequence[JobQuery]) -> List[SalaryResult]:
        """Batch lookup, one result per job in input order"""
        return [self.match_job(job) for job in jobs]

    def _found(self, entries: List[SalaryDatabaseEntry], match_type: MatchType,
               loc: LocationInfo) -> SalaryResult:
        avg = average_entries(entries, preferred_currency=loc.currency)
        return SalaryResult(
            found=True,
            match_type=match_type,
            salary_min=avg.salary_min,
            salary_max=avg.salary_max,
            salary_median=avg.salary_median,
            currency=avg.currency,
            source=avg.source,
            sample_size=avg.sample_size,
            is_ai_estimate=False,
            label=format_label(avg.salary_min, avg.salary_max, avg.currency, self.tables),
        )
