# salary/db_builder.py
"""
Build the salary database from CSV sources

Every *-salaries.csv in the source directory is read, titles and cities
are normalized with the same code the matcher uses at query time, and
the result is written with an incremented version so caches built on
the previous data get invalidated.
"""
import csv
import json
import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Set, Tuple

from rapidfuzz import fuzz

from salary.database import SalaryDatabase
from salary.location_resolver import LocationResolver
from salary.models import SalaryDatabaseEntry
from salary.title_normalizer import TitleNormalizer

logger = logging.getLogger(__name__)

SOURCE_PATTERN = "*-salaries.csv"

# Column defaults for sparse source rows
DEFAULT_COUNTRY = "IN"
DEFAULT_EXPERIENCE = "mid"
DEFAULT_CURRENCY = "INR"
DEFAULT_SOURCE = "public"


@dataclass
class NearDuplicate:
    """Two normalized titles that probably mean the same role"""
    title_a: str
    title_b: str
    similarity: float


@dataclass
class BuildReport:
    """What happened during a build"""
    source_files: Dict[str, int] = field(default_factory=dict)
    total_rows: int = 0
    validation_errors: List[str] = field(default_factory=list)
    duplicate_keys: int = 0
    near_duplicates: List[NearDuplicate] = field(default_factory=list)
    by_country: Dict[str, int] = field(default_factory=dict)
    by_source: Dict[str, int] = field(default_factory=dict)
    unique_titles: int = 0
    unique_companies: int = 0
    valid_entries: int = 0
    fallback_entries: int = 0
    version: int = 0


def _to_int(value: Optional[str]) -> int:
    try:
        return int(float((value or '').replace(',', '').strip()))
    except ValueError:
        return 0


class SalaryDatabaseBuilder:
    """Turn raw salary CSVs into a validated, versioned database"""

    def __init__(
        self,
        title_normalizer: Optional[TitleNormalizer] = None,
        location_resolver: Optional[LocationResolver] = None,
        near_duplicate_threshold: int = 90
    ):
        """
        Args:
            title_normalizer: Normalizer shared with the query-time matcher
            location_resolver: Resolver used to canonicalize city names
            near_duplicate_threshold: rapidfuzz ratio (0-100) for the near-duplicate report
        """
        self.title_normalizer = title_normalizer or TitleNormalizer()
        self.location_resolver = location_resolver or LocationResolver()
        self.near_duplicate_threshold = near_duplicate_threshold

    @property
    def known_currencies(self) -> Set[str]:
        return self.location_resolver.tables.known_currencies

    def find_source_files(self, source_dir: Path) -> List[Path]:
        return sorted(Path(source_dir).glob(SOURCE_PATTERN))

    def read_csv(self, path: Path) -> List[Dict[str, str]]:
        with open(path, 'r', encoding='utf-8', newline='') as f:
            reader = csv.DictReader(f)
            return [
                {(k or '').strip(): (v or '').strip() for k, v in row.items()}
                for row in reader
                if any((v or '').strip() for v in row.values())
            ]

    def build_entry(self, row: Dict[str, str]) -> SalaryDatabaseEntry:
        title = row.get('title', '')
        city = row.get('city', '')
        return SalaryDatabaseEntry(
            title=title,
            title_normalized=self.title_normalizer.normalize(title),
            company=row.get('company', ''),
            city=self.location_resolver.canonical_city(city) if city else '',
            state=row.get('state', '').lower(),
            country=row.get('country') or DEFAULT_COUNTRY,
            experience_level=row.get('experienceLevel') or DEFAULT_EXPERIENCE,
            salary_min=_to_int(row.get('salaryMin')),
            salary_max=_to_int(row.get('salaryMax')),
            salary_median=_to_int(row.get('salaryMedian')),
            currency=row.get('currency') or DEFAULT_CURRENCY,
            source=row.get('source') or DEFAULT_SOURCE,
        )

    def load_sources(self, source_dir: Path, report: BuildReport) -> List[SalaryDatabaseEntry]:
        files = self.find_source_files(source_dir)
        if not files:
            raise FileNotFoundError(f"No {SOURCE_PATTERN} files found in {source_dir}")

        entries = []
        for path in files:
            rows = self.read_csv(path)
            report.source_files[path.name] = len(rows)
            logger.info(f"{path.name}: {len(rows)} entries")
            entries.extend(self.build_entry(row) for row in rows)

        report.total_rows = len(entries)
        return entries

    def validate(self, entries: List[SalaryDatabaseEntry]) -> List[str]:
        """One message per violation, with the 1-based row number"""
        messages = []
        for i, entry in enumerate(entries):
            for error in entry.validate(self.known_currencies):
                messages.append(f"row {i + 1}: {error} ({entry.title}, {entry.company})")
        return messages

    @staticmethod
    def count_duplicate_keys(entries: List[SalaryDatabaseEntry]) -> int:
        seen = set()
        duplicates = 0
        for entry in entries:
            key = (entry.title_normalized, entry.company.lower(), entry.city, entry.experience_level)
            if key in seen:
                duplicates += 1
            seen.add(key)
        return duplicates

    def find_near_duplicates(self, entries: List[SalaryDatabaseEntry]) -> List[NearDuplicate]:
        """
        Normalized titles that differ but look alike

        Usually a missing alias; the report lists them so title_aliases.yaml
        can be extended.
        """
        titles = sorted({e.title_normalized for e in entries if e.title_normalized})
        found = []
        for i, title_a in enumerate(titles):
            for title_b in titles[i + 1:]:
                score = fuzz.ratio(title_a, title_b)
                if score >= self.near_duplicate_threshold:
                    found.append(NearDuplicate(title_a, title_b, score))
        return found

    @staticmethod
    def build_fallback(entries: List[SalaryDatabaseEntry]) -> List[SalaryDatabaseEntry]:
        """One entry per title + country, preferring market entries (no company)"""
        chosen: Dict[Tuple[str, str], SalaryDatabaseEntry] = {}
        for entry in entries:
            key = (entry.title_normalized, entry.country)
            existing = chosen.get(key)
            if existing is None or (not entry.company and existing.company):
                chosen[key] = entry
        return list(chosen.values())

    @staticmethod
    def read_version(path: Path) -> int:
        path = Path(path)
        if not path.exists():
            return 0
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return int(data.get('version', 0)) if isinstance(data, dict) else 0

    def build(
        self,
        source_dir: Path,
        output_path: Path,
        fallback_path: Optional[Path] = None
    ) -> BuildReport:
        """
        Build and write the database

        Invalid rows are reported and left out of the output.
        """
        report = BuildReport()
        entries = self.load_sources(source_dir, report)

        report.validation_errors = self.validate(entries)
        for message in report.validation_errors:
            logger.warning(message)

        report.duplicate_keys = self.count_duplicate_keys(entries)
        report.near_duplicates = self.find_near_duplicates(entries)
        report.by_country = dict(Counter(e.country for e in entries).most_common())
        report.by_source = dict(Counter(e.source for e in entries).most_common())
        report.unique_titles = len({e.title_normalized for e in entries})
        report.unique_companies = len({e.company for e in entries if e.company})

        report.version = self.read_version(output_path) + 1
        db = SalaryDatabase(entries, version=report.version, known_currencies=self.known_currencies)
        db.save(output_path)
        report.valid_entries = len(db)
        logger.info(f"Main DB: {len(db)} entries (version {db.version}) -> {output_path}")

        if fallback_path is not None:
            fallback = SalaryDatabase(
                self.build_fallback(db.entries),
                version=report.version,
                known_currencies=self.known_currencies
            )
            fallback.save(fallback_path)
            report.fallback_entries = len(fallback)
            logger.info(f"Fallback DB: {len(fallback)} entries -> {fallback_path}")

        return report
