# salary/models.py
from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, Dict, Any, List, Set
import hashlib


class MatchType(str, Enum):
    """Which strategy produced a salary result"""
    EXACT = "exact"
    COMPANY_AVERAGE = "company_average"
    MARKET_AVERAGE = "market_average"
    NATIONAL_AVERAGE = "national_average"
    FUZZY_AVERAGE = "fuzzy_average"
    AI_ESTIMATE = "ai_estimate"
    NONE = "none"

    @property
    def is_db_match(self) -> bool:
        return self not in (MatchType.AI_ESTIMATE, MatchType.NONE)


# Labels shown when no figures are available
LABEL_UNAVAILABLE = "Data Unavailable"
LABEL_ESTIMATE_FAILED = "Estimate Failed"
LABEL_RATE_LIMITED = "Rate limited, try again shortly"


@dataclass(frozen=True)
class SalaryDatabaseEntry:
    """One observed compensation record"""
    title: str
    title_normalized: str
    company: str  # empty = market entry
    city: str
    state: str
    country: str
    experience_level: str
    salary_min: int
    salary_max: int
    salary_median: int
    currency: str
    source: str

    def validate(self, known_currencies: Set[str]) -> List[str]:
        """Return invariant violations (empty list = valid)"""
        errors = []
        if self.salary_min <= 0 or self.salary_max <= 0 or self.salary_median <= 0:
            errors.append("salary values must be > 0")
        if self.salary_min > self.salary_median:
            errors.append("salaryMin > salaryMedian")
        if self.salary_median > self.salary_max:
            errors.append("salaryMedian > salaryMax")
        if self.currency not in known_currencies:
            errors.append(f"invalid currency \"{self.currency}\"")
        return errors

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'titleNormalized': self.title_normalized,
            'company': self.company,
            'city': self.city,
            'state': self.state,
            'country': self.country,
            'experienceLevel': self.experience_level,
            'salaryMin': self.salary_min,
            'salaryMax': self.salary_max,
            'salaryMedian': self.salary_median,
            'currency': self.currency,
            'source': self.source,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SalaryDatabaseEntry':
        return cls(
            title=data.get('title', ''),
            title_normalized=data.get('titleNormalized', ''),
            company=data.get('company') or '',
            city=(data.get('city') or '').lower(),
            state=(data.get('state') or '').lower(),
            country=data.get('country') or '',
            experience_level=data.get('experienceLevel') or 'mid',
            salary_min=int(data.get('salaryMin') or 0),
            salary_max=int(data.get('salaryMax') or 0),
            salary_median=int(data.get('salaryMedian') or 0),
            currency=data.get('currency') or '',
            source=data.get('source') or 'public',
        )


@dataclass
class LocationInfo:
    """Structured location resolved from a free-text string"""
    city: str = ""
    state: str = ""
    country: str = ""
    currency: str = ""
    symbol: str = ""
    format: str = ""

    def to_dict(self) -> Dict[str, str]:
        return asdict(self)


@dataclass
class SalaryResult:
    """Outcome of a salary lookup for one job"""
    found: bool
    match_type: MatchType = MatchType.NONE
    label: str = LABEL_UNAVAILABLE
    salary_min: Optional[int] = None
    salary_max: Optional[int] = None
    salary_median: Optional[int] = None
    currency: str = ""
    is_ai_estimate: bool = False
    confidence: Optional[str] = None
    sample_size: Optional[int] = None
    source: Optional[str] = None
    location: Optional[LocationInfo] = None
    cached_at: Optional[float] = None

    @classmethod
    def not_found(cls, label: str = LABEL_UNAVAILABLE, currency: str = "",
                  location: Optional[LocationInfo] = None) -> 'SalaryResult':
        return cls(found=False, label=label, currency=currency, location=location)

    def to_dict(self) -> Dict[str, Any]:
        """Wire/cache representation (camelCase keys, absent fields omitted)"""
        data: Dict[str, Any] = {
            'found': self.found,
            'matchType': self.match_type.value,
            'isAiEstimate': self.is_ai_estimate,
            'label': self.label,
            'currency': self.currency,
        }
        optional = {
            'salaryMin': self.salary_min,
            'salaryMax': self.salary_max,
            'salaryMedian': self.salary_median,
            'confidence': self.confidence,
            'sampleSize': self.sample_size,
            'source': self.source,
            'cachedAt': self.cached_at,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        if self.location is not None:
            data['location'] = self.location.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SalaryResult':
        location = data.get('location')
        return cls(
            found=bool(data.get('found')),
            match_type=MatchType(data.get('matchType', 'none')),
            label=data.get('label', LABEL_UNAVAILABLE),
            salary_min=data.get('salaryMin'),
            salary_max=data.get('salaryMax'),
            salary_median=data.get('salaryMedian'),
            currency=data.get('currency', ''),
            is_ai_estimate=bool(data.get('isAiEstimate')),
            confidence=data.get('confidence'),
            sample_size=data.get('sampleSize'),
            source=data.get('source'),
            location=LocationInfo(**location) if location else None,
            cached_at=data.get('cachedAt'),
        )


@dataclass
class JobQuery:
    """A scraped job card to look up"""
    title: str
    company: str = ""
    location: str = ""

    def fingerprint(self, namespace: str = "") -> str:
        """Stable, case-insensitive key for caching and in-flight dedup"""
        normalized = f"{self.title.lower().strip()}|{self.company.lower().strip()}|{self.location.lower().strip()}"
        if namespace:
            normalized = f"{namespace}:{normalized}"
        return hashlib.sha256(normalized.encode()).hexdigest()[:16]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'JobQuery':
        return cls(
            title=str(data.get('title') or ''),
            company=str(data.get('company') or ''),
            location=str(data.get('location') or ''),
        )

    def __repr__(self):
        return f"<JobQuery: {self.title} @ {self.company} [{self.location}]>"
