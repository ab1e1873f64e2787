# salary/reference_data.py
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Set
import yaml

from salary.config import DATA_DIR

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CountryInfo:
    """Currency and display conventions for one country"""
    code: str
    currency: str
    symbol: str
    format: str  # 'lakh' or 'k'


@dataclass
class LocationTables:
    """Static lookup tables for location resolution"""
    countries: Dict[str, CountryInfo] = field(default_factory=dict)
    country_names: Dict[str, str] = field(default_factory=dict)
    us_state_abbreviations: Dict[str, str] = field(default_factory=dict)
    states: Dict[str, str] = field(default_factory=dict)
    cities: Dict[str, str] = field(default_factory=dict)
    city_aliases: Dict[str, str] = field(default_factory=dict)

    @property
    def known_currencies(self) -> Set[str]:
        return {info.currency for info in self.countries.values()}

    def currency_info(self, currency: str) -> Optional[CountryInfo]:
        """First country using this currency (EUR maps to the first euro country)"""
        for info in self.countries.values():
            if info.currency == currency:
                return info
        return None


@lru_cache(maxsize=8)
def load_location_tables(path: Path = DATA_DIR / "location_currency.yaml") -> LocationTables:
    """Load country/city/state tables from YAML"""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    countries = {
        code: CountryInfo(
            code=code,
            currency=info['currency'],
            symbol=info['symbol'],
            format=info.get('format', 'k'),
        )
        for code, info in (data.get('countries') or {}).items()
    }

    def _lower_keys(table: Optional[Dict]) -> Dict[str, str]:
        return {str(k).lower(): str(v) for k, v in (table or {}).items()}

    tables = LocationTables(
        countries=countries,
        country_names=_lower_keys(data.get('country_names')),
        us_state_abbreviations=_lower_keys(data.get('us_state_abbreviations')),
        states=_lower_keys(data.get('states')),
        cities=_lower_keys(data.get('cities')),
        city_aliases=_lower_keys(data.get('city_aliases')),
    )
    logger.debug(
        f"Loaded location tables: {len(tables.countries)} countries, "
        f"{len(tables.cities)} cities, {len(tables.states)} states"
    )
    return tables


@lru_cache(maxsize=8)
def load_title_aliases(path: Path = DATA_DIR / "title_aliases.yaml") -> Dict[str, List[str]]:
    """Load canonical title -> aliases table from YAML"""
    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    return {
        str(canonical).lower().strip(): [str(alias) for alias in (aliases or [])]
        for canonical, aliases in data.items()
    }
