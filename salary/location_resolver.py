# salary/location_resolver.py
import re
import logging
from typing import Optional, List

from salary.models import LocationInfo
from salary.reference_data import LocationTables, load_location_tables

logger = logging.getLogger(__name__)


class LocationResolver:
    """Resolve LinkedIn location strings to city/state/country and currency"""

    # LinkedIn area decorations, e.g. "Greater Bengaluru Area", "San Francisco Bay Area"
    AREA_PATTERNS = [
        re.compile(r'^greater\s+'),
        re.compile(r'\s+metropolitan\s+area$'),
        re.compile(r'\s+metropolitan\s+region$'),
        re.compile(r'\s+bay\s+area$'),
        re.compile(r'\s+area$'),
    ]

    def __init__(self, tables: Optional[LocationTables] = None):
        """
        Args:
            tables: Location lookup tables (defaults to the bundled YAML data)
        """
        self.tables = tables or load_location_tables()

    def resolve(self, location: str) -> LocationInfo:
        """
        Resolve a free-text location

        Examples:
            "Bengaluru, Karnataka, India" -> city bengaluru, country IN, INR
            "San Francisco, CA"           -> city san francisco, country US, USD

        Unknown parts are left empty rather than guessed; an empty country
        means "unconstrained" to the matcher.
        """
        if not location or not location.strip():
            return LocationInfo()

        raw = re.sub(r'\(.*?\)', '', location.lower()).strip()
        parts = self._split_parts(raw)
        if not parts:
            return LocationInfo()

        city = ''
        state = ''
        country = ''

        # Country from the last part
        last = parts[-1]
        if last in self.tables.country_names:
            country = self.tables.country_names[last]

        # City from the first part (kept even when we don't know it).
        # A lone country name is not a city, unless it is a city-state.
        first = parts[0]
        if len(parts) == 1 and country and first not in self.tables.cities:
            city = ''
        else:
            city = first
            if first in self.tables.cities:
                country = country or self.tables.cities[first]

        # State from the second part
        if len(parts) >= 2:
            second = parts[1]
            if second in self.tables.us_state_abbreviations:
                country = country or self.tables.us_state_abbreviations[second]
                state = second
            elif second in self.tables.states:
                country = country or self.tables.states[second]
                state = second

        # Last resort: any part that is a known city
        if not country:
            for part in parts:
                if part in self.tables.cities:
                    country = self.tables.cities[part]
                    city = part
                    break

        info = LocationInfo(city=city, state=state, country=country)
        country_info = self.tables.countries.get(country) if country else None
        if country_info:
            info.currency = country_info.currency
            info.symbol = country_info.symbol
            info.format = country_info.format
        else:
            # All-or-nothing: no country without currency info
            info.country = ''

        logger.debug(f"Resolved location '{location}' -> {info}")
        return info

    def canonical_city(self, city: str) -> str:
        """Lowercase city name with area decorations and aliases resolved"""
        if not city:
            return ''
        return self._clean_part(city.lower())

    def _split_parts(self, raw: str) -> List[str]:
        parts = []
        for part in raw.split(','):
            part = self._clean_part(part)
            if part:
                parts.append(part)
        return parts

    def _clean_part(self, part: str) -> str:
        part = re.sub(r'\s+', ' ', part).strip()
        if part in self.tables.city_aliases:
            return self.tables.city_aliases[part]
        for pattern in self.AREA_PATTERNS:
            part = pattern.sub('', part).strip()
        return self.tables.city_aliases.get(part, part)
