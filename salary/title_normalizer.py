# salary/title_normalizer.py
import re
import logging
from typing import Dict, List, Optional, Tuple

from salary.reference_data import load_title_aliases

logger = logging.getLogger(__name__)

DEFAULT_ROLE_KEYWORDS = [
    'engineer', 'developer', 'manager', 'analyst', 'scientist',
    'designer', 'architect', 'consultant', 'director', 'lead',
    'administrator', 'writer', 'master', 'executive',
]


def normalize_text(text: str) -> str:
    """Lowercase, keep [a-z0-9 ], collapse whitespace"""
    text = re.sub(r'[^a-z0-9\s]', '', text.lower())
    return re.sub(r'\s+', ' ', text).strip()


class TitleNormalizer:
    """Clean LinkedIn job titles and map them to canonical titles"""

    VERIFICATION_SUFFIX = re.compile(r'(?:\s+with\s+verification)+\s*$', re.IGNORECASE)

    # "#ACN S&C-...", "IN_Senior Associate_..."
    CODE_PREFIX = re.compile(r'^(?:#\w{2,5}[\s_-]+|[A-Za-z0-9]{2,5}_+)')
    COUNTRY_PREFIX = re.compile(r'^[A-Z]{2}_', re.IGNORECASE)

    def __init__(
        self,
        aliases: Optional[Dict[str, List[str]]] = None,
        min_alias_length: int = 4,
        role_keywords: Optional[List[str]] = None
    ):
        """
        Args:
            aliases: canonical title -> alternative titles
            min_alias_length: shortest alias allowed in substring scans
            role_keywords: ordered generic role nouns for last-resort matching
        """
        if aliases is None:
            aliases = load_title_aliases()

        self.min_alias_length = min_alias_length
        self.role_keywords = role_keywords or DEFAULT_ROLE_KEYWORDS
        self.alias_map = self._build_alias_map(aliases)

        # Longest first so specific aliases beat generic ones
        self._aliases_by_length: List[Tuple[str, str]] = sorted(
            ((alias, canonical) for alias, canonical in self.alias_map.items()
             if len(alias) >= self.min_alias_length),
            key=lambda item: len(item[0]),
            reverse=True
        )

    @staticmethod
    def _build_alias_map(aliases: Dict[str, List[str]]) -> Dict[str, str]:
        alias_map = {}
        for canonical, alternatives in aliases.items():
            canonical = canonical.lower()
            alias_map[canonical] = canonical
            for alt in alternatives:
                alias_map[alt.lower()] = canonical
        return alias_map

    def clean_title(self, raw: str) -> str:
        """
        Strip LinkedIn junk from a title

        "IN_Senior Associate_GTM Strategy - Growth" -> "senior associate gtm strategy growth"
        """
        if not raw:
            return ''

        title = raw

        # LinkedIn often sends "Title\n\n\nTitle with verification"
        lines = [line.strip() for line in title.split('\n') if line.strip()]
        if len(lines) > 1:
            title = lines[0]

        title = self.VERIFICATION_SUFFIX.sub('', title)
        title = self.CODE_PREFIX.sub('', title)
        title = self.COUNTRY_PREFIX.sub('', title)

        title = re.sub(r'_+', ' ', title)
        title = re.sub(r'\s*-\s*', ' ', title)
        title = re.sub(r'\(.*?\)', '', title)

        normalized = normalize_text(title)
        return self._collapse_duplicate(normalized)

    @staticmethod
    def _collapse_duplicate(normalized: str) -> str:
        """'data engineer data engineer' -> 'data engineer'"""
        words = normalized.split(' ')
        while len(words) >= 4 and len(words) % 2 == 0:
            half = len(words) // 2
            if words[:half] != words[half:]:
                break
            words = words[:half]
        return ' '.join(words)

    def normalize(self, raw: str) -> str:
        """Clean a title and resolve it to its canonical form when one is known"""
        cleaned = self.clean_title(raw)
        if not cleaned:
            return ''

        if cleaned in self.alias_map:
            return self.alias_map[cleaned]

        # O(aliases) per lookup; fine at current table sizes
        for alias, canonical in self._aliases_by_length:
            if alias in cleaned:
                return canonical

        return cleaned

    def extract_core_role(self, normalized_title: str) -> Optional[str]:
        """First generic role noun present in the title, in keyword order"""
        words = normalized_title.split(' ')
        for keyword in self.role_keywords:
            if keyword in words:
                return keyword
        return None
