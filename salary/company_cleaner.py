# salary/company_cleaner.py
import re
import logging

logger = logging.getLogger(__name__)

# Locale/legal suffixes LinkedIn appends to company names
COMPANY_SUFFIXES = [
    'india', 'in india', 'india pvt ltd', 'india private limited', 'india ltd',
    'india limited', 'technologies india', 'india technologies',
    'usa', 'us', 'uk', 'global', 'international', 'worldwide',
    'pvt ltd', 'private limited', 'limited', 'ltd', 'inc', 'corp',
    'corporation', 'llc', 'llp', 'solutions', 'services', 'consulting',
    'technologies', 'technology', 'tech',
]

_SORTED_SUFFIXES = sorted(COMPANY_SUFFIXES, key=len, reverse=True)


def clean_company_name(raw: str) -> str:
    """
    Canonicalize a company name for comparison

    "Accenture Solutions Pvt Ltd" -> "accenture"
    "Accenture in India"          -> "accenture"
    """
    if not raw:
        return ''

    name = re.sub(r'[^a-z0-9\s&]', '', raw.lower())
    name = re.sub(r'\s+', ' ', name).strip()

    # Chained suffixes: "... Technologies India Pvt Ltd"
    changed = True
    while changed:
        changed = False
        for suffix in _SORTED_SUFFIXES:
            if name.endswith(' ' + suffix):
                name = name[:-(len(suffix) + 1)].strip()
                changed = True
                break
            if ' in ' + suffix in name:
                name = name.split(' in ' + suffix)[0].strip()
                changed = True
                break

    return name


def company_matches(db_company: str, scraped_company: str) -> bool:
    """
    Fuzzy company identity check

    Blank + blank counts as a match; callers must check the scraped
    company is non-blank before treating a match as identification.
    """
    if not db_company or not scraped_company:
        return not db_company and not scraped_company

    db_clean = clean_company_name(db_company)
    scraped_clean = clean_company_name(scraped_company)

    if not db_clean or not scraped_clean:
        return not db_clean and not scraped_clean

    if db_clean == scraped_clean:
        return True

    # "jp morgan chase" vs "jp morgan"
    if db_clean in scraped_clean or scraped_clean in db_clean:
        return True

    # "jpmorgan chase" vs "jp morgan"
    db_compact = db_clean.replace(' ', '')
    scraped_compact = scraped_clean.replace(' ', '')
    shorter = min(db_compact, scraped_compact, key=len)
    if len(shorter) >= 3 and (db_compact in scraped_compact or scraped_compact in db_compact):
        return True

    # Short names: "google" vs "google cloud"
    db_first = db_clean.split(' ')[0]
    scraped_first = scraped_clean.split(' ')[0]
    if len(db_first) >= 3 and db_first == scraped_first:
        return True

    return False
