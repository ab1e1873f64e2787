# salary/__init__.py
"""
Salary matching for scraped LinkedIn job cards
"""

from salary.models import JobQuery, LocationInfo, MatchType, SalaryDatabaseEntry, SalaryResult
from salary.location_resolver import LocationResolver
from salary.title_normalizer import TitleNormalizer
from salary.company_cleaner import clean_company_name, company_matches
from salary.database import SalaryDatabase
from salary.matcher import SalaryMatcher

__all__ = [
    'JobQuery',
    'LocationInfo',
    'MatchType',
    'SalaryDatabaseEntry',
    'SalaryResult',
    'LocationResolver',
    'TitleNormalizer',
    'clean_company_name',
    'company_matches',
    'SalaryDatabase',
    'SalaryMatcher',
]
