# salary/config.py
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import yaml

DATA_DIR = Path(__file__).parent / "data"


@dataclass
class SalaryConfig:
    """Configuration for salary matching, caching and lookups"""

    # Reference data
    location_data_path: Path = DATA_DIR / "location_currency.yaml"
    title_aliases_path: Path = DATA_DIR / "title_aliases.yaml"

    # Salary database (built by scripts/build_salary_db.py)
    salary_db_path: Path = Path("data/salary-db.json")
    fallback_db_path: Path = Path("data/salary-fallback.json")
    data_sources_dir: Path = Path("data/data-sources")

    # Matching
    fuzzy_threshold: float = 0.6
    min_alias_length: int = 4
    near_duplicate_threshold: int = 90  # rapidfuzz ratio, builder report only
    role_keywords: List[str] = field(default_factory=lambda: [
        'engineer', 'developer', 'manager', 'analyst', 'scientist',
        'designer', 'architect', 'consultant', 'director', 'lead',
        'administrator', 'writer', 'master', 'executive',
    ])

    # Cache TTLs (seconds)
    db_match_ttl: int = 7 * 24 * 3600
    ai_estimate_ttl: int = 3 * 24 * 3600
    not_found_ttl: int = 3600
    match_cache_ttl: int = 24 * 3600

    # Cache size / maintenance
    cache_db_path: Path = Path("data/cache.db")
    max_salary_entries: int = 1000
    max_match_entries: int = 200
    sweep_interval: int = 3600

    # Lookups
    use_ai_fallback: bool = True
    batch_timeout: float = 45.0

    # Logging
    log_dir: Path = Path("data/logs")
    log_level: str = "INFO"

    def __post_init__(self):
        # YAML gives plain strings
        for name in ('location_data_path', 'title_aliases_path', 'salary_db_path',
                     'fallback_db_path', 'data_sources_dir', 'cache_db_path', 'log_dir'):
            setattr(self, name, Path(getattr(self, name)))

    @classmethod
    def from_yaml(cls, path: str):
        """Load configuration from YAML file"""
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        return cls(**data.get('salary', {}))


def get_config() -> SalaryConfig:
    """Get salary configuration"""
    config_path = os.getenv('SALARY_CONFIG', 'config/salary.yaml')

    if os.path.exists(config_path):
        return SalaryConfig.from_yaml(config_path)
    return SalaryConfig()
