# scripts/build_salary_db.py
#!/usr/bin/env python3
"""
CLI script to build the salary database from CSV sources
Usage:
    python scripts/build_salary_db.py
    python scripts/build_salary_db.py --sources data/data-sources --output data/salary-db.json
"""

import argparse
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from salary.config import get_config
from salary.db_builder import SalaryDatabaseBuilder
from salary.location_resolver import LocationResolver
from salary.reference_data import load_location_tables, load_title_aliases
from salary.title_normalizer import TitleNormalizer
from salary.utils import setup_logging


def print_report(report, output: Path, fallback: Path):
    print("\n=== Build Stats ===")
    for name, count in report.source_files.items():
        print(f"  {name}: {count} entries")
    print(f"Total rows: {report.total_rows}")
    print(f"Validation errors: {len(report.validation_errors)}")
    print(f"Duplicate keys: {report.duplicate_keys}")

    print("\nEntries per country:")
    for country, count in report.by_country.items():
        print(f"  {country}: {count}")

    print("\nEntries per source:")
    for source, count in report.by_source.items():
        print(f"  {source}: {count}")

    print(f"\nUnique normalized titles: {report.unique_titles}")
    print(f"Unique companies: {report.unique_companies}")

    if report.near_duplicates:
        print("\nSimilar normalized titles (consider adding aliases):")
        for dup in report.near_duplicates:
            print(f"  {dup.title_a!r} ~ {dup.title_b!r} ({dup.similarity:.0f})")

    print(f"\nFallback DB: {report.fallback_entries} entries -> {fallback}")
    print(f"Main DB: {report.valid_entries} entries (version {report.version}) -> {output}")


def main():
    config = get_config()

    parser = argparse.ArgumentParser(description='Build salary database from *-salaries.csv files')
    parser.add_argument(
        '--sources',
        type=Path,
        default=config.data_sources_dir,
        help='Directory containing *-salaries.csv files'
    )
    parser.add_argument(
        '--output',
        type=Path,
        default=config.salary_db_path,
        help='Main database JSON output'
    )
    parser.add_argument(
        '--fallback',
        type=Path,
        default=config.fallback_db_path,
        help='Compact fallback JSON output'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Debug logging'
    )

    args = parser.parse_args()
    setup_logging(config.log_dir, 'DEBUG' if args.verbose else config.log_level, prefix='build_salary_db')

    tables = load_location_tables(config.location_data_path)
    builder = SalaryDatabaseBuilder(
        title_normalizer=TitleNormalizer(
            aliases=load_title_aliases(config.title_aliases_path),
            min_alias_length=config.min_alias_length,
            role_keywords=config.role_keywords
        ),
        location_resolver=LocationResolver(tables),
        near_duplicate_threshold=config.near_duplicate_threshold
    )

    try:
        report = builder.build(args.sources, args.output, args.fallback)
    except FileNotFoundError as e:
        print(f"Error: {e}")
        return 1

    print_report(report, args.output, args.fallback)
    return 0


if __name__ == '__main__':
    sys.exit(main())
