# salary/database.py
import json
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Set

from salary.models import SalaryDatabaseEntry
from salary.reference_data import load_location_tables

logger = logging.getLogger(__name__)


class SalaryDatabase:
    """Read-only collection of salary entries with a version marker"""

    def __init__(
        self,
        entries: Iterable[SalaryDatabaseEntry] = (),
        version: int = 0,
        known_currencies: Optional[Set[str]] = None
    ):
        self.known_currencies = known_currencies or load_location_tables().known_currencies
        self.version = version
        self.entries: List[SalaryDatabaseEntry] = self._validated(entries)

    def _validated(self, entries: Iterable[SalaryDatabaseEntry]) -> List[SalaryDatabaseEntry]:
        valid = []
        for i, entry in enumerate(entries):
            errors = entry.validate(self.known_currencies)
            if errors:
                logger.warning(
                    f"Dropping salary entry {i + 1} ({entry.title}, {entry.company}): "
                    f"{'; '.join(errors)}"
                )
                continue
            valid.append(entry)
        return valid

    @classmethod
    def load(cls, path: Path, known_currencies: Optional[Set[str]] = None) -> 'SalaryDatabase':
        """
        Load a database built by scripts/build_salary_db.py

        Accepts either a bare list of entries or {"version": n, "entries": [...]}.
        A missing file yields an empty database.
        """
        path = Path(path)
        if not path.exists():
            logger.warning(f"Salary DB not found at {path}; run scripts/build_salary_db.py")
            return cls([], version=0, known_currencies=known_currencies)

        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        if isinstance(data, dict):
            version = int(data.get('version', 0))
            records = data.get('entries', [])
        else:
            version = 0
            records = data

        db = cls(
            (SalaryDatabaseEntry.from_dict(record) for record in records),
            version=version,
            known_currencies=known_currencies
        )
        logger.info(f"Loaded {len(db)} salary entries (version {db.version}) from {path}")
        return db

    def save(self, path: Path):
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(
                {'version': self.version, 'entries': [e.to_dict() for e in self.entries]},
                f,
                indent=2,
                ensure_ascii=False
            )

    def __len__(self):
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)
