import json

import pytest

from salary.database import SalaryDatabase
from salary.db_builder import SalaryDatabaseBuilder

HEADER = "title,company,city,state,country,experienceLevel,salaryMin,salaryMax,salaryMedian,currency,source\n"


@pytest.fixture
def sources(tmp_path):
    src = tmp_path / "data-sources"
    src.mkdir()
    (src / "india-salaries.csv").write_text(
        HEADER
        + "SDE,Amazon,Bangalore,,IN,mid,2200000,4000000,3000000,INR,public\n"
        + "Software Engineer,,Bengaluru,,,,1000000,2000000,1500000,,\n"
        + "Software Engineer,,Bengaluru,,IN,mid,1100000,2100000,1600000,INR,glassdoor\n"
        + "Broken Row,,Pune,,IN,mid,0,100,50,INR,public\n",
        encoding="utf-8",
    )
    (src / "us-salaries.csv").write_text(
        HEADER
        + "Software Engineer,Google,Mountain View,CA,US,mid,150000,220000,185000,USD,public\n"
        + "Payments Platform Specialist,,New York,NY,US,mid,90000,120000,100000,USD,public\n"
        + "Payment Platform Specialist,,New York,NY,US,mid,90000,120000,100000,USD,public\n"
        + "Bad Currency,,New York,NY,US,mid,90000,120000,100000,XYZ,public\n",
        encoding="utf-8",
    )
    (src / "notes.csv").write_text("ignored,file\n", encoding="utf-8")
    return src


def test_build_entry_normalizes_and_fills_defaults():
    entry = SalaryDatabaseBuilder().build_entry({
        "title": "SDE", "company": "", "city": "Bangalore",
        "salaryMin": "1,000,000", "salaryMax": "2000000", "salaryMedian": "1500000",
    })

    assert entry.title_normalized == "software engineer"
    assert entry.city == "bengaluru"
    assert entry.country == "IN"
    assert entry.currency == "INR"
    assert entry.experience_level == "mid"
    assert entry.source == "public"
    assert entry.salary_min == 1000000


def test_build_writes_valid_entries_and_report(sources, tmp_path):
    output = tmp_path / "out" / "salary-db.json"
    fallback = tmp_path / "out" / "salary-fallback.json"

    report = SalaryDatabaseBuilder().build(sources, output, fallback)

    assert report.source_files == {"india-salaries.csv": 4, "us-salaries.csv": 4}
    assert report.total_rows == 8
    assert report.valid_entries == 6
    assert len(report.validation_errors) == 2
    assert any("invalid currency" in message for message in report.validation_errors)
    assert report.duplicate_keys == 1
    assert report.by_country == {"IN": 4, "US": 4}
    assert report.version == 1

    near = {(d.title_a, d.title_b) for d in report.near_duplicates}
    assert ("payment platform specialist", "payments platform specialist") in near

    db = SalaryDatabase.load(output)
    assert len(db) == 6
    assert db.version == 1

    # One per title + country, market rows preferred
    fallback_db = SalaryDatabase.load(fallback)
    software_in = [e for e in fallback_db if e.title_normalized == "software engineer" and e.country == "IN"]
    assert len(software_in) == 1
    assert software_in[0].company == ""


def test_rebuild_increments_version(sources, tmp_path):
    output = tmp_path / "salary-db.json"
    builder = SalaryDatabaseBuilder()

    builder.build(sources, output)
    report = builder.build(sources, output)

    assert report.version == 2
    assert SalaryDatabase.load(output).version == 2


def test_build_without_sources_fails(tmp_path):
    with pytest.raises(FileNotFoundError):
        SalaryDatabaseBuilder().build(tmp_path, tmp_path / "salary-db.json")


def test_load_accepts_bare_list_and_drops_invalid_rows(tmp_path, make_entry):
    path = tmp_path / "salary-db.json"
    rows = [
        make_entry().to_dict(),
        make_entry(salary_min=3000000).to_dict(),
        make_entry(currency="XYZ").to_dict(),
    ]
    path.write_text(json.dumps(rows), encoding="utf-8")

    db = SalaryDatabase.load(path)

    assert len(db) == 1
    assert db.version == 0


def test_missing_database_is_empty(tmp_path):
    db = SalaryDatabase.load(tmp_path / "nope.json")

    assert len(db) == 0
