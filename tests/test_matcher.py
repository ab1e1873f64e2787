import pytest

from salary.database import SalaryDatabase
from salary.formatting import format_amount, format_label
from salary.matcher import SalaryMatcher, average_entries, word_overlap
from salary.models import JobQuery, MatchType


@pytest.fixture
def tiered_db(make_entry):
    return SalaryDatabase([
        make_entry(company="Google", city="bengaluru", salary_min=3000000, salary_max=5000000, salary_median=4000000),
        make_entry(company="Google", city="pune", salary_min=2000000, salary_max=4000000, salary_median=3000000),
        make_entry(company="", city="bengaluru", salary_min=1000000, salary_max=2000000, salary_median=1500000),
        make_entry(company="", city="pune", salary_min=800000, salary_max=1600000, salary_median=1200000),
    ])


def test_market_entry_answers_unlisted_company(make_entry):
    matcher = SalaryMatcher(SalaryDatabase([make_entry()]))

    result = matcher.match("Software Engineer", "SomeUnlistedCo", "Bengaluru, India")

    assert result.found
    assert result.match_type == MatchType.MARKET_AVERAGE
    assert result.sample_size == 1
    assert result.label == "₹10.0L - ₹20.0L"
    assert result.is_ai_estimate is False


def test_exact_beats_everything(tiered_db):
    result = SalaryMatcher(tiered_db).match("Software Engineer", "Google LLC", "Bengaluru, Karnataka, India")

    assert result.match_type == MatchType.EXACT
    assert result.sample_size == 1
    assert result.salary_median == 4000000


def test_company_average_across_cities(tiered_db):
    result = SalaryMatcher(tiered_db).match("Software Engineer", "Google", "Hyderabad, India")

    assert result.match_type == MatchType.COMPANY_AVERAGE
    assert result.sample_size == 2
    assert result.salary_min == 2500000
    assert result.salary_max == 4500000
    assert result.salary_median == 3500000


def test_city_average_includes_company_rows(tiered_db):
    result = SalaryMatcher(tiered_db).match("Software Engineer", "Microsoft", "Bengaluru, India")

    assert result.match_type == MatchType.MARKET_AVERAGE
    assert result.sample_size == 2


def test_national_average(tiered_db):
    result = SalaryMatcher(tiered_db).match("Software Engineer", "Microsoft", "Chennai, India")

    assert result.match_type == MatchType.NATIONAL_AVERAGE
    assert result.sample_size == 4


def test_city_state_location_reaches_exact_and_market_tiers(make_entry):
    db = SalaryDatabase([
        make_entry(company="Google", city="singapore", country="SG", currency="SGD",
                   salary_min=120000, salary_max=180000, salary_median=150000),
        make_entry(company="", city="singapore", country="SG", currency="SGD",
                   salary_min=80000, salary_max=120000, salary_median=100000),
    ])
    matcher = SalaryMatcher(db)

    exact = matcher.match("Software Engineer", "Google", "Singapore")
    assert exact.match_type == MatchType.EXACT
    assert exact.salary_median == 150000
    assert exact.currency == "SGD"

    market = matcher.match("Software Engineer", "Grab", "Singapore")
    assert market.match_type == MatchType.MARKET_AVERAGE
    assert market.sample_size == 2


def test_blank_company_never_counts_as_company_match(tiered_db):
    result = SalaryMatcher(tiered_db).match("Software Engineer", "", "Bengaluru, India")

    assert result.match_type == MatchType.MARKET_AVERAGE


def test_fuzzy_title_overlap(make_entry):
    db = SalaryDatabase([make_entry(title="Payments Platform Specialist",
                                    title_normalized="payments platform specialist", city="mumbai")])

    result = SalaryMatcher(db).match("Payments Platform Specialist II", "", "Mumbai, India")

    assert result.match_type == MatchType.FUZZY_AVERAGE


def test_role_keyword_in_same_city(make_entry):
    db = SalaryDatabase([make_entry(title="Operations Manager",
                                    title_normalized="operations manager", city="mumbai")])

    result = SalaryMatcher(db).match("Warehouse Shift Manager", "", "Mumbai, India")

    assert result.match_type == MatchType.FUZZY_AVERAGE
    assert result.found


def test_no_match_reports_location(tiered_db):
    result = SalaryMatcher(tiered_db).match("Chief Happiness Officer", "Acme", "Chennai, India")

    assert result.found is False
    assert result.match_type == MatchType.NONE
    assert result.label == "Data Unavailable"
    assert result.currency == "INR"
    assert result.salary_min is None
    assert result.location.city == "chennai"


def test_no_match_unknown_location(tiered_db):
    result = SalaryMatcher(tiered_db).match("Chief Happiness Officer", "Acme", "Atlantis")

    assert result.found is False
    assert result.currency == ""


def test_match_many_keeps_order(tiered_db):
    jobs = [
        JobQuery("Chief Happiness Officer", "Acme", "Atlantis"),
        JobQuery("Software Engineer", "Google", "Bengaluru, India"),
        JobQuery("Software Engineer", "", "Chennai, India"),
    ]

    results = SalaryMatcher(tiered_db).match_many(jobs)

    assert [r.match_type for r in results] == [
        MatchType.NONE, MatchType.EXACT, MatchType.NATIONAL_AVERAGE,
    ]


def test_word_overlap_is_directional():
    assert word_overlap("data engineer", "senior data engineer") == 1.0
    assert word_overlap("senior data engineer", "data engineer") == pytest.approx(2 / 3)
    assert word_overlap("qa", "qa engineer") == 0.0


def test_average_rounds_half_up(make_entry):
    avg = average_entries([
        make_entry(salary_min=1000001, salary_median=1500000, salary_max=2000000),
        make_entry(salary_min=1000000, salary_median=1500000, salary_max=2000001),
    ])

    assert avg.salary_min == 1000001
    assert avg.salary_max == 2000001


def test_mixed_currencies_are_not_averaged_together(make_entry):
    entries = [
        make_entry(currency="INR"),
        make_entry(currency="INR"),
        make_entry(currency="USD", salary_min=100000, salary_median=120000, salary_max=150000),
    ]

    assert average_entries(entries, preferred_currency="USD").currency == "USD"
    assert average_entries(entries, preferred_currency="USD").sample_size == 1

    fallback = average_entries(entries)
    assert fallback.currency == "INR"
    assert fallback.sample_size == 2


@pytest.mark.parametrize("low, high, currency, expected", [
    (1200000, 1850000, "INR", "₹12.0L - ₹18.5L"),
    (95000, 150000, "INR", "₹95k - ₹1.5L"),
    (120000, 150000, "USD", "$120k - $150k"),
    (45000, 45000, "GBP", "£45k"),
    (1500000, 1500000, "INR", "₹15.0L"),
])
def test_format_label(low, high, currency, expected):
    assert format_label(low, high, currency) == expected


def test_format_amount_edge_cases():
    assert format_amount(500, "USD") == "$500"
    assert format_amount(100000, "INR") == "₹1.0L"
    # Unknown currency falls back to the code
    assert format_amount(50000, "XYZ") == "XYZ50k"
