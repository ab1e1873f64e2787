from salary.location_resolver import LocationResolver


def test_city_state_country_resolves_to_inr():
    info = LocationResolver().resolve("Bengaluru, Karnataka, India")

    assert info.city == "bengaluru"
    assert info.state == "karnataka"
    assert info.country == "IN"
    assert info.currency == "INR"
    assert info.symbol == "₹"
    assert info.format == "lakh"


def test_us_state_abbreviation_sets_country():
    info = LocationResolver().resolve("San Francisco, CA")

    assert info.city == "san francisco"
    assert info.state == "ca"
    assert info.country == "US"
    assert info.currency == "USD"


def test_city_alias_and_area_decoration():
    resolver = LocationResolver()

    assert resolver.resolve("Greater Bengaluru Area").city == "bengaluru"
    assert resolver.resolve("Bangalore, India").city == "bengaluru"
    sf = resolver.resolve("San Francisco Bay Area")
    assert sf.city == "san francisco"
    assert sf.country == "US"


def test_parenthetical_annotation_is_ignored():
    info = LocationResolver().resolve("Pune, Maharashtra, India (Hybrid)")

    assert info.city == "pune"
    assert info.country == "IN"


def test_country_only_leaves_city_empty():
    info = LocationResolver().resolve("India")

    assert info.city == ""
    assert info.country == "IN"
    assert info.currency == "INR"


def test_city_state_keeps_city():
    info = LocationResolver().resolve("Singapore")

    assert info.city == "singapore"
    assert info.country == "SG"
    assert info.currency == "SGD"


def test_unknown_location_keeps_city_but_no_currency():
    info = LocationResolver().resolve("Atlantis")

    assert info.city == "atlantis"
    assert info.country == ""
    assert info.currency == ""
    assert info.symbol == ""


def test_empty_input_gives_empty_result():
    resolver = LocationResolver()

    for raw in ("", "   ", ", ,"):
        info = resolver.resolve(raw)
        assert (info.city, info.state, info.country, info.currency) == ("", "", "", "")


def test_known_city_in_later_part_sets_country():
    info = LocationResolver().resolve("Remote, London")

    assert info.country == "GB"
    assert info.currency == "GBP"


def test_canonical_city():
    resolver = LocationResolver()

    assert resolver.canonical_city("Gurgaon") == "gurugram"
    assert resolver.canonical_city("Greater London Area") == "london"
    assert resolver.canonical_city("") == ""
